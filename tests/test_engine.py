"""
BallEngine Tests — fling conversion, pulse state machine, configuration.
"""

import sys
import os
import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from engine import (
    Ball, BallEngine, BallSnapshot, InvalidConfiguration, PulseState,
    SurfaceConfig, radius_at, ease_accelerate_decelerate,
    BALL_RADIUS, FLING_SCALE,
)


# ── Helpers ──────────────────────────────────────────────

def make_engine(**params) -> BallEngine:
    return BallEngine(SurfaceConfig(**params))


class TestChannels:
    """Position and velocity are independent channels."""

    def test_set_position_keeps_velocity(self):
        eng = make_engine()
        eng.apply_fling(100, 100, 0.5)
        eng.set_position(12.5, -3.0)
        snap = eng.snapshot()
        assert (snap.cx, snap.cy) == (12.5, -3.0)
        assert (snap.dx, snap.dy) == (-50.0, -50.0)

    def test_fling_keeps_position(self):
        eng = BallEngine(x=40.0, y=60.0)
        eng.apply_fling(300, -400, 0.03)
        snap = eng.snapshot()
        assert (snap.cx, snap.cy) == (40.0, 60.0)

    def test_fling_example(self):
        eng = make_engine()
        eng.apply_fling(-100, 200, 0.03)
        snap = eng.snapshot()
        assert (snap.dx, snap.dy) == (3.0, -6.0)

    @pytest.mark.parametrize("vx,vy,s", [
        (0.0, 0.0, 0.03),
        (1234.5, -987.25, 0.03),
        (-7.0, 3.3, 1.7),
        (1e9, -1e9, 0.01),
    ])
    def test_fling_is_exact(self, vx, vy, s):
        eng = make_engine()
        eng.apply_fling(vx, vy, s)
        assert (eng.ball.dx, eng.ball.dy) == (-vx * s, -vy * s)

    def test_fling_uses_configured_scale(self):
        eng = make_engine(fling_scale=0.5)
        eng.apply_fling(10, 20)
        assert (eng.ball.dx, eng.ball.dy) == (-5.0, -10.0)
        assert FLING_SCALE == 0.03


class TestRadiusAt:
    """Pure pulse interpolation."""

    def test_endpoints_are_base(self):
        assert radius_at(0, 50.0, 1.5, 1000) == 50.0
        assert radius_at(1000, 50.0, 1.5, 1000) == 50.0
        assert radius_at(-10, 50.0, 1.5, 1000) == 50.0
        assert radius_at(5000, 50.0, 1.5, 1000) == 50.0

    def test_leg_midpoints_strictly_between(self):
        for t in (250, 750):
            r = radius_at(t, 50.0, 1.5, 1000)
            assert 50.0 < r < 75.0

    def test_peak_at_half_duration(self):
        assert radius_at(500, 50.0, 1.5, 1000) == pytest.approx(75.0)

    def test_symmetric(self):
        for t in (100, 200, 333, 450):
            assert radius_at(t, 80.0, 2.0, 1000) == pytest.approx(radius_at(1000 - t, 80.0, 2.0, 1000))

    def test_monotone_legs(self):
        grow = [radius_at(t, 10.0, 3.0, 1000) for t in np.linspace(1, 500, 50)]
        shrink = [radius_at(t, 10.0, 3.0, 1000) for t in np.linspace(500, 999, 50)]
        assert all(a <= b for a, b in zip(grow, grow[1:]))
        assert all(a >= b for a, b in zip(shrink, shrink[1:]))

    def test_shrinking_pulse(self):
        """growth < 1 pulses inward and stays positive."""
        r = radius_at(500, 40.0, 0.5, 1000)
        assert r == pytest.approx(20.0)
        assert r > 0

    def test_easing_endpoints(self):
        assert ease_accelerate_decelerate(0.0) == pytest.approx(0.0)
        assert ease_accelerate_decelerate(1.0) == pytest.approx(1.0)
        assert ease_accelerate_decelerate(0.5) == pytest.approx(0.5)


class TestPulse:
    """Resting ↔ Pulsing state machine."""

    def test_double_toggle_restores_base(self):
        eng = make_engine(base_radius=50)
        eng.toggle_pulse()
        eng.toggle_pulse()
        snap = eng.snapshot()
        assert snap.radius == 50
        assert snap.pulse_active is False

    def test_toggle_returns_state(self):
        eng = make_engine()
        assert eng.toggle_pulse() is PulseState.PULSING
        assert eng.pulse_state is PulseState.PULSING
        assert eng.toggle_pulse() is PulseState.RESTING

    def test_start_at_base(self):
        eng = make_engine(base_radius=50)
        eng.toggle_pulse()
        snap = eng.snapshot()
        assert snap.radius == 50
        assert snap.pulse_active is True

    def test_grows_mid_pulse(self):
        eng = make_engine(base_radius=50, pulse_growth_factor=2.0, pulse_duration_ms=1000)
        eng.toggle_pulse()
        eng.advance(250)
        snap = eng.snapshot()
        assert 50 < snap.radius < 100
        assert snap.pulse_active is True
        assert eng.pulse_elapsed_ms == 250

    def test_completes_on_its_own(self):
        eng = make_engine(base_radius=50, pulse_duration_ms=1000)
        eng.toggle_pulse()
        for _ in range(10):
            eng.advance(100)
        snap = eng.snapshot()
        assert snap.radius == 50
        assert snap.pulse_active is False
        assert eng.pulse_state is PulseState.RESTING

    def test_cancel_snaps_immediately(self):
        eng = make_engine(base_radius=50, pulse_growth_factor=2.0)
        eng.toggle_pulse()
        eng.advance(400)
        assert eng.snapshot().radius > 50
        eng.toggle_pulse()
        assert eng.snapshot().radius == 50
        # no leftover animation after more time passes
        eng.advance(300)
        assert eng.snapshot().radius == 50

    def test_restart_after_completion(self):
        eng = make_engine(pulse_duration_ms=100)
        eng.toggle_pulse()
        eng.advance(150)
        assert eng.pulse_state is PulseState.RESTING
        eng.toggle_pulse()
        eng.advance(25)
        assert eng.snapshot().radius > eng.config.base_radius

    def test_zero_duration_pulse(self):
        eng = make_engine(pulse_duration_ms=0)
        eng.toggle_pulse()
        snap = eng.snapshot()
        assert snap.pulse_active is False
        assert snap.radius == eng.config.base_radius

    def test_negative_advance_rejected(self):
        eng = make_engine()
        with pytest.raises(ValueError):
            eng.advance(-1)

    def test_radius_always_positive(self):
        eng = make_engine(base_radius=1.0, pulse_growth_factor=0.1, pulse_duration_ms=200)
        eng.toggle_pulse()
        for _ in range(30):
            eng.advance(7)
            assert eng.snapshot().radius > 0


class TestConfiguration:
    """Invalid configuration fails at construction."""

    @pytest.mark.parametrize("params", [
        {"base_radius": 0},
        {"base_radius": -5.0},
        {"pulse_duration_ms": -1},
        {"pulse_growth_factor": 0.0},
        {"damping": 1.5},
        {"pulse_duration_ms": float("nan")},
        {"pulse_duration_ms": float("inf")},
        {"base_radius": float("inf")},
        {"pulse_growth_factor": float("nan")},
        {"fling_scale": float("nan")},
        {"damping": float("nan")},
    ])
    def test_rejected(self, params):
        with pytest.raises(InvalidConfiguration):
            SurfaceConfig(**params)

    def test_is_value_error(self):
        assert issubclass(InvalidConfiguration, ValueError)

    def test_with_params_validates(self):
        cfg = SurfaceConfig()
        assert cfg.with_params(fling_scale=0.1).fling_scale == 0.1
        with pytest.raises(InvalidConfiguration):
            cfg.with_params(base_radius=-1)

    def test_defaults(self):
        eng = BallEngine()
        assert eng.ball.radius == BALL_RADIUS
        assert eng.ball.base_radius == BALL_RADIUS


class TestLifecycle:

    def test_reset(self):
        eng = make_engine(base_radius=30)
        eng.apply_fling(100, 100)
        eng.toggle_pulse()
        eng.advance(100)
        eng.reset(5.0, 6.0)
        snap = eng.snapshot()
        assert snap == BallSnapshot(cx=5.0, cy=6.0, dx=0.0, dy=0.0, radius=30.0,
                                    base_radius=30.0, pulse_active=False)

    def test_reconfigure_cancels_pulse(self):
        eng = make_engine(base_radius=30)
        eng.toggle_pulse()
        eng.advance(200)
        eng.reconfigure(SurfaceConfig(base_radius=70))
        snap = eng.snapshot()
        assert snap.radius == 70
        assert snap.base_radius == 70
        assert snap.pulse_active is False

    def test_snapshot_is_frozen(self):
        snap = BallEngine().snapshot()
        with pytest.raises(AttributeError):
            snap.cx = 1.0

    def test_snapshot_to_dict(self):
        eng = BallEngine(x=1.23456, y=2.0)
        d = eng.snapshot().to_dict()
        assert d["pos"] == [1.235, 2.0]
        assert d["pulse"] is False

    def test_ball_vectors(self):
        b = Ball(position=[1, 2], velocity=[3, 4])
        assert b.position.dtype == float
        np.testing.assert_array_equal(b.velocity, [3.0, 4.0])
        assert b.speed == pytest.approx(5.0)
        assert b.is_moving()
