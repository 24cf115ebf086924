"""
Touch Ball Engine
Ball state, fling conversion, and the radius pulse state machine.
"""

import enum
import math
import numpy as np
from dataclasses import dataclass, field, replace

# ──────────────────────────────────────────────
# Constants (surface pixels, milliseconds)
# ──────────────────────────────────────────────
BALL_RADIUS: float = 100.0  # px  resting radius
FLING_SCALE: float = 0.03  # gesture velocity (px/s) → ball velocity (px/tick)
PULSE_GROWTH: float = 1.5  # peak radius = base * growth
PULSE_DURATION_MS: int = 1000  # grow + shrink, total
DAMPING: float = 0.99  # per-tick velocity decay (controller)

# Numerical thresholds
VELOCITY_THRESHOLD: float = 1e-3


class InvalidConfiguration(ValueError):
    """Raised when a SurfaceConfig would break the radius > 0 invariant."""


class PulseState(enum.Enum):
    RESTING = 0
    PULSING = 1


@dataclass(frozen=True)
class SurfaceConfig:
    """Tunables for one surface. Validated once, at construction."""
    fling_scale: float = FLING_SCALE
    pulse_growth_factor: float = PULSE_GROWTH
    pulse_duration_ms: int = PULSE_DURATION_MS
    base_radius: float = BALL_RADIUS
    damping: float = DAMPING

    def __post_init__(self):
        for name in ("fling_scale", "pulse_growth_factor", "pulse_duration_ms",
                     "base_radius", "damping"):
            if not math.isfinite(getattr(self, name)):
                raise InvalidConfiguration(
                    f"{name} must be finite, got {getattr(self, name)}")
        if not self.base_radius > 0:
            raise InvalidConfiguration(
                f"base_radius must be positive, got {self.base_radius}")
        if not self.pulse_duration_ms >= 0:
            raise InvalidConfiguration(
                f"pulse_duration_ms must be non-negative, got {self.pulse_duration_ms}")
        if not self.pulse_growth_factor > 0:
            raise InvalidConfiguration(
                f"pulse_growth_factor must be positive, got {self.pulse_growth_factor}")
        if not 0.0 <= self.damping <= 1.0:
            raise InvalidConfiguration(
                f"damping must be within [0, 1], got {self.damping}")

    def with_params(self, **params) -> "SurfaceConfig":
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **params)


@dataclass
class Ball:
    """The single ball on a surface."""
    position: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    velocity: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0]))
    radius: float = BALL_RADIUS
    base_radius: float = BALL_RADIUS
    pulse_active: bool = False

    def __post_init__(self):
        self.position = np.array(self.position, dtype=float)
        self.velocity = np.array(self.velocity, dtype=float)

    @property
    def cx(self) -> float:
        return float(self.position[0])

    @property
    def cy(self) -> float:
        return float(self.position[1])

    @property
    def dx(self) -> float:
        return float(self.velocity[0])

    @property
    def dy(self) -> float:
        return float(self.velocity[1])

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def is_moving(self) -> bool:
        return self.speed > VELOCITY_THRESHOLD


@dataclass(frozen=True)
class BallSnapshot:
    """Immutable read of the ball for one rendered frame."""
    cx: float
    cy: float
    dx: float
    dy: float
    radius: float
    base_radius: float
    pulse_active: bool

    def to_dict(self, ndigits: int = 3) -> dict:
        return {
            "pos": [round(self.cx, ndigits), round(self.cy, ndigits)],
            "vel": [round(self.dx, ndigits), round(self.dy, ndigits)],
            "radius": round(self.radius, ndigits),
            "base_radius": self.base_radius,
            "pulse": self.pulse_active,
        }


# ──────────────────────────────────────────────
# Pulse interpolation
# ──────────────────────────────────────────────
def ease_accelerate_decelerate(f: float) -> float:
    """Slow start, slow finish. Maps [0, 1] onto [0, 1]."""
    return math.cos((f + 1.0) * math.pi) / 2.0 + 0.5


def radius_at(elapsed_ms: float, base_radius: float,
              growth_factor: float, duration_ms: float) -> float:
    """
    Radius of a pulse `elapsed_ms` after it started.

    The pulse is two legs of duration/2 each: grow from base to
    base * growth_factor, then shrink back. Outside (0, duration) the
    radius is exactly base_radius. The peak is reached at duration/2; at the
    midpoint of each leg (duration/4, 3*duration/4) the radius lies strictly
    between base and peak.
    """
    if elapsed_ms <= 0 or elapsed_ms >= duration_ms:
        return base_radius
    peak = base_radius * growth_factor
    half = duration_ms / 2.0
    if elapsed_ms <= half:
        return base_radius + (peak - base_radius) * ease_accelerate_decelerate(elapsed_ms / half)
    f = (elapsed_ms - half) / half
    return peak + (base_radius - peak) * ease_accelerate_decelerate(f)


class BallEngine:
    """Owns one Ball; moves it by position, by fling, and by pulse."""

    def __init__(self, config: SurfaceConfig = None, x: float = 0.0, y: float = 0.0):
        self.config = config if config is not None else SurfaceConfig()
        self.ball = Ball(position=[x, y],
                         radius=self.config.base_radius,
                         base_radius=self.config.base_radius)
        self.clock_ms = 0.0
        self._pulse_state = PulseState.RESTING
        self._pulse_started_ms = 0.0

    # ──────────────────────────────────────────
    # Position / velocity channels
    # ──────────────────────────────────────────
    def set_position(self, x: float, y: float) -> None:
        """Move the ball center. Velocity is left alone."""
        self.ball.position[0] = x
        self.ball.position[1] = y

    def apply_fling(self, velocity_x: float, velocity_y: float,
                    scale: float = None) -> None:
        """
        Turn a fling gesture into ball velocity.

        The gesture velocity is inverted and scaled:
        dx = -velocity_x * scale, dy = -velocity_y * scale.
        Position is left alone.
        """
        if scale is None:
            scale = self.config.fling_scale
        self.ball.velocity[0] = -velocity_x * scale
        self.ball.velocity[1] = -velocity_y * scale

    # ──────────────────────────────────────────
    # Pulse state machine
    # ──────────────────────────────────────────
    @property
    def pulse_state(self) -> PulseState:
        return self._pulse_state

    @property
    def pulse_elapsed_ms(self) -> float:
        if self._pulse_state is PulseState.RESTING:
            return 0.0
        return self.clock_ms - self._pulse_started_ms

    def toggle_pulse(self) -> PulseState:
        """Start a pulse, or cancel the running one and snap to base radius."""
        if self._pulse_state is PulseState.PULSING:
            print(f"[PULSE] cancel at {self.pulse_elapsed_ms:.0f}ms")
            self._end_pulse()
        else:
            print(f"[PULSE] start  duration={self.config.pulse_duration_ms}ms")
            self._pulse_state = PulseState.PULSING
            self._pulse_started_ms = self.clock_ms
            self.ball.pulse_active = True
            self.ball.radius = self.config.base_radius
        return self._pulse_state

    def advance(self, dt_ms: float) -> None:
        """Move the pulse clock forward by dt_ms and update the radius."""
        if dt_ms < 0:
            raise ValueError(f"advance: dt_ms must be non-negative, got {dt_ms}")
        self.clock_ms += dt_ms
        self._settle_pulse()

    def _settle_pulse(self) -> None:
        if self._pulse_state is not PulseState.PULSING:
            return
        elapsed = self.clock_ms - self._pulse_started_ms
        cfg = self.config
        if elapsed >= cfg.pulse_duration_ms:
            self._end_pulse()
            return
        self.ball.radius = radius_at(elapsed, cfg.base_radius,
                                     cfg.pulse_growth_factor, cfg.pulse_duration_ms)

    def _end_pulse(self) -> None:
        self._pulse_state = PulseState.RESTING
        self.ball.pulse_active = False
        self.ball.radius = self.config.base_radius

    # ──────────────────────────────────────────
    # Snapshot / lifecycle
    # ──────────────────────────────────────────
    def snapshot(self) -> BallSnapshot:
        self._settle_pulse()
        b = self.ball
        return BallSnapshot(cx=b.cx, cy=b.cy, dx=b.dx, dy=b.dy,
                            radius=float(b.radius),
                            base_radius=float(b.base_radius),
                            pulse_active=b.pulse_active)

    def reset(self, x: float = 0.0, y: float = 0.0) -> None:
        """Re-initialize the ball at (x, y) with resting values."""
        self._end_pulse()
        self.ball.position = np.array([x, y], dtype=float)
        self.ball.velocity = np.array([0.0, 0.0])
        self.ball.base_radius = self.config.base_radius
        self.ball.radius = self.config.base_radius

    def reconfigure(self, config: SurfaceConfig) -> None:
        """Swap in a new config. Any running pulse is cancelled."""
        self.config = config
        self.ball.base_radius = config.base_radius
        self._end_pulse()
