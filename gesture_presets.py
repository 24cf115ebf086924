"""
Gesture Preset System
드래그, 멀티터치, 플링, 펄스, 유실 이벤트 — 5개 시나리오를
컨트롤러에 자동 세팅 + 재생하는 프리셋 함수 모듈.
"""

from contacts import ContactPhase, TouchEvent
from controller import SurfaceController

# Frame timestep (60 fps)
_DT = 1.0 / 60.0

SURFACE_WIDTH: float = 1080.0
SURFACE_HEIGHT: float = 1920.0


def _surface(config=None) -> SurfaceController:
    return SurfaceController(config=config, width=SURFACE_WIDTH, height=SURFACE_HEIGHT)


def _touch(ctrl, phase, cid, x=0.0, y=0.0) -> bool:
    return ctrl.handle_touch(TouchEvent(phase, cid, x, y))


class GesturePreset:
    """각 프리셋은 surface 생성 → 이벤트 재생 → (선택) tick → 결과 dict 반환."""

    @staticmethod
    def scenario_1_drag(run=True) -> dict:
        """한 손가락 드래그: 공이 손가락을 따라가고, 손을 떼면 접점이 사라진다."""
        ctrl = _surface()
        path = [(100.0, 200.0), (140.0, 260.0), (180.0, 320.0), (220.0, 380.0)]

        _touch(ctrl, ContactPhase.BEGAN, 0, *path[0])
        trail = [(ctrl.snapshot().cx, ctrl.snapshot().cy)]
        for x, y in path[1:]:
            _touch(ctrl, ContactPhase.MOVED, 0, x, y)
            if run:
                ctrl.step(_DT)
            trail.append((ctrl.snapshot().cx, ctrl.snapshot().cy))
        contacts_held = ctrl.tracker.active_contacts()
        _touch(ctrl, ContactPhase.ENDED, 0, *path[-1])

        return {"ctrl": ctrl, "path": path, "trail": trail,
                "contacts_held": contacts_held,
                "contacts_after": ctrl.tracker.active_contacts()}

    @staticmethod
    def scenario_2_multi_touch(run=True) -> dict:
        """두 손가락: 공은 마지막으로 전달된 이벤트의 좌표를 따른다."""
        ctrl = _surface()

        _touch(ctrl, ContactPhase.BEGAN, 0, 200.0, 300.0)
        _touch(ctrl, ContactPhase.BEGAN, 1, 800.0, 900.0)
        _touch(ctrl, ContactPhase.MOVED, 1, 760.0, 880.0)
        _touch(ctrl, ContactPhase.MOVED, 0, 260.0, 340.0)
        if run:
            ctrl.step(_DT)
        contacts_both = ctrl.tracker.active_contacts()
        _touch(ctrl, ContactPhase.ENDED, 0)

        return {"ctrl": ctrl, "last_event": (260.0, 340.0),
                "contacts_both": contacts_both,
                "contacts_after": ctrl.tracker.active_contacts()}

    @staticmethod
    def scenario_3_fling(velocity=(-3000.0, 1500.0), max_ticks=2000, run=True) -> dict:
        """플링: 반전·스케일된 속도로 출발해 벽에 튕기며 감속한다."""
        ctrl = _surface()
        ctrl.handle_fling(*velocity)
        start_velocity = (ctrl.snapshot().dx, ctrl.snapshot().dy)

        ticks = 0
        wall_hits = 0
        if run:
            while ticks < max_ticks and ctrl.engine.ball.is_moving():
                ctrl.step(_DT)
                ticks += 1
                wall_hits += sum(1 for ev in ctrl.pending_events if ev["type"] == "wall_hit")
                ctrl.pending_events.clear()

        return {"ctrl": ctrl, "start_velocity": start_velocity,
                "ticks": ticks, "wall_hits": wall_hits}

    @staticmethod
    def scenario_4_pulse(cancel_after_ticks=None, run=True) -> dict:
        """펄스: 반지름이 커졌다가 원래대로 돌아오며, 중간 취소 시 즉시 복귀."""
        ctrl = _surface()
        ctrl.request_pulse()

        radii = [ctrl.snapshot().radius]
        ticks = 0
        if run:
            total = int(ctrl.config.pulse_duration_ms / (_DT * 1000.0)) + 2
            for _ in range(total):
                if cancel_after_ticks is not None and ticks == cancel_after_ticks:
                    ctrl.request_pulse()
                    radii.append(ctrl.snapshot().radius)
                    break
                ctrl.step(_DT)
                ticks += 1
                radii.append(ctrl.snapshot().radius)
                if not ctrl.snapshot().pulse_active:
                    break

        return {"ctrl": ctrl, "radii": radii, "ticks": ticks,
                "peak_radius": max(radii)}

    @staticmethod
    def scenario_5_stale_ids(run=True) -> dict:
        """유실 이벤트: 중복 down, 모르는 id의 move/up 을 경고만 남기고 견딘다."""
        ctrl = _surface()

        _touch(ctrl, ContactPhase.BEGAN, 3, 100.0, 100.0)
        _touch(ctrl, ContactPhase.BEGAN, 3, 120.0, 140.0)     # dropped "ended"
        _touch(ctrl, ContactPhase.MOVED, 9, 900.0, 900.0)     # never began
        _touch(ctrl, ContactPhase.CANCELLED, 3)
        _touch(ctrl, ContactPhase.ENDED, 3)                   # already gone
        if run:
            ctrl.step(_DT)

        return {"ctrl": ctrl,
                "diagnostics": list(ctrl.tracker.diagnostics),
                "contacts_after": ctrl.tracker.active_contacts()}
