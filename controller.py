"""
SurfaceController — glue between the platform layer and the core.

Owns one ContactTracker and one BallEngine (both injectable) for a single
surface. The host feeds it normalized input and reads state back:

  ctrl.handle_touch(event)     — TouchEvent (began / moved / ended / cancelled)
  ctrl.handle_fling(vx, vy)    — recognized fling gesture, px/s
  ctrl.request_pulse()         — pulse menu command
  ctrl.step(dt)                — advance pulse clock + move the ball, once per frame
  ctrl.pending_events          — list of dicts for the host to consume
  ctrl.snapshot()              — BallSnapshot for drawing
"""

import json
import os
from pathlib import Path

import numpy as np

from contacts import ContactPhase, ContactTracker, TouchEvent
from engine import BallEngine, InvalidConfiguration, PulseState, SurfaceConfig


class SurfaceController:
    """Event dispatch + per-tick motion for one touch surface."""

    # ── Class-level constants ─────────────────────────────────────────────────
    MAX_FRAME_DT = 0.05       # s, longer frames are clamped
    SCRIPT_DIR   = "scripts"

    PARAM_NAMES = {
        "fling_scale", "pulse_growth_factor", "pulse_duration_ms",
        "base_radius", "damping",
    }

    # ── Constructor ───────────────────────────────────────────────────────────

    def __init__(self, config: SurfaceConfig = None,
                 tracker: ContactTracker = None, engine: BallEngine = None,
                 width: float = None, height: float = None):
        if engine is not None:
            self.engine = engine
            self.config = engine.config
        else:
            self.config = config if config is not None else SurfaceConfig()
            self.engine = BallEngine(self.config)
        self.tracker = tracker if tracker is not None else ContactTracker()

        # Surface bounds (None = unbounded until the first resize)
        self.width  = width
        self.height = height
        if width is not None and height is not None:
            self.engine.reset(width / 2, height / 2)

        self.tick_count = 0
        self._pulsing   = False     # last pulse state reported to the host
        self._last_script_path = ""
        self._last_script: dict = {}

        self.status_msg = ""
        self.pending_events: list[dict] = []   # host rendering/notification queue

    # ──────────────────────────────────────────────────────────────────────────
    # Input
    # ──────────────────────────────────────────────────────────────────────────

    def handle_touch(self, event: TouchEvent) -> bool:
        """
        Apply one touch event to the contact set and the ball.

        Began and Moved put the ball under the contact; with several fingers
        down the most recent event wins. Ended and Cancelled only drop the
        contact. Returns False when the tracker tolerated a stale id.
        """
        cid, x, y = event.contact_id, event.x, event.y
        if event.phase is ContactPhase.BEGAN:
            self.tracker.add_contact(cid, x, y)
            self.engine.set_position(x, y)
            return True
        if event.phase is ContactPhase.MOVED:
            if not self.tracker.move_contact(cid, x, y):
                return False
            self.engine.set_position(x, y)
            return True
        # ENDED / CANCELLED
        return self.tracker.remove_contact(cid)

    def handle_fling(self, velocity_x: float, velocity_y: float) -> None:
        self.engine.apply_fling(velocity_x, velocity_y, self.config.fling_scale)
        self.status_msg = f"Fling! {velocity_x:.1f}, {velocity_y:.1f}"

    def request_pulse(self) -> None:
        state = self.engine.toggle_pulse()
        self._pulsing = state is PulseState.PULSING
        self.pending_events.append({"type": "pulse", "state": state.name})
        self.status_msg = f"pulse: {state.name.lower()}"

    # ──────────────────────────────────────────────────────────────────────────
    # Main loop
    # ──────────────────────────────────────────────────────────────────────────

    def step(self, dt_frame: float) -> None:
        """Advance the pulse clock and move the ball one tick. Called every frame."""
        dt_frame = min(max(dt_frame, 0.0), self.MAX_FRAME_DT)
        self.engine.advance(dt_frame * 1000.0)
        if self._pulsing and not self.engine.ball.pulse_active:
            self._pulsing = False
            self.pending_events.append({"type": "pulse", "state": "RESTING"})

        ball = self.engine.ball
        ball.position = ball.position + ball.velocity
        ball.velocity = ball.velocity * self.config.damping
        self._bounce()
        self.tick_count += 1

    def _bounce(self) -> None:
        """Reflect velocity off any wall the ball crosses, radius included."""
        if self.width is None or self.height is None:
            return
        ball = self.engine.ball
        r = ball.radius
        for axis, limit in ((0, self.width), (1, self.height)):
            if ball.position[axis] + r > limit:
                ball.position[axis] = limit - r
                ball.velocity[axis] *= -1
                self.pending_events.append({"type": "wall_hit", "axis": axis})
            elif ball.position[axis] - r < 0:
                ball.position[axis] = r
                ball.velocity[axis] *= -1
                self.pending_events.append({"type": "wall_hit", "axis": axis})

    # ──────────────────────────────────────────────────────────────────────────
    # Surface lifecycle
    # ──────────────────────────────────────────────────────────────────────────

    def resize(self, width: float, height: float) -> None:
        """New surface size: re-center a fresh ball."""
        if not (0 < width < float("inf") and 0 < height < float("inf")):
            print(f"[CMD] resize rejected: {width}x{height}")
            self.status_msg = f"resize: size must be positive, got {width}x{height}"
            return
        self.width, self.height = float(width), float(height)
        self.engine.reset(self.width / 2, self.height / 2)
        self._pulsing = False
        self.pending_events.append({"type": "resize",
                                    "width": self.width, "height": self.height})

    def reset(self) -> None:
        """Drop all contacts and re-initialize the ball."""
        self.tracker.clear()
        if self.width is not None and self.height is not None:
            self.engine.reset(self.width / 2, self.height / 2)
        else:
            self.engine.reset()
        self._pulsing = False
        self.tick_count = 0
        self.pending_events.append({"type": "reset"})
        self.status_msg = "reset"

    def snapshot(self):
        return self.engine.snapshot()

    def reconfigure(self, config: SurfaceConfig) -> None:
        self.config = config
        self.engine.reconfigure(config)
        self._pulsing = False

    # ──────────────────────────────────────────────────────────────────────────
    # JSON command panel
    # ──────────────────────────────────────────────────────────────────────────

    def get_state_json(self) -> str:
        """Return current ball + contact state as a compact set-command JSON."""
        snap = self.engine.snapshot()
        return json.dumps({
            "cmd": "set",
            "ball": {"pos": [round(snap.cx, 3), round(snap.cy, 3)],
                     "vel": [round(snap.dx, 4), round(snap.dy, 4)]},
            "contacts": [[c.id, c.x, c.y] for c in self.tracker.active_contacts()],
        }, separators=(',', ':'))

    def execute_command(self, text: str) -> None:
        """Parse a JSON command string and dispatch it."""
        if not isinstance(text, str) or not text:
            print("[CMD] execute_command: empty text")
            return
        try:
            data = json.loads(text.replace('\r', ''))
        except json.JSONDecodeError as exc:
            print(f"[CMD] JSON parse error: {exc}")
            self.status_msg = f"JSON error: {exc}"
            return
        if not isinstance(data, dict):
            self.status_msg = "Command must be a JSON object."
            return
        self.apply_command(data)

    def apply_command(self, data: dict) -> None:
        cmd = str(data.get("cmd", "")).lower().strip()
        if cmd == "touch":
            try:
                event = TouchEvent.from_dict(data)
            except (TypeError, ValueError) as exc:
                self._bad_command("touch", exc)
                return
            self.handle_touch(event)
        elif cmd == "fling":
            try:
                vx, vy = float(data.get("vx", 0.0)), float(data.get("vy", 0.0))
            except (TypeError, ValueError) as exc:
                self._bad_command("fling", exc)
                return
            self.handle_fling(vx, vy)
        elif cmd == "pulse":
            self.request_pulse()
        elif cmd == "reset":
            self.reset()
        elif cmd == "resize":
            try:
                width, height = float(data.get("width", 0.0)), float(data.get("height", 0.0))
            except (TypeError, ValueError) as exc:
                self._bad_command("resize", exc)
                return
            self.resize(width, height)
        elif cmd == "set":
            self._cmd_set(data)
        else:
            self.status_msg = f"Unknown cmd '{cmd}'. Use touch/fling/pulse/reset/resize/set."

    def _bad_command(self, cmd: str, exc: Exception) -> None:
        print(f"[CMD] bad {cmd}: {exc}")
        self.status_msg = f"{cmd}: {exc}"

    def _cmd_set(self, data: dict) -> None:
        """set: place the ball OR update surface params."""
        params = data.get("params")
        if params is not None:
            self._cmd_params(params)
            return

        bd = data.get("ball")
        if not bd:
            self.status_msg = "set: 'ball' or 'params' field required."
            return
        try:
            pos = bd.get("pos")
            if pos is not None:
                pos = (float(pos[0]), float(pos[1]))
            vel = bd.get("vel")
            if vel is not None:
                vel = np.array([float(vel[0]), float(vel[1])])
        except (TypeError, ValueError, IndexError, KeyError, AttributeError) as exc:
            self._bad_command("set", exc)
            return
        if pos is not None:
            self.engine.set_position(*pos)
        if vel is not None:
            self.engine.ball.velocity = vel
        snap = self.engine.snapshot()
        print(f"[CMD] set ball -> ({snap.cx:.1f},{snap.cy:.1f})  vel=({snap.dx:.2f},{snap.dy:.2f})")
        self.status_msg = "set: ball updated."

    def _cmd_params(self, params: dict) -> None:
        """set params: rebuild the SurfaceConfig with the given fields."""
        if not isinstance(params, dict):
            self.status_msg = "set: 'params' must be an object."
            return
        updates, skipped = {}, []
        for k, v in params.items():
            if k not in self.PARAM_NAMES:
                skipped.append(k)
                continue
            try:
                updates[k] = float(v)
            except (TypeError, ValueError) as e:
                print(f"[CMD] param {k} rejected: {e}")
                skipped.append(k)
        try:
            config = self.config.with_params(**updates)
        except InvalidConfiguration as exc:
            print(f"[CMD] params rejected: {exc}")
            self.status_msg = f"params: {exc}"
            return
        self.reconfigure(config)
        self.pending_events.append({"type": "params", "params": sorted(updates)})
        msg = f"params: set {sorted(updates)}"
        if skipped:
            msg += f"  (skipped: {skipped})"
        print(f"[CMD] {msg}")
        self.status_msg = msg

    # ──────────────────────────────────────────────────────────────────────────
    # Script system
    # ──────────────────────────────────────────────────────────────────────────

    def collect_script_files(self) -> list:
        """Return sorted list of .py files in the scripts/ dir."""
        scripts_dir = Path(self.SCRIPT_DIR)
        if not scripts_dir.is_dir():
            return []
        return sorted(p for p in scripts_dir.glob("*.py") if p.name != "__init__.py")

    def execute_script(self, script: dict) -> None:
        """Replay a gesture script dict (setup + events) through the controller."""
        self._last_script = script
        self.tracker.clear()

        setup = script.get("setup", {})
        size = setup.get("size")
        if size is not None:
            self.resize(float(size[0]), float(size[1]))
        else:
            self.reset()
        pos = setup.get("pos")
        if pos is not None:
            self.engine.set_position(float(pos[0]), float(pos[1]))

        events = script.get("events", [])
        for ev in events:
            cmd = ev.get("cmd", "touch")     # bare events are touches
            if cmd != "wait":
                self.apply_command({**ev, "cmd": cmd})
            for _ in range(int(ev.get("ticks", 0))):
                self.step(float(ev.get("dt", 1 / 60)))
        self.status_msg = f"Script: {len(events)} event(s) replayed."

    def load_script_file(self, path: str) -> None:
        """Load and execute a gesture script from a .py file."""
        import importlib.util
        abs_path = os.path.abspath(path)
        if not os.path.exists(abs_path):
            self.status_msg = f"Script not found: {abs_path}"
            return
        spec = importlib.util.spec_from_file_location("_user_gesture_script", abs_path)
        mod  = importlib.util.module_from_spec(spec)
        try:
            spec.loader.exec_module(mod)
        except Exception as exc:
            self.status_msg = f"Script error: {exc}"
            return
        script = getattr(mod, "SCRIPT", None)
        if script is None:
            self.status_msg = f"No SCRIPT variable in {os.path.basename(abs_path)}"
            return
        self._last_script_path = abs_path
        self.execute_script(script)

    def reload_script(self) -> None:
        """Re-execute the last loaded script."""
        if self._last_script_path:
            self.load_script_file(self._last_script_path)
        elif self._last_script:
            self.execute_script(self._last_script)
        else:
            self.status_msg = "No script loaded yet.  Call load_script_file(path)."
