"""
Touch Ball Web Server (FastAPI + WebSocket)

Runs the surface loop and exchanges JSON with clients: normalized touch,
fling and pulse commands come in, ball/contact frames go out.
"""

import asyncio
import json
import time
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from controller import SurfaceController
from gesture_presets import SURFACE_WIDTH, SURFACE_HEIGHT

# ── Controller ──────────────────────────────────────────────────────────────

ctrl = SurfaceController(width=SURFACE_WIDTH, height=SURFACE_HEIGHT)


# ── Lifespan (startup/shutdown) ─────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(surface_loop())
    yield
    task.cancel()


app = FastAPI(lifespan=lifespan)

clients: list[WebSocket] = []

# ── Async surface loop ──────────────────────────────────────────────────────

TARGET_FPS = 60
FRAME_DT = 1.0 / TARGET_FPS


async def surface_loop():
    """Main loop running at ~60 fps."""
    last_time = time.perf_counter()

    while True:
        now = time.perf_counter()
        dt = now - last_time
        last_time = now

        ctrl.step(dt)

        if clients:
            frame_msg = _build_frame_message()
            dead: list[WebSocket] = []
            for ws in clients:
                try:
                    await ws.send_text(frame_msg)
                except Exception:
                    dead.append(ws)
            for ws in dead:
                if ws in clients:
                    clients.remove(ws)

        # Sleep to maintain target FPS
        elapsed = time.perf_counter() - now
        sleep_time = FRAME_DT - elapsed
        if sleep_time > 0:
            await asyncio.sleep(sleep_time)
        else:
            await asyncio.sleep(0)


def _build_frame() -> dict:
    """Current state as a frame dict; drains the controller/tracker queues."""
    snap = ctrl.snapshot()
    contacts = [{"id": c.id, "pos": [round(c.x, 3), round(c.y, 3)]}
                for c in ctrl.tracker.active_contacts()]

    events = list(ctrl.pending_events) + list(ctrl.tracker.diagnostics)
    ctrl.pending_events.clear()
    ctrl.tracker.diagnostics.clear()

    return {
        "type": "frame",
        "ball": snap.to_dict(),
        "contacts": contacts,
        "events": events,
        "tick": ctrl.tick_count,
        "status": ctrl.status_msg,
    }


def _build_frame_message() -> str:
    return json.dumps(_build_frame(), separators=(',', ':'))


def _init_message() -> str:
    return json.dumps({
        "type": "init",
        "width": ctrl.width,
        "height": ctrl.height,
        "config": asdict(ctrl.config),
        "frame_dt": FRAME_DT,
    })


# ── HTTP routes ─────────────────────────────────────────────────────────────

@app.get("/state")
async def state():
    return _build_frame()


@app.get("/config")
async def config():
    return asdict(ctrl.config)


# ── WebSocket endpoint ──────────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    await ws.accept()
    clients.append(ws)
    print(f"[WS] client connected  clients={len(clients)}")
    await ws.send_text(_init_message())

    try:
        while True:
            data = await ws.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue

            cmd = msg.get("cmd", "")
            if cmd == "execute":
                ctrl.execute_command(msg.get("text", ""))
            elif cmd == "get_state":
                await ws.send_text(json.dumps({
                    "type": "state_json",
                    "data": ctrl.get_state_json(),
                }))
            elif cmd == "get_frame":
                await ws.send_text(_build_frame_message())
            elif cmd == "script":
                # only scripts shipped in scripts/, picked by name
                name = str(msg.get("name", ""))
                match = next((p for p in ctrl.collect_script_files() if p.stem == name), None)
                if match is None:
                    ctrl.status_msg = f"Unknown script '{name}'."
                else:
                    ctrl.load_script_file(str(match))
            else:
                ctrl.apply_command(msg)
    except WebSocketDisconnect:
        pass
    finally:
        if ws in clients:
            clients.remove(ws)
        print(f"[WS] client disconnected  clients={len(clients)}")


# ── Run with uvicorn ────────────────────────────────────────────────────────

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("server:app", host="0.0.0.0", port=8000, reload=False)
