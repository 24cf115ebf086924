"""Flick — 손가락으로 공을 끌어다 놓고 위로 튕겨 보내기"""

SCRIPT = {
    "setup": {
        "size": (1080.0, 1920.0),
    },
    "events": [
        {"phase": "began", "id": 0, "x": 540.0, "y": 1500.0},
        {"phase": "moved", "id": 0, "x": 540.0, "y": 1400.0, "ticks": 2},
        {"phase": "moved", "id": 0, "x": 545.0, "y": 1250.0, "ticks": 2},
        {"phase": "ended", "id": 0, "x": 545.0, "y": 1250.0},
        {"cmd": "fling", "vx": -150.0, "vy": 4000.0, "ticks": 30},
    ],
}
