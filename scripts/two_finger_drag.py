"""Two-finger drag — 두 손가락이 번갈아 움직일 때 마지막 이벤트가 공을 가져간다"""

SCRIPT = {
    "setup": {
        "size": (1080.0, 1920.0),
    },
    "events": [
        {"phase": "began", "id": 0, "x": 200.0, "y": 300.0, "ticks": 1},
        {"phase": "began", "id": 1, "x": 800.0, "y": 900.0, "ticks": 1},
        {"phase": "moved", "id": 0, "x": 260.0, "y": 340.0, "ticks": 1},
        {"phase": "moved", "id": 1, "x": 760.0, "y": 880.0, "ticks": 1},
        {"phase": "ended", "id": 0},
        {"phase": "moved", "id": 1, "x": 700.0, "y": 850.0, "ticks": 1},
    ],
}
