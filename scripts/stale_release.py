"""Stale release — 유실된 up 이벤트와 중복 down 이벤트를 견디는지 확인"""

SCRIPT = {
    "setup": {
        "size": (1080.0, 1920.0),
        "pos": (540.0, 960.0),
    },
    "events": [
        {"phase": "began", "id": 3, "x": 100.0, "y": 100.0},
        {"phase": "began", "id": 3, "x": 120.0, "y": 140.0},
        {"phase": "moved", "id": 9, "x": 900.0, "y": 900.0},
        {"phase": "cancelled", "id": 3},
        {"phase": "ended", "id": 3},
        {"cmd": "pulse", "ticks": 15},
    ],
}
