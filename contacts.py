"""
Contact tracking for a multi-touch surface.

Keeps the set of live touch contacts (id → last position). Platform event
streams are allowed to be imperfect: a stale id on move/remove or a repeated
"began" is reported as a diagnostic, never raised.
"""

import enum
from dataclasses import dataclass


class ContactPhase(enum.Enum):
    BEGAN = "began"
    MOVED = "moved"
    ENDED = "ended"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Contact:
    id: int
    x: float
    y: float


@dataclass(frozen=True)
class TouchEvent:
    """Normalized touch event handed in by the platform layer."""
    phase: ContactPhase
    contact_id: int
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def from_dict(cls, data: dict) -> "TouchEvent":
        """Build from a JSON command dict. Raises ValueError on a bad phase or id."""
        phase = ContactPhase(str(data.get("phase", "")).lower().strip())
        raw_id = data.get("id", 0)
        if isinstance(raw_id, bool) or (isinstance(raw_id, float) and not raw_id.is_integer()):
            raise ValueError(f"contact id must be an integer, got {raw_id!r}")
        return cls(phase=phase,
                   contact_id=int(raw_id),
                   x=float(data.get("x", 0.0)),
                   y=float(data.get("y", 0.0)))


# Diagnostic types
UNKNOWN_CONTACT = "unknown_contact"
DUPLICATE_BEGIN = "duplicate_begin"


class ContactTracker:
    """Owns the ContactSet for one surface."""

    def __init__(self):
        self._contacts: dict[int, Contact] = {}
        self.unknown_contact_count = 0
        self.duplicate_begin_count = 0
        self.diagnostics: list[dict] = []   # drained by the host each frame

    def add_contact(self, contact_id: int, x: float, y: float) -> None:
        if contact_id in self._contacts:
            # "began" for a live id means an "ended" was dropped upstream
            self.duplicate_begin_count += 1
            self._report(DUPLICATE_BEGIN, "add", contact_id)
            del self._contacts[contact_id]
        self._contacts[contact_id] = Contact(contact_id, float(x), float(y))

    def move_contact(self, contact_id: int, x: float, y: float) -> bool:
        if contact_id not in self._contacts:
            self.unknown_contact_count += 1
            self._report(UNKNOWN_CONTACT, "move", contact_id)
            return False
        self._contacts[contact_id] = Contact(contact_id, float(x), float(y))
        return True

    def remove_contact(self, contact_id: int) -> bool:
        if self._contacts.pop(contact_id, None) is None:
            self.unknown_contact_count += 1
            self._report(UNKNOWN_CONTACT, "remove", contact_id)
            return False
        return True

    def active_contacts(self) -> tuple:
        """Snapshot of live contacts, oldest first."""
        return tuple(self._contacts.values())

    def get(self, contact_id: int):
        return self._contacts.get(contact_id)

    def clear(self) -> None:
        self._contacts.clear()

    def __contains__(self, contact_id) -> bool:
        return contact_id in self._contacts

    def __len__(self) -> int:
        return len(self._contacts)

    def _report(self, kind: str, op: str, contact_id: int) -> None:
        print(f"[TOUCH] {kind}: {op} id={contact_id}  active={list(self._contacts)}")
        self.diagnostics.append({"type": kind, "op": op, "id": contact_id})
