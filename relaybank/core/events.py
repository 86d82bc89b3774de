"""
Controller Events
==================
Every user or system intent the controller understands. Any
number of producers (console commands, the curses panel, the
headless runner) post these onto the controller's queue; the
controller is the only consumer.
"""

from dataclasses import dataclass
from typing import Optional


class Event:
    """Base class for controller events."""


# ── Relays ───────────────────────────────────────────────────

@dataclass(frozen=True)
class ToggleRelay(Event):
    """Set relay `index` to `desired`, or flip it when desired is None."""
    index: int
    desired: Optional[bool] = None


@dataclass(frozen=True)
class AllOn(Event):
    pass


@dataclass(frozen=True)
class AllOff(Event):
    pass


# ── Device ───────────────────────────────────────────────────

@dataclass(frozen=True)
class SetAll(Event):
    pass


@dataclass(frozen=True)
class GetAll(Event):
    pass


@dataclass(frozen=True)
class ToggleRealtime(Event):
    pass


@dataclass(frozen=True)
class RefreshPorts(Event):
    pass


# ── Connection fields ────────────────────────────────────────

@dataclass(frozen=True)
class EditInterface(Event):
    name: str


@dataclass(frozen=True)
class EditSlaveId(Event):
    text: str


@dataclass(frozen=True)
class EditProjectName(Event):
    name: str


# ── Presets ──────────────────────────────────────────────────

@dataclass(frozen=True)
class AddPreset(Event):
    name: str


@dataclass(frozen=True)
class RemovePreset(Event):
    index: int


@dataclass(frozen=True)
class SelectPreset(Event):
    index: Optional[int]


@dataclass(frozen=True)
class ApplyPreset(Event):
    pass


@dataclass(frozen=True)
class LoadPresetFile(Event):
    path: str


@dataclass(frozen=True)
class SavePresetFile(Event):
    path: str


# ── Project ──────────────────────────────────────────────────

@dataclass(frozen=True)
class SaveProject(Event):
    path: str


@dataclass(frozen=True)
class OpenProject(Event):
    path: str


@dataclass(frozen=True)
class Close(Event):
    pass
