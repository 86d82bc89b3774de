"""
Render Commands & Panel Mirror
===============================
What the controller tells the presentation layer. The controller
never touches widgets; it emits small commands and a presenter
draws them:

    RelayIndicator(3, IndicatorState.ON)
    ControlStatus(Control.SET, ControlState.ERROR)
    PresetList(["pumps", "lights"], selected=0)

Panel is a thread-safe mirror of the latest command for every
element. Presenters that redraw on their own schedule (the curses
panel, the console's status view) read it instead of tracking
commands themselves.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from relaybank.core.relay_state import N_RELAYS


class IndicatorState(Enum):
    ON = "ON"
    OFF = "OFF"
    ERROR = "ERROR"


class Control(Enum):
    SET = "SET"
    GET = "GET"
    SAVE = "SAVE"
    OPEN = "OPEN"
    APPLY = "APPLY"
    ADD = "ADD"
    REMOVE = "REMOVE"
    LOAD_PRESET = "LOAD_PRESET"
    SAVE_PRESET = "SAVE_PRESET"


class ControlState(Enum):
    NORMAL = "NORMAL"
    ERROR = "ERROR"


class RenderCommand:
    """Base class for commands sent to the presenter."""


@dataclass(frozen=True)
class RelayIndicator(RenderCommand):
    index: int
    state: IndicatorState


@dataclass(frozen=True)
class ControlStatus(RenderCommand):
    control: Control
    state: ControlState
    message: str = ""


@dataclass(frozen=True)
class PortList(RenderCommand):
    ports: Tuple[str, ...]
    selected: str


@dataclass(frozen=True)
class PresetList(RenderCommand):
    names: Tuple[str, ...]
    selected: Optional[int]


@dataclass(frozen=True)
class RealtimeMode(RenderCommand):
    enabled: bool


@dataclass(frozen=True)
class ConnectionFields(RenderCommand):
    interface: str
    slave_text: str
    project_name: str


class Panel:
    """Latest rendered state of every indicator and control."""

    def __init__(self, relay_count: int = N_RELAYS):
        self._lock = threading.Lock()
        self.indicators: List[IndicatorState] = [IndicatorState.OFF] * relay_count
        self.controls: Dict[Control, ControlState] = {
            c: ControlState.NORMAL for c in Control
        }
        self.messages: Dict[Control, str] = {}
        self.ports: Tuple[str, ...] = ()
        self.interface = ""
        self.slave_text = "1"
        self.project_name = ""
        self.presets: Tuple[str, ...] = ()
        self.selected_preset: Optional[int] = None
        self.realtime = False

    def __call__(self, command: RenderCommand):
        self.render(command)

    def render(self, command: RenderCommand):
        """Apply one render command."""
        with self._lock:
            if isinstance(command, RelayIndicator):
                self.indicators[command.index] = command.state
            elif isinstance(command, ControlStatus):
                self.controls[command.control] = command.state
                self.messages[command.control] = command.message
            elif isinstance(command, PortList):
                self.ports = tuple(command.ports)
                self.interface = command.selected
            elif isinstance(command, PresetList):
                self.presets = tuple(command.names)
                self.selected_preset = command.selected
            elif isinstance(command, RealtimeMode):
                self.realtime = command.enabled
            elif isinstance(command, ConnectionFields):
                self.interface = command.interface
                self.slave_text = command.slave_text
                self.project_name = command.project_name

    def snapshot(self) -> dict:
        """Copy of the current panel state."""
        with self._lock:
            return {
                "indicators": list(self.indicators),
                "controls": dict(self.controls),
                "messages": dict(self.messages),
                "ports": self.ports,
                "interface": self.interface,
                "slave_text": self.slave_text,
                "project_name": self.project_name,
                "presets": self.presets,
                "selected_preset": self.selected_preset,
                "realtime": self.realtime,
            }

    def errors(self) -> List[str]:
        """Names of every control and relay currently showing an error."""
        with self._lock:
            failed = [c.value for c, s in self.controls.items()
                      if s == ControlState.ERROR]
            failed += [f"RELAY {i + 1}" for i, s in enumerate(self.indicators)
                       if s == IndicatorState.ERROR]
            return failed
