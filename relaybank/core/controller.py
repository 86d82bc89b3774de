"""
Relay Controller — Event Loop
==============================
Owns the project and the in-memory relay vector and turns events
into device operations. Every producer posts onto one FIFO queue;
a single consumer takes one event at a time and handles it to
completion, device call included, before taking the next:

    post(event) ──► queue ──► dispatch(event) ──► render commands
                                  │
                                  └──► SET / GET / WRITE ──► board

Because the consumer blocks on the device call, at most one
operation ever holds the serial link. The price is that events
pile up in the queue while the board is slow to answer.

State:

    IDLE ──► AWAITING_DEVICE_OP ──► IDLE
"""

import time
import queue
import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Optional

from relaybank.config.settings import LinkSettings
from relaybank.core import events as ev
from relaybank.core.operations import get_relays, set_relays, write_relay
from relaybank.core.project import Project, read_preset_file, write_preset_file
from relaybank.core.relay_state import RelayState
from relaybank.core.render import (
    ConnectionFields, Control, ControlState, ControlStatus, IndicatorState,
    Panel, PortList, PresetList, RealtimeMode, RelayIndicator, RenderCommand,
)
from relaybank.core.validation import parse_slave_id, require_interface
from relaybank.drivers.session import PortLister, SessionFactory
from relaybank.exceptions import PresetError, RelayBankError

logger = logging.getLogger(__name__)


class ControllerState(Enum):
    IDLE = "IDLE"
    AWAITING_DEVICE_OP = "AWAITING_DEVICE_OP"


# Control that shows the error when an event's handler fails
_EVENT_CONTROLS = {
    ev.SetAll: Control.SET,
    ev.GetAll: Control.GET,
    ev.SaveProject: Control.SAVE,
    ev.OpenProject: Control.OPEN,
    ev.ApplyPreset: Control.APPLY,
    ev.SelectPreset: Control.APPLY,
    ev.AddPreset: Control.ADD,
    ev.RemovePreset: Control.REMOVE,
    ev.LoadPresetFile: Control.LOAD_PRESET,
    ev.SavePresetFile: Control.SAVE_PRESET,
}


class RelayController:
    """
    Single-consumer controller for the relay bank.

    Runs either blocking in the caller's thread or in a daemon
    thread. `dispatch()` handles exactly one event synchronously,
    which is what tests and the headless runner use.
    """

    def __init__(
        self,
        open_session: SessionFactory,
        presenter: Optional[Callable[[RenderCommand], None]] = None,
        list_ports: Optional[PortLister] = None,
        project: Optional[Project] = None,
        settings: Optional[LinkSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or LinkSettings()
        self.project = project or Project(
            relay_state=RelayState.all_off(self.settings.relay_count)
        )
        self.slave_text = str(self.project.slave_id)
        self.presenter = presenter or Panel(self.settings.relay_count)
        self.ports: list = []

        self._open_session = open_session
        self._list_ports = list_ports or (lambda: [])
        self._sleep = sleep

        self._events: "queue.Queue[ev.Event]" = queue.Queue()
        self._state = ControllerState.IDLE
        self._running = False
        self._event_count = 0
        self._thread: Optional[threading.Thread] = None

        self._handlers = {
            ev.ToggleRelay: self._handle_toggle,
            ev.AllOn: self._handle_all_on,
            ev.AllOff: self._handle_all_off,
            ev.SetAll: self._handle_set_all,
            ev.GetAll: self._handle_get_all,
            ev.ToggleRealtime: self._handle_toggle_realtime,
            ev.RefreshPorts: self._handle_refresh_ports,
            ev.EditInterface: self._handle_edit_interface,
            ev.EditSlaveId: self._handle_edit_slave,
            ev.EditProjectName: self._handle_edit_name,
            ev.AddPreset: self._handle_add_preset,
            ev.RemovePreset: self._handle_remove_preset,
            ev.SelectPreset: self._handle_select_preset,
            ev.ApplyPreset: self._handle_apply_preset,
            ev.LoadPresetFile: self._handle_load_preset_file,
            ev.SavePresetFile: self._handle_save_preset_file,
            ev.SaveProject: self._handle_save_project,
            ev.OpenProject: self._handle_open_project,
            ev.Close: self._handle_close,
        }

    @property
    def state(self) -> ControllerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def event_count(self) -> int:
        return self._event_count

    @property
    def relay_state(self) -> RelayState:
        return self.project.relay_state

    # ── Loop ─────────────────────────────────────────────────

    def post(self, event: ev.Event):
        """Queue an event. Safe to call from any thread."""
        self._events.put(event)

    def start(self, blocking: bool = True):
        """Start consuming events."""
        self._running = True
        logger.info("Relay controller starting")
        self.render_all()

        if blocking:
            self._event_loop()
        else:
            self._thread = threading.Thread(
                target=self._event_loop, daemon=True
            )
            self._thread.start()

    def stop(self, timeout: float = 5.0):
        """Ask the loop to finish and wait for it."""
        if self._running:
            self.post(ev.Close())
        if self._thread:
            self._thread.join(timeout=timeout)
        logger.info("Relay controller stopped. Events handled: %d", self._event_count)

    def wait_idle(self):
        """Block until every queued event has been handled."""
        self._events.join()

    def _event_loop(self):
        while self._running:
            event = self._events.get()
            try:
                self.dispatch(event)
            except Exception:
                logger.exception("Unhandled error in %s", type(event).__name__)
            finally:
                self._events.task_done()

    def dispatch(self, event: ev.Event):
        """Handle one event to completion."""
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning("Ignoring unknown event %r", event)
            return

        self._event_count += 1
        logger.debug("Event %r", event)
        try:
            handler(event)
        except RelayBankError as exc:
            control = _EVENT_CONTROLS.get(type(event))
            if control is not None:
                self._fail(control, exc)
            else:
                logger.warning("%s failed: %s", type(event).__name__, exc.message)
        finally:
            self._state = ControllerState.IDLE

    # ── Relays ───────────────────────────────────────────────

    def _handle_toggle(self, event: ev.ToggleRelay):
        current = self.project.relay_state
        if event.desired is None:
            updated = current.toggled(event.index)
        else:
            updated = current.with_relay(event.index, event.desired)
        self.project.relay_state = updated
        self._render_relay(event.index)

        if self.project.realtime:
            self._write_single(event.index, updated[event.index])

    def _handle_all_on(self, event: ev.AllOn):
        self._fill(True)

    def _handle_all_off(self, event: ev.AllOff):
        self._fill(False)

    def _fill(self, on: bool):
        size = len(self.project.relay_state)
        self.project.relay_state = (
            RelayState.all_on(size) if on else RelayState.all_off(size)
        )
        self._render_relays()
        if self.project.realtime:
            self._apply_to_device()

    # ── Device ───────────────────────────────────────────────

    def _handle_set_all(self, event: ev.SetAll):
        self._apply_to_device()

    def _handle_get_all(self, event: ev.GetAll):
        try:
            port, slave_id = self._connection()
            with self._device_op():
                state = get_relays(
                    self._open_session, port, slave_id, self.settings
                )
        except RelayBankError as exc:
            self._fail(Control.GET, exc)
            return
        self.project.relay_state = state
        self._render_relays()
        self._ok(Control.GET)

    def _handle_toggle_realtime(self, event: ev.ToggleRealtime):
        self.project.realtime = not self.project.realtime
        logger.info("Realtime mode %s", "ON" if self.project.realtime else "OFF")
        self._render(RealtimeMode(self.project.realtime))
        if self.project.realtime:
            self._apply_to_device()

    def _apply_to_device(self) -> bool:
        """Run a full SET of the in-memory state; the SET control shows the result."""
        try:
            port, slave_id = self._connection()
            with self._device_op():
                set_relays(
                    self._open_session, port, slave_id,
                    self.project.relay_state, self.settings, self._sleep,
                )
        except RelayBankError as exc:
            self._fail(Control.SET, exc)
            return False
        self._ok(Control.SET)
        return True

    def _write_single(self, index: int, on: bool):
        """Realtime write of one relay; a failure marks only that relay."""
        try:
            port, slave_id = self._connection()
            with self._device_op():
                write_relay(self._open_session, port, slave_id, index, on)
        except RelayBankError as exc:
            logger.warning("Realtime write of relay %d failed: %s", index + 1, exc.message)
            self._render(RelayIndicator(index, IndicatorState.ERROR))

    def _connection(self):
        return require_interface(self.project.interface), parse_slave_id(self.slave_text)

    @contextmanager
    def _device_op(self):
        self._state = ControllerState.AWAITING_DEVICE_OP
        try:
            yield
        finally:
            self._state = ControllerState.IDLE

    def _handle_refresh_ports(self, event: ev.RefreshPorts):
        self.ports = list(self._list_ports())
        if self.project.interface not in self.ports:
            previous = self.project.interface
            self.project.interface = self.ports[0] if self.ports else ""
            if previous:
                logger.info(
                    "Port %s no longer present, selecting %r",
                    previous, self.project.interface,
                )
        self._render(PortList(tuple(self.ports), self.project.interface))

    # ── Connection fields ────────────────────────────────────

    def _handle_edit_interface(self, event: ev.EditInterface):
        self.project.interface = event.name.strip()
        self._render_fields()

    def _handle_edit_slave(self, event: ev.EditSlaveId):
        self.slave_text = event.text
        try:
            self.project.slave_id = parse_slave_id(event.text)
        finally:
            self._render_fields()

    def _handle_edit_name(self, event: ev.EditProjectName):
        self.project.name = event.name
        self._render_fields()

    # ── Presets ──────────────────────────────────────────────

    def _handle_add_preset(self, event: ev.AddPreset):
        if not event.name or not event.name.strip():
            raise PresetError("Preset name is empty")
        self.project.add_preset(event.name, self.project.relay_state)
        self._render_presets()
        self._ok(Control.ADD)

    def _handle_remove_preset(self, event: ev.RemovePreset):
        self.project.remove_preset(event.index)
        self._render_presets()
        self._ok(Control.REMOVE)

    def _handle_select_preset(self, event: ev.SelectPreset):
        self.project.select_preset(event.index)
        self._render_presets()
        self._ok(Control.APPLY)

    def _handle_apply_preset(self, event: ev.ApplyPreset):
        preset = self.project.selected_preset()
        self._load_state(preset.state)
        self._ok(Control.APPLY)
        logger.info("Preset %r applied", preset.name)
        if self.project.realtime:
            self._apply_to_device()

    def _handle_load_preset_file(self, event: ev.LoadPresetFile):
        state = read_preset_file(event.path, len(self.project.relay_state))
        self._store_file_preset(str(event.path), state)
        self._load_state(state)
        self._ok(Control.LOAD_PRESET)
        if self.project.realtime:
            self._apply_to_device()

    def _handle_save_preset_file(self, event: ev.SavePresetFile):
        state = self.project.relay_state
        write_preset_file(event.path, state)
        self._store_file_preset(str(event.path), state)
        self._ok(Control.SAVE_PRESET)

    def _store_file_preset(self, name: str, state: RelayState):
        # A file-backed preset always carries what is on disk now
        index = self.project.add_preset(name, state)
        if self.project.presets[index].state != state:
            self.project.replace_preset(index, state)
        self._render_presets()

    def _load_state(self, state: RelayState):
        self.project.relay_state = state
        self._render_relays()

    # ── Project ──────────────────────────────────────────────

    def _handle_save_project(self, event: ev.SaveProject):
        self.project.slave_id = parse_slave_id(self.slave_text)
        self.project.save(event.path)
        self._ok(Control.SAVE)

    def _handle_open_project(self, event: ev.OpenProject):
        self.project = Project.load(event.path, len(self.project.relay_state))
        self.slave_text = str(self.project.slave_id)
        self.render_all()
        self._ok(Control.OPEN)

    def _handle_close(self, event: ev.Close):
        logger.info("Close requested")
        self._running = False

    # ── Rendering ────────────────────────────────────────────

    def render_all(self):
        """Push the complete current state to the presenter."""
        self._render_relays()
        self._render(PortList(tuple(self.ports), self.project.interface))
        self._render_presets()
        self._render(RealtimeMode(self.project.realtime))
        self._render_fields()

    def _render(self, command: RenderCommand):
        self.presenter(command)

    def _render_relay(self, index: int):
        on = self.project.relay_state[index]
        self._render(RelayIndicator(
            index, IndicatorState.ON if on else IndicatorState.OFF
        ))

    def _render_relays(self):
        for i in range(len(self.project.relay_state)):
            self._render_relay(i)

    def _render_presets(self):
        self._render(PresetList(
            tuple(self.project.preset_names()), self.project.selected
        ))

    def _render_fields(self):
        self._render(ConnectionFields(
            self.project.interface, self.slave_text, self.project.name
        ))

    def _ok(self, control: Control):
        self._render(ControlStatus(control, ControlState.NORMAL))

    def _fail(self, control: Control, exc: RelayBankError):
        logger.warning("%s error: %s", control.value, exc.message)
        self._render(ControlStatus(control, ControlState.ERROR, exc.message))

    # ── Status ───────────────────────────────────────────────

    def get_status(self) -> dict:
        """Return a status snapshot for the console."""
        project = self.project
        return {
            "state": self._state.value,
            "project": project.name,
            "relays": project.relay_state.to_string(),
            "interface": project.interface,
            "slave_id": self.slave_text,
            "realtime": project.realtime,
            "presets": project.preset_names(),
            "selected_preset": project.selected,
            "ports": list(self.ports),
            "events_handled": self._event_count,
        }
