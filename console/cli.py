"""
Relay Bank CLI Console
=======================
Command-line presenter for the relay controller. Every command
posts an event, waits for the controller to drain its queue and
then prints what the panel shows. Supports:

  - Relay toggling and all on / all off
  - SET / GET against the board, realtime mode
  - Serial port and slave id fields, port enumeration
  - Named presets (add, select, apply, remove) and preset files
  - Project save / open

Usage:
  python main.py                 # Interactive mode (real serial port)
  python main.py --simulate      # Interactive mode against a simulated board
"""

import cmd
import logging

from relaybank.core import events as ev
from relaybank.core.controller import RelayController
from relaybank.core.render import Control, ControlState, IndicatorState, Panel

logger = logging.getLogger(__name__)

_INDICATOR_GLYPHS = {
    IndicatorState.ON: "ON ",
    IndicatorState.OFF: "-- ",
    IndicatorState.ERROR: "ERR",
}


class RelayConsole(cmd.Cmd):
    """Interactive CLI for the R4D3B16 relay controller."""

    intro = (
        "\n"
        "╔══════════════════════════════════════════════════════╗\n"
        "║  R4D3B16 Modbus Relay Controller — Console           ║\n"
        "║  Type 'help' for commands, 'quit' to exit            ║\n"
        "╚══════════════════════════════════════════════════════╝\n"
    )
    prompt = "RELAY> "

    def __init__(self, controller: RelayController, panel: Panel = None):
        super().__init__()
        self.ctrl = controller
        self.panel = panel if panel is not None else controller.presenter

    # ── Relay Commands ───────────────────────────────────────

    def do_toggle(self, arg):
        """Toggle a relay, or force it: toggle <1-16> [on|off]"""
        parts = arg.split()
        if not parts or len(parts) > 2:
            print("Usage: toggle <relay> [on|off]")
            return
        try:
            index = int(parts[0]) - 1
        except ValueError:
            print("Usage: toggle <relay> [on|off]")
            return
        desired = None
        if len(parts) == 2:
            if parts[1].lower() not in ("on", "off"):
                print("Usage: toggle <relay> [on|off]")
                return
            desired = parts[1].lower() == "on"
        if not 0 <= index < len(self.panel.indicators):
            print(f"Relay must be 1..{len(self.panel.indicators)}")
            return
        self._send(ev.ToggleRelay(index, desired))
        self._print_relays()

    def do_allon(self, arg):
        """Switch every relay on: allon"""
        self._send(ev.AllOn())
        self._print_relays()
        self._report_realtime()

    def do_alloff(self, arg):
        """Switch every relay off: alloff"""
        self._send(ev.AllOff())
        self._print_relays()
        self._report_realtime()

    def do_relays(self, arg):
        """Show relay indicators: relays"""
        self._print_relays()

    # ── Device Commands ──────────────────────────────────────

    def do_set(self, arg):
        """Write the relay state to the board: set"""
        self._send(ev.SetAll(), Control.SET)

    def do_get(self, arg):
        """Read the relay state from the board: get"""
        self._send(ev.GetAll(), Control.GET)
        self._print_relays()

    def do_realtime(self, arg):
        """Toggle realtime mode (every change goes straight to the board): realtime"""
        self._send(ev.ToggleRealtime())
        print(f"Realtime mode {'ON' if self.panel.realtime else 'OFF'}")
        self._report_realtime()

    def do_ports(self, arg):
        """Rescan serial ports: ports"""
        self._send(ev.RefreshPorts())
        snap = self.panel.snapshot()
        if not snap["ports"]:
            print("  No serial ports found.")
        for port in snap["ports"]:
            marker = "*" if port == snap["interface"] else " "
            print(f"  {marker} {port}")

    def do_port(self, arg):
        """Select the serial port: port <name>"""
        if not arg.strip():
            print(f"Port: {self.panel.interface or '(none)'}")
            return
        self._send(ev.EditInterface(arg.strip()))
        print(f"Port: {self.panel.interface}")

    def do_slave(self, arg):
        """Set the Modbus slave id: slave <1-255>"""
        if not arg.strip():
            print(f"Slave id: {self.panel.slave_text}")
            return
        self._send(ev.EditSlaveId(arg.strip()))
        print(f"Slave id: {self.panel.slave_text}")

    def do_name(self, arg):
        """Set the project name: name <text>"""
        self._send(ev.EditProjectName(arg.strip()))

    # ── Preset Commands ──────────────────────────────────────

    def do_presets(self, arg):
        """List presets: presets"""
        snap = self.panel.snapshot()
        if not snap["presets"]:
            print("\n  No presets.\n")
            return
        print("\n── Presets ──────────────────────────────────────")
        for i, name in enumerate(snap["presets"]):
            marker = "*" if i == snap["selected_preset"] else " "
            print(f"  {marker} {i + 1:>2d}  {name}")
        print()

    def do_add(self, arg):
        """Save the current relays as a preset: add <name>"""
        self._send(ev.AddPreset(arg.strip()), Control.ADD)

    def do_select(self, arg):
        """Select a preset: select <number|none>"""
        value = arg.strip().lower()
        if value == "none":
            self._send(ev.SelectPreset(None))
            return
        index = self._preset_index(value)
        if index is not None:
            self._send(ev.SelectPreset(index), Control.APPLY)

    def do_apply(self, arg):
        """Load the selected preset into the relays: apply [number]"""
        if arg.strip():
            index = self._preset_index(arg.strip())
            if index is None:
                return
            self._send(ev.SelectPreset(index))
        self._send(ev.ApplyPreset(), Control.APPLY)
        self._print_relays()
        self._report_realtime()

    def do_remove(self, arg):
        """Remove a preset: remove <number>"""
        index = self._preset_index(arg.strip())
        if index is not None:
            self._send(ev.RemovePreset(index), Control.REMOVE)

    def do_loadpreset(self, arg):
        """Load and apply a preset file: loadpreset <path>"""
        if not arg.strip():
            print("Usage: loadpreset <path>")
            return
        self._send(ev.LoadPresetFile(arg.strip()), Control.LOAD_PRESET)
        self._print_relays()

    def do_savepreset(self, arg):
        """Write the current relays to a preset file: savepreset <path>"""
        if not arg.strip():
            print("Usage: savepreset <path>")
            return
        self._send(ev.SavePresetFile(arg.strip()), Control.SAVE_PRESET)

    # ── Project Commands ─────────────────────────────────────

    def do_save(self, arg):
        """Save the project: save <path>"""
        if not arg.strip():
            print("Usage: save <path>")
            return
        self._send(ev.SaveProject(arg.strip()), Control.SAVE)

    def do_open(self, arg):
        """Open a project: open <path>"""
        if not arg.strip():
            print("Usage: open <path>")
            return
        self._send(ev.OpenProject(arg.strip()), Control.OPEN)
        self._print_relays()

    # ── Status ───────────────────────────────────────────────

    def do_status(self, arg):
        """Show controller status: status"""
        s = self.ctrl.get_status()
        print("\n── Relay Controller Status ──────────────────────")
        print(f"  State:          {s['state']}")
        print(f"  Project:        {s['project'] or '(unnamed)'}")
        print(f"  Port:           {s['interface'] or '(none)'}")
        print(f"  Slave Id:       {s['slave_id']}")
        print(f"  Realtime:       {'ON' if s['realtime'] else 'OFF'}")
        print(f"  Relays:         {s['relays']}")
        print(f"  Presets:        {len(s['presets'])}")
        print(f"  Events:         {s['events_handled']}")
        errors = self.panel.errors()
        if errors:
            print(f"  Errors:         {', '.join(errors)}")
        print()

    # ── Utility ──────────────────────────────────────────────

    def do_quit(self, arg):
        """Exit the console: quit"""
        print("Shutting down...")
        return True

    def do_exit(self, arg):
        """Exit the console: exit"""
        return self.do_quit(arg)

    do_EOF = do_quit

    def emptyline(self):
        pass

    def default(self, line):
        print(f"Unknown command: {line}. Type 'help' for available commands.")

    def _send(self, event: ev.Event, control: Control = None):
        """Post an event, wait for it and report the control it affects."""
        self.ctrl.post(event)
        self.ctrl.wait_idle()
        if control is None:
            return
        if self.panel.controls[control] == ControlState.ERROR:
            print(f"{control.value} failed: {self.panel.messages.get(control, '')}")
        else:
            print(f"{control.value} OK")

    def _report_realtime(self):
        if self.panel.realtime and self.panel.controls[Control.SET] == ControlState.ERROR:
            print(f"SET failed: {self.panel.messages.get(Control.SET, '')}")

    def _preset_index(self, text: str):
        try:
            return int(text) - 1
        except ValueError:
            print("Preset must be given by its number (see 'presets')")
            return None

    def _print_relays(self):
        indicators = self.panel.snapshot()["indicators"]
        half = (len(indicators) + 1) // 2
        for row in (range(half), range(half, len(indicators))):
            print("  " + "  ".join(
                f"{i + 1:>2d}:{_INDICATOR_GLYPHS[indicators[i]]}" for i in row
            ))


def run_cli(controller: RelayController):
    """Launch the interactive CLI console."""
    console = RelayConsole(controller)
    try:
        console.cmdloop()
    except KeyboardInterrupt:
        print("\nInterrupted.")
