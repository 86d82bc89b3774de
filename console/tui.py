"""
Relay Bank TUI Panel
=====================
Terminal relay panel using curses. Displays:

  - All relay indicators (on / off / error), two rows of eight
  - SET / GET / APPLY control status
  - Serial port, slave id and realtime mode
  - Preset list with the current selection

Keys post events to the controller and never wait for them; the
screen is redrawn from the panel mirror five times a second.
"""

import curses
import logging

from relaybank.core import events as ev
from relaybank.core.controller import ControllerState, RelayController
from relaybank.core.render import Control, ControlState, IndicatorState

logger = logging.getLogger(__name__)

_SHOWN_CONTROLS = (
    Control.SET, Control.GET, Control.APPLY, Control.OPEN, Control.SAVE,
)

_GLYPHS = {
    IndicatorState.ON: "ON ",
    IndicatorState.OFF: "-- ",
    IndicatorState.ERROR: "ERR",
}


def run_tui(controller: RelayController):
    """Launch the curses relay panel."""
    try:
        curses.wrapper(_tui_main, controller)
    except KeyboardInterrupt:
        pass


def _tui_main(stdscr, controller: RelayController):
    """Main TUI loop inside curses wrapper."""
    curses.curs_set(0)
    stdscr.nodelay(True)
    stdscr.timeout(200)
    stdscr.keypad(True)

    # Color pairs
    if curses.has_colors():
        curses.start_color()
        curses.use_default_colors()
        curses.init_pair(1, curses.COLOR_GREEN, -1)   # Relay on / OK
        curses.init_pair(2, curses.COLOR_YELLOW, -1)  # Busy
        curses.init_pair(3, curses.COLOR_RED, -1)     # Error
        curses.init_pair(4, curses.COLOR_CYAN, -1)    # Info
        curses.init_pair(5, curses.COLOR_WHITE, -1)   # Header

    GREEN = curses.color_pair(1) if curses.has_colors() else curses.A_NORMAL
    YELLOW = curses.color_pair(2) if curses.has_colors() else curses.A_NORMAL
    RED = curses.color_pair(3) if curses.has_colors() else curses.A_NORMAL
    CYAN = curses.color_pair(4) if curses.has_colors() else curses.A_NORMAL
    HEADER = curses.color_pair(5) | curses.A_BOLD if curses.has_colors() else curses.A_BOLD

    panel = controller.presenter
    cursor = 0
    controller.post(ev.RefreshPorts())

    while True:
        snap = panel.snapshot()
        relay_count = len(snap["indicators"])

        key = stdscr.getch()
        if key in (ord('q'), ord('Q')):
            break
        elif key == curses.KEY_LEFT:
            cursor = (cursor - 1) % relay_count
        elif key == curses.KEY_RIGHT:
            cursor = (cursor + 1) % relay_count
        elif key == ord(' '):
            controller.post(ev.ToggleRelay(cursor))
        elif key in (ord('s'), ord('S')):
            controller.post(ev.SetAll())
        elif key in (ord('g'), ord('G')):
            controller.post(ev.GetAll())
        elif key in (ord('o'), ord('O')):
            controller.post(ev.AllOn())
        elif key in (ord('f'), ord('F')):
            controller.post(ev.AllOff())
        elif key in (ord('t'), ord('T')):
            controller.post(ev.ToggleRealtime())
        elif key in (ord('r'), ord('R')):
            controller.post(ev.RefreshPorts())
        elif key in (ord('a'), ord('A')):
            controller.post(ev.ApplyPreset())
        elif key in (ord('n'), ord('N'), ord('p'), ord('P')) and snap["presets"]:
            step = 1 if key in (ord('n'), ord('N')) else -1
            current = snap["selected_preset"]
            start = -1 if current is None else current
            controller.post(ev.SelectPreset((start + step) % len(snap["presets"])))

        stdscr.erase()
        height, width = stdscr.getmaxyx()

        def put(r, c, text, attr=curses.A_NORMAL):
            if r < height - 1 and c < width - 1:
                stdscr.addstr(r, c, text[:width - 1 - c], attr)

        # ── Header ─────────────────────────────────────────
        row = 0
        put(row, 0, "═" * min(width - 1, 60), HEADER)
        row += 1
        put(row, 0, "R4D3B16 Modbus Relay Controller", HEADER)
        row += 1
        put(row, 0, "═" * min(width - 1, 60), HEADER)
        row += 2

        # ── Connection ─────────────────────────────────────
        busy = controller.state == ControllerState.AWAITING_DEVICE_OP
        put(row, 0, "STATE: ", HEADER)
        put(row, 7, " BUSY " if busy else " IDLE ", (YELLOW if busy else CYAN) | curses.A_BOLD)
        row += 1
        put(row, 0, f"  {'Port:':<12s} {snap['interface'] or '(none)'}", CYAN)
        row += 1
        put(row, 0, f"  {'Slave id:':<12s} {snap['slave_text']}", CYAN)
        row += 1
        put(row, 0, f"  {'Realtime:':<12s} {'ON' if snap['realtime'] else 'OFF'}",
            GREEN if snap["realtime"] else CYAN)
        row += 2

        # ── Relays ─────────────────────────────────────────
        put(row, 0, "── Relays ──", HEADER)
        row += 1
        half = (relay_count + 1) // 2
        for bank in (range(half), range(half, relay_count)):
            col = 2
            for i in bank:
                state = snap["indicators"][i]
                color = {
                    IndicatorState.ON: GREEN,
                    IndicatorState.OFF: CYAN,
                    IndicatorState.ERROR: RED,
                }[state]
                text = f"{i + 1:>2d}:{_GLYPHS[state]}"
                attr = color | (curses.A_REVERSE if i == cursor else curses.A_NORMAL)
                put(row, col, text, attr)
                col += 8
            row += 1
        row += 1

        # ── Controls ───────────────────────────────────────
        put(row, 0, "── Controls ──", HEADER)
        row += 1
        col = 2
        for control in _SHOWN_CONTROLS:
            failed = snap["controls"][control] == ControlState.ERROR
            put(row, col, f"[{control.value}]", RED if failed else GREEN)
            col += len(control.value) + 4
        row += 1
        for control in _SHOWN_CONTROLS:
            message = snap["messages"].get(control)
            if message and snap["controls"][control] == ControlState.ERROR:
                put(row, 2, f"{control.value}: {message}", RED)
                row += 1
        row += 1

        # ── Presets ────────────────────────────────────────
        put(row, 0, f"── Presets ({len(snap['presets'])}) ──", HEADER)
        row += 1
        for i, name in enumerate(snap["presets"]):
            if row >= height - 2:
                break
            selected = i == snap["selected_preset"]
            put(row, 0, f"  {'>' if selected else ' '} {name}",
                GREEN | curses.A_BOLD if selected else CYAN)
            row += 1

        # ── Key Bindings ───────────────────────────────────
        if height > 3:
            keys = ("←/→ Move  SPC Toggle  S=Set G=Get O=AllOn F=AllOff "
                    "T=Realtime N/P=Preset A=Apply R=Ports Q=Quit")
            stdscr.addstr(height - 1, 0, keys[:width - 1], HEADER)

        stdscr.refresh()
