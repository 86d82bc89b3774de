"""
R4D3B16 Relay Bank Controller — Entry Point
=============================================
Launch the relay controller with the CLI console or the curses
panel, or apply one relay state and exit.

Usage:
  python main.py                               # CLI console, no project
  python main.py bench.json                    # CLI console, open project
  python main.py bench.json --tui              # curses panel
  python main.py --interface /dev/ttyUSB0 --slave 3 \\
                 --relays 1010000000000000 --headless   # one SET, then exit
  python main.py --simulate                    # simulated board on port SIM0

Headless exit codes: 0 = applied, 1 = device error,
2 = bad relay string / interface / slave id / project or settings file.
"""

import argparse
import functools
import logging
import signal
import sys

from relaybank.config.settings import LinkSettings
from relaybank.core.controller import RelayController
from relaybank.core.operations import set_relays
from relaybank.core.project import Project
from relaybank.core.relay_state import RelayState
from relaybank.core.validation import parse_slave_id, require_interface
from relaybank.exceptions import (
    PersistenceError, RelayBankError, ValidationError,
)

logger = logging.getLogger("relaybank.main")

EXIT_OK = 0
EXIT_DEVICE_ERROR = 1
EXIT_USAGE_ERROR = 2


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="R4D3B16 Modbus RTU relay bank controller"
    )
    parser.add_argument(
        "project", nargs="?",
        help="Project file to open at startup"
    )
    parser.add_argument(
        "--relays",
        help="Relay state override, 16 characters of 0/1 (relay 1 first)"
    )
    parser.add_argument(
        "--interface",
        help="Serial port override (e.g., /dev/ttyUSB0 or COM3)"
    )
    parser.add_argument(
        "--slave",
        help="Modbus slave id override (1-255)"
    )
    parser.add_argument(
        "--headless", action="store_true",
        help="Apply the relay state once and exit (no console)"
    )
    parser.add_argument(
        "--tui", action="store_true",
        help="Launch the curses relay panel"
    )
    parser.add_argument(
        "--simulate", action="store_true",
        help="Use a simulated relay board instead of a serial port"
    )
    parser.add_argument(
        "--settings",
        help="Path to serial link settings JSON file"
    )
    parser.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    parser.add_argument(
        "--log-file",
        help="Log to file instead of stderr"
    )
    return parser.parse_args(argv)


def create_device_backend(args, settings: LinkSettings):
    """Return (open_session, list_ports) for the selected backend."""
    if args.simulate:
        from relaybank.drivers.simulator import SimulatedRelayBoard
        board = SimulatedRelayBoard(relay_count=settings.relay_count)
        return board.open_session, board.list_ports

    from relaybank.drivers.modbus_driver import available_ports, open_session
    return functools.partial(open_session, settings=settings), available_ports


def load_project(args, settings: LinkSettings) -> Project:
    """Startup project: the file if one was given, else defaults, plus CLI overrides."""
    if args.project:
        project = Project.load(args.project, settings.relay_count)
    else:
        project = Project(relay_state=RelayState.all_off(settings.relay_count))

    if args.relays is not None:
        project.relay_state = RelayState.parse(args.relays, settings.relay_count)
    if args.interface is not None:
        project.interface = args.interface
    if args.slave is not None:
        project.slave_id = parse_slave_id(args.slave)
    return project


def run_headless(project: Project, open_session, settings: LinkSettings) -> int:
    """Apply the project's relay state once; return the process exit code."""
    try:
        port = require_interface(project.interface)
    except ValidationError as exc:
        logger.error("Headless SET refused: %s", exc.message)
        return EXIT_USAGE_ERROR

    try:
        set_relays(open_session, port, project.slave_id,
                   project.relay_state, settings)
    except RelayBankError as exc:
        logger.error("Headless SET failed: %s", exc.message)
        return EXIT_DEVICE_ERROR

    print(f"Relays set to {project.relay_state} on {port} (slave {project.slave_id})")
    return EXIT_OK


def main(argv=None) -> int:
    args = parse_args(argv)

    # Configure logging
    log_kwargs = {
        "level": getattr(logging, args.log_level),
        "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    }
    if args.log_file:
        log_kwargs["filename"] = args.log_file
    elif args.tui:
        log_kwargs["filename"] = "relaybank.log"
    logging.basicConfig(**log_kwargs)

    # Load configuration
    try:
        settings = LinkSettings.load(args.settings) if args.settings else LinkSettings()
    except (OSError, ValueError) as exc:
        print(f"Cannot read link settings {args.settings}: {exc}", file=sys.stderr)
        return EXIT_USAGE_ERROR
    issues = settings.validate()
    if issues:
        print(f"Invalid link settings: {'; '.join(issues)}", file=sys.stderr)
        return EXIT_USAGE_ERROR
    try:
        project = load_project(args, settings)
    except (ValidationError, PersistenceError) as exc:
        print(f"Cannot start: {exc.message}", file=sys.stderr)
        return EXIT_USAGE_ERROR

    open_session, list_ports = create_device_backend(args, settings)

    if args.headless:
        return run_headless(project, open_session, settings)

    controller = RelayController(
        open_session=open_session,
        list_ports=list_ports,
        project=project,
        settings=settings,
    )

    # Handle SIGTERM gracefully
    def signal_handler(sig, frame):
        controller.stop()
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)

    # Start controller in background
    controller.start(blocking=False)

    try:
        if args.tui:
            from console.tui import run_tui
            run_tui(controller)
        else:
            from console.cli import run_cli
            run_cli(controller)
    finally:
        controller.stop()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
