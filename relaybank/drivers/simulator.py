"""
Relay Board Simulator
======================
Simulates the R4D3B16 relay board for development and testing
without a serial adapter. Models the board's register behavior:

  - Writing 0x0100 to register i+1 switches relay i on
  - Writing 0x0200 to register i+1 switches relay i off
  - Reading holding registers reports 1 for on, 0 for off
  - Register 0 is reserved and rejects writes

Faults can be injected to exercise the engine's error paths:
refused connections, timeouts on the Nth write or on a given
register, and failed reads.

Use `board.open_session` wherever a SessionFactory is expected.
"""

import logging
from typing import List, Optional

from relaybank.core.protocol import CMD_OFF, CMD_ON, FIRST_RELAY_REGISTER
from relaybank.core.relay_state import N_RELAYS, RelayState
from relaybank.exceptions import (
    ConnectError, DeviceError, OperationTimeoutError,
)

logger = logging.getLogger(__name__)


class SimulatedRelayBoard:
    """
    In-process stand-in for the relay board on a serial line.

    Keeps one boolean per relay plus a log of every register
    write, in order, so tests can assert on the exact traffic.
    """

    def __init__(
        self,
        relay_count: int = N_RELAYS,
        slave_id: int = 1,
        ports: Optional[List[str]] = None,
    ):
        self.relay_count = relay_count
        self.slave_id = slave_id
        self.ports = list(ports) if ports is not None else ["SIM0"]

        self._relays = [False] * relay_count

        # Traffic log: (address, value) for every accepted write
        self.write_log: List[tuple] = []
        self.read_count = 0
        self.sessions_opened = 0
        self.sessions_closed = 0

        # Fault injection
        self._refuse_connect = False
        self._fail_write_number: Optional[int] = None
        self._fail_write_address: Optional[int] = None
        self._fail_read = False
        self._writes_attempted = 0

    # ── SessionFactory / PortLister ──────────────────────────

    def open_session(self, port: str, slave_id: int) -> "SimulatedSession":
        """Open a simulated session, as the Modbus driver would."""
        if self._refuse_connect or port not in self.ports:
            raise ConnectError(f"Cannot open {port}", port=port)
        self.sessions_opened += 1
        return SimulatedSession(self, port, slave_id)

    def list_ports(self) -> List[str]:
        return list(self.ports)

    # ── Simulation Controls ──────────────────────────────────

    @property
    def state(self) -> RelayState:
        return RelayState.from_bits(self._relays)

    def set_state(self, state: RelayState):
        """Force the relay outputs, bypassing the register interface."""
        self._relays = list(state)

    def refuse_connections(self, refuse: bool = True):
        self._refuse_connect = refuse

    def fail_on_write(self, number: int):
        """Time out the Nth write attempt (1-based) from now on."""
        self._fail_write_number = self._writes_attempted + number

    def fail_on_address(self, address: int):
        """Time out any write to `address`."""
        self._fail_write_address = address

    def fail_reads(self, fail: bool = True):
        self._fail_read = fail

    def clear_faults(self):
        self._refuse_connect = False
        self._fail_write_number = None
        self._fail_write_address = None
        self._fail_read = False

    # ── Register Behavior ────────────────────────────────────

    def _write(self, slave_id: int, address: int, value: int):
        self._writes_attempted += 1
        if slave_id != self.slave_id:
            raise OperationTimeoutError(
                f"No answer from slave {slave_id}", address=address
            )
        if (self._writes_attempted == self._fail_write_number
                or address == self._fail_write_address):
            raise OperationTimeoutError(
                f"Simulated timeout writing register {address}",
                address=address,
            )

        index = address - FIRST_RELAY_REGISTER
        if not 0 <= index < self.relay_count:
            raise DeviceError(f"Illegal register {address}", address=address)

        if value == CMD_ON:
            self._relays[index] = True
        elif value == CMD_OFF:
            self._relays[index] = False
        else:
            raise DeviceError(
                f"Illegal command 0x{value:04X} for register {address}",
                address=address,
            )
        self.write_log.append((address, value))

    def _read(self, slave_id: int, start: int, count: int) -> List[int]:
        self.read_count += 1
        if slave_id != self.slave_id or self._fail_read:
            raise OperationTimeoutError(
                f"Simulated timeout reading register {start}", address=start
            )
        values = []
        for address in range(start, start + count):
            index = address - FIRST_RELAY_REGISTER
            if not 0 <= index < self.relay_count:
                raise DeviceError(f"Illegal register {address}", address=address)
            values.append(1 if self._relays[index] else 0)
        return values


class SimulatedSession:
    """DeviceSession bound to a SimulatedRelayBoard."""

    def __init__(self, board: SimulatedRelayBoard, port: str, slave_id: int):
        self.board = board
        self.port = port
        self.slave_id = slave_id
        self._open = True

    def write_register(self, address: int, value: int):
        self.board._write(self.slave_id, address, value)

    def read_registers(self, start: int, count: int) -> List[int]:
        return self.board._read(self.slave_id, start, count)

    def close(self):
        if self._open:
            self._open = False
            self.board.sessions_closed += 1

    def __enter__(self) -> "SimulatedSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
