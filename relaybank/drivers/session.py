"""
Device Session — Abstraction Layer
====================================
The only capability the control engine needs from a relay board:
open a link, write one holding register, read a block of holding
registers, close. Both the Modbus RTU driver and the simulated
board implement it, so the engine never knows which one it has.

A session lives for exactly one SET/GET/realtime write:

    with open_session(port, slave_id) as session:
        session.write_register(1, 0x0100)
"""

from typing import Callable, List, Protocol


class DeviceSession(Protocol):
    """Protocol for an open link to one slave on the serial line."""

    def write_register(self, address: int, value: int) -> None: ...
    def read_registers(self, start: int, count: int) -> List[int]: ...
    def close(self) -> None: ...
    def __enter__(self) -> "DeviceSession": ...
    def __exit__(self, exc_type, exc, tb) -> None: ...


# open_session(port, slave_id) -> DeviceSession, raising ConnectError
SessionFactory = Callable[[str, int], DeviceSession]

# list_ports() -> ["/dev/ttyUSB0", ...]
PortLister = Callable[[], List[str]]
