"""
R4D3B16 Relay Command Protocol
===============================
Maps relay indices onto the board's holding registers.

    Relay index i (0-based)  ->  holding register i + 1
    Register 0               ->  reserved, never written

Writes use command codes, reads report plain 0/1:

    write 0x0100  ->  relay ON        read 1      ->  ON
    write 0x0200  ->  relay OFF       read other  ->  OFF

The write/read asymmetry is how the board behaves on the bench;
keep it as is until it can be checked against the hardware.
"""

from typing import Iterator, Sequence

from relaybank.core.relay_state import RelayState
from relaybank.exceptions import DeviceError

FIRST_RELAY_REGISTER = 1

CMD_ON = 0x0100
CMD_OFF = 0x0200

READ_ON = 1


def register_for(index: int) -> int:
    """Holding register address that drives relay `index`."""
    if index < 0:
        raise ValueError(f"Relay index must be non-negative, got {index}")
    return FIRST_RELAY_REGISTER + index


def command_for(on: bool) -> int:
    return CMD_ON if on else CMD_OFF


def write_plan(target: RelayState) -> Iterator[tuple]:
    """
    Yield (address, value) writes that put the board into `target`.

    Every OFF write comes before any ON write, whatever order the
    bits arrive in; within a phase relays are visited ascending.
    """
    for i, on in enumerate(target):
        if not on:
            yield register_for(i), CMD_OFF
    for i, on in enumerate(target):
        if on:
            yield register_for(i), CMD_ON


def decode_registers(values: Sequence[int], count: int) -> RelayState:
    """Turn a bulk holding-register read into a RelayState."""
    if values is None or len(values) < count:
        got = 0 if values is None else len(values)
        raise DeviceError(
            f"Expected {count} registers from relay board, got {got}",
            address=FIRST_RELAY_REGISTER,
        )
    return RelayState.from_bits(v == READ_ON for v in values[:count])
