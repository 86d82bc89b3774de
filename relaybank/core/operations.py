"""
Relay Bank Operations — SET / GET / single write
==================================================
The three device operations the controller can run. Each opens
its own session, does its work and closes the session again,
whatever the outcome:

    SET    two-phase bulk apply: every OFF write, then every ON
           write, with a short pause after each one
    GET    one bulk read of all relay registers
    WRITE  one register write for a single relay (realtime mode)

All three abort on the first error. Writes that already reached
the board are not rolled back; the caller sees the one failure.
"""

import time
import logging
from typing import Callable, Optional

from relaybank.config.settings import LinkSettings
from relaybank.core.protocol import (
    FIRST_RELAY_REGISTER, command_for, decode_registers, register_for,
    write_plan,
)
from relaybank.core.relay_state import RelayState
from relaybank.drivers.session import SessionFactory
from relaybank.exceptions import RelayBankError

logger = logging.getLogger(__name__)


def set_relays(
    open_session: SessionFactory,
    port: str,
    slave_id: int,
    target: RelayState,
    settings: Optional[LinkSettings] = None,
    sleep: Callable[[float], None] = time.sleep,
):
    """Drive the whole bank to `target` (OFF phase, then ON phase)."""
    settings = settings or LinkSettings()
    delay = settings.inter_op_delay_sec
    written = 0

    with open_session(port, slave_id) as session:
        try:
            for address, value in write_plan(target):
                session.write_register(address, value)
                written += 1
                sleep(delay)
        except RelayBankError as exc:
            logger.warning(
                "SET aborted on %s after %d of %d writes: %s",
                port, written, len(target), exc.message,
            )
            raise

    logger.info("SET %s -> %s (slave %d)", target, port, slave_id)


def get_relays(
    open_session: SessionFactory,
    port: str,
    slave_id: int,
    settings: Optional[LinkSettings] = None,
) -> RelayState:
    """Read every relay back from the board."""
    settings = settings or LinkSettings()
    count = settings.relay_count

    with open_session(port, slave_id) as session:
        values = session.read_registers(FIRST_RELAY_REGISTER, count)

    state = decode_registers(values, count)
    logger.info("GET %s <- %s (slave %d)", state, port, slave_id)
    return state


def write_relay(
    open_session: SessionFactory,
    port: str,
    slave_id: int,
    index: int,
    on: bool,
):
    """Switch a single relay without touching the others."""
    with open_session(port, slave_id) as session:
        session.write_register(register_for(index), command_for(on))
    logger.info(
        "Relay %d %s on %s (slave %d)",
        index + 1, "ON" if on else "OFF", port, slave_id,
    )
