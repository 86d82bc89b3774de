"""
Connection field validation.

The interface and slave id arrive as free text from the console
or the command line and are only checked when a device operation
actually needs them.
"""

from relaybank.exceptions import ValidationError

SLAVE_ID_MIN = 1
SLAVE_ID_MAX = 255


def require_interface(name: str) -> str:
    """Return the port name, rejecting an empty one."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("No serial port selected", field="interface")
    return name


def parse_slave_id(text) -> int:
    """Parse a slave id from text (or an int) and range-check it."""
    if isinstance(text, bool):
        raise ValidationError(f"Invalid slave id {text!r}", field="slave_id")
    try:
        slave_id = int(str(text).strip())
    except ValueError:
        raise ValidationError(
            f"Slave id must be a number, got {text!r}", field="slave_id"
        ) from None
    if not SLAVE_ID_MIN <= slave_id <= SLAVE_ID_MAX:
        raise ValidationError(
            f"Slave id {slave_id} out of range {SLAVE_ID_MIN}..{SLAVE_ID_MAX}",
            field="slave_id",
        )
    return slave_id
