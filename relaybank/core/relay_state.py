"""
Relay State Vector
===================
The in-memory picture of the relay bank: one boolean per relay,
index i driving physical relay i+1. A RelayState is immutable and
is replaced wholesale whenever the bank is set, read back or
loaded from a preset.

String form (project and preset files):

    "1000000000000001"   relay 1 and relay 16 on, the rest off
"""

from dataclasses import dataclass
from typing import Iterable, Iterator

from relaybank.exceptions import ValidationError

N_RELAYS = 16

_ON_CHAR = "1"
_OFF_CHAR = "0"


def validate_relay_string(text: str, size: int = N_RELAYS):
    """
    Reject anything that is not exactly `size` characters of '0'/'1'.

    Both conditions must hold; the empty string has a valid charset
    but the wrong length and is rejected.
    """
    if not isinstance(text, str):
        raise ValidationError("Relay state must be a string", field="relays")
    if len(text) != size:
        raise ValidationError(
            f"Relay state must be {size} characters, got {len(text)}",
            field="relays",
        )
    bad = set(text) - {_ON_CHAR, _OFF_CHAR}
    if bad:
        raise ValidationError(
            f"Relay state may only contain '0' and '1' (found {''.join(sorted(bad))!r})",
            field="relays",
        )


@dataclass(frozen=True)
class RelayState:
    """Ordered on/off value for every relay on the board."""

    bits: tuple = (False,) * N_RELAYS

    @classmethod
    def from_bits(cls, bits: Iterable[bool]) -> "RelayState":
        return cls(tuple(bool(b) for b in bits))

    @classmethod
    def all_off(cls, size: int = N_RELAYS) -> "RelayState":
        return cls((False,) * size)

    @classmethod
    def all_on(cls, size: int = N_RELAYS) -> "RelayState":
        return cls((True,) * size)

    @classmethod
    def parse(cls, text: str, size: int = N_RELAYS) -> "RelayState":
        """Build a state from its '0'/'1' string, validating it first."""
        validate_relay_string(text, size)
        return cls(tuple(c == _ON_CHAR for c in text))

    def to_string(self) -> str:
        return "".join(_ON_CHAR if b else _OFF_CHAR for b in self.bits)

    def with_relay(self, index: int, on: bool) -> "RelayState":
        """Return a copy with one relay changed."""
        self._check_index(index)
        bits = list(self.bits)
        bits[index] = bool(on)
        return RelayState(tuple(bits))

    def toggled(self, index: int) -> "RelayState":
        self._check_index(index)
        return self.with_relay(index, not self.bits[index])

    def on_indices(self) -> list:
        return [i for i, b in enumerate(self.bits) if b]

    def _check_index(self, index: int):
        if not 0 <= index < len(self.bits):
            raise ValidationError(
                f"Relay index {index} out of range 0..{len(self.bits) - 1}",
                field="relay",
            )

    def __len__(self) -> int:
        return len(self.bits)

    def __iter__(self) -> Iterator[bool]:
        return iter(self.bits)

    def __getitem__(self, index: int) -> bool:
        return self.bits[index]

    def __str__(self) -> str:
        return self.to_string()
