"""
Serial Link Settings for the R4D3B16 Relay Board
==================================================
Framing, timeouts and pacing for the Modbus RTU link. The board
ships fixed at 9600 8N1; the values are kept here so a bench
setup with a USB-RS485 adapter that needs different pacing can
be tuned from a JSON file instead of code.
"""

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class LinkSettings:
    """Serial framing and timing parameters for every device session."""

    # ── Serial Framing ───────────────────────────────────────
    baudrate: int = 9600
    bytesize: int = 8
    parity: str = "N"
    stopbits: int = 1

    # ── Timing ───────────────────────────────────────────────
    op_timeout_sec: float = 2.0         # Port open and each register read/write
    inter_op_delay_ms: int = 5          # Pause after every bulk write

    # ── Board ────────────────────────────────────────────────
    relay_count: int = 16

    # ── Persistence ──────────────────────────────────────────
    _config_path: str = field(
        default="config/link.json", repr=False
    )

    @property
    def inter_op_delay_sec(self) -> float:
        return self.inter_op_delay_ms / 1000.0

    def save(self, path: str = None):
        """Write the settings to JSON (default: config/link.json)."""
        filepath = Path(path or self._config_path)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        filepath.write_text(json.dumps(self.as_dict(), indent=2))

    @classmethod
    def load(cls, path: str = None) -> "LinkSettings":
        """
        Read settings from JSON. A missing file gives the defaults;
        keys that are unknown or fail to convert are logged and skipped.
        """
        filepath = Path(path or cls._config_path)
        settings = cls(_config_path=str(filepath))
        if not filepath.exists():
            return settings
        data = json.loads(filepath.read_text())
        if not isinstance(data, dict):
            raise ValueError(f"{filepath} must contain a JSON object")
        for key, value in data.items():
            if not settings.update(key, value):
                logger.warning("Ignoring link setting %s=%r in %s", key, value, filepath)
        return settings

    def update(self, key: str, value) -> bool:
        """Set one field, coerced to its default's type. False if rejected."""
        if key.startswith("_") or key not in self.as_dict():
            return False
        try:
            setattr(self, key, type(getattr(self, key))(value))
        except (ValueError, TypeError):
            return False
        return True

    def as_dict(self) -> dict:
        return {k: v for k, v in self.__dict__.items() if not k.startswith("_")}

    def validate(self) -> list:
        """Return a list of settings the serial link cannot run with."""
        issues = []
        if self.bytesize not in (7, 8):
            issues.append(f"bytesize must be 7 or 8, got {self.bytesize}")
        if self.parity not in ("N", "E", "O"):
            issues.append(f"parity must be N, E or O, got {self.parity!r}")
        if self.stopbits not in (1, 2):
            issues.append(f"stopbits must be 1 or 2, got {self.stopbits}")
        if self.baudrate <= 0:
            issues.append(f"baudrate must be positive, got {self.baudrate}")
        if self.op_timeout_sec <= 0:
            issues.append(f"op_timeout_sec must be positive, got {self.op_timeout_sec}")
        if self.inter_op_delay_ms < 0:
            issues.append("inter_op_delay_ms must not be negative")
        if self.relay_count < 1:
            issues.append(f"relay_count must be at least 1, got {self.relay_count}")
        return issues
