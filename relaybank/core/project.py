"""
Preset & Project Store
=======================
Named relay presets and the project aggregate that is saved to
and loaded from disk. Everything here is plain data; the only
I/O is the explicit save/load calls.

Project file (JSON):

    {
      "name": "bench",
      "relay_state": "1000000000000001",
      "interface": "/dev/ttyUSB0",
      "slave_id": 1,
      "presets": [{"name": "pumps", "value": "1100000000000000"}],
      "current_preset": 0,
      "realtime": false
    }

`current_preset` is -1 when nothing is selected. In memory the
selection is an Optional[int]; -1 only exists in the file.

Legacy preset file: the bare relay string, one preset per file.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from relaybank.core.relay_state import N_RELAYS, RelayState
from relaybank.core.validation import SLAVE_ID_MAX, SLAVE_ID_MIN
from relaybank.exceptions import PersistenceError, PresetError, ValidationError

logger = logging.getLogger(__name__)

NO_SELECTION = -1

_PROJECT_KEYS = (
    "name", "relay_state", "interface", "slave_id",
    "presets", "current_preset", "realtime",
)


@dataclass(frozen=True)
class Preset:
    """A named snapshot of every relay."""
    name: str
    state: RelayState

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise PresetError("Preset name must be a non-empty string")


@dataclass
class Project:
    """Connection settings, presets and the last relay state."""

    name: str = ""
    relay_state: RelayState = field(default_factory=RelayState.all_off)
    interface: str = ""
    slave_id: int = 1
    presets: List[Preset] = field(default_factory=list)
    selected: Optional[int] = None
    realtime: bool = False

    # ── Presets ──────────────────────────────────────────────

    def find_preset(self, name: str) -> Optional[int]:
        """Index of the first preset called `name`, if any."""
        for i, preset in enumerate(self.presets):
            if preset.name == name:
                return i
        return None

    def add_preset(self, name: str, state: RelayState) -> int:
        """
        Add a preset and select it.

        An existing name is only re-selected; its stored state is
        left untouched and no duplicate is created.
        """
        existing = self.find_preset(name)
        if existing is not None:
            self.selected = existing
            return existing
        self.presets.append(Preset(name, state))
        self.selected = len(self.presets) - 1
        logger.info("Preset %r added (%s)", name, state)
        return self.selected

    def remove_preset(self, index: int) -> Preset:
        """Remove a preset by index. The selection is left as is."""
        if not self._in_bounds(index):
            raise PresetError(
                f"No preset at index {index} ({len(self.presets)} presets)"
            )
        removed = self.presets.pop(index)
        logger.info("Preset %r removed", removed.name)
        return removed

    def replace_preset(self, index: int, state: RelayState):
        """Store a new state under an existing preset's name."""
        if not self._in_bounds(index):
            raise PresetError(f"No preset at index {index}")
        self.presets[index] = Preset(self.presets[index].name, state)

    def select_preset(self, index: Optional[int]):
        if index is not None and not self._in_bounds(index):
            raise PresetError(
                f"No preset at index {index} ({len(self.presets)} presets)"
            )
        self.selected = index

    def selected_preset(self) -> Preset:
        """The preset the selection points at."""
        if self.selected is None:
            raise PresetError("No preset selected")
        if not self._in_bounds(self.selected):
            raise PresetError(f"Selected preset {self.selected} no longer exists")
        return self.presets[self.selected]

    def preset_names(self) -> List[str]:
        return [p.name for p in self.presets]

    def _in_bounds(self, index) -> bool:
        return (isinstance(index, int) and not isinstance(index, bool)
                and 0 <= index < len(self.presets))

    # ── Serialization ────────────────────────────────────────

    def to_dict(self) -> dict:
        current = self.selected if self._in_bounds(self.selected) else NO_SELECTION
        return {
            "name": self.name,
            "relay_state": self.relay_state.to_string(),
            "interface": self.interface,
            "slave_id": self.slave_id,
            "presets": [
                {"name": p.name, "value": p.state.to_string()}
                for p in self.presets
            ],
            "current_preset": current,
            "realtime": self.realtime,
        }

    @classmethod
    def from_dict(cls, data, size: int = N_RELAYS) -> "Project":
        """Build a project from parsed JSON, rejecting any schema violation."""
        if not isinstance(data, dict):
            raise PersistenceError("Project file must contain a JSON object")
        missing = [k for k in _PROJECT_KEYS if k not in data]
        if missing:
            raise PersistenceError(f"Project file missing {', '.join(missing)}")

        _expect_str(data, "name")
        _expect_str(data, "relay_state")
        _expect_str(data, "interface")
        _expect_int(data, "slave_id")
        _expect_int(data, "current_preset")
        if not isinstance(data["realtime"], bool):
            raise PersistenceError("Project field 'realtime' must be true or false")
        if not isinstance(data["presets"], list):
            raise PersistenceError("Project field 'presets' must be a list")

        slave_id = data["slave_id"]
        if not SLAVE_ID_MIN <= slave_id <= SLAVE_ID_MAX:
            raise PersistenceError(f"Project slave_id {slave_id} out of range")

        try:
            relay_state = RelayState.parse(data["relay_state"], size)
            presets = [_preset_from_dict(entry, size) for entry in data["presets"]]
        except (ValidationError, PresetError) as exc:
            raise PersistenceError(f"Invalid project: {exc.message}") from exc

        current = data["current_preset"]
        if current == NO_SELECTION:
            selected = None
        elif 0 <= current < len(presets):
            selected = current
        else:
            raise PersistenceError(
                f"Project current_preset {current} out of range "
                f"({len(presets)} presets)"
            )

        return cls(
            name=data["name"],
            relay_state=relay_state,
            interface=data["interface"],
            slave_id=slave_id,
            presets=presets,
            selected=selected,
            realtime=data["realtime"],
        )

    def save(self, path):
        """Write the whole project to `path` as JSON."""
        filepath = Path(path)
        try:
            filepath.write_text(json.dumps(self.to_dict(), indent=2))
        except OSError as exc:
            raise PersistenceError(
                f"Cannot write project {filepath}: {exc}", path=str(filepath)
            ) from exc
        logger.info("Project saved to %s", filepath)

    @classmethod
    def load(cls, path, size: int = N_RELAYS) -> "Project":
        """Read a project from `path`; nothing is returned unless all of it is valid."""
        filepath = Path(path)
        try:
            data = json.loads(filepath.read_text())
        except OSError as exc:
            raise PersistenceError(
                f"Cannot read project {filepath}: {exc}", path=str(filepath)
            ) from exc
        except ValueError as exc:
            raise PersistenceError(
                f"Project {filepath} is not valid JSON: {exc}", path=str(filepath)
            ) from exc
        try:
            project = cls.from_dict(data, size)
        except PersistenceError as exc:
            exc.path = str(filepath)
            raise
        logger.info("Project loaded from %s", filepath)
        return project


# ── Legacy single-preset files ───────────────────────────────

def read_preset_file(path, size: int = N_RELAYS) -> RelayState:
    """Read a bare '0'/'1' preset file."""
    filepath = Path(path)
    try:
        text = filepath.read_text()
    except (OSError, ValueError) as exc:
        raise PersistenceError(
            f"Cannot read preset {filepath}: {exc}", path=str(filepath)
        ) from exc
    try:
        return RelayState.parse(text.rstrip(), size)
    except ValidationError as exc:
        raise PersistenceError(
            f"Invalid preset {filepath}: {exc.message}", path=str(filepath)
        ) from exc


def write_preset_file(path, state: RelayState):
    """Write `state` as a bare '0'/'1' preset file."""
    filepath = Path(path)
    try:
        filepath.write_text(state.to_string())
    except OSError as exc:
        raise PersistenceError(
            f"Cannot write preset {filepath}: {exc}", path=str(filepath)
        ) from exc
    logger.info("Preset file written to %s", filepath)


def _preset_from_dict(entry, size: int) -> Preset:
    if not isinstance(entry, dict) or set(entry) != {"name", "value"}:
        raise PresetError("Each preset must be an object with 'name' and 'value'")
    if not isinstance(entry["name"], str) or not isinstance(entry["value"], str):
        raise PresetError("Preset name and value must be strings")
    return Preset(entry["name"], RelayState.parse(entry["value"], size))


def _expect_str(data: dict, key: str):
    if not isinstance(data[key], str):
        raise PersistenceError(f"Project field {key!r} must be a string")


def _expect_int(data: dict, key: str):
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise PersistenceError(f"Project field {key!r} must be an integer")
