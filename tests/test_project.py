"""
Tests for presets, the project aggregate and its persistence.
"""

import json

import pytest

from relaybank.core.project import (
    NO_SELECTION, Preset, Project, read_preset_file, write_preset_file,
)
from relaybank.core.relay_state import RelayState
from relaybank.exceptions import PersistenceError, PresetError

PUMPS = RelayState.parse("1100000000000000")
LIGHTS = RelayState.parse("0000000000001111")


def _valid_dict(**overrides):
    data = {
        "name": "bench",
        "relay_state": "1000000000000001",
        "interface": "/dev/ttyUSB0",
        "slave_id": 3,
        "presets": [
            {"name": "pumps", "value": "1100000000000000"},
            {"name": "lights", "value": "0000000000001111"},
        ],
        "current_preset": 1,
        "realtime": True,
    }
    data.update(overrides)
    return data


class TestPresets:

    def test_empty_name_rejected(self):
        with pytest.raises(PresetError):
            Preset("", PUMPS)

    def test_add_selects_new_preset(self):
        project = Project()
        assert project.add_preset("pumps", PUMPS) == 0
        assert project.add_preset("lights", LIGHTS) == 1
        assert project.selected == 1
        assert project.preset_names() == ["pumps", "lights"]

    def test_duplicate_name_reselects_without_overwrite(self):
        project = Project()
        project.add_preset("pumps", PUMPS)
        project.add_preset("lights", LIGHTS)
        assert project.add_preset("pumps", LIGHTS) == 0
        assert project.selected == 0
        assert len(project.presets) == 2
        assert project.presets[0].state == PUMPS

    def test_remove_leaves_selection_untouched(self):
        project = Project()
        project.add_preset("pumps", PUMPS)
        project.add_preset("lights", LIGHTS)
        project.remove_preset(0)
        assert project.preset_names() == ["lights"]
        assert project.selected == 1

    def test_remove_out_of_bounds(self):
        project = Project()
        with pytest.raises(PresetError):
            project.remove_preset(0)

    def test_stale_selection_detected(self):
        project = Project()
        project.add_preset("pumps", PUMPS)
        project.remove_preset(0)
        with pytest.raises(PresetError):
            project.selected_preset()

    def test_no_selection(self):
        with pytest.raises(PresetError):
            Project().selected_preset()

    def test_select_out_of_bounds(self):
        project = Project()
        project.add_preset("pumps", PUMPS)
        with pytest.raises(PresetError):
            project.select_preset(5)
        project.select_preset(None)
        assert project.selected is None

    def test_replace_keeps_name(self):
        project = Project()
        project.add_preset("pumps", PUMPS)
        project.replace_preset(0, LIGHTS)
        assert project.presets[0] == Preset("pumps", LIGHTS)


class TestSerialization:

    def test_to_dict(self):
        project = Project(name="bench", interface="COM3", slave_id=2)
        project.add_preset("pumps", PUMPS)
        data = project.to_dict()
        assert data["relay_state"] == "0" * 16
        assert data["presets"] == [{"name": "pumps", "value": "1100000000000000"}]
        assert data["current_preset"] == 0
        assert data["realtime"] is False

    def test_no_selection_written_as_minus_one(self):
        assert Project().to_dict()["current_preset"] == NO_SELECTION

    def test_stale_selection_written_as_minus_one(self):
        project = Project()
        project.add_preset("pumps", PUMPS)
        project.remove_preset(0)
        assert project.to_dict()["current_preset"] == NO_SELECTION

    def test_from_dict(self):
        project = Project.from_dict(_valid_dict())
        assert project.name == "bench"
        assert project.slave_id == 3
        assert project.selected == 1
        assert project.selected_preset().state == LIGHTS
        assert project.realtime is True

    def test_from_dict_minus_one_is_no_selection(self):
        assert Project.from_dict(_valid_dict(current_preset=-1)).selected is None

    @pytest.mark.parametrize("overrides", [
        {"current_preset": 2},
        {"current_preset": -2},
        {"slave_id": 0},
        {"slave_id": 256},
        {"slave_id": "3"},
        {"slave_id": True},
        {"realtime": 1},
        {"relay_state": "10"},
        {"relay_state": "100000000000000x"},
        {"presets": [{"name": "x"}]},
        {"presets": [{"name": "x", "value": "1" * 16, "extra": 1}]},
        {"presets": [{"name": "", "value": "1" * 16}]},
        {"presets": "pumps"},
    ])
    def test_schema_violations_rejected(self, overrides):
        with pytest.raises(PersistenceError):
            Project.from_dict(_valid_dict(**overrides))

    def test_missing_key_rejected(self):
        data = _valid_dict()
        del data["interface"]
        with pytest.raises(PersistenceError):
            Project.from_dict(data)

    def test_not_an_object(self):
        with pytest.raises(PersistenceError):
            Project.from_dict(["bench"])


class TestFiles:

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "bench.json"
        project = Project.from_dict(_valid_dict())
        project.save(path)
        loaded = Project.load(path)
        assert loaded == project

    def test_saved_file_is_plain_json(self, tmp_path):
        path = tmp_path / "bench.json"
        Project(name="bench").save(path)
        assert json.loads(path.read_text())["name"] == "bench"

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(PersistenceError):
            Project.load(tmp_path / "nope.json")

    def test_load_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(PersistenceError) as info:
            Project.load(path)
        assert info.value.path == str(path)

    def test_load_schema_violation_carries_path(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(_valid_dict(current_preset=9)))
        with pytest.raises(PersistenceError) as info:
            Project.load(path)
        assert info.value.path == str(path)

    def test_save_to_missing_directory(self, tmp_path):
        with pytest.raises(PersistenceError):
            Project().save(tmp_path / "missing" / "bench.json")


class TestPresetFiles:

    def test_write_then_read(self, tmp_path):
        path = tmp_path / "pumps.txt"
        write_preset_file(path, PUMPS)
        assert path.read_text() == "1100000000000000"
        assert read_preset_file(path) == PUMPS

    def test_trailing_newline_tolerated(self, tmp_path):
        path = tmp_path / "pumps.txt"
        path.write_text("1100000000000000\n")
        assert read_preset_file(path) == PUMPS

    def test_malformed_content(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("11000")
        with pytest.raises(PersistenceError):
            read_preset_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(PersistenceError):
            read_preset_file(tmp_path / "nope.txt")
