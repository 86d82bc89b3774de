"""
Tests for the serial link settings.
"""

import json

import pytest

from relaybank.config.settings import LinkSettings


class TestLinkSettings:

    def test_defaults_match_board(self):
        s = LinkSettings()
        assert (s.baudrate, s.bytesize, s.parity, s.stopbits) == (9600, 8, "N", 1)
        assert s.op_timeout_sec == 2.0
        assert s.inter_op_delay_sec == 0.005
        assert s.relay_count == 16
        assert s.validate() == []

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "cfg" / "link.json"
        s = LinkSettings(baudrate=19200, inter_op_delay_ms=10)
        s.save(str(path))
        loaded = LinkSettings.load(str(path))
        assert loaded.baudrate == 19200
        assert loaded.inter_op_delay_ms == 10
        assert loaded._config_path == str(path)

    def test_load_missing_file_gives_defaults(self, tmp_path):
        loaded = LinkSettings.load(str(tmp_path / "none.json"))
        assert loaded.as_dict() == LinkSettings().as_dict()

    def test_load_skips_unknown_private_and_bad_keys(self, tmp_path):
        path = tmp_path / "link.json"
        path.write_text(json.dumps({
            "baudrate": "4800",
            "colour": "blue",
            "_config_path": "elsewhere.json",
            "stopbits": "two",
        }))
        loaded = LinkSettings.load(str(path))
        assert loaded.baudrate == 4800
        assert loaded.stopbits == 1
        assert not hasattr(loaded, "colour")
        assert loaded._config_path == str(path)

    def test_update(self):
        s = LinkSettings()
        assert s.update("op_timeout_sec", "0.5")
        assert s.op_timeout_sec == 0.5
        assert not s.update("baudrate", "fast")
        assert not s.update("missing", 1)
        assert not s.update("_config_path", "x")

    def test_as_dict_hides_private(self):
        data = LinkSettings().as_dict()
        assert "_config_path" not in data
        assert data["parity"] == "N"

    def test_validate_reports_each_problem(self):
        s = LinkSettings(parity="X", stopbits=3, relay_count=0)
        issues = s.validate()
        assert len(issues) == 3
        assert any("parity" in i for i in issues)

    def test_load_rejects_non_object(self, tmp_path):
        path = tmp_path / "link.json"
        path.write_text("[]")
        with pytest.raises(ValueError):
            LinkSettings.load(str(path))

    def test_stale_connect_timeout_key_ignored(self, tmp_path):
        path = tmp_path / "link.json"
        path.write_text(json.dumps({"connect_timeout_sec": 1.0, "op_timeout_sec": 3}))
        loaded = LinkSettings.load(str(path))
        assert loaded.op_timeout_sec == 3.0
        assert "connect_timeout_sec" not in loaded.as_dict()
