"""
Tests for the command-line entry point (headless mode and startup).
"""

import json

import pytest

import main
from relaybank.config.settings import LinkSettings
from relaybank.core.project import Project
from relaybank.drivers.simulator import SimulatedRelayBoard

RELAYS = "1010000000000000"


class TestHeadless:

    def test_applies_relays(self, capsys):
        code = main.main(["--simulate", "--interface", "SIM0",
                          "--relays", RELAYS, "--headless"])
        assert code == main.EXIT_OK
        assert RELAYS in capsys.readouterr().out

    def test_bad_relay_string(self):
        code = main.main(["--simulate", "--interface", "SIM0",
                          "--relays", "012", "--headless"])
        assert code == main.EXIT_USAGE_ERROR

    def test_bad_slave_id(self):
        code = main.main(["--simulate", "--interface", "SIM0",
                          "--slave", "0", "--headless"])
        assert code == main.EXIT_USAGE_ERROR

    def test_missing_interface(self):
        code = main.main(["--simulate", "--headless"])
        assert code == main.EXIT_USAGE_ERROR

    def test_device_error(self):
        code = main.main(["--simulate", "--interface", "COM9",
                          "--relays", RELAYS, "--headless"])
        assert code == main.EXIT_DEVICE_ERROR

    def test_project_file_with_overrides(self, tmp_path):
        path = tmp_path / "bench.json"
        Project(interface="COM9", slave_id=1).save(path)
        code = main.main([str(path), "--simulate", "--interface", "SIM0",
                          "--relays", RELAYS, "--headless"])
        assert code == main.EXIT_OK

    def test_malformed_project_file(self, tmp_path):
        path = tmp_path / "bench.json"
        path.write_text(json.dumps({"name": "bench"}))
        code = main.main([str(path), "--simulate", "--headless"])
        assert code == main.EXIT_USAGE_ERROR

    def test_run_headless_writes_board(self):
        board = SimulatedRelayBoard()
        project = Project(interface="SIM0", slave_id=1)
        project.relay_state = project.relay_state.with_relay(4, True)
        code = main.run_headless(project, board.open_session, LinkSettings())
        assert code == main.EXIT_OK
        assert board.state.on_indices() == [4]


class TestStartup:

    def test_parse_args_defaults(self):
        args = main.parse_args([])
        assert args.project is None
        assert args.headless is False
        assert args.log_level == "INFO"

    def test_load_project_applies_overrides(self):
        args = main.parse_args(["--relays", RELAYS, "--interface", "COM3",
                                "--slave", "7"])
        project = main.load_project(args, LinkSettings())
        assert project.relay_state.to_string() == RELAYS
        assert project.interface == "COM3"
        assert project.slave_id == 7

    def test_simulated_backend(self):
        args = main.parse_args(["--simulate"])
        open_session, list_ports = main.create_device_backend(args, LinkSettings())
        assert list_ports() == ["SIM0"]
        with open_session("SIM0", 1) as session:
            assert session.read_registers(1, 16) == [0] * 16

    def test_invalid_log_level_rejected(self):
        with pytest.raises(SystemExit):
            main.parse_args(["--log-level", "LOUD"])


class TestLinkSettingsFile:

    def test_settings_file_used(self, tmp_path):
        path = tmp_path / "link.json"
        path.write_text(json.dumps({"relay_count": 4, "inter_op_delay_ms": 0}))
        code = main.main(["--simulate", "--settings", str(path),
                          "--interface", "SIM0", "--relays", "1001", "--headless"])
        assert code == main.EXIT_OK

    def test_invalid_settings_rejected(self, tmp_path):
        path = tmp_path / "link.json"
        path.write_text(json.dumps({"parity": "X"}))
        code = main.main(["--simulate", "--settings", str(path), "--headless"])
        assert code == main.EXIT_USAGE_ERROR

    def test_unreadable_settings_rejected(self, tmp_path):
        path = tmp_path / "link.json"
        path.write_text("{broken")
        code = main.main(["--simulate", "--settings", str(path), "--headless"])
        assert code == main.EXIT_USAGE_ERROR

    def test_settings_not_an_object_rejected(self, tmp_path):
        path = tmp_path / "link.json"
        path.write_text("[]")
        code = main.main(["--simulate", "--settings", str(path),
                          "--interface", "SIM0", "--headless"])
        assert code == main.EXIT_USAGE_ERROR
