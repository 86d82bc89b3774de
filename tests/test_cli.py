"""
Tests for the interactive console against a running controller.
"""

import pytest

from console.cli import RelayConsole


@pytest.fixture
def console(controller):
    controller.start(blocking=False)
    yield RelayConsole(controller)
    controller.stop()


class TestConsole:

    def test_toggle_and_set(self, console, board, capsys):
        console.onecmd("toggle 1")
        console.onecmd("toggle 16 on")
        console.onecmd("set")
        assert "SET OK" in capsys.readouterr().out
        assert board.state.on_indices() == [0, 15]

    def test_toggle_usage(self, console, capsys):
        console.onecmd("toggle 17")
        console.onecmd("toggle one")
        out = capsys.readouterr().out
        assert "Relay must be 1..16" in out
        assert "Usage: toggle" in out

    def test_get_failure_reported(self, console, board, capsys):
        board.fail_reads()
        console.onecmd("get")
        assert "GET failed" in capsys.readouterr().out

    def test_presets_are_numbered_from_one(self, console, capsys):
        console.onecmd("allon")
        console.onecmd("add everything")
        console.onecmd("alloff")
        console.onecmd("apply 1")
        console.onecmd("presets")
        out = capsys.readouterr().out
        assert "APPLY OK" in out
        assert "*  1  everything" in out
        assert all(console.ctrl.relay_state)

    def test_slave_field(self, console, capsys):
        console.onecmd("slave 42")
        assert "Slave id: 42" in capsys.readouterr().out
        assert console.ctrl.project.slave_id == 42

    def test_save_and_open(self, console, tmp_path, capsys):
        path = tmp_path / "bench.json"
        console.onecmd(f"save {path}")
        console.onecmd(f"open {path}")
        out = capsys.readouterr().out
        assert "SAVE OK" in out
        assert "OPEN OK" in out

    def test_quit(self, console):
        assert console.onecmd("quit") is True

    def test_select_clears_earlier_apply_failure(self, console, capsys):
        console.onecmd("add first")
        console.onecmd("select none")
        console.onecmd("apply")
        console.onecmd("select 1")
        lines = capsys.readouterr().out.strip().splitlines()
        assert "APPLY failed: No preset selected" in lines
        assert lines[-1] == "APPLY OK"
