"""
Tests for the relay command protocol (register map and codes).
"""

import pytest

from relaybank.core.protocol import (
    CMD_OFF, CMD_ON, command_for, decode_registers, register_for, write_plan,
)
from relaybank.core.relay_state import RelayState
from relaybank.exceptions import DeviceError


class TestRegisterMap:

    def test_relay_index_maps_to_next_register(self):
        assert register_for(0) == 1
        assert register_for(15) == 16

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            register_for(-1)

    def test_command_codes(self):
        assert command_for(True) == 0x0100
        assert command_for(False) == 0x0200


class TestWritePlan:
    """All OFF writes precede all ON writes, ascending within a phase."""

    def test_three_relay_ordering(self):
        plan = list(write_plan(RelayState.from_bits([True, False, True])))
        assert plan == [(2, CMD_OFF), (1, CMD_ON), (3, CMD_ON)]

    def test_one_write_per_relay(self):
        plan = list(write_plan(RelayState.parse("1100110011001100")))
        assert sorted(addr for addr, _ in plan) == list(range(1, 17))

    def test_off_phase_before_on_phase(self):
        plan = list(write_plan(RelayState.parse("1010101010101010")))
        values = [value for _, value in plan]
        last_off = max(i for i, v in enumerate(values) if v == CMD_OFF)
        first_on = min(i for i, v in enumerate(values) if v == CMD_ON)
        assert last_off < first_on

    def test_all_off_plan(self):
        plan = list(write_plan(RelayState.all_off(4)))
        assert plan == [(1, CMD_OFF), (2, CMD_OFF), (3, CMD_OFF), (4, CMD_OFF)]


class TestDecode:
    """Reads report 1 for on; anything else is off."""

    def test_only_exact_one_is_on(self):
        state = decode_registers([1, 0, 0x0100, 2, 1], 5)
        assert list(state) == [True, False, False, False, True]

    def test_extra_registers_ignored(self):
        assert len(decode_registers([1, 1, 1], 2)) == 2

    def test_short_read_is_device_error(self):
        with pytest.raises(DeviceError):
            decode_registers([1, 0], 16)

    def test_none_is_device_error(self):
        with pytest.raises(DeviceError):
            decode_registers(None, 16)
