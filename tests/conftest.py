"""
Shared test fixtures for the relay bank test suite.
"""

import pytest

from relaybank.config.settings import LinkSettings
from relaybank.core.controller import RelayController
from relaybank.core.project import Project
from relaybank.core.render import Panel
from relaybank.drivers.simulator import SimulatedRelayBoard


@pytest.fixture
def settings():
    return LinkSettings()


@pytest.fixture
def board():
    return SimulatedRelayBoard()


@pytest.fixture
def sleeps():
    """Records every inter-operation delay instead of sleeping."""
    return []


@pytest.fixture
def panel():
    return Panel()


@pytest.fixture
def project():
    return Project(interface="SIM0", slave_id=1)


@pytest.fixture
def controller(board, panel, project, settings, sleeps):
    """Controller wired to the simulated board (loop not started)."""
    return RelayController(
        open_session=board.open_session,
        presenter=panel,
        list_ports=board.list_ports,
        project=project,
        settings=settings,
        sleep=sleeps.append,
    )
