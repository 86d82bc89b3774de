from relaybank.core.relay_state import RelayState, N_RELAYS
from relaybank.core.project import Project, Preset
from relaybank.core.render import Panel
from relaybank.core.controller import RelayController, ControllerState

__all__ = [
    "RelayState",
    "N_RELAYS",
    "Project",
    "Preset",
    "Panel",
    "RelayController",
    "ControllerState",
]
