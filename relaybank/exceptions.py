"""
Relay Bank Exceptions
======================
Hierarchical exception structure shared by the drivers, the
project store and the controller. The controller catches every
RelayBankError at its event boundary and turns it into an error
indicator; nothing here is meant to escape a single event.
"""

from typing import Optional


class RelayBankError(Exception):
    """Base exception for all relay bank errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConnectError(RelayBankError):
    """The serial transport could not be opened."""

    def __init__(self, message: str, port: Optional[str] = None):
        self.port = port
        super().__init__(message)


class OperationTimeoutError(RelayBankError):
    """A register operation did not complete within its bound."""

    def __init__(self, message: str, address: Optional[int] = None):
        self.address = address
        super().__init__(message)


class DeviceError(RelayBankError):
    """The board answered with an exception or a malformed response."""

    def __init__(self, message: str, address: Optional[int] = None):
        self.address = address
        super().__init__(message)


class TransportError(DeviceError):
    """The link failed mid-operation (port vanished, write failed)."""


class ValidationError(RelayBankError):
    """A user-supplied field failed validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class PresetError(RelayBankError):
    """Invalid preset name or index."""


class PersistenceError(RelayBankError):
    """A project or preset file could not be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)
