"""
Modbus RTU Communication Driver
=================================
Talks to the R4D3B16 relay board over an RS-485 serial adapter
using pymodbus. Each ModbusSession owns its own serial client and
is closed as soon as the operation that opened it finishes; no
client is pooled or kept alive between operations.

Failures are translated into the relay bank exception hierarchy:

  - port cannot be opened            -> ConnectError
  - no answer within the op timeout  -> OperationTimeoutError
  - slave exception / short response -> DeviceError
  - link broke mid-operation         -> TransportError
"""

import logging
from typing import List, Optional

from pymodbus.client import ModbusSerialClient
from pymodbus.exceptions import ModbusException, ModbusIOException
from serial.tools import list_ports

from relaybank.config.settings import LinkSettings
from relaybank.exceptions import (
    ConnectError, DeviceError, OperationTimeoutError, TransportError,
)

logger = logging.getLogger(__name__)


class ModbusSession:
    """
    One Modbus RTU link to one slave.

    Wraps a pymodbus serial client built with retries disabled, so
    every register call is a single attempt bounded by the
    operation timeout. The client has one timeout for opening the
    port and for every response; it is always the operation timeout.
    """

    def __init__(
        self,
        port: str,
        slave_id: int,
        settings: Optional[LinkSettings] = None,
    ):
        self.port = port
        self.slave_id = slave_id
        self.settings = settings or LinkSettings()
        self._connected = False
        self._client = ModbusSerialClient(
            port=port,
            baudrate=self.settings.baudrate,
            bytesize=self.settings.bytesize,
            parity=self.settings.parity,
            stopbits=self.settings.stopbits,
            timeout=self.settings.op_timeout_sec,
            retries=0,
        )

    @property
    def is_connected(self) -> bool:
        return self._connected

    def open(self) -> "ModbusSession":
        """Open the serial port, raising ConnectError on failure."""
        try:
            self._connected = bool(self._client.connect())
        except (ModbusException, OSError) as exc:
            self._client.close()
            raise ConnectError(
                f"Cannot open {self.port}: {exc}", port=self.port
            ) from exc
        if not self._connected:
            self._client.close()
            raise ConnectError(f"Cannot open {self.port}", port=self.port)
        logger.info(
            "Modbus RTU connected on %s (slave %d, %d baud)",
            self.port, self.slave_id, self.settings.baudrate,
        )
        return self

    def close(self):
        """Close the serial port."""
        self._client.close()
        if self._connected:
            logger.info("Modbus RTU disconnected from %s", self.port)
        self._connected = False

    def __enter__(self) -> "ModbusSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def write_register(self, address: int, value: int):
        """Write a single holding register."""
        self._require_open()
        try:
            result = self._client.write_register(
                address, value, device_id=self.slave_id
            )
        except ModbusIOException as exc:
            raise OperationTimeoutError(
                f"No answer writing register {address} on {self.port}",
                address=address,
            ) from exc
        except (ModbusException, OSError) as exc:
            raise TransportError(
                f"Link error writing register {address}: {exc}",
                address=address,
            ) from exc
        if result.isError():
            raise DeviceError(
                f"Board rejected write of 0x{value:04X} to register {address}: {result}",
                address=address,
            )
        logger.debug("Wrote 0x%04X to register %d", value, address)

    def read_registers(self, start: int, count: int) -> List[int]:
        """Read a block of holding registers."""
        self._require_open()
        try:
            result = self._client.read_holding_registers(
                start, count=count, device_id=self.slave_id
            )
        except ModbusIOException as exc:
            raise OperationTimeoutError(
                f"No answer reading {count} registers at {start} on {self.port}",
                address=start,
            ) from exc
        except (ModbusException, OSError) as exc:
            raise TransportError(
                f"Link error reading registers at {start}: {exc}",
                address=start,
            ) from exc
        if result.isError():
            raise DeviceError(
                f"Board rejected read at register {start}: {result}",
                address=start,
            )
        registers = list(result.registers[:count])
        if len(registers) != count:
            raise DeviceError(
                f"Short read at register {start}: {len(registers)} of {count}",
                address=start,
            )
        return registers

    def _require_open(self):
        if not self._connected:
            raise TransportError(f"Session on {self.port} is not open")


def open_session(
    port: str,
    slave_id: int,
    settings: Optional[LinkSettings] = None,
) -> ModbusSession:
    """Open a Modbus RTU session to `slave_id` on `port`."""
    return ModbusSession(port, slave_id, settings).open()


def available_ports() -> List[str]:
    """Device names of every serial port on this machine."""
    return sorted(p.device for p in list_ports.comports())
