"""
R4D3B16 Relay Bank Controller
==============================
Event-driven control engine for a 16-channel Modbus RTU relay
board: manual toggling, bulk SET/GET, named presets, project
files and a realtime mode that pushes every toggle to the board.

Target Hardware: R4D3B16 16-channel relay module (RS-485)
I/O Interface:  Modbus RTU holding registers over a serial port
"""

__version__ = "1.0.0"
