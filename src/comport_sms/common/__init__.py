"""
Common modules for COM port SMS
"""

from .config import ConfigManager, Config, SerialConfig, SessionTimings
from .errors import (
    SMSDriverError,
    PortEnumerationError,
    InvalidRecipientError,
    InvalidBaudRateError,
    PortOpenError,
    PortWriteError,
    ModemReportedError,
    WorkerDispatchError,
)
from .port_enumerator import PortDescriptor, TransportKind, enumerate_ports, list_serial_ports

__all__ = [
    "ConfigManager",
    "Config",
    "SerialConfig",
    "SessionTimings",
    "SMSDriverError",
    "PortEnumerationError",
    "InvalidRecipientError",
    "InvalidBaudRateError",
    "PortOpenError",
    "PortWriteError",
    "ModemReportedError",
    "WorkerDispatchError",
    "PortDescriptor",
    "TransportKind",
    "enumerate_ports",
    "list_serial_ports",
]
