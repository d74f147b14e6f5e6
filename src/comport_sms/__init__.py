"""
通过串口GSM调制解调器发送短信
"""
from .common import enumerate_ports, list_serial_ports
from .sms_service import SMSSender, send_via_modem

__version__ = "1.0.0"

__all__ = [
    "enumerate_ports",
    "list_serial_ports",
    "send_via_modem",
    "SMSSender",
]
