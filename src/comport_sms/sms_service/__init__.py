"""
串口短信发送服务
"""
from .modem_session import (
    ModemSession,
    ResponseVerdict,
    SessionStep,
    classify_response,
    is_delivered,
    send_via_modem,
)
from .sms_sender import SMSResult, SMSSender

__all__ = [
    "ModemSession",
    "ResponseVerdict",
    "SessionStep",
    "classify_response",
    "is_delivered",
    "send_via_modem",
    "SMSResult",
    "SMSSender",
]
