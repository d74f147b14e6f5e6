"""
串口短信驱动的错误类型
"""
from typing import Optional


class SMSDriverError(Exception):
    """驱动错误基类，stage 标识失败所在阶段"""
    stage = "unknown"


class PortEnumerationError(SMSDriverError):
    """枚举串口失败"""
    stage = "port-enumeration"


class InvalidRecipientError(SMSDriverError, ValueError):
    """收件人号码会破坏 AT+CMGS 命令"""
    stage = "request"


class InvalidBaudRateError(SMSDriverError, ValueError):
    """波特率不是正整数"""
    stage = "request"

    def __init__(self, baud_rate):
        self.baud_rate = baud_rate
        super().__init__(f"波特率必须为正整数: {baud_rate!r}")


class PortOpenError(SMSDriverError):
    """打开串口失败"""
    stage = "port-open"

    def __init__(self, port: str, reason: str):
        self.port = port
        super().__init__(f"打开串口失败 {port}: {reason}")


class PortWriteError(SMSDriverError):
    """写入串口失败"""
    stage = "write"

    def __init__(self, command: str, reason: str):
        self.command = command
        super().__init__(f"写入失败 ({command}): {reason}")


class ModemReportedError(SMSDriverError):
    """调制解调器返回 ERROR"""
    stage = "modem-error"

    def __init__(self, response: str):
        self.response = response
        super().__init__(f"短信发送失败: {response}")


class WorkerDispatchError(SMSDriverError):
    """后台工作线程无法调度或异常退出"""
    stage = "task-failure"

    def __init__(self, reason: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(f"任务错误: {reason}")
