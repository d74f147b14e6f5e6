"""
GSM调制解调器会话 - 通过AT命令（文本模式）发送单条短信
"""
import asyncio
import functools
import time
from concurrent.futures import Executor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
import serial
from loguru import logger

from ..common.config import SerialConfig, SessionTimings
from ..common.errors import (
    InvalidBaudRateError,
    InvalidRecipientError,
    ModemReportedError,
    PortOpenError,
    PortWriteError,
    SMSDriverError,
    WorkerDispatchError,
)

CRLF = "\r\n"
CTRL_Z = b"\x1a"
FORBIDDEN_RECIPIENT_CHARS = ('"', "\r", "\n", "\x1a")


class SessionStep(str, Enum):
    """会话步骤"""
    OPEN = "open"
    PROBE = "probe"
    TEXT_MODE = "text_mode"
    NOTIFY_MODE = "notify_mode"
    RECIPIENT = "recipient"
    SUBMIT = "submit"
    AWAIT = "await"
    READ = "read"
    CLOSED = "closed"


class ResponseVerdict(str, Enum):
    """最终响应分类"""
    SENT = "sent"
    MODEM_ERROR = "modem_error"
    NO_RESULT_CODE = "no_result_code"


@dataclass(frozen=True)
class Exchange:
    """一次写入记录"""
    step: SessionStep
    payload: bytes
    dwell: float


def classify_response(response: str) -> ResponseVerdict:
    """OK/+CMGS: 优先于 ERROR"""
    if "OK" in response or "+CMGS:" in response:
        return ResponseVerdict.SENT
    if "ERROR" in response:
        return ResponseVerdict.MODEM_ERROR
    return ResponseVerdict.NO_RESULT_CODE


def is_delivered(verdict: ResponseVerdict, assume_success: bool = True) -> bool:
    """
    判断短信是否发送成功

    没有任何结果码时按 assume_success 处理（默认乐观地视为成功），
    截断的读取或非英文结果码会因此被误判为成功。
    """
    if verdict is ResponseVerdict.SENT:
        return True
    if verdict is ResponseVerdict.MODEM_ERROR:
        return False
    return assume_success


def recipient_command(destination_number: str) -> str:
    """构造 AT+CMGS 命令，号码原样放在引号内"""
    if any(ch in destination_number for ch in FORBIDDEN_RECIPIENT_CHARS):
        raise InvalidRecipientError(f"号码包含非法字符: {destination_number!r}")
    return f'AT+CMGS="{destination_number}"'


class ModemSession:
    """
    单次发送的串口会话

    打开 -> AT -> AT+CMGF=1 -> AT+CNMI=2,2,0,0,0 -> AT+CMGS="号码"
    -> 正文+Ctrl-Z -> 等待 -> 读取响应 -> 关闭。
    每一步只依靠固定等待时间同步，不读取中间响应。
    """

    def __init__(self, port: str, baudrate: int = 9600, timeout: float = 30.0,
                 read_size: int = 256, timings: Optional[SessionTimings] = None,
                 serial_factory: Optional[Callable[..., serial.Serial]] = None,
                 sleep: Optional[Callable[[float], None]] = None):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.read_size = read_size
        self.timings = timings or SessionTimings()
        self._serial_factory = serial_factory or serial.Serial
        self._sleep = sleep or time.sleep
        self.serial: Optional[serial.Serial] = None
        self.step = SessionStep.OPEN
        self.exchanges: list[Exchange] = []
        self.response = ""

    def __enter__(self) -> "ModemSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def open(self):
        """打开串口，失败时不写入任何数据"""
        self.step = SessionStep.OPEN
        logger.info(f"📡 打开串口: {self.port} (波特率: {self.baudrate})")
        try:
            self.serial = self._serial_factory(
                port=self.port,
                baudrate=self.baudrate,
                timeout=self.timeout,
                write_timeout=self.timeout,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                exclusive=True
            )
        except (serial.SerialException, OSError, ValueError) as e:
            logger.error(f"❌ 串口打开失败 {self.port}: {e}")
            raise PortOpenError(self.port, str(e)) from e

    def close(self):
        """关闭串口"""
        if self.serial is None:
            return
        try:
            if self.serial.is_open:
                self.serial.close()
                logger.debug(f"关闭串口: {self.port}")
        except (serial.SerialException, OSError) as e:
            logger.warning(f"关闭串口失败 {self.port}: {e}")
        finally:
            self.serial = None
            self.step = SessionStep.CLOSED

    def _write(self, step: SessionStep, payload: bytes, dwell: float, label: str):
        """写入一段数据，然后等待 dwell 秒"""
        if self.serial is None:
            raise PortWriteError(label, "串口未打开")
        self.step = step
        logger.debug(f"发送AT命令: {label!r}")
        try:
            self.serial.write(payload)
        except (serial.SerialException, OSError) as e:
            logger.error(f"❌ 写入失败 {self.port} ({label}): {e}")
            raise PortWriteError(label, str(e)) from e
        self.exchanges.append(Exchange(step=step, payload=payload, dwell=dwell))
        if dwell:
            self._sleep(dwell)

    def _command(self, step: SessionStep, command: str, dwell: float):
        self._write(step, f"{command}{CRLF}".encode("utf-8"), dwell, command)

    def handshake(self, destination_number: str):
        """初始化调制解调器并指定收件人"""
        command = recipient_command(destination_number)
        self._command(SessionStep.PROBE, "AT", self.timings.probe_delay)
        self._command(SessionStep.TEXT_MODE, "AT+CMGF=1", self.timings.text_mode_delay)
        self._command(SessionStep.NOTIFY_MODE, "AT+CNMI=2,2,0,0,0", self.timings.notify_mode_delay)
        # 不等待 '>' 提示符
        self._command(SessionStep.RECIPIENT, command, self.timings.recipient_delay)

    def submit(self, message_body: str):
        """写入正文和 Ctrl-Z，然后等待网络发送"""
        payload = message_body.encode("utf-8") + CTRL_Z
        self._write(SessionStep.SUBMIT, payload, 0, "<正文>")
        self.step = SessionStep.AWAIT
        self._sleep(self.timings.transmit_wait)

    def read_response(self) -> str:
        """
        读取最终响应，读取失败按空响应处理

        只读取 transmit_wait 结束时已到达的数据，不等待串口超时。
        调制解调器超过 transmit_wait 才返回结果码时响应为空，
        严格模式 (assume_success_without_result_code=False) 下会被判为失败，
        这种情况应调大 transmit_wait。
        """
        self.step = SessionStep.READ
        data = b""
        try:
            waiting = self.serial.in_waiting
            if waiting:
                data = self.serial.read(min(waiting, self.read_size))
        except (serial.SerialException, OSError) as e:
            logger.warning(f"⚠️ 读取响应失败 {self.port}: {e}")
        self.response = data.decode("utf-8", errors="replace")
        logger.debug(f"AT响应: {self.response!r}")
        return self.response

    def send(self, destination_number: str, message_body: str) -> str:
        """执行完整流程并返回响应文本，串口在所有路径上都会关闭"""
        recipient_command(destination_number)
        with self:
            self.handshake(destination_number)
            self.submit(message_body)
            return self.read_response()


def run_session(session: ModemSession, destination_number: str, message_body: str,
                assume_success: bool = True) -> bool:
    """阻塞执行一次会话并解释响应"""
    response = session.send(destination_number, message_body)
    verdict = classify_response(response)
    if is_delivered(verdict, assume_success):
        if verdict is ResponseVerdict.NO_RESULT_CODE:
            logger.warning(f"⚠️ 未收到结果码，按成功处理: {session.port}")
        else:
            logger.info(f"✅ 短信发送成功: {destination_number} via {session.port}")
        return True
    raise ModemReportedError(response.strip() or "无响应")


async def send_via_modem(port_path: str, destination_number: str, message_body: str,
                         baud_rate: int = 9600, *, config: Optional[SerialConfig] = None,
                         executor: Optional[Executor] = None,
                         serial_factory: Optional[Callable[..., serial.Serial]] = None,
                         sleep: Optional[Callable[[float], None]] = None) -> bool:
    """
    通过串口调制解调器发送短信

    阻塞的串口操作在线程池中执行，调用方只在等待结果时挂起。

    Args:
        port_path: 串口路径，如 COM3 或 /dev/ttyUSB0
        destination_number: 收件人号码（原样使用）
        message_body: 短信内容
        baud_rate: 波特率
        config: 串口配置（超时、读取长度、等待时间、无结果码策略）
        executor: 执行阻塞操作的线程池，默认使用事件循环的默认线程池

    Returns:
        发送成功返回 True

    Raises:
        PortOpenError, PortWriteError, ModemReportedError,
        InvalidRecipientError, InvalidBaudRateError, WorkerDispatchError
    """
    if isinstance(baud_rate, bool) or not isinstance(baud_rate, int) or baud_rate <= 0:
        raise InvalidBaudRateError(baud_rate)

    config = config or SerialConfig()
    session = ModemSession(
        port=port_path,
        baudrate=baud_rate,
        timeout=config.timeout,
        read_size=config.read_size,
        timings=config.timings,
        serial_factory=serial_factory,
        sleep=sleep
    )
    job = functools.partial(
        run_session, session, destination_number, message_body,
        config.assume_success_without_result_code
    )

    try:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(executor, job)
    except SMSDriverError:
        raise
    except Exception as e:
        logger.error(f"💥 后台任务异常 {port_path}: {e}")
        raise WorkerDispatchError(str(e), e) from e
