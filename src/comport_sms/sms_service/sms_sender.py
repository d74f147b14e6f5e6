"""
SMS短信发送器 - 按配置的串口发送短信，结果统一为 SMSResult
"""
import time
import uuid
from concurrent import futures
from dataclasses import dataclass, field
from typing import Optional
from loguru import logger

from ..common.config import ConfigManager, SerialConfig
from ..common.errors import ModemReportedError, SMSDriverError
from .modem_session import send_via_modem


@dataclass
class SMSResult:
    """短信发送结果"""
    message_id: str
    success: bool
    status_message: str
    port: Optional[str] = None
    stage: Optional[str] = None
    raw_response: str = ""
    elapsed: float = 0.0
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        """{success, error} 格式"""
        data = {"success": self.success}
        if not self.success:
            data["error"] = self.status_message
        return data


class SMSSender:
    """短信发送器 - 每次发送独立打开和关闭串口，不抛出异常"""

    def __init__(self, serial_config: SerialConfig, max_workers: int = 4, **session_options):
        self.serial_config = serial_config
        self.max_workers = max_workers
        self._session_options = session_options
        self._executor: Optional[futures.ThreadPoolExecutor] = None

    @classmethod
    def from_config_manager(cls, config_manager: ConfigManager, **session_options) -> "SMSSender":
        """从配置管理器创建"""
        return cls(
            config_manager.serial_config,
            max_workers=config_manager.worker_config.max_workers,
            **session_options
        )

    @property
    def executor(self) -> futures.ThreadPoolExecutor:
        if self._executor is None:
            self._executor = futures.ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="comport-sms"
            )
        return self._executor

    async def send_sms(self, phone_number: str, content: str, port: Optional[str] = None,
                       baud_rate: Optional[int] = None) -> SMSResult:
        """
        发送短信

        Args:
            phone_number: 手机号码
            content: 短信内容
            port: 串口路径，默认使用配置中的 port_path
            baud_rate: 波特率，默认使用配置中的 baudrate

        Returns:
            发送结果
        """
        message_id = str(uuid.uuid4())
        port = port or self.serial_config.port_path
        if baud_rate is None:
            baud_rate = self.serial_config.baudrate

        if not port:
            logger.error("❌ 未配置串口")
            return SMSResult(
                message_id=message_id,
                success=False,
                status_message="硬件短信需要配置串口路径",
                stage="request"
            )

        logger.info(f"📱 发送短信到: {phone_number} via {port}")
        logger.info(f"📄 内容长度: {len(content)} 字符")
        start_time = time.time()

        try:
            await send_via_modem(
                port, phone_number, content, baud_rate,
                config=self.serial_config,
                executor=self.executor,
                **self._session_options
            )
        except ModemReportedError as e:
            elapsed = time.time() - start_time
            logger.error(f"❌ 短信发送失败: {phone_number} - {e}")
            return SMSResult(
                message_id=message_id,
                success=False,
                status_message=str(e),
                port=port,
                stage=e.stage,
                raw_response=e.response,
                elapsed=round(elapsed, 2)
            )
        except SMSDriverError as e:
            elapsed = time.time() - start_time
            logger.error(f"❌ 短信发送失败 [{e.stage}]: {phone_number} - {e}")
            return SMSResult(
                message_id=message_id,
                success=False,
                status_message=str(e),
                port=port,
                stage=e.stage,
                elapsed=round(elapsed, 2)
            )

        elapsed = time.time() - start_time
        logger.info(f"✅ 短信发送成功: {phone_number} via {port} ({elapsed:.2f}s)")
        return SMSResult(
            message_id=message_id,
            success=True,
            status_message="短信发送成功",
            port=port,
            elapsed=round(elapsed, 2)
        )

    def close(self):
        """关闭线程池"""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "SMSSender":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    async def __aenter__(self) -> "SMSSender":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()
        return False
