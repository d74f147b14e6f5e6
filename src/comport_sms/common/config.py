"""
通用配置管理
"""
from pathlib import Path
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator
import yaml
from loguru import logger


class LogMode(str, Enum):
    """日志模式"""
    CONSOLE = "console"
    FILE = "file"
    BOTH = "both"


class SessionTimings(BaseModel):
    """握手各步骤之后的等待时间（秒）"""
    probe_delay: float = Field(default=0.5, ge=0)
    text_mode_delay: float = Field(default=0.5, ge=0)
    notify_mode_delay: float = Field(default=0.5, ge=0)
    recipient_delay: float = Field(default=1.0, ge=0)
    transmit_wait: float = Field(default=5.0, ge=0)

    @property
    def minimum_duration(self) -> float:
        """一次发送最少耗时"""
        return (self.probe_delay + self.text_mode_delay + self.notify_mode_delay
                + self.recipient_delay + self.transmit_wait)


class SerialConfig(BaseModel):
    """串口配置"""
    port_path: Optional[str] = Field(default=None)
    baudrate: int = Field(default=9600, gt=0)
    timeout: float = Field(default=30.0, gt=0)
    read_size: int = Field(default=256, gt=0)
    # 响应中既无 OK/+CMGS: 也无 ERROR 时是否视为成功；
    # 关闭后，结果码晚于 timings.transmit_wait 到达的发送会被判为失败
    assume_success_without_result_code: bool = Field(default=True)
    timings: SessionTimings = SessionTimings()

    @field_validator('port_path')
    @classmethod
    def validate_port_path(cls, v: Optional[str]) -> Optional[str]:
        """空字符串视为未配置"""
        if v is not None and not v.strip():
            return None
        return v


class WorkerConfig(BaseModel):
    """后台线程池配置"""
    max_workers: int = Field(default=4, ge=1, le=50)


class LogConfig(BaseModel):
    """日志配置"""
    mode: LogMode = Field(default=LogMode.CONSOLE)
    level: str = Field(default="INFO")
    encoding: str = Field(default="utf-8")
    file_path: Optional[str] = Field(default=None)


class Config(BaseModel):
    """主配置"""
    serial: SerialConfig = SerialConfig()
    worker: WorkerConfig = WorkerConfig()
    log: LogConfig = LogConfig()


class ConfigManager:
    """
    配置管理器 - 单例模式
    """
    _instance = None

    def __new__(cls):
        """实现单例模式"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._config = None
        return cls._instance

    async def load_config(self, config_path: Path) -> bool:
        """
        从YAML文件加载配置

        Args:
            config_path: 配置文件路径

        Returns:
            是否加载成功
        """
        try:
            if not config_path.exists():
                logger.error(f"配置文件不存在: {config_path}")
                return False

            with open(config_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}

            self._config = Config(**data)
            logger.info(f"配置加载成功: {config_path}")
            return True

        except Exception as e:
            logger.error(f"加载配置文件失败: {e}")
            return False

    def load_defaults(self) -> Config:
        """使用默认配置"""
        self._config = Config()
        return self._config

    def get_config(self) -> Config:
        """
        获取配置

        Returns:
            配置对象
        """
        if self._config is None:
            raise RuntimeError("配置未加载，请先调用load_config()")
        return self._config

    @property
    def serial_config(self) -> SerialConfig:
        """获取串口配置"""
        return self.get_config().serial

    @property
    def worker_config(self) -> WorkerConfig:
        """获取线程池配置"""
        return self.get_config().worker

    @property
    def log_config(self) -> LogConfig:
        """获取日志配置"""
        return self.get_config().log
