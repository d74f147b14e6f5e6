"""
串口枚举器
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional
import serial
from serial.tools import list_ports
from loguru import logger

from .errors import PortEnumerationError


class TransportKind(str, Enum):
    """串口传输类型"""
    USB = "USB"
    PCI = "PCI"
    BLUETOOTH = "Bluetooth"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class PortDescriptor:
    """串口信息快照"""
    path: str
    manufacturer: Optional[str] = None
    serial_number: Optional[str] = None
    product_id: Optional[str] = None
    transport_kind: TransportKind = TransportKind.UNKNOWN

    def to_dict(self) -> dict:
        """端口选择列表使用的格式"""
        return {
            "path": self.path,
            "manufacturer": self.manufacturer,
            "serial_number": self.serial_number,
            "pnp_id": self.product_id,
            "port_type": self.transport_kind.value,
        }


def classify_transport(info) -> TransportKind:
    """根据 pyserial 的 ListPortInfo 判断传输类型"""
    if getattr(info, "vid", None) is not None:
        return TransportKind.USB

    hwid = (getattr(info, "hwid", None) or "").upper()
    subsystem = (getattr(info, "subsystem", None) or "").lower()
    device = (getattr(info, "device", None) or "").lower()

    if hwid.startswith("PCI") or subsystem == "pci":
        return TransportKind.PCI
    if "BTHENUM" in hwid or subsystem == "bluetooth" or "rfcomm" in device or "bluetooth" in device:
        return TransportKind.BLUETOOTH
    return TransportKind.UNKNOWN


def describe_port(info) -> PortDescriptor:
    """把一个 ListPortInfo 转成 PortDescriptor，只有USB设备带元数据"""
    kind = classify_transport(info)
    if kind is TransportKind.USB:
        return PortDescriptor(
            path=info.device,
            manufacturer=info.manufacturer,
            serial_number=info.serial_number,
            product_id=info.product,
            transport_kind=kind,
        )
    return PortDescriptor(path=info.device, transport_kind=kind)


def enumerate_ports(lister: Optional[Callable[[], Iterable]] = None) -> list[PortDescriptor]:
    """
    列出系统中的串口，保持系统返回的顺序

    Args:
        lister: 返回 ListPortInfo 序列的函数，默认 serial.tools.list_ports.comports

    Returns:
        串口列表，没有串口时为空列表

    Raises:
        PortEnumerationError: 系统层面枚举失败
    """
    lister = lister or list_ports.comports
    try:
        infos = list(lister())
    except (serial.SerialException, OSError) as e:
        logger.error(f"❌ 枚举串口失败: {e}")
        raise PortEnumerationError(f"枚举串口失败: {e}") from e

    ports = [describe_port(info) for info in infos]
    logger.debug(f"找到串口: {[p.path for p in ports]}")
    return ports


def list_serial_ports(lister: Optional[Callable[[], Iterable]] = None) -> list[dict]:
    """供界面选择使用的串口列表"""
    return [port.to_dict() for port in enumerate_ports(lister)]
