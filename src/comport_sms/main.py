"""
串口短信命令行程序
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional
from loguru import logger

from .common.config import Config, ConfigManager, LogConfig, LogMode
from .common.errors import PortEnumerationError
from .common.port_enumerator import enumerate_ports
from .sms_service.sms_sender import SMSSender

DEFAULT_CONFIG_PATH = "config/sms.yaml"


def _setup_logging(log_config: LogConfig):
    """配置日志"""
    logger.remove()

    if log_config.mode in [LogMode.CONSOLE, LogMode.BOTH]:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                   "<level>{level: <8}</level> | "
                   "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                   "<level>{message}</level>",
            level=log_config.level.upper(),
            colorize=True
        )

    if log_config.mode in [LogMode.FILE, LogMode.BOTH] and log_config.file_path:
        log_file = Path(log_config.file_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(log_file),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
                   "{name}:{function}:{line} - {message}",
            level=log_config.level.upper(),
            rotation="1 day",
            retention="7 days",
            encoding=log_config.encoding
        )


async def _load_config(config_path: Optional[str]) -> Optional[Config]:
    """加载配置，未指定配置文件且默认文件不存在时使用默认配置"""
    manager = ConfigManager()
    path = Path(config_path or DEFAULT_CONFIG_PATH)

    if config_path is None and not path.exists():
        logger.warning(f"配置文件不存在，使用默认配置: {path}")
        return manager.load_defaults()

    if not await manager.load_config(path):
        return None
    return manager.get_config()


def _print_config(cfg: Config):
    """打印配置信息"""
    logger.debug("📋 串口配置:")
    logger.debug(f"   串口: {cfg.serial.port_path or '未配置'}")
    logger.debug(f"   波特率: {cfg.serial.baudrate}")
    logger.debug(f"   超时: {cfg.serial.timeout}s")
    logger.debug(f"   最少耗时: {cfg.serial.timings.minimum_duration:.1f}s")


def cmd_ports(args) -> int:
    """列出串口"""
    try:
        ports = enumerate_ports()
    except PortEnumerationError as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps([p.to_dict() for p in ports], ensure_ascii=False, indent=2))
        return 0

    if not ports:
        print("未找到串口")
        return 0

    for port in ports:
        details = " ".join(
            value for value in (port.manufacturer, port.product_id, port.serial_number) if value
        )
        print(f"{port.path}\t{port.transport_kind.value}\t{details}")
    return 0


async def cmd_send(args, cfg: Config) -> int:
    """发送一条短信"""
    async with SMSSender(cfg.serial, max_workers=cfg.worker.max_workers) as sender:
        result = await sender.send_sms(args.to, args.message, port=args.port, baud_rate=args.baud)

    if result.success:
        print(result.status_message)
        return 0
    print(result.status_message, file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="comport-sms", description="通过串口GSM调制解调器发送短信")
    parser.add_argument("--config", "-c", default=None,
                        help=f"配置文件路径 (默认: {DEFAULT_CONFIG_PATH})")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ports_parser = subparsers.add_parser("ports", help="列出可用串口")
    ports_parser.add_argument("--json", action="store_true", help="以JSON格式输出")

    send_parser = subparsers.add_parser("send", help="发送短信")
    send_parser.add_argument("--to", required=True, help="收件人号码")
    send_parser.add_argument("--message", "-m", required=True, help="短信内容")
    send_parser.add_argument("--port", "-p", default=None, help="串口路径，默认使用配置")
    send_parser.add_argument("--baud", "-b", type=int, default=None, help="波特率，默认使用配置")

    return parser


def main(argv=None) -> int:
    """主函数"""
    args = build_parser().parse_args(argv)

    cfg = asyncio.run(_load_config(args.config))
    if cfg is None:
        logger.error("❌ 配置加载失败")
        return 1

    _setup_logging(cfg.log)
    _print_config(cfg)

    if args.command == "ports":
        return cmd_ports(args)

    if args.baud is not None and args.baud <= 0:
        print("波特率必须为正整数", file=sys.stderr)
        return 1

    try:
        return asyncio.run(cmd_send(args, cfg))
    except KeyboardInterrupt:
        logger.info("程序被用户中断")
        return 1


if __name__ == "__main__":
    sys.exit(main())
