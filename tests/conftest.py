"""
测试夹具 - 模拟串口和等待
"""
import pytest
import serial

from comport_sms.common.config import ConfigManager, SerialConfig, SessionTimings


class FakeSerial:
    """模拟串口，记录写入并返回预设响应"""

    def __init__(self, response: bytes = b"OK\r\n", fail_write_at: int = None,
                 fail_read: bool = False, **kwargs):
        self.kwargs = kwargs
        self.port = kwargs.get("port")
        self.baudrate = kwargs.get("baudrate")
        self.written: list[bytes] = []
        self.is_open = True
        self._response = response
        self._fail_write_at = fail_write_at
        self._fail_read = fail_read

    def write(self, data: bytes) -> int:
        if self._fail_write_at is not None and len(self.written) == self._fail_write_at:
            raise serial.SerialTimeoutException("Write timeout")
        self.written.append(data)
        return len(data)

    @property
    def in_waiting(self) -> int:
        if self._fail_read:
            raise serial.SerialException("device reports readiness to read but returned no data")
        return len(self._response)

    def read(self, size: int = 1) -> bytes:
        data, self._response = self._response[:size], self._response[size:]
        return data

    def close(self):
        self.is_open = False


class FakeModem:
    """串口工厂，保存创建的 FakeSerial"""

    def __init__(self, response: bytes = b"OK\r\n", open_error: Exception = None, **options):
        self.response = response
        self.open_error = open_error
        self.options = options
        self.ports: list[FakeSerial] = []

    def __call__(self, **kwargs) -> FakeSerial:
        if self.open_error is not None:
            raise self.open_error
        port = FakeSerial(response=self.response, **self.options, **kwargs)
        self.ports.append(port)
        return port

    @property
    def last(self) -> FakeSerial:
        return self.ports[-1]


class SleepRecorder:
    """记录等待时间，不真正等待"""

    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float):
        self.calls.append(seconds)


@pytest.fixture
def fake_modem():
    return FakeModem()


@pytest.fixture
def make_modem():
    return FakeModem


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def fast_config():
    return SerialConfig(timings=SessionTimings(
        probe_delay=0, text_mode_delay=0, notify_mode_delay=0,
        recipient_delay=0, transmit_wait=0
    ))


@pytest.fixture(autouse=True)
def reset_config_manager():
    ConfigManager._instance = None
    yield
    ConfigManager._instance = None
