"""
串口枚举测试
"""
from types import SimpleNamespace

import pytest
import serial

from comport_sms.common.errors import PortEnumerationError
from comport_sms.common.port_enumerator import (
    PortDescriptor,
    TransportKind,
    classify_transport,
    enumerate_ports,
    list_serial_ports,
)


def port_info(device, vid=None, hwid="n/a", manufacturer=None, serial_number=None,
              product=None, **extra):
    return SimpleNamespace(device=device, vid=vid, pid=None, hwid=hwid,
                           manufacturer=manufacturer, serial_number=serial_number,
                           product=product, **extra)


USB_MODEM = port_info(
    "/dev/ttyUSB0", vid=0x12D1, hwid="USB VID:PID=12D1:1001 SER=ABC123",
    manufacturer="HUAWEI", serial_number="ABC123", product="Mobile Connect"
)
PCI_PORT = port_info("COM1", hwid="PCI\\VEN_8086&DEV_8C3D", manufacturer="Intel")
BT_PORT = port_info("COM7", hwid="BTHENUM\\{00001101-0000-1000-8000-00805F9B34FB}")
PLAIN_PORT = port_info("/dev/ttyS0", manufacturer="ignored")


class TestClassifyTransport:

    def test_usb(self):
        assert classify_transport(USB_MODEM) is TransportKind.USB

    def test_pci_from_hwid(self):
        assert classify_transport(PCI_PORT) is TransportKind.PCI

    def test_pci_from_subsystem(self):
        assert classify_transport(port_info("/dev/ttyS4", subsystem="pci")) is TransportKind.PCI

    def test_bluetooth_from_hwid(self):
        assert classify_transport(BT_PORT) is TransportKind.BLUETOOTH

    def test_bluetooth_from_device_name(self):
        assert classify_transport(port_info("/dev/rfcomm0")) is TransportKind.BLUETOOTH

    def test_unknown(self):
        assert classify_transport(PLAIN_PORT) is TransportKind.UNKNOWN


class TestEnumeratePorts:

    def test_no_ports_is_empty_list(self):
        assert enumerate_ports(lambda: []) == []

    def test_usb_metadata(self):
        [port] = enumerate_ports(lambda: [USB_MODEM])
        assert port == PortDescriptor(
            path="/dev/ttyUSB0",
            manufacturer="HUAWEI",
            serial_number="ABC123",
            product_id="Mobile Connect",
            transport_kind=TransportKind.USB,
        )

    def test_non_usb_has_no_metadata(self):
        pci, bt, plain = enumerate_ports(lambda: [PCI_PORT, BT_PORT, PLAIN_PORT])

        for port in (pci, bt, plain):
            assert port.manufacturer is None
            assert port.serial_number is None
            assert port.product_id is None
        assert pci.transport_kind is TransportKind.PCI
        assert bt.transport_kind is TransportKind.BLUETOOTH
        assert plain.transport_kind is TransportKind.UNKNOWN

    def test_order_preserved_without_dedup(self):
        ports = enumerate_ports(lambda: [PLAIN_PORT, USB_MODEM, PLAIN_PORT, PCI_PORT])
        assert [p.path for p in ports] == ["/dev/ttyS0", "/dev/ttyUSB0", "/dev/ttyS0", "COM1"]

    def test_os_failure_is_wrapped(self):
        def failing():
            raise OSError(5, "Input/output error")

        with pytest.raises(PortEnumerationError) as exc_info:
            enumerate_ports(failing)

        assert "Input/output error" in str(exc_info.value)
        assert exc_info.value.stage == "port-enumeration"
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_no_partial_results(self):
        def half_way():
            yield USB_MODEM
            raise serial.SerialException("device vanished")

        with pytest.raises(PortEnumerationError):
            enumerate_ports(half_way)

    def test_default_lister_is_pyserial(self, monkeypatch):
        monkeypatch.setattr("serial.tools.list_ports.comports", lambda: [USB_MODEM])
        assert [p.path for p in enumerate_ports()] == ["/dev/ttyUSB0"]

    def test_descriptor_is_frozen(self):
        [port] = enumerate_ports(lambda: [USB_MODEM])
        with pytest.raises(AttributeError):
            port.path = "/dev/ttyUSB1"


def test_list_serial_ports_shape():
    assert list_serial_ports(lambda: [USB_MODEM, BT_PORT]) == [
        {
            "path": "/dev/ttyUSB0",
            "manufacturer": "HUAWEI",
            "serial_number": "ABC123",
            "pnp_id": "Mobile Connect",
            "port_type": "USB",
        },
        {
            "path": "COM7",
            "manufacturer": None,
            "serial_number": None,
            "pnp_id": None,
            "port_type": "Bluetooth",
        },
    ]
