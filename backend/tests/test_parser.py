"""Tests for arp-scan output parsing and address validation."""
from datetime import datetime, timedelta, timezone
import logging

import pytest

from lanscan.scanner import ArpScanner, DiscoveredDevice
from lanscan.scanner import arp_scanner as arp_scanner_module


@pytest.fixture
def scanner():
    return ArpScanner()


class TestParseOutput:
    """Tests for turning tab-separated lines into devices."""

    def test_two_hosts_with_and_without_vendor(self, scanner):
        output = "192.168.1.1\t00:11:22:33:44:55\tAcme Inc\n192.168.1.2\taa-bb-cc-dd-ee-ff\n\n"

        devices = scanner._parse_output(output)

        assert [(d.ip, d.mac, d.vendor) for d in devices] == [
            ("192.168.1.1", "00:11:22:33:44:55", "Acme Inc"),
            ("192.168.1.2", "aa-bb-cc-dd-ee-ff", "Unknown"),
        ]

    def test_fields_are_trimmed_and_mac_lowercased(self, scanner):
        devices = scanner._parse_output(" 10.0.0.7 \t AA:BB:CC:0D:0E:0F \t  Raspberry Pi Trading Ltd  \n")

        assert len(devices) == 1
        assert devices[0].ip == "10.0.0.7"
        assert devices[0].mac == "aa:bb:cc:0d:0e:0f"
        assert devices[0].vendor == "Raspberry Pi Trading Ltd"

    def test_empty_vendor_field_defaults_to_unknown(self, scanner):
        devices = scanner._parse_output("10.0.0.7\taa:bb:cc:dd:ee:ff\t   \n")
        assert devices[0].vendor == "Unknown"

    def test_extra_fields_are_ignored(self, scanner):
        devices = scanner._parse_output("10.0.0.7\taa:bb:cc:dd:ee:ff\tVendor\t(DUP: 2)\n")
        assert devices[0].vendor == "Vendor"

    @pytest.mark.parametrize("line", [
        "999.1.1.1\t00:11:22:33:44:55\tBad IP",
        "192.168.1\t00:11:22:33:44:55\tShort IP",
        "192.168.1.256\t00:11:22:33:44:55\tOctet out of range",
        "fe80::1\t00:11:22:33:44:55\tIPv6",
        "192.168.1.3\t00:11:22:33:44\tShort MAC",
        "192.168.1.3\t00:11:22-33:44:55\tMixed separators",
        "192.168.1.3\t0011.2233.4455\tDotted MAC",
        "192.168.1.3\t00:11:22:33:44:gg\tNot hex",
    ])
    def test_invalid_lines_are_dropped(self, scanner, line):
        output = f"{line}\n192.168.1.9\t00:11:22:33:44:99\tGood\n"

        devices = scanner._parse_output(output)

        assert [d.ip for d in devices] == ["192.168.1.9"]

    def test_blank_and_whitespace_lines_never_raise(self, scanner):
        assert scanner._parse_output("") == []
        assert scanner._parse_output("\n\n   \n\t\n") == []

    def test_line_without_tab_is_skipped_with_warning(self, scanner, caplog):
        with caplog.at_level(logging.WARNING):
            devices = scanner._parse_output("Interface: eth0, type: EN10MB\n")

        assert devices == []
        assert any("malformed" in r.getMessage() for r in caplog.records)

    def test_invalid_device_is_logged(self, scanner, caplog):
        with caplog.at_level(logging.WARNING):
            scanner._parse_output("999.1.1.1\t00:11:22:33:44:55\tAcme\n")

        assert any("Invalid device data" in r.getMessage() for r in caplog.records)

    def test_each_line_gets_its_own_timestamp(self, scanner, monkeypatch):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        ticks = iter(base + timedelta(seconds=i) for i in range(10))
        monkeypatch.setattr(arp_scanner_module, "_utcnow", lambda: next(ticks))

        devices = scanner._parse_output(
            "10.0.0.1\taa:bb:cc:dd:ee:01\n10.0.0.2\taa:bb:cc:dd:ee:02\n"
        )

        assert devices[0].detected_at == base
        assert devices[1].detected_at == base + timedelta(seconds=1)

    def test_timestamps_are_utc(self, scanner):
        before = datetime.now(timezone.utc)
        device = scanner._parse_output("10.0.0.1\taa:bb:cc:dd:ee:01\n")[0]
        assert before <= device.detected_at <= datetime.now(timezone.utc)


class TestValidators:

    @pytest.mark.parametrize("ip", ["0.0.0.0", "10.0.0.1", "192.168.001.010", "255.255.255.255", "1.2.3.04"])
    def test_valid_ip(self, ip):
        assert ArpScanner._is_valid_ip(ip)

    @pytest.mark.parametrize("ip", ["", "1.2.3", "1.2.3.4.5", "256.1.1.1", "1.2.3.4\n", "a.b.c.d", "1.2.3.0004"])
    def test_invalid_ip(self, ip):
        assert not ArpScanner._is_valid_ip(ip)

    @pytest.mark.parametrize("mac", ["00:11:22:33:44:55", "aa-bb-cc-dd-ee-ff", "AA:BB:CC:DD:EE:FF"])
    def test_valid_mac(self, mac):
        assert ArpScanner._is_valid_mac(mac)

    @pytest.mark.parametrize("mac", ["", "00:11:22:33:44", "00:11:22:33:44:55:66", "00-11:22:33:44:55",
                                     "00:11:22:33:44-55", "001122334455", "00:11:22:33:44:55\n"])
    def test_invalid_mac(self, mac):
        assert not ArpScanner._is_valid_mac(mac)


def test_device_defaults():
    before = datetime.now(timezone.utc)
    device = DiscoveredDevice(ip="10.0.0.1", mac="aa:bb:cc:dd:ee:ff")

    assert device.vendor == "Unknown"
    assert before <= device.detected_at <= datetime.now(timezone.utc)
    assert not hasattr(device, "to_dict")
