import pytest

from tm2g29.errors import InvalidReport
from tm2g29.reports import (
    G29InputReport,
    G29OutputReport,
    IforceCommand,
    ThrustmasterInputReport,
)


def test_from_bytes_parses_fields():
    report = ThrustmasterInputReport.from_bytes(bytes([0x34, 0x12, 10, 20, 30, 0x01, 0x80, 5]))
    assert report.steering == 0x1234
    assert (report.throttle, report.brake, report.clutch) == (10, 20, 30)
    assert report.buttons == 0x8001
    assert report.dpad == 5


def test_from_bytes_steering_is_signed():
    report = ThrustmasterInputReport.from_bytes(bytes([0x00, 0x80, 0, 0, 0, 0, 0, 8]))
    assert report.steering < 0
    assert report.steering == -0x8000


def test_from_bytes_masks_dpad_to_low_nibble():
    report = ThrustmasterInputReport.from_bytes(bytes([0, 0, 0, 0, 0, 0, 0, 0xF3]))
    assert report.dpad == 3


def test_from_bytes_ignores_trailing_bytes():
    data = bytes([1, 0, 2, 3, 4, 5, 0, 6])
    assert ThrustmasterInputReport.from_bytes(data + b"\xff\xff") == ThrustmasterInputReport.from_bytes(data)


def test_from_bytes_short_report_raises():
    with pytest.raises(InvalidReport, match="Input report too short: 5 bytes"):
        ThrustmasterInputReport.from_bytes(b"\x00" * 5)


def test_thrustmaster_report_rejects_out_of_range():
    with pytest.raises(ValueError):
        ThrustmasterInputReport(throttle=256)


def test_g29_defaults_are_centered():
    report = G29InputReport()
    assert report.report_id == 0x01
    assert report.steering == 0x8000
    assert report.unused == bytes(4)


def test_g29_to_bytes_layout():
    report = G29InputReport(steering=0xABCD, throttle=1023, brake=512, clutch=7, buttons=0x08000003)
    raw = report.to_bytes()
    assert len(raw) == 28
    assert raw[0] == 0x01
    assert raw[1:3] == report.steering.to_bytes(2, "little")
    assert raw[3:5] == report.throttle.to_bytes(2, "little")
    assert raw[5:7] == report.brake.to_bytes(2, "little")
    assert raw[7:9] == report.clutch.to_bytes(2, "little")
    assert raw[9:13] == report.buttons.to_bytes(4, "little")
    assert raw[13:] == bytes(15)


def test_g29_rejects_bad_unused_and_range():
    with pytest.raises(ValueError):
        G29InputReport(unused=b"\x00")
    with pytest.raises(ValueError):
        G29InputReport(steering=0x10000)


def test_output_report_and_command_store_bytes():
    out = G29OutputReport(0x01, [1, 2, 3])
    cmd = IforceCommand(0x41, [4, 5])
    assert out.data == bytes([1, 2, 3])
    assert cmd.data == bytes([4, 5])
    assert cmd.command_id == 0x41


def test_command_rejects_out_of_range_id():
    with pytest.raises(ValueError):
        IforceCommand(0x100)