import io
from pathlib import Path

import pytest

from tm2g29.cli import (
    FfbTestEffect,
    build_parser,
    discover_devices,
    generate_config,
    load_config,
    main,
)
from tm2g29.config import Config, InputConfig
from tm2g29.errors import ConfigError, HidError
from tm2g29.thrustmaster import HidDeviceInfo


class _FakeBackend:
    def __init__(self, devices):
        self.devices = devices

    def enumerate(self):
        return list(self.devices)


class _BrokenBackend:
    def enumerate(self):
        raise PermissionError("denied")


WHEEL = HidDeviceInfo(0x044F, 0x0004, "/dev/hidraw3", "Thrustmaster", "Wheel", None)
G29 = HidDeviceInfo(0x046D, 0xC24F, "/dev/hidraw4", "Logitech", "G29", None)
OTHER = HidDeviceInfo(0x046D, 0xC077, "/dev/hidraw5", "Logitech", "Mouse", None)


def test_parser_defaults():
    parser = build_parser()
    args = parser.parse_args(["test"])
    assert args.config == Path("config.toml")
    assert args.duration == 30
    assert args.verbose is False
    ffb = parser.parse_args(["ffb-test"])
    assert ffb.effect is FfbTestEffect.CONSTANT
    assert ffb.duration == 5


def test_parser_accepts_effect_and_flags():
    args = build_parser().parse_args(["-v", "-c", "x.toml", "ffb-test", "sine", "-d", "2"])
    assert args.effect is FfbTestEffect.SINE
    assert args.duration == 2
    assert args.verbose is True
    assert args.config == Path("x.toml")


def test_parser_rejects_unknown_effect():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["ffb-test", "wobble"])


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_load_config_missing_file_uses_defaults(tmp_path):
    assert load_config(tmp_path / "absent.toml") == Config()


def test_generate_then_load_round_trip(tmp_path, capsys):
    path = tmp_path / "config.toml"
    generate_config(path, False)
    assert path.exists()
    assert load_config(path) == Config()
    assert "Edit the configuration file" in capsys.readouterr().out


def test_generate_refuses_to_overwrite(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("keep", encoding="utf-8")
    with pytest.raises(ConfigError, match="already exists"):
        generate_config(path, False)
    assert path.read_text(encoding="utf-8") == "keep"
    generate_config(path, True)
    assert load_config(path) == Config()


def test_load_config_invalid_toml(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("this is = = not toml", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_discover_devices_sorts_by_kind(capsys):
    thrustmaster, g29 = discover_devices(_FakeBackend([WHEEL, G29, OTHER]), False)
    assert thrustmaster == [WHEEL]
    assert g29 == [G29]
    out = capsys.readouterr().out
    assert "Found 1 Thrustmaster device(s):" in out
    assert "VID:PID = 044F:0004" in out
    assert "Recommendation: Disconnect the G29" in out
    assert "Path:" not in out


def test_discover_devices_detailed(capsys):
    discover_devices(_FakeBackend([WHEEL]), True)
    out = capsys.readouterr().out
    assert "Path: /dev/hidraw3" in out
    assert "Manufacturer: 'Thrustmaster'" in out
    assert "Recommendation" not in out


def test_discover_devices_backend_failure():
    with pytest.raises(HidError):
        discover_devices(_BrokenBackend(), False)


def test_main_config_command(tmp_path):
    path = tmp_path / "config.toml"
    assert main(["-c", str(path), "config"]) == 0
    assert load_config(path) == Config()
    assert main(["-c", str(path), "config"]) == 1
    assert main(["-c", str(path), "config", "--force"]) == 0


def test_main_test_command_writes_log_file(tmp_path, capsys):
    log_path = tmp_path / "run.log"
    status = main(
        ["-c", str(tmp_path / "none.toml"), "--log-file", str(log_path), "test", "-d", "0"]
    )
    assert status == 0
    assert "Translation test would run here for 0 seconds" in capsys.readouterr().out
    assert "Translation test completed" in log_path.read_text(encoding="utf-8")


def test_main_ffb_test(tmp_path, capsys):
    assert main(["-c", str(tmp_path / "none.toml"), "ffb-test", "sine", "-d", "0"]) == 0
    out = capsys.readouterr().out
    assert "Effect: Sine" in out
    assert "Duration: 0 seconds" in out


def test_main_calibrate_default_has_no_clutch(tmp_path, capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("\n" * 6))
    assert main(["-c", str(tmp_path / "none.toml"), "calibrate"]) == 0
    out = capsys.readouterr().out
    assert "Steering calibration complete!" in out
    assert "Pedal calibration complete!" in out
    assert "clutch" not in out


def test_main_calibrate_with_clutch(tmp_path, capsys, monkeypatch):
    path = tmp_path / "config.toml"
    Config(input_config=InputConfig(button_mapping={b: b for b in range(17)})).save_to_file(path)
    monkeypatch.setattr("sys.stdin", io.StringIO("\n" * 4))
    assert main(["-c", str(path), "calibrate", "--skip-steering"]) == 0
    out = capsys.readouterr().out
    assert "4. Press clutch pedal fully and press Enter" in out
    assert "Steering Calibration" not in out


def test_main_reports_bad_config(tmp_path, capsys):
    path = tmp_path / "config.toml"
    path.write_text("[thrustmaster_config]\nvid = 1\n", encoding="utf-8")
    assert main(["-c", str(path), "test", "-d", "0"]) == 1
    assert "Error:" in capsys.readouterr().err