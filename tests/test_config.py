import pytest

from tm2g29.config import (
    AxisScaling,
    Config,
    CurveType,
    FfbConfig,
    G29Config,
    InputConfig,
    LoggingConfig,
    OutputConfig,
    PedalCurves,
    ThrustmasterConfig,
)
from tm2g29.errors import ConfigError


def test_thrustmaster_defaults():
    cfg = ThrustmasterConfig()
    assert (cfg.vid, cfg.pid) == (0x044F, 0x0004)
    assert cfg.serial_number is None
    assert cfg.exclusive_access is True


def test_g29_defaults():
    cfg = G29Config()
    assert (cfg.vid, cfg.pid) == (0x046D, 0xC24F)
    assert cfg.product_string == "G29 Driving Force Racing Wheel"
    assert cfg.manufacturer_string == "Logitech"
    assert cfg.use_custom_vid_pid is False


def test_input_defaults_map_first_fourteen_buttons_to_themselves():
    cfg = InputConfig()
    assert cfg.steering_range == 900
    assert cfg.steering_deadzone == 0.02
    assert sorted(cfg.button_mapping) == list(range(14))
    assert all(source == target for source, target in cfg.button_mapping.items())
    assert cfg.pedal_curves == PedalCurves(CurveType.linear(), CurveType.linear(), CurveType.linear())
    assert cfg.axis_scaling == AxisScaling(1.0, 1.0, 1.0, 1.0)


def test_ffb_output_and_logging_defaults():
    ffb = FfbConfig()
    assert ffb.enabled is True
    assert ffb.autocenter_gain == 0.2
    assert ffb.max_force == 2.5
    assert ffb.update_rate_hz == 1000
    assert OutputConfig() == OutputConfig(led_support=True, led_brightness=1.0)
    assert LoggingConfig().level == "info"


def test_default_instances_do_not_share_button_mapping():
    first, second = InputConfig(), InputConfig()
    first.button_mapping[20] = 3
    assert 20 not in second.button_mapping


def test_curve_constructors():
    assert CurveType.squared().kind == "Squared"
    assert CurveType.cubed().kind == "Cubed"
    custom = CurveType.custom([0, 0.5, 1])
    assert custom.kind == "Custom"
    assert custom.table == (0.0, 0.5, 1.0)


def test_empty_custom_curve_is_rejected():
    with pytest.raises(ConfigError):
        CurveType.custom([])


def test_unknown_curve_kind_is_rejected():
    with pytest.raises(ConfigError, match="unknown curve type"):
        CurveType("Quartic")


def test_to_dict_curve_forms():
    cfg = Config()
    cfg.input_config.pedal_curves.brake_curve = CurveType.custom([0.0, 0.25, 1.0])
    curves = cfg.to_dict()["input_config"]["pedal_curves"]
    assert curves["throttle_curve"] == "Linear"
    assert curves["brake_curve"] == {"Custom": [0.0, 0.25, 1.0]}


def test_to_dict_uses_string_button_keys_and_omits_none():
    data = Config().to_dict()
    assert data["input_config"]["button_mapping"]["13"] == 13
    assert "serial_number" not in data["thrustmaster_config"]
    assert "log_file_path" not in data["logging_config"]


def test_dict_round_trip():
    cfg = Config()
    cfg.thrustmaster_config.serial_number = "SN-PLACEHOLDER"
    cfg.input_config.pedal_curves.clutch_curve = CurveType.cubed()
    cfg.input_config.button_mapping = {0: 5, 7: 1}
    cfg.ffb_config.max_force = 4.0
    assert Config.from_dict(cfg.to_dict()) == cfg


def test_file_round_trip(tmp_path):
    path = tmp_path / "config.toml"
    cfg = Config()
    cfg.input_config.pedal_curves.throttle_curve = CurveType.custom([0.0, 0.1, 0.9, 1.0])
    cfg.logging_config.log_file_path = "translator.log"
    cfg.save_to_file(path)
    assert Config.load_from_file(path) == cfg
    assert 'product_string = "G29 Driving Force Racing Wheel"' in path.read_text()


def test_load_accepts_str_path(tmp_path):
    path = tmp_path / "config.toml"
    Config().save_to_file(str(path))
    assert Config.load_from_file(str(path)) == Config()


def test_missing_field_raises(tmp_path):
    data = Config().to_dict()
    del data["ffb_config"]["max_force"]
    with pytest.raises(ConfigError, match="max_force"):
        Config.from_dict(data)


def test_missing_section_raises():
    data = Config().to_dict()
    del data["g29_config"]
    with pytest.raises(ConfigError, match="g29_config"):
        Config.from_dict(data)


def test_out_of_range_vid_raises():
    data = Config().to_dict()
    data["thrustmaster_config"]["vid"] = 70000
    with pytest.raises(ConfigError, match="vid"):
        Config.from_dict(data)


def test_wrong_type_raises():
    data = Config().to_dict()
    data["ffb_config"]["enabled"] = "yes"
    with pytest.raises(ConfigError, match="enabled"):
        Config.from_dict(data)


def test_bad_button_key_raises():
    data = Config().to_dict()
    data["input_config"]["button_mapping"] = {"north": 1}
    with pytest.raises(ConfigError, match="button_mapping"):
        Config.from_dict(data)


def test_bad_curve_raises():
    data = Config().to_dict()
    data["input_config"]["pedal_curves"]["brake_curve"] = "Custom"
    with pytest.raises(ConfigError, match="brake_curve"):
        Config.from_dict(data)


def test_invalid_toml_raises_config_error(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[thrustmaster_config\nvid = ", encoding="utf-8")
    with pytest.raises(ConfigError):
        Config.load_from_file(path)


def test_missing_file_raises_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.load_from_file(tmp_path / "absent.toml")