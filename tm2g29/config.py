"""Translator configuration and its TOML representation."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from .errors import ConfigError

_CURVE_KINDS = ("Linear", "Squared", "Cubed", "Custom")


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_u8(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= 0xFF


@dataclass(frozen=True)
class CurveType:
    """Response curve applied to a pedal axis; custom curves use a lookup table."""

    kind: str = "Linear"
    table: tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if self.kind not in _CURVE_KINDS:
            raise ConfigError(f"unknown curve type: {self.kind!r}")
        if self.kind == "Custom":
            if not self.table:
                raise ConfigError("custom curve needs at least one point")
            if not all(_is_number(v) for v in self.table):
                raise ConfigError("custom curve points must be numbers")
            object.__setattr__(self, "table", tuple(float(v) for v in self.table))
        elif self.table:
            raise ConfigError(f"{self.kind} curve takes no lookup table")

    @classmethod
    def linear(cls) -> CurveType:
        return cls("Linear")

    @classmethod
    def squared(cls) -> CurveType:
        return cls("Squared")

    @classmethod
    def cubed(cls) -> CurveType:
        return cls("Cubed")

    @classmethod
    def custom(cls, table) -> CurveType:
        return cls("Custom", tuple(table))

    def _to_toml(self) -> Any:
        if self.kind == "Custom":
            return {"Custom": list(self.table)}
        return self.kind

    @classmethod
    def _from_toml(cls, value: Any, where: str) -> CurveType:
        if isinstance(value, str) and value in _CURVE_KINDS and value != "Custom":
            return cls(value)
        if isinstance(value, dict) and set(value) == {"Custom"}:
            table = value["Custom"]
            if isinstance(table, list):
                return cls.custom(table)
        raise ConfigError(f"invalid curve in {where}: {value!r}")


class _Reader:
    """Typed access to one table of a configuration document."""

    def __init__(self, data: Any, section: str) -> None:
        if not isinstance(data, dict):
            raise ConfigError(f"{section} must be a table")
        self.data = data
        self.section = section

    def _get(self, key: str) -> Any:
        try:
            return self.data[key]
        except KeyError:
            raise ConfigError(f"missing field `{key}` in {self.section}") from None

    def _bad(self, key: str, expected: str) -> ConfigError:
        return ConfigError(f"{self.section}.{key} must be {expected}")

    def uint(self, key: str, bits: int) -> int:
        value = self._get(key)
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 1 << bits:
            raise self._bad(key, f"an integer from 0 to {(1 << bits) - 1}")
        return value

    def number(self, key: str) -> float:
        value = self._get(key)
        if not _is_number(value):
            raise self._bad(key, "a number")
        return float(value)

    def flag(self, key: str) -> bool:
        value = self._get(key)
        if not isinstance(value, bool):
            raise self._bad(key, "a boolean")
        return value

    def text(self, key: str) -> str:
        value = self._get(key)
        if not isinstance(value, str):
            raise self._bad(key, "a string")
        return value

    def optional_text(self, key: str) -> str | None:
        value = self.data.get(key)
        if value is not None and not isinstance(value, str):
            raise self._bad(key, "a string")
        return value

    def table(self, key: str) -> _Reader:
        return _Reader(self._get(key), f"{self.section}.{key}")

    def curve(self, key: str) -> CurveType:
        return CurveType._from_toml(self._get(key), f"{self.section}.{key}")

    def button_map(self, key: str) -> dict[int, int]:
        raw = self._get(key)
        if not isinstance(raw, dict):
            raise self._bad(key, "a table")
        mapping: dict[int, int] = {}
        for source, target in raw.items():
            try:
                button = int(source) if isinstance(source, str) else source
            except ValueError:
                raise self._bad(key, "keyed by button numbers") from None
            if not _is_u8(button) or not _is_u8(target):
                raise self._bad(key, "a map of button numbers from 0 to 255")
            mapping[button] = target
        return mapping


def _without_none(values: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


@dataclass
class ThrustmasterConfig:
    """Which physical wheel to open and how."""

    vid: int = 0x044F
    pid: int = 0x0004
    serial_number: str | None = None
    exclusive_access: bool = True

    def _to_toml(self) -> dict[str, Any]:
        return _without_none(
            {
                "vid": self.vid,
                "pid": self.pid,
                "serial_number": self.serial_number,
                "exclusive_access": self.exclusive_access,
            }
        )

    @classmethod
    def _from_toml(cls, r: _Reader) -> ThrustmasterConfig:
        return cls(
            vid=r.uint("vid", 16),
            pid=r.uint("pid", 16),
            serial_number=r.optional_text("serial_number"),
            exclusive_access=r.flag("exclusive_access"),
        )


@dataclass
class G29Config:
    """Identity presented by the virtual wheel."""

    vid: int = 0x046D
    pid: int = 0xC24F
    product_string: str = "G29 Driving Force Racing Wheel"
    manufacturer_string: str = "Logitech"
    serial_number: str = "TM2G29001"
    use_custom_vid_pid: bool = False

    def _to_toml(self) -> dict[str, Any]:
        return {
            "vid": self.vid,
            "pid": self.pid,
            "product_string": self.product_string,
            "manufacturer_string": self.manufacturer_string,
            "serial_number": self.serial_number,
            "use_custom_vid_pid": self.use_custom_vid_pid,
        }

    @classmethod
    def _from_toml(cls, r: _Reader) -> G29Config:
        return cls(
            vid=r.uint("vid", 16),
            pid=r.uint("pid", 16),
            product_string=r.text("product_string"),
            manufacturer_string=r.text("manufacturer_string"),
            serial_number=r.text("serial_number"),
            use_custom_vid_pid=r.flag("use_custom_vid_pid"),
        )


@dataclass
class PedalCurves:
    """Response curve for each pedal."""

    throttle_curve: CurveType = field(default_factory=CurveType.linear)
    brake_curve: CurveType = field(default_factory=CurveType.linear)
    clutch_curve: CurveType = field(default_factory=CurveType.linear)

    def _to_toml(self) -> dict[str, Any]:
        return {
            "throttle_curve": self.throttle_curve._to_toml(),
            "brake_curve": self.brake_curve._to_toml(),
            "clutch_curve": self.clutch_curve._to_toml(),
        }

    @classmethod
    def _from_toml(cls, r: _Reader) -> PedalCurves:
        return cls(
            throttle_curve=r.curve("throttle_curve"),
            brake_curve=r.curve("brake_curve"),
            clutch_curve=r.curve("clutch_curve"),
        )


@dataclass
class AxisScaling:
    """Multipliers applied to each axis after curves."""

    steering_multiplier: float = 1.0
    throttle_multiplier: float = 1.0
    brake_multiplier: float = 1.0
    clutch_multiplier: float = 1.0

    def _to_toml(self) -> dict[str, Any]:
        return {
            "steering_multiplier": self.steering_multiplier,
            "throttle_multiplier": self.throttle_multiplier,
            "brake_multiplier": self.brake_multiplier,
            "clutch_multiplier": self.clutch_multiplier,
        }

    @classmethod
    def _from_toml(cls, r: _Reader) -> AxisScaling:
        return cls(
            steering_multiplier=r.number("steering_multiplier"),
            throttle_multiplier=r.number("throttle_multiplier"),
            brake_multiplier=r.number("brake_multiplier"),
            clutch_multiplier=r.number("clutch_multiplier"),
        )


def _identity_buttons() -> dict[int, int]:
    return {button: button for button in range(14)}


@dataclass
class InputConfig:
    """How wheel input is shaped before it reaches the virtual device."""

    steering_range: int = 900
    steering_deadzone: float = 0.02
    pedal_curves: PedalCurves = field(default_factory=PedalCurves)
    button_mapping: dict[int, int] = field(default_factory=_identity_buttons)
    axis_scaling: AxisScaling = field(default_factory=AxisScaling)

    def _to_toml(self) -> dict[str, Any]:
        return {
            "steering_range": self.steering_range,
            "steering_deadzone": self.steering_deadzone,
            "pedal_curves": self.pedal_curves._to_toml(),
            "button_mapping": {
                str(source): target for source, target in sorted(self.button_mapping.items())
            },
            "axis_scaling": self.axis_scaling._to_toml(),
        }

    @classmethod
    def _from_toml(cls, r: _Reader) -> InputConfig:
        return cls(
            steering_range=r.uint("steering_range", 16),
            steering_deadzone=r.number("steering_deadzone"),
            pedal_curves=PedalCurves._from_toml(r.table("pedal_curves")),
            button_mapping=r.button_map("button_mapping"),
            axis_scaling=AxisScaling._from_toml(r.table("axis_scaling")),
        )


@dataclass
class OutputConfig:
    """Settings for output features such as LEDs."""

    led_support: bool = True
    led_brightness: float = 1.0

    def _to_toml(self) -> dict[str, Any]:
        return {"led_support": self.led_support, "led_brightness": self.led_brightness}

    @classmethod
    def _from_toml(cls, r: _Reader) -> OutputConfig:
        return cls(led_support=r.flag("led_support"), led_brightness=r.number("led_brightness"))


@dataclass
class FfbConfig:
    """Force-feedback gains and limits."""

    enabled: bool = True
    global_gain: float = 1.0
    spring_gain: float = 1.0
    damper_gain: float = 1.0
    friction_gain: float = 1.0
    constant_gain: float = 1.0
    periodic_gain: float = 1.0
    ramp_gain: float = 1.0
    autocenter_gain: float = 0.2
    max_force: float = 2.5
    update_rate_hz: int = 1000

    _GAINS = (
        "global_gain",
        "spring_gain",
        "damper_gain",
        "friction_gain",
        "constant_gain",
        "periodic_gain",
        "ramp_gain",
        "autocenter_gain",
        "max_force",
    )

    def _to_toml(self) -> dict[str, Any]:
        values: dict[str, Any] = {"enabled": self.enabled}
        values.update({name: getattr(self, name) for name in self._GAINS})
        values["update_rate_hz"] = self.update_rate_hz
        return values

    @classmethod
    def _from_toml(cls, r: _Reader) -> FfbConfig:
        return cls(
            enabled=r.flag("enabled"),
            **{name: r.number(name) for name in cls._GAINS},
            update_rate_hz=r.uint("update_rate_hz", 32),
        )


@dataclass
class LoggingConfig:
    """Logging options."""

    level: str = "info"
    log_to_file: bool = False
    log_file_path: str | None = None
    log_hid_reports: bool = False
    log_ffb_commands: bool = False

    def _to_toml(self) -> dict[str, Any]:
        return _without_none(
            {
                "level": self.level,
                "log_to_file": self.log_to_file,
                "log_file_path": self.log_file_path,
                "log_hid_reports": self.log_hid_reports,
                "log_ffb_commands": self.log_ffb_commands,
            }
        )

    @classmethod
    def _from_toml(cls, r: _Reader) -> LoggingConfig:
        return cls(
            level=r.text("level"),
            log_to_file=r.flag("log_to_file"),
            log_file_path=r.optional_text("log_file_path"),
            log_hid_reports=r.flag("log_hid_reports"),
            log_ffb_commands=r.flag("log_ffb_commands"),
        )


_SECTIONS = {
    "thrustmaster_config": ThrustmasterConfig,
    "g29_config": G29Config,
    "input_config": InputConfig,
    "output_config": OutputConfig,
    "ffb_config": FfbConfig,
    "logging_config": LoggingConfig,
}


@dataclass
class Config:
    """Complete translator configuration."""

    thrustmaster_config: ThrustmasterConfig = field(default_factory=ThrustmasterConfig)
    g29_config: G29Config = field(default_factory=G29Config)
    input_config: InputConfig = field(default_factory=InputConfig)
    output_config: OutputConfig = field(default_factory=OutputConfig)
    ffb_config: FfbConfig = field(default_factory=FfbConfig)
    logging_config: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> dict[str, Any]:
        """Return the configuration as a TOML-ready nested dictionary."""
        return {name: getattr(self, name)._to_toml() for name in _SECTIONS}

    @classmethod
    def from_dict(cls, data) -> Config:
        """Build a configuration from a nested dictionary; every field is required."""
        reader = _Reader(data, "config")
        return cls(
            **{name: section._from_toml(reader.table(name)) for name, section in _SECTIONS.items()}
        )

    @classmethod
    def load_from_file(cls, path) -> Config:
        """Read a configuration from a TOML file."""
        text = Path(path).read_text(encoding="utf-8")
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML in {path}: {exc}") from exc
        return cls.from_dict(data)

    def save_to_file(self, path) -> None:
        """Write the configuration to a TOML file."""
        Path(path).write_text(tomli_w.dumps(self.to_dict()), encoding="utf-8")