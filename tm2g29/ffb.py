"""Force-feedback effects and their translation into IFORCE commands."""

from __future__ import annotations

import dataclasses
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .config import FfbConfig
from .errors import FfbError
from .reports import IforceCommand

_FORCE_LIMIT = 32767.0
_BASELINE_FORCE_N = 2.5

CONSTANT_COMMAND = 0x41
PERIODIC_COMMAND = 0x42
CONDITION_COMMAND = 0x43
RAMP_COMMAND = 0x44


def _require(name: str, value: int, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise ValueError(f"{name} must be an integer from {low} to {high}, got {value!r}")


def _saturate(value: float, low: int, high: int) -> int:
    """Truncate a float towards zero into [low, high]; NaN becomes zero."""
    if math.isnan(value):
        return 0
    return int(min(max(value, float(low)), float(high)))


def _wrap_i16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def _le16(value: int) -> bytes:
    """Little-endian 16-bit encoding; negative values use two's complement."""
    return (value & 0xFFFF).to_bytes(2, "little")


class Waveform(Enum):
    """Periodic waveform; the value is its IFORCE waveform id."""

    SINE = 0x01
    SQUARE = 0x02
    TRIANGLE = 0x03
    SAWTOOTH_UP = 0x04
    SAWTOOTH_DOWN = 0x05


class ConditionType(Enum):
    """Condition effect kind; the value is its IFORCE condition id."""

    SPRING = 0x01
    DAMPER = 0x02
    INERTIA = 0x03
    FRICTION = 0x04


@dataclass(frozen=True)
class ConstantEffect:
    """Constant force; a duration of 0 ms plays until replaced."""

    magnitude: int
    duration: int = 0

    def __post_init__(self) -> None:
        _require("magnitude", self.magnitude, -0x8000, 0x7FFF)
        _require("duration", self.duration, 0, 0xFFFF)


@dataclass(frozen=True)
class PeriodicEffect:
    """Periodic force with period in milliseconds and phase in degrees."""

    magnitude: int
    period: int
    phase: int
    waveform: Waveform

    def __post_init__(self) -> None:
        for name in ("magnitude", "period", "phase"):
            _require(name, getattr(self, name), 0, 0xFFFF)
        if not isinstance(self.waveform, Waveform):
            raise ValueError(f"waveform must be a Waveform, got {self.waveform!r}")


@dataclass(frozen=True)
class ConditionEffect:
    """Position- or velocity-dependent condition such as a spring."""

    positive_coefficient: int
    negative_coefficient: int
    condition_type: ConditionType

    def __post_init__(self) -> None:
        _require("positive_coefficient", self.positive_coefficient, -0x8000, 0x7FFF)
        _require("negative_coefficient", self.negative_coefficient, -0x8000, 0x7FFF)
        if not isinstance(self.condition_type, ConditionType):
            raise ValueError(f"condition_type must be a ConditionType, got {self.condition_type!r}")


@dataclass(frozen=True)
class RampEffect:
    """Force that moves linearly from a start to an end magnitude."""

    start_magnitude: int
    end_magnitude: int
    duration: int

    def __post_init__(self) -> None:
        _require("start_magnitude", self.start_magnitude, -0x8000, 0x7FFF)
        _require("end_magnitude", self.end_magnitude, -0x8000, 0x7FFF)
        _require("duration", self.duration, 0, 0xFFFF)


_EFFECT_TYPES = (ConstantEffect, PeriodicEffect, ConditionEffect, RampEffect)


@dataclass(frozen=True)
class FfbEffect:
    """An effect sent by a game, addressed by its effect block index."""

    id: int
    effect_type: ConstantEffect | PeriodicEffect | ConditionEffect | RampEffect
    gain: int = 255

    def __post_init__(self) -> None:
        _require("id", self.id, 0, 0xFF)
        _require("gain", self.gain, 0, 0xFF)
        if not isinstance(self.effect_type, _EFFECT_TYPES):
            raise ValueError(f"unsupported effect parameters: {self.effect_type!r}")


@dataclass
class _ActiveEffect:
    effect: FfbEffect
    start_time: float
    enabled: bool = True

    def expired(self, now: float) -> bool:
        params = self.effect.effect_type
        if isinstance(params, ConstantEffect) and params.duration > 0:
            return (now - self.start_time) * 1000.0 >= params.duration
        return False


class FfbEngine:
    """Translates G29 effects into IFORCE commands and tracks running effects."""

    def __init__(self, config: FfbConfig, clock: Callable[[], float] = time.monotonic) -> None:
        self.config = dataclasses.replace(config)
        self._clock = clock
        self._active: dict[int, _ActiveEffect] = {}
        self._last_update = clock()

    def translate_effect(self, effect: FfbEffect) -> list[IforceCommand]:
        """Record the effect as active and return the commands that start it."""
        if not self.config.enabled:
            return []
        self._active[effect.id] = _ActiveEffect(effect, self._clock())
        match effect.effect_type:
            case ConstantEffect() as params:
                return [self._constant(effect.id, params)]
            case PeriodicEffect() as params:
                return [self._periodic(effect.id, params)]
            case ConditionEffect() as params:
                return [self._condition(effect.id, params)]
            case RampEffect() as params:
                return [self._ramp(effect.id, params)]
        raise FfbError(f"unsupported effect parameters: {effect.effect_type!r}")

    def update_active_effects(self) -> list[IforceCommand]:
        """Drop expired timed effects, at most once per update interval.

        Running effects are played by the wheel itself, so no refresh
        commands are produced.
        """
        rate = self.config.update_rate_hz
        if rate <= 0:
            raise FfbError("update rate must be positive")
        now = self._clock()
        if (now - self._last_update) * 1000.0 < 1000 // rate:
            return []
        self._active = {
            effect_id: active
            for effect_id, active in self._active.items()
            if not active.expired(now)
        }
        self._last_update = now
        return []

    def active_effect_ids(self) -> list[int]:
        """Ids of the effects currently active, in ascending order."""
        return sorted(self._active)

    def _apply_gain(self, value: int, gain: float) -> int:
        return _saturate(value * gain * self.config.global_gain, -32767, 32767)

    def _scale_magnitude(self, magnitude: int) -> int:
        ratio = self.config.max_force / _BASELINE_FORCE_N
        return _saturate(magnitude * ratio, -32767, 32767)

    def _constant(self, effect_id: int, params: ConstantEffect) -> IforceCommand:
        magnitude = self._scale_magnitude(
            self._apply_gain(params.magnitude, self.config.constant_gain)
        )
        data = bytes([effect_id]) + _le16(magnitude) + _le16(params.duration)
        return IforceCommand(CONSTANT_COMMAND, data)

    def _periodic(self, effect_id: int, params: PeriodicEffect) -> IforceCommand:
        magnitude = self._scale_magnitude(
            self._apply_gain(_wrap_i16(params.magnitude), self.config.periodic_gain)
        )
        data = (
            bytes([effect_id, params.waveform.value])
            + _le16(magnitude)
            + _le16(params.period)
            + _le16(params.phase)
        )
        return IforceCommand(PERIODIC_COMMAND, data)

    def _condition(self, effect_id: int, params: ConditionEffect) -> IforceCommand:
        gain = {
            ConditionType.SPRING: self.config.spring_gain,
            ConditionType.DAMPER: self.config.damper_gain,
            ConditionType.INERTIA: 1.0,
            ConditionType.FRICTION: self.config.friction_gain,
        }[params.condition_type]
        positive = self._apply_gain(params.positive_coefficient, gain)
        negative = self._apply_gain(params.negative_coefficient, gain)
        data = bytes([effect_id, params.condition_type.value]) + _le16(positive) + _le16(negative)
        return IforceCommand(CONDITION_COMMAND, data)

    def _ramp(self, effect_id: int, params: RampEffect) -> IforceCommand:
        start = self._apply_gain(params.start_magnitude, self.config.ramp_gain)
        end = self._apply_gain(params.end_magnitude, self.config.ramp_gain)
        data = bytes([effect_id]) + _le16(start) + _le16(end) + _le16(params.duration)
        return IforceCommand(RAMP_COMMAND, data)