"""Translation between Thrustmaster input and G29 reports."""

from __future__ import annotations

import copy
import math
import struct

from .config import CurveType, InputConfig, OutputConfig
from .errors import FfbError, InvalidReport
from .ffb import (
    ConditionEffect,
    ConditionType,
    ConstantEffect,
    FfbEffect,
    PeriodicEffect,
    Waveform,
)
from .reports import G29InputReport, G29OutputReport, ThrustmasterInputReport

_AXIS_FULL_SCALE = 32767.0
_STEERING_CENTER = 32768
_PEDAL_MAX = 1023.0
_DPAD_CENTER = 8
_MAX_EFFECT_ID = 40
_EFFECT_REPORT_ID = 0x01
_FULL_GAIN = 255

_WAVEFORMS = {
    0x03: Waveform.SQUARE,
    0x04: Waveform.SINE,
    0x05: Waveform.TRIANGLE,
    0x06: Waveform.SAWTOOTH_UP,
    0x07: Waveform.SAWTOOTH_DOWN,
}

_CONDITIONS = {
    0x08: ConditionType.SPRING,
    0x09: ConditionType.DAMPER,
    0x0A: ConditionType.INERTIA,
    0x0B: ConditionType.FRICTION,
}


def _saturate(value: float, low: int, high: int) -> int:
    """Truncate a float towards zero into [low, high]; NaN becomes zero."""
    if math.isnan(value):
        return 0
    return int(min(max(value, float(low)), float(high)))


def _divide(numerator: float, denominator: float) -> float:
    """Float division that yields inf or NaN instead of raising on zero."""
    if denominator:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator) * math.copysign(1.0, denominator)


class InputTranslator:
    """Shapes Thrustmaster input into G29 input reports."""

    def __init__(self, config: InputConfig) -> None:
        self.config = copy.deepcopy(config)
        self.last_steering = _STEERING_CENTER

    def translate(self, report: ThrustmasterInputReport) -> G29InputReport:
        """Apply deadzone, curves and button mapping to one wheel report."""
        curves = self.config.pedal_curves
        buttons = self._map_buttons(report.buttons)
        dpad = report.dpad if report.dpad < _DPAD_CENTER else _DPAD_CENTER
        return G29InputReport(
            report_id=0x01,
            steering=self._process_steering(report.steering),
            throttle=self._apply_pedal_curve(report.throttle, curves.throttle_curve),
            brake=self._apply_pedal_curve(report.brake, curves.brake_curve),
            clutch=self._apply_pedal_curve(report.clutch, curves.clutch_curve),
            buttons=buttons | (dpad << 24),
            unused=bytes(4),
        )

    def _process_steering(self, raw: int) -> int:
        deadzone = self.config.steering_deadzone
        normalized = raw / _AXIS_FULL_SCALE
        if abs(normalized) < deadzone:
            processed = 0.0
        elif normalized > 0:
            processed = _divide(normalized - deadzone, 1.0 - deadzone)
        else:
            processed = _divide(normalized + deadzone, 1.0 - deadzone)
        scaled = processed * self.config.axis_scaling.steering_multiplier
        value = _saturate(scaled * _AXIS_FULL_SCALE, -0x8000, 0x7FFF)
        self.last_steering = value + _STEERING_CENTER
        return self.last_steering

    @staticmethod
    def _apply_pedal_curve(raw: int, curve: CurveType) -> int:
        normalized = raw / 255.0
        if curve.kind == "Squared":
            curved = normalized * normalized
        elif curve.kind == "Cubed":
            curved = normalized * normalized * normalized
        elif curve.kind == "Custom":
            table = curve.table
            last = len(table) - 1
            position = normalized * last
            index = int(position)
            if index >= last:
                curved = table[last]
            else:
                fraction = position - index
                curved = table[index] * (1.0 - fraction) + table[index + 1] * fraction
        else:
            curved = normalized
        # The pedal field of the report is 16 bits wide.
        return _saturate(curved * _PEDAL_MAX, 0, 0xFFFFFFFF) & 0xFFFF

    def _map_buttons(self, buttons: int) -> int:
        mapped = 0
        for source, target in self.config.button_mapping.items():
            if source < 16 and target < 32 and buttons & (1 << source):
                mapped |= 1 << target
        return mapped


class OutputTranslator:
    """Extracts force-feedback effects from G29 output reports."""

    def __init__(self, config: OutputConfig) -> None:
        self.config = copy.deepcopy(config)

    def parse_ffb_effect(self, report: G29OutputReport) -> FfbEffect | None:
        """Return the effect a set-effect report carries, or None for other reports."""
        data = report.data
        if report.report_id != _EFFECT_REPORT_ID or not data:
            return None
        effect_id = data[0]
        if not 0 < effect_id <= _MAX_EFFECT_ID:
            return None
        if len(data) < 8:
            raise InvalidReport("FFB report too short")
        return _parse_effect(effect_id, data[1], data[2:])


def _parse_effect(effect_id: int, effect_type: int, body: bytes) -> FfbEffect:
    if effect_type == 0x01:
        if len(body) < 4:
            raise InvalidReport("Constant effect data too short")
        magnitude, duration = struct.unpack_from("<hH", body)
        params = ConstantEffect(magnitude, duration)
    elif effect_type in _WAVEFORMS:
        if len(body) < 6:
            raise InvalidReport("Periodic effect data too short")
        magnitude, period, phase = struct.unpack_from("<HHH", body)
        params = PeriodicEffect(magnitude, period, phase, _WAVEFORMS[effect_type])
    elif effect_type in _CONDITIONS:
        if len(body) < 4:
            raise InvalidReport("Condition effect data too short")
        positive, negative = struct.unpack_from("<hh", body)
        params = ConditionEffect(positive, negative, _CONDITIONS[effect_type])
    else:
        raise FfbError(f"Unsupported effect type: {effect_type}")
    return FfbEffect(effect_id, params, _FULL_GAIN)