"""HID report structures exchanged with the physical and virtual wheels."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from .errors import InvalidReport

THRUSTMASTER_REPORT_SIZE = 8
G29_INPUT_REPORT_SIZE = 28

_THRUSTMASTER_LAYOUT = struct.Struct("<hBBBHB")
_G29_LAYOUT = struct.Struct("<BHHHHI4s")


def _check(name: str, value: int, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
        raise ValueError(f"{name} must be an integer from {low} to {high}, got {value!r}")


@dataclass(frozen=True)
class ThrustmasterInputReport:
    """Input state read from the physical wheel."""

    steering: int = 0
    throttle: int = 0
    brake: int = 0
    clutch: int = 0
    buttons: int = 0
    dpad: int = 8

    def __post_init__(self) -> None:
        _check("steering", self.steering, -0x8000, 0x7FFF)
        for name in ("throttle", "brake", "clutch", "dpad"):
            _check(name, getattr(self, name), 0, 0xFF)
        _check("buttons", self.buttons, 0, 0xFFFF)

    @classmethod
    def from_bytes(cls, data) -> ThrustmasterInputReport:
        """Parse an 8-byte wheel report; the d-pad is the low nibble of the last byte."""
        data = bytes(data)
        if len(data) < THRUSTMASTER_REPORT_SIZE:
            raise InvalidReport(f"Input report too short: {len(data)} bytes")
        steering, throttle, brake, clutch, buttons, dpad = _THRUSTMASTER_LAYOUT.unpack_from(data)
        return cls(steering, throttle, brake, clutch, buttons, dpad & 0x0F)


@dataclass(frozen=True)
class G29InputReport:
    """Input report in the layout the virtual G29 presents."""

    report_id: int = 0x01
    steering: int = 0x8000
    throttle: int = 0
    brake: int = 0
    clutch: int = 0
    buttons: int = 0
    unused: bytes = bytes(4)

    def __post_init__(self) -> None:
        _check("report_id", self.report_id, 0, 0xFF)
        for name in ("steering", "throttle", "brake", "clutch"):
            _check(name, getattr(self, name), 0, 0xFFFF)
        _check("buttons", self.buttons, 0, 0xFFFFFFFF)
        unused = bytes(self.unused)
        if len(unused) != 4:
            raise ValueError("unused must be exactly 4 bytes")
        object.__setattr__(self, "unused", unused)

    def to_bytes(self) -> bytes:
        """Encode the report little-endian, zero-padded to the G29 report size."""
        packed = _G29_LAYOUT.pack(
            self.report_id,
            self.steering,
            self.throttle,
            self.brake,
            self.clutch,
            self.buttons,
            self.unused,
        )
        return packed.ljust(G29_INPUT_REPORT_SIZE, b"\x00")


@dataclass(frozen=True)
class G29OutputReport:
    """Output report sent by a game to the virtual G29, typically force feedback."""

    report_id: int
    data: bytes = b""

    def __post_init__(self) -> None:
        _check("report_id", self.report_id, 0, 0xFF)
        object.__setattr__(self, "data", bytes(self.data))


@dataclass(frozen=True)
class IforceCommand:
    """Force-feedback command for the physical wheel."""

    command_id: int
    data: bytes = b""

    def __post_init__(self) -> None:
        _check("command_id", self.command_id, 0, 0xFF)
        object.__setattr__(self, "data", bytes(self.data))