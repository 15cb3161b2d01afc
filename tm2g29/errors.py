"""Exceptions raised by the wheel protocol translator."""

from __future__ import annotations


class TranslatorError(Exception):
    """Base class for every error the translator raises."""


class HidError(TranslatorError):
    """A HID transport operation failed."""

    def __init__(self, detail: object) -> None:
        self.detail = str(detail)
        super().__init__(f"HID device error: {self.detail}")


class DeviceNotFound(TranslatorError):
    """No device with the requested vendor and product id is attached."""

    def __init__(self, vid: int, pid: int) -> None:
        self.vid = vid
        self.pid = pid
        super().__init__(f"Device not found: VID {vid:04x}, PID {pid:04x}")


class DeviceInUse(TranslatorError):
    """The device is held by another process."""

    def __init__(self) -> None:
        super().__init__("Device already in use")


class _ReasonError(TranslatorError):
    """An error that carries a free-form reason after a fixed prefix."""

    prefix = ""

    def __init__(self, reason: str) -> None:
        self.reason = str(reason)
        super().__init__(f"{self.prefix}: {self.reason}")


class InvalidReport(_ReasonError):
    """A HID report was malformed."""

    prefix = "Invalid HID report"


class FfbError(_ReasonError):
    """A force-feedback effect could not be translated."""

    prefix = "FFB translation error"


class ConfigError(_ReasonError):
    """The configuration is missing a value or holds an invalid one."""

    prefix = "Configuration error"


class VirtualDeviceError(_ReasonError):
    """The virtual wheel could not be created or used."""

    prefix = "Virtual device creation failed"


class CalibrationError(_ReasonError):
    """Calibration could not be completed."""

    prefix = "Calibration error"


class ProtocolError(_ReasonError):
    """The translation pipeline hit an unexpected state."""

    prefix = "Protocol error"


class TranslatorTimeout(TranslatorError):
    """A device did not answer in time."""

    def __init__(self) -> None:
        super().__init__("Timeout waiting for device response")


class Cancelled(TranslatorError):
    """The operation was cancelled."""

    def __init__(self) -> None:
        super().__init__("Operation cancelled")


class UnsupportedPlatform(TranslatorError):
    """The running platform has no virtual-device support."""

    def __init__(self) -> None:
        super().__init__("Feature not supported on this platform")