"""Communication with the physical Thrustmaster wheel over HID."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import os
from dataclasses import dataclass
from functools import reduce
from operator import xor
from pathlib import Path
from typing import Protocol

from .config import ThrustmasterConfig
from .errors import DeviceNotFound, HidError, InvalidReport
from .reports import THRUSTMASTER_REPORT_SIZE, IforceCommand, ThrustmasterInputReport

log = logging.getLogger(__name__)

RANGE_COMMAND = 0x01
AUTOCENTER_COMMAND = 0x02
_INIT_DELAY_S = 0.010

_IOC_READ_WRITE = 3
_HIDIOCSFEATURE_NR = 0x06


@dataclass(frozen=True)
class HidDeviceInfo:
    """Identity and location of one attached HID device."""

    vendor_id: int
    product_id: int
    path: str
    manufacturer: str | None = None
    product: str | None = None
    serial_number: str | None = None


class _HidHandle(Protocol):
    def read(self, size: int) -> bytes: ...

    def send_feature_report(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class _HidrawHandle:
    """An open hidraw node in non-blocking mode."""

    def __init__(self, path: str) -> None:
        self._fd = os.open(path, os.O_RDWR | getattr(os, "O_NONBLOCK", 0))

    def read(self, size: int) -> bytes:
        try:
            return os.read(self._fd, size)
        except BlockingIOError:
            return b""

    def send_feature_report(self, data: bytes) -> None:
        import fcntl

        request = (
            (_IOC_READ_WRITE << 30)
            | (len(data) << 16)
            | (ord("H") << 8)
            | _HIDIOCSFEATURE_NR
        )
        fcntl.ioctl(self._fd, request, bytes(data))

    def close(self) -> None:
        if self._fd >= 0:
            os.close(self._fd)
            self._fd = -1


class HidBackend:
    """HID access through the hidraw interface of the kernel."""

    def __init__(self, sysfs_root="/sys/class/hidraw", dev_root="/dev") -> None:
        self.sysfs_root = Path(sysfs_root)
        self.dev_root = Path(dev_root)

    def enumerate(self) -> list[HidDeviceInfo]:
        """List the attached HID devices, ordered by node name."""
        if not self.sysfs_root.is_dir():
            return []
        entries = sorted(self.sysfs_root.iterdir(), key=lambda entry: entry.name)
        return [info for info in map(self._describe, entries) if info is not None]

    def _describe(self, entry: Path) -> HidDeviceInfo | None:
        try:
            text = (entry / "device" / "uevent").read_text(encoding="utf-8", errors="replace")
        except OSError:
            return None
        fields = dict(line.split("=", 1) for line in text.splitlines() if "=" in line)
        try:
            _bus, vendor, product = fields["HID_ID"].split(":")
            vendor_id, product_id = int(vendor, 16), int(product, 16)
        except (KeyError, ValueError):
            return None
        return HidDeviceInfo(
            vendor_id=vendor_id & 0xFFFF,
            product_id=product_id & 0xFFFF,
            path=str(self.dev_root / entry.name),
            manufacturer=None,
            product=fields.get("HID_NAME") or None,
            serial_number=fields.get("HID_UNIQ") or None,
        )

    def open(self, info: HidDeviceInfo) -> _HidrawHandle:
        """Open the device node for non-blocking reads and feature reports."""
        return _HidrawHandle(info.path)


def build_iforce_packet(command: IforceCommand) -> bytes:
    """Frame a command as [length, command id, data..., XOR checksum]."""
    body = bytes([(len(command.data) + 2) & 0xFF, command.command_id]) + command.data
    return body + bytes([reduce(xor, body, 0)])


class ThrustmasterDevice:
    """An opened Thrustmaster wheel."""

    def __init__(self, handle: _HidHandle, config: ThrustmasterConfig) -> None:
        self._handle = handle
        self.config = dataclasses.replace(config)
        self._lock = asyncio.Lock()

    @classmethod
    async def open(cls, config: ThrustmasterConfig, backend=None) -> ThrustmasterDevice:
        """Open the first attached device matching the configured ids."""
        backend = HidBackend() if backend is None else backend
        try:
            devices = list(backend.enumerate())
        except OSError as exc:
            raise HidError(exc) from exc
        info = next(
            (d for d in devices if d.vendor_id == config.vid and d.product_id == config.pid),
            None,
        )
        if info is None:
            raise DeviceNotFound(config.vid, config.pid)
        log.info("Found Thrustmaster device: %r %r", info.manufacturer, info.product)
        try:
            handle = backend.open(info)
        except OSError as exc:
            raise HidError(exc) from exc
        return cls(handle, config)

    async def read_input(self) -> ThrustmasterInputReport | None:
        """Read one input report, or None when no data is waiting."""
        async with self._lock:
            try:
                data = self._handle.read(THRUSTMASTER_REPORT_SIZE)
            except OSError as exc:
                raise HidError(exc) from exc
        if not data:
            return None
        if len(data) < THRUSTMASTER_REPORT_SIZE:
            raise InvalidReport(f"Input report too short: {len(data)} bytes")
        return ThrustmasterInputReport.from_bytes(data)

    async def send_ffb_command(self, command: IforceCommand) -> None:
        """Send one force-feedback command as a feature report."""
        packet = build_iforce_packet(command)
        log.debug("Sending IFORCE command: %s", packet.hex(" "))
        async with self._lock:
            try:
                self._handle.send_feature_report(packet)
            except OSError as exc:
                log.warning("Failed to send FFB command: %s", exc)
                raise HidError(exc) from exc

    async def initialize(self) -> None:
        """Send the range and autocenter set-up commands."""
        vid = self.config.vid
        commands = (
            IforceCommand(RANGE_COMMAND, bytes([vid & 0xFF, (vid >> 8) & 0xFF])),
            IforceCommand(AUTOCENTER_COMMAND, b"\x01"),
        )
        for command in commands:
            await self.send_ffb_command(command)
            await asyncio.sleep(_INIT_DELAY_S)
        log.info("Thrustmaster device initialized")

    def close(self) -> None:
        """Release the device handle."""
        self._handle.close()