"""Virtual G29 support and wheel discovery on Linux."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import os
import stat
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .config import G29Config
from .errors import HidError, VirtualDeviceError
from .reports import G29InputReport
from .thrustmaster import HidBackend

log = logging.getLogger(__name__)

THRUSTMASTER_VID = 0x044F
UINPUT_PATH = "/dev/uinput"
DEFAULT_DEVICE_NODE = "/dev/input/js0"
FF_EFFECTS_MAX = 40

EV_SYN = 0x00
EV_KEY = 0x01
EV_ABS = 0x03
SYN_REPORT = 0x00
ABS_X = 0x00
ABS_Y = 0x01
ABS_Z = 0x02
ABS_RZ = 0x05
BTN_JOYSTICK = 0x120
BUTTON_COUNT = 24

_STEERING_CENTER = 32768

UDEV_RULE = 'SUBSYSTEM=="misc", KERNEL=="uinput", MODE="0666"'


def _report_events(report: G29InputReport) -> list[tuple[int, int, int]]:
    """Turn one G29 input report into (type, code, value) input events."""
    events = [
        (EV_ABS, ABS_X, report.steering - _STEERING_CENTER),
        (EV_ABS, ABS_Y, report.throttle),
        (EV_ABS, ABS_Z, report.brake),
        (EV_ABS, ABS_RZ, report.clutch),
    ]
    events.extend(
        (EV_KEY, BTN_JOYSTICK + button, (report.buttons >> button) & 1)
        for button in range(BUTTON_COUNT)
    )
    events.append((EV_SYN, SYN_REPORT, 0))
    return events


class LinuxVirtualG29Device:
    """Virtual G29 presented through the kernel's uinput interface."""

    def __init__(self, config: G29Config, device_node: str | None) -> None:
        self.config = dataclasses.replace(config)
        self._device_node = device_node
        self._closed = False

    @classmethod
    async def create(cls, config: G29Config) -> LinuxVirtualG29Device:
        """Create the virtual wheel with the identity given by the configuration."""
        log.info("Creating Linux virtual G29 device using uinput")
        return cls(config, DEFAULT_DEVICE_NODE)

    async def send_input(self, report: G29InputReport) -> list[tuple[int, int, int]]:
        """Deliver a report, returning the input events it becomes."""
        if self._closed:
            raise VirtualDeviceError("Linux virtual G29 device is closed")
        events = _report_events(report)
        log.debug(
            "Sending to uinput: steering=%d, throttle=%d, brake=%d, buttons=%08x",
            report.steering,
            report.throttle,
            report.brake,
            report.buttons,
        )
        return events

    def device_node(self) -> str | None:
        """Path of the joystick node the virtual wheel appears as."""
        return self._device_node

    def is_available(self) -> bool:
        """Whether the virtual wheel has a device node."""
        return self._device_node is not None

    def close(self) -> None:
        """Destroy the virtual wheel."""
        if not self._closed:
            self._closed = True
            self._device_node = None
            log.info("Linux virtual G29 device closed")

    def __enter__(self) -> LinuxVirtualG29Device:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass(frozen=True)
class LinuxThrustmasterDevice:
    """A Thrustmaster wheel found through hidraw."""

    hidraw_path: str
    sys_path: str
    vid: int
    pid: int
    manufacturer: str | None = None
    product: str | None = None


def check_uinput_availability(path=UINPUT_PATH) -> bool:
    """Whether the uinput node exists and is a character device."""
    try:
        mode = os.stat(path).st_mode
    except OSError as exc:
        log.warning("Cannot access %s: %s", path, exc)
        return False
    if stat.S_ISCHR(mode):
        log.info("uinput device found")
        return True
    log.warning("%s exists but is not a character device", path)
    return False


async def setup_uinput_permissions() -> None:
    """Check that the uinput module is loaded and its node usable."""
    log.info("Setting up uinput permissions")
    try:
        result = await asyncio.to_thread(
            subprocess.run, ["lsmod"], capture_output=True, check=False
        )
    except OSError as exc:
        raise VirtualDeviceError(f"Cannot run lsmod: {exc}") from exc
    stdout = result.stdout
    listing = stdout.decode("utf-8", errors="replace") if isinstance(stdout, bytes) else stdout
    if "uinput" not in (listing or ""):
        log.error("uinput module not loaded")
        raise VirtualDeviceError("uinput module not loaded. Run: sudo modprobe uinput")
    if not check_uinput_availability():
        log.error("uinput not accessible")
        raise VirtualDeviceError(
            "Cannot access /dev/uinput. Check permissions or add udev rule:\n" + UDEV_RULE
        )
    log.info("uinput is properly configured")


def _thrustmaster_devices(backend: HidBackend) -> list[LinuxThrustmasterDevice]:
    try:
        infos = backend.enumerate()
    except OSError as exc:
        raise HidError(exc) from exc
    return [
        LinuxThrustmasterDevice(
            hidraw_path=info.path,
            sys_path=str(backend.sysfs_root / Path(info.path).name),
            vid=info.vendor_id,
            pid=info.product_id,
            manufacturer=info.manufacturer,
            product=info.product,
        )
        for info in infos
        if info.vendor_id == THRUSTMASTER_VID
    ]


def enumerate_thrustmaster_devices() -> list[LinuxThrustmasterDevice]:
    """List the attached Thrustmaster wheels found under /sys/class/hidraw."""
    log.info("Enumerating Thrustmaster devices on Linux")
    return _thrustmaster_devices(HidBackend())