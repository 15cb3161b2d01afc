"""Virtual G29 support and wheel discovery on Windows."""

from __future__ import annotations

import csv
import dataclasses
import io
import logging
import re
import subprocess
import sys
from dataclasses import dataclass

from .config import G29Config
from .errors import HidError, VirtualDeviceError
from .reports import G29InputReport

log = logging.getLogger(__name__)

THRUSTMASTER_VID = 0x044F
HID_INTERFACE_GUID = "{4d1e55b2-f16f-11cf-88cb-001111000030}"

_VIGEM_SERVICE_KEY = r"SYSTEM\CurrentControlSet\Services\ViGEmBus"
_PNP_QUERY = (
    "Get-PnpDevice -PresentOnly -Class HIDClass"
    " | Select-Object InstanceId,FriendlyName,Manufacturer"
    " | ConvertTo-Csv -NoTypeInformation"
)
_ID_PATTERN = re.compile(r"VID_([0-9A-F]{4})&PID_([0-9A-F]{4})", re.IGNORECASE)


class WindowsVirtualG29Device:
    """Virtual G29 presented through the ViGEm bus."""

    def __init__(self, config: G29Config) -> None:
        self.config = dataclasses.replace(config)
        self._closed = False

    @classmethod
    async def create(cls, config: G29Config) -> WindowsVirtualG29Device:
        """Create the virtual wheel with the identity given by the configuration."""
        log.info("Creating Windows virtual G29 device")
        return cls(config)

    async def send_input(self, report: G29InputReport) -> bytes:
        """Deliver a report, returning the encoded report handed to the bus."""
        if self._closed:
            raise VirtualDeviceError("Windows virtual G29 device is closed")
        log.debug(
            "Sending to ViGEm: steering=%d, throttle=%d, brake=%d, buttons=%08x",
            report.steering,
            report.throttle,
            report.brake,
            report.buttons,
        )
        return report.to_bytes()

    def is_connected(self) -> bool:
        """Whether the virtual wheel is attached to the bus."""
        return not self._closed

    def device_path(self) -> str:
        """Bus path of the virtual wheel, for diagnostics."""
        return f"ViGEm\\G29\\{self.config.serial_number}"

    def close(self) -> None:
        """Detach the virtual wheel from the bus."""
        if not self._closed:
            self._closed = True
            log.info("Windows virtual G29 device closed")

    def __enter__(self) -> WindowsVirtualG29Device:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


@dataclass(frozen=True)
class WindowsThrustmasterDevice:
    """A Thrustmaster wheel found through Plug and Play."""

    device_path: str
    instance_id: str
    vid: int
    pid: int
    manufacturer: str | None = None
    product: str | None = None


def _parse_pnp_devices(text: str) -> list[WindowsThrustmasterDevice]:
    """Pick Thrustmaster wheels out of a CSV listing of HID devices."""
    devices = []
    for row in csv.DictReader(io.StringIO(text)):
        instance_id = row.get("InstanceId") or ""
        match = _ID_PATTERN.search(instance_id)
        if match is None or int(match[1], 16) != THRUSTMASTER_VID:
            continue
        devices.append(
            WindowsThrustmasterDevice(
                device_path="\\\\?\\" + instance_id.replace("\\", "#") + "#" + HID_INTERFACE_GUID,
                instance_id=instance_id,
                vid=int(match[1], 16),
                pid=int(match[2], 16),
                manufacturer=row.get("Manufacturer") or None,
                product=row.get("FriendlyName") or None,
            )
        )
    return devices


def enumerate_thrustmaster_devices() -> list[WindowsThrustmasterDevice]:
    """List the attached Thrustmaster wheels; empty on other platforms."""
    log.info("Enumerating Thrustmaster devices on Windows")
    if sys.platform != "win32":
        return []
    try:
        result = subprocess.run(
            ["powershell", "-NoProfile", "-NonInteractive", "-Command", _PNP_QUERY],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        raise HidError(exc) from exc
    if result.returncode != 0:
        raise HidError(result.stderr.strip() or f"device query exited with {result.returncode}")
    return _parse_pnp_devices(result.stdout)


def check_vigem_availability() -> bool:
    """Whether the ViGEm bus driver is registered as a service."""
    log.info("Checking ViGEm Bus driver availability")
    if sys.platform != "win32":
        return False
    import winreg

    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, _VIGEM_SERVICE_KEY):
            return True
    except OSError:
        return False


async def ensure_vigem_installed() -> None:
    """Raise unless the ViGEm bus driver is installed."""
    if check_vigem_availability():
        log.info("ViGEm Bus driver is available")
        return
    log.error("ViGEm Bus driver not found")
    raise VirtualDeviceError(
        "ViGEm Bus driver not installed. Please download and install the ViGEm Bus driver."
    )