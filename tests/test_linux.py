import subprocess
from unittest import mock

import pytest

from tm2g29.config import G29Config
from tm2g29.errors import VirtualDeviceError
from tm2g29.linux import (
    ABS_RZ,
    ABS_X,
    BTN_JOYSTICK,
    EV_ABS,
    EV_KEY,
    EV_SYN,
    LinuxThrustmasterDevice,
    LinuxVirtualG29Device,
    _thrustmaster_devices,
    check_uinput_availability,
    setup_uinput_permissions,
)
from tm2g29.reports import G29InputReport
from tm2g29.thrustmaster import HidBackend


@pytest.mark.asyncio
async def test_virtual_device_creation():
    device = await LinuxVirtualG29Device.create(G29Config())
    assert device.device_node() == "/dev/input/js0"
    assert device.is_available() is True
    assert device.config.pid == 0xC24F


def test_uinput_availability_check_missing(tmp_path):
    assert check_uinput_availability(tmp_path / "uinput") is False


def test_uinput_availability_regular_file(tmp_path):
    node = tmp_path / "uinput"
    node.write_bytes(b"")
    assert check_uinput_availability(node) is False


def test_uinput_availability_char_device():
    assert check_uinput_availability("/dev/null") is True


@pytest.mark.asyncio
async def test_send_input_events():
    device = await LinuxVirtualG29Device.create(G29Config())
    report = G29InputReport(steering=0x8000 + 100, throttle=512, clutch=7, buttons=0b101)
    events = await device.send_input(report)
    assert events[0] == (EV_ABS, ABS_X, 100)
    assert (EV_ABS, ABS_RZ, 7) in events
    assert (EV_KEY, BTN_JOYSTICK, 1) in events
    assert (EV_KEY, BTN_JOYSTICK + 1, 0) in events
    assert (EV_KEY, BTN_JOYSTICK + 2, 1) in events
    assert events[-1] == (EV_SYN, 0, 0)
    assert len(events) == 4 + 24 + 1


@pytest.mark.asyncio
async def test_close_makes_device_unavailable():
    device = await LinuxVirtualG29Device.create(G29Config())
    device.close()
    assert device.is_available() is False
    assert device.device_node() is None
    with pytest.raises(VirtualDeviceError):
        await device.send_input(G29InputReport())


@pytest.mark.asyncio
async def test_setup_fails_without_module():
    done = subprocess.CompletedProcess(["lsmod"], 0, stdout=b"Module Size Used by\nsnd 1 0\n")
    with mock.patch("subprocess.run", return_value=done):
        with pytest.raises(VirtualDeviceError, match="uinput module not loaded"):
            await setup_uinput_permissions()


@pytest.mark.asyncio
async def test_setup_fails_when_lsmod_missing():
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("lsmod")):
        with pytest.raises(VirtualDeviceError, match="Cannot run lsmod"):
            await setup_uinput_permissions()


def _add_node(root, name, hid_id, hid_name):
    device = root / name / "device"
    device.mkdir(parents=True)
    (device / "uevent").write_text(f"HID_ID={hid_id}\nHID_NAME={hid_name}\nHID_UNIQ=\n")


def test_enumeration_keeps_only_thrustmaster(tmp_path):
    sysfs = tmp_path / "sys"
    _add_node(sysfs, "hidraw0", "0003:0000044F:0000B66E", "Example Wheel")
    _add_node(sysfs, "hidraw1", "0003:0000046D:0000C24F", "Other Wheel")
    backend = HidBackend(sysfs_root=sysfs, dev_root=tmp_path / "dev")
    devices = _thrustmaster_devices(backend)
    assert devices == [
        LinuxThrustmasterDevice(
            hidraw_path=str(tmp_path / "dev" / "hidraw0"),
            sys_path=str(sysfs / "hidraw0"),
            vid=0x044F,
            pid=0xB66E,
            manufacturer=None,
            product="Example Wheel",
        )
    ]


def test_enumeration_without_sysfs(tmp_path):
    backend = HidBackend(sysfs_root=tmp_path / "missing", dev_root=tmp_path)
    assert _thrustmaster_devices(backend) == []