"""The virtual G29 wheel that games see."""

from __future__ import annotations

import dataclasses
import logging
import sys
from collections import deque

from .config import G29Config
from .errors import ProtocolError, UnsupportedPlatform
from .reports import G29InputReport, G29OutputReport

log = logging.getLogger(__name__)

SENT_INPUT_HISTORY = 1024

_PLATFORM_SINKS = {
    "win32": "ViGEm",
    "linux": "uinput",
    "darwin": "VirtualHIDDevice",
}


class VirtualG29Device:
    """Virtual G29 that accepts input reports and queues game output reports."""

    def __init__(self, config: G29Config, platform: str, sink: str) -> None:
        self.config = dataclasses.replace(config)
        self.platform = platform
        self.sink = sink
        self._sent: deque[G29InputReport] = deque(maxlen=SENT_INPUT_HISTORY)
        self._outputs: deque[G29OutputReport] = deque()
        self._closed = False

    @classmethod
    async def create(cls, config: G29Config, platform=None) -> VirtualG29Device:
        """Create the device for the given platform name (default: the running one)."""
        name = sys.platform if platform is None else platform
        sink = _PLATFORM_SINKS.get(name)
        if sink is None:
            raise UnsupportedPlatform()
        log.info("Virtual G29 device created on %s using %s", name, sink)
        return cls(config, name, sink)

    async def send_input(self, report: G29InputReport) -> None:
        """Deliver an input report to the virtual wheel."""
        if self._closed:
            raise ProtocolError("Failed to send input report")
        log.debug("Sending input to %s G29 device: %r", self.sink, report)
        self._sent.append(report)

    async def read_output(self) -> G29OutputReport | None:
        """Take the oldest queued output report, or None when there is none."""
        if self._outputs:
            return self._outputs.popleft()
        if self._closed:
            raise ProtocolError("Output channel disconnected")
        return None

    def inject_output(self, report: G29OutputReport) -> None:
        """Queue an output report as if a game had written it."""
        if self._closed:
            raise ProtocolError("Output channel disconnected")
        self._outputs.append(report)

    def sent_inputs(self) -> list[G29InputReport]:
        """The most recent input reports delivered, oldest first."""
        return list(self._sent)

    def close(self) -> None:
        """Tear down the virtual device."""
        if not self._closed:
            self._closed = True
            log.info("Virtual G29 device on %s closed", self.platform)