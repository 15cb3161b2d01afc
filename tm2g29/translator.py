"""The translation pipeline between the physical wheel and the virtual G29."""

from __future__ import annotations

import asyncio
import logging

from .config import Config
from .ffb import FfbEngine
from .protocol import InputTranslator, OutputTranslator
from .reports import G29InputReport, IforceCommand
from .thrustmaster import ThrustmasterDevice
from .virtual_g29 import VirtualG29Device

log = logging.getLogger(__name__)

_POLL_INTERVAL_S = 0.001


class ProtocolTranslator:
    """Moves input to the virtual wheel and force feedback back to the real one."""

    def __init__(
        self,
        config: Config,
        thrustmaster: ThrustmasterDevice,
        virtual_g29: VirtualG29Device,
    ) -> None:
        self.config = config
        self.thrustmaster = thrustmaster
        self.virtual_g29 = virtual_g29
        self.input_translator = InputTranslator(config.input_config)
        self.output_translator = OutputTranslator(config.output_config)
        self.ffb_engine = FfbEngine(config.ffb_config)
        self._lock = asyncio.Lock()

    @classmethod
    async def create(cls, config: Config, backend=None, platform=None) -> ProtocolTranslator:
        """Open the physical wheel and create the virtual one."""
        thrustmaster = await ThrustmasterDevice.open(config.thrustmaster_config, backend)
        try:
            virtual_g29 = await VirtualG29Device.create(config.g29_config, platform)
        except BaseException:
            thrustmaster.close()
            raise
        return cls(config, thrustmaster, virtual_g29)

    async def step_input(self) -> G29InputReport | None:
        """Forward one wheel report, returning what was sent, or None if idle."""
        report = await self.thrustmaster.read_input()
        if report is None:
            return None
        translated = self.input_translator.translate(report)
        await self.virtual_g29.send_input(translated)
        return translated

    async def step_output(self) -> list[IforceCommand]:
        """Handle one game output report, returning the commands sent to the wheel."""
        report = await self.virtual_g29.read_output()
        if report is None:
            return []
        effect = self.output_translator.parse_ffb_effect(report)
        if effect is None:
            return []
        commands = self.ffb_engine.translate_effect(effect)
        for command in commands:
            await self.thrustmaster.send_ffb_command(command)
        return commands

    async def run(self) -> None:
        """Run input and output translation until one of them fails."""
        log.info("Starting protocol translator")
        tasks = [
            asyncio.create_task(self._loop(self.step_input)),
            asyncio.create_task(self._loop(self.step_output)),
        ]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()

    async def _loop(self, step) -> None:
        while True:
            async with self._lock:
                await step()
            await asyncio.sleep(_POLL_INTERVAL_S)

    def close(self) -> None:
        """Release both devices."""
        self.virtual_g29.close()
        self.thrustmaster.close()