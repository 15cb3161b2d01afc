"""Command-line interface of the wheel protocol translator."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import time
from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from .config import Config
from .errors import ConfigError, HidError, TranslatorError
from .thrustmaster import HidBackend, HidDeviceInfo
from .translator import ProtocolTranslator

log = logging.getLogger(__name__)

THRUSTMASTER_VID = 0x044F
LOGITECH_VID = 0x046D
G29_PID = 0xC24F
_CLUTCH_MAPPING_THRESHOLD = 16
_LOG_FORMAT = "%(asctime)s %(levelname)s [%(thread)d] %(message)s"


class FfbTestEffect(Enum):
    """Force-feedback pattern played by the ffb-test command."""

    CONSTANT = "constant"
    SPRING = "spring"
    DAMPER = "damper"
    SINE = "sine"
    SQUARE = "square"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.name.capitalize()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the tm-g29 command."""
    parser = argparse.ArgumentParser(
        prog="tm-g29",
        description="Thrustmaster to G29 Protocol Translator",
        epilog="A protocol translator that makes Thrustmaster racing wheels "
        "appear as Logitech G29 devices",
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=Path("config.toml"), help="Configuration file path"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    parser.add_argument("--log-file", type=Path, help="Log file path (optional)")
    commands = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")

    run = commands.add_parser("run", help="Run the protocol translator")
    run.add_argument(
        "-f", "--foreground", action="store_true", help="Run in foreground (don't daemonize)"
    )

    discover = commands.add_parser("discover", help="Device discovery and information")
    discover.add_argument(
        "-d", "--detailed", action="store_true", help="Show detailed device information"
    )

    calibrate = commands.add_parser("calibrate", help="Calibrate the wheel")
    calibrate.add_argument("--skip-steering", action="store_true", help="Skip steering calibration")
    calibrate.add_argument("--skip-pedals", action="store_true", help="Skip pedal calibration")

    test = commands.add_parser("test", help="Test input translation without virtual device")
    test.add_argument(
        "-d", "--duration", type=int, default=30, help="Duration in seconds (0 = indefinite)"
    )

    config = commands.add_parser("config", help="Generate default configuration file")
    config.add_argument(
        "-f", "--force", action="store_true", help="Force overwrite existing config"
    )

    ffb = commands.add_parser("ffb-test", help="Show FFB test patterns")
    ffb.add_argument(
        "effect",
        nargs="?",
        type=FfbTestEffect,
        choices=list(FfbTestEffect),
        default="constant",
        help="Effect type to test",
    )
    ffb.add_argument("-d", "--duration", type=int, default=5, help="Duration in seconds")
    return parser


def load_config(path) -> Config:
    """Load the configuration file, or the defaults when it does not exist."""
    path = Path(path)
    if not path.exists():
        log.warning("Configuration file not found, using defaults")
        return Config()
    log.info("Loading configuration from: %s", path)
    try:
        return Config.load_from_file(path)
    except OSError as exc:
        raise ConfigError(f"Failed to load config: {exc}") from exc


def generate_config(path, force) -> None:
    """Write the default configuration, refusing to overwrite unless forced."""
    path = Path(path)
    if path.exists() and not force:
        raise ConfigError("Configuration file already exists. Use --force to overwrite.")
    try:
        Config().save_to_file(path)
    except OSError as exc:
        raise ConfigError(f"Failed to save config: {exc}") from exc
    log.info("Generated default configuration file: %s", path)
    print("Edit the configuration file to customize settings for your setup.")


def _print_device(device: HidDeviceInfo, detailed: bool, with_path: bool) -> None:
    print(f"  VID:PID = {device.vendor_id:04X}:{device.product_id:04X}")
    if detailed:
        print(f"    Manufacturer: {device.manufacturer!r}")
        print(f"    Product: {device.product!r}")
        print(f"    Serial: {device.serial_number!r}")
        if with_path:
            print(f"    Path: {device.path}")


def discover_devices(backend, detailed) -> tuple[list[HidDeviceInfo], list[HidDeviceInfo]]:
    """Print the attached Thrustmaster and G29 devices and return them."""
    log.info("Discovering HID devices...")
    try:
        devices = list(backend.enumerate())
    except OSError as exc:
        raise HidError(exc) from exc
    thrustmaster = [d for d in devices if d.vendor_id == THRUSTMASTER_VID]
    g29 = [d for d in devices if d.vendor_id == LOGITECH_VID and d.product_id == G29_PID]

    print(f"Found {len(thrustmaster)} Thrustmaster device(s):")
    for device in thrustmaster:
        _print_device(device, detailed, with_path=True)
    print(f"\nFound {len(g29)} G29 device(s):")
    for device in g29:
        _print_device(device, detailed, with_path=False)

    if thrustmaster and g29:
        log.warning("Both Thrustmaster and G29 devices detected. This may cause conflicts.")
        print("\nRecommendation: Disconnect the G29 before running the translator.")
    return thrustmaster, g29


def _wait_for_enter() -> None:
    sys.stdin.readline()


def _prompt(text: str) -> None:
    print(text, flush=True)
    _wait_for_enter()


def _calibrate_wheel(config: Config, skip_steering: bool, skip_pedals: bool) -> None:
    log.info("Starting wheel calibration...")
    if not skip_steering:
        print("Steering Calibration:")
        _prompt("1. Turn wheel fully left and press Enter")
        _prompt("2. Turn wheel fully right and press Enter")
        _prompt("3. Center the wheel and press Enter")
        print("Steering calibration complete!")
    if not skip_pedals:
        print("\nPedal Calibration:")
        _prompt("1. Release all pedals and press Enter")
        _prompt("2. Press throttle pedal fully and press Enter")
        _prompt("3. Press brake pedal fully and press Enter")
        if len(config.input_config.button_mapping) > _CLUTCH_MAPPING_THRESHOLD:
            _prompt("4. Press clutch pedal fully and press Enter")
        print("Pedal calibration complete!")
    print("Calibration finished. Values saved to configuration file.")


def _test_translation(duration: int) -> None:
    log.info("Starting translation test for %d seconds...", duration)
    print(f"Translation test would run here for {duration} seconds")
    print("This would show real-time input from Thrustmaster and translated G29 output")
    time.sleep(duration)
    log.info("Translation test completed")


def _test_ffb_effects(effect: FfbTestEffect, duration: int) -> None:
    log.info("Testing FFB effect: %s for %d seconds", effect.label, duration)
    print("FFB test would run here...")
    print(f"Effect: {effect.label}")
    print(f"Duration: {duration} seconds")
    time.sleep(duration)
    log.info("FFB test completed")


async def _run_translator(config: Config, foreground: bool) -> None:
    log.info("Starting protocol translator...")
    if not foreground:
        log.info("Running in background mode")
    translator = await ProtocolTranslator.create(config)
    try:
        await translator.run()
        log.info("Translator stopped normally")
    except TranslatorError as exc:
        log.error("Translator error: %s", exc)
    finally:
        translator.close()
    log.info("Protocol translator stopped")


def _init_logging(verbose: bool, log_file) -> logging.Handler:
    handler: logging.Handler
    if log_file is not None:
        handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    else:
        handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    package_logger = logging.getLogger("tm2g29")
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return handler


def _version() -> str:
    try:
        return version("tm2g29")
    except PackageNotFoundError:
        return "unknown"


def _dispatch(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    match args.command:
        case "run":
            try:
                asyncio.run(_run_translator(config, args.foreground))
            except KeyboardInterrupt:
                log.info("Received shutdown signal, stopping translator...")
        case "discover":
            discover_devices(HidBackend(), args.detailed)
        case "calibrate":
            _calibrate_wheel(config, args.skip_steering, args.skip_pedals)
        case "test":
            _test_translation(args.duration)
        case "config":
            generate_config(args.config, args.force)
        case "ffb-test":
            _test_ffb_effects(args.effect, args.duration)


def main(argv=None) -> int:
    """Run the tm-g29 command and return its exit status."""
    args = build_parser().parse_args(argv)
    try:
        handler = _init_logging(args.verbose, args.log_file)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    try:
        log.info("Thrustmaster to G29 Protocol Translator v%s", _version())
        _dispatch(args)
        return 0
    except TranslatorError as exc:
        log.error("%s", exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        logging.getLogger("tm2g29").removeHandler(handler)
        handler.close()