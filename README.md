# tm2g29

Translates between Thrustmaster racing wheel reports and Logitech G29
reports. Wheel input (steering, pedals, buttons, D-pad) is shaped into G29
input reports, and force-feedback effects written to a G29 are turned into
IFORCE commands for the Thrustmaster wheel.

## Installation

Install the package with pip from the project directory. The `test` extra
adds pytest and pytest-asyncio for running the test suite.

## Command line

The package installs the `tm-g29` command:

```
tm-g29 config                  # write a default config.toml
tm-g29 config --force          # overwrite an existing one
tm-g29 discover --detailed     # list attached Thrustmaster and G29 devices
tm-g29 run --foreground        # start the translator
tm-g29 calibrate --skip-pedals # step through the calibration prompts
tm-g29 test --duration 10
tm-g29 ffb-test sine --duration 5
```

Global options, given before the sub-command:

- `-c/--config PATH`: configuration file (default `config.toml`); if it
  does not exist, built-in defaults are used
- `-v/--verbose`: debug logging
- `--log-file PATH`: append log output to a file instead of stderr

`ffb-test` takes one of `constant`, `spring`, `damper`, `sine`, `square`
(default `constant`). `test` defaults to 30 seconds, `ffb-test` to 5.
Errors are printed to stderr and the command exits with status 1.

`discover` and `run` find devices through `/sys/class/hidraw` and open
the `/dev/hidrawN` nodes, so they see devices only on Linux. `discover`
warns when both a Thrustmaster wheel and a G29 are attached.

## Configuration

The configuration is a TOML file with the tables `thrustmaster_config`,
`g29_config`, `input_config`, `output_config`, `ffb_config` and
`logging_config`; every field must be present. Generate the defaults with
`tm-g29 config` and edit from there.

Pedal curves are `"Linear"`, `"Squared"`, `"Cubed"`, or
`{ Custom = [ ... ] }`, a lookup table interpolated linearly between
points. `button_mapping` maps Thrustmaster button numbers to G29 button
numbers; the default maps buttons 0 to 13 to themselves.

## Library use

```python
from tm2g29.config import Config
from tm2g29.protocol import InputTranslator
from tm2g29.reports import ThrustmasterInputReport

config = Config()
translator = InputTranslator(config.input_config)
report = ThrustmasterInputReport.from_bytes(bytes(8))
g29 = translator.translate(report)
print(g29.to_bytes().hex())
```

- `tm2g29.config.Config`: `load_from_file`, `save_to_file`, `to_dict`,
  `from_dict`.
- `tm2g29.reports`: `ThrustmasterInputReport`, `G29InputReport`,
  `G29OutputReport`, `IforceCommand`.
- `tm2g29.protocol.InputTranslator` applies the steering deadzone and
  multiplier (centre 0x8000), the pedal curves (0 to 1023), the button
  mapping and places the D-pad in bits 24 and up.
  `tm2g29.protocol.OutputTranslator.parse_ffb_effect` turns a G29 output
  report into an `FfbEffect`, or returns `None` for other reports.
- `tm2g29.ffb.FfbEngine.translate_effect` turns an `FfbEffect` into
  `IforceCommand` objects after applying the configured gains;
  `update_active_effects` drops timed constant effects that have run out.
- `tm2g29.thrustmaster`: `HidBackend`, `ThrustmasterDevice` and
  `build_iforce_packet`, which frames a command as length, command id,
  data and XOR checksum.
- `tm2g29.virtual_g29.VirtualG29Device` and
  `tm2g29.translator.ProtocolTranslator`, which joins the two devices;
  `step_input` and `step_output` do one round each, `run` loops both.
- `tm2g29.descriptors`: the G29 HID report descriptor and
  `parse_hid_descriptor`.
- `tm2g29.errors`: `TranslatorError` and its subclasses.
- `tm2g29.linux`, `tm2g29.windows`, `tm2g29.macos`: per-platform virtual
  wheel classes, availability checks and Thrustmaster device listing.

## What it does not do

- No operating-system input device is created. `VirtualG29Device` keeps
  the reports sent to it in memory (`sent_inputs`) and only yields output
  reports queued with `inject_output`; games cannot see or write to it.
  The platform classes return the events or report bytes they would
  deliver (`LinuxVirtualG29Device.send_input`,
  `WindowsVirtualG29Device.send_input`, `MacOSVirtualG29Device.send_input`)
  without handing them to uinput, ViGEm or VirtualHIDDevice.
- `check_virtual_hid_availability` always reports the macOS driver as
  unavailable, and `check_input_monitoring_permission` always grants.
- `run` without `--foreground` does not detach into the background.
- `calibrate` only walks through the prompts; no values are measured or
  saved.
- `test` and `ffb-test` print what they would do and wait for the given
  duration; they neither read the wheel nor play effects.
- Running effects are not refreshed: `update_active_effects` never
  produces commands.