# hojapad

Gamepad input processing in pure Python. It takes raw controller readings (stick positions,
trigger values, buttons, IMU samples) and turns them into cleaned-up values. It also builds and
answers Nintendo Switch Pro Controller reports at the byte level.

## Modules

- `hojapad.stick_scaling`: octagon calibration and scaling of two analog sticks.
  - `StickCalibration` holds the center, inversion flags, per-octant angles, distances and
    sub-angles of one stick.
  - `StickScaler` captures centers (`capture_center`), outer distances (`capture_distances`,
    which returns `True` once all octants of both sticks are seen) and single angles
    (`capture_angle`).
  - `StickScaler.process` maps a raw `AnalogData` reading onto the calibrated circle, 0–4095
    per axis.
  - The helpers `stick_get_angle`, `stick_get_distance`, `get_octant`, `angle_distance` and
    friends are public.
- `hojapad.snapback`: `SnapbackFilter` holds a stick at center while it swings back through
  the center after a fast release. `SnapbackCapture` waits for one axis to reach an edge and
  come back, then records 62 samples of it into a 64-byte report.
- `hojapad.analog`: `AnalogProcessor` runs a reading through scaling, snapback filtering,
  deadzones (`DeadzoneSettings`, `process_deadzone`) and per-axis `DistanceTracker`s.
  - It drives calibration through `calibrate_start`, `calibrate_stop` and `calibrate_angle`.
  - While calibrating, `process` returns `None`. Pressing home (`home_pressed=True`) ends
    calibration.
- `hojapad.triggers`: `TriggerScaler` tracks the lowest and highest readings of both analog
  triggers during calibration. It scales readings to 0–4095 with a fixed 150-count deadzone.
  A trigger can be disabled so that it always reads 0.
- `hojapad.remap`: `Remapper` routes input buttons to output buttons using one `RemapProfile`
  per `InputMode` family (switch, gamecube, xinput, n64, snes).
  - `listen_enable` waits for the next press and assigns it to a `Mapcode`.
  - `reset_default` restores a profile together with the mode's default disabled buttons
    (`default_unset`).
  - `remap_report` builds a 64-byte description of a profile.
  - With `safe_mode=True`, `process` drops home, capture, plus, minus and the d-pad.
- `hojapad.macros`: `Interval` fires at most once per period of a 32-bit microsecond clock.
  `SafeModeMacro` toggles safe mode on each press-and-release of a button.
- `hojapad.imu`: `ImuProcessor` handles readings from one or two IMUs.
  - It averages readings from two IMUs (`average_value`) after subtracting their calibration
    offsets.
  - It runs a 16000-cycle offset calibration (`calibrate_start`, `calibrate_step`).
  - It integrates the gyroscope into a `Quaternion`.
  - `pack_quat` returns the fields of a mode-2 motion packet.
- `hojapad.switch_analog`: `encode` and `decode` of two 12-bit values in three bytes.
  `calibration_data` returns the 18-byte stick calibration block.
- `hojapad.switch_spi`: the emulated SPI flash of a Pro Controller. `spi_read_byte` returns
  one byte; `spi_read` returns a 5-byte header followed by up to 30 data bytes.
- `hojapad.switch_haptics`: `HapticDecoder` decodes the four-byte HD rumble packet layouts
  into `HapticFrame`s (frequency in Hz and linear amplitude). The lookup helpers are
  `exp2_lookup`, `amplitude_lookup` and `frequency_lookup`.
- `hojapad.switch_commands`: `SwitchController` answers host output reports:
  - `handle_report`, `command` and `info` cover rumble, subcommands and info requests
    (MAC address, pairing, device info, SPI reads, input mode, IMU enable, player lights).
  - `input_report` builds the 0x30 full input report from a `SwitchInput`, with IMU data in
    mode 1 or 2.
  - Each reply is a `(report_id, bytes)` pair of 64 bytes, or `None` when nothing is sent.

## Installation

```
pip install hojapad
```

Python 3.10 or later. There are no runtime dependencies.

## Examples

Stick scaling and 12-bit packing:

```python
from hojapad.stick_scaling import AnalogData, StickCalibration, StickScaler
from hojapad.switch_analog import decode, encode

scaler = StickScaler(StickCalibration(), StickCalibration())
scaler.capture_center(AnalogData(2048, 2048, 2048, 2048))
out = scaler.process(AnalogData(3000, 2048, 2048, 2048))

assert decode(encode(0x123, 0x456)) == (0x123, 0x456)
```

Remapping buttons:

```python
from hojapad.remap import ButtonState, InputMode, Remapper

remapper = Remapper(InputMode.SWPRO)
out = remapper.process(ButtonState(button_a=True))
assert out.button_a
```

Decoding a rumble packet:

```python
from hojapad.switch_haptics import HapticDecoder

decoder = HapticDecoder()
frames = decoder.decode(bytes([0x00, 0x01, 0x40, 0x40]))
```

Answering a MAC address request (the address is made up):

```python
from hojapad.switch_commands import SwitchController

controller = SwitchController(mac_address=bytes([0x02, 0x00, 0x00, 0x00, 0x00, 0x01]))
report_id, report = controller.info(0x01)
assert report_id == 0x81 and report[3:9] == bytes([0x01, 0, 0, 0, 0, 0x02])
```

## What it does not do

hojapad works on values and byte strings only. It does not:

- read sticks, triggers, buttons or IMUs from hardware;
- open a USB or Bluetooth connection, or send reports anywhere;
- drive LEDs or rumble motors;
- save settings to storage.

Some things are left to the caller as flags or return values:

- a host-address change during pairing sets `SwitchController.host_changed`;
- a shutdown request (HCI subcommand) sets `SwitchController.shutdown_requested`;
- the player number is stored in `SwitchController.player`.

The pairing LTK is sixteen zero bytes unless the caller sets `SwitchController.ltk`. There is no
command-line program.

## Running the tests

```
pip install "hojapad[test]"
pytest
```