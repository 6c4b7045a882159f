"""Switch Pro Controller output-report handling and input-report building.

In IMU mode 2 the motion area (from byte 12) holds a little-endian bit stream:
mode 2 bits, max index 2 bits, three 21-bit last samples, three 15-bit and
three 7-bit deltas (all zero), an 11-bit start timestamp and a 6-bit
timestamp count, followed at byte 19 of the area by three int16 accelerations.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from hojapad.imu import ImuProcessor, ImuSample
from hojapad.switch_haptics import HapticDecoder, HapticFrame
from hojapad.switch_spi import spi_read

REPORT_SIZE = 64

OUT_ID_RUMBLE_CMD = 0x01
OUT_ID_RUMBLE = 0x10
OUT_ID_INFO = 0x80

CMD_SET_PAIRING = 0x01
CMD_GET_DEVICEINFO = 0x02
CMD_SET_INPUTMODE = 0x03
CMD_GET_TRIGGERET = 0x04
CMD_SET_HCI = 0x06
CMD_SET_SHIPMODE = 0x08
CMD_GET_SPI = 0x10
CMD_SET_SPI = 0x11
CMD_SET_NFC = 0x22
CMD_SET_PLAYER = 0x30
CMD_ENABLE_IMU = 0x40
CMD_ENABLE_VIBRATE = 0x48

REPORT_ID_COMMAND = 0x21
REPORT_ID_INFO = 0x81
REPORT_ID_INPUT = 0x30

BATTERY_CONNECTION = (8 << 4) | 1
DEFAULT_REPORTING_MODE = 0x3F

PRO_CONTROLLER_STRING = bytes(
    (0x00, 0x25, 0x08, 0x50, 0x72, 0x6F, 0x20, 0x43, 0x6F, 0x6E, 0x74, 0x72,
     0x6F, 0x6C, 0x6C, 0x65, 0x72, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x68)
)

_PLAYER_NUMBERS = {
    0b0001: 1,
    0b0011: 2,
    0b0111: 3,
    0b1111: 4,
    0b1001: 5,
    0b1010: 6,
    0b1011: 7,
    0b0110: 8,
}

_TRIGGER_TIME_10MS = 100
_U32 = 0xFFFFFFFF


def player_number(bits: int) -> int:
    """Player number 1-8 of the player-light pattern; unknown patterns give 1."""
    return _PLAYER_NUMBERS.get(bits & 0xF, 1)


def _s32(value: int) -> int:
    value &= _U32
    return value - (1 << 32) if value & 0x80000000 else value


def _s16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _int16_bytes(value: int) -> bytes:
    return (value & 0xFFFF).to_bytes(2, "little")


def _pad(data: Sequence[int]) -> bytes:
    return bytes(b & 0xFF for b in data[:REPORT_SIZE]).ljust(REPORT_SIZE, b"\x00")


def _imu_group(sample: ImuSample) -> bytes:
    order = (sample.ay, sample.ax, sample.az, sample.gy, sample.gx, sample.gz)
    return b"".join(_int16_bytes(v) for v in order)


def _pack_mode2(packet: dict) -> bytes:
    fields = [(packet["mode"], 2), (packet["max_index"], 2)]
    fields += [(sample, 21) for sample in packet["last_sample"]]
    fields += [(0, 15)] * 3 + [(0, 7)] * 3
    fields += [(packet["timestamp_start"], 11), (packet["timestamp_count"], 6)]
    word = 0
    shift = 0
    for value, width in fields:
        word |= (value & ((1 << width) - 1)) << shift
        shift += width
    bits = word.to_bytes((shift + 7) // 8, "little")
    accel = b"".join(_int16_bytes(v) for v in packet["accel"])
    return bits + accel


@dataclass
class SwitchInput:
    """Button bytes and 12-bit stick values of one input report."""

    right_buttons: int = 0
    shared_buttons: int = 0
    left_buttons: int = 0
    ls_x: int = 2048
    ls_y: int = 2048
    rs_x: int = 2048
    rs_y: int = 2048


class SwitchController:
    """Answers host output reports and builds input reports of a Pro Controller.

    Every method that replies returns (report_id, 64 bytes), or None when nothing is sent.
    """

    def __init__(
        self,
        mac_address: Sequence[int] = bytes(6),
        host_address: Sequence[int] = bytes(6),
        imu: ImuProcessor | None = None,
        haptics: HapticDecoder | None = None,
    ):
        if len(mac_address) != 6 or len(host_address) != 6:
            raise ValueError("addresses must be 6 bytes long")
        self.mac_address = bytes(mac_address)
        self.host_address = bytearray(host_address)
        self.imu = imu if imu is not None else ImuProcessor()
        self.haptics = haptics if haptics is not None else HapticDecoder()
        self.ltk = bytes(16)
        self.reporting_mode = DEFAULT_REPORTING_MODE
        self.imu_mode = 0
        self.player: int | None = None
        self.host_changed = False
        self.shutdown_requested = False
        self.rumble_frames: list[HapticFrame] = []
        self.after_input_report: Callable[[], None] | None = None
        self._timer = 0
        self._last_time = 0
        self._sequence = itertools.cycle((0xB, 0xC, 0xA))

    def _timer_byte(self, timestamp: int) -> int:
        now = timestamp & _U32
        diff = abs(_s32(now) - _s32(self._last_time)) // 1000
        self._last_time = now
        out = self._timer & 0xFF
        timer = _s16(self._timer + diff)
        if timer > 0xFF:
            timer -= 0xFF
        self._timer = timer
        return out

    def _new_report(self, timestamp: int) -> bytearray:
        report = bytearray(REPORT_SIZE)
        report[0] = self._timer_byte(timestamp)
        report[1] = BATTERY_CONNECTION
        return report

    def _rumble(self, data: bytes) -> None:
        frames = self.haptics.decode(data[2:6])
        if frames:
            self.rumble_frames = frames

    def handle_report(self, report_id: int, data: Sequence[int], timestamp: int = 0):
        """Handle one output report from the host."""
        payload = _pad(data)
        if report_id == OUT_ID_RUMBLE_CMD:
            self._rumble(payload)
            return self.command(payload[10], payload, timestamp)
        if report_id == OUT_ID_RUMBLE:
            self._rumble(payload)
            return None
        if report_id == OUT_ID_INFO:
            return self.info(payload[1])
        return None

    def _pairing(self, report: bytearray, phase: int, host: bytes) -> None:
        report[12] = 0x81
        if phase == 2:
            report[14] = 2
            report[15:31] = self.ltk
        elif phase == 3:
            report[14] = 3
        else:
            for i in range(6):
                if self.host_address[i] != host[5 - i]:
                    self.host_address[i] = host[5 - i]
                    self.host_changed = True
            report[14] = 1
            report[15:21] = self.mac_address[::-1]
            report[21:45] = PRO_CONTROLLER_STRING

    def command(self, command: int, data: Sequence[int], timestamp: int = 0):
        """Run a subcommand; data is the whole output report (arguments from byte 11)."""
        args = _pad(data)
        report = self._new_report(timestamp)
        report[13] = command & 0xFF

        if command == CMD_SET_NFC:
            report[12] = 0x80
        elif command == CMD_ENABLE_IMU:
            self.imu.enabled = args[11] > 0
            self.imu_mode = args[11]
            report[12] = 0x80
        elif command == CMD_SET_PAIRING:
            self._pairing(report, args[11], args[12:18])
        elif command == CMD_SET_INPUTMODE:
            report[12] = 0x80
            self.reporting_mode = args[11]
        elif command == CMD_GET_DEVICEINFO:
            report[12] = 0x82
            report[14:18] = bytes((0x04, 0x33, 0x03, 0x02))
            report[24] = 0x01
            report[25] = 0x02
        elif command == CMD_SET_SHIPMODE:
            report[12] = 0x80
        elif command == CMD_GET_SPI:
            report[12] = 0x90
            reply = spi_read(args[12], args[11], args[15], self.host_address)
            report[14 : 14 + len(reply)] = reply
        elif command == CMD_SET_HCI:
            self.shutdown_requested = True
        elif command == CMD_GET_TRIGGERET:
            report[12] = 0x83
            pair = bytes((_TRIGGER_TIME_10MS & 0xFF, (_TRIGGER_TIME_10MS >> 8) & 0xFF))
            report[14:28] = pair * 7
        elif command == CMD_SET_PLAYER:
            report[12] = 0x80
            self.player = player_number(args[11])
        else:
            report[12] = 0x80

        return REPORT_ID_COMMAND, bytes(report)

    def info(self, info_code: int):
        """Answer an info request; code 1 asks for the MAC address."""
        report = bytearray(REPORT_SIZE)
        if info_code == 0x01:
            report[0:3] = bytes((0x01, 0x00, 0x03))
            report[3:9] = self.mac_address[::-1]
        else:
            report[0] = info_code & 0xFF
        return REPORT_ID_INFO, bytes(report)

    def input_report(self, input_data: SwitchInput, timestamp: int = 0):
        """Build a full input report; None unless the host selected mode 0x30."""
        if self.reporting_mode != REPORT_ID_INPUT:
            return None
        report = self._new_report(timestamp)

        if self.imu_mode == 0x01:
            group = _imu_group(self.imu.last())
            report[12:48] = group * 3
        elif self.imu_mode == 0x02:
            packed = _pack_mode2(self.imu.pack_quat(timestamp))
            report[12 : 12 + len(packed)] = packed

        report[2] = input_data.right_buttons & 0xFF
        report[3] = input_data.shared_buttons & 0xFF
        report[4] = input_data.left_buttons & 0xFF
        report[5] = input_data.ls_x & 0xFF
        report[6] = (input_data.ls_x & 0xF00) >> 8
        report[7] = (input_data.ls_y & 0xFF0) >> 4
        report[8] = input_data.rs_x & 0xFF
        report[9] = (input_data.rs_x & 0xF00) >> 8
        report[10] = (input_data.rs_y & 0xFF0) >> 4
        report[11] = next(self._sequence)

        if self.after_input_report is not None:
            self.after_input_report()
        return REPORT_ID_INPUT, bytes(report)