"""IMU averaging, calibration, orientation tracking and quaternion packing."""

from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass, fields

CALIBRATE_CYCLES = 16000
FIFO_COUNT = 3
_INT16_MAX = 32767
_SCALE_FACTOR = 2000.0 / _INT16_MAX * math.pi / 180.0 / 1000000.0
_U32 = 0xFFFFFFFF


def _to_int16(value: int) -> int:
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def average_value(first: int, second: int) -> int:
    """Average of two readings, truncated toward zero and clamped to int16."""
    total = first + second
    half = abs(total) // 2
    result = half if total >= 0 else -half
    return max(-32768, min(32767, result))


@dataclass(frozen=True)
class ImuSample:
    """One accelerometer and gyroscope reading."""

    ax: int = 0
    ay: int = 0
    az: int = 0
    gx: int = 0
    gy: int = 0
    gz: int = 0

    def _values(self) -> list[int]:
        return [getattr(self, f.name) for f in fields(self)]


@dataclass(frozen=True)
class Quaternion:
    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def multiply(self, other: "Quaternion") -> "Quaternion":
        """Hamilton product self * other."""
        a, b = self, other
        return Quaternion(
            w=a.w * b.w - a.x * b.x - a.y * b.y - a.z * b.z,
            x=a.w * b.x + a.x * b.w + a.y * b.z - a.z * b.y,
            y=a.w * b.y - a.x * b.z + a.y * b.w + a.z * b.x,
            z=a.w * b.z + a.x * b.y - a.y * b.x + a.z * b.w,
        )

    def normalized(self) -> "Quaternion":
        inv = 1.0 / math.sqrt(self.x ** 2 + self.y ** 2 + self.z ** 2 + self.w ** 2)
        return Quaternion(w=self.w * inv, x=self.x * inv, y=self.y * inv, z=self.z * inv)

    @property
    def raw(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.z, self.w)


class ImuProcessor:
    """Combines two IMUs, tracks orientation and handles offset calibration."""

    def __init__(self):
        self.enabled = False
        self.calibrating = False
        self.offsets_0 = [0] * 6
        self.offsets_1 = [0] * 6
        self.quaternion = Quaternion()
        self.accel = (0, 0, 0)
        self._fifo: deque[ImuSample] = deque([ImuSample()] * FIFO_COUNT, maxlen=FIFO_COUNT)
        self._cycles_remaining = 0
        self._calibrate_init = False
        self._prev_timestamp = 0
        self._pack_last_time = 0
        self._accumulated_delta = 0
        self._q_timestamp = 0

    def _update_quaternion(self, sample: ImuSample, timestamp: int) -> None:
        dt = abs(float(timestamp) - float(self._prev_timestamp))
        self._prev_timestamp = timestamp

        angle_x = sample.gy * _SCALE_FACTOR * dt
        angle_y = sample.gx * _SCALE_FACTOR * dt
        angle_z = sample.gz * _SCALE_FACTOR * dt

        norm_sq = angle_x ** 2 + angle_y ** 2 + angle_z ** 2
        first = norm_sq * norm_sq / 3840.0 - norm_sq / 48 + 0.5
        second = norm_sq * norm_sq / 384.0 - norm_sq / 8 + 1
        step = Quaternion(w=second, x=angle_x * first, y=angle_y * first, z=angle_z * first)

        self.quaternion = self.quaternion.multiply(step).normalized()
        self.accel = (sample.ax, sample.ay, sample.az)

    def push(self, sample: ImuSample, timestamp: int) -> None:
        """Store a reading and advance the orientation estimate."""
        self._fifo.append(sample)
        self._update_quaternion(sample, timestamp)

    def last(self) -> ImuSample:
        """Most recent reading."""
        return self._fifo[-1]

    def pack_quat(self, timestamp: int) -> dict:
        """Pack the orientation into the fields of a mode-2 motion report.

        Components are 30-bit fixed point (1 << 30 is 1.0) with the largest one left out.
        """
        raw = self.quaternion.raw
        max_index = 0
        for i in range(1, 4):
            if raw[i] > abs(raw[max_index]):
                max_index = i
        sign = -1 if raw[max_index] < 0 else 1
        components = tuple(int(raw[(max_index + i + 1) & 3] * 0x40000000 * sign) for i in range(3))
        samples = tuple((c >> 10) & 0x1FFFFF for c in components)

        packet = {
            "mode": 2,
            "max_index": max_index,
            "components": components,
            "last_sample": samples,
            "timestamp_start": self._q_timestamp & 0x7FF,
            "timestamp_count": 3,
            "accel": self.accel,
        }

        timestamp &= _U32
        if timestamp < self._pack_last_time:
            delta = (_U32 - self._pack_last_time) + timestamp
        else:
            delta = timestamp - self._pack_last_time
        self._pack_last_time = timestamp
        self._accumulated_delta = (self._accumulated_delta + delta) & _U32

        if self._accumulated_delta > 1000:
            whole = self._accumulated_delta // 1000
            self._accumulated_delta %= 1000
            self._q_timestamp = (self._q_timestamp + whole) % 0x7FF
        return packet

    def _set_offsets(self, first: ImuSample, second: ImuSample) -> None:
        self.offsets_0 = first._values()
        self.offsets_1 = second._values()

    def calibrate_start(self, first: ImuSample, second: ImuSample) -> None:
        """Begin offset calibration, seeding the offsets with a first reading."""
        self.offsets_0 = [0] * 6
        self.offsets_1 = [0] * 6
        self.calibrating = True
        self._cycles_remaining = CALIBRATE_CYCLES
        self._calibrate_init = False
        self._set_offsets(first, second)

    def calibrate_step(self, first: ImuSample, second: ImuSample) -> bool:
        """Fold one reading into the offsets; True when calibration has just finished."""
        if not self._calibrate_init:
            self._set_offsets(first, second)
            self._calibrate_init = True
            return False
        self.offsets_0 = [average_value(o, v) for o, v in zip(self.offsets_0, first._values())]
        self.offsets_1 = [average_value(o, v) for o, v in zip(self.offsets_1, second._values())]
        self._cycles_remaining -= 1
        if not self._cycles_remaining:
            self.calibrating = False
            return True
        return False

    def task(
        self, timestamp: int, first: ImuSample | None, second: ImuSample | None = None
    ) -> ImuSample | None:
        """Handle one read cycle; returns the reading pushed, if any.

        A missing reading is passed as None.
        """
        if self.calibrating:
            self.calibrate_step(first or ImuSample(), second or ImuSample())
            return None
        if not self.enabled:
            return None

        if first is not None and second is not None:
            values = [
                average_value(_to_int16(a - oa), _to_int16(b - ob))
                for a, oa, b, ob in zip(first._values(), self.offsets_0, second._values(), self.offsets_1)
            ]
            sample = ImuSample(*values)
        elif first is not None:
            sample = first
        else:
            return None
        self.push(sample, timestamp)
        return sample