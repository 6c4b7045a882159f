"""Analog stick calibration and octagonal scaling."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

STICK_CENTER = 2048
STICK_MAX = 4095
CALIBRATION_DEADZONE = 125
SCALE_DISTANCE = STICK_CENTER

ANGLE_LUT = (0.0, 45.0, 90.0, 135.0, 180.0, 225.0, 270.0, 315.0)
BASE_ANGLES_LUT = (337.5, 22.5, 67.5, 112.5, 157.5, 202.5, 247.5, 292.5)

ALL_OCTANTS_CAPTURED = 0xFFFF


def _roundf(value: float) -> int:
    """Round half away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _clamp(value: float, low: float, high: float) -> float:
    if math.isnan(value) or value < low:
        return low
    if value > high:
        return high
    return value


def _fdiv(numerator: float, denominator: float) -> float:
    """Divide like IEEE floats: a zero denominator gives infinity or NaN."""
    if denominator == 0:
        if numerator == 0:
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def stick_get_angle(x: int, y: int, center_x: int, center_y: int) -> float:
    """Angle in degrees [0, 360) of a point around a center."""
    angle = math.degrees(math.atan2(y - center_y, x - center_x))
    if angle < 0:
        angle += 360.0
    elif angle >= 360.0:
        angle -= 360.0
    return angle


def stick_get_distance(x: int, y: int, center_x: int, center_y: int) -> float:
    """Euclidean distance of a point from a center."""
    return math.hypot(float(x) - float(center_x), float(y) - float(center_y))


def stick_normalized_vector(angle: float) -> tuple[float, float]:
    """Unit vector (x, y) pointing at the given angle in degrees."""
    rad = math.radians(angle)
    return math.cos(rad), math.sin(rad)


def angle_distance(angle1: float, angle2: float) -> float:
    """Shortest distance between two angles on the circle."""
    diff = abs(angle1 - angle2)
    return min(diff, 360.0 - diff)


def is_angle_between(angle: float, a1: float, a2: float) -> bool:
    """True if angle lies in [a1, a2], wrapping past 360 when a1 > a2."""
    if a1 <= a2:
        return a1 <= angle <= a2
    return angle >= a1 or angle <= a2


def get_octant(angle: float) -> int:
    """Octant 0-7 of an angle, each octant covering 45 degrees."""
    angle = math.fmod(angle, 360.0)
    if angle < 0:
        angle += 360.0
    return int(angle / 45.0) % 8


def angle_adjust(angle: float, adjustment: float) -> float:
    """Add an adjustment to an angle, wrapping once into range."""
    out = angle + adjustment
    if out > 360.0:
        out -= 360.0
    elif out < 0:
        out += 360.0
    return out


def _processed_octant(angle: float, calibrated_angles: list[float]) -> int:
    out = 0
    for i, start in enumerate(calibrated_angles):
        end = calibrated_angles[(i + 1) % 8]
        if is_angle_between(angle, start, end):
            out = i
    return out


@dataclass
class AnalogData:
    """Raw or processed positions of both sticks, 0-4095 per axis."""

    lx: int = STICK_CENTER
    ly: int = STICK_CENTER
    rx: int = STICK_CENTER
    ry: int = STICK_CENTER


@dataclass
class StickCalibration:
    """Stored calibration of one stick."""

    center_x: int = STICK_CENTER
    center_y: int = STICK_CENTER
    invert_x: bool = False
    invert_y: bool = False
    angles: list[float] = field(default_factory=lambda: list(ANGLE_LUT))
    angle_distances: list[float] = field(default_factory=lambda: [float(SCALE_DISTANCE)] * 8)
    sub_angles: list[float] = field(default_factory=lambda: [0.0] * 8)


@dataclass
class SubAngleScale:
    """Piecewise rescaling of the angle inside one octant."""

    set: bool = False
    scale_lower: float = 1.0
    scale_upper: float = 1.0
    parting_angle: float = 22.5

    @classmethod
    def from_sub_angle(cls, sub_angle: float) -> "SubAngleScale":
        if sub_angle == 0:
            return cls()
        parting = 22.5 + sub_angle
        return cls(
            set=True,
            parting_angle=parting,
            scale_lower=22.5 / parting,
            scale_upper=_fdiv(22.5, 45.0 - parting),
        )

    def apply(self, angle: float) -> float:
        if not self.set:
            return angle
        if angle <= self.parting_angle:
            return angle * self.scale_lower
        return (angle - self.parting_angle) * self.scale_upper + 22.5


@dataclass
class _StickState:
    distance_scalers: list[float] = field(default_factory=lambda: [1.0] * 8)
    angle_scalers: list[float] = field(default_factory=lambda: [1.0] * 8)
    sub_states: list[SubAngleScale] = field(
        default_factory=lambda: [SubAngleScale() for _ in range(8)]
    )

    def precalculate(self, calibration: StickCalibration) -> None:
        self.distance_scalers = [_fdiv(SCALE_DISTANCE, d) for d in calibration.angle_distances]
        angles = calibration.angles
        self.angle_scalers = [
            _fdiv(45.0, angle_distance(a, angles[(i + 1) % 8])) for i, a in enumerate(angles)
        ]
        self.sub_states = [SubAngleScale.from_sub_angle(s) for s in calibration.sub_angles]

    def scale(self, angle: float, distance: float, calibration: StickCalibration) -> tuple[int, int]:
        angles = calibration.angles
        octant = _processed_octant(angle, angles)
        next_octant = (octant + 1) % 8

        total = angle_distance(angles[octant], angles[next_octant])
        along = angle_distance(angle, angles[octant])
        ratio = along / total if total else 0.0

        d_scaler = self.distance_scalers[octant] * (1.0 - ratio) + self.distance_scalers[next_octant] * ratio
        scaled_angle = along * self.angle_scalers[octant]
        sub = self.sub_states[octant]
        if sub.set:
            scaled_angle = sub.apply(scaled_angle)

        final_angle = angle_adjust(ANGLE_LUT[octant], scaled_angle)
        nx, ny = stick_normalized_vector(final_angle)
        nd = _clamp(distance * d_scaler, 0.0, float(STICK_CENTER))
        x = _clamp(nx * nd + STICK_CENTER, -1.0, float(STICK_MAX + 1))
        y = _clamp(ny * nd + STICK_CENTER, -1.0, float(STICK_MAX + 1))
        return (
            int(_clamp(_roundf(x), 0, STICK_MAX)),
            int(_clamp(_roundf(y), 0, STICK_MAX)),
        )


class StickScaler:
    """Scales raw stick readings using octagonal calibration of both sticks."""

    def __init__(self, left: StickCalibration | None = None, right: StickCalibration | None = None):
        self.left = left if left is not None else StickCalibration()
        self.right = right if right is not None else StickCalibration()
        self._left_state = _StickState()
        self._right_state = _StickState()
        self._distances_tracker = 0
        self.init()

    def init(self) -> None:
        """Recompute the scalers from the current calibration."""
        self._left_state.precalculate(self.left)
        self._right_state.precalculate(self.right)

    def reset_distances(self) -> None:
        """Clear captured angles and distances of both sticks."""
        self._distances_tracker = 0
        for cal in (self.left, self.right):
            cal.angle_distances[:] = [0.0] * 8
            cal.angles[:] = [0.0] * 8

    def capture_center(self, data: AnalogData) -> None:
        """Take the current position of both sticks as their centers."""
        self.left.center_x, self.left.center_y = data.lx, data.ly
        self.right.center_x, self.right.center_y = data.rx, data.ry

    def _polar(self, data: AnalogData):
        left, right = self.left, self.right
        la = stick_get_angle(data.lx, data.ly, left.center_x, left.center_y)
        ra = stick_get_angle(data.rx, data.ry, right.center_x, right.center_y)
        ld = stick_get_distance(data.lx, data.ly, left.center_x, left.center_y)
        rd = stick_get_distance(data.rx, data.ry, right.center_x, right.center_y)
        return la, ld, ra, rd

    def capture_distances(self, data: AnalogData) -> bool:
        """Record outer distances near the cardinal/diagonal angles.

        Returns True once all eight octants of both sticks have been seen.
        """
        la, ld, ra, rd = self._polar(data)
        for shift, cal, angle, distance in ((0, self.left, la, ld), (8, self.right, ra, rd)):
            octant = get_octant(angle_adjust(angle, 22.5))
            remainder = math.fmod(angle, 45.0)
            if remainder < 1 or remainder > 44:
                if distance > cal.angle_distances[octant] and distance > CALIBRATION_DEADZONE:
                    cal.angle_distances[octant] = distance
                    cal.angles[octant] = angle
                    self._distances_tracker |= 1 << (octant + shift)
        return self._distances_tracker == ALL_OCTANTS_CAPTURED

    def capture_angle(self, data: AnalogData) -> bool:
        """Store the angle of a tilted stick for its octant; False if neither is tilted."""
        la, ld, ra, rd = self._polar(data)
        for cal, angle, distance in ((self.left, la, ld), (self.right, ra, rd)):
            if distance > CALIBRATION_DEADZONE:
                octant = get_octant(angle_adjust(angle, 22.5))
                cal.angles[octant] = angle
                cal.angle_distances[octant] = distance
                self.init()
                return True
        return False

    def _octant_axis(self, data: AnalogData, offset: float) -> tuple[int, int] | None:
        la, ld, ra, rd = self._polar(data)
        if ld > CALIBRATION_DEADZONE:
            return 0, get_octant(angle_adjust(la, offset) if offset else la)
        if rd > CALIBRATION_DEADZONE:
            return 1, get_octant(angle_adjust(ra, offset) if offset else ra)
        return None

    def octant_axis(self, data: AnalogData) -> tuple[int, int] | None:
        """(axis, octant) of the tilted stick, axis 0 left and 1 right; None if centered."""
        return self._octant_axis(data, 0.0)

    def octant_axis_offset(self, data: AnalogData) -> tuple[int, int] | None:
        """Like octant_axis, with octants shifted by 22.5 degrees."""
        return self._octant_axis(data, 22.5)

    def process(self, data: AnalogData) -> AnalogData:
        """Scale raw positions of both sticks."""
        la, ld, ra, rd = self._polar(data)
        lx, ly = self._left_state.scale(la, ld, self.left)
        rx, ry = self._right_state.scale(ra, rd, self.right)
        return AnalogData(
            lx=STICK_MAX - lx if self.left.invert_x else lx,
            ly=STICK_MAX - ly if self.left.invert_y else ly,
            rx=STICK_MAX - rx if self.right.invert_x else rx,
            ry=STICK_MAX - ry if self.right.invert_y else ry,
        )