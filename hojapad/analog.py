"""Analog stick pipeline: scaling, snapback filtering, deadzones and output tracking."""

from __future__ import annotations

import math
from dataclasses import dataclass

from hojapad.snapback import SnapbackFilter
from hojapad.stick_scaling import (
    STICK_CENTER,
    STICK_MAX,
    AnalogData,
    StickScaler,
    stick_get_angle,
    stick_get_distance,
    stick_normalized_vector,
)

CENTER = STICK_CENTER
DEADZONE_DEFAULT = 100


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _clamp(value: float, low: float, high: float) -> float:
    if math.isnan(value) or value < low:
        return low
    if value > high:
        return high
    return value


def _scale_factor(center: float, outer: float) -> float:
    span = CENTER - center
    if span == 0:
        return math.inf
    return (CENTER + outer) / span


@dataclass
class DeadzoneSettings:
    """Inner (center) and outer deadzones of both sticks."""

    left_center: int = DEADZONE_DEFAULT
    left_outer: int = 0
    right_center: int = DEADZONE_DEFAULT
    right_outer: int = 0


def _deadzone_stick(x: int, y: int, center: int, outer: int) -> tuple[int, int]:
    distance = stick_get_distance(x, y, CENTER, CENTER)
    if distance <= center:
        return CENTER, CENTER
    distance -= center
    nx, ny = stick_normalized_vector(stick_get_angle(x, y, CENTER, CENTER))
    scaler = _clamp(distance * _scale_factor(center, outer), 0.0, float(CENTER))
    out_x = _clamp(_round_half_away(nx * scaler + CENTER), 0, STICK_MAX)
    out_y = _clamp(_round_half_away(ny * scaler + CENTER), 0, STICK_MAX)
    return int(out_x), int(out_y)


def process_deadzone(data: AnalogData, settings: DeadzoneSettings) -> AnalogData:
    """Zero out the inner deadzone of both sticks and rescale the remaining travel."""
    lx, ly = _deadzone_stick(data.lx, data.ly, settings.left_center, settings.left_outer)
    rx, ry = _deadzone_stick(data.rx, data.ry, settings.right_center, settings.right_outer)
    return AnalogData(lx=lx, ly=ly, rx=rx, ry=ry)


@dataclass
class DistanceTracker:
    """Holds one axis output so it only moves onward in the tracked direction."""

    tracked_direction: int = 0
    last_pos: int = 0

    def check(self, value: int, current: int) -> int:
        """Return the new output of the axis given its input and current output."""
        moving_up = (value - self.last_pos) > 0
        out = current
        if value == CENTER:
            out = CENTER
        elif not self.tracked_direction:
            self.tracked_direction = 1 if moving_up else -1
            out = value
        elif self.tracked_direction > 0:
            if value > self.last_pos:
                out = value
        elif value < self.last_pos:
            out = value
        self.last_pos = value
        return out

    def reset(self) -> None:
        self.tracked_direction = 0


_AXES = ("lx", "ly", "rx", "ry")


class AnalogProcessor:
    """Runs raw stick readings through scaling, snapback and deadzones, and drives calibration."""

    def __init__(
        self,
        scaler: StickScaler | None = None,
        deadzones: DeadzoneSettings | None = None,
        snapback: SnapbackFilter | None = None,
    ):
        self.scaler = scaler if scaler is not None else StickScaler()
        self.deadzones = deadzones if deadzones is not None else DeadzoneSettings()
        self.snapback = snapback if snapback is not None else SnapbackFilter()
        self.trackers = {axis: DistanceTracker() for axis in _AXES}
        self.output = AnalogData()
        self.calibrating = False
        self.centered = False
        self.all_angles_captured = False

    def reset_trackers(self) -> None:
        """Forget the tracked direction of every axis."""
        for tracker in self.trackers.values():
            tracker.reset()

    def calibrate_start(self) -> None:
        """Begin calibration: clear captured distances, angles and sub-angles."""
        self.scaler.reset_distances()
        for cal in (self.scaler.left, self.scaler.right):
            cal.sub_angles[:] = [0.0] * 8
        self.all_angles_captured = False
        self.centered = False
        self.calibrating = True

    def calibrate_stop(self) -> None:
        """End calibration and apply what was captured."""
        self.calibrating = False
        self.scaler.init()

    def calibrate_angle(self, data: AnalogData) -> bool:
        """Capture the angle of whichever stick is tilted."""
        return self.scaler.capture_angle(data)

    def octant_axis(self, data: AnalogData) -> tuple[int, int] | None:
        """(axis, octant) of the tilted stick, octants shifted by 22.5 degrees."""
        return self.scaler.octant_axis_offset(data)

    def octant_axis_offset(self, data: AnalogData) -> tuple[int, int] | None:
        """(axis, octant) of the tilted stick, octants aligned with the cardinals."""
        return self.scaler.octant_axis(data)

    def _calibration_step(self, data: AnalogData, home_pressed: bool) -> None:
        if not self.centered:
            self.scaler.capture_center(data)
            self.centered = True
        elif self.scaler.capture_distances(data) and not self.all_angles_captured:
            self.all_angles_captured = True
        if home_pressed:
            self.calibrate_stop()

    def process(self, data: AnalogData, home_pressed: bool = False) -> AnalogData | None:
        """Process one raw reading; returns the output, or None while calibrating."""
        if self.calibrating:
            self._calibration_step(data, home_pressed)
            return None

        scaled = self.scaler.process(data)
        desnapped = self.snapback.process(scaled)
        cleaned = process_deadzone(desnapped, self.deadzones)
        values = {
            axis: self.trackers[axis].check(getattr(cleaned, axis), getattr(self.output, axis))
            for axis in _AXES
        }
        self.output = AnalogData(**values)
        return self.output