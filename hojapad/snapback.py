"""Suppression of stick snapback after a fast release, and snapback capture reports."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from hojapad.stick_scaling import STICK_CENTER, AnalogData

CENTER = STICK_CENTER

TRIGGER_THRESHOLD = 3
SNAPBACK_WIDTH_MAX = 30
SNAPBACK_STORE_HEIGHT = 650
CROSSOVER_EXPIRATION = 20
DECAY_TOLERANCE = 4

CAP_OFFSET = 265
UPPER_CAP = 4095 - CAP_OFFSET
LOWER_CAP = CAP_OFFSET
REPORT_SIZE = 64
_REPORT_SAMPLES = 62


def is_opposite_direction(x1: int, y1: int, x2: int, y2: int) -> bool:
    """True if the two positions point to opposite sides of the center."""
    return (x1 - CENTER) * (x2 - CENTER) + (y1 - CENTER) * (y2 - CENTER) < 0


def distance_from_center(x: int, y: int) -> float:
    """Distance of a position from the stick center."""
    return math.hypot(float(x) - CENTER, float(y) - CENTER)


@dataclass
class AxisFilter:
    """Snapback detector for one stick."""

    last_distance: float = 0.0
    stored_x: int = 0
    stored_y: int = 0
    crossover_expiration: int = 0
    triggered: bool = False
    trigger: int = 0
    trigger_width: int = 0
    decay_timer: int = 0
    rising: bool = False
    decaying: bool = False

    def _center_crossed(self, x: int, y: int) -> bool:
        if self.stored_x < 0:
            return False
        if is_opposite_direction(self.stored_x, self.stored_y, x, y):
            self.stored_x = -1
            self.stored_y = -1
            return True
        return False

    def add(self, x: int, y: int) -> tuple[int, int]:
        """Feed one position and return the filtered position."""
        out = (x, y)
        distance = distance_from_center(x, y)

        if distance >= SNAPBACK_STORE_HEIGHT:
            self.stored_x = x
            self.stored_y = y
            self.crossover_expiration = CROSSOVER_EXPIRATION
        elif self.crossover_expiration:
            self.crossover_expiration -= 1

        if self._center_crossed(x, y) and self.crossover_expiration > 0:
            out = (CENTER, CENTER)
            self.triggered = False
            self.rising = True
            self.decaying = False
            self.trigger_width = 0
            self.trigger = 0
        elif self.rising:
            out = (CENTER, CENTER)
            self.trigger_width = (self.trigger_width + 1) & 0xFF

            if distance <= self.last_distance:
                self.triggered = True
                self.trigger = (self.trigger + 1) & 0xFF
            else:
                self.trigger = 0

            if self.trigger_width >= SNAPBACK_WIDTH_MAX:
                self.rising = False
                self.decaying = False
                out = (x, y)
            elif self.trigger >= TRIGGER_THRESHOLD:
                self.triggered = False
                self.rising = False
                self.decaying = True
                self.decay_timer = (self.trigger_width + DECAY_TOLERANCE) & 0xFF
                self.stored_x = x
                self.stored_y = y
                self.crossover_expiration = CROSSOVER_EXPIRATION
        elif self.decaying:
            out = (CENTER, CENTER)
            self.decay_timer = (self.decay_timer - 1) & 0xFF
            if not self.decay_timer:
                self.triggered = False
                self.rising = False
                self.decaying = False

        self.last_distance = distance
        return out


class SnapbackFilter:
    """Applies snapback suppression to both sticks; absent sticks stay centered."""

    def __init__(self, left_enabled: bool = True, right_enabled: bool = True):
        self.left_enabled = left_enabled
        self.right_enabled = right_enabled
        self.left = AxisFilter()
        self.right = AxisFilter()

    def process(self, data: AnalogData) -> AnalogData:
        lx, ly = self.left.add(data.lx, data.ly) if self.left_enabled else (CENTER, CENTER)
        rx, ry = self.right.add(data.rx, data.ry) if self.right_enabled else (CENTER, CENTER)
        return AnalogData(lx=lx, ly=ly, rx=rx, ry=ry)


_AXES = ("lx", "ly", "rx", "ry")


@dataclass
class SnapbackCapture:
    """Records one axis swinging back from an edge and packs it into a 64-byte report.

    Call step once per capture interval; it returns the report when complete.
    """

    command: int = 0
    _report: bytearray = field(default_factory=lambda: bytearray(REPORT_SIZE), init=False, repr=False)
    _index: int = field(default=0, init=False, repr=False)
    _capturing: bool = field(default=False, init=False, repr=False)
    _selection: int | None = field(default=None, init=False, repr=False)

    def _add_value(self, value: int) -> bool:
        self._report[self._index + 2] = (value >> 4) & 0xFF
        self._index += 1
        if self._index >= _REPORT_SAMPLES:
            self._index = 0
            return True
        return False

    def step(self, data: AnalogData) -> bytes | None:
        if self._capturing:
            value = getattr(data, _AXES[self._selection])
            if self._add_value(value):
                self._report[0] = self.command & 0xFF
                self._report[1] = self._selection
                self._capturing = False
                self._selection = None
                return bytes(self._report)
        elif self._selection is None:
            for index, axis in enumerate(_AXES):
                value = getattr(data, axis)
                if value >= UPPER_CAP or value <= LOWER_CAP:
                    self._selection = index
                    break
        else:
            value = getattr(data, _AXES[self._selection])
            if LOWER_CAP < value < UPPER_CAP:
                self._capturing = True
        return None