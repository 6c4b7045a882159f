"""Analog trigger calibration and scaling to a 12-bit range."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

TRIGGER_DEADZONE = 150
TRIGGER_MAX = 0xFFF
_LOWER_RESET = 0x7FFF


@dataclass
class TriggerCalibration:
    """Stored calibration of one analog trigger."""

    lower: int = 0
    upper: int = 0
    disabled: bool = False


def _scaler(calibration: TriggerCalibration) -> float:
    span = calibration.upper - (calibration.lower + TRIGGER_DEADZONE)
    if span == 0:
        return math.inf
    return TRIGGER_MAX / span


def _gain(scaler: float) -> float:
    if math.isnan(scaler) or scaler < 0:
        return math.nan
    return scaler ** 1.25


def _scaled(value: int, calibration: TriggerCalibration, scaler: float) -> int:
    if calibration.disabled:
        return 0
    result = (float(value) - (calibration.lower + TRIGGER_DEADZONE)) * _gain(scaler)
    if math.isnan(result) or result < 0:
        return 0
    return int(min(result, float(TRIGGER_MAX)))


def _track(value: int, calibration: TriggerCalibration) -> None:
    if value < calibration.lower:
        calibration.lower = value & _LOWER_RESET
    unsigned = value & 0xFFFF
    if unsigned > calibration.upper:
        calibration.upper = unsigned


@dataclass
class TriggerScaler:
    """Scales raw readings of both analog triggers to 0-4095."""

    left: TriggerCalibration = field(default_factory=TriggerCalibration)
    right: TriggerCalibration = field(default_factory=TriggerCalibration)

    def __init__(
        self, left: TriggerCalibration | None = None, right: TriggerCalibration | None = None
    ):
        self.left = left if left is not None else TriggerCalibration()
        self.right = right if right is not None else TriggerCalibration()
        self.calibrating = False
        self._left_scaler = 1.0
        self._right_scaler = 1.0
        self.init_scalers()

    def set_disabled(self, left_right: bool, disabled: bool) -> None:
        """Disable or enable a trigger; left_right False is the left one."""
        target = self.right if left_right else self.left
        target.disabled = disabled

    def start_calibration(self) -> None:
        """Begin tracking the lowest and highest readings of both triggers."""
        for calibration in (self.left, self.right):
            calibration.lower = _LOWER_RESET
            calibration.upper = 0
        self.calibrating = True

    def stop_calibration(self) -> None:
        self.calibrating = False

    def init_scalers(self) -> None:
        """Recompute the scalers of triggers that have a calibrated upper value."""
        if self.left.upper > 0:
            self._left_scaler = _scaler(self.left)
        if self.right.upper > 0:
            self._right_scaler = _scaler(self.right)

    def scale(self, left_in: int, right_in: int) -> tuple[int, int]:
        """Scaled (left, right) outputs of two raw readings."""
        if self.calibrating:
            _track(left_in, self.left)
            _track(right_in, self.right)
            self.init_scalers()
        return (
            _scaled(left_in, self.left, self._left_scaler),
            _scaled(right_in, self.right, self._right_scaler),
        )