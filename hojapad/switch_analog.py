"""Packing of 12-bit stick value pairs in the Switch report format."""

from __future__ import annotations

from collections.abc import Sequence

_STICK_CALIBRATION_VALUE = 128 << 4


def encode(lower: int, upper: int) -> bytes:
    """Pack two 12-bit values into three bytes, lower value first."""
    return bytes(
        (
            lower & 0xFF,
            ((lower & 0xF00) >> 8) | ((upper & 0xF) << 4),
            (upper & 0xFF0) >> 4,
        )
    )


def decode(data: Sequence[int]) -> tuple[int, int]:
    """Unpack three bytes into the (lower, upper) pair of 12-bit values."""
    if len(data) != 3:
        raise ValueError(f"expected 3 bytes, got {len(data)}")
    s0, s1, s2 = (b & 0xFF for b in data)
    lower = ((s1 << 8) & 0xF00) | s0
    upper = ((s2 << 4) | (s1 >> 4)) & 0xFFF
    return lower, upper


def calibration_data() -> bytes:
    """The 18-byte factory stick calibration block for Pro Controller mode.

    Left stick: max, center, min; right stick: center, min, max.
    """
    minimum = center = maximum = _STICK_CALIBRATION_VALUE
    pairs = (maximum, center, minimum, center, minimum, maximum)
    return b"".join(encode(value, value) for value in pairs)