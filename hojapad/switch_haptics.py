"""Decoding of Switch HD rumble packets into amplitude/frequency frames.

A packet side is four bytes read as a little-endian 32-bit word. The top two
bits hold the frame count (0-3). The lower 30 bits hold one of four layouts:

type 1, three frames of 5-bit commands:
    bits 0-4 hi_2, 5-9 lo_2, 10-14 hi_1, 15-19 lo_1, 20-24 hi_0, 25-29 lo_0
type 2, one frame of explicit values (bits 0-1 clear):
    bits 2-8 freq_hi, 9-15 amp_hi, 16-22 freq_lo, 23-29 amp_lo
type 3, two frames, the first half explicit:
    bit 0 high_select, 1-7 freq_xx_0, 8-12 cmd_hi_1, 13-17 cmd_lo_1,
    18-22 cmd_xx_0, 23-29 amp_xx_0
type 4, one explicit value (bit 1 set):
    bit 0 high_select, 2 freq_select, 3-7 cmd_hi_2, 8-12 cmd_lo_2,
    13-17 cmd_hi_1, 18-22 cmd_lo_1, 23-29 xx_xx_0
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum

MIN_FREQUENCY = -2.0
MAX_FREQUENCY = 2.0
DEFAULT_FREQUENCY = 0.0
MIN_AMPLITUDE = -8.0
MAX_AMPLITUDE = 0.0
DEFAULT_AMPLITUDE = -8.0
STARTING_AMPLITUDE = -7.9375

CENTER_FREQ_HIGH = 320.0
CENTER_FREQ_LOW = 160.0

_EXP_RANGE_START = -8.0
_EXP_RESOLUTION = 1 / 32.0
_EXP_LENGTH = 320
_LOOKUP_LENGTH = 128
MAX_FRAMES = 3


class Action(IntEnum):
    """What a 5-bit command does to one linear value."""

    IGNORE = 0
    DEFAULT = 1
    SUBSTITUTE = 2
    SUM = 3


@dataclass(frozen=True)
class Command:
    """Amplitude and frequency actions of one 5-bit command."""

    am_action: Action
    fm_action: Action
    am_offset: float = 0.0
    fm_offset: float = 0.0


_D, _I, _S, _U = Action.DEFAULT, Action.IGNORE, Action.SUBSTITUTE, Action.SUM

COMMAND_TABLE: tuple[Command, ...] = (
    Command(_D, _D),
    Command(_S, _I, 0.0),
    Command(_S, _I, -0.5),
    Command(_S, _I, -1.0),
    Command(_S, _I, -1.5),
    Command(_S, _I, -2.0),
    Command(_S, _I, -2.5),
    Command(_S, _I, -3.0),
    Command(_S, _I, -3.5),
    Command(_S, _I, -4.0),
    Command(_S, _I, -4.5),
    Command(_S, _I, -5.0),
    Command(_I, _S, 0.0, -0.375),
    Command(_I, _S, 0.0, -0.1875),
    Command(_I, _S, 0.0, 0.0),
    Command(_I, _S, 0.0, 0.1875),
    Command(_I, _S, 0.0, 0.375),
    Command(_U, _U, 0.125, 0.03125),
    Command(_U, _I, 0.125, 0.0),
    Command(_U, _U, 0.125, -0.03125),
    Command(_U, _U, 0.03125, 0.03125),
    Command(_U, _I, 0.03125, 0.0),
    Command(_U, _U, 0.03125, -0.03125),
    Command(_I, _U, 0.0, 0.03125),
    Command(_I, _I, 0.0, 0.0),
    Command(_I, _U, 0.0, -0.03125),
    Command(_U, _U, -0.03125, 0.03125),
    Command(_U, _I, -0.03125, 0.0),
    Command(_U, _U, -0.03125, -0.03125),
    Command(_U, _U, -0.125, 0.03125),
    Command(_U, _I, -0.125, 0.0),
    Command(_U, _U, -0.125, -0.03125),
)


def _build_exp_table() -> tuple[float, ...]:
    table = []
    for i in range(_EXP_LENGTH):
        f = _EXP_RANGE_START + i * _EXP_RESOLUTION
        table.append(2.0 ** f if f >= STARTING_AMPLITUDE else 0.0)
    return tuple(table)


def _amplitude_value(i: int) -> float:
    if i == 0:
        return -8.0
    if i < 16:
        return 0.25 * i - 7.75
    if i < 32:
        return 0.0625 * i - 4.9375
    return 0.03125 * i - 3.96875


_EXP_TABLE = _build_exp_table()
_AMP_TABLE = tuple(_amplitude_value(i) for i in range(_LOOKUP_LENGTH))
_FREQ_TABLE = tuple(0.03125 * i - 2.0 for i in range(_LOOKUP_LENGTH))


def apply_command(
    action: Action, offset: float, current: float, default: float, minimum: float, maximum: float
) -> float:
    """New linear value after applying one command action."""
    action = Action(action)
    if action is Action.IGNORE:
        return current
    if action is Action.SUBSTITUTE:
        return offset
    if action is Action.SUM:
        return min(max(current + offset, minimum), maximum)
    return default


def _lookup_index(value: float) -> int:
    if int(int(value) - _EXP_RANGE_START) == 0:
        return 0
    index = int((value - _EXP_RANGE_START) / _EXP_RESOLUTION)
    return min(max(index, 0), _EXP_LENGTH - 1)


def exp2_lookup(value: float) -> float:
    """2 ** value from the 1/32-step table; values below the starting amplitude give 0."""
    return _EXP_TABLE[_lookup_index(value)]


def _check_index(index: int) -> int:
    if not 0 <= index < _LOOKUP_LENGTH:
        raise ValueError(f"lookup index must be 0-{_LOOKUP_LENGTH - 1}, got {index}")
    return index


def amplitude_lookup(index: int) -> float:
    """Linear amplitude of a 7-bit explicit amplitude code."""
    return _AMP_TABLE[_check_index(index)]


def frequency_lookup(index: int) -> float:
    """Linear frequency of a 7-bit explicit frequency code."""
    return _FREQ_TABLE[_check_index(index)]


def haptics_disabled(data: Sequence[int]) -> bool:
    """True if the packet carries the disable flag."""
    if len(data) < 4:
        raise ValueError(f"haptic packet needs 4 bytes, got {len(data)}")
    return bool(data[0] & 0x01) and bool(data[3] & 0x40)


@dataclass(frozen=True)
class HapticFrame:
    """One decoded rumble frame in Hz and linear amplitude."""

    high_frequency: float = 0.0
    low_frequency: float = 0.0
    high_amplitude: float = 0.0
    low_amplitude: float = 0.0


@dataclass
class LinearState:
    """Running log2-domain state of both rumble bands."""

    hi_amp: float = DEFAULT_AMPLITUDE
    lo_amp: float = DEFAULT_AMPLITUDE
    hi_freq: float = DEFAULT_FREQUENCY
    lo_freq: float = DEFAULT_FREQUENCY

    def to_frame(self) -> HapticFrame:
        """Convert the state to frequencies and amplitudes."""
        return HapticFrame(
            high_frequency=exp2_lookup(self.hi_freq) * CENTER_FREQ_HIGH,
            low_frequency=exp2_lookup(self.lo_freq) * CENTER_FREQ_LOW,
            high_amplitude=exp2_lookup(self.hi_amp),
            low_amplitude=exp2_lookup(self.lo_amp),
        )


def _bits(word: int, start: int, width: int) -> int:
    return (word >> start) & ((1 << width) - 1)


@dataclass
class HapticDecoder:
    """Stateful decoder of one side of rumble packets."""

    state: LinearState = field(default_factory=LinearState)
    _frames: list[HapticFrame] = field(
        default_factory=lambda: [HapticFrame() for _ in range(MAX_FRAMES)], repr=False
    )
    _count: int = field(default=0, repr=False)

    def _apply_hi(self, code: int) -> None:
        cmd = COMMAND_TABLE[code]
        s = self.state
        s.hi_freq = apply_command(
            cmd.fm_action, cmd.fm_offset, s.hi_freq, DEFAULT_FREQUENCY, MIN_FREQUENCY, MAX_FREQUENCY
        )
        s.hi_amp = apply_command(
            cmd.am_action, cmd.am_offset, s.hi_amp, DEFAULT_AMPLITUDE, MIN_AMPLITUDE, MAX_AMPLITUDE
        )

    def _apply_lo(self, code: int) -> None:
        cmd = COMMAND_TABLE[code]
        s = self.state
        s.lo_freq = apply_command(
            cmd.fm_action, cmd.fm_offset, s.lo_freq, DEFAULT_FREQUENCY, MIN_FREQUENCY, MAX_FREQUENCY
        )
        s.lo_amp = apply_command(
            cmd.am_action, cmd.am_offset, s.lo_amp, DEFAULT_AMPLITUDE, MIN_AMPLITUDE, MAX_AMPLITUDE
        )

    def _emit(self, index: int) -> None:
        self._frames[index] = self.state.to_frame()

    def _commands(self, index: int, hi_code: int, lo_code: int) -> None:
        self._apply_hi(hi_code)
        self._apply_lo(lo_code)
        self._emit(index)

    def _type1(self, word: int, count: int) -> None:
        self._count = count
        layout = ((20, 25), (10, 15), (0, 5))
        for index, (hi_at, lo_at) in enumerate(layout[:count]):
            self._commands(index, _bits(word, hi_at, 5), _bits(word, lo_at, 5))

    def _type2(self, word: int, count: int) -> None:
        self._count = count
        s = self.state
        s.hi_freq = frequency_lookup(_bits(word, 2, 7))
        s.hi_amp = amplitude_lookup(_bits(word, 9, 7))
        s.lo_freq = frequency_lookup(_bits(word, 16, 7))
        s.lo_amp = amplitude_lookup(_bits(word, 23, 7))
        self._emit(0)

    def _type3(self, word: int, count: int) -> None:
        self._count = count
        s = self.state
        if count > 0:
            freq = frequency_lookup(_bits(word, 1, 7))
            amp = amplitude_lookup(_bits(word, 23, 7))
            cmd = _bits(word, 18, 5)
            if _bits(word, 0, 1):
                s.hi_freq, s.hi_amp = freq, amp
                self._apply_lo(cmd)
            else:
                s.lo_freq, s.lo_amp = freq, amp
                self._apply_hi(cmd)
            self._emit(0)
        if count > 1:
            self._commands(1, _bits(word, 8, 5), _bits(word, 13, 5))

    def _type4(self, word: int, count: int) -> None:
        self._count = count
        s = self.state
        if count > 0:
            code = _bits(word, 23, 7)
            high = bool(_bits(word, 0, 1))
            freq = bool(_bits(word, 2, 1))
            if high and freq:
                s.hi_freq = frequency_lookup(code)
            elif high:
                s.hi_amp = amplitude_lookup(code)
            elif freq:
                s.lo_freq = frequency_lookup(code)
            else:
                s.lo_amp = amplitude_lookup(code)
            self._emit(0)
        if count > 1:
            self._commands(1, _bits(word, 13, 5), _bits(word, 18, 5))
        if count > 2:
            self._commands(2, _bits(word, 3, 5), _bits(word, 8, 5))

    def decode(self, data: Sequence[int]) -> list[HapticFrame]:
        """Decode the first four bytes of a packet into its frames.

        A packet whose layout is not recognised leaves the previous frames in place.
        """
        if len(data) < 4:
            raise ValueError(f"haptic packet needs 4 bytes, got {len(data)}")
        word = int.from_bytes(bytes(b & 0xFF for b in data[:4]), "little")
        count = word >> 30
        payload = word & 0x3FFFFFFF

        if count == 0:
            self.state.hi_amp = 0.0
            self._count = 0
        elif count == 1:
            if payload & 0xFFFFF == 0:
                self._type1(payload, count)
            elif payload & 0x3 == 0:
                self._type2(payload, count)
            elif payload & 0x2 == 2:
                self._type4(payload, count)
        elif count == 2:
            if payload & 0x3FF == 0:
                self._type1(payload, count)
            else:
                self._type3(payload, count)
        else:
            self._type1(payload, count)
        return list(self._frames[: self._count])