"""Per-mode button remapping, remap learning and remap reports."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import IntEnum


class Mapcode(IntEnum):
    """Button codes; each code is also the bit position of the button."""

    DPAD_UP = 0
    DPAD_DOWN = 1
    DPAD_LEFT = 2
    DPAD_RIGHT = 3
    A = 4
    B = 5
    X = 6
    Y = 7
    L = 8
    ZL = 9
    R = 10
    ZR = 11
    PLUS = 12
    MINUS = 13
    STICK_LEFT = 14
    STICK_RIGHT = 15


class InputMode(IntEnum):
    SWPRO = 0
    XINPUT = 1
    GAMECUBE = 2
    N64 = 3
    SNES = 4
    GCUSB = 5


_FIELD_NAMES = (
    "dpad_up",
    "dpad_down",
    "dpad_left",
    "dpad_right",
    "button_a",
    "button_b",
    "button_x",
    "button_y",
    "trigger_l",
    "trigger_zl",
    "trigger_r",
    "trigger_zr",
    "button_plus",
    "button_minus",
    "button_stick_left",
    "button_stick_right",
)

_PROFILE_KEYS = {
    InputMode.GCUSB: "gamecube",
    InputMode.GAMECUBE: "gamecube",
    InputMode.XINPUT: "xinput",
    InputMode.N64: "n64",
    InputMode.SNES: "snes",
}

_DEFAULT_UNSET = {
    InputMode.N64: (1 << Mapcode.STICK_LEFT) | (1 << Mapcode.STICK_RIGHT),
    InputMode.GAMECUBE: (1 << Mapcode.MINUS)
    | (1 << Mapcode.STICK_LEFT)
    | (1 << Mapcode.STICK_RIGHT)
    | (1 << Mapcode.L),
    InputMode.SNES: (1 << Mapcode.STICK_LEFT)
    | (1 << Mapcode.STICK_RIGHT)
    | (1 << Mapcode.ZL)
    | (1 << Mapcode.ZR),
}

ANALOG_FULL = 4095


def default_unset(mode: InputMode) -> int:
    """Bitmask of buttons disabled by default in a mode."""
    return _DEFAULT_UNSET.get(mode, 0)


def _profile_key(mode: InputMode) -> str:
    return _PROFILE_KEYS.get(mode, "switch")


def _identity() -> list[Mapcode]:
    return list(Mapcode)


@dataclass
class ButtonState:
    """Digital buttons and analog triggers of a gamepad."""

    dpad_up: bool = False
    dpad_down: bool = False
    dpad_left: bool = False
    dpad_right: bool = False
    button_a: bool = False
    button_b: bool = False
    button_x: bool = False
    button_y: bool = False
    trigger_l: bool = False
    trigger_zl: bool = False
    trigger_r: bool = False
    trigger_zr: bool = False
    button_plus: bool = False
    button_minus: bool = False
    button_stick_left: bool = False
    button_stick_right: bool = False
    button_home: bool = False
    button_capture: bool = False
    button_unbind: bool = False
    zl_analog: int = 0
    zr_analog: int = 0


def _mask(state: ButtonState) -> int:
    return sum(1 << i for i, name in enumerate(_FIELD_NAMES) if getattr(state, name))


def _from_mask(mask: int, **extra) -> ButtonState:
    flags = {name: bool((mask >> i) & 1) for i, name in enumerate(_FIELD_NAMES)}
    return ButtonState(**flags, **extra)


@dataclass
class RemapProfile:
    """Remap of one mode: remap[input] is the output code, disabled masks inputs."""

    remap: list[Mapcode] = field(default_factory=_identity)
    disabled: int = 0

    def reset(self, mode: InputMode) -> None:
        """Restore the identity mapping and the mode's default disabled buttons."""
        self.remap[:] = _identity()
        self.disabled = default_unset(mode)


_SAFE_MODE_CLEARED = {
    "button_capture": False,
    "button_home": False,
    "button_plus": False,
    "button_minus": False,
    "dpad_up": False,
    "dpad_down": False,
    "dpad_left": False,
    "dpad_right": False,
}

_PLAIN_ORDER = (
    Mapcode.PLUS,
    Mapcode.MINUS,
    Mapcode.DPAD_UP,
    Mapcode.DPAD_DOWN,
    Mapcode.DPAD_LEFT,
    Mapcode.DPAD_RIGHT,
    Mapcode.A,
    Mapcode.B,
    Mapcode.X,
    Mapcode.Y,
    Mapcode.L,
    Mapcode.R,
)


class Remapper:
    """Routes input buttons to output buttons according to the active profile."""

    analog_threshold = 2048
    report_command = 0

    def __init__(self, mode: InputMode = InputMode.SWPRO, profiles: dict[str, RemapProfile] | None = None):
        self.profiles = profiles if profiles is not None else {}
        self.mode = mode
        self._active = self.profile(mode)
        self._remap_arr = list(self._active.remap)
        self._r_analog_remapped = self._remap_arr[Mapcode.ZR] != Mapcode.ZR
        self._l_analog_remapped = self._remap_arr[Mapcode.ZL] != Mapcode.ZL
        self._listening = False
        self._remap_code = Mapcode.A
        self._tmp_profile = self._active
        self._tmp_arr = list(self._active.remap)

    @property
    def listening(self) -> bool:
        return self._listening

    def profile(self, mode: InputMode) -> RemapProfile:
        """The stored profile used by a mode, created with defaults if missing."""
        return self.profiles.setdefault(_profile_key(mode), RemapProfile())

    def reset_default(self, mode: InputMode) -> None:
        """Reset a mode's profile to defaults and make it the active profile."""
        self._active = self.profile(mode)
        self._active.reset(mode)
        self._remap_arr = list(self._active.remap)

    def listen_enable(self, mode: InputMode, mapcode: Mapcode) -> None:
        """Wait for a button press that will be assigned to output mapcode."""
        self._tmp_profile = self.profile(mode)
        self._tmp_arr = list(self._tmp_profile.remap)
        self._remap_code = Mapcode(mapcode)
        self._listening = True

    def listen_stop(self) -> None:
        self._listening = False
        self._remap_arr = list(self._active.remap)

    def remap_report(self, mode: InputMode, gc_sp_mode: int = 0, gc_sp_light_trigger: int = 0) -> bytes:
        """64-byte report describing a mode's remap."""
        profile = self.profile(mode)
        self.listen_stop()
        report = bytearray(64)
        report[0] = self.report_command & 0xFF
        report[1] = int(mode) & 0xFF
        report[2:18] = bytes(int(code) & 0xFF for code in profile.remap)
        report[18] = (profile.disabled >> 8) & 0xFF
        report[19] = profile.disabled & 0xFF
        report[20] = gc_sp_mode & 0xFF
        report[21] = gc_sp_light_trigger & 0xFF
        return bytes(report)

    def _listen(self, mask: int, clear: bool) -> None:
        profile = self._tmp_profile
        arr = self._tmp_arr
        if mask:
            output_button = (mask & -mask).bit_length() - 1
            for i, code in enumerate(arr):
                if code == self._remap_code:
                    profile.disabled |= 1 << i
            arr[output_button] = self._remap_code
            profile.disabled &= ~(1 << output_button)
        elif clear:
            for i, code in enumerate(arr):
                if code == self._remap_code:
                    profile.disabled |= 1 << i
        else:
            return
        profile.remap[:] = arr
        self.listen_stop()

    def _route(self, pressed: bool, code: Mapcode) -> int:
        if not pressed or (self._active.disabled >> code) & 1:
            return 0
        return 1 << self._remap_arr[code]

    def _trigger(self, mask: int, pressed: bool, analog: int | None, code: Mapcode, remapped: bool):
        bit = 1 << code
        if analog is None:
            mask |= self._route(pressed, code)
            return mask, ANALOG_FULL if mask & bit else 0
        if remapped:
            mask |= self._route(analog >= self.analog_threshold or pressed, code)
            return mask, ANALOG_FULL if mask & bit else 0
        mask = mask | bit if pressed else mask & ~bit
        return mask, analog

    def process(
        self,
        buttons: ButtonState,
        safe_mode: bool = False,
        zl_analog: int | None = None,
        zr_analog: int | None = None,
    ) -> ButtonState | None:
        """Remap one input state; None while listening for a remap.

        zl_analog and zr_analog are scaled trigger values, or None for digital triggers.
        """
        if self._listening:
            clear = buttons.button_unbind
            self._listen(0 if clear else _mask(buttons), clear)
            return None

        if safe_mode:
            buttons = replace(buttons, **_SAFE_MODE_CLEARED)

        mask = 0
        for code in _PLAIN_ORDER:
            mask |= self._route(getattr(buttons, _FIELD_NAMES[code]), code)
        mask, zl_out = self._trigger(mask, buttons.trigger_zl, zl_analog, Mapcode.ZL, self._l_analog_remapped)
        mask, zr_out = self._trigger(mask, buttons.trigger_zr, zr_analog, Mapcode.ZR, self._r_analog_remapped)
        for code in (Mapcode.STICK_LEFT, Mapcode.STICK_RIGHT):
            mask |= self._route(getattr(buttons, _FIELD_NAMES[code]), code)

        return _from_mask(
            mask,
            button_home=buttons.button_home,
            button_capture=buttons.button_capture,
            zl_analog=zl_out,
            zr_analog=zr_out,
        )