"""Button macros: interval timing and the safe-mode toggle."""

from __future__ import annotations

from dataclasses import dataclass, field

_U32 = 0xFFFFFFFF
SAFE_MODE_PERIOD = 16000


@dataclass
class Interval:
    """Fires at most once per period of a free-running 32-bit microsecond clock."""

    last: int = 0

    def run(self, timestamp: int, period: int) -> bool:
        """True if at least period has passed since the last firing."""
        elapsed = (timestamp - self.last) & _U32
        if elapsed >= period:
            self.last = timestamp & _U32
            return True
        return False


@dataclass
class SafeModeMacro:
    """Toggles safe mode each time the safe-mode button is pressed and released."""

    period: int = SAFE_MODE_PERIOD
    _interval: Interval = field(default_factory=Interval, repr=False)
    _held: bool = field(default=False, repr=False)
    _state: bool = field(default=False, repr=False)

    def update(self, timestamp: int, pressed: bool) -> bool | None:
        """Sample the button; returns the new safe-mode state when it toggles."""
        if not self._interval.run(timestamp, self.period):
            return None
        if pressed and not self._held:
            self._held = True
        elif not pressed and self._held:
            self._held = False
            self._state = not self._state
            return self._state
        return None

    def active(self) -> bool:
        """Whether safe mode is on."""
        return self._state