"""
Timers -- the delay and sound countdown counters.

Both counters are plain bytes decremented once per host timer tick
(nominally 60 Hz) and saturate at zero.  The machine beeps for as long as
the sound timer is non-zero; :meth:`Timers.tick` reports that as the
*tone* signal so the host audio layer can start or stop its beeper.
"""

from __future__ import annotations


class Timers:
    """Delay / sound timer pair."""

    def __init__(self) -> None:
        self._delay: int = 0
        self._sound: int = 0
        self._tone: bool = False

    @property
    def delay(self) -> int:
        return self._delay

    @delay.setter
    def delay(self, value: int) -> None:
        self._delay = value & 0xFF

    @property
    def sound(self) -> int:
        return self._sound

    @sound.setter
    def sound(self, value: int) -> None:
        self._sound = value & 0xFF

    @property
    def tone_active(self) -> bool:
        """Tone signal produced by the most recent :meth:`tick`."""
        return self._tone

    def tick(self) -> bool:
        """Decrement both counters by one, saturating at zero.

        Returns:
            ``True`` if the sound timer was running during this tick.
        """
        self._tone = self._sound > 0
        if self._delay > 0:
            self._delay -= 1
        if self._sound > 0:
            self._sound -= 1
        return self._tone

    def reset(self) -> None:
        self._delay = 0
        self._sound = 0
        self._tone = False

    def __repr__(self) -> str:
        return f"Timers(delay={self._delay}, sound={self._sound})"
