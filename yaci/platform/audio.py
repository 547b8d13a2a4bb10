"""
Beeper for YACI.
Uses pygame.mixer to play the machine's single tone.

CHIP-8 has no sound hardware beyond a buzzer that sounds while the sound
timer is non-zero.  The engine reports this as a *tone* signal from every
timer tick; :class:`Beeper` turns it into audio by looping one pre-built
square-wave :class:`pygame.mixer.Sound` while the signal is high and
stopping it when the signal drops.

The waveform is generated once with **numpy** as signed 16-bit mono
samples covering a whole number of periods, so the loop is seamless.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pygame

logger = logging.getLogger(__name__)

_SAMPLE_RATE: int = 44100
_MIXER_BUFFER_SAMPLES: int = 512
_DEFAULT_FREQUENCY: float = 440.0
_DEFAULT_VOLUME: float = 0.25


def square_wave(frequency: float, sample_rate: int, amplitude: float) -> np.ndarray:
    """Return one seamless loop of a square wave as ``int16`` samples.

    Parameters
    ----------
    frequency:
        Tone frequency in Hz.
    sample_rate:
        Output sample rate in Hz.
    amplitude:
        Peak level, 0.0 .. 1.0.
    """
    if frequency <= 0:
        raise ValueError(f"frequency must be positive, got {frequency}")
    period = max(2, int(round(sample_rate / frequency)))
    # Roughly 1/20 s of audio, rounded to whole periods.
    periods = max(1, sample_rate // (20 * period))
    t = np.arange(period * periods)
    level = int(32767 * max(0.0, min(1.0, amplitude)))
    wave = np.where((t % period) < period // 2, level, -level)
    return wave.astype(np.int16)


class Beeper:
    """Start and stop a looping tone from the machine's tone signal.

    Parameters
    ----------
    enabled:
        Set to ``False`` to create the device in a silent / no-op mode.
    frequency:
        Tone frequency in Hz.
    volume:
        Playback volume, 0.0 .. 1.0.
    """

    def __init__(
        self,
        *,
        enabled: bool = True,
        frequency: float = _DEFAULT_FREQUENCY,
        volume: float = _DEFAULT_VOLUME,
    ) -> None:
        self._enabled: bool = enabled
        self._frequency: float = frequency
        self._volume: float = volume
        self._sound: Optional[pygame.mixer.Sound] = None
        self._playing: bool = False

        if not self._enabled:
            logger.info("Beeper: disabled (silent mode)")
            return

        self._init_mixer()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def playing(self) -> bool:
        return self._playing

    def update(self, tone: bool) -> None:
        """Follow the tone signal from :meth:`Chip8.timer_tick`."""
        if not self._enabled or self._sound is None:
            return
        if tone and not self._playing:
            self._sound.play(loops=-1)
            self._playing = True
        elif not tone and self._playing:
            self._sound.stop()
            self._playing = False

    def shutdown(self) -> None:
        """Stop playback and release the mixer."""
        if self._sound is not None:
            self._sound.stop()
            self._sound = None
        self._playing = False
        if pygame.mixer.get_init():
            pygame.mixer.quit()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _init_mixer(self) -> None:
        try:
            pygame.mixer.init(
                frequency=_SAMPLE_RATE,
                size=-16,       # signed 16-bit
                channels=1,     # mono
                buffer=_MIXER_BUFFER_SAMPLES,
            )
        except pygame.error as exc:
            logger.warning("Beeper: pygame.mixer.init failed (%s); audio off", exc)
            self._enabled = False
            return

        frequency, _, channels = pygame.mixer.get_init()
        samples = square_wave(self._frequency, frequency, 1.0)
        if channels > 1:
            samples = np.repeat(samples[:, np.newaxis], channels, axis=1)
        self._sound = pygame.mixer.Sound(buffer=np.ascontiguousarray(samples).tobytes())
        self._sound.set_volume(self._volume)

        logger.info(
            "Beeper: mixer ready at %d Hz, %d ch, tone %.0f Hz",
            frequency,
            channels,
            self._frequency,
        )
