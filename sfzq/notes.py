"""Decibel and MIDI-note frequency conversions."""

from __future__ import annotations

import math

_A4_NOTE = 12 * 5 + 9


def decibels_to_gain(decibels: float) -> float:
    """Convert decibels to a linear gain factor."""
    return 10.0 ** (decibels * 0.05)


def gain_to_decibels(gain: float) -> float:
    """Convert a linear gain factor to decibels."""
    if gain == 0.0:
        return -math.inf
    if gain < 0.0:
        return math.nan
    return 20.0 * math.log10(gain)


def note_hz(note: float, freq_of_a: float = 440.0) -> float:
    """Frequency of a (possibly fractional) MIDI note, with A4 at ``freq_of_a``."""
    return freq_of_a * 2.0 ** ((note - _A4_NOTE) / 12.0)


def note_for_frequency(hz: float, freq_of_a: float = 440.0) -> float:
    """Fractional MIDI note for a frequency, with A4 at ``freq_of_a``."""
    return 12.0 * math.log2(hz / freq_of_a) + _A4_NOTE