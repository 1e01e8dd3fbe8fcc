"""Amplitude envelope generator: delay, attack, hold, decay, sustain, release."""

from __future__ import annotations

import dataclasses
import math
from enum import Enum

from .region import EGParameters

FAST_RELEASE_TIME = 0.01
_SUSTAIN_SAMPLES = 0x7FFFFFFF
# Decay constant for exponential segments, as used by LinuxSampler.
_EXPONENTIAL_FACTOR = -9.226


class Segment(Enum):
    DELAY = 0
    ATTACK = 1
    HOLD = 2
    DECAY = 3
    SUSTAIN = 4
    RELEASE = 5
    DONE = 6


def _per_sample(amount: float, samples: int) -> float:
    if samples == 0:
        if amount == 0:
            return math.nan
        return math.copysign(math.inf, amount)
    return amount / samples


class SFZEG:
    """Envelope state: the current level, its per-sample slope and the segment."""

    def __init__(self):
        self.level = 0.0
        self.slope = 0.0
        self.samples_until_next_segment = 0
        self.segment_is_exponential = False
        self.segment = Segment.DONE
        self.parameters = EGParameters()
        self.sample_rate = 0.0
        self.exponential_decay = False

    def set_exponential_decay(self, exponential_decay: bool) -> None:
        self.exponential_decay = exponential_decay

    def start_note(self, parameters, float_velocity, sample_rate, vel_mod=None) -> None:
        """Begin the envelope, with times optionally modified by velocity."""
        params = dataclasses.replace(parameters)
        if vel_mod is not None:
            params.delay += float_velocity * vel_mod.delay
            params.attack += float_velocity * vel_mod.attack
            params.hold += float_velocity * vel_mod.hold
            params.decay += float_velocity * vel_mod.decay
            params.sustain += float_velocity * vel_mod.sustain
            params.sustain = min(max(params.sustain, 0.0), 100.0)
            params.release += float_velocity * vel_mod.release
        self.parameters = params
        self.sample_rate = sample_rate
        self._start_delay()

    def next_segment(self) -> None:
        """Move on to the segment after the current one."""
        segment = self.segment
        if segment is Segment.DELAY:
            self._start_attack()
        elif segment is Segment.ATTACK:
            self._start_hold()
        elif segment is Segment.HOLD:
            self._start_decay()
        elif segment is Segment.DECAY:
            self._start_sustain()
        elif segment is not Segment.SUSTAIN:
            self.segment = Segment.DONE

    def note_off(self) -> None:
        self._start_release()

    def fast_release(self) -> None:
        """Release quickly and linearly from the current level."""
        self.segment = Segment.RELEASE
        self.samples_until_next_segment = int(FAST_RELEASE_TIME * self.sample_rate)
        self.slope = _per_sample(-self.level, self.samples_until_next_segment)
        self.segment_is_exponential = False

    def is_done(self) -> bool:
        return self.segment is Segment.DONE

    def is_releasing(self) -> bool:
        return self.segment is Segment.RELEASE

    def segment_index(self) -> int:
        return self.segment.value

    def _start_delay(self) -> None:
        if self.parameters.delay <= 0:
            self._start_attack()
            return
        self.segment = Segment.DELAY
        self.level = 0.0
        self.slope = 0.0
        self.samples_until_next_segment = int(self.parameters.delay * self.sample_rate)
        self.segment_is_exponential = False

    def _start_attack(self) -> None:
        if self.parameters.attack <= 0:
            self._start_hold()
            return
        self.segment = Segment.ATTACK
        self.level = self.parameters.start / 100.0
        self.samples_until_next_segment = int(self.parameters.attack * self.sample_rate)
        self.slope = _per_sample(1.0, self.samples_until_next_segment)
        self.segment_is_exponential = False

    def _start_hold(self) -> None:
        if self.parameters.hold <= 0:
            self.level = 1.0
            self._start_decay()
            return
        self.segment = Segment.HOLD
        self.samples_until_next_segment = int(self.parameters.hold * self.sample_rate)
        self.level = 1.0
        self.slope = 0.0
        self.segment_is_exponential = False

    def _start_decay(self) -> None:
        params = self.parameters
        if params.decay <= 0:
            self._start_sustain()
            return
        self.segment = Segment.DECAY
        self.samples_until_next_segment = int(params.decay * self.sample_rate)
        self.level = 1.0
        if self.exponential_decay:
            mystery_slope = _per_sample(_EXPONENTIAL_FACTOR, self.samples_until_next_segment)
            self.slope = math.exp(mystery_slope)
            self.segment_is_exponential = True
            if params.sustain > 0.0:
                # As in SF2, "decay" is the time it would take to reach zero,
                # so stop early where the sustain level is reached.
                self.samples_until_next_segment = int(
                    math.log((params.sustain / 100.0) / self.level) / mystery_slope
                )
                if self.samples_until_next_segment <= 0:
                    self._start_sustain()
        else:
            self.slope = _per_sample(
                params.sustain / 100.0 - 1.0, self.samples_until_next_segment
            )
            self.segment_is_exponential = False

    def _start_sustain(self) -> None:
        if self.parameters.sustain <= 0:
            self._start_release()
            return
        self.segment = Segment.SUSTAIN
        self.level = self.parameters.sustain / 100.0
        self.slope = 0.0
        self.samples_until_next_segment = _SUSTAIN_SAMPLES
        self.segment_is_exponential = False

    def _start_release(self) -> None:
        release = self.parameters.release
        if release <= 0:
            # A short release prevents clicks.
            release = FAST_RELEASE_TIME
        self.segment = Segment.RELEASE
        self.samples_until_next_segment = int(release * self.sample_rate)
        if self.exponential_decay:
            mystery_slope = _per_sample(_EXPONENTIAL_FACTOR, self.samples_until_next_segment)
            self.slope = math.exp(mystery_slope)
            self.segment_is_exponential = True
        else:
            self.slope = _per_sample(-self.level, self.samples_until_next_segment)
            self.segment_is_exponential = False