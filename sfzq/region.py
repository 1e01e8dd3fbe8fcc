"""SFZ regions: key/velocity ranges and playback parameters for a sample."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Optional

from .notes import decibels_to_gain

if TYPE_CHECKING:
    from .sample import SFZSample

_MIN_EG_TIME = 0.01


def timecents_to_secs(timecents) -> float:
    """Convert SF2 timecents (truncated to an integer) to seconds."""
    return 2.0 ** (int(timecents) / 1200.0)


@dataclass
class EGParameters:
    """Envelope generator settings: times in seconds, start and sustain in percent."""

    delay: float = 0.0
    start: float = 0.0
    attack: float = 0.0
    hold: float = 0.0
    decay: float = 0.0
    sustain: float = 100.0
    release: float = 0.0

    def clear(self) -> None:
        self.delay = self.start = self.attack = self.hold = self.decay = 0.0
        self.sustain = 100.0
        self.release = 0.0

    def clear_mod(self) -> None:
        """Zero everything, for use as a velocity (or other) modifier."""
        self.delay = self.start = self.attack = self.hold = 0.0
        self.decay = self.sustain = self.release = 0.0


class Trigger(Enum):
    ATTACK = 0
    RELEASE = 1
    FIRST = 2
    LEGATO = 3


class LoopMode(Enum):
    SAMPLE_LOOP = 0
    NO_LOOP = 1
    ONE_SHOT = 2
    LOOP_CONTINUOUS = 3
    LOOP_SUSTAIN = 4


class OffMode(Enum):
    FAST = 0
    NORMAL = 1


@dataclass
class SFZRegion:
    """One region of a sound."""

    sample: Optional["SFZSample"] = None
    lokey: int = 0
    hikey: int = 127
    lovel: int = 0
    hivel: int = 127
    trigger: Trigger = Trigger.ATTACK
    lorand: float = 0.0
    hirand: float = 1.0
    seq_position: int = 1
    seq_length: int = 1
    group: int = 0
    off_by: int = 0
    off_mode: OffMode = OffMode.FAST

    offset: int = 0
    end: int = 0
    negative_end: bool = False
    loop_mode: LoopMode = LoopMode.SAMPLE_LOOP
    loop_start: int = 0
    loop_end: int = 0
    transpose: int = 0
    tune: int = 0
    pitch_keycenter: int = 60  # C4
    pitch_keytrack: int = 100
    bend_up: int = 200
    bend_down: int = -200
    cur_seq_position: int = 1

    volume: float = 0.0
    pan: float = 0.0
    amp_veltrack: float = 100.0

    ampeg: EGParameters = field(default_factory=EGParameters)
    ampeg_veltrack: EGParameters = field(default_factory=lambda: EGParameters(sustain=0.0))

    def clear(self) -> None:
        """Reset every setting to its default."""
        fresh = SFZRegion()
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))

    def clear_for_sf2(self) -> None:
        """Reset to SF2 instrument defaults (envelope times in timecents)."""
        self.clear()
        self.pitch_keycenter = -1
        self.loop_mode = LoopMode.NO_LOOP
        self.ampeg.delay = -12000.0
        self.ampeg.attack = -12000.0
        self.ampeg.hold = -12000.0
        self.ampeg.decay = -12000.0
        self.ampeg.sustain = 0.0
        self.ampeg.release = -12000.0

    def clear_for_relative_sf2(self) -> None:
        """Reset for SF2 preset generators, which are added to instrument values."""
        self.clear()
        self.pitch_keytrack = 0
        self.amp_veltrack = 0.0
        self.ampeg.sustain = 0.0

    def add_for_sf2(self, other: "SFZRegion") -> None:
        """Add another region's relative SF2 values to this one."""
        self.offset += other.offset
        self.end += other.end
        self.loop_start += other.loop_start
        self.loop_end += other.loop_end
        self.transpose += other.transpose
        self.tune += other.tune
        self.pitch_keytrack += other.pitch_keytrack
        self.volume += other.volume
        self.pan += other.pan

        for name in ("delay", "attack", "hold", "decay", "sustain", "release"):
            setattr(self.ampeg, name, getattr(self.ampeg, name) + getattr(other.ampeg, name))

    def sf2_to_sfz(self) -> None:
        """Convert SF2 units (timecents, centibels) to SFZ units."""
        eg = self.ampeg
        eg.delay = timecents_to_secs(eg.delay)
        eg.attack = timecents_to_secs(eg.attack)
        eg.hold = timecents_to_secs(eg.hold)
        eg.decay = timecents_to_secs(eg.decay)
        if eg.sustain < 0.0:
            eg.sustain = 0.0
        eg.sustain = 100.0 * decibels_to_gain(-eg.sustain / 10.0)
        eg.release = timecents_to_secs(eg.release)

        # Timecents never reach zero, and the EG is happier with zero values.
        for name in ("delay", "attack", "hold", "decay", "release"):
            if getattr(eg, name) < _MIN_EG_TIME:
                setattr(eg, name, 0.0)

        self.pan = min(max(self.pan, -100.0), 100.0)

    def dump(self) -> None:
        line = f"{self.lokey} - {self.hikey}, vel {self.lovel} - {self.hivel}"
        if self.offset:
            line += f" (offset {self.offset})"
        if self.sample is not None:
            line += f": {self.sample.short_name()}"
        print(line)

    def _trigger_matches(self, trigger: Trigger) -> bool:
        return trigger == self.trigger or (
            self.trigger == Trigger.ATTACK and trigger in (Trigger.FIRST, Trigger.LEGATO)
        )

    def matches(self, note, velocity, trigger, rand_val) -> bool:
        """Whether the region plays for this note; advances the round-robin position."""
        in_range = (
            self.lokey <= note <= self.hikey
            and self.lovel <= velocity <= self.hivel
            and self._trigger_matches(trigger)
            and self.lorand <= rand_val < self.hirand
        )
        if not in_range:
            return False
        ok = self.cur_seq_position == self.seq_position
        self.cur_seq_position += 1
        if self.cur_seq_position > self.seq_length:
            self.cur_seq_position = 1
        return ok

    def ever_matches(self, note, trigger) -> bool:
        """Whether the region could play for this note, ignoring velocity and chance."""
        return self.lokey <= note <= self.hikey and self._trigger_matches(trigger)

    def copy(self) -> "SFZRegion":
        """A copy with its own envelope settings, sharing the sample."""
        return dataclasses.replace(
            self,
            ampeg=dataclasses.replace(self.ampeg),
            ampeg_veltrack=dataclasses.replace(self.ampeg_veltrack),
        )