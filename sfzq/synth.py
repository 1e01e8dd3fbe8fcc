"""A polyphonic sampler synth driving a fixed pool of voices."""

from __future__ import annotations

import random
from typing import Callable, Optional, Protocol

from .notes import note_for_frequency
from .region import Trigger
from .voice import SFZVoice

NoteOffFn = Callable[[int, int, int], None]


class Tuning(Protocol):
    def frequency_for_midi_note(self, note) -> float: ...


class SFZSynth:
    """Starts and stops voices for notes, and mixes them into an output buffer."""

    def __init__(self, num_voices):
        self.voices = [SFZVoice(self) for _ in range(max(0, num_voices))]
        self.sound = None
        self.tuning: Optional[Tuning] = None
        self.note_velocities = [0] * 128
        # The pitch wheel position as a tuning expression, -120 to 120 semitones.
        self.tuning_expression = 0.0
        self.note_off_fn: Optional[NoteOffFn] = None

    def set_sound(self, sound):
        """Use a new sound, returning the one used before."""
        old_sound, self.sound = self.sound, sound
        return old_sound

    def set_sample_rate(self, sample_rate) -> None:
        for voice in self.voices:
            voice.sample_rate = sample_rate

    def use_subsound(self, which_subsound) -> None:
        if self.sound is not None:
            self.sound.use_subsound(which_subsound)

    def reset(self) -> None:
        for voice in self.voices:
            voice.kill_note()

    def _adjusted_note(self, note: int) -> int:
        if self.tuning is not None:
            return int(note_for_frequency(self.tuning.frequency_for_midi_note(note)))
        return note

    def note_is_active(self, note) -> bool:
        """Whether any region of the sound could play this key."""
        note = self._adjusted_note(note)
        return self.sound is not None and self.sound.has_region_for(note)

    def note_on(self, note, velocity, channel, note_id) -> None:
        """Start every region that matches the note."""
        midi_velocity = int(velocity * 127)
        rand_val = random.random()
        adjusted_note = self._adjusted_note(note)

        # Stop notes that this note's group turns off.
        group = self.sound.group_for(adjusted_note) if self.sound is not None else 0
        if group != 0:
            for voice in self.voices:
                if voice.off_by() == group:
                    voice.stop_note_for_group()

        # Stop voices still playing this note, and see whether others are playing.
        any_notes_playing = False
        for voice in self.voices:
            if voice.is_playing_note_down():
                if voice.currently_playing_note() == note:
                    if not voice.is_playing_one_shot():
                        voice.stop_note_quick()
                else:
                    any_notes_playing = True

        trigger = Trigger.LEGATO if any_notes_playing else Trigger.FIRST
        if self.sound is not None:
            for region in list(self.sound.regions):
                if region.matches(adjusted_note, midi_velocity, trigger, rand_val):
                    voice = self._find_free_voice(note, self.is_note_stealing_enabled())
                    if voice is not None:
                        voice.set_region(region)
                        voice.start_note(
                            note, velocity, channel, note_id, self.sound, self.tuning_expression
                        )

        self.note_velocities[note] = midi_velocity & 0xFF

    def note_off(self, note, velocity, channel, note_id, allow_tail_off) -> None:
        """Release the note's voices and start any release-triggered region."""
        for voice in self.voices:
            if voice.is_playing_note_down() and voice.currently_playing_note() == note:
                voice.stop_note(velocity, True)

        if self.sound is None:
            return
        rand_val = random.random()
        adjusted_note = self._adjusted_note(note)
        note_velocity = self.note_velocities[note]
        region = self.sound.get_region_for(
            adjusted_note, note_velocity, rand_val, Trigger.RELEASE
        )
        if region is not None:
            voice = self._find_free_voice(note, False)
            if voice is not None:
                voice.set_region(region)
                voice.start_note(
                    note,
                    note_velocity / 127.0,
                    channel,
                    note_id,
                    self.sound,
                    self.tuning_expression,
                )

    def tuning_expression_changed(self, new_tuning_expression) -> None:
        self.tuning_expression = new_tuning_expression
        for voice in self.voices:
            voice.tuning_expression_changed(new_tuning_expression)

    def render(self, output_buffer, start_sample, num_samples) -> None:
        for voice in self.voices:
            voice.render(output_buffer, start_sample, num_samples)

    def num_voices_used(self) -> int:
        return sum(1 for voice in self.voices if voice.is_playing())

    def voice_info_string(self) -> str:
        """The number of voices in use, then a line for each of them."""
        lines = [voice.info_string() for voice in self.voices if voice.is_playing()]
        result = f"voices used: {len(lines)}\n"
        result += "".join(f"{line}\n" for line in lines)
        return result

    def selected_subsound(self) -> int:
        return self.sound.selected_subsound() if self.sound is not None else 0

    def is_note_stealing_enabled(self) -> bool:
        return True

    def note_ended(self, note, channel, note_id) -> None:
        """Called by a voice when its note has finished."""
        if self.note_off_fn is not None:
            self.note_off_fn(note, channel, note_id)

    def _find_free_voice(self, note: int, can_steal: bool) -> Optional[SFZVoice]:
        for voice in self.voices:
            if not voice.is_playing():
                return voice
        # Voice stealing isn't implemented, whatever can_steal says.
        return None