"""A single playing voice: one region's sample, pitched, enveloped and panned."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Optional

from .eg import SFZEG
from .notes import decibels_to_gain, note_for_frequency, note_hz
from .region import LoopMode, OffMode, SFZRegion, Trigger

if TYPE_CHECKING:
    from .sound import SFZSound

GLOBAL_GAIN_DB = -1.0


class SFZVoice:
    """Plays one region at a time for the synth that owns it."""

    def __init__(self, synth):
        self.synth = synth
        self.region: Optional[SFZRegion] = None
        self.sample_rate = 0.0
        self.cur_note = 0
        self.cur_channel = 0
        self.cur_note_id = 0
        self.cur_velocity = 0
        self.cur_tuning_expression = 0.0
        self.pitch_ratio = 1.0
        self.note_gain_left = 0.0
        self.note_gain_right = 0.0
        self.source_sample_position = 0.0
        self.sample_end = 0
        self.loop_start = 0
        self.loop_end = 0
        self.num_loops = 0
        self.ampeg = SFZEG()
        self.ampeg.set_exponential_decay(True)

    def start_note(
        self,
        note,
        velocity,
        channel,
        note_id,
        sound: Optional["SFZSound"],
        current_tuning_expression,
    ) -> None:
        """Start playing the region set by ``set_region`` (or the sound's match)."""
        if sound is None:
            self.kill_note()
            return

        midi_velocity = int(velocity * 127.0)
        self.cur_velocity = midi_velocity
        if self.region is None:
            self.region = sound.get_region_for(note, midi_velocity, 0.0)
        region = self.region
        if region is None or region.sample is None or region.sample.buffer is None:
            self.kill_note()
            return
        if region.negative_end:
            self.kill_note()
            return

        # Pitch.
        self.cur_note = note
        self.cur_channel = channel
        self.cur_note_id = note_id
        self.cur_tuning_expression = current_tuning_expression
        self._calc_pitch_ratio()

        # Gain, with the velocity curve 20 * log10(vel^2 / 127^2).
        note_gain_db = GLOBAL_GAIN_DB + region.volume
        if midi_velocity <= 0:
            velocity_gain_db = -math.inf
        else:
            velocity_gain_db = -20.0 * math.log10(
                (127.0 * 127.0) / (midi_velocity * midi_velocity)
            )
        velocity_gain_db *= region.amp_veltrack / 100.0
        note_gain_db += velocity_gain_db
        gain = decibels_to_gain(note_gain_db)
        # A 3dB pan law, following a square-root curve.
        adjusted_pan = (region.pan + 100.0) / 200.0
        self.note_gain_left = gain * math.sqrt(max(0.0, 1.0 - adjusted_pan))
        self.note_gain_right = gain * math.sqrt(max(0.0, adjusted_pan))
        self.ampeg.start_note(region.ampeg, velocity, self.sample_rate, region.ampeg_veltrack)

        # Offset and end.
        self.source_sample_position = float(region.offset)
        self.sample_end = region.sample.num_samples
        if 0 < region.end < self.sample_end:
            self.sample_end = region.end + 1

        # Loop.
        self.loop_start = self.loop_end = 0
        loop_mode = region.loop_mode
        if loop_mode is LoopMode.SAMPLE_LOOP:
            if region.sample.loop_start < region.sample.loop_end:
                loop_mode = LoopMode.LOOP_CONTINUOUS
            else:
                loop_mode = LoopMode.NO_LOOP
        if loop_mode not in (LoopMode.NO_LOOP, LoopMode.ONE_SHOT):
            if region.loop_start < region.loop_end:
                self.loop_start = region.loop_start
                self.loop_end = region.loop_end
            else:
                self.loop_start = region.sample.loop_start
                self.loop_end = region.sample.loop_end
        self.num_loops = 0

    def stop_note(self, velocity, allow_tail_off) -> None:
        """Release the note, or end it at once if no tail-off is allowed."""
        region = self.region
        if not allow_tail_off or region is None:
            self.kill_note()
            return
        if region.loop_mode is not LoopMode.ONE_SHOT:
            self.ampeg.note_off()
        if region.loop_mode is LoopMode.LOOP_SUSTAIN:
            # Keep playing, but stop looping.
            self.loop_end = self.loop_start

    def stop_note_for_group(self) -> None:
        """Stop because another note in an "off_by" group started."""
        if self.region.off_mode is OffMode.FAST:
            self.ampeg.fast_release()
        else:
            self.ampeg.note_off()

    def stop_note_quick(self) -> None:
        self.ampeg.fast_release()

    def kill_note(self) -> None:
        """End the note immediately, telling the synth if one was playing."""
        if self.region is not None:
            self.synth.note_ended(self.cur_note, self.cur_channel, self.cur_note_id)
        self.region = None

    def tuning_expression_changed(self, new_value) -> None:
        if self.region is None:
            return
        self.cur_tuning_expression = new_value
        self._calc_pitch_ratio()

    def render(self, output_buffer, start_sample, num_samples) -> None:
        """Mix ``num_samples`` frames into the output, starting at ``start_sample``."""
        region = self.region
        if region is None:
            return

        in_buffer = region.sample.buffer
        in_l = in_buffer.channel_start(0)
        in_r = in_buffer.channel_start(1) if in_buffer.num_channels > 1 else None
        stride = in_buffer.stride
        read_sample = in_buffer.read_sample
        limit = len(in_buffer.sample_data)

        def read(offset: int) -> float:
            return read_sample(offset) if 0 <= offset < limit else 0.0

        out_l = output_buffer.samples_for_channel(0)
        out_r = (
            output_buffer.samples_for_channel(1)
            if output_buffer.num_channels() > 1
            else None
        )
        if out_l is None:
            return

        position = self.source_sample_position
        ampeg = self.ampeg
        gain = ampeg.level
        slope = ampeg.slope
        samples_until_next_segment = ampeg.samples_until_next_segment
        exponential = ampeg.segment_is_exponential
        loop_start = float(self.loop_start)
        loop_end = float(self.loop_end)
        sample_end = float(self.sample_end)
        looping = loop_start < loop_end

        for index in range(start_sample, start_sample + num_samples):
            pos = int(position)
            alpha = position - pos
            inv_alpha = 1.0 - alpha
            next_pos = pos + 1
            if looping and next_pos > loop_end:
                next_pos = int(loop_start)

            # Simple linear interpolation.
            left = read(in_l + pos * stride) * inv_alpha + read(in_l + next_pos * stride) * alpha
            if in_r is not None:
                right = (
                    read(in_r + pos * stride) * inv_alpha
                    + read(in_r + next_pos * stride) * alpha
                )
            else:
                right = left

            left *= self.note_gain_left * gain
            right *= self.note_gain_right * gain
            if out_r is not None:
                out_l[index] += left
                out_r[index] += right
            else:
                out_l[index] += (left + right) * 0.5

            position += self.pitch_ratio
            looping = loop_start < loop_end
            if looping and position > loop_end:
                position = loop_start
                self.num_loops += 1

            if exponential:
                gain *= slope
            else:
                gain += slope
            samples_until_next_segment -= 1
            if samples_until_next_segment < 0:
                ampeg.level = gain
                ampeg.next_segment()
                gain = ampeg.level
                slope = ampeg.slope
                samples_until_next_segment = ampeg.samples_until_next_segment
                exponential = ampeg.segment_is_exponential

            if position >= sample_end or ampeg.is_done():
                self.kill_note()
                break

        self.source_sample_position = position
        ampeg.level = gain
        ampeg.samples_until_next_segment = samples_until_next_segment

    def is_playing_note_down(self) -> bool:
        return self.region is not None and self.region.trigger is not Trigger.RELEASE

    def is_playing_one_shot(self) -> bool:
        return self.region is not None and self.region.loop_mode is LoopMode.ONE_SHOT

    def is_playing(self) -> bool:
        return self.region is not None

    def currently_playing_note(self) -> int:
        return self.cur_note

    def group(self) -> int:
        return self.region.group if self.region is not None else 0

    def off_by(self) -> int:
        return self.region.off_by if self.region is not None else 0

    def set_region(self, region: Optional[SFZRegion]) -> None:
        """Set the region the next ``start_note`` plays."""
        self.region = region

    def info_string(self) -> str:
        """One line describing the playing note."""
        segment_name = self.ampeg.segment.name.lower()
        pan = self.region.pan if self.region is not None else 0.0
        return (
            f"note: {self.cur_note}, vel: {self.cur_velocity}, pan: {pan:g}, "
            f"eg: {segment_name}, loops: {self.num_loops}\n"
        )

    def _calc_pitch_ratio(self) -> None:
        region = self.region
        note = float(self.cur_note) + region.transpose
        expression = self.cur_tuning_expression
        tuning = self.synth.tuning

        if tuning is not None:
            if region.pitch_keytrack == 0:
                target_freq = note_hz(region.pitch_keycenter)
            else:
                # Treated as full keytracking, whatever the value.
                target_freq = tuning.frequency_for_midi_note(note)
            if expression != 0 or region.tune != 0:
                # Tune and bends are in (12-TET) cents.
                semitones = region.tune / 100.0
                if expression > 0:
                    semitones += (expression / 120.0) * region.bend_up / 100.0
                else:
                    semitones -= (expression / 120.0) * region.bend_down / 100.0
                target_freq = note_hz(note_for_frequency(target_freq) + semitones)
        else:
            note += region.tune / 100.0
            adjusted_pitch = region.pitch_keycenter + (
                (note - region.pitch_keycenter) * (region.pitch_keytrack / 100.0)
            )
            if expression != 0.0:
                # The expression spans -120 to +120 semitones; scale it to the bend range.
                if expression > 0:
                    adjusted_pitch += (expression / 120.0) * region.bend_up / 100.0
                else:
                    adjusted_pitch -= (expression / 120.0) * region.bend_down / 100.0
            target_freq = note_hz(adjusted_pitch)

        natural_freq = note_hz(region.pitch_keycenter)
        self.pitch_ratio = (target_freq * region.sample.sample_rate) / (
            natural_freq * self.sample_rate
        )