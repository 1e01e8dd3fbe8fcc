"""Reading presets, instruments and sample data from SF2 (SoundFont 2) files."""

from __future__ import annotations

from itertools import pairwise
from typing import BinaryIO, Callable, Optional

from .region import LoopMode, SFZRegion
from .riff import read_chunk
from .sample_buffer import Endianness, Layout, SampleBuffer
from .sf2 import GenAmount, Gen, Hydra, generator_for

ProgressFn = Callable[[float], None]

_READ_BLOCK_SAMPLES = 32768
_COARSE_OFFSET = 32768
_MAX_GAIN_DB = 6.0

# Generators whose amount is added (times a multiplier) to a region attribute.
_ADDED_GENERATORS = {
    Gen.startAddrsOffset: ("offset", 1),
    Gen.endAddrsOffset: ("end", 1),
    Gen.startloopAddrsOffset: ("loop_start", 1),
    Gen.endloopAddrsOffset: ("loop_end", 1),
    Gen.startAddrsCoarseOffset: ("offset", _COARSE_OFFSET),
    Gen.endAddrsCoarseOffset: ("end", _COARSE_OFFSET),
    Gen.startloopAddrsCoarseOffset: ("loop_start", _COARSE_OFFSET),
    Gen.endloopAddrsCoarseOffset: ("loop_end", _COARSE_OFFSET),
    Gen.coarseTune: ("transpose", 1),
    Gen.fineTune: ("tune", 1),
}

# Volume envelope generators, in timecents (sustain in centibels).
_VOLUME_EG_GENERATORS = {
    Gen.delayVolEnv: "delay",
    Gen.attackVolEnv: "attack",
    Gen.holdVolEnv: "hold",
    Gen.decayVolEnv: "decay",
    Gen.sustainVolEnv: "sustain",
    Gen.releaseVolEnv: "release",
}

_SAMPLE_MODES = (
    LoopMode.NO_LOOP,
    LoopMode.LOOP_CONTINUOUS,
    LoopMode.NO_LOOP,
    LoopMode.LOOP_SUSTAIN,
)

_UNSUPPORTED_GENERATORS = frozenset({
    Gen.modLfoToPitch, Gen.vibLfoToPitch, Gen.modEnvToPitch,
    Gen.initialFilterFc, Gen.initialFilterQ, Gen.modLfoToFilterFc,
    Gen.modEnvToFilterFc, Gen.modLfoToVolume, Gen.unused1,
    Gen.chorusEffectsSend, Gen.reverbEffectsSend, Gen.unused2, Gen.unused3,
    Gen.unused4, Gen.delayModLFO, Gen.freqModLFO, Gen.delayVibLFO,
    Gen.freqVibLFO, Gen.delayModEnv, Gen.attackModEnv, Gen.holdModEnv,
    Gen.decayModEnv, Gen.sustainModEnv, Gen.releaseModEnv,
    Gen.keynumToModEnvHold, Gen.keynumToModEnvDecay, Gen.keynumToVolEnvHold,
    Gen.keynumToVolEnvDecay,
    # Only allowed in certain places, which are handled separately.
    Gen.instrument, Gen.sampleID,
    Gen.reserved1, Gen.keynum, Gen.velocity, Gen.reserved2, Gen.reserved3,
    Gen.unused5,
})


class SF2Reader:
    """Reads an SF2 file into an SF2 sound's presets and sample buffer."""

    def __init__(self, sound, path):
        self.sound = sound
        self._file: Optional[BinaryIO]
        try:
            self._file = open(path, "rb")
        except OSError:
            self._file = None

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def read(self) -> None:
        """Read every preset, adding it with its regions to the sound."""
        if self._file is None:
            self.sound.add_error("Couldn't open file.")
            return

        hydra = Hydra()
        file = self._file
        try:
            file.seek(0)
            riff_chunk = read_chunk(file)
            while file.tell() < riff_chunk.end():
                chunk = read_chunk(file)
                if chunk.id == b"pdta":
                    hydra.read_from(file, chunk.end())
                    break
                chunk.seek_after(file)
        except EOFError:
            pass
        if not hydra.is_complete():
            self.sound.add_error("Invalid SF2 file (missing or incomplete hydra).")
            return

        try:
            self._read_presets(hydra)
        except IndexError:
            self.sound.add_error("Invalid SF2 file (index out of range).")

    def _read_presets(self, hydra: Hydra) -> None:
        from .sf2_sound import Preset

        for phdr, next_phdr in pairwise(hydra.phdr_items):
            preset = Preset(phdr.preset_name, phdr.bank, phdr.preset)
            self.sound.add_preset(preset)

            for which_zone in range(phdr.preset_bag_ndx, next_phdr.preset_bag_ndx):
                pbag = hydra.pbag_items[which_zone]
                next_pbag = hydra.pbag_items[which_zone + 1]
                preset_region = SFZRegion()
                preset_region.clear_for_relative_sf2()

                for pgen in hydra.pgen_items[pbag.gen_ndx:next_pbag.gen_ndx]:
                    if pgen.gen_oper == Gen.instrument:
                        which_inst = pgen.gen_amount.word_amount()
                        # The last record only marks the end of the list.
                        if which_inst < len(hydra.inst_items) - 1:
                            self._read_instrument(hydra, which_inst, preset_region, preset)
                        else:
                            self.sound.add_error("Instrument out of range.")
                    else:
                        self.add_generator_to_region(
                            pgen.gen_oper, pgen.gen_amount, preset_region
                        )

                if pbag.mod_ndx < next_pbag.mod_ndx:
                    self.sound.add_unsupported_opcode("any modulator")

    def _read_instrument(self, hydra: Hydra, which_inst: int, preset_region, preset) -> None:
        inst_region = SFZRegion()
        inst_region.clear_for_sf2()
        # Preset generators are meant to be relative, which makes no sense for
        # ranges; the instrument's own ranges take precedence.
        inst_region.lokey = preset_region.lokey
        inst_region.hikey = preset_region.hikey
        inst_region.lovel = preset_region.lovel
        inst_region.hivel = preset_region.hivel

        inst = hydra.inst_items[which_inst]
        first_zone = inst.inst_bag_ndx
        zone_end = hydra.inst_items[which_inst + 1].inst_bag_ndx
        for which_zone in range(first_zone, zone_end):
            ibag = hydra.ibag_items[which_zone]
            next_ibag = hydra.ibag_items[which_zone + 1]

            zone_region = inst_region.copy()
            had_sample_id = False
            for igen in hydra.igen_items[ibag.inst_gen_ndx:next_ibag.inst_gen_ndx]:
                if igen.gen_oper == Gen.sampleID:
                    shdr = hydra.shdr_items[igen.gen_amount.word_amount()]
                    zone_region.add_for_sf2(preset_region)
                    zone_region.sf2_to_sfz()
                    zone_region.offset += shdr.start
                    zone_region.end += shdr.end
                    zone_region.loop_start += shdr.start_loop
                    zone_region.loop_end += shdr.end_loop
                    if shdr.end_loop > 0:
                        zone_region.loop_end -= 1
                    if zone_region.pitch_keycenter == -1:
                        zone_region.pitch_keycenter = shdr.original_pitch
                    zone_region.tune += shdr.pitch_correction

                    if zone_region.volume > _MAX_GAIN_DB:
                        zone_region.volume = _MAX_GAIN_DB
                        self.sound.add_unsupported_opcode("extreme gain in initialAttenuation")

                    new_region = zone_region.copy()
                    new_region.sample = self.sound.sample_for(shdr.sample_rate)
                    preset.add_region(new_region)
                    had_sample_id = True
                else:
                    self.add_generator_to_region(igen.gen_oper, igen.gen_amount, zone_region)

            # The instrument's global zone sets defaults for the other zones.
            if which_zone == first_zone and not had_sample_id:
                inst_region = zone_region

            if ibag.inst_mod_ndx < next_ibag.inst_mod_ndx:
                self.sound.add_unsupported_opcode("any modulator")

    def read_samples(self, progress_fn: Optional[ProgressFn] = None) -> Optional[SampleBuffer]:
        """Read the "smpl" chunk into a mono 16-bit buffer, or None on failure."""
        if self._file is None:
            self.sound.add_error("Couldn't open file.")
            return None

        file = self._file
        chunk = None
        try:
            file.seek(0)
            riff_chunk = read_chunk(file)
            sdta = None
            while file.tell() < riff_chunk.end():
                candidate = read_chunk(file)
                if candidate.id == b"sdta":
                    sdta = candidate
                    break
                candidate.seek_after(file)
            if sdta is not None:
                while file.tell() < sdta.end():
                    candidate = read_chunk(file)
                    if candidate.id == b"smpl":
                        chunk = candidate
                        break
                    candidate.seek_after(file)
        except EOFError:
            chunk = None
        if chunk is None:
            self.sound.add_error('SF2 is missing its "smpl" chunk.')
            return None

        num_samples = chunk.size // 2
        buffer = SampleBuffer(1, num_samples, 16, Endianness.LITTLE, Layout.INTERLEAVED)
        out = buffer.channel_start(0)
        samples_left = num_samples
        while samples_left > 0:
            samples_to_read = min(_READ_BLOCK_SAMPLES, samples_left)
            data = file.read(samples_to_read * 2)
            buffer.sample_data[out:out + len(data)] = data
            samples_left -= samples_to_read
            out += samples_to_read * 2
            if progress_fn:
                progress_fn((num_samples - samples_left) / num_samples)

        if progress_fn:
            progress_fn(1.0)
        return buffer

    def add_generator_to_region(self, gen_oper, amount: GenAmount, region: SFZRegion) -> None:
        """Apply one generator to a region, noting generators that aren't supported."""
        if gen_oper in _ADDED_GENERATORS:
            attr, multiplier = _ADDED_GENERATORS[gen_oper]
            setattr(region, attr, getattr(region, attr) + amount.short_amount() * multiplier)
        elif gen_oper in _VOLUME_EG_GENERATORS:
            setattr(region.ampeg, _VOLUME_EG_GENERATORS[gen_oper], float(amount.short_amount()))
        elif gen_oper == Gen.pan:
            region.pan = amount.short_amount() * (2.0 / 10.0)
        elif gen_oper == Gen.keyRange:
            region.lokey = amount.lo()
            region.hikey = amount.hi()
        elif gen_oper == Gen.velRange:
            region.lovel = amount.lo()
            region.hivel = amount.hi()
        elif gen_oper == Gen.initialAttenuation:
            # Nominally centibels, but commonly treated as millibels.
            region.volume += -amount.short_amount() / 100.0
        elif gen_oper == Gen.sampleModes:
            region.loop_mode = _SAMPLE_MODES[amount.word_amount() & 0x03]
        elif gen_oper == Gen.scaleTuning:
            region.pitch_keytrack = amount.short_amount()
        elif gen_oper == Gen.exclusiveClass:
            region.group = region.off_by = amount.word_amount()
        elif gen_oper == Gen.overridingRootKey:
            region.pitch_keycenter = amount.short_amount()
        elif gen_oper == Gen.endOper:
            pass
        elif gen_oper in _UNSUPPORTED_GENERATORS:
            generator = generator_for(gen_oper)
            if generator is not None:
                self.sound.add_unsupported_opcode(generator.name)