"""A sound read from an SF2 file, whose presets are its subsounds."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .region import SFZRegion
from .sample import SFZSample
from .sample_buffer import SampleBuffer
from .sf2_reader import SF2Reader
from .sound import SFZSound

ProgressFn = Callable[[float], None]

# Windows-1252 characters for bytes 0x80-0x9F; 0 where the code page has none.
_CP1252_CHARS = (
    0x20AC, 0, 0x201A, 0x0192, 0x201E, 0x2026, 0x2020, 0x2021,
    0x02C6, 0x2030, 0x0160, 0x2039, 0x0152, 0, 0x017D, 0,
    0, 0x2018, 0x2019, 0x201C, 0x201D, 0x2022, 0x2013, 0x2014,
    0x02DC, 0x2122, 0x0161, 0x203A, 0x0153, 0, 0x017E, 0x0178,
)


def convert_8859_1_to_utf8(data: bytes) -> str:
    """Decode an SF2 name: ISO 8859-1, with Windows-1252 characters in 0x80-0x9F."""
    return "".join(
        chr(_CP1252_CHARS[byte - 0x80]) if 0x80 <= byte < 0xA0 else chr(byte)
        for byte in data
    )


@dataclass
class Preset:
    """An SF2 preset and the regions it plays."""

    name: bytes
    bank: int
    preset: int
    regions: list[SFZRegion] = field(default_factory=list)

    def add_region(self, region: SFZRegion) -> None:
        self.regions.append(region)


class SF2Sound(SFZSound):
    """An SF2 sound; its samples share a single buffer, one sample per rate."""

    def __init__(self, path):
        super().__init__(path)
        self.presets: list[Preset] = []
        self.samples_by_rate: dict[int, SFZSample] = {}
        self.selected_preset = 0

    def load_regions(self) -> None:
        """Read the presets, sort them by bank and number, and select the first."""
        with SF2Reader(self, self.path) as reader:
            reader.read()
        self.presets.sort(key=lambda preset: (preset.bank, preset.preset))
        self.use_subsound(0)

    def load_samples(self, progress_fn: Optional[ProgressFn] = None) -> None:
        """Read the sample data and share it among all the samples."""
        with SF2Reader(self, self.path) as reader:
            buffer = reader.read_samples(progress_fn)
        if buffer is not None:
            self.set_samples_buffer(buffer)
        if progress_fn:
            progress_fn(1.0)

    def add_preset(self, preset: Preset) -> None:
        self.presets.append(preset)

    def num_subsounds(self) -> int:
        return len(self.presets)

    def subsound_name(self, which_subsound: int) -> str:
        """``bank/number: name``, leaving out the bank when it is 0."""
        preset = self.presets[which_subsound]
        bank = f"{preset.bank}/" if preset.bank != 0 else ""
        return f"{bank}{preset.preset}: {convert_8859_1_to_utf8(preset.name)}"

    def use_subsound(self, which_subsound: int) -> None:
        """Make a preset's regions the sound's regions; out-of-range is ignored."""
        if which_subsound >= len(self.presets):
            return
        self.selected_preset = which_subsound
        self.regions = list(self.presets[which_subsound].regions)

    def selected_subsound(self) -> int:
        return self.selected_preset

    def sample_for(self, sample_rate: int) -> SFZSample:
        """The sample for a sample rate, created on first use."""
        sample = self.samples_by_rate.get(sample_rate)
        if sample is None:
            sample = SFZSample(sample_rate=sample_rate)
            self.samples_by_rate[sample_rate] = sample
        return sample

    def set_samples_buffer(self, buffer: SampleBuffer) -> None:
        for sample in self.samples_by_rate.values():
            sample.set_buffer(buffer)