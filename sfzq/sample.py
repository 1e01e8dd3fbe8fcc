"""A sample referenced by regions: a WAV file's audio, or a shared SF2 buffer."""

from __future__ import annotations

from .sample_buffer import Endianness, Layout, SampleBuffer
from .wav_reader import WAVReader

# Extra zeroed frames after the audio, so interpolation can read one frame
# past the end without checking for the edge.
_PADDING_FRAMES = 4


class SFZSample:
    """Audio data for one sample file (or one SF2 sample rate)."""

    def __init__(self, path="", sample_rate=0.0):
        self.path = path
        self.sample_rate = float(sample_rate)
        self.buffer: SampleBuffer | None = None
        self.num_samples = 0
        self.loop_start = 0
        self.loop_end = 0

    def load(self) -> bool:
        """Load the WAV file at ``path``; return False if it can't be read."""
        with WAVReader(self.path) as reader:
            if not reader.valid:
                return False
            self.sample_rate = reader.sample_rate
            self.num_samples = reader.num_samples
            buffer = SampleBuffer(
                reader.num_channels,
                self.num_samples + _PADDING_FRAMES,
                reader.bits_per_sample,
                Endianness.LITTLE,
                Layout.INTERLEAVED,
            )
            reader.read_samples_into(0, self.num_samples, buffer)
            self.buffer = buffer
            if reader.num_loops() > 0:
                loop = reader.loop(0)
                self.loop_start = loop.start
                self.loop_end = loop.end
        return True

    def short_name(self) -> str:
        """The file name without its directory."""
        return self.path[self.path.rfind("/") + 1:]

    def set_buffer(self, buffer: SampleBuffer) -> None:
        self.buffer = buffer
        self.num_samples = buffer.num_samples

    def detach_buffer(self) -> SampleBuffer | None:
        """Give up the buffer and return it."""
        buffer, self.buffer = self.buffer, None
        return buffer

    def dump(self) -> str:
        """Print the sample's path and return the printed line."""
        line = str(self.path)
        print(line)
        return line