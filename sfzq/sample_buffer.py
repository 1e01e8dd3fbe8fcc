"""Raw sample storage and an output buffer for rendering."""

from __future__ import annotations

from array import array
from enum import Enum

_INT16_MAX = 0x7FFF
_INT32_MAX = 0x7FFFFFFF


class Endianness(Enum):
    BIG = "big"
    LITTLE = "little"


class Layout(Enum):
    PLANAR = "planar"
    INTERLEAVED = "interleaved"


class SampleBuffer:
    """Packed integer PCM samples, read back as floats in about -1.0 to 1.0.

    Positions are byte offsets into ``sample_data``; a channel's n-th sample is
    at ``channel_start(channel) + n * stride``.
    """

    def __init__(self, num_channels, num_samples, bits_per_sample, endianness, layout):
        self.num_channels = num_channels
        self.num_samples = num_samples
        self.bits_per_sample = bits_per_sample
        self._bytes_per_sample = bits_per_sample // 8
        self.sample_data = bytearray(num_channels * num_samples * self._bytes_per_sample)

        self.stride = self._bytes_per_sample
        if layout is Layout.INTERLEAVED:
            self.channel_offset = self.stride
            self.stride *= num_channels
        else:
            self.channel_offset = num_samples * self.stride

        self._byteorder = endianness.value
        if bits_per_sample == 16:
            self._scale = 1.0 / _INT16_MAX
        elif bits_per_sample == 24:
            self._scale = 256.0 / _INT32_MAX
        else:
            self._scale = None

    def valid(self) -> bool:
        """Whether samples of this bit depth can be read."""
        return self._scale is not None

    def read_sample(self, offset: int) -> float:
        """Read the sample stored at a byte offset."""
        if self._scale is None:
            raise ValueError(f"unsupported bits per sample: {self.bits_per_sample}")
        end = offset + self._bytes_per_sample
        if offset < 0 or end > len(self.sample_data):
            raise IndexError(f"sample offset out of range: {offset}")
        value = int.from_bytes(self.sample_data[offset:end], self._byteorder, signed=True)
        return value * self._scale

    def channel_start(self, channel: int) -> int:
        return channel * self.channel_offset

    def channel_end(self, channel: int) -> int:
        return self.channel_start(channel) + self.channel_offset


class OutBuffer:
    """Per-channel float output, zero-filled on creation."""

    def __init__(self, num_channels, num_frames):
        self.num_frames = num_frames
        self._channels = [array("d", bytes(8 * num_frames)) for _ in range(num_channels)]

    def samples_for_channel(self, channel: int) -> array:
        return self._channels[channel]

    def num_channels(self) -> int:
        return len(self._channels)