"""Reading PCM WAV files: format, sample data and sampler loops."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .riff import HEADER_SIZE
from .sample_buffer import SampleBuffer

WAVE_FORMAT_PCM = 1


@dataclass
class Loop:
    start: int = 0
    end: int = 0


class WAVReader:
    """Reader for 16- or 24-bit PCM WAV files.

    ``valid`` is False when the file can't be opened or isn't a supported WAV.
    """

    def __init__(self, path):
        self.sample_rate = 0.0
        self.num_channels = 0
        self.num_samples = 0
        self.bits_per_sample = 0
        self.valid = False
        self._samples_offset = 0
        self._file_end = 0
        try:
            self._file = open(path, "rb")
        except OSError:
            self._file = None
            return
        try:
            self._read_info()
        except EOFError:
            self.valid = False

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def _read_exact(self, size: int) -> bytes:
        data = self._file.read(size)
        if len(data) < size:
            raise EOFError("unexpected end of WAV file")
        return data

    def _read_dword(self) -> int:
        return int.from_bytes(self._read_exact(4), "little", signed=True)

    def _read_word(self) -> int:
        return int.from_bytes(self._read_exact(2), "little", signed=True)

    def _read_info(self) -> None:
        self._file.seek(0)
        if self._read_exact(4) != b"RIFF":
            return
        self._file_end = HEADER_SIZE + self._read_dword()
        if self._read_exact(4) != b"WAVE":
            return

        data_chunk_size = self._seek_chunk(b"data")
        if data_chunk_size <= 0:
            return
        self._samples_offset = self._file.tell()

        if self._seek_chunk(b"fmt ") <= 0:
            return
        if self._read_word() != WAVE_FORMAT_PCM:
            return
        self.num_channels = self._read_word()
        self.sample_rate = float(self._read_dword())
        # Skip the average bytes per second and the block alignment.
        self._read_dword()
        self._read_word()
        self.bits_per_sample = self._read_word()
        if self.bits_per_sample not in (16, 24) or self.num_channels <= 0:
            return

        self.num_samples = data_chunk_size // ((self.bits_per_sample // 8) * self.num_channels)
        self.valid = True

    def _seek_chunk(self, fourcc: bytes) -> int:
        """Position the file at the data of the named chunk; return its size or -1."""
        if self._file is None:
            return -1
        position = HEADER_SIZE + 4
        self._file.seek(position)
        try:
            while position < self._file_end:
                chunk_fourcc = self._read_exact(4)
                chunk_size = self._read_dword()
                position += HEADER_SIZE
                if chunk_fourcc == fourcc:
                    return chunk_size
                if chunk_size < 0:
                    return -1
                position += chunk_size
                self._file.seek(position)
        except EOFError:
            return -1
        return -1

    def read_samples_into(self, start: int, num_samples: int, buffer: SampleBuffer) -> int:
        """Copy raw frames into the buffer's data; return the number of frames copied."""
        if self._file is None or not self.valid:
            raise ValueError("no readable WAV data")
        frame_size = (self.bits_per_sample // 8) * self.num_channels
        self._file.seek(self._samples_offset + start * frame_size)
        data = self._file.read(num_samples * frame_size)
        dest = buffer.channel_start(0)
        data = data[: max(0, len(buffer.sample_data) - dest)]
        buffer.sample_data[dest:dest + len(data)] = data
        return len(data) // frame_size

    def num_loops(self) -> int:
        """Number of loops in the sampler chunk, or 0 if there is none."""
        if self._seek_chunk(b"smpl") <= 0:
            return 0
        try:
            self._file.seek(7 * 4, os.SEEK_CUR)
            return self._read_dword() & 0xFFFFFFFF
        except EOFError:
            return 0

    def loop(self, index: int) -> Loop:
        """The sampler chunk's loop at ``index``, or an empty loop."""
        if self._seek_chunk(b"smpl") <= 0:
            return Loop()
        try:
            self._file.seek(9 * 4 + index * 6 * 4 + 2 * 4, os.SEEK_CUR)
            start = self._read_dword() & 0xFFFFFFFF
            end = self._read_dword() & 0xFFFFFFFF
        except EOFError:
            return Loop()
        return Loop(start=start, end=end)