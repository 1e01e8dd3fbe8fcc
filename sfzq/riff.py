"""Reading RIFF chunk headers from binary files."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

HEADER_SIZE = 8
FOURCC_SIZE = 4


class ChunkType(Enum):
    RIFF = "RIFF"
    LIST = "LIST"
    CUSTOM = "custom"


def _read_exact(file: BinaryIO, size: int) -> bytes:
    data = file.read(size)
    if len(data) < size:
        raise EOFError("unexpected end of RIFF data")
    return data


@dataclass
class RIFFChunk:
    """A chunk header: its four-character id, data size and data start offset.

    For ``RIFF`` and ``LIST`` chunks the id is the form type that follows the
    header, and start and size exclude it.
    """

    id: bytes
    size: int
    type: ChunkType
    start: int

    def end(self) -> int:
        return self.start + self.size

    def seek(self, file: BinaryIO) -> None:
        """Move the file to the start of the chunk's data."""
        file.seek(self.start)

    def seek_after(self, file: BinaryIO) -> None:
        """Move the file past this chunk, including its pad byte."""
        next_pos = self.end()
        if next_pos % 2 != 0:
            next_pos += 1
        file.seek(next_pos)

    def read_string(self, file: BinaryIO) -> str:
        """Read the chunk's data as a NUL-terminated string."""
        data = file.read(self.size)
        return data.split(b"\0", 1)[0].decode("latin-1")


def read_chunk(file: BinaryIO) -> RIFFChunk:
    """Read a chunk header at the file's current position."""
    header = _read_exact(file, HEADER_SIZE)
    chunk_id = header[:FOURCC_SIZE]
    size = int.from_bytes(header[FOURCC_SIZE:], "little")
    start = file.tell()

    if chunk_id in (b"RIFF", b"LIST"):
        chunk_type = ChunkType.RIFF if chunk_id == b"RIFF" else ChunkType.LIST
        chunk_id = _read_exact(file, FOURCC_SIZE)
        start += FOURCC_SIZE
        size = (size - FOURCC_SIZE) & 0xFFFFFFFF
    else:
        chunk_type = ChunkType.CUSTOM

    return RIFFChunk(id=chunk_id, size=size, type=chunk_type, start=start)