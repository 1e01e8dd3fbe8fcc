"""SF2 (SoundFont 2) data records, the "hydra" of preset data, and generators."""

from __future__ import annotations

import struct
from dataclasses import dataclass, fields
from enum import Enum, IntEnum
from typing import BinaryIO, ClassVar, Optional

from .riff import read_chunk


def _read_struct(file: BinaryIO, fmt: struct.Struct) -> tuple:
    data = file.read(fmt.size)
    if len(data) < fmt.size:
        raise EOFError("unexpected end of SF2 data")
    return fmt.unpack(data)


def _name(raw: bytes) -> bytes:
    """A fixed-size name field, cut at its first NUL."""
    return raw.split(b"\0", 1)[0]


@dataclass(frozen=True)
class GenAmount:
    """A generator's two-byte amount, read as a range, signed or unsigned value."""

    data: bytes

    def lo(self) -> int:
        return self.data[0]

    def hi(self) -> int:
        return self.data[1]

    def short_amount(self) -> int:
        return int.from_bytes(self.data[:2], "little", signed=True)

    def word_amount(self) -> int:
        return int.from_bytes(self.data[:2], "little", signed=False)


@dataclass(frozen=True)
class Iver:
    major: int
    minor: int

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<HH")
    SIZE_IN_FILE: ClassVar[int] = 4

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Iver":
        return cls(*_read_struct(file, cls.FORMAT))


@dataclass(frozen=True)
class Phdr:
    preset_name: bytes
    preset: int
    bank: int
    preset_bag_ndx: int
    library: int
    genre: int
    morphology: int

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<20sHHHIII")
    SIZE_IN_FILE: ClassVar[int] = 38

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Phdr":
        name, *rest = _read_struct(file, cls.FORMAT)
        return cls(_name(name), *rest)


@dataclass(frozen=True)
class Pbag:
    gen_ndx: int
    mod_ndx: int

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<HH")
    SIZE_IN_FILE: ClassVar[int] = 4

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Pbag":
        return cls(*_read_struct(file, cls.FORMAT))


@dataclass(frozen=True)
class Pmod:
    mod_src_oper: int
    mod_dest_oper: int
    mod_amount: int
    mod_amt_src_oper: int
    mod_trans_oper: int

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<HHhHH")
    SIZE_IN_FILE: ClassVar[int] = 10

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Pmod":
        return cls(*_read_struct(file, cls.FORMAT))


@dataclass(frozen=True)
class Pgen:
    gen_oper: int
    gen_amount: GenAmount

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<H2s")
    SIZE_IN_FILE: ClassVar[int] = 4

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Pgen":
        oper, amount = _read_struct(file, cls.FORMAT)
        return cls(oper, GenAmount(amount))


@dataclass(frozen=True)
class Inst:
    inst_name: bytes
    inst_bag_ndx: int

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<20sH")
    SIZE_IN_FILE: ClassVar[int] = 22

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Inst":
        name, bag_ndx = _read_struct(file, cls.FORMAT)
        return cls(_name(name), bag_ndx)


@dataclass(frozen=True)
class Ibag:
    inst_gen_ndx: int
    inst_mod_ndx: int

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<HH")
    SIZE_IN_FILE: ClassVar[int] = 4

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Ibag":
        return cls(*_read_struct(file, cls.FORMAT))


@dataclass(frozen=True)
class Imod:
    mod_src_oper: int
    mod_dest_oper: int
    mod_amount: int
    mod_amt_src_oper: int
    mod_trans_oper: int

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<HHhHH")
    SIZE_IN_FILE: ClassVar[int] = 10

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Imod":
        return cls(*_read_struct(file, cls.FORMAT))


@dataclass(frozen=True)
class Igen:
    gen_oper: int
    gen_amount: GenAmount

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<H2s")
    SIZE_IN_FILE: ClassVar[int] = 4

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Igen":
        oper, amount = _read_struct(file, cls.FORMAT)
        return cls(oper, GenAmount(amount))


@dataclass(frozen=True)
class Shdr:
    sample_name: bytes
    start: int
    end: int
    start_loop: int
    end_loop: int
    sample_rate: int
    original_pitch: int
    pitch_correction: int
    sample_link: int
    sample_type: int

    FORMAT: ClassVar[struct.Struct] = struct.Struct("<20sIIIIIBbHH")
    SIZE_IN_FILE: ClassVar[int] = 46

    @classmethod
    def read_from(cls, file: BinaryIO) -> "Shdr":
        name, *rest = _read_struct(file, cls.FORMAT)
        return cls(_name(name), *rest)


_HYDRA_CHUNKS: dict[bytes, type] = {
    b"phdr": Phdr,
    b"pbag": Pbag,
    b"pmod": Pmod,
    b"pgen": Pgen,
    b"inst": Inst,
    b"ibag": Ibag,
    b"imod": Imod,
    b"igen": Igen,
    b"shdr": Shdr,
}


@dataclass
class Hydra:
    """The nine record lists of an SF2 file's "pdta" chunk; None until read."""

    phdr_items: Optional[list[Phdr]] = None
    pbag_items: Optional[list[Pbag]] = None
    pmod_items: Optional[list[Pmod]] = None
    pgen_items: Optional[list[Pgen]] = None
    inst_items: Optional[list[Inst]] = None
    ibag_items: Optional[list[Ibag]] = None
    imod_items: Optional[list[Imod]] = None
    igen_items: Optional[list[Igen]] = None
    shdr_items: Optional[list[Shdr]] = None

    def read_from(self, file: BinaryIO, pdta_chunk_end: int) -> None:
        """Read the sub-chunks up to the end of the "pdta" chunk."""
        while file.tell() < pdta_chunk_end:
            chunk = read_chunk(file)
            record_type = _HYDRA_CHUNKS.get(chunk.id)
            if record_type is not None:
                count = chunk.size // record_type.SIZE_IN_FILE
                items = [record_type.read_from(file) for _ in range(count)]
                setattr(self, f"{chunk.id.decode('ascii')}_items", items)
            chunk.seek_after(file)

    def is_complete(self) -> bool:
        return all(getattr(self, f.name) is not None for f in fields(self))


class Gen(IntEnum):
    """SF2 generator operators, numbered as in the file format."""

    startAddrsOffset = 0
    endAddrsOffset = 1
    startloopAddrsOffset = 2
    endloopAddrsOffset = 3
    startAddrsCoarseOffset = 4
    modLfoToPitch = 5
    vibLfoToPitch = 6
    modEnvToPitch = 7
    initialFilterFc = 8
    initialFilterQ = 9
    modLfoToFilterFc = 10
    modEnvToFilterFc = 11
    endAddrsCoarseOffset = 12
    modLfoToVolume = 13
    unused1 = 14
    chorusEffectsSend = 15
    reverbEffectsSend = 16
    pan = 17
    unused2 = 18
    unused3 = 19
    unused4 = 20
    delayModLFO = 21
    freqModLFO = 22
    delayVibLFO = 23
    freqVibLFO = 24
    delayModEnv = 25
    attackModEnv = 26
    holdModEnv = 27
    decayModEnv = 28
    sustainModEnv = 29
    releaseModEnv = 30
    keynumToModEnvHold = 31
    keynumToModEnvDecay = 32
    delayVolEnv = 33
    attackVolEnv = 34
    holdVolEnv = 35
    decayVolEnv = 36
    sustainVolEnv = 37
    releaseVolEnv = 38
    keynumToVolEnvHold = 39
    keynumToVolEnvDecay = 40
    instrument = 41
    reserved1 = 42
    keyRange = 43
    velRange = 44
    startloopAddrsCoarseOffset = 45
    keynum = 46
    velocity = 47
    initialAttenuation = 48
    reserved2 = 49
    endloopAddrsCoarseOffset = 50
    coarseTune = 51
    fineTune = 52
    sampleID = 53
    sampleModes = 54
    reserved3 = 55
    scaleTuning = 56
    exclusiveClass = 57
    overridingRootKey = 58
    unused5 = 59
    endOper = 60


class GeneratorType(Enum):
    WORD = "word"
    SHORT = "short"
    RANGE = "range"


@dataclass(frozen=True)
class GeneratorInfo:
    name: str
    type: GeneratorType


_NON_SHORT_TYPES = {
    Gen.instrument: GeneratorType.WORD,
    Gen.keyRange: GeneratorType.RANGE,
    Gen.velRange: GeneratorType.RANGE,
    Gen.sampleID: GeneratorType.WORD,
    Gen.sampleModes: GeneratorType.WORD,
}

_GENERATOR_INFOS = tuple(
    GeneratorInfo(gen.name, _NON_SHORT_TYPES.get(gen, GeneratorType.SHORT)) for gen in Gen
)


def generator_for(index: int) -> Optional[GeneratorInfo]:
    """Name and amount type of a generator operator, or None if out of range."""
    if 0 <= index < len(_GENERATOR_INFOS):
        return _GENERATOR_INFOS[index]
    return None