import struct

import pytest

from sfzq.region import LoopMode, SFZRegion
from sfzq.sf2 import GenAmount, Gen
from sfzq.sf2_reader import SF2Reader
from sfzq.sf2_sound import SF2Sound

LOOP_START = 10
LOOP_END = 50
SAMPLE_END = 100
RATE = 22050


def _chunk(cid, data):
    pad = b"\0" if len(data) % 2 else b""
    return cid + struct.pack("<I", len(data)) + data + pad


def _list(form, *chunks):
    body = form + b"".join(chunks)
    return b"LIST" + struct.pack("<I", len(body)) + body


def _phdr(name, preset, bank, bag):
    return struct.pack("<20sHHHIII", name, preset, bank, bag, 0, 0, 0)


def _bag(gen, mod):
    return struct.pack("<HH", gen, mod)


def _gen(op, amount):
    return struct.pack("<H", op) + amount


def _word(v):
    return struct.pack("<H", v)


def _short(v):
    return struct.pack("<h", v)


def _inst(name, bag):
    return struct.pack("<20sH", name, bag)


def _shdr(name, start, end, sl, el, rate, pitch, corr):
    return struct.pack("<20sIIIIIBbHH", name, start, end, sl, el, rate, pitch, corr, 0, 1)


def _make_sf2(extra_igen=(), extra_pgen=(), preset_mods=False, smpl=b"", with_pdta=True):
    pgen = [*extra_pgen, _gen(Gen.instrument, _word(0)), _gen(0, _word(0))]
    igen = [*extra_igen, _gen(Gen.sampleID, _word(0)), _gen(0, _word(0))]
    records = {
        b"phdr": [_phdr(b"Piano", 0, 0, 0), _phdr(b"EOP", 0, 0, 1)],
        b"pbag": [_bag(0, 0), _bag(len(pgen) - 1, 1 if preset_mods else 0)],
        b"pmod": [bytes(10)] * (2 if preset_mods else 1),
        b"pgen": pgen,
        b"inst": [_inst(b"Inst", 0), _inst(b"EOI", 1)],
        b"ibag": [_bag(0, 0), _bag(len(igen) - 1, 0)],
        b"imod": [bytes(10)],
        b"igen": igen,
        b"shdr": [
            _shdr(b"Sample", 0, SAMPLE_END, LOOP_START, LOOP_END, RATE, 60, -5),
            _shdr(b"EOS", 0, 0, 0, 0, 0, 0, 0),
        ],
    }
    body = b"sfbk" + _list(b"sdta", _chunk(b"smpl", smpl))
    if with_pdta:
        body += _list(b"pdta", *(_chunk(k, b"".join(v)) for k, v in records.items()))
    return b"RIFF" + struct.pack("<I", len(body)) + body


def _read(tmp_path, data):
    path = tmp_path / "test.sf2"
    path.write_bytes(data)
    sound = SF2Sound(str(path))
    with SF2Reader(sound, str(path)) as reader:
        reader.read()
    return sound


def test_reads_single_region(tmp_path):
    sound = _read(tmp_path, _make_sf2(extra_igen=[_gen(Gen.keyRange, bytes([40, 70]))]))
    assert sound.errors == []
    assert len(sound.presets) == 1
    preset = sound.presets[0]
    assert preset.name == b"Piano"
    assert len(preset.regions) == 1
    region = preset.regions[0]
    assert (region.lokey, region.hikey) == (40, 70)
    assert region.offset == 0
    assert region.end == SAMPLE_END
    assert region.loop_start == LOOP_START
    assert region.loop_end == LOOP_END - 1
    assert region.pitch_keycenter == 60
    assert region.tune == -5
    assert region.sample is sound.sample_for(RATE)


def test_sample_modes_and_overriding_root_key(tmp_path):
    igen = [_gen(Gen.sampleModes, _word(1)), _gen(Gen.overridingRootKey, _short(72))]
    region = _read(tmp_path, _make_sf2(extra_igen=igen)).presets[0].regions[0]
    assert region.loop_mode is LoopMode.LOOP_CONTINUOUS
    assert region.pitch_keycenter == 72


def test_extreme_gain_is_pinned(tmp_path):
    igen = [_gen(Gen.initialAttenuation, _short(-1000))]
    sound = _read(tmp_path, _make_sf2(extra_igen=igen))
    assert sound.presets[0].regions[0].volume == 6.0
    assert "extreme gain in initialAttenuation" in sound.unsupported_opcodes


def test_preset_modulators_are_reported(tmp_path):
    sound = _read(tmp_path, _make_sf2(preset_mods=True))
    assert "any modulator" in sound.unsupported_opcodes


def test_preset_key_range_applies_to_instrument(tmp_path):
    pgen = [_gen(Gen.keyRange, bytes([20, 30]))]
    region = _read(tmp_path, _make_sf2(extra_pgen=pgen)).presets[0].regions[0]
    assert (region.lokey, region.hikey) == (20, 30)


def test_missing_hydra_is_an_error(tmp_path):
    sound = _read(tmp_path, _make_sf2(with_pdta=False))
    assert sound.errors == ["Invalid SF2 file (missing or incomplete hydra)."]
    assert sound.presets == []


def test_unopenable_file(tmp_path):
    sound = SF2Sound(str(tmp_path / "missing.sf2"))
    reader = SF2Reader(sound, str(tmp_path / "missing.sf2"))
    reader.read()
    assert reader.read_samples() is None
    assert sound.errors == ["Couldn't open file.", "Couldn't open file."]


def test_read_samples(tmp_path):
    smpl = struct.pack("<4h", 0, 100, -100, 32767)
    path = tmp_path / "s.sf2"
    path.write_bytes(_make_sf2(smpl=smpl))
    sound = SF2Sound(str(path))
    progress = []
    with SF2Reader(sound, str(path)) as reader:
        buffer = reader.read_samples(progress.append)
    assert bytes(buffer.sample_data) == smpl
    assert buffer.num_samples == 4
    assert buffer.num_channels == 1
    assert progress[-1] == 1.0
    assert progress == sorted(progress)


def test_missing_smpl_chunk(tmp_path):
    path = tmp_path / "s.sf2"
    body = b"sfbk" + _list(b"INFO", _chunk(b"ifil", b"\2\0\1\0"))
    path.write_bytes(b"RIFF" + struct.pack("<I", len(body)) + body)
    sound = SF2Sound(str(path))
    with SF2Reader(sound, str(path)) as reader:
        assert reader.read_samples() is None
    assert sound.errors == ['SF2 is missing its "smpl" chunk.']


@pytest.fixture
def reader(tmp_path):
    sound = SF2Sound(str(tmp_path / "none.sf2"))
    return SF2Reader(sound, str(tmp_path / "none.sf2"))


def test_add_generator_ranges(reader):
    region = SFZRegion()
    reader.add_generator_to_region(Gen.velRange, GenAmount(bytes([10, 90])), region)
    assert (region.lovel, region.hivel) == (10, 90)


def test_add_generator_coarse_offset(reader):
    region = SFZRegion()
    reader.add_generator_to_region(Gen.startAddrsCoarseOffset, GenAmount(_short(3)), region)
    reader.add_generator_to_region(Gen.startAddrsOffset, GenAmount(_short(5)), region)
    assert region.offset == 3 * 32768 + 5


def test_add_generator_attenuation(reader):
    region = SFZRegion()
    reader.add_generator_to_region(Gen.initialAttenuation, GenAmount(_short(100)), region)
    assert region.volume == pytest.approx(-1.0)


def test_add_generator_exclusive_class(reader):
    region = SFZRegion()
    reader.add_generator_to_region(Gen.exclusiveClass, GenAmount(_word(7)), region)
    assert region.group == 7
    assert region.off_by == 7


def test_add_generator_envelope(reader):
    region = SFZRegion()
    reader.add_generator_to_region(Gen.attackVolEnv, GenAmount(_short(-1200)), region)
    assert region.ampeg.attack == -1200.0


def test_unsupported_generator_is_noted(reader):
    region = SFZRegion()
    reader.add_generator_to_region(Gen.initialFilterFc, GenAmount(_short(5)), region)
    assert reader.sound.unsupported_opcodes == {"initialFilterFc"}
    assert region == SFZRegion()


def test_unknown_generator_is_ignored(reader):
    region = SFZRegion()
    reader.add_generator_to_region(99, GenAmount(_short(5)), region)
    assert reader.sound.unsupported_opcodes == set()
    assert region == SFZRegion()