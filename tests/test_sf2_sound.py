import struct

from sfzq.region import SFZRegion
from sfzq.sample_buffer import Endianness, Layout, SampleBuffer
from sfzq.sf2 import Gen
from sfzq.sf2_sound import Preset, SF2Sound, convert_8859_1_to_utf8

RATE = 22050
SMPL = struct.pack("<4h", 0, 100, -100, 32767)


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


def _gen(op, value):
    return struct.pack("<HH", op, value)


def _make_two_preset_sf2():
    records = {
        b"phdr": [
            _phdr(b"Piano", 5, 1, 0),
            _phdr(b"Organ", 3, 0, 1),
            _phdr(b"EOP", 0, 0, 2),
        ],
        b"pbag": [_bag(0, 0), _bag(1, 0), _bag(2, 0)],
        b"pmod": [bytes(10)],
        b"pgen": [_gen(Gen.instrument, 0), _gen(Gen.instrument, 0), _gen(0, 0)],
        b"inst": [struct.pack("<20sH", b"Inst", 0), struct.pack("<20sH", b"EOI", 1)],
        b"ibag": [_bag(0, 0), _bag(1, 0)],
        b"imod": [bytes(10)],
        b"igen": [_gen(Gen.sampleID, 0), _gen(0, 0)],
        b"shdr": [
            struct.pack("<20sIIIIIBbHH", b"S", 0, 4, 0, 0, RATE, 60, 0, 0, 1),
            struct.pack("<20sIIIIIBbHH", b"EOS", 0, 0, 0, 0, 0, 0, 0, 0, 0),
        ],
    }
    body = b"sfbk" + _list(b"sdta", _chunk(b"smpl", SMPL))
    body += _list(b"pdta", *(_chunk(k, b"".join(v)) for k, v in records.items()))
    return b"RIFF" + struct.pack("<I", len(body)) + body


def _loaded(tmp_path):
    path = tmp_path / "two.sf2"
    path.write_bytes(_make_two_preset_sf2())
    sound = SF2Sound(str(path))
    sound.load_regions()
    return sound


def test_convert_ascii_unchanged():
    assert convert_8859_1_to_utf8(b"Grand Piano") == "Grand Piano"


def test_convert_latin1():
    assert convert_8859_1_to_utf8(b"caf\xe9") == "café"


def test_convert_cp1252_range():
    assert convert_8859_1_to_utf8(b"\x80\x99") == "\u20ac\u2122"


def test_presets_are_sorted(tmp_path):
    sound = _loaded(tmp_path)
    assert sound.errors == []
    assert sound.num_subsounds() == 2
    assert [(p.bank, p.preset) for p in sound.presets] == [(0, 3), (1, 5)]
    assert sound.subsound_name(0) == "3: Organ"
    assert sound.subsound_name(1) == "1/5: Piano"


def test_use_subsound_switches_regions(tmp_path):
    sound = _loaded(tmp_path)
    assert sound.selected_subsound() == 0
    assert sound.regions == sound.presets[0].regions
    sound.use_subsound(1)
    assert sound.selected_subsound() == 1
    assert sound.regions == sound.presets[1].regions
    assert sound.num_regions() == 1


def test_use_subsound_out_of_range_is_ignored(tmp_path):
    sound = _loaded(tmp_path)
    sound.use_subsound(1)
    sound.use_subsound(5)
    assert sound.selected_subsound() == 1


def test_load_samples_shares_buffer(tmp_path):
    sound = _loaded(tmp_path)
    progress = []
    sound.load_samples(progress.append)
    sample = sound.sample_for(RATE)
    assert bytes(sample.buffer.sample_data) == SMPL
    assert sample.num_samples == 4
    assert progress[-1] == 1.0
    assert all(region.sample is sample for region in sound.regions)


def test_sample_for_reuses_samples():
    sound = SF2Sound("x.sf2")
    first = sound.sample_for(RATE)
    assert sound.sample_for(RATE) is first
    assert sound.sample_for(44100) is not first
    assert first.sample_rate == RATE


def test_set_samples_buffer():
    sound = SF2Sound("x.sf2")
    samples = [sound.sample_for(RATE), sound.sample_for(44100)]
    buffer = SampleBuffer(1, 7, 16, Endianness.LITTLE, Layout.INTERLEAVED)
    sound.set_samples_buffer(buffer)
    assert all(s.buffer is buffer for s in samples)
    assert all(s.num_samples == 7 for s in samples)


def test_preset_add_region_and_manual_presets():
    sound = SF2Sound("x.sf2")
    preset = Preset(b"Bass", 0, 2)
    region = SFZRegion()
    preset.add_region(region)
    sound.add_preset(preset)
    sound.use_subsound(0)
    assert sound.region_at(0) is region
    assert sound.subsound_name(0) == "2: Bass"


def test_load_regions_missing_file(tmp_path):
    sound = SF2Sound(str(tmp_path / "missing.sf2"))
    sound.load_regions()
    assert sound.errors == ["Couldn't open file."]
    assert sound.num_subsounds() == 0