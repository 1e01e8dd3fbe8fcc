import struct
import wave

from sfzq.region import SFZRegion, Trigger
from sfzq.sound import SFZSound, fix_slashes, sibling_path


def test_fix_slashes():
    assert fix_slashes("a\\b\\c.wav") == "a/b/c.wav"
    assert fix_slashes("plain/path") == "plain/path"


def test_sibling_path_relative_and_absolute():
    assert sibling_path("/x/y/inst.sfz", "s.wav") == "/x/y/s.wav"
    assert sibling_path("/x/y/inst.sfz", "/abs/s.wav") == "/abs/s.wav"
    assert sibling_path("inst.sfz", "s.wav") == "s.wav"


def test_add_sample_is_shared_and_resolved():
    sound = SFZSound("/x/inst.sfz")
    first = sound.add_sample("sub\\s.wav")
    second = sound.add_sample("sub/s.wav")
    assert first is second
    assert first.path == "/x/sub/s.wav"
    assert len(sound.samples) == 1


def test_add_sample_with_default_path():
    sound = SFZSound("/x/inst.sfz")
    sample = sound.add_sample("s.wav", "samples")
    assert sample.path == "/x/samples/s.wav"


def test_errors_string_lists_errors_and_sorted_opcodes():
    sound = SFZSound("/x/inst.sfz")
    sound.add_error("e1")
    sound.add_unsupported_opcode("b")
    sound.add_unsupported_opcode("a")
    sound.add_unsupported_opcode("b")
    assert sound.get_errors_string() == "e1\n\nUnsupported opcodes: a, b\n"


def test_errors_string_empty():
    assert SFZSound("x.sfz").get_errors_string() == ""


def test_region_lookup():
    sound = SFZSound("x.sfz")
    low = SFZRegion(lokey=10, hikey=20, group=3)
    high = SFZRegion(lokey=30, hikey=40, lovel=64)
    sound.add_region(low)
    sound.add_region(high)
    assert sound.num_regions() == 2
    assert sound.region_at(1) is high
    assert sound.get_region_for(15, 100, 0.5) is low
    assert sound.get_region_for(35, 10, 0.5) is None
    assert sound.get_region_for(35, 100, 0.5) is high
    assert sound.has_region_for(35)
    assert not sound.has_region_for(25)
    assert sound.group_for(12) == 3
    assert sound.group_for(50) == 0


def test_release_trigger_lookup():
    sound = SFZSound("x.sfz")
    release = SFZRegion(trigger=Trigger.RELEASE)
    sound.add_region(release)
    assert not sound.has_region_for(60)
    assert sound.has_region_for(60, Trigger.RELEASE)
    assert sound.get_region_for(60, 100, 0.1, Trigger.RELEASE) is release


def test_subsound_defaults():
    sound = SFZSound("x.sfz")
    sound.use_subsound(5)
    assert sound.num_subsounds() == 1
    assert sound.selected_subsound() == 0
    assert sound.subsound_name(0) == ""


def test_load_regions_from_file(tmp_path):
    sfz = tmp_path / "inst.sfz"
    sfz.write_text("<region> sample=a.wav lokey=10 hikey=20\n")
    sound = SFZSound(str(sfz))
    sound.load_regions()
    assert sound.num_regions() == 1
    region = sound.region_at(0)
    assert (region.lokey, region.hikey) == (10, 20)
    assert region.sample.path == f"{tmp_path}/a.wav"


def test_load_regions_missing_file(tmp_path):
    path = f"{tmp_path}/missing.sfz"
    sound = SFZSound(path)
    sound.load_regions()
    assert sound.errors == [f'Couldn\'t read "{path}"']


def test_load_samples_reports_missing_and_progress(tmp_path):
    sound = SFZSound(f"{tmp_path}/inst.sfz")
    sound.add_sample("gone.wav")
    progress = []
    sound.load_samples(progress.append)
    assert sound.errors == ['Couldn\'t load sample "gone.wav"']
    assert progress[0] == 0.0
    assert progress[-1] == 1.0


def test_load_samples_reads_wav(tmp_path):
    with wave.open(str(tmp_path / "s.wav"), "wb") as out:
        out.setnchannels(1)
        out.setsampwidth(2)
        out.setframerate(22050)
        out.writeframes(struct.pack("<4h", 0, 100, -100, 200))
    sound = SFZSound(f"{tmp_path}/inst.sfz")
    sample = sound.add_sample("s.wav")
    sound.load_samples()
    assert sound.errors == []
    assert sample.buffer is not None
    assert sample.num_samples == 4
    assert sample.sample_rate == 22050.0


def test_dump_prints_sections(capsys):
    sound = SFZSound("/x/inst.sfz")
    sound.add_error("bad thing")
    sound.add_unsupported_opcode("cutoff")
    region = SFZRegion(lokey=1, hikey=2)
    region.sample = sound.add_sample("s.wav")
    sound.add_region(region)
    sound.dump()
    out = capsys.readouterr().out
    assert "- bad thing" in out
    assert "  cutoff" in out
    assert "1 - 2, vel 0 - 127: s.wav" in out
    assert "/x/s.wav" in out