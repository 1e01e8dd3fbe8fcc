# sfzq

A sample-player engine for SFZ and SF2 (SoundFont 2) instruments. It is written
in plain Python and has no third-party dependencies.

## What it provides

- `sfzq.sound.SFZSound` loads an SFZ instrument. `load_regions()` reads the
  regions, and `load_samples(progress_fn)` then loads the WAV files they
  refer to. Problems are collected, and `get_errors_string()` returns them
  together with any opcodes that are not supported.
- `sfzq.sf2_sound.SF2Sound` does the same for SF2 files. Its presets are
  *subsounds*, sorted by bank and then by preset number. `num_subsounds()`,
  `subsound_name()`, `use_subsound()` and `selected_subsound()` work with them.
- `sfzq.synth.SFZSynth` is a polyphonic synth with a fixed pool of voices.
  It has `note_on`, `note_off`, `tuning_expression_changed` (the pitch wheel,
  from -120 to 120 semitones), `render`, `num_voices_used` and
  `voice_info_string`. A function set as `note_off_fn` is called with
  `(note, channel, note_id)` each time a voice finishes.
- `sfzq.voice.SFZVoice` plays one region. It does linear interpolation, the
  velocity gain curve, a square-root pan law and looping.
- `sfzq.eg.SFZEG` is the amplitude envelope: delay, attack, hold, decay,
  sustain and release.
- `sfzq.region.SFZRegion` holds a region's settings and its matching rules:
  key and velocity ranges, triggers, random ranges and round-robin sequences.
- `sfzq.sfz_reader`, `sfzq.sf2_reader`, `sfzq.sf2`, `sfzq.wav_reader` and
  `sfzq.riff` are the file readers underneath. `sfzq.sample_buffer` provides
  `SampleBuffer` for PCM data and `OutBuffer` for rendered output.
- `sfzq.notes` converts between decibels and gain, and between MIDI notes
  and frequencies.
- `sfzq.settings.Settings` and `sfzq.settings_parser.SettingsParser` read a
  `name = value` settings file.

## Installation

```
pip install .
```

## Example

```python
from sfzq.sound import SFZSound
from sfzq.synth import SFZSynth
from sfzq.sample_buffer import OutBuffer

sound = SFZSound("/path/to/instrument.sfz")
sound.load_regions()
sound.load_samples(lambda progress: None)
print(sound.get_errors_string())

synth = SFZSynth(32)
synth.set_sample_rate(44100.0)
synth.set_sound(sound)

out = OutBuffer(2, 512)
synth.note_on(60, 0.8, 0, -1)
synth.render(out, 0, 512)
left = out.samples_for_channel(0)
```

`render` adds to what is already in the output buffer, so one buffer can be
rendered into in several calls. If you set a tuning object as `synth.tuning`,
it must have a `frequency_for_midi_note(note)` method. Notes are then pitched
through that object.

## Settings file

`Settings().read_settings_files()` reads `$XDG_CONFIG_HOME/sfzq/settings`. If
`XDG_CONFIG_HOME` is not set, it reads `~/.config/sfzq/settings` instead. The
file is optional.

```
samples-directory = "~/samples"
tunings-directory = "~/tunings"
keyboard-mappings-directory = "~/tunings"
num-voices = 64
show-voices-used = true
```

Settings may be separated by commas or semicolons. A `#` starts a comment that
runs to the end of the line. A leading `~` in a directory is replaced by the
home directory. Unknown settings and bad values are recorded in
`Settings.errors`.

## What it does not do

- It is an engine only. It has no command, no user interface, no plugin host
  interface and no audio device output. You must pass the rendered buffers to
  your own audio output.
- It does not read tuning (`.scl`) or keyboard-mapping (`.kbm`) files. You have
  to supply a tuning object yourself, as described above.
- WAV samples must be 16- or 24-bit PCM.
- SF2 modulators, filters, LFOs and the modulation envelope are not applied.
  They are reported as unsupported opcodes.
- When every voice is busy, new notes are dropped. No playing voice is taken
  over for them.

## Running the tests

```
pip install .[test]
pytest
```