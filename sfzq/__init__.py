"""Sample-player engine for SFZ and SF2 instruments: readers, envelopes, voices and a synth."""

__version__ = "1.0.0"