import math

import pytest

from sfzq.notes import decibels_to_gain, gain_to_decibels, note_for_frequency, note_hz


def test_a4_is_440():
    assert note_hz(69) == pytest.approx(440.0)
    assert note_for_frequency(440.0) == pytest.approx(69.0)


def test_custom_reference_frequency():
    assert note_hz(69, 432.0) == pytest.approx(432.0)
    assert note_for_frequency(432.0, 432.0) == pytest.approx(69.0)


@pytest.mark.parametrize("note", [0, 21, 60, 60.5, 108, 127])
def test_octave_doubles_frequency(note):
    assert note_hz(note + 12) == pytest.approx(2 * note_hz(note))


@pytest.mark.parametrize("note", [0.0, 33.3, 60.0, 127.0])
def test_note_frequency_round_trip(note):
    assert note_for_frequency(note_hz(note)) == pytest.approx(note)


def test_frequency_increases_with_note():
    assert note_hz(60) < note_hz(61) < note_hz(62)


def test_zero_decibels_is_unity():
    assert decibels_to_gain(0.0) == pytest.approx(1.0)


@pytest.mark.parametrize("db", [-60.0, -6.0, 0.0, 3.0, 12.0])
def test_decibel_round_trip(db):
    assert gain_to_decibels(decibels_to_gain(db)) == pytest.approx(db)


def test_twenty_decibels_is_factor_ten():
    assert decibels_to_gain(20.0) == pytest.approx(10 * decibels_to_gain(0.0))


def test_zero_gain_is_minus_infinity():
    assert gain_to_decibels(0.0) == -math.inf