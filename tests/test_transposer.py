"""Unit tests for pitch and key transposition."""

import pytest

from mishpose.instruments import INSTRUMENT_TRANSPOSITIONS
from mishpose.score_models import Document, Measure, Note, Pitch
from mishpose.transposer import (
    midi_to_pitch,
    pitch_to_midi,
    transpose,
    transpose_for_instrument,
    transpose_key,
    transpose_note,
    transpose_pitch,
)


def _sample_document(fifths: int = 0) -> Document:
    return Document(
        title="Scale",
        composer="Anon",
        measures=(
            Measure(
                notes=(
                    Note(Pitch("C", 0, 4)),
                    Note(Pitch("D", 0, 4)),
                    Note(Pitch("E", 0, 4)),
                    Note(Pitch("F", 0, 4)),
                )
            ),
            Measure(
                notes=(
                    Note(Pitch("B", -1, 4), "half"),
                    Note(Pitch("F", 1, 3), "eighth"),
                    Note(None, "eighth"),
                )
            ),
        ),
        fifths=fifths,
    )


def _midi_values(document: Document) -> list[int | None]:
    return [note.pitch.midi if note.pitch else None for note in document.notes]


# ── pitch ↔ MIDI ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    ("pitch", "expected"),
    [
        (Pitch("C", 0, 4), 60),
        (Pitch("A", 0, 4), 69),
        (Pitch("B", -1, 4), 70),
        (Pitch("C", 0, -1), 0),
        (Pitch("G", 0, 9), 127),
        (Pitch("B", 1, 3), 60),
        (Pitch("C", -1, 4), 59),
        (Pitch("E", 2, 4), 66),
    ],
)
def test_pitch_to_midi(pitch: Pitch, expected: int) -> None:
    assert pitch_to_midi(pitch) == expected


def test_unknown_step_counts_as_c() -> None:
    assert pitch_to_midi(Pitch("H", 0, 4)) == 60
    assert pitch_to_midi(Pitch("X", 1, 4)) == 61


def test_midi_to_pitch_prefers_sharps() -> None:
    assert midi_to_pitch(61) == Pitch("C", 1, 4)
    assert midi_to_pitch(70) == Pitch("A", 1, 4)
    assert midi_to_pitch(65) == Pitch("F", 0, 4)


def test_midi_to_pitch_handles_negative_values() -> None:
    assert midi_to_pitch(-1) == Pitch("B", 0, -2)
    assert midi_to_pitch(-12) == Pitch("C", 0, -2)


# ── single pitches ─────────────────────────────────────────────────────────────

def test_c4_up_a_whole_tone_is_d4() -> None:
    assert transpose_pitch(Pitch("C", 0, 4), 2) == Pitch("D", 0, 4)


def test_b_flat_for_alto_sax() -> None:
    result = transpose_pitch(Pitch("B", -1, 4), 9)
    assert result == Pitch("G", 0, 5)
    assert result.midi == 79


def test_crossing_octave_boundaries() -> None:
    assert transpose_pitch(Pitch("B", 0, 4), 1) == Pitch("C", 0, 5)
    assert transpose_pitch(Pitch("C", 0, 4), -1) == Pitch("B", 0, 3)
    assert transpose_pitch(Pitch("C", 0, 4), 24) == Pitch("C", 0, 6)


def test_octave_is_not_clamped() -> None:
    assert transpose_pitch(Pitch("C", 0, 0), -36) == Pitch("C", 0, -3)
    assert transpose_pitch(Pitch("C", 0, 8), 48) == Pitch("C", 0, 12)


@pytest.mark.parametrize("semitones", [-100, -25, -12, -7, -1, 1, 5, 11, 12, 13, 21, 64])
@pytest.mark.parametrize(
    "pitch",
    [Pitch("C", 0, 4), Pitch("B", -1, 3), Pitch("F", 1, 5), Pitch("E", 0, 0), Pitch("G", 2, 2)],
)
def test_value_round_trip(pitch: Pitch, semitones: int) -> None:
    assert transpose_pitch(pitch, semitones).midi == pitch.midi + semitones


def test_round_trip_keeps_value_not_spelling() -> None:
    original = Pitch("B", -1, 4)
    back = transpose_pitch(transpose_pitch(original, 1), -1)
    assert back.midi == original.midi
    assert back == Pitch("A", 1, 4)


def test_zero_shift_keeps_spelling() -> None:
    pitch = Pitch("B", -1, 4)
    assert transpose_pitch(pitch, 0) is pitch


def test_note_without_pitch_is_unchanged() -> None:
    note = Note(None, "half")
    assert transpose_note(note, 5) is note


def test_note_keeps_duration() -> None:
    assert transpose_note(Note(Pitch("C", 0, 4), "eighth"), 7) == Note(Pitch("G", 0, 4), "eighth")


# ── key signatures ─────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    ("semitones", "fifths"),
    [
        (0, 0),
        (1, 7),
        (2, 2),
        (3, -3),
        (4, 4),
        (5, -1),
        (6, 6),
        (7, 1),
        (8, -4),
        (9, 3),
        (10, -2),
        (11, 5),
    ],
)
def test_key_table_from_c_major(semitones: int, fifths: int) -> None:
    assert transpose_key(0, semitones) == fifths


def test_key_table_uses_semitones_mod_12() -> None:
    assert transpose_key(0, 14) == 2
    assert transpose_key(0, 21) == 3
    assert transpose_key(0, -2) == -2
    assert transpose_key(0, -12) == 0


def test_key_is_clamped_not_wrapped() -> None:
    assert transpose_key(6, 1) == 7
    assert transpose_key(-5, 3) == -7
    assert transpose_key(7, 6) == 7


@pytest.mark.parametrize("fifths", range(-7, 8))
@pytest.mark.parametrize("semitones", range(-24, 25))
def test_key_always_in_range(fifths: int, semitones: int) -> None:
    assert -7 <= transpose_key(fifths, semitones) <= 7


# ── documents ──────────────────────────────────────────────────────────────────

def test_transpose_returns_new_document() -> None:
    document = _sample_document()
    before = _midi_values(document)
    result = transpose(document, 2)

    assert result is not document
    assert _midi_values(document) == before
    assert _midi_values(result) == [62, 64, 66, 67, 72, 56, None]
    assert result.fifths == 2
    assert result.title == "Scale"
    assert [len(m.notes) for m in result.measures] == [4, 3]


def test_transpose_zero_is_identity() -> None:
    document = _sample_document(fifths=-2)
    assert transpose(document, 0) == document


@pytest.mark.parametrize("semitones", [1, 2, 7, 9, 14, 21, -5, -13])
def test_composite_round_trip(semitones: int) -> None:
    document = _sample_document()
    back = transpose(transpose(document, semitones), -semitones)
    assert _midi_values(back) == _midi_values(document)


def test_bb_trumpet_from_concert_c() -> None:
    result = transpose(_sample_document(), INSTRUMENT_TRANSPOSITIONS["Bb Trumpet"])
    assert result.fifths == 2
    assert result.notes[0].pitch == Pitch("D", 0, 4)


def test_transpose_for_instrument_alto_sax() -> None:
    result = transpose_for_instrument(_sample_document(), "Eb Alto Saxophone")
    assert result.fifths == 3
    assert result.notes[4].pitch == Pitch("G", 0, 5)


def test_unknown_instrument_is_no_op() -> None:
    document = _sample_document(fifths=1)
    assert transpose_for_instrument(document, "Kazoo") == transpose(document, 0) == document
