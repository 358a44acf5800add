"""Transposer: shifts every pitch of a Document and recomputes its key signature."""

import logging
from dataclasses import replace
from typing import Final

from mishpose.instruments import semitones_for
from mishpose.score_models import Document, Measure, Note, Pitch, clamp_fifths

log = logging.getLogger(__name__)

SEMITONES_PER_OCTAVE = 12

#: Canonical spelling of each pitch class; black keys are spelled as sharps.
CHROMATIC_SPELLINGS: Final[list[tuple[str, int]]] = [
    ("C", 0),
    ("C", 1),
    ("D", 0),
    ("D", 1),
    ("E", 0),
    ("F", 0),
    ("F", 1),
    ("G", 0),
    ("G", 1),
    ("A", 0),
    ("A", 1),
    ("B", 0),
]

#: Change in key signature (fifths) for a transposition of N semitones up,
#: N in 0..11. Each entry picks the simpler of the sharp/flat spellings,
#: e.g. +3 semitones is three flats rather than nine sharps.
SEMITONE_FIFTHS_DELTA: Final[list[int]] = [0, 7, 2, -3, 4, -1, 6, 1, -4, 3, -2, 5]


def pitch_to_midi(pitch: Pitch) -> int:
    """
    Convert a written pitch to an absolute MIDI note number.

    MIDI octave numbering: C-1 = 0, C0 = 12, ... C4 (middle C) = 60.
    Unrecognised step letters are treated as C.
    """
    return pitch.midi


def midi_to_pitch(midi: int) -> Pitch:
    """
    Spell an absolute MIDI note number using the canonical sharp spellings.

    Works for any integer, so octaves below -1 or far above the staff are
    returned as-is rather than clamped.
    """
    octave, pitch_class = divmod(midi, SEMITONES_PER_OCTAVE)
    step, alter = CHROMATIC_SPELLINGS[pitch_class]
    return Pitch(step=step, alter=alter, octave=octave - 1)


def transpose_pitch(pitch: Pitch, semitones: int) -> Pitch:
    """
    Shift ``pitch`` by ``semitones`` (negative = down).

    The result is respelled canonically, so ``Bb`` moved up and back down
    comes back as ``A#``: the sounding pitch round-trips, the spelling does not.
    A zero shift returns the pitch untouched.
    """
    if semitones == 0:
        return pitch
    return midi_to_pitch(pitch_to_midi(pitch) + semitones)


def transpose_note(note: Note, semitones: int) -> Note:
    if note.pitch is None:
        return note
    return replace(note, pitch=transpose_pitch(note.pitch, semitones))


def transpose_key(fifths: int, semitones: int) -> int:
    """
    Return the key signature reached by moving ``fifths`` up ``semitones``.

    Args:
        fifths:    Current key signature (sharps positive, flats negative).
        semitones: Any signed transposition; only its value mod 12 matters.

    Returns:
        The new key signature, saturated to [-7, 7].
    """
    delta = SEMITONE_FIFTHS_DELTA[semitones % SEMITONES_PER_OCTAVE]
    return clamp_fifths(fifths + delta)


def transpose(document: Document, semitones: int) -> Document:
    """
    Return a new Document with every note and the key moved by ``semitones``.

    The input document is left untouched.
    """
    measures = tuple(
        Measure(notes=tuple(transpose_note(note, semitones) for note in measure.notes))
        for measure in document.measures
    )
    fifths = transpose_key(document.fifths, semitones) if semitones else document.fifths
    log.debug(
        "Transposed %r by %+d semitones (fifths %d -> %d)",
        document.title,
        semitones,
        document.fifths,
        fifths,
    )
    return replace(document, measures=measures, fifths=fifths)


def transpose_for_instrument(document: Document, instrument: str) -> Document:
    """Transpose a concert-pitch document into the written pitch of ``instrument``."""
    return transpose(document, semitones_for(instrument))
