"""Data models for the symbolic score passed between recognition, transposition and export."""

from dataclasses import dataclass, field
from typing import Final

#: MusicXML divisions per quarter note used throughout the model.
DIVISIONS: Final[int] = 4

#: Natural pitch class of each letter name (C=0 ... B=11).
STEP_PITCH_CLASSES: Final[dict[str, int]] = {
    "C": 0,
    "D": 2,
    "E": 4,
    "F": 5,
    "G": 7,
    "A": 9,
    "B": 11,
}

#: Duration type → length in divisions (DIVISIONS per quarter note).
DURATION_TICKS: Final[dict[str, int]] = {
    "whole": 16,
    "half": 8,
    "quarter": 4,
    "eighth": 2,
    "sixteenth": 1,
}

DEFAULT_DURATION: Final[str] = "quarter"

MIN_FIFTHS: Final[int] = -7
MAX_FIFTHS: Final[int] = 7


def step_pitch_class(step: str) -> int:
    """Natural pitch class of a letter name; unrecognised letters count as C."""
    return STEP_PITCH_CLASSES.get(step, 0)


def clamp_fifths(fifths: int) -> int:
    """Saturate a key signature to the playable [-7, 7] range."""
    return max(MIN_FIFTHS, min(MAX_FIFTHS, fifths))


@dataclass(frozen=True)
class Pitch:
    """
    A written pitch in scientific pitch notation.

    Attributes:
        step:   Letter name A–G.
        alter:  Chromatic alteration in semitones (-1 flat, +1 sharp, ...).
        octave: Octave number; octave 4 contains middle C.
    """

    step: str
    alter: int = 0
    octave: int = 4

    @property
    def midi(self) -> int:
        """Absolute MIDI note number (C4 = 60). May fall outside 0–127."""
        return (self.octave + 1) * 12 + step_pitch_class(self.step) + self.alter

    @property
    def name(self) -> str:
        """Human-readable spelling, e.g. ``'Bb4'`` or ``'F#5'``."""
        if self.alter > 0:
            accidental = "#" * self.alter
        else:
            accidental = "b" * -self.alter
        return f"{self.step}{accidental}{self.octave}"


@dataclass(frozen=True)
class Note:
    """
    A single monophonic note.

    ``pitch`` is ``None`` when the recognition step produced a note without
    pitch data; such notes are carried through transposition unchanged and
    skipped by the MIDI encoder.
    """

    pitch: Pitch | None
    duration: str = DEFAULT_DURATION

    @property
    def ticks(self) -> int:
        """Length in MusicXML divisions; unknown duration types count as a quarter."""
        return DURATION_TICKS.get(self.duration, DURATION_TICKS[DEFAULT_DURATION])


@dataclass(frozen=True)
class Clef:
    """Clef sign and staff line (treble clef is ``G`` on line 2)."""

    sign: str = "G"
    line: int = 2


@dataclass(frozen=True)
class Measure:
    """An ordered run of notes."""

    notes: tuple[Note, ...] = ()


@dataclass(frozen=True)
class Document:
    """
    Score representation consumed by the transposer and the exporters.

    ``fifths``, ``time_signature`` and ``clef`` are serialised on the first
    measure only.
    """

    title: str = ""
    composer: str = ""
    measures: tuple[Measure, ...] = ()
    fifths: int = 0
    time_signature: str = "4/4"
    clef: Clef = field(default_factory=Clef)

    @property
    def notes(self) -> list[Note]:
        """All notes of every measure, in playing order."""
        return [note for measure in self.measures for note in measure.notes]

    @property
    def beats(self) -> int:
        return _split_time_signature(self.time_signature)[0]

    @property
    def beat_type(self) -> int:
        return _split_time_signature(self.time_signature)[1]


def _split_time_signature(time_signature: str) -> tuple[int, int]:
    beats, _, beat_type = time_signature.partition("/")
    try:
        return max(1, int(beats)), max(1, int(beat_type))
    except ValueError:
        return 4, 4
