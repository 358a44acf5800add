"""Instrument table: written transposition of each supported instrument."""

import logging
from dataclasses import dataclass
from typing import Final

log = logging.getLogger(__name__)

#: Semitones from concert pitch to the instrument's written pitch.
INSTRUMENT_TRANSPOSITIONS: Final[dict[str, int]] = {
    # Woodwinds
    "Bb Clarinet": 2,
    "Eb Alto Saxophone": 9,
    "Bb Tenor Saxophone": 14,
    "Eb Baritone Saxophone": 21,
    "Bb Soprano Saxophone": 2,
    "F French Horn": 7,
    # Brass
    "Bb Trumpet": 2,
    "Bb Flugelhorn": 2,
    "Bb Trombone": 0,
    "Eb Tuba": 9,
    "F Tuba": 7,
    "Bb Euphonium": 2,
    # Strings are notated at concert pitch here
    "Violin": 0,
    "Viola": 0,
    "Cello": 0,
    "Double Bass": 0,
    "Guitar": 0,
    "Bass Guitar": 0,
}

INSTRUMENT_FAMILIES: Final[dict[str, tuple[str, ...]]] = {
    "Woodwinds": (
        "Bb Clarinet",
        "Eb Alto Saxophone",
        "Bb Tenor Saxophone",
        "Eb Baritone Saxophone",
        "Bb Soprano Saxophone",
        "F French Horn",
    ),
    "Brass": (
        "Bb Trumpet",
        "Bb Flugelhorn",
        "Bb Trombone",
        "Eb Tuba",
        "F Tuba",
        "Bb Euphonium",
    ),
    "Strings": (
        "Violin",
        "Viola",
        "Cello",
        "Double Bass",
        "Guitar",
        "Bass Guitar",
    ),
}


@dataclass(frozen=True)
class Instrument:
    """One row of the instrument table."""

    name: str
    family: str
    semitones: int

    @property
    def transposition_label(self) -> str:
        """Signed offset as shown to users, e.g. ``'+9'`` or ``'0'``."""
        return f"{self.semitones:+d}" if self.semitones else "0"


def instruments() -> list[Instrument]:
    """All supported instruments, grouped by family in table order."""
    return [
        Instrument(name=name, family=family, semitones=INSTRUMENT_TRANSPOSITIONS[name])
        for family, names in INSTRUMENT_FAMILIES.items()
        for name in names
    ]


def is_known_instrument(name: str) -> bool:
    return name in INSTRUMENT_TRANSPOSITIONS


def semitones_for(name: str) -> int:
    """
    Return the written transposition for ``name``.

    Unknown instrument names resolve to 0 (no transposition). Callers that
    need strict validation should check :func:`is_known_instrument` first.
    """
    try:
        return INSTRUMENT_TRANSPOSITIONS[name]
    except KeyError:
        log.debug("Unknown instrument %r, using concert pitch", name)
        return 0
