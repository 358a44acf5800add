"""MusicXML conversion: Document → partwise MusicXML text, and MusicXML sources → Document."""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from datetime import date
from pathlib import Path
from typing import Any, Final

from mishpose.errors import MusicXMLError
from mishpose.score_models import (
    DEFAULT_DURATION,
    DIVISIONS,
    DURATION_TICKS,
    Clef,
    Document,
    Measure,
    Note,
    Pitch,
    clamp_fifths,
)

log = logging.getLogger(__name__)

SOFTWARE_NAME: Final[str] = "MISHPOSE Music Transposer"
PART_ID: Final[str] = "P1"

_HEADER: Final[str] = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<!DOCTYPE score-partwise PUBLIC "-//Recordare//DTD MusicXML 3.1 Partwise//EN" '
    '"http://www.musicxml.org/dtds/partwise.dtd">\n'
)

#: Model duration name → MusicXML <type> value (and back).
_MUSICXML_TYPES: Final[dict[str, str]] = {
    "whole": "whole",
    "half": "half",
    "quarter": "quarter",
    "eighth": "eighth",
    "sixteenth": "16th",
}
_MODEL_DURATIONS: Final[dict[str, str]] = {v: k for k, v in _MUSICXML_TYPES.items()}

#: Major key name → key signature fifths.
KEY_FIFTHS: Final[dict[str, int]] = {
    "C": 0,
    "G": 1,
    "D": 2,
    "A": 3,
    "E": 4,
    "B": 5,
    "F#": 6,
    "C#": 7,
    "F": -1,
    "Bb": -2,
    "Eb": -3,
    "Ab": -4,
    "Db": -5,
    "Gb": -6,
    "Cb": -7,
}

_PITCH_NAME_RE = re.compile(r"([A-G])([#b]?)(-?\d+)")


def parse_pitch_name(name: str) -> Pitch:
    """
    Parse a compact pitch name such as ``'C4'``, ``'F#5'`` or ``'Bb3'``.

    Unparseable names fall back to middle C.
    """
    match = _PITCH_NAME_RE.fullmatch(name.strip())
    if not match:
        log.debug("Unparseable pitch name %r, using C4", name)
        return Pitch(step="C", alter=0, octave=4)

    step, accidental, octave = match.groups()
    alter = {"#": 1, "b": -1}.get(accidental, 0)
    return Pitch(step=step, alter=alter, octave=int(octave))


def key_name_to_fifths(key: str) -> int:
    """Fifths of a major key name (``'Eb'`` → -3); unknown names map to C major."""
    return KEY_FIFTHS.get(key.strip(), 0)


# ── Writing ────────────────────────────────────────────────────────────────


def _append_attributes(measure_el: ET.Element, document: Document) -> None:
    attributes = ET.SubElement(measure_el, "attributes")
    ET.SubElement(attributes, "divisions").text = str(DIVISIONS)

    key = ET.SubElement(attributes, "key")
    ET.SubElement(key, "fifths").text = str(clamp_fifths(document.fifths))

    time = ET.SubElement(attributes, "time")
    ET.SubElement(time, "beats").text = str(document.beats)
    ET.SubElement(time, "beat-type").text = str(document.beat_type)

    clef = ET.SubElement(attributes, "clef")
    ET.SubElement(clef, "sign").text = document.clef.sign
    ET.SubElement(clef, "line").text = str(document.clef.line)


def _append_note(measure_el: ET.Element, note: Note) -> None:
    note_el = ET.SubElement(measure_el, "note")
    if note.pitch is None:
        ET.SubElement(note_el, "rest")
    else:
        pitch_el = ET.SubElement(note_el, "pitch")
        ET.SubElement(pitch_el, "step").text = note.pitch.step
        if note.pitch.alter != 0:
            ET.SubElement(pitch_el, "alter").text = str(note.pitch.alter)
        ET.SubElement(pitch_el, "octave").text = str(note.pitch.octave)

    duration = note.duration if note.duration in DURATION_TICKS else DEFAULT_DURATION
    ET.SubElement(note_el, "duration").text = str(note.ticks)
    ET.SubElement(note_el, "type").text = _MUSICXML_TYPES[duration]


def to_musicxml(document: Document, encoding_date: date | None = None) -> str:
    """
    Serialise ``document`` as a single-part MusicXML 3.1 score.

    Key, time signature and clef are written on the first measure. Notes
    without pitch data are written as rests of the same length.
    """
    root = ET.Element("score-partwise", version="3.1")

    work = ET.SubElement(root, "work")
    ET.SubElement(work, "work-title").text = document.title

    identification = ET.SubElement(root, "identification")
    ET.SubElement(identification, "creator", type="composer").text = document.composer
    encoding = ET.SubElement(identification, "encoding")
    ET.SubElement(encoding, "software").text = SOFTWARE_NAME
    ET.SubElement(encoding, "encoding-date").text = (encoding_date or date.today()).isoformat()

    part_list = ET.SubElement(root, "part-list")
    score_part = ET.SubElement(part_list, "score-part", id=PART_ID)
    ET.SubElement(score_part, "part-name").text = "Music"

    part = ET.SubElement(root, "part", id=PART_ID)
    measures = document.measures or (Measure(),)
    for number, measure in enumerate(measures, start=1):
        measure_el = ET.SubElement(part, "measure", number=str(number))
        if number == 1:
            _append_attributes(measure_el, document)
        for note in measure.notes:
            _append_note(measure_el, note)

    ET.indent(root, space="  ")
    return _HEADER + ET.tostring(root, encoding="unicode")


# ── Reading ────────────────────────────────────────────────────────────────


def _load_score(source: str | Path) -> Any:
    from music21 import converter
    from music21.exceptions21 import Music21Exception

    is_data = isinstance(source, str) and source.lstrip().startswith("<")
    if not is_data and not Path(source).is_file():
        raise MusicXMLError(f"MusicXML file not found: {source}")

    try:
        if is_data:
            return converter.parseData(source, format="musicxml")
        return converter.parse(str(source))
    except (Music21Exception, ET.ParseError) as exc:
        raise MusicXMLError(f"Could not parse MusicXML: {exc}") from exc


def _quarter_length_to_duration(quarter_length: float) -> str:
    if quarter_length <= 0:
        return DEFAULT_DURATION
    return min(
        DURATION_TICKS,
        key=lambda name: abs(DURATION_TICKS[name] / DIVISIONS - quarter_length),
    )


def _element_to_note(element: Any) -> Note:
    if element.isChord:
        # Monophonic model: keep the highest sounding pitch of a chord.
        m21_pitch = max(element.pitches, key=lambda p: p.ps)
    else:
        m21_pitch = element.pitch

    accidental = m21_pitch.accidental
    alter = 0
    if accidental is not None:
        alter = int(accidental.alter)
        if alter != accidental.alter:
            log.debug("Rounding microtonal alteration %s of %s toward zero", accidental.alter, m21_pitch)
    pitch = Pitch(
        step=m21_pitch.step,
        alter=alter,
        octave=m21_pitch.octave if m21_pitch.octave is not None else 4,
    )

    duration = _MODEL_DURATIONS.get(element.duration.type)
    if duration is None:
        duration = _quarter_length_to_duration(float(element.duration.quarterLength))
    return Note(pitch=pitch, duration=duration)


def _first(score: Any, class_name: str) -> Any | None:
    for element in score.recurse().getElementsByClass(class_name):
        return element
    return None


def from_musicxml(source: str | Path) -> Document:
    """
    Read a MusicXML document (text, ``.xml``, ``.musicxml`` or ``.mxl`` path).

    Only the first part is kept. Rests are dropped and chords are reduced to
    their top note.

    Raises:
        MusicXMLError: If the source is missing or cannot be parsed.
    """
    score = _load_score(source)

    parts = list(getattr(score, "parts", []))
    part = parts[0] if parts else score
    m21_measures = list(part.getElementsByClass("Measure")) or [part]

    measures = tuple(
        Measure(notes=tuple(_element_to_note(element) for element in m21_measure.recurse().notes))
        for m21_measure in m21_measures
    )

    key_signature = _first(score, "KeySignature")
    time_signature = _first(score, "TimeSignature")
    clef = _first(score, "Clef")
    metadata = score.metadata

    document = Document(
        title=(metadata.title if metadata is not None else None) or "",
        composer=(metadata.composer if metadata is not None else None) or "",
        measures=measures,
        fifths=clamp_fifths(key_signature.sharps) if key_signature is not None else 0,
        time_signature=getattr(time_signature, "ratioString", None) or "4/4",
        clef=Clef(sign=clef.sign or "G", line=clef.line or 2) if clef is not None else Clef(),
    )
    log.debug(
        "Read %r: %d measure(s), %d note(s), fifths %d",
        document.title,
        len(document.measures),
        len(document.notes),
        document.fifths,
    )
    return document
