"""MidiEncoder: serialises a note sequence into a format-0 Standard MIDI File."""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterable
from typing import Final

from mishpose.errors import EncodingError
from mishpose.score_models import DIVISIONS, Document, Note

log = logging.getLogger(__name__)

MIDI_MEDIA_TYPE: Final[str] = "audio/midi"

TICKS_PER_QUARTER = 96
DEFAULT_VELOCITY = 100

NOTE_ON = 0x90
NOTE_OFF = 0x80
END_OF_TRACK: Final[bytes] = b"\x00\xff\x2f\x00"

MIDI_NOTE_MIN = 0
MIDI_NOTE_MAX = 127
MAX_DATA_BYTE = 0x7F
MAX_DIVISION = 0x7FFF  # bit 15 selects SMPTE timing


def encode_variable_length(value: int) -> bytes:
    """
    Encode a non-negative integer as a MIDI variable-length quantity.

    Seven data bits per byte, most significant group first; every byte but
    the last has its high bit set (``480`` → ``83 60``).

    Raises:
        ValueError: If ``value`` is negative.
    """
    if value < 0:
        raise ValueError(f"Variable-length quantities cannot be negative: {value}")

    groups = [value & 0x7F]
    value >>= 7
    while value:
        groups.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(groups))


class MidiEncoder:
    """
    Writes a monophonic note sequence as a single-track Standard MIDI File.

    Each note becomes a note-on at delta 0 followed by a note-off whose delta
    is the note's length, so notes play back to back with no overlap. There
    is no tempo event; players assume the MIDI default of 120 BPM.
    """

    def __init__(
        self,
        ticks_per_quarter: int = TICKS_PER_QUARTER,
        velocity: int = DEFAULT_VELOCITY,
        channel: int = 0,
    ) -> None:
        """
        Args:
            ticks_per_quarter: Header division (ticks per quarter note).
            velocity:          Note-on velocity (0-127).
            channel:           MIDI channel (0-15).

        Raises:
            ValueError: If the division or velocity cannot be written as-is.
        """
        if not 1 <= ticks_per_quarter <= MAX_DIVISION:
            raise ValueError(f"ticks_per_quarter must be 1-{MAX_DIVISION}, got {ticks_per_quarter}")
        if not 0 <= velocity <= MAX_DATA_BYTE:
            raise ValueError(f"velocity must be 0-{MAX_DATA_BYTE}, got {velocity}")
        self.ticks_per_quarter = ticks_per_quarter
        self.velocity = velocity
        self.channel = channel & 0x0F

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _note_ticks(self, note: Note) -> int:
        """Note length converted from MusicXML divisions to MIDI ticks."""
        return note.ticks * self.ticks_per_quarter // DIVISIONS

    def _note_events(self, note: Note) -> bytes:
        pitch = getattr(note, "pitch", None)
        if pitch is None:
            log.debug("Skipping note without pitch data")
            return b""
        try:
            number = int(pitch.midi)
            ticks = self._note_ticks(note)
            delta = encode_variable_length(ticks)
        except (TypeError, ValueError, AttributeError) as exc:
            log.debug("Skipping malformed note %r: %s", note, exc)
            return b""
        if not MIDI_NOTE_MIN <= number <= MIDI_NOTE_MAX:
            log.debug("Skipping %r: MIDI note %d out of range", pitch, number)
            return b""
        return (
            b"\x00"
            + bytes((NOTE_ON | self.channel, number, self.velocity))
            + delta
            + bytes((NOTE_OFF | self.channel, number, 0))
        )

    def _header_chunk(self) -> bytes:
        return struct.pack(">4sIHHH", b"MThd", 6, 0, 1, self.ticks_per_quarter)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def encode(self, notes: Iterable[Note]) -> bytes:
        """
        Encode ``notes`` into the bytes of a format-0 MIDI file.

        Notes without pitch data, with an unreadable pitch or duration, or
        whose pitch lies outside the MIDI range are left out of the stream.

        Raises:
            EncodingError: If ``notes`` is ``None`` or cannot be iterated.
        """
        if notes is None:
            raise EncodingError("No note sequence to encode.")
        try:
            items = iter(notes)
        except TypeError as exc:
            raise EncodingError(f"Could not read note sequence: {exc}") from exc
        events = b"".join(self._note_events(note) for note in items)

        track = events + END_OF_TRACK
        return self._header_chunk() + struct.pack(">4sI", b"MTrk", len(track)) + track


def encode(notes: Iterable[Note]) -> bytes:
    """Encode ``notes`` with the default encoder settings."""
    return MidiEncoder().encode(notes)


def document_to_midi(document: Document) -> bytes:
    """Encode the flattened notes of ``document``; key and time signature are ignored."""
    return MidiEncoder().encode(document.notes)
