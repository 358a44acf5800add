"""MidiExporter: writes a Document to a tempo-tagged MIDI file for practice playback."""

import logging

from midiutil import MIDIFile

from mishpose.midi_encoder import DEFAULT_VELOCITY, MIDI_NOTE_MAX, MIDI_NOTE_MIN
from mishpose.score_models import DIVISIONS, Document

log = logging.getLogger(__name__)

# midiutil adds its own tempo track in Format 1 files; user track 0 is the
# first data track and tempo events are routed to the tempo track.
TRACK_MELODY = 0

CHANNEL_MELODY = 0


class MidiExporter:
    """
    Writes a Document as a Format 1 MIDI file with an explicit tempo.

    The file holds midiutil's tempo track followed by one melody track
    named after the document title. Notes that cannot be played leave a
    silent gap of their length.

    Unlike :class:`mishpose.midi_encoder.MidiEncoder`, which produces the
    minimal format-0 stream served for download, this exporter lets the
    caller choose the playback tempo.
    """

    DEFAULT_TEMPO = 120  # BPM

    def __init__(
        self,
        tempo: int = DEFAULT_TEMPO,
        velocity: int = DEFAULT_VELOCITY,
    ) -> None:
        """
        Args:
            tempo:    Playback tempo in beats per minute.
            velocity: MIDI note-on velocity (0-127).
        """
        self.tempo = tempo
        self.velocity = velocity

    def _build(self, document: Document) -> MIDIFile:
        midi = MIDIFile(numTracks=1, removeDuplicates=False, deinterleave=False)
        midi.addTempo(TRACK_MELODY, 0, self.tempo)
        midi.addTrackName(TRACK_MELODY, 0, document.title or "Melody")

        beat = 0.0
        for note in document.notes:
            duration_beats = note.ticks / DIVISIONS
            if note.pitch is not None and MIDI_NOTE_MIN <= note.pitch.midi <= MIDI_NOTE_MAX:
                midi.addNote(
                    track=TRACK_MELODY,
                    channel=CHANNEL_MELODY,
                    pitch=note.pitch.midi,
                    time=beat,
                    duration=duration_beats,
                    volume=self.velocity,
                )
            else:
                log.debug("Skipping unplayable note at beat %.2f", beat)
            beat += duration_beats
        return midi

    def export(self, document: Document, output_path: str) -> None:
        """
        Render ``document`` to a Standard MIDI File at ``output_path``.

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        midi = self._build(document)
        with open(output_path, "wb") as f:
            midi.writeFile(f)
