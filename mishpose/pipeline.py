"""TranspositionPipeline: source file → concert Document → transposed outputs."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from mishpose.instruments import semitones_for
from mishpose.midi_encoder import MidiEncoder
from mishpose.musicxml import from_musicxml, to_musicxml
from mishpose.recognition import MockRecognizer, Recognizer
from mishpose.score_models import Document
from mishpose.sheet_renderers import SheetRenderer
from mishpose.transposer import transpose

log = logging.getLogger(__name__)

PDF_SUFFIXES: Final[set[str]] = {".pdf"}
MUSICXML_SUFFIX: Final[str] = ".musicxml"
MIDI_SUFFIX: Final[str] = ".mid"
OUTPUT_FORMATS: Final[tuple[str, ...]] = ("musicxml", "midi", "html")


@dataclass(frozen=True)
class ProcessingResult:
    """Everything produced for one source file and target instrument."""

    instrument: str
    semitones: int
    document: Document
    musicxml: str
    midi: bytes
    html: str | None = None
    sheet_extension: str = ".html"


class TranspositionPipeline:
    """
    Runs the recognise → transpose → export chain for one source at a time.

    PDF sources go through the recognizer; anything else is read as MusicXML.
    The HTML sheet is only produced when a renderer is supplied.
    """

    def __init__(
        self,
        recognizer: Recognizer | None = None,
        encoder: MidiEncoder | None = None,
        renderer: SheetRenderer | None = None,
    ) -> None:
        self.recognizer = recognizer if recognizer is not None else MockRecognizer()
        self.encoder = encoder if encoder is not None else MidiEncoder()
        self.renderer = renderer

    def load(self, source: str | Path) -> Document:
        """Read ``source`` into a concert-pitch Document."""
        path = Path(source)
        if path.suffix.lower() in PDF_SUFFIXES:
            return self.recognizer.recognize(path)
        return from_musicxml(path)

    def process_document(
        self,
        document: Document,
        instrument: str,
        semitones: int | None = None,
    ) -> ProcessingResult:
        """
        Transpose ``document`` for ``instrument`` and build every output.

        ``semitones`` overrides the instrument table when given.
        """
        offset = semitones_for(instrument) if semitones is None else semitones
        transposed = transpose(document, offset)
        log.info("Transposed %r for %s (%+d semitones)", document.title, instrument, offset)

        musicxml = to_musicxml(transposed)
        html = None
        sheet_extension = ".html"
        if self.renderer is not None:
            sheet_extension = self.renderer.default_extension
            html = self.renderer.render(
                title=transposed.title,
                musicxml=musicxml,
                subtitle=f"for {instrument}",
            )

        return ProcessingResult(
            instrument=instrument,
            semitones=offset,
            document=transposed,
            musicxml=musicxml,
            midi=self.encoder.encode(transposed.notes),
            html=html,
            sheet_extension=sheet_extension,
        )

    def process(
        self,
        source: str | Path,
        instrument: str,
        semitones: int | None = None,
    ) -> ProcessingResult:
        return self.process_document(self.load(source), instrument, semitones=semitones)


def write_outputs(
    result: ProcessingResult,
    output_dir: str | Path,
    stem: str,
    formats: Iterable[str] = OUTPUT_FORMATS,
) -> list[Path]:
    """
    Write the requested outputs of ``result`` into ``output_dir``.

    HTML is skipped when the result was produced without a renderer.

    Returns:
        Paths of the files written, in that order.

    Raises:
        OSError: If a file cannot be written.
    """
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    wanted = set(formats)
    written: list[Path] = []
    if "musicxml" in wanted:
        musicxml_path = directory / f"{stem}{MUSICXML_SUFFIX}"
        musicxml_path.write_text(result.musicxml, encoding="utf-8")
        written.append(musicxml_path)
    if "midi" in wanted:
        midi_path = directory / f"{stem}{MIDI_SUFFIX}"
        midi_path.write_bytes(result.midi)
        written.append(midi_path)
    if "html" in wanted and result.html is not None:
        html_path = directory / f"{stem}{result.sheet_extension}"
        html_path.write_text(result.html, encoding="utf-8")
        written.append(html_path)
    return written
