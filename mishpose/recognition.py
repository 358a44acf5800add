"""Recognizers: turn a scanned sheet music source into a Document."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Final

from mishpose.errors import RecognitionError
from mishpose.musicxml import key_name_to_fifths, parse_pitch_name
from mishpose.score_models import Document, Measure, Note

log = logging.getLogger(__name__)

PDF_MAGIC: Final[bytes] = b"%PDF"

#: Melody returned in place of real optical music recognition.
MOCK_MELODY: Final[tuple[tuple[str, str], ...]] = (
    ("C4", "quarter"),
    ("D4", "quarter"),
    ("E4", "quarter"),
    ("F4", "quarter"),
)


class Recognizer(ABC):
    """Abstract optical music recognition backend."""

    @abstractmethod
    def recognize(self, path: str | Path) -> Document:
        """Recognise the notation in ``path`` and return it as a concert-pitch Document."""


class MockRecognizer(Recognizer):
    """
    Stand-in for an OMR engine.

    The file is checked to be a readable PDF, then a fixed one-bar melody in
    C major is returned regardless of its content.
    """

    def __init__(self, key: str = "C", time_signature: str = "4/4") -> None:
        self.key = key
        self.time_signature = time_signature

    def _check_pdf(self, path: Path) -> None:
        try:
            with open(path, "rb") as fh:
                magic = fh.read(len(PDF_MAGIC))
        except OSError as exc:
            raise RecognitionError(f"Could not read {path}: {exc}") from exc
        if magic != PDF_MAGIC:
            raise RecognitionError(f"{path} is not a PDF file.")

    def recognize(self, path: str | Path) -> Document:
        pdf_path = Path(path)
        self._check_pdf(pdf_path)
        log.info("Recognition is mocked; returning the sample melody for %s", pdf_path.name)

        notes = tuple(
            Note(pitch=parse_pitch_name(name), duration=duration)
            for name, duration in MOCK_MELODY
        )
        return Document(
            title="Extracted Music",
            composer="Unknown",
            measures=(Measure(notes=notes),),
            fifths=key_name_to_fifths(self.key),
            time_signature=self.time_signature,
        )
