"""Tests for the end-to-end transposition pipeline."""

import xml.etree.ElementTree as ET

from mishpose.midi_encoder import MidiEncoder
from mishpose.musicxml import to_musicxml
from mishpose.pipeline import TranspositionPipeline, write_outputs
from mishpose.score_models import Document, Measure, Note, Pitch
from mishpose.sheet_renderers import SheetRenderer


class _StubRenderer(SheetRenderer):
    """Records what it was asked to render instead of calling verovio."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []

    @property
    def default_extension(self) -> str:
        return ".html"

    def render(self, *, title: str, musicxml: str, subtitle: str = "") -> str:
        self.calls.append((title, musicxml, subtitle))
        return f"<html>{title}</html>"


def _write_pdf(tmp_path):
    path = tmp_path / "scan.pdf"
    path.write_bytes(b"%PDF-1.7\n")
    return path


def _concert_document() -> Document:
    return Document(
        title="Etude",
        measures=(Measure(notes=(Note(Pitch("G", 0, 4)), Note(Pitch("A", 0, 4), "half"))),),
        fifths=1,
    )


def test_pdf_source_goes_through_recognizer(tmp_path) -> None:
    result = TranspositionPipeline().process(_write_pdf(tmp_path), "Bb Clarinet")

    assert result.instrument == "Bb Clarinet"
    assert result.semitones == 2
    assert [n.pitch.midi for n in result.document.notes] == [62, 64, 66, 67]
    assert result.document.fifths == 2
    assert result.html is None


def test_musicxml_source_is_parsed(tmp_path) -> None:
    path = tmp_path / "etude.musicxml"
    path.write_text(to_musicxml(_concert_document()), encoding="utf-8")

    result = TranspositionPipeline().process(path, "F French Horn")

    assert result.semitones == 7
    assert [n.pitch for n in result.document.notes] == [Pitch("D", 0, 5), Pitch("E", 0, 5)]
    assert result.document.fifths == 2


def test_outputs_are_consistent() -> None:
    encoder = MidiEncoder()
    result = TranspositionPipeline(encoder=encoder).process_document(
        _concert_document(), "Eb Alto Saxophone"
    )

    assert result.midi == encoder.encode(result.document.notes)
    root = ET.fromstring(result.musicxml.encode("utf-8"))
    assert root.findtext("part/measure/attributes/key/fifths") == str(result.document.fifths)
    assert [s.text for s in root.iter("step")] == ["E", "F"]


def test_explicit_semitones_override_instrument() -> None:
    result = TranspositionPipeline().process_document(_concert_document(), "Bb Trumpet", semitones=-12)
    assert result.semitones == -12
    assert result.document.notes[0].pitch == Pitch("G", 0, 3)


def test_unknown_instrument_keeps_concert_pitch() -> None:
    document = _concert_document()
    result = TranspositionPipeline().process_document(document, "Hurdy-gurdy")
    assert result.semitones == 0
    assert result.document == document


def test_renderer_receives_transposed_musicxml() -> None:
    renderer = _StubRenderer()
    result = TranspositionPipeline(renderer=renderer).process_document(
        _concert_document(), "Bb Trumpet"
    )

    assert result.html == "<html>Etude</html>"
    title, musicxml, subtitle = renderer.calls[0]
    assert title == "Etude"
    assert musicxml == result.musicxml
    assert subtitle == "for Bb Trumpet"


def test_write_outputs(tmp_path) -> None:
    result = TranspositionPipeline(renderer=_StubRenderer()).process_document(
        _concert_document(), "Bb Trumpet"
    )
    written = write_outputs(result, tmp_path / "out", "etude_trumpet")

    assert [p.name for p in written] == [
        "etude_trumpet.musicxml",
        "etude_trumpet.mid",
        "etude_trumpet.html",
    ]
    assert written[1].read_bytes() == result.midi
    assert written[0].read_text(encoding="utf-8") == result.musicxml


def test_write_outputs_selected_formats(tmp_path) -> None:
    result = TranspositionPipeline().process_document(_concert_document(), "Violin")
    written = write_outputs(result, tmp_path, "etude", formats=("midi", "html"))
    assert [p.name for p in written] == ["etude.mid"]


class _XhtmlRenderer(_StubRenderer):
    @property
    def default_extension(self) -> str:
        return ".xhtml"


def test_write_outputs_uses_renderer_extension(tmp_path) -> None:
    result = TranspositionPipeline(renderer=_XhtmlRenderer()).process_document(
        _concert_document(), "Violin"
    )
    written = write_outputs(result, tmp_path, "etude", formats=("html",))

    assert result.sheet_extension == ".xhtml"
    assert [p.name for p in written] == ["etude.xhtml"]
    assert written[0].read_text(encoding="utf-8") == "<html>Etude</html>"
