"""MISHPOSE CLI entry point."""

import logging
import re
import sys
from pathlib import Path
from typing import NoReturn

import click

from mishpose import __version__
from mishpose.errors import MishposeError
from mishpose.instruments import INSTRUMENT_FAMILIES, instruments, is_known_instrument
from mishpose.midi_encoder import MIDI_MEDIA_TYPE
from mishpose.midi_exporter import MidiExporter
from mishpose.pipeline import MIDI_SUFFIX, OUTPUT_FORMATS, TranspositionPipeline, write_outputs
from mishpose.sheet_renderers import VerovioHtmlRenderer

log = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DEFAULT_FORMATS = ("musicxml", "midi")


def _slug(text: str) -> str:
    """Reduce free text to a filename-safe token, e.g. 'Bb Trumpet' → 'Bb_Trumpet'."""
    sanitized = re.sub(r"[^\w\s-]", "", text)
    return re.sub(r"\s+", "_", sanitized.strip()) or "output"


def _label(instrument: str | None, semitones: int | None) -> str:
    if instrument:
        return instrument
    return f"{semitones:+d} semitones"


def _fail(message: str) -> NoReturn:
    click.echo(f"  ERROR: {message}", err=True)
    sys.exit(1)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"], "auto_envvar_prefix": "MISHPOSE"})
@click.version_option(version=__version__, prog_name="mishpose")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def main(verbose: bool) -> None:
    """MISHPOSE: transpose sheet music for your instrument."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


# ── instruments subcommand ─────────────────────────────────────────────────────

@main.command("instruments")
def list_instruments() -> None:
    """List supported instruments and their written transposition."""
    by_family: dict[str, list[str]] = {family: [] for family in INSTRUMENT_FAMILIES}
    for instrument in instruments():
        by_family[instrument.family].append(
            f"  {instrument.name:<24} {instrument.transposition_label:>4}"
        )
    for family, rows in by_family.items():
        click.echo(family)
        for row in rows:
            click.echo(row)


# ── transpose subcommand ───────────────────────────────────────────────────────

@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--instrument",
    "-i",
    default=None,
    metavar="NAME",
    help="Target instrument, e.g. 'Bb Trumpet'. See `mishpose instruments`.",
)
@click.option(
    "--semitones",
    "-s",
    type=int,
    default=None,
    help="Explicit transposition in semitones; overrides the instrument table.",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Directory for the generated files.",
)
@click.option(
    "--format",
    "formats",
    type=click.Choice(OUTPUT_FORMATS, case_sensitive=False),
    multiple=True,
    default=DEFAULT_FORMATS,
    show_default=True,
    help="Output to write; repeat for several. 'html' needs verovio.",
)
@click.option(
    "--tempo",
    type=click.IntRange(20, 300),
    default=None,
    help="Write the MIDI file with this tempo (BPM) instead of the plain download stream.",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Reject instrument names that are not in the instrument table.",
)
def transpose(
    source: str,
    instrument: str | None,
    semitones: int | None,
    output_dir: str,
    formats: tuple[str, ...],
    tempo: int | None,
    strict: bool,
) -> None:
    """
    Transpose a PDF or MusicXML score for a transposing instrument.

    SOURCE is a scanned .pdf (recognition is currently simulated) or a
    .musicxml / .xml / .mxl file written at concert pitch.

    \b
    Examples:
      mishpose transpose song.musicxml -i "Bb Trumpet"
      mishpose transpose song.pdf -i "Eb Alto Saxophone" --format html -o out/
      mishpose transpose song.musicxml -s -3 --tempo 90
    """
    if instrument is None and semitones is None:
        raise click.UsageError("Give an --instrument or --semitones.")
    if instrument is not None and not is_known_instrument(instrument):
        if strict:
            raise click.BadParameter(
                f"Unknown instrument '{instrument}'.", param_hint="'--instrument'"
            )
        click.echo(f"  WARNING: Unknown instrument '{instrument}', keeping concert pitch.", err=True)

    normalized = tuple(fmt.lower() for fmt in formats)
    label = _label(instrument, semitones)
    renderer = VerovioHtmlRenderer() if "html" in normalized else None
    pipeline = TranspositionPipeline(renderer=renderer)
    stem = f"{_slug(Path(source).stem)}_{_slug(label)}"

    click.echo(f"mishpose v{__version__}")
    click.echo(f"  Source : {source}")
    click.echo(f"  Target : {label}")
    click.echo()

    click.echo("[1/3] Reading score...")
    try:
        document = pipeline.load(source)
    except MishposeError as exc:
        _fail(str(exc))

    click.echo(f"      {len(document.notes)} note(s) in {len(document.measures)} measure(s)")

    click.echo("[2/3] Transposing...")
    try:
        result = pipeline.process_document(document, label, semitones=semitones)
    except ValueError as exc:
        _fail(f"Could not render score: {exc}")

    click.echo(f"      {result.semitones:+d} semitones, key signature {result.document.fifths:+d}")

    click.echo(f"[3/3] Writing {', '.join(normalized)} → '{output_dir}'...")
    try:
        written = write_outputs(result, output_dir, stem, normalized)
        if tempo is not None and "midi" in normalized:
            midi_path = Path(output_dir) / f"{stem}{MIDI_SUFFIX}"
            MidiExporter(tempo=tempo).export(result.document, str(midi_path))
    except OSError as exc:
        _fail(f"Could not write output: {exc}")

    click.echo()
    for path in written:
        click.echo(f"Wrote {path}")


# ── midi subcommand ────────────────────────────────────────────────────────────

@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, readable=True))
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination MIDI file path. Defaults to SOURCE with a .mid extension.",
)
@click.option(
    "--instrument",
    "-i",
    default=None,
    metavar="NAME",
    help="Transpose for this instrument before encoding.",
)
def midi(source: str, output: str | None, instrument: str | None) -> None:
    """
    Encode a PDF or MusicXML score straight to a format-0 MIDI file.

    \b
    Examples:
      mishpose midi song.musicxml
      mishpose midi song.musicxml -i "F French Horn" -o horn.mid
    """
    resolved_output = output if output is not None else str(Path(source).with_suffix(MIDI_SUFFIX))
    pipeline = TranspositionPipeline()

    try:
        document = pipeline.load(source)
    except MishposeError as exc:
        _fail(str(exc))

    semitones = None if instrument else 0
    result = pipeline.process_document(document, instrument or "Concert pitch", semitones=semitones)
    try:
        Path(resolved_output).write_bytes(result.midi)
    except OSError as exc:
        _fail(f"Could not write MIDI file: {exc}")

    log.debug("Wrote %d bytes of %s", len(result.midi), MIDI_MEDIA_TYPE)
    click.echo(f"Done!  Wrote '{resolved_output}' ({len(result.midi)} bytes).")
