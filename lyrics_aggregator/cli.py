"""
Command-line interface for lyrics-aggregator.

This module implements the CLI using Click, exposing document
conversion, song matching and cache key generation.
rich-click is used for the output colors.

Commands:
    lyrics-agg convert <files...> --to ttml     Convert lyrics files
    lyrics-agg match <candidates.json> ...      Pick the best candidate for a song
    lyrics-agg cache-key --title ... --artist   Print the cache key of a song

Usage:
    # Convert a TTML file to a grouped JSON document on stdout
    lyrics-agg convert song.ttml --to json

    # Convert a Musixmatch payload with word timing to TTML
    lyrics-agg convert mxm.json --from musixmatch --word-sync --to ttml -o out/

    # Convert several files to the flat format, next to their inputs
    lyrics-agg convert *.ttml --to v1

    # Pick the best of a provider's search results
    lyrics-agg match results.json --title "Shape of You" --artist "Ed Sheeran" --duration 233

Configuration:
    An optional config.yaml in the current directory (or --config) sets
    matching thresholds, the default TTML leading silence, and the log
    directory. See lyrics_aggregator.core.config.

Exit Codes:
    0    Success
    1    Configuration error or unexpected error
    2    Conversion failure
    3    No confident match
    4    Other lyrics-aggregator error
    130  Interrupted
"""

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import rich_click as click
from tqdm import tqdm

# Configure rich-click for better help formatting
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = ""
click.rich_click.MAX_WIDTH = 100
click.rich_click.OPTION_GROUPS = {
    "lyrics-agg convert": [
        {
            "name": "Formats",
            "options": ["--from", "--to", "--word-sync"],
        },
        {
            "name": "Output",
            "options": ["--output-dir"],
        },
    ],
    "lyrics-agg match": [
        {
            "name": "Query",
            "options": ["--title", "--artist", "--album", "--duration"],
        },
    ],
}

from lyrics_aggregator import __version__
from lyrics_aggregator.core import (
    Config,
    ConfigError,
    ConversionError,
    LyricsAggregatorError,
    get_logger,
    load_config,
    setup_logging,
    shutdown_logging,
)
from lyrics_aggregator.lyrics import (
    ConversionResult,
    LyricsDocument,
    convert_lrclib,
    convert_musixmatch,
    convert_spotify,
    flatten_document,
    generate_cache_key,
    load_document,
    parse_ttml,
    serialize_ttml,
)
from lyrics_aggregator.matching import Candidate, Query, SongMatcher

logger = get_logger(__name__)


SOURCE_FORMATS = ("auto", "json", "ttml", "lrclib", "musixmatch", "spotify")
TARGET_FORMATS = ("json", "v1", "ttml")

# File name suffix of each output format
OUTPUT_SUFFIXES = {
    "json": ".lyrics.json",
    "v1": ".v1.json",
    "ttml": ".lyrics.ttml",
}

TTML_EXTENSIONS = (".ttml", ".xml")


@click.group(invoke_without_command=True)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="<config.yaml>",
    help="Configuration file (default: ./config.yaml if present)"
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<dir>",
    help="Write log files and match reports to this directory"
)
@click.option(
    "--version",
    is_flag=True,
    help="Show version and exit."
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[Path],
    log_dir: Optional[Path],
    version: bool
) -> None:
    """
    lyrics-aggregator: Match songs and convert synced lyrics.

    Normalizes time-synced lyrics from several providers into one
    document format, and picks the provider result that matches a song.

    \b
    CONVERT:
        lyrics-agg convert song.ttml --to json
        lyrics-agg convert lrclib.json --from lrclib --to ttml -o out/

    \b
    MATCH:
        lyrics-agg match results.json --title "Song" --artist "Artist"
        lyrics-agg cache-key --title "Song" --artist "Artist" --duration 215
    """
    if version:
        click.echo(f"lyrics-aggregator {__version__}")
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(0)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    setup_logging(log_dir or config.logging.directory, config.logging.level_number)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@contextmanager
def _error_handling() -> Iterator[None]:
    """
    Map package errors to exit codes and shut logging down afterwards.

    Raises:
        SystemExit: On errors (with the appropriate exit code).
    """
    try:
        yield

    except click.ClickException:
        raise

    except ConfigError as e:
        click.echo(f"Configuration error: {e.message}", err=True)
        sys.exit(1)

    except ConversionError as e:
        click.echo(f"Conversion error: {e.message}", err=True)
        logger.error(f"Conversion error: {e.message}", exc_info=True)
        sys.exit(2)

    except LyricsAggregatorError as e:
        click.echo(f"Error: {e.message}", err=True)
        logger.error(f"Error: {e.message}", exc_info=True)
        sys.exit(4)

    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        logger.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        logger.exception("Unexpected error")
        sys.exit(1)

    finally:
        shutdown_logging()


# =============================================================================
# CONVERT
# =============================================================================

def _detect_format(data: Any) -> str:
    """Guess the payload format of a decoded JSON file."""
    if not isinstance(data, dict):
        return "json"
    if "syncedLyrics" in data:
        return "lrclib"
    lyrics = data.get("lyrics")
    if isinstance(lyrics, dict) and "message" in lyrics:
        return "musixmatch"
    if "lines" in data or (isinstance(lyrics, dict) and "lines" in lyrics):
        return "spotify"
    return "json"


def read_document(path: Path, source_format: str = "auto", word_sync: bool = False) -> ConversionResult:
    """
    Read a lyrics file in any supported format.

    Args:
        path: Input file.
        source_format: One of SOURCE_FORMATS; "auto" picks TTML by file
                       extension and tells JSON payloads apart by their keys.
        word_sync: Request word-level timing from Musixmatch payloads.

    Returns:
        ConversionResult with the grouped document.
    """
    text = path.read_text(encoding="utf-8")

    if source_format == "ttml" or (source_format == "auto" and path.suffix.lower() in TTML_EXTENSIONS):
        return parse_ttml(text)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return ConversionResult.failure(f"Invalid JSON: {e}")

    if source_format == "auto":
        source_format = _detect_format(data)
        logger.debug(f"{path.name}: detected {source_format} payload")

    if not isinstance(data, dict):
        return ConversionResult.failure("Expected a JSON object")
    if source_format == "lrclib":
        return convert_lrclib(data)
    if source_format == "musixmatch":
        return convert_musixmatch(data, word_sync=word_sync)
    if source_format == "spotify":
        return convert_spotify(data)
    return load_document(data)


def render_document(document: LyricsDocument, target: str, leading_silence: str = "0.020") -> str:
    """Render a document in one of TARGET_FORMATS."""
    if target == "ttml":
        return serialize_ttml(document, leading_silence=leading_silence)
    if target == "v1":
        payload = flatten_document(document).to_dict()
    else:
        payload = document.to_dict()
    return json.dumps(payload, indent=2, ensure_ascii=False)


@cli.command()
@click.argument(
    "inputs",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option(
    "--to", "target",
    type=click.Choice(TARGET_FORMATS),
    default="json",
    show_default=True,
    help="Output format: grouped JSON, flat v1 JSON, or TTML"
)
@click.option(
    "--from", "source_format",
    type=click.Choice(SOURCE_FORMATS),
    default="auto",
    show_default=True,
    help="Input format"
)
@click.option(
    "--word-sync",
    is_flag=True,
    help="Request word-level timing (Musixmatch richsync)"
)
@click.option(
    "-o", "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    metavar="<dir>",
    help="Write converted files here instead of next to the inputs"
)
@click.pass_context
def convert(
    ctx: click.Context,
    inputs: tuple[Path, ...],
    target: str,
    source_format: str,
    word_sync: bool,
    output_dir: Optional[Path]
) -> None:
    """
    Convert lyrics files between formats.

    A single input without --output-dir is written to stdout.
    """
    config: Config = ctx.obj["config"]

    with _error_handling():
        to_stdout = len(inputs) == 1 and output_dir is None
        if output_dir is not None:
            output_dir.mkdir(parents=True, exist_ok=True)

        iterator = inputs
        if len(inputs) > 1:
            iterator = tqdm(inputs, desc="Converting", unit="file")

        failures = []
        for path in iterator:
            result = read_document(path, source_format, word_sync)
            if not result.ok:
                logger.error(f"{path.name}: {result.error}")
                failures.append((path, result.error))
                continue

            rendered = render_document(result.document, target, config.lyrics.leading_silence)
            if to_stdout:
                click.echo(rendered)
                continue

            destination = (output_dir or path.parent) / f"{path.stem}{OUTPUT_SUFFIXES[target]}"
            destination.write_text(rendered, encoding="utf-8")
            logger.info(f"{path.name} -> {destination}")

        if failures:
            for path, error in failures:
                click.echo(f"Failed to convert {path}: {error}", err=True)
            sys.exit(2)


# =============================================================================
# MATCH
# =============================================================================

def load_candidates(path: Path) -> list[Candidate]:
    """
    Read provider search results from a JSON list.

    Records with an 'attributes' object are catalog records; any other
    object is read as a flat track record.

    Raises:
        LyricsAggregatorError: If the file is not a JSON list of objects.
    """
    try:
        records = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise LyricsAggregatorError(
            f"Invalid candidates file: {e}",
            details={"path": str(path)}
        ) from e

    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise LyricsAggregatorError(
            "Candidates file must contain a JSON list of objects",
            details={"path": str(path)}
        )

    return [
        Candidate.from_catalog_record(record) if isinstance(record.get("attributes"), dict)
        else Candidate.from_track_record(record)
        for record in records
    ]


@cli.command()
@click.argument(
    "candidates_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@click.option("--title", required=True, help="Song title")
@click.option("--artist", required=True, help="Artist")
@click.option("--album", default=None, help="Album")
@click.option("--duration", type=float, default=None, help="Duration in seconds")
@click.pass_context
def match(
    ctx: click.Context,
    candidates_file: Path,
    title: str,
    artist: str,
    album: Optional[str],
    duration: Optional[float]
) -> None:
    """Pick the candidate that matches a song, with its score breakdown."""
    config: Config = ctx.obj["config"]

    with _error_handling():
        candidates = load_candidates(candidates_file)
        query = Query(title=title, artist=artist, album=album, duration_seconds=duration)
        result = SongMatcher(config.matching).find_best_match(candidates, query)

        if result is None:
            click.echo(f"No confident match for: {query.label}", err=True)
            sys.exit(3)

        click.echo(f"Best match: {result.candidate.label}")
        click.echo(f"Score:      {result.score:.3f}")
        click.echo(f"Breakdown:  {result.breakdown.describe()}")
        if result.ambiguous:
            click.echo("Ambiguous:  yes (top candidates are close, verify manually)")
        for alternative in result.close_alternatives:
            click.echo(f"  close: {alternative.candidate.label} ({alternative.score:.3f})")


# =============================================================================
# CACHE KEY
# =============================================================================

@cli.command("cache-key")
@click.option("--title", required=True, help="Song title")
@click.option("--artist", required=True, help="Artist")
@click.option("--album", default=None, help="Album")
@click.option("--duration", type=float, default=None, help="Duration in seconds")
def cache_key(
    title: str,
    artist: str,
    album: Optional[str],
    duration: Optional[float]
) -> None:
    """Print the cache key a song is stored under."""
    with _error_handling():
        key = generate_cache_key(title, artist, album, duration)
        if key is None:
            raise click.UsageError("--title and --artist must not be empty")
        click.echo(key)


def main() -> None:
    """
    Entry point for the CLI.

    This function is called when running `lyrics-agg` from the command line.
    It invokes the Click CLI group.
    """
    cli()


if __name__ == "__main__":
    main()
