"""
Cache keys for stored lyrics.

A cache key is a file-name-safe description of a song:

    "Artist - Title [Album] (M:SS)"

Album and duration are optional. Stored entries are found again by
parsing their names back into candidates and running them through the
SongMatcher, so small differences between the query and the stored
name (punctuation, version tags, a second of duration) still hit.
"""

import re

from lyrics_aggregator.core.logger import get_logger
from lyrics_aggregator.matching.models import Candidate, Query
from lyrics_aggregator.matching.scorer import SongMatcher


logger = get_logger(__name__)


_UNSAFE_CHARACTERS = re.compile(r'[<>:"/\\|?*]')
_WHITESPACE = re.compile(r"\s+")
# Extensions of stored entries
_EXTENSION = re.compile(r"\.(?:json|ttml|xml|lrc|txt)$", re.IGNORECASE)
_DURATION_SUFFIX = re.compile(r"\s*\((\d+)(?::(\d+(?:\.\d+)?))?\)$")
_ALBUM_SUFFIX = re.compile(r"\s*\[([^\]]+)\]$")
_ARTIST_TITLE = re.compile(r"^(.+?)\s*-\s*(.+)$")


def _clean(text: str) -> str:
    return _WHITESPACE.sub(" ", _UNSAFE_CHARACTERS.sub("", text)).strip()


def format_duration(seconds: float) -> str:
    """Format seconds as "M:SS", e.g. 233 -> "3:53"."""
    minutes, rest = divmod(int(seconds), 60)
    return f"{minutes}:{rest:02d}"


def generate_cache_key(
    title: str | None,
    artist: str | None,
    album: str | None = None,
    duration_seconds: float | None = None,
) -> str | None:
    """
    Build the cache key for a song.

    Characters that are not allowed in file names are removed from the
    artist, title and album, and runs of whitespace are collapsed. The
    duration keeps its "M:SS" form.

    Returns:
        The key, or None when the title or artist is missing.

    Example:
        generate_cache_key("Shape of You", "Ed Sheeran", "÷", 233)
        -> "Ed Sheeran - Shape of You [÷] (3:53)"
    """
    if not title or not artist:
        logger.warning("Missing song title or artist for cache key generation")
        return None

    key = f"{_clean(artist)} - {_clean(title)}"
    if album and _clean(album):
        key += f" [{_clean(album)}]"
    if duration_seconds:
        key += f" ({format_duration(duration_seconds)})"
    return key


def parse_cache_key(filename: str) -> Candidate:
    """
    Parse a stored entry name back into a candidate.

    Strips a stored-format extension (.json, .ttml, .xml, .lrc, .txt),
    then a trailing "(M:SS)" or "(seconds)" duration, then a trailing
    "[album]", and splits the rest on the first " - " into artist and
    title. A name without a separator is taken as a bare title, and any
    other dotted suffix stays part of the title.
    """
    name = _EXTENSION.sub("", filename.strip())

    duration_ms = None
    match = _DURATION_SUFFIX.search(name)
    if match:
        if match.group(2) is not None:
            seconds = int(match.group(1)) * 60 + float(match.group(2))
        else:
            seconds = int(match.group(1))
        duration_ms = int(round(seconds * 1000))
        name = name[:match.start()]

    album = None
    match = _ALBUM_SUFFIX.search(name)
    if match:
        album = match.group(1).strip()
        name = name[:match.start()]

    match = _ARTIST_TITLE.match(name)
    if match:
        artist, title = match.group(1).strip(), match.group(2).strip()
    else:
        artist, title = "", name.strip()

    return Candidate(
        title=title,
        artist=artist,
        album=album,
        duration_ms=duration_ms,
        kind="cache",
        ref=filename,
    )


def find_cached_entry(
    filenames: list[str],
    query: Query,
    matcher: SongMatcher | None = None,
) -> str | None:
    """
    Find the stored entry that confidently matches a query.

    Args:
        filenames: Names of the stored entries.
        query: Song being looked up.
        matcher: Matcher to use; a default SongMatcher when omitted.

    Returns:
        The matching file name, or None.
    """
    if not filenames:
        return None

    matcher = matcher or SongMatcher()
    candidates = [parse_cache_key(name) for name in filenames]
    match = matcher.find_best_match(candidates, query)
    if match is None:
        logger.debug(f"No cached entry for {query.label}")
        return None

    logger.debug(f"Cached entry for {query.label}: {match.candidate.ref} ({match.score:.3f})")
    return match.candidate.ref
