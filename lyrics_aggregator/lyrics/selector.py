"""
Best-result selection across providers.

When several providers return lyrics for the same song, the result with
the finest sync granularity wins. Selection is deterministic: among
results of equal priority the first one encountered is kept.
"""

from dataclasses import dataclass
from typing import Any

from lyrics_aggregator.core.logger import get_logger
from lyrics_aggregator.lyrics.models import LyricsDocument, LyricsType
from lyrics_aggregator.matching.models import Query


logger = get_logger(__name__)


# Providers whose documents carry the provider's own sync category
EXTERNAL_SYNC_SOURCES = ("musixmatch", "spotify")

# Providers whose documents are judged by their own timing detail
OWN_TYPE_SOURCES = ("apple", "lyricsplus")

PRIORITY_NONE = 0
PRIORITY_UNKNOWN = 1
PRIORITY_LINE = 2
PRIORITY_WORD = 3


@dataclass(frozen=True)
class ExactMetadata:
    """Song metadata of the candidate a provider actually matched."""

    title: str | None = None
    artist: str | None = None
    album: str | None = None
    duration_ms: int | None = None


@dataclass(frozen=True)
class ProviderResult:
    """
    One provider's answer for a lookup.

    Attributes:
        success: False when the provider matched nothing or failed to convert.
        data: The converted document, when successful.
        source: Provider source name, e.g. "apple" or "musixmatch-word".
        raw_payload: The payload the document was converted from, kept for storage.
        exact_metadata: Metadata of the matched candidate, if known.
    """

    success: bool
    data: LyricsDocument | None
    source: str
    raw_payload: Any = None
    exact_metadata: ExactMetadata | None = None

    @property
    def has_lyrics(self) -> bool:
        return self.success and self.data is not None and len(self.data.lyrics) > 0


@dataclass(frozen=True)
class CacheMetadata:
    """Title, artist, album and duration used to build a cache key."""

    title: str | None
    artist: str | None
    album: str | None
    duration_seconds: float | None


def sync_priority(result: ProviderResult | None) -> int:
    """
    Rank a result by sync granularity.

    Returns:
        0 for a missing result or one without data.
        For Musixmatch and Spotify results: 3 for WORD documents, 2 for LINE.
        For Apple Music and LyricsPlus results: 3 when any line carries
        sub-line timing, else 2.
        1 for any other source.
    """
    if result is None or result.data is None:
        return PRIORITY_NONE

    source = result.source.lower()
    document = result.data

    if any(name in source for name in EXTERNAL_SYNC_SOURCES):
        return PRIORITY_WORD if document.type is LyricsType.WORD else PRIORITY_LINE

    if any(name in source for name in OWN_TYPE_SOURCES):
        if document.type is LyricsType.WORD or document.has_syllable_sync:
            return PRIORITY_WORD
        return PRIORITY_LINE

    return PRIORITY_UNKNOWN


def select_best(results: list[ProviderResult | None]) -> ProviderResult | None:
    """
    Pick the best successful result.

    Only successful results with at least one line are considered. The
    highest sync_priority wins; ties keep the earliest result.

    Returns:
        The selected result, or None when no result qualifies.
    """
    best: ProviderResult | None = None
    best_priority = PRIORITY_NONE

    for result in results:
        if result is None or not result.has_lyrics:
            continue
        priority = sync_priority(result)
        if best is None or priority > best_priority:
            best, best_priority = result, priority

    if best is not None:
        logger.debug(f"Selected {best.source} result (priority {best_priority})")
    return best


def resolve_cache_metadata(result: ProviderResult, query: Query) -> CacheMetadata:
    """
    Resolve the metadata a selected result should be cached under.

    Each field comes from the matched candidate when known, then from the
    document header, then from the original query.
    """
    exact = result.exact_metadata or ExactMetadata()
    header_title = result.data.metadata.title if result.data is not None else None

    if exact.duration_ms:
        duration_seconds = exact.duration_ms / 1000
    else:
        duration_seconds = query.duration_seconds

    return CacheMetadata(
        title=exact.title or header_title or query.title,
        artist=exact.artist or query.artist,
        album=exact.album or query.album,
        duration_seconds=duration_seconds,
    )
