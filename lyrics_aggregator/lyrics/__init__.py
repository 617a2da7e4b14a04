"""
Lyrics documents for lyrics-aggregator.

This module holds the canonical lyrics model and everything that
produces or consumes it:
    - models: LyricsDocument (grouped), FlatDocument (flat) and their parts
    - converter: flat <-> grouped conversion and document validation
    - ttml: TTML parsing and serialization
    - providers: LRCLIB, Musixmatch and Spotify payload converters
    - selector: best-result selection by sync priority
    - cache_key: cache key generation and lookup
    - aggregator: parallel multi-provider lookup

Usage:
    from lyrics_aggregator.lyrics import parse_ttml, flatten_document

    result = parse_ttml(ttml_text)
    if result.ok:
        flat = flatten_document(result.document)
"""

from lyrics_aggregator.lyrics.aggregator import (
    LookupOutcome,
    LyricsAggregator,
    LyricsProvider,
    LyricsStore,
    resolve_with_provider,
)
from lyrics_aggregator.lyrics.cache_key import (
    find_cached_entry,
    generate_cache_key,
    parse_cache_key,
)
from lyrics_aggregator.lyrics.converter import (
    flatten_document,
    group_segments,
    load_document,
)
from lyrics_aggregator.lyrics.models import (
    Agent,
    CacheState,
    ConversionResult,
    FlatDocument,
    FlatSegment,
    LineElement,
    LyricsDocument,
    LyricsMetadata,
    LyricsType,
    LyricUnit,
    Syllable,
    Translation,
    Transliteration,
)
from lyrics_aggregator.lyrics.providers import (
    convert_lrclib,
    convert_musixmatch,
    convert_spotify,
    extract_songwriters,
    parse_richsync,
    parse_subtitles,
)
from lyrics_aggregator.lyrics.selector import (
    CacheMetadata,
    ExactMetadata,
    ProviderResult,
    resolve_cache_metadata,
    select_best,
    sync_priority,
)
from lyrics_aggregator.lyrics.ttml import (
    format_time,
    parse_ttml,
    serialize_ttml,
    time_to_ms,
)

__all__ = [
    # Models
    "LyricsType",
    "CacheState",
    "Syllable",
    "LineElement",
    "Translation",
    "Transliteration",
    "LyricUnit",
    "Agent",
    "LyricsMetadata",
    "LyricsDocument",
    "FlatSegment",
    "FlatDocument",
    "ConversionResult",
    # Converter
    "group_segments",
    "flatten_document",
    "load_document",
    # TTML
    "parse_ttml",
    "serialize_ttml",
    "time_to_ms",
    "format_time",
    # Providers
    "convert_lrclib",
    "convert_musixmatch",
    "convert_spotify",
    "parse_richsync",
    "parse_subtitles",
    "extract_songwriters",
    # Selector
    "ProviderResult",
    "ExactMetadata",
    "CacheMetadata",
    "sync_priority",
    "select_best",
    "resolve_cache_metadata",
    # Cache keys
    "generate_cache_key",
    "parse_cache_key",
    "find_cached_entry",
    # Aggregator
    "LyricsProvider",
    "LyricsStore",
    "LookupOutcome",
    "LyricsAggregator",
    "resolve_with_provider",
]
