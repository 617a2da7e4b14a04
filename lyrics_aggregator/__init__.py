"""
lyrics-aggregator: Match songs and normalize time-synced lyrics.

This package decides which of several lyrics providers' search results
actually is the requested song, converts every provider's lyrics payload
into one canonical document, and picks the best document when several
providers answered.

Architecture:
    matching/: Song identity matching
        - Normalize titles and artist credits
        - Score candidates on title, artist, album and duration
        - Reject weak matches, flag near ties

    lyrics/: Canonical lyrics documents
        - Grouped (lines with syllable timing) and flat encodings
        - TTML parsing and serialization
        - LRCLIB, Musixmatch and Spotify payload converters
        - Best-result selection by sync granularity
        - Cache keys and parallel multi-provider lookup

Modules:
    core/       - Configuration, logging, exceptions
    matching/   - Text normalization and song scoring
    lyrics/     - Lyrics model, converters and selection
    cli.py      - Command-line interface

Usage:
    Command Line:
        lyrics-agg convert song.ttml --to json
        lyrics-agg match results.json --title "Song" --artist "Artist"

    Python API:
        from lyrics_aggregator.matching import Query, Candidate, SongMatcher
        from lyrics_aggregator.lyrics import parse_ttml, serialize_ttml, select_best

        matcher = SongMatcher()
        match = matcher.find_best_match(candidates, Query("Song", "Artist", duration_seconds=215))

        result = parse_ttml(ttml_text)
        if result.ok:
            print(len(result.document.lyrics), "lines")

Dependencies:
    - rapidfuzz: Edit distance
    - click: CLI framework
    - rich-click: CLI colors
    - tqdm: Progress bars and console logging
    - pyyaml: Configuration file parsing
"""

__version__ = "0.1.0"
__author__ = "lyrics-aggregator"
__license__ = "MIT"

# Convenience imports for common usage
from lyrics_aggregator.core import (
    Config,
    ConfigError,
    ConversionError,
    LyricsAggregatorError,
    ProviderError,
    get_logger,
    load_config,
    setup_logging,
)
from lyrics_aggregator.lyrics import (
    ConversionResult,
    FlatDocument,
    LyricsAggregator,
    LyricsDocument,
    ProviderResult,
    select_best,
)
from lyrics_aggregator.matching import Candidate, MatchResult, Query, SongMatcher

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "setup_logging",
    "get_logger",
    # Exceptions
    "LyricsAggregatorError",
    "ConfigError",
    "ConversionError",
    "ProviderError",
    # Matching
    "Query",
    "Candidate",
    "MatchResult",
    "SongMatcher",
    # Lyrics
    "LyricsDocument",
    "FlatDocument",
    "ConversionResult",
    "ProviderResult",
    "LyricsAggregator",
    "select_best",
]
