"""
Song identity matching for lyrics-aggregator.

This module scores provider search results against the song a caller
is looking for and picks the confident best match:
    - text: normalization and string similarity primitives
    - models: Query, Candidate and scoring result records
    - scorer: title/artist/album/duration scoring and SongMatcher

Usage:
    from lyrics_aggregator.matching import Query, Candidate, SongMatcher

    matcher = SongMatcher()
    match = matcher.find_best_match(candidates, Query("Shape of You", "Ed Sheeran"))
"""

from lyrics_aggregator.matching.models import (
    Candidate,
    MatchResult,
    Query,
    ScoreBreakdown,
    ScoredCandidate,
    ScoreWeights,
    TitleAnalysis,
)
from lyrics_aggregator.matching.scorer import (
    CRITICAL_TAGS,
    SongMatcher,
    album_similarity,
    analyze_title,
    artist_similarity,
    duration_similarity,
    find_best_match,
    normalize_artist,
    score,
    title_similarity,
)
from lyrics_aggregator.matching.text import (
    dice_coefficient,
    levenshtein,
    levenshtein_similarity,
    ngrams,
    normalize,
)

__all__ = [
    # Models
    "Query",
    "Candidate",
    "TitleAnalysis",
    "ScoreWeights",
    "ScoreBreakdown",
    "ScoredCandidate",
    "MatchResult",
    # Scorer
    "SongMatcher",
    "CRITICAL_TAGS",
    "analyze_title",
    "normalize_artist",
    "title_similarity",
    "artist_similarity",
    "album_similarity",
    "duration_similarity",
    "score",
    "find_best_match",
    # Text
    "normalize",
    "ngrams",
    "dice_coefficient",
    "levenshtein",
    "levenshtein_similarity",
]
