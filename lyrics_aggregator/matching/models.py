"""
Data models for song identity matching.

This module defines the immutable records exchanged between provider
search adapters and the SongMatcher: the query being looked up, the
candidates a provider reported, and the scoring results.

Design:
    Provider search results come in different shapes (catalog records
    with a nested 'attributes' object, flat track records, cache file
    names). Each shape is converted into a Candidate exactly once, by
    one of the from_* constructors, and the Candidate keeps a `kind`
    tag naming the shape it came from. The matcher never inspects raw
    provider records.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Query:
    """
    The song a caller is looking for.

    Attributes:
        title: Requested song title, as typed or reported by the player.
        artist: Requested artist credit.
        album: Album name, if known.
        duration_seconds: Track length in seconds, if known.

    Example:
        query = Query(title="Shape of You", artist="Ed Sheeran", duration_seconds=233)
    """

    title: str
    artist: str
    album: str | None = None
    duration_seconds: float | None = None

    @property
    def label(self) -> str:
        """Display form used in log messages."""
        return f"{self.artist} - {self.title}"


@dataclass(frozen=True)
class Candidate:
    """
    Provider-reported song metadata for one search result.

    Attributes:
        title: Song title reported by the provider.
        artist: Artist credit reported by the provider.
        album: Album name, if reported.
        duration_ms: Track length in milliseconds, if reported.
        kind: Which record shape this candidate was built from
              ("catalog", "track", "cache" or "manual").
        ref: Opaque provider reference (track id, file name, raw record)
             handed back to the provider when fetching lyrics.
    """

    title: str
    artist: str
    album: str | None = None
    duration_ms: int | None = None
    kind: str = "manual"
    ref: Any = None

    @property
    def duration_seconds(self) -> float | None:
        """Duration in seconds, or None when unknown."""
        if self.duration_ms is None:
            return None
        return self.duration_ms / 1000

    @property
    def label(self) -> str:
        """Display form used in log messages."""
        return f"{self.artist} - {self.title}"

    @classmethod
    def from_catalog_record(cls, record: dict[str, Any]) -> "Candidate":
        """
        Create a Candidate from a catalog search record.

        Catalog records nest their metadata under 'attributes':
            {"id": "...", "attributes": {"name": ..., "artistName": ...,
             "albumName": ..., "durationInMillis": ...}}

        The whole record is kept as `ref`.
        """
        attributes = record.get("attributes") or {}
        duration = attributes.get("durationInMillis")
        return cls(
            title=attributes.get("name") or "",
            artist=attributes.get("artistName") or "",
            album=attributes.get("albumName") or None,
            duration_ms=int(duration) if duration else None,
            kind="catalog",
            ref=record,
        )

    @classmethod
    def from_track_record(cls, record: dict[str, Any]) -> "Candidate":
        """
        Create a Candidate from a flat track record.

        Accepts 'title' or 'name', 'artist' or 'artistName', 'album' or
        'albumName', and 'durationMs' or 'duration'. A bare 'duration'
        above 1000 is taken as milliseconds, otherwise as seconds.
        """
        duration_ms = None
        if record.get("durationMs"):
            duration_ms = int(record["durationMs"])
        elif record.get("duration"):
            duration = float(record["duration"])
            duration_ms = int(duration) if duration > 1000 else int(round(duration * 1000))

        return cls(
            title=record.get("title") or record.get("name") or "",
            artist=record.get("artist") or record.get("artistName") or "",
            album=record.get("album") or record.get("albumName") or None,
            duration_ms=duration_ms,
            kind="track",
            ref=record,
        )


@dataclass(frozen=True)
class TitleAnalysis:
    """
    A song title split into its identity and its descriptors.

    Attributes:
        base_title: Normalized title without featured artists, bracketed
                    content, version suffixes or a leading/trailing article.
        tags: Normalized version descriptors, e.g. {"live", "remastered"}.
        featured_artists: Artists named in feat./ft./featuring/with clauses,
                          in order of appearance.

    Example:
        analyze_title("Song (feat. B) - Live")
        -> TitleAnalysis(base_title="song", tags={"live"}, featured_artists=("b",))
    """

    base_title: str
    tags: frozenset[str] = frozenset()
    featured_artists: tuple[str, ...] = ()


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the four score components; they always sum to 1.0."""

    title: float
    artist: float
    album: float
    duration: float


@dataclass(frozen=True)
class ScoreBreakdown:
    """
    Result of scoring one candidate against a query.

    Attributes:
        title_score: Title similarity in [0, 1].
        artist_score: Artist similarity in [0, 1].
        album_score: Album similarity in [0, 1].
        duration_score: Duration closeness in [0, 1].
        weights: Weights applied to the components.
        final_score: Composite score in [0, 1]; capped low when a gate failed.
        reason: Human-readable explanation, e.g. "Good match" or
                "Title similarity too low: 0.412".
        query_duration: Query duration in seconds, if known.
        candidate_duration: Candidate duration in seconds, if known.
    """

    title_score: float
    artist_score: float
    album_score: float
    duration_score: float
    weights: ScoreWeights
    final_score: float
    reason: str
    query_duration: float | None = None
    candidate_duration: float | None = None

    def describe(self) -> str:
        """One-line component summary for debug logs."""
        return (
            f"T:{self.title_score:.3f} A:{self.artist_score:.3f} "
            f"Al:{self.album_score:.3f} D:{self.duration_score:.3f} "
            f"-> {self.final_score:.4f} ({self.reason})"
        )


@dataclass(frozen=True)
class ScoredCandidate:
    """A candidate paired with its score breakdown."""

    candidate: Candidate
    breakdown: ScoreBreakdown

    @property
    def score(self) -> float:
        return self.breakdown.final_score


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of a successful find_best_match() call.

    Attributes:
        candidate: The selected candidate.
        breakdown: Its score breakdown.
        ambiguous: True when the runner-up scored within the ambiguity gap
                   and the selected score was below the ambiguity ceiling.
                   The selection is still the top-ranked candidate.
        close_alternatives: Other candidates scoring within the ambiguity
                            gap of the selected one, best first.

    Example:
        match = find_best_match(candidates, query)
        if match is None:
            print("No confident match")
        elif match.ambiguous:
            print(f"Picked {match.candidate.label}, verify manually")
    """

    candidate: Candidate
    breakdown: ScoreBreakdown
    ambiguous: bool = False
    close_alternatives: tuple[ScoredCandidate, ...] = ()

    @property
    def score(self) -> float:
        return self.breakdown.final_score

    @property
    def has_close_alternatives(self) -> bool:
        """Check if there are close alternative matches to review."""
        return len(self.close_alternatives) > 0
