"""
Song identity scoring for lyrics-aggregator.

This module decides whether a provider's search result is the song the
caller asked for. Every candidate is compared with the query on four
components, combined into a weighted score, and the best candidate is
accepted only above a confidence threshold.

Matching Algorithm:
    1. Analyze both titles: pull out featured artists, version tags
       (live, remix, remastered...) and bracketed content to get a base title
    2. Title score: identical base titles score 1.0 (0.85 when the critical
       tags differ), otherwise Dice and Levenshtein similarity combined,
       minus a penalty for conflicting critical tags
    3. Artist score: order-independent normalized credits; exact match 1.0,
       any shared artist (featured artists included) 0.9, else Dice
    4. Album and duration scores, with neutral values when data is missing
    5. Hard gates: title < 0.7, artist < 0.6, or known durations more than
       2 seconds apart cap the score low
    6. Weighted sum (weights depend on which data is known) plus a small
       bonus for exact title and artist
    7. Rank candidates, reject below the confidence threshold and flag
       near-ties as ambiguous (the top candidate is still returned)

Usage:
    from lyrics_aggregator.matching import Query, Candidate, SongMatcher

    matcher = SongMatcher()
    match = matcher.find_best_match(candidates, Query("Song", "Artist"))
    if match is not None:
        print(match.candidate.label, match.score)
"""

import functools
import re

from lyrics_aggregator.core.config import MatchingConfig
from lyrics_aggregator.core.logger import get_logger, log_ambiguous_match
from lyrics_aggregator.matching.models import (
    Candidate,
    MatchResult,
    Query,
    ScoreBreakdown,
    ScoredCandidate,
    ScoreWeights,
    TitleAnalysis,
)
from lyrics_aggregator.matching.text import (
    dice_coefficient,
    levenshtein_similarity,
    normalize,
)


logger = get_logger(__name__)


# =============================================================================
# TITLE ANALYSIS
# =============================================================================

# Featured-artist clause, ending before a bracket or at the end of the title
_FEAT_PATTERN = re.compile(
    r"(?:^|(?<=[\s(\[{]))(?:feat\.?|ft\.?|featuring|with)\s+([^()\[\]{}]+?)"
    r"(?=\s*[()\[\]{}]|$)"
)
_FEAT_SPLIT = re.compile(r"\s*[&,]\s*")

# Version descriptors are only looked for inside brackets or after " - "
_BRACKET_CONTENT = re.compile(r"\(([^)]*)\)|\[([^\]]*)\]|\{([^}]*)\}")
_DASH_SUFFIX = re.compile(r"\s[-–]\s(.*)$")

# Checked in order; a matched phrase is removed before the next pattern runs
# so that "radio edit" is not also counted as "edit".
_TAG_PATTERNS = tuple(
    (tag, re.compile(rf"\b(?:{pattern})\b"))
    for tag, pattern in (
        ("radioedit", r"radio\s?edit|single\s?edit"),
        ("demo", r"demo|rough\s?mix|rough"),
        ("remix", r"remix|rmx|mix"),
        ("live", r"live|concert"),
        ("acoustic", r"acoustic|unplugged"),
        ("instrumental", r"instrumental"),
        ("karaoke", r"karaoke"),
        ("remastered", r"remaster(?:ed)?|re-?recorded?"),
        ("explicit", r"explicit"),
        ("clean", r"clean|censored"),
        ("extended", r"extended|ext|full"),
        ("deluxe", r"deluxe|anniversary|special"),
        ("mono", r"mono"),
        ("stereo", r"stereo"),
        ("edit", r"edit"),
        ("version", r"version|ver"),
    )
)

# Tags that mean a different recording, not just a different release
CRITICAL_TAGS = frozenset({"live", "acoustic", "remix", "instrumental", "karaoke"})

_LEADING_ARTICLE = re.compile(r"^(?:the|a|an)\s+")
_TRAILING_ARTICLE = re.compile(r"\s+(?:the|a|an)$")


# =============================================================================
# ARTIST NORMALIZATION
# =============================================================================

_ARTIST_BRACKETS = re.compile(r"\[[^\]]*\]|\([^)]*\)")
_ARTIST_SEPARATORS = re.compile(
    r"\s*(?:&|,|(?<!\w)(?:and|vs\.?|versus|x|feat\.?|ft\.?|featuring|with)(?!\w))\s*"
)
_ARTICLE_THE = re.compile(r"\bthe\b")


# =============================================================================
# SCORING CONSTANTS
# =============================================================================

# Title score for identical base titles whose critical tags differ
CONFLICTING_TAG_TITLE_SCORE = 0.85

# Title similarity blend
TITLE_DICE_WEIGHT = 0.7
TITLE_LEVENSHTEIN_WEIGHT = 0.3

# Penalty when both titles carry critical tags and none is shared
CONFLICTING_TAGS_PENALTY = 0.4
# Penalty when only one title carries a critical tag
ONE_SIDED_TAG_PENALTY = 0.15

# Artist score when at least one artist is credited on both sides
ARTIST_OVERLAP_SCORE = 0.9

# Neutral component scores for missing data
MISSING_ALBUM_SCORE = 0.1
UNKNOWN_DURATION_SCORE = 0.7

# (max difference in seconds, score), checked in order
DURATION_STEPS = (
    (2.0, 0.95),
    (5.0, 0.7),
    (10.0, 0.4),
    (15.0, 0.2),
)
FAR_DURATION_SCORE = 0.05

# Hard gates
TITLE_GATE = 0.7
ARTIST_GATE = 0.6
DURATION_GATE_SECONDS = 2.0

EXACT_MATCH_BONUS = 0.05

BASE_WEIGHTS = ScoreWeights(title=0.5, artist=0.4, album=0.05, duration=0.05)
DURATION_WEIGHTS = ScoreWeights(title=0.35, artist=0.35, album=0.1, duration=0.2)
ALBUM_DURATION_WEIGHTS = ScoreWeights(title=0.3, artist=0.3, album=0.2, duration=0.2)
ALBUM_WEIGHTS = ScoreWeights(title=0.4, artist=0.4, album=0.2, duration=0.0)

# Number of ranked candidates written to the debug log
DEBUG_TOP_N = 5


def analyze_title(title: str | None) -> TitleAnalysis:
    """
    Split a raw title into base title, version tags and featured artists.

    Args:
        title: Raw title as reported by a provider or typed by a user.

    Returns:
        TitleAnalysis for the title. An empty or None title gives an
        empty base title with no tags.

    Examples:
        "Bohemian Rhapsody (Remastered 2011)"
            -> base "bohemian rhapsody", tags {"remastered"}
        "Song Title - Live at Wembley"
            -> base "song title", tags {"live"}
        "Shape of You (feat. Stormzy & Other)"
            -> base "shape of you", featured ("stormzy", "other")
    """
    if not title:
        return TitleAnalysis(base_title="")

    text = title.lower()

    featured: list[str] = []
    for match in _FEAT_PATTERN.finditer(text):
        featured.extend(
            name.strip() for name in _FEAT_SPLIT.split(match.group(1)) if name.strip()
        )
    text = _FEAT_PATTERN.sub(" ", text)

    segments = [next(g for g in m.groups() if g is not None) for m in _BRACKET_CONTENT.finditer(text)]
    dash = _DASH_SUFFIX.search(_BRACKET_CONTENT.sub(" ", text))
    if dash:
        segments.append(dash.group(1))

    tags: set[str] = set()
    for segment in segments:
        for tag, pattern in _TAG_PATTERNS:
            if pattern.search(segment):
                tags.add(tag)
                segment = pattern.sub(" ", segment)

    base = _BRACKET_CONTENT.sub(" ", text)
    base = _DASH_SUFFIX.sub(" ", base)
    base = normalize(base)
    base = _LEADING_ARTICLE.sub("", base)
    base = _TRAILING_ARTICLE.sub("", base)

    return TitleAnalysis(
        base_title=base,
        tags=frozenset(tags),
        featured_artists=tuple(featured),
    )


def _artist_names(artist: str | None) -> list[str]:
    """Individual normalized artist names in a credit, in credit order."""
    if not artist:
        return []
    text = _ARTIST_BRACKETS.sub(" ", artist.lower())
    names = []
    for part in _ARTIST_SEPARATORS.split(text):
        name = normalize(_ARTICLE_THE.sub(" ", normalize(part)))
        if name:
            names.append(name)
    return names


def normalize_artist(artist: str | None) -> str:
    """
    Normalize an artist credit so that collaborator order does not matter.

    Lowercases, drops bracketed content, splits on collaboration
    separators (&, and, vs, x, feat., ft., featuring, with, comma),
    removes "the" from each name, then sorts and joins the names.

    Example:
        normalize_artist("Artist A & Artist B") == normalize_artist("Artist B and Artist A")
    """
    return " ".join(sorted(_artist_names(artist)))


def title_similarity(
    title_a: str | None,
    title_b: str | None,
    analysis_a: TitleAnalysis | None = None,
    analysis_b: TitleAnalysis | None = None,
) -> float:
    """
    Score how likely two titles name the same recording, in [0, 1].

    Precomputed analyses may be passed to avoid analyzing twice.
    """
    if not title_a or not title_b:
        return 0.0

    analysis_a = analysis_a or analyze_title(title_a)
    analysis_b = analysis_b or analyze_title(title_b)

    critical_a = analysis_a.tags & CRITICAL_TAGS
    critical_b = analysis_b.tags & CRITICAL_TAGS
    tags_conflict = bool(critical_a and critical_b and critical_a.isdisjoint(critical_b))

    if analysis_a.base_title and analysis_a.base_title == analysis_b.base_title and not tags_conflict:
        if critical_a != critical_b:
            return CONFLICTING_TAG_TITLE_SCORE
        return 1.0

    base_similarity = (
        dice_coefficient(analysis_a.base_title, analysis_b.base_title) * TITLE_DICE_WEIGHT
        + levenshtein_similarity(analysis_a.base_title, analysis_b.base_title) * TITLE_LEVENSHTEIN_WEIGHT
    )

    if tags_conflict:
        penalty = CONFLICTING_TAGS_PENALTY
    elif bool(critical_a) != bool(critical_b):
        penalty = ONE_SIDED_TAG_PENALTY
    else:
        penalty = 0.0

    return min(1.0, max(0.0, base_similarity - penalty))


def artist_similarity(
    artist_a: str | None,
    artist_b: str | None,
    analysis_a: TitleAnalysis | None = None,
    analysis_b: TitleAnalysis | None = None,
) -> float:
    """
    Score how likely two artist credits name the same performers, in [0, 1].

    Featured artists found in the titles (via the analyses) count as
    credited artists for the overlap check.
    """
    if not artist_a or not artist_b:
        return 0.0

    normalized_a = normalize_artist(artist_a)
    normalized_b = normalize_artist(artist_b)

    if normalized_a and normalized_a == normalized_b:
        return 1.0

    def credited(normalized: str, artist: str, analysis: TitleAnalysis | None) -> set[str]:
        names = {normalized, *_artist_names(artist)}
        if analysis is not None:
            names.update(normalize_artist(name) for name in analysis.featured_artists)
        names.discard("")
        return names

    if credited(normalized_a, artist_a, analysis_a) & credited(normalized_b, artist_b, analysis_b):
        return ARTIST_OVERLAP_SCORE

    return dice_coefficient(normalized_a, normalized_b)


def album_similarity(album_a: str | None, album_b: str | None) -> float:
    """Album closeness in [0, 1]; a weak neutral value when either is missing."""
    if not album_a or not album_b:
        return MISSING_ALBUM_SCORE

    normalized_a = normalize(album_a)
    normalized_b = normalize(album_b)
    if normalized_a == normalized_b:
        return 1.0
    return dice_coefficient(normalized_a, normalized_b)


def _known(duration: float | None) -> bool:
    return duration is not None and duration > 0


def duration_similarity(seconds_a: float | None, seconds_b: float | None) -> float:
    """Duration closeness in [0, 1]; neutral when either duration is unknown."""
    if not _known(seconds_a) or not _known(seconds_b):
        return UNKNOWN_DURATION_SCORE

    difference = abs(seconds_a - seconds_b)
    if difference == 0:
        return 1.0
    for limit, step_score in DURATION_STEPS:
        if difference <= limit:
            return step_score
    return FAR_DURATION_SCORE


def _select_weights(has_duration: bool, has_album: bool) -> ScoreWeights:
    if has_album:
        return ALBUM_DURATION_WEIGHTS if has_duration else ALBUM_WEIGHTS
    if has_duration:
        return DURATION_WEIGHTS
    return BASE_WEIGHTS


class SongMatcher:
    """
    Scores provider candidates against a query and picks the best one.

    The matcher holds only its (immutable) thresholds, so one instance
    can be shared across threads.

    Attributes:
        settings: Thresholds used for acceptance, ambiguity and ties.

    Example:
        matcher = SongMatcher(config.matching)
        breakdown = matcher.score(candidate, query)
        match = matcher.find_best_match(candidates, query)
    """

    def __init__(self, settings: MatchingConfig | None = None) -> None:
        self.settings = settings or MatchingConfig()

    def score(self, candidate: Candidate, query: Query) -> ScoreBreakdown:
        """
        Score one candidate against the query.

        Never raises: missing data and failed gates are reported through
        the breakdown's final_score and reason.
        """
        query_duration = query.duration_seconds
        candidate_duration = candidate.duration_seconds

        if not candidate.title or not candidate.artist:
            return ScoreBreakdown(
                title_score=0.0,
                artist_score=0.0,
                album_score=0.0,
                duration_score=0.0,
                weights=BASE_WEIGHTS,
                final_score=0.0,
                reason="Missing title or artist",
                query_duration=query_duration,
                candidate_duration=candidate_duration,
            )

        query_analysis = analyze_title(query.title)
        candidate_analysis = analyze_title(candidate.title)

        title_score = title_similarity(
            candidate.title, query.title, candidate_analysis, query_analysis
        )
        artist_score = artist_similarity(
            candidate.artist, query.artist, candidate_analysis, query_analysis
        )
        album_score = album_similarity(candidate.album, query.album)
        duration_score = duration_similarity(candidate_duration, query_duration)

        has_duration = _known(query_duration) and _known(candidate_duration)
        weights = _select_weights(has_duration, bool(query.album and candidate.album))

        def breakdown(final_score: float, reason: str) -> ScoreBreakdown:
            return ScoreBreakdown(
                title_score=title_score,
                artist_score=artist_score,
                album_score=album_score,
                duration_score=duration_score,
                weights=weights,
                final_score=min(1.0, max(0.0, final_score)),
                reason=reason,
                query_duration=query_duration,
                candidate_duration=candidate_duration,
            )

        if title_score < TITLE_GATE:
            return breakdown(
                min(0.4, title_score * 0.5),
                f"Title similarity too low: {title_score:.3f}",
            )

        if artist_score < ARTIST_GATE:
            return breakdown(
                min(0.5, artist_score * 0.7),
                f"Artist similarity too low: {artist_score:.3f}",
            )

        if has_duration and abs(query_duration - candidate_duration) > DURATION_GATE_SECONDS:
            return breakdown(
                min(0.6, (title_score + artist_score) / 2 * 0.8),
                f"Duration difference too large: {abs(query_duration - candidate_duration):.1f}s",
            )

        final_score = (
            title_score * weights.title
            + artist_score * weights.artist
            + album_score * weights.album
            + duration_score * weights.duration
        )

        if title_score == 1.0 and artist_score >= ARTIST_OVERLAP_SCORE:
            return breakdown(min(1.0, final_score + EXACT_MATCH_BONUS), "Exact title and artist match")

        return breakdown(final_score, "Good match")

    def rank(self, candidates: list[Candidate], query: Query) -> list[ScoredCandidate]:
        """
        Score all candidates and sort them best first.

        Scores within tie_epsilon of each other are ordered by duration
        score; remaining ties keep their input order.
        """
        epsilon = self.settings.tie_epsilon

        def compare(a: ScoredCandidate, b: ScoredCandidate) -> int:
            if abs(a.score - b.score) >= epsilon:
                return -1 if a.score > b.score else 1
            duration_a = a.breakdown.duration_score
            duration_b = b.breakdown.duration_score
            return (duration_b > duration_a) - (duration_b < duration_a)

        scored = [ScoredCandidate(c, self.score(c, query)) for c in candidates]
        return sorted(scored, key=functools.cmp_to_key(compare))

    def find_best_match(self, candidates: list[Candidate], query: Query) -> MatchResult | None:
        """
        Pick the candidate that best matches the query.

        Args:
            candidates: Provider search results, already converted to Candidate.
            query: The song being looked up.

        Returns:
            MatchResult for the top-ranked candidate, or None when there is
            nothing to rank or the best score is below confidence_threshold.

        Behavior:
            1. Drop candidates without a title or artist
            2. Rank the rest (see rank())
            3. Reject if the best score is below the confidence threshold
            4. If the runner-up is within ambiguity_gap and the best score is
               below ambiguity_ceiling, flag and log the match as ambiguous.
               The top-ranked candidate is returned either way.
        """
        if not candidates or not query.title:
            logger.debug("No candidates or query title provided")
            return None

        valid = [c for c in candidates if c.title and c.artist]
        if not valid:
            logger.debug(f"No valid candidates for: {query.label}")
            return None

        ranked = self.rank(valid, query)

        logger.debug(f"Matching {query.label} against {len(valid)} candidates")
        for position, scored in enumerate(ranked[:DEBUG_TOP_N], start=1):
            logger.debug(f"  {position}. {scored.candidate.label}: {scored.breakdown.describe()}")

        best = ranked[0]
        if best.score < self.settings.confidence_threshold:
            logger.debug(
                f"No match for {query.label}: best score {best.score:.4f} "
                f"< threshold {self.settings.confidence_threshold}"
            )
            return None

        close_alternatives = tuple(
            scored for scored in ranked[1:]
            if best.score - scored.score < self.settings.ambiguity_gap
        )
        ambiguous = bool(close_alternatives) and best.score < self.settings.ambiguity_ceiling

        if ambiguous:
            log_ambiguous_match(
                logger,
                query_label=query.label,
                selected_label=best.candidate.label,
                score=best.score,
                alternatives=[(alt.candidate.label, alt.score) for alt in close_alternatives],
            )

        return MatchResult(
            candidate=best.candidate,
            breakdown=best.breakdown,
            ambiguous=ambiguous,
            close_alternatives=close_alternatives,
        )


def score(candidate: Candidate, query: Query) -> ScoreBreakdown:
    """Score one candidate with the default thresholds."""
    return SongMatcher().score(candidate, query)


def find_best_match(candidates: list[Candidate], query: Query) -> MatchResult | None:
    """Find the best candidate with the default thresholds."""
    return SongMatcher().find_best_match(candidates, query)
