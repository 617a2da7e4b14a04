# tests/test_scorer.py
"""Test song identity scoring and candidate selection"""

import pytest

from lyrics_aggregator.core.config import MatchingConfig
from lyrics_aggregator.matching import (
    Candidate,
    Query,
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
from lyrics_aggregator.matching.scorer import (
    ALBUM_DURATION_WEIGHTS,
    ALBUM_WEIGHTS,
    BASE_WEIGHTS,
    DURATION_WEIGHTS,
)


class TestTitleAnalysis:
    """Test splitting titles into base title, tags and featured artists"""

    def test_remastered_in_brackets(self):
        """Test a version tag inside parentheses"""
        analysis = analyze_title("Bohemian Rhapsody (Remastered 2011)")
        assert analysis.base_title == "bohemian rhapsody"
        assert analysis.tags == {"remastered"}

    def test_dash_suffix(self):
        """Test a version tag after a dash"""
        analysis = analyze_title("Song Title - Live at Wembley")
        assert analysis.base_title == "song title"
        assert analysis.tags == {"live"}

    def test_featured_artists(self):
        """Test featured artist extraction"""
        analysis = analyze_title("Shape of You (feat. Stormzy & Other)")
        assert analysis.base_title == "shape of you"
        assert analysis.featured_artists == ("stormzy", "other")
        assert analysis.tags == frozenset()

    def test_radio_edit_is_not_also_edit(self):
        """Test that a matched phrase is consumed before shorter tags"""
        assert analyze_title("Song (Radio Edit)").tags == {"radioedit"}

    def test_articles_stripped(self):
        """Test leading and trailing article removal"""
        assert analyze_title("The Scientist").base_title == "scientist"
        assert analyze_title("Here Comes the Sun").base_title == "here comes the sun"

    def test_empty_title(self):
        """Test empty input"""
        analysis = analyze_title("")
        assert analysis.base_title == ""
        assert analysis.tags == frozenset()
        assert analyze_title(None).base_title == ""


class TestTitleSimilarity:
    """Test title scoring"""

    def test_tag_only_difference(self):
        """Test that a non-critical tag does not lower the score"""
        assert title_similarity("Bohemian Rhapsody", "Bohemian Rhapsody (Remastered 2011)") >= 0.85

    def test_one_sided_critical_tag(self):
        """Test identical base titles where only one side is live"""
        assert title_similarity("Song", "Song (Live)") == 0.85

    def test_conflicting_critical_tags(self):
        """Test identical base titles with disjoint critical tags"""
        assert title_similarity("Song (Live)", "Song (Acoustic)") == pytest.approx(0.6)

        result = score(Candidate("Song (Acoustic)", "Artist"), Query("Song (Live)", "Artist"))
        assert result.final_score < 0.6
        assert result.final_score == pytest.approx(0.3)
        assert result.reason.startswith("Title similarity too low")

    def test_missing_title(self):
        """Test missing titles"""
        assert title_similarity("", "Song") == 0.0
        assert title_similarity("Song", None) == 0.0

    def test_different_titles(self):
        """Test unrelated titles"""
        assert title_similarity("Perfect", "Shape of You") < 0.5


class TestArtistSimilarity:
    """Test artist normalization and scoring"""

    def test_order_independent(self):
        """Test that collaborator order does not matter"""
        assert normalize_artist("Artist A & Artist B") == normalize_artist("Artist B and Artist A")

    def test_normalize_artist(self):
        """Test article and bracket removal"""
        assert normalize_artist("The Beatles") == "beatles"
        assert normalize_artist("Beyoncé (Official)") == "beyoncé"
        assert normalize_artist("") == ""

    def test_exact_match(self):
        """Test identical credits"""
        assert artist_similarity("Ed Sheeran", "ed sheeran") == 1.0

    def test_overlap(self):
        """Test a shared artist between different credits"""
        assert artist_similarity("Ed Sheeran", "Ed Sheeran feat. Stormzy") == 0.9

    def test_featured_artist_from_title(self):
        """Test that featured artists from the title count as credited"""
        candidate = analyze_title("Song (feat. Stormzy)")
        assert artist_similarity("Ed Sheeran", "Stormzy", candidate, None) == 0.9

    def test_missing_artist(self):
        """Test missing credits"""
        assert artist_similarity("", "Ed Sheeran") == 0.0


class TestComponentScores:
    """Test album and duration scoring"""

    def test_album_similarity(self):
        """Test album scoring"""
        assert album_similarity(None, "Divide") == 0.1
        assert album_similarity("÷ (Deluxe)", None) == 0.1
        assert album_similarity("Divide", "divide") == 1.0
        assert album_similarity("Divide", "Multiply") < 0.5

    @pytest.mark.parametrize("a, b, expected", [
        (None, 200, 0.7),
        (0, 200, 0.7),
        (200, 200, 1.0),
        (200, 201.5, 0.95),
        (200, 204, 0.7),
        (200, 208, 0.4),
        (200, 213, 0.2),
        (200, 230, 0.05),
    ])
    def test_duration_similarity(self, a, b, expected):
        """Test duration steps"""
        assert duration_similarity(a, b) == expected


class TestScore:
    """Test composite scoring and hard gates"""

    def test_exact_match_bonus(self, shape_of_you_query, shape_of_you_candidates):
        """Test an exact match with known durations"""
        breakdown = score(shape_of_you_candidates[0], shape_of_you_query)
        assert breakdown.weights == DURATION_WEIGHTS
        assert breakdown.final_score == pytest.approx(0.96)
        assert breakdown.reason == "Exact title and artist match"

    def test_duration_gate(self, shape_of_you_query, shape_of_you_candidates):
        """Test that durations far apart cap the score"""
        breakdown = score(shape_of_you_candidates[1], shape_of_you_query)
        assert breakdown.final_score <= 0.6
        assert breakdown.reason == "Duration difference too large: 17.0s"

    def test_title_gate(self):
        """Test that conflicting versions are rejected"""
        breakdown = score(Candidate("Song (Live)", "Artist"), Query("Song (Acoustic)", "Artist"))
        assert breakdown.final_score < 0.6
        assert breakdown.reason.startswith("Title similarity too low")

    def test_artist_gate(self):
        """Test that a different artist is rejected"""
        breakdown = score(Candidate("Song", "Other Band"), Query("Song", "Artist"))
        assert breakdown.final_score <= 0.5
        assert breakdown.reason.startswith("Artist similarity too low")

    def test_missing_fields(self):
        """Test candidates without title or artist"""
        breakdown = score(Candidate("", "Artist"), Query("Song", "Artist"))
        assert breakdown.final_score == 0.0
        assert breakdown.reason == "Missing title or artist"

    def test_weight_selection(self):
        """Test weights for each combination of known data"""
        plain = score(Candidate("Song", "Artist"), Query("Song", "Artist"))
        albums = score(Candidate("Song", "Artist", album="Album"), Query("Song", "Artist", album="Album"))
        both = score(
            Candidate("Song", "Artist", album="Album", duration_ms=200000),
            Query("Song", "Artist", album="Album", duration_seconds=200),
        )
        assert plain.weights == BASE_WEIGHTS
        assert albums.weights == ALBUM_WEIGHTS
        assert both.weights == ALBUM_DURATION_WEIGHTS

    def test_score_is_clamped(self):
        """Test that the bonus never exceeds 1.0"""
        breakdown = score(
            Candidate("Song", "Artist", album="Album", duration_ms=200000),
            Query("Song", "Artist", album="Album", duration_seconds=200),
        )
        assert breakdown.final_score == 1.0


class TestFindBestMatch:
    """Test candidate selection"""

    def test_picks_original_recording(self, shape_of_you_query, shape_of_you_candidates):
        """Test the original over a remix with another duration"""
        match = find_best_match(shape_of_you_candidates, shape_of_you_query)
        assert match is not None
        assert match.candidate is shape_of_you_candidates[0]
        assert match.score >= 0.9
        assert not match.ambiguous

    def test_order_does_not_matter(self, shape_of_you_query, shape_of_you_candidates):
        """Test that candidate order does not change the selection"""
        match = find_best_match(list(reversed(shape_of_you_candidates)), shape_of_you_query)
        assert match.candidate is shape_of_you_candidates[0]

    def test_no_confident_match(self, shape_of_you_query):
        """Test that weak candidates are rejected"""
        candidates = [Candidate("Perfect", "Ed Sheeran", duration_ms=263000)]
        assert find_best_match(candidates, shape_of_you_query) is None

    def test_empty_input(self, shape_of_you_query):
        """Test empty and invalid candidate lists"""
        assert find_best_match([], shape_of_you_query) is None
        assert find_best_match([Candidate("", "")], shape_of_you_query) is None

    def test_ambiguous_match_keeps_top_candidate(self):
        """Test that near ties are flagged but resolved deterministically"""
        query = Query("Hello World", "Artist", duration_seconds=200)
        first = Candidate("Hello Worlds", "Artist", duration_ms=200000)
        second = Candidate("Hello Worldz", "Artist", duration_ms=200000)

        match = find_best_match([first, second], query)

        assert match is not None
        assert match.candidate is first
        assert match.score < 0.9
        assert match.ambiguous
        assert match.has_close_alternatives
        assert match.close_alternatives[0].candidate is second

    def test_custom_threshold(self, shape_of_you_query, shape_of_you_candidates):
        """Test a stricter confidence threshold"""
        matcher = SongMatcher(MatchingConfig(confidence_threshold=0.99))
        assert matcher.find_best_match(shape_of_you_candidates, shape_of_you_query) is None

    def test_rank_orders_ties_by_duration(self):
        """Test that near-equal scores are ordered by duration closeness"""
        matcher = SongMatcher(MatchingConfig(tie_epsilon=0.05))
        query = Query("Song", "Artist", duration_seconds=200)
        near = Candidate("Song", "Artist", duration_ms=201000)
        exact = Candidate("Song", "Artist", duration_ms=200000)

        ranked = matcher.rank([near, exact], query)
        assert [r.candidate for r in ranked] == [exact, near]
