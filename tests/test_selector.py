# tests/test_selector.py
"""Test best-result selection across providers"""

from lyrics_aggregator.lyrics import (
    ExactMetadata,
    LyricsDocument,
    LyricsMetadata,
    LyricsType,
    LyricUnit,
    ProviderResult,
    resolve_cache_metadata,
    select_best,
    sync_priority,
)
from lyrics_aggregator.matching import Query


def _result(source, document, success=True, exact_metadata=None):
    return ProviderResult(success=success, data=document, source=source, exact_metadata=exact_metadata)


def _retyped(document, type):
    return LyricsDocument(type=type, metadata=document.metadata, lyrics=document.lyrics)


class TestSyncPriority:
    """Test ranking results by sync granularity"""

    def test_missing_result(self):
        """Test results without data"""
        assert sync_priority(None) == 0
        assert sync_priority(_result("spotify", None, success=False)) == 0

    def test_external_sync_sources(self, word_document, line_document):
        """Test providers reporting their own sync category"""
        assert sync_priority(_result("musixmatch-word", word_document)) == 3
        assert sync_priority(_result("musixmatch", line_document)) == 2
        assert sync_priority(_result("spotify", word_document)) == 3

    def test_own_type_sources(self, word_document, line_document):
        """Test providers judged by their timing detail"""
        assert sync_priority(_result("apple", word_document)) == 3
        assert sync_priority(_result("lyricsplus", line_document)) == 2
        # Sub-line timing counts even when the type says Line
        assert sync_priority(_result("apple", _retyped(word_document, LyricsType.LINE))) == 3

    def test_unknown_source(self, line_document):
        """Test sources with no known sync category"""
        assert sync_priority(_result("lrclib", line_document)) == 1


class TestSelectBest:
    """Test picking the final result"""

    def test_word_beats_line(self, word_document, line_document):
        """Test that the finest granularity wins"""
        line = _result("musixmatch", line_document)
        word = _result("musixmatch-word", word_document)
        assert select_best([line, word, None]) is word

    def test_ties_keep_first(self, line_document):
        """Test deterministic selection among equal priorities"""
        first = _result("spotify", line_document)
        second = _result("musixmatch", line_document)
        assert select_best([first, second]) is first

    def test_skips_failed_and_empty(self, word_document, line_document):
        """Test that only successful results with lyrics qualify"""
        failed = _result("apple", word_document, success=False)
        empty = _result("spotify", LyricsDocument(type=LyricsType.WORD, metadata=LyricsMetadata(), lyrics=()))
        fallback = _result("lrclib", line_document)
        assert select_best([failed, empty, fallback]) is fallback

    def test_nothing_qualifies(self):
        """Test empty input"""
        assert select_best([]) is None
        assert select_best([None, None]) is None


class TestResolveCacheMetadata:
    """Test metadata fallbacks for cache keys"""

    def test_exact_metadata_wins(self, line_document):
        """Test that the matched candidate's metadata is preferred"""
        exact = ExactMetadata(title="Shape of You", artist="Ed Sheeran", album="÷", duration_ms=233000)
        result = _result("apple", line_document, exact_metadata=exact)

        metadata = resolve_cache_metadata(result, Query("shape of you", "ed sheeran"))
        assert metadata.title == "Shape of You"
        assert metadata.artist == "Ed Sheeran"
        assert metadata.album == "÷"
        assert metadata.duration_seconds == 233

    def test_falls_back_to_header_and_query(self):
        """Test header title, then query fields"""
        document = LyricsDocument(
            type=LyricsType.LINE,
            metadata=LyricsMetadata(title="Header Title"),
            lyrics=(LyricUnit(time=0, duration=1000, text="x"),),
        )
        query = Query("Query Title", "Query Artist", album="Query Album", duration_seconds=200)

        metadata = resolve_cache_metadata(_result("lrclib", document), query)
        assert metadata.title == "Header Title"
        assert metadata.artist == "Query Artist"
        assert metadata.album == "Query Album"
        assert metadata.duration_seconds == 200
