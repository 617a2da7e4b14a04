# tests/test_providers.py
"""Test provider payload converters"""

import json

import pytest

from lyrics_aggregator.core.exceptions import ConversionError
from lyrics_aggregator.lyrics import (
    LyricsType,
    convert_lrclib,
    convert_musixmatch,
    convert_spotify,
    extract_songwriters,
    parse_richsync,
    parse_subtitles,
)
from lyrics_aggregator.lyrics.providers import detect_song_part, should_add_space


class TestLrclib:
    """Test LRCLIB records"""

    def test_convert(self, lrclib_payload):
        """Test line timing and dropped empty lines"""
        result = convert_lrclib(lrclib_payload)
        assert result.ok
        document = result.document

        assert document.type is LyricsType.LINE
        assert document.metadata.source == "LRCLIB"
        assert document.metadata.title == "Test Song"
        assert [(l.time, l.duration, l.text, l.element.key) for l in document.lyrics] == [
            (1000, 2500, "First", "L1"),
            (3500, 1500, "Second", "L2"),
            (6000, 4000, "Last", "L4"),
        ]

    def test_fractional_seconds(self):
        """Test that timestamps are read as fractions of a second"""
        result = convert_lrclib({"syncedLyrics": "[00:12.34] One\n[01:02.5] Two", "duration": 70})
        assert [line.time for line in result.document.lyrics] == [12340, 62500]

    def test_no_synced_lyrics(self):
        """Test records with plain lyrics only"""
        result = convert_lrclib({"plainLyrics": "Hello", "syncedLyrics": None})
        assert not result.ok
        assert result.error == "LRCLIB record has no synced lyrics"


class TestMusixmatch:
    """Test Musixmatch richsync and subtitle payloads"""

    def test_extract_songwriters(self):
        """Test reading writers from a copyright notice"""
        assert extract_songwriters("Writer(s): Ed Sheeran, Steve Mac\nCopyright: Sony") == (
            "Ed Sheeran",
            "Steve Mac",
        )
        assert extract_songwriters("Copyright: Sony") == ()
        assert extract_songwriters(None) == ()

    def test_parse_richsync_words(self, richsync_lines):
        """Test word segments with merged spaces"""
        segments = parse_richsync(json.dumps(richsync_lines), word_level=True)

        assert [(s.time, s.duration, s.text, s.is_line_ending) for s in segments] == [
            (1000, 600, "Hello ", False),
            (1600, 600, "big ", False),
            (2200, 800, "world", True),
            (4000, 1000, "Bye", True),
        ]

    def test_parse_richsync_lines(self, richsync_lines):
        """Test line segments"""
        segments = parse_richsync(richsync_lines)
        assert [(s.time, s.duration, s.text) for s in segments] == [
            (1000, 2000, "Hello big world"),
            (4000, 1000, "Bye"),
        ]

    def test_parse_richsync_invalid(self):
        """Test malformed richsync bodies"""
        with pytest.raises(ConversionError):
            parse_richsync("not json")
        with pytest.raises(ConversionError):
            parse_richsync([{"x": "no timestamps"}])

    def test_parse_subtitles(self):
        """Test subtitle line durations"""
        segments = parse_subtitles("[00:01.00] One\n[00:02.50] \n[00:04.00] Two")
        assert [(s.time, s.duration, s.text) for s in segments] == [
            (1000, 1500, "One"),
            (4000, 3000, "Two"),
        ]

    def test_convert_word_sync(self, musixmatch_payload):
        """Test word-synced conversion grouped into lines"""
        result = convert_musixmatch(musixmatch_payload, word_sync=True)
        assert result.ok
        document = result.document

        assert document.type is LyricsType.WORD
        assert document.provider_tag == "musixmatch-word"
        assert document.metadata.songwriters == ("Ed Sheeran", "Steve Mac")
        assert [(l.time, l.duration, l.text) for l in document.lyrics] == [
            (1000, 2000, "Hello big world"),
            (4000, 1000, "Bye"),
        ]
        assert len(document.lyrics[0].syllabus) == 3

    def test_convert_line_sync(self, musixmatch_payload):
        """Test line-synced conversion of the same payload"""
        document = convert_musixmatch(musixmatch_payload).document

        assert document.type is LyricsType.LINE
        assert document.provider_tag == "musixmatch"
        assert [line.text for line in document.lyrics] == ["Hello big world", "Bye"]
        assert all(not line.syllabus for line in document.lyrics)

    def test_convert_subtitle(self):
        """Test payloads with only a subtitle body"""
        payload = {"lyrics": {"message": {"body": {"subtitle": {
            "subtitle_body": "[00:01.00] One\n[00:02.50] Two",
        }}}}}
        document = convert_musixmatch(payload, word_sync=True).document

        assert document.type is LyricsType.LINE
        assert [(l.time, l.duration) for l in document.lyrics] == [(1000, 1500), (2500, 3000)]

    def test_convert_empty_body(self):
        """Test payloads without lyrics"""
        result = convert_musixmatch({"lyrics": {"message": {"body": []}}})
        assert not result.ok
        assert result.error == "Musixmatch payload has no richsync or subtitle body"

    def test_convert_invalid_richsync(self):
        """Test that a broken richsync body is a failure result"""
        payload = {"lyrics": {"message": {"body": {"richsync": {"richsync_body": "{broken"}}}}}
        result = convert_musixmatch(payload, word_sync=True)
        assert not result.ok
        assert result.error.startswith("Invalid richsync body")


class TestSpotify:
    """Test Spotify color-lyrics payloads"""

    def test_should_add_space(self):
        """Test word boundary detection between syllables"""
        syllables = [
            {"startTimeMs": "0", "endTimeMs": "100", "text": "Hel"},
            {"startTimeMs": "100", "endTimeMs": "200", "text": "lo"},
            {"startTimeMs": "500", "endTimeMs": "600", "text": "there,"},
            {"startTimeMs": "600", "endTimeMs": "700", "text": "You"},
        ]
        assert not should_add_space(syllables, 0)
        assert should_add_space(syllables, 1)
        assert should_add_space(syllables, 2)
        assert not should_add_space(syllables, 3)

    def test_detect_song_part(self):
        """Test song part detection from line text"""
        assert detect_song_part("[Chorus]") == "Chorus"
        assert detect_song_part("Hello world") == ""
        assert detect_song_part(None) == ""

    def test_convert_syllables(self, spotify_payload):
        """Test syllable-synced lines"""
        result = convert_spotify(spotify_payload)
        assert result.ok
        document = result.document

        assert document.type is LyricsType.WORD
        assert document.metadata.source == "Musixmatch"
        assert len(document.lyrics) == 1

        line = document.lyrics[0]
        assert [(s.time, s.duration, s.text) for s in line.syllabus] == [
            (1000, 200, "Hel"),
            (1200, 300, "lo "),
            (1700, 300, "world"),
        ]
        assert (line.time, line.duration, line.text) == (1000, 1000, "Hello world")
        assert (line.element.key, line.element.singer) == ("L1", "v1")

    def test_convert_lines(self):
        """Test line-synced payloads"""
        payload = {"lyrics": {"lines": [
            {"startTimeMs": "1000", "endTimeMs": "0", "words": "First", "syllables": []},
            {"startTimeMs": "3000", "endTimeMs": "0", "words": "Second", "syllables": []},
        ]}}
        document = convert_spotify(payload).document

        assert document.type is LyricsType.LINE
        assert document.metadata.source == "Spotify"
        assert [(l.time, l.duration, l.text) for l in document.lyrics] == [
            (1000, 2000, "First"),
            (3000, 0, "Second"),
        ]

    def test_missing_lines(self):
        """Test payloads without lines"""
        result = convert_spotify({"lyrics": {}})
        assert not result.ok
        assert result.error == "Spotify payload has no lyrics lines"


class TestMalformedPayloads:
    """Test that wrongly shaped payloads give a failed result instead of raising"""

    def test_lrclib_duration_not_a_number(self):
        """Test a non-numeric LRCLIB duration"""
        result = convert_lrclib({"syncedLyrics": "[00:01.00] a", "duration": "n/a"})
        assert not result.ok
        assert result.error == "'duration' must be a number"

    @pytest.mark.parametrize("payload, error", [
        (["[00:01.00] a"], "LRCLIB record must be a JSON object"),
        ({"syncedLyrics": ["[00:01.00] a"]}, "'syncedLyrics' must be a string"),
    ])
    def test_lrclib_shapes(self, payload, error):
        """Test LRCLIB records of the wrong shape"""
        result = convert_lrclib(payload)
        assert not result.ok
        assert result.error == error

    def test_musixmatch_not_an_object(self):
        """Test a Musixmatch payload that is a list"""
        result = convert_musixmatch(["lyrics"])
        assert not result.ok
        assert result.error == "Musixmatch payload has no richsync or subtitle body"

    def test_musixmatch_subtitle_body_not_text(self):
        """Test a subtitle body that is not a string"""
        payload = {"lyrics": {"message": {"body": {"subtitle": {"subtitle_body": 5}}}}}
        result = convert_musixmatch(payload)
        assert not result.ok
        assert result.error == "Subtitle body must be text"

    def test_richsync_lines_not_objects(self):
        """Test richsync bodies holding something other than line objects"""
        with pytest.raises(ConversionError, match="Richsync lines must be objects"):
            parse_richsync(json.dumps(["line"]))

        payload = {"lyrics": {"message": {"body": {"richsync": {"richsync_body": json.dumps([1, 2])}}}}}
        assert not convert_musixmatch(payload, word_sync=True).ok

    def test_spotify_lines_not_objects(self):
        """Test Spotify lines that are not objects"""
        result = convert_spotify({"lyrics": {"lines": ["x"]}})
        assert not result.ok
        assert result.error == "Spotify lyrics lines must be objects"

    def test_spotify_syllables_not_a_list(self):
        """Test Spotify syllables of the wrong shape"""
        result = convert_spotify({"lyrics": {"lines": [{"words": "Hi", "syllables": "Hi"}]}})
        assert not result.ok
        assert result.error == "Spotify syllables must be a list of objects"

    def test_spotify_time_not_a_number(self):
        """Test a non-numeric Spotify start time"""
        result = convert_spotify({"lyrics": {"lines": [{"startTimeMs": "soon", "words": "Hi"}]}})
        assert not result.ok
        assert result.error == "'startTimeMs' must be a number"

    def test_spotify_payload_not_an_object(self):
        """Test a Spotify payload that is a list"""
        result = convert_spotify([{"words": "Hi"}])
        assert not result.ok
        assert result.error == "Spotify payload has no lyrics lines"
