"""Test configuration and fixtures"""

import json
import pytest
import tempfile
from pathlib import Path

from lyrics_aggregator.lyrics.models import (
    LineElement,
    LyricsDocument,
    LyricsMetadata,
    LyricsType,
    LyricUnit,
    Syllable,
)
from lyrics_aggregator.matching.models import Candidate, Query


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def sample_ttml():
    """Two word-timed lines, the second with a background vocal"""
    return (
        '<tt xmlns="http://www.w3.org/ns/ttml" '
        'xmlns:itunes="http://music.apple.com/lyric-ttml-internal" '
        'xmlns:ttm="http://www.w3.org/ns/ttml#metadata" '
        'itunes:timing="Word" xml:lang="en">\n'
        '  <head>\n'
        '    <metadata>\n'
        '      <ttm:title>Test Song</ttm:title>\n'
        '      <ttm:agent type="person" xml:id="voice1"><ttm:name>Test Singer</ttm:name></ttm:agent>\n'
        '    </metadata>\n'
        '    <itunes:metadata leadingSilence="0.640">\n'
        '      <songwriters><songwriter>Writer One</songwriter><songwriter>Writer Two</songwriter></songwriters>\n'
        '      <translations>\n'
        '        <translation type="subtitle" xml:lang="es"><text for="L1">Hola mundo</text></translation>\n'
        '      </translations>\n'
        '    </itunes:metadata>\n'
        '  </head>\n'
        '  <body dur="4.500">\n'
        '    <div begin="1.000" end="4.500" itunes:song-part="Verse">\n'
        '      <p begin="1.000" end="2.000" itunes:key="L1" ttm:agent="voice1">'
        '<span begin="1.000" end="1.500">Hello</span> <span begin="1.500" end="2.000">world</span></p>\n'
        '      <p begin="2.500" end="4.500" itunes:key="L2" ttm:agent="voice1">'
        '<span begin="2.500" end="3.000">Second</span> <span begin="3.000" end="3.800">line</span>'
        '<span ttm:role="x-bg"><span begin="3.500" end="4.500">(ooh)</span></span></p>\n'
        '    </div>\n'
        '  </body>\n'
        '</tt>\n'
    )


@pytest.fixture
def line_ttml():
    """Line-timed TTML document"""
    return (
        '<tt xmlns="http://www.w3.org/ns/ttml" '
        'xmlns:itunes="http://music.apple.com/lyric-ttml-internal" itunes:timing="Line">'
        '<head/>'
        '<body><div>'
        '<p begin="00:01.000" end="00:03.500">First line</p>'
        '<p begin="00:03.500" end="00:06.000">Second line</p>'
        '</div></body></tt>'
    )


@pytest.fixture
def word_document():
    """Grouped document matching sample_ttml, without the header extras"""
    first = LyricUnit.from_syllables(
        (
            Syllable(time=1000, duration=500, text="Hello "),
            Syllable(time=1500, duration=500, text="world"),
        ),
        LineElement(key="L1", song_part="Verse", singer="v1"),
    )
    second = LyricUnit.from_syllables(
        (
            Syllable(time=2500, duration=500, text="Second "),
            Syllable(time=3000, duration=800, text="line"),
            Syllable(time=3500, duration=1000, text="(ooh)", is_background=True),
        ),
        LineElement(key="L2", song_part="Verse", singer="v1"),
    )
    return LyricsDocument(
        type=LyricsType.WORD,
        metadata=LyricsMetadata(source="Apple Music", songwriters=("Writer One",)),
        lyrics=(first, second),
    )


@pytest.fixture
def line_document():
    """Line-synced grouped document"""
    return LyricsDocument(
        type=LyricsType.LINE,
        metadata=LyricsMetadata(source="LRCLIB"),
        lyrics=(
            LyricUnit(time=1000, duration=2500, text="First", element=LineElement(key="L1")),
            LyricUnit(time=3500, duration=1500, text="Second", element=LineElement(key="L2")),
        ),
    )


@pytest.fixture
def shape_of_you_query():
    """Query used throughout the matching tests"""
    return Query(title="Shape of You", artist="Ed Sheeran", duration_seconds=233)


@pytest.fixture
def shape_of_you_candidates():
    """The original recording and a remix with a featured artist"""
    return [
        Candidate(title="Shape of You", artist="Ed Sheeran", duration_ms=233000),
        Candidate(title="Shape of You (Remix)", artist="Ed Sheeran ft. Stormzy", duration_ms=250000),
    ]


@pytest.fixture
def lrclib_payload():
    """LRCLIB record with an instrumental gap"""
    return {
        "trackName": "Test Song",
        "artistName": "Test Artist",
        "duration": 10,
        "syncedLyrics": "[00:01.00] First\n[00:03.50] Second\n[00:05.00] \n[00:06.00] Last",
    }


@pytest.fixture
def richsync_lines():
    """Musixmatch richsync body with two lines"""
    return [
        {
            "ts": 1.0,
            "te": 3.0,
            "x": "Hello big world",
            "l": [
                {"c": "Hello", "o": 0},
                {"c": " ", "o": 0.6},
                {"c": "big", "o": 0.6},
                {"c": " ", "o": 1.2},
                {"c": "world", "o": 1.2},
            ],
        },
        {"ts": 4.0, "te": 5.0, "x": "Bye", "l": [{"c": "Bye", "o": 0}]},
    ]


@pytest.fixture
def musixmatch_payload(richsync_lines):
    """Musixmatch payload with a richsync body"""
    return {
        "lyrics": {
            "message": {
                "body": {
                    "richsync": {
                        "richsync_body": json.dumps(richsync_lines),
                        "lyrics_copyright": "Writer(s): Ed Sheeran, Steve Mac\nCopyright: Sony",
                    }
                }
            }
        }
    }


@pytest.fixture
def spotify_payload():
    """Spotify color-lyrics payload with syllable timing"""
    return {
        "lyrics": {
            "syncType": "SYLLABLE_SYNCED",
            "providerDisplayName": "Musixmatch",
            "lines": [
                {
                    "startTimeMs": "1000",
                    "endTimeMs": "2000",
                    "words": "Hello world",
                    "syllables": [
                        {"startTimeMs": "1000", "endTimeMs": "1200", "text": "Hel"},
                        {"startTimeMs": "1200", "endTimeMs": "1500", "text": "lo"},
                        {"startTimeMs": "1700", "endTimeMs": "2000", "text": "world"},
                    ],
                },
                {"startTimeMs": "2500", "endTimeMs": "0", "words": "♪", "syllables": []},
            ],
        }
    }
