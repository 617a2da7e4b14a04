"""
Provider payload converters.

Each converter turns one provider's raw lyrics payload into a grouped
LyricsDocument and returns a ConversionResult. Payload parsing helpers
raise ConversionError; the public convert_* functions catch it and
report a failure instead.

Supported payloads:
    - LRCLIB: {"syncedLyrics": "[00:12.34] line\\n...", "duration": 215}
    - Musixmatch: {"lyrics": {"message": {"body": {"richsync": {...}}}}}
      or the same with a "subtitle" body
    - Spotify color lyrics: {"lyrics": {"lines": [...], "providerDisplayName": ...}}
"""

import json
import math
import re
from typing import Any

from lyrics_aggregator.core.exceptions import ConversionError
from lyrics_aggregator.core.logger import get_logger
from lyrics_aggregator.lyrics.converter import group_segments
from lyrics_aggregator.lyrics.models import (
    ConversionResult,
    FlatDocument,
    FlatSegment,
    LineElement,
    LyricsDocument,
    LyricsMetadata,
    LyricsType,
    LyricUnit,
    Syllable,
)


logger = get_logger(__name__)


_TIMESTAMPED_LINE = re.compile(r"^\[(\d+):(\d+(?:\.\d+)?)\]\s*(.*)$")
_SONGWRITERS = re.compile(r"Writer\(s\):\s*([^\n]+)", re.IGNORECASE)
_STARTS_UPPER = re.compile(r"^[A-Z]")
_ENDS_PUNCTUATION = re.compile(r"[.,!?]$")
_STARTS_PUNCTUATION = re.compile(r"^[.,!?]")

# Minimum word duration for richsync words that would otherwise be empty
MIN_WORD_DURATION_MS = 100

# Duration of a subtitle line with no following timestamp
DEFAULT_SUBTITLE_DURATION_MS = 3000

# Syllable duration when Spotify omits the end time
DEFAULT_SYLLABLE_DURATION_MS = 500

# A gap longer than this between Spotify syllables separates words
SYLLABLE_GAP_MS = 100

# Word-sync segments shorter than this count as word-level timing
WORD_LEVEL_MAX_LENGTH = 20

SONG_PARTS = ("Verse", "Chorus", "Bridge", "Intro", "Outro")


def _timestamp_ms(minutes: str, seconds: str) -> int:
    return int(round((int(minutes) * 60 + float(seconds)) * 1000))


def _number(value: Any, name: str) -> float:
    """Read a numeric payload field; missing or empty counts as 0."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        raise ConversionError(f"'{name}' must be a number", details={"field": name, "value": value})
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConversionError(
            f"'{name}' must be a number",
            details={"field": name, "value": value}
        ) from None
    if not math.isfinite(number):
        raise ConversionError(f"'{name}' must be a finite number", details={"field": name, "value": value})
    return number


def _seconds_ms(value: Any, name: str = "time") -> int:
    return int(round(_number(value, name) * 1000))


def _ms(value: Any, name: str) -> int:
    return int(round(_number(value, name)))


def _object(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


# =============================================================================
# LRCLIB
# =============================================================================

def convert_lrclib(payload: dict[str, Any]) -> ConversionResult:
    """
    Convert an LRCLIB record with synced lyrics into a LINE document.

    Each timestamped line becomes one line keyed "L<n>"; it lasts until
    the next timestamp, and the last one until the end of the track
    (the record's 'duration', in seconds). Lines with no text are
    dropped once durations are assigned, so instrumental gaps do not
    stretch the previous line.
    """
    if not isinstance(payload, dict):
        return ConversionResult.failure("LRCLIB record must be a JSON object")
    synced = payload.get("syncedLyrics") or ""
    if not isinstance(synced, str):
        return ConversionResult.failure("'syncedLyrics' must be a string")
    try:
        track_end = _seconds_ms(payload.get("duration"), "duration")
    except ConversionError as e:
        logger.warning(f"LRCLIB conversion failed: {e.message}")
        return ConversionResult.failure(e.message)

    timed = []
    for raw_line in synced.splitlines():
        match = _TIMESTAMPED_LINE.match(raw_line.strip())
        if match:
            timed.append((_timestamp_ms(match.group(1), match.group(2)), match.group(3).strip()))

    if not timed:
        return ConversionResult.failure("LRCLIB record has no synced lyrics")

    ends = [start for start, _ in timed[1:]] + [track_end]
    lines = tuple(
        LyricUnit(
            time=start,
            duration=max(0, end - start) if end else 0,
            text=text,
            element=LineElement(key=f"L{number}"),
        )
        for number, ((start, text), end) in enumerate(zip(timed, ends), start=1)
        if text
    )

    document = LyricsDocument(
        type=LyricsType.LINE,
        metadata=LyricsMetadata(source="LRCLIB", title=str(payload.get("trackName") or "") or None),
        lyrics=lines,
        provider_tag="lrclib",
    )
    return ConversionResult.success(document)


# =============================================================================
# MUSIXMATCH
# =============================================================================

def extract_songwriters(copyright_text: str | None) -> tuple[str, ...]:
    """
    Read songwriter names from a Musixmatch copyright notice.

    Example:
        "Writer(s): Ed Sheeran, Steve Mac\\nCopyright: ..." -> ("Ed Sheeran", "Steve Mac")
    """
    if not copyright_text or not isinstance(copyright_text, str):
        return ()
    match = _SONGWRITERS.search(copyright_text)
    if not match:
        return ()
    return tuple(name.strip() for name in match.group(1).split(",") if name.strip())


def parse_subtitles(body: str) -> tuple[FlatSegment, ...]:
    """
    Parse a "[mm:ss.xx] text" subtitle body into line segments.

    A line lasts until the next timestamp, or DEFAULT_SUBTITLE_DURATION_MS
    when none follows. Lines without text are skipped.

    Raises:
        ConversionError: If the body is not text.
    """
    if not isinstance(body, str):
        raise ConversionError("Subtitle body must be text", details={"type": type(body).__name__})
    timed = []
    for raw_line in body.splitlines():
        match = _TIMESTAMPED_LINE.match(raw_line.strip())
        if match:
            timed.append((_timestamp_ms(match.group(1), match.group(2)), match.group(3).strip()))

    segments = []
    for index, (start, text) in enumerate(timed):
        if not text:
            continue
        if index + 1 < len(timed):
            duration = timed[index + 1][0] - start
        else:
            duration = DEFAULT_SUBTITLE_DURATION_MS
        segments.append(FlatSegment(time=start, duration=duration, text=text))
    return tuple(segments)


def _richsync_words(line: dict[str, Any], line_start: int, line_end: int) -> list[FlatSegment]:
    words = line.get("l") or []
    if not words:
        text = str(line.get("x") or "")
        return [FlatSegment(time=line_start, duration=line_end - line_start, text=text)] if text else []

    def is_space(index: int) -> bool:
        return not str(words[index].get("c") or "").strip()

    segments = []
    i = 0
    while i < len(words):
        if is_space(i):
            i += 1
            continue

        word = words[i]
        text = str(word.get("c") or "")
        # A following whitespace element belongs to this word
        if i + 1 < len(words) and is_space(i + 1):
            text += str(words[i + 1].get("c") or "")
            i += 2
        else:
            i += 1

        start = line_start + _seconds_ms(word.get("o"), "o")
        next_word = i
        while next_word < len(words) and is_space(next_word):
            next_word += 1

        if next_word < len(words):
            duration = line_start + _seconds_ms(words[next_word].get("o"), "o") - start
        else:
            duration = line_end - start
        if duration <= 0:
            duration = MIN_WORD_DURATION_MS

        segments.append(FlatSegment(
            time=start,
            duration=duration,
            text=text,
            is_line_ending=next_word >= len(words),
        ))
    return segments


def parse_richsync(body: str | list[dict[str, Any]], word_level: bool = False) -> tuple[FlatSegment, ...]:
    """
    Parse a Musixmatch richsync body into flat segments.

    The body is a list of lines {"ts": start_s, "te": end_s, "x": text,
    "l": [{"c": chars, "o": offset_s}, ...]}. At line level each line is
    one segment. At word level each word (merged with a following
    whitespace element) is one segment lasting until the next word or the
    end of its line; the last word of a line closes it.

    Raises:
        ConversionError: If the body is not valid richsync JSON.
    """
    try:
        lines = json.loads(body) if isinstance(body, str) else body
        segments = []
        for line in lines:
            if not isinstance(line, dict):
                raise ConversionError("Richsync lines must be objects", details={"line": line})
            line_start = _seconds_ms(line["ts"], "ts")
            line_end = _seconds_ms(line["te"], "te")
            if word_level:
                segments.extend(_richsync_words(line, line_start, line_end))
            elif line.get("x"):
                segments.append(FlatSegment(
                    time=line_start,
                    duration=line_end - line_start,
                    text=str(line["x"]),
                ))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConversionError(f"Invalid richsync body: {e}", details={"error": str(e)}) from e

    segments = [s for s in segments if s.text.strip()]
    return tuple(sorted(segments, key=lambda s: s.time))


def _has_word_level_data(segments: tuple[FlatSegment, ...]) -> bool:
    return any(
        len(s.text.split()) == 1 or len(s.text) < WORD_LEVEL_MAX_LENGTH
        for s in segments
    )


def convert_musixmatch(payload: dict[str, Any], word_sync: bool = False) -> ConversionResult:
    """
    Convert a Musixmatch lyrics payload.

    Richsync bodies are preferred over subtitle bodies. With `word_sync`
    the richsync body is parsed per word, and the document is WORD typed
    when the result actually carries word-level segments.

    Args:
        payload: {"lyrics": {"message": {"body": {"richsync" | "subtitle": {...}}}}}
        word_sync: Request word-level timing.
    """
    body = _object(_object(_object(payload).get("lyrics")).get("message")).get("body")
    richsync = _object(_object(body).get("richsync"))
    subtitle = _object(_object(body).get("subtitle"))

    try:
        if richsync:
            segments = parse_richsync(richsync.get("richsync_body") or "[]", word_level=word_sync)
            copyright_text = richsync.get("lyrics_copyright")
            is_word = word_sync and bool(segments) and _has_word_level_data(segments)
        elif subtitle:
            segments = parse_subtitles(subtitle.get("subtitle_body") or "")
            copyright_text = subtitle.get("lyrics_copyright")
            is_word = False
        else:
            raise ConversionError("Musixmatch payload has no richsync or subtitle body")
    except ConversionError as e:
        logger.warning(f"Musixmatch conversion failed: {e.message}")
        return ConversionResult.failure(e.message)

    flat = FlatDocument(
        type=LyricsType.WORD if is_word else LyricsType.LINE,
        metadata=LyricsMetadata(
            source="Musixmatch",
            songwriters=extract_songwriters(copyright_text),
            leading_silence="0.000",
        ),
        lyrics=segments,
        provider_tag="musixmatch-word" if word_sync else "musixmatch",
    )
    return ConversionResult.success(group_segments(flat))


# =============================================================================
# SPOTIFY
# =============================================================================

def detect_song_part(text: str | None) -> str:
    """Guess the song section from a line's text, "" when it names none."""
    lowered = (text or "").lower()
    for part in SONG_PARTS:
        if part.lower() in lowered:
            return part
    return ""


def should_add_space(syllables: list[dict[str, Any]], index: int) -> bool:
    """
    Decide whether syllable `index` ends a word.

    True when the next syllable starts more than SYLLABLE_GAP_MS after
    this one ends, starts upper-case, or when punctuation sits at the
    boundary. The last syllable of a line never gets a space.
    """
    if index >= len(syllables) - 1:
        return False
    current, following = syllables[index], syllables[index + 1]
    gap = _ms(following.get("startTimeMs"), "startTimeMs") - _ms(current.get("endTimeMs"), "endTimeMs")
    if gap > SYLLABLE_GAP_MS:
        return True
    next_text = str(following.get("text") or "")
    return bool(
        _STARTS_UPPER.match(next_text)
        or _ENDS_PUNCTUATION.search(str(current.get("text") or ""))
        or _STARTS_PUNCTUATION.match(next_text)
    )


def _spotify_line_duration(lines: list[dict[str, Any]], index: int) -> int:
    line = lines[index]
    start = _ms(line.get("startTimeMs"), "startTimeMs")
    end = _ms(line.get("endTimeMs"), "endTimeMs")
    if end > start:
        return end - start
    if index + 1 < len(lines):
        return max(0, _ms(lines[index + 1].get("startTimeMs"), "startTimeMs") - start)
    return 0


def _spotify_syllables(raw: list[dict[str, Any]]) -> tuple[Syllable, ...]:
    syllables = []
    for index, syllable in enumerate(raw):
        if not syllable.get("text"):
            continue
        start = _ms(syllable.get("startTimeMs"), "startTimeMs")
        end = _ms(syllable.get("endTimeMs"), "endTimeMs")
        syllables.append(Syllable(
            time=start,
            duration=end - start if end > start else DEFAULT_SYLLABLE_DURATION_MS,
            text=str(syllable["text"]) + (" " if should_add_space(raw, index) else ""),
        ))
    return tuple(syllables)


def _spotify_raw_syllables(line: dict[str, Any]) -> list[dict[str, Any]]:
    raw = line.get("syllables") or []
    if not isinstance(raw, list) or not all(isinstance(s, dict) for s in raw):
        raise ConversionError("Spotify syllables must be a list of objects", details={"syllables": raw})
    return raw


def _spotify_document(lyrics: dict[str, Any], lines: list[dict[str, Any]]) -> LyricsDocument:
    is_word = any(_spotify_raw_syllables(line) for line in lines)
    units = []
    for index, line in enumerate(lines):
        words = str(line.get("words") or "")
        raw_syllables = _spotify_raw_syllables(line)
        if (not words or words == "♪") and not raw_syllables:
            continue

        song_part = detect_song_part(words)
        if not is_word:
            units.append(LyricUnit(
                time=_ms(line.get("startTimeMs"), "startTimeMs"),
                duration=_spotify_line_duration(lines, index),
                text=words,
                element=LineElement(song_part=song_part),
            ))
            continue

        element = LineElement(key=f"L{index + 1}", song_part=song_part, singer="v1")
        syllables = _spotify_syllables(raw_syllables)
        if syllables:
            units.append(LyricUnit.from_syllables(syllables, element))
        else:
            units.append(LyricUnit(
                time=_ms(line.get("startTimeMs"), "startTimeMs"),
                duration=_spotify_line_duration(lines, index),
                text=words,
                element=element,
            ))

    songwriters = lyrics.get("songWriters")
    return LyricsDocument(
        type=LyricsType.WORD if is_word else LyricsType.LINE,
        metadata=LyricsMetadata(
            source=str(lyrics.get("providerDisplayName") or "Spotify"),
            songwriters=tuple(str(s) for s in songwriters) if isinstance(songwriters, list) else (),
            leading_silence="0.000",
        ),
        lyrics=tuple(units),
        provider_tag="spotify",
    )


def convert_spotify(payload: dict[str, Any]) -> ConversionResult:
    """
    Convert a Spotify color-lyrics payload.

    The document is WORD typed when any line carries syllables. Word
    lines are keyed "L<index+1>" and sung by "v1"; lines that are empty
    or a lone "♪" are dropped.
    """
    lyrics = _object(payload).get("lyrics") or payload
    lines = _object(lyrics).get("lines")
    if not isinstance(lines, list):
        return ConversionResult.failure("Spotify payload has no lyrics lines")
    if not all(isinstance(line, dict) for line in lines):
        return ConversionResult.failure("Spotify lyrics lines must be objects")

    try:
        document = _spotify_document(lyrics, lines)
    except ConversionError as e:
        logger.warning(f"Spotify conversion failed: {e.message}")
        return ConversionResult.failure(e.message)
    return ConversionResult.success(document)
