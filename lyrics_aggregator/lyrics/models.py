"""
Canonical lyrics data model for lyrics-aggregator.

Every provider payload is converted into a LyricsDocument, the grouped
("v2") representation: one LyricUnit per sung line, each optionally
carrying a syllabus of word/syllable timings. The FlatDocument is the
older flat ("v1") encoding of the same content, one segment per
syllable with an end-of-line marker; lyrics/converter.py translates
between the two.

All records are frozen dataclasses holding tuples, so a document can be
shared between threads and never changes after construction. Times and
durations are integer milliseconds.

Wire Format (to_dict / from_dict):
    {
        "type": "Word" | "Line",
        "metadata": {"source": ..., "songWriters": [...], "leadingSilence": "0.000",
                     "language": ..., "title": ..., "agents": {...}},
        "lyrics": [
            {"time": 1000, "duration": 800, "text": "Hello world",
             "syllabus": [{"time": 1000, "duration": 400, "text": "Hello "}, ...],
             "element": {"key": "L1", "songPart": "Verse", "singer": "v1"}}
        ],
        "cached": "None"
    }
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from lyrics_aggregator.core.exceptions import ConversionError


class LyricsType(str, Enum):
    """Sync granularity of a document."""

    WORD = "Word"
    LINE = "Line"

    @classmethod
    def parse(cls, value: Any) -> "LyricsType":
        """
        Read a document type, accepting the legacy "syllable" spelling for Word.

        Raises:
            ConversionError: If the value is not a known type.
        """
        if isinstance(value, LyricsType):
            return value
        text = str(value or "").strip().lower()
        if text in ("word", "syllable"):
            return cls.WORD
        if text == "line":
            return cls.LINE
        raise ConversionError(
            f"Unknown lyrics type: {value!r}",
            details={"field": "type", "value": value}
        )


class CacheState(str, Enum):
    """Where a document was served from."""

    NONE = "None"
    GDRIVE = "GDrive"
    DATABASE = "Database"
    UPDATED = "Updated"

    @classmethod
    def parse(cls, value: Any) -> "CacheState":
        if value is None:
            return cls.NONE
        try:
            return cls(value)
        except ValueError:
            raise ConversionError(
                f"Unknown cache state: {value!r}",
                details={"field": "cached", "value": value}
            ) from None

    @property
    def is_stored(self) -> bool:
        """True when the document already lives in a persistent cache."""
        return self in (CacheState.GDRIVE, CacheState.DATABASE)


def _require_object(value: Any, name: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ConversionError(
            f"'{name}' must be an object",
            details={"field": name, "value": value}
        )
    return value


def _optional_list(value: Any, name: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConversionError(
            f"'{name}' must be a list",
            details={"field": name, "value": value}
        )
    return value


def _require_int(data: dict[str, Any], name: str) -> int:
    value = data.get(name, 0)
    if isinstance(value, bool):
        raise ConversionError(f"'{name}' must be a number", details={"field": name})
    try:
        return int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        raise ConversionError(
            f"'{name}' must be a number",
            details={"field": name, "value": value}
        ) from None


@dataclass(frozen=True)
class Syllable:
    """
    One timed fragment (word or syllable) of a line.

    Attributes:
        time: Start time in milliseconds.
        duration: Length in milliseconds.
        text: Fragment text, including any trailing space that separates
              it from the next fragment.
        is_background: True for backing-vocal fragments.
    """

    time: int
    duration: int
    text: str
    is_background: bool = False

    @property
    def end(self) -> int:
        return self.time + self.duration

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"time": self.time, "duration": self.duration, "text": self.text}
        if self.is_background:
            data["isBackground"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Syllable":
        data = _require_object(data, "syllabus")
        return cls(
            time=_require_int(data, "time"),
            duration=_require_int(data, "duration"),
            text=str(data.get("text") or ""),
            is_background=bool(data.get("isBackground", False)),
        )


@dataclass(frozen=True)
class LineElement:
    """
    Structural attributes of a line.

    Attributes:
        key: Per-line identifier (e.g. "L12"), used to attach translations.
        song_part: Song section name (e.g. "Verse", "Chorus"), or "".
        singer: Voice alias (e.g. "v1", "v2000"), or "".
    """

    key: str = ""
    song_part: str = ""
    singer: str = ""

    def to_dict(self) -> dict[str, str]:
        return {"key": self.key, "songPart": self.song_part, "singer": self.singer}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "LineElement":
        data = _require_object(data or {}, "element")
        return cls(
            key=str(data.get("key") or ""),
            song_part=str(data.get("songPart") or ""),
            singer=str(data.get("singer") or ""),
        )


@dataclass(frozen=True)
class Translation:
    """Translated text of one line."""

    text: str
    lang: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"lang": self.lang, "text": self.text}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Translation":
        data = _require_object(data, "translation")
        return cls(text=str(data.get("text") or ""), lang=data.get("lang"))


@dataclass(frozen=True)
class Transliteration:
    """Transliterated text of one line, with its own timings when available."""

    text: str
    lang: str | None = None
    syllabus: tuple[Syllable, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "lang": self.lang,
            "text": self.text,
            "syllabus": [s.to_dict() for s in self.syllabus],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Transliteration":
        data = _require_object(data, "transliteration")
        return cls(
            text=str(data.get("text") or ""),
            lang=data.get("lang"),
            syllabus=tuple(Syllable.from_dict(s) for s in _optional_list(data.get("syllabus"), "syllabus")),
        )


@dataclass(frozen=True)
class LyricUnit:
    """
    One sung line of a grouped document.

    When `syllabus` is non-empty, `time` is the earliest syllable start
    and `duration` reaches the latest syllable end (background syllables
    included). Line-synced documents have an empty syllabus.

    Attributes:
        time: Start time in milliseconds.
        duration: Length in milliseconds.
        text: Full line text, trimmed.
        syllabus: Timed fragments, in document order.
        element: Key, song part and singer of the line.
        translation: Optional translated text.
        transliteration: Optional transliterated text.
    """

    time: int
    duration: int
    text: str
    syllabus: tuple[Syllable, ...] = ()
    element: LineElement = field(default_factory=LineElement)
    translation: Translation | None = None
    transliteration: Transliteration | None = None

    @property
    def end(self) -> int:
        return self.time + self.duration

    @classmethod
    def from_syllables(
        cls,
        syllables: tuple[Syllable, ...],
        element: LineElement,
        **extra: Any,
    ) -> "LyricUnit":
        """
        Build a line whose timing and text are derived from its syllables.

        Args:
            syllables: Non-empty tuple of fragments.
            element: Line attributes.
            **extra: translation / transliteration.
        """
        start = min(s.time for s in syllables)
        end = max(s.end for s in syllables)
        return cls(
            time=start,
            duration=end - start,
            text="".join(s.text for s in syllables).strip(),
            syllabus=syllables,
            element=element,
            **extra,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "time": self.time,
            "duration": self.duration,
            "text": self.text,
            "syllabus": [s.to_dict() for s in self.syllabus],
            "element": self.element.to_dict(),
        }
        if self.translation is not None:
            data["translation"] = self.translation.to_dict()
        if self.transliteration is not None:
            data["transliteration"] = self.transliteration.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LyricUnit":
        data = _require_object(data, "lyrics")
        translation = data.get("translation")
        transliteration = data.get("transliteration")
        return cls(
            time=_require_int(data, "time"),
            duration=_require_int(data, "duration"),
            text=str(data.get("text") or ""),
            syllabus=tuple(Syllable.from_dict(s) for s in _optional_list(data.get("syllabus"), "syllabus")),
            element=LineElement.from_dict(data.get("element")),
            translation=Translation.from_dict(translation) if translation else None,
            transliteration=Transliteration.from_dict(transliteration) if transliteration else None,
        )


@dataclass(frozen=True)
class Agent:
    """
    A voice declared in a document header.

    Attributes:
        agent_id: Header identifier, e.g. "voice1".
        name: Display name, may be empty.
        type: "person" or "group".
    """

    agent_id: str
    name: str = ""
    type: str = "person"

    @property
    def alias(self) -> str:
        """Short singer alias used on lines ("voice1" -> "v1")."""
        return self.agent_id.replace("voice", "v")


@dataclass(frozen=True)
class LyricsMetadata:
    """
    Document header.

    Attributes:
        source: Provider display name, e.g. "Apple Music".
        songwriters: Credited songwriters.
        leading_silence: Leading silence in seconds, as a decimal string.
        language: Lyrics language tag, if known.
        title: Song title, if the provider reports it.
        agents: Declared voices.
    """

    source: str = ""
    songwriters: tuple[str, ...] = ()
    leading_silence: str = "0.000"
    language: str | None = None
    title: str | None = None
    agents: tuple[Agent, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "source": self.source,
            "songWriters": list(self.songwriters),
            "leadingSilence": self.leading_silence,
        }
        if self.language:
            data["language"] = self.language
        if self.title:
            data["title"] = self.title
        if self.agents:
            data["agents"] = {
                a.agent_id: {"type": a.type, "name": a.name, "alias": a.alias}
                for a in self.agents
            }
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LyricsMetadata":
        data = _require_object(data, "metadata")
        agents = []
        for agent_id, info in _require_object(data.get("agents") or {}, "agents").items():
            info = _require_object(info, "agents")
            agents.append(
                Agent(agent_id=agent_id, name=str(info.get("name") or ""), type=str(info.get("type") or "person"))
            )
        return cls(
            source=str(data.get("source") or ""),
            songwriters=tuple(str(s) for s in _optional_list(data.get("songWriters"), "songWriters")),
            leading_silence=str(data.get("leadingSilence") or "0.000"),
            language=data.get("language") or None,
            title=data.get("title") or None,
            agents=tuple(agents),
        )


@dataclass(frozen=True)
class LyricsDocument:
    """
    Canonical grouped ("v2") lyrics document.

    Attributes:
        type: LyricsType.WORD when lines carry sub-line timing, else LINE.
        metadata: Document header.
        lyrics: Lines in document order.
        cached: Cache the document was served from.
        provider_tag: Free-form tag naming the converter that produced it.
    """

    type: LyricsType
    metadata: LyricsMetadata
    lyrics: tuple[LyricUnit, ...]
    cached: CacheState = CacheState.NONE
    provider_tag: str = ""

    @property
    def has_syllable_sync(self) -> bool:
        """True when any line exposes sub-line timing."""
        return any(line.syllabus for line in self.lyrics)

    def with_cache_state(self, cached: CacheState) -> "LyricsDocument":
        return replace(self, cached=cached)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "metadata": self.metadata.to_dict(),
            "lyrics": [line.to_dict() for line in self.lyrics],
            "cached": self.cached.value,
        }
        if self.provider_tag:
            data["providerTag"] = self.provider_tag
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LyricsDocument":
        """
        Read a grouped document.

        Raises:
            ConversionError: If required fields are missing or malformed.
        """
        _check_required(data)
        return cls(
            type=LyricsType.parse(data["type"]),
            metadata=LyricsMetadata.from_dict(data["metadata"]),
            lyrics=tuple(LyricUnit.from_dict(line) for line in data["lyrics"]),
            cached=CacheState.parse(data.get("cached")),
            provider_tag=str(data.get("providerTag") or ""),
        )


@dataclass(frozen=True)
class FlatSegment:
    """
    One segment of a flat ("v1") document.

    Attributes:
        time: Start time in milliseconds.
        duration: Length in milliseconds.
        text: Segment text.
        is_line_ending: True on the last segment of a line.
        element: Attributes of the line the segment belongs to.
        is_background: True for backing-vocal segments.
    """

    time: int
    duration: int
    text: str
    is_line_ending: bool = True
    element: LineElement = field(default_factory=LineElement)
    is_background: bool = False

    def to_dict(self) -> dict[str, Any]:
        element: dict[str, Any] = self.element.to_dict()
        if self.is_background:
            element["isBackground"] = True
        return {
            "time": self.time,
            "duration": self.duration,
            "text": self.text,
            "isLineEnding": 1 if self.is_line_ending else 0,
            "element": element,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlatSegment":
        data = _require_object(data, "lyrics")
        element = _require_object(data.get("element") or {}, "element")
        return cls(
            time=_require_int(data, "time"),
            duration=_require_int(data, "duration"),
            text=str(data.get("text") or ""),
            is_line_ending=data.get("isLineEnding") in (1, True, "1"),
            element=LineElement.from_dict(element),
            is_background=element.get("isBackground") is True,
        )


@dataclass(frozen=True)
class FlatDocument:
    """
    Flat ("v1") lyrics document, kept for older consumers.

    Same header as LyricsDocument, but `lyrics` is one segment per
    syllable (or per line for LINE documents) instead of nested lines.
    Older consumers spell the WORD type "syllable" on the wire.
    """

    type: LyricsType
    metadata: LyricsMetadata
    lyrics: tuple[FlatSegment, ...]
    cached: CacheState = CacheState.NONE
    provider_tag: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "syllable" if self.type is LyricsType.WORD else self.type.value,
            "metadata": self.metadata.to_dict(),
            "lyrics": [segment.to_dict() for segment in self.lyrics],
            "cached": self.cached.value,
        }
        if self.provider_tag:
            data["providerTag"] = self.provider_tag
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FlatDocument":
        """
        Read a flat document.

        Raises:
            ConversionError: If required fields are missing or malformed.
        """
        _check_required(data)
        return cls(
            type=LyricsType.parse(data["type"]),
            metadata=LyricsMetadata.from_dict(data["metadata"]),
            lyrics=tuple(FlatSegment.from_dict(segment) for segment in data["lyrics"]),
            cached=CacheState.parse(data.get("cached")),
            provider_tag=str(data.get("providerTag") or ""),
        )


def _check_required(data: Any) -> None:
    if not isinstance(data, dict) or not data.get("type") or data.get("metadata") is None or data.get("lyrics") is None:
        raise ConversionError(
            "Missing required fields: type, metadata or lyrics",
            details={"fields": ["type", "metadata", "lyrics"]}
        )
    if not isinstance(data["lyrics"], list):
        raise ConversionError("'lyrics' must be a list", details={"field": "lyrics"})


def is_flat_payload(data: dict[str, Any]) -> bool:
    """True when a lyrics dict uses the flat encoding (segments without 'syllabus')."""
    lyrics = data.get("lyrics") or []
    return bool(lyrics) and all(
        isinstance(item, dict) and "syllabus" not in item for item in lyrics
    )


@dataclass(frozen=True)
class ConversionResult:
    """
    Outcome of converting a payload into a LyricsDocument.

    Converters never raise across the package boundary; they return
    a success or a failure with a reason.

    Attributes:
        document: The converted document, or None on failure.
        error: Failure reason, or None on success.

    Example:
        result = parse_ttml(text)
        if result.ok:
            use(result.document)
        else:
            logger.warning(f"Conversion failed: {result.error}")
    """

    document: LyricsDocument | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.document is not None

    @classmethod
    def success(cls, document: LyricsDocument) -> "ConversionResult":
        return cls(document=document)

    @classmethod
    def failure(cls, reason: str) -> "ConversionResult":
        return cls(document=None, error=reason)
