"""
TTML lyrics codec.

Reads and writes the timed-text XML dialect used by Apple Music lyrics:

    <tt xmlns="http://www.w3.org/ns/ttml" itunes:timing="Word" xml:lang="en" ...>
      <head>
        <metadata>
          <ttm:title>Song</ttm:title>
          <ttm:agent type="person" xml:id="voice1"><ttm:name>Singer</ttm:name></ttm:agent>
        </metadata>
        <itunes:metadata leadingSilence="0.020">
          <songwriters><songwriter>Writer</songwriter></songwriters>
          <translations>...</translations>
        </itunes:metadata>
      </head>
      <body dur="12.000">
        <div begin="1.000" end="5.000" itunes:song-part="Verse">
          <p begin="1.000" end="2.000" itunes:key="L1" ttm:agent="voice1">
            <span ttm:role="x-bg"><span begin="1.000" end="1.300">(Ooh)</span></span>
            <span begin="1.000" end="1.500">Hello</span> <span begin="1.500" end="2.000">world</span>
          </p>
        </div>
      </body>
    </tt>

Parsing is structural (xml.etree.ElementTree); elements and attributes
are matched by local name so both prefixed and default-namespace
spellings are accepted. Malformed XML is reported as a failed
ConversionResult, never as a partial document.
"""

import xml.etree.ElementTree as ET
from collections.abc import Iterator
from itertools import groupby

from lyrics_aggregator.core.exceptions import ConversionError
from lyrics_aggregator.core.logger import get_logger
from lyrics_aggregator.lyrics.models import (
    Agent,
    ConversionResult,
    LineElement,
    LyricsDocument,
    LyricsMetadata,
    LyricsType,
    LyricUnit,
    Syllable,
    Translation,
    Transliteration,
)


logger = get_logger(__name__)


NS_TT = "http://www.w3.org/ns/ttml"
NS_ITUNES = "http://music.apple.com/lyric-ttml-internal"
NS_TTM = "http://www.w3.org/ns/ttml#metadata"
NS_TTS = "http://www.w3.org/ns/ttml#styling"
NS_XML = "http://www.w3.org/XML/1998/namespace"

BACKGROUND_ROLE = "x-bg"
TTML_SOURCE = "Apple Music"
DEFAULT_LANGUAGE = "en"


# =============================================================================
# TIME FORMAT
# =============================================================================

def time_to_ms(value: str | None) -> int:
    """
    Parse a TTML clock value into milliseconds.

    Accepts "HH:MM:SS.mmm", "MM:SS.mmm" and "SS.mmm", with an optional
    trailing "s". Unparseable or missing values are 0.

    Examples:
        "1:02:03.500" -> 3723500
        "01:05.250" -> 65250
        "2.5s" -> 2500
    """
    if not value:
        return 0

    def number(part: str) -> float:
        try:
            return float(part)
        except ValueError:
            return 0.0

    parts = value.strip().removesuffix("s").split(":")
    if len(parts) == 3:
        seconds = number(parts[0]) * 3600 + number(parts[1]) * 60 + number(parts[2])
    elif len(parts) == 2:
        seconds = number(parts[0]) * 60 + number(parts[1])
    else:
        seconds = number(parts[0])
    return int(round(seconds * 1000))


def format_time(ms: int) -> str:
    """
    Format milliseconds as a TTML clock value.

    Uses the shortest of "S.mmm", "MM:SS.mmm" and "HH:MM:SS.mmm" that
    holds the value. Negative input is clamped to zero.

    Examples:
        1500 -> "1.500"
        65250 -> "01:05.250"
        3723500 -> "01:02:03.500"
    """
    ms = max(0, int(round(ms)))
    hours, rest = divmod(ms, 3_600_000)
    minutes, rest = divmod(rest, 60_000)
    seconds, millis = divmod(rest, 1000)

    if hours:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}.{millis:03d}"
    if minutes:
        return f"{minutes:02d}:{seconds:02d}.{millis:03d}"
    return f"{seconds}.{millis:03d}"


# =============================================================================
# PARSING
# =============================================================================

def _local(name: str) -> str:
    return name.rsplit("}", 1)[-1]


def _attr(element: ET.Element, name: str, namespace: str | None = None) -> str | None:
    if namespace is not None:
        value = element.get(f"{{{namespace}}}{name}")
        if value is not None:
            return value
    return element.get(name)


def _find_all(root: ET.Element | None, name: str) -> list[ET.Element]:
    if root is None:
        return []
    return [el for el in root.iter() if _local(el.tag) == name]


def _find(root: ET.Element | None, name: str) -> ET.Element | None:
    found = _find_all(root, name)
    return found[0] if found else None


def _text_of(element: ET.Element) -> str:
    return "".join(element.itertext()).strip()


def _timed_spans(element: ET.Element, in_background: bool = False) -> Iterator[tuple[ET.Element, bool]]:
    """Yield (span, is_background) for every timed span below `element`, in order."""
    for child in element:
        if _local(child.tag) != "span":
            continue
        if child.get("begin") is not None:
            yield child, in_background
        nested_background = in_background or _attr(child, "role", NS_TTM) == BACKGROUND_ROLE
        yield from _timed_spans(child, nested_background)


def _span_syllables(element: ET.Element, offset_ms: int) -> tuple[Syllable, ...]:
    syllables = []
    for span, is_background in _timed_spans(element):
        tail = span.tail or ""
        text = (span.text or "") + tail
        if not text.strip() and " " not in tail:
            continue

        begin = time_to_ms(span.get("begin"))
        end = time_to_ms(span.get("end"))
        syllables.append(Syllable(
            time=begin + offset_ms,
            duration=end - begin,
            text=text,
            is_background=is_background,
        ))
    return tuple(syllables)


def _parse_agents(head: ET.Element | None) -> tuple[Agent, ...]:
    agents = []
    for node in _find_all(head, "agent"):
        agent_id = _attr(node, "id", NS_XML)
        if not agent_id:
            continue
        name_node = _find(node, "name")
        agents.append(Agent(
            agent_id=agent_id,
            name=_text_of(name_node) if name_node is not None else "",
            type=node.get("type") or "person",
        ))
    return tuple(agents)


def _parse_translations(head: ET.Element | None) -> dict[str, Translation]:
    translations = {}
    for node in _find_all(head, "translation"):
        lang = _attr(node, "lang", NS_XML)
        for text_node in _find_all(node, "text"):
            key = text_node.get("for")
            if key:
                translations[key] = Translation(text=_text_of(text_node), lang=lang)
    return translations


def _parse_transliterations(head: ET.Element | None, offset_ms: int) -> dict[str, Transliteration]:
    transliterations = {}
    for node in _find_all(head, "transliteration"):
        lang = _attr(node, "lang", NS_XML)
        for text_node in _find_all(node, "text"):
            key = text_node.get("for")
            if not key:
                continue
            syllabus = _span_syllables(text_node, offset_ms)
            if syllabus:
                transliterations[key] = Transliteration(
                    text="".join(s.text for s in syllabus).strip(),
                    lang=lang,
                    syllabus=syllabus,
                )
    return transliterations


def _parse_metadata(root: ET.Element, head: ET.Element | None) -> LyricsMetadata:
    title_node = _find(head, "title")
    songwriters = tuple(
        name for name in (_text_of(node) for node in _find_all(head, "songwriter")) if name
    )

    leading_silence = "0.000"
    for node in _find_all(head, "metadata") + _find_all(head, "iTunesMetadata"):
        if node.get("leadingSilence"):
            leading_silence = node.get("leadingSilence")
            break

    return LyricsMetadata(
        source=TTML_SOURCE,
        songwriters=songwriters,
        leading_silence=leading_silence,
        language=_attr(root, "lang", NS_XML) or None,
        title=_text_of(title_node) if title_node is not None else None,
        agents=_parse_agents(head),
    )


def _parse_paragraph(
    p: ET.Element,
    song_part: str,
    timing: LyricsType,
    offset_ms: int,
) -> LyricUnit | None:
    element = LineElement(
        key=_attr(p, "key", NS_ITUNES) or "",
        song_part=song_part,
        singer=(_attr(p, "agent", NS_TTM) or "").replace("voice", "v"),
    )

    syllabus = _span_syllables(p, offset_ms) if timing is LyricsType.WORD else ()
    if syllabus:
        return LyricUnit.from_syllables(syllabus, element)

    begin, end = p.get("begin"), p.get("end")
    text = _text_of(p)
    if begin is None or end is None or not text:
        return None

    start = time_to_ms(begin) + offset_ms
    return LyricUnit(
        time=start,
        duration=time_to_ms(end) - time_to_ms(begin),
        text=text,
        element=element,
    )


def _parse_document(text: str, offset_ms: int) -> LyricsDocument:
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ConversionError(f"Invalid TTML: {e}", details={"error": str(e)}) from e

    if _local(root.tag) != "tt":
        raise ConversionError(f"Invalid TTML: unexpected root element <{_local(root.tag)}>")

    timing = LyricsType.parse(_attr(root, "timing", NS_ITUNES) or "Word")
    head = _find(root, "head")
    translations = _parse_translations(head)
    transliterations = _parse_transliterations(head, offset_ms)

    lines = []
    for div in _find_all(_find(root, "body"), "div"):
        song_part = _attr(div, "song-part", NS_ITUNES) or _attr(div, "songPart", NS_ITUNES) or ""
        for p in div:
            if _local(p.tag) != "p":
                continue
            line = _parse_paragraph(p, song_part, timing, offset_ms)
            if line is None:
                continue
            key = line.element.key
            if key in translations or key in transliterations:
                line = LyricUnit(
                    time=line.time,
                    duration=line.duration,
                    text=line.text,
                    syllabus=line.syllabus,
                    element=line.element,
                    translation=translations.get(key),
                    transliteration=transliterations.get(key),
                )
            lines.append(line)

    return LyricsDocument(
        type=timing,
        metadata=_parse_metadata(root, head),
        lyrics=tuple(lines),
        provider_tag="ttml",
    )


def parse_ttml(text: str, offset_ms: int = 0) -> ConversionResult:
    """
    Parse a TTML document into a grouped LyricsDocument.

    In Word timing mode each paragraph's timed spans become syllables;
    spans inside a background-role wrapper are flagged as background and
    count toward the line's time and duration like any other syllable.
    In Line timing mode each paragraph becomes one line with an empty
    syllabus. Translations and transliterations from the head are
    attached to lines by their key.

    Args:
        text: TTML source.
        offset_ms: Shift applied to every timestamp.

    Returns:
        ConversionResult with the document, or the parse failure reason.
    """
    try:
        document = _parse_document(text, offset_ms)
    except ConversionError as e:
        logger.warning(f"TTML conversion failed: {e.message}")
        return ConversionResult.failure(e.message)

    logger.debug(f"Parsed TTML: {len(document.lyrics)} lines, timing {document.type.value}")
    return ConversionResult.success(document)


# =============================================================================
# SERIALIZATION
# =============================================================================

def _resolve_agents(document: LyricsDocument) -> tuple[Agent, ...]:
    """Declared agents plus one synthesized agent per undeclared singer alias."""
    agents = list(document.metadata.agents)
    known = {agent.alias for agent in agents} | {agent.agent_id for agent in agents}

    for line in document.lyrics:
        alias = line.element.singer
        if not alias or alias in known:
            continue
        number = alias[1:]
        is_group = alias.endswith("000")
        agents.append(Agent(
            agent_id=f"voice{number}",
            name=f"Group {number}" if is_group else f"Singer {number}",
            type="group" if is_group else "person",
        ))
        known.add(alias)
    return tuple(agents)


def _agent_id(alias: str, agents: tuple[Agent, ...]) -> str:
    for agent in agents:
        if agent.alias == alias:
            return agent.agent_id
    return "voice" + alias[1:] if alias.startswith("v") else alias


def _append_span(parent: ET.Element, syllable: Syllable) -> None:
    text = syllable.text.rstrip()
    span = ET.SubElement(parent, "span", {
        "begin": format_time(syllable.time),
        "end": format_time(syllable.end),
    })
    span.text = text
    span.tail = syllable.text[len(text):] or None


def _build_side_tables(parent: ET.Element, document: LyricsDocument) -> None:
    translated = [line for line in document.lyrics if line.translation and line.element.key]
    transliterated = [line for line in document.lyrics if line.transliteration and line.element.key]

    if translated:
        tables = ET.SubElement(parent, "translations")
        for lang, lines in groupby(translated, key=lambda line: line.translation.lang):
            node = ET.SubElement(tables, "translation", {"type": "subtitle"})
            if lang:
                node.set("xml:lang", lang)
            for line in lines:
                ET.SubElement(node, "text", {"for": line.element.key}).text = line.translation.text

    if transliterated:
        tables = ET.SubElement(parent, "transliterations")
        for lang, lines in groupby(transliterated, key=lambda line: line.transliteration.lang):
            node = ET.SubElement(tables, "transliteration")
            if lang:
                node.set("xml:lang", lang)
            for line in lines:
                text_node = ET.SubElement(node, "text", {"for": line.element.key})
                if line.transliteration.syllabus:
                    for syllable in line.transliteration.syllabus:
                        _append_span(text_node, syllable)
                else:
                    text_node.text = line.transliteration.text


def serialize_ttml(document: LyricsDocument, leading_silence: str = "0.020") -> str:
    """
    Serialize a grouped LyricsDocument as TTML.

    Consecutive lines sharing a song part are wrapped in one <div>.
    Each line becomes a <p> spanning its syllables; each run of background
    syllables is wrapped in a background-role span, in place. Trailing
    whitespace of a syllable is written after its span so the text
    round-trips through parse_ttml.

    Args:
        document: Document to serialize.
        leading_silence: Used when the document header has none.

    Returns:
        TTML source.
    """
    agents = _resolve_agents(document)
    metadata = document.metadata

    root = ET.Element("tt", {
        "xmlns": NS_TT,
        "xmlns:tts": NS_TTS,
        "xmlns:itunes": NS_ITUNES,
        "xmlns:ttm": NS_TTM,
        "itunes:timing": document.type.value,
        "xml:lang": metadata.language or DEFAULT_LANGUAGE,
    })

    head = ET.SubElement(root, "head")
    head_metadata = ET.SubElement(head, "metadata")
    if metadata.title:
        ET.SubElement(head_metadata, "ttm:title").text = metadata.title
    for agent in agents:
        node = ET.SubElement(head_metadata, "ttm:agent", {"type": agent.type, "xml:id": agent.agent_id})
        ET.SubElement(node, "ttm:name").text = agent.name

    itunes_metadata = ET.SubElement(head, "itunes:metadata", {
        "leadingSilence": metadata.leading_silence or leading_silence,
    })
    if metadata.songwriters:
        songwriters = ET.SubElement(itunes_metadata, "songwriters")
        for name in metadata.songwriters:
            ET.SubElement(songwriters, "songwriter").text = name
    _build_side_tables(itunes_metadata, document)

    total = document.lyrics[-1].end if document.lyrics else 0
    body = ET.SubElement(root, "body", {"dur": format_time(total)})

    for song_part, group in groupby(document.lyrics, key=lambda line: line.element.song_part):
        lines = list(group)
        div = ET.SubElement(body, "div", {
            "begin": format_time(lines[0].time),
            "end": format_time(max(line.end for line in lines)),
        })
        if song_part:
            div.set("itunes:song-part", song_part)

        for line in lines:
            p = ET.SubElement(div, "p", {
                "begin": format_time(line.time),
                "end": format_time(line.end),
            })
            if line.element.key:
                p.set("itunes:key", line.element.key)
            if line.element.singer:
                p.set("ttm:agent", _agent_id(line.element.singer, agents))

            if document.type is LyricsType.LINE or not line.syllabus:
                p.text = line.text
                continue

            for is_background, run in groupby(line.syllabus, key=lambda s: s.is_background):
                parent = ET.SubElement(p, "span", {"ttm:role": BACKGROUND_ROLE}) if is_background else p
                for syllable in run:
                    _append_span(parent, syllable)

    return ET.tostring(root, encoding="unicode")
