"""
Conversion between the flat ("v1") and grouped ("v2") lyrics encodings.

Both directions are pure functions over frozen records:
    group_segments: FlatDocument -> LyricsDocument
    flatten_document: LyricsDocument -> FlatDocument

For WORD documents the pair is mutually inverse up to the recomputation
of each line's time and duration from its syllables, so
flatten_document(group_segments(flatten_document(doc))) equals
flatten_document(doc).
"""

from functools import reduce
from typing import Any

from lyrics_aggregator.core.exceptions import ConversionError
from lyrics_aggregator.core.logger import get_logger
from lyrics_aggregator.lyrics.models import (
    ConversionResult,
    FlatDocument,
    FlatSegment,
    LineElement,
    LyricsDocument,
    LyricsType,
    LyricUnit,
    Syllable,
    is_flat_payload,
)


logger = get_logger(__name__)


# Fold state: (closed lines, syllables of the open line, element of the open line)
_GroupState = tuple[tuple[LyricUnit, ...], tuple[Syllable, ...], LineElement | None]


def _close_line(syllables: tuple[Syllable, ...], element: LineElement | None) -> LyricUnit:
    return LyricUnit.from_syllables(syllables, element or LineElement())


def _fold_segment(state: _GroupState, segment: FlatSegment) -> _GroupState:
    lines, pending, element = state
    pending = pending + (
        Syllable(
            time=segment.time,
            duration=segment.duration,
            text=segment.text,
            is_background=segment.is_background,
        ),
    )
    # The first segment of a line carries the line's attributes
    element = element or segment.element

    if segment.is_line_ending:
        return lines + (_close_line(pending, element),), (), None
    return lines, pending, element


def group_segments(flat: FlatDocument) -> LyricsDocument:
    """
    Group a flat document into lines.

    Segments accumulate into an open line until one marked as a line
    ending closes it. A closed line's time and duration span all of its
    syllables, and its text is their trimmed concatenation. A trailing
    line without an ending marker is closed at the end of the document.
    LINE documents are already one segment per line and map one to one.

    Args:
        flat: Flat document.

    Returns:
        Grouped document with the same header.
    """
    if flat.type is LyricsType.LINE:
        lyrics = tuple(
            LyricUnit(
                time=segment.time,
                duration=segment.duration,
                text=segment.text,
                element=segment.element,
            )
            for segment in flat.lyrics
        )
    else:
        lines, pending, element = reduce(_fold_segment, flat.lyrics, ((), (), None))
        if pending:
            lines = lines + (_close_line(pending, element),)
        lyrics = lines

    return LyricsDocument(
        type=flat.type,
        metadata=flat.metadata,
        lyrics=lyrics,
        cached=flat.cached,
        provider_tag=flat.provider_tag,
    )


def _flatten_line(line: LyricUnit) -> tuple[FlatSegment, ...]:
    if not line.syllabus:
        return (
            FlatSegment(
                time=line.time,
                duration=line.duration,
                text=line.text,
                is_line_ending=True,
                element=line.element,
            ),
        )

    last = len(line.syllabus) - 1
    return tuple(
        FlatSegment(
            time=syllable.time,
            duration=syllable.duration,
            text=syllable.text,
            is_line_ending=index == last,
            element=line.element,
            is_background=syllable.is_background,
        )
        for index, syllable in enumerate(line.syllabus)
    )


def flatten_document(document: LyricsDocument) -> FlatDocument:
    """
    Flatten a grouped document into one segment per syllable.

    Only the last syllable of each line is marked as a line ending.
    Lines without a syllabus, and every line of a LINE document, become
    a single segment.
    """
    if document.type is LyricsType.LINE:
        segments = tuple(
            FlatSegment(
                time=line.time,
                duration=line.duration,
                text=line.text,
                is_line_ending=True,
                element=line.element,
            )
            for line in document.lyrics
        )
    else:
        segments = tuple(
            segment
            for line in document.lyrics
            for segment in _flatten_line(line)
        )

    return FlatDocument(
        type=document.type,
        metadata=document.metadata,
        lyrics=segments,
        cached=document.cached,
        provider_tag=document.provider_tag,
    )


def load_document(data: Any) -> ConversionResult:
    """
    Validate a lyrics dict and read it as a grouped document.

    Accepts both encodings: a flat payload (segments without 'syllabus')
    is grouped on the way in.

    Args:
        data: Decoded JSON document.

    Returns:
        ConversionResult with the document, or the reason it was rejected.
    """
    if not isinstance(data, dict):
        return ConversionResult.failure("Document must be a JSON object")

    try:
        if is_flat_payload(data):
            document = group_segments(FlatDocument.from_dict(data))
        else:
            document = LyricsDocument.from_dict(data)
    except ConversionError as e:
        logger.debug(f"Rejected lyrics document: {e}")
        return ConversionResult.failure(e.message)

    return ConversionResult.success(document)
