"""Conversion engine: any supported format to any other.

WHY: Writing a converter for every ordered pair of five formats would
mean twenty code paths. Instead every document is lowered to canonical
Events and the target format's handler builds a native document from
them, so adding a format adds one path, not eight.

HOW: Four steps applied per event:
  1. Style-table degradation: when the source is ASS/SSA and the
     target has no style table, the event's resolved style (bold,
     italic, underline, strikeout, non-white colour, non-bottom
     alignment) is folded into its inline runs.
  2. Voice / actor mapping: a SubStation actor name becomes a WebVTT
     voice, and a single WebVTT voice becomes the SubStation actor.
  3. Attribute restriction: runs keep only what the target can
     express; drawing runs vanish outside ASS.
  4. Metadata carry: SubStation columns survive ASS <-> SSA; SubRip
     indices become WebVTT identifiers; everything else is reset.
The target handler's ``build()`` then attaches header data (titles,
style tables, frame rate).

RULES:
- The input document is never modified
- Same-format conversion returns a deep copy
- Conversion never fails on content; only an invalid frame rate or an
  unknown target raises InvalidParameter, before any work is done
- Event times pass through unchanged
"""

from __future__ import annotations

import copy
import logging
from dataclasses import replace
from typing import List, Optional, Union

from subtitle_converter.core.ir import (
    SUBSTATION_FORMATS,
    Event,
    Format,
    MicroDvdSubtitle,
    StyleRun,
    Style,
    SubRipSubtitle,
    SubStationSubtitle,
    Subtitle,
)
from subtitle_converter.core.markup import LEGACY_TO_NUMPAD, ass_colour_to_hex
from subtitle_converter.core.timing import FrameRateLike, to_frame_rate
from subtitle_converter.formats import get_format
from subtitle_converter.formats.base import BaseFormat

logger = logging.getLogger(__name__)

_DEFAULT_STYLE_COLOUR = "#FFFFFF"
_DEFAULT_ALIGNMENT = 2

_SUBSTATION_METADATA = ("style_id", "layer", "margin_l", "margin_r", "margin_v", "effect", "name")


def _apply_style(runs: List[StyleRun], style: Style, source_format: Format) -> List[StyleRun]:
    """Fold a style-table entry into inline run attributes."""
    colour = ass_colour_to_hex(style.primary_colour)
    if colour == _DEFAULT_STYLE_COLOUR:
        colour = None
    alignment: Optional[int] = style.alignment
    if source_format is Format.SSA:
        alignment = LEGACY_TO_NUMPAD.get(style.alignment, _DEFAULT_ALIGNMENT)
    if alignment == _DEFAULT_ALIGNMENT:
        alignment = None
    return [
        replace(
            run,
            bold=run.bold or style.bold,
            italic=run.italic or style.italic,
            underline=run.underline or style.underline,
            strikeout=run.strikeout or style.strikeout,
            color=run.color or colour,
            alignment=run.alignment if run.alignment is not None else alignment,
        )
        for run in runs
    ]


def _canonical_event(event: Event, source: Subtitle, target: Format, handler: BaseFormat) -> Event:
    runs = event.styled_runs()
    metadata = {}

    if isinstance(source, SubStationSubtitle):
        if target in SUBSTATION_FORMATS:
            metadata = {name: getattr(event, name) for name in _SUBSTATION_METADATA}
        else:
            runs = _apply_style(runs, source.resolve_style(event.style_id), source.format)
            if event.name and target is Format.WEBVTT:
                runs = [replace(run, voice=run.voice or event.name) for run in runs]
    elif target in SUBSTATION_FORMATS:
        voices = {run.voice for run in runs if run.voice}
        if len(voices) == 1:
            metadata["name"] = voices.pop()

    if isinstance(source, SubRipSubtitle) and target is Format.WEBVTT:
        metadata["index"] = event.index

    return Event.from_runs(event.start, event.end, handler.restrict(runs), **metadata)


def convert(
    subtitle: Subtitle,
    target: Union[Format, str],
    frame_rate: Optional[FrameRateLike] = None,
) -> Subtitle:
    """Convert a parsed document into another format.

    Args:
        subtitle: The source document (left untouched).
        target: Target Format or key ("srt", "vtt", "sub", "ass", "ssa").
        frame_rate: Frame rate for a MicroDVD target. None uses the
                    source's rate when converting MicroDVD to MicroDVD,
                    else the configured default.

    Returns:
        A new document of the target format.

    Raises:
        InvalidParameter: unknown target or non-positive frame rate.
    """
    fmt = Format.coerce(target)
    rate = to_frame_rate(frame_rate) if frame_rate is not None else None

    if fmt is subtitle.format:
        result = copy.deepcopy(subtitle)
        if rate is not None and isinstance(result, MicroDvdSubtitle):
            result.frame_rate = rate
        return result

    handler = get_format(fmt, frame_rate=rate)
    events = [_canonical_event(event, subtitle, fmt, handler) for event in subtitle.events]
    result = handler.build(events, subtitle)

    if isinstance(subtitle, SubStationSubtitle) and isinstance(result, SubStationSubtitle):
        result.other_events = [
            (kind, _canonical_event(event, subtitle, fmt, handler))
            for kind, event in subtitle.other_events
        ]
    elif isinstance(subtitle, SubStationSubtitle) and subtitle.other_events:
        logger.debug("Dropping %d non-dialogue SubStation lines", len(subtitle.other_events))
    if isinstance(result, SubStationSubtitle):
        result.normalize()

    logger.debug(
        "Converted %d events from %s to %s",
        len(result.events), subtitle.format.value, fmt.value,
    )
    return result
