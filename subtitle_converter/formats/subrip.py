"""SubRip (.srt) parser and serializer.

WHY: SRT is the lowest common denominator of subtitle formats and the
one most often hand-edited, so real files are sloppy: missing indices,
missing trailing blank lines, cues glued together, and a mix of
``<b>``, ``{b}`` and ``{\\an8}`` tags.

HOW: The document is split into blank-line separated blocks. Each block
is an optional index line, a ``start --> end`` timing line (optionally
followed by coordinates) and text lines. Text goes through the shared
HTML-style markup parser with SubRip extensions.

RULES:
- Timestamp grammar HH:MM:SS,mmm ("." accepted for ","); minutes and
  seconds >= 60 make the block unparsable
- Blocks without a timing line in the first two lines are skipped
- Output renumbers from 1 in chronological order, one blank line
  between blocks
- Empty lines inside cue text are written as a lone non-breaking space
  and read back as empty
- Tag dialect on output: "html" (<b>) or "ass" ({\\b1})
- Supported inline attributes: bold, italic, underline, alignment
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from subtitle_converter import config
from subtitle_converter.core.ir import Event, Format, SubRipSubtitle, Subtitle
from subtitle_converter.core.markup import parse_html_markup, render_html_markup
from subtitle_converter.core.operations import renumber
from subtitle_converter.core.timing import Time
from subtitle_converter.errors import InvalidParameter
from subtitle_converter.formats.base import (
    BaseFormat,
    fill_blank_lines,
    normalize_newlines,
    split_blocks,
)

logger = logging.getLogger(__name__)

TIMING_RE = re.compile(
    r"^\s*(?P<start>\d+\s*:\s*\d+\s*:\s*\d+\s*[,.]\s*\d+)\s*-->\s*"
    r"(?P<end>\d+\s*:\s*\d+\s*:\s*\d+\s*[,.]\s*\d+)(?P<settings>.*)$"
)
_TIMESTAMP_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2})[,.](\d{1,3})$")


def parse_timestamp(value: str) -> Time:
    """Parse HH:MM:SS,mmm (whitespace tolerated) into a Time.

    Raises:
        ValueError: malformed or out-of-range components.
    """
    match = _TIMESTAMP_RE.match(re.sub(r"\s+", "", value))
    if not match:
        raise ValueError("Malformed SubRip timestamp: {!r}".format(value))
    hours, minutes, seconds = int(match.group(1)), int(match.group(2)), int(match.group(3))
    if minutes >= 60 or seconds >= 60:
        raise ValueError("Out-of-range SubRip timestamp: {!r}".format(value))
    millis = int(match.group(4).ljust(3, "0"))
    return Time.from_components(hours, minutes, seconds, millis)


def format_timestamp(time: Time) -> str:
    time = Time(max(0, time.ms))
    return "{:02d}:{:02d}:{:02d},{:03d}".format(time.hours, time.minutes, time.seconds, time.milliseconds)


def _split_glued_cues(lines: List[str]) -> List[List[str]]:
    """Split a block holding several cues that lack separating blank lines."""
    cues: List[List[str]] = []
    current: List[str] = []
    for line in lines:
        if (
            TIMING_RE.match(line)
            and len(current) > 2
            and current[-1].strip().isdigit()
            and any(TIMING_RE.match(previous) for previous in current[:-1])
        ):
            cues.append(current[:-1])
            current = [current[-1]]
        current.append(line)
    if current:
        cues.append(current)
    return cues


def _parse_cue(lines: List[str]) -> Event:
    index: Optional[int] = None
    if TIMING_RE.match(lines[0]):
        timing_at = 0
    elif len(lines) > 1 and TIMING_RE.match(lines[1]):
        index = int(lines[0].strip())
        timing_at = 1
    else:
        raise ValueError("no timing line")

    match = TIMING_RE.match(lines[timing_at])
    start = parse_timestamp(match.group("start"))
    end = parse_timestamp(match.group("end"))
    settings = match.group("settings").strip() or None
    # a lone BLANK_LINE_FILLER strips to an empty line
    text = "\n".join(line.rstrip() for line in lines[timing_at + 1:])
    return Event.from_runs(start, end, parse_html_markup(text, "subrip"), index=index, settings=settings)


class SubRipFormat(BaseFormat):
    """SubRip handler.

    Args:
        dialect: Tag style for output, "html" or "ass". Defaults to
                 SUBRIP_TAG_DIALECT from the environment.
    """

    format = Format.SUBRIP
    supported_attributes = frozenset({"bold", "italic", "underline", "alignment"})

    def __init__(self, dialect: Optional[str] = None) -> None:
        dialect = (dialect or config.SUBRIP_TAG_DIALECT).lower()
        if dialect not in config.SUBRIP_DIALECTS:
            raise InvalidParameter(
                "Unknown SubRip tag dialect {!r}; expected one of {}".format(
                    dialect, ", ".join(config.SUBRIP_DIALECTS)
                )
            )
        self.dialect = dialect

    @property
    def name(self) -> str:
        return "SubRip"

    def sniff(self, lines: List[str]) -> bool:
        content = [line.strip() for line in lines if line.strip()]
        return len(content) >= 2 and content[0].isdigit() and bool(TIMING_RE.match(content[1]))

    def parse(self, content: str) -> SubRipSubtitle:
        subtitle = SubRipSubtitle()
        for lineno, block in split_blocks(normalize_newlines(content)):
            for cue in _split_glued_cues(block):
                try:
                    subtitle.events.append(_parse_cue(cue))
                except ValueError as exc:
                    logger.debug("Skipping malformed SubRip block at line %d: %s", lineno, exc)
        return subtitle

    def render_text(self, event: Event) -> str:
        if not event.runs:
            return fill_blank_lines(event.text)
        return fill_blank_lines(render_html_markup(self.restrict(event.runs), self.dialect))

    def serialize(self, subtitle: Subtitle) -> str:
        blocks: List[str] = []
        for number, event in enumerate(subtitle.sorted_events(), 1):
            timing = "{} --> {}".format(format_timestamp(event.start), format_timestamp(event.end))
            if event.settings and subtitle.format is Format.SUBRIP:
                timing += " " + event.settings
            blocks.append("{}\n{}\n{}\n".format(number, timing, self.render_text(event)))
        return "\n".join(blocks)

    def build(self, events: List[Event], source: Subtitle) -> SubRipSubtitle:
        subtitle = SubRipSubtitle(events=events)
        renumber(subtitle)
        return subtitle
