"""WebVTT (.vtt) parser and serializer.

WHY: WebVTT is the browser caption format. It looks like SubRip but
adds a mandatory header, optional cue identifiers, cue settings, and
STYLE / REGION / NOTE blocks that must not be mistaken for cues.

HOW: The header block (the ``WEBVTT`` line up to the first blank line)
is kept verbatim. The rest is split into blank-line separated blocks
and each block is classified by its first line.

RULES:
- Timestamps are [HH:]MM:SS.mmm; out-of-range minutes or seconds skip
  the cue
- A block without a ``-->`` line in its first two lines is skipped
- NOTE blocks are dropped; STYLE and REGION blocks before the first
  cue are preserved and re-emitted before the cues
- A missing WEBVTT header is tolerated on input and always written on
  output
- Empty lines inside cue text are written as a lone non-breaking space
  and read back as empty
- Supported inline attributes: bold, italic, underline, voice
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from subtitle_converter.core.ir import (
    Event,
    Format,
    SubRipSubtitle,
    SubStationSubtitle,
    Subtitle,
    WebVttSubtitle,
)
from subtitle_converter.core.markup import parse_html_markup, render_html_markup
from subtitle_converter.core.timing import Time
from subtitle_converter.formats.base import (
    BLANK_LINE_FILLER,
    BaseFormat,
    fill_blank_lines,
    normalize_newlines,
    split_blocks,
)

logger = logging.getLogger(__name__)

_CUE_TIMING_RE = re.compile(r"^\s*(?P<start>[\d:.]+)\s*-->\s*(?P<end>[\d:.]+)(?P<settings>.*)$")
_TIMESTAMP_RE = re.compile(r"^(?:(\d+):)?(\d{1,2}):(\d{1,2})\.(\d{1,3})$")


def parse_timestamp(value: str) -> Time:
    """Parse [HH:]MM:SS.mmm into a Time.

    Raises:
        ValueError: malformed or out-of-range components.
    """
    match = _TIMESTAMP_RE.match(value.strip())
    if not match:
        raise ValueError("Malformed WebVTT timestamp: {!r}".format(value))
    hours = int(match.group(1) or 0)
    minutes, seconds = int(match.group(2)), int(match.group(3))
    if minutes >= 60 or seconds >= 60:
        raise ValueError("Out-of-range WebVTT timestamp: {!r}".format(value))
    return Time.from_components(hours, minutes, seconds, int(match.group(4).ljust(3, "0")))


def format_timestamp(time: Time) -> str:
    time = Time(max(0, time.ms))
    return "{:02d}:{:02d}:{:02d}.{:03d}".format(time.hours, time.minutes, time.seconds, time.milliseconds)


def _is_keyword_line(line: str, keyword: str) -> bool:
    line = line.strip()
    return line == keyword or line.startswith(keyword + " ") or line.startswith(keyword + "\t")


def _parse_cue(lines: List[str]) -> Event:
    identifier: Optional[str] = None
    if "-->" in lines[0]:
        timing_line, payload = lines[0], lines[1:]
    elif len(lines) > 1 and "-->" in lines[1]:
        identifier, timing_line, payload = lines[0].strip(), lines[1], lines[2:]
    else:
        raise ValueError("no cue timing line")

    match = _CUE_TIMING_RE.match(timing_line)
    if not match:
        raise ValueError("malformed cue timing line {!r}".format(timing_line))
    start = parse_timestamp(match.group("start"))
    end = parse_timestamp(match.group("end"))
    settings = match.group("settings").strip() or None
    text = "\n".join("" if line == BLANK_LINE_FILLER else line for line in payload)
    runs = parse_html_markup(text, "webvtt")
    return Event.from_runs(start, end, runs, identifier=identifier, settings=settings)


class WebVttFormat(BaseFormat):
    """WebVTT handler."""

    format = Format.WEBVTT
    supported_attributes = frozenset({"bold", "italic", "underline", "voice"})

    @property
    def name(self) -> str:
        return "WebVTT"

    def sniff(self, lines: List[str]) -> bool:
        return bool(lines) and _is_keyword_line(lines[0], "WEBVTT")

    def parse(self, content: str) -> WebVttSubtitle:
        subtitle = WebVttSubtitle()
        lines = normalize_newlines(content).split("\n")

        body_start = 0
        if lines and _is_keyword_line(lines[0], "WEBVTT"):
            header = [lines[0].strip()[len("WEBVTT"):]]
            body_start = 1
            while body_start < len(lines) and lines[body_start].strip() and "-->" not in lines[body_start]:
                header.append(lines[body_start])
                body_start += 1
            subtitle.header_text = "\n".join(header)

        for lineno, block in split_blocks("\n".join(lines[body_start:])):
            lineno += body_start
            head = block[0]
            if _is_keyword_line(head, "NOTE"):
                continue
            if head.strip() in ("STYLE", "REGION") and "-->" not in "".join(block[:2]):
                if subtitle.events:
                    logger.debug("Dropping %s block after cues at line %d", head.strip(), lineno)
                else:
                    subtitle.blocks.append("\n".join(block))
                continue
            try:
                subtitle.events.append(_parse_cue(block))
            except ValueError as exc:
                logger.debug("Skipping malformed WebVTT block at line %d: %s", lineno, exc)
        return subtitle

    def render_text(self, event: Event) -> str:
        return fill_blank_lines(render_html_markup(self.restrict(event.styled_runs()), "webvtt"))

    def serialize(self, subtitle: Subtitle) -> str:
        header = subtitle.header_text if isinstance(subtitle, WebVttSubtitle) else ""
        parts: List[str] = ["WEBVTT" + header]
        if isinstance(subtitle, WebVttSubtitle):
            parts.extend(subtitle.blocks)
        for event in subtitle.sorted_events():
            cue = ""
            if event.identifier:
                cue += event.identifier + "\n"
            cue += "{} --> {}".format(format_timestamp(event.start), format_timestamp(event.end))
            if event.settings and isinstance(subtitle, WebVttSubtitle):
                cue += " " + event.settings
            cue += "\n" + self.render_text(event)
            parts.append(cue)
        return "\n\n".join(parts) + "\n"

    def build(self, events: List[Event], source: Subtitle) -> WebVttSubtitle:
        header = ""
        if isinstance(source, SubStationSubtitle):
            title = source.script_info.get("Title", "").strip()
            if title:
                header = " - " + title
        for event in events:
            # SubRip sequence numbers become cue identifiers
            if isinstance(source, SubRipSubtitle) and event.identifier is None and event.index is not None:
                event.identifier = str(event.index)
            event.index = None
        return WebVttSubtitle(events=events, header_text=header)
