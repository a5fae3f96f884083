"""MicroDVD (.sub) parser and serializer.

WHY: MicroDVD times subtitles in video frames rather than clock time,
so a document is only meaningful together with a frame rate. Files
sometimes declare their own rate on a ``{1}{1}23.976`` first line.

HOW: One event per line, ``{start}{end}text``, with ``|`` separating
visual lines. Frames become milliseconds with the rate from the
handler (explicit hint), else the file's declaration line, else the
configured default. Leading ``{y:i}`` / ``{Y:i}`` codes mark italics.

RULES:
- An explicit frame-rate hint always wins over a declaration line
- Lines that do not start with two frame numbers are skipped
- ``{y:...}`` applies to its own visual line, ``{Y:...}`` to the whole event
- Output frames are round(ms * rate / 1000), never negative
- Supported inline attribute: italic (per visual line)
"""

from __future__ import annotations

import logging
import re
from fractions import Fraction
from typing import List, Optional

from subtitle_converter.core.ir import Event, Format, MicroDvdSubtitle, StyleRun, Subtitle
from subtitle_converter.core.markup import split_lines
from subtitle_converter.core.timing import (
    FrameRateLike,
    Time,
    default_frame_rate,
    format_frame_rate,
    to_frame_rate,
)
from subtitle_converter.errors import InvalidParameter
from subtitle_converter.formats.base import BaseFormat, normalize_newlines

logger = logging.getLogger(__name__)

LINE_RE = re.compile(r"^\{(\d+)\}\{(\d+)\}(.*)$")
_CODE_RE = re.compile(r"^\{([a-zA-Z]):([^{}]*)\}")
_RATE_RE = re.compile(r"^\d+(\.\d+)?$")


def _parse_text(text: str) -> List[StyleRun]:
    runs: List[StyleRun] = []
    whole_event_italic = False
    previous_italic: Optional[bool] = None
    for number, line in enumerate(text.split("|")):
        italic = whole_event_italic
        match = _CODE_RE.match(line)
        while match:
            code, value = match.group(1), match.group(2).lower()
            if code in "yY" and "i" in value:
                italic = True
                if code == "Y":
                    whole_event_italic = True
            line = line[match.end():]
            match = _CODE_RE.match(line)
        if number:
            # the line break is italic only when both neighbouring lines are
            runs.append(StyleRun("\n", italic=bool(previous_italic and italic)))
        runs.append(StyleRun(line, italic=italic))
        previous_italic = italic
    return runs


class MicroDvdFormat(BaseFormat):
    """MicroDVD handler.

    Args:
        frame_rate: Rate used to turn frames into times when parsing and
                    the rate of documents built by conversion. None means
                    "use the file's declaration, else the configured default".
    """

    format = Format.MICRODVD
    supported_attributes = frozenset({"italic"})

    def __init__(self, frame_rate: Optional[FrameRateLike] = None) -> None:
        self.frame_rate: Optional[Fraction] = to_frame_rate(frame_rate) if frame_rate is not None else None

    @property
    def name(self) -> str:
        return "MicroDVD"

    def sniff(self, lines: List[str]) -> bool:
        content = [line.strip() for line in lines if line.strip()]
        return bool(content) and bool(LINE_RE.match(content[0]))

    def parse(self, content: str) -> MicroDvdSubtitle:
        subtitle = MicroDvdSubtitle(frame_rate=self.frame_rate or default_frame_rate())
        pending = []
        for lineno, line in enumerate(normalize_newlines(content).split("\n"), 1):
            if not line.strip():
                continue
            match = LINE_RE.match(line.strip())
            if not match:
                logger.debug("Skipping malformed MicroDVD line %d", lineno)
                continue
            start, end, text = int(match.group(1)), int(match.group(2)), match.group(3)
            if not pending and not subtitle.declares_frame_rate and start == end and start in (0, 1) \
                    and _RATE_RE.match(text.strip()):
                try:
                    declared = to_frame_rate(text.strip())
                except InvalidParameter:
                    logger.debug("Ignoring invalid MicroDVD frame-rate line %d", lineno)
                else:
                    subtitle.declares_frame_rate = True
                    if self.frame_rate is None:
                        subtitle.frame_rate = declared
                    continue
            pending.append((start, end, text))

        rate = subtitle.frame_rate
        for start, end, text in pending:
            try:
                times = Time.from_frames(start, rate), Time.from_frames(end, rate)
            except InvalidParameter:
                logger.debug("Skipping MicroDVD line with out-of-range frames %d-%d", start, end)
                continue
            subtitle.events.append(Event.from_runs(times[0], times[1], _parse_text(text)))
        return subtitle

    def render_text(self, event: Event) -> str:
        rendered = []
        for line in split_lines(self.restrict(event.styled_runs())):
            text = "".join(run.text for run in line)
            if line and all(run.italic for run in line):
                text = "{y:i}" + text
            rendered.append(text)
        return "|".join(rendered)

    def serialize(self, subtitle: Subtitle) -> str:
        rate = subtitle.frame_rate if isinstance(subtitle, MicroDvdSubtitle) else (self.frame_rate or default_frame_rate())
        lines: List[str] = []
        if isinstance(subtitle, MicroDvdSubtitle) and subtitle.declares_frame_rate:
            lines.append("{{1}}{{1}}{}".format(format_frame_rate(rate)))
        for event in subtitle.sorted_events():
            lines.append("{{{}}}{{{}}}{}".format(
                max(0, event.start.to_frames(rate)),
                max(0, event.end.to_frames(rate)),
                self.render_text(event),
            ))
        return "".join(line + "\n" for line in lines)

    def build(self, events: List[Event], source: Subtitle) -> MicroDvdSubtitle:
        return MicroDvdSubtitle(events=events, frame_rate=self.frame_rate or default_frame_rate())
