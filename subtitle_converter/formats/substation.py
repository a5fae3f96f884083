"""Shared SubStation Alpha (ASS / SSA) parser and serializer.

WHY: ASS (v4.00+) and SSA (v4.00) share one file structure: INI-like
sections, a style table, and event lines whose columns are declared by
a ``Format:`` line rather than fixed. Both formats differ only in their
default columns, a few style fields and the alignment convention, so
one implementation parameterized by the subclass serves both.

HOW: Lines are read one at a time while tracking the current section.
``Format:`` lines record the declared columns; ``Style:`` and event
lines are split into exactly that many fields (the last column, Text,
keeps any further commas). Known columns map onto Style / Event
attributes; unknown columns go to ``extra`` and are written back in
place. [Fonts], [Graphics] and unknown sections are kept verbatim.

RULES:
- Timestamps are H:MM:SS.cc; output truncates to centiseconds
- A Style or event line with a malformed numeric field or timestamp is
  skipped
- Dialogue lines become ``events``; Comment, Picture, Sound, Movie and
  Command lines are kept in ``other_events``
- The style table is always written before [Events]; an empty table is
  written as one stock "Default" style
- An event whose style is not in the table is written with the
  fallback style ("Default", else the first style)
- Style booleans are written as -1 / 0
"""

from __future__ import annotations

import copy
import logging
import re
from dataclasses import replace
from typing import Callable, ClassVar, Dict, List, Optional, Tuple, Type

from subtitle_converter.core.ir import (
    EVENT_KINDS,
    Event,
    Style,
    SubStationSubtitle,
    Subtitle,
    WebVttSubtitle,
)
from subtitle_converter.core.markup import (
    LEGACY_TO_NUMPAD,
    NUMPAD_TO_LEGACY,
    normalize_ass_colour,
    parse_substation_markup,
    render_substation_markup,
)
from subtitle_converter.core.timing import Time
from subtitle_converter.formats.base import BaseFormat, normalize_newlines

logger = logging.getLogger(__name__)

_SECTION_RE = re.compile(r"^\[(.+)\]$")
_TIMESTAMP_RE = re.compile(r"^(\d+):(\d{1,2}):(\d{1,2})[.:](\d{1,3})$")

_STYLE_SECTIONS = ("v4+ styles", "v4 styles", "v4 styles+")

SCRIPT_INFO_HEADER = "[Script Info]"


def parse_timestamp(value: str) -> Time:
    """Parse H:MM:SS.cc into a Time.

    Raises:
        ValueError: malformed or out-of-range components.
    """
    match = _TIMESTAMP_RE.match(value.strip())
    if not match:
        raise ValueError("Malformed SubStation timestamp: {!r}".format(value))
    hours, minutes, seconds = int(match.group(1)), int(match.group(2)), int(match.group(3))
    if minutes >= 60 or seconds >= 60:
        raise ValueError("Out-of-range SubStation timestamp: {!r}".format(value))
    return Time.from_components(hours, minutes, seconds, int(match.group(4).ljust(3, "0")))


def format_timestamp(time: Time) -> str:
    time = Time(max(0, time.ms))
    return "{}:{:02d}:{:02d}.{:02d}".format(time.hours, time.minutes, time.seconds, time.centiseconds)


def field_key(name: str) -> str:
    """Normalize a Format column name ("Primary Colour" -> "primarycolour")."""
    return name.replace(" ", "").lower()


# ---------------------------------------------------------------------------
# Value codecs
# ---------------------------------------------------------------------------


def _parse_bool(value: str) -> bool:
    return int(float(value)) != 0


def _format_bool(value: bool) -> str:
    return "-1" if value else "0"


def _parse_int(value: str) -> int:
    return int(float(value))


def _parse_float(value: str) -> float:
    number = float(value)
    return int(number) if number.is_integer() else number


def _format_number(value) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


# column key -> (Style attribute, parser, formatter)
_STYLE_COLUMNS: Dict[str, Tuple[str, Callable, Callable]] = {
    "name": ("name", str, str),
    "fontname": ("fontname", str, str),
    "fontsize": ("fontsize", _parse_float, _format_number),
    "primarycolour": ("primary_colour", str, str),
    "secondarycolour": ("secondary_colour", str, str),
    "outlinecolour": ("outline_colour", str, str),
    "tertiarycolour": ("outline_colour", str, str),
    "backcolour": ("back_colour", str, str),
    "bold": ("bold", _parse_bool, _format_bool),
    "italic": ("italic", _parse_bool, _format_bool),
    "underline": ("underline", _parse_bool, _format_bool),
    "strikeout": ("strikeout", _parse_bool, _format_bool),
    "scalex": ("scale_x", _parse_float, _format_number),
    "scaley": ("scale_y", _parse_float, _format_number),
    "spacing": ("spacing", _parse_float, _format_number),
    "angle": ("angle", _parse_float, _format_number),
    "borderstyle": ("border_style", _parse_int, str),
    "outline": ("outline", _parse_float, _format_number),
    "shadow": ("shadow", _parse_float, _format_number),
    "alignment": ("alignment", _parse_int, str),
    "marginl": ("margin_l", _parse_int, str),
    "marginr": ("margin_r", _parse_int, str),
    "marginv": ("margin_v", _parse_int, str),
    "alphalevel": ("alpha_level", _parse_int, str),
    "encoding": ("encoding", _parse_int, str),
}

_EXTRA_DEFAULTS = {"marked": "Marked=0"}


def _split_fields(value: str, count: int) -> List[str]:
    parts = value.split(",", max(count - 1, 0))
    if len(parts) < count:
        raise ValueError("expected {} fields, found {}".format(count, len(parts)))
    return parts


def parse_style(value: str, columns: List[str]) -> Style:
    style = Style()
    for column, raw in zip(columns, _split_fields(value, len(columns))):
        spec = _STYLE_COLUMNS.get(field_key(column))
        if spec is None:
            style.extra[column] = raw.strip()
            continue
        attribute, parser, _ = spec
        setattr(style, attribute, parser(raw.strip()))
    return style


def format_style(style: Style, columns: List[str]) -> str:
    values = []
    for column in columns:
        spec = _STYLE_COLUMNS.get(field_key(column))
        if spec is None:
            values.append(style.extra.get(column, ""))
        else:
            attribute, _, formatter = spec
            values.append(formatter(getattr(style, attribute)))
    return "Style: " + ",".join(values)


def _optional_int(value: str) -> Optional[int]:
    return _parse_int(value) if value.strip() else None


def parse_event(value: str, columns: List[str]) -> Event:
    """Parse the part of an event line after ``Kind:`` using the declared columns."""
    fields: Dict[str, object] = {"extra": {}}
    start = end = Time(0)
    text = ""
    for column, raw in zip(columns, _split_fields(value, len(columns))):
        key = field_key(column)
        if key == "text":
            text = raw
            continue
        raw = raw.strip()
        if key == "start":
            start = parse_timestamp(raw)
        elif key == "end":
            end = parse_timestamp(raw)
        elif key == "layer":
            fields["layer"] = _optional_int(raw)
        elif key == "style":
            fields["style_id"] = raw or None
        elif key in ("name", "actor"):
            fields["name"] = raw or None
        elif key in ("marginl", "marginr", "marginv"):
            fields["margin_" + key[-1]] = _optional_int(raw)
        elif key == "effect":
            fields["effect"] = raw or None
        else:
            fields["extra"][column] = raw
    return Event.from_runs(start, end, parse_substation_markup(text), **fields)


class SubStationFormat(BaseFormat):
    """Shared ASS / SSA handler; subclasses set the document class and defaults."""

    subtitle_class: ClassVar[Type[SubStationSubtitle]]
    styles_header: ClassVar[str]
    script_type: ClassVar[str]
    legacy_alignment: ClassVar[bool] = False

    # Sniffing

    @staticmethod
    def _has_substation_header(lines: List[str]) -> bool:
        headers = {line.strip().lower() for line in lines}
        return "[script info]" in headers or "[events]" in headers

    @staticmethod
    def _looks_like_ssa(lines: List[str]) -> bool:
        for line in lines:
            stripped = line.strip().lower()
            if stripped == "[v4 styles]":
                return True
            key, sep, value = stripped.partition(":")
            if sep and key.strip() == "scripttype":
                return value.strip() == "v4.00"
        return False

    # Parsing

    def parse(self, content: str) -> SubStationSubtitle:
        subtitle = self.subtitle_class()
        subtitle.script_info = {}
        style_columns = list(subtitle.style_fields)
        event_columns = list(subtitle.event_fields)
        section = ""
        raw_section: Optional[List[str]] = None

        for lineno, raw in enumerate(normalize_newlines(content).split("\n"), 1):
            line = raw.strip()
            header = _SECTION_RE.match(line)
            if header:
                section = header.group(1).strip().lower()
                raw_section = None
                if section not in ("script info", "events") and section not in _STYLE_SECTIONS:
                    raw_section = []
                    subtitle.sections.append((header.group(1).strip(), raw_section))
                continue
            if raw_section is not None:
                if line:
                    raw_section.append(raw.rstrip())
                continue
            if not line or line.startswith(";"):
                continue

            key, sep, value = raw.lstrip().partition(":")
            if not sep:
                logger.debug("Skipping SubStation line %d without a key", lineno)
                continue
            key = key.strip()
            value = value[1:] if value.startswith(" ") else value

            if section == "script info":
                if key != "!":
                    subtitle.script_info[key] = value.strip()
            elif section in _STYLE_SECTIONS:
                if key.lower() == "format":
                    style_columns = [column.strip() for column in value.split(",")]
                elif key.lower() == "style":
                    try:
                        subtitle.styles.append(parse_style(value, style_columns))
                    except (ValueError, OverflowError) as exc:
                        logger.debug("Skipping malformed style at line %d: %s", lineno, exc)
            elif section == "events":
                if key.lower() == "format":
                    event_columns = [column.strip() for column in value.split(",")]
                    continue
                kind = next((name for name in EVENT_KINDS if name.lower() == key.lower()), None)
                if kind is None:
                    logger.debug("Skipping unknown event kind %r at line %d", key, lineno)
                    continue
                try:
                    event = parse_event(value, event_columns)
                except (ValueError, OverflowError) as exc:
                    logger.debug("Skipping malformed %s at line %d: %s", kind, lineno, exc)
                    continue
                if kind == "Dialogue":
                    subtitle.events.append(event)
                else:
                    subtitle.other_events.append((kind, event))

        subtitle.style_fields = style_columns
        subtitle.event_fields = event_columns
        return subtitle

    # Serialization

    def render_text(self, event: Event) -> str:
        runs = self.restrict(event.styled_runs())
        return render_substation_markup(runs, legacy_alignment=self.legacy_alignment)

    def _format_event(self, kind: str, event: Event, columns: List[str]) -> str:
        values = []
        for column in columns:
            key = field_key(column)
            if key == "start":
                values.append(format_timestamp(event.start))
            elif key == "end":
                values.append(format_timestamp(event.end))
            elif key == "layer":
                values.append(str(event.layer))
            elif key == "style":
                values.append(event.style_id)
            elif key in ("name", "actor"):
                values.append(event.name or "")
            elif key in ("marginl", "marginr", "marginv"):
                values.append(str(getattr(event, "margin_" + key[-1])))
            elif key == "effect":
                values.append(event.effect or "")
            elif key == "text":
                values.append(self.render_text(event))
            else:
                values.append(event.extra.get(column, _EXTRA_DEFAULTS.get(key, "")))
        return "{}: {}".format(kind, ",".join(values))

    def serialize(self, subtitle: Subtitle) -> str:
        if isinstance(subtitle, SubStationSubtitle):
            document = copy.deepcopy(subtitle)
        else:
            document = self.build(copy.deepcopy(subtitle.events), subtitle)
        document.normalize()

        style_columns = document.style_fields or list(self.subtitle_class().style_fields)
        event_columns = document.event_fields or list(self.subtitle_class().event_fields)

        lines = [SCRIPT_INFO_HEADER]
        if "ScriptType" not in document.script_info:
            lines.append("ScriptType: {}".format(self.script_type))
        for key, value in document.script_info.items():
            lines.append("{}: {}".format(key, value))

        lines.extend(["", self.styles_header, "Format: " + ", ".join(style_columns)])
        lines.extend(format_style(style, style_columns) for style in document.styles)

        for name, section_lines in document.sections:
            lines.extend(["", "[{}]".format(name)])
            lines.extend(section_lines)

        lines.extend(["", "[Events]", "Format: " + ", ".join(event_columns)])
        for event in document.events:
            lines.append(self._format_event("Dialogue", event, event_columns))
        for kind, event in document.other_events:
            lines.append(self._format_event(kind, event, event_columns))
        return "\n".join(lines) + "\n"

    # Conversion

    def _convert_style(self, style: Style, source: SubStationSubtitle) -> Style:
        converted = replace(style, extra={})
        if source.format is not self.format:
            if self.legacy_alignment:
                converted.alignment = NUMPAD_TO_LEGACY.get(style.alignment, 2)
                converted.underline = converted.strikeout = False
            else:
                converted.alignment = LEGACY_TO_NUMPAD.get(style.alignment, 2)
                for attribute in ("primary_colour", "secondary_colour", "outline_colour", "back_colour"):
                    setattr(converted, attribute, normalize_ass_colour(getattr(converted, attribute)))
        return converted

    def build(self, events: List[Event], source: Subtitle) -> SubStationSubtitle:
        document = self.subtitle_class(events=events)
        if isinstance(source, SubStationSubtitle):
            document.styles = [self._convert_style(style, source) for style in source.styles]
            info = {key: value for key, value in source.script_info.items() if key != "ScriptType"}
            document.script_info.update(info)
            if source.format is self.format:
                document.sections = [(name, list(lines)) for name, lines in source.sections]
            else:
                document.sections = [
                    (name, list(lines)) for name, lines in source.sections
                    if name.lower() in ("fonts", "graphics")
                ]
            return document

        document.styles = [Style()]
        for event in events:
            event.style_id = "Default"
        if isinstance(source, WebVttSubtitle):
            title = source.header_text.split("\n", 1)[0].strip().lstrip("-").strip()
            if title:
                document.script_info["Title"] = title
        return document
