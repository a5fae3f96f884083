"""Intermediate representation dataclasses for subtitle documents.

WHY: Five subtitle formats disagree on almost everything (timing units,
markup, headers, style tables). Conversion is only tractable if every
parser produces the same event model and every serializer consumes it.
The IR is that single, well-typed intermediate form.

HOW: The dataclasses form a small hierarchy:
  StyleRun : a span of text with inline formatting attributes
  Event    : one timed subtitle (plain text or a list of StyleRuns)
  Style    : one entry of an ASS/SSA style table
  Subtitle : a parsed document; one subclass per format owns the
             format's header data next to the shared ``events`` list

RULES:
- Event.start <= Event.end; constructing an event with the two swapped
  swaps them back
- A plain event has ``runs == []`` and its content in ``text``; when
  ``runs`` is non-empty the runs are authoritative and ``text`` holds
  their plain-text projection
- StyleRun.style is a style-table reference; it never owns a Style
- Format-specific metadata an event does not use stays None
- Subtitle subclasses are shallow (one level, plus the ASS/SSA pair
  sharing SubStationSubtitle)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields, replace
from fractions import Fraction
from typing import ClassVar, Dict, FrozenSet, List, Optional, Tuple, Union

from subtitle_converter.core.timing import Time, default_frame_rate
from subtitle_converter.errors import InvalidParameter


class Format(str, enum.Enum):
    """The five supported subtitle formats, keyed by file extension."""

    SUBRIP = "srt"
    WEBVTT = "vtt"
    MICRODVD = "sub"
    ASS = "ass"
    SSA = "ssa"

    @classmethod
    def coerce(cls, value: Union[Format, str]) -> Format:
        """Resolve a Format from an enum member, a key, an alias or an extension."""
        if isinstance(value, Format):
            return value
        key = str(value).strip().lower().lstrip(".")
        key = _FORMAT_ALIASES.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        raise InvalidParameter("Unknown subtitle format: {!r}".format(value))


_FORMAT_ALIASES = {
    "subrip": "srt",
    "webvtt": "vtt",
    "microdvd": "sub",
    "substation": "ssa",
    "advancedsubstation": "ass",
}

SUBSTATION_FORMATS: FrozenSet[Format] = frozenset({Format.ASS, Format.SSA})


# ---------------------------------------------------------------------------
# Inline formatting
# ---------------------------------------------------------------------------


@dataclass
class StyleRun:
    """A span of text sharing one set of inline formatting attributes.

    RULES:
    - color is "#RRGGBB" uppercase, or None for the style default
    - position is an (x, y) override, alignment a numpad value 1-9
    - voice is a WebVTT speaker name
    - style names a style-table entry (SubStation ``\\r`` reset)
    - drawing marks SubStation vector drawing commands, never visible text
    - overrides holds unmodelled SubStation override tags verbatim
    """

    text: str
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikeout: bool = False
    color: Optional[str] = None
    position: Optional[Tuple[float, float]] = None
    alignment: Optional[int] = None
    voice: Optional[str] = None
    style: Optional[str] = None
    drawing: bool = False
    overrides: str = ""

    def attributes(self) -> dict:
        """All formatting attributes (everything except text)."""
        return {name: getattr(self, name) for name in RUN_ATTRIBUTES}

    def same_format(self, other: StyleRun) -> bool:
        return self.attributes() == other.attributes()

    def is_plain(self) -> bool:
        return self.attributes() == _PLAIN_ATTRIBUTES

    def restricted(self, supported: FrozenSet[str]) -> StyleRun:
        """Copy with every attribute outside ``supported`` reset to its default."""
        reset = {
            name: _PLAIN_ATTRIBUTES[name]
            for name in RUN_ATTRIBUTES
            if name not in supported
        }
        return replace(self, **reset)


RUN_ATTRIBUTES: Tuple[str, ...] = tuple(f.name for f in fields(StyleRun) if f.name != "text")
_PLAIN_ATTRIBUTES = {f.name: f.default for f in fields(StyleRun) if f.name != "text"}


def normalize_runs(runs: List[StyleRun]) -> List[StyleRun]:
    """Drop empty runs and merge neighbours with identical attributes."""
    merged: List[StyleRun] = []
    for run in runs:
        if not run.text:
            continue
        if merged and merged[-1].same_format(run):
            merged[-1] = replace(merged[-1], text=merged[-1].text + run.text)
        else:
            merged.append(replace(run))
    return merged


def plain_text(runs: List[StyleRun]) -> str:
    """Visible text of a run list (drawing runs excluded)."""
    return "".join(run.text for run in runs if not run.drawing)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass
class Event:
    """One timed subtitle.

    WHY: Every format boils down to "show this text from start to end".
    Format-specific extras ride along in optional metadata fields so a
    document can be re-serialized in its own format without loss.

    HOW: Parsers build events through ``Event.from_runs()``, which
    normalizes runs and collapses unstyled content to plain text.

    RULES:
    - start/end accept Time or int milliseconds; start > end is swapped
    - index: SubRip sequence number; identifier/settings: WebVTT cue id
      and cue settings (settings also holds SubRip coordinates)
    - style_id, layer, margin_*, effect, name: SubStation event fields
    - extra: SubStation fields not otherwise modelled, keyed by the
      field name from the section's Format line
    """

    start: Time
    end: Time
    text: str = ""
    runs: List[StyleRun] = field(default_factory=list)
    style_id: Optional[str] = None
    layer: Optional[int] = None
    margin_l: Optional[int] = None
    margin_r: Optional[int] = None
    margin_v: Optional[int] = None
    effect: Optional[str] = None
    name: Optional[str] = None
    index: Optional[int] = None
    identifier: Optional[str] = None
    settings: Optional[str] = None
    extra: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.start, Time):
            self.start = Time(self.start)
        if not isinstance(self.end, Time):
            self.end = Time(self.end)
        if self.start > self.end:
            self.start, self.end = self.end, self.start

    @classmethod
    def from_runs(cls, start: Union[Time, int], end: Union[Time, int], runs: List[StyleRun], **metadata) -> Event:
        """Build an event from parsed runs, collapsing unstyled content to plain text."""
        runs = normalize_runs(runs)
        if all(run.is_plain() for run in runs):
            return cls(start, end, text="".join(run.text for run in runs), **metadata)
        return cls(start, end, text=plain_text(runs), runs=runs, **metadata)

    @property
    def duration(self) -> Time:
        return self.end - self.start

    def as_plaintext(self) -> str:
        if self.runs:
            return plain_text(self.runs)
        return self.text

    def styled_runs(self) -> List[StyleRun]:
        """Copies of the runs, or the plain text as one unstyled run."""
        if self.runs:
            return [replace(run) for run in self.runs]
        if self.text:
            return [StyleRun(self.text)]
        return []

    def set_text(self, text: str) -> None:
        """Replace the content with plain text, discarding any runs."""
        self.text = text
        self.runs = []


# ---------------------------------------------------------------------------
# SubStation style table
# ---------------------------------------------------------------------------


@dataclass
class Style:
    """One entry of an ASS/SSA style table.

    RULES:
    - Colours are kept as the raw strings found in the file
      (``&H00FFFFFF`` or SSA decimal values)
    - alignment uses the owning document's convention: numpad for ASS,
      legacy 1-3/5-7/9-11 for SSA
    - outline_colour doubles as SSA's TertiaryColour
    - extra holds fields from the Format line that are not modelled
    """

    name: str = "Default"
    fontname: str = "Arial"
    fontsize: float = 20
    primary_colour: str = "&H00FFFFFF"
    secondary_colour: str = "&H000000FF"
    outline_colour: str = "&H00000000"
    back_colour: str = "&H00000000"
    bold: bool = False
    italic: bool = False
    underline: bool = False
    strikeout: bool = False
    scale_x: float = 100
    scale_y: float = 100
    spacing: float = 0
    angle: float = 0
    border_style: int = 1
    outline: float = 2
    shadow: float = 2
    alignment: int = 2
    margin_l: int = 10
    margin_r: int = 10
    margin_v: int = 10
    alpha_level: int = 0
    encoding: int = 1
    extra: Dict[str, str] = field(default_factory=dict)


ASS_STYLE_FIELDS: Tuple[str, ...] = (
    "Name", "Fontname", "Fontsize", "PrimaryColour", "SecondaryColour",
    "OutlineColour", "BackColour", "Bold", "Italic", "Underline", "StrikeOut",
    "ScaleX", "ScaleY", "Spacing", "Angle", "BorderStyle", "Outline", "Shadow",
    "Alignment", "MarginL", "MarginR", "MarginV", "Encoding",
)

SSA_STYLE_FIELDS: Tuple[str, ...] = (
    "Name", "Fontname", "Fontsize", "PrimaryColour", "SecondaryColour",
    "TertiaryColour", "BackColour", "Bold", "Italic", "BorderStyle", "Outline",
    "Shadow", "Alignment", "MarginL", "MarginR", "MarginV", "AlphaLevel",
    "Encoding",
)

ASS_EVENT_FIELDS: Tuple[str, ...] = (
    "Layer", "Start", "End", "Style", "Name", "MarginL", "MarginR", "MarginV",
    "Effect", "Text",
)

SSA_EVENT_FIELDS: Tuple[str, ...] = (
    "Marked", "Start", "End", "Style", "Name", "MarginL", "MarginR", "MarginV",
    "Effect", "Text",
)

EVENT_KINDS: Tuple[str, ...] = ("Dialogue", "Comment", "Picture", "Sound", "Movie", "Command")


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@dataclass
class Subtitle:
    """A parsed subtitle document: an ordered event list plus format data.

    RULES:
    - ``events`` keeps file order; serializers decide output ordering
    - ``header()`` returns the format's header data (or None)
    """

    events: List[Event] = field(default_factory=list)

    format: ClassVar[Format]

    def header(self):
        return None

    def sorted_events(self) -> List[Event]:
        """Events ordered by start time; ties keep their stored order."""
        return sorted(self.events, key=lambda event: event.start)

    def __len__(self) -> int:
        return len(self.events)


@dataclass
class SubRipSubtitle(Subtitle):
    format: ClassVar[Format] = Format.SUBRIP


@dataclass
class WebVttSubtitle(Subtitle):
    """WebVTT document.

    header_text is everything in the header block after the literal
    ``WEBVTT`` (e.g. " - Title\\nKind: captions"), kept verbatim.
    blocks holds STYLE and REGION blocks verbatim, in file order.
    """

    header_text: str = ""
    blocks: List[str] = field(default_factory=list)

    format: ClassVar[Format] = Format.WEBVTT

    def header(self) -> str:
        return self.header_text


@dataclass
class MicroDvdSubtitle(Subtitle):
    """MicroDVD document; event times were derived from frames at frame_rate."""

    frame_rate: Fraction = field(default_factory=default_frame_rate)
    declares_frame_rate: bool = False

    format: ClassVar[Format] = Format.MICRODVD

    def header(self) -> Fraction:
        return self.frame_rate


@dataclass
class SubStationSubtitle(Subtitle):
    """Shared body of ASS and SSA documents.

    RULES:
    - script_info keeps [Script Info] key/value pairs in file order
    - style_fields / event_fields are the declared Format line columns
    - other_events holds non-Dialogue lines as (kind, Event) pairs
    - sections holds [Fonts], [Graphics] and unknown sections verbatim
    - serialize() writes an empty style table as one stock Default style,
      missing layers and margins as 0 and unknown style names as the
      fallback style; normalize() applies the same defaults to the
      model, and conversion from another format returns normalized
      documents
    """

    script_info: Dict[str, str] = field(default_factory=dict)
    styles: List[Style] = field(default_factory=list)
    style_fields: List[str] = field(default_factory=list)
    event_fields: List[str] = field(default_factory=list)
    other_events: List[Tuple[str, Event]] = field(default_factory=list)
    sections: List[Tuple[str, List[str]]] = field(default_factory=list)

    def header(self) -> Dict[str, str]:
        return self.script_info

    def style(self, name: Optional[str]) -> Optional[Style]:
        """Look up a style by name; a leading ``*`` is ignored."""
        if name is None:
            return None
        for candidate in (name, name.lstrip("*")):
            for style in self.styles:
                if style.name == candidate:
                    return style
        return None

    def resolve_style(self, name: Optional[str]) -> Style:
        """The named style, else "Default", else the first style, else a stock Style."""
        style = self.style(name) or self.style("Default")
        if style is not None:
            return style
        if self.styles:
            return self.styles[0]
        return Style()

    def normalize(self) -> None:
        """Fill in the values serialize() writes for missing fields.

        A document built by hand compares equal to its own re-parsed
        output once normalized.
        """
        if not self.styles:
            self.styles = [Style()]
        fallback = self.resolve_style(None).name
        for event in self.events + [event for _, event in self.other_events]:
            if self.style(event.style_id) is None:
                event.style_id = fallback
            for attribute in ("layer", "margin_l", "margin_r", "margin_v"):
                if getattr(event, attribute) is None:
                    setattr(event, attribute, 0)


@dataclass
class AssSubtitle(SubStationSubtitle):
    script_info: Dict[str, str] = field(default_factory=lambda: {"ScriptType": "v4.00+"})
    style_fields: List[str] = field(default_factory=lambda: list(ASS_STYLE_FIELDS))
    event_fields: List[str] = field(default_factory=lambda: list(ASS_EVENT_FIELDS))

    format: ClassVar[Format] = Format.ASS


@dataclass
class SsaSubtitle(SubStationSubtitle):
    script_info: Dict[str, str] = field(default_factory=lambda: {"ScriptType": "v4.00"})
    style_fields: List[str] = field(default_factory=lambda: list(SSA_STYLE_FIELDS))
    event_fields: List[str] = field(default_factory=lambda: list(SSA_EVENT_FIELDS))

    format: ClassVar[Format] = Format.SSA
