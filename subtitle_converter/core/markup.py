"""Inline markup parsing and rendering shared by the format modules.

WHY: SubRip, WebVTT and SubStation each embed formatting in the text
itself (``<b>``, ``{b}``, ``{\\b1}``). Parsers must turn that markup into
StyleRuns and serializers must turn runs back into markup, and SubRip
files routinely mix HTML-style and SubStation-style tags. Keeping all
tag handling in one module lets every format share the same state
machine.

HOW: Parsing walks the text token by token, keeping a dict of the
current run attributes; every text token becomes a StyleRun carrying a
snapshot of that dict. HTML-style tags push onto a small stack so close
tags restore the previous value. SubStation override blocks set values
absolutely. Rendering diffs consecutive runs and emits only the tags
that change.

RULES:
- Unknown tags are dropped, never shown as text
- Colours are normalized to "#RRGGBB"; SubStation colours are &HBBGGRR
- SubStation alignment in runs is always numpad (``\\an``); the legacy
  SSA ``\\a`` value is converted on the way in and out
- Unmodelled SubStation override tags are kept verbatim in
  StyleRun.overrides
"""

from __future__ import annotations

import html
import re
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from subtitle_converter.core.ir import StyleRun, normalize_runs

# ---------------------------------------------------------------------------
# Colours and alignment
# ---------------------------------------------------------------------------

HTML_COLOUR_NAMES: Dict[str, str] = {
    "white": "#FFFFFF",
    "black": "#000000",
    "red": "#FF0000",
    "lime": "#00FF00",
    "green": "#008000",
    "blue": "#0000FF",
    "yellow": "#FFFF00",
    "cyan": "#00FFFF",
    "aqua": "#00FFFF",
    "magenta": "#FF00FF",
    "fuchsia": "#FF00FF",
    "silver": "#C0C0C0",
    "gray": "#808080",
    "grey": "#808080",
    "orange": "#FFA500",
}

# SSA legacy alignment -> numpad alignment
LEGACY_TO_NUMPAD: Dict[int, int] = {1: 1, 2: 2, 3: 3, 5: 7, 6: 8, 7: 9, 9: 4, 10: 5, 11: 6}
NUMPAD_TO_LEGACY: Dict[int, int] = {value: key for key, value in LEGACY_TO_NUMPAD.items()}

_HEX_COLOUR_RE = re.compile(r"^#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})$")


def normalize_html_colour(value: str) -> Optional[str]:
    """Parse an HTML colour ("#f00", "ff0000", "red") into "#RRGGBB"."""
    value = value.strip().strip("\"'")
    named = HTML_COLOUR_NAMES.get(value.lower())
    if named:
        return named
    match = _HEX_COLOUR_RE.match(value)
    if not match:
        return None
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(ch * 2 for ch in digits)
    return "#" + digits.upper()


def ass_colour_to_hex(value: str) -> Optional[str]:
    """Convert a SubStation colour (&HAABBGGRR&, &HBBGGRR or SSA decimal) to "#RRGGBB"."""
    value = value.strip().rstrip("&")
    try:
        if value[:2].lower() == "&h":
            number = int(value[2:], 16)
        else:
            number = int(value)
    except ValueError:
        return None
    red = number & 0xFF
    green = (number >> 8) & 0xFF
    blue = (number >> 16) & 0xFF
    return "#{:02X}{:02X}{:02X}".format(red, green, blue)


def hex_to_ass_colour(value: str, alpha: bool = False) -> str:
    """Convert "#RRGGBB" into an override-tag colour (&HBBGGRR&) or a style colour (&H00BBGGRR)."""
    digits = value.lstrip("#")
    red, green, blue = digits[0:2], digits[2:4], digits[4:6]
    if alpha:
        return "&H00" + (blue + green + red).upper()
    return "&H{}&".format((blue + green + red).upper())


def normalize_ass_colour(value: str) -> str:
    """Rewrite any SubStation colour as &HAABBGGRR, keeping the alpha byte."""
    text = value.strip().rstrip("&")
    try:
        if text[:2].lower() == "&h":
            number = int(text[2:], 16)
        else:
            number = int(text)
    except ValueError:
        return value
    return "&H{:08X}".format(number & 0xFFFFFFFF)


# ---------------------------------------------------------------------------
# Line splitting
# ---------------------------------------------------------------------------


def split_lines(runs: List[StyleRun]) -> List[List[StyleRun]]:
    """Split runs at newlines into one run list per visual line."""
    lines: List[List[StyleRun]] = [[]]
    for run in runs:
        parts = run.text.split("\n")
        for number, part in enumerate(parts):
            if number:
                lines.append([])
            if part:
                lines[-1].append(replace(run, text=part))
    return lines


# ---------------------------------------------------------------------------
# SubStation override tags
# ---------------------------------------------------------------------------

_OVERRIDE_TAG_RE = re.compile(r"^(pos|an|1c|c|b|i|u|s|r|p|a)(.*)$", re.DOTALL)
_POSITION_RE = re.compile(r"^\(\s*(-?[\d.]+)\s*,\s*(-?[\d.]+)\s*\)$")
_DIGITS_RE = re.compile(r"^(-?\d+)?$")
_KARAOKE_RE = re.compile(r"^(k|K|kf|ko)\d")


def _split_override_block(block: str) -> List[str]:
    """Split the inside of a ``{...}`` block into tags (without backslashes).

    Parenthesised arguments may contain backslashes (``\\t(\\fs20)``).
    Text outside any tag is a comment and is dropped.
    """
    tags: List[str] = []
    index, length = 0, len(block)
    while index < length:
        if block[index] != "\\":
            index += 1
            continue
        end, depth = index + 1, 0
        while end < length:
            char = block[end]
            if char == "(":
                depth += 1
            elif char == ")":
                depth = max(0, depth - 1)
            elif char == "\\" and depth == 0:
                break
            end += 1
        if end > index + 1:
            tags.append(block[index + 1:end])
        index = end
    return tags


def _number(value: str) -> float:
    number = float(value)
    return int(number) if number.is_integer() else number


def _parse_position(value: str) -> Optional[Tuple[float, float]]:
    """Parse the "(x,y)" argument of \\pos; None when it is not two numbers."""
    match = _POSITION_RE.match(value)
    if not match:
        return None
    try:
        return _number(match.group(1)), _number(match.group(2))
    except ValueError:
        # "1.2.3" and "." pass the pattern
        return None


def apply_override_block(block: str, attrs: dict) -> None:
    """Apply the tags of one SubStation override block to ``attrs`` in place."""
    for tag in _split_override_block(block):
        if _KARAOKE_RE.match(tag):
            continue
        match = _OVERRIDE_TAG_RE.match(tag)
        name, value = (match.group(1), match.group(2).strip()) if match else ("", "")
        if name in ("b", "i", "u", "s", "p", "an", "a") and not _DIGITS_RE.match(value):
            name = ""
        if name in ("c", "1c") and value and not value.lower().startswith("&h"):
            name = ""

        if name == "b":
            weight = int(value) if value else 0
            attrs["bold"] = weight == 1 or weight >= 700 or weight == -1
        elif name == "i":
            attrs["italic"] = value == "1"
        elif name == "u":
            attrs["underline"] = value == "1"
        elif name == "s":
            attrs["strikeout"] = value == "1"
        elif name in ("c", "1c"):
            attrs["color"] = ass_colour_to_hex(value) if value else None
        elif name == "pos":
            position = _parse_position(value)
            if position is not None:
                attrs["position"] = position
            else:
                attrs["overrides"] += "\\" + tag
        elif name == "an":
            if value and 1 <= int(value) <= 9:
                attrs["alignment"] = int(value)
        elif name == "a":
            if value and int(value) in LEGACY_TO_NUMPAD:
                attrs["alignment"] = LEGACY_TO_NUMPAD[int(value)]
        elif name == "r":
            attrs.update(StyleRun("").attributes())
            attrs["style"] = value or None
        elif name == "p":
            attrs["drawing"] = bool(value) and int(value) > 0
        else:
            attrs["overrides"] += "\\" + tag


_SUBSTATION_TOKEN_RE = re.compile(r"(\{[^{}]*\})")


def unescape_substation_text(text: str) -> str:
    return text.replace("\\N", "\n").replace("\\n", "\n").replace("\\h", "\u00a0")


def escape_substation_text(text: str) -> str:
    return text.replace("\n", "\\N").replace("\u00a0", "\\h")


def parse_substation_markup(text: str) -> List[StyleRun]:
    """Parse SubStation event text (override blocks, ``\\N``) into runs."""
    attrs = StyleRun("").attributes()
    runs: List[StyleRun] = []
    for token in _SUBSTATION_TOKEN_RE.split(text):
        if not token:
            continue
        if token.startswith("{") and token.endswith("}"):
            apply_override_block(token[1:-1], attrs)
        else:
            runs.append(StyleRun(unescape_substation_text(token), **attrs))
    return normalize_runs(runs)


def _needs_reset(previous: StyleRun, run: StyleRun) -> bool:
    if run.style != previous.style:
        return True
    if previous.position is not None and run.position is None:
        return True
    if previous.alignment is not None and run.alignment is None:
        return True
    return not run.overrides.startswith(previous.overrides)


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _override_tags(previous: StyleRun, run: StyleRun, legacy_alignment: bool) -> List[str]:
    tags: List[str] = []
    if _needs_reset(previous, run):
        tags.append("\\r" + (run.style or ""))
        previous = StyleRun("", style=run.style)
    for attribute, tag in (("bold", "b"), ("italic", "i"), ("underline", "u"), ("strikeout", "s")):
        if getattr(run, attribute) != getattr(previous, attribute):
            tags.append("\\{}{}".format(tag, 1 if getattr(run, attribute) else 0))
    if run.color != previous.color:
        tags.append("\\c" + hex_to_ass_colour(run.color) if run.color else "\\c")
    if run.position is not None and run.position != previous.position:
        tags.append("\\pos({},{})".format(_format_number(run.position[0]), _format_number(run.position[1])))
    if run.alignment is not None and run.alignment != previous.alignment:
        if legacy_alignment:
            tags.append("\\a{}".format(NUMPAD_TO_LEGACY.get(run.alignment, 2)))
        else:
            tags.append("\\an{}".format(run.alignment))
    if run.drawing != previous.drawing:
        tags.append("\\p1" if run.drawing else "\\p0")
    if run.overrides != previous.overrides:
        tags.append(run.overrides[len(previous.overrides):])
    return tags


def render_substation_markup(runs: List[StyleRun], legacy_alignment: bool = False) -> str:
    """Render runs as SubStation event text, emitting only changed tags."""
    parts: List[str] = []
    previous = StyleRun("")
    for run in runs:
        tags = _override_tags(previous, run, legacy_alignment)
        if tags:
            parts.append("{" + "".join(tags) + "}")
        parts.append(escape_substation_text(run.text))
        previous = run
    return "".join(parts)


# ---------------------------------------------------------------------------
# HTML-style markup (SubRip, WebVTT)
# ---------------------------------------------------------------------------

_HTML_TOKEN_RE = re.compile(r"(<[^<>]*>)")
_SUBRIP_TOKEN_RE = re.compile(r"(<[^<>]*>|\{[^{}]*\})")
_HTML_TAG_RE = re.compile(r"^<\s*(/?)\s*([a-zA-Z]+)([^>]*)>$")
_BRACKET_TAG_RE = re.compile(r"^\{\s*(/?)\s*([a-zA-Z])\s*\}$")
_FONT_COLOUR_RE = re.compile(r"color\s*=\s*[\"']?([^\"'\s>]+)", re.IGNORECASE)

_HTML_FLAGS: Dict[str, str] = {
    "b": "bold",
    "i": "italic",
    "u": "underline",
    "s": "strikeout",
    "strike": "strikeout",
    "del": "strikeout",
}

_HTML_OPEN_TAGS: Dict[str, Tuple[str, str]] = {
    "bold": ("<b>", "</b>"),
    "italic": ("<i>", "</i>"),
    "underline": ("<u>", "</u>"),
    "strikeout": ("<s>", "</s>"),
}


class _TagStack:
    """Attribute state for HTML-style tags; close tags restore the prior value."""

    def __init__(self) -> None:
        self.attrs = StyleRun("").attributes()
        self._stack: List[Tuple[str, str, object]] = []

    def open(self, tag: str, attribute: str, value) -> None:
        self._stack.append((tag, attribute, self.attrs[attribute]))
        self.attrs[attribute] = value

    def close(self, tag: str) -> None:
        for position in range(len(self._stack) - 1, -1, -1):
            if self._stack[position][0] == tag:
                _, attribute, previous = self._stack.pop(position)
                self.attrs[attribute] = previous
                return


def _apply_html_tag(token: str, state: _TagStack) -> None:
    match = _HTML_TAG_RE.match(token)
    if not match:
        return
    closing, name, rest = match.group(1), match.group(2).lower(), match.group(3)
    if name in _HTML_FLAGS:
        if closing:
            state.close(name)
        else:
            state.open(name, _HTML_FLAGS[name], True)
    elif name == "font":
        if closing:
            state.close("font")
        else:
            colour = _FONT_COLOUR_RE.search(rest)
            value = normalize_html_colour(colour.group(1)) if colour else None
            state.open("font", "color", value or state.attrs["color"])
    elif name == "v":
        if closing:
            state.close("v")
        else:
            # "<v.loud Esme Tan>": classes follow dots, the voice follows whitespace
            annotation = rest
            if rest.startswith("."):
                parts = rest.split(None, 1)
                annotation = parts[1] if len(parts) > 1 else ""
            state.open("v", "voice", annotation.strip() or None)


def parse_html_markup(text: str, dialect: str = "subrip") -> List[StyleRun]:
    """Parse SubRip or WebVTT cue text into runs.

    RULES:
    - "subrip" also understands ``{b}``/``{/b}`` bracket tags and
      SubStation override blocks such as ``{\\an8}``
    - "webvtt" unescapes character references (``&amp;``) in text
    - Unknown tags (``<c.yellow>``, ``<ruby>``, timestamps) are dropped
    """
    token_re = _SUBRIP_TOKEN_RE if dialect == "subrip" else _HTML_TOKEN_RE
    state = _TagStack()
    runs: List[StyleRun] = []
    for token in token_re.split(text):
        if not token:
            continue
        if token.startswith("<") and token.endswith(">"):
            _apply_html_tag(token, state)
        elif dialect == "subrip" and token.startswith("{") and token.endswith("}"):
            if token.startswith("{\\"):
                apply_override_block(token[1:-1], state.attrs)
            else:
                bracket = _BRACKET_TAG_RE.match(token)
                name = bracket.group(2).lower() if bracket else ""
                if name in _HTML_FLAGS:
                    if bracket.group(1):
                        state.close(name)
                    else:
                        state.open(name, _HTML_FLAGS[name], True)
        else:
            if dialect == "webvtt":
                token = html.unescape(token)
            runs.append(StyleRun(token, **state.attrs))
    return normalize_runs(runs)


def _escape_webvtt(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _html_tag_keys(run: StyleRun) -> List[tuple]:
    keys: List[tuple] = []
    if run.voice:
        keys.append(("voice", run.voice))
    for attribute in ("bold", "italic", "underline", "strikeout"):
        if getattr(run, attribute):
            keys.append((attribute,))
    return keys


def _open_tag(key: tuple) -> str:
    if key[0] == "voice":
        return "<v {}>".format(key[1])
    return _HTML_OPEN_TAGS[key[0]][0]


def _close_tag(key: tuple) -> str:
    if key[0] == "voice":
        return "</v>"
    return _HTML_OPEN_TAGS[key[0]][1]


def render_html_markup(runs: List[StyleRun], dialect: str = "html") -> str:
    """Render runs with HTML-style tags, or ``{\\b1}`` tags for the "ass" dialect.

    RULES:
    - "html" and "webvtt" keep tags properly nested; "webvtt" escapes
      ``& < >`` in text
    - "ass" emits ``{\\b1}...{\\b0}`` toggles
    - alignment, when set, is emitted once as a leading ``{\\anN}``
    """
    parts: List[str] = []
    alignment = next((run.alignment for run in runs if run.alignment is not None), None)
    if alignment is not None:
        parts.append("{{\\an{}}}".format(alignment))

    if dialect == "ass":
        previous = StyleRun("")
        for run in runs:
            for attribute, tag in (("bold", "b"), ("italic", "i"), ("underline", "u"), ("strikeout", "s")):
                if getattr(run, attribute) != getattr(previous, attribute):
                    parts.append("{{\\{}{}}}".format(tag, 1 if getattr(run, attribute) else 0))
            parts.append(run.text)
            previous = run
        return "".join(parts)

    open_keys: List[tuple] = []
    for run in runs:
        wanted = _html_tag_keys(run)
        common = 0
        while common < len(open_keys) and common < len(wanted) and open_keys[common] == wanted[common]:
            common += 1
        for key in reversed(open_keys[common:]):
            parts.append(_close_tag(key))
        for key in wanted[common:]:
            parts.append(_open_tag(key))
        open_keys = wanted
        parts.append(_escape_webvtt(run.text) if dialect == "webvtt" else run.text)
    for key in reversed(open_keys):
        parts.append(_close_tag(key))
    return "".join(parts)
