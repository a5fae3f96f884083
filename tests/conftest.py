"""Shared test fixtures for the subtitle_converter test suite.

WHY: Parser, serializer, sniffer and conversion tests all need the same
small but representative documents. Centralizing them here keeps every
test module working from one set of verified samples.

HOW: Module-level strings hold one sample per format; fixtures return
them raw or already parsed.

RULES:
- Samples deliberately include the awkward parts of each format (no
  trailing blank line, NOTE/STYLE blocks, commas in ASS text, SSA
  legacy alignment, a MicroDVD frame-rate line)
- Fixtures return fresh objects; tests may mutate them
"""

import pytest

from subtitle_converter.formats.ass import AssFormat
from subtitle_converter.formats.microdvd import MicroDvdFormat
from subtitle_converter.formats.ssa import SsaFormat
from subtitle_converter.formats.subrip import SubRipFormat
from subtitle_converter.formats.webvtt import WebVttFormat


SAMPLE_SRT = (
    "1\n"
    "00:00:01,000 --> 00:00:02,500\n"
    "Hello <b>world</b>\n"
    "\n"
    "2\n"
    "00:00:03,000 --> 00:00:04,000\n"
    "Second line\n"
    "with break"
)

SAMPLE_VTT = (
    "WEBVTT - Sample\n"
    "\n"
    "STYLE\n"
    "::cue { color: yellow }\n"
    "\n"
    "NOTE a comment\n"
    "\n"
    "intro\n"
    "00:00:01.000 --> 00:00:02.000 align:start\n"
    "<v Anna>Hi there</v>\n"
    "\n"
    "00:01.500 --> 00:03.000\n"
    "<i>Short</i> &amp; sweet\n"
)

SAMPLE_ASS = (
    "[Script Info]\n"
    "Title: Sample\n"
    "ScriptType: v4.00+\n"
    "PlayResX: 1280\n"
    "PlayResY: 720\n"
    "\n"
    "[V4+ Styles]\n"
    "Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, "
    "Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, "
    "Shadow, Alignment, MarginL, MarginR, MarginV, Encoding\n"
    "Style: Default,Arial,20,&H00FFFFFF,&H000000FF,&H00000000,&H00000000,0,0,0,0,100,100,0,0,1,2,2,2,10,10,10,1\n"
    "Style: Top,Arial,20,&H00FFFFFF,&H000000FF,&H00000000,&H00000000,-1,0,0,0,100,100,0,0,1,2,2,8,10,10,10,1\n"
    "\n"
    "[Events]\n"
    "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
    "Dialogue: 0,0:00:01.00,0:00:02.50,Default,NTP,0,0,0,,- Oh\\N{\\b1\\i1\\1c&HFF2022&}- That's right\n"
    "Dialogue: 0,0:00:03.00,0:00:04.00,Top,,0,0,0,,Top line, with comma\n"
    "Comment: 0,0:00:05.00,0:00:06.00,Default,,0,0,0,,a note\n"
)

SAMPLE_SSA = (
    "[Script Info]\n"
    "Title: Old\n"
    "ScriptType: v4.00\n"
    "\n"
    "[V4 Styles]\n"
    "Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, TertiaryColour, BackColour, "
    "Bold, Italic, BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, AlphaLevel, Encoding\n"
    "Style: Default,Arial,20,16777215,255,0,0,0,0,1,2,2,2,10,10,10,0,1\n"
    "Style: Sign,Arial,20,16777215,255,0,0,0,-1,1,2,2,6,10,10,10,0,1\n"
    "\n"
    "[Events]\n"
    "Format: Marked, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
    "Dialogue: Marked=0,0:00:01.00,0:00:02.00,Default,,0000,0000,0000,,Hello {\\i1}there{\\i0}\n"
    "Dialogue: Marked=0,0:00:03.00,0:00:04.00,Sign,,0000,0000,0000,,A sign\n"
)

SAMPLE_MICRODVD = (
    "{1}{1}25\n"
    "{25}{50}Hello|{y:i}world\n"
    "{75}{100}Second\n"
)


@pytest.fixture
def srt_text():
    return SAMPLE_SRT


@pytest.fixture
def vtt_text():
    return SAMPLE_VTT


@pytest.fixture
def ass_text():
    return SAMPLE_ASS


@pytest.fixture
def ssa_text():
    return SAMPLE_SSA


@pytest.fixture
def microdvd_text():
    return SAMPLE_MICRODVD


@pytest.fixture
def srt_subtitle():
    """Parsed SAMPLE_SRT."""
    return SubRipFormat().parse(SAMPLE_SRT)


@pytest.fixture
def vtt_subtitle():
    """Parsed SAMPLE_VTT."""
    return WebVttFormat().parse(SAMPLE_VTT)


@pytest.fixture
def ass_subtitle():
    """Parsed SAMPLE_ASS."""
    return AssFormat().parse(SAMPLE_ASS)


@pytest.fixture
def ssa_subtitle():
    """Parsed SAMPLE_SSA."""
    return SsaFormat().parse(SAMPLE_SSA)


@pytest.fixture
def microdvd_subtitle():
    """Parsed SAMPLE_MICRODVD (declares 25 fps)."""
    return MicroDvdFormat().parse(SAMPLE_MICRODVD)
