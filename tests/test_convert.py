"""Unit tests for the conversion engine.

WHY: Conversion is where formatting is silently lost or invented. Each
target can express a different subset of styling, and ASS/SSA styles
must be folded into inline markup for formats without a style table.

HOW: Tests convert the samples between formats and compare both the
resulting events and the exact serialized text.

RULES:
- The source document must be unchanged after every conversion
"""

import copy
from fractions import Fraction
from itertools import permutations

import pytest

from subtitle_converter.convert import convert
from subtitle_converter.core.ir import (
    AssSubtitle,
    Format,
    MicroDvdSubtitle,
    SsaSubtitle,
    Style,
    StyleRun,
    SubRipSubtitle,
    WebVttSubtitle,
)
from subtitle_converter.core.timing import Time
from subtitle_converter.errors import InvalidParameter
from subtitle_converter.formats import get_format
from subtitle_converter.formats.subrip import SubRipFormat

BOLD_SRT = "1\n00:00:01,000 --> 00:00:02,000\n<b>Hi</b>\n"


def _serialize(subtitle):
    return get_format(subtitle.format).serialize(subtitle)


class TestSubRipSource:

    def test_to_webvtt_keeps_bold(self):
        result = convert(SubRipFormat().parse(BOLD_SRT), Format.WEBVTT)
        assert isinstance(result, WebVttSubtitle)
        assert result.events[0].runs == [StyleRun("Hi", bold=True)]
        assert _serialize(result) == "WEBVTT\n\n1\n00:00:01.000 --> 00:00:02.000\n<b>Hi</b>\n"

    def test_to_microdvd_drops_bold(self):
        result = convert(SubRipFormat().parse(BOLD_SRT), "sub", frame_rate=25)
        assert isinstance(result, MicroDvdSubtitle)
        assert result.frame_rate == Fraction(25)
        assert result.events[0].text == "Hi"
        assert result.events[0].runs == []
        assert _serialize(result) == "{25}{50}Hi\n"

    def test_to_ass_keeps_colour(self):
        subtitle = SubRipFormat().parse('1\n00:00:01,000 --> 00:00:02,000\n<font color="#ff0000">Red</font>\n')
        result = convert(subtitle, Format.ASS)
        assert result.events[0].style_id == "Default"
        assert "Default,,0,0,0,,{\\c&H0000FF&}Red" in _serialize(result)

    def test_source_unchanged(self):
        subtitle = SubRipFormat().parse(BOLD_SRT)
        before = copy.deepcopy(subtitle)
        convert(subtitle, Format.WEBVTT)
        assert subtitle == before

    @pytest.mark.parametrize("rate", [0, -1, "fast"])
    def test_invalid_frame_rate(self, rate):
        with pytest.raises(InvalidParameter):
            convert(SubRipFormat().parse(BOLD_SRT), Format.MICRODVD, frame_rate=rate)

    def test_unknown_target(self, srt_subtitle):
        with pytest.raises(InvalidParameter):
            convert(srt_subtitle, "txt")


class TestSubStationSource:

    def test_ass_to_srt_folds_styles(self, ass_subtitle):
        result = convert(ass_subtitle, Format.SUBRIP)
        assert isinstance(result, SubRipSubtitle)
        assert _serialize(result) == (
            "1\n00:00:01,000 --> 00:00:02,500\n- Oh\n<b><i>- That's right</i></b>\n"
            "\n"
            "2\n00:00:03,000 --> 00:00:04,000\n{\\an8}<b>Top line, with comma</b>\n"
        )

    def test_ass_to_vtt_maps_actor_to_voice(self, ass_subtitle):
        result = convert(ass_subtitle, Format.WEBVTT)
        assert result.header_text == " - Sample"
        assert _serialize(result) == (
            "WEBVTT - Sample\n"
            "\n"
            "00:00:01.000 --> 00:00:02.500\n"
            "<v NTP>- Oh\n<b><i>- That's right</i></b></v>\n"
            "\n"
            "00:00:03.000 --> 00:00:04.000\n"
            "<b>Top line, with comma</b>\n"
        )

    def test_ssa_to_ass_converts_style_table(self, ssa_subtitle):
        result = convert(ssa_subtitle, Format.ASS)
        assert isinstance(result, AssSubtitle)
        assert result.script_info == {"ScriptType": "v4.00+", "Title": "Old"}
        sign = result.style("Sign")
        assert sign.alignment == 8
        assert sign.primary_colour == "&H00FFFFFF"
        assert [event.style_id for event in result.events] == ["Default", "Sign"]
        assert all(event.extra == {} for event in result.events)
        output = _serialize(result)
        assert "[V4+ Styles]" in output
        assert "Dialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hello {\\i1}there" in output

    def test_ass_to_ssa(self, ass_subtitle):
        result = convert(ass_subtitle, Format.SSA)
        assert isinstance(result, SsaSubtitle)
        assert result.style("Top").alignment == 6
        assert [kind for kind, _ in result.other_events] == ["Comment"]
        output = _serialize(result)
        assert "[V4 Styles]" in output
        assert "Dialogue: Marked=0,0:00:01.00,0:00:02.50,Default,NTP,0,0,0,,- Oh\\N{\\b1\\i1\\c&HFF2022&}- That's right" in output

    def test_ssa_to_microdvd_folds_italic_style(self, ssa_subtitle):
        result = convert(ssa_subtitle, Format.MICRODVD, frame_rate=25)
        assert _serialize(result) == "{25}{50}Hello there\n{75}{100}{y:i}A sign\n"

    @pytest.mark.parametrize("target, expected", [
        (Format.SUBRIP, "1\n00:00:01,000 --> 00:00:02,000\nFirst\n\u00a0\nSecond\n"),
        (Format.WEBVTT, "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\nFirst\n\u00a0\nSecond\n"),
    ])
    def test_empty_line_stays_inside_cue(self, target, expected):
        subtitle = get_format("ass").parse(
            "[Events]\n"
            "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
            "Dialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,First\\N\\NSecond\n"
        )
        output = _serialize(convert(subtitle, target))
        assert output == expected
        assert [event.text for event in get_format(target).parse(output).events] == ["First\n\nSecond"]

    def test_drawing_dropped_outside_ass(self):
        subtitle = get_format("ass").parse(
            "[Events]\n"
            "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
            "Dialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,{\\p1}m 0 0 l 1 1{\\p0}Text\n"
        )
        result = convert(subtitle, Format.SUBRIP)
        assert result.events[0].text == "Text"
        assert result.events[0].runs == []


class TestWebVttSource:

    def test_vtt_to_ass_maps_voice_to_actor(self, vtt_subtitle):
        result = convert(vtt_subtitle, Format.ASS)
        first = result.events[0]
        assert first.name == "Anna"
        assert first.text == "Hi there"
        assert first.runs == []
        assert result.script_info["Title"] == "Sample"

    def test_vtt_to_ass_fills_substation_defaults(self, vtt_subtitle):
        result = convert(vtt_subtitle, Format.ASS)
        assert result.styles == [Style()]
        assert all(
            (event.style_id, event.layer, event.margin_l, event.margin_r, event.margin_v) == ("Default", 0, 0, 0, 0)
            for event in result.events
        )
        handler = get_format(Format.ASS)
        assert handler.parse(handler.serialize(result)) == result

    def test_vtt_to_srt_drops_identifiers_and_settings(self, vtt_subtitle):
        result = convert(vtt_subtitle, Format.SUBRIP)
        assert [event.index for event in result.events] == [1, 2]
        assert all(event.identifier is None and event.settings is None for event in result.events)
        assert _serialize(result).startswith("1\n00:00:01,000 --> 00:00:02,000\nHi there\n")


class TestSameFormat:

    def test_deep_copy(self, srt_subtitle):
        result = convert(srt_subtitle, Format.SUBRIP)
        assert result == srt_subtitle
        assert result is not srt_subtitle
        assert result.events[0] is not srt_subtitle.events[0]

    def test_microdvd_rate_override(self, microdvd_subtitle):
        result = convert(microdvd_subtitle, Format.MICRODVD, frame_rate=50)
        assert result.frame_rate == Fraction(50)
        assert result.events[0].start == Time(1000)
        assert microdvd_subtitle.frame_rate == Fraction(25)


class TestEveryPair:

    @pytest.mark.parametrize("source, target", list(permutations(list(Format), 2)))
    def test_converts_and_serializes(self, request, source, target):
        fixture = {
            Format.SUBRIP: "srt_subtitle",
            Format.WEBVTT: "vtt_subtitle",
            Format.MICRODVD: "microdvd_subtitle",
            Format.ASS: "ass_subtitle",
            Format.SSA: "ssa_subtitle",
        }[source]
        subtitle = request.getfixturevalue(fixture)
        result = convert(subtitle, target)
        assert result.format is target
        assert len(result) == len(subtitle)
        assert [event.start for event in result.events] == [event.start for event in subtitle.events]
        reparsed = get_format(target, frame_rate=getattr(result, "frame_rate", None)).parse(_serialize(result))
        assert len(reparsed) == len(result)
