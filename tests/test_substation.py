"""Unit tests for the ASS / SSA parser and serializer.

WHY: SubStation files carry far more than timed text: script info, a
style table, per-event layers and margins, comments and embedded fonts.
Dropping any of it on a round trip breaks typesetting that took hours.

HOW: Tests parse the ASS and SSA samples, check the style table and
event columns, serialize documents back and re-parse them, and feed
broken lines through the parser.

RULES:
- Round trips compare whole documents where the samples are already in
  canonical form
"""

import pytest

from subtitle_converter.core.ir import AssSubtitle, Event, Style, StyleRun
from subtitle_converter.core.timing import Time
from subtitle_converter.formats.ass import AssFormat
from subtitle_converter.formats.ssa import SsaFormat
from subtitle_converter.formats.substation import format_timestamp, parse_timestamp


class TestTimestamps:

    def test_parse(self):
        assert parse_timestamp("1:02:03.45") == Time(3723450)
        assert parse_timestamp("0:00:01.5") == Time(1500)

    def test_format_truncates_to_centiseconds(self):
        assert format_timestamp(Time(3723456)) == "1:02:03.45"
        assert format_timestamp(Time(-10)) == "0:00:00.00"


class TestAssParse:

    def test_script_info(self, ass_subtitle):
        assert ass_subtitle.script_info == {
            "Title": "Sample",
            "ScriptType": "v4.00+",
            "PlayResX": "1280",
            "PlayResY": "720",
        }

    def test_styles(self, ass_subtitle):
        assert [style.name for style in ass_subtitle.styles] == ["Default", "Top"]
        top = ass_subtitle.style("Top")
        assert top.bold
        assert top.alignment == 8
        assert top.primary_colour == "&H00FFFFFF"
        assert ass_subtitle.style("*Top") is top

    def test_dialogue_events(self, ass_subtitle):
        first, second = ass_subtitle.events
        assert (first.start, first.end) == (Time(1000), Time(2500))
        assert (first.layer, first.style_id, first.name, first.effect) == (0, "Default", "NTP", None)
        assert (first.margin_l, first.margin_r, first.margin_v) == (0, 0, 0)
        assert first.runs == [
            StyleRun("- Oh\n"),
            StyleRun("- That's right", bold=True, italic=True, color="#2220FF"),
        ]
        assert second.text == "Top line, with comma"
        assert second.style_id == "Top"

    def test_comment_kept_separately(self, ass_subtitle):
        assert len(ass_subtitle.other_events) == 1
        kind, event = ass_subtitle.other_events[0]
        assert kind == "Comment"
        assert event.text == "a note"

    def test_malformed_lines_skipped(self):
        subtitle = AssFormat().parse(
            "[Events]\n"
            "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
            "Dialogue: 0,0:00:xx.00,0:00:02.00,Default,,0,0,0,,Bad time\n"
            "Dialogue: 0,0:61:00.00,0:62:00.00,Default,,0,0,0,,Out of range\n"
            "Dialogue: 0,0:00:01.00\n"
            "Dialogue: x,0:00:01.00,0:00:02.00,Default,,0,0,0,,Bad layer\n"
            "Bogus: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Unknown kind\n"
            "no colon here\n"
            "Dialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Good\n"
        )
        assert [event.text for event in subtitle.events] == ["Good"]

    def test_malformed_position_tag_keeps_event(self):
        handler = AssFormat()
        subtitle = handler.parse(
            "[Events]\n"
            "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
            "Dialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,{\\pos(.,5)}Hello\n"
        )
        assert subtitle.events[0].runs == [StyleRun("Hello", overrides="\\pos(.,5)")]
        assert "Default,,0,0,0,,{\\pos(.,5)}Hello" in handler.serialize(subtitle)

    def test_unknown_columns_preserved(self):
        handler = AssFormat()
        subtitle = handler.parse(
            "[Events]\n"
            "Format: Layer, Start, End, Style, Foo, Text\n"
            "Dialogue: 0,0:00:01.00,0:00:02.00,Default,bar,Hi\n"
        )
        assert subtitle.events[0].extra == {"Foo": "bar"}
        assert "Dialogue: 0,0:00:01.00,0:00:02.00,Default,bar,Hi" in handler.serialize(subtitle)

    def test_raw_sections_preserved(self):
        handler = AssFormat()
        subtitle = handler.parse(
            "[Script Info]\nScriptType: v4.00+\n\n"
            "[Fonts]\nfontname: a.ttf\nABCD\n\n"
            "[Events]\n"
            "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
        )
        assert subtitle.sections == [("Fonts", ["fontname: a.ttf", "ABCD"])]
        assert "[Fonts]\nfontname: a.ttf\nABCD\n" in handler.serialize(subtitle)

    @pytest.mark.parametrize("garbage", [
        "",
        "[Events]",
        "[Events]\nFormat:\nDialogue: ,,,",
        "[V4+ Styles]\nFormat: Name, Fontsize\nStyle: x,1e999",
        "[Events]\nDialogue: 0,99999999999999999999:00:00.00,0:00:01.00,D,,0,0,0,,x",
        "[Events]\nDialogue: 0,0:00:01.00,0:00:02.00,D,,1e999,0,0,,x",
    ])
    def test_garbage_never_raises(self, garbage):
        AssFormat().parse(garbage)


class TestSsaParse:

    def test_styles_and_legacy_alignment(self, ssa_subtitle):
        sign = ssa_subtitle.style("Sign")
        assert sign.italic
        assert sign.alignment == 6
        assert sign.primary_colour == "16777215"

    def test_events(self, ssa_subtitle):
        first, second = ssa_subtitle.events
        assert first.extra == {"Marked": "Marked=0"}
        assert first.margin_l == 0
        assert first.runs == [StyleRun("Hello "), StyleRun("there", italic=True)]
        assert second.style_id == "Sign"


class TestSubStationSerialize:

    def test_ass_round_trip(self, ass_subtitle):
        handler = AssFormat()
        assert handler.parse(handler.serialize(ass_subtitle)) == ass_subtitle

    def test_ssa_round_trip(self, ssa_subtitle):
        handler = SsaFormat()
        assert handler.parse(handler.serialize(ssa_subtitle)) == ssa_subtitle

    def test_ass_output_layout(self, ass_subtitle):
        output = AssFormat().serialize(ass_subtitle)
        assert output.startswith("[Script Info]\nTitle: Sample\nScriptType: v4.00+\n")
        assert output.index("[V4+ Styles]") < output.index("[Events]")
        assert (
            "Style: Top,Arial,20,&H00FFFFFF,&H000000FF,&H00000000,&H00000000,"
            "-1,0,0,0,100,100,0,0,1,2,2,8,10,10,10,1"
        ) in output
        assert "Dialogue: 0,0:00:01.00,0:00:02.50,Default,NTP,0,0,0,,- Oh\\N{\\b1\\i1\\c&HFF2022&}- That's right" in output
        assert "Comment: 0,0:00:05.00,0:00:06.00,Default,,0,0,0,,a note" in output

    def test_ssa_output_uses_legacy_tags(self):
        subtitle = SsaFormat().parse(
            "[Events]\n"
            "Format: Marked, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
            "Dialogue: Marked=0,0:00:01.00,0:00:02.00,Default,,0,0,0,,{\\a6}Top\n"
        )
        assert "Default,,0,0,0,,{\\a6}Top" in SsaFormat().serialize(subtitle)

    def test_empty_style_table_writes_default(self):
        output = AssFormat().serialize(AssSubtitle(events=[Event(0, 1000, "x")]))
        assert "[Script Info]\nScriptType: v4.00+\n" in output
        assert (
            "Style: Default,Arial,20,&H00FFFFFF,&H000000FF,&H00000000,&H00000000,"
            "0,0,0,0,100,100,0,0,1,2,2,2,10,10,10,1"
        ) in output
        assert output.endswith("Dialogue: 0,0:00:00.00,0:00:01.00,Default,,0,0,0,,x\n")

    def test_unknown_style_falls_back_to_default(self):
        subtitle = AssSubtitle(
            events=[Event(0, 1000, "x", style_id="Ghost")],
            styles=[Style(name="Main"), Style()],
        )
        assert "Dialogue: 0,0:00:00.00,0:00:01.00,Default,,0,0,0,,x" in AssFormat().serialize(subtitle)

    def test_missing_default_falls_back_to_first_style(self):
        subtitle = AssSubtitle(events=[Event(0, 1000, "x", style_id="Ghost")], styles=[Style(name="Main")])
        assert "Dialogue: 0,0:00:00.00,0:00:01.00,Main,,0,0,0,,x" in AssFormat().serialize(subtitle)

    def test_serialize_leaves_document_untouched(self):
        subtitle = AssSubtitle(events=[Event(1000, 2000, "Hi")])
        AssFormat().serialize(subtitle)
        assert subtitle.styles == []
        assert subtitle.events[0].layer is None


class TestNormalize:

    def test_fills_written_defaults(self):
        subtitle = AssSubtitle(events=[Event(1000, 2000, "Hi")], other_events=[("Comment", Event(0, 500, "c"))])
        subtitle.normalize()
        assert subtitle.styles == [Style()]
        for event in (subtitle.events[0], subtitle.other_events[0][1]):
            assert (event.style_id, event.layer, event.margin_l, event.margin_r, event.margin_v) == (
                "Default", 0, 0, 0, 0,
            )

    def test_unknown_style_becomes_fallback(self):
        subtitle = AssSubtitle(
            events=[Event(0, 1000, "x", style_id="Ghost"), Event(0, 1000, "y", style_id="*Main")],
            styles=[Style(name="Main")],
        )
        subtitle.normalize()
        assert [event.style_id for event in subtitle.events] == ["Main", "*Main"]

    def test_constructed_document_round_trips(self):
        subtitle = AssSubtitle(events=[Event(1000, 2000, "Hi")])
        subtitle.normalize()
        handler = AssFormat()
        assert handler.parse(handler.serialize(subtitle)) == subtitle


class TestSubStationSniff:

    def test_ass_vs_ssa(self, ass_text, ssa_text):
        ass_lines, ssa_lines = ass_text.split("\n"), ssa_text.split("\n")
        assert AssFormat().sniff(ass_lines)
        assert not SsaFormat().sniff(ass_lines)
        assert SsaFormat().sniff(ssa_lines)
        assert not AssFormat().sniff(ssa_lines)

    def test_events_header_alone_is_ass(self):
        assert AssFormat().sniff(["[Events]", "Format: Layer, Start, End, Style, Text"])
