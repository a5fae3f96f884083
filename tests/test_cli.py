"""Tests for the command-line interface.

WHY: The CLI is the user-facing surface. Wrong output names would
overwrite source files, and unhandled exceptions would print tracebacks
instead of a one-line error.

HOW: main() is called with argv lists against files in tmp_path; status
output is captured from stderr with capsys.
"""

import pytest

from subtitle_converter.cli import _resolve_output_path, build_parser, main
from subtitle_converter.pipeline import load_subtitle


@pytest.fixture
def srt_file(tmp_path, srt_text):
    path = tmp_path / "movie.srt"
    path.write_text(srt_text, encoding="utf-8")
    return path


class TestParser:

    def test_defaults(self):
        args = build_parser().parse_args(["movie.srt"])
        assert args.target is None
        assert args.shift == 0
        assert not args.strip_formatting

    def test_rejects_unknown_target(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["movie.srt", "--to", "txt"])


class TestOutputPath:

    def test_conflict_adds_suffix(self, tmp_path):
        (tmp_path / "movie.srt").write_text("x")
        (tmp_path / "movie-2.srt").write_text("x")
        assert _resolve_output_path("movie", "srt", tmp_path) == tmp_path / "movie-3.srt"

    def test_no_conflict(self, tmp_path):
        assert _resolve_output_path("movie", "vtt", tmp_path) == tmp_path / "movie.vtt"


class TestMain:

    def test_convert_to_webvtt(self, srt_file, capsys):
        main([str(srt_file), "--to", "vtt"])
        output = srt_file.with_suffix(".vtt")
        assert output.read_text(encoding="utf-8").startswith("WEBVTT\n\n1\n00:00:01.000 --> 00:00:02.500\n")
        assert "Saved: movie.vtt" in capsys.readouterr().err

    def test_shift_same_format_does_not_overwrite(self, srt_file, srt_text):
        main([str(srt_file), "--shift", "-500", "--strip-formatting"])
        assert srt_file.read_text(encoding="utf-8") == srt_text
        shifted = load_subtitle(srt_file.parent / "movie-2.srt")
        assert shifted.events[0].start.ms == 500
        assert shifted.events[0].runs == []

    def test_microdvd_target_rate(self, srt_file):
        main([str(srt_file), "--to", "sub", "--target-fps", "25"])
        lines = (srt_file.parent / "movie.sub").read_text(encoding="utf-8").splitlines()
        assert lines[0] == "{25}{63}Hello world"

    def test_output_dir(self, srt_file, tmp_path):
        out_dir = tmp_path / "out"
        out_dir.mkdir()
        main([str(srt_file), "--to", "ass", "--output-dir", str(out_dir)])
        assert (out_dir / "movie.ass").read_text(encoding="utf-8").startswith("[Script Info]\n")

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([str(tmp_path / "missing.srt")])
        assert exc_info.value.code == 1
        assert "Error: File not found" in capsys.readouterr().err

    def test_unknown_format(self, tmp_path, capsys):
        path = tmp_path / "notes.txt"
        path.write_text("hello there\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc_info:
            main([str(path)])
        assert exc_info.value.code == 1
        assert "Error: Could not determine the subtitle format" in capsys.readouterr().err

    def test_invalid_frame_rate(self, srt_file):
        with pytest.raises(SystemExit) as exc_info:
            main([str(srt_file), "--to", "sub", "--target-fps", "0"])
        assert exc_info.value.code == 1
