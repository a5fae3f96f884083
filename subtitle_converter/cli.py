"""Command-line interface for the subtitle converter.

WHY: Users need a simple way to convert, shift and clean subtitle files
from the terminal. The CLI wires together the full pipeline (encoding
detection, format sniffing, parsing, edits, conversion and saving)
behind a single command.

HOW: Uses argparse to accept an input file, an optional target format,
frame rates, a time shift and cleanup flags. Edits are applied to the
parsed document before conversion. Status messages go to stderr; the
output file is saved next to the source (or to --output-dir).

RULES:
- Positional argument: input subtitle file path
- --to: target format key (default: same format as the input)
- --from: skip detection and parse as this format
- --fps: MicroDVD input rate; --target-fps: MicroDVD output rate
- --shift: milliseconds, may be negative; times clamp at zero
- Output naming: {stem}.{ext}, numeric suffix on conflict (movie-2.srt)
- Status output goes to stderr (not stdout)
- Errors print "Error: ..." to stderr and exit with status 1
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from subtitle_converter import __version__, config
from subtitle_converter.convert import convert
from subtitle_converter.core.ir import Format
from subtitle_converter.core.operations import renumber, shift, strip_formatting
from subtitle_converter.errors import SubtitleError
from subtitle_converter.formats import FORMATS
from subtitle_converter.pipeline import load_subtitle, save_subtitle


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.

    HOW: Writes to sys.stderr with a flush to ensure immediate display.
    """
    print(msg, file=sys.stderr, flush=True)


def _error(msg: str) -> None:
    print("Error: {}".format(msg), file=sys.stderr)
    sys.exit(1)


def _resolve_output_path(stem: str, extension: str, output_dir: Path) -> Path:
    """Resolve the output file path, adding a numeric suffix on conflict.

    WHY: Converting movie.srt to SRT again (e.g. after --shift) must not
    overwrite the source, and re-running a conversion should not lose
    earlier output.

    RULES:
    - First attempt: {stem}.{extension}
    - Conflict: {stem}-2.{extension}, {stem}-3.{extension}, ...

    Args:
        stem: Source filename stem (without extension).
        extension: Target extension without the dot, e.g. "vtt".
        output_dir: Directory to save the output file.

    Returns:
        A Path that does not yet exist.
    """
    base_path = output_dir / "{}.{}".format(stem, extension)
    if not base_path.exists():
        return base_path

    counter = 2
    while True:
        candidate = output_dir / "{}-{}.{}".format(stem, counter, extension)
        if not candidate.exists():
            return candidate
        counter += 1


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    format_keys = [fmt.value for fmt in FORMATS]
    parser = argparse.ArgumentParser(
        prog="subtitle_converter",
        description="Convert subtitles between SubRip, WebVTT, MicroDVD, ASS and SSA.",
    )
    parser.add_argument("input_file", help="Path to the subtitle file to convert.")
    parser.add_argument(
        "--to",
        dest="target",
        choices=format_keys,
        default=None,
        help="Target format (default: same as the input).",
    )
    parser.add_argument(
        "--from",
        dest="source",
        choices=format_keys,
        default=None,
        help="Input format (default: detect from extension and content).",
    )
    parser.add_argument(
        "--fps",
        default=None,
        help="Frame rate of a MicroDVD input (default: declared in file, else {}).".format(
            config.DEFAULT_FRAME_RATE
        ),
    )
    parser.add_argument(
        "--target-fps",
        default=None,
        help="Frame rate for MicroDVD output (default: {}).".format(config.DEFAULT_FRAME_RATE),
    )
    parser.add_argument(
        "--shift",
        type=int,
        default=0,
        metavar="MS",
        help="Shift all events by MS milliseconds (negative moves earlier).",
    )
    parser.add_argument(
        "--strip-formatting",
        action="store_true",
        help="Remove all inline formatting (and ASS/SSA styles).",
    )
    parser.add_argument(
        "--srt-dialect",
        choices=config.SUBRIP_DIALECTS,
        default=None,
        help="SubRip tag style: html (<b>) or ass ({{\\b1}}) (default: {}).".format(
            config.SUBRIP_TAG_DIALECT
        ),
    )
    parser.add_argument(
        "--encoding",
        default=None,
        help="Input encoding (default: detect).",
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Directory for the output file (default: same as input file).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log skipped blocks and conversion details.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s {}".format(__version__))
    return parser


def run(args: argparse.Namespace) -> Path:
    """Execute one conversion and return the saved path.

    RULES:
    - Validate paths before reading anything
    - Edits (shift, strip) apply before conversion
    - SubRip output is renumbered chronologically
    """
    input_path = Path(args.input_file).resolve()
    if not input_path.is_file():
        _error("File not found: {}".format(input_path))

    output_dir = Path(args.output_dir).resolve() if args.output_dir else input_path.parent
    if not output_dir.is_dir():
        _error("Output directory does not exist: {}".format(output_dir))

    _status("Reading {}...".format(input_path.name))
    subtitle = load_subtitle(input_path, fmt=args.source, frame_rate=args.fps, encoding=args.encoding)
    _status("  {} events ({})".format(len(subtitle.events), subtitle.format.value))

    if args.shift:
        shift(subtitle, args.shift)
        _status("  Shifted by {} ms".format(args.shift))
    if args.strip_formatting:
        strip_formatting(subtitle)
        _status("  Formatting removed")

    target = Format.coerce(args.target) if args.target else subtitle.format
    if target is not subtitle.format or args.target_fps is not None:
        subtitle = convert(subtitle, target, frame_rate=args.target_fps)
        _status("  Converted to {}".format(target.value))
    renumber(subtitle)

    path = _resolve_output_path(input_path.stem, target.value, output_dir)
    save_subtitle(subtitle, path, dialect=args.srt_dialect)
    _status("  Saved: {}".format(path.name))
    return path


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        run(args)
    except (SubtitleError, OSError) as exc:
        _error(str(exc))
