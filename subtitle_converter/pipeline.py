"""Entry points for reading, writing and converting subtitle documents.

WHY: Callers think in terms of "parse this text", "load this file",
"save as that format". This module wires the sniffer, the format
registry, encoding detection and the conversion engine behind those
few calls so the CLI (and library users) never touch handlers directly.

HOW: parse() decodes bytes if needed, picks the format (explicit, else
sniffed) and delegates to the handler. load_subtitle() / save_subtitle()
add file I/O around parse() / serialize().

RULES:
- parse() of text or bytes never raises for malformed content; only an
  unclassifiable document (FormatUnknown) or a bad parameter
  (InvalidParameter) raises
- File-system errors propagate unchanged
- Output files are written as UTF-8 unless told otherwise
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from subtitle_converter.convert import convert
from subtitle_converter.core.ir import Format, Subtitle
from subtitle_converter.core.timing import FrameRateLike
from subtitle_converter.encoding import decode_text
from subtitle_converter.formats import get_format
from subtitle_converter.sniffer import detect_format

PathLike = Union[str, Path]


def parse(
    content: Union[str, bytes],
    fmt: Union[Format, str, None] = None,
    filename: Optional[PathLike] = None,
    frame_rate: Optional[FrameRateLike] = None,
    encoding: Optional[str] = None,
) -> Subtitle:
    """Parse a subtitle document.

    Args:
        content: Document text, or raw bytes to decode.
        fmt: Format selector; None sniffs from filename and content.
        filename: Optional name used as an extension hint.
        frame_rate: MicroDVD frame-rate hint.
        encoding: Byte encoding; None detects it.

    Raises:
        FormatUnknown: fmt is None and the format could not be detected.
        InvalidParameter: unknown fmt or invalid frame rate.
    """
    if isinstance(content, (bytes, bytearray)):
        content = decode_text(bytes(content), encoding)
    selected = Format.coerce(fmt) if fmt is not None else detect_format(content, filename)
    return get_format(selected, frame_rate=frame_rate).parse(content)


def serialize(subtitle: Subtitle, fmt: Union[Format, str, None] = None, dialect: Optional[str] = None) -> str:
    """Render a document as text, converting first when fmt differs from its format."""
    if fmt is not None and Format.coerce(fmt) is not subtitle.format:
        subtitle = convert(subtitle, fmt)
    return get_format(subtitle.format, dialect=dialect).serialize(subtitle)


def load_subtitle(
    path: PathLike,
    fmt: Union[Format, str, None] = None,
    frame_rate: Optional[FrameRateLike] = None,
    encoding: Optional[str] = None,
) -> Subtitle:
    """Read and parse a subtitle file."""
    path = Path(path)
    return parse(path.read_bytes(), fmt=fmt, filename=path, frame_rate=frame_rate, encoding=encoding)


def save_subtitle(
    subtitle: Subtitle,
    path: PathLike,
    encoding: str = "utf-8",
    dialect: Optional[str] = None,
) -> Path:
    """Serialize a document to ``path`` in its own format and return the path."""
    path = Path(path)
    path.write_text(serialize(subtitle, dialect=dialect), encoding=encoding)
    return path
