"""Subtitle format registry: pluggable format hub.

WHY: The sniffer, the conversion engine and the CLI need a single lookup
to find the right handler for a format. A central dict makes adding a
format trivial: write the handler class, import it here, add one line.

HOW: FORMATS maps Format members to handler *classes* (not instances).
get_format() instantiates one with the options that format takes
(frame rate for MicroDVD, tag dialect for SubRip).

RULES:
- Every Format member has exactly one handler
- SNIFF_ORDER is the content-sniffing priority: WebVTT, SubStation
  (SSA before ASS, since the SSA check is the stricter one), SubRip,
  MicroDVD
- Handlers listed here must be importable without side effects
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Tuple, Union

from subtitle_converter.core.ir import Format
from subtitle_converter.core.timing import FrameRateLike
from subtitle_converter.formats.ass import AssFormat
from subtitle_converter.formats.microdvd import MicroDvdFormat
from subtitle_converter.formats.ssa import SsaFormat
from subtitle_converter.formats.subrip import SubRipFormat
from subtitle_converter.formats.webvtt import WebVttFormat

if TYPE_CHECKING:
    from subtitle_converter.formats.base import BaseFormat

FORMATS: dict[Format, type[BaseFormat]] = {
    Format.SUBRIP: SubRipFormat,
    Format.WEBVTT: WebVttFormat,
    Format.MICRODVD: MicroDvdFormat,
    Format.ASS: AssFormat,
    Format.SSA: SsaFormat,
}

SNIFF_ORDER: Tuple[Format, ...] = (
    Format.WEBVTT,
    Format.SSA,
    Format.ASS,
    Format.SUBRIP,
    Format.MICRODVD,
)


def get_format(
    fmt: Union[Format, str],
    frame_rate: Optional[FrameRateLike] = None,
    dialect: Optional[str] = None,
) -> BaseFormat:
    """Instantiate the handler for ``fmt``.

    Args:
        fmt: A Format member or key ("srt", "ass", ...).
        frame_rate: MicroDVD frame rate; ignored by other formats.
        dialect: SubRip tag dialect ("html" or "ass"); ignored by others.
    """
    fmt = Format.coerce(fmt)
    handler = FORMATS[fmt]
    if fmt is Format.MICRODVD:
        return handler(frame_rate=frame_rate)
    if fmt is Format.SUBRIP:
        return handler(dialect=dialect)
    return handler()
