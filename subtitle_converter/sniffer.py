"""Subtitle format detection from file names and content.

WHY: Users hand the converter a file without saying what it is, and
extensions lie (or are missing) often enough that content matters too.

HOW: A known extension wins outright. Otherwise the first
SNIFF_LINE_LIMIT lines are offered to each handler's ``sniff()`` in
SNIFF_ORDER and the first match is returned.

RULES:
- Extension check is case-insensitive and uses EXTENSION_MAP
- Content priority: WebVTT header, SubStation section header, SubRip
  index + timing line, MicroDVD frame line
- No match raises FormatUnknown
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from subtitle_converter import config
from subtitle_converter.core.ir import Format
from subtitle_converter.errors import FormatUnknown
from subtitle_converter.formats import SNIFF_ORDER, get_format
from subtitle_converter.formats.base import normalize_newlines

logger = logging.getLogger(__name__)


def detect_format_by_extension(filename: Union[str, Path, None]) -> Optional[Format]:
    """Format implied by the file extension, or None."""
    if not filename:
        return None
    key = config.EXTENSION_MAP.get(Path(filename).suffix.lower())
    return Format(key) if key else None


def detect_format_by_content(content: str) -> Format:
    """Classify a document by its first lines.

    Raises:
        FormatUnknown: no handler recognised the content.
    """
    lines = normalize_newlines(content).split("\n")[: config.SNIFF_LINE_LIMIT]
    for fmt in SNIFF_ORDER:
        if get_format(fmt).sniff(lines):
            return fmt
    raise FormatUnknown("Could not determine the subtitle format")


def detect_format(content: str, filename: Union[str, Path, None] = None) -> Format:
    """Detect the format, preferring an unambiguous file extension.

    Raises:
        FormatUnknown: neither the extension nor the content matched.
    """
    by_extension = detect_format_by_extension(filename)
    if by_extension is not None:
        logger.debug("Format %s from extension of %s", by_extension.value, filename)
        return by_extension
    return detect_format_by_content(content)
