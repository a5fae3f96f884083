"""Byte decoding with encoding detection.

WHY: Subtitle files come from everywhere: Windows-1252 SRTs, UTF-16
ASS exports, UTF-8 with or without BOM. Parsing works on text, so raw
bytes must be decoded without ever failing.

HOW: A BOM decides immediately. Otherwise chardet guesses from a sample;
ASCII and UTF-8 guesses are treated as UTF-8. Undecodable bytes are
replaced rather than raising.

RULES:
- An explicit encoding always wins
- Unknown encoding names fall back to UTF-8
- decode_text() never raises for any byte input
"""

from __future__ import annotations

import codecs
import logging
from typing import Optional

import chardet

from subtitle_converter import config

logger = logging.getLogger(__name__)

_BOMS = (
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)


def detect_encoding(data: bytes) -> str:
    """Best guess at the encoding of ``data``."""
    for bom, encoding in _BOMS:
        if data.startswith(bom):
            return encoding
    detected = chardet.detect(data[: config.ENCODING_SAMPLE_BYTES])
    encoding = detected["encoding"] if detected["encoding"] else "utf-8"

    # Prefer UTF-8
    if encoding.lower() in ("ascii", "utf-8"):
        return "utf-8"
    return encoding


def decode_text(data: bytes, encoding: Optional[str] = None) -> str:
    """Decode subtitle bytes, replacing anything undecodable."""
    encoding = encoding or detect_encoding(data)
    try:
        codecs.lookup(encoding)
    except LookupError:
        logger.debug("Unknown encoding %r, falling back to utf-8", encoding)
        encoding = "utf-8"
    return data.decode(encoding, errors="replace")
