"""Configuration constants, extension mapping, and .env loading.

WHY: Centralizes the few tunable values (default MicroDVD frame rate,
SubRip tag dialect, sniffing depth) so they are easy to find and
override without touching parsing or conversion logic.

HOW: python-dotenv loads the .env file on import. Constants are
module-level strings and dicts read from the environment with defaults.
Values are validated where they are used, not here.

RULES:
- EXTENSION_MAP maps lowercase extensions (with dot) to format keys
- DEFAULT_FRAME_RATE is only ever used as the default value of an
  explicit ``frame_rate`` parameter
- SUBRIP_TAG_DIALECT is "html" (<b>) or "ass" ({\\b1})
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the project root (where the script is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# File extensions
# ---------------------------------------------------------------------------

EXTENSION_MAP: dict[str, str] = {
    ".srt": "srt",
    ".vtt": "vtt",
    ".sub": "sub",
    ".ass": "ass",
    ".ssa": "ssa",
}
"""Subtitle file extensions (lowercase, with dot) and their format keys."""

# ---------------------------------------------------------------------------
# Parsing / serialization defaults
# ---------------------------------------------------------------------------

DEFAULT_FRAME_RATE = os.getenv("SUBTITLE_DEFAULT_FRAME_RATE", "23.976")
SUBRIP_TAG_DIALECT = os.getenv("SUBRIP_TAG_DIALECT", "html").strip().lower()
SNIFF_LINE_LIMIT = int(os.getenv("SNIFF_LINE_LIMIT", "30"))
ENCODING_SAMPLE_BYTES = int(os.getenv("ENCODING_SAMPLE_BYTES", "65536"))

SUBRIP_DIALECTS = ("html", "ass")
