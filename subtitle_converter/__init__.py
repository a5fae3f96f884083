"""Subtitle converter: parse, edit and convert subtitle files.

WHY: Subtitle files come in many formats (SubRip, WebVTT, MicroDVD,
SSA, ASS) that disagree on timing units, markup and metadata. Tools
that only speak one of them need a reliable way to read and write the
others.

HOW: Three-stage pipeline: parse (lenient per-format parsers into a
shared event model), edit (format-agnostic operations), serialize or
convert (per-format handlers building native documents from canonical
events).

RULES:
- All formats parse into and serialize from the same IR
- Adding a format = one new handler module plus one registry line
- Parsing never fails on malformed content
"""

__version__ = "0.1.0"
