"""Error taxonomy for the subtitle converter.

WHY: Parsing is lenient and never fails on malformed subtitle text, so
only a few conditions are reported to callers: the sniffer could not
classify a document, or a caller passed an unusable parameter such as a
zero frame rate. Callers need to tell those apart from I/O failures,
which propagate unchanged from the standard library.

RULES:
- Every library error derives from SubtitleError
- InvalidParameter is also a ValueError, so generic handlers still work
- No error is ever raised for malformed subtitle blocks
"""


class SubtitleError(Exception):
    """Base class for all subtitle converter errors."""


class FormatUnknown(SubtitleError):
    """The sniffer could not classify the input as any supported format."""


class InvalidParameter(SubtitleError, ValueError):
    """A caller-supplied parameter is unusable (e.g. a non-positive frame rate)."""
