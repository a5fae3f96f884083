"""Abstract base for subtitle format handlers.

WHY: Every format parses text into the same Subtitle IR and serializes
it back. A common base class lets the sniffer, the conversion engine
and the CLI work with any format generically, exactly like a
formatter registry.

HOW: BaseFormat is an ABC with a ``name`` property and four methods:
``sniff()`` (content classification), ``parse()``, ``serialize()`` and
``build()`` (construct a native document from canonical events during
conversion). Each subclass also declares which StyleRun attributes it
can express. Module-level helpers normalize newlines and split
blank-line separated blocks for the line-oriented formats.

RULES:
- parse() never raises for any string input; malformed blocks are
  logged at DEBUG and skipped
- serialize() silently drops run attributes outside
  ``supported_attributes``
- build() receives events that already carry only supported attributes

To add a new format:
1. Create a new module in formats/
2. Subclass BaseFormat
3. Implement name, sniff(), parse(), serialize() and build()
4. Register it in FORMATS in formats/__init__.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, FrozenSet, List, Tuple

from subtitle_converter.core.ir import Event, Format, StyleRun, Subtitle, normalize_runs


BLANK_LINE_FILLER = "\u00a0"
"""Written in place of an empty line inside cue text."""


def normalize_newlines(content: str) -> str:
    """Strip a leading BOM and turn CRLF / CR line endings into LF."""
    if content.startswith("\ufeff"):
        content = content[1:]
    return content.replace("\r\n", "\n").replace("\r", "\n")


def fill_blank_lines(text: str) -> str:
    """Replace empty lines inside multi-line cue text with BLANK_LINE_FILLER.

    A blank line ends an SRT block or a WebVTT cue, so cue text must not
    contain one. Parsers read a line holding only the filler as empty.
    """
    if "\n" not in text:
        return text
    return "\n".join(line if line.strip(" \t") else BLANK_LINE_FILLER for line in text.split("\n"))


def split_blocks(content: str) -> List[Tuple[int, List[str]]]:
    """Split text into blocks separated by blank lines.

    Returns (first line number, lines) pairs. A missing blank line at
    the end of the file still closes the last block. Only spaces and
    tabs count as blank, so a BLANK_LINE_FILLER line stays in its block.
    """
    blocks: List[Tuple[int, List[str]]] = []
    current: List[str] = []
    first_line = 0
    for lineno, line in enumerate(content.split("\n"), 1):
        if line.strip(" \t"):
            if not current:
                first_line = lineno
            current.append(line)
        elif current:
            blocks.append((first_line, current))
            current = []
    if current:
        blocks.append((first_line, current))
    return blocks


class BaseFormat(ABC):
    """Abstract base for all subtitle format handlers."""

    format: ClassVar[Format]
    supported_attributes: ClassVar[FrozenSet[str]] = frozenset()

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'SubRip'."""

    @abstractmethod
    def sniff(self, lines: List[str]) -> bool:
        """True if the first lines of a document look like this format."""

    @abstractmethod
    def parse(self, content: str) -> Subtitle:
        """Parse a document leniently; never raises for malformed text."""

    @abstractmethod
    def serialize(self, subtitle: Subtitle) -> str:
        """Render a document of this format as text."""

    @abstractmethod
    def build(self, events: List[Event], source: Subtitle) -> Subtitle:
        """Create a document of this format from converted events.

        Args:
            events: Canonical events, already restricted to this
                    format's supported attributes.
            source: The document being converted, for header data.
        """

    def restrict(self, runs: List[StyleRun]) -> List[StyleRun]:
        """Reduce runs to what this format can express.

        Drawing runs disappear entirely unless drawing is supported;
        other unsupported attributes fall back to their defaults.
        """
        supported = self.supported_attributes
        kept = [
            run.restricted(supported)
            for run in runs
            if not run.drawing or "drawing" in supported
        ]
        return normalize_runs(kept)
