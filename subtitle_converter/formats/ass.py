"""Advanced SubStation Alpha (.ass, v4.00+) handler.

RULES:
- Style section header is [V4+ Styles]; ScriptType v4.00+
- Alignment is numpad (1-9) in styles and ``\\an`` tags
- Supported inline attributes: every StyleRun attribute except voice
"""

from __future__ import annotations

from typing import List

from subtitle_converter.core.ir import AssSubtitle, Format
from subtitle_converter.formats.substation import SubStationFormat


class AssFormat(SubStationFormat):
    """ASS handler."""

    format = Format.ASS
    subtitle_class = AssSubtitle
    styles_header = "[V4+ Styles]"
    script_type = "v4.00+"
    supported_attributes = frozenset({
        "bold", "italic", "underline", "strikeout", "color", "position",
        "alignment", "style", "drawing", "overrides",
    })

    @property
    def name(self) -> str:
        return "Advanced SubStation Alpha"

    def sniff(self, lines: List[str]) -> bool:
        return self._has_substation_header(lines) and not self._looks_like_ssa(lines)
