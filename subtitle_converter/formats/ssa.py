"""SubStation Alpha (.ssa, v4.00) handler.

RULES:
- Style section header is [V4 Styles]; ScriptType v4.00
- Alignment uses the legacy 1-3 / 5-7 / 9-11 scheme in styles and
  ``\\a`` tags
- Events carry a ``Marked`` column instead of ``Layer``
- Supported inline attributes: bold, italic, color, alignment, style,
  overrides
"""

from __future__ import annotations

from typing import List

from subtitle_converter.core.ir import Format, SsaSubtitle
from subtitle_converter.formats.substation import SubStationFormat


class SsaFormat(SubStationFormat):
    """SSA handler."""

    format = Format.SSA
    subtitle_class = SsaSubtitle
    styles_header = "[V4 Styles]"
    script_type = "v4.00"
    legacy_alignment = True
    supported_attributes = frozenset({"bold", "italic", "color", "alignment", "style", "overrides"})

    @property
    def name(self) -> str:
        return "SubStation Alpha"

    def sniff(self, lines: List[str]) -> bool:
        return self._has_substation_header(lines) and self._looks_like_ssa(lines)
