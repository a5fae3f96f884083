"""Core timing, intermediate representation and editing modules.

WHY: The core package contains the stable heart of the converter: the
millisecond time type, the IR dataclasses, inline markup handling and
format-agnostic edits. Every format handler consumes these.

HOW: timing.py defines Time and frame conversion, ir.py the data
structures, markup.py the tag parsers/renderers shared by handlers,
operations.py the edits (shift, renumber, strip, retime).

RULES:
- IR dataclasses are the contract; change with care
- Core modules never import from formats/
"""
