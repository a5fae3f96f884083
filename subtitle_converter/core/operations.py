"""Format-agnostic edits on parsed subtitles.

WHY: Shifting, renumbering and stripping formatting are the everyday
fixes applied to subtitle files, and they must behave identically no
matter which format the document came from.

HOW: Plain functions over the IR. Mutating operations first compute
every new value and only then assign, so an operation that fails on
one event leaves the document untouched.

RULES:
- shift() moves start and end by the same delta, clamping each at zero
- renumber() only touches SubRip indices
- strip_formatting() leaves plain text and, for ASS/SSA, an empty style table
- retime() and change_frame_rate() validate rates before mutating anything
"""

from __future__ import annotations

import logging
from typing import List, Tuple, Union

from subtitle_converter.core.ir import (
    Event,
    MicroDvdSubtitle,
    SubRipSubtitle,
    SubStationSubtitle,
    Subtitle,
)
from subtitle_converter.core.timing import FrameRateLike, Time, to_frame_rate

logger = logging.getLogger(__name__)


def _all_events(subtitle: Subtitle) -> List[Event]:
    events = list(subtitle.events)
    if isinstance(subtitle, SubStationSubtitle):
        events.extend(event for _, event in subtitle.other_events)
    return events


def shift(subtitle: Subtitle, delta: Union[Time, int]) -> None:
    """Shift every event by ``delta`` milliseconds, clamping at zero.

    RULES:
    - start and end move by the same signed delta before clamping,
      so start <= end still holds afterwards
    - shifting by a then b equals shifting by a + b whenever no
      intermediate clamp happened
    """
    events = _all_events(subtitle)
    moved: List[Tuple[Time, Time]] = [(event.start.shifted(delta), event.end.shifted(delta)) for event in events]
    for event, (start, end) in zip(events, moved):
        event.start, event.end = start, end


def duration(event: Event) -> Time:
    """How long the event is displayed (end - start)."""
    return event.end - event.start


def renumber(subtitle: Subtitle) -> None:
    """Assign SubRip indices 1..n in chronological order; no-op for other formats."""
    if not isinstance(subtitle, SubRipSubtitle):
        return
    for number, event in enumerate(subtitle.sorted_events(), 1):
        event.index = number


def as_plaintext(event: Event) -> str:
    """The event's visible text with every formatting attribute removed."""
    return event.as_plaintext()


def strip_formatting(subtitle: Subtitle) -> None:
    """Replace every event's runs with their plain text.

    For ASS/SSA documents the style table is cleared as well and
    events fall back to the default style on output.
    """
    for event in _all_events(subtitle):
        event.set_text(event.as_plaintext())
    if isinstance(subtitle, SubStationSubtitle):
        subtitle.styles = []
        for event in _all_events(subtitle):
            event.style_id = None


def retime(subtitle: Subtitle, old_rate: FrameRateLike, new_rate: FrameRateLike) -> None:
    """Rescale every time as if content timed at old_rate now plays at new_rate.

    Both rates are validated before any event changes.
    """
    old = to_frame_rate(old_rate)
    new = to_frame_rate(new_rate)
    events = _all_events(subtitle)
    scaled = [(event.start.scaled(old, new), event.end.scaled(old, new)) for event in events]
    for event, (start, end) in zip(events, scaled):
        event.start, event.end = start, end


def change_frame_rate(subtitle: MicroDvdSubtitle, new_rate: FrameRateLike, retime_events: bool = True) -> None:
    """Switch a MicroDVD document to ``new_rate``.

    RULES:
    - retime_events=True keeps frame numbers and rescales times (the
      video was re-encoded at another rate)
    - retime_events=False keeps times; frame numbers change on output
    """
    rate = to_frame_rate(new_rate)
    if retime_events:
        retime(subtitle, subtitle.frame_rate, rate)
    logger.debug("MicroDVD frame rate %s -> %s (retime=%s)", subtitle.frame_rate, rate, retime_events)
    subtitle.frame_rate = rate
