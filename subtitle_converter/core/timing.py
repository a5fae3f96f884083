"""Millisecond time values and frame-rate conversion.

WHY: Every subtitle format stores time differently (milliseconds,
centiseconds, video frames). A single integer millisecond type lets the
conversion engine move events between formats without accumulating
floating-point drift, and frame conversion needs exact rational
arithmetic so a frame number survives a round trip through milliseconds.

HOW: Time is a frozen dataclass wrapping a signed int. Arithmetic with
other Time values or plain ints returns new Time values; shifting clamps
at zero. Frame rates are normalized to ``fractions.Fraction`` so 23.976
means exactly 23976/1000 and 24000/1001 is representable.

RULES:
- Time.ms is a signed integer; signed values double as deltas
- Values are bounded to the signed 64-bit range; overflow raises
  InvalidParameter instead of wrapping
- frame -> ms is round(frame * 1000 / rate), ms -> frame is
  round(ms * rate / 1000), both rounding halves away from zero
- A frame rate must be a positive finite number, else InvalidParameter
- A frame rate written by format_frame_rate() reads back as the same
  Fraction; non-terminating rates such as 24000/1001 are written with
  twelve decimals and snapped back to the nearest fraction with a
  denominator up to 1001
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Optional, Union

from subtitle_converter import config
from subtitle_converter.errors import InvalidParameter

MAX_MS = 2 ** 63 - 1
MIN_MS = -(2 ** 63)

FrameRateLike = Union[int, float, str, Decimal, Fraction]

_HALF = Fraction(1, 2)
_SNAP_DENOMINATOR = 1001
_SNAP_TOLERANCE = Fraction(1, 10 ** 9)
_RATE_DECIMALS = 12


def round_half_away(value: Fraction) -> int:
    """Round a rational to the nearest integer, halves away from zero."""
    floor = value.numerator // value.denominator
    remainder = value - floor
    if remainder > _HALF or (remainder == _HALF and value > 0):
        return floor + 1
    return floor


def to_frame_rate(value: FrameRateLike) -> Fraction:
    """Normalize a frame rate to an exact positive Fraction.

    WHY: Frame rates arrive from config strings, CLI flags and MicroDVD
    declaration lines. Floats like 23.976 must not become
    23.975999999999999 or frame numbers drift over long files.

    HOW: Floats go through their shortest repr, everything else through
    ``str()``, and Fraction parses the result ("25", "23.976",
    "24000/1001" all work). A non-Fraction value within 1e-9 of a
    fraction with a denominator up to 1001 becomes that fraction, so
    "23.976023976024" is 24000/1001 again.

    RULES:
    - Zero, negative, NaN, infinite and non-numeric values raise
      InvalidParameter
    - Booleans are rejected even though they are ints
    """
    if isinstance(value, bool):
        raise InvalidParameter("Invalid frame rate: {!r}".format(value))
    try:
        if isinstance(value, Fraction):
            rate = value
        else:
            rate = Fraction(str(value).strip())
            snapped = rate.limit_denominator(_SNAP_DENOMINATOR)
            if abs(snapped - rate) < _SNAP_TOLERANCE:
                rate = snapped
    except (ValueError, ZeroDivisionError, TypeError) as exc:
        raise InvalidParameter("Invalid frame rate: {!r}".format(value)) from exc
    if rate <= 0:
        raise InvalidParameter("Frame rate must be positive, got {!r}".format(value))
    return rate


def default_frame_rate() -> Fraction:
    """The configured MicroDVD frame rate (SUBTITLE_DEFAULT_FRAME_RATE)."""
    return to_frame_rate(config.DEFAULT_FRAME_RATE)


def _terminating_places(denominator: int) -> Optional[int]:
    """Decimal places needed to write 1/denominator exactly, or None."""
    twos = fives = 0
    while denominator % 2 == 0:
        denominator //= 2
        twos += 1
    while denominator % 5 == 0:
        denominator //= 5
        fives += 1
    return max(twos, fives) if denominator == 1 else None


def format_frame_rate(rate: Fraction) -> str:
    """Render a frame rate as a decimal string ("25", "23.976").

    to_frame_rate() reads the result back as the same Fraction.
    """
    if rate.denominator == 1:
        return str(rate.numerator)
    places = _terminating_places(rate.denominator)
    if places is None:
        places = _RATE_DECIMALS
    scale = 10 ** places
    scaled = round_half_away(rate * scale)
    text = "{}.{:0{}d}".format(scaled // scale, scaled % scale, places)
    return text.rstrip("0").rstrip(".")


def _check_range(ms: int) -> int:
    if ms > MAX_MS or ms < MIN_MS:
        raise InvalidParameter("Time value out of range: {}".format(ms))
    return ms


@dataclass(frozen=True, order=True)
class Time:
    """A signed point in time (or delta) with millisecond resolution.

    WHY: Subtitle formats disagree on resolution but all fit in whole
    milliseconds. Keeping one representation makes conversions total.

    HOW: Wraps an int. ``+`` and ``-`` accept Time or int operands and
    return Time. Component properties assume a non-negative value and
    are what serializers use to build timestamps.

    RULES:
    - Immutable and hashable; ordering compares milliseconds
    - Arithmetic never wraps; results outside the 64-bit range raise
    - shifted() clamps the result at zero
    """

    ms: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.ms, bool) or not isinstance(self.ms, int):
            raise InvalidParameter("Time requires an integer millisecond value, got {!r}".format(self.ms))
        _check_range(self.ms)

    @classmethod
    def from_components(cls, hours: int = 0, minutes: int = 0, seconds: int = 0, milliseconds: int = 0) -> Time:
        return cls(((hours * 60 + minutes) * 60 + seconds) * 1000 + milliseconds)

    @classmethod
    def from_frames(cls, frame: int, rate: FrameRateLike) -> Time:
        """Time at which ``frame`` starts for the given frame rate."""
        fps = to_frame_rate(rate)
        return cls(round_half_away(Fraction(frame * 1000) / fps))

    def to_frames(self, rate: FrameRateLike) -> int:
        """Nearest frame number for this time at the given frame rate."""
        fps = to_frame_rate(rate)
        return round_half_away(Fraction(self.ms) * fps / 1000)

    def shifted(self, delta: Union[Time, int]) -> Time:
        """Move by ``delta`` milliseconds, clamping negative results to zero."""
        return Time(max(0, _check_range(self.ms + _as_ms(delta))))

    def scaled(self, old_rate: FrameRateLike, new_rate: FrameRateLike) -> Time:
        """Re-express this time for content retimed from old_rate to new_rate."""
        factor = to_frame_rate(old_rate) / to_frame_rate(new_rate)
        return Time(_check_range(round_half_away(self.ms * factor)))

    # Components (for timestamp serialization)

    @property
    def hours(self) -> int:
        return self.ms // 3600000

    @property
    def minutes(self) -> int:
        return (self.ms // 60000) % 60

    @property
    def seconds(self) -> int:
        return (self.ms // 1000) % 60

    @property
    def milliseconds(self) -> int:
        return self.ms % 1000

    @property
    def centiseconds(self) -> int:
        return (self.ms // 10) % 100

    # Arithmetic

    def __add__(self, other: Union[Time, int]) -> Time:
        if not isinstance(other, (Time, int)) or isinstance(other, bool):
            return NotImplemented
        return Time(_check_range(self.ms + _as_ms(other)))

    __radd__ = __add__

    def __sub__(self, other: Union[Time, int]) -> Time:
        if not isinstance(other, (Time, int)) or isinstance(other, bool):
            return NotImplemented
        return Time(_check_range(self.ms - _as_ms(other)))

    def __neg__(self) -> Time:
        return Time(_check_range(-self.ms))

    def __int__(self) -> int:
        return self.ms

    def __str__(self) -> str:
        sign = "-" if self.ms < 0 else ""
        ms = abs(self.ms)
        return "{}{}:{:02d}:{:02d}.{:03d}".format(
            sign, ms // 3600000, (ms // 60000) % 60, (ms // 1000) % 60, ms % 1000
        )


def _as_ms(value: Union[Time, int]) -> int:
    if isinstance(value, Time):
        return value.ms
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameter("Expected Time or int milliseconds, got {!r}".format(value))
    return value
