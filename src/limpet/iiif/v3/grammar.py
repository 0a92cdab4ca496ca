"""
Grammar primitives for IIIF Image API 3.0 request parameters.

Parses and formats the region, size, rotation, quality and format segments of
an image request. Parsers never raise for malformed input: they return a
ParseResult carrying either the parsed value or a GrammarError that names the
offending token and the expected pattern.

Numbers are read with a small explicit tokenizer rather than regular
expressions. Integers are ASCII digit runs without redundant leading zeros,
decimals are an integer optionally followed by a fraction without trailing
zeros. This keeps every accepted string canonical, so that:

    >>> format_size(parse_size("^!800,600").value)
    '^!800,600'
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Generic, TypeVar, Union

T = TypeVar("T")

REGION_GRAMMAR = "full | square | x,y,w,h | pct:x,y,w,h"
SIZE_GRAMMAR = "[^]max | [^]w, | [^],h | [^]pct:n | [^]w,h | [^]!w,h"
ROTATION_GRAMMAR = "[!]n where n is a number from 0 to 360"

# Digits a decimal token may carry and still survive a float round trip
MAX_DECIMAL_DIGITS = 15


class Quality(StrEnum):
    """Image quality segment values."""

    DEFAULT = "default"
    COLOR = "color"
    GRAY = "gray"
    BITONAL = "bitonal"


class ImageFormat(StrEnum):
    """Image format (file extension) segment values."""

    JPG = "jpg"
    TIF = "tif"
    PNG = "png"
    GIF = "gif"
    JP2 = "jp2"
    PDF = "pdf"
    WEBP = "webp"


@dataclass(frozen=True)
class GrammarError:
    """
    A request parameter that does not match its grammar.

    Attributes:
        axis: Request axis the token belongs to ("region", "size", ...)
        token: The offending input, verbatim
        expected: The grammar the token should have matched
        reason: Optional detail when the token is well-shaped but out of range
    """

    axis: str
    token: str
    expected: str
    reason: str | None = None

    @property
    def message(self) -> str:
        if self.reason:
            return f"Invalid {self.axis} '{self.token}': {self.reason} (expected {self.expected})"
        return f"Invalid {self.axis} syntax: '{self.token}' (expected {self.expected})"

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    """Outcome of a parse: exactly one of ``value`` and ``error`` is set."""

    value: T | None = None
    error: GrammarError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


# Region variants


@dataclass(frozen=True)
class FullRegion:
    """The complete image."""


@dataclass(frozen=True)
class SquareRegion:
    """The largest centered square region of the image."""


@dataclass(frozen=True)
class PixelRegion:
    x: int
    y: int
    w: int
    h: int


@dataclass(frozen=True)
class PercentRegion:
    x: float
    y: float
    w: float
    h: float


RegionSpec = Union[FullRegion, SquareRegion, PixelRegion, PercentRegion]


# Size variants


@dataclass(frozen=True)
class MaxSize:
    upscale: bool = False


@dataclass(frozen=True)
class WidthSize:
    width: int
    upscale: bool = False


@dataclass(frozen=True)
class HeightSize:
    height: int
    upscale: bool = False


@dataclass(frozen=True)
class PercentSize:
    percent: float
    upscale: bool = False


@dataclass(frozen=True)
class WidthHeightSize:
    width: int
    height: int
    upscale: bool = False


@dataclass(frozen=True)
class ConfinedSize:
    """Scale to fit inside ``width`` x ``height``, preserving aspect ratio."""

    width: int
    height: int
    upscale: bool = False


SizeSpec = Union[MaxSize, WidthSize, HeightSize, PercentSize, WidthHeightSize, ConfinedSize]


@dataclass(frozen=True)
class Rotation:
    degrees: float = 0
    mirror: bool = False


# Number tokens


def _read_int(text: str) -> int | None:
    if not (text.isascii() and text.isdigit()):
        return None
    if len(text) > 1 and text[0] == "0":
        return None
    return int(text)


def _read_decimal(text: str, *, max_fraction: int | None = None) -> float | None:
    whole, dot, fraction = text.partition(".")
    if _read_int(whole) is None:
        return None
    if len(whole.lstrip("0") + fraction) > MAX_DECIMAL_DIGITS:
        return None
    if dot:
        if not (fraction.isascii() and fraction.isdigit()) or fraction.endswith("0"):
            return None
        if max_fraction is not None and len(fraction) > max_fraction:
            return None
    return float(text)


def _format_decimal(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    # repr() is the shortest round-tripping form; Decimal avoids exponent notation
    return format(Decimal(repr(float(value))), "f")


def _fail(axis: str, token: str, expected: str, reason: str | None = None) -> ParseResult:
    return ParseResult(error=GrammarError(axis, token, expected, reason))


# Region


def parse_region(text: str) -> ParseResult[RegionSpec]:
    """
    Parse a region segment.

    Parameters:
        text: Region parameter, e.g. "full", "0,0,512,512" or "pct:10,10,50,50"

    Returns:
        ParseResult holding a RegionSpec, or a GrammarError

    Example:
        >>> parse_region("10,20,300,400").value
        PixelRegion(x=10, y=20, w=300, h=400)
    """
    if text == "full":
        return ParseResult(FullRegion())
    if text == "square":
        return ParseResult(SquareRegion())

    if text.startswith("pct:"):
        parts = text[len("pct:"):].split(",")
        if len(parts) != 4:
            return _fail("region", text, REGION_GRAMMAR)
        values = [_read_decimal(p) for p in parts]
        if any(v is None for v in values):
            return _fail(
                "region", text, REGION_GRAMMAR,
                f"percent coordinates must be non-negative numbers of at most {MAX_DECIMAL_DIGITS} digits",
            )
        x, y, w, h = values
        if w <= 0 or h <= 0:
            return _fail(
                "region", text, REGION_GRAMMAR,
                "Region percentage width and height must be greater than 0",
            )
        return ParseResult(PercentRegion(x, y, w, h))

    parts = text.split(",")
    if len(parts) != 4:
        return _fail("region", text, REGION_GRAMMAR)
    ints = [_read_int(p) for p in parts]
    if any(v is None for v in ints):
        return _fail(
            "region", text, REGION_GRAMMAR, "pixel coordinates must be non-negative integers"
        )
    x, y, w, h = ints
    if w == 0 or h == 0:
        return _fail("region", text, REGION_GRAMMAR, "Region width and height must be greater than 0")
    return ParseResult(PixelRegion(x, y, w, h))


def format_region(region: RegionSpec) -> str:
    """Format a RegionSpec back into its request segment."""
    if isinstance(region, FullRegion):
        return "full"
    if isinstance(region, SquareRegion):
        return "square"
    if isinstance(region, PixelRegion):
        return f"{region.x},{region.y},{region.w},{region.h}"
    if isinstance(region, PercentRegion):
        coords = ",".join(_format_decimal(v) for v in (region.x, region.y, region.w, region.h))
        return f"pct:{coords}"
    raise TypeError(f"Not a region spec: {region!r}")


# Size


def parse_size(text: str) -> ParseResult[SizeSpec]:
    """
    Parse a size segment.

    A leading "^" marks the request as upscaling. Whether upscaling is allowed,
    and whether the size fits the region, is decided by the request validator.

    Parameters:
        text: Size parameter, e.g. "max", "800,", ",600", "pct:50", "!1024,1024"

    Returns:
        ParseResult holding a SizeSpec, or a GrammarError
    """
    upscale = text.startswith("^")
    body = text[1:] if upscale else text

    if body == "max":
        return ParseResult(MaxSize(upscale=upscale))

    if body.startswith("pct:"):
        percent = _read_decimal(body[len("pct:"):])
        if percent is None:
            return _fail(
                "size", text, SIZE_GRAMMAR,
                f"percentage must be a non-negative number of at most {MAX_DECIMAL_DIGITS} digits",
            )
        if percent == 0:
            return _fail("size", text, SIZE_GRAMMAR, "percentage must be greater than 0")
        return ParseResult(PercentSize(percent, upscale=upscale))

    confined = body.startswith("!")
    if confined:
        body = body[1:]

    width_text, comma, height_text = body.partition(",")
    if not comma:
        return _fail("size", text, SIZE_GRAMMAR)

    width = _read_int(width_text) if width_text else None
    height = _read_int(height_text) if height_text else None
    if (width_text and width is None) or (height_text and height is None):
        return _fail("size", text, SIZE_GRAMMAR, "dimensions must be non-negative integers")
    if width == 0 or height == 0:
        return _fail("size", text, SIZE_GRAMMAR, "dimensions must be greater than 0")

    if confined:
        if width is None or height is None:
            return _fail("size", text, SIZE_GRAMMAR, "!w,h requires both width and height")
        return ParseResult(ConfinedSize(width, height, upscale=upscale))
    if width is not None and height is not None:
        return ParseResult(WidthHeightSize(width, height, upscale=upscale))
    if width is not None:
        return ParseResult(WidthSize(width, upscale=upscale))
    if height is not None:
        return ParseResult(HeightSize(height, upscale=upscale))
    return _fail("size", text, SIZE_GRAMMAR)


def format_size(size: SizeSpec) -> str:
    """Format a SizeSpec back into its request segment."""
    if not isinstance(size, (MaxSize, WidthSize, HeightSize, PercentSize, WidthHeightSize, ConfinedSize)):
        raise TypeError(f"Not a size spec: {size!r}")
    prefix = "^" if size.upscale else ""
    if isinstance(size, MaxSize):
        return f"{prefix}max"
    if isinstance(size, WidthSize):
        return f"{prefix}{size.width},"
    if isinstance(size, HeightSize):
        return f"{prefix},{size.height}"
    if isinstance(size, PercentSize):
        return f"{prefix}pct:{_format_decimal(size.percent)}"
    if isinstance(size, WidthHeightSize):
        return f"{prefix}{size.width},{size.height}"
    return f"{prefix}!{size.width},{size.height}"


# Rotation


def parse_rotation(text: str) -> ParseResult[Rotation]:
    """
    Parse a rotation segment.

    A leading "!" mirrors the image before rotating. Degrees carry at most one
    decimal place, matching how they are formatted.

    Example:
        >>> parse_rotation("!90").value
        Rotation(degrees=90.0, mirror=True)
    """
    mirror = text.startswith("!")
    body = text[1:] if mirror else text

    degrees = _read_decimal(body, max_fraction=1)
    if degrees is None:
        if _read_decimal(body) is not None:
            return _fail(
                "rotation", text, ROTATION_GRAMMAR, "degrees carry at most one decimal place"
            )
        return _fail("rotation", text, ROTATION_GRAMMAR)
    if degrees > 360:
        return _fail("rotation", text, ROTATION_GRAMMAR, "Rotation must be between 0 and 360 degrees")
    return ParseResult(Rotation(degrees, mirror))


def format_rotation(rotation: Rotation) -> str:
    prefix = "!" if rotation.mirror else ""
    degrees = float(rotation.degrees)
    if degrees.is_integer():
        return f"{prefix}{int(degrees)}"
    return f"{prefix}{degrees:.1f}"


# Quality and format


def parse_quality(text: str) -> ParseResult[Quality]:
    try:
        return ParseResult(Quality(text))
    except ValueError:
        return _fail("quality", text, " | ".join(q.value for q in Quality))


def parse_format(text: str) -> ParseResult[ImageFormat]:
    try:
        return ParseResult(ImageFormat(text))
    except ValueError:
        return _fail("format", text, " | ".join(f.value for f in ImageFormat))
