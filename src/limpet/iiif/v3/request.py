"""
Image request validation and URI handling for IIIF Image API 3.0.

An image request is the five-segment path

    {baseUri}/{region}/{size}/{rotation}/{quality}.{format}

This module validates each segment, optionally against a service descriptor,
and builds and parses request URIs.

Basic usage:
    >>> parsed = parse_image_uri("https://iiif.example.org/img1/full/max/0/default.jpg")
    >>> result = validate_image_request(parsed.value.to_request(), descriptor)
    >>> if not result.valid:
    ...     print("\\n".join(result.errors))
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Iterable, TypeVar
from urllib.parse import quote, unquote

from .compliance import supported_features, supported_formats, supported_qualities
from .grammar import (
    ConfinedSize,
    FullRegion,
    GrammarError,
    HeightSize,
    ImageFormat,
    MaxSize,
    ParseResult,
    PercentRegion,
    PercentSize,
    PixelRegion,
    Quality,
    RegionSpec,
    Rotation,
    SizeSpec,
    SquareRegion,
    WidthHeightSize,
    WidthSize,
    format_region,
    format_rotation,
    format_size,
    parse_format,
    parse_quality,
    parse_region,
    parse_rotation,
    parse_size,
)
from .models import ComplianceLevel, Feature, ServiceDescriptor
from .validation import ValidationResult

T = TypeVar("T")

URI_TEMPLATE = "{baseUri}/{region}/{size}/{rotation}/{quality}.{format}"

_REGION_FEATURES = {
    SquareRegion: Feature.REGION_SQUARE,
    PixelRegion: Feature.REGION_BY_PX,
    PercentRegion: Feature.REGION_BY_PCT,
}

_SIZE_FEATURES = {
    WidthSize: Feature.SIZE_BY_W,
    HeightSize: Feature.SIZE_BY_H,
    PercentSize: Feature.SIZE_BY_PCT,
    WidthHeightSize: Feature.SIZE_BY_WH,
    ConfinedSize: Feature.SIZE_BY_CONFINED_WH,
}


@dataclass(frozen=True)
class AxisResult(Generic[T]):
    """Validation outcome for a single request segment."""

    parsed: T | None = None
    error: str | None = None

    @property
    def valid(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ImageRequest:
    """
    The five parameters of an image request.

    Each axis may hold a parsed value or the raw segment string; raw strings are
    parsed when the request is validated or formatted.
    """

    region: RegionSpec | str = FullRegion()
    size: SizeSpec | str = MaxSize()
    rotation: Rotation | str = Rotation()
    quality: Quality | str = Quality.DEFAULT
    format: ImageFormat | str = ImageFormat.JPG

    def to_path(self) -> str:
        """Format as ``{region}/{size}/{rotation}/{quality}.{format}``."""
        region = self.region if isinstance(self.region, str) else format_region(self.region)
        size = self.size if isinstance(self.size, str) else format_size(self.size)
        rotation = self.rotation if isinstance(self.rotation, str) else format_rotation(self.rotation)
        return f"{region}/{size}/{rotation}/{self.quality}.{self.format}"


@dataclass(frozen=True)
class ImageUri:
    """Components of a parsed image request URI, as raw segment strings."""

    base_uri: str
    identifier: str
    region: str
    size: str
    rotation: str
    quality: str
    format: str

    def to_request(self) -> ImageRequest:
        return ImageRequest(
            region=self.region,
            size=self.size,
            rotation=self.rotation,
            quality=self.quality,
            format=self.format,
        )


def _as_region(region: RegionSpec | str) -> ParseResult[RegionSpec]:
    return parse_region(region) if isinstance(region, str) else ParseResult(region)


def _as_size(size: SizeSpec | str) -> ParseResult[SizeSpec]:
    return parse_size(size) if isinstance(size, str) else ParseResult(size)


def _as_rotation(rotation: Rotation | str) -> ParseResult[Rotation]:
    return parse_rotation(rotation) if isinstance(rotation, str) else ParseResult(rotation)


# Geometry


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def region_dimensions(region: RegionSpec, image_width: int, image_height: int) -> tuple[int, int]:
    """
    Pixel dimensions of a region within an image, clipped to the image bounds.

    Percent regions are rounded to the nearest pixel, halves up. A region that
    lies entirely outside the image has zero extent.
    """
    if isinstance(region, FullRegion):
        return image_width, image_height
    if isinstance(region, SquareRegion):
        side = min(image_width, image_height)
        return side, side
    if isinstance(region, PixelRegion):
        x, y, w, h = region.x, region.y, region.w, region.h
    elif isinstance(region, PercentRegion):
        x = _round_half_up(image_width * region.x / 100)
        y = _round_half_up(image_height * region.y / 100)
        w = _round_half_up(image_width * region.w / 100)
        h = _round_half_up(image_height * region.h / 100)
    else:
        raise TypeError(f"Not a region spec: {region!r}")
    return max(0, min(w, image_width - x)), max(0, min(h, image_height - y))


def resulting_size(region_width: int, region_height: int, size: SizeSpec) -> tuple[int, int]:
    """
    Output dimensions of applying ``size`` to a region.

    Fractional pixels round half up. A confined size without ``^`` never
    enlarges the region.

    Parameters:
        region_width: Region width in pixels (positive)
        region_height: Region height in pixels (positive)
        size: Parsed size parameter

    Returns:
        (width, height) of the delivered image

    Example:
        >>> resulting_size(4000, 3000, ConfinedSize(1000, 1000))
        (1000, 750)
    """
    if region_width <= 0 or region_height <= 0:
        raise ValueError(f"region dimensions must be positive, got {region_width}x{region_height}")
    aspect = region_height / region_width

    if isinstance(size, MaxSize):
        return region_width, region_height
    if isinstance(size, WidthSize):
        return size.width, _round_half_up(size.width * aspect)
    if isinstance(size, HeightSize):
        return _round_half_up(size.height / aspect), size.height
    if isinstance(size, PercentSize):
        width = _round_half_up(region_width * size.percent / 100)
        return width, _round_half_up(region_height * size.percent / 100)
    if isinstance(size, WidthHeightSize):
        return size.width, size.height
    if isinstance(size, ConfinedSize):
        scale = min(size.width / region_width, size.height / region_height)
        if not size.upscale:
            scale = min(scale, 1)
        return _round_half_up(region_width * scale), _round_half_up(region_height * scale)
    raise TypeError(f"Not a size spec: {size!r}")


# Per-axis validation


def validate_region(
    region: RegionSpec | str,
    image_width: int | None = None,
    image_height: int | None = None,
) -> AxisResult[RegionSpec]:
    """
    Validate a region parameter.

    When the image dimensions are known, a pixel region must start inside the
    image.
    """
    result = _as_region(region)
    if result.error:
        return AxisResult(error=result.error.message)

    parsed = result.value
    if isinstance(parsed, PixelRegion) and image_width is not None and image_height is not None:
        if parsed.x >= image_width or parsed.y >= image_height:
            return AxisResult(error="Region is entirely outside image bounds")
    return AxisResult(parsed)


def validate_size(
    size: SizeSpec | str,
    region_width: int | None = None,
    region_height: int | None = None,
    supports_upscaling: bool = False,
) -> AxisResult[SizeSpec]:
    """
    Validate a size parameter against the region it applies to.

    Parameters:
        size: Size parameter
        region_width: Width of the requested region, if known
        region_height: Height of the requested region, if known
        supports_upscaling: Whether the "^" prefix is allowed

    Returns:
        AxisResult with the parsed size or an error message

    Example:
        >>> validate_size("1200,800", 1000, 600).valid
        False
    """
    result = _as_size(size)
    if result.error:
        return AxisResult(error=result.error.message)

    parsed = result.value
    if parsed.upscale:
        if not supports_upscaling:
            return AxisResult(error="Upscaling (^ prefix) is not supported")
        return AxisResult(parsed)

    if isinstance(parsed, PercentSize) and parsed.percent > 100:
        return AxisResult(error="Percentage exceeds 100% without upscale prefix")
    if isinstance(parsed, WidthSize) and region_width is not None and parsed.width > region_width:
        return AxisResult(error="Requested width exceeds region width without upscale prefix")
    if isinstance(parsed, HeightSize) and region_height is not None and parsed.height > region_height:
        return AxisResult(error="Requested height exceeds region height without upscale prefix")
    if isinstance(parsed, WidthHeightSize) and region_width is not None and region_height is not None:
        if parsed.width > region_width or parsed.height > region_height:
            return AxisResult(
                error="Requested dimensions exceed region dimensions without upscale prefix"
            )
    return AxisResult(parsed)


def validate_rotation(
    rotation: Rotation | str,
    supports_arbitrary: bool = False,
    supports_mirroring: bool = True,
) -> AxisResult[Rotation]:
    result = _as_rotation(rotation)
    if result.error:
        return AxisResult(error=result.error.message)

    parsed = result.value
    if parsed.mirror and not supports_mirroring:
        return AxisResult(error="Mirroring is not supported")
    if not 0 <= parsed.degrees <= 360:
        return AxisResult(error="Rotation must be between 0 and 360 degrees")
    if not supports_arbitrary and parsed.degrees % 90 != 0:
        return AxisResult(error="Only 90-degree rotations are supported")
    return AxisResult(parsed)


def validate_quality(
    quality: Quality | str, supported: Iterable[Quality] = (Quality.DEFAULT,)
) -> AxisResult[Quality]:
    result = parse_quality(quality)
    if result.error:
        return AxisResult(error=f"Invalid quality: {quality}")
    allowed = [q for q in Quality if q in set(supported)]
    if result.value not in allowed:
        listing = ", ".join(q.value for q in allowed)
        return AxisResult(error=f'Quality "{quality}" not supported. Supported: {listing}')
    return AxisResult(result.value)


def validate_format(
    fmt: ImageFormat | str, supported: Iterable[ImageFormat] = (ImageFormat.JPG,)
) -> AxisResult[ImageFormat]:
    result = parse_format(fmt)
    if result.error:
        return AxisResult(error=f"Invalid format: {fmt}")
    allowed = [f for f in ImageFormat if f in set(supported)]
    if result.value not in allowed:
        listing = ", ".join(f.value for f in allowed)
        return AxisResult(error=f'Format "{fmt}" not supported. Supported: {listing}')
    return AxisResult(result.value)


# Whole-request validation


def _advertised_warnings(
    region: RegionSpec | None,
    size: SizeSpec | None,
    rotation: Rotation | None,
    features: frozenset[Feature],
) -> list[str]:
    warnings: list[str] = []
    region_feature = _REGION_FEATURES.get(type(region))
    if region_feature is not None and region_feature not in features:
        warnings.append(
            f"Region '{format_region(region)}' uses {region_feature}, "
            "which the service does not advertise"
        )
    size_feature = _SIZE_FEATURES.get(type(size))
    if size_feature is not None and size_feature not in features:
        warnings.append(
            f"Size '{format_size(size)}' uses {size_feature}, which the service does not advertise"
        )
    if (
        rotation is not None
        and rotation.degrees % 90 == 0
        and rotation.degrees % 360 != 0
        and Feature.ROTATION_BY_90S not in features
        and Feature.ROTATION_ARBITRARY not in features
    ):
        warnings.append(
            f"Rotation '{format_rotation(rotation)}' uses {Feature.ROTATION_BY_90S}, "
            "which the service does not advertise"
        )
    return warnings


def _limit_errors(width: int, height: int, descriptor: ServiceDescriptor) -> list[str]:
    errors: list[str] = []
    max_width = descriptor.max_width
    # maxHeight defaults to maxWidth when only maxWidth is given
    max_height = descriptor.max_height if descriptor.max_height is not None else max_width
    if max_width is not None and width > max_width:
        errors.append(f"Requested width {width} exceeds service maxWidth {max_width}")
    if max_height is not None and height > max_height:
        errors.append(f"Requested height {height} exceeds service maxHeight {max_height}")
    if descriptor.max_area is not None and width * height > descriptor.max_area:
        errors.append(f"Requested area {width * height} exceeds service maxArea {descriptor.max_area}")
    return errors


def validate_image_request(
    request: ImageRequest, descriptor: ServiceDescriptor | None = None
) -> ValidationResult:
    """
    Validate all five parameters of an image request.

    Every parameter is checked even after an earlier one fails, so the result
    lists every problem at once. Without a descriptor only the syntax is
    checked; with one, the request is also checked against the service's
    dimensions, upscaling, mirroring and rotation support, and the qualities
    and formats of its profile plus its extras.

    Parameters:
        request: The request to validate
        descriptor: Optional service capabilities

    Returns:
        ValidationResult (valid when no errors were found)

    Example:
        >>> request = ImageRequest(region="full", size="^max", rotation="0",
        ...                        quality="default", format="jpg")
        >>> validate_image_request(request, level0_info).errors
        ['Upscaling (^ prefix) is not supported']
    """
    errors: list[str] = []
    warnings: list[str] = []

    if descriptor is None:
        width = height = None
        features = frozenset(Feature)
        supports_mirroring = True
        qualities: Iterable[Quality] = tuple(Quality)
        formats: Iterable[ImageFormat] = tuple(ImageFormat)
    else:
        width, height = descriptor.width, descriptor.height
        features = supported_features(descriptor)
        supports_mirroring = (
            Feature.MIRRORING in features or descriptor.profile == ComplianceLevel.LEVEL2
        )
        qualities = supported_qualities(descriptor)
        formats = supported_formats(descriptor)
        if Feature.SIZE_UPSCALING in features and not descriptor.declares_upscaling_limit:
            warnings.append("Service declares sizeUpscaling without maxWidth or maxArea")

    region_result = validate_region(request.region, width, height)
    if not region_result.valid:
        errors.append(region_result.error)

    region_width = region_height = None
    if region_result.valid and width is not None and height is not None:
        region_width, region_height = region_dimensions(region_result.parsed, width, height)

    size_result = validate_size(
        request.size,
        region_width,
        region_height,
        supports_upscaling=Feature.SIZE_UPSCALING in features,
    )
    if not size_result.valid:
        errors.append(size_result.error)

    rotation_result = validate_rotation(
        request.rotation,
        supports_arbitrary=Feature.ROTATION_ARBITRARY in features,
        supports_mirroring=supports_mirroring,
    )
    if not rotation_result.valid:
        errors.append(rotation_result.error)

    quality_result = validate_quality(request.quality, qualities)
    if not quality_result.valid:
        errors.append(quality_result.error)

    format_result = validate_format(request.format, formats)
    if not format_result.valid:
        errors.append(format_result.error)

    if descriptor is not None:
        warnings.extend(
            _advertised_warnings(
                region_result.parsed, size_result.parsed, rotation_result.parsed, features
            )
        )
        if (
            size_result.valid
            and not isinstance(size_result.parsed, MaxSize)
            and region_width
            and region_height
        ):
            out_width, out_height = resulting_size(region_width, region_height, size_result.parsed)
            errors.extend(_limit_errors(out_width, out_height, descriptor))

    return ValidationResult(errors=errors, warnings=warnings)


# URIs


def build_image_uri(base_uri: str, request: ImageRequest) -> str:
    """
    Build an image request URI.

    Example:
        >>> build_image_uri("https://iiif.example.org/img1", ImageRequest(size="!800,800"))
        'https://iiif.example.org/img1/full/!800,800/0/default.jpg'
    """
    return f"{base_uri.rstrip('/')}/{request.to_path()}"


def build_info_uri(base_uri: str) -> str:
    return f"{base_uri.rstrip('/')}/info.json"


def _split_base(uri: str, min_path_segments: int) -> tuple[str, list[str]] | str:
    scheme, sep, rest = uri.partition("://")
    if not sep or scheme not in ("http", "https"):
        return "must be an absolute http(s) URI"
    if "?" in rest or "#" in rest:
        return "query strings and fragments are not allowed"
    segments = rest.split("/")
    if len(segments) < 1 + min_path_segments:
        return "too few path segments"
    if any(not segment for segment in segments):
        return "empty path segment"
    return scheme, segments


def parse_image_uri(uri: str) -> ParseResult[ImageUri]:
    """
    Split an image request URI into its components.

    Only the exact shape ``{baseUri}/{region}/{size}/{rotation}/{quality}.{format}``
    is accepted, where the base URI is an http(s) URI with at least one path
    segment (the identifier). Query strings and fragments are rejected.
    Segment values are not validated here; pass ``.to_request()`` to
    validate_image_request() for that.

    Parameters:
        uri: Image request URI

    Returns:
        ParseResult holding an ImageUri, or a GrammarError

    Example:
        >>> parse_image_uri("https://x/img/full/max/0/default.jpg").value.base_uri
        'https://x/img'
    """
    split = _split_base(uri, 5)
    if isinstance(split, str):
        return ParseResult(error=GrammarError("image URI", uri, URI_TEMPLATE, split))
    scheme, segments = split

    host, *identifier_path, region, size, rotation, last = segments
    quality, dot, fmt = last.partition(".")
    if not dot or not quality or not fmt or "." in fmt:
        return ParseResult(
            error=GrammarError(
                "image URI", uri, URI_TEMPLATE, f"last segment '{last}' must be quality.format"
            )
        )

    base_uri = f"{scheme}://{'/'.join([host, *identifier_path])}"
    return ParseResult(
        ImageUri(
            base_uri=base_uri,
            identifier=identifier_path[-1],
            region=region,
            size=size,
            rotation=rotation,
            quality=quality,
            format=fmt,
        )
    )


def parse_info_uri(uri: str) -> ParseResult[str]:
    """Return the base URI of an ``{baseUri}/info.json`` URI."""
    template = "{baseUri}/info.json"
    split = _split_base(uri, 2)
    if isinstance(split, str):
        return ParseResult(error=GrammarError("info URI", uri, template, split))
    scheme, segments = split
    if segments[-1] != "info.json":
        return ParseResult(error=GrammarError("info URI", uri, template))
    return ParseResult(f"{scheme}://{'/'.join(segments[:-1])}")


def encode_identifier(identifier: str) -> str:
    """Percent-encode an identifier for use as a single URI path segment."""
    return quote(identifier, safe="")


def decode_identifier(encoded: str) -> str:
    return unquote(encoded)
