"""
Compliance levels for IIIF Image API 3.0.

Each level is an independent, explicit table of the features, formats and
qualities it requires, written out as the Image API compliance document lists
them rather than derived from the level below.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from .grammar import ImageFormat, Quality
from .models import (
    ComplianceLevel,
    Feature,
    ImageServiceReference,
    ServiceDescriptor,
    SizeInfo,
    TileInfo,
)

DEFAULT_SIZE_WIDTHS = (150, 600, 1200)
DEFAULT_TILE_WIDTH = 512
DEFAULT_SCALE_FACTORS = (1, 2, 4, 8)


@dataclass(frozen=True)
class LevelRequirements:
    uri: str
    features: tuple[Feature, ...]
    formats: tuple[ImageFormat, ...]
    qualities: tuple[Quality, ...]


COMPLIANCE_LEVELS: Mapping[ComplianceLevel, LevelRequirements] = MappingProxyType({
    ComplianceLevel.LEVEL0: LevelRequirements(
        uri="http://iiif.io/api/image/3/level0.json",
        features=(),
        formats=(ImageFormat.JPG,),
        qualities=(Quality.DEFAULT,),
    ),
    ComplianceLevel.LEVEL1: LevelRequirements(
        uri="http://iiif.io/api/image/3/level1.json",
        features=(
            Feature.REGION_BY_PX,
            Feature.REGION_SQUARE,
            Feature.SIZE_BY_W,
            Feature.SIZE_BY_H,
            Feature.SIZE_BY_WH,
        ),
        formats=(ImageFormat.JPG,),
        qualities=(Quality.DEFAULT,),
    ),
    ComplianceLevel.LEVEL2: LevelRequirements(
        uri="http://iiif.io/api/image/3/level2.json",
        features=(
            Feature.REGION_BY_PCT,
            Feature.REGION_BY_PX,
            Feature.REGION_SQUARE,
            Feature.SIZE_BY_CONFINED_WH,
            Feature.SIZE_BY_H,
            Feature.SIZE_BY_PCT,
            Feature.SIZE_BY_W,
            Feature.SIZE_BY_WH,
            Feature.ROTATION_BY_90S,
        ),
        formats=(ImageFormat.JPG, ImageFormat.PNG),
        qualities=(Quality.DEFAULT, Quality.COLOR, Quality.GRAY, Quality.BITONAL),
    ),
})

FEATURE_DESCRIPTIONS: Mapping[Feature, str] = MappingProxyType({
    Feature.BASE_URI_REDIRECT: "Base URI redirects to image information document",
    Feature.CANONICAL_LINK_HEADER: "Canonical image URI HTTP link header provided on image responses",
    Feature.CORS: "CORS HTTP headers provided on all responses",
    Feature.JSONLD_MEDIA_TYPE: "JSON-LD media type provided when requested",
    Feature.MIRRORING: "Image may be mirrored on vertical axis",
    Feature.PROFILE_LINK_HEADER: "Profile HTTP link header provided on image responses",
    Feature.REGION_BY_PCT: "Regions may be requested by percentage",
    Feature.REGION_BY_PX: "Regions may be requested by pixel dimensions",
    Feature.REGION_SQUARE: "Square region may be requested",
    Feature.ROTATION_ARBITRARY: "Rotation may be requested using non-90 degree values",
    Feature.ROTATION_BY_90S: "Rotation may be requested in multiples of 90 degrees",
    Feature.SIZE_BY_CONFINED_WH: "Size may be requested in !w,h form",
    Feature.SIZE_BY_H: "Size may be requested in ,h form",
    Feature.SIZE_BY_PCT: "Size may be requested in pct:n form",
    Feature.SIZE_BY_W: "Size may be requested in w, form",
    Feature.SIZE_BY_WH: "Size may be requested in w,h form",
    Feature.SIZE_UPSCALING: "Size prefixed with ^ may be requested",
})

FORMAT_MIME_TYPES: Mapping[ImageFormat, str] = MappingProxyType({
    ImageFormat.JPG: "image/jpeg",
    ImageFormat.TIF: "image/tiff",
    ImageFormat.PNG: "image/png",
    ImageFormat.GIF: "image/gif",
    ImageFormat.JP2: "image/jp2",
    ImageFormat.PDF: "application/pdf",
    ImageFormat.WEBP: "image/webp",
})

MIME_TO_FORMAT: Mapping[str, ImageFormat] = MappingProxyType(
    {mime: fmt for fmt, mime in FORMAT_MIME_TYPES.items()}
)


@dataclass(frozen=True)
class ComplianceReport:
    """
    Result of checking a descriptor against a compliance level.

    Attributes:
        compliant: True when nothing required by the target level is missing
        missing_features: Required features the service does not support
        missing_formats: Required formats the service does not support
        missing_qualities: Required qualities the service does not support
    """

    compliant: bool
    missing_features: list[Feature] = field(default_factory=list)
    missing_formats: list[ImageFormat] = field(default_factory=list)
    missing_qualities: list[Quality] = field(default_factory=list)


def required_features(level: ComplianceLevel | str) -> tuple[Feature, ...]:
    return COMPLIANCE_LEVELS[ComplianceLevel(level)].features


def required_formats(level: ComplianceLevel | str) -> tuple[ImageFormat, ...]:
    return COMPLIANCE_LEVELS[ComplianceLevel(level)].formats


def required_qualities(level: ComplianceLevel | str) -> tuple[Quality, ...]:
    return COMPLIANCE_LEVELS[ComplianceLevel(level)].qualities


def profile_uri(level: ComplianceLevel | str) -> str:
    return COMPLIANCE_LEVELS[ComplianceLevel(level)].uri


def supported_features(descriptor: ServiceDescriptor) -> frozenset[Feature]:
    """Features of the declared profile plus the descriptor's ``extraFeatures``."""
    return frozenset(required_features(descriptor.profile)) | frozenset(descriptor.extra_features)


def supported_formats(descriptor: ServiceDescriptor) -> frozenset[ImageFormat]:
    return frozenset(required_formats(descriptor.profile)) | frozenset(descriptor.extra_formats)


def supported_qualities(descriptor: ServiceDescriptor) -> frozenset[Quality]:
    return frozenset(required_qualities(descriptor.profile)) | frozenset(descriptor.extra_qualities)


def check_compliance(
    descriptor: ServiceDescriptor, target_level: ComplianceLevel | str
) -> ComplianceReport:
    """
    Check whether a service satisfies a compliance level.

    The service's capabilities are the requirements of its *declared* profile
    combined with its extra features, formats and qualities. Levels are not
    assumed to nest, so a level1 service that lists the right extras can be
    reported as satisfying level2.

    Parameters:
        descriptor: Service to check
        target_level: Level to check against

    Returns:
        ComplianceReport listing anything missing, in table order

    Example:
        >>> info = generate_descriptor("https://example.org/iiif/img", 100, 100, "level1")
        >>> check_compliance(info, "level2").missing_formats
        [<ImageFormat.PNG: 'png'>]
    """
    target = COMPLIANCE_LEVELS[ComplianceLevel(target_level)]
    features = supported_features(descriptor)
    formats = supported_formats(descriptor)
    qualities = supported_qualities(descriptor)

    missing_features = [f for f in target.features if f not in features]
    missing_formats = [f for f in target.formats if f not in formats]
    missing_qualities = [q for q in target.qualities if q not in qualities]

    return ComplianceReport(
        compliant=not (missing_features or missing_formats or missing_qualities),
        missing_features=missing_features,
        missing_formats=missing_formats,
        missing_qualities=missing_qualities,
    )


def generate_descriptor(
    id: str,
    width: int,
    height: int,
    level: ComplianceLevel | str = ComplianceLevel.LEVEL0,
    *,
    sizes: Iterable[SizeInfo | Mapping[str, Any]] | None = None,
    tiles: Iterable[TileInfo | Mapping[str, Any]] | None = None,
    max_width: int | None = None,
    max_height: int | None = None,
    max_area: int | None = None,
    extra_features: Iterable[Feature | str] | None = None,
    extra_formats: Iterable[ImageFormat | str] | None = None,
    extra_qualities: Iterable[Quality | str] | None = None,
    preferred_formats: Iterable[ImageFormat | str] | None = None,
    rights: str | None = None,
) -> ServiceDescriptor:
    """
    Build a minimal, internally consistent image information document.

    Parameters:
        id: Base URI of the image service (no trailing slash)
        width: Full image width in pixels
        height: Full image height in pixels
        level: Compliance level to declare as ``profile``
        sizes, tiles, max_width, max_height, max_area, extra_features,
        extra_formats, extra_qualities, preferred_formats, rights:
            Optional properties, included only when given

    Returns:
        ServiceDescriptor

    Raises:
        ValueError: If a dimension or limit is not positive, or if
            ``sizeUpscaling`` is requested without ``max_width`` or ``max_area``
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"width and height must be positive, got {width}x{height}")
    for name, limit in (("max_width", max_width), ("max_height", max_height), ("max_area", max_area)):
        if limit is not None and limit <= 0:
            raise ValueError(f"{name} must be positive, got {limit}")

    features = tuple(Feature(f) for f in extra_features or ())
    if Feature.SIZE_UPSCALING in features and max_width is None and max_area is None:
        raise ValueError("sizeUpscaling requires max_width or max_area")

    return ServiceDescriptor(
        id=id,
        profile=ComplianceLevel(level),
        width=width,
        height=height,
        max_width=max_width,
        max_height=max_height,
        max_area=max_area,
        sizes=tuple(sizes or ()),
        tiles=tuple(tiles or ()),
        preferred_formats=tuple(ImageFormat(f) for f in preferred_formats or ()),
        rights=rights,
        extra_features=features,
        extra_formats=tuple(ImageFormat(f) for f in extra_formats or ()),
        extra_qualities=tuple(Quality(q) for q in extra_qualities or ()),
    )


def generate_standard_sizes(
    width: int, height: int, target_widths: Iterable[int] = DEFAULT_SIZE_WIDTHS
) -> list[SizeInfo]:
    """
    Pre-rendered sizes for a level0 service.

    Widths larger than the image are skipped; heights keep the aspect ratio,
    rounded down.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"width and height must be positive, got {width}x{height}")
    return [
        SizeInfo(width=w, height=math.floor(w * height / width))
        for w in target_widths
        if w <= width
    ]


def generate_standard_tiles(
    tile_width: int = DEFAULT_TILE_WIDTH,
    scale_factors: Iterable[int] = DEFAULT_SCALE_FACTORS,
) -> list[TileInfo]:
    factors = tuple(scale_factors)
    if tile_width <= 0 or not factors or any(f <= 0 for f in factors):
        raise ValueError("tile width and scale factors must be positive")
    return [TileInfo(width=tile_width, scale_factors=factors)]


def create_image_service_reference(
    id: str,
    profile: ComplianceLevel | str = ComplianceLevel.LEVEL2,
    width: int | None = None,
    height: int | None = None,
) -> ImageServiceReference:
    return ImageServiceReference(
        id=id, profile=ComplianceLevel(profile), width=width, height=height
    )


def is_image_service3(service: Any) -> bool:
    """True if ``service`` is a JSON object shaped like an ImageService3 reference."""
    return (
        isinstance(service, Mapping)
        and isinstance(service.get("id"), str)
        and service.get("type") == "ImageService3"
        and service.get("profile") in {level.value for level in ComplianceLevel}
    )


def mime_type_for(fmt: ImageFormat | str) -> str:
    return FORMAT_MIME_TYPES[ImageFormat(fmt)]


def format_for_mime(mime_type: str) -> ImageFormat | None:
    return MIME_TO_FORMAT.get(mime_type)
