"""
IIIF Image API 3.0 request grammar and Presentation API 3.0 behavior rules.

This package parses, formats and validates image requests, checks image
information documents against the compliance levels, computes tile geometry,
and validates and resolves Presentation API behaviors.

Basic usage:
    >>> from limpet.iiif.v3 import load_descriptor, parse_image_uri, validate_image_request
    >>>
    >>> info = load_descriptor("info.json")
    >>> parsed = parse_image_uri("https://iiif.example.org/img1/full/!800,800/0/default.jpg")
    >>> result = validate_image_request(parsed.value.to_request(), info)
    >>> if not result.valid:
    ...     for error in result.errors:
    ...         print(error)

Behaviors:
    >>> from limpet.iiif.v3 import resolve_effective, validate_behaviors
    >>>
    >>> validate_behaviors("Canvas", ["facing-pages"], "Manifest", ["paged"]).valid
    True
    >>> resolve_effective("Canvas", ["facing-pages"], "Manifest", ["paged"])
    ['facing-pages', 'paged']
"""

from .grammar import (
    GrammarError,
    ParseResult,
    Quality,
    ImageFormat,
    FullRegion,
    SquareRegion,
    PixelRegion,
    PercentRegion,
    RegionSpec,
    MaxSize,
    WidthSize,
    HeightSize,
    PercentSize,
    WidthHeightSize,
    ConfinedSize,
    SizeSpec,
    Rotation,
    parse_region,
    format_region,
    parse_size,
    format_size,
    parse_rotation,
    format_rotation,
    parse_quality,
    parse_format,
)
from .models import (
    IMAGE_API_CONTEXT,
    IMAGE_API_PROTOCOL,
    ComplianceLevel,
    Feature,
    SizeInfo,
    TileInfo,
    ServiceDescriptor,
    ImageServiceReference,
)
from .validation import (
    ValidationResult,
    validate_descriptor_shape,
)
from .compliance import (
    COMPLIANCE_LEVELS,
    FEATURE_DESCRIPTIONS,
    ComplianceReport,
    required_features,
    required_formats,
    required_qualities,
    check_compliance,
    generate_descriptor,
    generate_standard_sizes,
    generate_standard_tiles,
    create_image_service_reference,
    is_image_service3,
    mime_type_for,
    format_for_mime,
)
from .request import (
    AxisResult,
    ImageRequest,
    ImageUri,
    validate_region,
    validate_size,
    validate_rotation,
    validate_quality,
    validate_format,
    validate_image_request,
    region_dimensions,
    resulting_size,
    build_image_uri,
    build_info_uri,
    parse_image_uri,
    parse_info_uri,
    encode_identifier,
    decode_identifier,
)
from .tiles import (
    TileRequest,
    tile_request,
    tile_count,
    all_tile_requests,
    build_tile_uri,
    all_tile_uris,
    descriptor_tile_uris,
)
from .behaviors import (
    Behavior,
    BehaviorCategory,
    ResourceType,
    DisjointSet,
    InheritanceRule,
    VALIDITY_MATRIX,
    DISJOINT_SETS,
    INHERITANCE_RULES,
    BEHAVIOR_DESCRIPTIONS,
    is_valid_for,
    valid_behaviors_for,
    disjoint_set_for,
    default_behavior,
    behaviors_in_category,
    describe,
    does_inherit,
    find_conflicts,
    validate_behaviors,
    suggest_behaviors,
)
from .inheritance import (
    inherited_behaviors,
    resolve_effective,
)
from .loaders import (
    load_json,
    parse_descriptor,
    load_descriptor,
)

__all__ = [
    # Grammar
    "GrammarError",
    "ParseResult",
    "Quality",
    "ImageFormat",
    "FullRegion",
    "SquareRegion",
    "PixelRegion",
    "PercentRegion",
    "RegionSpec",
    "MaxSize",
    "WidthSize",
    "HeightSize",
    "PercentSize",
    "WidthHeightSize",
    "ConfinedSize",
    "SizeSpec",
    "Rotation",
    "parse_region",
    "format_region",
    "parse_size",
    "format_size",
    "parse_rotation",
    "format_rotation",
    "parse_quality",
    "parse_format",
    # Models
    "IMAGE_API_CONTEXT",
    "IMAGE_API_PROTOCOL",
    "ComplianceLevel",
    "Feature",
    "SizeInfo",
    "TileInfo",
    "ServiceDescriptor",
    "ImageServiceReference",
    # Validation
    "ValidationResult",
    "validate_descriptor_shape",
    # Compliance
    "COMPLIANCE_LEVELS",
    "FEATURE_DESCRIPTIONS",
    "ComplianceReport",
    "required_features",
    "required_formats",
    "required_qualities",
    "check_compliance",
    "generate_descriptor",
    "generate_standard_sizes",
    "generate_standard_tiles",
    "create_image_service_reference",
    "is_image_service3",
    "mime_type_for",
    "format_for_mime",
    # Requests
    "AxisResult",
    "ImageRequest",
    "ImageUri",
    "validate_region",
    "validate_size",
    "validate_rotation",
    "validate_quality",
    "validate_format",
    "validate_image_request",
    "region_dimensions",
    "resulting_size",
    "build_image_uri",
    "build_info_uri",
    "parse_image_uri",
    "parse_info_uri",
    "encode_identifier",
    "decode_identifier",
    # Tiles
    "TileRequest",
    "tile_request",
    "tile_count",
    "all_tile_requests",
    "build_tile_uri",
    "all_tile_uris",
    "descriptor_tile_uris",
    # Behaviors
    "Behavior",
    "BehaviorCategory",
    "ResourceType",
    "DisjointSet",
    "InheritanceRule",
    "VALIDITY_MATRIX",
    "DISJOINT_SETS",
    "INHERITANCE_RULES",
    "BEHAVIOR_DESCRIPTIONS",
    "is_valid_for",
    "valid_behaviors_for",
    "disjoint_set_for",
    "default_behavior",
    "behaviors_in_category",
    "describe",
    "does_inherit",
    "find_conflicts",
    "validate_behaviors",
    "suggest_behaviors",
    # Inheritance
    "inherited_behaviors",
    "resolve_effective",
    # Loaders
    "load_json",
    "parse_descriptor",
    "load_descriptor",
]
