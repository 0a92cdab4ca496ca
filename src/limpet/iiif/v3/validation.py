"""
Validation results and structural validation of image information documents.

Validators in this package accumulate problems instead of raising, so a caller
sees every issue in one pass. Errors make a result invalid; warnings flag
things that are legal but questionable, or unknown but well-formed (kept as
warnings to stay forward-compatible with later Image API revisions).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlparse

from .compliance import FEATURE_DESCRIPTIONS
from .grammar import ImageFormat, Quality
from .models import IMAGE_API_CONTEXT, IMAGE_API_PROTOCOL, ComplianceLevel, Feature


@dataclass(frozen=True)
class ValidationResult:
    """
    Accumulated outcome of a validation pass.

    Attributes:
        errors: Problems that make the subject invalid
        warnings: Problems worth surfacing that do not invalidate it
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _check_context(context: Any, errors: list[str]) -> None:
    if context is None:
        errors.append("@context is required")
    elif isinstance(context, str):
        if context != IMAGE_API_CONTEXT:
            errors.append(f'@context must be "{IMAGE_API_CONTEXT}"')
    elif isinstance(context, list):
        if IMAGE_API_CONTEXT not in context:
            errors.append(f'@context array must include "{IMAGE_API_CONTEXT}"')
        elif context[-1] != IMAGE_API_CONTEXT:
            errors.append("@context array must end with the Image API context")
    else:
        errors.append("@context must be a string or an array")


def _check_id(value: Any, errors: list[str], warnings: list[str]) -> None:
    if value is None or value == "":
        errors.append("id is required")
        return
    if not isinstance(value, str):
        errors.append("id must be a valid HTTP(S) URI")
        return
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append("id must be a valid HTTP(S) URI")
    elif value.endswith("/"):
        warnings.append("id should not have a trailing slash")


def _check_vocabulary(
    name: str, value: Any, known: set[str], errors: list[str], warnings: list[str]
) -> None:
    if not isinstance(value, list):
        errors.append(f"{name} must be an array")
        return
    for entry in value:
        if not isinstance(entry, str) or entry not in known:
            warnings.append(f"Unknown {name} entry: {entry}")


def validate_descriptor_shape(info: Any) -> ValidationResult:
    """
    Validate the structure of an externally supplied info.json document.

    Checks required properties and their types, the ``@context`` value, the
    optional limits, and each ``sizes`` and ``tiles`` entry. Unrecognized
    features, formats and qualities produce warnings rather than errors.

    Parameters:
        info: Parsed JSON document (normally a dict)

    Returns:
        ValidationResult (valid when no errors were found)

    Example:
        >>> result = validate_descriptor_shape(load_json("info.json"))
        >>> for error in result.errors:
        ...     print(error)
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(info, Mapping):
        return ValidationResult(errors=["info.json must be a JSON object"])

    _check_context(info.get("@context"), errors)
    _check_id(info.get("id"), errors, warnings)

    if "type" not in info:
        errors.append("type is required")
    elif info["type"] != "ImageService3":
        errors.append('type must be "ImageService3"')

    if "protocol" not in info:
        errors.append("protocol is required")
    elif info["protocol"] != IMAGE_API_PROTOCOL:
        errors.append(f'protocol must be "{IMAGE_API_PROTOCOL}"')

    profile = info.get("profile")
    levels = {level.value for level in ComplianceLevel}
    if profile is None:
        errors.append("profile is required")
    elif not isinstance(profile, str) or profile not in levels:
        errors.append('profile must be "level0", "level1", or "level2"')

    for name in ("width", "height"):
        if not _is_positive_int(info.get(name)):
            errors.append(f"{name} must be a positive integer")

    for name in ("maxWidth", "maxHeight", "maxArea"):
        if name in info and not _is_positive_int(info[name]):
            errors.append(f"{name} must be a positive integer")

    sizes = info.get("sizes")
    tiles = info.get("tiles")
    if profile == ComplianceLevel.LEVEL0 and not sizes and not tiles:
        warnings.append("Level 0 servers should provide sizes or tiles array")

    if sizes is not None:
        if not isinstance(sizes, list):
            errors.append("sizes must be an array")
        else:
            for i, size in enumerate(sizes):
                if not isinstance(size, Mapping):
                    errors.append(f"sizes[{i}] must be an object")
                    continue
                for name in ("width", "height"):
                    if not _is_positive_int(size.get(name)):
                        errors.append(f"sizes[{i}].{name} must be a positive integer")

    if tiles is not None:
        if not isinstance(tiles, list):
            errors.append("tiles must be an array")
        else:
            for i, tile in enumerate(tiles):
                if not isinstance(tile, Mapping):
                    errors.append(f"tiles[{i}] must be an object")
                    continue
                if not _is_positive_int(tile.get("width")):
                    errors.append(f"tiles[{i}].width must be a positive integer")
                if "height" in tile and not _is_positive_int(tile["height"]):
                    errors.append(f"tiles[{i}].height must be a positive integer")
                factors = tile.get("scaleFactors")
                if (
                    not isinstance(factors, list)
                    or not factors
                    or not all(_is_positive_int(f) for f in factors)
                ):
                    errors.append(
                        f"tiles[{i}].scaleFactors must be a non-empty array of positive integers"
                    )

    extra_features = info.get("extraFeatures")
    if extra_features is not None:
        known = {feature.value for feature in FEATURE_DESCRIPTIONS}
        _check_vocabulary("extraFeatures", extra_features, known, errors, warnings)
        if (
            isinstance(extra_features, list)
            and Feature.SIZE_UPSCALING in extra_features
            and "maxWidth" not in info
            and "maxArea" not in info
        ):
            errors.append("sizeUpscaling feature requires maxWidth or maxArea to be specified")

    if "extraFormats" in info:
        known = {fmt.value for fmt in ImageFormat}
        _check_vocabulary("extraFormats", info["extraFormats"], known, errors, warnings)

    if "extraQualities" in info:
        known = {quality.value for quality in Quality}
        _check_vocabulary("extraQualities", info["extraQualities"], known, errors, warnings)

    return ValidationResult(errors=errors, warnings=warnings)
