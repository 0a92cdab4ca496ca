"""
Pydantic models for IIIF Image API 3.0 service descriptors.

These models represent the image information document (info.json) that an
image service publishes, and the short service reference embedded in
Presentation API resources. Field names follow Python conventions; the JSON
names are kept as aliases so documents round-trip unchanged.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .grammar import ImageFormat, Quality

LOGGER = logging.getLogger(__name__)

IMAGE_API_CONTEXT = "http://iiif.io/api/image/3/context.json"
IMAGE_API_PROTOCOL = "http://iiif.io/api/image"


class ComplianceLevel(StrEnum):
    """Image API compliance levels, as written in the ``profile`` property."""

    LEVEL0 = "level0"
    LEVEL1 = "level1"
    LEVEL2 = "level2"


class Feature(StrEnum):
    """Image API 3.0 feature names usable in ``extraFeatures``."""

    BASE_URI_REDIRECT = "baseUriRedirect"
    CANONICAL_LINK_HEADER = "canonicalLinkHeader"
    CORS = "cors"
    JSONLD_MEDIA_TYPE = "jsonldMediaType"
    MIRRORING = "mirroring"
    PROFILE_LINK_HEADER = "profileLinkHeader"
    REGION_BY_PCT = "regionByPct"
    REGION_BY_PX = "regionByPx"
    REGION_SQUARE = "regionSquare"
    ROTATION_ARBITRARY = "rotationArbitrary"
    ROTATION_BY_90S = "rotationBy90s"
    SIZE_BY_CONFINED_WH = "sizeByConfinedWh"
    SIZE_BY_H = "sizeByH"
    SIZE_BY_PCT = "sizeByPct"
    SIZE_BY_W = "sizeByW"
    SIZE_BY_WH = "sizeByWh"
    SIZE_UPSCALING = "sizeUpscaling"


def _known_only(value: Any, vocabulary: type[StrEnum], field_name: str) -> Any:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return value
    known = {member.value for member in vocabulary}
    kept = [v for v in value if isinstance(v, str) and v in known]
    if len(kept) != len(value):
        LOGGER.debug(
            "Dropping unrecognized %s entries",
            field_name,
            extra={"dropped": [str(v) for v in value if v not in kept]},
        )
    return kept


class SizeInfo(BaseModel):
    """A pre-rendered size the service offers (entry of ``sizes``)."""

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    type: Literal["Size"] | None = None
    width: int
    height: int


class TileInfo(BaseModel):
    """
    A tile layout the service supports (entry of ``tiles``).

    When ``height`` is omitted, tiles are square and ``height`` equals ``width``.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    type: Literal["Tile"] | None = None
    width: int
    height: int | None = None
    scale_factors: tuple[int, ...] = Field(alias="scaleFactors")

    @property
    def tile_height(self) -> int:
        return self.height if self.height is not None else self.width


class ServiceDescriptor(BaseModel):
    """
    IIIF Image API 3.0 image information document (info.json).

    Describes the image's full dimensions and the capabilities of the service
    that delivers it. Unrecognized extra features, formats and qualities are
    dropped on parse: they cannot affect compliance decisions, and the shape
    validator reports them as warnings.

    Example:
        >>> info = ServiceDescriptor(id="https://iiif.example.org/img1", profile="level1",
        ...                          width=4000, height=3000)
        >>> info.to_info_json()["type"]
        'ImageService3'
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    context: str | list[Any] = Field(default=IMAGE_API_CONTEXT, alias="@context")
    id: str
    type: Literal["ImageService3"] = "ImageService3"
    protocol: Literal["http://iiif.io/api/image"] = IMAGE_API_PROTOCOL
    profile: ComplianceLevel
    width: int
    height: int
    max_width: int | None = Field(default=None, alias="maxWidth")
    max_height: int | None = Field(default=None, alias="maxHeight")
    max_area: int | None = Field(default=None, alias="maxArea")
    sizes: tuple[SizeInfo, ...] = ()
    tiles: tuple[TileInfo, ...] = ()
    preferred_formats: tuple[ImageFormat, ...] = Field(default=(), alias="preferredFormats")
    rights: str | None = None
    extra_features: tuple[Feature, ...] = Field(default=(), alias="extraFeatures")
    extra_formats: tuple[ImageFormat, ...] = Field(default=(), alias="extraFormats")
    extra_qualities: tuple[Quality, ...] = Field(default=(), alias="extraQualities")

    @field_validator("extra_features", mode="before")
    @classmethod
    def _drop_unknown_features(cls, value: Any) -> Any:
        return _known_only(value, Feature, "extraFeatures")

    @field_validator("extra_formats", "preferred_formats", mode="before")
    @classmethod
    def _drop_unknown_formats(cls, value: Any) -> Any:
        return _known_only(value, ImageFormat, "formats")

    @field_validator("extra_qualities", mode="before")
    @classmethod
    def _drop_unknown_qualities(cls, value: Any) -> Any:
        return _known_only(value, Quality, "extraQualities")

    @property
    def declares_upscaling_limit(self) -> bool:
        """True when ``maxWidth`` or ``maxArea`` bounds an upscaled request."""
        return self.max_width is not None or self.max_area is not None

    def to_info_json(self) -> dict[str, Any]:
        """
        Serialize to an info.json document.

        Unset optional properties and empty arrays are omitted.

        Returns:
            JSON-compatible dictionary using the Image API property names
        """
        data = self.model_dump(by_alias=True, exclude_none=True, mode="json")
        return {key: value for key, value in data.items() if value != []}


class ImageServiceReference(BaseModel):
    """
    Minimal ImageService3 reference for embedding in Presentation resources.

    Includes ``protocol``, which Image API 3.0 requires on service references.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    id: str
    type: Literal["ImageService3"] = "ImageService3"
    protocol: Literal["http://iiif.io/api/image"] = IMAGE_API_PROTOCOL
    profile: ComplianceLevel = ComplianceLevel.LEVEL2
    width: int | None = None
    height: int | None = None

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
