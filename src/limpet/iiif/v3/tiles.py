"""
Tile geometry for IIIF Image API deep-zoom access.

A tile at grid position (tile_x, tile_y) for a scale factor covers a region of
``tile_width * scale_factor`` by ``tile_height * scale_factor`` pixels of the
full image, clipped at the right and bottom edges, and is delivered at
``tile_width`` by ``tile_height`` (smaller at the edges).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

from .grammar import ImageFormat, PixelRegion, Quality, WidthHeightSize
from .models import ServiceDescriptor
from .request import ImageRequest, build_image_uri


@dataclass(frozen=True)
class TileRequest:
    """
    One tile, as a region of the full image plus the scale factor.

    Attributes:
        x, y: Region origin in full-image pixels
        width, height: Region extent in full-image pixels
        scale_factor: Downsampling factor the tile is requested at
    """

    x: int
    y: int
    width: int
    height: int
    scale_factor: int

    def region(self) -> PixelRegion:
        return PixelRegion(self.x, self.y, self.width, self.height)

    def output_size(self) -> tuple[int, int]:
        """Pixel size of the delivered tile."""
        return (
            math.ceil(self.width / self.scale_factor),
            math.ceil(self.height / self.scale_factor),
        )

    def to_request(
        self, *, fmt: ImageFormat | str = ImageFormat.JPG, quality: Quality | str = Quality.DEFAULT
    ) -> ImageRequest:
        width, height = self.output_size()
        return ImageRequest(
            region=self.region(),
            size=WidthHeightSize(width, height),
            quality=quality,
            format=fmt,
        )


def _require_positive(**values: int) -> None:
    for name, value in values.items():
        if value <= 0:
            raise ValueError(f"{name} must be positive, got {value}")


def tile_count(
    full_width: int, full_height: int, tile_width: int, tile_height: int, scale_factor: int
) -> tuple[int, int]:
    """
    Number of tile columns and rows covering the image at a scale factor.

    Uses ceiling division on the scaled image dimensions.

    Returns:
        (columns, rows)
    """
    _require_positive(
        full_width=full_width,
        full_height=full_height,
        tile_width=tile_width,
        tile_height=tile_height,
        scale_factor=scale_factor,
    )
    scaled_width = math.ceil(full_width / scale_factor)
    scaled_height = math.ceil(full_height / scale_factor)
    return math.ceil(scaled_width / tile_width), math.ceil(scaled_height / tile_height)


def tile_request(
    full_width: int,
    full_height: int,
    tile_width: int,
    tile_height: int,
    scale_factor: int,
    tile_x: int,
    tile_y: int,
) -> TileRequest:
    """
    Compute the region of a single tile.

    Parameters:
        full_width: Full image width
        full_height: Full image height
        tile_width: Tile width at the requested scale
        tile_height: Tile height at the requested scale
        scale_factor: Downsampling factor
        tile_x: Column index (0-based)
        tile_y: Row index (0-based)

    Returns:
        TileRequest with the region clipped to the image bounds

    Raises:
        ValueError: If a dimension is not positive, or the tile origin lies
            outside the image

    Example:
        >>> tile_request(1000, 800, 512, 512, 1, 1, 1)
        TileRequest(x=512, y=512, width=488, height=288, scale_factor=1)
    """
    _require_positive(
        full_width=full_width,
        full_height=full_height,
        tile_width=tile_width,
        tile_height=tile_height,
        scale_factor=scale_factor,
    )
    if tile_x < 0 or tile_y < 0:
        raise ValueError(f"tile indices must be non-negative, got ({tile_x}, {tile_y})")

    x = tile_x * tile_width * scale_factor
    y = tile_y * tile_height * scale_factor
    if x >= full_width or y >= full_height:
        raise ValueError(f"tile ({tile_x}, {tile_y}) lies outside a {full_width}x{full_height} image")

    width = min(tile_width * scale_factor, full_width - x)
    height = min(tile_height * scale_factor, full_height - y)
    return TileRequest(x=x, y=y, width=width, height=height, scale_factor=scale_factor)


def iter_tile_requests(
    full_width: int, full_height: int, tile_width: int, tile_height: int, scale_factor: int
) -> Iterator[TileRequest]:
    """Yield every tile for one scale factor, row by row, left to right."""
    columns, rows = tile_count(full_width, full_height, tile_width, tile_height, scale_factor)
    for tile_y in range(rows):
        for tile_x in range(columns):
            yield tile_request(
                full_width, full_height, tile_width, tile_height, scale_factor, tile_x, tile_y
            )


def all_tile_requests(
    full_width: int, full_height: int, tile_width: int, tile_height: int, scale_factor: int
) -> list[TileRequest]:
    """
    All tiles for one scale factor in row-major order.

    The ordering (rows top to bottom, columns left to right within a row) is
    stable and may be relied on for progressive loading.
    """
    return list(iter_tile_requests(full_width, full_height, tile_width, tile_height, scale_factor))


def build_tile_uri(
    base_uri: str,
    tile: TileRequest,
    fmt: ImageFormat | str = ImageFormat.JPG,
    quality: Quality | str = Quality.DEFAULT,
) -> str:
    return build_image_uri(base_uri, tile.to_request(fmt=fmt, quality=quality))


def all_tile_uris(
    base_uri: str,
    full_width: int,
    full_height: int,
    tile_width: int,
    tile_height: int,
    scale_factor: int,
    fmt: ImageFormat | str = ImageFormat.JPG,
    quality: Quality | str = Quality.DEFAULT,
) -> list[str]:
    return [
        build_tile_uri(base_uri, tile, fmt, quality)
        for tile in iter_tile_requests(full_width, full_height, tile_width, tile_height, scale_factor)
    ]


def descriptor_tile_uris(
    descriptor: ServiceDescriptor,
    fmt: ImageFormat | str = ImageFormat.JPG,
    quality: Quality | str = Quality.DEFAULT,
) -> dict[int, list[str]]:
    """
    Tile URIs for every scale factor the descriptor advertises.

    Uses the first entry of ``tiles``. Returns an empty mapping when the
    service publishes no tiles.

    Returns:
        Mapping of scale factor to tile URIs, in row-major order
    """
    if not descriptor.tiles:
        return {}
    tiles = descriptor.tiles[0]
    return {
        factor: all_tile_uris(
            descriptor.id,
            descriptor.width,
            descriptor.height,
            tiles.width,
            tiles.tile_height,
            factor,
            fmt,
            quality,
        )
        for factor in tiles.scale_factors
    }
