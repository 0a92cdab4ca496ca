"""Tests for IIIF tile geometry."""

import math
from pathlib import Path

import pytest

from limpet.iiif.v3 import (
    PixelRegion,
    WidthHeightSize,
    all_tile_requests,
    all_tile_uris,
    build_tile_uri,
    descriptor_tile_uris,
    generate_descriptor,
    load_descriptor,
    parse_image_uri,
    tile_count,
    tile_request,
    validate_image_request,
)


FIXTURES_DIR = Path(__file__).parent / "fixtures"
BASE = "https://iiif.example.org/iiif/3/page-001"


def brute_force_count(width, height, tile_width, tile_height, scale_factor):
    """Count tiles by stepping across the image in full-resolution pixels."""
    columns = len(range(0, width, tile_width * scale_factor))
    rows = len(range(0, height, tile_height * scale_factor))
    return columns, rows


class TestTileCount:
    """Tests for tile grid dimensions."""

    def test_exact_fit(self):
        assert tile_count(1024, 1024, 512, 512, 1) == (2, 2)

    def test_partial_edge_tiles(self):
        """Test that partial tiles at the edges are counted."""
        assert tile_count(1000, 800, 512, 512, 1) == (2, 2)
        assert tile_count(1000, 800, 512, 512, 2) == (1, 1)

    @pytest.mark.parametrize(
        "width,height,tile_width,tile_height,scale_factor",
        [
            (4000, 3000, 512, 512, 1),
            (4000, 3000, 512, 512, 4),
            (4000, 3000, 256, 128, 8),
            (1, 1, 512, 512, 16),
            (5121, 513, 512, 256, 2),
            (6000, 4500, 1024, 1024, 3),
        ],
    )
    def test_matches_brute_force(self, width, height, tile_width, tile_height, scale_factor):
        """Test the ceiling arithmetic against stepping over the image."""
        expected = brute_force_count(width, height, tile_width, tile_height, scale_factor)
        assert tile_count(width, height, tile_width, tile_height, scale_factor) == expected
        tiles = all_tile_requests(width, height, tile_width, tile_height, scale_factor)
        assert len(tiles) == expected[0] * expected[1]

    @pytest.mark.parametrize("args", [(0, 100, 512, 512, 1), (100, 100, 0, 512, 1), (100, 100, 512, 512, 0)])
    def test_non_positive_arguments(self, args):
        with pytest.raises(ValueError):
            tile_count(*args)


class TestTileRequest:
    """Tests for individual tile regions."""

    def test_first_tile(self):
        tile = tile_request(1000, 800, 512, 512, 1, 0, 0)
        assert tile.region() == PixelRegion(0, 0, 512, 512)
        assert tile.output_size() == (512, 512)

    def test_edge_tile_is_clipped(self):
        """Test that the bottom-right tile is clipped to the image."""
        tile = tile_request(1000, 800, 512, 512, 1, 1, 1)
        assert (tile.x, tile.y, tile.width, tile.height) == (512, 512, 488, 288)
        assert tile.output_size() == (488, 288)

    def test_scaled_tile(self):
        """Test that a scaled tile covers scale_factor times the tile size."""
        tile = tile_request(4000, 3000, 512, 512, 4, 1, 1)
        assert tile.region() == PixelRegion(2048, 2048, 1952, 952)
        assert tile.output_size() == (488, 238)

    def test_tile_outside_image(self):
        with pytest.raises(ValueError):
            tile_request(1000, 800, 512, 512, 1, 2, 0)
        with pytest.raises(ValueError):
            tile_request(1000, 800, 512, 512, 1, 0, -1)

    def test_tiles_cover_image_without_overlap(self):
        """Test that the tiles of one scale factor partition the image."""
        tiles = all_tile_requests(1000, 800, 256, 256, 2)
        assert sum(t.width * t.height for t in tiles) == 1000 * 800
        for tile in tiles:
            assert tile.x + tile.width <= 1000
            assert tile.y + tile.height <= 800

    def test_row_major_order(self):
        """Test that tiles are ordered row by row, left to right."""
        tiles = all_tile_requests(1000, 800, 512, 512, 1)
        assert [(t.x, t.y) for t in tiles] == [(0, 0), (512, 0), (0, 512), (512, 512)]

    def test_output_size_rounds_up(self):
        tile = tile_request(1001, 801, 512, 512, 2, 0, 0)
        assert tile.output_size() == (501, 401)
        assert tile.output_size() == (math.ceil(1001 / 2), math.ceil(801 / 2))


class TestTileUris:
    """Tests for tile request URIs."""

    def test_tile_uri(self):
        tile = tile_request(4000, 3000, 512, 512, 4, 1, 1)
        assert build_tile_uri(BASE, tile) == f"{BASE}/2048,2048,1952,952/488,238/0/default.jpg"

    def test_tile_request_uses_explicit_size(self):
        tile = tile_request(4000, 3000, 512, 512, 1, 0, 0)
        request = tile.to_request(fmt="png", quality="gray")
        assert request.size == WidthHeightSize(512, 512)
        assert build_tile_uri(BASE, tile, "png", "gray").endswith("/0,0,512,512/512,512/0/gray.png")

    def test_all_tile_uris_are_valid_requests(self):
        """Test that every tile URI parses and validates against the service."""
        info = load_descriptor(FIXTURES_DIR / "info_level2.json")
        for uri in all_tile_uris(info.id, info.width, info.height, 512, 512, 2):
            parsed = parse_image_uri(uri)
            assert parsed.ok
            assert validate_image_request(parsed.value.to_request(), info).valid

    def test_descriptor_tile_uris(self):
        """Test tile URIs for every advertised scale factor."""
        info = load_descriptor(FIXTURES_DIR / "info_level0.json")
        uris = descriptor_tile_uris(info)
        assert list(uris) == [1, 2, 4]
        assert len(uris[1]) == 4 * 4
        assert len(uris[2]) == 2 * 2
        assert len(uris[4]) == 1
        assert uris[4][0] == f"{info.id}/0,0,1000,800/250,200/0/default.jpg"

    def test_descriptor_without_tiles(self):
        info = generate_descriptor(BASE, 1000, 800)
        assert descriptor_tile_uris(info) == {}
