"""Tests for info.json structure validation, models and loaders."""

import copy
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from limpet.iiif.v3 import (
    IMAGE_API_CONTEXT,
    ComplianceLevel,
    Feature,
    ImageFormat,
    Quality,
    ServiceDescriptor,
    load_descriptor,
    load_json,
    parse_descriptor,
    validate_descriptor_shape,
)


FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def level2_data():
    return load_json(str(FIXTURES_DIR / "info_level2.json"))


class TestDescriptorShape:
    """Tests for validate_descriptor_shape."""

    def test_valid_document_passes(self, level2_data):
        """Test that a well-formed level2 document has no issues."""
        result = validate_descriptor_shape(level2_data)
        assert result.valid
        assert result.warnings == []

    def test_invalid_document_reports_all_errors(self):
        """Test that every structural problem is reported."""
        data = load_json(str(FIXTURES_DIR / "info_invalid.json"))
        result = validate_descriptor_shape(data)

        assert not result.valid
        assert f'@context must be "{IMAGE_API_CONTEXT}"' in result.errors
        assert "id must be a valid HTTP(S) URI" in result.errors
        assert 'type must be "ImageService3"' in result.errors
        assert 'profile must be "level0", "level1", or "level2"' in result.errors
        assert "width must be a positive integer" in result.errors
        assert "height must be a positive integer" in result.errors
        assert "tiles[0].scaleFactors must be a non-empty array of positive integers" in result.errors

    def test_not_an_object(self):
        """Test that non-object documents are rejected."""
        result = validate_descriptor_shape(["not", "an", "object"])
        assert result.errors == ["info.json must be a JSON object"]

    def test_missing_required_properties(self):
        """Test that each required property is reported when absent."""
        result = validate_descriptor_shape({})
        for name in ("@context", "id", "type", "protocol", "profile"):
            assert f"{name} is required" in result.errors

    def test_context_array(self, level2_data):
        """Test @context arrays: the Image API context must come last."""
        data = copy.deepcopy(level2_data)
        data["@context"] = ["http://www.w3.org/ns/anno.jsonld", IMAGE_API_CONTEXT]
        assert validate_descriptor_shape(data).valid

        data["@context"] = [IMAGE_API_CONTEXT, "http://www.w3.org/ns/anno.jsonld"]
        result = validate_descriptor_shape(data)
        assert result.errors == ["@context array must end with the Image API context"]

        data["@context"] = ["http://www.w3.org/ns/anno.jsonld"]
        result = validate_descriptor_shape(data)
        assert result.errors == [f'@context array must include "{IMAGE_API_CONTEXT}"']

    def test_trailing_slash_warns(self, level2_data):
        data = copy.deepcopy(level2_data)
        data["id"] = data["id"] + "/"
        result = validate_descriptor_shape(data)
        assert result.valid
        assert result.warnings == ["id should not have a trailing slash"]

    def test_boolean_is_not_a_dimension(self, level2_data):
        """Test that JSON booleans are not accepted as integers."""
        data = copy.deepcopy(level2_data)
        data["width"] = True
        assert "width must be a positive integer" in validate_descriptor_shape(data).errors

    def test_limits_must_be_positive(self, level2_data):
        data = copy.deepcopy(level2_data)
        data["maxArea"] = 0
        assert validate_descriptor_shape(data).errors == ["maxArea must be a positive integer"]

    def test_sizes_entries(self, level2_data):
        """Test validation of each sizes entry."""
        data = copy.deepcopy(level2_data)
        data["sizes"] = [{"width": 150, "height": 112}, {"width": 600}, "600,450"]
        result = validate_descriptor_shape(data)
        assert result.errors == ["sizes[1].height must be a positive integer", "sizes[2] must be an object"]

    def test_upscaling_requires_limit(self, level2_data):
        """Test that sizeUpscaling needs maxWidth or maxArea."""
        data = copy.deepcopy(level2_data)
        del data["maxWidth"]
        data["extraFeatures"] = ["sizeUpscaling"]
        result = validate_descriptor_shape(data)
        assert result.errors == ["sizeUpscaling feature requires maxWidth or maxArea to be specified"]

        data["maxArea"] = 16_000_000
        assert validate_descriptor_shape(data).valid

    def test_unknown_vocabulary_warns(self, level2_data):
        """Test that unknown extras are warnings, not errors."""
        data = copy.deepcopy(level2_data)
        data["extraFeatures"] = ["mirroring", "holographicProjection"]
        data["extraFormats"] = ["avif"]
        data["extraQualities"] = ["sepia", {"name": "gray"}]
        result = validate_descriptor_shape(data)
        assert result.valid
        assert result.warnings == [
            "Unknown extraFeatures entry: holographicProjection",
            "Unknown extraFormats entry: avif",
            "Unknown extraQualities entry: sepia",
            "Unknown extraQualities entry: {'name': 'gray'}",
        ]

    def test_level0_without_sizes_or_tiles_warns(self, level2_data):
        data = copy.deepcopy(level2_data)
        data["profile"] = "level0"
        del data["tiles"]
        result = validate_descriptor_shape(data)
        assert result.valid
        assert result.warnings == ["Level 0 servers should provide sizes or tiles array"]

    def test_to_dict(self):
        """Test the JSON-friendly result summary."""
        summary = validate_descriptor_shape({}).to_dict()
        assert summary["valid"] is False
        assert summary["warnings"] == []
        assert "id is required" in summary["errors"]


class TestDescriptorModel:
    """Tests for parsing info.json into ServiceDescriptor."""

    def test_parse_level2(self):
        """Test typed fields of a parsed descriptor."""
        info = load_descriptor(FIXTURES_DIR / "info_level2.json")
        assert info.profile is ComplianceLevel.LEVEL2
        assert (info.width, info.height) == (4000, 3000)
        assert info.max_width == 3000
        assert info.tiles[0].scale_factors == (1, 2, 4, 8, 16)
        assert info.tiles[0].tile_height == 512
        assert info.extra_formats == (ImageFormat.WEBP,)
        assert info.extra_qualities == (Quality.GRAY,)
        assert info.extra_features == (Feature.MIRRORING, Feature.PROFILE_LINK_HEADER)

    def test_unknown_features_dropped(self):
        """Test that unrecognized extras are dropped on parse."""
        info = load_descriptor(FIXTURES_DIR / "info_level0.json")
        assert info.extra_features == (Feature.CORS,)
        assert len(info.sizes) == 2

    def test_descriptor_is_frozen(self):
        info = load_descriptor(FIXTURES_DIR / "info_level0.json")
        with pytest.raises(ValidationError):
            info.width = 10

    def test_invalid_profile_raises(self, level2_data):
        """Test that the model rejects an unknown profile."""
        data = dict(level2_data, profile="level3")
        with pytest.raises(ValidationError):
            parse_descriptor(data)

    def test_extra_properties_preserved(self, level2_data):
        """Test that unmodelled properties survive a round trip."""
        data = dict(level2_data, service=[{"id": "https://auth.example.org", "type": "AuthProbeService2"}])
        info = parse_descriptor(data)
        assert info.to_info_json()["service"] == data["service"]

    def test_serialization_matches_source(self, level2_data):
        """Test that to_info_json reproduces a document using only known values."""
        info = parse_descriptor(level2_data)
        assert info.to_info_json() == level2_data

    def test_construct_by_field_name(self):
        info = ServiceDescriptor(id="https://iiif.example.org/img", profile="level1", width=10, height=20)
        assert info.context == IMAGE_API_CONTEXT
        assert info.max_area is None


class TestLoaders:
    """Tests for reading documents from disk."""

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_json(str(FIXTURES_DIR / "no_such_info.json"))

    def test_malformed_json(self):
        with pytest.raises(json.JSONDecodeError):
            load_descriptor(FIXTURES_DIR / "info_malformed.json")
