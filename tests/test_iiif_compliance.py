"""Tests for IIIF Image API compliance levels and descriptor generation."""

from pathlib import Path

import pytest

from limpet.iiif.v3 import (
    COMPLIANCE_LEVELS,
    ComplianceLevel,
    Feature,
    ImageFormat,
    Quality,
    SizeInfo,
    check_compliance,
    create_image_service_reference,
    format_for_mime,
    generate_descriptor,
    generate_standard_sizes,
    generate_standard_tiles,
    is_image_service3,
    load_descriptor,
    mime_type_for,
    required_features,
    required_formats,
    required_qualities,
    validate_descriptor_shape,
)


FIXTURES_DIR = Path(__file__).parent / "fixtures"
BASE = "https://iiif.example.org/iiif/3/img1"


class TestLevelTables:
    """Tests for the compliance level requirement tables."""

    def test_level0_requires_nothing_optional(self):
        """Test that level0 needs only jpg and default quality."""
        assert required_features("level0") == ()
        assert required_formats("level0") == (ImageFormat.JPG,)
        assert required_qualities("level0") == (Quality.DEFAULT,)

    def test_level2_requirements(self):
        """Test the level2 format and quality requirements."""
        assert set(required_formats(ComplianceLevel.LEVEL2)) == {ImageFormat.JPG, ImageFormat.PNG}
        assert len(required_qualities(ComplianceLevel.LEVEL2)) == 4
        assert Feature.ROTATION_BY_90S in required_features(ComplianceLevel.LEVEL2)
        assert Feature.ROTATION_ARBITRARY not in required_features(ComplianceLevel.LEVEL2)

    def test_level1_features_are_in_level2(self):
        """Test that every level1 feature is also required by level2."""
        assert set(required_features("level1")) <= set(required_features("level2"))

    def test_tables_are_read_only(self):
        """Test that the level table cannot be modified."""
        with pytest.raises(TypeError):
            COMPLIANCE_LEVELS[ComplianceLevel.LEVEL0] = None

    def test_unknown_level(self):
        """Test that an unknown level raises ValueError."""
        with pytest.raises(ValueError):
            required_features("level3")


class TestCheckCompliance:
    """Tests for checking a descriptor against a level."""

    @pytest.mark.parametrize("level", list(ComplianceLevel))
    def test_generated_descriptor_complies_with_its_level(self, level):
        """Test that a generated descriptor satisfies its declared level."""
        info = generate_descriptor(BASE, 1000, 800, level)
        assert check_compliance(info, level).compliant

    def test_level1_against_level2(self):
        """Test the missing items when checking level1 against level2."""
        info = generate_descriptor(BASE, 1000, 800, "level1")
        report = check_compliance(info, "level2")
        assert not report.compliant
        assert report.missing_features == [
            Feature.REGION_BY_PCT,
            Feature.SIZE_BY_CONFINED_WH,
            Feature.SIZE_BY_PCT,
            Feature.ROTATION_BY_90S,
        ]
        assert report.missing_formats == [ImageFormat.PNG]
        assert report.missing_qualities == [Quality.COLOR, Quality.GRAY, Quality.BITONAL]

    def test_extras_complete_a_level(self):
        """Test that extras can raise a service to a higher level."""
        info = generate_descriptor(
            BASE,
            1000,
            800,
            "level1",
            extra_features=["regionByPct", "sizeByConfinedWh", "sizeByPct", "rotationBy90s"],
            extra_formats=["png"],
            extra_qualities=["color", "gray", "bitonal"],
        )
        assert check_compliance(info, "level2").compliant

    def test_compliant_iff_nothing_missing(self):
        """Test that compliant is exactly the absence of missing items."""
        info = load_descriptor(FIXTURES_DIR / "info_level0.json")
        for level in ComplianceLevel:
            report = check_compliance(info, level)
            missing = report.missing_features or report.missing_formats or report.missing_qualities
            assert report.compliant == (not missing)


class TestGenerateDescriptor:
    """Tests for descriptor generation."""

    def test_minimal_descriptor(self):
        """Test the required properties of a generated info.json."""
        data = generate_descriptor(BASE, 4000, 3000).to_info_json()
        assert data == {
            "@context": "http://iiif.io/api/image/3/context.json",
            "id": BASE,
            "type": "ImageService3",
            "protocol": "http://iiif.io/api/image",
            "profile": "level0",
            "width": 4000,
            "height": 3000,
        }

    def test_generated_descriptor_passes_shape_validation(self):
        """Test that generated documents validate cleanly."""
        info = generate_descriptor(
            BASE,
            4000,
            3000,
            "level0",
            sizes=generate_standard_sizes(4000, 3000),
            tiles=generate_standard_tiles(),
            extra_features=["sizeUpscaling"],
            max_width=5000,
            preferred_formats=["webp"],
        )
        result = validate_descriptor_shape(info.to_info_json())
        assert result.valid
        assert result.warnings == []

    def test_optional_properties_use_json_names(self):
        """Test camelCase names in the serialized document."""
        data = generate_descriptor(
            BASE, 4000, 3000, "level2", max_width=2000, max_area=4_000_000, extra_formats=["webp"]
        ).to_info_json()
        assert data["maxWidth"] == 2000
        assert data["maxArea"] == 4_000_000
        assert data["extraFormats"] == ["webp"]
        assert "maxHeight" not in data
        assert "sizes" not in data

    def test_upscaling_requires_limit(self):
        """Test that sizeUpscaling without maxWidth or maxArea is rejected."""
        with pytest.raises(ValueError):
            generate_descriptor(BASE, 1000, 800, "level2", extra_features=["sizeUpscaling"])
        info = generate_descriptor(
            BASE, 1000, 800, "level2", extra_features=["sizeUpscaling"], max_area=2_000_000
        )
        assert info.declares_upscaling_limit

    @pytest.mark.parametrize("width,height", [(0, 100), (100, 0), (-1, 100)])
    def test_non_positive_dimensions(self, width, height):
        with pytest.raises(ValueError):
            generate_descriptor(BASE, width, height)

    def test_unknown_feature_rejected(self):
        """Test that generation only accepts known features."""
        with pytest.raises(ValueError):
            generate_descriptor(BASE, 1000, 800, extra_features=["holographicProjection"])


class TestHelpers:
    """Tests for standard sizes, tiles and service references."""

    def test_standard_sizes(self):
        """Test that sizes keep the aspect ratio and skip widths beyond the image."""
        sizes = generate_standard_sizes(1000, 800)
        assert sizes == [SizeInfo(width=150, height=120), SizeInfo(width=600, height=480)]

    def test_standard_sizes_floor_height(self):
        assert generate_standard_sizes(1000, 333, [150]) == [SizeInfo(width=150, height=49)]

    def test_standard_tiles(self):
        """Test the default tile layout."""
        (tiles,) = generate_standard_tiles()
        assert tiles.width == 512
        assert tiles.tile_height == 512
        assert tiles.scale_factors == (1, 2, 4, 8)

    def test_standard_tiles_rejects_bad_factors(self):
        with pytest.raises(ValueError):
            generate_standard_tiles(256, [1, 0])

    def test_service_reference(self):
        """Test the embedded ImageService3 reference."""
        ref = create_image_service_reference(BASE, "level1", width=1000, height=800)
        data = ref.to_json()
        assert data == {
            "id": BASE,
            "type": "ImageService3",
            "protocol": "http://iiif.io/api/image",
            "profile": "level1",
            "width": 1000,
            "height": 800,
        }
        assert is_image_service3(data)
        assert not is_image_service3({"id": BASE, "type": "ImageService2", "profile": "level1"})
        assert not is_image_service3("ImageService3")

    def test_mime_types(self):
        """Test format and media type lookups."""
        assert mime_type_for("jpg") == "image/jpeg"
        assert mime_type_for(ImageFormat.JP2) == "image/jp2"
        assert format_for_mime("image/png") is ImageFormat.PNG
        assert format_for_mime("image/bmp") is None
