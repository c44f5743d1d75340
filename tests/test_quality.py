"""
Tests for fixed_omr.core.quality

Test Coverage:
- validate_quality(): registration marks, resolution floor, report structure
- validate_template_compatibility()
"""

import pytest

from conftest import blank_sheet, draw_corners
from fixed_omr.core import TemplateConfig, validate_quality, validate_template_compatibility


class TestValidateQuality:
    """Tests for validate_quality()."""

    def test_all_corners_and_good_resolution_is_valid(self, sheet_size, make_sheet):
        width, height = sheet_size

        report = validate_quality(make_sheet(), width, height)

        assert report.is_valid
        assert report.corners_detected == 4
        assert report.issues == []
        assert report.recommendations == []
        assert all(ratio > 0.5 for ratio in report.corner_darkness.values())

    def test_single_corner_is_invalid(self, sheet_size, make_sheet):
        """Three missing marks leave fewer than two detected corners."""
        width, height = sheet_size
        img = make_sheet(corners=('top-left',))

        report = validate_quality(img, width, height)

        assert not report.is_valid
        assert report.corners_detected == 1
        assert "registration marks unclear" in report.issues
        assert "registration mark missing at top-right" in report.issues
        assert "registration mark missing at bottom-left" in report.issues
        assert "registration mark missing at bottom-right" in report.issues
        assert "ensure the corner squares are printed clearly" in report.recommendations

    def test_one_missing_corner_is_reported_by_name(self, sheet_size, make_sheet):
        width, height = sheet_size
        img = make_sheet(corners=('top-left', 'top-right', 'bottom-left'))

        report = validate_quality(img, width, height)

        assert not report.is_valid
        assert report.corners_detected == 3
        assert report.issues == ["registration mark missing at bottom-right"]

    def test_low_resolution_is_a_separate_issue(self):
        """A small image with clean corners reports only the resolution problem."""
        img = blank_sheet(800, 1000)
        draw_corners(img)

        report = validate_quality(img, 800, 1000)

        assert not report.is_valid
        assert report.corners_detected == 4
        assert len(report.issues) == 1
        assert report.issues[0].startswith("resolution too low")
        assert report.recommendations == ["use at least 1400x1800"]

    def test_blank_low_resolution_reports_both_problems(self):
        img = blank_sheet(640, 480)

        report = validate_quality(img, 640, 480)

        assert any(i.startswith("resolution too low") for i in report.issues)
        assert "registration marks unclear" in report.issues
        assert len(report.recommendations) == 2

    def test_truncated_buffer_does_not_raise(self):
        report = validate_quality(b"\xff" * 100, 1400, 1800)

        assert not report.is_valid
        assert report.corners_detected == 0


class TestTemplateCompatibility:
    """Tests for validate_template_compatibility()."""

    @pytest.mark.parametrize("count", [1, 10, 20])
    def test_up_to_twenty_questions_is_compatible(self, count):
        result = validate_template_compatibility(count)

        assert result.is_compatible

    def test_more_questions_is_incompatible(self):
        result = validate_template_compatibility(25)

        assert not result.is_compatible
        assert "25" in result.message
        assert "20" in result.recommendation

    def test_uses_config_capacity(self):
        config = TemplateConfig.for_image(1400, 1800, total_questions=10)

        assert not validate_template_compatibility(12, config).is_compatible
