"""
Tests for fixed_omr.core.config and fixed_omr.core.geometry

Test Coverage:
- TemplateConfig: derived dimensions, validation
- compute_layout(): bubble count, bounds, right-to-left column order, truncation
- get_layout(): caching per resolution
"""

import pytest

from fixed_omr.core import TemplateConfig, compute_layout, get_layout, group_by_question


class TestTemplateConfig:
    """Tests for TemplateConfig."""

    def test_derived_dimensions_for_default_sheet(self):
        """Grid band, cell size and radius follow the fixed template ratios."""
        config = TemplateConfig.for_image(1400, 1800)

        assert config.total_questions == 20
        assert config.grid_start_y == 936
        assert config.grid_end_y == 1530
        assert config.cell_width == pytest.approx(1400 / 3)
        assert config.cell_height == pytest.approx((1530 - 936) / 7)
        assert config.bubble_radius == pytest.approx(27.0)
        assert config.option_spacing == pytest.approx(1400 / 3 * 0.75 / 4)

    def test_config_is_frozen(self):
        config = TemplateConfig.for_image(1400, 1800)

        with pytest.raises(Exception):
            config.total_questions = 10

    def test_rejects_more_questions_than_grid_cells(self):
        with pytest.raises(ValueError):
            TemplateConfig.for_image(1400, 1800, total_questions=22)

    @pytest.mark.parametrize("width,height", [(0, 100), (100, 0), (-5, 10)])
    def test_rejects_non_positive_size(self, width, height):
        with pytest.raises(ValueError):
            TemplateConfig.for_image(width, height)


class TestComputeLayout:
    """Tests for compute_layout()."""

    @pytest.mark.parametrize("width,height", [
        (1400, 1800), (1000, 1200), (640, 480), (2480, 3508), (100, 100), (3, 5),
    ])
    def test_layout_has_four_bubbles_per_question_inside_image(self, width, height):
        """Every bubble lies inside the image with a strictly positive radius."""
        config = TemplateConfig.for_image(width, height)

        layout = compute_layout(width, height, config)

        assert len(layout) == config.total_questions * 4
        for bubble in layout:
            assert 0 <= bubble.x < width
            assert 0 <= bubble.y < height
            assert bubble.radius > 0

    def test_question_numbers_cover_all_questions(self, layout):
        numbers = sorted({b.question_number for b in layout})

        assert numbers == list(range(1, 21))

    def test_columns_run_right_to_left(self, layout):
        """Question 1 sits in the rightmost cell, question 3 in the leftmost."""
        groups = group_by_question(layout)

        assert groups[1][0].x > groups[2][0].x > groups[3][0].x
        assert groups[1][0].y == groups[2][0].y == groups[3][0].y
        assert groups[4][0].y > groups[1][0].y
        assert groups[4][0].x == pytest.approx(groups[1][0].x)

    def test_options_ordered_left_to_right_within_cell(self, layout):
        groups = group_by_question(layout)

        options = groups[1]
        assert [b.option for b in options] == ['A', 'B', 'C', 'D']
        assert options[0].x < options[1].x < options[2].x < options[3].x

    def test_options_centred_at_sixty_percent_of_cell_height(self, default_config, layout):
        first = layout[0]

        expected_y = default_config.grid_start_y + default_config.cell_height * 0.6
        assert first.y == pytest.approx(expected_y)

    def test_layout_truncated_to_total_questions(self):
        """Unused trailing cells produce no bubbles."""
        config = TemplateConfig.for_image(1400, 1800, total_questions=5)

        layout = compute_layout(1400, 1800, config)

        assert len(layout) == 20
        assert max(b.question_number for b in layout) == 5


class TestGetLayout:
    """Tests for get_layout() caching."""

    def test_same_resolution_reuses_table(self, default_config):
        first = get_layout(1400, 1800, default_config)
        second = get_layout(1400, 1800, TemplateConfig.for_image(1400, 1800))

        assert first is second
        assert isinstance(first, tuple)

    def test_different_resolution_builds_new_table(self, default_config):
        other = TemplateConfig.for_image(1000, 1200)

        assert get_layout(1400, 1800, default_config) != get_layout(1000, 1200, other)
