"""
Tests for the recursive zone classifier.
"""

import pytest

from mtile.core.errors import DegenerateRegion
from mtile.tiling.rect import Rect
from mtile.tiling.zones import Zone, ZoneSettings, classify, compute_tile, grid_cell

SCREEN = Rect(0, 0, 1920, 1080)


class TestGridCell:
    @pytest.mark.parametrize("columns,rows", [(1, 1), (2, 2), (3, 2), (4, 5)])
    def test_cell_contains_pointer_and_stays_in_area(self, columns, rows):
        area = Rect(100, 50, 1001, 733)
        for px in range(area.x, area.x2 + 1, 37):
            for py in range(area.y, area.y2 + 1, 29):
                cell = grid_cell(area, columns, rows, px, py)
                assert cell.contains(px, py)
                assert area.contains_rect(cell)

    def test_last_column_absorbs_remainder(self):
        cell = grid_cell(Rect(0, 0, 1001, 100), 2, 1, 1000, 50)
        assert cell == Rect(500, 0, 501, 100)

    def test_degenerate_grid(self):
        with pytest.raises(DegenerateRegion):
            grid_cell(Rect(0, 0, 1, 100), 2, 1, 0, 0)
        with pytest.raises(DegenerateRegion):
            grid_cell(SCREEN, 0, 2, 0, 0)


class TestSpecialZones:
    def test_center_is_full_region(self):
        result = compute_tile(SCREEN, 960, 540, ZoneSettings())
        assert result.zone is Zone.FULL
        assert result.rect == SCREEN
        assert result.depth == 1

    @pytest.mark.parametrize("columns,rows", [(1, 1), (2, 2), (3, 3), (5, 2)])
    @pytest.mark.parametrize("size", [1, 30])
    def test_full_zone_for_any_grid(self, columns, rows, size):
        area = Rect(1920, 0, 2560, 1440)
        settings = ZoneSettings(
            columns=columns, rows=rows, edge_proximity=size, corner_proximity=size
        )
        result = compute_tile(area, area.center_x, area.center_y, settings)
        assert result.zone is Zone.FULL
        assert result.rect == area

    def test_document_zone_centered(self):
        result = compute_tile(SCREEN, 900, 50, ZoneSettings())
        assert result.zone is Zone.DOCUMENT
        assert result.rect == Rect(480, 0, 960, 1080)

    def test_document_zone_outside_middle_third(self):
        result = compute_tile(SCREEN, 100, 50, ZoneSettings())
        assert result.zone is Zone.DOCUMENT
        assert result.rect == Rect(0, 0, 960, 1080)

    def test_document_mode_disabled(self):
        settings = ZoneSettings(split_depth=0, document_mode=False)
        result = compute_tile(SCREEN, 900, 50, settings)
        assert result.zone is Zone.GRID
        assert result.rect == Rect(0, 0, 960, 540)

    def test_document_band_is_root_only(self):
        # y offset 100 is already outside the band
        result = compute_tile(SCREEN, 300, 100, ZoneSettings(split_depth=0))
        assert result.zone is Zone.GRID

    def test_root_vertical_band_recenters_cell(self):
        result = compute_tile(SCREEN, 300, 540, ZoneSettings())
        assert result.zone is Zone.VERTICAL
        assert result.rect == Rect(0, 270, 960, 540)

    def test_root_horizontal_band_recenters_cell(self):
        result = compute_tile(SCREEN, 960, 300, ZoneSettings())
        assert result.zone is Zone.HORIZONTAL
        assert result.rect == Rect(480, 0, 960, 540)

    def test_band_bounds_are_exclusive(self):
        # |540 - 510| == 30 is not inside a 30px band
        result = compute_tile(SCREEN, 300, 510, ZoneSettings(split_depth=0))
        assert result.zone is Zone.GRID


class TestRecursion:
    def test_no_budget_returns_grid_cell(self):
        result = compute_tile(SCREEN, 300, 300, ZoneSettings(split_depth=0))
        assert result.zone is Zone.GRID
        assert result.rect == Rect(0, 0, 960, 540)
        assert result.depth == 1

    def test_one_level_of_recursion(self):
        result = compute_tile(SCREEN, 300, 300, ZoneSettings(split_depth=1))
        assert result.zone is Zone.GRID
        assert result.rect == Rect(0, 270, 480, 270)
        assert result.depth == 2

    def test_nested_vertical_band_fills_subregion(self):
        result = compute_tile(SCREEN, 100, 270, ZoneSettings(split_depth=1))
        assert result.zone is Zone.VERTICAL
        assert result.depth == 2
        assert result.rect == Rect(0, 0, 480, 540)

    def test_nested_horizontal_band_fills_subregion(self):
        result = compute_tile(SCREEN, 480, 100, ZoneSettings(split_depth=1))
        assert result.zone is Zone.HORIZONTAL
        assert result.depth == 2
        assert result.rect == Rect(0, 0, 960, 270)

    @pytest.mark.parametrize("budget", [0, 1, 2, 3, 4])
    def test_depth_is_bounded_by_budget(self, budget):
        settings = ZoneSettings(split_depth=budget, document_mode=False)
        for px in range(0, 1920, 61):
            for py in range(0, 1080, 53):
                result = compute_tile(SCREEN, px, py, settings)
                assert 1 <= result.depth <= budget + 1
                assert SCREEN.contains_rect(result.rect)

    def test_recursion_into_tiny_cells_is_degenerate(self):
        settings = ZoneSettings(
            split_depth=5, edge_proximity=0, corner_proximity=0, document_mode=False
        )
        with pytest.raises(DegenerateRegion):
            classify(Rect(0, 0, 8, 8), 1, 1, 2, 2, settings.split_depth, settings)
