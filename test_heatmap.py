import numpy as np
import pytest

from transit_heatmaps.heat_utils import heatmap
from transit_heatmaps.heat_utils.heatmap import (
    DegenerateBoundsWarning,
    GeoBounds,
    NoDataError,
)
from transit_heatmaps.heat_utils.positions import build_position_set

"""
Unit Tests For heat_utils/heatmap.py
"""


class TestGetBounds:
    def test_bounds_cover_every_position(self):
        position_set = build_position_set(
            {
                3: [(45.5, -122.7), (45.6, -122.5)],
                7: [(45.4, -122.6)],
                9: [],
            }
        )
        bounds = heatmap.get_bounds(position_set)
        assert bounds == GeoBounds(45.4, 45.6, -122.7, -122.5)
        for positions in position_set.values():
            for lat, lon in positions:
                assert bounds.min_lat <= lat <= bounds.max_lat
                assert bounds.min_lon <= lon <= bounds.max_lon

    def test_no_minutes(self):
        with pytest.raises(NoDataError):
            heatmap.get_bounds(build_position_set({}))

    def test_only_empty_minutes(self):
        with pytest.raises(NoDataError):
            heatmap.get_bounds(build_position_set({1: [], 2: []}))

    def test_single_position_is_not_an_error(self):
        bounds = heatmap.get_bounds(build_position_set({1: [(10.0, 20.0)]}))
        assert bounds == GeoBounds(10.0, 10.0, 20.0, 20.0)


class TestBucketPositions:
    @pytest.fixture(autouse=True)
    def fixture(self):
        self.bounds = GeoBounds(0.0, 7.0, 0.0, 7.0)
        self.resolution = 8

    def test_one_increment_per_position(self):
        rng = np.random.default_rng(0)
        positions = rng.uniform(0, 7, size=(500, 2))
        grid = heatmap.bucket_positions(positions, self.bounds, self.resolution)
        assert grid.shape == (8, 8)
        assert grid.sum() == 500

    def test_repeated_position_accumulates(self):
        positions = np.array([(3.5, 3.5)] * 4)
        grid = heatmap.bucket_positions(positions, self.bounds, self.resolution)
        assert grid[3, 3] == 4
        assert grid.sum() == 4

    def test_max_coordinate_maps_to_last_cell(self):
        grid = heatmap.bucket_positions(np.array([(7.0, 7.0), (0.0, 7.0)]), self.bounds, 8)
        assert grid[7, 7] == 1
        assert grid[0, 7] == 1

    def test_outside_bounds_is_clamped(self):
        grid = heatmap.bucket_positions(np.array([(-5.0, 100.0)]), self.bounds, 8)
        assert grid[0, 7] == 1

    def test_splat_interior(self):
        positions = np.array([(3.5, 3.5), (5.5, 1.5)])
        grid = heatmap.bucket_positions(positions, self.bounds, self.resolution, splat=True)
        assert grid.sum() == 9 * len(positions)
        assert np.all(grid[2:4, 2:5] == 1)
        assert np.all(grid[5:7, 0:3] == 1)
        # the two 3x3 blocks share cell (4, 2)
        assert grid[4, 2] == 2
        assert grid[4, 3] == 1
        assert grid[4, 1] == 1

    def test_splat_min_corner_collapses(self):
        grid = heatmap.bucket_positions(np.array([(0.0, 0.0)]), self.bounds, 8, splat=True)
        assert grid[0, 0] == 4
        # (0,0) gets every neighbour with a -1 or 0 offset on both axes
        assert grid[0, 1] == 2
        assert grid[1, 0] == 2
        assert grid[1, 1] == 1
        assert grid.sum() == 9

    def test_splat_corner_on_single_cell_grid(self):
        grid = heatmap.bucket_positions(np.array([(0.0, 0.0)]), self.bounds, 1, splat=True)
        assert grid[0, 0] == 9

    def test_splat_edge(self):
        grid = heatmap.bucket_positions(np.array([(0.0, 3.5)]), self.bounds, 8, splat=True)
        assert np.all(grid[0, 2:5] == 2)
        assert np.all(grid[1, 2:5] == 1)
        assert grid.sum() == 9

    def test_empty_positions(self):
        grid = heatmap.bucket_positions(np.empty((0, 2)), self.bounds, 8, splat=True)
        assert grid.shape == (8, 8)
        assert not grid.any()

    def test_bad_resolution(self):
        with pytest.raises(ValueError):
            heatmap.bucket_positions(np.array([(1.0, 1.0)]), self.bounds, 0)

    def test_degenerate_bounds_map_to_zero(self):
        bounds = GeoBounds(10.0, 10.0, 20.0, 22.0)
        with pytest.warns(DegenerateBoundsWarning):
            grid = heatmap.bucket_positions(np.array([(10.0, 22.0)]), bounds, 4)
        assert grid[0, 3] == 1
        assert grid.sum() == 1


class TestEndToEnd:
    def test_two_minute_window(self):
        from transit_heatmaps.heat_utils.window import select_window

        position_set = build_position_set(
            {1: [(10.0, 20.0)], 2: [(10.0, 20.0), (12.0, 22.0)]}
        )
        bounds = heatmap.get_bounds(position_set)
        assert bounds == GeoBounds(10.0, 12.0, 20.0, 22.0)
        window = select_window(position_set, sorted(position_set), 2, 2, "count")
        assert len(window.positions) == 3
        grid = heatmap.bucket_positions(window.positions, bounds, 4)
        expected = np.zeros((4, 4), dtype=np.uint32)
        expected[0, 0] = 2
        expected[3, 3] = 1
        assert np.array_equal(grid, expected)
