"""Unit tests for geodesy helpers and the lat/long grid."""
import math

import pytest

from proxymatch.errors import InvalidInput
from proxymatch.utils.geo import Grid, haversine_m, validate_coordinates, validate_radius


class TestHaversine:
    """Tests for great-circle distance."""

    def test_same_point_is_zero(self):
        assert haversine_m(40.7484, -73.9857, 40.7484, -73.9857) == 0.0

    def test_one_degree_of_latitude(self):
        """One degree along a meridian is ~111.2 km."""
        assert abs(haversine_m(0.0, 0.0, 1.0, 0.0) - 111_195) < 5

    def test_symmetric(self):
        d1 = haversine_m(40.7484, -73.9857, 40.7168, -73.9861)
        d2 = haversine_m(40.7168, -73.9861, 40.7484, -73.9857)
        assert d1 == pytest.approx(d2)

    def test_antipodal_points(self):
        assert haversine_m(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * 6_371_000)


class TestValidateCoordinates:
    """Tests for coordinate validation."""

    @pytest.mark.parametrize("lat,lon", [(90.0, 180.0), (-90.0, -180.0), (0, 0)])
    def test_bounds_accepted(self, lat, lon):
        validate_coordinates(lat, lon)

    @pytest.mark.parametrize(
        "lat,lon",
        [(90.01, 0.0), (-91.0, 0.0), (0.0, 180.5), (0.0, -181.0), (float("nan"), 0.0), (0.0, float("inf"))],
    )
    def test_out_of_range_rejected(self, lat, lon):
        with pytest.raises(InvalidInput):
            validate_coordinates(lat, lon)

    def test_non_numeric_rejected(self):
        with pytest.raises(InvalidInput):
            validate_coordinates("40.7", -73.9)


class TestValidateRadius:
    """Tests for radius validation."""

    @pytest.mark.parametrize("radius", [0, 15.0, 50_000])
    def test_finite_radius_accepted(self, radius):
        validate_radius(radius)

    @pytest.mark.parametrize(
        "radius", [-0.5, float("inf"), float("-inf"), float("nan"), "50", True]
    )
    def test_bad_radius_rejected(self, radius):
        with pytest.raises(InvalidInput):
            validate_radius(radius)


class TestGrid:
    """Tests for cell bucketing and query coverage."""

    def test_cell_truncates_coordinates(self):
        grid = Grid(0.01)
        assert grid.cell_of(40.7484, -73.9857) == grid.cell_of(40.7401, -73.9899)
        assert grid.cell_of(40.7484, -73.9857) != grid.cell_of(40.7584, -73.9857)

    def test_extreme_coordinates_stay_in_range(self):
        grid = Grid(0.01)
        row, col = grid.cell_of(90.0, 180.0)
        assert 0 <= row < grid.rows
        assert 0 <= col < grid.cols

    def test_covering_cells_include_point_cell(self):
        grid = Grid(0.01)
        cells = set(grid.cells_covering(40.7484, -73.9857, 500))
        assert grid.cell_of(40.7484, -73.9857) in cells
        assert grid.cell_of(40.7520, -73.9857) in cells  # ~400 m north

    def test_covering_wraps_antimeridian(self):
        grid = Grid(0.01)
        cells = set(grid.cells_covering(0.0, 179.9999, 100))
        assert grid.cell_of(0.0, -179.9999) in cells

    def test_polar_query_spans_all_columns(self):
        grid = Grid(1.0)
        cells = set(grid.cells_covering(89.9, 0.0, 50_000))
        assert {col for _, col in cells} == set(range(grid.cols))
