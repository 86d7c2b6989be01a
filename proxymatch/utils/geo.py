"""
Proxy Match: Geodesy helpers

Great-circle distance and the fixed lat/long grid used to bucket positions.
"""

from __future__ import annotations

import math
from typing import Iterator

from proxymatch.errors import InvalidInput

EARTH_RADIUS_M = 6_371_000.0
METRES_PER_DEGREE_LAT = math.pi * EARTH_RADIUS_M / 180.0

Cell = tuple[int, int]


def validate_coordinates(latitude: float, longitude: float) -> None:
    """Raise ``InvalidInput`` unless the pair is a real point on the globe."""
    for name, value, bound in (("latitude", latitude, 90.0), ("longitude", longitude, 180.0)):
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise InvalidInput(f"{name} must be a number, got {value!r}")
        if math.isnan(value) or not -bound <= value <= bound:
            raise InvalidInput(f"{name} must be within [-{bound:g}, {bound:g}], got {value}")


def validate_radius(radius_m: float) -> None:
    """Raise ``InvalidInput`` unless ``radius_m`` is a finite, non-negative distance."""
    if not isinstance(radius_m, (int, float)) or isinstance(radius_m, bool):
        raise InvalidInput(f"radius must be a number, got {radius_m!r}")
    if not math.isfinite(radius_m) or radius_m < 0:
        raise InvalidInput(f"radius must be a finite, non-negative distance, got {radius_m}")


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance between two points in metres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = phi2 - phi1
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(a)))


class Grid:
    """Fixed-size lat/long cells keyed by truncated coordinates."""

    def __init__(self, cell_size_deg: float) -> None:
        if cell_size_deg <= 0:
            raise ValueError(f"cell size must be positive, got {cell_size_deg}")
        self.cell_size_deg = cell_size_deg
        self.rows = int(math.ceil(180.0 / cell_size_deg))
        self.cols = int(math.ceil(360.0 / cell_size_deg))

    def cell_of(self, latitude: float, longitude: float) -> Cell:
        row = min(int((latitude + 90.0) // self.cell_size_deg), self.rows - 1)
        col = int((longitude + 180.0) // self.cell_size_deg) % self.cols
        return (row, col)

    def cell_count_for(self, latitude: float, longitude: float, radius_m: float) -> int:
        rows, cols = self._spans(latitude, longitude, radius_m)
        return len(rows) * len(cols)

    def cells_covering(self, latitude: float, longitude: float, radius_m: float) -> Iterator[Cell]:
        """Yield every cell that may hold a point within ``radius_m``."""
        rows, cols = self._spans(latitude, longitude, radius_m)
        for row in rows:
            for col in cols:
                yield (row, col)

    def _spans(self, latitude: float, longitude: float, radius_m: float) -> tuple[range, range]:
        d_lat = radius_m / METRES_PER_DEGREE_LAT
        row_lo = max(int((latitude - d_lat + 90.0) // self.cell_size_deg), 0)
        row_hi = min(int((latitude + d_lat + 90.0) // self.cell_size_deg), self.rows - 1)
        rows = range(row_lo, row_hi + 1)

        # Near a pole every meridian is close, so the span covers all columns.
        if abs(latitude) + d_lat >= 90.0:
            return rows, range(self.cols)
        cos_lat = math.cos(math.radians(abs(latitude) + d_lat))
        d_lon = d_lat / cos_lat
        if 2 * d_lon >= 360.0:
            return rows, range(self.cols)
        col_lo = int((longitude - d_lon + 180.0) // self.cell_size_deg)
        col_hi = int((longitude + d_lon + 180.0) // self.cell_size_deg)
        if col_hi - col_lo + 1 >= self.cols:
            return rows, range(self.cols)
        return rows, _WrappedRange(col_lo, col_hi, self.cols)


class _WrappedRange:
    """Inclusive column range that wraps across the antimeridian."""

    def __init__(self, lo: int, hi: int, modulus: int) -> None:
        self.lo = lo
        self.hi = hi
        self.modulus = modulus

    def __len__(self) -> int:
        return self.hi - self.lo + 1

    def __iter__(self) -> Iterator[int]:
        for col in range(self.lo, self.hi + 1):
            yield col % self.modulus
