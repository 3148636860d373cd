"""
Given a heap of vehicle positions, create a grid of the density of vehicles seen in each area.

1. Bounding box of all the positions
    - Computed once over every minute so that every frame shares the same scale
2. Represent the bounding box by a square grid of cells
    - So that the heatmap can be represented by a 2D array
3. For each position:
    - 'paint' the position onto the grid by adding 1 to the cell it falls in,
        or to the 3x3 block of cells around it when splatting

The grid is a linear min-max mapping of latitude/longitude, not a map projection.
"""

import warnings
from typing import NamedTuple

import numpy as np


class NoDataError(ValueError):
    """Raised when there are no positions to compute a bounding box from."""


class DegenerateBoundsWarning(UserWarning):
    """Emitted when the bounding box has zero width on an axis."""


class GeoBounds(NamedTuple):
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float


def get_bounds(position_set) -> GeoBounds:
    """
    Get the bounding box of every position in every minute.

    Args:

        position_set: Mapping of minute -> (n, 2) array of (latitude, longitude)

    Returns:

        GeoBounds of (min_lat, max_lat, min_lon, max_lon)

    Raises:

        NoDataError: if there are no minutes, or every minute is empty
    """
    min_lat = np.inf
    max_lat = -np.inf
    min_lon = np.inf
    max_lon = -np.inf
    for positions in position_set.values():
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
        if len(positions) == 0:
            continue
        min_lat = min(min_lat, float(positions[:, 0].min()))
        max_lat = max(max_lat, float(positions[:, 0].max()))
        min_lon = min(min_lon, float(positions[:, 1].min()))
        max_lon = max(max_lon, float(positions[:, 1].max()))
    if min_lat == np.inf:
        raise NoDataError("No vehicle data found")
    return GeoBounds(min_lat, max_lat, min_lon, max_lon)


def normalise(values: np.ndarray, low: float, high: float, axis_name="axis") -> np.ndarray:
    """
    Min-max normalise values into [0, 1]. A zero-width range maps everything to 0.
    """
    span = high - low
    if span == 0:
        warnings.warn(
            f"Zero-width {axis_name} range at {low}, mapping all values to 0",
            DegenerateBoundsWarning,
            stacklevel=3,
        )
        return np.zeros(len(values), dtype=np.float64)
    return (values - low) / span


def create_grid(resolution: int) -> np.ndarray:
    """
    Create an empty square count grid with the given side length.
    """
    if resolution < 1:
        raise ValueError(f"Grid resolution must be positive, got {resolution}")
    return np.zeros((resolution, resolution), dtype=np.uint32)


def position_cells(positions, bounds: GeoBounds, resolution: int) -> tuple[np.ndarray, np.ndarray]:
    """
    Get the (row, col) cell of each position. Latitude gives the row, longitude the column.

    Args:

        positions: (n, 2) array of (latitude, longitude)
        bounds: Global bounding box
        resolution: Side length of the grid

    Returns:

        A tuple of:
            rows: Integer row index of each position
            cols: Integer column index of each position
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
    lat_norm = normalise(positions[:, 0], bounds.min_lat, bounds.max_lat, "latitude")
    lon_norm = normalise(positions[:, 1], bounds.min_lon, bounds.max_lon, "longitude")
    last = resolution - 1
    # the max coordinate lands on the last cell, anything past it is clamped not wrapped
    rows = np.clip(np.floor(lat_norm * last), 0, last).astype(np.intp)
    cols = np.clip(np.floor(lon_norm * last), 0, last).astype(np.intp)
    return rows, cols


def paint_grid(grid: np.ndarray, rows: np.ndarray, cols: np.ndarray, splat=False):
    """
    Populate the given grid with one increment per cell index, or nine when splatting.

    With splat on, every cell of the 3x3 block around (row, col) is incremented.
    Neighbours that fall off the grid are clamped back onto the edge one axis at
    a time, so an observation in a corner cell adds 4 to that cell (9 only on a
    1x1 grid). Every observation still adds 9 in total.

    Args:

        grid: 2D count grid, modified in place
        rows: Row index of each observation
        cols: Column index of each observation
        splat: Whether to spread each observation over its 3x3 neighbourhood

    Returns:

        None
    """
    if not splat:
        # np.add.at accumulates repeated indices, plain fancy indexing would not
        np.add.at(grid, (rows, cols), 1)
        return
    last = grid.shape[0] - 1
    for d_row in (-1, 0, 1):
        for d_col in (-1, 0, 1):
            np.add.at(
                grid,
                (np.clip(rows + d_row, 0, last), np.clip(cols + d_col, 0, last)),
                1,
            )


def bucket_positions(positions, bounds: GeoBounds, resolution: int, splat=False) -> np.ndarray:
    """
    Create the count grid for a set of positions.

    Args:

        positions: (n, 2) array of (latitude, longitude), may be empty
        bounds: Global bounding box shared by every frame
        resolution: Side length of the grid
        splat: Whether to use the 3x3 splat kernel

    Returns:

        (resolution, resolution) uint32 grid of counts
    """
    grid = create_grid(resolution)
    if len(positions) == 0:
        return grid
    rows, cols = position_cells(positions, bounds, resolution)
    paint_grid(grid, rows, cols, splat=splat)
    return grid
