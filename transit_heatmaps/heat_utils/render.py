"""
Turning count grids into images.

Counts are divided by a reference maximum M, clipped to [0, 1] and then either
scaled to a grayscale intensity or looked up in a perceptual colormap ('inferno'
by default). M can be a fixed constant for the whole run or the maximum of each
frame. A fixed M keeps brightness comparable from one frame to the next.
"""

import os

import matplotlib
import numpy as np
from PIL import Image

COLOR_MODES = ("color", "grayscale")


def get_colormap(name="inferno"):
    """
    Get a matplotlib colormap by name.

    Raises:

        ValueError: if matplotlib does not know the colormap
    """
    try:
        return matplotlib.colormaps[name]
    except KeyError:
        raise ValueError(f"Unknown colormap '{name}'") from None


def frame_max_count(grid: np.ndarray) -> int:
    """
    The largest count in the grid, for per-frame normalisation.
    """
    return int(grid.max()) if grid.size else 0


def normalize_grid(grid: np.ndarray, max_count) -> np.ndarray:
    """
    Divide the grid by the reference maximum. A maximum of 0 gives all zeros.

    Values are not clipped here, so counts above max_count come out above 1.
    """
    if max_count <= 0:
        return np.zeros(grid.shape, dtype=np.float64)
    return grid.astype(np.float64) / float(max_count)


def to_grayscale(normalized: np.ndarray) -> np.ndarray:
    """
    Map normalised values to 8 bit intensities, round(v * 255), clipping to [0, 1] first.
    """
    return np.rint(np.clip(normalized, 0.0, 1.0) * 255).astype(np.uint8)


def to_color(normalized: np.ndarray, colormap="inferno") -> np.ndarray:
    """
    Map normalised values to 8 bit RGB through a colormap, clipping to [0, 1] first.

    Args:

        normalized: 2D array of normalised counts
        colormap: Name of a matplotlib colormap

    Returns:

        (rows, cols, 3) uint8 array
    """
    cmap = get_colormap(colormap)
    rgba = cmap(np.clip(normalized, 0.0, 1.0), bytes=True)
    return np.ascontiguousarray(rgba[..., :3])


def render_grid(grid: np.ndarray, max_count, color_mode="color", colormap="inferno") -> np.ndarray:
    """
    Render a count grid to a raster.

    Args:

        grid: 2D count grid
        max_count: Reference maximum M, counts of M or more get the brightest colour
        color_mode: 'color' for an RGB raster, 'grayscale' for a single channel one
        colormap: Name of the colormap used in colour mode

    Returns:

        (R, R, 3) uint8 array in colour mode, (R, R) uint8 array in grayscale mode
    """
    normalized = normalize_grid(grid, max_count)
    if color_mode == "color":
        return to_color(normalized, colormap)
    elif color_mode == "grayscale":
        return to_grayscale(normalized)
    raise ValueError(f"Unknown color mode '{color_mode}', must be one of {COLOR_MODES}")


def save_image(raster: np.ndarray, path: str):
    """
    Save a raster from render_grid as an image, creating the folder if needed.
    Row 0 of the grid is the top row of the image.
    """
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    # uint8 (R, R) is saved as 'L', uint8 (R, R, 3) as 'RGB'
    Image.fromarray(raster).save(path)
