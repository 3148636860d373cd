"""
The per-minute loop: window -> grid -> image -> file, plus a summary of what was written.
"""

import os

import numpy as np
import pandas as pd
from tqdm import tqdm

from .config import AUTO
from .heatmap import GeoBounds, bucket_positions, get_bounds
from .render import frame_max_count, render_grid, save_image
from .window import select_window

SUMMARY_COLUMNS = [
    "minute",
    "first_minute",
    "last_minute",
    "n_minutes",
    "n_positions",
    "max_cell",
    "max_count",
    "path",
]


def frame_filename(minute: int) -> str:
    """
    heatmap_0042.png for minute 42
    """
    return f"heatmap_{minute:04d}.png"


def render_frame(position_set, minutes, minute: int, bounds: GeoBounds, cfg: dict):
    """
    Render the frame for one minute.

    Args:

        position_set: Mapping of minute -> (n, 2) array of (latitude, longitude)
        minutes: Every known minute, ascending
        minute: The minute to render
        bounds: Global bounding box
        cfg: Run config

    Returns:

        None if the window has no positions (the frame is skipped), otherwise a tuple of:
            window: The Window that was aggregated
            grid: The count grid
            max_count: The reference maximum used
            raster: The rendered image array
    """
    window = select_window(
        position_set, minutes, minute, cfg["window_minutes"], cfg["window_policy"]
    )
    if window.is_empty:
        return None
    grid = bucket_positions(window.positions, bounds, cfg["resolution"], splat=cfg["splat"])
    if cfg["max_count"] == AUTO:
        max_count = frame_max_count(grid)
    else:
        max_count = cfg["max_count"]
    raster = render_grid(grid, max_count, cfg["color_mode"], cfg["colormap"])
    return window, grid, max_count, raster


def render_frames(position_set, cfg: dict, bounds: GeoBounds | None = None, progress=True) -> pd.DataFrame:
    """
    Render and save a heatmap for every minute in the feed, then save a frames.csv summary.

    Args:

        position_set: Mapping of minute -> (n, 2) array of (latitude, longitude)
        cfg: Run config
        bounds: Global bounding box, computed from position_set if not given
        progress: Show a progress bar

    Returns:

        DataFrame with one row per saved frame
    """
    if bounds is None:
        bounds = get_bounds(position_set)
    output_dir = cfg["output_dir"]
    os.makedirs(output_dir, exist_ok=True)
    minutes = sorted(position_set)
    rows = []
    for minute in tqdm(minutes, desc="Rendering heatmaps", disable=not progress):
        frame = render_frame(position_set, minutes, minute, bounds, cfg)
        if frame is None:
            tqdm.write(f"Minute {minute}: no vehicles in window, skipping")
            continue
        window, grid, max_count, raster = frame
        path = os.path.join(output_dir, frame_filename(minute))
        save_image(raster, path)
        tqdm.write(
            f"Minute {minute}: {len(window.positions)} vehicles "
            f"(from minutes {window.first}-{window.last}) -> {path}"
        )
        rows.append(
            {
                "minute": minute,
                "first_minute": window.first,
                "last_minute": window.last,
                "n_minutes": len(window.minutes),
                "n_positions": len(window.positions),
                "max_cell": int(np.max(grid)),
                "max_count": max_count,
                "path": path,
            }
        )
    summary = pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
    save_summary(summary, os.path.join(output_dir, "frames.csv"))
    return summary


def save_summary(summary: pd.DataFrame, csv_path: str):
    """
    Save the frame summary DataFrame to the csv file at the provided path.
    """
    summary.to_csv(csv_path, index=False)
