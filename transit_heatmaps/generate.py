"""
The main file for the pipeline. Heatmaps are generated with this file in most cases.

Reads settings from a config file (config.yml in the working directory by default),
any of which can be overridden on the command line.

Usage:

    python -m transit_heatmaps.generate run [--data-dir data] [--minutes 5] [--max-bucket 10]

Renders one heatmap per minute of the feed into the output folder, named
heatmap_0000.png, heatmap_0001.png, ..., alongside a frames.csv summary.

    python -m transit_heatmaps.generate bounds [--data-dir data]

Prints the bounding box of the whole feed.
"""

from typing import Optional

import typer

from .heat_utils.config import load_config
from .heat_utils.frames import render_frames
from .heat_utils.heatmap import NoDataError, get_bounds
from .heat_utils.positions import load_positions_from_folder


class COLORS:
    """Colors for the terminal"""

    OKBLUE = "\033[94m"
    OKGREEN = "\033[92m"
    OKCYAN = "\033[96m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"


app = typer.Typer(
    name="TransitHeatmaps",
    help="Generate transit heatmaps from vehicle position data",
    no_args_is_help=True,
)


def fail(message):
    print(COLORS.FAIL + str(message) + COLORS.ENDC)
    raise typer.Exit(code=1)


def print_bounds(bounds):
    print(
        f"Global bounds - Latitude: {bounds.min_lat:.6f} to {bounds.max_lat:.6f}, "
        f"Longitude: {bounds.min_lon:.6f} to {bounds.max_lon:.6f}"
    )


def load_feed(data_dir, verbose=True):
    try:
        position_set = load_positions_from_folder(data_dir, verbose=verbose)
    except (FileNotFoundError, ValueError) as e:
        fail(e)
    if len(position_set) == 0:
        fail("No vehicle data found in the data directory")
    return position_set


@app.command()
def run(
    config: str = typer.Option("config.yml", "--config", "-c", help="Path to the config file"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", "-d", help="Folder of per-minute json files"),
    output_dir: Optional[str] = typer.Option(None, "--output-dir", "-o", help="Where to write the heatmaps"),
    minutes: Optional[int] = typer.Option(None, "--minutes", "-n", help="Number of minutes in each window"),
    max_bucket: Optional[str] = typer.Option(
        None,
        "--max-bucket",
        "-m",
        help="Count that gets full brightness, or 'auto' to scale each frame to its own maximum",
    ),
    resolution: Optional[int] = typer.Option(None, "--resolution", "-r", help="Side length of the grid"),
    policy: Optional[str] = typer.Option(None, "--policy", help="Window policy: 'count' or 'range'"),
    preset: Optional[str] = typer.Option(None, "--preset", help="Named settings: 'fine' or 'coarse'"),
    splat: Optional[bool] = typer.Option(None, "--splat/--no-splat", help="Spread each vehicle over a 3x3 block"),
    grayscale: Optional[bool] = typer.Option(None, "--grayscale/--color", help="Grayscale or colour output"),
):
    """
    Render a heatmap for every minute in the feed.
    """
    overrides = {
        "data_dir": data_dir,
        "output_dir": output_dir,
        "window_minutes": minutes,
        "max_count": max_bucket,
        "resolution": resolution,
        "window_policy": policy,
        "preset": preset,
        "splat": splat,
        "color_mode": None if grayscale is None else ("grayscale" if grayscale else "color"),
    }
    try:
        cfg = load_config(config, overrides)
    except ValueError as e:
        fail(f"Invalid config: {e}")
    position_set = load_feed(cfg["data_dir"])
    print(f"Loaded data for {len(position_set)} minutes")
    try:
        bounds = get_bounds(position_set)
    except NoDataError as e:
        fail(e)
    print_bounds(bounds)
    summary = render_frames(position_set, cfg, bounds=bounds)
    print(
        COLORS.OKGREEN
        + f"Generated {len(summary)} heatmaps in the '{cfg['output_dir']}' directory"
        + COLORS.ENDC
    )


@app.command()
def bounds(
    config: str = typer.Option("config.yml", "--config", "-c", help="Path to the config file"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", "-d", help="Folder of per-minute json files"),
):
    """
    Print the bounding box of every position in the feed.
    """
    try:
        cfg = load_config(config, {"data_dir": data_dir})
    except ValueError as e:
        fail(f"Invalid config: {e}")
    position_set = load_feed(cfg["data_dir"], verbose=False)
    try:
        print_bounds(get_bounds(position_set))
    except NoDataError as e:
        fail(e)


if __name__ == "__main__":
    app()
