"""
Loading of the vehicle position feed.

The feed is a folder (searched recursively) of json files, one per minute, named by
the minute index e.g. ``0042.json``. Each file is a response from the transit
vehicle positions API:

    {"resultSet": {"vehicle": [{"latitude": 45.52, "longitude": -122.67, ...}, ...]}}

Everything is read up front and frozen into a read-only mapping of
minute -> (n, 2) array of (latitude, longitude), ordered by minute.
"""

import json
import os
from types import MappingProxyType

import numpy as np


def minute_from_filename(path: str) -> int:
    """
    Get the minute index from a feed file name e.g. 'data/day1/0042.json' -> 42

    Raises:

        ValueError: if the file stem is not a non-negative integer
    """
    stem = os.path.splitext(os.path.basename(path))[0]
    try:
        minute = int(stem)
    except ValueError:
        raise ValueError(f"Filename is not a valid minute: {path}") from None
    if minute < 0:
        raise ValueError(f"Filename is not a valid minute: {path}")
    return minute


def coordinate(value) -> float:
    """
    A latitude or longitude must be a json number, quoted numbers are rejected.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"coordinate must be a number, got {value!r}")
    return float(value)


def parse_positions(contents: dict, path="<feed>") -> np.ndarray:
    """
    Pull the (latitude, longitude) of each vehicle out of a parsed feed file.

    Args:

        contents: Parsed json of one feed file
        path: Name of the file, for error messages

    Returns:

        (n, 2) float64 array of (latitude, longitude)
    """
    try:
        vehicles = contents["resultSet"]["vehicle"]
        coords = [(coordinate(v["latitude"]), coordinate(v["longitude"])) for v in vehicles]
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Error parsing JSON in '{path}': {e!r}") from e
    coords = np.array(coords, dtype=np.float64).reshape(-1, 2)
    # json.load turns bare NaN/Infinity tokens into floats
    if not np.isfinite(coords).all():
        raise ValueError(f"Error parsing JSON in '{path}': non-finite coordinate")
    return coords


def build_position_set(positions_by_minute: dict) -> MappingProxyType:
    """
    Freeze a mapping of minute -> positions into the read-only, minute-ordered
    form used by the rest of the pipeline.

    Args:

        positions_by_minute: Mapping of minute -> sequence of (latitude, longitude)

    Returns:

        Read-only mapping of minute -> read-only (n, 2) float64 array
    """
    frozen = {}
    for minute in sorted(positions_by_minute):
        if int(minute) != minute or minute < 0:
            raise ValueError(f"Minute must be a non-negative integer, got {minute!r}")
        positions = np.array(positions_by_minute[minute], dtype=np.float64).reshape(-1, 2)
        if not np.isfinite(positions).all():
            raise ValueError(f"Minute {minute} has a non-finite coordinate")
        positions.setflags(write=False)
        frozen[int(minute)] = positions
    return MappingProxyType(frozen)


def get_feed_files(folder: str) -> list[str]:
    """
    Get every json file under the folder, in a stable order.
    """
    files = []
    for root, _, names in os.walk(folder):
        for name in names:
            if name.endswith(".json"):
                files.append(os.path.join(root, name))
    return sorted(files)


def load_positions_from_folder(folder: str, verbose=True) -> MappingProxyType:
    """
    Load every minute of the feed under the folder.

    Args:

        folder: Path to the feed folder
        verbose: Print each file as it is read

    Returns:

        Read-only mapping of minute -> (n, 2) array of (latitude, longitude)

    Raises:

        FileNotFoundError: if the folder does not exist
        ValueError: on a badly named file, a repeated minute, or a malformed file
    """
    if not os.path.isdir(folder):
        raise FileNotFoundError(f"Data directory '{folder}' does not exist")
    positions_by_minute = {}
    for path in get_feed_files(folder):
        minute = minute_from_filename(path)
        if minute in positions_by_minute:
            raise ValueError(f"Minute {minute} appears more than once (second copy: {path})")
        if verbose:
            print(f"Processing file: {path} (minute {minute})")
        with open(path, "r") as f:
            try:
                contents = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Error parsing JSON in '{path}': {e}") from e
        positions_by_minute[minute] = parse_positions(contents, path)
    return build_position_set(positions_by_minute)
