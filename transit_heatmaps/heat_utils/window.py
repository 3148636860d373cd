"""
Selection of the trailing window of minutes that is aggregated into each frame.

Two policies are supported, chosen once per run:

- ``count``: the N most recent minutes at or before the target, however far back
  they go. Gaps in the feed do not shrink the window.
- ``range``: every minute in [target - N + 1, target]. A missing minute means one
  fewer minute in the frame, the nominal width stays N.
"""

from typing import NamedTuple

import numpy as np

POLICIES = ("count", "range")


class Window(NamedTuple):
    minute: int
    minutes: tuple
    positions: np.ndarray

    @property
    def first(self):
        return min(self.minutes) if self.minutes else self.minute

    @property
    def last(self):
        return max(self.minutes) if self.minutes else self.minute

    @property
    def is_empty(self):
        return len(self.positions) == 0


def window_minutes(minutes, target: int, size: int, policy="count") -> list[int]:
    """
    Get the minutes that make up the window ending at the target.

    Args:

        minutes: Every known minute, ascending
        target: The minute being rendered
        size: Window size N
        policy: 'count' or 'range'

    Returns:

        The selected minutes, ascending
    """
    if size < 1:
        raise ValueError(f"Window size must be at least 1, got {size}")
    if policy == "count":
        earlier = [m for m in minutes if m <= target]
        return earlier[-size:]
    elif policy == "range":
        start = target - size + 1
        return [m for m in minutes if start <= m <= target]
    raise ValueError(f"Unknown window policy '{policy}', must be one of {POLICIES}")


def select_window(position_set, minutes, target: int, size: int, policy="count") -> Window:
    """
    Combine the positions of every minute in the window ending at the target.

    Args:

        position_set: Mapping of minute -> (n, 2) array of (latitude, longitude)
        minutes: Every known minute, ascending
        target: The minute being rendered
        size: Window size N
        policy: 'count' or 'range'

    Returns:

        Window with the minutes used and their combined positions
    """
    chosen = window_minutes(minutes, target, size, policy)
    arrays = [np.asarray(position_set[m]).reshape(-1, 2) for m in chosen]
    if arrays:
        positions = np.concatenate(arrays)
    else:
        positions = np.empty((0, 2), dtype=np.float64)
    return Window(target, tuple(chosen), positions)
