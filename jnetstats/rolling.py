# jnetstats/rolling.py

import math
from collections import deque
from typing import Any, List, Sequence

from jnetstats.models import DifferentialPoint, RollingWinRatePoint


def normalize_window(window_size: Any) -> int:
    """Coerce a window size to a positive int; non-finite or < 1 becomes 1."""
    if isinstance(window_size, bool):
        return 1
    if isinstance(window_size, int):
        return max(1, window_size)
    try:
        value = float(window_size)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(value):
        return 1
    return max(1, int(math.floor(value)))


def build_rolling_win_rate(points: Sequence[DifferentialPoint], window_size: Any) -> List[RollingWinRatePoint]:
    """
    Trailing win rate over the last ``window_size`` games at every point.

    Points before the window fills are reported over the games seen so far;
    ``total`` always carries the number of games actually used.
    """
    if not points:
        return []

    window = normalize_window(window_size)
    queue = deque()
    wins = 0
    result = []

    for point in sorted(points, key=lambda p: p.date):
        queue.append(point)
        if point.did_win:
            wins += 1
        if len(queue) > window:
            removed = queue.popleft()
            if removed.did_win:
                wins -= 1
        total = len(queue)
        result.append(RollingWinRatePoint(
            date=point.date,
            win_rate=wins / total if total else 0.0,
            wins=wins,
            total=total,
        ))
    return result
