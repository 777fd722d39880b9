from __future__ import annotations
import math
from typing import Tuple

def overlaps(start: float, end: float, lo: float, hi: float) -> bool:
    """
    True if [start, end) touches the window [lo, hi): contained, cut at either
    edge, or covering the whole window.
    """
    return start < hi and end > lo

def clip(start: float, end: float, lo: float, hi: float) -> Tuple[float, float]:
    return max(start, lo), min(end, hi)

def round_up_to_multiple(count: int, multiple: int) -> int:
    if multiple <= 1:
        return int(count)
    return int(math.ceil(count / float(multiple))) * int(multiple)

def bar_seconds(bpm: float, beats_per_bar: int) -> float:
    if not bpm or bpm <= 0:
        bpm = 120.0
    return 60.0 / float(bpm) * max(1, int(beats_per_bar))
