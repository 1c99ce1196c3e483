import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (62.5 -> 63)."""
    return int(math.floor(value + 0.5))
