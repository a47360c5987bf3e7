"""
Pure reducers for opponent statistics.

Kept separate from the opponent model so they can be tested on their own.
"""


def running_mean(current: float, sample: float, n: int) -> float:
    """
    Incremental mean update.

    Args:
        current: Mean over the previous n - 1 samples
        sample: New sample value
        n: Sample count including the new sample

    Returns:
        The new mean. With n <= 1 the sample itself is returned.
    """
    if n <= 1:
        return float(sample)
    return current + (sample - current) / n


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    """numerator / denominator, or default when the denominator is zero."""
    if denominator == 0:
        return default
    return numerator / denominator
