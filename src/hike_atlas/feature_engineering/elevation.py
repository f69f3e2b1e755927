from enum import Enum
from typing import Sequence

import numpy as np


def smooth_elevations(elevations: Sequence[float], window_size: int = 5) -> np.ndarray:
    """
    Centered moving average of an elevation channel.

    Each output sample is the mean of the raw samples within window_size // 2
    positions on either side. Windows are truncated at the sequence boundaries,
    so edge samples average over fewer values.
    """
    if window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {window_size}")

    values = np.asarray(elevations, dtype=float)
    n = len(values)
    if n == 0:
        return values

    half = window_size // 2
    idx = np.arange(n)
    start = np.maximum(idx - half, 0)
    end = np.minimum(idx + half + 1, n)

    cumsum = np.concatenate(([0.0], np.cumsum(values)))
    return (cumsum[end] - cumsum[start]) / (end - start)


class Transition(str, Enum):
    ACCUMULATE = "accumulate"
    FLUSH_GAIN = "flush_gain"
    FLUSH_LOSS = "flush_loss"


class DeadBandAccumulator:
    """
    Running-delta filter for elevation gain and loss.

    Deltas are summed into `pending`. Once the pending delta rises above
    +threshold it is committed to `gain`; once it drops below -threshold its
    magnitude is committed to `loss`. Either flush resets `pending` to 0.
    """

    def __init__(self, threshold: float = 2.0):
        if threshold < 0:
            raise ValueError("threshold must be non-negative")
        self.threshold = threshold
        self.pending = 0.0
        self.gain = 0.0
        self.loss = 0.0

    def push(self, delta: float) -> Transition:
        self.pending += delta

        if self.pending > self.threshold:
            self.gain += self.pending
            self.pending = 0.0
            return Transition.FLUSH_GAIN
        if self.pending < -self.threshold:
            self.loss += abs(self.pending)
            self.pending = 0.0
            return Transition.FLUSH_LOSS
        return Transition.ACCUMULATE
