from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from app.services.decoder import PixelBuffer
from app.services.errors import ComputeError


@dataclass(frozen=True)
class ChannelStat:
    mean: float
    stdev: float


@dataclass(frozen=True)
class ChannelStatistics:
    channels: tuple[ChannelStat, ...]

    @property
    def mean_of_means(self) -> float:
        return sum(c.mean for c in self.channels) / len(self.channels)

    @property
    def mean_of_stdevs(self) -> float:
        return sum(c.stdev for c in self.channels) / len(self.channels)


def collect_channel_statistics(buffer: PixelBuffer) -> ChannelStatistics:
    """Per-channel mean and population standard deviation over every pixel."""
    try:
        samples = buffer.pixels.reshape(-1, buffer.channels).astype(np.float64)
        means = samples.mean(axis=0)
        stdevs = samples.std(axis=0)
    except (MemoryError, FloatingPointError, ValueError) as exc:
        raise ComputeError(f"Channel statistics failed: {exc}") from exc

    return ChannelStatistics(
        channels=tuple(
            ChannelStat(mean=float(mean), stdev=float(stdev))
            for mean, stdev in zip(means, stdevs)
        )
    )
