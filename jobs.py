# jobs.py v1.0
# Part of N-Body Viewer
# One render job per sample: indices 0..sample_count inclusive.

from typing import NamedTuple


class RenderJob(NamedTuple):
    index: int
    time: float


def generate_jobs(sample_count: int, sample_time: float) -> list:
    """Returns sample_count + 1 jobs in index order."""
    if sample_count < 0:
        raise ValueError(f"sample_count must be non-negative, got {sample_count}")
    return [RenderJob(index=i, time=sample_time * i) for i in range(sample_count + 1)]
