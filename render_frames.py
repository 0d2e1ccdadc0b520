# render_frames.py v2.0
# Part of N-Body Viewer
# v2.0: "Bounded Fan-Out"
# - Frames are rendered by a fixed-size thread pool. Each worker blocks on its
#   own gnuplot child, so threads are enough and nothing has to be pickled.
# - Every job reports exactly one JobOutcome on a shared, unbounded queue.
# - The aggregator drains exactly job_count outcomes, even after a failure,
#   and keeps the first failure as the batch result.

import queue
import threading
from multiprocessing.pool import ThreadPool
from termcolor import colored
from tqdm import tqdm

from styling import C
from renderer_worker import render_frame_worker, guarded_render


class BatchResult:
    """Aggregate of all drained outcomes. `failed` holds the first JobError, if any."""
    def __init__(self, completed_count: int, failed=None):
        self.completed_count = completed_count
        self.failed = failed

    @property
    def ok(self) -> bool:
        return self.failed is None

    def __repr__(self):
        return f"BatchResult(completed_count={self.completed_count}, failed={self.failed!r})"


def _report(args_tuple, render, results):
    results.put(guarded_render(render, args_tuple))


def dispatch_jobs(pool, jobs, settings, results, cancel=None, render=render_frame_worker):
    """Submits every job without waiting for any of them to finish."""
    for job in jobs:
        pool.apply_async(_report, ((job, settings, cancel), render, results))


def drain_outcomes(results, job_count: int, cancel=None, fail_fast: bool = False) -> BatchResult:
    """Consumes exactly job_count outcomes from the results queue."""
    completed = 0
    failed = None
    seen = set()

    with tqdm(total=job_count, desc="Rendering Frames", bar_format="{l_bar}{bar:30}{r_bar}") as bar:
        for _ in range(job_count):
            outcome = results.get()
            if outcome.index in seen:
                raise RuntimeError(f"duplicate outcome for frame {outcome.index}")
            seen.add(outcome.index)

            if outcome.ok:
                completed += 1
                tqdm.write(f"child {outcome.index} finished with status {outcome.exit_code}")
            else:
                tqdm.write(colored(f"Error: {outcome.error}", C.ERROR))
                if failed is None:
                    failed = outcome.error
                    if fail_fast and cancel is not None:
                        cancel.set()
            bar.update(1)

    # Lost or duplicated outcomes are a defect, not a failed frame: never caught by main.
    if len(seen) != job_count:
        raise RuntimeError(f"drained {len(seen)} outcomes, expected {job_count}")
    if failed is None and completed != job_count:
        raise RuntimeError(f"{completed} of {job_count} frames completed")
    return BatchResult(completed, failed)


def render_frames(jobs, settings, workers: int, render=render_frame_worker,
                  fail_fast: bool = False) -> BatchResult:
    """Renders all jobs on a pool of `workers` threads and aggregates the outcomes."""
    if workers < 1:
        raise ValueError(f"worker count must be at least 1, got {workers}")

    jobs = list(jobs)
    # Owned by this function: created before dispatch, dropped after the drain.
    results = queue.Queue()
    cancel = threading.Event()

    with ThreadPool(processes=workers) as pool:
        dispatch_jobs(pool, jobs, settings, results, cancel, render)
        batch = drain_outcomes(results, len(jobs), cancel, fail_fast)
        pool.close()
        pool.join()
    return batch
