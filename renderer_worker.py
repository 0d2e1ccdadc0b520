# renderer_worker.py v2.1
# Part of N-Body Viewer
# v2.1: "Deadline & Cancel"
# - Each gnuplot child can be given a deadline; on expiry it is killed and
#   reaped, and the job reports a failure instead of hanging its worker.
# - Jobs observe a shared cancellation event before spawning anything.
# v2.0: "gnuplot Backend"
# - Frames are rasterized by an external gnuplot process fed a generated
#   script on stdin. The worker only inspects the exit status.

import os
import subprocess
import traceback
from termcolor import colored
from tqdm import tqdm

from styling import C
from errors import JobError


class RenderSettings:
    """Read-only configuration shared by every job of a run."""
    def __init__(self, directory, bounds, size='1920,1080', point_type='1',
                 initial_rotation: float = 45.0, rotation_speed: float = 0.1,
                 gnuplot=('gnuplot',), timeout: float = None,
                 strict_exit: bool = False, verbose: bool = False):
        self.directory = directory
        self.bounds = bounds
        self.size = size
        self.point_type = point_type
        self.initial_rotation = initial_rotation
        self.rotation_speed = rotation_speed
        self.gnuplot = tuple(gnuplot)
        self.timeout = timeout
        self.strict_exit = strict_exit
        self.verbose = verbose


class JobOutcome:
    """Produced exactly once per dispatched job."""
    __slots__ = ('index', 'exit_code', 'error')

    def __init__(self, index: int, exit_code=None, error=None):
        self.index = index
        self.exit_code = exit_code
        self.error = error

    @property
    def ok(self) -> bool:
        return self.error is None

    def __repr__(self):
        if self.ok:
            return f"JobOutcome(index={self.index}, exit_code={self.exit_code})"
        return f"JobOutcome(index={self.index}, error={self.error!r})"


def _failed(index, message, cause=None) -> JobOutcome:
    error = JobError(index, message)
    error.__cause__ = cause
    return JobOutcome(index, error=error)


def frame_input_path(directory, index: int) -> str:
    return os.path.join(directory, f"{index}.dat")


def frame_output_path(directory, index: int) -> str:
    return os.path.join(directory, f"{index}.png")


def frame_title(time: float) -> str:
    return f"time = {time:.19f} s"


def view_azimuth(settings: RenderSettings, index: int) -> float:
    return (settings.initial_rotation + index * settings.rotation_speed) % 360.0


def _quote(path) -> str:
    """Double-quoted gnuplot string literal."""
    escaped = str(path).replace('\\', '\\\\').replace('"', '\\"')
    return f'"{escaped}"'


def build_plot_script(job, settings: RenderSettings) -> str:
    """The full gnuplot program that renders one frame."""
    bounds = settings.bounds
    command = 'plot' if bounds.dimension == 2 else 'splot'
    ranges = ' '.join(f"[{lo!r}:{hi!r}]" for lo, hi in bounds.ranges())
    input_path = frame_input_path(settings.directory, job.index)
    output_path = frame_output_path(settings.directory, job.index)

    lines = [
        f"set terminal pngcairo size {settings.size} enhanced font 'Verdana,10'",
        "set view equal xyz",
        "set xyplane relative 0",
        f"set output {_quote(output_path)}",
        f"set view 60,{view_azimuth(settings, job.index)!r}",
        f"{command} {ranges} {_quote(input_path)} title '{frame_title(job.time)}' "
        f"pointtype {settings.point_type}",
    ]
    return '\n'.join(lines) + '\n'


def _exit_code(returncode):
    # Negative return codes mean the child died from a signal: no exit code.
    return returncode if returncode >= 0 else None


def render_frame_worker(args_tuple) -> JobOutcome:
    """Renders a single frame. Runs inside a pool worker thread."""
    job, settings, cancel = args_tuple

    if cancel is not None and cancel.is_set():
        return _failed(job.index, "cancelled before start")

    script = build_plot_script(job, settings)
    if settings.verbose:
        tqdm.write(colored(f"[frame {job.index}]\n{script}", C.DEBUG))

    try:
        process = subprocess.Popen(settings.gnuplot, stdin=subprocess.PIPE, text=True)
    except OSError as e:
        return _failed(job.index, f"failed to spawn {settings.gnuplot[0]}: {e}", e)

    # Written by hand: communicate() would swallow a BrokenPipeError.
    try:
        process.stdin.write(script)
        process.stdin.close()
    except OSError as e:
        process.kill()
        process.wait()
        return _failed(job.index, f"failed to write plot script: {e}", e)

    try:
        process.wait(timeout=settings.timeout)
    except subprocess.TimeoutExpired as e:
        process.kill()
        process.wait()
        return _failed(job.index, f"{settings.gnuplot[0]} did not finish within {settings.timeout} s", e)

    code = _exit_code(process.returncode)
    if settings.strict_exit and code != 0:
        return _failed(job.index, f"{settings.gnuplot[0]} exited with status {code}")
    return JobOutcome(job.index, exit_code=code)


def guarded_render(render, args_tuple) -> JobOutcome:
    """Calls render and turns any escaped exception into a failed outcome.

    A worker must always produce an outcome, otherwise the aggregator would
    wait forever for the missing message.
    """
    job = args_tuple[0]
    try:
        return render(args_tuple)
    except Exception as e:
        return _failed(job.index, f"{type(e).__name__} - {e}\n{traceback.format_exc()}", e)
