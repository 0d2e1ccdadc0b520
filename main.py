# main.py v3.0
# Part of N-Body Viewer
# v3.0: "Gated Encode"
# - Renders every sample of an n-body output directory to PNG on a bounded
#   worker pool, then encodes the frames with ffmpeg.
# - The encoder only runs once all frames were rendered successfully; any
#   failure makes the process exit with a non-zero status.
# - New flags: --timeout, --fail-fast and --strict-exit.

import argparse
import os
import shlex
import sys
import multiprocessing as mp
from fractions import Fraction

from styling import C, cprint
from errors import ConfigError, JobError, AssemblyError
from metadata import read_sample_count, read_sample_time
from bounds import resolve_bounds
from jobs import generate_jobs
from renderer_worker import RenderSettings, render_frame_worker
from render_frames import render_frames
from compile_video import compile_video, DEFAULT_OUTPUT

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def _positive_int(text):
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"failed to parse int number: {text!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def _positive_float(text):
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"failed to parse float number: {text!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return value


def _frame_rate(text):
    """Positive rate in any form ffmpeg takes: 30, 29.97 or 30000/1001. Passed on as text."""
    try:
        value = Fraction(text.strip())
    except (ValueError, ZeroDivisionError):
        raise argparse.ArgumentTypeError(f"failed to parse frame rate: {text!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {text!r}")
    return text.strip()


def _size(text):
    parts = text.split(',')
    if len(parts) != 2 or not all(p.strip().isdigit() for p in parts):
        raise argparse.ArgumentTypeError(f"size must look like WIDTH,HEIGHT, got {text!r}")
    return text


def build_parser():
    parser = argparse.ArgumentParser(description="Render n-body samples with gnuplot and encode them into a video.")
    parser.add_argument('path', nargs='?', default='./n-body-output', help="Sets n body output path.")
    parser.add_argument('-s', '--size', type=_size, default='1920,1080', help="Sets video size.")
    parser.add_argument('-f', '--frame-rate', type=_frame_rate, default='30', help="Sets frame rate of video, e.g. 30, 29.97 or 30000/1001.")
    parser.add_argument('-p', '--point-type', default='1', help="Sets point type of gnuplot.")
    parser.add_argument('-w', '--worker', type=_positive_int, default=None, help="Sets worker number (default: CPU count).")
    parser.add_argument('--initial-rotation', type=float, default=45.0, help="Sets initial rotation degree.")
    parser.add_argument('--rotation-speed', type=float, default=0.1, help="Sets the rotation speed (degree per frame).")
    parser.add_argument('--min-bounds', default=None, help="Force set min bounds, e.g. \"-1 -1 -1\".")
    parser.add_argument('--max-bounds', default=None, help="Force set max bounds, e.g. \"1 1 1\".")
    parser.add_argument('--timeout', type=_positive_float, default=None, help="Kill a gnuplot process after this many seconds.")
    parser.add_argument('--fail-fast', action='store_true', help="Skip frames not yet started once one frame fails.")
    parser.add_argument('--strict-exit', action='store_true', help="Treat a non-zero gnuplot exit status as a failure.")
    parser.add_argument('-o', '--output', default=None, help=f"Video path (default: <path>/{DEFAULT_OUTPUT}).")
    parser.add_argument('--gnuplot', default='gnuplot', help="gnuplot command line.")
    parser.add_argument('--ffmpeg', default='ffmpeg', help="ffmpeg executable.")
    parser.add_argument('-v', '--verbose', action='store_true', help="Print arguments and generated plot scripts.")
    return parser


def run_pipeline(jobs, settings, workers, frame_rate=30, output=None, ffmpeg='ffmpeg',
                 render=render_frame_worker, fail_fast=False):
    """Renders all frames, then encodes them. Raises the first frame failure instead of encoding."""
    batch = render_frames(jobs, settings, workers, render=render, fail_fast=fail_fast)
    cprint(f"{batch.completed_count} of {len(jobs)} frames rendered.", C.INFO)
    if not batch.ok:
        raise batch.failed
    return compile_video(settings.directory, output, frame_rate, ffmpeg)


def main(argv=None):
    """Main function to orchestrate rendering and encoding. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        cprint(f"{vars(args)}", C.DEBUG)

    directory = args.path
    if not os.path.isdir(directory):
        cprint(f"Error: '{directory}' is not a directory.", C.ERROR)
        return EXIT_FAILURE

    # --- 1. LOAD RUN METADATA AND BOUNDS (ONCE) ---
    try:
        sample_count = read_sample_count(directory)
        sample_time = read_sample_time(directory)
        bounds = resolve_bounds(directory, args.min_bounds, args.max_bounds)
    except (ConfigError, OSError) as e:
        cprint(f"Error: {e}", C.ERROR)
        return EXIT_FAILURE

    cprint(f"sample number: {sample_count}", C.INFO)
    cprint(f"sample time: {sample_time} s", C.INFO)
    cprint(f"bounds: {bounds}", C.INFO)
    inverted = bounds.inverted_axes()
    if inverted:
        cprint(f"Warning: min bounds exceed max bounds on axes {inverted}.", C.WARNING)

    # --- 2. BUILD JOBS AND SHARED SETTINGS ---
    jobs = generate_jobs(sample_count, sample_time)
    settings = RenderSettings(
        directory, bounds,
        size=args.size,
        point_type=args.point_type,
        initial_rotation=args.initial_rotation,
        rotation_speed=args.rotation_speed,
        gnuplot=shlex.split(args.gnuplot),
        timeout=args.timeout,
        strict_exit=args.strict_exit,
        verbose=args.verbose,
    )
    workers = args.worker if args.worker is not None else mp.cpu_count()

    cprint(f"\n--- RENDERING {len(jobs)} FRAMES on {workers} workers ---", C.SUBHEADER, attrs=C.BOLD_ATTR)

    # --- 3. RENDER, THEN ENCODE ---
    try:
        run_pipeline(jobs, settings, workers, args.frame_rate, args.output, args.ffmpeg,
                     fail_fast=args.fail_fast)
    except JobError as e:
        cprint(f"Error: {e}", C.ERROR)
        cprint("Video was not created because not every frame was rendered.", C.WARNING)
        return EXIT_FAILURE
    except AssemblyError as e:
        cprint(f"Error: {e}", C.ERROR)
        return EXIT_FAILURE

    cprint("\n--- Done ---", C.SUBHEADER, attrs=C.BOLD_ATTR)
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
