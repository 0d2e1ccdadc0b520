# compile_video.py v11.0
"""
N-Body Viewer - Video Compilation Module
----------------------------------------
- v11.0:
  - Frames are named '<index>.png' with contiguous indices from 0, so ffmpeg
    reads them through the '%d.png' image sequence pattern.
  - Runs once, only after every frame was rendered. ffmpeg output is passed
    straight through to the console; nothing is captured.
  - A missing ffmpeg or a non-zero exit status raises AssemblyError.
"""
import os
import subprocess
from termcolor import cprint

from styling import C
from errors import AssemblyError

FRAME_PATTERN = '%d.png'
DEFAULT_OUTPUT = '_video.mp4'


def build_ffmpeg_command(frames_dir, output_filename, framerate=30, ffmpeg='ffmpeg'):
    return [
        ffmpeg,
        '-y',                   # overwrite without asking
        '-r', str(framerate),
        '-i', os.path.join(frames_dir, FRAME_PATTERN),
        '-c:v', 'libx264',
        output_filename,
    ]


def compile_video(frames_dir, output_filename=None, framerate=30, ffmpeg='ffmpeg'):
    """Encodes '<frames_dir>/%d.png' into a video and returns ffmpeg's exit status."""
    if output_filename is None:
        output_filename = os.path.join(frames_dir, DEFAULT_OUTPUT)

    ffmpeg_command = build_ffmpeg_command(frames_dir, output_filename, framerate, ffmpeg)
    cprint(f"\n--- COMPILING VIDEO '{output_filename}' at {framerate} fps ---", C.SUBHEADER)

    try:
        result = subprocess.run(ffmpeg_command, stdin=subprocess.DEVNULL)
    except OSError as e:
        raise AssemblyError(f"failed to run `{ffmpeg}`: {e}") from e

    print(f"video creation child process exited with status {result.returncode}")
    if result.returncode != 0:
        raise AssemblyError(f"{ffmpeg} exited with status {result.returncode}")

    cprint(f"Video compilation successful! Output saved to '{os.path.abspath(output_filename)}'", C.SUCCESS)
    return result.returncode
