# bounds.py v1.0
# Part of N-Body Viewer
# Resolves the plotting viewport shared by every frame.
# - Explicit --min-bounds/--max-bounds win; the bounds file is then never opened.
# - Otherwise the first two non-comment lines of '_bounds.dat' are min and max.

import os
import numpy as np

from errors import ConfigError

BOUNDS_FILE = '_bounds.dat'
SUPPORTED_DIMENSIONS = (2, 3)


class Bounds:
    """Read-only viewport: one (min, max) pair per spatial dimension."""
    def __init__(self, min_bounds, max_bounds):
        min_bounds = np.array(min_bounds, dtype=float)
        max_bounds = np.array(max_bounds, dtype=float)

        if len(min_bounds) != len(max_bounds):
            raise ConfigError(
                f"min bounds have {len(min_bounds)} values but max bounds have {len(max_bounds)}")
        if len(min_bounds) not in SUPPORTED_DIMENSIONS:
            raise ConfigError(f"only 2 or 3 dimensions are supported, got {len(min_bounds)}")

        # Shared across all worker threads without locking, so freeze the buffers.
        min_bounds.flags.writeable = False
        max_bounds.flags.writeable = False
        self.min = min_bounds
        self.max = max_bounds

    @property
    def dimension(self) -> int:
        return len(self.min)

    def ranges(self):
        """Yields (min, max) per dimension, in axis order."""
        return zip(self.min.tolist(), self.max.tolist())

    def inverted_axes(self) -> list:
        """Indices of axes whose min lies above their max."""
        return [int(d) for d in np.flatnonzero(self.min > self.max)]

    def __eq__(self, other):
        if not isinstance(other, Bounds):
            return NotImplemented
        return np.array_equal(self.min, other.min) and np.array_equal(self.max, other.max)

    def __repr__(self):
        return f"Bounds(min={self.min.tolist()}, max={self.max.tolist()})"


def parse_bounds_line(line: str) -> list:
    """Parses a whitespace separated list of floats, e.g. '-1 -1 0.5'."""
    values = []
    for token in line.split():
        try:
            values.append(float(token))
        except ValueError as e:
            raise ConfigError(f"failed to parse float number: {token!r}") from e
    return values


def _data_lines(lines):
    for line in lines:
        line = line.strip()
        if line and not line.startswith('#'):
            yield line


def read_bounds_file(path) -> Bounds:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise ConfigError(f"'{path}' is not valid UTF-8 text: {e}") from e

    lines = _data_lines(text.splitlines())
    min_line = next(lines, None)
    if min_line is None:
        raise ConfigError(f"min bounds line missing in '{path}'")
    max_line = next(lines, None)
    if max_line is None:
        raise ConfigError(f"max bounds line missing in '{path}'")
    return Bounds(parse_bounds_line(min_line), parse_bounds_line(max_line))


def resolve_bounds(directory, min_override=None, max_override=None) -> Bounds:
    """Bounds from the explicit override strings if given, else from the run directory."""
    if (min_override is None) != (max_override is None):
        raise ConfigError("--min-bounds and --max-bounds must be given together")
    if min_override is not None:
        return Bounds(parse_bounds_line(min_override), parse_bounds_line(max_override))
    return read_bounds_file(os.path.join(directory, BOUNDS_FILE))
