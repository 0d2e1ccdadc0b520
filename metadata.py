# metadata.py v1.0
# Part of N-Body Viewer
# Reads the per-run metadata files written next to the sample data.

import os

from errors import ConfigError

SAMPLE_FILE = '_sample.txt'
TIME_FILE = '_time.txt'


def _read_value(directory, filename, kind):
    path = os.path.join(directory, filename)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read().strip()
    except UnicodeDecodeError as e:
        raise ConfigError(f"'{path}' is not valid UTF-8 text: {e}") from e
    try:
        return kind(text)
    except ValueError as e:
        raise ConfigError(f"failed to parse {kind.__name__} number in '{path}': {text!r}") from e


def read_sample_count(directory) -> int:
    """Number of the last sample. Sample files run from 0 to this value inclusive."""
    count = _read_value(directory, SAMPLE_FILE, int)
    if count < 0:
        raise ConfigError(f"sample number must not be negative, got {count}")
    return count


def read_sample_time(directory) -> float:
    """Simulated seconds between two consecutive samples."""
    return _read_value(directory, TIME_FILE, float)
