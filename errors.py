# errors.py v1.0
# Part of N-Body Viewer
# One exception class per failure kind. Each keeps its origin on __cause__.


class ConfigError(Exception):
    """Bad command line values, malformed numbers or unusable bounds."""


class JobError(Exception):
    """A single frame could not be rendered.

    Carried inside a JobOutcome instead of being raised across the worker
    boundary, so sibling jobs keep running.
    """

    def __init__(self, index, message):
        super().__init__(f"frame {index}: {message}")
        self.index = index


class AssemblyError(Exception):
    """The encoder could not be started or exited with a non-zero status."""
