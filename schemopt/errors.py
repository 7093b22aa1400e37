from __future__ import annotations

EXIT_OK = 0
EXIT_IO = 1
EXIT_USAGE = 2
EXIT_SEED_NOT_FOUND = 3
EXIT_MARKER = 4
EXIT_TARGET_NOT_REACHED = 5


class OptimizerError(Exception):
    """Base class for conditions surfaced to the caller of an optimization run."""

    exit_code = EXIT_IO


class SeedNotFound(OptimizerError):
    exit_code = EXIT_SEED_NOT_FOUND


class MarkerNotFound(OptimizerError):
    exit_code = EXIT_MARKER


class MultipleMarkers(OptimizerError):
    exit_code = EXIT_MARKER


class TargetNotReached(OptimizerError):
    """The flood completed without touching the inside marker (the cavity is sealed)."""

    exit_code = EXIT_TARGET_NOT_REACHED


class OutOfBounds(OptimizerError, IndexError):
    pass


class SchematicError(OptimizerError):
    pass
