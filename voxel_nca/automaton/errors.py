"""Error taxonomy for the automaton core.

Only `OutOfBoundsAccess` is ever raised at callers, and only for direct grid
indexing; every other failure degrades to a no-op or a `None` pick result.
"""

from __future__ import annotations


class AutomatonError(Exception):
    """Base class for automaton errors."""


class BackendUnavailable(AutomatonError):
    """No inference backend is attached, or it failed to load or run."""


class OutOfBoundsAccess(AutomatonError, IndexError):
    """A voxel coordinate outside [0, N) was used for indexing."""

    def __init__(self, z: int, y: int, x: int, size: int) -> None:
        super().__init__(f"voxel (z={z}, y={y}, x={x}) outside [0, {size})")
        self.coord = (z, y, x)
        self.size = size
