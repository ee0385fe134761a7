"""Voxel NCA.

A dense 3D voxel grid advanced by an external neural cellular automaton and
edited interactively by damage and grow operations.

- `voxel_nca.automaton` holds the core (grid, packing, engine, mutation, masks, picking)
- `voxel_nca.session` is the interactive command surface
- `voxel_nca.render` is the renderer-facing data contract

Imports here are lazy so `import voxel_nca` stays cheap.
"""

from __future__ import annotations

__all__ = [
    "AutomatonConfig",
    "AutomatonEngine",
    "Session",
]


def __getattr__(name: str):  # pragma: no cover
    if name == "AutomatonConfig":
        from .automaton.config import AutomatonConfig as _AutomatonConfig

        return _AutomatonConfig
    if name == "AutomatonEngine":
        from .automaton.engine import AutomatonEngine as _AutomatonEngine

        return _AutomatonEngine
    if name == "Session":
        from .session import Session as _Session

        return _Session
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
