"""Render-side data contract: visible instances and offline snapshots."""

from __future__ import annotations

from .instances import RenderFrame, VisibleInstances, visible_instances

__all__ = ["RenderFrame", "VisibleInstances", "visible_instances", "save_snapshot"]


def __getattr__(name: str):  # pragma: no cover
    # matplotlib is only needed for snapshots.
    if name == "save_snapshot":
        from .snapshot import save_snapshot as _save_snapshot

        return _save_snapshot
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
