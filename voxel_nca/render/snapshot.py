"""Offline still of a render frame (headless runs, debugging)."""

from __future__ import annotations

from pathlib import Path

import numpy as np

from voxel_nca.automaton.grid import ALPHA_CHANNEL

from .instances import RenderFrame


def save_snapshot(frame: RenderFrame, path: str | Path, *, alpha_threshold: float = 0.1, dpi: int = 120) -> Path:
    """Draw the masked grid as colored voxels and write it to `path`."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    vox = frame.masked.voxels().detach().cpu().numpy()
    # matplotlib indexes voxels [i, j, k] along plot (x, y, z); transpose [z, y, x]
    # so plot axes follow the renderer's placement (X <- y, Y <- x, Z <- z).
    vox = np.transpose(vox, (1, 2, 0, 3))
    filled = vox[..., ALPHA_CHANNEL] > alpha_threshold
    colors = np.zeros(filled.shape + (4,), dtype=np.float32)
    colors[..., :3] = np.clip(vox[..., :3], 0.0, 1.0)
    colors[..., 3] = 1.0

    fig = plt.figure(figsize=(5.0, 5.0))
    ax = fig.add_subplot(111, projection="3d")
    if filled.any():
        ax.voxels(filled, facecolors=colors, edgecolor=None)
    n = frame.masked.size
    ax.set_xlim(0, n)
    ax.set_ylim(0, n)
    ax.set_zlim(0, n)
    ax.set_title(f"step {frame.step}  visible {frame.instances.count}")
    fig.savefig(path, dpi=int(dpi), bbox_inches="tight")
    plt.close(fig)
    return path
