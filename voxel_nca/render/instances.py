"""Per-voxel color and visibility handed to the renderer.

Placement: voxel (z, y, x) is drawn at
`((y - N/2) * s, (x - N/2) * s, (z - N/2) * s)` for voxel size `s`, so world X
carries grid y and world Y carries grid x. Picking in
`voxel_nca.automaton.resolver` inverts exactly this mapping.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import torch

from voxel_nca.automaton.grid import ALPHA_CHANNEL, GridState


@dataclass
class VisibleInstances:
    """Instance data for voxels whose alpha clears the render threshold."""

    indices: np.ndarray    # (K,) flat voxel index z*N*N + y*N + x
    positions: np.ndarray  # (K, 3) world-space centres in the unrotated frame
    colors: np.ndarray     # (K, 3) RGB clamped to [0, 1]

    @property
    def count(self) -> int:
        return int(self.indices.shape[0])


@dataclass
class RenderFrame:
    """Everything one rendered frame reads from the automaton."""

    masked: GridState
    instances: VisibleInstances
    rotation: float
    step: int


def visible_instances(state: GridState, voxel_size: float, alpha_threshold: float = 0.1) -> VisibleInstances:
    n = state.size
    vox = state.voxels().detach().to("cpu", torch.float32)
    visible = vox[..., ALPHA_CHANNEL] > alpha_threshold
    zyx = visible.nonzero()
    z, y, x = zyx[:, 0], zyx[:, 1], zyx[:, 2]

    half = n / 2
    positions = torch.stack([(y - half) * voxel_size, (x - half) * voxel_size, (z - half) * voxel_size], dim=-1)
    colors = vox[visible][:, :3].clamp(0.0, 1.0)
    return VisibleInstances(
        indices=(z * n * n + y * n + x).numpy().astype(np.int64),
        positions=positions.to(torch.float32).numpy(),
        colors=colors.numpy(),
    )
