from __future__ import annotations

import torch
import torch.nn.functional as F

from .grid import GridState


def alive_neighborhood(state: GridState, threshold: float = 0.05) -> torch.Tensor:
    """Boolean [z, y, x] grid: any voxel in the 3x3x3 block has alpha > threshold.

    max_pool3d pads with -inf, so out-of-grid neighbors never count.
    """
    alpha = state.alpha().to(torch.float32)
    pooled = F.max_pool3d(alpha[None, None], kernel_size=3, stride=1, padding=1)
    return pooled[0, 0] > float(threshold)


def apply_alive_mask(state: GridState, threshold: float = 0.05) -> GridState:
    """Render-ready copy of `state` with voxels lacking an alive neighbor zeroed."""
    keep = alive_neighborhood(state, threshold)
    masked = state.clone()
    masked.voxels()[~keep] = 0.0
    return masked
