"""Update index mapping between grid storage and the model tensor layout.

Grid storage is voxel-major (`buffer[i * C + c]`); the model expects a
channel-major batch of one, `[1, C, N, N, N]`, where flat element
`c * N³ + i` holds channel `c` of voxel `i` and `i = z*N*N + y*N + x`.
"""

from __future__ import annotations

import torch

from .grid import GridState


def packed_shape(size: int, channels: int) -> tuple[int, int, int, int, int]:
    return (1, channels, size, size, size)


def pack(state: GridState) -> torch.Tensor:
    """Return a fresh contiguous [1, C, N, N, N] copy of the grid."""
    return state.voxels().permute(3, 0, 1, 2).unsqueeze(0).contiguous()


def unpack(packed: torch.Tensor, state: GridState) -> GridState:
    """Overwrite every channel of every voxel of `state` from a packed tensor."""
    expected = packed_shape(state.size, state.channels)
    if tuple(packed.shape) != expected:
        raise ValueError(f"packed tensor must have shape {expected}, got {tuple(packed.shape)}")
    n, c = state.size, state.channels
    src = packed.detach().reshape(c, n, n, n).permute(1, 2, 3, 0)
    state.voxels().copy_(src.to(device=state.device, dtype=state.dtype))
    return state


def packed_offset(z: int, y: int, x: int, c: int, size: int) -> int:
    """Flat position of (voxel, channel) in the packed layout."""
    return c * size ** 3 + (z * size * size + y * size + x)
