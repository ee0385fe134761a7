"""Localized writes to the grid: damage (two erase variants) and grow.

Coordinates are (x, y, z); storage is addressed [z, y, x]. Every operator
takes the grid, writes, and returns the number of voxels it touched; none of
them keeps a reference to the grid.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, Union

import torch

from .grid import ALPHA_CHANNEL, VISIBLE_CHANNELS, GridState, Voxel

Vec3 = Sequence[float]


@dataclass(frozen=True)
class RayDamage:
    """Erase the visible channels along a ray, in grid coordinates."""

    origin: tuple[float, float, float]
    direction: tuple[float, float, float]
    radius: float = 2.0


@dataclass(frozen=True)
class SphereDamage:
    """Erase every channel inside a ball around a voxel."""

    center: Voxel
    radius: float = 2.0


@dataclass(frozen=True)
class Grow:
    """Seed latent material in the 2x2x2 block starting at a voxel."""

    coord: Voxel


MutationRequest = Union[RayDamage, SphereDamage, Grow]


def normalize(direction: Vec3) -> tuple[float, float, float]:
    """Unit vector along `direction`; a zero vector is returned unchanged."""
    vx, vy, vz = (float(v) for v in direction)
    mag = math.sqrt(vx * vx + vy * vy + vz * vz) or 1.0
    return vx / mag, vy / mag, vz / mag


def _axis_range(lo: int, hi: int, size: int) -> tuple[int, int]:
    """Clip the inclusive cell range [lo, hi] to the grid as a half-open slice."""
    return max(lo, 0), min(hi + 1, size)


def _clamp_radius(radius: float, size: int) -> float | None:
    """Radius capped at 2N, or None when it is NaN."""
    radius = float(radius)
    if math.isnan(radius):
        return None
    # Anything past 2N already covers every cell from any in-grid center.
    return min(radius, 2.0 * size)


def _ball(
    center: tuple[float, float, float],
    radius: float,
    bounds: tuple[tuple[int, int], tuple[int, int], tuple[int, int]],
    device: torch.device,
) -> torch.Tensor:
    """Boolean [z, y, x] mask of the cells in `bounds` within `radius` of `center`."""
    (x0, x1), (y0, y1), (z0, z1) = bounds
    cx, cy, cz = center
    xs = torch.arange(x0, x1, device=device, dtype=torch.float64) - cx
    ys = torch.arange(y0, y1, device=device, dtype=torch.float64) - cy
    zs = torch.arange(z0, z1, device=device, dtype=torch.float64) - cz
    d2 = zs.view(-1, 1, 1) ** 2 + ys.view(1, -1, 1) ** 2 + xs.view(1, 1, -1) ** 2
    return d2 <= float(radius) ** 2


def damage_ray(state: GridState, origin: Vec3, direction: Vec3, radius: float = 2.0) -> int:
    """Clear RGB + alpha of every voxel within `radius` of a marched ray.

    The ray is walked in unit steps from `origin` until the sample point leaves
    [0, N) on any axis. Latent channels are left untouched. A zero direction
    keeps sampling the origin, so the walk is capped at the number of unit
    steps needed to cross the cube diagonal. A NaN radius touches nothing and
    an infinite one is capped at 2N.
    """
    n = state.size
    radius = _clamp_radius(radius, n)
    if radius is None:
        return 0
    sx, sy, sz = (float(v) for v in origin)
    vx, vy, vz = normalize(direction)
    max_steps = math.ceil(math.sqrt(3.0) * n) + 1
    vox = state.voxels()
    touched: set[tuple[int, int, int]] = set()

    for t in range(max_steps):
        cx, cy, cz = sx + vx * t, sy + vy * t, sz + vz * t
        if not (0.0 <= cx < n and 0.0 <= cy < n and 0.0 <= cz < n):
            break
        bounds = (
            _axis_range(math.floor(cx - radius), math.ceil(cx + radius), n),
            _axis_range(math.floor(cy - radius), math.ceil(cy + radius), n),
            _axis_range(math.floor(cz - radius), math.ceil(cz + radius), n),
        )
        (x0, x1), (y0, y1), (z0, z1) = bounds
        if x0 >= x1 or y0 >= y1 or z0 >= z1:
            continue
        hit = _ball((cx, cy, cz), radius, bounds, state.device)
        block = vox[z0:z1, y0:y1, x0:x1, :VISIBLE_CHANNELS]
        block[hit] = 0.0
        for dz, dy, dx in hit.nonzero().tolist():
            touched.add((z0 + dz, y0 + dy, x0 + dx))
    return len(touched)


def damage_sphere(state: GridState, center: Voxel, radius: float = 2.0) -> int:
    """Zero all channels of every voxel with squared distance <= radius².

    A NaN radius touches nothing; an infinite one clears the whole grid.
    """
    n = state.size
    radius = _clamp_radius(radius, n)
    if radius is None:
        return 0
    cx, cy, cz = (int(v) for v in center)
    reach = math.floor(radius)
    bounds = (
        _axis_range(cx - reach, cx + reach, n),
        _axis_range(cy - reach, cy + reach, n),
        _axis_range(cz - reach, cz + reach, n),
    )
    (x0, x1), (y0, y1), (z0, z1) = bounds
    if x0 >= x1 or y0 >= y1 or z0 >= z1:
        return 0
    hit = _ball((cx, cy, cz), radius, bounds, state.device)
    block = state.voxels()[z0:z1, y0:y1, x0:x1]
    block[hit] = 0.0
    return int(hit.sum().item())


def grow(state: GridState, coord: Voxel) -> int:
    """Set channels [3, C) to 1.0 over a clamped 2x2x2 block; colors are kept."""
    hi = state.size - 1
    x, y, z = (int(v) for v in coord)
    vox = state.voxels()
    cells = {
        (min(max(z + k, 0), hi), min(max(y + j, 0), hi), min(max(x + i, 0), hi))
        for i in range(2)
        for j in range(2)
        for k in range(2)
    }
    for cz, cy, cx in cells:
        vox[cz, cy, cx, ALPHA_CHANNEL:] = 1.0
    return len(cells)


def apply(state: GridState, request: MutationRequest) -> int:
    """Dispatch one mutation request onto the grid."""
    match request:
        case RayDamage(origin=origin, direction=direction, radius=radius):
            return damage_ray(state, origin, direction, radius)
        case SphereDamage(center=center, radius=radius):
            return damage_sphere(state, center, radius)
        case Grow(coord=coord):
            return grow(state, coord)
        case _:
            raise TypeError(f"unknown mutation request {request!r}")
