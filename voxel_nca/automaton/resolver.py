"""Pick-ray to voxel resolution.

Two strategies map pointer input onto a target voxel:

- **Plane intersection** (`pick_plane`): the renderer intersects its pick ray
  with the bounding cube and hands us the world-space hit. We undo the cube's
  rotation, invert the instance placement (voxel_size per cell) and floor.
- **Ray marching** (`march_ray`): walk the ray through grid space in fixed
  increments and return the first voxel lying on the active layer.

Axis convention (matches `voxel_nca.render.instances`): world X carries grid
y, world Y carries grid x, world Z carries grid z. `invert_axis` flips one
logical axis (i -> N-1-i) for renderers whose logical axis runs the other way.

A miss is `None`, never an exception.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .grid import Voxel

AXIS_INDEX = {"x": 0, "y": 1, "z": 2}

def rotation_y(theta: float) -> np.ndarray:
    """Rotation matrix about +Y (right-handed, as applied to the rendered cube)."""
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, 0.0, s], [0.0, 1.0, 0.0], [-s, 0.0, c]], dtype=np.float64)

@dataclass
class GridTransform:
    """World <-> grid mapping for voxel instances of edge `voxel_size` centred at the origin.

    Inverts the instance placement: voxel `(z, y, x)` is drawn at
    `((y - N/2) s, (x - N/2) s, (z - N/2) s)`, so its centre remaps to
    `(x + 0.5, y + 0.5, z + 0.5)` and floors back to the same voxel.
    """

    size: int
    voxel_size: float = 0.08
    rotation: float = 0.0
    invert_axis: Optional[str] = None

    def world_to_local(self, point: Sequence[float]) -> np.ndarray:
        # Inverse of a rotation is its transpose.
        return rotation_y(self.rotation).T @ np.asarray(point, dtype=np.float64)

    def local_to_grid(self, point: Sequence[float]) -> np.ndarray:
        """Continuous (x, y, z) grid coordinates of a point in the unrotated frame."""
        p = np.asarray(point, dtype=np.float64)
        g = p / self.voxel_size + 0.5 * self.size + 0.5
        # world (X, Y, Z) -> grid (y, x, z)
        return np.array([g[1], g[0], g[2]])

    def world_to_grid(self, point: Sequence[float]) -> np.ndarray:
        return self.local_to_grid(self.world_to_local(point))

    def direction_to_grid(self, direction: Sequence[float]) -> np.ndarray:
        d = rotation_y(self.rotation).T @ np.asarray(direction, dtype=np.float64)
        d = d / self.voxel_size
        return np.array([d[1], d[0], d[2]])

    def to_voxel(self, grid_point: Sequence[float]) -> Voxel:
        """Floor a continuous grid point and apply the logical axis inversion."""
        n = self.size
        ijk = [min(int(math.floor(v)), n - 1) for v in grid_point]
        if self.invert_axis is not None:
            a = AXIS_INDEX[self.invert_axis]
            ijk[a] = n - 1 - ijk[a]
        return Voxel(*ijk)

def pick_plane(
    transform: GridTransform,
    hit: Optional[Sequence[float]],
    *,
    margin: float = 1.0,
) -> Optional[Voxel]:
    """Voxel under a world-space hit point on the cube, or None on a miss.

    Hits up to `margin` voxels outside [0, N] (the wire cube drawn around the
    instances, or a far face) clamp onto the nearest boundary voxel.
    """
    if hit is None:
        return None
    g = transform.world_to_grid(hit)
    n = transform.size
    if not np.all(np.isfinite(g)):
        return None
    if np.any(g < -margin) or np.any(g > n + margin):
        return None
    return transform.to_voxel(np.clip(g, 0.0, n - 1e-9))

@dataclass
class LayerSelector:
    """Active slice index driven by a scroll accumulator clamped to [0, N-1]."""

    size: int
    sensitivity: float = 0.01
    accumulator: float = 0.0

    @property
    def layer(self) -> int:
        return int(math.floor(self.accumulator))

    def set(self, index: float) -> int:
        self.accumulator = min(max(float(index), 0.0), float(self.size - 1))
        return self.layer

    def scroll(self, delta: float) -> int:
        return self.set(self.accumulator + float(delta) * self.sensitivity)

def march_ray(
    transform: GridTransform,
    start: Sequence[float],
    direction: Sequence[float],
    *,
    layer: int,
    axis: str = "z",
    step: float = 0.5,
) -> Optional[Voxel]:
    """First voxel on `layer` along a grid-space ray, or None.

    `start` and `direction` are continuous grid coordinates (x, y, z). The ray
    may start outside the cube; it is a miss once it has entered and left
    again, or when it never enters within reach.
    """
    n = transform.size
    d = np.asarray(direction, dtype=np.float64)
    mag = float(np.linalg.norm(d))
    if mag == 0.0 or not math.isfinite(mag):
        return None
    d = d / mag * step
    p = np.asarray(start, dtype=np.float64)
    a = AXIS_INDEX[axis]

    centre = np.full(3, 0.5 * n)
    reach = float(np.linalg.norm(p - centre)) + math.sqrt(3.0) * n
    entered = False
    for _ in range(int(math.ceil(reach / step)) + 1):
        inside = bool(np.all(p >= 0.0) and np.all(p < n))
        if inside:
            entered = True
            voxel = transform.to_voxel(p)
            if voxel[a] == layer:
                return voxel
        elif entered:
            return None
        p = p + d
    return None

def enter_grid(
    size: int,
    start: Sequence[float],
    direction: Sequence[float],
    *,
    nudge: float = 1e-6,
) -> Optional[np.ndarray]:
    """Point where a grid-space ray enters [0, N)³, or None if it never does.

    A start point already inside is returned unchanged.
    """
    p = np.asarray(start, dtype=np.float64)
    d = np.asarray(direction, dtype=np.float64)
    if np.all(p >= 0.0) and np.all(p < size):
        return p
    t_near, t_far = -math.inf, math.inf
    for a in range(3):
        if d[a] == 0.0:
            if not 0.0 <= p[a] < size:
                return None
            continue
        t0 = (0.0 - p[a]) / d[a]
        t1 = (size - p[a]) / d[a]
        t_near = max(t_near, min(t0, t1))
        t_far = min(t_far, max(t0, t1))
    if t_near > t_far or t_far < 0.0:
        return None
    # Step just past the face so the entry point is strictly inside.
    mag = float(np.linalg.norm(d))
    entry = p + d * (max(t_near, 0.0) + nudge / mag)
    if np.all(entry >= 0.0) and np.all(entry < size):
        return entry
    return None

def march_world_ray(
    transform: GridTransform,
    origin: Sequence[float],
    direction: Sequence[float],
    *,
    layer: int,
    axis: str = "z",
    step: float = 0.5,
) -> Optional[Voxel]:
    """`march_ray` for a ray given in world space."""
    return march_ray(
        transform,
        transform.world_to_grid(origin),
        transform.direction_to_grid(direction),
        layer=layer,
        axis=axis,
        step=step,
    )
