from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import torch


class DamageMode(str, Enum):
    """Which erase semantics pointer-driven damage uses.

    SPHERE clears every channel (latent state included); RAY clears only the
    visible channels (RGB + alpha) along the marched ray and leaves latent
    state behind for the model to regrow from.
    """

    SPHERE = "sphere"
    RAY = "ray"


AXES = ("x", "y", "z")


@dataclass
class AutomatonConfig:
    """Configuration for one automaton instance and its interactive session."""

    # Grid
    size: int = 16                       # edge length N of the cubic lattice
    channels: int = 16                   # channels per voxel, C >= 4

    # Masks
    alive_threshold: float = 0.05        # alive-mask dilation threshold on alpha
    render_alpha_threshold: float = 0.1  # instances at or below this alpha are hidden

    # Geometry shared by renderer placement and picking
    voxel_size: float = 0.08

    # Mutation
    damage_radius: float = 2.0
    damage_mode: DamageMode = DamageMode.SPHERE

    # Scheduling
    frame_skip: int = 5                  # one step every N playing ticks
    rotation_speed: float = 0.001        # cube rotation about world Y per tick (rad)

    # Picking
    march_step: float = 0.5              # ray-march increment, in voxels
    active_axis: str = "z"               # axis the layer selector slices along
    invert_axis: str | None = None       # flip one logical axis when picking

    # Backend
    output_name: str = "mul_1"           # output picked when a model returns a dict

    # Device
    device: str = "cpu"
    dtype: torch.dtype = field(default_factory=lambda: torch.float32)

    # Profiling
    profile_enabled: bool = False
    profile_warmup_steps: int = 2
    profile_active_steps: int = 20
    profile_output_dir: Path = field(default_factory=lambda: Path("artifacts/profiles"))

    def __post_init__(self) -> None:
        if self.size < 2:
            raise ValueError(f"size must be >= 2, got {self.size}")
        if self.channels < 4:
            raise ValueError(f"channels must be >= 4 (RGB + alpha), got {self.channels}")
        if self.frame_skip < 1:
            raise ValueError(f"frame_skip must be >= 1, got {self.frame_skip}")
        if self.voxel_size <= 0.0:
            raise ValueError(f"voxel_size must be positive, got {self.voxel_size}")
        if self.march_step <= 0.0:
            raise ValueError(f"march_step must be positive, got {self.march_step}")
        if self.active_axis not in AXES:
            raise ValueError(f"active_axis must be one of {AXES}, got {self.active_axis!r}")
        if self.invert_axis is not None and self.invert_axis not in AXES:
            raise ValueError(f"invert_axis must be one of {AXES} or None, got {self.invert_axis!r}")
        self.damage_mode = DamageMode(self.damage_mode)

    @property
    def num_voxels(self) -> int:
        return self.size ** 3

    @property
    def buffer_length(self) -> int:
        return self.size ** 3 * self.channels
