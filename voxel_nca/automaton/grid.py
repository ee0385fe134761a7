"""Dense voxel channel buffer.

Storage is one flat float32 tensor of length N³·C, voxel-major and
channel-minor: the channels of voxel (z, y, x) occupy
`[index(z, y, x), index(z, y, x) + C)`. Voxels are laid out z-major, then y,
then x. The packing in `packing.py` relies on this order.

Channel layout:
    0..2   RGB color in [0, 1]
    3      alpha ("alive")
    3..C   latent state read by the update model
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

import torch

from .errors import OutOfBoundsAccess

ALPHA_CHANNEL = 3
VISIBLE_CHANNELS = 4  # RGB + alpha


class Voxel(NamedTuple):
    """Integer voxel coordinate. Storage is addressed as index(z, y, x)."""

    x: int
    y: int
    z: int


@dataclass
class GridState:
    """The live channel buffer of one automaton."""

    buffer: torch.Tensor
    size: int
    channels: int

    def __post_init__(self) -> None:
        expected = self.size ** 3 * self.channels
        if self.buffer.dim() != 1 or self.buffer.numel() != expected:
            raise ValueError(
                f"buffer must be flat with {expected} elements "
                f"(N={self.size}, C={self.channels}), got shape {tuple(self.buffer.shape)}"
            )

    @classmethod
    def zeros(
        cls,
        size: int,
        channels: int,
        *,
        device: str | torch.device = "cpu",
        dtype: torch.dtype = torch.float32,
    ) -> "GridState":
        buffer = torch.zeros(size ** 3 * channels, device=device, dtype=dtype)
        return cls(buffer=buffer, size=size, channels=channels)

    @classmethod
    def seed(
        cls,
        size: int,
        channels: int,
        *,
        device: str | torch.device = "cpu",
        dtype: torch.dtype = torch.float32,
    ) -> "GridState":
        """Empty grid with a single latent seed at the center voxel."""
        state = cls.zeros(size, channels, device=device, dtype=dtype)
        state._plant_seed()
        return state

    def _plant_seed(self) -> None:
        center = self.size // 2
        idx = self.index(center, center, center)
        self.buffer[idx + ALPHA_CHANNEL : idx + self.channels] = 1.0

    def reset(self) -> None:
        """Restore the seed state in place."""
        self.buffer.zero_()
        self._plant_seed()

    def contains(self, z: int, y: int, x: int) -> bool:
        n = self.size
        return 0 <= z < n and 0 <= y < n and 0 <= x < n

    def index(self, z: int, y: int, x: int) -> int:
        """Offset of channel 0 of voxel (z, y, x) in the flat buffer."""
        if not self.contains(z, y, x):
            raise OutOfBoundsAccess(z, y, x, self.size)
        n = self.size
        return self.channels * (z * n * n + y * n + x)

    def voxel(self, z: int, y: int, x: int) -> torch.Tensor:
        """View of the C channels of one voxel."""
        idx = self.index(z, y, x)
        return self.buffer[idx : idx + self.channels]

    def voxels(self) -> torch.Tensor:
        """(N, N, N, C) view indexed [z, y, x, c], sharing storage with the buffer."""
        n = self.size
        return self.buffer.view(n, n, n, self.channels)

    def alpha(self) -> torch.Tensor:
        """(N, N, N) view of the alpha channel."""
        return self.voxels()[..., ALPHA_CHANNEL]

    def alive_count(self, threshold: float) -> int:
        return int((self.alpha() > threshold).sum().item())

    def clone(self) -> "GridState":
        return GridState(buffer=self.buffer.clone(), size=self.size, channels=self.channels)

    def copy_from(self, other: "GridState") -> None:
        if other.size != self.size or other.channels != self.channels:
            raise ValueError("grid shapes differ")
        self.buffer.copy_(other.buffer)

    @property
    def device(self) -> torch.device:
        return self.buffer.device

    @property
    def dtype(self) -> torch.dtype:
        return self.buffer.dtype
