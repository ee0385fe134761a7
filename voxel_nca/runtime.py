"""Device detection for the automaton tensors.

The grid is tiny (16³ voxels by default) so CPU is always a valid choice; an
accelerator only pays off when the attached update model is large.
"""

from __future__ import annotations

import platform

import torch

__all__ = [
    "cuda_supported",
    "mps_supported",
    "get_device",
]


def cuda_supported() -> bool:
    try:
        return bool(torch.cuda.is_available())
    except Exception:
        return False


def mps_supported() -> bool:
    """Whether PyTorch can run on Apple Silicon (MPS) in this process."""
    if platform.system() != "Darwin":
        return False
    try:
        return bool(torch.backends.mps.is_available())
    except Exception:
        return False


def get_device(preferred: str | None = None) -> str:
    """Pick the device for grid and model tensors.

    An explicit `preferred` device wins; otherwise CUDA, then MPS, then CPU.
    """
    if preferred:
        return preferred
    if cuda_supported():
        return "cuda"
    if mps_supported():
        return "mps"
    return "cpu"
