"""Voxel automaton core: grid state, packing, engine, mutation, masking, picking."""

from __future__ import annotations

from .backend import FunctionBackend, InferenceBackend, TorchModuleBackend, identity_backend, load_torchscript
from .config import AutomatonConfig, DamageMode
from .engine import AutomatonEngine
from .errors import AutomatonError, BackendUnavailable, OutOfBoundsAccess
from .grid import ALPHA_CHANNEL, GridState, Voxel
from .mask import alive_neighborhood, apply_alive_mask
from .mutation import Grow, RayDamage, SphereDamage, damage_ray, damage_sphere, grow
from .packing import pack, unpack
from .resolver import GridTransform, LayerSelector, march_ray, march_world_ray, pick_plane

__all__ = [
    "ALPHA_CHANNEL",
    "AutomatonConfig",
    "AutomatonEngine",
    "AutomatonError",
    "BackendUnavailable",
    "DamageMode",
    "FunctionBackend",
    "GridState",
    "GridTransform",
    "Grow",
    "InferenceBackend",
    "LayerSelector",
    "OutOfBoundsAccess",
    "RayDamage",
    "SphereDamage",
    "TorchModuleBackend",
    "Voxel",
    "alive_neighborhood",
    "apply_alive_mask",
    "damage_ray",
    "damage_sphere",
    "grow",
    "identity_backend",
    "load_torchscript",
    "march_ray",
    "march_world_ray",
    "pack",
    "pick_plane",
    "unpack",
]
