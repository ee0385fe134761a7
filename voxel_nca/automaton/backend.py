"""Inference backend capability.

The engine only needs `infer(packed) -> packed`: a float32 tensor of shape
[1, C, N, N, N] in, one tensor of the same shape and dtype out. Anything that
honours that contract can drive the automaton: a TorchScript model, a plain
`torch.nn.Module`, or a deterministic function in tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Mapping, Protocol, runtime_checkable

import torch

from voxel_nca.console import console


@runtime_checkable
class InferenceBackend(Protocol):
    def infer(self, packed: torch.Tensor) -> torch.Tensor:
        """Advance one packed [1, C, N, N, N] state by one model update."""
        raise NotImplementedError("Subclasses must implement this method")


def select_output(result: Any, output_name: str) -> torch.Tensor:
    """Pick the named output tensor out of whatever a model returned.

    Models exported from graph runtimes return a mapping of named outputs;
    eager modules usually return the tensor itself or a 1-tuple.
    """
    if isinstance(result, torch.Tensor):
        return result
    if isinstance(result, Mapping):
        if output_name in result:
            return result[output_name]
        if len(result) == 1:
            return next(iter(result.values()))
        raise KeyError(f"model output {output_name!r} not found in {sorted(result)}")
    if isinstance(result, (tuple, list)) and len(result) == 1 and isinstance(result[0], torch.Tensor):
        return result[0]
    raise TypeError(f"model must return a tensor or a mapping of tensors, got {type(result)!r}")


class TorchModuleBackend:
    """Runs a torch module (eager or TorchScript) under inference mode."""

    def __init__(
        self,
        module: torch.nn.Module | Callable[[torch.Tensor], Any],
        *,
        output_name: str = "mul_1",
        device: str | torch.device | None = None,
    ) -> None:
        self.module = module
        self.output_name = output_name
        self.device = None if device is None else torch.device(device)
        if isinstance(module, torch.nn.Module):
            module.eval()
            if self.device is not None:
                module.to(self.device)

    def infer(self, packed: torch.Tensor) -> torch.Tensor:
        x = packed if self.device is None else packed.to(self.device)
        with torch.inference_mode():
            out = select_output(self.module(x), self.output_name)
        return out.to(device=packed.device, dtype=packed.dtype)

    def __repr__(self) -> str:
        return f"TorchModuleBackend({type(self.module).__name__}, output={self.output_name!r})"


class FunctionBackend:
    """Wraps a plain `tensor -> tensor` function; used for stubs and tests."""

    def __init__(self, fn: Callable[[torch.Tensor], torch.Tensor], *, name: str | None = None) -> None:
        self.fn = fn
        self.name = name or getattr(fn, "__name__", "function")
        self.calls = 0

    def infer(self, packed: torch.Tensor) -> torch.Tensor:
        self.calls += 1
        return self.fn(packed)

    def __repr__(self) -> str:
        return f"FunctionBackend({self.name})"


def identity_backend() -> FunctionBackend:
    return FunctionBackend(lambda packed: packed.clone(), name="identity")


def load_torchscript(
    path: str | Path,
    *,
    output_name: str = "mul_1",
    device: str = "cpu",
) -> TorchModuleBackend | None:
    """Load a TorchScript update model, or return None when it cannot be loaded.

    A missing backend is not fatal: the engine simply does not step.
    """
    path = Path(path)
    try:
        with console.spinner(f"Loading update model {path.name}"):
            module = torch.jit.load(str(path), map_location=device)
    except (OSError, RuntimeError, ValueError) as err:
        console.error(f"Failed to load model {path}", detail=str(err))
        return None
    backend = TorchModuleBackend(module, output_name=output_name, device=device)
    console.success("Update model loaded", detail=f"{path} on {device}")
    return backend
