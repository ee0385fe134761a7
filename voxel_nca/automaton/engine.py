"""Automaton engine: owns the live grid and drives model updates.

One step is pack -> infer -> unpack. `step()` does it synchronously;
`step_async()` runs inference on a worker thread and `poll()` applies the
result on the owning thread. Exactly one step may be in flight. Mutations
issued while a step is in flight are queued and applied right after its
unpack, so the grid only ever has one writer.
"""

from __future__ import annotations

import queue
import threading
from collections import deque
from typing import Any, Optional, Sequence

import torch

from voxel_nca.console import console
from voxel_nca.instrument.protocol import InstrumentProtocol

from .backend import InferenceBackend
from .config import AutomatonConfig
from .errors import BackendUnavailable
from .grid import GridState, Voxel
from .mask import apply_alive_mask
from .mutation import Grow, MutationRequest, RayDamage, SphereDamage, apply
from .packing import pack, packed_shape, unpack


class AutomatonEngine:
    """The single owner of one automaton's grid state."""

    def __init__(
        self,
        config: AutomatonConfig | None = None,
        backend: InferenceBackend | None = None,
        instrumentation: Sequence[InstrumentProtocol] = (),
    ) -> None:
        self.config = config or AutomatonConfig()
        self.state = GridState.seed(
            self.config.size,
            self.config.channels,
            device=self.config.device,
            dtype=self.config.dtype,
        )
        self.instrumentation = list(instrumentation)
        self.backend: InferenceBackend | None = None
        self.steps = 0

        self._pending: deque[MutationRequest] = deque()
        self._results: queue.Queue = queue.Queue(maxsize=1)
        self._worker: Optional[threading.Thread] = None
        self._discard_inflight = False
        self._warned_unavailable = False

        if backend is not None:
            self.attach(backend)

    # ------------------------------------------------------------------
    # Backend
    # ------------------------------------------------------------------
    def attach(self, backend: InferenceBackend) -> None:
        self.backend = backend
        self._warned_unavailable = False
        console.info("Inference backend attached", detail=repr(backend))

    def detach(self) -> None:
        self.backend = None

    @property
    def ready(self) -> bool:
        return self.backend is not None

    @property
    def busy(self) -> bool:
        """Whether a step is in flight."""
        return self._worker is not None

    def _require_backend(self) -> InferenceBackend:
        if self.backend is None:
            raise BackendUnavailable("no inference backend attached")
        return self.backend

    def _infer(self, backend: InferenceBackend, packed: torch.Tensor) -> Optional[torch.Tensor]:
        """Run the backend; any failure degrades to None (the step is skipped)."""
        try:
            out = backend.infer(packed)
        except Exception as err:
            console.error("Inference failed, step skipped", detail=f"{type(err).__name__}: {err}")
            return None
        if not isinstance(out, torch.Tensor) or tuple(out.shape) != tuple(packed.shape):
            shape = tuple(out.shape) if isinstance(out, torch.Tensor) else type(out).__name__
            console.error(
                "Inference returned the wrong shape, step skipped",
                detail=f"expected {tuple(packed.shape)}, got {shape}",
            )
            return None
        return out

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------
    def step(self) -> GridState:
        """Advance the grid by one model update, in place.

        A no-op when no backend is attached, when a step is already in
        flight, or when inference fails.
        """
        try:
            backend = self._require_backend()
        except BackendUnavailable as err:
            self._note_unavailable(err)
            return self.state
        if self.busy:
            return self.state

        out = self._infer(backend, pack(self.state))
        if out is not None:
            self._commit(out)
        return self.state

    def step_async(self) -> bool:
        """Issue a step on a worker thread. Returns whether one was issued."""
        try:
            backend = self._require_backend()
        except BackendUnavailable as err:
            self._note_unavailable(err)
            return False
        if self.busy:
            return False

        packed = pack(self.state)
        self._discard_inflight = False
        self._worker = threading.Thread(
            target=self._run_inference, args=(backend, packed), daemon=True
        )
        self._worker.start()
        return True

    def _run_inference(self, backend: InferenceBackend, packed: torch.Tensor) -> None:
        self._results.put(self._infer(backend, packed))

    def poll(self) -> bool:
        """Apply a finished in-flight step. Returns whether one completed."""
        if self._worker is None:
            return False
        try:
            out = self._results.get_nowait()
        except queue.Empty:
            return False
        self._worker.join()
        self._worker = None
        if out is not None and not self._discard_inflight:
            self._commit(out)
        self._discard_inflight = False
        self._drain()
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the in-flight step finishes (or `timeout`), then poll."""
        if self._worker is None:
            return False
        self._worker.join(timeout)
        return self.poll()

    def _commit(self, out: torch.Tensor) -> None:
        unpack(out, self.state)
        self.steps += 1
        if self.instrumentation:
            snapshot = self.snapshot()
            for instrument in self.instrumentation:
                instrument.update(snapshot)

    def _note_unavailable(self, err: BackendUnavailable) -> None:
        if not self._warned_unavailable:
            console.warn("Step skipped", detail=str(err))
            self._warned_unavailable = True

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def mutate(self, request: MutationRequest | None) -> int:
        """Apply a mutation now, or queue it behind the in-flight step.

        Returns the number of voxels written (0 when queued or `None`).
        """
        if request is None:
            return 0
        if self.busy:
            self._pending.append(request)
            return 0
        return apply(self.state, request)

    def damage(self, center: Voxel | None, radius: float | None = None) -> int:
        if center is None:
            return 0
        r = self.config.damage_radius if radius is None else radius
        return self.mutate(SphereDamage(center=Voxel(*center), radius=r))

    def damage_ray(self, origin, direction, radius: float | None = None) -> int:
        r = self.config.damage_radius if radius is None else radius
        return self.mutate(RayDamage(origin=tuple(origin), direction=tuple(direction), radius=r))

    def grow(self, coord: Voxel | None) -> int:
        if coord is None:
            return 0
        return self.mutate(Grow(coord=Voxel(*coord)))

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _drain(self) -> None:
        while self._pending:
            apply(self.state, self._pending.popleft())

    def reset(self) -> None:
        """Restore the seed. Drops queued mutations and any in-flight result."""
        self._pending.clear()
        if self.busy:
            self._discard_inflight = True
        self.state.reset()
        self.steps = 0

    # ------------------------------------------------------------------
    # Render
    # ------------------------------------------------------------------
    def masked(self) -> GridState:
        return apply_alive_mask(self.state, self.config.alive_threshold)

    def snapshot(self) -> dict[str, Any]:
        return {
            "step": self.steps,
            "alive": self.state.alive_count(self.config.alive_threshold),
            "shape": packed_shape(self.state.size, self.state.channels),
            "state": self.state.buffer.detach().clone(),
        }
