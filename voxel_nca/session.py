"""Interactive session: the command surface UI bindings talk to.

A session wraps one `AutomatonEngine` and the state the input and render
loops share: play/pause, the frame-skip counter, the cube rotation and the
active picking layer. `tick()` is meant to be called once per rendered frame.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Optional, Sequence

from voxel_nca.automaton.backend import InferenceBackend
from voxel_nca.automaton.config import AutomatonConfig, DamageMode
from voxel_nca.automaton.engine import AutomatonEngine
from voxel_nca.automaton.grid import Voxel
from voxel_nca.automaton.mutation import RayDamage, SphereDamage
from voxel_nca.automaton.resolver import GridTransform, LayerSelector, enter_grid, march_world_ray, pick_plane
from voxel_nca.console import console
from voxel_nca.instrument.protocol import InstrumentProtocol
from voxel_nca.render.instances import RenderFrame, visible_instances

Point = Sequence[float]


class Session:
    """Play/pause, frame skipping, picking and mutation for one automaton."""

    def __init__(
        self,
        config: AutomatonConfig | None = None,
        backend: InferenceBackend | None = None,
        *,
        instrumentation: Sequence[InstrumentProtocol] = (),
        blocking: bool = False,
    ) -> None:
        self.config = config or AutomatonConfig()
        self.engine = AutomatonEngine(self.config, backend, instrumentation)
        # Blocking sessions step inline; otherwise steps run on a worker thread
        # and land on a later tick.
        self.blocking = blocking
        self.playing = False
        self.frame_count = 0
        self.rotation = 0.0
        self.layers = LayerSelector(self.config.size)

    @property
    def transform(self) -> GridTransform:
        return GridTransform(
            size=self.config.size,
            voxel_size=self.config.voxel_size,
            rotation=self.rotation,
            invert_axis=self.config.invert_axis,
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def toggle_play(self) -> bool:
        self.playing = not self.playing
        console.info(f"Playing: {self.playing}")
        return self.playing

    def step_once(self) -> bool:
        """Request one step. Returns whether it was issued."""
        if self.blocking:
            return self._step_inline()
        return self.engine.step_async()

    def damage(self, target: Voxel | SphereDamage | RayDamage | None, radius: float | None = None) -> int:
        """Erase around a voxel or apply a damage request.

        An explicit `radius` overrides the request's own; otherwise the
        request's radius (or `config.damage_radius` for a bare voxel) is used.
        """
        if target is None:
            return 0
        if isinstance(target, (SphereDamage, RayDamage)):
            if radius is not None:
                target = replace(target, radius=radius)
            return self.engine.mutate(target)
        return self.engine.damage(Voxel(*target), radius)

    def grow(self, coord: Voxel | None) -> int:
        return self.engine.grow(coord)

    def set_active_layer(self, index: int) -> int:
        return self.layers.set(index)

    def scroll_layer(self, delta: float) -> int:
        return self.layers.scroll(delta)

    def reset(self) -> None:
        self.engine.reset()
        self.frame_count = 0

    # ------------------------------------------------------------------
    # Picking
    # ------------------------------------------------------------------
    def pick_plane(self, hit: Optional[Point]) -> Optional[Voxel]:
        """Voxel under a world-space hit on the bounding cube."""
        return pick_plane(self.transform, hit)

    def pick_ray(self, origin: Point, direction: Point) -> Optional[Voxel]:
        """First voxel on the active layer along a world-space ray."""
        return march_world_ray(
            self.transform,
            origin,
            direction,
            layer=self.layers.layer,
            axis=self.config.active_axis,
            step=self.config.march_step,
        )

    def _pick(self, origin: Point, direction: Point, hit: Optional[Point]) -> Optional[Voxel]:
        if hit is not None:
            return self.pick_plane(hit)
        return self.pick_ray(origin, direction)

    def damage_pointer(self, origin: Point, direction: Point, hit: Optional[Point] = None) -> int:
        """Damage driven by a pick ray, using the configured erase semantics."""
        if self.config.damage_mode is DamageMode.RAY:
            t = self.transform
            grid_dir = t.direction_to_grid(direction)
            entry = enter_grid(self.config.size, t.world_to_grid(origin), grid_dir)
            if entry is None:
                return 0
            request = RayDamage(
                origin=tuple(float(v) for v in entry),
                direction=tuple(float(v) for v in grid_dir),
                radius=self.config.damage_radius,
            )
            return self.engine.mutate(request)
        return self.damage(self._pick(origin, direction, hit))

    def grow_pointer(self, origin: Point, direction: Point, hit: Optional[Point] = None) -> int:
        return self.grow(self._pick(origin, direction, hit))

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def tick(self) -> bool:
        """Advance one rendered frame. Returns whether a step completed."""
        self.rotation += self.config.rotation_speed
        completed = self.engine.poll()
        if not self.playing:
            return completed
        self.frame_count += 1
        if self.frame_count % self.config.frame_skip == 0:
            if self.blocking:
                completed = self._step_inline() or completed
            else:
                self.engine.step_async()
        return completed

    def _step_inline(self) -> bool:
        before = self.engine.steps
        self.engine.step()
        return self.engine.steps > before

    def frame(self) -> RenderFrame:
        masked = self.engine.masked()
        return RenderFrame(
            masked=masked,
            instances=visible_instances(masked, self.config.voxel_size, self.config.render_alpha_threshold),
            rotation=self.rotation,
            step=self.engine.steps,
        )
