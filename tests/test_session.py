"""Session command surface: play/pause, frame skip, pointer mutation, render frames."""

from __future__ import annotations

import math

import pytest
import torch

from voxel_nca.automaton.backend import FunctionBackend, identity_backend
from voxel_nca.automaton.config import AutomatonConfig, DamageMode
from voxel_nca.automaton.grid import GridState, Voxel
from voxel_nca.automaton.mutation import RayDamage, SphereDamage
from voxel_nca.session import Session


@pytest.fixture
def config():
    return AutomatonConfig(voxel_size=0.1, frame_skip=3)


def test_steps_only_while_playing_every_frame_skip(config):
    backend = FunctionBackend(lambda p: p.clone())
    session = Session(config, backend, blocking=True)

    for _ in range(9):
        session.tick()
    assert backend.calls == 0
    assert session.rotation == pytest.approx(9 * config.rotation_speed)

    assert session.toggle_play() is True
    completed = [session.tick() for _ in range(9)]
    assert backend.calls == 3
    assert session.engine.steps == 3
    assert completed == [False, False, True] * 3

    session.toggle_play()
    session.tick()
    assert backend.calls == 3


def test_non_blocking_steps_land_on_a_later_tick(config):
    session = Session(config, identity_backend())
    session.toggle_play()
    for _ in range(config.frame_skip):
        session.tick()
    assert session.engine.busy
    assert session.engine.wait(5.0) is True
    assert session.engine.steps == 1


def test_step_once(config):
    session = Session(config, identity_backend(), blocking=True)
    assert session.step_once() is True
    assert session.engine.steps == 1
    assert Session(config, blocking=True).step_once() is False


def test_pointer_miss_is_noop(config):
    session = Session(config)
    before = session.engine.state.buffer.clone()

    assert session.damage_pointer((5.0, 5.0, 5.0), (1.0, 0.0, 0.0)) == 0
    assert session.grow_pointer((5.0, 5.0, 5.0), (1.0, 0.0, 0.0)) == 0
    assert session.damage_pointer((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), hit=(3.0, 3.0, 3.0)) == 0
    assert session.damage(None) == 0
    assert session.grow(None) == 0
    assert torch.equal(session.engine.state.buffer, before)


def test_pointer_damage_from_plane_hit_erases_seed(config):
    session = Session(config)
    erased = session.damage_pointer((0.0, 0.0, 2.0), (0.0, 0.0, -1.0), hit=(0.03, 0.03, 0.03))
    assert erased > 0
    assert torch.count_nonzero(session.engine.state.buffer) == 0


def test_pointer_grow_on_active_layer(config):
    session = Session(config)
    assert session.set_active_layer(10) == 10
    assert session.pick_ray((0.02, 0.02, 2.0), (0.0, 0.0, -1.0)) == Voxel(8, 8, 10)
    assert session.grow_pointer((0.02, 0.02, 2.0), (0.0, 0.0, -1.0)) == 8
    assert torch.all(session.engine.state.voxels()[10:12, 8:10, 8:10, 3:] == 1.0)


def test_ray_mode_pointer_damage_keeps_latent_channels():
    config = AutomatonConfig(voxel_size=0.1, damage_mode=DamageMode.RAY)
    session = Session(config)
    assert session.damage_pointer((0.03, 0.03, 2.0), (0.0, 0.0, -1.0)) > 0
    vox = session.engine.state.voxels()
    assert vox[8, 8, 8, 3] == 0.0
    assert torch.all(vox[8, 8, 8, 4:] == 1.0)


def test_damage_accepts_requests(config):
    session = Session(config)
    assert session.damage(SphereDamage(Voxel(8, 8, 8), 0.0)) == 1
    assert torch.count_nonzero(session.engine.state.buffer) == 0


def test_damage_radius_overrides_request_radius(config):
    session = Session(config)
    assert session.damage(SphereDamage(Voxel(8, 8, 8), 0.0), radius=3.0) == 123
    assert session.damage(SphereDamage(Voxel(2, 2, 2), 1.0)) == 7

    session.reset()
    request = RayDamage(origin=(8.0, 8.0, 0.0), direction=(0.0, 0.0, 1.0), radius=0.0)
    assert session.damage(request, radius=1.0) == 5 * 16
    assert session.engine.state.voxels()[8, 8, 8, 3] == 0.0


def test_damage_with_degenerate_radius(config):
    session = Session(config)
    assert session.damage(Voxel(8, 8, 8), radius=math.nan) == 0
    assert session.engine.state.voxels()[8, 8, 8, 3] == 1.0
    assert session.damage(Voxel(8, 8, 8), radius=math.inf) == 16 ** 3
    assert torch.count_nonzero(session.engine.state.buffer) == 0


def test_set_active_layer_clamps(config):
    session = Session(config)
    assert session.set_active_layer(40) == 15
    assert session.set_active_layer(-3) == 0
    assert session.scroll_layer(500) == 5


def test_reset_restores_seed(config):
    session = Session(config)
    session.damage(Voxel(8, 8, 8))
    session.reset()
    assert torch.equal(session.engine.state.buffer, GridState.seed(16, 16).buffer)


def test_frame_exposes_masked_grid_and_instances(config):
    session = Session(config)
    vox = session.engine.state.voxels()
    vox[8, 8, 8, :3] = torch.tensor([1.5, 0.5, -0.2])
    vox[0, 0, 0, 0] = 0.9  # no alive neighbour

    frame = session.frame()
    assert frame.masked.voxels()[0, 0, 0, 0] == 0.0
    assert frame.instances.count == 1
    assert frame.instances.indices.tolist() == [8 * 256 + 8 * 16 + 8]
    assert frame.instances.positions[0].tolist() == pytest.approx([0.0, 0.0, 0.0])
    assert frame.instances.colors[0].tolist() == pytest.approx([1.0, 0.5, 0.0])
    assert frame.step == 0


def test_instance_placement_swaps_x_and_y():
    session = Session(AutomatonConfig(voxel_size=0.1))
    session.engine.state.voxels()[8, 8, 8] = 0.0
    session.engine.state.voxels()[10, 11, 12, 3] = 1.0  # z=10, y=11, x=12
    positions = session.frame().instances.positions
    assert positions.shape == (1, 3)
    assert positions[0].tolist() == pytest.approx([0.3, 0.4, 0.2])


def test_snapshot_writes_png(config, tmp_path):
    from voxel_nca.render.snapshot import save_snapshot

    session = Session(config)
    path = save_snapshot(session.frame(), tmp_path / "frames" / "seed.png")
    assert path.exists()
    assert path.stat().st_size > 0


def test_get_device_prefers_explicit_choice():
    from voxel_nca.runtime import get_device

    assert get_device("cpu") == "cpu"
    assert get_device() in {"cpu", "cuda", "mps"}
