"""Alive mask: 3x3x3 dilation over the alpha channel."""

from __future__ import annotations

import torch

from voxel_nca.automaton.grid import GridState
from voxel_nca.automaton.mask import alive_neighborhood, apply_alive_mask


def test_isolated_alive_voxel_keeps_its_neighbourhood():
    state = GridState.zeros(16, 16)
    vox = state.voxels()
    vox[8, 8, 8] = 0.7                 # alive
    vox[8, 8, 9, 0] = 0.2              # faint neighbour
    vox[8, 8, 9, 3] = 0.02
    vox[8, 8, 10, 0] = 0.3             # faint, two cells away
    vox[8, 8, 10, 3] = 0.01
    vox[2, 2, 2, :3] = 0.9             # colour with no alpha anywhere near

    masked = apply_alive_mask(state, 0.05)
    out = masked.voxels()

    assert torch.equal(out[8, 8, 8], vox[8, 8, 8])
    assert torch.equal(out[8, 8, 9], vox[8, 8, 9])
    assert torch.all(out[8, 8, 10] == 0.0)
    assert torch.all(out[2, 2, 2] == 0.0)

    keep = alive_neighborhood(state, 0.05)
    assert int(keep.sum()) == 27
    assert bool(keep[7:10, 7:10, 7:10].all())


def test_mask_returns_a_new_buffer():
    state = GridState.seed(8, 8)
    state.voxels()[0, 0, 0, 0] = 0.5
    before = state.buffer.clone()
    masked = apply_alive_mask(state)
    assert masked.buffer.data_ptr() != state.buffer.data_ptr()
    assert torch.equal(state.buffer, before)
    assert masked.voxels()[0, 0, 0, 0] == 0.0


def test_threshold_is_strict():
    state = GridState.zeros(4, 4)
    state.voxels()[1, 1, 1, 3] = 0.05
    assert not alive_neighborhood(state, 0.05).any()


def test_corner_voxel_does_not_fail_at_bounds():
    state = GridState.zeros(6, 5)
    state.voxels()[0, 0, 0, 3] = 1.0
    keep = alive_neighborhood(state, 0.05)
    # A corner has 7 neighbours inside the grid plus itself.
    assert int(keep.sum()) == 8
    assert bool(keep[:2, :2, :2].all())


def test_empty_grid_masks_everything():
    state = GridState.zeros(4, 4)
    state.voxels()[..., :3] = 1.0
    assert torch.count_nonzero(apply_alive_mask(state).buffer) == 0
