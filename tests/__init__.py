"""Test suite for the voxel automaton.

All tests run on CPU with deterministic function backends in place of a
real update model.
"""
