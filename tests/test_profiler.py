"""Step profiler: schedule, trace export, summary routed through the console."""

from __future__ import annotations

import io

import pytest
from rich.console import Console as RichConsole

from voxel_nca.automaton.backend import identity_backend
from voxel_nca.automaton.config import AutomatonConfig
from voxel_nca.console import console
from voxel_nca.instrument.profiler import StepProfiler, create_profiler
from voxel_nca.session import Session


@pytest.fixture
def captured_console(monkeypatch):
    buffer = io.StringIO()
    monkeypatch.setattr(console, "_console", RichConsole(file=buffer, width=200))
    monkeypatch.setattr(console, "quiet", False)
    return buffer


def test_profiler_disabled_by_default():
    assert create_profiler(AutomatonConfig()) is None


def test_profiler_enabled_returns_step_profiler(tmp_path):
    profiler = create_profiler(AutomatonConfig(profile_enabled=True, profile_output_dir=tmp_path))
    assert isinstance(profiler, StepProfiler)
    assert profiler.output_dir == tmp_path
    assert profiler.steps == 0
    assert profiler.traces == []


def test_profiler_exports_trace_and_summary(tmp_path, captured_console, capsys):
    config = AutomatonConfig(
        profile_enabled=True,
        profile_warmup_steps=0,
        profile_active_steps=1,
        profile_output_dir=tmp_path / "profiles",
    )
    session = Session(config, identity_backend(), blocking=True)
    profiler = create_profiler(config)

    with profiler:
        for _ in range(3):
            assert session.step_once() is True
            profiler.step()

    assert profiler.steps == 3
    assert len(profiler.traces) == 1
    assert profiler.traces[0].exists()
    assert profiler.traces[0].parent == tmp_path / "profiles"

    out = captured_console.getvalue()
    assert "Profiler trace saved" in out
    assert "Profile" in out
    assert capsys.readouterr().out == ""
