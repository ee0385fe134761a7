"""Torch profiler around model steps.

The schedule counts model steps, not rendered frames: callers advance it
with `step()` only after a tick that completed a step.

Usage:
    profiler = create_profiler(config)
    if profiler is not None:
        with profiler:
            for _ in range(ticks):
                if session.tick():
                    profiler.step()
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

from torch.profiler import ProfilerActivity, profile, schedule

from voxel_nca.automaton.config import AutomatonConfig
from voxel_nca.console import console


class StepProfiler:
    """torch.profiler session that exports a Chrome trace once its window closes."""

    def __init__(self, config: AutomatonConfig, *, sort_by: str = "cpu_time_total", row_limit: int = 20) -> None:
        self.output_dir = Path(config.profile_output_dir)
        self.sort_by = sort_by
        self.row_limit = row_limit
        self.steps = 0
        self.traces: list[Path] = []

        activities = [ProfilerActivity.CPU]
        if str(config.device).startswith("cuda"):
            activities.append(ProfilerActivity.CUDA)
        self._profile = profile(
            activities=activities,
            schedule=schedule(
                wait=config.profile_warmup_steps,
                warmup=1,
                active=config.profile_active_steps,
                repeat=1,
            ),
            on_trace_ready=self.on_trace_ready,
            record_shapes=True,
            profile_memory=True,
        )

    def start(self) -> None:
        self._profile.start()

    def step(self) -> None:
        self.steps += 1
        self._profile.step()

    def stop(self) -> None:
        self._profile.stop()

    def __enter__(self) -> "StepProfiler":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()

    def on_trace_ready(self, prof) -> Path:
        """Export the finished window and show its summary table."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / f"trace_step{self.steps}_{int(time.time())}.json"
        prof.export_chrome_trace(str(path))
        self.traces.append(path)
        console.success("Profiler trace saved", detail=f"{path} (open in chrome://tracing)")
        console.block("Profile", prof.key_averages().table(sort_by=self.sort_by, row_limit=self.row_limit))
        return path


def create_profiler(config: AutomatonConfig) -> Optional[StepProfiler]:
    """A `StepProfiler` when `config.profile_enabled`, else None."""
    if not config.profile_enabled:
        return None
    return StepProfiler(config)
