"""Per-step history of engine snapshots."""

from __future__ import annotations

from typing import Any


class StateHistoryInstrument:
    """Keep engine snapshots in memory for later inspection.

    - `sample_every` keeps one snapshot out of every N steps
    - `max_frames` drops the oldest snapshots beyond the cap
    - `keep_state=False` stores only the scalar fields
    """

    def __init__(self, *, sample_every: int = 1, max_frames: int | None = None, keep_state: bool = True) -> None:
        if sample_every < 1:
            raise ValueError("sample_every must be >= 1")
        self.sample_every = int(sample_every)
        self.max_frames = max_frames
        self.keep_state = keep_state
        self.history: list[dict[str, Any]] = []

    def update(self, state: dict[str, Any]) -> None:
        if int(state.get("step", 0)) % self.sample_every != 0:
            return
        frame = dict(state) if self.keep_state else {k: v for k, v in state.items() if k != "state"}
        self.history.append(frame)
        if self.max_frames is not None and len(self.history) > self.max_frames:
            del self.history[: len(self.history) - self.max_frames]

    def alive_series(self) -> list[int]:
        return [int(frame["alive"]) for frame in self.history]
