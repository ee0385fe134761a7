"""Instrument protocol for the automaton engine."""

from typing import Any, Protocol


class InstrumentProtocol(Protocol):
    def update(self, state: dict[str, Any]) -> None:
        """Receive the post-step snapshot (step, alive count, packed shape, buffer)."""
        raise NotImplementedError("Subclasses must implement this method")
