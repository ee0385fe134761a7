"""Instruments observe the engine after every applied step."""

from __future__ import annotations

from .history import StateHistoryInstrument
from .protocol import InstrumentProtocol

__all__ = ["InstrumentProtocol", "StateHistoryInstrument"]
