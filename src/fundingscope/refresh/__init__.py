"""Refresh layer -- pure screener state reducer and the per-source refresh controller."""

from fundingscope.refresh.controller import RefreshController
from fundingscope.refresh.state import ScreenerState, SourceState, initial_state, reduce

__all__ = [
    "RefreshController",
    "ScreenerState",
    "SourceState",
    "initial_state",
    "reduce",
]
