"""State access recording for transaction dependency analysis."""

from parastate.deps.recorder import DependencyRecorder, TxDeps
from parastate.deps.trace import TraceError, load_trace, replay_trace

__all__ = ["DependencyRecorder", "TxDeps", "TraceError", "load_trace", "replay_trace"]
