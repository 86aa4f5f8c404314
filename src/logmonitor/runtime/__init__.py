"""Process runtime: listener lifecycle and signal handling."""

from logmonitor.runtime.lifecycle import LifecycleState, ServerLifecycle

__all__ = ["LifecycleState", "ServerLifecycle"]
