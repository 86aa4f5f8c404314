"""Authenticated log record service with metrics and graceful shutdown."""

__version__ = "1.0.0"
