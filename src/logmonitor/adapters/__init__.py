"""Adapters binding the core to frameworks, storage and logging."""
