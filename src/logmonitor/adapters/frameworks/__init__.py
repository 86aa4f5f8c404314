"""HTTP framework adapters."""

from logmonitor.adapters.frameworks.fastapi import create_app

__all__ = ["create_app"]
