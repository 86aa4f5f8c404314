"""Domain models, ports and framework-free services."""
