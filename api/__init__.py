"""HTTP layer for the appointments service."""
