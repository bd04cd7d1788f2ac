"""Demo HTTP surface for lock-protected operations."""
