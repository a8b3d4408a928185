"""Application layer: use cases and delivery workers."""
