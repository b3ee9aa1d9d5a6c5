"""Application layer: bootstrap."""
