"""Core infrastructure: configuration, logging, hooks."""
