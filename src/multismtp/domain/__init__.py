"""Domain layer: settings table and validation."""
