"""Output layer: rich and JSON rendering of command results."""
