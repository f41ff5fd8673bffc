"""Configuration: docwarden.toml discovery, settings and logging."""
