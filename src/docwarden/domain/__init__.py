"""Domain layer: time arithmetic, comparisons, compiled definitions.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
