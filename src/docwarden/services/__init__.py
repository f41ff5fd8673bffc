"""Service layer: the write pipeline and its stages.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
