"""docwarden: schema-driven validation and authorization of document writes."""

__version__ = "0.4.0"
