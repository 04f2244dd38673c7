from __future__ import annotations


class SchemaError(ValueError):
    """Raised when input text cannot be loaded as an attrition table."""


class ConfigurationError(RuntimeError):
    """Raised for invalid model shapes or calls made in the wrong lifecycle state."""
