"""
Exception types raised by the closure engine.

Configuration and field-type problems propagate to the caller; numerical
degeneracies are guarded locally and never raise.
"""


class ConfigurationError(ValueError):
    """A required entry is missing or malformed (model, field or patch)."""


class FieldTypeError(TypeError):
    """A field was found but carries the wrong value rank."""


class FieldLookupError(KeyError):
    """No field of the requested name is registered."""

    def __str__(self) -> str:
        # KeyError repr-quotes its argument
        return str(self.args[0]) if self.args else ""


class ModelError(RuntimeError):
    """Operation not supported by the selected closure variant."""
