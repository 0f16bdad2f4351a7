"""Validation engine and validated records."""

from .engine import coerce_value, validate
from .record import ValidatedAttributes, thaw

__all__ = ["validate", "coerce_value", "ValidatedAttributes", "thaw"]
