"""Terraform JSON emitter."""

from .context import EmitterContext
from .emitter import TerraformEmitter
from .serializer import interpolation, to_document_attributes, to_document_value

__all__ = [
    "EmitterContext",
    "TerraformEmitter",
    "interpolation",
    "to_document_attributes",
    "to_document_value",
]
