"""Conversion of validated records to Terraform JSON values.

Tokens become interpolation strings here and nowhere else.
"""

import json
from typing import Any, Dict, Mapping

from ...references import ReferenceToken, TokenScope
from ...validation.record import ValidatedAttributes, thaw


def interpolation(token: ReferenceToken) -> str:
    """Render a token as ``${kind.name.path}``.

    Data tokens render as ``${data.kind.name.path}``, variable tokens as
    ``${var.name}``; integer path segments render as ``[i]``.
    """
    if token.scope is TokenScope.VARIABLE:
        address = f"var.{token.name}"
    elif token.scope is TokenScope.DATA:
        address = f"data.{token.kind}.{token.name}"
    else:
        address = f"{token.kind}.{token.name}"
    for segment in token.path:
        if isinstance(segment, int):
            address += f"[{segment}]"
        else:
            address += f".{segment}"
    return "${" + address + "}"


def to_document_value(value: Any) -> Any:
    """Convert one validated value to plain JSON data."""
    if isinstance(value, ReferenceToken):
        return interpolation(value)
    if isinstance(value, ValidatedAttributes):
        return to_document_attributes(value)
    if isinstance(value, Mapping):
        return {str(key): to_document_value(item) for key, item in value.items() if item is not None}
    if isinstance(value, (tuple, list)):
        return [to_document_value(item) for item in value]
    return value


def to_document_attributes(record: ValidatedAttributes) -> Dict[str, Any]:
    """Convert a record to the document's key convention.

    Fields holding None are dropped, as are ``omit_if_default`` fields
    still holding their default. Keys use the field alias when one is set;
    ``json_encode`` fields are written as JSON strings.
    """
    document: Dict[str, Any] = {}
    for spec in record.schema.fields:
        value = record[spec.name]
        if value is None:
            continue
        if spec.omit_if_default and spec.has_default and thaw(value) == thaw(spec.default):
            continue
        converted = to_document_value(value)
        if spec.json_encode:
            converted = json.dumps(converted)
        document[spec.emitted_key] = converted
    return document
