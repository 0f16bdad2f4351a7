"""Field specs shared across catalog kinds."""

from typing import Any, Dict


def tags_field() -> Dict[str, Any]:
    return {"type": "map", "value": "string", "default": {}, "omit_if_default": True}


def string_list_field() -> Dict[str, Any]:
    return {"type": "list", "items": "string", "default": [], "omit_if_default": True}
