"""Document emitters.

Emitters register under a format name; ``get_emitter("terraform")`` returns
the class, which is constructed with a SynthConfig. Shipped emitters are
imported at the bottom of this module so they register themselves.
"""

from typing import Dict, Type

from .base import IaCEmitter

_EMITTERS: Dict[str, Type[IaCEmitter]] = {}


def register_emitter(format_name: str, emitter_class: Type[IaCEmitter]) -> None:
    """Make ``emitter_class`` available as ``format_name`` (case-insensitive)."""
    _EMITTERS[format_name.lower()] = emitter_class


def get_emitter_registry() -> Dict[str, Type[IaCEmitter]]:
    """Snapshot of the registered format names and classes."""
    return dict(_EMITTERS)


def get_emitter(format_name: str) -> Type[IaCEmitter]:
    """Look up the emitter class for a format.

    Raises:
        KeyError: If nothing is registered under that name
    """
    try:
        return _EMITTERS[format_name.lower()]
    except KeyError:
        known = ", ".join(sorted(_EMITTERS)) or "none"
        raise KeyError(f"No emitter registered for format '{format_name}' (known: {known})") from None


from . import terraform  # noqa: E402,F401

__all__ = [
    "IaCEmitter",
    "get_emitter",
    "get_emitter_registry",
    "register_emitter",
]
