"""Sample architectures built from the catalog kinds."""

from .web_application import WebApplication

__all__ = ["WebApplication"]
