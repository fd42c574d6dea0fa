"""HTTP API for the Resource Manager service."""

from .app import APIServer, create_app

__all__ = ["APIServer", "create_app"]
