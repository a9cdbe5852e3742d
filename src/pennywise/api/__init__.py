"""HTTP API for pennywise."""

from pennywise.api.app import create_app

__all__ = ["create_app"]
