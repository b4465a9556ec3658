"""HTTP trigger endpoint."""

from hotreload.api.app import create_app

__all__ = ["create_app"]
