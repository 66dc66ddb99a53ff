"""Device approval HTTP API."""

from device_approval.api.app import create_app

__all__ = ["create_app"]
