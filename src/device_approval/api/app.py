"""FastAPI application factory for the device approval service."""

from fastapi import FastAPI

from device_approval.api import routes
from device_approval.facade import DeviceFacade
from device_approval.sweeper import ExpirationSweeper


def create_app(facade: DeviceFacade, sweeper: ExpirationSweeper | None = None) -> FastAPI:
    """Create the FastAPI application."""
    app = FastAPI(
        title="Device Approval API",
        description="Device registration, time-bounded approval and audit REST API",
        version="1.0.0",
    )

    # Override the facade and sweeper dependencies
    def get_facade():
        return facade

    def get_sweeper():
        return sweeper

    app.dependency_overrides[routes.get_facade] = get_facade
    app.dependency_overrides[routes.get_sweeper] = get_sweeper

    # Include routes
    app.include_router(routes.router, prefix="/api/v1", tags=["devices"])

    return app
