"""FastAPI dependencies for the external collaborators."""

from __future__ import annotations

from fastapi import Request

from .services.courier import CourierClient, CourierError, build_courier_client_from_env
from .services.storage import ObjectStorageClient, build_storage_client_from_env


def get_storage_client(request: Request) -> ObjectStorageClient:
    """Return the attachment store held on the application state."""

    client = getattr(request.app.state, "storage_client", None)
    if client is None:
        client = build_storage_client_from_env()
        request.app.state.storage_client = client
    return client


def get_courier_client(request: Request) -> CourierClient:
    """Return the configured courier client or fail when booking is disabled."""

    if not hasattr(request.app.state, "courier_client"):
        request.app.state.courier_client = build_courier_client_from_env()
    client = request.app.state.courier_client
    if client is None:
        raise CourierError(
            "Courier booking is not configured", error="COURIER_API_TOKEN is not set"
        )
    return client
