"""Service layer encapsulating business logic for API routers."""

from .courier import (
    CourierClient,
    CourierError,
    InpostaCourierClient,
    ShipmentRequest,
    ShipmentResult,
    ShipmentService,
    build_courier_client_from_env,
)
from .expenses import ExpenseService
from .goals import GoalService
from .orders import OrderService
from .storage import (
    HttpObjectStorageClient,
    LocalObjectStorageClient,
    ObjectStorageClient,
    StorageError,
    build_storage_client_from_env,
)

__all__ = [
    "CourierClient",
    "CourierError",
    "InpostaCourierClient",
    "ShipmentRequest",
    "ShipmentResult",
    "ShipmentService",
    "build_courier_client_from_env",
    "ExpenseService",
    "GoalService",
    "OrderService",
    "HttpObjectStorageClient",
    "LocalObjectStorageClient",
    "ObjectStorageClient",
    "StorageError",
    "build_storage_client_from_env",
]
