"""Client-side data access for the dashboard."""

from .api import ApiError, DashboardApiClient, OutgoingFile
from .cache import TimedCache

__all__ = ["ApiError", "DashboardApiClient", "OutgoingFile", "TimedCache"]
