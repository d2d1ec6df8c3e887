"""career-intel API layer: routes, schemas, and middleware."""

from careerintel.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from careerintel.api.routes import router
from careerintel.api.schemas import (
    BatchResponse,
    ErrorResponse,
    FindOrCreateResponse,
    HealthResponse,
    UnitStatusResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "BatchResponse",
    "ErrorResponse",
    "FindOrCreateResponse",
    "HealthResponse",
    "UnitStatusResponse",
]
