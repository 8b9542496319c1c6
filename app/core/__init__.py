"""
Core Application - Infrastructure & Base Classes

Generic building blocks the subscriptions app is written against. No
domain logic lives here.

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes and HTTP status
    - ValidationError: Input validation failures
    - NotFoundError: Resource not found
    - ConflictError: State conflicts

Helpers (import from core.helpers):
    - scrub_sensitive: Redact card data from log and response payloads

Logging (import from core.log_sink):
    - LogSink: Append-only, date-partitioned log files
    - DatedFileHandler: logging.Handler writing through a LogSink

Usage:
    from core.services import BaseService, ServiceResult
    from core.exceptions import ValidationError

    class SubscriptionService(BaseService):
        def create_subscription(self, data):
            if self.missing_fields(data, "priceId"):
                return ServiceResult.from_exception(ValidationError("Missing priceId"))
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

# Helpers
from .helpers import REDACTED, scrub_sensitive

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    # Helpers
    "REDACTED",
    "scrub_sensitive",
]
