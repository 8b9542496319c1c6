"""
Base service layer patterns for business logic encapsulation.

This module provides foundational patterns for the service layer:
- ServiceResult: Standard result wrapper for consistent success/failure handling
- BaseService: Base class with common service utilities

Service Layer Philosophy:
    Services encapsulate business logic separate from views.
    Views handle HTTP concerns, adapters handle the payment provider,
    services handle logic.

Pattern Comparison:
    - ServiceResult: Use for expected failures (validation, declined cards)
    - Exceptions: Use for unexpected failures and inside the domain layer

Usage:
    from core.services import BaseService, ServiceResult

    class SubscriptionService(BaseService):
        def create_subscription(self, data: dict) -> ServiceResult[dict]:
            missing = self.missing_fields(data, "priceId", "contactEmail")
            if missing:
                return ServiceResult.failure(
                    "Missing required fields",
                    error_code="VALIDATION_ERROR",
                )
            ...
            return ServiceResult.success({"subscriptionSchedule": schedule})

    # In view
    result = service.create_subscription(request.data)
    if result.success:
        return Response(result.to_response())
    return Response(result.to_response(), status=400)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from core.helpers import scrub_sensitive

if TYPE_CHECKING:
    from typing import Any

    from core.exceptions import BaseApplicationError

# Generic type for ServiceResult data
T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Standard result wrapper for service operations.

    Provides consistent success/failure handling without exceptions.
    Use this for expected failures (validation errors, declined cards).

    Attributes:
        success: Whether the operation succeeded
        data: Result data. Failures may carry data too (e.g. a client
            secret when the customer must authenticate first)
        error: Error message if failed (None if successful)
        error_code: Machine-readable error code for client handling
        errors: Field-level errors for validation failures
        http_status: Status code the view should answer with

    Usage:
        # Success case
        return ServiceResult.success({"subscriptionSchedule": schedule})

        # Failure case
        return ServiceResult.failure("Failed to create payment method.",
                                     "INSTRUMENT_CREATION_FAILED")

        # Check result
        result = service.create_subscription(data)
        if result.success:
            schedule = result.data["subscriptionSchedule"]
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None
    errors: dict[str, list[str]] | None = field(default=None)
    http_status: int = 200

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        """
        Create a successful result.

        Args:
            data: The result data

        Returns:
            ServiceResult with success=True and data set
        """
        return cls(success=True, data=data)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        errors: dict[str, list[str]] | None = None,
        data: T | None = None,
        http_status: int = 400,
    ) -> ServiceResult[T]:
        """
        Create a failed result.

        Args:
            error: Human-readable error message
            error_code: Machine-readable error code for client handling
            errors: Field-level errors (for validation failures)
            data: Extra payload returned alongside the error
            http_status: Status code for the HTTP response

        Returns:
            ServiceResult with success=False and error details
        """
        return cls(
            success=False,
            data=data,
            error=error,
            error_code=error_code,
            errors=errors,
            http_status=http_status,
        )

    @classmethod
    def from_exception(cls, exc: BaseApplicationError) -> ServiceResult[T]:
        """
        Create a failed result from a domain exception.

        The exception's details are scrubbed of card data before they
        are attached to the result.

        Example:
            try:
                outcome = builder.authorize(request)
            except InstrumentCreationError as e:
                return ServiceResult.from_exception(e)
        """
        details = scrub_sensitive(exc.details) if exc.details else None
        return cls(
            success=False,
            data={"details": details} if details else None,
            error=exc.message,
            error_code=exc.error_code,
            http_status=exc.http_status,
        )

    def to_response(self) -> dict[str, Any]:
        """
        Convert to API response format.

        Successful data dicts are merged into the top level so the
        response reads ``{"success": true, "subscriptionSchedule": ...}``.

        Returns:
            Dict with success status and data or error details
        """
        response: dict[str, Any] = {"success": self.success}
        if isinstance(self.data, dict):
            response.update(self.data)
        elif self.data is not None:
            response["data"] = self.data

        if self.success:
            return response

        response["error"] = self.error
        if self.error_code:
            response["error_code"] = self.error_code
        if self.errors:
            response["errors"] = self.errors
        return response

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.success


class BaseService:
    """
    Base class for service layer classes.

    Provides common utilities for services:
    - Logging setup per service
    - Required-field validation

    Design Notes:
        - Collaborators (payment adapter, cache) are passed to __init__
        - Use ServiceResult for expected failures
        - Raise exceptions for unexpected failures
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get logger for this service.

        Returns a logger named after the service class for
        easy filtering in logs.
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @staticmethod
    def missing_fields(data: dict[str, Any], *names: str) -> list[str]:
        """
        Return the names of required fields that are absent or blank.

        Example:
            missing = self.missing_fields(data, "priceId", "cardTokenId")
            if missing:
                raise ValidationError(...)
        """
        missing = []
        for name in names:
            value = data.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        return missing
