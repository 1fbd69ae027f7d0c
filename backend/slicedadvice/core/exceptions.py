# backend/slicedadvice/core/exceptions.py
"""
Domain-specific exceptions for the SlicedAdvice booking service.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to HTTPException using the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class InvalidAmountException(ValidationException):
    """Raised when a price or fee input is not a positive, finite amount."""

    def __init__(self, amount: Any, reason: str = "Amount must be a positive, finite number"):
        super().__init__(
            message=reason,
            code="INVALID_AMOUNT",
            details={"amount": str(amount)},
        )


class BookingStateException(ConflictException):
    """Raised when a requested status change is not a valid booking transition."""

    def __init__(self, current_status: str, requested_status: Optional[str] = None):
        message = f"Booking in status {current_status} cannot be changed"
        if requested_status:
            message = f"Booking cannot move from {current_status} to {requested_status}"
        super().__init__(
            message=message,
            code="INVALID_BOOKING_TRANSITION",
            details={"current_status": current_status, "requested_status": requested_status},
        )


class PaymentException(DomainException):
    """Base class for payment processor rejections."""

    status_code = status.HTTP_402_PAYMENT_REQUIRED


class AuthorizationFailedException(PaymentException):
    """Raised when the processor refuses to place a hold on the customer's funds."""

    def __init__(
        self,
        message: str = "Payment authorization failed",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="AUTHORIZATION_FAILED", details=details)


class CaptureFailedException(PaymentException):
    """Raised when a held authorization could not be captured."""

    def __init__(
        self,
        message: str = "Payment Intent not captured successfully",
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code="CAPTURE_FAILED", details=details)


class PaymentProcessorUnavailableException(ServiceException):
    """Raised when the payment processor did not answer within the configured timeout."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, operation: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Payment processor unavailable during {operation}. Please retry.",
            code="PAYMENT_PROCESSOR_UNAVAILABLE",
            details={"operation": operation, **(details or {})},
        )

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"Retry-After": "2"}
        return exc


class NotificationFailedException(ServiceException):
    """Raised by the email layer; callers on the booking path log it and carry on."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="NOTIFICATION_FAILED", details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
