"""
Payment-specific exceptions.

Exception Hierarchy:
    PaymentError (base for payment domain)
    ├── PaymentNotFoundError - Transaction/reference lookup failures
    ├── PaymentValidationError - Rejected before any gateway call
    │                            (bad reference, closed registration,
    │                            insufficient stock, bad amount)
    ├── PaymentProcessingError
    │   └── PaymentGatewayError - Gateway call failed; transaction stays PENDING
    ├── PaymentSignatureError - Invalid webhook/verification signature
    └── SideEffectError - Post-completion effect failed; never touches status
    InvalidStateTransitionError - FSM transition not allowed (inherits ConflictError)

An idempotent repeat completion is not an error: the engine returns the
stored result with already_completed=True.

Usage:
    from payments.exceptions import PaymentValidationError

    raise PaymentValidationError(
        "Registration deadline has passed",
        error_code="REGISTRATION_CLOSED",
        details={"event_id": event.id},
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Payment Domain Exceptions
# =============================================================================


class PaymentError(BaseApplicationError):
    """
    Base exception for all payment operations.

    Inherits from BaseApplicationError for consistent API error
    responses via to_dict().
    """

    default_error_code: str = "PAYMENT_ERROR"


class PaymentNotFoundError(PaymentError):
    """
    Raised when a transaction or payable reference cannot be found.

    Also used when a transaction exists but belongs to another user, so
    ownership cannot be probed.
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"


class PaymentValidationError(PaymentError):
    """
    Raised when a payment request is rejected by a business rule.

    Always raised before a transaction row or gateway order exists, so
    the caller can correct the input and retry.
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class PaymentProcessingError(PaymentError):
    """Raised when payment processing fails after validation."""

    default_error_code: str = "PAYMENT_PROCESSING_ERROR"


class PaymentGatewayError(PaymentProcessingError):
    """
    Raised when a call to the payment gateway fails.

    The transaction stays PENDING; the caller may retry or let it expire.

    Attributes:
        provider: Gateway name
        gateway_code: Gateway-specific error code, if any
        is_retryable: Whether the failure is transient (timeouts, 5xx)
    """

    default_error_code: str = "PAYMENT_GATEWAY_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        provider: str | None = None,
        gateway_code: str | None = None,
        is_retryable: bool = False,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if provider:
            details["provider"] = provider
        if gateway_code:
            details["gateway_code"] = gateway_code
        super().__init__(message, error_code=error_code, details=details)
        self.provider = provider
        self.gateway_code = gateway_code
        self.is_retryable = is_retryable


class PaymentSignatureError(PaymentError):
    """
    Raised when a webhook or payment signature does not verify.

    Never completes a transaction. Logged as a potential security event.
    """

    default_error_code: str = "INVALID_SIGNATURE"


class SideEffectError(PaymentError):
    """
    Raised when a post-completion effect (invoice, notification, access
    code) fails.

    The transaction stays COMPLETED; the effect is retried independently.
    """

    default_error_code: str = "SIDE_EFFECT_ERROR"


# =============================================================================
# Concurrency / State Exceptions
# =============================================================================


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a django-fsm transition is not allowed.

    Example:
        raise InvalidStateTransitionError(
            "Cannot complete transaction in EXPIRED state",
            details={"current_state": "EXPIRED", "target_state": "COMPLETED"},
        )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"
