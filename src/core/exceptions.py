"""Structured exception hierarchy for consistent error handling.

Every error raised by the back office derives from ``PensionError``, which
carries a machine readable error code, a severity, structured context and a
fingerprint used to group occurrences in monitoring.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for monitoring and alerting
- **PensionError**: Base exception with rich context and fingerprinting
- **Specialized exceptions**: Validation, lookup, claim lifecycle and
  webhook delivery failures

Claim errors (``DuplicateClaimError``, ``InvalidStateError``,
``InvalidClaimError``) reach API clients through the exception handlers.
Delivery errors (``DeliveryError``, ``SignatureError``) are raised and handled
inside the webhook dispatcher and never leave it.
"""

import hashlib
import traceback
from enum import Enum
from typing import Literal

from src.core.types import ErrorContext


class ErrorCode(Enum):
    """Standardized error codes for the back office.

    These error codes provide consistent identification of error types
    across the application, enabling proper error handling and monitoring.
    """

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred in the system."""

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed due to invalid or malformed data."""

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    """The requested resource could not be found."""

    # Claim lifecycle errors
    DUPLICATE_CLAIM = "DUPLICATE_CLAIM"
    """The member already has a claim in an active status."""

    INVALID_STATE = "INVALID_STATE"
    """The requested transition is not allowed from the claim's status."""

    INVALID_CLAIM = "INVALID_CLAIM"
    """The member is not eligible for the requested benefit."""

    BUSINESS_RULE = "BUSINESS_RULE"
    """An operation violated a business constraint."""

    # Webhook errors
    DELIVERY_FAILED = "DELIVERY_FAILED"
    """A webhook delivery attempt did not succeed."""

    SIGNATURE_ERROR = "SIGNATURE_ERROR"
    """A payload could not be signed with the subscription secret."""


class Severity(Enum):
    """Severity levels for back office errors.

    These severity levels help categorize the impact and urgency of errors,
    enabling appropriate handling, monitoring, and alerting strategies.
    """

    LOW = "LOW"
    """Low severity errors that don't significantly impact functionality."""

    MEDIUM = "MEDIUM"
    """Medium severity errors that may affect some features but not critical ops."""

    HIGH = "HIGH"
    """High severity errors impacting critical functionality or data integrity."""

    CRITICAL = "CRITICAL"
    """Critical errors requiring immediate attention, may cause system failures."""


class PensionError(Exception):
    """Base exception class for all back office exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        self.stack_trace = traceback.format_stack()[:-1]  # Exclude this frame
        self.fingerprint = self._generate_fingerprint()

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for error grouping.

        The hash combines the error type, the error code and the last project
        frames of the stack, so occurrences raised from the same place share a
        fingerprint.
        """
        max_frames = 5
        relevant_frames = self.stack_trace[-max_frames:]

        fingerprint_data = f"{self.__class__.__name__}:{self.error_code}"
        for frame in relevant_frames:
            if "site-packages" not in frame and "src/" in frame:
                lines = frame.strip().split("\n")
                if lines:
                    fingerprint_data += f":{lines[0]}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def is_expected(self) -> bool:
        """Whether the error is part of normal operation (LOW or MEDIUM)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Whether the error should trigger alerts (HIGH or CRITICAL)."""
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ValidationError(PensionError):
    """Exception raised when input validation fails.

    Used for malformed input: non-HTTPS webhook URLs, unknown event types,
    blank rejection reasons, negative approved amounts.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.VALIDATION_ERROR,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class NotFoundError(PensionError):
    """Exception raised when a member, claim or webhook does not exist."""

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.NOT_FOUND,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.LOW, context, cause)


class BusinessRuleError(PensionError):
    """Exception raised when a business rule violation occurs.

    This exception should be used when an operation violates business
    logic constraints that aren't simple validation errors.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.BUSINESS_RULE,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(error_code, message, Severity.MEDIUM, context, cause)


class InvalidClaimError(BusinessRuleError):
    """Exception raised when a member is not eligible for a benefit.

    The message carries the eligibility explanation produced by the engine.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.INVALID_CLAIM, context, cause)


class DuplicateClaimError(PensionError):
    """Exception raised when a member already has an active claim."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_CLAIM, message, Severity.LOW, context, cause
        )


class InvalidStateError(PensionError):
    """Exception raised for a transition the claim's status does not allow.

    Args:
        current: Status the claim is in
        target: Status the caller asked for
        message: Optional override of the generated message
    """

    def __init__(
        self,
        current: str,
        target: str,
        message: str | None = None,
        context: ErrorContext | None = None,
    ) -> None:
        self.current = current
        self.target = target
        super().__init__(
            ErrorCode.INVALID_STATE,
            message or f"Cannot move claim from {current} to {target}",
            Severity.LOW,
            {"current_status": current, "target_status": target, **(context or {})},
        )


type DeliveryFailureKind = Literal["transport", "timeout", "http_status"]


class DeliveryError(PensionError):
    """Exception describing one failed webhook delivery attempt.

    Args:
        kind: ``transport`` for connection failures, ``timeout`` when the
            subscriber did not answer in time, ``http_status`` for a non-2xx
            response
        message: Human readable description stored on the delivery record
        status_code: Response status for ``http_status`` failures
        body: Response body for ``http_status`` failures
    """

    def __init__(
        self,
        kind: DeliveryFailureKind,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.body = body
        super().__init__(
            ErrorCode.DELIVERY_FAILED,
            message,
            Severity.MEDIUM,
            {"kind": kind, "status_code": status_code},
            cause,
        )


class SignatureError(PensionError):
    """Exception raised when a payload cannot be signed.

    Signing only fails on a missing or unusable secret, which means stored
    subscription data is broken.
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.SIGNATURE_ERROR, message, Severity.HIGH, context, cause
        )
