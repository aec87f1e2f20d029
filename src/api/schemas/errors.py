"""Standardized error response schemas.

Every error the API returns, whether raised by the domain, by request
validation or by an unhandled exception, is rendered as ``ErrorResponse``:
a machine-readable ``error_code``, a human-readable ``message``, sanitized
``details``, the correlation and request IDs, and debug information in
development only.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ServiceInfo(BaseModel):
    """Service that produced the error."""

    name: str = Field(
        ...,
        description="Name of the service",
        examples=["Pension Back Office"],
    )

    version: str = Field(
        ...,
        description="Version of the service",
        examples=["0.4.0"],
    )

    environment: str = Field(
        ...,
        description="Environment where the service is running",
        examples=["development", "staging", "production"],
    )


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""

    error_code: str = Field(
        ...,
        description="Unique error code identifying the error type",
        examples=["VALIDATION_ERROR", "NOT_FOUND", "DUPLICATE_CLAIM"],
    )

    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=[
            "Webhook URL must use HTTPS",
            "Cannot move claim from DISBURSED to CANCELLED",
        ],
    )

    details: dict[str, Any] | None = Field(
        default=None,
        description="Additional error details (e.g., the offending field)",
        examples=[{"field": "url"}],
    )

    correlation_id: str | None = Field(
        default=None,
        description="Request correlation ID for tracing and debugging",
        examples=["550e8400-e29b-41d4-a716-446655440000"],
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the error occurred (with timezone)",
        examples=["2026-06-14T12:00:00+00:00"],
    )

    severity: str | None = Field(
        default=None,
        description="Error severity level (LOW, MEDIUM, HIGH, CRITICAL)",
        examples=["LOW", "CRITICAL"],
    )

    service_info: ServiceInfo | None = Field(
        default=None,
        description="Information about the service that generated the error",
    )

    request_id: str | None = Field(
        default=None,
        description="Unique identifier of this request",
        examples=["req-550e8400-e29b-41d4-a716-446655440000"],
    )

    debug_info: dict[str, Any] | None = Field(
        default=None,
        description="Debug information (only populated in development environments)",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error_code": "DUPLICATE_CLAIM",
                    "message": "Member 42 already has an active benefit claim",
                    "details": {"member_id": 42},
                    "correlation_id": "550e8400-e29b-41d4-a716-446655440000",
                    "request_id": "req-660e8400-e29b-41d4-a716-446655440000",
                    "timestamp": "2026-06-14T12:00:00+00:00",
                    "severity": "LOW",
                    "service_info": {
                        "name": "Pension Back Office",
                        "version": "0.4.0",
                        "environment": "production",
                    },
                },
                {
                    "error_code": "INVALID_CLAIM",
                    "message": (
                        "Member must be at least 60 years old for retirement "
                        "benefit (current age: 55)"
                    ),
                    "details": {"member_id": 7, "benefit_type": "RETIREMENT"},
                    "timestamp": "2026-06-14T12:00:01+00:00",
                    "severity": "MEDIUM",
                },
            ]
        }
    }
