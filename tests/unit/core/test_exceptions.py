"""Unit tests for src/core/exceptions.py module."""

import pytest
import pytest_check as check

from src.core.exceptions import (
    BusinessRuleError,
    DeliveryError,
    DuplicateClaimError,
    ErrorCode,
    InvalidClaimError,
    InvalidStateError,
    NotFoundError,
    PensionError,
    Severity,
    SignatureError,
    ValidationError,
)


@pytest.mark.unit
class TestPensionError:
    def test_attributes(self) -> None:
        cause = ValueError("bad input")
        error = PensionError(
            ErrorCode.INTERNAL_ERROR,
            "Something broke",
            context={"claim_id": 1},
            cause=cause,
        )

        check.equal(error.error_code, "INTERNAL_ERROR")
        check.equal(error.message, "Something broke")
        check.equal(error.severity, Severity.MEDIUM)
        check.equal(error.context, {"claim_id": 1})
        check.is_(error.__cause__, cause)
        check.equal(str(error), "[INTERNAL_ERROR] Something broke")
        check.equal(len(error.fingerprint), 16)
        check.is_true(error.stack_trace)

    def test_repr_includes_context(self) -> None:
        error = NotFoundError("Member 9 not found", context={"member_id": 9})

        assert repr(error) == (
            "NotFoundError(error_code='NOT_FOUND', message='Member 9 not found', "
            "severity=LOW, context={'member_id': 9})"
        )

    def test_same_raise_site_shares_fingerprint(self) -> None:
        def fail() -> PensionError:
            return ValidationError("x")

        assert fail().fingerprint == fail().fingerprint

    @pytest.mark.parametrize(
        ("severity", "expected", "alert"),
        [
            (Severity.LOW, True, False),
            (Severity.MEDIUM, True, False),
            (Severity.HIGH, False, True),
            (Severity.CRITICAL, False, True),
        ],
    )
    def test_expected_and_alerting(
        self, severity: Severity, expected: bool, alert: bool
    ) -> None:
        error = PensionError("CODE", "message", severity)

        assert error.is_expected is expected
        assert error.should_alert is alert


@pytest.mark.unit
class TestSpecializedErrors:
    @pytest.mark.parametrize(
        ("error", "code", "severity"),
        [
            (ValidationError("v"), "VALIDATION_ERROR", Severity.LOW),
            (NotFoundError("n"), "NOT_FOUND", Severity.LOW),
            (BusinessRuleError("b"), "BUSINESS_RULE", Severity.MEDIUM),
            (InvalidClaimError("i"), "INVALID_CLAIM", Severity.MEDIUM),
            (DuplicateClaimError("d"), "DUPLICATE_CLAIM", Severity.LOW),
            (SignatureError("s"), "SIGNATURE_ERROR", Severity.HIGH),
        ],
    )
    def test_codes_and_severities(
        self, error: PensionError, code: str, severity: Severity
    ) -> None:
        assert error.error_code == code
        assert error.severity is severity

    def test_invalid_claim_is_a_business_rule_error(self) -> None:
        assert isinstance(InvalidClaimError("too young"), BusinessRuleError)

    def test_invalid_state_message_and_context(self) -> None:
        error = InvalidStateError("PENDING", "DISBURSED", context={"claim_id": 4})

        check.equal(error.message, "Cannot move claim from PENDING to DISBURSED")
        check.equal(error.current, "PENDING")
        check.equal(error.target, "DISBURSED")
        check.equal(
            error.context,
            {"current_status": "PENDING", "target_status": "DISBURSED", "claim_id": 4},
        )

    def test_delivery_error_carries_response(self) -> None:
        error = DeliveryError(
            "http_status", "HTTP 502: bad gateway", status_code=502, body="bad gateway"
        )

        assert error.kind == "http_status"
        assert error.status_code == 502
        assert error.body == "bad gateway"
        assert error.context == {"kind": "http_status", "status_code": 502}
