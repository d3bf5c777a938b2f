"""
Ledger error kinds.

Every error carries a stable snake_case ``code`` and the HTTP status the
request layer answers with. Engine components raise these; services return
them as the second item of a ``(data, error)`` tuple.
"""
from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for all ledger failures."""

    code = "ledger_error"
    status_code = 400

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class InvalidInputError(LedgerError):
    code = "invalid_input"


class ValidationError(InvalidInputError):
    code = "validation_failed"


class SplitMismatchError(LedgerError):
    code = "split_mismatch"

    def __init__(self, message: str, expected: float, actual: float):
        super().__init__(message, expected=expected, actual=actual)
        self.expected = expected
        self.actual = actual


class MembershipError(LedgerError):
    code = "not_a_member"
    status_code = 403


class PermissionDeniedError(LedgerError):
    code = "permission_denied"
    status_code = 403


class NotFoundError(LedgerError):
    code = "not_found"
    status_code = 404


class NoDebtError(LedgerError):
    code = "no_debt"
    status_code = 409


class ExcessAmountError(LedgerError):
    code = "excess_amount"
    status_code = 409

    def __init__(self, message: str, outstanding: float):
        super().__init__(message, outstanding=outstanding)
        self.outstanding = outstanding


class PersistenceError(LedgerError):
    code = "persistence_error"
    status_code = 500

    def __init__(self, message: str, record: Optional[Any] = None):
        super().__init__(message)
        # Audit row that was written before the failure, if any
        self.record = record
