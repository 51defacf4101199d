# accounting/errors.py
"""
Error taxonomy shared by the journal and reporting engines.

All codes describe caller-correctable precondition failures. Commands
report them through CommandResult; read-side operations (queries,
report generation) raise LedgerError.
"""

from enum import Enum


class ErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID_STATE = "INVALID_STATE"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    UNBALANCED = "UNBALANCED"
    UNSUPPORTED = "UNSUPPORTED"


class LedgerError(Exception):
    """
    Raised when a ledger or reporting operation cannot proceed.

    Attributes:
        code: ErrorCode describing the failure class
        message: Human readable description
        details: Extra context for the caller (entity ids, computed totals, field errors)
    """

    def __init__(self, code: ErrorCode, message: str, details: dict = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def __str__(self):
        return f"{self.code.value}: {self.message}"

    @classmethod
    def not_found(cls, message: str, **details):
        return cls(ErrorCode.NOT_FOUND, message, details)

    @classmethod
    def validation(cls, message: str, **details):
        return cls(ErrorCode.VALIDATION_FAILED, message, details)

    @classmethod
    def unsupported(cls, message: str, **details):
        return cls(ErrorCode.UNSUPPORTED, message, details)
