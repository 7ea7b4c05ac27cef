"""Custom exception classes for card management.

This module defines the exception hierarchy used by the card and transfer
services. Each exception maps to a specific error code defined in errors.py.

Transfer business-rule violations are not raised: they are recorded as FAILED
transactions. Only a missing card and infrastructure failures escape the
transfer path.
"""

from enum import Enum
from typing import Any


class CardManagementError(Exception):
    """Base exception for all card management errors.

    Attributes:
        error_code: Code from the error catalog (e.g., "RES_001")
        details: Additional context about the error (for logging)
        http_status: HTTP status code to return (default: 500)
    """

    def __init__(
        self,
        error_code: str,
        details: dict[str, Any] | None = None,
        http_status: int = 500,
    ):
        """Initialize the exception.

        Args:
            error_code: Error code from errors.py
            details: Additional error context (not shown to users)
            http_status: HTTP status code (default: 500)
        """
        self.error_code = error_code
        self.details = details or {}
        self.http_status = http_status
        super().__init__(error_code)


class NotFoundError(CardManagementError):
    """Raised when a referenced user, card or transaction does not exist."""

    def __init__(self, error_code: str = "RES_001", details: dict[str, Any] | None = None):
        super().__init__(error_code, details, http_status=404)


class BusinessRule(str, Enum):
    """Card lifecycle rules that are raised rather than recorded."""

    CARD_BLOCKED = "BIZ_001"
    CARD_EXPIRED = "BIZ_002"
    CARD_ALREADY_ACTIVE = "BIZ_003"


class BusinessError(CardManagementError):
    """Raised when a lifecycle operation violates a business rule.

    The violated rule is available as ``rule``; its value is the error code.
    """

    def __init__(self, rule: BusinessRule, details: dict[str, Any] | None = None):
        self.rule = rule
        super().__init__(rule.value, details, http_status=409)


class PermissionDeniedError(CardManagementError):
    """Raised when the acting principal may not touch the resource."""

    def __init__(self, error_code: str = "AUTH_001", details: dict[str, Any] | None = None):
        super().__init__(error_code, details, http_status=403)


class ValidationError(CardManagementError):
    """Raised when input to a non-transfer operation is invalid.

    This includes:
    - Expiration dates that are not in the future
    - Negative initial balances
    """

    def __init__(self, error_code: str = "VAL_001", details: dict[str, Any] | None = None):
        super().__init__(error_code, details, http_status=400)


class CodecError(CardManagementError):
    """Raised when a card number cannot be encrypted or decrypted.

    Fatal for card creation and activation; masking never raises it.
    """

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("SEC_001", details, http_status=500)


class GenerationExhaustedError(CardManagementError):
    """Raised when no unique card number was found within the attempt cap."""

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("GEN_001", details, http_status=500)


class InfraError(CardManagementError):
    """Raised on storage or lock failures outside the recoverable window.

    A transfer that cannot acquire its row locks raises this; a failure after
    validation is recorded as a FAILED transaction instead.
    """

    def __init__(self, details: dict[str, Any] | None = None):
        super().__init__("DB_001", details, http_status=503)
