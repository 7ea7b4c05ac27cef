"""Error codes and user-friendly messages.

This module defines the error catalog for card management.
Each error has:
- error_code: Unique identifier
- message: Technical description (for logs)
- user_message: User-friendly explanation
- suggestion: Actionable guidance for the user
- retry_allowed: Whether the error is retryable
"""

# Error catalog for card management
ERROR_CATALOG: dict[str, dict] = {
    "RES_001": {
        "code": "RES_001",
        "message": "Card not found",
        "user_message": "We couldn't find this card.",
        "suggestion": "Please check the card ID and try again.",
        "retry_allowed": False,
    },
    "RES_002": {
        "code": "RES_002",
        "message": "Transaction not found",
        "user_message": "We couldn't find this transaction.",
        "suggestion": "Please check the transaction ID and try again.",
        "retry_allowed": False,
    },
    "RES_003": {
        "code": "RES_003",
        "message": "User not found",
        "user_message": "We couldn't find this user.",
        "suggestion": "Please check the user ID and try again.",
        "retry_allowed": False,
    },
    "BIZ_001": {
        "code": "BIZ_001",
        "message": "Card is already blocked",
        "user_message": "This card is already blocked.",
        "suggestion": "Ask an administrator to reactivate the card if needed.",
        "retry_allowed": False,
    },
    "BIZ_002": {
        "code": "BIZ_002",
        "message": "Card has passed its expiration date",
        "user_message": "This card has expired and cannot be activated.",
        "suggestion": "Request a new card instead.",
        "retry_allowed": False,
    },
    "BIZ_003": {
        "code": "BIZ_003",
        "message": "Card is already active",
        "user_message": "This card is already active.",
        "suggestion": "No action is needed.",
        "retry_allowed": False,
    },
    "AUTH_001": {
        "code": "AUTH_001",
        "message": "Access denied: principal lacks ownership or capability",
        "user_message": "You don't have permission to perform this action.",
        "suggestion": "You can only access your own cards and transactions.",
        "retry_allowed": False,
    },
    "VAL_001": {
        "code": "VAL_001",
        "message": "Input data failed validation",
        "user_message": "Invalid input data.",
        "suggestion": "Please check your input and try again.",
        "retry_allowed": True,
    },
    "SEC_001": {
        "code": "SEC_001",
        "message": "Card number encryption or decryption failed",
        "user_message": "We couldn't process this card securely.",
        "suggestion": "Please contact support. No card data has been changed.",
        "retry_allowed": False,
    },
    "GEN_001": {
        "code": "GEN_001",
        "message": "Could not generate a unique card number",
        "user_message": "We couldn't issue a card number right now.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    "DB_001": {
        "code": "DB_001",
        "message": "Database operation failed",
        "user_message": "A database error occurred.",
        "suggestion": "Please try again in a few moments.",
        "retry_allowed": True,
    },
    "DB_002": {
        "code": "DB_002",
        "message": "Unique constraint violated",
        "user_message": "This record already exists.",
        "suggestion": "Please check whether it was already created.",
        "retry_allowed": False,
    },
    "SYS_001": {
        "code": "SYS_001",
        "message": "Internal server error",
        "user_message": "An unexpected error occurred.",
        "suggestion": "Please try again later or contact support.",
        "retry_allowed": True,
    },
}


def get_error(error_code: str) -> dict:
    """Get error definition by code.

    Args:
        error_code: Error code from the catalog

    Returns:
        Dict with error details; a generic entry for unknown codes
    """
    if error_code not in ERROR_CATALOG:
        # Return a generic error if code not found
        return {
            "code": "UNKNOWN",
            "message": f"Unknown error code: {error_code}",
            "user_message": "An unexpected error occurred.",
            "suggestion": "Please try again. Contact support if the problem persists.",
            "retry_allowed": True,
        }
    return ERROR_CATALOG[error_code]


def get_user_message(error_code: str) -> str:
    """Get user-friendly message for an error code."""
    return get_error(error_code)["user_message"]


def is_retryable(error_code: str) -> bool:
    """Check if an error is retryable."""
    return get_error(error_code)["retry_allowed"]
