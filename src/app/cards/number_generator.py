"""Card number generation and Luhn validation."""

import logging
import re
import secrets

logger = logging.getLogger(__name__)

DEFAULT_BIN = "4276"
CARD_NUMBER_LENGTH = 16

_NON_DIGITS = re.compile(r"\D")


def _luhn_sum(digits: str, double_rightmost: bool) -> int:
    total = 0
    double = double_rightmost
    for char in reversed(digits):
        digit = int(char)
        if double:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
        double = not double
    return total


def luhn_check_digit(body: str) -> int:
    """Compute the check digit to append to ``body``.

    The rightmost body digit sits next to the check digit, so doubling
    starts with it.
    """
    return (10 - _luhn_sum(body, double_rightmost=True) % 10) % 10


def validate_luhn(card_number: str | None) -> bool:
    """Check a sixteen-digit card number against its Luhn checksum.

    Non-digit characters (spaces, dashes) are ignored.
    """
    if not card_number:
        return False
    digits = _NON_DIGITS.sub("", card_number)
    if len(digits) != CARD_NUMBER_LENGTH:
        return False
    return _luhn_sum(digits, double_rightmost=False) % 10 == 0


def generate(bin: str = DEFAULT_BIN) -> str:
    """Generate a random Luhn-valid sixteen-digit card number.

    Args:
        bin: Leading digits; an empty, non-numeric or over-long BIN is
            replaced by the default

    Returns:
        Card number as a string of digits
    """
    if not bin or not bin.isdigit() or len(bin) > CARD_NUMBER_LENGTH - 1:
        bin = DEFAULT_BIN

    body = bin + "".join(
        str(secrets.randbelow(10)) for _ in range(CARD_NUMBER_LENGTH - 1 - len(bin))
    )
    return body + str(luhn_check_digit(body))
