"""Card number subsystem and card lifecycle rules."""

from .lifecycle import activate, block, expire, is_expired, is_expiring_soon, is_usable
from .number_generator import DEFAULT_BIN, generate, luhn_check_digit, validate_luhn
from .pan_codec import MASK_PLACEHOLDER, PanCodec, get_pan_codec

__all__ = [
    "activate",
    "block",
    "expire",
    "is_expired",
    "is_expiring_soon",
    "is_usable",
    "DEFAULT_BIN",
    "generate",
    "luhn_check_digit",
    "validate_luhn",
    "MASK_PLACEHOLDER",
    "PanCodec",
    "get_pan_codec",
]
