"""Unit tests for card number generation and Luhn validation."""

import pytest

from app.cards.number_generator import (
    DEFAULT_BIN,
    generate,
    luhn_check_digit,
    validate_luhn,
)


class TestValidateLuhn:
    """Test Luhn checksum validation."""

    def test_valid_number(self):
        assert validate_luhn("4276123456789014") is True

    def test_sequential_digits_are_invalid(self):
        assert validate_luhn("1234567890123456") is False

    def test_wrong_check_digit_is_invalid(self):
        # Same body as the valid number above, check digit off by two.
        assert validate_luhn("4276123456789012") is False

    def test_separators_are_ignored(self):
        assert validate_luhn("4276 1234 5678 9014") is True
        assert validate_luhn("4276-1234-5678-9014") is True

    @pytest.mark.parametrize("number", ["", None, "427612345678901", "42761234567890140"])
    def test_wrong_length_is_invalid(self, number):
        assert validate_luhn(number) is False

    def test_well_known_test_number(self):
        assert validate_luhn("4111111111111111") is True


class TestCheckDigit:
    """Test check digit computation."""

    def test_check_digit_for_known_body(self):
        assert luhn_check_digit("427612345678901") == 4

    def test_check_digit_for_zero_body(self):
        assert luhn_check_digit("000000000000000") == 0


class TestGenerate:
    """Test card number generation."""

    def test_generated_numbers_pass_luhn(self):
        """Every generated number must carry a valid checksum."""
        for _ in range(10_000):
            assert validate_luhn(generate()) is True

    def test_default_bin_and_length(self):
        number = generate()
        assert len(number) == 16
        assert number.isdigit()
        assert number.startswith(DEFAULT_BIN)

    def test_custom_bin(self):
        number = generate("5536")
        assert number.startswith("5536")
        assert validate_luhn(number)

    @pytest.mark.parametrize("bad_bin", ["", "42a6", "1234567890123456"])
    def test_invalid_bin_falls_back_to_default(self, bad_bin):
        number = generate(bad_bin)
        assert number.startswith(DEFAULT_BIN)
        assert validate_luhn(number)

    def test_numbers_are_random(self):
        assert len({generate() for _ in range(100)}) > 90
