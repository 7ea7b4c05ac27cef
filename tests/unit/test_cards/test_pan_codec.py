"""Unit tests for card number encryption and masking."""

import pytest

from app.cards.pan_codec import MASK_PLACEHOLDER, PanCodec, derive_key
from app.core.exceptions import CodecError

PAN = "4276123456789014"


@pytest.fixture
def codec():
    return PanCodec("unit-test-secret")


class TestEncryption:
    """Test deterministic encryption."""

    def test_round_trip(self, codec):
        assert codec.decrypt(codec.encrypt(PAN)) == PAN

    def test_encryption_is_deterministic(self, codec):
        assert codec.encrypt(PAN) == codec.encrypt(PAN)

    def test_ciphertext_hides_number(self, codec):
        ciphertext = codec.encrypt(PAN)
        assert PAN not in ciphertext
        assert "9014" not in ciphertext

    def test_different_secrets_produce_different_ciphertext(self, codec):
        assert PanCodec("another-secret").encrypt(PAN) != codec.encrypt(PAN)

    def test_empty_input_is_returned_unchanged(self, codec):
        assert codec.encrypt("") == ""
        assert codec.decrypt("") == ""

    def test_decrypt_with_wrong_key_raises(self, codec):
        ciphertext = codec.encrypt(PAN)
        with pytest.raises(CodecError) as exc_info:
            PanCodec("another-secret").decrypt(ciphertext)
        assert exc_info.value.error_code == "SEC_001"

    def test_decrypt_garbage_raises(self, codec):
        with pytest.raises(CodecError):
            codec.decrypt("not base64 at all!")

    def test_empty_secret_is_rejected(self):
        with pytest.raises(CodecError):
            PanCodec("")

    def test_key_is_sixteen_bytes(self):
        assert len(derive_key("anything")) == 16


class TestMasking:
    """Test masked display forms."""

    def test_mask_shows_last_four(self, codec):
        assert codec.mask(codec.encrypt(PAN)) == "**** **** **** 9014"

    def test_privileged_mask_shows_bin_and_last_four(self, codec):
        assert codec.mask_privileged(codec.encrypt(PAN)) == "4276 12** **** 9014"

    def test_mask_strips_separators(self, codec):
        assert codec.mask(codec.encrypt("4276 1234 5678 9014")) == "**** **** **** 9014"

    def test_mask_never_raises_on_bad_ciphertext(self, codec):
        assert codec.mask("garbage") == MASK_PLACEHOLDER
        assert codec.mask_privileged("garbage") == MASK_PLACEHOLDER

    def test_mask_of_empty_value(self, codec):
        assert codec.mask("") == MASK_PLACEHOLDER
        assert codec.mask_privileged("") == MASK_PLACEHOLDER

    def test_mask_of_short_number(self, codec):
        assert codec.mask(codec.encrypt("123")) == MASK_PLACEHOLDER

    def test_privileged_mask_falls_back_for_short_numbers(self, codec):
        assert codec.mask_privileged(codec.encrypt("123456789")) == "**** **** **** 6789"
