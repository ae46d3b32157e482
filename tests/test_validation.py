import pytest
from stellar_sdk import Keypair

from stellar_multisig.shared.validation import PublicKeyValidator, ValidationResult


class TestValidationResult:
    def test_valid_result(self):
        result = ValidationResult(is_valid=True, normalized_value="GABC")
        assert result.is_valid is True
        assert result.error_message is None
        assert result.normalized_value == "GABC"

    def test_invalid_result(self):
        result = ValidationResult(is_valid=False, error_message="Test error")
        assert result.is_valid is False
        assert result.normalized_value is None


class TestPublicKeyValidator:
    def test_valid_key(self):
        public_key = Keypair.random().public_key

        result = PublicKeyValidator.validate(public_key)

        assert result.is_valid is True
        assert result.normalized_value == public_key

    def test_normalizes_spacing_and_case(self):
        public_key = Keypair.random().public_key
        messy = f" {public_key[:28].lower()} {public_key[28:]} "

        result = PublicKeyValidator.validate(messy)

        assert result.is_valid is True
        assert result.normalized_value == public_key

    @pytest.mark.parametrize("value", ["", "   "])
    def test_required(self, value):
        result = PublicKeyValidator.validate(value)
        assert result.error_message == "Public key is required"

    def test_secret_seed_rejected(self):
        result = PublicKeyValidator.validate(Keypair.random().secret)

        assert result.is_valid is False
        assert "must start with 'G'" in result.error_message

    def test_wrong_length(self):
        result = PublicKeyValidator.validate("GABC")

        assert result.is_valid is False
        assert "must be 56 characters" in result.error_message

    def test_bad_checksum(self):
        public_key = Keypair.random().public_key
        last = "A" if public_key[-1] != "A" else "B"

        result = PublicKeyValidator.validate(public_key[:-1] + last)

        assert result.is_valid is False
        assert result.error_message.startswith("Invalid public key checksum")
