"""Input validation for signer identities."""

from dataclasses import dataclass
from typing import Any

from stellar_sdk import StrKey


@dataclass
class ValidationResult:
    is_valid: bool
    error_message: str | None = None
    normalized_value: Any = None


class PublicKeyValidator:
    @staticmethod
    def normalize(value: str) -> str:
        return value.replace(" ", "").strip().upper()

    @staticmethod
    def validate(value: str) -> ValidationResult:
        if not value or not value.strip():
            return ValidationResult(
                is_valid=False,
                error_message="Public key is required",
            )

        normalized = PublicKeyValidator.normalize(value)

        if not normalized.startswith("G"):
            return ValidationResult(
                is_valid=False,
                error_message=f"Public key must start with 'G': {value}",
            )

        if len(normalized) != 56:
            return ValidationResult(
                is_valid=False,
                error_message=f"Public key must be 56 characters: {value}",
            )

        if not StrKey.is_valid_ed25519_public_key(normalized):
            return ValidationResult(
                is_valid=False,
                error_message=f"Invalid public key checksum: {value}",
            )

        return ValidationResult(is_valid=True, normalized_value=normalized)
