"""Exception types raised by the signature-coordination engine."""

from __future__ import annotations

from dataclasses import dataclass, field


class MultisigError(Exception):
    """Base class for coordination errors."""


@dataclass
class ParseError(MultisigError):
    """An envelope or QR chunk could not be decoded."""

    source: str
    message: str

    def __str__(self) -> str:
        return f"Failed to parse {self.source}: {self.message}"


@dataclass
class IdentityMismatchError(MultisigError):
    """The signing device answered with a different identity than the one selected."""

    expected: str
    actual: str

    def __str__(self) -> str:
        return (
            f"Identity mismatch: expected signature from {self.expected}, "
            f"device signed as {self.actual}"
        )


@dataclass
class EnvelopeMismatchError(MultisigError):
    """A returned signed envelope belongs to a different transaction."""

    expected_hash: str
    actual_hash: str

    def __str__(self) -> str:
        actual = self.actual_hash or "unreadable envelope"
        return (
            f"Envelope mismatch: pending transaction is {self.expected_hash}, "
            f"received {actual}"
        )


@dataclass
class PolicyViolationError(MultisigError):
    """The account configuration can never be satisfied or is malformed."""

    errors: list[str] = field(default_factory=list)

    def __str__(self) -> str:
        return "Invalid account configuration: " + "; ".join(self.errors)


@dataclass
class InvalidTransitionError(MultisigError):
    """An action is not allowed in the session's current state."""

    state: str
    action: str

    def __str__(self) -> str:
        return f"Cannot {self.action} while session is {self.state}"


class SigningInProgressError(MultisigError):
    """A second signing operation was started before the first finished."""


@dataclass
class SubmissionError(MultisigError):
    """The submission collaborator rejected or failed to deliver the envelope."""

    message: str
    result_codes: dict | None = None
    status_code: int | None = None

    def __str__(self) -> str:
        if self.result_codes:
            return f"{self.message} ({self.result_codes})"
        return self.message
