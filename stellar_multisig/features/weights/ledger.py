"""Signature weight accounting against an account's threshold policy.

Weight is policy-defined: a valid signature from an identity that is not
in the configured signer list contributes nothing. Each signer counts once
no matter how many sources report its signature.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Sequence

from stellar_multisig.errors import PolicyViolationError
from stellar_multisig.features.weights.matching import signature_matches_signer
from stellar_multisig.shared.logging import get_logger
from stellar_multisig.shared.validation import PublicKeyValidator

logger = get_logger(__name__)

MAX_WEIGHT = 255
MAX_SIGNERS = 20


class SignerKind(Enum):
    NORMAL = "normal"
    CURRENT_ACCOUNT = "current_account"


class OperationClass(Enum):
    STANDARD = "standard"
    ACCOUNT_CONFIGURATION = "account_configuration"


@dataclass(frozen=True)
class Signer:
    identity: str
    weight: int
    kind: SignerKind = SignerKind.NORMAL

    def __post_init__(self):
        if not 0 <= self.weight <= MAX_WEIGHT:
            raise ValueError(
                f"Signer weight must be between 0 and {MAX_WEIGHT}, got {self.weight}"
            )


@dataclass(frozen=True)
class ThresholdPolicy:
    low: int = 0
    medium: int = 0
    high: int = 0

    def __post_init__(self):
        if min(self.low, self.medium, self.high) < 0:
            raise ValueError("Thresholds cannot be negative")


@dataclass(frozen=True)
class CollectedSignature:
    signer_identity: str
    signed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class EmbeddedSignature:
    """A decorated signature as carried inside an envelope."""

    hint: bytes
    signature: bytes


@dataclass(frozen=True)
class WeightVerdict:
    current: int
    required: int
    signed: tuple[str, ...] = ()

    @property
    def satisfied(self) -> bool:
        return self.current >= self.required

    @property
    def missing_weight(self) -> int:
        return max(0, self.required - self.current)


def signed_identities(
    signers: Sequence[Signer],
    session_signatures: Iterable[CollectedSignature],
    embedded_signatures: Iterable[EmbeddedSignature],
    transaction_hash: bytes | None = None,
) -> list[str]:
    """Union of identities that signed this session or inside the envelope."""
    signed: list[str] = []
    seen: set[str] = set()

    for collected in session_signatures:
        if collected.signer_identity not in seen:
            seen.add(collected.signer_identity)
            signed.append(collected.signer_identity)

    embedded = list(embedded_signatures)
    if not embedded:
        return signed

    for signer in signers:
        if signer.identity in seen:
            continue
        if any(
            signature_matches_signer(sig, signer.identity, transaction_hash)
            for sig in embedded
        ):
            seen.add(signer.identity)
            signed.append(signer.identity)

    return signed


def current_weight(
    signers: Sequence[Signer],
    session_signatures: Iterable[CollectedSignature],
    embedded_signatures: Iterable[EmbeddedSignature],
    transaction_hash: bytes | None = None,
) -> int:
    weights = {signer.identity: signer.weight for signer in signers}
    identities = signed_identities(
        signers, session_signatures, embedded_signatures, transaction_hash
    )
    return sum(weights.get(identity, 0) for identity in identities)


def required_weight(policy: ThresholdPolicy, operation_class: OperationClass) -> int:
    """Threshold for the operation class; a zero threshold still needs one signature."""
    if operation_class == OperationClass.ACCOUNT_CONFIGURATION:
        threshold = policy.high
    else:
        threshold = policy.medium
    return max(threshold, 1)


def evaluate(
    signers: Sequence[Signer],
    session_signatures: Iterable[CollectedSignature],
    embedded_signatures: Iterable[EmbeddedSignature],
    policy: ThresholdPolicy,
    operation_class: OperationClass,
    transaction_hash: bytes | None = None,
) -> WeightVerdict:
    weights = {signer.identity: signer.weight for signer in signers}
    identities = signed_identities(
        signers, session_signatures, embedded_signatures, transaction_hash
    )
    return WeightVerdict(
        current=sum(weights.get(identity, 0) for identity in identities),
        required=required_weight(policy, operation_class),
        signed=tuple(identities),
    )


def is_satisfied(
    signers: Sequence[Signer],
    session_signatures: Iterable[CollectedSignature],
    embedded_signatures: Iterable[EmbeddedSignature],
    policy: ThresholdPolicy,
    operation_class: OperationClass,
    transaction_hash: bytes | None = None,
) -> bool:
    return evaluate(
        signers,
        session_signatures,
        embedded_signatures,
        policy,
        operation_class,
        transaction_hash,
    ).satisfied


def available_signers(
    signers: Sequence[Signer], already_signed: Iterable[str]
) -> list[Signer]:
    signed = set(already_signed)
    return [signer for signer in signers if signer.identity not in signed]


@dataclass
class ConfigurationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class AccountConfiguration:
    """Read-only signer set and thresholds of one account."""

    account_id: str
    policy: ThresholdPolicy
    signers: tuple[Signer, ...] = ()

    @property
    def total_weight(self) -> int:
        return sum(signer.weight for signer in self.signers)

    def check(self) -> ConfigurationReport:
        report = ConfigurationReport()
        identities = [signer.identity for signer in self.signers]

        if not identities:
            report.errors.append("Account must have at least one signer")
        if len(identities) > MAX_SIGNERS:
            report.errors.append(f"Cannot have more than {MAX_SIGNERS} signers")
        if len(set(identities)) != len(identities):
            report.errors.append("Duplicate signer keys are not allowed")

        for identity in identities:
            if identity.startswith("G"):
                result = PublicKeyValidator.validate(identity)
                if not result.is_valid:
                    report.errors.append(result.error_message or "Invalid signer key")

        policy = self.policy
        named = (("Low", policy.low), ("Medium", policy.medium), ("High", policy.high))
        for name, value in named:
            if value > MAX_WEIGHT:
                report.errors.append(
                    f"{name} threshold ({value}) cannot exceed {MAX_WEIGHT}"
                )

        if policy.low > policy.medium:
            report.errors.append("Low threshold cannot be higher than medium threshold")
        if policy.medium > policy.high:
            report.errors.append("Medium threshold cannot be higher than high threshold")

        total = self.total_weight
        for name, value in named:
            if value > total:
                report.errors.append(
                    f"{name} threshold ({value}) exceeds total weight ({total})"
                )
        if policy.high > total:
            report.errors.append(
                f"Total signer weight ({total}) is less than high threshold "
                f"({policy.high}). This will lock the account."
            )

        current = next(
            (s for s in self.signers if s.identity == self.account_id), None
        )
        if current is None or current.weight == 0:
            report.warnings.append("The current account is not an active signer")

        return report

    @classmethod
    def build(
        cls,
        account_id: str,
        policy: ThresholdPolicy,
        signers: Iterable[Signer],
    ) -> "AccountConfiguration":
        """Create a configuration, raising :class:`PolicyViolationError` if unusable."""
        configuration = cls(
            account_id=account_id, policy=policy, signers=tuple(signers)
        )
        report = configuration.check()
        for warning in report.warnings:
            logger.warning("Account %s: %s", account_id, warning)
        if not report.is_valid:
            raise PolicyViolationError(errors=report.errors)
        return configuration

    def signer_for(self, identity: str) -> Signer | None:
        return next((s for s in self.signers if s.identity == identity), None)
