"""Transaction fingerprints for out-of-band payload verification.

Independent signers compare the fingerprint of the pending transaction
(verbally or visually) before they sign. The hash is taken over the
network-bound signature base of the transaction body, so appending
signatures to the envelope never changes it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from stellar_sdk import (
    AccountMerge,
    ChangeTrust,
    FeeBumpTransactionEnvelope,
    Payment,
    SetOptions,
    TransactionBuilder,
    TransactionEnvelope,
)

from stellar_multisig.errors import ParseError
from stellar_multisig.features.weights.ledger import EmbeddedSignature, OperationClass
from stellar_multisig.shared.logging import get_logger

logger = get_logger(__name__)

UNKNOWN_SHORT_FINGERPRINT = "XXXX-XXXX"
UNKNOWN_OPERATION_SUMMARY = "Unknown ops"
UNKNOWN_SOURCE = "Unknown"


class OperationKind(Enum):
    PAYMENT = "payment"
    ACCOUNT_MERGE = "account_merge"
    CHANGE_TRUST = "change_trust"
    SET_OPTIONS = "set_options"
    OTHER = "other"


@dataclass(frozen=True)
class PaymentSummary:
    destination: str
    asset: str
    amount: str
    kind: OperationKind = OperationKind.PAYMENT


@dataclass(frozen=True)
class AccountMergeSummary:
    destination: str
    kind: OperationKind = OperationKind.ACCOUNT_MERGE


@dataclass(frozen=True)
class ChangeTrustSummary:
    asset: str
    limit: str
    kind: OperationKind = OperationKind.CHANGE_TRUST


@dataclass(frozen=True)
class SetOptionsSummary:
    changes_signers: bool
    changes_thresholds: bool
    changes_master_weight: bool
    kind: OperationKind = OperationKind.SET_OPTIONS

    @property
    def changes_authorization(self) -> bool:
        return (
            self.changes_signers
            or self.changes_thresholds
            or self.changes_master_weight
        )


@dataclass(frozen=True)
class OtherOperationSummary:
    operation_type: str
    kind: OperationKind = OperationKind.OTHER


OperationSummary = (
    PaymentSummary
    | AccountMergeSummary
    | ChangeTrustSummary
    | SetOptionsSummary
    | OtherOperationSummary
)


@dataclass(frozen=True)
class ParsedEnvelope:
    hash_hex: str
    hash_bytes: bytes
    source_account: str
    operations: tuple[OperationSummary, ...]
    signatures: tuple[EmbeddedSignature, ...]
    is_fee_bump: bool = False

    @property
    def operation_count(self) -> int:
        return len(self.operations)


@dataclass(frozen=True)
class DetailedFingerprint:
    hash: str
    short: str
    operation_summary: str
    source_identity_summary: str
    operations: tuple[OperationSummary, ...] = field(default_factory=tuple)

    @property
    def is_known(self) -> bool:
        return bool(self.hash)


UNKNOWN_FINGERPRINT = DetailedFingerprint(
    hash="",
    short=UNKNOWN_SHORT_FINGERPRINT,
    operation_summary=UNKNOWN_OPERATION_SUMMARY,
    source_identity_summary=UNKNOWN_SOURCE,
)


def _describe_asset(asset) -> str:
    if hasattr(asset, "is_native") and asset.is_native():
        return "XLM"
    code = getattr(asset, "code", None)
    issuer = getattr(asset, "issuer", None)
    if code and issuer:
        return f"{code}:{issuer}"
    return type(asset).__name__


def summarize_operation(operation) -> OperationSummary:
    """Map an SDK operation to its summary; unknown types become ``other``."""
    if isinstance(operation, Payment):
        return PaymentSummary(
            destination=operation.destination.account_id,
            asset=_describe_asset(operation.asset),
            amount=str(operation.amount),
        )
    if isinstance(operation, AccountMerge):
        return AccountMergeSummary(destination=operation.destination.account_id)
    if isinstance(operation, ChangeTrust):
        return ChangeTrustSummary(
            asset=_describe_asset(operation.asset),
            limit=str(operation.limit),
        )
    if isinstance(operation, SetOptions):
        return SetOptionsSummary(
            changes_signers=operation.signer is not None,
            changes_thresholds=any(
                value is not None
                for value in (
                    operation.low_threshold,
                    operation.med_threshold,
                    operation.high_threshold,
                )
            ),
            changes_master_weight=operation.master_weight is not None,
        )
    return OtherOperationSummary(operation_type=type(operation).__name__)


def classify_operations(operations) -> OperationClass:
    """Account merges and authorization-changing set-options need the high threshold."""
    for operation in operations:
        if isinstance(operation, AccountMergeSummary):
            return OperationClass.ACCOUNT_CONFIGURATION
        if isinstance(operation, SetOptionsSummary) and operation.changes_authorization:
            return OperationClass.ACCOUNT_CONFIGURATION
    return OperationClass.STANDARD


def parse_envelope(envelope_xdr: str, network_passphrase: str) -> ParsedEnvelope:
    """Decode an envelope, raising :class:`ParseError` on malformed input."""
    if not envelope_xdr or not envelope_xdr.strip():
        raise ParseError(source="envelope", message="empty envelope")

    try:
        envelope = TransactionBuilder.from_xdr(envelope_xdr.strip(), network_passphrase)
        if isinstance(envelope, FeeBumpTransactionEnvelope):
            inner: TransactionEnvelope = envelope.transaction.inner_transaction_envelope
            transaction = inner.transaction
        else:
            transaction = envelope.transaction

        hash_bytes = envelope.hash()
        return ParsedEnvelope(
            hash_hex=hash_bytes.hex(),
            hash_bytes=hash_bytes,
            source_account=transaction.source.account_id,
            operations=tuple(summarize_operation(op) for op in transaction.operations),
            signatures=tuple(
                EmbeddedSignature(
                    hint=bytes(sig.signature_hint), signature=bytes(sig.signature)
                )
                for sig in envelope.signatures
            ),
            is_fee_bump=isinstance(envelope, FeeBumpTransactionEnvelope),
        )
    except ParseError:
        raise
    except Exception as e:
        raise ParseError(source="envelope", message=str(e) or type(e).__name__) from e


def fingerprint(envelope_xdr: str, network_passphrase: str) -> str:
    """Hex hash of the unsigned transaction body, ``""`` if undecodable."""
    try:
        return parse_envelope(envelope_xdr, network_passphrase).hash_hex
    except ParseError as e:
        logger.debug("Fingerprint unavailable: %s", e)
        return ""


def short_fingerprint(hash_hex: str) -> str:
    if len(hash_hex) < 8:
        return UNKNOWN_SHORT_FINGERPRINT
    head = hash_hex[:8].upper()
    return f"{head[:4]}-{head[4:]}"


def summarize_operation_count(count: int) -> str:
    return f"{count} op{'' if count == 1 else 's'}"


def summarize_identity(identity: str) -> str:
    if len(identity) <= 8:
        return identity
    return f"{identity[:4]}...{identity[-4:]}"


def detailed_fingerprint(envelope_xdr: str, network_passphrase: str) -> DetailedFingerprint:
    try:
        parsed = parse_envelope(envelope_xdr, network_passphrase)
    except ParseError as e:
        logger.warning("Cannot fingerprint envelope: %s", e)
        return UNKNOWN_FINGERPRINT

    return DetailedFingerprint(
        hash=parsed.hash_hex,
        short=short_fingerprint(parsed.hash_hex),
        operation_summary=summarize_operation_count(parsed.operation_count),
        source_identity_summary=summarize_identity(parsed.source_account),
        operations=parsed.operations,
    )
