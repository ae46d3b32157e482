"""Transaction fingerprints and operation summaries."""

from stellar_multisig.features.fingerprint.service import (
    DetailedFingerprint,
    OperationKind,
    ParsedEnvelope,
    classify_operations,
    detailed_fingerprint,
    fingerprint,
    parse_envelope,
    short_fingerprint,
)

__all__ = [
    "DetailedFingerprint",
    "OperationKind",
    "ParsedEnvelope",
    "classify_operations",
    "detailed_fingerprint",
    "fingerprint",
    "parse_envelope",
    "short_fingerprint",
]
