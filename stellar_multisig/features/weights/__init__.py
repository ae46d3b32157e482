"""Signer weight accounting and threshold evaluation."""

from stellar_multisig.features.weights.ledger import (
    AccountConfiguration,
    CollectedSignature,
    ConfigurationReport,
    EmbeddedSignature,
    OperationClass,
    Signer,
    SignerKind,
    ThresholdPolicy,
    WeightVerdict,
    available_signers,
    current_weight,
    evaluate,
    is_satisfied,
    required_weight,
    signed_identities,
)
from stellar_multisig.features.weights.matching import (
    signature_hint_for,
    signature_matches_signer,
)

__all__ = [
    "AccountConfiguration",
    "CollectedSignature",
    "ConfigurationReport",
    "EmbeddedSignature",
    "OperationClass",
    "Signer",
    "SignerKind",
    "ThresholdPolicy",
    "WeightVerdict",
    "available_signers",
    "current_weight",
    "evaluate",
    "is_satisfied",
    "required_weight",
    "signed_identities",
    "signature_hint_for",
    "signature_matches_signer",
]
