"""Signature coordination for Stellar threshold-multisig accounts.

This package is organized into feature-based modules:
- features.fingerprint: Out-of-band transaction verification
- features.chunking: Air-gapped QR transport
- features.weights: Threshold and signer weight evaluation
- features.session: Coordination session state machine
- shared: Logging, Horizon access and validation
"""

from stellar_multisig.config import CoordinatorConfig, NetworkSettings, get_network
from stellar_multisig.errors import (
    EnvelopeMismatchError,
    IdentityMismatchError,
    InvalidTransitionError,
    MultisigError,
    ParseError,
    PolicyViolationError,
    SigningInProgressError,
    SubmissionError,
)
from stellar_multisig.features.chunking import (
    ChunkAssembler,
    MergeResult,
    PayloadKind,
    QRChunk,
    SignaturePayload,
    decode,
    encode,
    merge,
    split,
)
from stellar_multisig.features.fingerprint import (
    DetailedFingerprint,
    detailed_fingerprint,
    fingerprint,
)
from stellar_multisig.features.session import CoordinationSession, SessionState
from stellar_multisig.features.weights import (
    AccountConfiguration,
    CollectedSignature,
    OperationClass,
    Signer,
    SignerKind,
    ThresholdPolicy,
    WeightVerdict,
    available_signers,
    current_weight,
    is_satisfied,
    required_weight,
)

__version__ = "0.1.0"
__all__ = [
    "AccountConfiguration",
    "ChunkAssembler",
    "CollectedSignature",
    "CoordinationSession",
    "CoordinatorConfig",
    "DetailedFingerprint",
    "EnvelopeMismatchError",
    "IdentityMismatchError",
    "InvalidTransitionError",
    "MergeResult",
    "MultisigError",
    "NetworkSettings",
    "OperationClass",
    "ParseError",
    "PayloadKind",
    "PolicyViolationError",
    "QRChunk",
    "SessionState",
    "SignaturePayload",
    "Signer",
    "SignerKind",
    "SigningInProgressError",
    "SubmissionError",
    "ThresholdPolicy",
    "WeightVerdict",
    "available_signers",
    "current_weight",
    "decode",
    "detailed_fingerprint",
    "encode",
    "fingerprint",
    "get_network",
    "is_satisfied",
    "merge",
    "required_weight",
    "split",
]
