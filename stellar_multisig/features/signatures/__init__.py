"""Signature extraction and merging for pending envelopes."""

from stellar_multisig.features.signatures.service import (
    SignatureMergeResult,
    extract_embedded_signatures,
    merge_signed_envelopes,
)

__all__ = [
    "SignatureMergeResult",
    "extract_embedded_signatures",
    "merge_signed_envelopes",
]
