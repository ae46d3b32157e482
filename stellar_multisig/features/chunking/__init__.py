"""Air-gapped QR transport: chunking, rendering and scanning."""

from stellar_multisig.features.chunking.codec import (
    ChunkAssembler,
    MergeResult,
    PayloadKind,
    QRChunk,
    SignaturePayload,
    decode,
    encode,
    merge,
    merge_sessions,
    split,
)
from stellar_multisig.features.chunking.scanner import QRScanner, ScannedFrame

__all__ = [
    "ChunkAssembler",
    "MergeResult",
    "PayloadKind",
    "QRChunk",
    "QRScanner",
    "ScannedFrame",
    "SignaturePayload",
    "decode",
    "encode",
    "merge",
    "merge_sessions",
    "split",
]
