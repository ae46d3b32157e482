"""Chunking of payloads for multi-frame QR transport.

A payload larger than one QR code is split into self-describing chunks that
share a session id. Scans arrive out of order and repeat, so reassembly is
order-independent and idempotent. The wire format is a JSON object
``{"id", "part", "total", "data", "type"}`` and must stay stable between
independently run coordinator and signer instances.
"""

from __future__ import annotations

import json
import secrets
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable

from stellar_multisig.config import DEFAULT_MAX_CHUNK_SIZE
from stellar_multisig.shared.logging import get_logger

logger = get_logger(__name__)

SESSION_ID_LENGTH = 6
SESSION_ID_ALPHABET = string.ascii_uppercase + string.digits


class PayloadKind(Enum):
    TRANSACTION = "xdr"
    SIGNATURE = "signature"


@dataclass(frozen=True)
class QRChunk:
    session_id: str
    part_index: int
    total_parts: int
    payload_slice: str
    payload_kind: PayloadKind

    def to_wire(self) -> dict[str, Any]:
        return {
            "id": self.session_id,
            "part": self.part_index,
            "total": self.total_parts,
            "data": self.payload_slice,
            "type": self.payload_kind.value,
        }


@dataclass(frozen=True)
class MergeResult:
    payload: str
    kind: PayloadKind | None
    complete: bool
    session_id: str | None = None
    received_parts: int = 0
    total_parts: int = 0

    @property
    def progress(self) -> float:
        if self.total_parts == 0:
            return 0.0
        return self.received_parts / self.total_parts


EMPTY_MERGE = MergeResult(payload="", kind=None, complete=False)


def generate_session_id() -> str:
    return "".join(
        secrets.choice(SESSION_ID_ALPHABET) for _ in range(SESSION_ID_LENGTH)
    )


def split(
    payload: str,
    kind: PayloadKind,
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    session_id: str | None = None,
) -> list[QRChunk]:
    """Partition ``payload`` into contiguous chunks of at most ``max_chunk_size``.

    An empty payload still produces one (empty) chunk.
    """
    if max_chunk_size < 1:
        raise ValueError("max_chunk_size must be at least 1")

    chunk_id = session_id or generate_session_id()
    slices = [
        payload[position : position + max_chunk_size]
        for position in range(0, len(payload), max_chunk_size)
    ] or [""]

    total = len(slices)
    return [
        QRChunk(
            session_id=chunk_id,
            part_index=index,
            total_parts=total,
            payload_slice=data,
            payload_kind=kind,
        )
        for index, data in enumerate(slices, start=1)
    ]


def encode(chunk: QRChunk) -> str:
    return json.dumps(chunk.to_wire(), separators=(",", ":"))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def decode(wire: str) -> QRChunk | None:
    """Parse a scanned frame; ``None`` for anything that is not a valid chunk."""
    if not wire:
        return None

    try:
        parsed = json.loads(wire)
    except (json.JSONDecodeError, TypeError):
        logger.debug("Discarding non-JSON QR frame")
        return None

    if not isinstance(parsed, dict):
        return None

    chunk_id = parsed.get("id")
    part = parsed.get("part")
    total = parsed.get("total")
    data = parsed.get("data")
    raw_type = parsed.get("type")

    if not isinstance(chunk_id, str) or not chunk_id.strip():
        return None
    if not _is_int(part) or not _is_int(total):
        return None
    if not isinstance(data, str):
        return None
    if total < 1 or not 1 <= part <= total:
        return None

    try:
        kind = PayloadKind(raw_type)
    except ValueError:
        return None

    return QRChunk(
        session_id=chunk_id,
        part_index=part,
        total_parts=total,
        payload_slice=data,
        payload_kind=kind,
    )


def _merge_group(session_id: str, chunks: list[QRChunk]) -> MergeResult:
    first = chunks[0]
    total = first.total_parts
    kind = first.payload_kind

    parts: dict[int, str] = {}
    for chunk in chunks:
        if chunk.total_parts != total or chunk.payload_kind != kind:
            logger.warning(
                "Ignoring inconsistent chunk %d for session %s",
                chunk.part_index,
                session_id,
            )
            continue
        parts[chunk.part_index] = chunk.payload_slice

    complete = all(index in parts for index in range(1, total + 1))

    payload = ""
    for index in range(1, total + 1):
        if index not in parts:
            break
        payload += parts[index]

    return MergeResult(
        payload=payload,
        kind=kind,
        complete=complete,
        session_id=session_id,
        received_parts=len(parts),
        total_parts=total,
    )


def _group_by_session(chunks: Iterable[QRChunk]) -> dict[str, list[QRChunk]]:
    groups: dict[str, list[QRChunk]] = {}
    for chunk in chunks:
        groups.setdefault(chunk.session_id, []).append(chunk)
    return groups


def merge(chunks: Iterable[QRChunk], session_id: str | None = None) -> MergeResult:
    """Reassemble one session's chunks.

    Without ``session_id`` the session of the first chunk is used. Callers
    must check ``complete`` before consuming ``payload``; an incomplete
    payload is the contiguous prefix received so far, for progress display.
    """
    chunk_list = list(chunks)
    if not chunk_list:
        return EMPTY_MERGE

    target = session_id or chunk_list[0].session_id
    group = _group_by_session(chunk_list).get(target)
    if not group:
        return MergeResult(payload="", kind=None, complete=False, session_id=target)
    return _merge_group(target, group)


def merge_sessions(chunks: Iterable[QRChunk]) -> dict[str, MergeResult]:
    return {
        session: _merge_group(session, group)
        for session, group in _group_by_session(chunks).items()
    }


class ChunkAssembler:
    """Accumulates scanned frames across sessions until one completes."""

    def __init__(self, expected_kind: PayloadKind | None = None):
        self.expected_kind = expected_kind
        self._sessions: dict[str, dict[int, QRChunk]] = {}
        self._completed: dict[str, MergeResult] = {}

    def add(self, wire: str) -> MergeResult | None:
        """Feed one frame; returns the session's merge state or ``None`` if discarded."""
        chunk = decode(wire)
        if chunk is None:
            logger.debug("Discarding invalid QR frame")
            return None
        return self.add_chunk(chunk)

    def add_chunk(self, chunk: QRChunk) -> MergeResult | None:
        if self.expected_kind is not None and chunk.payload_kind != self.expected_kind:
            logger.info(
                "Expected %s chunk but scanned %s",
                self.expected_kind.value,
                chunk.payload_kind.value,
            )
            return None

        if chunk.session_id in self._completed:
            return self._completed[chunk.session_id]

        session = self._sessions.setdefault(chunk.session_id, {})
        session[chunk.part_index] = chunk

        result = _merge_group(chunk.session_id, list(session.values()))
        if result.complete:
            self._completed[chunk.session_id] = result
            del self._sessions[chunk.session_id]
            logger.info(
                "QR session %s complete (%d parts)",
                chunk.session_id,
                result.total_parts,
            )
        return result

    def completed(self) -> list[MergeResult]:
        return list(self._completed.values())

    def pending_sessions(self) -> list[str]:
        return list(self._sessions)

    def reset(self) -> None:
        self._sessions.clear()
        self._completed.clear()


@dataclass(frozen=True)
class SignaturePayload:
    """Body transported under ``type="signature"``: a device's signed envelope."""

    signer_key: str
    signed_envelope: str
    signed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        return json.dumps(
            {
                "signerKey": self.signer_key,
                "signature": self.signed_envelope,
                "signedAt": int(self.signed_at.timestamp() * 1000),
            },
            separators=(",", ":"),
        )

    @classmethod
    def from_json(cls, data: str) -> "SignaturePayload | None":
        try:
            parsed = json.loads(data)
        except (json.JSONDecodeError, TypeError):
            return None

        if not isinstance(parsed, dict):
            return None

        signer_key = parsed.get("signerKey")
        signed_envelope = parsed.get("signature")
        signed_at = parsed.get("signedAt")
        if not isinstance(signer_key, str) or not signer_key:
            return None
        if not isinstance(signed_envelope, str) or not signed_envelope:
            return None

        if _is_int(signed_at):
            try:
                timestamp = datetime.fromtimestamp(signed_at / 1000, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                timestamp = datetime.now(timezone.utc)
        else:
            timestamp = datetime.now(timezone.utc)

        return cls(
            signer_key=signer_key,
            signed_envelope=signed_envelope,
            signed_at=timestamp,
        )
