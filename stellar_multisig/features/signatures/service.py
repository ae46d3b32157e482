"""Merge signatures returned by independent signing devices into one envelope."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from stellar_sdk import TransactionBuilder

from stellar_multisig.errors import ParseError
from stellar_multisig.features.fingerprint.service import parse_envelope
from stellar_multisig.features.weights.ledger import EmbeddedSignature
from stellar_multisig.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SignatureMergeResult:
    envelope_xdr: str
    added: int = 0
    skipped: int = 0


def extract_embedded_signatures(
    envelope_xdr: str, network_passphrase: str
) -> list[EmbeddedSignature]:
    try:
        return list(parse_envelope(envelope_xdr, network_passphrase).signatures)
    except ParseError as e:
        logger.debug("No embedded signatures readable: %s", e)
        return []


def merge_signed_envelopes(
    base_xdr: str,
    signed_xdrs: Iterable[str],
    network_passphrase: str,
) -> SignatureMergeResult:
    """Append signatures from ``signed_xdrs`` that the base envelope lacks.

    Signed envelopes for a different transaction, or that cannot be
    decoded, are skipped. Raises :class:`ParseError` if the base is malformed.
    """
    base = parse_envelope(base_xdr, network_passphrase)
    envelope = TransactionBuilder.from_xdr(base_xdr.strip(), network_passphrase)
    known = {bytes(sig.signature) for sig in envelope.signatures}

    added = 0
    skipped = 0
    for signed_xdr in signed_xdrs:
        try:
            signed = parse_envelope(signed_xdr, network_passphrase)
        except ParseError as e:
            logger.warning("Skipping undecodable signed envelope: %s", e)
            skipped += 1
            continue

        if signed.hash_hex != base.hash_hex:
            logger.warning(
                "Skipping signed envelope for %s, pending transaction is %s",
                signed.hash_hex,
                base.hash_hex,
            )
            skipped += 1
            continue

        signed_envelope = TransactionBuilder.from_xdr(signed_xdr.strip(), network_passphrase)
        for decorated in signed_envelope.signatures:
            raw = bytes(decorated.signature)
            if raw in known:
                continue
            known.add(raw)
            envelope.signatures.append(decorated)
            added += 1

    merged_xdr = envelope.to_xdr() if added else base_xdr.strip()
    return SignatureMergeResult(envelope_xdr=merged_xdr, added=added, skipped=skipped)
