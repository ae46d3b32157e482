"""Coordination session for one pending multisig transaction.

Online flow: build -> collect signatures -> submit. Air-gapped flow: share
the transaction as QR chunks, scan signature chunks back, and loop until
the threshold is met. The session owns the only mutable state in the
engine (current envelope and collected signatures); it is not meant to be
mutated by more than one caller at a time.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Callable

from stellar_multisig.config import DEFAULT_MAX_CHUNK_SIZE
from stellar_multisig.errors import (
    EnvelopeMismatchError,
    IdentityMismatchError,
    InvalidTransitionError,
    ParseError,
    SigningInProgressError,
)
from stellar_multisig.features.chunking.codec import (
    ChunkAssembler,
    MergeResult,
    PayloadKind,
    SignaturePayload,
    encode,
    generate_session_id,
    split,
)
from stellar_multisig.features.fingerprint.service import (
    DetailedFingerprint,
    ParsedEnvelope,
    classify_operations,
    detailed_fingerprint,
    parse_envelope,
)
from stellar_multisig.features.signatures.service import merge_signed_envelopes
from stellar_multisig.features.submission.service import Submitter
from stellar_multisig.features.weights.ledger import (
    AccountConfiguration,
    CollectedSignature,
    OperationClass,
    Signer,
    WeightVerdict,
    available_signers,
    evaluate,
    required_weight,
)
from stellar_multisig.features.weights.matching import signature_matches_signer
from stellar_multisig.shared.logging import get_logger

logger = get_logger(__name__)

SignFunction = Callable[[str], tuple[str, str]]


class SessionState(Enum):
    IDLE = "idle"
    BUILT = "built"
    COLLECTING = "collecting"
    SHARING = "sharing"
    SATISFIED = "satisfied"
    SUBMITTED = "submitted"


SIGNABLE_STATES = (SessionState.BUILT, SessionState.COLLECTING)
SHAREABLE_STATES = (SessionState.BUILT, SessionState.COLLECTING, SessionState.SHARING)


class CoordinationSession:
    def __init__(
        self,
        account: AccountConfiguration,
        network_passphrase: str,
        operation_class: OperationClass | None = None,
        max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE,
    ):
        if max_chunk_size < 1:
            raise ValueError("max_chunk_size must be at least 1")
        self.account = account
        self.network_passphrase = network_passphrase
        self.max_chunk_size = max_chunk_size
        self._operation_class_override = operation_class
        self._state = SessionState.IDLE
        self._envelope_xdr: str | None = None
        self._parsed: ParsedEnvelope | None = None
        self._signatures: list[CollectedSignature] = []
        self._signing_identity: str | None = None
        self._assembler = ChunkAssembler(PayloadKind.SIGNATURE)
        self._applied_sessions: set[str] = set()
        self._share_session_id: str | None = None
        self._shared_xdr: str | None = None
        self.submitted_hash: str | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def envelope_xdr(self) -> str | None:
        return self._envelope_xdr

    @property
    def signatures(self) -> tuple[CollectedSignature, ...]:
        return tuple(self._signatures)

    @property
    def is_signing(self) -> bool:
        return self._signing_identity is not None

    @property
    def operation_class(self) -> OperationClass:
        if self._operation_class_override is not None:
            return self._operation_class_override
        if self._parsed is None:
            return OperationClass.STANDARD
        return classify_operations(self._parsed.operations)

    def _transition(self, new_state: SessionState, action: str) -> None:
        if new_state == self._state:
            return
        logger.info(
            "Session %s -> %s (%s)", self._state.value, new_state.value, action
        )
        self._state = new_state

    def _require(self, allowed: tuple[SessionState, ...], action: str) -> None:
        if self._state not in allowed:
            raise InvalidTransitionError(state=self._state.value, action=action)

    def _clear(self) -> None:
        self._envelope_xdr = None
        self._parsed = None
        self._signatures = []
        self._signing_identity = None
        self._assembler.reset()
        self._applied_sessions.clear()
        self._share_session_id = None
        self._shared_xdr = None
        self.submitted_hash = None

    def reset(self) -> None:
        """Abandon the session and drop every collected signature."""
        self._clear()
        self._transition(SessionState.IDLE, "reset")

    def load_envelope(self, envelope_xdr: str) -> WeightVerdict:
        """Start a fresh session around a built or imported envelope.

        Raises :class:`ParseError` and keeps the current session if the
        envelope cannot be decoded or is a fee-bump. Fee-bump signatures only
        authorize the fee source; load the inner transaction instead.
        """
        parsed = parse_envelope(envelope_xdr, self.network_passphrase)
        if parsed.is_fee_bump:
            raise ParseError(
                source="envelope",
                message="fee-bump envelopes cannot be coordinated, load the inner transaction",
            )
        self._clear()
        self._envelope_xdr = envelope_xdr.strip()
        self._parsed = parsed
        self._transition(SessionState.BUILT, "load envelope")

        verdict = self.verdict()
        if verdict.satisfied:
            self._transition(SessionState.SATISFIED, "embedded signatures meet threshold")
        return verdict

    def verdict(self) -> WeightVerdict:
        if self._parsed is None:
            return WeightVerdict(
                current=0,
                required=required_weight(self.account.policy, self.operation_class),
            )
        return evaluate(
            self.account.signers,
            self._signatures,
            self._parsed.signatures,
            self.account.policy,
            self.operation_class,
            transaction_hash=self._parsed.hash_bytes,
        )

    def fingerprint(self) -> DetailedFingerprint:
        return detailed_fingerprint(self._envelope_xdr or "", self.network_passphrase)

    def available_signers(self) -> list[Signer]:
        return available_signers(self.account.signers, self.verdict().signed)

    def begin_signing(self, identity: str) -> None:
        if self.is_signing:
            raise SigningInProgressError(
                f"Already waiting for a signature from {self._signing_identity}"
            )
        self._require(SIGNABLE_STATES, "sign")
        if identity in self.verdict().signed:
            raise ValueError(f"{identity} has already signed this transaction")
        self._signing_identity = identity

    def abort_signing(self) -> None:
        self._signing_identity = None

    def complete_signing(
        self, signed_envelope_xdr: str, signed_by: str
    ) -> WeightVerdict:
        """Apply the device's answer to the in-flight signing operation.

        On any failure the collected signatures, envelope and state stay as
        they were.
        """
        if self._signing_identity is None:
            raise InvalidTransitionError(state=self._state.value, action="complete signing")

        expected = self._signing_identity
        self._signing_identity = None
        if signed_by != expected:
            logger.warning("Signer %s answered for selected %s", signed_by, expected)
            raise IdentityMismatchError(expected=expected, actual=signed_by)
        return self._apply_signature(signed_by, signed_envelope_xdr)

    def sign(self, identity: str, sign_function: SignFunction) -> WeightVerdict:
        """Run ``sign_function(envelope_xdr) -> (signed_xdr, signed_by)`` as one signing step."""
        self.begin_signing(identity)
        try:
            signed_xdr, signed_by = sign_function(self._envelope_xdr or "")
        except Exception:
            self.abort_signing()
            raise
        return self.complete_signing(signed_xdr, signed_by)

    def _apply_signature(
        self,
        signer_identity: str,
        signed_envelope_xdr: str,
        signed_at: datetime | None = None,
    ) -> WeightVerdict:
        if self._parsed is None or self._envelope_xdr is None:
            raise InvalidTransitionError(state=self._state.value, action="apply signature")

        signed = parse_envelope(signed_envelope_xdr, self.network_passphrase)
        if signed.hash_hex != self._parsed.hash_hex:
            raise EnvelopeMismatchError(
                expected_hash=self._parsed.hash_hex, actual_hash=signed.hash_hex
            )

        if not any(
            signature_matches_signer(sig, signer_identity, signed.hash_bytes)
            for sig in signed.signatures
        ):
            raise IdentityMismatchError(
                expected=signer_identity, actual="no valid signature in envelope"
            )

        merged = merge_signed_envelopes(
            self._envelope_xdr, [signed_envelope_xdr], self.network_passphrase
        )
        self._envelope_xdr = merged.envelope_xdr
        self._parsed = parse_envelope(merged.envelope_xdr, self.network_passphrase)
        if signed_at is None:
            self._signatures.append(CollectedSignature(signer_identity=signer_identity))
        else:
            self._signatures.append(
                CollectedSignature(signer_identity=signer_identity, signed_at=signed_at)
            )

        verdict = self.verdict()
        logger.info(
            "Signature from %s recorded: weight %d/%d",
            signer_identity,
            verdict.current,
            verdict.required,
        )
        if verdict.satisfied:
            self._transition(SessionState.SATISFIED, "threshold met")
        else:
            self._transition(SessionState.COLLECTING, "signature added")
        return verdict

    def share(self) -> list[str]:
        """Encoded transaction chunks to display to the offline signer."""
        self._require(SHAREABLE_STATES, "share")
        if self.is_signing:
            raise SigningInProgressError("Cannot share while a signature is pending")
        if self._envelope_xdr is None:
            raise InvalidTransitionError(state=self._state.value, action="share")

        if self._share_session_id is None or self._shared_xdr != self._envelope_xdr:
            self._share_session_id = generate_session_id()
            self._shared_xdr = self._envelope_xdr
        chunks = split(
            self._envelope_xdr,
            PayloadKind.TRANSACTION,
            self.max_chunk_size,
            session_id=self._share_session_id,
        )
        self._transition(SessionState.SHARING, "share")
        return [encode(chunk) for chunk in chunks]

    def stop_sharing(self) -> None:
        self._require((SessionState.SHARING,), "stop sharing")
        if self._signatures:
            self._transition(SessionState.COLLECTING, "stop sharing")
        else:
            self._transition(SessionState.BUILT, "stop sharing")

    def receive_frame(self, wire: str) -> MergeResult | None:
        """Feed one scanned frame from the offline signer.

        Returns the scan progress, or ``None`` when the frame was discarded.
        A completed signature payload is applied once. Errors from applying
        it propagate with the session unchanged, and a re-scan retries it.
        """
        self._require((SessionState.SHARING,), "receive signature frames")
        result = self._assembler.add(wire)
        if result is None or not result.complete:
            return result
        session_id = result.session_id or ""
        if session_id in self._applied_sessions:
            return result

        payload = SignaturePayload.from_json(result.payload)
        if payload is None:
            logger.warning("Scanned signature session %s is malformed", session_id)
            self._applied_sessions.add(session_id)
            return result
        if payload.signer_key in self.verdict().signed:
            logger.info("Signature from %s already collected", payload.signer_key)
            self._applied_sessions.add(session_id)
            return result

        self._apply_signature(
            payload.signer_key, payload.signed_envelope, payload.signed_at
        )
        self._applied_sessions.add(session_id)
        return result

    def submit(self, submitter: Submitter, network: str) -> str:
        self._require((SessionState.SATISFIED,), "submit")
        verdict = self.verdict()
        if not verdict.satisfied or self._envelope_xdr is None:
            raise InvalidTransitionError(state=self._state.value, action="submit")

        tx_hash = submitter.submit(self._envelope_xdr, network)
        self.submitted_hash = tx_hash
        self._transition(SessionState.SUBMITTED, "submit")
        return tx_hash
