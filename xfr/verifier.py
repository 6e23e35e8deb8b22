# Author: Bradley R. Kinnard
# transfer note verification - single note reference path and a batched path
#
# order: structure, record decoding, tracing proofs, identity pairings,
# asset mix, owner signatures. the first failure is reported.

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Sequence

from crypto.credentials import PairingCheck, check_pairings
from crypto.parameters import Parameters
from crypto.rng import RandomSource
from crypto.signatures import verify_signature
from utils.errors import (
    InvalidProofEncoding,
    ProofVerificationFailure,
    SignatureVerificationFailure,
    XfrError,
)
from utils.helpers import get_logger
from xfr.builder import note_context
from xfr.mixer import AssetMixProof, MixCommitment, verify_asset_mix
from xfr.structs import BlindAssetRecord, XfrNote
from xfr.tracking import NotePolicies, verify_tracing

logger = get_logger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """
    outcome of verifying one note.

    error is the ProofVerificationFailure / SignatureVerificationFailure
    behind a rejection, None when valid.
    """
    valid: bool
    reason: str = "valid"
    error: XfrError | None = None

    def __bool__(self) -> bool:
        return self.valid

    def raise_for_failure(self) -> None:
        if self.error is not None:
            raise self.error

    @classmethod
    def failure(cls, error: XfrError) -> "VerificationResult":
        logger.warning(f"xfr note rejected: {error}")
        return cls(valid=False, reason=str(error), error=error)


VALID = VerificationResult(valid=True)


def _mix_commitment(params: Parameters, record: BlindAssetRecord) -> MixCommitment:
    return MixCommitment(
        amount=record.amount_point(params),
        asset_type=record.asset_type_point(params),
        plain_amount=None if record.record_type.confidential_amount else record.amount,
    )


def _check_structure(params: Parameters, note: XfrNote) -> ProofVerificationFailure | None:
    body = note.body
    n_in, n_out = len(body.inputs), len(body.outputs)
    if n_in == 0 or n_out == 0:
        return ProofVerificationFailure("structure", reason="note needs inputs and outputs")
    if n_in + n_out > params.max_records:
        return ProofVerificationFailure("structure", reason="too many records")
    if not isinstance(body.proofs.asset_mix, AssetMixProof):
        return ProofVerificationFailure("structure", reason="missing asset mix proof")
    if len(body.tracer_memos) not in (0, n_in + n_out):
        return ProofVerificationFailure("structure", reason="tracer memos do not align with records")
    if len(body.proofs.tracing) != len(body.tracer_memos):
        return ProofVerificationFailure("structure", reason="tracing proofs do not align with memos")
    for i, (memos, proofs) in enumerate(zip(body.tracer_memos, body.proofs.tracing)):
        if len(memos) != len(proofs):
            return ProofVerificationFailure("asset_tracing", i, "one proof per tracer memo required")
    if len(body.owner_memos) not in (0, n_out):
        return ProofVerificationFailure("structure", reason="owner memos do not align with outputs")
    return None


def _check_note(
    params: Parameters,
    note: XfrNote,
    policies: NotePolicies | None,
    defer_pairings: bool,
) -> tuple[XfrError | None, list[PairingCheck]]:
    failure = _check_structure(params, note)
    if failure is not None:
        return failure, []

    body = note.body
    records = body.records
    commitments = []
    for i, record in enumerate(records):
        # policy checks below trust record_type, so it must match the fields
        shape = record.shape_error()
        if shape is not None:
            return ProofVerificationFailure("record", i, shape), []
        try:
            mix = _mix_commitment(params, record)
        except InvalidProofEncoding as e:
            failure = ProofVerificationFailure("record", i, str(e))
            failure.__cause__ = e
            return failure, []
        if mix.plain_amount is not None and not 0 <= mix.plain_amount < params.amount_bound:
            return ProofVerificationFailure("record", i, "plaintext amount out of range"), []
        commitments.append(mix)

    context = note_context(params, body.inputs, body.outputs)

    if policies is not None:
        expected = policies.records
        if len(expected) != len(records):
            return ProofVerificationFailure("asset_tracing", reason="policy count does not match records"), []
        for i, record_policies in enumerate(expected):
            attached = body.tracer_memos[i] if body.tracer_memos else ()
            if len(attached) != len(record_policies):
                return ProofVerificationFailure(
                    "asset_tracing", i, f"expected {len(record_policies)} tracer memos, got {len(attached)}"
                ), []

    pairing_checks: list[PairingCheck] = []
    for i, (memos, proofs) in enumerate(zip(body.tracer_memos, body.proofs.tracing)):
        for j, (memo, proof) in enumerate(zip(memos, proofs)):
            policy = policies.records[i][j] if policies is not None else None
            ok, reason, checks = verify_tracing(
                params, records[i], memo, proof,
                commitments[i].amount, commitments[i].asset_type, context, policy,
            )
            if not ok:
                return ProofVerificationFailure("asset_tracing", i, reason), pairing_checks
            if not defer_pairings:
                for check in checks:
                    if not check_pairings(params, [check]):
                        return ProofVerificationFailure(
                            "identity_tracing", i, "pairing equation failed"
                        ), []
            pairing_checks.extend(checks)

    n_in = len(body.inputs)
    ok, reason = verify_asset_mix(
        params, commitments[:n_in], commitments[n_in:], body.proofs.asset_mix, context
    )
    if not ok:
        return ProofVerificationFailure("asset_mix", reason=reason), pairing_checks

    failure = _check_signatures(note)
    return failure, pairing_checks


def _check_signatures(note: XfrNote) -> SignatureVerificationFailure | None:
    owners = list(dict.fromkeys(record.owner for record in note.body.inputs))
    by_owner = {}
    for sig in note.signatures:
        if sig.public_key not in owners:
            return SignatureVerificationFailure(sig.public_key.to_bytes(), "signer owns no input")
        if sig.public_key in by_owner:
            return SignatureVerificationFailure(sig.public_key.to_bytes(), "duplicate signature")
        by_owner[sig.public_key] = sig.signature

    message = note.body.to_bytes()
    for owner in owners:
        signature = by_owner.get(owner)
        if signature is None:
            return SignatureVerificationFailure(owner.to_bytes(), "missing signature")
        if not verify_signature(owner, message, signature):
            return SignatureVerificationFailure(owner.to_bytes())
    return None


def verify_xfr_note(
    params: Parameters,
    note: XfrNote,
    policies: NotePolicies | None = None,
) -> VerificationResult:
    """
    verify every proof and signature of a note.

    never valid unless every check passed; malformed content is a rejection
    with a decodable error, not an exception.
    """
    failure, _ = _check_note(params, note, policies, defer_pairings=False)
    if failure is not None:
        return VerificationResult.failure(failure)
    logger.debug("xfr note verified")
    return VALID


def batch_verify_xfr_notes(
    params: Parameters,
    notes: Sequence[XfrNote],
    rng: RandomSource,
    policies: Sequence[NotePolicies | None] | None = None,
    max_workers: int | None = None,
) -> list[VerificationResult]:
    """
    verify many notes; same results as calling verify_xfr_note on each.

    non-pairing checks run per note in a thread pool. identity pairing
    equations of every surviving note are merged into one multi-pairing;
    if that fails, the notes involved are re-verified one by one.
    """
    if policies is None:
        policies = [None] * len(notes)
    if len(policies) != len(notes):
        raise ValueError("one policy entry per note required")

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        outcomes = list(pool.map(
            lambda pair: _check_note(params, pair[0], pair[1], defer_pairings=True),
            zip(notes, policies),
        ))

    results: list[VerificationResult | None] = [None] * len(notes)
    pending: list[int] = []
    batched: list[PairingCheck] = []
    for i, (failure, checks) in enumerate(outcomes):
        if failure is None:
            if checks:
                pending.append(i)
                batched.extend(checks)
            else:
                results[i] = VALID
        elif checks:
            # failure after an unevaluated pairing: the reference path decides which one wins
            results[i] = verify_xfr_note(params, notes[i], policies[i])
        else:
            results[i] = VerificationResult.failure(failure)

    if pending:
        if check_pairings(params, batched, rng if len(batched) > 1 else None):
            for i in pending:
                results[i] = VALID
        else:
            logger.warning("batched pairing check failed, falling back to per-note verification")
            for i in pending:
                results[i] = verify_xfr_note(params, notes[i], policies[i])

    logger.info(
        f"batch verified {len(notes)} notes: {sum(1 for r in results if r.valid)} valid"
    )
    return results
