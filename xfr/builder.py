# Author: Bradley R. Kinnard
# transfer note construction
# cheap deterministic checks run first; no cryptography starts until the
# clear values are known to balance and fit the amount bound

import dataclasses
import hashlib
from collections import defaultdict
from typing import Sequence

from crypto.parameters import Parameters
from crypto.pedersen import check_amount
from crypto.rng import RandomSource
from crypto.signatures import XfrKeyPair
from utils.errors import ParameterError, UnbalancedTransferError, XfrError
from utils.helpers import get_logger
from xfr.memos import OwnerMemo, build_owner_memo
from xfr.mixer import MixEntry, prove_asset_mix, verify_asset_mix
from xfr.structs import (
    AssetRecord,
    AssetType,
    BlindAssetRecord,
    OwnerSignature,
    RecordType,
    TracingProof,
    XfrBody,
    XfrNote,
    XfrProofs,
    records_bytes,
)
from xfr.tracking import TracerMemo, TrackingPolicies, build_tracer_memo

logger = get_logger(__name__)


def note_context(params: Parameters, inputs, outputs) -> bytes:
    """every proof in a note is bound to this digest of its records."""
    digest = hashlib.sha512(records_bytes(inputs, outputs)).digest()
    return params.label("xfr-note") + digest


def check_preconditions(
    params: Parameters,
    inputs: Sequence[AssetRecord],
    outputs: Sequence[AssetRecord],
) -> None:
    """record counts, amount bounds and per-type balance, in the clear."""
    if not inputs or not outputs:
        raise ParameterError("a transfer needs at least one input and one output")
    if len(inputs) + len(outputs) > params.max_records:
        raise ParameterError(f"a transfer holds at most {params.max_records} records")

    totals: dict[AssetType, int] = defaultdict(int)
    for record in inputs:
        check_amount(params, record.amount)
        totals[record.asset_type] += record.amount
    for record in outputs:
        check_amount(params, record.amount)
        totals[record.asset_type] -= record.amount

    if len(totals) > params.max_asset_types:
        raise ParameterError(f"a transfer mixes at most {params.max_asset_types} asset types")
    for asset_type, diff in totals.items():
        if diff != 0:
            raise UnbalancedTransferError(
                f"asset type {asset_type}: inputs exceed outputs by {diff}",
                asset_type=asset_type,
            )

    for record in (*inputs, *outputs):
        for policy in record.policies:
            if policy.identity is not None and record.identity is None:
                raise XfrError("identity tracing requires the owner's credential")


def _blindings(rng: RandomSource, record: AssetRecord, is_input: bool) -> tuple[int, int]:
    """plaintext fields get blinding 0; inputs keep the blindings they were opened with."""
    amount_blinding = type_blinding = 0
    if record.record_type.confidential_amount:
        if is_input and record.amount_blinding is not None:
            amount_blinding = record.amount_blinding
        else:
            amount_blinding = rng.nonzero_scalar()
    if record.record_type.confidential_asset_type:
        if is_input and record.type_blinding is not None:
            type_blinding = record.type_blinding
        else:
            type_blinding = rng.nonzero_scalar()
    return amount_blinding, type_blinding


def blind_record(
    params: Parameters,
    record: AssetRecord,
    amount_blinding: int,
    type_blinding: int,
) -> BlindAssetRecord:
    record_type = record.record_type
    scalar = record.asset_type.as_scalar()
    return BlindAssetRecord(
        owner=record.owner,
        record_type=record_type,
        amount=None if record_type.confidential_amount else record.amount,
        amount_commitment=(
            params.pedersen(record.amount, amount_blinding).to_bytes()
            if record_type.confidential_amount else None
        ),
        asset_type=None if record_type.confidential_asset_type else record.asset_type,
        asset_type_commitment=(
            params.pedersen(scalar, type_blinding).to_bytes()
            if record_type.confidential_asset_type else None
        ),
    )


def _attach_policies(records: Sequence[AssetRecord], policies: TrackingPolicies) -> list[AssetRecord]:
    return [
        dataclasses.replace(r, policies=r.policies + policies.for_asset_type(r.asset_type))
        for r in records
    ]


def build_xfr_note(
    params: Parameters,
    rng: RandomSource,
    inputs: Sequence[AssetRecord],
    outputs: Sequence[AssetRecord],
    signing_keys: Sequence[XfrKeyPair],
    self_check: bool = True,
    policies: TrackingPolicies | None = None,
) -> XfrNote:
    """
    build and sign a transfer note.

    policies, when given, are attached to every record whose asset type they
    cover, after the record's own policies.

    raises ParameterError, RangeError or UnbalancedTransferError before any
    proof work, and XfrError when an input owner has no signing key.
    """
    if policies is not None:
        inputs = _attach_policies(inputs, policies)
        outputs = _attach_policies(outputs, policies)
    check_preconditions(params, inputs, outputs)

    keys = {key.public: key for key in signing_keys}
    owners = list(dict.fromkeys(record.owner for record in inputs))
    missing = [owner for owner in owners if owner not in keys]
    if missing:
        raise XfrError(f"no signing key for input owner {missing[0].hex()[:16]}")

    blindings = [_blindings(rng, r, True) for r in inputs]
    blindings += [_blindings(rng, r, False) for r in outputs]
    records = [*inputs, *outputs]
    blind = [blind_record(params, r, a, t) for r, (a, t) in zip(records, blindings)]
    blind_inputs = tuple(blind[:len(inputs)])
    blind_outputs = tuple(blind[len(inputs):])
    context = note_context(params, blind_inputs, blind_outputs)

    entries = [
        MixEntry(
            amount=r.amount,
            amount_blinding=a,
            asset_type=r.asset_type.as_scalar(),
            type_blinding=t,
            confidential_amount=r.record_type.confidential_amount,
        )
        for r, (a, t) in zip(records, blindings)
    ]
    publics = [e.public(params) for e in entries]

    tracer_memos: list[tuple[TracerMemo, ...]] = []
    tracing: list[tuple[TracingProof, ...]] = []
    for record, (a, t), public in zip(records, blindings, publics):
        memos, proofs = [], []
        for policy in record.policies:
            memo, proof = build_tracer_memo(
                params, rng, policy, record, a, t, public.amount, public.asset_type, context
            )
            memos.append(memo)
            proofs.append(proof)
        tracer_memos.append(tuple(memos))
        tracing.append(tuple(proofs))

    mix_proof = prove_asset_mix(
        params, rng, entries[:len(inputs)], entries[len(inputs):], context
    )
    if self_check:
        ok, reason = verify_asset_mix(
            params, publics[:len(inputs)], publics[len(inputs):], mix_proof, context
        )
        if not ok:
            raise XfrError(f"asset mix self-check failed: {reason}")

    owner_memos: list[OwnerMemo | None] = []
    for record, (a, t) in zip(outputs, blindings[len(inputs):]):
        if record.record_type is RecordType.NONCONFIDENTIAL:
            owner_memos.append(None)
        else:
            owner_memos.append(build_owner_memo(rng, record, a, t))

    has_tracing = any(tracer_memos)
    body = XfrBody(
        inputs=blind_inputs,
        outputs=blind_outputs,
        proofs=XfrProofs(asset_mix=mix_proof, tracing=tuple(tracing) if has_tracing else ()),
        tracer_memos=tuple(tracer_memos) if has_tracing else (),
        owner_memos=tuple(owner_memos),
    )

    message = body.to_bytes()
    signatures = tuple(
        OwnerSignature(public_key=owner, signature=keys[owner].sign(message))
        for owner in owners
    )
    logger.info(
        f"built xfr note: {len(inputs)} inputs, {len(outputs)} outputs, "
        f"{len(signatures)} owner signatures"
    )
    return XfrNote(body=body, signatures=signatures)
