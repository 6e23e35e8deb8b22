# Author: Bradley R. Kinnard
# asset mixing proof - multi-asset conservation over committed amounts and types
#
# every record i has an amount commitment A_i = g^a h^alpha and a type
# commitment T_i = g^tau h^beta. the prover commits to the k distinct types
# as G_j and shows:
#   membership  per record, T_i - G_j = h^delta for some j (1-of-k OR)
#   lanes       per record, A_i = sum_j L_ij where every L_ij either commits
#               to zero or sits in the lane whose G_j matches T_i (1-of-2 OR)
#   conservation per lane, sum_in L_ij - sum_out L_ij = h^Delta_j
#   range       every confidential output amount lies in [0, 2^amount_bits)
# with a single asset type the lanes collapse: one multi-commitment
# equality over all T_i plus one conservation proof.
# all sub-proofs answer the same Fiat-Shamir challenge.

from collections import defaultdict
from dataclasses import dataclass
from typing import Sequence

from algebra.groups import CURVE_ORDER, G1Element
from crypto.or_proofs import OrProof, OrProver, verify_or
from crypto.parameters import Parameters
from crypto.pedersen import check_amount, sum_commitments
from crypto.range_proof import RangeProof, RangeProver, absorb_range_proof, check_range
from crypto.rng import RandomSource
from crypto.sigma import LinearProver, chaum_pedersen_rows, ChaumPedersenStatement, check_linear
from crypto.transcript import Transcript
from utils.errors import ParameterError, UnbalancedTransferError
from utils.helpers import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MixEntry:
    """prover-side view of one record: openings of both commitments."""
    amount: int
    amount_blinding: int
    asset_type: int
    type_blinding: int
    confidential_amount: bool = True

    def public(self, params: Parameters) -> "MixCommitment":
        return MixCommitment(
            amount=params.pedersen(self.amount, self.amount_blinding),
            asset_type=params.pedersen(self.asset_type, self.type_blinding),
            plain_amount=None if self.confidential_amount else self.amount,
        )


@dataclass(frozen=True)
class MixCommitment:
    """verifier-side view of one record."""
    amount: G1Element
    asset_type: G1Element
    plain_amount: int | None = None


@dataclass(frozen=True)
class LinearResponse:
    """first message and responses of a linear proof under a shared challenge."""
    commitments: tuple[G1Element, ...]
    responses: tuple[int, ...]

    def to_bytes(self) -> bytes:
        out = bytearray()
        for c in self.commitments:
            out += c.to_bytes()
        for z in self.responses:
            out += z.to_bytes(32, "big")
        return bytes(out)


@dataclass(frozen=True)
class AssetMixProof:
    challenge: int
    group_commitments: tuple[G1Element, ...]
    membership: tuple[OrProof, ...]
    lanes: tuple[tuple[G1Element, ...], ...]
    lane_proofs: tuple[tuple[OrProof, ...], ...]
    type_equality: LinearResponse | None
    conservation: tuple[LinearResponse, ...]
    range_proofs: tuple[RangeProof | None, ...]

    @property
    def num_groups(self) -> int:
        return max(1, len(self.group_commitments))

    def to_bytes(self) -> bytes:
        out = bytearray(self.challenge.to_bytes(32, "big"))
        out += len(self.group_commitments).to_bytes(2, "big")
        for g in self.group_commitments:
            out += g.to_bytes()
        for p in self.membership:
            out += p.to_bytes()
        for row, proofs in zip(self.lanes, self.lane_proofs):
            for lane, proof in zip(row, proofs):
                out += lane.to_bytes() + proof.to_bytes()
        if self.type_equality is not None:
            out += self.type_equality.to_bytes()
        for c in self.conservation:
            out += c.to_bytes()
        for r in self.range_proofs:
            out += b"-" if r is None else b"+" + r.to_bytes()
        return bytes(out)


def _start_transcript(params, inputs, outputs, context) -> Transcript:
    transcript = Transcript(params.label("asset-mix"))
    transcript.append_int(b"bits", params.amount_bits)
    transcript.append_bytes(b"context", context)
    transcript.append_int(b"inputs", len(inputs))
    transcript.append_int(b"outputs", len(outputs))
    for record in (*inputs, *outputs):
        transcript.append_point(b"amount", record.amount)
        transcript.append_point(b"type", record.asset_type)
    return transcript


def _conservation_rows(params, lane_targets):
    return [[([(0, params.pc_h)], target)] for target in lane_targets]


def check_balance(inputs: Sequence[MixEntry], outputs: Sequence[MixEntry]) -> None:
    """clear-value precondition: per asset type, inputs sum to outputs."""
    totals: dict[int, int] = defaultdict(int)
    for entry in inputs:
        totals[entry.asset_type] += entry.amount
    for entry in outputs:
        totals[entry.asset_type] -= entry.amount
    for asset_type, diff in totals.items():
        if diff != 0:
            raise UnbalancedTransferError(
                f"inputs and outputs differ by {diff} for an asset type",
                asset_type=asset_type,
            )


def prove_asset_mix(
    params: Parameters,
    rng: RandomSource,
    inputs: Sequence[MixEntry],
    outputs: Sequence[MixEntry],
    context: bytes = b"",
) -> AssetMixProof:
    """
    prove conservation per asset type for committed records.

    raises UnbalancedTransferError or RangeError before any proof work.
    """
    if not inputs or not outputs:
        raise ParameterError("asset mix needs at least one input and one output")
    for entry in outputs:
        check_amount(params, entry.amount)
    check_balance(inputs, outputs)

    records = [*inputs, *outputs]
    n_in = len(inputs)
    public_in = [e.public(params) for e in inputs]
    public_out = [e.public(params) for e in outputs]
    transcript = _start_transcript(params, public_in, public_out, context)

    types = sorted({e.asset_type for e in records})
    # group order must not leak the type ordering
    order = sorted(range(len(types)), key=lambda _: rng.bytes(8))
    types = [types[i] for i in order]
    k = len(types)

    range_provers = [
        RangeProver(params, rng, e.amount, e.amount_blinding) if e.confidential_amount else None
        for e in outputs
    ]

    if k == 1:
        statement = ChaumPedersenStatement(tuple(r.asset_type for r in (*public_in, *public_out)))
        rows, _ = chaum_pedersen_rows(params, statement)
        type_prover = LinearProver(
            params, rng, rows, [types[0], *(e.type_blinding for e in records)]
        )
        delta = (
            sum(e.amount_blinding for e in inputs) - sum(e.amount_blinding for e in outputs)
        ) % CURVE_ORDER
        target = sum_commitments(r.amount for r in public_in) - sum_commitments(r.amount for r in public_out)
        conservation = [LinearProver(params, rng, _conservation_rows(params, [target])[0], [delta])]

        transcript.append_points(b"type-equality", type_prover.commitments)
        transcript.append_points(b"conservation", conservation[0].commitments)
        for prover in range_provers:
            if prover is not None:
                prover.absorb(transcript)
        challenge = transcript.challenge_scalar(b"e")

        proof = AssetMixProof(
            challenge=challenge,
            group_commitments=(),
            membership=(),
            lanes=(),
            lane_proofs=(),
            type_equality=LinearResponse(type_prover.commitments, type_prover.respond(challenge)),
            conservation=(LinearResponse(conservation[0].commitments, conservation[0].respond(challenge)),),
            range_proofs=tuple(p.respond(challenge) if p else None for p in range_provers),
        )
        logger.debug(f"generated single-type asset mix proof ({len(records)} records)")
        return proof

    group_blindings = rng.scalars(k)
    groups = [params.pedersen(t, b) for t, b in zip(types, group_blindings)]
    slot = {t: j for j, t in enumerate(types)}

    membership = []
    lanes = []
    lane_provers = []
    lane_blindings = []
    for entry, public in zip(records, (*public_in, *public_out)):
        j_star = slot[entry.asset_type]
        diffs = [public.asset_type - g for g in groups]
        delta = (entry.type_blinding - group_blindings[j_star]) % CURVE_ORDER
        membership.append(OrProver(params, rng, params.pc_h, diffs, j_star, delta))

        blindings = [0] * k
        row = [None] * k
        for j in range(k):
            if j != j_star:
                blindings[j] = rng.scalar()
                row[j] = params.mul_h(blindings[j])
        blindings[j_star] = (entry.amount_blinding - sum(blindings)) % CURVE_ORDER
        row[j_star] = params.pedersen(entry.amount, blindings[j_star])

        provers = []
        for j in range(k):
            targets = [row[j], diffs[j]]
            if j == j_star:
                provers.append(OrProver(params, rng, params.pc_h, targets, 1, delta))
            else:
                provers.append(OrProver(params, rng, params.pc_h, targets, 0, blindings[j]))
        lanes.append(tuple(row))
        lane_provers.append(provers)
        lane_blindings.append(blindings)

    conservation = []
    for j in range(k):
        target = sum_commitments(lanes[i][j] for i in range(n_in))
        target = target - sum_commitments(lanes[i][j] for i in range(n_in, len(records)))
        delta = (
            sum(lane_blindings[i][j] for i in range(n_in))
            - sum(lane_blindings[i][j] for i in range(n_in, len(records)))
        ) % CURVE_ORDER
        conservation.append(
            LinearProver(params, rng, _conservation_rows(params, [target])[0], [delta])
        )

    transcript.append_points(b"groups", groups)
    for prover in membership:
        transcript.append_points(b"membership", prover.commitments)
    for row, provers in zip(lanes, lane_provers):
        transcript.append_points(b"lanes", row)
        for prover in provers:
            transcript.append_points(b"lane-or", prover.commitments)
    for prover in conservation:
        transcript.append_points(b"conservation", prover.commitments)
    for prover in range_provers:
        if prover is not None:
            prover.absorb(transcript)
    challenge = transcript.challenge_scalar(b"e")

    proof = AssetMixProof(
        challenge=challenge,
        group_commitments=tuple(groups),
        membership=tuple(p.respond(challenge) for p in membership),
        lanes=tuple(lanes),
        lane_proofs=tuple(tuple(p.respond(challenge) for p in provers) for provers in lane_provers),
        type_equality=None,
        conservation=tuple(LinearResponse(p.commitments, p.respond(challenge)) for p in conservation),
        range_proofs=tuple(p.respond(challenge) if p else None for p in range_provers),
    )
    logger.debug(f"generated asset mix proof ({len(records)} records, {k} asset types)")
    return proof


def _check_plain_and_ranges(params, outputs, proof) -> tuple[bool, str]:
    if len(proof.range_proofs) != len(outputs):
        return False, "one range slot per output required"
    for i, (record, range_proof) in enumerate(zip(outputs, proof.range_proofs)):
        if record.plain_amount is not None:
            if range_proof is not None:
                return False, f"output {i}: range proof on a plaintext amount"
            if not 0 <= record.plain_amount < params.amount_bound:
                return False, f"output {i}: plaintext amount out of range"
        elif range_proof is None:
            return False, f"output {i}: missing range proof"
    return True, "valid"


def verify_asset_mix(
    params: Parameters,
    inputs: Sequence[MixCommitment],
    outputs: Sequence[MixCommitment],
    proof: AssetMixProof,
    context: bytes = b"",
) -> tuple[bool, str]:
    """accept only if every sub-proof verifies under the shared challenge."""
    ok, reason = _verify(params, inputs, outputs, proof, context)
    if not ok:
        logger.warning(f"asset mix proof rejected: {reason}")
    return ok, reason


def _verify(params, inputs, outputs, proof, context) -> tuple[bool, str]:
    if not isinstance(proof, AssetMixProof):
        return False, "not an asset mix proof"
    if not inputs or not outputs:
        return False, "asset mix needs at least one input and one output"
    ok, reason = _check_plain_and_ranges(params, outputs, proof)
    if not ok:
        return False, reason

    records = [*inputs, *outputs]
    n_in = len(inputs)
    transcript = _start_transcript(params, inputs, outputs, context)

    if not proof.group_commitments:
        if proof.type_equality is None or len(proof.conservation) != 1:
            return False, "single-type proof is incomplete"
        if proof.membership or proof.lanes or proof.lane_proofs:
            return False, "single-type proof carries lane data"
        transcript.append_points(b"type-equality", proof.type_equality.commitments)
        transcript.append_points(b"conservation", proof.conservation[0].commitments)
        for range_proof in proof.range_proofs:
            if range_proof is not None:
                absorb_range_proof(transcript, range_proof)
        if transcript.challenge_scalar(b"e") != proof.challenge:
            return False, "challenge mismatch (possible tampering)"

        statement = ChaumPedersenStatement(tuple(r.asset_type for r in records))
        rows, num_vars = chaum_pedersen_rows(params, statement)
        ok, reason = check_linear(
            params, rows, num_vars, proof.type_equality.commitments,
            proof.challenge, proof.type_equality.responses,
        )
        if not ok:
            return False, f"asset types differ: {reason}"

        target = sum_commitments(r.amount for r in inputs) - sum_commitments(r.amount for r in outputs)
        rows = _conservation_rows(params, [target])[0]
        ok, reason = check_linear(
            params, rows, 1, proof.conservation[0].commitments,
            proof.challenge, proof.conservation[0].responses,
        )
        if not ok:
            return False, f"conservation: {reason}"
        return _check_output_ranges(params, outputs, proof)

    k = len(proof.group_commitments)
    if k > params.max_asset_types:
        return False, f"more than {params.max_asset_types} asset groups"
    if proof.type_equality is not None:
        return False, "multi-type proof carries a type equality proof"
    if not (len(proof.membership) == len(proof.lanes) == len(proof.lane_proofs) == len(records)):
        return False, "one membership and lane set per record required"
    if len(proof.conservation) != k:
        return False, "one conservation proof per asset group required"
    for row, proofs in zip(proof.lanes, proof.lane_proofs):
        if len(row) != k or len(proofs) != k:
            return False, "lane row does not match the asset group count"
        if not all(isinstance(lane, G1Element) for lane in row):
            return False, "lane is not a G1 element"
    if not all(isinstance(g, G1Element) for g in proof.group_commitments):
        return False, "group commitment is not a G1 element"

    transcript.append_points(b"groups", proof.group_commitments)
    for or_proof in proof.membership:
        transcript.append_points(b"membership", or_proof.commitments)
    for row, proofs in zip(proof.lanes, proof.lane_proofs):
        transcript.append_points(b"lanes", row)
        for or_proof in proofs:
            transcript.append_points(b"lane-or", or_proof.commitments)
    for response in proof.conservation:
        transcript.append_points(b"conservation", response.commitments)
    for range_proof in proof.range_proofs:
        if range_proof is not None:
            absorb_range_proof(transcript, range_proof)
    challenge = transcript.challenge_scalar(b"e")
    if challenge != proof.challenge:
        return False, "challenge mismatch (possible tampering)"

    h = params.pc_h
    for i, record in enumerate(records):
        diffs = [record.asset_type - g for g in proof.group_commitments]
        ok, reason = verify_or(params, h, diffs, proof.membership[i], challenge)
        if not ok:
            return False, f"record {i} membership: {reason}"
        if sum_commitments(proof.lanes[i]) != record.amount:
            return False, f"record {i}: lanes do not sum to the amount commitment"
        for j in range(k):
            ok, reason = verify_or(
                params, h, [proof.lanes[i][j], diffs[j]], proof.lane_proofs[i][j], challenge
            )
            if not ok:
                return False, f"record {i} lane {j}: {reason}"

    for j in range(k):
        target = sum_commitments(proof.lanes[i][j] for i in range(n_in))
        target = target - sum_commitments(proof.lanes[i][j] for i in range(n_in, len(records)))
        rows = _conservation_rows(params, [target])[0]
        ok, reason = check_linear(
            params, rows, 1, proof.conservation[j].commitments,
            challenge, proof.conservation[j].responses,
        )
        if not ok:
            return False, f"lane {j} conservation: {reason}"

    return _check_output_ranges(params, outputs, proof)


def _check_output_ranges(params, outputs, proof) -> tuple[bool, str]:
    for i, (record, range_proof) in enumerate(zip(outputs, proof.range_proofs)):
        if range_proof is None:
            continue
        ok, reason = check_range(params, record.amount, range_proof, proof.challenge)
        if not ok:
            return False, f"output {i} range: {reason}"
    return True, "valid"
