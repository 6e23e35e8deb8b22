# Author: Bradley R. Kinnard
# bit-decomposition range proof for a Pedersen commitment
#
# C = g^a h^r with 0 <= a < 2^n is shown by committing to every bit,
#   C_i = g^{b_i} h^{r_i},   sum_i 2^i r_i = r
# so that sum_i 2^i C_i = C, and proving each C_i opens to 0 or 1 with a
# 1-of-2 OR-proof over the targets [C_i, C_i - g] w.r.t. h.

from dataclasses import dataclass

from algebra.groups import CURVE_ORDER, G1Element, scalar_inv
from crypto.or_proofs import OrProof, OrProver, verify_or
from crypto.parameters import Parameters
from crypto.pedersen import check_amount
from crypto.rng import RandomSource
from crypto.transcript import Transcript
from utils.helpers import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RangeProof:
    bit_commitments: tuple[G1Element, ...]
    bit_proofs: tuple[OrProof, ...]

    def to_bytes(self) -> bytes:
        out = bytearray(len(self.bit_commitments).to_bytes(2, "big"))
        for c in self.bit_commitments:
            out += c.to_bytes()
        for p in self.bit_proofs:
            out += p.to_bytes()
        return bytes(out)


@dataclass(frozen=True)
class StandaloneRangeProof:
    """range proof carrying its own Fiat-Shamir challenge."""
    proof: RangeProof
    challenge: int


def _bit_targets(params: Parameters, bit_commitment: G1Element) -> list[G1Element]:
    return [bit_commitment, bit_commitment - params.pc_g]


class RangeProver:
    """
    commit phase of a range proof. absorb() feeds the first messages into a
    transcript, respond() completes the proof for the resulting challenge.
    """

    def __init__(self, params: Parameters, rng: RandomSource, value: int, blinding: int):
        check_amount(params, value)
        n = params.amount_bits
        bits = [(value >> i) & 1 for i in range(n)]

        blindings = rng.scalars(n - 1)
        partial = sum((r << i) for i, r in enumerate(blindings)) % CURVE_ORDER
        last = (blinding - partial) * scalar_inv(1 << (n - 1)) % CURVE_ORDER
        blindings.append(last)

        self.bit_commitments = tuple(
            params.pedersen(b, r) for b, r in zip(bits, blindings)
        )
        self._provers = [
            OrProver(params, rng, params.pc_h, _bit_targets(params, c), b, r)
            for c, b, r in zip(self.bit_commitments, bits, blindings)
        ]

    def absorb(self, transcript: Transcript) -> None:
        transcript.append_points(b"range-bits", self.bit_commitments)
        for prover in self._provers:
            transcript.append_points(b"range-or", prover.commitments)

    def respond(self, challenge: int) -> RangeProof:
        return RangeProof(
            bit_commitments=self.bit_commitments,
            bit_proofs=tuple(p.respond(challenge) for p in self._provers),
        )


def absorb_range_proof(transcript: Transcript, proof: RangeProof) -> None:
    """verifier-side mirror of RangeProver.absorb."""
    transcript.append_points(b"range-bits", proof.bit_commitments)
    for bit_proof in proof.bit_proofs:
        transcript.append_points(b"range-or", bit_proof.commitments)


def check_range(
    params: Parameters,
    commitment: G1Element,
    proof: RangeProof,
    challenge: int,
) -> tuple[bool, str]:
    """verification equations for a range proof under a given challenge."""
    n = params.amount_bits
    if len(proof.bit_commitments) != n or len(proof.bit_proofs) != n:
        return False, f"range proof must cover exactly {n} bits"
    if not all(isinstance(c, G1Element) for c in proof.bit_commitments):
        return False, "bit commitment is not a G1 element"

    # horner: sum 2^i C_i
    acc = G1Element.identity()
    for c in reversed(proof.bit_commitments):
        acc = acc.double() + c
    if acc != commitment:
        return False, "bit commitments do not recombine to the amount commitment"

    for i, (c, bit_proof) in enumerate(zip(proof.bit_commitments, proof.bit_proofs)):
        ok, reason = verify_or(params, params.pc_h, _bit_targets(params, c), bit_proof, challenge)
        if not ok:
            return False, f"bit {i}: {reason}"
    return True, "valid"


def _standalone_transcript(params: Parameters, commitment: G1Element, context: bytes) -> Transcript:
    transcript = Transcript(params.label("range"))
    transcript.append_int(b"bits", params.amount_bits)
    transcript.append_point(b"commitment", commitment)
    transcript.append_bytes(b"context", context)
    return transcript


def prove_range(
    params: Parameters,
    rng: RandomSource,
    value: int,
    blinding: int,
    context: bytes = b"",
) -> StandaloneRangeProof:
    """
    prove the commitment g^value h^blinding holds a value in [0, 2^amount_bits).

    raises RangeError before doing any work if the value is out of range.
    """
    commitment = params.pedersen(value, blinding)
    prover = RangeProver(params, rng, value, blinding)
    transcript = _standalone_transcript(params, commitment, context)
    prover.absorb(transcript)
    challenge = transcript.challenge_scalar(b"e")
    logger.debug(f"generated {params.amount_bits}-bit range proof")
    return StandaloneRangeProof(prover.respond(challenge), challenge)


def verify_range(
    params: Parameters,
    commitment: G1Element,
    proof: StandaloneRangeProof,
    context: bytes = b"",
) -> tuple[bool, str]:
    if len(proof.proof.bit_commitments) != params.amount_bits:
        return False, f"range proof must cover exactly {params.amount_bits} bits"
    transcript = _standalone_transcript(params, commitment, context)
    absorb_range_proof(transcript, proof.proof)
    if transcript.challenge_scalar(b"e") != proof.challenge:
        logger.warning("range proof rejected: challenge mismatch")
        return False, "challenge mismatch (possible tampering)"
    ok, reason = check_range(params, commitment, proof.proof, proof.challenge)
    if not ok:
        logger.warning(f"range proof rejected: {reason}")
    return ok, reason
