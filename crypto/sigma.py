# Author: Bradley R. Kinnard
# sigma protocols for linear relations over G1, made non-interactive by Fiat-Shamir
#
# every proof here is an instance of one engine: a statement is a list of rows
#   target_row = sum_v base_{row,v} * w_v
# over a shared secret vector w. the prover sends R_row = sum_v base * k_v,
# gets challenge e, answers z_v = k_v + e * w_v; the verifier checks
#   sum_v base * z_v == R_row + e * target_row
# for every row.

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Sequence, Union

from algebra.encoding import encode_scalar
from algebra.groups import CURVE_ORDER, G1Element
from crypto.elgamal import ElGamalPublicKey, ExponentCiphertext
from crypto.parameters import Parameters
from crypto.rng import RandomSource
from crypto.transcript import Transcript
from utils.helpers import get_logger

logger = get_logger(__name__)


class SigmaKind(Enum):
    DLOG_KNOWLEDGE = "dlog-knowledge"
    CHAUM_PEDERSEN = "chaum-pedersen"
    PEDERSEN_ELGAMAL_EQ = "pedersen-elgamal-eq"


# (variable index, base) pairs plus the public target of the row
Row = tuple[list[tuple[int, G1Element]], G1Element]


def mul_base(params: Parameters, base: G1Element, scalar: int) -> G1Element:
    """scalar multiplication, routed through the fixed-base tables for g and h."""
    if base is params.pc_g:
        return params.mul_g(scalar)
    if base is params.pc_h:
        return params.mul_h(scalar)
    return scalar * base


class LinearProver:
    """
    first half of a linear-relation proof.

    commitments are available right after construction; respond() needs the
    challenge. split so several relations can share one challenge.
    """

    def __init__(
        self,
        params: Parameters,
        rng: RandomSource,
        rows: Sequence[Row],
        witness: Sequence[int],
    ):
        self._params = params
        self._witness = [w % CURVE_ORDER for w in witness]
        self._nonces = rng.scalars(len(self._witness))
        self.commitments = tuple(
            _row_combination(params, terms, self._nonces) for terms, _ in rows
        )

    def respond(self, challenge: int) -> tuple[int, ...]:
        return tuple(
            (k + challenge * w) % CURVE_ORDER for k, w in zip(self._nonces, self._witness)
        )


def _row_combination(params: Parameters, terms, scalars: Sequence[int]) -> G1Element:
    acc = G1Element.identity()
    for var, base in terms:
        acc = acc + mul_base(params, base, scalars[var])
    return acc


def check_linear(
    params: Parameters,
    rows: Sequence[Row],
    num_vars: int,
    commitments: Sequence[G1Element],
    challenge: int,
    responses: Sequence[int],
) -> tuple[bool, str]:
    """verification equations only; the caller owns the challenge."""
    if len(commitments) != len(rows):
        return False, f"expected {len(rows)} commitments, got {len(commitments)}"
    if len(responses) != num_vars:
        return False, f"expected {num_vars} responses, got {len(responses)}"
    for z in responses:
        if not isinstance(z, int) or not 0 <= z < CURVE_ORDER:
            return False, "response is not a reduced scalar"
    for commitment in commitments:
        if not isinstance(commitment, G1Element):
            return False, "commitment is not a G1 element"

    for i, ((terms, target), commitment) in enumerate(zip(rows, commitments)):
        lhs = _row_combination(params, terms, responses)
        rhs = commitment + challenge * target
        if lhs != rhs:
            return False, f"verification equation {i} failed"
    return True, "valid"


def absorb_rows(transcript: Transcript, rows: Sequence[Row]) -> None:
    transcript.append_int(b"rows", len(rows))
    for terms, target in rows:
        transcript.append_int(b"terms", len(terms))
        for var, base in terms:
            transcript.append_int(b"var", var)
            transcript.append_point(b"base", base)
        transcript.append_point(b"target", target)


# ---------------------------------------------------------------------------
# statements


@dataclass(frozen=True)
class DlogStatement:
    """target = base^x"""
    base: G1Element
    target: G1Element


@dataclass(frozen=True)
class ChaumPedersenStatement:
    """every commitment opens to the same value: C_i = g^m h^{r_i}"""
    commitments: tuple[G1Element, ...]


@dataclass(frozen=True)
class PedersenElGamalStatement:
    """
    ciphertext and commitment hide the same m:
      e1 = g^r, e2 = pk^r g^m, C = g^m h^s
    """
    public_key: ElGamalPublicKey
    ciphertext: ExponentCiphertext
    commitment: G1Element


SigmaStatement = Union[DlogStatement, ChaumPedersenStatement, PedersenElGamalStatement]


def dlog_rows(statement: DlogStatement) -> tuple[list[Row], int]:
    return [([(0, statement.base)], statement.target)], 1


def chaum_pedersen_rows(params: Parameters, statement: ChaumPedersenStatement) -> tuple[list[Row], int]:
    # variable 0 is the shared value, variable i+1 the blinding of C_i
    rows = [
        ([(0, params.pc_g), (i + 1, params.pc_h)], c)
        for i, c in enumerate(statement.commitments)
    ]
    return rows, len(statement.commitments) + 1


def pedersen_elgamal_rows(params: Parameters, statement: PedersenElGamalStatement) -> tuple[list[Row], int]:
    # variables: 0 = m, 1 = encryption randomness r, 2 = commitment blinding s
    ct = statement.ciphertext
    rows = [
        ([(1, params.pc_g)], ct.e1),
        ([(1, statement.public_key.point), (0, params.pc_g)], ct.e2),
        ([(0, params.pc_g), (2, params.pc_h)], statement.commitment),
    ]
    return rows, 3


# ---------------------------------------------------------------------------
# proofs


@dataclass(frozen=True)
class _SigmaProofBase:
    commitments: tuple[G1Element, ...]
    challenge: int
    responses: tuple[int, ...]

    kind: ClassVar[SigmaKind]

    def to_bytes(self) -> bytes:
        out = bytearray(self.kind.value.encode())
        out += len(self.commitments).to_bytes(2, "big")
        for c in self.commitments:
            out += c.to_bytes()
        out += encode_scalar(self.challenge)
        out += len(self.responses).to_bytes(2, "big")
        for z in self.responses:
            out += encode_scalar(z)
        return bytes(out)


@dataclass(frozen=True)
class DlogKnowledgeProof(_SigmaProofBase):
    """knowledge of x with target = base^x (Schnorr)."""
    kind: ClassVar[SigmaKind] = SigmaKind.DLOG_KNOWLEDGE


@dataclass(frozen=True)
class ChaumPedersenProof(_SigmaProofBase):
    """several Pedersen commitments share one committed value."""
    kind: ClassVar[SigmaKind] = SigmaKind.CHAUM_PEDERSEN


@dataclass(frozen=True)
class PedersenElGamalEqProof(_SigmaProofBase):
    """an ElGamal ciphertext and a Pedersen commitment hide the same value."""
    kind: ClassVar[SigmaKind] = SigmaKind.PEDERSEN_ELGAMAL_EQ


SigmaProof = Union[DlogKnowledgeProof, ChaumPedersenProof, PedersenElGamalEqProof]


def _challenge(
    params: Parameters,
    kind: SigmaKind,
    rows: Sequence[Row],
    commitments: Sequence[G1Element],
    context: bytes,
) -> int:
    transcript = Transcript(params.label("sigma"))
    transcript.append_bytes(b"kind", kind.value.encode())
    absorb_rows(transcript, rows)
    transcript.append_points(b"commitments", commitments)
    transcript.append_bytes(b"context", context)
    return transcript.challenge_scalar(b"e")


def _prove(params, rng, kind, rows, witness, context):
    prover = LinearProver(params, rng, rows, witness)
    challenge = _challenge(params, kind, rows, prover.commitments, context)
    return prover.commitments, challenge, prover.respond(challenge)


def prove_dlog(
    params: Parameters,
    rng: RandomSource,
    statement: DlogStatement,
    secret: int,
    context: bytes = b"",
) -> DlogKnowledgeProof:
    rows, _ = dlog_rows(statement)
    commitments, challenge, responses = _prove(
        params, rng, SigmaKind.DLOG_KNOWLEDGE, rows, [secret], context
    )
    logger.debug("generated dlog knowledge proof")
    return DlogKnowledgeProof(commitments, challenge, responses)


def prove_chaum_pedersen(
    params: Parameters,
    rng: RandomSource,
    statement: ChaumPedersenStatement,
    value: int,
    blindings: Sequence[int],
    context: bytes = b"",
) -> ChaumPedersenProof:
    if len(blindings) != len(statement.commitments):
        raise ValueError("one blinding per commitment required")
    rows, _ = chaum_pedersen_rows(params, statement)
    commitments, challenge, responses = _prove(
        params, rng, SigmaKind.CHAUM_PEDERSEN, rows, [value, *blindings], context
    )
    logger.debug(f"generated chaum-pedersen proof over {len(blindings)} commitments")
    return ChaumPedersenProof(commitments, challenge, responses)


def prove_pedersen_elgamal_eq(
    params: Parameters,
    rng: RandomSource,
    statement: PedersenElGamalStatement,
    value: int,
    enc_randomness: int,
    blinding: int,
    context: bytes = b"",
) -> PedersenElGamalEqProof:
    rows, _ = pedersen_elgamal_rows(params, statement)
    commitments, challenge, responses = _prove(
        params, rng, SigmaKind.PEDERSEN_ELGAMAL_EQ, rows,
        [value, enc_randomness, blinding], context,
    )
    logger.debug("generated pedersen-elgamal equality proof")
    return PedersenElGamalEqProof(commitments, challenge, responses)


_STATEMENT_TYPES = {
    SigmaKind.DLOG_KNOWLEDGE: DlogStatement,
    SigmaKind.CHAUM_PEDERSEN: ChaumPedersenStatement,
    SigmaKind.PEDERSEN_ELGAMAL_EQ: PedersenElGamalStatement,
}


def verify_sigma(
    params: Parameters,
    statement: SigmaStatement,
    proof: SigmaProof,
    context: bytes = b"",
) -> tuple[bool, str]:
    """
    verify any sigma proof against its statement.

    returns (valid, reason). malformed input is a rejection, never an exception.
    """
    if not isinstance(proof, (DlogKnowledgeProof, ChaumPedersenProof, PedersenElGamalEqProof)):
        return False, f"unknown proof type: {type(proof).__name__}"

    kind = proof.kind
    if not isinstance(statement, _STATEMENT_TYPES[kind]):
        return False, f"{kind.value} proof does not match {type(statement).__name__}"

    if kind is SigmaKind.DLOG_KNOWLEDGE:
        rows, num_vars = dlog_rows(statement)
    elif kind is SigmaKind.CHAUM_PEDERSEN:
        if not statement.commitments:
            return False, "chaum-pedersen statement has no commitments"
        rows, num_vars = chaum_pedersen_rows(params, statement)
    else:
        rows, num_vars = pedersen_elgamal_rows(params, statement)

    if len(proof.commitments) != len(rows) or len(proof.responses) != num_vars:
        logger.warning(f"{kind.value} proof rejected: shape mismatch")
        return False, "proof shape does not match statement"
    if not all(isinstance(c, G1Element) for c in proof.commitments):
        return False, "commitment is not a G1 element"

    expected = _challenge(params, kind, rows, proof.commitments, context)
    if proof.challenge != expected:
        logger.warning(f"{kind.value} proof rejected: challenge mismatch")
        return False, "challenge mismatch (possible tampering)"

    ok, reason = check_linear(
        params, rows, num_vars, proof.commitments, proof.challenge, proof.responses
    )
    if not ok:
        logger.warning(f"{kind.value} proof rejected: {reason}")
    return ok, reason
