# Author: Bradley R. Kinnard
# 1-of-k OR composition of discrete-log knowledge (Cramer-Damgard-Schoenmakers)
#
# statement: targets Y_0..Y_{k-1}; the prover knows x with Y_j = base^x for
# one hidden j. every other branch is simulated, and the branch challenges
# must sum to the shared challenge, so at most one can be chosen freely.

from dataclasses import dataclass
from typing import Sequence

from algebra.encoding import encode_scalar
from algebra.groups import CURVE_ORDER, G1Element
from crypto.parameters import Parameters
from crypto.rng import RandomSource
from crypto.sigma import mul_base


@dataclass(frozen=True)
class OrProof:
    commitments: tuple[G1Element, ...]
    challenges: tuple[int, ...]
    responses: tuple[int, ...]

    def to_bytes(self) -> bytes:
        out = bytearray(len(self.commitments).to_bytes(2, "big"))
        for a in self.commitments:
            out += a.to_bytes()
        for c in self.challenges:
            out += encode_scalar(c)
        for z in self.responses:
            out += encode_scalar(z)
        return bytes(out)


class OrProver:
    """
    first move of an OR-proof; respond() finishes it once the shared
    challenge is known.
    """

    def __init__(
        self,
        params: Parameters,
        rng: RandomSource,
        base: G1Element,
        targets: Sequence[G1Element],
        index: int,
        secret: int,
    ):
        if not 0 <= index < len(targets):
            raise ValueError(f"branch index {index} outside [0, {len(targets)})")
        self._index = index
        self._secret = secret % CURVE_ORDER
        self._nonce = rng.scalar()

        challenges = []
        responses = []
        commitments = []
        for j, target in enumerate(targets):
            if j == index:
                challenges.append(0)
                responses.append(0)
                commitments.append(mul_base(params, base, self._nonce))
                continue
            # simulated branch: pick (c_j, z_j) first, solve for A_j
            c_j = rng.scalar()
            z_j = rng.scalar()
            challenges.append(c_j)
            responses.append(z_j)
            commitments.append(mul_base(params, base, z_j) - c_j * target)

        self._challenges = challenges
        self._responses = responses
        self.commitments = tuple(commitments)

    def respond(self, challenge: int) -> OrProof:
        others = sum(c for j, c in enumerate(self._challenges) if j != self._index)
        challenges = list(self._challenges)
        responses = list(self._responses)
        c_real = (challenge - others) % CURVE_ORDER
        challenges[self._index] = c_real
        responses[self._index] = (self._nonce + c_real * self._secret) % CURVE_ORDER
        return OrProof(self.commitments, tuple(challenges), tuple(responses))


def verify_or(
    params: Parameters,
    base: G1Element,
    targets: Sequence[G1Element],
    proof: OrProof,
    challenge: int,
) -> tuple[bool, str]:
    k = len(targets)
    if not (len(proof.commitments) == len(proof.challenges) == len(proof.responses) == k):
        return False, f"or-proof does not have {k} branches"
    for value in (*proof.challenges, *proof.responses):
        if not isinstance(value, int) or not 0 <= value < CURVE_ORDER:
            return False, "or-proof scalar is not reduced"
    if not all(isinstance(a, G1Element) for a in proof.commitments):
        return False, "or-proof commitment is not a G1 element"

    if sum(proof.challenges) % CURVE_ORDER != challenge % CURVE_ORDER:
        return False, "branch challenges do not sum to the shared challenge"

    for j, target in enumerate(targets):
        lhs = mul_base(params, base, proof.responses[j])
        rhs = proof.commitments[j] + proof.challenges[j] * target
        if lhs != rhs:
            return False, f"or-proof branch {j} failed"
    return True, "valid"
