# Author: Bradley R. Kinnard
# Pedersen commitments over bn254 G1

from dataclasses import dataclass
from typing import Any, Iterable

from algebra.groups import CURVE_ORDER, G1Element
from crypto.parameters import Parameters
from utils.errors import RangeError
from utils.helpers import get_logger

logger = get_logger(__name__)


def check_amount(params: Parameters, value: int) -> int:
    """
    enforce the system-wide amount bound.

    raises RangeError unless value is an int in [0, 2^amount_bits).
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise RangeError(f"amount must be an integer, got {type(value).__name__}")
    if value < 0 or value >= params.amount_bound:
        raise RangeError(f"amount outside [0, 2^{params.amount_bits})")
    return value


@dataclass(frozen=True)
class PedersenCommitment:
    """
    Pedersen commitment: C = g^v * h^r

    properties:
    - computationally binding: cannot open to (v', r') != (v, r)
    - perfectly hiding: C reveals nothing about v without r
    - additively homomorphic: C(a) + C(b) = C(a+b) with blinding r_a + r_b

    value and blinding are the opening and stay with the committer.
    """
    commitment: G1Element
    value: int
    blinding: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "commitment": self.commitment.to_bytes().hex(),
            # value and blinding are secret - not serialized
        }

    @property
    def public(self) -> G1Element:
        """return only the public commitment."""
        return self.commitment


class PedersenScheme:
    """
    Pedersen commitment scheme bound to one parameter set.

    usage:
    1. commit(v, r) -> PedersenCommitment (keep blinding secret)
    2. open(C, v, r) -> bool (check opening, not a proof)
    3. add(C1, C2) -> combined commitment (homomorphic)
    """

    def __init__(self, params: Parameters):
        self._params = params

    def commit(self, value: int, blinding: int) -> PedersenCommitment:
        """C = g^v * h^r. value is reduced into the scalar field."""
        commitment = self._params.pedersen(value % CURVE_ORDER, blinding % CURVE_ORDER)
        return PedersenCommitment(
            commitment=commitment,
            value=value % CURVE_ORDER,
            blinding=blinding % CURVE_ORDER,
        )

    def commit_amount(self, amount: int, blinding: int) -> PedersenCommitment:
        """commit to an amount after enforcing the bit-width bound."""
        check_amount(self._params, amount)
        return self.commit(amount, blinding)

    def open(self, commitment: G1Element, value: int, blinding: int) -> bool:
        """
        verify Pedersen commitment opening.

        checks: C == g^v * h^r
        """
        return commitment == self._params.pedersen(value % CURVE_ORDER, blinding % CURVE_ORDER)

    def add(self, c1: PedersenCommitment, c2: PedersenCommitment) -> PedersenCommitment:
        """C(a+b) = C(a) + C(b) with combined blinding r1 + r2"""
        return PedersenCommitment(
            commitment=c1.commitment + c2.commitment,
            value=(c1.value + c2.value) % CURVE_ORDER,
            blinding=(c1.blinding + c2.blinding) % CURVE_ORDER,
        )

    def sub(self, c1: PedersenCommitment, c2: PedersenCommitment) -> PedersenCommitment:
        return PedersenCommitment(
            commitment=c1.commitment - c2.commitment,
            value=(c1.value - c2.value) % CURVE_ORDER,
            blinding=(c1.blinding - c2.blinding) % CURVE_ORDER,
        )


def commit(params: Parameters, value: int, blinding: int) -> G1Element:
    return params.pedersen(value % CURVE_ORDER, blinding % CURVE_ORDER)


def open_commitment(params: Parameters, commitment: G1Element, value: int, blinding: int) -> bool:
    return commitment == params.pedersen(value % CURVE_ORDER, blinding % CURVE_ORDER)


def sum_commitments(commitments: Iterable[G1Element]) -> G1Element:
    total = G1Element.identity()
    for c in commitments:
        total = total + c
    return total
