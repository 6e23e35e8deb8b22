# Author: Bradley R. Kinnard
# exponent ElGamal over bn254 G1
# plaintext lives in the exponent, so ciphertexts add homomorphically and
# decryption needs a bounded discrete-log search

import math
from dataclasses import dataclass
from typing import Any

from algebra.encoding import G1_LEN
from algebra.groups import CURVE_ORDER, G1Element
from crypto.parameters import Parameters
from crypto.pedersen import check_amount
from crypto.rng import RandomSource
from utils.errors import InvalidProofEncoding, RangeError
from utils.helpers import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ElGamalPublicKey:
    point: G1Element

    def to_bytes(self) -> bytes:
        return self.point.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> "ElGamalPublicKey":
        return cls(G1Element.from_bytes(data))


@dataclass(frozen=True)
class ElGamalSecretKey:
    scalar: int

    def __repr__(self) -> str:
        # never print key material
        return "ElGamalSecretKey(<redacted>)"


@dataclass(frozen=True)
class ElGamalKeyPair:
    secret: ElGamalSecretKey
    public: ElGamalPublicKey

    @classmethod
    def generate(cls, params: Parameters, rng: RandomSource) -> "ElGamalKeyPair":
        x = rng.nonzero_scalar()
        return cls(
            secret=ElGamalSecretKey(x),
            public=ElGamalPublicKey(params.mul_g(x)),
        )


@dataclass(frozen=True)
class ExponentCiphertext:
    """
    (e1, e2) = (g^r, pk^r * g^m)

    additively homomorphic: Enc(a) + Enc(b) = Enc(a + b) with randomness r_a + r_b.
    """
    e1: G1Element
    e2: G1Element

    def __add__(self, other: "ExponentCiphertext") -> "ExponentCiphertext":
        return ExponentCiphertext(self.e1 + other.e1, self.e2 + other.e2)

    def __sub__(self, other: "ExponentCiphertext") -> "ExponentCiphertext":
        return ExponentCiphertext(self.e1 - other.e1, self.e2 - other.e2)

    def to_bytes(self) -> bytes:
        return self.e1.to_bytes() + self.e2.to_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> "ExponentCiphertext":
        if len(data) != 2 * G1_LEN:
            raise InvalidProofEncoding(f"ciphertext must be {2 * G1_LEN} bytes, got {len(data)}")
        return cls(G1Element.from_bytes(data[:G1_LEN]), G1Element.from_bytes(data[G1_LEN:]))

    def to_dict(self) -> dict[str, Any]:
        return {"e1": self.e1.to_bytes().hex(), "e2": self.e2.to_bytes().hex()}


def encrypt(
    params: Parameters,
    pk: ElGamalPublicKey,
    exponent: int,
    randomness: int,
) -> ExponentCiphertext:
    """encrypt an arbitrary scalar in the exponent. no range check."""
    return ExponentCiphertext(
        e1=params.mul_g(randomness),
        e2=randomness * pk.point + params.mul_g(exponent % CURVE_ORDER),
    )


def encrypt_amount(
    params: Parameters,
    pk: ElGamalPublicKey,
    amount: int,
    randomness: int,
) -> ExponentCiphertext:
    check_amount(params, amount)
    return encrypt(params, pk, amount, randomness)


def rerandomize(
    params: Parameters,
    pk: ElGamalPublicKey,
    ciphertext: ExponentCiphertext,
    delta: int,
) -> ExponentCiphertext:
    """same plaintext, fresh-looking ciphertext (randomness r + delta)."""
    return ExponentCiphertext(
        e1=ciphertext.e1 + params.mul_g(delta),
        e2=ciphertext.e2 + delta * pk.point,
    )


def homomorphic_add(c1: ExponentCiphertext, c2: ExponentCiphertext) -> ExponentCiphertext:
    return c1 + c2


def homomorphic_sub(c1: ExponentCiphertext, c2: ExponentCiphertext) -> ExponentCiphertext:
    return c1 - c2


def partial_decrypt(ciphertext: ExponentCiphertext, sk: ElGamalSecretKey) -> G1Element:
    """strip the key: returns g^m."""
    return ciphertext.e2 - sk.scalar * ciphertext.e1


def verify_plaintext(
    params: Parameters,
    ciphertext: ExponentCiphertext,
    sk: ElGamalSecretKey,
    expected: int,
) -> bool:
    """check a candidate plaintext without any discrete-log search."""
    return partial_decrypt(ciphertext, sk) == params.mul_g(expected % CURVE_ORDER)


def decrypt(
    params: Parameters,
    ciphertext: ExponentCiphertext,
    sk: ElGamalSecretKey,
    bound: int,
) -> int:
    """
    recover m in [0, bound) by baby-step/giant-step.

    cost is O(sqrt(bound)) group operations and memory. raises RangeError
    when no plaintext below the bound matches.
    """
    if bound <= 0:
        raise RangeError("decryption bound must be positive")

    target = partial_decrypt(ciphertext, sk)
    step = max(1, math.isqrt(bound - 1) + 1)

    # baby steps: j*g for j in [0, step)
    baby: dict[bytes, int] = {}
    acc = G1Element.identity()
    g = params.pc_g
    for j in range(step):
        baby.setdefault(acc.to_bytes(), j)
        acc = acc + g

    giant = -params.mul_g(step)
    current = target
    for i in range(step):
        j = baby.get(current.to_bytes())
        if j is not None:
            m = i * step + j
            if m < bound:
                return m
            break
        current = current + giant

    logger.warning("exponent elgamal decryption: plaintext outside search bound")
    raise RangeError(f"plaintext not in [0, {bound})")
