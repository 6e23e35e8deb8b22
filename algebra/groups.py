# Author: Bradley R. Kinnard
# bn254 group adapter over py_ecc - scalars, G1, G2, GT and the pairing
# the rest of the code base only touches curve arithmetic through this module

import hashlib
from typing import Iterable

from py_ecc import optimized_bn128 as bn

from algebra import encoding

CURVE_ORDER = bn.curve_order
FIELD_MODULUS = bn.field_modulus


def scalar_inv(value: int) -> int:
    """multiplicative inverse in the scalar field."""
    value %= CURVE_ORDER
    if value == 0:
        raise ZeroDivisionError("zero has no inverse in the scalar field")
    return pow(value, CURVE_ORDER - 2, CURVE_ORDER)


def _length_prefixed(chunk: bytes) -> bytes:
    return len(chunk).to_bytes(8, "big") + chunk


def hash_to_scalar(domain: bytes | str, *chunks: bytes) -> int:
    """
    domain-separated hash into the scalar field.

    512-bit digest reduced mod r, so the bias is negligible.
    """
    if isinstance(domain, str):
        domain = domain.encode()
    hasher = hashlib.sha512()
    hasher.update(_length_prefixed(domain))
    for chunk in chunks:
        hasher.update(_length_prefixed(chunk))
    return int.from_bytes(hasher.digest(), "big") % CURVE_ORDER


def hash_to_g1(domain: bytes | str, seed: bytes | str) -> "G1Element":
    """
    nothing-up-my-sleeve G1 point by try-and-increment.

    nobody knows the discrete log of the result w.r.t. the generator.
    """
    if isinstance(domain, str):
        domain = domain.encode()
    if isinstance(seed, str):
        seed = seed.encode()

    for counter in range(256):
        digest = hashlib.sha512(
            _length_prefixed(domain) + _length_prefixed(seed) + counter.to_bytes(4, "big")
        ).digest()
        x = int.from_bytes(digest, "big") % FIELD_MODULUS
        y_sq = (pow(x, 3, FIELD_MODULUS) + 3) % FIELD_MODULUS
        y = pow(y_sq, (FIELD_MODULUS + 1) // 4, FIELD_MODULUS)
        if y * y % FIELD_MODULUS != y_sq:
            continue
        # normalize to even y
        if y & 1:
            y = FIELD_MODULUS - y
        return G1Element((bn.FQ(x), bn.FQ(y), bn.FQ.one()))

    raise RuntimeError("hash_to_g1: no curve point found in 256 iterations")


class G1Element:
    """immutable point of the bn254 G1 group (additive notation)."""
    __slots__ = ("_pt",)

    def __init__(self, pt):
        self._pt = pt

    @classmethod
    def generator(cls) -> "G1Element":
        return cls(bn.G1)

    @classmethod
    def identity(cls) -> "G1Element":
        return cls(bn.Z1)

    @classmethod
    def from_bytes(cls, data: bytes) -> "G1Element":
        return cls(encoding.decode_g1(bytes(data)))

    @property
    def point(self):
        return self._pt

    def to_bytes(self) -> bytes:
        return encoding.encode_g1(self._pt)

    def is_identity(self) -> bool:
        return bn.is_inf(self._pt)

    def double(self) -> "G1Element":
        return G1Element(bn.double(self._pt))

    def __add__(self, other: "G1Element") -> "G1Element":
        return G1Element(bn.add(self._pt, other._pt))

    def __sub__(self, other: "G1Element") -> "G1Element":
        return G1Element(bn.add(self._pt, bn.neg(other._pt)))

    def __neg__(self) -> "G1Element":
        return G1Element(bn.neg(self._pt))

    def __rmul__(self, scalar: int) -> "G1Element":
        return G1Element(bn.multiply(self._pt, scalar % CURVE_ORDER))

    __mul__ = __rmul__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, G1Element):
            return NotImplemented
        return bn.eq(self._pt, other._pt)

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"G1Element({self.to_bytes().hex()[:16]}...)"


class G2Element:
    """immutable point of the bn254 G2 group (additive notation)."""
    __slots__ = ("_pt",)

    def __init__(self, pt):
        self._pt = pt

    @classmethod
    def generator(cls) -> "G2Element":
        return cls(bn.G2)

    @classmethod
    def identity(cls) -> "G2Element":
        return cls(bn.Z2)

    @classmethod
    def from_bytes(cls, data: bytes) -> "G2Element":
        return cls(encoding.decode_g2(bytes(data)))

    @property
    def point(self):
        return self._pt

    def to_bytes(self) -> bytes:
        return encoding.encode_g2(self._pt)

    def is_identity(self) -> bool:
        return bn.is_inf(self._pt)

    def __add__(self, other: "G2Element") -> "G2Element":
        return G2Element(bn.add(self._pt, other._pt))

    def __sub__(self, other: "G2Element") -> "G2Element":
        return G2Element(bn.add(self._pt, bn.neg(other._pt)))

    def __neg__(self) -> "G2Element":
        return G2Element(bn.neg(self._pt))

    def __rmul__(self, scalar: int) -> "G2Element":
        return G2Element(bn.multiply(self._pt, scalar % CURVE_ORDER))

    __mul__ = __rmul__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, G2Element):
            return NotImplemented
        return bn.eq(self._pt, other._pt)

    def __hash__(self) -> int:
        return hash(self.to_bytes())

    def __repr__(self) -> str:
        return f"G2Element({self.to_bytes().hex()[:16]}...)"


class GtElement:
    """element of the pairing target group (multiplicative notation)."""
    __slots__ = ("_value",)

    def __init__(self, value):
        self._value = value

    @classmethod
    def one(cls) -> "GtElement":
        return cls(bn.FQ12.one())

    def to_bytes(self) -> bytes:
        return encoding.encode_gt(self._value)

    def is_one(self) -> bool:
        return self._value == bn.FQ12.one()

    def __mul__(self, other: "GtElement") -> "GtElement":
        return GtElement(self._value * other._value)

    def __pow__(self, exponent: int) -> "GtElement":
        return GtElement(self._value ** (exponent % CURVE_ORDER))

    def inverse(self) -> "GtElement":
        return GtElement(self._value.inv())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GtElement):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self.to_bytes())


def pairing(p: G1Element, q: G2Element) -> GtElement:
    """e(p, q) with p in G1 and q in G2."""
    return GtElement(bn.pairing(q.point, p.point))


def multi_pairing(pairs: Iterable[tuple[G1Element, G2Element]]) -> GtElement:
    """
    product of pairings with a single final exponentiation.

    each pair contributes one miller loop; identity terms are skipped.
    """
    acc = bn.FQ12.one()
    for p, q in pairs:
        if p.is_identity() or q.is_identity():
            continue
        acc = acc * bn.pairing(q.point, p.point, final_exponentiate=False)
    return GtElement(bn.final_exponentiate(acc))


class FixedBaseTable:
    """
    windowed precomputation for repeated multiplication of one G1 base.

    4-bit windows: 64 rows of 16 multiples, so a multiplication is at most
    64 point additions instead of a full double-and-add ladder.
    """
    WINDOW = 4

    def __init__(self, base: G1Element):
        self.base = base
        size = 1 << self.WINDOW
        rows = (CURVE_ORDER.bit_length() + self.WINDOW - 1) // self.WINDOW
        table = []
        row_base = base.point
        for _ in range(rows):
            row = [bn.Z1, row_base]
            for _ in range(2, size):
                row.append(bn.add(row[-1], row_base))
            table.append(row)
            # next row base = 16 * row_base
            nxt = row_base
            for _ in range(self.WINDOW):
                nxt = bn.double(nxt)
            row_base = nxt
        self._table = table

    def multiply(self, scalar: int) -> G1Element:
        scalar %= CURVE_ORDER
        mask = (1 << self.WINDOW) - 1
        acc = bn.Z1
        for row in self._table:
            digit = scalar & mask
            if digit:
                acc = bn.add(acc, row[digit])
            scalar >>= self.WINDOW
            if not scalar:
                break
        return G1Element(acc)

