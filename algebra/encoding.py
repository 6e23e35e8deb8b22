# Author: Bradley R. Kinnard
# canonical byte encodings for bn254 scalars and points
# decoders are the validation boundary: nothing reaches group arithmetic
# unless it is a canonical, on-curve, in-subgroup encoding

from py_ecc import optimized_bn128 as bn

from utils.errors import InvalidProofEncoding

FIELD_MODULUS = bn.field_modulus
CURVE_ORDER = bn.curve_order

SCALAR_LEN = 32
G1_LEN = 32
G2_LEN = 128
GT_LEN = 12 * 32

_G1_PARITY_FLAG = 1 << 255
_G1_INFINITY_FLAG = 1 << 254
_G1_X_MASK = _G1_INFINITY_FLAG - 1


def _as_int(coeff) -> int:
    """field coefficient to int (py_ecc stores ints or FQ objects depending on class)."""
    return coeff.n if hasattr(coeff, "n") else int(coeff)


def _fq_sqrt(value: int) -> int | None:
    """square root in Fp; p = 3 mod 4 so a single exponentiation suffices."""
    root = pow(value, (FIELD_MODULUS + 1) // 4, FIELD_MODULUS)
    if root * root % FIELD_MODULUS != value % FIELD_MODULUS:
        return None
    return root


def encode_scalar(value: int) -> bytes:
    return (value % CURVE_ORDER).to_bytes(SCALAR_LEN, "big")


def decode_scalar(data: bytes) -> int:
    if len(data) != SCALAR_LEN:
        raise InvalidProofEncoding(f"scalar must be {SCALAR_LEN} bytes, got {len(data)}")
    value = int.from_bytes(data, "big")
    if value >= CURVE_ORDER:
        raise InvalidProofEncoding("scalar not reduced modulo the group order")
    return value


def encode_g1(pt) -> bytes:
    """
    compressed G1 encoding.

    x coordinate big-endian, bit 255 = y parity, bit 254 = point at infinity.
    """
    if bn.is_inf(pt):
        return _G1_INFINITY_FLAG.to_bytes(G1_LEN, "big")
    x, y = bn.normalize(pt)
    x, y = _as_int(x), _as_int(y)
    word = x | (_G1_PARITY_FLAG if y & 1 else 0)
    return word.to_bytes(G1_LEN, "big")


def decode_g1(data: bytes):
    if len(data) != G1_LEN:
        raise InvalidProofEncoding(f"G1 point must be {G1_LEN} bytes, got {len(data)}")
    word = int.from_bytes(data, "big")

    if word & _G1_INFINITY_FLAG:
        if word != _G1_INFINITY_FLAG:
            raise InvalidProofEncoding("non-canonical encoding of the G1 identity")
        return bn.Z1

    odd = bool(word & _G1_PARITY_FLAG)
    x = word & _G1_X_MASK
    if x >= FIELD_MODULUS:
        raise InvalidProofEncoding("G1 x coordinate out of field range")

    y = _fq_sqrt((pow(x, 3, FIELD_MODULUS) + 3) % FIELD_MODULUS)
    if y is None:
        raise InvalidProofEncoding("G1 point not on curve")
    if y == 0 and odd:
        raise InvalidProofEncoding("non-canonical G1 parity flag")
    if (y & 1) != odd:
        y = FIELD_MODULUS - y

    # cofactor of G1 is 1, so on-curve implies in-subgroup
    return (bn.FQ(x), bn.FQ(y), bn.FQ.one())


def encode_g2(pt) -> bytes:
    """uncompressed G2 encoding: x.c0 || x.c1 || y.c0 || y.c1, all zero for infinity."""
    if bn.is_inf(pt):
        return bytes(G2_LEN)
    x, y = bn.normalize(pt)
    coeffs = [_as_int(c) for c in x.coeffs] + [_as_int(c) for c in y.coeffs]
    return b"".join(c.to_bytes(32, "big") for c in coeffs)


def decode_g2(data: bytes):
    if len(data) != G2_LEN:
        raise InvalidProofEncoding(f"G2 point must be {G2_LEN} bytes, got {len(data)}")
    if data == bytes(G2_LEN):
        return bn.Z2

    coeffs = [int.from_bytes(data[i:i + 32], "big") for i in range(0, G2_LEN, 32)]
    if any(c >= FIELD_MODULUS for c in coeffs):
        raise InvalidProofEncoding("G2 coordinate out of field range")

    pt = (bn.FQ2(coeffs[0:2]), bn.FQ2(coeffs[2:4]), bn.FQ2.one())
    if not bn.is_on_curve(pt, bn.b2):
        raise InvalidProofEncoding("G2 point not on curve")
    if not bn.is_inf(bn.multiply(pt, CURVE_ORDER)):
        raise InvalidProofEncoding("G2 point not in the prime-order subgroup")
    return pt


def encode_gt(value) -> bytes:
    return b"".join(_as_int(c).to_bytes(32, "big") for c in value.coeffs)


def point_is_valid(data: bytes) -> bool:
    """subgroup/on-curve check for an encoded G1 or G2 point."""
    try:
        if len(data) == G1_LEN:
            decode_g1(data)
        elif len(data) == G2_LEN:
            decode_g2(data)
        else:
            return False
    except InvalidProofEncoding:
        return False
    return True
