# Author: Bradley R. Kinnard
# algebra module - bn254 scalar field, groups, pairing and encodings

from algebra.groups import (
    CURVE_ORDER,
    G1Element,
    G2Element,
    GtElement,
    FixedBaseTable,
    pairing,
    multi_pairing,
    hash_to_g1,
    scalar_inv,
)
from algebra.encoding import (
    encode_scalar,
    decode_scalar,
    point_is_valid,
)

__all__ = [
    "CURVE_ORDER",
    "G1Element",
    "G2Element",
    "GtElement",
    "FixedBaseTable",
    "pairing",
    "multi_pairing",
    "hash_to_g1",
    "scalar_inv",
    "encode_scalar",
    "decode_scalar",
    "point_is_valid",
]
