# Author: Bradley R. Kinnard
# tests for the bn254 group adapter and canonical encodings

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from algebra.encoding import (
    G1_LEN,
    G2_LEN,
    decode_scalar,
    encode_scalar,
    point_is_valid,
)
from algebra.groups import (
    CURVE_ORDER,
    FIELD_MODULUS,
    FixedBaseTable,
    G1Element,
    G2Element,
    GtElement,
    hash_to_g1,
    hash_to_scalar,
    multi_pairing,
    pairing,
    scalar_inv,
)
from utils.errors import InvalidProofEncoding


scalars = st.integers(min_value=0, max_value=CURVE_ORDER - 1)


def _off_curve_x() -> int:
    """smallest x for which x^3 + 3 has no square root mod p."""
    x = 0
    while True:
        rhs = (pow(x, 3, FIELD_MODULUS) + 3) % FIELD_MODULUS
        if pow(rhs, (FIELD_MODULUS - 1) // 2, FIELD_MODULUS) == FIELD_MODULUS - 1:
            return x
        x += 1


class TestScalars:
    """tests for scalar field helpers."""

    def test_inverse(self):
        assert (scalar_inv(12345) * 12345) % CURVE_ORDER == 1

    def test_inverse_of_zero_raises(self):
        with pytest.raises(ZeroDivisionError):
            scalar_inv(0)

    @given(scalars)
    @settings(max_examples=20)
    def test_scalar_encoding_round_trip(self, value):
        assert decode_scalar(encode_scalar(value)) == value

    def test_unreduced_scalar_rejected(self):
        with pytest.raises(InvalidProofEncoding):
            decode_scalar(CURVE_ORDER.to_bytes(32, "big"))

    def test_wrong_length_scalar_rejected(self):
        with pytest.raises(InvalidProofEncoding):
            decode_scalar(b"\x01" * 31)

    def test_hash_to_scalar_domain_separation(self):
        a = hash_to_scalar(b"kind-a", b"payload")
        b = hash_to_scalar(b"kind-b", b"payload")
        assert a != b
        assert a == hash_to_scalar(b"kind-a", b"payload")

    def test_hash_to_scalar_length_prefixing(self):
        # chunk boundaries matter
        assert hash_to_scalar(b"d", b"ab", b"c") != hash_to_scalar(b"d", b"a", b"bc")


class TestG1:
    """tests for G1 arithmetic and encoding."""

    def test_group_law(self):
        g = G1Element.generator()
        assert 2 * g == g + g
        assert g.double() == g + g
        assert (g - g).is_identity()
        assert -g + g == G1Element.identity()

    def test_scalar_reduced_mod_order(self):
        g = G1Element.generator()
        assert (CURVE_ORDER + 5) * g == 5 * g
        assert (-1) * g == -g

    @given(scalars)
    @settings(max_examples=10)
    def test_encoding_round_trip(self, k):
        p = k * G1Element.generator()
        encoded = p.to_bytes()
        assert len(encoded) == G1_LEN
        assert G1Element.from_bytes(encoded) == p

    def test_identity_round_trip(self):
        identity = G1Element.identity()
        assert G1Element.from_bytes(identity.to_bytes()).is_identity()

    def test_off_curve_rejected(self):
        with pytest.raises(InvalidProofEncoding):
            G1Element.from_bytes(_off_curve_x().to_bytes(32, "big"))

    def test_x_out_of_field_rejected(self):
        with pytest.raises(InvalidProofEncoding):
            G1Element.from_bytes(FIELD_MODULUS.to_bytes(32, "big"))

    def test_noncanonical_identity_rejected(self):
        data = bytearray(G1Element.identity().to_bytes())
        data[-1] = 1
        with pytest.raises(InvalidProofEncoding):
            G1Element.from_bytes(bytes(data))

    def test_parity_flip_negates(self):
        p = 7 * G1Element.generator()
        data = bytearray(p.to_bytes())
        data[0] ^= 0x80
        assert G1Element.from_bytes(bytes(data)) == -p

    def test_point_is_valid(self):
        assert point_is_valid(G1Element.generator().to_bytes())
        assert point_is_valid(G2Element.generator().to_bytes())
        assert not point_is_valid(_off_curve_x().to_bytes(32, "big"))
        assert not point_is_valid(b"\x00" * 17)

    def test_hashable_by_encoding(self):
        g = G1Element.generator()
        assert len({g + g, 2 * g, g.double()}) == 1

    def test_hash_to_g1_deterministic_and_distinct(self):
        h1 = hash_to_g1("domain", "seed")
        assert h1 == hash_to_g1("domain", "seed")
        assert h1 != hash_to_g1("domain", "other")
        assert h1 != G1Element.generator()


class TestFixedBaseTable:
    """fixed-base multiplication must agree with plain multiplication."""

    @given(scalars)
    @settings(max_examples=10)
    def test_matches_plain_multiplication(self, k):
        base = hash_to_g1("table-test", "h")
        table = FixedBaseTable(base)
        assert table.multiply(k) == k * base

    def test_zero(self):
        table = FixedBaseTable(G1Element.generator())
        assert table.multiply(0).is_identity()
        assert table.multiply(CURVE_ORDER).is_identity()


class TestG2AndPairing:
    """tests for G2 encoding and the pairing."""

    def test_g2_round_trip(self):
        q = 3 * G2Element.generator()
        encoded = q.to_bytes()
        assert len(encoded) == G2_LEN
        assert G2Element.from_bytes(encoded) == q

    def test_g2_off_curve_rejected(self):
        data = bytearray(G2Element.generator().to_bytes())
        data[5] ^= 1
        with pytest.raises(InvalidProofEncoding):
            G2Element.from_bytes(bytes(data))

    def test_bilinearity(self):
        g1 = G1Element.generator()
        g2 = G2Element.generator()
        assert pairing(6 * g1, g2) == pairing(2 * g1, 3 * g2)
        assert pairing(g1, g2) ** 6 == pairing(3 * g1, 2 * g2)

    def test_multi_pairing_product(self):
        g1 = G1Element.generator()
        g2 = G2Element.generator()
        # e(5g, g2) * e(-5g, g2) = 1
        assert multi_pairing([(5 * g1, g2), (-(5 * g1), g2)]).is_one()
        assert not multi_pairing([(5 * g1, g2), (-(4 * g1), g2)]).is_one()

    def test_multi_pairing_skips_identity(self):
        g1 = G1Element.generator()
        g2 = G2Element.generator()
        assert multi_pairing([(G1Element.identity(), g2), (g1, G2Element.identity())]) == GtElement.one()
