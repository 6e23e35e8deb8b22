# Author: Bradley R. Kinnard
# tests for Pedersen commitments and exponent ElGamal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from algebra.groups import CURVE_ORDER, G1Element
from crypto.elgamal import (
    ElGamalKeyPair,
    ElGamalPublicKey,
    ExponentCiphertext,
    decrypt,
    encrypt,
    encrypt_amount,
    homomorphic_add,
    homomorphic_sub,
    rerandomize,
    verify_plaintext,
)
from crypto.pedersen import (
    PedersenScheme,
    check_amount,
    commit,
    open_commitment,
    sum_commitments,
)
from crypto.rng import SeededRandomSource
from utils.errors import InvalidProofEncoding, RangeError


class TestPedersen:
    """tests for commitment opening, binding and homomorphism."""

    def test_commit_and_open(self, params):
        scheme = PedersenScheme(params)
        c = scheme.commit(100, 5555)
        assert scheme.open(c.commitment, 100, 5555)
        assert not scheme.open(c.commitment, 101, 5555)
        assert not scheme.open(c.commitment, 100, 5556)

    def test_hiding_under_different_blindings(self, params):
        assert commit(params, 7, 1) != commit(params, 7, 2)

    def test_to_dict_omits_opening(self, params):
        c = PedersenScheme(params).commit(3, 4)
        d = c.to_dict()
        assert set(d) == {"commitment"}
        assert d["commitment"] == c.public.to_bytes().hex()

    @given(
        st.integers(min_value=0, max_value=2**16 - 1),
        st.integers(min_value=0, max_value=2**16 - 1),
        st.integers(min_value=0, max_value=CURVE_ORDER - 1),
        st.integers(min_value=0, max_value=CURVE_ORDER - 1),
    )
    @settings(max_examples=5, deadline=None)
    def test_additive_homomorphism(self, params, a, b, ra, rb):
        scheme = PedersenScheme(params)
        total = scheme.add(scheme.commit(a, ra), scheme.commit(b, rb))
        assert scheme.open(total.commitment, a + b, ra + rb)
        assert total.value == (a + b) % CURVE_ORDER

    def test_sub(self, params):
        scheme = PedersenScheme(params)
        diff = scheme.sub(scheme.commit(10, 30), scheme.commit(4, 12))
        assert scheme.open(diff.commitment, 6, 18)

    def test_sum_commitments(self, params):
        parts = [commit(params, v, r) for v, r in [(1, 2), (3, 4), (5, 6)]]
        assert open_commitment(params, sum_commitments(parts), 9, 12)
        assert sum_commitments([]).is_identity()

    def test_commit_amount_enforces_bound(self, params):
        scheme = PedersenScheme(params)
        scheme.commit_amount(params.amount_bound - 1, 1)
        with pytest.raises(RangeError):
            scheme.commit_amount(params.amount_bound, 1)
        with pytest.raises(RangeError):
            scheme.commit_amount(-1, 1)

    def test_check_amount_rejects_non_integers(self, params):
        with pytest.raises(RangeError):
            check_amount(params, True)
        with pytest.raises(RangeError):
            check_amount(params, 1.5)
        assert check_amount(params, 0) == 0


class TestElGamal:
    """tests for exponent ElGamal."""

    @pytest.fixture(scope="class")
    def keypair(self, params):
        return ElGamalKeyPair.generate(params, SeededRandomSource(3))

    def test_decrypt_small_values(self, params, keypair, rng):
        for m in (0, 1, 2, 255, 1000):
            ct = encrypt(params, keypair.public, m, rng.scalar())
            assert decrypt(params, ct, keypair.secret, 1 << 12) == m

    def test_decrypt_at_bound_edge(self, params, keypair, rng):
        bound = 1 << 10
        ct = encrypt(params, keypair.public, bound - 1, rng.scalar())
        assert decrypt(params, ct, keypair.secret, bound) == bound - 1

    def test_decrypt_outside_bound_raises(self, params, keypair, rng):
        ct = encrypt(params, keypair.public, 5000, rng.scalar())
        with pytest.raises(RangeError):
            decrypt(params, ct, keypair.secret, 1 << 10)

    def test_wrong_key_does_not_match(self, params, keypair, rng):
        other = ElGamalKeyPair.generate(params, SeededRandomSource(4))
        ct = encrypt(params, keypair.public, 77, rng.scalar())
        assert verify_plaintext(params, ct, keypair.secret, 77)
        assert not verify_plaintext(params, ct, other.secret, 77)

    def test_homomorphic_add_and_sub(self, params, keypair, rng):
        c1 = encrypt(params, keypair.public, 40, rng.scalar())
        c2 = encrypt(params, keypair.public, 2, rng.scalar())
        assert verify_plaintext(params, homomorphic_add(c1, c2), keypair.secret, 42)
        assert verify_plaintext(params, homomorphic_sub(c1, c2), keypair.secret, 38)

    def test_rerandomize_keeps_plaintext(self, params, keypair, rng):
        ct = encrypt(params, keypair.public, 9, rng.scalar())
        fresh = rerandomize(params, keypair.public, ct, rng.nonzero_scalar())
        assert fresh != ct
        assert verify_plaintext(params, fresh, keypair.secret, 9)

    def test_encrypt_amount_enforces_bound(self, params, keypair):
        with pytest.raises(RangeError):
            encrypt_amount(params, keypair.public, params.amount_bound, 1)

    def test_ciphertext_encoding(self, params, keypair, rng):
        ct = encrypt(params, keypair.public, 12, rng.scalar())
        data = ct.to_bytes()
        assert len(data) == 64
        assert ExponentCiphertext.from_bytes(data) == ct
        with pytest.raises(InvalidProofEncoding):
            ExponentCiphertext.from_bytes(data[:-1])

    def test_secret_key_not_in_repr(self, keypair):
        assert str(keypair.secret.scalar) not in repr(keypair.secret)

    def test_public_key_round_trip(self, keypair):
        raw = keypair.public.to_bytes()
        assert ElGamalPublicKey.from_bytes(raw) == keypair.public
        assert isinstance(keypair.public.point, G1Element)
