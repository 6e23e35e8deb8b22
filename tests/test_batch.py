# Author: Bradley R. Kinnard
# batch verification must agree with one-by-one verification

import dataclasses

import pytest
from hypothesis import given, strategies as st

from crypto.credentials import CredentialSignature
from crypto.rng import SeededRandomSource
from xfr.builder import build_xfr_note
from xfr.structs import AssetRecord, OwnerSignature
from xfr.tracking import IdentityTracingPolicy, NotePolicies, TrackingPolicy
from xfr.verifier import batch_verify_xfr_notes, verify_xfr_note


@pytest.fixture(scope="module")
def identity_policy(tracer, issuer):
    return TrackingPolicy(
        tracer_key=tracer.public,
        track_amount=False,
        track_asset_type=False,
        identity=IdentityTracingPolicy(issuer.public, (False, True, False)),
    )


@pytest.fixture(scope="module")
def notes(params, alice, bob, usd, owner_credential, identity_policy):
    """three valid notes, two of them carrying identity pairings."""
    built = []
    for seed, amount in ((401, 3), (402, 5), (403, 7)):
        policies = (identity_policy,) if seed != 402 else ()
        inputs = [
            AssetRecord(
                amount=amount, asset_type=usd, owner=alice.public,
                policies=policies, identity=owner_credential,
            ),
        ]
        outputs = [AssetRecord(amount=amount, asset_type=usd, owner=bob.public)]
        built.append(build_xfr_note(params, SeededRandomSource(seed), inputs, outputs, [alice]))
    return built


def _with_bad_signature(note):
    sig = note.signatures[0]
    bad = OwnerSignature(sig.public_key, sig.signature[:-1] + bytes([sig.signature[-1] ^ 1]))
    return dataclasses.replace(note, signatures=(bad,))


def _with_bad_identity(note):
    memos = note.body.tracer_memos
    memo = memos[0][0]
    forged = dataclasses.replace(memo, identity_issuer=None)
    body = dataclasses.replace(note.body, tracer_memos=((forged,), *memos[1:]))
    return dataclasses.replace(note, body=body)


@pytest.fixture(scope="module")
def forged_note(params, alice, bob, usd, owner_credential, identity_policy):
    """well-formed note whose credential signature only fails the pairing equation."""
    signature = owner_credential.signature
    forged = dataclasses.replace(
        owner_credential,
        signature=CredentialSignature(signature.sigma1, signature.sigma2 + signature.sigma1),
    )
    inputs = [
        AssetRecord(
            amount=4, asset_type=usd, owner=alice.public,
            policies=(identity_policy,), identity=forged,
        ),
    ]
    outputs = [AssetRecord(amount=4, asset_type=usd, owner=bob.public)]
    return build_xfr_note(params, SeededRandomSource(404), inputs, outputs, [alice])


@pytest.fixture(scope="module")
def pool(notes, forged_note):
    """valid notes plus one of each failure mode."""
    return [
        *notes,
        forged_note,
        _with_bad_signature(notes[1]),
        _with_bad_identity(notes[0]),
    ]


class TestBatchVerify:
    """batch_verify_xfr_notes == [verify_xfr_note(n) for n in notes]."""

    def test_all_valid(self, params, notes):
        results = batch_verify_xfr_notes(params, notes, SeededRandomSource(1))
        assert [r.valid for r in results] == [True, True, True]
        assert [r.valid for r in results] == [verify_xfr_note(params, n).valid for n in notes]

    def test_empty_batch(self, params):
        assert batch_verify_xfr_notes(params, [], SeededRandomSource(1)) == []

    def test_mixed_batch_matches_sequential(self, params, notes):
        batch = [notes[0], _with_bad_signature(notes[1]), notes[2], _with_bad_identity(notes[2])]
        batched = batch_verify_xfr_notes(params, batch, SeededRandomSource(2), max_workers=2)
        sequential = [verify_xfr_note(params, n) for n in batch]
        assert [r.valid for r in batched] == [r.valid for r in sequential] == [True, False, True, False]
        assert [r.reason for r in batched] == [r.reason for r in sequential]
        assert [type(r.error) for r in batched] == [type(r.error) for r in sequential]

    def test_signature_failure_after_deferred_pairing(self, params, notes):
        # the pairing of this note was deferred when its signature check failed
        bad = _with_bad_signature(notes[0])
        batched = batch_verify_xfr_notes(params, [bad], SeededRandomSource(3))
        assert batched[0].reason == verify_xfr_note(params, bad).reason
        assert not batched[0].valid

    def test_policies_per_note(self, params, notes, identity_policy):
        with_policy = NotePolicies(inputs=((identity_policy,),), outputs=((),))
        without = NotePolicies(inputs=((),), outputs=((),))
        policies = [with_policy, without, without]
        batched = batch_verify_xfr_notes(params, notes, SeededRandomSource(4), policies)
        sequential = [verify_xfr_note(params, n, p) for n, p in zip(notes, policies)]
        assert [r.valid for r in batched] == [r.valid for r in sequential] == [True, True, False]

    def test_policy_count_must_match(self, params, notes):
        with pytest.raises(ValueError):
            batch_verify_xfr_notes(params, notes, SeededRandomSource(5), [None])

    def test_pairing_only_failure_falls_back(self, params, notes, forged_note):
        sequential = verify_xfr_note(params, forged_note)
        assert sequential.error.kind == "identity_tracing"

        batch = [notes[0], forged_note, notes[2]]
        batched = batch_verify_xfr_notes(params, batch, SeededRandomSource(6))
        assert [r.valid for r in batched] == [True, False, True]
        assert batched[1].reason == sequential.reason
        assert batched[1].error.kind == "identity_tracing"


class TestBatchProperties:
    """random mixes of valid and invalid notes."""

    @given(
        picks=st.lists(st.integers(min_value=0, max_value=5), min_size=1, max_size=4),
        seed=st.integers(min_value=0, max_value=2**32 - 1),
    )
    def test_matches_sequential(self, params, pool, picks, seed):
        batch = [pool[i] for i in picks]
        batched = batch_verify_xfr_notes(params, batch, SeededRandomSource(seed), max_workers=2)
        sequential = [verify_xfr_note(params, n) for n in batch]
        assert [(r.valid, r.reason) for r in batched] == [(r.valid, r.reason) for r in sequential]
        assert [type(r.error) for r in batched] == [type(r.error) for r in sequential]
        assert [r.valid for r in batched] == [i < 3 for i in picks]
