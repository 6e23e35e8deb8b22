# Author: Bradley R. Kinnard
# end-to-end tests for building, verifying and spending transfer notes

import dataclasses

import pytest

from crypto.rng import SeededRandomSource
from utils.errors import (
    ParameterError,
    ProofVerificationFailure,
    RangeError,
    SignatureVerificationFailure,
    UnbalancedTransferError,
    XfrError,
)
import xfr.builder as builder
from xfr.builder import build_xfr_note
from xfr.memos import open_blind_asset_record
from xfr.structs import AssetRecord, AssetType, OwnerSignature, RecordType
from xfr.tracking import IdentityTracingPolicy, NotePolicies, TrackingPolicies, TrackingPolicy
from xfr.verifier import verify_xfr_note


def _replace_output(note, index, **changes):
    outputs = list(note.body.outputs)
    outputs[index] = dataclasses.replace(outputs[index], **changes)
    body = dataclasses.replace(note.body, outputs=tuple(outputs))
    return dataclasses.replace(note, body=body)


@pytest.fixture(scope="module")
def simple_note(params, alice, bob, carol, usd, eur):
    """alice pays bob 6 USD and carol 5 EUR from two confidential inputs."""
    inputs = [
        AssetRecord(amount=6, asset_type=usd, owner=alice.public),
        AssetRecord(amount=5, asset_type=eur, owner=alice.public),
    ]
    outputs = [
        AssetRecord(amount=6, asset_type=usd, owner=bob.public),
        AssetRecord(amount=5, asset_type=eur, owner=carol.public),
    ]
    return build_xfr_note(params, SeededRandomSource(100), inputs, outputs, [alice])


class TestBuildAndVerify:
    """a well-formed note verifies; every precondition fails early."""

    def test_confidential_note_verifies(self, params, simple_note):
        result = verify_xfr_note(params, simple_note)
        assert result.valid, result.reason
        assert bool(result)
        assert result.error is None
        result.raise_for_failure()

    def test_note_shape(self, simple_note):
        body = simple_note.body
        assert len(body.inputs) == 2 and len(body.outputs) == 2
        assert len(simple_note.signatures) == 1
        assert body.tracer_memos == () and body.proofs.tracing == ()
        assert all(memo is not None for memo in body.owner_memos)
        for record in body.records:
            assert record.amount is None and record.asset_type is None
            assert len(record.amount_commitment) == 32

    def test_to_dict_hides_amounts(self, simple_note):
        d = simple_note.body.outputs[0].to_dict()
        assert d["amount"] is None
        assert d["record_type"] == RecordType.CONFIDENTIAL_AMOUNT_AND_ASSET_TYPE.value

    def test_unbalanced_refused(self, params, rng, alice, bob, usd, eur):
        inputs = [
            AssetRecord(amount=10, asset_type=usd, owner=alice.public),
            AssetRecord(amount=5, asset_type=eur, owner=alice.public),
        ]
        outputs = [
            AssetRecord(amount=4, asset_type=usd, owner=bob.public),
            AssetRecord(amount=7, asset_type=usd, owner=bob.public),
            AssetRecord(amount=5, asset_type=eur, owner=bob.public),
        ]
        with pytest.raises(UnbalancedTransferError) as exc_info:
            build_xfr_note(params, rng, inputs, outputs, [alice])
        assert exc_info.value.asset_type == usd

    def test_amount_out_of_range_refused(self, params, rng, alice, bob, usd):
        big = params.amount_bound
        inputs = [AssetRecord(amount=big, asset_type=usd, owner=alice.public)]
        outputs = [AssetRecord(amount=big, asset_type=usd, owner=bob.public)]
        with pytest.raises(RangeError):
            build_xfr_note(params, rng, inputs, outputs, [alice])

    def test_missing_signing_key(self, params, rng, alice, bob, usd):
        inputs = [AssetRecord(amount=1, asset_type=usd, owner=alice.public)]
        outputs = [AssetRecord(amount=1, asset_type=usd, owner=bob.public)]
        with pytest.raises(XfrError, match="no signing key"):
            build_xfr_note(params, rng, inputs, outputs, [bob])

    def test_empty_outputs_refused(self, params, rng, alice, usd):
        inputs = [AssetRecord(amount=1, asset_type=usd, owner=alice.public)]
        with pytest.raises(ParameterError):
            build_xfr_note(params, rng, inputs, [], [alice])

    def test_too_many_asset_types_refused(self, params, rng, alice, bob):
        limited = dataclasses.replace(params, max_asset_types=2)
        types = [AssetType.from_code(code) for code in ("A", "B", "C")]
        inputs = [AssetRecord(amount=1, asset_type=t, owner=alice.public) for t in types]
        outputs = [AssetRecord(amount=1, asset_type=t, owner=bob.public) for t in types]
        with pytest.raises(ParameterError):
            build_xfr_note(limited, rng, inputs, outputs, [alice])

    def test_mixed_confidentiality(self, params, rng, alice, bob, carol, usd):
        inputs = [
            AssetRecord(amount=9, asset_type=usd, owner=alice.public, record_type=RecordType.NONCONFIDENTIAL),
            AssetRecord(amount=3, asset_type=usd, owner=bob.public, record_type=RecordType.CONFIDENTIAL_AMOUNT),
        ]
        outputs = [
            AssetRecord(amount=12, asset_type=usd, owner=carol.public, record_type=RecordType.CONFIDENTIAL_ASSET_TYPE),
        ]
        note = build_xfr_note(params, rng, inputs, outputs, [alice, bob])
        assert len(note.signatures) == 2
        assert note.body.inputs[0].amount == 9
        assert note.body.outputs[0].amount == 12
        result = verify_xfr_note(params, note)
        assert result.valid, result.reason

    def test_nonconfidential_output_has_no_owner_memo(self, params, rng, alice, bob, usd):
        inputs = [AssetRecord(amount=2, asset_type=usd, owner=alice.public)]
        outputs = [AssetRecord(amount=2, asset_type=usd, owner=bob.public, record_type=RecordType.NONCONFIDENTIAL)]
        note = build_xfr_note(params, rng, inputs, outputs, [alice])
        assert note.body.owner_memos == (None,)
        assert verify_xfr_note(params, note).valid


class TestTampering:
    """modified notes are rejected with a decodable reason."""

    def test_flipped_commitment_byte(self, params, simple_note):
        raw = bytearray(simple_note.body.outputs[0].amount_commitment)
        raw[5] ^= 0x01
        tampered = _replace_output(simple_note, 0, amount_commitment=bytes(raw))
        result = verify_xfr_note(params, tampered)
        assert not result.valid
        assert isinstance(result.error, ProofVerificationFailure)
        with pytest.raises(ProofVerificationFailure):
            result.raise_for_failure()

    def test_swapped_output_owner(self, params, simple_note, alice):
        tampered = _replace_output(simple_note, 0, owner=alice.public)
        result = verify_xfr_note(params, tampered)
        assert not result.valid
        assert isinstance(result.error, ProofVerificationFailure)
        assert result.error.kind == "asset_mix"

    def test_corrupted_signature(self, params, simple_note):
        sig = simple_note.signatures[0]
        bad = OwnerSignature(sig.public_key, bytes([sig.signature[0] ^ 1]) + sig.signature[1:])
        tampered = dataclasses.replace(simple_note, signatures=(bad,))
        result = verify_xfr_note(params, tampered)
        assert not result.valid
        assert isinstance(result.error, SignatureVerificationFailure)

    def test_missing_signature(self, params, simple_note):
        result = verify_xfr_note(params, dataclasses.replace(simple_note, signatures=()))
        assert isinstance(result.error, SignatureVerificationFailure)
        assert "missing" in result.reason

    def test_signature_by_non_owner(self, params, simple_note, bob):
        extra = OwnerSignature(bob.public, bob.sign(simple_note.body.to_bytes()))
        tampered = dataclasses.replace(simple_note, signatures=(*simple_note.signatures, extra))
        result = verify_xfr_note(params, tampered)
        assert isinstance(result.error, SignatureVerificationFailure)

    def test_dropped_output(self, params, simple_note):
        body = dataclasses.replace(
            simple_note.body,
            outputs=simple_note.body.outputs[:1],
            owner_memos=simple_note.body.owner_memos[:1],
        )
        result = verify_xfr_note(params, dataclasses.replace(simple_note, body=body))
        assert not result.valid
        assert isinstance(result.error, ProofVerificationFailure)

    def test_undecodable_commitment(self, params, simple_note):
        tampered = _replace_output(simple_note, 1, amount_commitment=b"\xff" * 32)
        result = verify_xfr_note(params, tampered)
        assert result.error.kind == "record"
        assert result.error.index == 3


class TestRecordTypeConsistency:
    """record_type must agree with which fields a record carries."""

    def test_relabelled_record_rejected(self, params, simple_note):
        tampered = _replace_output(simple_note, 0, record_type=RecordType.CONFIDENTIAL_ASSET_TYPE)
        result = verify_xfr_note(params, tampered)
        assert not result.valid
        assert result.error.kind == "record"
        assert result.error.index == 2

    def test_plaintext_next_to_commitment_rejected(self, params, simple_note):
        tampered = _replace_output(simple_note, 1, amount=5)
        result = verify_xfr_note(params, tampered)
        assert result.error.kind == "record"
        assert result.error.index == 3

    def test_shape_of_honest_records(self, simple_note):
        assert all(record.shape_error() is None for record in simple_note.body.records)

    def test_hidden_amount_under_amount_policy(self, params, monkeypatch, tracer, alice, bob, usd):
        # a builder that labels a committed amount as plaintext while proving everything else honestly
        honest = builder.blind_record

        def relabel(params, record, amount_blinding, type_blinding):
            blind = honest(params, record, amount_blinding, type_blinding)
            if record.owner == bob.public:
                return dataclasses.replace(blind, record_type=RecordType.CONFIDENTIAL_ASSET_TYPE)
            return blind

        monkeypatch.setattr(builder, "blind_record", relabel)
        type_only = TrackingPolicy(tracer_key=tracer.public, track_amount=False)
        note = build_xfr_note(
            params,
            SeededRandomSource(250),
            [AssetRecord(amount=4, asset_type=usd, owner=alice.public)],
            [AssetRecord(amount=4, asset_type=usd, owner=bob.public, policies=(type_only,))],
            [alice],
        )
        output = note.body.outputs[0]
        assert output.amount is None and output.amount_commitment is not None
        assert note.body.tracer_memos[1][0].lock_amount is None

        expected = NotePolicies(inputs=((),), outputs=((TrackingPolicy(tracer_key=tracer.public),),))
        result = verify_xfr_note(params, note, expected)
        assert not result.valid
        assert result.error.kind == "record"
        assert result.error.index == 1
        assert not verify_xfr_note(params, note).valid


class TestSpending:
    """owner memos let the recipient spend what they received."""

    def test_recipient_opens_output(self, params, simple_note, bob, usd):
        opened = open_blind_asset_record(
            params, simple_note.body.outputs[0], simple_note.body.owner_memos[0], bob
        )
        assert opened.amount == 6
        assert opened.asset_type == usd
        assert opened.owner == bob.public

    def test_other_key_cannot_open(self, params, simple_note, carol):
        with pytest.raises(XfrError):
            open_blind_asset_record(
                params, simple_note.body.outputs[0], simple_note.body.owner_memos[0], carol
            )

    def test_memo_for_other_record_rejected(self, params, simple_note, bob):
        record = simple_note.body.outputs[0]
        stolen = dataclasses.replace(record, amount_commitment=simple_note.body.outputs[1].amount_commitment)
        with pytest.raises(XfrError):
            open_blind_asset_record(params, stolen, simple_note.body.owner_memos[0], bob)

    def test_spend_chain(self, params, rng, simple_note, bob, carol, usd):
        received = open_blind_asset_record(
            params, simple_note.body.outputs[0], simple_note.body.owner_memos[0], bob
        )
        outputs = [
            AssetRecord(amount=2, asset_type=usd, owner=carol.public),
            AssetRecord(amount=4, asset_type=usd, owner=bob.public),
        ]
        note = build_xfr_note(params, rng, [received], outputs, [bob])
        # the spent input is byte-identical to the output it came from
        assert note.body.inputs[0] == simple_note.body.outputs[0]
        result = verify_xfr_note(params, note)
        assert result.valid, result.reason


class TestTrackedNotes:
    """notes with tracer memos and verifier-side policies."""

    @pytest.fixture(scope="class")
    def tracked(self, params, tracer, issuer, owner_credential, alice, bob, usd):
        amount_policy = TrackingPolicy(tracer_key=tracer.public)
        identity_policy = TrackingPolicy(
            tracer_key=tracer.public,
            track_amount=False,
            track_asset_type=False,
            identity=IdentityTracingPolicy(issuer.public, (True, True, False)),
        )
        inputs = [
            AssetRecord(
                amount=8, asset_type=usd, owner=alice.public,
                policies=(identity_policy,), identity=owner_credential,
            ),
        ]
        outputs = [
            AssetRecord(amount=8, asset_type=usd, owner=bob.public, policies=(amount_policy,)),
        ]
        note = build_xfr_note(params, SeededRandomSource(200), inputs, outputs, [alice])
        policies = NotePolicies(inputs=((identity_policy,),), outputs=((amount_policy,),))
        return note, policies

    def test_verifies_with_and_without_policies(self, params, tracked):
        note, policies = tracked
        assert verify_xfr_note(params, note).valid
        result = verify_xfr_note(params, note, policies)
        assert result.valid, result.reason

    def test_tracer_reads_the_note(self, params, tracked, tracer, usd, attributes):
        note, _ = tracked
        input_memo = note.body.tracer_memos[0][0]
        output_memo = note.body.tracer_memos[1][0]
        amount, asset_type, _ = output_memo.decrypt(params, tracer)
        assert (amount, asset_type) == (8, usd)
        _, _, identity = input_memo.decrypt(params, tracer)
        assert identity == [attributes[0], attributes[1]]

    def test_missing_memo_for_policy(self, params, tracked, tracer):
        note, policies = tracked
        stricter = NotePolicies(
            inputs=policies.inputs,
            outputs=((policies.outputs[0][0], TrackingPolicy(tracer_key=tracer.public)),),
        )
        result = verify_xfr_note(params, note, stricter)
        assert not result.valid
        assert result.error.kind == "asset_tracing"

    def test_policy_count_mismatch(self, params, tracked):
        note, policies = tracked
        result = verify_xfr_note(params, note, NotePolicies(inputs=policies.inputs, outputs=()))
        assert result.error.kind == "asset_tracing"

    def test_identity_attribute_swap_rejected(self, params, tracked):
        note, _ = tracked
        memos = note.body.tracer_memos
        memo = memos[0][0]
        swapped = dataclasses.replace(memo, lock_attributes=tuple(reversed(memo.lock_attributes)))
        body = dataclasses.replace(note.body, tracer_memos=((swapped,), memos[1]))
        result = verify_xfr_note(params, dataclasses.replace(note, body=body))
        assert not result.valid
        assert result.error.kind == "asset_tracing"


class TestPolicyCollections:
    """policies attached per asset type or globally at build time."""

    @pytest.fixture(scope="class")
    def collected(self, params, tracer, alice, bob, usd, eur):
        global_policy = TrackingPolicy(tracer_key=tracer.public, track_asset_type=False)
        usd_policy = TrackingPolicy(tracer_key=tracer.public, asset_type=usd)
        collection = TrackingPolicies((global_policy, usd_policy))
        inputs = [
            AssetRecord(amount=3, asset_type=usd, owner=alice.public),
            AssetRecord(amount=2, asset_type=eur, owner=alice.public),
        ]
        outputs = [
            AssetRecord(amount=3, asset_type=usd, owner=bob.public),
            AssetRecord(amount=2, asset_type=eur, owner=bob.public),
        ]
        note = build_xfr_note(
            params, SeededRandomSource(300), inputs, outputs, [alice], policies=collection
        )
        return note, collection

    def test_memos_follow_asset_types(self, collected):
        note, _ = collected
        assert [len(memos) for memos in note.body.tracer_memos] == [2, 1, 2, 1]

    def test_verifier_side_expectation(self, params, collected, usd, eur):
        note, collection = collected
        global_policy, usd_policy = collection.policies
        expected = NotePolicies.from_tracking_policies(collection, [usd, eur], [usd, eur])
        assert expected.inputs == ((global_policy, usd_policy), (global_policy,))
        assert expected.outputs == expected.inputs
        result = verify_xfr_note(params, note, expected)
        assert result.valid, result.reason

    def test_expectation_without_type_policy_rejected(self, params, collected, usd, eur):
        note, collection = collected
        globals_only = TrackingPolicies(collection.policies[:1])
        expected = NotePolicies.from_tracking_policies(globals_only, [usd, eur], [usd, eur])
        result = verify_xfr_note(params, note, expected)
        assert result.error.kind == "asset_tracing"
        assert result.error.index == 0

    def test_tracer_reads_collected_memos(self, params, collected, tracer, usd):
        note, _ = collected
        # the global policy leaves the asset type untraced
        amount, asset_type, _ = note.body.tracer_memos[3][0].decrypt(params, tracer)
        assert (amount, asset_type) == (2, None)
        assert note.body.tracer_memos[3][0].lock_asset_type is None
        assert note.body.tracer_memos[2][1].verify_asset_type(params, tracer, usd)


@pytest.mark.slow
class TestFullWidth:
    """the shipped 64-bit amount bound."""

    def test_large_amounts(self, wide_params, alice, bob, usd):
        amount = 2**64 - 1
        inputs = [AssetRecord(amount=amount, asset_type=usd, owner=alice.public)]
        outputs = [AssetRecord(amount=amount, asset_type=usd, owner=bob.public)]
        note = build_xfr_note(wide_params, SeededRandomSource(300), inputs, outputs, [alice])
        result = verify_xfr_note(wide_params, note)
        assert result.valid, result.reason
        opened = open_blind_asset_record(wide_params, note.body.outputs[0], note.body.owner_memos[0], bob)
        assert opened.amount == amount
