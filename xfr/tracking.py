# Author: Bradley R. Kinnard
# asset tracing - tracer keys, policies, tracer memos and their binding proofs
#
# a tracer memo holds exponent-ElGamal ciphertexts of the confidential fields
# a policy asks for, each tied to the record's commitment by a
# PedersenElGamalEq proof, plus a hybrid-encrypted copy of the plaintexts so
# the tracer never needs a discrete-log search.

import json
from dataclasses import dataclass, field
from typing import Sequence

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import x25519

from algebra.groups import G1Element
from crypto.credentials import (
    CredentialIssuerPublicKey,
    PairingCheck,
    confidential_reveal,
    prepare_confidential_reveal,
)
from crypto.elgamal import (
    ElGamalKeyPair,
    ElGamalPublicKey,
    ExponentCiphertext,
    encrypt,
    encrypt_amount,
    verify_plaintext,
)
from crypto.hybrid import hybrid_decrypt, hybrid_encrypt
from crypto.parameters import Parameters
from crypto.rng import RandomSource
from crypto.sigma import (
    PedersenElGamalStatement,
    prove_pedersen_elgamal_eq,
    verify_sigma,
)
from utils.errors import ParameterError, XfrError
from utils.helpers import get_logger
from xfr.structs import AssetRecord, AssetType, BlindAssetRecord, TracingProof

logger = get_logger(__name__)

_MEMO_INFO = b"xfr-tracer-memo"


@dataclass(frozen=True)
class AssetTracerEncKey:
    """public half of a tracer key."""
    record_key: ElGamalPublicKey
    attrs_key: ElGamalPublicKey
    memo_key: bytes

    def to_bytes(self) -> bytes:
        return self.record_key.to_bytes() + self.attrs_key.to_bytes() + self.memo_key


class AssetTracerKeyPair:
    """
    tracer key material: one ElGamal key for record fields, one for identity
    attributes, one X25519 key for the plaintext side channel.
    """

    def __init__(self, record: ElGamalKeyPair, attrs: ElGamalKeyPair, memo: x25519.X25519PrivateKey):
        self.record = record
        self.attrs = attrs
        self._memo = memo
        self.public = AssetTracerEncKey(
            record_key=record.public,
            attrs_key=attrs.public,
            memo_key=memo.public_key().public_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PublicFormat.Raw,
            ),
        )

    @classmethod
    def generate(cls, params: Parameters, rng: RandomSource) -> "AssetTracerKeyPair":
        return cls(
            record=ElGamalKeyPair.generate(params, rng),
            attrs=ElGamalKeyPair.generate(params, rng),
            memo=x25519.X25519PrivateKey.from_private_bytes(rng.bytes(32)),
        )

    @property
    def memo_private_key(self) -> x25519.X25519PrivateKey:
        return self._memo

    def __repr__(self) -> str:
        return f"AssetTracerKeyPair(public={self.public.to_bytes().hex()[:16]}...)"


@dataclass(frozen=True)
class IdentityTracingPolicy:
    """reveal_map[i] says whether credential attribute i goes to the tracer."""
    issuer_pk: CredentialIssuerPublicKey
    reveal_map: tuple[bool, ...]

    @property
    def encrypted_indices(self) -> tuple[int, ...]:
        return tuple(i for i, flag in enumerate(self.reveal_map) if flag)


@dataclass(frozen=True)
class TrackingPolicy:
    """
    which fields of a record are traced, and to whom.

    asset_type=None makes the policy global (applies to every asset type).
    """
    tracer_key: AssetTracerEncKey
    track_amount: bool = True
    track_asset_type: bool = True
    identity: IdentityTracingPolicy | None = None
    asset_type: AssetType | None = None


@dataclass(frozen=True)
class TrackingPolicies:
    policies: tuple[TrackingPolicy, ...] = field(default_factory=tuple)

    def for_asset_type(self, asset_type: AssetType) -> tuple[TrackingPolicy, ...]:
        return tuple(
            p for p in self.policies if p.asset_type is None or p.asset_type == asset_type
        )

    def __len__(self) -> int:
        return len(self.policies)


@dataclass(frozen=True)
class NotePolicies:
    """tracking policies a verifier expects, per input and per output."""
    inputs: tuple[tuple[TrackingPolicy, ...], ...]
    outputs: tuple[tuple[TrackingPolicy, ...], ...]

    @classmethod
    def from_tracking_policies(
        cls,
        policies: TrackingPolicies,
        input_types: Sequence[AssetType],
        output_types: Sequence[AssetType],
    ) -> "NotePolicies":
        """
        expectation for a note built with build_xfr_note(..., policies=policies)
        from records without policies of their own, given each record's asset type.
        """
        return cls(
            inputs=tuple(policies.for_asset_type(t) for t in input_types),
            outputs=tuple(policies.for_asset_type(t) for t in output_types),
        )

    @property
    def records(self) -> tuple[tuple[TrackingPolicy, ...], ...]:
        return self.inputs + self.outputs


@dataclass(frozen=True)
class TracerMemo:
    tracer_key: AssetTracerEncKey
    lock_amount: ExponentCiphertext | None
    lock_asset_type: ExponentCiphertext | None
    lock_attributes: tuple[ExponentCiphertext, ...]
    lock_info: bytes
    identity_issuer: CredentialIssuerPublicKey | None = None

    def to_bytes(self) -> bytes:
        out = bytearray(self.tracer_key.to_bytes())
        for ct in (self.lock_amount, self.lock_asset_type):
            out += b"-" if ct is None else b"+" + ct.to_bytes()
        out += len(self.lock_attributes).to_bytes(2, "big")
        for ct in self.lock_attributes:
            out += ct.to_bytes()
        out += len(self.lock_info).to_bytes(4, "big") + self.lock_info
        if self.identity_issuer is not None:
            out += self.identity_issuer.to_bytes()
        return bytes(out)

    def _open_info(self, keypair: AssetTracerKeyPair) -> dict:
        raw = hybrid_decrypt(keypair.memo_private_key, self.lock_info, _MEMO_INFO)
        try:
            return json.loads(raw)
        except ValueError as e:
            raise XfrError(f"tracer memo payload is not valid json: {e}") from e

    def decrypt(
        self,
        params: Parameters,
        keypair: AssetTracerKeyPair,
    ) -> tuple[int | None, AssetType | None, list[int]]:
        """
        recover (amount, asset type, identity attributes).

        every ciphertext is checked against the recovered plaintext, so a
        memo whose two halves disagree raises XfrError.
        """
        info = self._open_info(keypair)
        amount = info.get("amount")
        asset_type = None
        if info.get("asset_type") is not None:
            asset_type = AssetType(bytes.fromhex(info["asset_type"]))
        attributes = list(info.get("attributes", []))

        if self.lock_amount is not None:
            if amount is None or not verify_plaintext(params, self.lock_amount, keypair.record.secret, amount):
                raise XfrError("tracer memo: amount ciphertext does not match")
        if self.lock_asset_type is not None:
            if asset_type is None or not verify_plaintext(
                params, self.lock_asset_type, keypair.record.secret, asset_type.as_scalar()
            ):
                raise XfrError("tracer memo: asset type ciphertext does not match")
        if len(attributes) != len(self.lock_attributes):
            raise XfrError("tracer memo: attribute count does not match")
        for i, (ct, value) in enumerate(zip(self.lock_attributes, attributes)):
            if not verify_plaintext(params, ct, keypair.attrs.secret, value):
                raise XfrError(f"tracer memo: attribute {i} ciphertext does not match")
        return amount, asset_type, attributes

    def verify_amount(self, params: Parameters, keypair: AssetTracerKeyPair, expected: int) -> bool:
        if self.lock_amount is None:
            raise XfrError("tracer memo does not lock an amount")
        return verify_plaintext(params, self.lock_amount, keypair.record.secret, expected)

    def verify_asset_type(self, params: Parameters, keypair: AssetTracerKeyPair, expected: AssetType) -> bool:
        if self.lock_asset_type is None:
            raise XfrError("tracer memo does not lock an asset type")
        return verify_plaintext(params, self.lock_asset_type, keypair.record.secret, expected.as_scalar())

    def extract_asset_type(
        self,
        params: Parameters,
        keypair: AssetTracerKeyPair,
        candidates: Sequence[AssetType],
    ) -> AssetType:
        """find the locked asset type among known candidates."""
        for candidate in candidates:
            if self.verify_asset_type(params, keypair, candidate):
                return candidate
        raise XfrError("locked asset type is not among the candidates")

    def verify_identity_attributes(
        self,
        params: Parameters,
        keypair: AssetTracerKeyPair,
        expected: Sequence[int],
    ) -> list[bool]:
        if len(expected) != len(self.lock_attributes):
            raise ParameterError("one expected value per locked attribute required")
        return [
            verify_plaintext(params, ct, keypair.attrs.secret, value)
            for ct, value in zip(self.lock_attributes, expected)
        ]


def identity_context(context: bytes, owner_bytes: bytes) -> bytes:
    return context + b"/identity/" + owner_bytes


def build_tracer_memo(
    params: Parameters,
    rng: RandomSource,
    policy: TrackingPolicy,
    record: AssetRecord,
    amount_blinding: int,
    type_blinding: int,
    amount_commitment: G1Element,
    type_commitment: G1Element,
    context: bytes,
) -> tuple[TracerMemo, TracingProof]:
    """encrypt what the policy traces and prove each ciphertext matches its commitment."""
    key = policy.tracer_key
    info: dict = {}
    lock_amount = lock_asset_type = None
    amount_proof = asset_type_proof = identity_proof = None

    if policy.track_amount:
        info["amount"] = record.amount
        if record.record_type.confidential_amount:
            r = rng.nonzero_scalar()
            lock_amount = encrypt_amount(params, key.record_key, record.amount, r)
            statement = PedersenElGamalStatement(key.record_key, lock_amount, amount_commitment)
            amount_proof = prove_pedersen_elgamal_eq(
                params, rng, statement, record.amount, r, amount_blinding, context
            )

    if policy.track_asset_type:
        info["asset_type"] = record.asset_type.code.hex()
        if record.record_type.confidential_asset_type:
            r = rng.nonzero_scalar()
            scalar = record.asset_type.as_scalar()
            lock_asset_type = encrypt(params, key.record_key, scalar, r)
            statement = PedersenElGamalStatement(key.record_key, lock_asset_type, type_commitment)
            asset_type_proof = prove_pedersen_elgamal_eq(
                params, rng, statement, scalar, r, type_blinding, context
            )

    lock_attributes: tuple[ExponentCiphertext, ...] = ()
    identity_issuer = None
    if policy.identity is not None:
        credential = record.identity
        if credential is None:
            raise XfrError("identity tracing requires the owner's credential")
        if credential.issuer_pk != policy.identity.issuer_pk:
            raise XfrError("owner credential was issued under a different issuer key")
        identity_proof, ciphertexts = confidential_reveal(
            params, rng, credential.issuer_pk, credential.user, credential.signature,
            credential.attributes, key.attrs_key, policy.identity.encrypted_indices,
            identity_context(context, record.owner.to_bytes()),
        )
        lock_attributes = tuple(ciphertexts)
        identity_issuer = credential.issuer_pk
        info["attributes"] = [credential.attributes[i] for i in policy.identity.encrypted_indices]

    lock_info = hybrid_encrypt(
        rng, key.memo_key, json.dumps(info, sort_keys=True).encode(), _MEMO_INFO
    )
    memo = TracerMemo(
        tracer_key=key,
        lock_amount=lock_amount,
        lock_asset_type=lock_asset_type,
        lock_attributes=lock_attributes,
        lock_info=lock_info,
        identity_issuer=identity_issuer,
    )
    return memo, TracingProof(amount_proof, asset_type_proof, identity_proof)


def _matches_policy(memo: TracerMemo, record: BlindAssetRecord, policy: TrackingPolicy) -> str | None:
    if memo.tracer_key != policy.tracer_key:
        return "memo is locked to a different tracer"
    if policy.track_amount and record.record_type.confidential_amount and memo.lock_amount is None:
        return "policy traces the amount but the memo does not lock it"
    if policy.track_asset_type and record.record_type.confidential_asset_type and memo.lock_asset_type is None:
        return "policy traces the asset type but the memo does not lock it"
    if policy.identity is not None:
        if memo.identity_issuer != policy.identity.issuer_pk:
            return "identity proof is not under the policy's issuer key"
        if len(memo.lock_attributes) != len(policy.identity.encrypted_indices):
            return "identity attributes do not follow the policy reveal map"
    elif memo.lock_attributes:
        return "memo locks identity attributes the policy does not ask for"
    return None


def verify_tracing(
    params: Parameters,
    record: BlindAssetRecord,
    memo: TracerMemo,
    proof: TracingProof,
    amount_commitment: G1Element,
    type_commitment: G1Element,
    context: bytes,
    policy: TrackingPolicy | None = None,
) -> tuple[bool, str, list[PairingCheck]]:
    """
    check one memo's binding proofs. pairing checks of an identity proof are
    returned, not evaluated, so callers can batch them.
    """
    if policy is not None:
        mismatch = _matches_policy(memo, record, policy)
        if mismatch:
            return False, mismatch, []

    key = memo.tracer_key
    for label, lock, sub_proof, commitment in (
        ("amount", memo.lock_amount, proof.amount, amount_commitment),
        ("asset type", memo.lock_asset_type, proof.asset_type, type_commitment),
    ):
        if (lock is None) != (sub_proof is None):
            return False, f"{label} ciphertext and proof must come together", []
        if lock is None:
            continue
        statement = PedersenElGamalStatement(key.record_key, lock, commitment)
        ok, reason = verify_sigma(params, statement, sub_proof, context)
        if not ok:
            return False, f"{label} binding: {reason}", []

    if memo.lock_amount is not None and not record.record_type.confidential_amount:
        return False, "amount ciphertext on a plaintext amount", []
    if memo.lock_asset_type is not None and not record.record_type.confidential_asset_type:
        return False, "asset type ciphertext on a plaintext asset type", []

    if proof.identity is None:
        if memo.lock_attributes or memo.identity_issuer is not None:
            return False, "identity ciphertexts without a proof", []
        return True, "valid", []
    if memo.identity_issuer is None:
        return False, "identity proof without an issuer key", []

    check, reason = prepare_confidential_reveal(
        params, memo.identity_issuer, key.attrs_key, memo.lock_attributes, proof.identity,
        identity_context(context, record.owner.to_bytes()),
    )
    if check is None:
        return False, f"identity: {reason}", []
    return True, "valid", [check]

