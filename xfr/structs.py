# Author: Bradley R. Kinnard
# data model of a transfer note
# open records carry secrets, blind records carry only what goes on the note

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from algebra.groups import G1Element, hash_to_scalar
from crypto.credentials import (
    ConfidentialRevealProof,
    CredentialIssuerPublicKey,
    CredentialSignature,
    CredentialUserKeyPair,
)
from crypto.parameters import Parameters
from crypto.sigma import PedersenElGamalEqProof
from crypto.signatures import XfrPublicKey
from utils.errors import InvalidProofEncoding, ParameterError

if TYPE_CHECKING:
    from xfr.mixer import AssetMixProof
    from xfr.tracking import TracerMemo, TrackingPolicy
    from xfr.memos import OwnerMemo

ASSET_TYPE_LEN = 32


@dataclass(frozen=True)
class AssetType:
    """32-byte asset code. the scalar form is what gets committed."""
    code: bytes

    def __post_init__(self):
        if len(self.code) != ASSET_TYPE_LEN:
            raise ParameterError(f"asset type code must be {ASSET_TYPE_LEN} bytes")

    @classmethod
    def from_code(cls, code: str | bytes) -> "AssetType":
        if isinstance(code, str):
            code = code.encode()
        if len(code) > ASSET_TYPE_LEN:
            raise ParameterError(f"asset type code longer than {ASSET_TYPE_LEN} bytes")
        return cls(code.ljust(ASSET_TYPE_LEN, b"\x00"))

    def as_scalar(self) -> int:
        return hash_to_scalar(b"xfr/asset-type", self.code)

    def __str__(self) -> str:
        return self.code.rstrip(b"\x00").decode(errors="replace")


class RecordType(Enum):
    NONCONFIDENTIAL = "nonconfidential"
    CONFIDENTIAL_AMOUNT = "confidential-amount"
    CONFIDENTIAL_ASSET_TYPE = "confidential-asset-type"
    CONFIDENTIAL_AMOUNT_AND_ASSET_TYPE = "confidential-amount-and-asset-type"

    @classmethod
    def from_flags(cls, confidential_amount: bool, confidential_asset_type: bool) -> "RecordType":
        if confidential_amount and confidential_asset_type:
            return cls.CONFIDENTIAL_AMOUNT_AND_ASSET_TYPE
        if confidential_amount:
            return cls.CONFIDENTIAL_AMOUNT
        if confidential_asset_type:
            return cls.CONFIDENTIAL_ASSET_TYPE
        return cls.NONCONFIDENTIAL

    @property
    def confidential_amount(self) -> bool:
        return self in (RecordType.CONFIDENTIAL_AMOUNT, RecordType.CONFIDENTIAL_AMOUNT_AND_ASSET_TYPE)

    @property
    def confidential_asset_type(self) -> bool:
        return self in (RecordType.CONFIDENTIAL_ASSET_TYPE, RecordType.CONFIDENTIAL_AMOUNT_AND_ASSET_TYPE)


@dataclass(frozen=True)
class OwnerCredential:
    """credential material the owner of a record presents for identity tracking."""
    issuer_pk: CredentialIssuerPublicKey
    user: CredentialUserKeyPair
    signature: CredentialSignature
    attributes: tuple[int, ...]


@dataclass(frozen=True)
class AssetRecord:
    """
    open record, as known to its owner.

    blindings are chosen by the builder when None; they come back filled in
    on the output side through owner memos.
    """
    amount: int
    asset_type: AssetType
    owner: XfrPublicKey
    record_type: RecordType = RecordType.CONFIDENTIAL_AMOUNT_AND_ASSET_TYPE
    amount_blinding: int | None = None
    type_blinding: int | None = None
    policies: tuple["TrackingPolicy", ...] = ()
    identity: OwnerCredential | None = None


@dataclass(frozen=True)
class BlindAssetRecord:
    """
    on-note record. a confidential field is an encoded commitment, a
    non-confidential one is the plaintext value.
    """
    owner: XfrPublicKey
    record_type: RecordType
    amount: int | None = None
    amount_commitment: bytes | None = None
    asset_type: AssetType | None = None
    asset_type_commitment: bytes | None = None

    def shape_error(self) -> str | None:
        """
        None when the fields present agree with record_type: a confidential
        field carries only its commitment, a plaintext one only its value.
        """
        for label, confidential, value, commitment in (
            ("amount", self.record_type.confidential_amount, self.amount, self.amount_commitment),
            ("asset type", self.record_type.confidential_asset_type, self.asset_type,
             self.asset_type_commitment),
        ):
            if confidential and (commitment is None or value is not None):
                return f"{self.record_type.value} record needs a hidden {label}"
            if not confidential and (value is None or commitment is not None):
                return f"{self.record_type.value} record needs a plaintext {label}"
        return None

    def amount_point(self, params: Parameters) -> G1Element:
        """decode (or derive, for plaintext) the amount commitment."""
        if self.amount_commitment is not None:
            point = G1Element.from_bytes(self.amount_commitment)
            if self.amount is not None and point != params.mul_g(self.amount):
                raise InvalidProofEncoding("plaintext amount disagrees with its commitment")
            return point
        if self.amount is None:
            raise InvalidProofEncoding("record has neither an amount nor a commitment")
        return params.mul_g(self.amount)

    def asset_type_point(self, params: Parameters) -> G1Element:
        if self.asset_type_commitment is not None:
            point = G1Element.from_bytes(self.asset_type_commitment)
            if self.asset_type is not None and point != params.mul_g(self.asset_type.as_scalar()):
                raise InvalidProofEncoding("plaintext asset type disagrees with its commitment")
            return point
        if self.asset_type is None:
            raise InvalidProofEncoding("record has neither an asset type nor a commitment")
        return params.mul_g(self.asset_type.as_scalar())

    def to_bytes(self) -> bytes:
        out = bytearray(self.owner.to_bytes())
        out += self.record_type.value.encode()
        out += b"A" + (self.amount.to_bytes(8, "big") if self.amount is not None else b"-")
        out += b"C" + (self.amount_commitment or b"-")
        out += b"T" + (self.asset_type.code if self.asset_type is not None else b"-")
        out += b"D" + (self.asset_type_commitment or b"-")
        return bytes(out)

    def to_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner.hex(),
            "record_type": self.record_type.value,
            "amount": self.amount,
            "amount_commitment": self.amount_commitment.hex() if self.amount_commitment else None,
            "asset_type": str(self.asset_type) if self.asset_type is not None else None,
            "asset_type_commitment": (
                self.asset_type_commitment.hex() if self.asset_type_commitment else None
            ),
        }


@dataclass(frozen=True)
class TracingProof:
    """binding proofs attached next to one tracer memo."""
    amount: PedersenElGamalEqProof | None = None
    asset_type: PedersenElGamalEqProof | None = None
    identity: ConfidentialRevealProof | None = None

    def to_bytes(self) -> bytes:
        out = bytearray()
        for part in (self.amount, self.asset_type, self.identity):
            out += b"-" if part is None else b"+" + part.to_bytes()
        return bytes(out)


@dataclass(frozen=True)
class XfrProofs:
    asset_mix: "AssetMixProof"
    # per record (inputs then outputs), one entry per attached tracer memo
    tracing: tuple[tuple[TracingProof, ...], ...] = ()

    def to_bytes(self) -> bytes:
        out = bytearray(self.asset_mix.to_bytes())
        for record_proofs in self.tracing:
            out += len(record_proofs).to_bytes(2, "big")
            for proof in record_proofs:
                out += proof.to_bytes()
        return bytes(out)


@dataclass(frozen=True)
class XfrBody:
    inputs: tuple[BlindAssetRecord, ...]
    outputs: tuple[BlindAssetRecord, ...]
    proofs: XfrProofs
    tracer_memos: tuple[tuple["TracerMemo", ...], ...] = ()
    owner_memos: tuple["OwnerMemo | None", ...] = ()

    @property
    def records(self) -> tuple[BlindAssetRecord, ...]:
        return self.inputs + self.outputs

    def to_bytes(self) -> bytes:
        """canonical encoding; this is what input owners sign."""
        out = bytearray(b"xfr-body")
        out += records_bytes(self.inputs, self.outputs)
        out += self.proofs.to_bytes()
        for memos in self.tracer_memos:
            out += len(memos).to_bytes(2, "big")
            for memo in memos:
                out += memo.to_bytes()
        for memo in self.owner_memos:
            out += b"-" if memo is None else b"+" + memo.to_bytes()
        return bytes(out)


def records_bytes(inputs, outputs) -> bytes:
    out = bytearray(len(inputs).to_bytes(2, "big") + len(outputs).to_bytes(2, "big"))
    for record in (*inputs, *outputs):
        encoded = record.to_bytes()
        out += len(encoded).to_bytes(4, "big") + encoded
    return bytes(out)


@dataclass(frozen=True)
class OwnerSignature:
    public_key: XfrPublicKey
    signature: bytes


@dataclass(frozen=True)
class XfrNote:
    body: XfrBody
    signatures: tuple[OwnerSignature, ...] = field(default_factory=tuple)
