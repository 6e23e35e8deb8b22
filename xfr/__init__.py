# Author: Bradley R. Kinnard
# xfr module - confidential multi-asset transfer notes

from xfr.structs import (
    AssetType,
    RecordType,
    AssetRecord,
    BlindAssetRecord,
    OwnerCredential,
    TracingProof,
    XfrProofs,
    XfrBody,
    XfrNote,
    OwnerSignature,
)
from xfr.mixer import (
    MixEntry,
    MixCommitment,
    AssetMixProof,
    prove_asset_mix,
    verify_asset_mix,
)
from xfr.tracking import (
    AssetTracerEncKey,
    AssetTracerKeyPair,
    IdentityTracingPolicy,
    TrackingPolicy,
    TrackingPolicies,
    NotePolicies,
    TracerMemo,
)
from xfr.memos import OwnerMemo, open_blind_asset_record
from xfr.builder import build_xfr_note
from xfr.verifier import (
    VerificationResult,
    verify_xfr_note,
    batch_verify_xfr_notes,
)

__all__ = [
    # data model
    "AssetType",
    "RecordType",
    "AssetRecord",
    "BlindAssetRecord",
    "OwnerCredential",
    "TracingProof",
    "XfrProofs",
    "XfrBody",
    "XfrNote",
    "OwnerSignature",
    # asset mixing
    "MixEntry",
    "MixCommitment",
    "AssetMixProof",
    "prove_asset_mix",
    "verify_asset_mix",
    # tracking
    "AssetTracerEncKey",
    "AssetTracerKeyPair",
    "IdentityTracingPolicy",
    "TrackingPolicy",
    "TrackingPolicies",
    "NotePolicies",
    "TracerMemo",
    # memos
    "OwnerMemo",
    "open_blind_asset_record",
    # build / verify
    "build_xfr_note",
    "VerificationResult",
    "verify_xfr_note",
    "batch_verify_xfr_notes",
]
