# Author: Bradley R. Kinnard
# owner memos - how the recipient of a confidential output learns its opening

import json
from dataclasses import dataclass

from crypto.hybrid import hybrid_decrypt, hybrid_encrypt
from crypto.parameters import Parameters
from crypto.rng import RandomSource
from crypto.signatures import XfrKeyPair
from utils.errors import XfrError
from utils.helpers import get_logger
from xfr.structs import AssetRecord, AssetType, BlindAssetRecord

logger = get_logger(__name__)

_MEMO_INFO = b"xfr-owner-memo"


@dataclass(frozen=True)
class OwnerMemo:
    """amount, asset type and blindings, hybrid-encrypted to the owner's memo key."""
    blob: bytes

    def to_bytes(self) -> bytes:
        return self.blob


def build_owner_memo(
    rng: RandomSource,
    record: AssetRecord,
    amount_blinding: int,
    type_blinding: int,
) -> OwnerMemo:
    payload = {
        "amount": record.amount,
        "asset_type": record.asset_type.code.hex(),
        "amount_blinding": amount_blinding,
        "type_blinding": type_blinding,
    }
    blob = hybrid_encrypt(
        rng, record.owner.memo_key, json.dumps(payload, sort_keys=True).encode(), _MEMO_INFO
    )
    return OwnerMemo(blob)


def open_blind_asset_record(
    params: Parameters,
    record: BlindAssetRecord,
    memo: OwnerMemo | None,
    keypair: XfrKeyPair,
) -> AssetRecord:
    """
    recover the open record behind a note output so it can be spent.

    the recovered opening is checked against the record's commitments;
    a memo that does not open them raises XfrError.
    """
    if record.owner != keypair.public:
        raise XfrError("record is not owned by this key")

    amount_blinding = type_blinding = 0
    amount = record.amount
    asset_type = record.asset_type

    if record.record_type.confidential_amount or record.record_type.confidential_asset_type:
        if memo is None:
            raise XfrError("confidential record needs an owner memo to open")
        raw = hybrid_decrypt(keypair.memo_private_key, memo.blob, _MEMO_INFO)
        try:
            payload = json.loads(raw)
            amount = int(payload["amount"])
            asset_type = AssetType(bytes.fromhex(payload["asset_type"]))
            amount_blinding = int(payload["amount_blinding"])
            type_blinding = int(payload["type_blinding"])
        except (ValueError, KeyError, TypeError) as e:
            raise XfrError(f"owner memo payload is malformed: {e}") from e

    if record.record_type.confidential_amount:
        if record.amount_point(params) != params.pedersen(amount, amount_blinding):
            raise XfrError("owner memo does not open the amount commitment")
    if record.record_type.confidential_asset_type:
        if record.asset_type_point(params) != params.pedersen(asset_type.as_scalar(), type_blinding):
            raise XfrError("owner memo does not open the asset type commitment")

    logger.debug("opened blind asset record")
    return AssetRecord(
        amount=amount,
        asset_type=asset_type,
        owner=record.owner,
        record_type=record.record_type,
        amount_blinding=amount_blinding,
        type_blinding=type_blinding,
    )
