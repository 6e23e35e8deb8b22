# Author: Bradley R. Kinnard
# owner keys - Ed25519 for spending signatures, X25519 for receiving owner memos

from dataclasses import dataclass
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519

from crypto.rng import RandomSource
from utils.errors import InvalidProofEncoding
from utils.helpers import get_logger

logger = get_logger(__name__)

PUBLIC_KEY_LEN = 64


def _raw_public(key) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )


@dataclass(frozen=True)
class XfrPublicKey:
    """
    record owner identity.

    signing_key verifies spend signatures; memo_key receives owner memos.
    """
    signing_key: bytes
    memo_key: bytes

    def to_bytes(self) -> bytes:
        return self.signing_key + self.memo_key

    @classmethod
    def from_bytes(cls, data: bytes) -> "XfrPublicKey":
        if len(data) != PUBLIC_KEY_LEN:
            raise InvalidProofEncoding(f"owner key must be {PUBLIC_KEY_LEN} bytes, got {len(data)}")
        return cls(signing_key=bytes(data[:32]), memo_key=bytes(data[32:]))

    def hex(self) -> str:
        return self.to_bytes().hex()

    def to_dict(self) -> dict[str, Any]:
        return {"signing_key": self.signing_key.hex(), "memo_key": self.memo_key.hex()}


class XfrKeyPair:
    """owner key pair; key material is derived from the injected random source."""

    def __init__(self, signing_seed: bytes, memo_seed: bytes):
        self._signing = ed25519.Ed25519PrivateKey.from_private_bytes(signing_seed)
        self._memo = x25519.X25519PrivateKey.from_private_bytes(memo_seed)
        self.public = XfrPublicKey(
            signing_key=_raw_public(self._signing.public_key()),
            memo_key=_raw_public(self._memo.public_key()),
        )

    @classmethod
    def generate(cls, rng: RandomSource) -> "XfrKeyPair":
        return cls(rng.bytes(32), rng.bytes(32))

    def sign(self, message: bytes) -> bytes:
        return self._signing.sign(message)

    @property
    def memo_private_key(self) -> x25519.X25519PrivateKey:
        return self._memo

    def __repr__(self) -> str:
        return f"XfrKeyPair(public={self.public.hex()[:16]}...)"


def verify_signature(public: XfrPublicKey, message: bytes, signature: bytes) -> bool:
    """Ed25519 check; malformed keys or signatures are a plain rejection."""
    try:
        key = ed25519.Ed25519PublicKey.from_public_bytes(public.signing_key)
        key.verify(signature, message)
        return True
    except (InvalidSignature, ValueError, TypeError) as e:
        logger.warning(f"owner signature verification failed: {type(e).__name__}")
        return False
