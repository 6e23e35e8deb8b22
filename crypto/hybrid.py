# Author: Bradley R. Kinnard
# hybrid public-key encryption for memo payloads
# X25519 key agreement -> HKDF-SHA256 -> AES-256-GCM

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import x25519
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from crypto.rng import RandomSource
from utils.errors import InvalidProofEncoding, XfrError

EPHEMERAL_LEN = 32
NONCE_LEN = 12


def _derive_key(shared: bytes, ephemeral: bytes, recipient: bytes, info: bytes) -> bytes:
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=ephemeral + recipient,
        info=info,
    ).derive(shared)


def hybrid_encrypt(
    rng: RandomSource,
    recipient_key: bytes,
    plaintext: bytes,
    info: bytes = b"xfr-memo",
) -> bytes:
    """returns ephemeral_pub || nonce || aes-gcm(ciphertext || tag)."""
    ephemeral = x25519.X25519PrivateKey.from_private_bytes(rng.bytes(32))
    ephemeral_pub = ephemeral.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    peer = x25519.X25519PublicKey.from_public_bytes(recipient_key)
    key = _derive_key(ephemeral.exchange(peer), ephemeral_pub, recipient_key, info)
    nonce = rng.bytes(NONCE_LEN)
    return ephemeral_pub + nonce + AESGCM(key).encrypt(nonce, plaintext, info)


def hybrid_decrypt(
    private_key: x25519.X25519PrivateKey,
    blob: bytes,
    info: bytes = b"xfr-memo",
) -> bytes:
    """raises XfrError when the blob was not encrypted to this key."""
    if len(blob) < EPHEMERAL_LEN + NONCE_LEN + 16:
        raise InvalidProofEncoding("hybrid ciphertext too short")
    ephemeral_pub = blob[:EPHEMERAL_LEN]
    nonce = blob[EPHEMERAL_LEN:EPHEMERAL_LEN + NONCE_LEN]
    body = blob[EPHEMERAL_LEN + NONCE_LEN:]
    recipient = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw,
    )
    try:
        shared = private_key.exchange(x25519.X25519PublicKey.from_public_bytes(ephemeral_pub))
    except ValueError as e:
        raise XfrError(f"invalid ephemeral key in memo: {e}") from e
    key = _derive_key(shared, ephemeral_pub, recipient, info)
    try:
        return AESGCM(key).decrypt(nonce, body, info)
    except InvalidTag as e:
        raise XfrError("memo decryption failed (wrong key or tampered memo)") from e
