# Author: Bradley R. Kinnard
# crypto module - commitments, encryption, sigma protocols, credentials and owner keys

from crypto.parameters import Parameters
from crypto.rng import (
    RandomSource,
    SystemRandomSource,
    SeededRandomSource,
)
from crypto.pedersen import (
    PedersenCommitment,
    PedersenScheme,
    check_amount,
    commit,
    open_commitment,
    sum_commitments,
)
from crypto.elgamal import (
    ElGamalKeyPair,
    ElGamalPublicKey,
    ElGamalSecretKey,
    ExponentCiphertext,
    encrypt,
    encrypt_amount,
    rerandomize,
    homomorphic_add,
    homomorphic_sub,
    partial_decrypt,
    verify_plaintext,
    decrypt,
)
from crypto.transcript import Transcript
from crypto.sigma import (
    SigmaKind,
    DlogStatement,
    ChaumPedersenStatement,
    PedersenElGamalStatement,
    DlogKnowledgeProof,
    ChaumPedersenProof,
    PedersenElGamalEqProof,
    prove_dlog,
    prove_chaum_pedersen,
    prove_pedersen_elgamal_eq,
    verify_sigma,
)
from crypto.or_proofs import OrProof, OrProver, verify_or
from crypto.range_proof import (
    RangeProof,
    StandaloneRangeProof,
    prove_range,
    verify_range,
)
from crypto.credentials import (
    CredentialIssuerKeyPair,
    CredentialIssuerPublicKey,
    CredentialUserKeyPair,
    CredentialSignature,
    CredentialRandomizer,
    IssuanceRequest,
    AttributeRevealProof,
    ConfidentialRevealProof,
    request_credential,
    issue,
    unblind,
    sign_attributes,
    randomize,
    verify_credential,
    reveal,
    verify_reveal,
    confidential_reveal,
    verify_confidential_reveal,
    batch_verify_reveals,
)
from crypto.signatures import XfrKeyPair, XfrPublicKey, verify_signature
from crypto.hybrid import hybrid_encrypt, hybrid_decrypt

__all__ = [
    # parameters / randomness
    "Parameters",
    "RandomSource",
    "SystemRandomSource",
    "SeededRandomSource",
    # pedersen
    "PedersenCommitment",
    "PedersenScheme",
    "check_amount",
    "commit",
    "open_commitment",
    "sum_commitments",
    # elgamal
    "ElGamalKeyPair",
    "ElGamalPublicKey",
    "ElGamalSecretKey",
    "ExponentCiphertext",
    "encrypt",
    "encrypt_amount",
    "rerandomize",
    "homomorphic_add",
    "homomorphic_sub",
    "partial_decrypt",
    "verify_plaintext",
    "decrypt",
    # sigma protocols
    "Transcript",
    "SigmaKind",
    "DlogStatement",
    "ChaumPedersenStatement",
    "PedersenElGamalStatement",
    "DlogKnowledgeProof",
    "ChaumPedersenProof",
    "PedersenElGamalEqProof",
    "prove_dlog",
    "prove_chaum_pedersen",
    "prove_pedersen_elgamal_eq",
    "verify_sigma",
    "OrProof",
    "OrProver",
    "verify_or",
    "RangeProof",
    "StandaloneRangeProof",
    "prove_range",
    "verify_range",
    # credentials
    "CredentialIssuerKeyPair",
    "CredentialIssuerPublicKey",
    "CredentialUserKeyPair",
    "CredentialSignature",
    "CredentialRandomizer",
    "IssuanceRequest",
    "AttributeRevealProof",
    "ConfidentialRevealProof",
    "request_credential",
    "issue",
    "unblind",
    "sign_attributes",
    "randomize",
    "verify_credential",
    "reveal",
    "verify_reveal",
    "confidential_reveal",
    "verify_confidential_reveal",
    "batch_verify_reveals",
    # owner keys
    "XfrKeyPair",
    "XfrPublicKey",
    "verify_signature",
    "hybrid_encrypt",
    "hybrid_decrypt",
]
