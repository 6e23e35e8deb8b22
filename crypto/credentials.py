# Author: Bradley R. Kinnard
# anonymous credentials - Pointcheval-Sanders signatures over bn254 with a
# user secret key bound into every credential
#
# issuer secret (x, z, y_1..y_n), public (X2, Z1, Z2, Y1_i, Y2_i)
# a credential on (s, m_1..m_n) is (sigma1, sigma2) with
#   sigma2 = (x + z*s + sum y_i*m_i) * sigma1
# checked by e(sigma1, X2 + s*Z2 + sum m_i*Y2_i) == e(sigma2, g2)

from dataclasses import dataclass
from typing import Sequence

from algebra.groups import (
    CURVE_ORDER,
    G1Element,
    G2Element,
    multi_pairing,
)
from crypto.elgamal import ElGamalPublicKey, ExponentCiphertext, encrypt
from crypto.parameters import Parameters
from crypto.rng import RandomSource
from crypto.sigma import LinearProver, absorb_rows, check_linear
from crypto.transcript import Transcript
from utils.errors import ParameterError, RangeError, XfrError
from utils.helpers import get_logger

logger = get_logger(__name__)


def check_attributes(params: Parameters, attributes: Sequence[int], expected: int | None = None) -> list[int]:
    """attributes must be ints in [0, 2^attribute_bits)."""
    if expected is not None and len(attributes) != expected:
        raise ParameterError(f"expected {expected} attributes, got {len(attributes)}")
    for i, value in enumerate(attributes):
        if isinstance(value, bool) or not isinstance(value, int):
            raise RangeError(f"attribute {i} must be an integer")
        if value < 0 or value >= params.attribute_bound:
            raise RangeError(f"attribute {i} outside [0, 2^{params.attribute_bits})")
    return list(attributes)


# ---------------------------------------------------------------------------
# keys


@dataclass(frozen=True)
class CredentialIssuerPublicKey:
    x2: G2Element
    z1: G1Element
    z2: G2Element
    y1: tuple[G1Element, ...]
    y2: tuple[G2Element, ...]

    @property
    def num_attributes(self) -> int:
        return len(self.y2)

    def to_bytes(self) -> bytes:
        out = bytearray(self.x2.to_bytes() + self.z1.to_bytes() + self.z2.to_bytes())
        out += len(self.y1).to_bytes(2, "big")
        for a, b in zip(self.y1, self.y2):
            out += a.to_bytes() + b.to_bytes()
        return bytes(out)


@dataclass(frozen=True)
class CredentialIssuerSecretKey:
    x: int
    z: int
    y: tuple[int, ...]
    x1: G1Element

    def __repr__(self) -> str:
        return "CredentialIssuerSecretKey(<redacted>)"


@dataclass(frozen=True)
class CredentialIssuerKeyPair:
    secret: CredentialIssuerSecretKey
    public: CredentialIssuerPublicKey

    @classmethod
    def generate(cls, params: Parameters, rng: RandomSource, num_attributes: int) -> "CredentialIssuerKeyPair":
        if num_attributes < 1:
            raise ParameterError("an issuer key needs at least one attribute")
        x = rng.nonzero_scalar()
        z = rng.nonzero_scalar()
        y = tuple(rng.nonzero_scalar() for _ in range(num_attributes))
        g2 = params.g2
        public = CredentialIssuerPublicKey(
            x2=x * g2,
            z1=params.mul_g(z),
            z2=z * g2,
            y1=tuple(params.mul_g(yi) for yi in y),
            y2=tuple(yi * g2 for yi in y),
        )
        logger.debug(f"generated credential issuer key for {num_attributes} attributes")
        return cls(
            secret=CredentialIssuerSecretKey(x=x, z=z, y=y, x1=params.mul_g(x)),
            public=public,
        )


@dataclass(frozen=True)
class CredentialUserKeyPair:
    secret: int
    public: G1Element

    @classmethod
    def generate(
        cls,
        params: Parameters,
        rng: RandomSource,
        issuer_pk: CredentialIssuerPublicKey,
    ) -> "CredentialUserKeyPair":
        s = rng.nonzero_scalar()
        return cls(secret=s, public=s * issuer_pk.z1)

    def __repr__(self) -> str:
        return f"CredentialUserKeyPair(public={self.public!r})"


@dataclass(frozen=True)
class CredentialSignature:
    sigma1: G1Element
    sigma2: G1Element

    def to_bytes(self) -> bytes:
        return self.sigma1.to_bytes() + self.sigma2.to_bytes()


@dataclass(frozen=True)
class CredentialRandomizer:
    """(r, t): sigma -> (r*sigma1, r*(sigma2 + t*sigma1))"""
    r: int
    t: int

    @classmethod
    def generate(cls, rng: RandomSource) -> "CredentialRandomizer":
        return cls(r=rng.nonzero_scalar(), t=rng.scalar())


# ---------------------------------------------------------------------------
# issuance


@dataclass(frozen=True)
class IssuanceRequest:
    """
    blind request: C = t*g1 + s*Z1 + sum m_i*Y1_i plus a proof that the
    requester knows the opening and that s is the secret behind user_pk.
    """
    user_pk: G1Element
    commitment: G1Element
    proof_commitments: tuple[G1Element, ...]
    challenge: int
    responses: tuple[int, ...]


def _request_rows(params, issuer_pk, user_pk, commitment):
    # variables: 0 = t, 1 = s, 2.. = attributes
    terms = [(0, params.pc_g), (1, issuer_pk.z1)]
    terms += [(i + 2, y) for i, y in enumerate(issuer_pk.y1)]
    return [
        (terms, commitment),
        ([(1, issuer_pk.z1)], user_pk),
    ]


def _request_challenge(params, issuer_pk, rows, proof_commitments) -> int:
    transcript = Transcript(params.label("credential-request"))
    transcript.append_bytes(b"issuer", issuer_pk.to_bytes())
    absorb_rows(transcript, rows)
    transcript.append_points(b"commitments", proof_commitments)
    return transcript.challenge_scalar(b"e")


def request_credential(
    params: Parameters,
    rng: RandomSource,
    issuer_pk: CredentialIssuerPublicKey,
    user: CredentialUserKeyPair,
    attributes: Sequence[int],
) -> tuple[IssuanceRequest, int]:
    """returns the request and the blinding t needed by unblind()."""
    attributes = check_attributes(params, attributes, issuer_pk.num_attributes)
    t = rng.nonzero_scalar()
    commitment = params.mul_g(t) + user.secret * issuer_pk.z1
    for m, y in zip(attributes, issuer_pk.y1):
        commitment = commitment + m * y

    rows = _request_rows(params, issuer_pk, user.public, commitment)
    prover = LinearProver(params, rng, rows, [t, user.secret, *attributes])
    challenge = _request_challenge(params, issuer_pk, rows, prover.commitments)
    request = IssuanceRequest(
        user_pk=user.public,
        commitment=commitment,
        proof_commitments=prover.commitments,
        challenge=challenge,
        responses=prover.respond(challenge),
    )
    return request, t


def issue(
    params: Parameters,
    rng: RandomSource,
    issuer: CredentialIssuerKeyPair,
    request: IssuanceRequest,
) -> CredentialSignature:
    """blind-sign a request. the issuer never learns the attributes."""
    pk = issuer.public
    rows = _request_rows(params, pk, request.user_pk, request.commitment)
    expected = _request_challenge(params, pk, rows, request.proof_commitments)
    if expected != request.challenge:
        raise XfrError("issuance request rejected: challenge mismatch")
    ok, reason = check_linear(
        params, rows, pk.num_attributes + 2,
        request.proof_commitments, request.challenge, request.responses,
    )
    if not ok:
        raise XfrError(f"issuance request rejected: {reason}")

    u = rng.nonzero_scalar()
    return CredentialSignature(
        sigma1=params.mul_g(u),
        sigma2=u * (issuer.secret.x1 + request.commitment),
    )


def unblind(signature: CredentialSignature, blinding: int) -> CredentialSignature:
    return CredentialSignature(
        sigma1=signature.sigma1,
        sigma2=signature.sigma2 - blinding * signature.sigma1,
    )


def sign_attributes(
    params: Parameters,
    rng: RandomSource,
    issuer: CredentialIssuerKeyPair,
    user_pk: G1Element,
    attributes: Sequence[int],
) -> CredentialSignature:
    """plaintext issuance: the user discloses attributes to the issuer."""
    attributes = check_attributes(params, attributes, issuer.public.num_attributes)
    exponent = issuer.secret.x
    for y, m in zip(issuer.secret.y, attributes):
        exponent += y * m
    u = rng.nonzero_scalar()
    return CredentialSignature(
        sigma1=params.mul_g(u),
        sigma2=params.mul_g(u * exponent) + u * user_pk,
    )


def randomize(signature: CredentialSignature, randomizer: CredentialRandomizer) -> CredentialSignature:
    r, t = randomizer.r, randomizer.t
    return CredentialSignature(
        sigma1=r * signature.sigma1,
        sigma2=r * (signature.sigma2 + t * signature.sigma1),
    )


def verify_credential(
    params: Parameters,
    issuer_pk: CredentialIssuerPublicKey,
    user_secret: int,
    signature: CredentialSignature,
    attributes: Sequence[int],
) -> bool:
    """holder-side check of a freshly issued (non-randomized) credential."""
    if signature.sigma1.is_identity() or len(attributes) != issuer_pk.num_attributes:
        return False
    rhs = issuer_pk.x2 + user_secret * issuer_pk.z2
    for m, y in zip(attributes, issuer_pk.y2):
        rhs = rhs + m * y
    return multi_pairing([
        (signature.sigma1, rhs),
        (-signature.sigma2, params.g2),
    ]).is_one()


# ---------------------------------------------------------------------------
# selective disclosure


@dataclass(frozen=True)
class PairingCheck:
    """the equation e(sigma1, rhs) * e(-sigma2c, g2) == 1"""
    sigma1: G1Element
    rhs: G2Element
    sigma2c: G1Element


@dataclass(frozen=True)
class AttributeRevealProof:
    signature: CredentialSignature
    disclosed: tuple[tuple[int, int], ...]
    commitment: G2Element
    challenge: int
    response_t: int
    response_s: int
    hidden_responses: tuple[tuple[int, int], ...]

    def disclosed_attributes(self) -> dict[int, int]:
        return dict(self.disclosed)

    def to_bytes(self) -> bytes:
        return _encode_reveal(self)


@dataclass(frozen=True)
class ConfidentialRevealProof:
    """
    reveal where chosen attributes are encrypted to a tracer instead of
    disclosed. per encrypted attribute i the proof carries
      A_i = b_ri*g1,  B_i = b_ri*pk + b_mi*g1
    whose responses share z_mi with the signature proof.
    """
    signature: CredentialSignature
    commitment: G2Element
    challenge: int
    response_t: int
    response_s: int
    hidden_responses: tuple[tuple[int, int], ...]
    encrypted_indices: tuple[int, ...]
    cipher_commitments: tuple[tuple[G1Element, G1Element], ...]
    randomness_responses: tuple[int, ...]

    def to_bytes(self) -> bytes:
        out = bytearray(_encode_reveal(self))
        out += bytes(self.encrypted_indices)
        for a, b in self.cipher_commitments:
            out += a.to_bytes() + b.to_bytes()
        for z in self.randomness_responses:
            out += z.to_bytes(32, "big")
        return bytes(out)


def _encode_reveal(proof) -> bytes:
    out = bytearray(proof.signature.to_bytes() + proof.commitment.to_bytes())
    out += proof.challenge.to_bytes(32, "big")
    out += proof.response_t.to_bytes(32, "big") + proof.response_s.to_bytes(32, "big")
    for i, value in getattr(proof, "disclosed", ()):
        out += i.to_bytes(2, "big") + value.to_bytes(32, "big")
    for i, z in proof.hidden_responses:
        out += i.to_bytes(2, "big") + z.to_bytes(32, "big")
    return bytes(out)


def _reveal_transcript(
    params: Parameters,
    label: str,
    issuer_pk: CredentialIssuerPublicKey,
    signature: CredentialSignature,
    disclosed: Sequence[tuple[int, int]],
    commitment: G2Element,
    context: bytes,
) -> Transcript:
    transcript = Transcript(params.label(label))
    transcript.append_bytes(b"issuer", issuer_pk.to_bytes())
    transcript.append_point(b"sigma1", signature.sigma1)
    transcript.append_point(b"sigma2", signature.sigma2)
    transcript.append_int(b"disclosed", len(disclosed))
    for i, value in disclosed:
        transcript.append_int(b"index", i)
        transcript.append_scalar(b"value", value)
    transcript.append_point(b"gamma", commitment)
    transcript.append_bytes(b"context", context)
    return transcript


class _RevealProver:
    """shared commit/respond machinery of both reveal flavours."""

    def __init__(self, params, rng, issuer_pk, user, signature, attributes, hidden):
        self.randomizer = CredentialRandomizer.generate(rng)
        self.signature = randomize(signature, self.randomizer)
        self._t = self.randomizer.t
        self._secret_s = user.secret
        self._attributes = attributes
        self.hidden = hidden
        self.beta_t = rng.scalar()
        self.beta_s = rng.scalar()
        self.beta_m = {i: rng.scalar() for i in hidden}

        gamma = self.beta_t * params.g2 + self.beta_s * issuer_pk.z2
        for i in hidden:
            gamma = gamma + self.beta_m[i] * issuer_pk.y2[i]
        self.commitment = gamma

    def respond(self, challenge):
        z_t = (self.beta_t + challenge * self._t) % CURVE_ORDER
        z_s = (self.beta_s + challenge * self._secret_s) % CURVE_ORDER
        hidden = tuple(
            (i, (self.beta_m[i] + challenge * self._attributes[i]) % CURVE_ORDER)
            for i in self.hidden
        )
        return z_t, z_s, hidden


def reveal(
    params: Parameters,
    rng: RandomSource,
    issuer_pk: CredentialIssuerPublicKey,
    user: CredentialUserKeyPair,
    signature: CredentialSignature,
    attributes: Sequence[int],
    disclosed_indices: Sequence[int],
    context: bytes = b"",
) -> AttributeRevealProof:
    """
    disclose a subset of attributes under a freshly randomized credential.

    two reveals of the same credential share no group element, so they
    cannot be linked.
    """
    attributes = check_attributes(params, attributes, issuer_pk.num_attributes)
    disclosed_set = sorted(set(disclosed_indices))
    if any(not 0 <= i < len(attributes) for i in disclosed_set):
        raise ParameterError("disclosed index outside the attribute list")
    hidden = [i for i in range(len(attributes)) if i not in disclosed_set]
    disclosed = tuple((i, attributes[i]) for i in disclosed_set)

    prover = _RevealProver(params, rng, issuer_pk, user, signature, attributes, hidden)
    transcript = _reveal_transcript(
        params, "credential-reveal", issuer_pk, prover.signature, disclosed,
        prover.commitment, context,
    )
    challenge = transcript.challenge_scalar(b"e")
    z_t, z_s, hidden_responses = prover.respond(challenge)
    logger.debug(f"generated attribute reveal proof ({len(disclosed)} disclosed)")
    return AttributeRevealProof(
        signature=prover.signature,
        disclosed=disclosed,
        commitment=prover.commitment,
        challenge=challenge,
        response_t=z_t,
        response_s=z_s,
        hidden_responses=hidden_responses,
    )


def _pairing_check(
    params: Parameters,
    issuer_pk: CredentialIssuerPublicKey,
    proof,
    disclosed: Sequence[tuple[int, int]],
) -> tuple[PairingCheck | None, str]:
    """
    structural checks plus the G2 side of the reveal equation.

    Q = z_t*g2 + z_s*Z2 + sum_hidden z_i*Y2_i - Gamma equals c times the
    hidden part, so the credential holds iff
      e(sigma1, Q + c*(X2 + sum_disclosed m_i*Y2_i)) == e(c*sigma2, g2)
    """
    n = issuer_pk.num_attributes
    hidden_idx = [i for i, _ in proof.hidden_responses]
    disclosed_idx = [i for i, _ in disclosed]
    if sorted(hidden_idx + disclosed_idx) != list(range(n)):
        return None, "hidden and disclosed indices must partition the attributes"
    scalars = [proof.challenge, proof.response_t, proof.response_s]
    scalars += [z for _, z in proof.hidden_responses]
    if not all(isinstance(v, int) and 0 <= v < CURVE_ORDER for v in scalars):
        return None, "response is not a reduced scalar"
    for _, value in disclosed:
        if not isinstance(value, int) or not 0 <= value < params.attribute_bound:
            return None, "disclosed attribute outside the attribute range"
    if proof.signature.sigma1.is_identity():
        return None, "degenerate credential"

    c = proof.challenge
    q = proof.response_t * params.g2 + proof.response_s * issuer_pk.z2 - proof.commitment
    for i, z in proof.hidden_responses:
        q = q + z * issuer_pk.y2[i]
    public_part = issuer_pk.x2
    for i, value in disclosed:
        public_part = public_part + value * issuer_pk.y2[i]
    rhs = q + c * public_part
    return PairingCheck(proof.signature.sigma1, rhs, c * proof.signature.sigma2), "valid"


def prepare_reveal(
    params: Parameters,
    issuer_pk: CredentialIssuerPublicKey,
    proof: AttributeRevealProof,
    context: bytes = b"",
) -> tuple[PairingCheck | None, str]:
    """everything except the pairing; batch verification collects the checks."""
    if not isinstance(proof, AttributeRevealProof):
        return None, "not an attribute reveal proof"
    transcript = _reveal_transcript(
        params, "credential-reveal", issuer_pk, proof.signature, proof.disclosed,
        proof.commitment, context,
    )
    if transcript.challenge_scalar(b"e") != proof.challenge:
        return None, "challenge mismatch (possible tampering)"
    return _pairing_check(params, issuer_pk, proof, proof.disclosed)


def check_pairings(params: Parameters, checks: Sequence[PairingCheck], rng: RandomSource | None = None) -> bool:
    """
    one multi-pairing for any number of reveal equations.

    with several checks, each is weighted by a random 128-bit scalar and all
    e(., g2) terms are merged, so the cost is (n + 1) miller loops and one
    final exponentiation.
    """
    if not checks:
        return True
    if len(checks) == 1:
        check = checks[0]
        return multi_pairing([
            (check.sigma1, check.rhs),
            (-check.sigma2c, params.g2),
        ]).is_one()
    if rng is None:
        raise ValueError("batched pairing checks need a random source for the weights")

    pairs = []
    merged = G1Element.identity()
    for check in checks:
        weight = int.from_bytes(rng.bytes(16), "big") | 1
        pairs.append((weight * check.sigma1, check.rhs))
        merged = merged - weight * check.sigma2c
    pairs.append((merged, params.g2))
    return multi_pairing(pairs).is_one()


def verify_reveal(
    params: Parameters,
    issuer_pk: CredentialIssuerPublicKey,
    proof: AttributeRevealProof,
    context: bytes = b"",
) -> tuple[bool, str]:
    check, reason = prepare_reveal(params, issuer_pk, proof, context)
    if check is None:
        logger.warning(f"credential reveal rejected: {reason}")
        return False, reason
    if not check_pairings(params, [check]):
        logger.warning("credential reveal rejected: pairing equation failed")
        return False, "pairing equation failed"
    return True, "valid"


def batch_verify_reveals(
    params: Parameters,
    items: Sequence[tuple[CredentialIssuerPublicKey, AttributeRevealProof, bytes]],
    rng: RandomSource,
) -> bool:
    """same answer as verifying every (issuer_pk, proof, context) on its own."""
    checks = []
    for issuer_pk, proof, context in items:
        check, reason = prepare_reveal(params, issuer_pk, proof, context)
        if check is None:
            logger.warning(f"batched credential reveal rejected: {reason}")
            return False
        checks.append(check)
    return check_pairings(params, checks, rng)


# ---------------------------------------------------------------------------
# confidential reveal (attributes encrypted to a tracer)


def _confidential_transcript(
    params, issuer_pk, tracer_pk, signature, commitment, ciphertexts,
    encrypted_indices, cipher_commitments, context,
) -> Transcript:
    transcript = _reveal_transcript(
        params, "credential-confidential-reveal", issuer_pk, signature, (),
        commitment, context,
    )
    transcript.append_point(b"tracer", tracer_pk.point)
    transcript.append_int(b"encrypted", len(encrypted_indices))
    for i, ct, (a, b) in zip(encrypted_indices, ciphertexts, cipher_commitments):
        transcript.append_int(b"index", i)
        transcript.append_bytes(b"ciphertext", ct.to_bytes())
        transcript.append_point(b"a", a)
        transcript.append_point(b"b", b)
    return transcript


def confidential_reveal(
    params: Parameters,
    rng: RandomSource,
    issuer_pk: CredentialIssuerPublicKey,
    user: CredentialUserKeyPair,
    signature: CredentialSignature,
    attributes: Sequence[int],
    tracer_pk: ElGamalPublicKey,
    encrypted_indices: Sequence[int] | None = None,
    context: bytes = b"",
) -> tuple[ConfidentialRevealProof, list[ExponentCiphertext]]:
    """
    prove possession of a credential while encrypting chosen attributes
    (default: all) to tracer_pk. nothing is disclosed in the clear.
    """
    attributes = check_attributes(params, attributes, issuer_pk.num_attributes)
    if encrypted_indices is None:
        encrypted_indices = range(len(attributes))
    encrypted = tuple(sorted(set(encrypted_indices)))
    if any(not 0 <= i < len(attributes) for i in encrypted):
        raise ParameterError("encrypted index outside the attribute list")

    hidden = list(range(len(attributes)))
    prover = _RevealProver(params, rng, issuer_pk, user, signature, attributes, hidden)

    enc_randomness = [rng.nonzero_scalar() for _ in encrypted]
    ciphertexts = [
        encrypt(params, tracer_pk, attributes[i], r)
        for i, r in zip(encrypted, enc_randomness)
    ]
    beta_r = [rng.scalar() for _ in encrypted]
    cipher_commitments = tuple(
        (params.mul_g(b), b * tracer_pk.point + params.mul_g(prover.beta_m[i]))
        for i, b in zip(encrypted, beta_r)
    )

    transcript = _confidential_transcript(
        params, issuer_pk, tracer_pk, prover.signature, prover.commitment,
        ciphertexts, encrypted, cipher_commitments, context,
    )
    challenge = transcript.challenge_scalar(b"e")
    z_t, z_s, hidden_responses = prover.respond(challenge)
    randomness_responses = tuple(
        (b + challenge * r) % CURVE_ORDER for b, r in zip(beta_r, enc_randomness)
    )
    logger.debug(f"generated confidential reveal proof ({len(encrypted)} attributes to tracer)")
    proof = ConfidentialRevealProof(
        signature=prover.signature,
        commitment=prover.commitment,
        challenge=challenge,
        response_t=z_t,
        response_s=z_s,
        hidden_responses=hidden_responses,
        encrypted_indices=encrypted,
        cipher_commitments=cipher_commitments,
        randomness_responses=randomness_responses,
    )
    return proof, ciphertexts


def prepare_confidential_reveal(
    params: Parameters,
    issuer_pk: CredentialIssuerPublicKey,
    tracer_pk: ElGamalPublicKey,
    ciphertexts: Sequence[ExponentCiphertext],
    proof: ConfidentialRevealProof,
    context: bytes = b"",
) -> tuple[PairingCheck | None, str]:
    if not isinstance(proof, ConfidentialRevealProof):
        return None, "not a confidential reveal proof"
    k = len(proof.encrypted_indices)
    if not (len(ciphertexts) == len(proof.cipher_commitments) == len(proof.randomness_responses) == k):
        return None, "ciphertext count does not match the proof"
    if len(set(proof.encrypted_indices)) != k:
        return None, "duplicate encrypted index"

    transcript = _confidential_transcript(
        params, issuer_pk, tracer_pk, proof.signature, proof.commitment,
        ciphertexts, proof.encrypted_indices, proof.cipher_commitments, context,
    )
    if transcript.challenge_scalar(b"e") != proof.challenge:
        return None, "challenge mismatch (possible tampering)"

    check, reason = _pairing_check(params, issuer_pk, proof, ())
    if check is None:
        return None, reason

    c = proof.challenge
    hidden = dict(proof.hidden_responses)
    for i, ct, (a, b), z_r in zip(
        proof.encrypted_indices, ciphertexts, proof.cipher_commitments, proof.randomness_responses
    ):
        if not isinstance(z_r, int) or not 0 <= z_r < CURVE_ORDER:
            return None, "response is not a reduced scalar"
        if i not in hidden:
            return None, f"encrypted attribute {i} has no response"
        if params.mul_g(z_r) != a + c * ct.e1:
            return None, f"ciphertext {i}: randomness equation failed"
        if z_r * tracer_pk.point + params.mul_g(hidden[i]) != b + c * ct.e2:
            return None, f"ciphertext {i}: plaintext equation failed"
    return check, "valid"


def verify_confidential_reveal(
    params: Parameters,
    issuer_pk: CredentialIssuerPublicKey,
    tracer_pk: ElGamalPublicKey,
    ciphertexts: Sequence[ExponentCiphertext],
    proof: ConfidentialRevealProof,
    context: bytes = b"",
) -> tuple[bool, str]:
    check, reason = prepare_confidential_reveal(params, issuer_pk, tracer_pk, ciphertexts, proof, context)
    if check is None:
        logger.warning(f"confidential reveal rejected: {reason}")
        return False, reason
    if not check_pairings(params, [check]):
        logger.warning("confidential reveal rejected: pairing equation failed")
        return False, "pairing equation failed"
    return True, "valid"
