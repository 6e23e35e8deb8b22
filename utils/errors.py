# Author: Bradley R. Kinnard
# error taxonomy shared by the algebra, crypto and xfr layers

from typing import Any


class XfrError(Exception):
    """base class for every failure raised by this package."""
    pass


class ParameterError(XfrError, ValueError):
    """raised on malformed configuration or structurally inconsistent inputs."""
    pass


class InvalidProofEncoding(XfrError, ValueError):
    """raised when group or scalar bytes fail to decode."""
    pass


class RangeError(XfrError, ValueError):
    """raised when a value falls outside the declared bit-width bound."""
    pass


class UnbalancedTransferError(XfrError):
    """raised when inputs and outputs do not conserve value per asset type."""

    def __init__(self, message: str, asset_type: Any = None):
        super().__init__(message)
        self.asset_type = asset_type


class ProofVerificationFailure(XfrError):
    """
    a specific sub-proof failed verification.

    kind names the proof family (e.g. "asset_mix", "asset_tracing"),
    index locates the record or proof within the note when relevant.
    """

    def __init__(self, kind: str, index: int | None = None, reason: str = ""):
        where = f"{kind}[{index}]" if index is not None else kind
        super().__init__(f"{where}: {reason}" if reason else where)
        self.kind = kind
        self.index = index
        self.reason = reason


class SignatureVerificationFailure(XfrError):
    """an input owner signature did not verify against the note body."""

    def __init__(self, owner: bytes, reason: str = "signature invalid"):
        super().__init__(f"owner {owner.hex()[:16]}: {reason}")
        self.owner = owner
        self.reason = reason
