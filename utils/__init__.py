# Author: Bradley R. Kinnard
# utils module exports

from utils.helpers import (
    load_parameters_config,
    get_logger
)
from utils.errors import (
    XfrError,
    ParameterError,
    InvalidProofEncoding,
    RangeError,
    UnbalancedTransferError,
    ProofVerificationFailure,
    SignatureVerificationFailure,
)

__all__ = [
    "load_parameters_config",
    "get_logger",
    "XfrError",
    "ParameterError",
    "InvalidProofEncoding",
    "RangeError",
    "UnbalancedTransferError",
    "ProofVerificationFailure",
    "SignatureVerificationFailure",
]
