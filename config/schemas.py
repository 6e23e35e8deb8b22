# Author: Bradley R. Kinnard
# schema definitions for system parameter validation

parameters_schema = {
    "type": "object",
    "required": ["domain", "amount_bits"],
    "properties": {
        "domain": {
            "type": "string",
            "minLength": 1,
            "description": "domain-separation prefix mixed into every transcript"
        },
        "amount_bits": {
            "type": "integer",
            "minimum": 1,
            "maximum": 64,
            "default": 64,
            "description": "amounts must lie in [0, 2^amount_bits); shared by commitments, elgamal and range proofs"
        },
        "attribute_bits": {
            "type": "integer",
            "minimum": 1,
            "maximum": 48,
            "default": 32,
            "description": "credential attributes must lie in [0, 2^attribute_bits)"
        },
        "max_records": {
            "type": "integer",
            "minimum": 1,
            "maximum": 256,
            "default": 32,
            "description": "upper bound on inputs plus outputs of a single note"
        },
        "max_asset_types": {
            "type": "integer",
            "minimum": 1,
            "maximum": 64,
            "default": 8,
            "description": "upper bound on distinct asset types mixed in one note"
        },
        "generators": {
            "type": "object",
            "properties": {
                "pedersen_h_seed": {
                    "type": "string",
                    "minLength": 1,
                    "description": "seed hashed to the curve to derive the blinding generator h"
                }
            }
        }
    }
}
