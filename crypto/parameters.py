# Author: Bradley R. Kinnard
# public parameters - the explicit, immutable context of every build/verify call

import dataclasses
import functools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from algebra.groups import FixedBaseTable, G1Element, G2Element, hash_to_g1
from utils.errors import ParameterError
from utils.helpers import get_logger, load_parameters_config

logger = get_logger(__name__)


@dataclass(frozen=True)
class Parameters:
    """
    shared public parameters.

    read-only, so one instance can be used from any number of threads.
    amount_bits is the single source of the amount bound: commitments,
    elgamal and range proofs all read it from here.
    """
    domain: str
    amount_bits: int
    attribute_bits: int
    max_records: int
    max_asset_types: int
    pc_g: G1Element
    pc_h: G1Element
    g2: G2Element
    _g_table: FixedBaseTable = field(repr=False, compare=False)
    _h_table: FixedBaseTable = field(repr=False, compare=False)

    @classmethod
    def create(
        cls,
        domain: str = "xfr-notes/v1",
        amount_bits: int = 64,
        attribute_bits: int = 32,
        max_records: int = 32,
        max_asset_types: int = 8,
        pedersen_h_seed: str = "pedersen-h",
    ) -> "Parameters":
        if not 1 <= amount_bits <= 64:
            raise ParameterError(f"amount_bits must be in [1, 64], got {amount_bits}")
        if not 1 <= attribute_bits <= 48:
            raise ParameterError(f"attribute_bits must be in [1, 48], got {attribute_bits}")

        g = G1Element.generator()
        h = hash_to_g1(domain, pedersen_h_seed)

        params = cls(
            domain=domain,
            amount_bits=amount_bits,
            attribute_bits=attribute_bits,
            max_records=max_records,
            max_asset_types=max_asset_types,
            pc_g=g,
            pc_h=h,
            g2=G2Element.generator(),
            _g_table=FixedBaseTable(g),
            _h_table=FixedBaseTable(h),
        )
        logger.debug(f"built parameters: domain={domain}, amount_bits={amount_bits}")
        return params

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Parameters":
        generators = config.get("generators", {})
        return cls.create(
            domain=config["domain"],
            amount_bits=config["amount_bits"],
            attribute_bits=config.get("attribute_bits", 32),
            max_records=config.get("max_records", 32),
            max_asset_types=config.get("max_asset_types", 8),
            pedersen_h_seed=generators.get("pedersen_h_seed", "pedersen-h"),
        )

    @classmethod
    def from_config(cls, path: Path | str | None = None) -> "Parameters":
        """load from YAML (schema-validated). None = shipped defaults."""
        return cls.from_dict(load_parameters_config(path))

    @classmethod
    def default(cls) -> "Parameters":
        return _default_parameters()

    def with_amount_bits(self, amount_bits: int) -> "Parameters":
        """same generators, different amount bound."""
        if not 1 <= amount_bits <= 64:
            raise ParameterError(f"amount_bits must be in [1, 64], got {amount_bits}")
        return dataclasses.replace(self, amount_bits=amount_bits)

    @property
    def amount_bound(self) -> int:
        return 1 << self.amount_bits

    @property
    def attribute_bound(self) -> int:
        return 1 << self.attribute_bits

    def mul_g(self, scalar: int) -> G1Element:
        return self._g_table.multiply(scalar)

    def mul_h(self, scalar: int) -> G1Element:
        return self._h_table.multiply(scalar)

    def pedersen(self, value: int, blinding: int) -> G1Element:
        """g^value * h^blinding without any range check."""
        return self.mul_g(value) + self.mul_h(blinding)

    def label(self, name: str) -> bytes:
        """transcript label namespaced by the parameter domain."""
        return f"{self.domain}/{name}".encode()


@functools.lru_cache(maxsize=1)
def _default_parameters() -> Parameters:
    return Parameters.from_config()
