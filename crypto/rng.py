# Author: Bradley R. Kinnard
# injected randomness sources for proof construction
# every build-side call takes one of these explicitly - there is no global source

import secrets
from abc import ABC, abstractmethod

import numpy as np

from algebra.groups import CURVE_ORDER


class RandomSource(ABC):
    """
    source of randomness for blindings, nonces and key material.

    contract (documented, not enforced):
    - one source per concurrent build; never share across threads
    - never reuse a source seeded with the same value in production
    """

    @abstractmethod
    def bytes(self, n: int) -> bytes:
        ...

    def scalar(self) -> int:
        """uniform scalar mod r (64 bytes reduced, negligible bias)."""
        return int.from_bytes(self.bytes(64), "big") % CURVE_ORDER

    def nonzero_scalar(self) -> int:
        while True:
            s = self.scalar()
            if s:
                return s

    def scalars(self, n: int) -> list[int]:
        return [self.scalar() for _ in range(n)]


class SystemRandomSource(RandomSource):
    """CSPRNG-backed source. the default for callers."""

    def bytes(self, n: int) -> bytes:
        return secrets.token_bytes(n)


class SeededRandomSource(RandomSource):
    """
    deterministic source for tests and reproducible fixtures.

    NOT cryptographically secure: numpy's PCG64 is predictable from its seed.
    """

    def __init__(self, seed: int = 42):
        self._rng = np.random.default_rng(seed)

    def bytes(self, n: int) -> bytes:
        return self._rng.bytes(n)
