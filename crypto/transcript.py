# Author: Bradley R. Kinnard
# Fiat-Shamir transcript - running SHA-512 over labelled, length-prefixed messages

import hashlib

from algebra.encoding import encode_scalar
from algebra.groups import CURVE_ORDER, G1Element, G2Element, GtElement


class Transcript:
    """
    non-interactive challenge derivation.

    every message is absorbed as len(label) || label || len(data) || data, so
    two different message sequences never hash the same. challenge_scalar
    folds the challenge back in, which keeps later challenges bound to
    earlier ones.
    """

    def __init__(self, label: bytes | str):
        if isinstance(label, str):
            label = label.encode()
        self._hasher = hashlib.sha512()
        self._absorb(b"transcript", label)

    def _absorb(self, label: bytes, data: bytes) -> None:
        self._hasher.update(len(label).to_bytes(4, "big"))
        self._hasher.update(label)
        self._hasher.update(len(data).to_bytes(8, "big"))
        self._hasher.update(data)

    def append_bytes(self, label: bytes | str, data: bytes) -> None:
        if isinstance(label, str):
            label = label.encode()
        self._absorb(label, bytes(data))

    def append_scalar(self, label: bytes | str, value: int) -> None:
        self.append_bytes(label, encode_scalar(value))

    def append_int(self, label: bytes | str, value: int) -> None:
        """small non-negative integers (counts, indices)."""
        self.append_bytes(label, value.to_bytes(8, "big"))

    def append_point(self, label: bytes | str, point: G1Element | G2Element | GtElement) -> None:
        self.append_bytes(label, point.to_bytes())

    def append_points(self, label: bytes | str, points) -> None:
        points = list(points)
        self.append_int(label, len(points))
        for p in points:
            self.append_point(label, p)

    def challenge_scalar(self, label: bytes | str) -> int:
        if isinstance(label, str):
            label = label.encode()
        self._absorb(b"challenge", label)
        digest = self._hasher.copy().digest()
        self._absorb(b"challenge-out", digest)
        return int.from_bytes(digest, "big") % CURVE_ORDER
