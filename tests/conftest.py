# Author: Bradley R. Kinnard
# pytest configuration and fixtures

"""
Test Configuration

Curve arithmetic is pure Python, so fixtures default to a 16-bit amount
bound; tests marked `slow` exercise the shipped 64-bit bound.

Hypothesis Settings:
- Reproducibility: run with --hypothesis-seed=<seed> to reproduce
- Database: .hypothesis/ stores examples for shrinking

To skip the slow end-to-end runs:
  pytest tests/ -m "not slow"

To see Hypothesis statistics:
  pytest tests/ --hypothesis-show-statistics
"""

import os
import pytest
from hypothesis import settings, Phase

from crypto.credentials import (
    CredentialIssuerKeyPair,
    CredentialUserKeyPair,
    sign_attributes,
)
from crypto.parameters import Parameters
from crypto.rng import SeededRandomSource
from crypto.signatures import XfrKeyPair
from xfr.structs import AssetType, OwnerCredential
from xfr.tracking import AssetTracerKeyPair

# configure hypothesis defaults
settings.register_profile(
    "ci",
    max_examples=25,
    deadline=None,  # disable deadline in CI (slower machines)
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    print_blob=True,  # print blob for reproduction
)

settings.register_profile(
    "dev",
    max_examples=5,
    deadline=None,  # group operations are slow in pure Python
)

settings.register_profile(
    "extensive",
    max_examples=100,
    deadline=None,
)

# load profile from environment or default to dev
profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
settings.load_profile(profile)


ATTRIBUTES = (1985, 42, 7)


@pytest.fixture(scope="session")
def params():
    """shipped parameters narrowed to 16-bit amounts."""
    return Parameters.default().with_amount_bits(16)


@pytest.fixture(scope="session")
def wide_params():
    """shipped parameters, 64-bit amounts."""
    return Parameters.default()


@pytest.fixture
def rng():
    """provide a seeded random source for deterministic tests."""
    return SeededRandomSource(42)


@pytest.fixture(scope="session")
def attributes():
    """credential attributes: birth year, country code, tier."""
    return ATTRIBUTES


@pytest.fixture(scope="session")
def issuer(params):
    return CredentialIssuerKeyPair.generate(params, SeededRandomSource(7), len(ATTRIBUTES))


@pytest.fixture(scope="session")
def user(params, issuer):
    return CredentialUserKeyPair.generate(params, SeededRandomSource(8), issuer.public)


@pytest.fixture(scope="session")
def credential(params, issuer, user):
    """plaintext-issued credential over ATTRIBUTES."""
    return sign_attributes(params, SeededRandomSource(9), issuer, user.public, ATTRIBUTES)


@pytest.fixture(scope="session")
def owner_credential(issuer, user, credential):
    return OwnerCredential(
        issuer_pk=issuer.public,
        user=user,
        signature=credential,
        attributes=ATTRIBUTES,
    )


@pytest.fixture(scope="session")
def tracer(params):
    return AssetTracerKeyPair.generate(params, SeededRandomSource(11))


@pytest.fixture(scope="session")
def alice():
    return XfrKeyPair.generate(SeededRandomSource(21))


@pytest.fixture(scope="session")
def bob():
    return XfrKeyPair.generate(SeededRandomSource(22))


@pytest.fixture(scope="session")
def carol():
    return XfrKeyPair.generate(SeededRandomSource(23))


@pytest.fixture(scope="session")
def usd():
    return AssetType.from_code("USD")


@pytest.fixture(scope="session")
def eur():
    return AssetType.from_code("EUR")


def pytest_configure(config):
    """add custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
