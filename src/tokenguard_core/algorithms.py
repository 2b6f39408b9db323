"""Read-only registry of signature algorithms and their families.

Every identifier resolves through a single lookup to an ``Algorithm`` that
carries its own family, so dispatch never depends on grouped branches.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from .errors import NotImplementedAlgorithm, UnsupportedAlgorithm

logger = logging.getLogger(__name__)


class AlgorithmFamily(str, Enum):
    SYMMETRIC = "symmetric"
    ASYMMETRIC = "asymmetric"


@dataclass(frozen=True)
class Algorithm:
    """A concrete signature algorithm.

    Attributes:
        name: JOSE 'alg' identifier (e.g. "RS256").
        family: Whether the algorithm uses a shared secret or a key pair.
        key_type: JWK 'kty' the algorithm requires ("oct", "RSA", "EC", "OKP").
        verify_wired: A verification capability handles this algorithm.
        sign_wired: A signing capability handles this algorithm.
    """

    name: str
    family: AlgorithmFamily
    key_type: str
    verify_wired: bool = True
    sign_wired: bool = True

    @property
    def is_symmetric(self) -> bool:
        return self.family is AlgorithmFamily.SYMMETRIC


def _build_registry() -> Mapping[str, Algorithm]:
    symmetric = AlgorithmFamily.SYMMETRIC
    asymmetric = AlgorithmFamily.ASYMMETRIC

    entries = [
        # HMAC with SHA-256, SHA-384, SHA-512
        Algorithm("HS256", symmetric, "oct"),
        Algorithm("HS384", symmetric, "oct"),
        Algorithm("HS512", symmetric, "oct"),
        # RSA with SHA-256, SHA-384, SHA-512
        Algorithm("RS256", asymmetric, "RSA"),
        Algorithm("RS384", asymmetric, "RSA"),
        Algorithm("RS512", asymmetric, "RSA"),
        # RSA-PSS with SHA-256, SHA-384, SHA-512
        Algorithm("PS256", asymmetric, "RSA"),
        Algorithm("PS384", asymmetric, "RSA"),
        Algorithm("PS512", asymmetric, "RSA"),
        # ECDSA with SHA-256, SHA-384, SHA-512
        Algorithm("ES256", asymmetric, "EC"),
        Algorithm("ES384", asymmetric, "EC"),
        Algorithm("ES512", asymmetric, "EC"),
        Algorithm("EdDSA", asymmetric, "OKP"),
        # Recognized identifiers without a wired capability
        Algorithm("ES256K", asymmetric, "EC", verify_wired=False, sign_wired=False),
        Algorithm("Ed25519", asymmetric, "OKP", verify_wired=False, sign_wired=False),
        Algorithm("Ed448", asymmetric, "OKP", verify_wired=False, sign_wired=False),
    ]
    return MappingProxyType({algorithm.name: algorithm for algorithm in entries})


ALGORITHM_REGISTRY = _build_registry()

SUPPORTED_ALGORITHMS = frozenset(ALGORITHM_REGISTRY)


def lookup_algorithm(alg: str) -> Algorithm:
    """Return the registry entry for an algorithm identifier.

    Raises:
        UnsupportedAlgorithm: If the identifier is not in the registry.
    """
    algorithm = ALGORITHM_REGISTRY.get(alg) if isinstance(alg, str) else None
    if algorithm is None:
        logger.warning(f"Unsupported algorithm: {alg!r}")
        raise UnsupportedAlgorithm(f"Invalid or unsupported algorithm: {alg}")
    return algorithm


def resolve_verification_algorithm(alg: str) -> Algorithm:
    """Lookup an algorithm that must have a verification capability.

    Raises:
        UnsupportedAlgorithm: If the identifier is unknown.
        NotImplementedAlgorithm: If the identifier is known but not wired for verification.
    """
    algorithm = lookup_algorithm(alg)
    if not algorithm.verify_wired:
        logger.warning(f"Verification not implemented for algorithm {alg}")
        raise NotImplementedAlgorithm(f"Algorithm not implemented: {alg}")
    return algorithm


def resolve_signing_algorithm(alg: str) -> Algorithm:
    """Lookup an algorithm that must have a signing capability.

    Raises:
        UnsupportedAlgorithm: If the identifier is unknown.
        NotImplementedAlgorithm: If the identifier is known but not wired for signing.
    """
    algorithm = lookup_algorithm(alg)
    if not algorithm.sign_wired:
        logger.warning(f"Signing not implemented for algorithm {alg}")
        raise NotImplementedAlgorithm(f"Algorithm not implemented: {alg}")
    return algorithm
