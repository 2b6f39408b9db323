"""Signing and verification capabilities per algorithm family.

Each capability exposes ``verify`` and ``sign`` and is injected into the
orchestrators by family. The cryptography itself is PyJWT's; key set records
are read with jwcrypto and converted to PyJWT keys via ``from_jwk``.
"""

import json
import logging
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Protocol, Tuple, Type

import jwt
from box import Box
from jwcrypto import jwk
from jwcrypto.common import JWException
from jwt.algorithms import get_default_algorithms

from .algorithms import Algorithm, AlgorithmFamily
from .errors import (
    InvalidKeyMaterial,
    NotImplementedAlgorithm,
    SignatureInvalid,
    TokenGuardError,
)

logger = logging.getLogger(__name__)

# Only the signature is checked here; time window and claim requirements are
# evaluated by the orchestrator on its own terms.
_SIGNATURE_ONLY_OPTIONS = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


class TokenCapability(Protocol):
    """Verifies and signs compact tokens for one algorithm family."""

    def verify(self, token: str, key: Any, algorithm: Algorithm) -> Box:
        """Return the trusted claims, or raise SignatureInvalid."""
        ...

    def sign(
        self,
        claims: Mapping[str, Any],
        key: Any,
        algorithm: Algorithm,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Return a compact token, or raise InvalidKeyMaterial."""
        ...


def _pyjwt_algorithm(algorithm: Algorithm):
    try:
        return get_default_algorithms()[algorithm.name]
    except KeyError:
        # PyJWT installed without the cryptography backend
        logger.error(f"PyJWT does not provide algorithm {algorithm.name}")
        raise NotImplementedAlgorithm(f"Algorithm not implemented: {algorithm.name}")


def _to_jwk(key: Any) -> jwk.JWK:
    """Build a jwcrypto JWK from a JWK object or a key set record."""
    if isinstance(key, jwk.JWK):
        return key
    if isinstance(key, Mapping):
        return jwk.JWK(**{name: value for name, value in key.items() if value is not None})
    raise TypeError(f"Unsupported key type: {type(key).__name__}")


def _check_key_fits(
    record: Mapping[str, Any],
    algorithm: Algorithm,
    error_cls: Type[TokenGuardError],
) -> None:
    """Reject keys whose type, algorithm or use does not match the token algorithm."""
    kty = record.get("kty")
    if kty != algorithm.key_type:
        logger.warning(
            f"Key type {kty} does not match algorithm {algorithm.name} "
            f"(expected {algorithm.key_type})"
        )
        raise error_cls()

    key_alg = record.get("alg")
    if key_alg and key_alg != algorithm.name:
        logger.warning(f"Key algorithm {key_alg} does not match token algorithm {algorithm.name}")
        raise error_cls()

    use = record.get("use")
    if use and use != "sig":
        logger.warning(f"Key use {use} is not a signature key")
        raise error_cls()


class _PyJWTCapability:
    def _prepare_verification_key(self, key: Any, algorithm: Algorithm) -> Any:
        raise NotImplementedError

    def _prepare_signing_key(self, key: Any, algorithm: Algorithm) -> Tuple[Any, Dict[str, Any]]:
        raise NotImplementedError

    def verify(self, token: str, key: Any, algorithm: Algorithm) -> Box:
        """Verify the token signature and return the decoded claims.

        Args:
            token: Compact token string.
            key: Secret or public key material, as the family expects.
            algorithm: Registry entry; the token header must name the same algorithm.

        Returns:
            Box: Immutable (frozen) Box containing the trusted payload.

        Raises:
            SignatureInvalid: If the key is unusable or the signature does not verify.
        """
        verification_key = self._prepare_verification_key(key, algorithm)

        try:
            payload = jwt.decode(
                token,
                verification_key,
                algorithms=[algorithm.name],
                options=_SIGNATURE_ONLY_OPTIONS,
            )
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            logger.warning(f"Token signature verification failed: {e}")
            raise SignatureInvalid() from e

        # Return immutable Box to prevent payload modification
        return Box(payload, frozen_box=True)

    def sign(
        self,
        claims: Mapping[str, Any],
        key: Any,
        algorithm: Algorithm,
        headers: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Sign the claims and return a compact token.

        Args:
            claims: Claim set to embed.
            key: Secret or private key material, as the family expects.
            algorithm: Registry entry naming the signature algorithm.
            headers: Extra header fields; 'alg' is always taken from ``algorithm``.

        Raises:
            InvalidKeyMaterial: If the key cannot sign with this algorithm.
        """
        signing_key, key_headers = self._prepare_signing_key(key, algorithm)

        token_headers = {"typ": "JWT", **key_headers}
        if headers:
            token_headers.update({name: value for name, value in headers.items() if name != "alg"})

        try:
            return jwt.encode(
                dict(claims),
                signing_key,
                algorithm=algorithm.name,
                headers=token_headers,
            )
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            logger.warning(f"Token signing failed for {algorithm.name}: {e}")
            raise InvalidKeyMaterial() from e


class HMACCapability(_PyJWTCapability):
    """Shared-secret capability for the HS* algorithms."""

    def _prepare_verification_key(self, key: Any, algorithm: Algorithm) -> Any:
        return key

    def _prepare_signing_key(self, key: Any, algorithm: Algorithm) -> Tuple[Any, Dict[str, Any]]:
        if not key or not isinstance(key, (str, bytes)):
            raise InvalidKeyMaterial("Signing secret must be a non-empty string")
        return key, {}


class PublicKeyCapability(_PyJWTCapability):
    """Key-pair capability for the RSA, RSA-PSS, EC and EdDSA algorithms.

    Verification takes a key set record (dict) or a ``jwk.JWK``. Signing takes
    a PEM encoded private key or a private JWK. Both are loaded with jwcrypto
    and must fit the algorithm; a JWK's 'kid' is copied into the token header.
    """

    def _prepare_verification_key(self, key: Any, algorithm: Algorithm) -> Any:
        try:
            record = _to_jwk(key).export_public(as_dict=True)
        except (JWException, TypeError, ValueError) as e:
            logger.warning(f"Unusable verification key: {e}")
            raise SignatureInvalid() from e

        _check_key_fits(record, algorithm, SignatureInvalid)

        try:
            return _pyjwt_algorithm(algorithm).from_jwk(json.dumps(record))
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            logger.warning(f"Key conversion failed for {algorithm.name}: {e}")
            raise SignatureInvalid() from e

    def _prepare_signing_key(self, key: Any, algorithm: Algorithm) -> Tuple[Any, Dict[str, Any]]:
        try:
            if isinstance(key, (str, bytes)):
                pem = key.encode("utf-8") if isinstance(key, str) else key
                private_jwk = jwk.JWK.from_pem(pem)
            else:
                private_jwk = _to_jwk(key)
        except (JWException, TypeError, ValueError) as e:
            logger.warning(f"Unusable signing key: {e}")
            raise InvalidKeyMaterial() from e

        if not private_jwk.has_private:
            logger.warning("Signing key has no private part")
            raise InvalidKeyMaterial("Signing requires a private key")

        _check_key_fits(private_jwk.export_public(as_dict=True), algorithm, InvalidKeyMaterial)

        try:
            signing_key = _pyjwt_algorithm(algorithm).from_jwk(private_jwk.export_private())
        except (jwt.PyJWTError, TypeError, ValueError) as e:
            logger.warning(f"Key conversion failed for {algorithm.name}: {e}")
            raise InvalidKeyMaterial() from e

        kid = private_jwk.get("kid")
        return signing_key, ({"kid": kid} if kid else {})


DEFAULT_CAPABILITIES: Mapping[AlgorithmFamily, TokenCapability] = MappingProxyType(
    {
        AlgorithmFamily.SYMMETRIC: HMACCapability(),
        AlgorithmFamily.ASYMMETRIC: PublicKeyCapability(),
    }
)
