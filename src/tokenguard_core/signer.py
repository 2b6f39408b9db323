"""Token issuance: claim assembly and signing dispatch."""

import logging
import time
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .algorithms import AlgorithmFamily, resolve_signing_algorithm
from .capabilities import DEFAULT_CAPABILITIES, TokenCapability
from .config import get_config_value
from .errors import MissingCredential

logger = logging.getLogger(__name__)

DEFAULT_SESSION_DURATION = 60  # minutes


def _audience_claim(audiences: Union[str, Iterable[str]]) -> Union[str, list]:
    if isinstance(audiences, str):
        return audiences
    return list(audiences)


def build_claims(
    payload: Optional[Mapping[str, Any]] = None,
    *,
    issuer: Optional[str] = None,
    audiences: Optional[Union[str, Iterable[str]]] = None,
    scopes: Optional[Union[str, Iterable[str]]] = None,
    subject: Optional[str] = None,
    application_id: Optional[str] = None,
    session_duration: float = DEFAULT_SESSION_DURATION,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    """Assemble the claim set of a token to issue.

    Registered claims that are None are left out. 'iat' is the current time
    and 'exp' is 'iat' plus ``session_duration`` minutes. Fields of
    ``payload`` are applied last and win on collision.

    Example:
        Basic::

            build_claims(
                {"role": "reader"},
                issuer="https://id.example.com",
                audiences=["https://api.example.com"],
                scopes="user openid",
                session_duration=15,
            )
            # {'iss': ..., 'aud': [...], 'scp': 'user openid', 'iat': ..., 'exp': iat + 900,
            #  'role': 'reader'}
    """
    issued_at = int(time.time() if now is None else now)

    claims: Dict[str, Any] = {}
    if issuer is not None:
        claims["iss"] = issuer
    if audiences is not None:
        claims["aud"] = _audience_claim(audiences)
    if scopes is not None:
        claims["scp"] = scopes if isinstance(scopes, str) else list(scopes)
    if subject is not None:
        claims["sub"] = subject
    if application_id is not None:
        claims["aid"] = application_id

    claims["iat"] = issued_at
    claims["exp"] = issued_at + int(session_duration * 60)

    if payload:
        claims.update(payload)
    return claims


def create_signed_jwt(
    payload: Optional[Mapping[str, Any]] = None,
    *,
    algorithm: str,
    issuer: Optional[str] = None,
    audiences: Optional[Union[str, Iterable[str]]] = None,
    scopes: Optional[Union[str, Iterable[str]]] = None,
    subject: Optional[str] = None,
    application_id: Optional[str] = None,
    session_duration: Optional[float] = None,
    secret: Optional[Union[str, bytes]] = None,
    private_key_pem: Optional[Union[str, bytes]] = None,
    private_jwk: Optional[Any] = None,
    headers: Optional[Mapping[str, Any]] = None,
    capabilities: Optional[Mapping[AlgorithmFamily, TokenCapability]] = None,
    config: Optional[Any] = None,
    now: Optional[float] = None,
) -> str:
    """Issue a signed compact token.

    Args:
        payload: Extra claims; they override the computed ones.
        algorithm: 'alg' identifier to sign with.
        issuer: 'iss' claim.
        audiences: 'aud' claim, one audience or several.
        scopes: 'scp' claim, a delimited string or a sequence.
        subject: 'sub' claim.
        application_id: 'aid' claim.
        session_duration: Token lifetime in minutes
            (default: TOKENGUARD_SESSION_DURATION, else 60).
        secret: Shared secret for HS* algorithms (default: TOKENGUARD_SECRET).
        private_key_pem: PEM encoded private key for asymmetric algorithms.
        private_jwk: Private JWK (dict or jwcrypto JWK); preferred over the PEM.
        headers: Extra header fields such as 'kid'.
        capabilities: Capability per algorithm family (default: PyJWT backed).
        config: TokenGuardConfig, dict or object supplying TOKENGUARD_* defaults.
        now: Current epoch seconds (default: time.time()).

    Returns:
        str: The compact token produced by the signing capability.

    Raises:
        UnsupportedAlgorithm: If the algorithm is unknown.
        NotImplementedAlgorithm: If the algorithm has no signing capability.
        MissingCredential: If the secret or private key material is missing.
        InvalidKeyMaterial: If the key cannot sign with this algorithm.
    """
    if session_duration is None:
        session_duration = get_config_value(
            config, "TOKENGUARD_SESSION_DURATION", DEFAULT_SESSION_DURATION
        )

    claims = build_claims(
        payload,
        issuer=issuer,
        audiences=audiences,
        scopes=scopes,
        subject=subject,
        application_id=application_id,
        session_duration=session_duration,
        now=now,
    )

    resolved = resolve_signing_algorithm(algorithm)
    if resolved.is_symmetric:
        key = secret if secret is not None else get_config_value(config, "TOKENGUARD_SECRET")
        if not key:
            logger.warning(f"No secret supplied to sign {resolved.name} token")
            raise MissingCredential("secret")
    else:
        key = private_jwk if private_jwk is not None else private_key_pem
        if not key:
            logger.warning(f"No private key supplied to sign {resolved.name} token")
            raise MissingCredential("privateKeyPem", "privateJwk")

    capability = (capabilities or DEFAULT_CAPABILITIES)[resolved.family]
    token = capability.sign(claims, key, resolved, headers)
    logger.debug(f"Issued {resolved.name} token expiring at {claims.get('exp')}")
    return token
