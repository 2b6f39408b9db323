"""Token verification flow.

A single pass, no retries:

1. Decode the header and resolve its algorithm in the registry.
2. Symmetric algorithms need a secret. Asymmetric algorithms need a key set
   (ad-hoc or fetched from a locator) and a 'kid' header naming a key in it.
3. The family capability verifies the signature and returns the claims.
4. The claims must carry integer 'iat' and 'exp' and be inside their window.
5. Audience, issuer and scope requirements, when given, are checked against
   the claims re-parsed from the token.

Configuration and credential errors raise. Signature, lifetime and claim
failures return False.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .algorithms import Algorithm, AlgorithmFamily, resolve_verification_algorithm
from .capabilities import DEFAULT_CAPABILITIES, TokenCapability
from .codec import decode_claims, decode_header, get_algorithm
from .config import DEFAULT_SCOPE_CLAIMS, get_config_value
from .errors import MissingCredential, MissingKeyIdFromHeaders, SignatureInvalid
from .fetch import (
    DEFAULT_FETCH_TIMEOUT,
    AsyncHttpxKeySetFetcher,
    AsyncKeySetFetcher,
    HttpxKeySetFetcher,
    KeySetFetcher,
)
from .keyset import aresolve_remote_key_set, coerce_key_set, get_key, resolve_remote_key_set
from .validator import _as_list, check_token_lifetime, has_lifetime_claims, validate_claims

logger = logging.getLogger(__name__)


def _pick(value: Any, config: Optional[Any], key: str, default: Any = None) -> Any:
    """Explicit argument first, then config, then default."""
    if value is not None:
        return value
    return get_config_value(config, key, default)


@dataclass
class _VerificationSettings:
    secret: Optional[Union[str, bytes]] = None
    jwks_uri: Optional[str] = None
    key_set: Any = None
    verify_ssl: bool = True
    required_audiences: List[str] = field(default_factory=list)
    required_issuer: Optional[str] = None
    required_scopes: List[str] = field(default_factory=list)
    scope_claims: Sequence[str] = tuple(DEFAULT_SCOPE_CLAIMS)
    leeway: int = 0

    @property
    def requires_claims_check(self) -> bool:
        return bool(self.required_audiences or self.required_issuer or self.required_scopes)


def _fetch_timeout(config: Optional[Any]) -> float:
    return get_config_value(config, "TOKENGUARD_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT)


def _build_settings(
    secret,
    jwks_uri,
    key_set,
    verify_ssl,
    required_audiences,
    required_issuer,
    required_scopes,
    config,
) -> _VerificationSettings:
    return _VerificationSettings(
        secret=_pick(secret, config, "TOKENGUARD_SECRET"),
        jwks_uri=_pick(jwks_uri, config, "TOKENGUARD_JWKS_URL"),
        key_set=key_set,
        verify_ssl=_pick(verify_ssl, config, "TOKENGUARD_VERIFY_SSL", True),
        required_audiences=_as_list(_pick(required_audiences, config, "TOKENGUARD_AUDIENCES")),
        required_issuer=_pick(required_issuer, config, "TOKENGUARD_ISSUER"),
        required_scopes=_as_list(_pick(required_scopes, config, "TOKENGUARD_SCOPES")),
        scope_claims=get_config_value(config, "TOKENGUARD_SCOPE_CLAIMS") or DEFAULT_SCOPE_CLAIMS,
        leeway=get_config_value(config, "TOKENGUARD_LEEWAY", 0) or 0,
    )


def _require_secret(settings: _VerificationSettings) -> Union[str, bytes]:
    if not settings.secret:
        logger.warning("Symmetric token received but no secret configured")
        raise MissingCredential("secret")
    return settings.secret


def _require_key_id(token: str, settings: _VerificationSettings) -> str:
    """Check that a key source exists and return the header 'kid'."""
    if settings.key_set is None and not settings.jwks_uri:
        logger.warning("Asymmetric token received but no key set or jwks_uri configured")
        raise MissingCredential("jwksUri")

    kid = decode_header(token).get("kid")
    if kid is None or kid == "":
        logger.warning("Token header missing key ID")
        raise MissingKeyIdFromHeaders()
    return kid


def _complete_verification(
    token: str,
    algorithm: Algorithm,
    key: Any,
    settings: _VerificationSettings,
    capabilities: Mapping[AlgorithmFamily, TokenCapability],
    now: Optional[float],
) -> bool:
    capability = capabilities[algorithm.family]
    try:
        decoded = capability.verify(token, key, algorithm)
    except SignatureInvalid:
        return False

    if not has_lifetime_claims(decoded):
        logger.warning("Verified token lacks integer iat/exp claims")
        return False

    if not check_token_lifetime(decoded, now=now, leeway=settings.leeway):
        return False

    if settings.requires_claims_check:
        return validate_claims(
            decode_claims(token),
            required_audiences=settings.required_audiences,
            required_issuer=settings.required_issuer,
            required_scopes=settings.required_scopes,
            scope_claims=settings.scope_claims,
        )

    return True


def check_token_validness(
    token: str,
    *,
    secret: Optional[Union[str, bytes]] = None,
    jwks_uri: Optional[str] = None,
    key_set: Any = None,
    verify_ssl: Optional[bool] = None,
    required_audiences: Optional[Union[str, Iterable[str]]] = None,
    required_issuer: Optional[str] = None,
    required_scopes: Optional[Union[str, Iterable[str]]] = None,
    fetcher: Optional[KeySetFetcher] = None,
    capabilities: Optional[Mapping[AlgorithmFamily, TokenCapability]] = None,
    config: Optional[Any] = None,
    now: Optional[float] = None,
) -> bool:
    """Verify a token end to end.

    Args:
        token: Compact token string.
        secret: Shared secret for HS* tokens.
        jwks_uri: Key set locator for asymmetric tokens.
        key_set: Ad-hoc key set; used instead of ``jwks_uri`` when given.
        verify_ssl: Validate certificates when fetching the key set (default: True).
        required_audiences: Audiences the token must carry.
        required_issuer: Issuer the token must carry.
        required_scopes: Scopes the token must carry.
        fetcher: Key set fetch capability (default: HttpxKeySetFetcher with
            TOKENGUARD_FETCH_TIMEOUT).
        capabilities: Capability per algorithm family (default: PyJWT backed).
        config: TokenGuardConfig, dict or object supplying TOKENGUARD_* defaults.
        now: Current epoch seconds (default: time.time()).

    Returns:
        bool: True only if the signature, lifetime and every requirement hold.

    Raises:
        MalformedToken: If the token or its header cannot be decoded.
        MalformedHeader: If the header has no algorithm.
        UnsupportedAlgorithm: If the algorithm is unknown.
        NotImplementedAlgorithm: If the algorithm is known but not wired.
        MissingCredential: If the secret or key source is missing.
        MissingKeyIdFromHeaders: If an asymmetric token has no 'kid'.
        MissingKeyId: If the 'kid' is not in the key set.
        KeySetFetchError: If the key set cannot be retrieved or parsed.
    """
    settings = _build_settings(
        secret,
        jwks_uri,
        key_set,
        verify_ssl,
        required_audiences,
        required_issuer,
        required_scopes,
        config,
    )
    algorithm = resolve_verification_algorithm(get_algorithm(token))

    if algorithm.is_symmetric:
        key = _require_secret(settings)
    else:
        kid = _require_key_id(token, settings)
        if settings.key_set is not None:
            keys = coerce_key_set(settings.key_set)
        else:
            keys = resolve_remote_key_set(
                settings.jwks_uri,
                insecure_tls_allowed=not settings.verify_ssl,
                fetcher=fetcher or HttpxKeySetFetcher(timeout=_fetch_timeout(config)),
            )
        key = get_key(kid, keys)

    return _complete_verification(
        token, algorithm, key, settings, capabilities or DEFAULT_CAPABILITIES, now
    )


async def acheck_token_validness(
    token: str,
    *,
    secret: Optional[Union[str, bytes]] = None,
    jwks_uri: Optional[str] = None,
    key_set: Any = None,
    verify_ssl: Optional[bool] = None,
    required_audiences: Optional[Union[str, Iterable[str]]] = None,
    required_issuer: Optional[str] = None,
    required_scopes: Optional[Union[str, Iterable[str]]] = None,
    fetcher: Optional[AsyncKeySetFetcher] = None,
    capabilities: Optional[Mapping[AlgorithmFamily, TokenCapability]] = None,
    config: Optional[Any] = None,
    now: Optional[float] = None,
) -> bool:
    """Async version of ``check_token_validness``.

    The key set is fetched with an async fetcher (default:
    AsyncHttpxKeySetFetcher). Cancellation during the fetch propagates
    before any later step runs.
    """
    settings = _build_settings(
        secret,
        jwks_uri,
        key_set,
        verify_ssl,
        required_audiences,
        required_issuer,
        required_scopes,
        config,
    )
    algorithm = resolve_verification_algorithm(get_algorithm(token))

    if algorithm.is_symmetric:
        key = _require_secret(settings)
    else:
        kid = _require_key_id(token, settings)
        if settings.key_set is not None:
            keys = coerce_key_set(settings.key_set)
        else:
            keys = await aresolve_remote_key_set(
                settings.jwks_uri,
                insecure_tls_allowed=not settings.verify_ssl,
                fetcher=fetcher or AsyncHttpxKeySetFetcher(timeout=_fetch_timeout(config)),
            )
        key = get_key(kid, keys)

    return _complete_verification(
        token, algorithm, key, settings, capabilities or DEFAULT_CAPABILITIES, now
    )
