"""Claim predicates: audience, issuer, scopes and the validity window.

Every predicate returns a bool. A required claim that is absent fails its
check. Log messages never say which requirement failed.
"""

import logging
import time
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

from .config import DEFAULT_SCOPE_CLAIMS
from .errors import InvalidScopeFieldType

logger = logging.getLogger(__name__)

_SCOPE_SEQUENCE_TYPES = (list, tuple, set, frozenset)


def _as_list(values: Optional[Union[str, Iterable[str]]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        return [values]
    return list(values)


def _is_epoch(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def normalize_scopes(value: Any) -> List[str]:
    """Normalize a scope claim to a list of scopes.

    A string is split on spaces when it has any, otherwise on commas when it
    has any, otherwise it is a single scope. Sequences are used as-is.

    Raises:
        InvalidScopeFieldType: If the value is neither a string nor a sequence.

    Example:
        Basic::

            normalize_scopes("user openid")  # ['user', 'openid']
            normalize_scopes("user,openid")  # ['user', 'openid']
            normalize_scopes(["user", "openid"])  # ['user', 'openid']
    """
    if isinstance(value, str):
        if " " in value:
            return value.split()
        if "," in value:
            return [scope.strip() for scope in value.split(",") if scope.strip()]
        return [value]
    if isinstance(value, _SCOPE_SEQUENCE_TYPES):
        return list(value)
    raise InvalidScopeFieldType()


def get_scope_claim(
    claims: Mapping[str, Any], scope_claims: Optional[Sequence[str]] = None
) -> Any:
    """Return the first present scope claim value, checking names in priority order."""
    for claim_name in scope_claims or DEFAULT_SCOPE_CLAIMS:
        value = claims.get(claim_name)
        if value is not None:
            return value
    return None


def check_audience(
    claims: Mapping[str, Any], required_audiences: Optional[Union[str, Iterable[str]]]
) -> bool:
    """Check the 'aud' claim against the required audiences.

    A string 'aud' passes only when it is the one required audience. A list
    'aud' passes when it contains every required audience.
    """
    required = set(_as_list(required_audiences))
    if not required:
        return True

    aud = claims.get("aud")
    if isinstance(aud, str):
        return required == {aud}
    if isinstance(aud, (list, tuple)):
        return all(audience in aud for audience in required)
    return False


def check_issuer(claims: Mapping[str, Any], required_issuer: Optional[str]) -> bool:
    """Check the 'iss' claim for an exact match with the required issuer."""
    if not required_issuer:
        return True

    iss = claims.get("iss")
    return isinstance(iss, str) and iss == required_issuer


def check_scopes(
    claims: Mapping[str, Any],
    required_scopes: Optional[Union[str, Iterable[str]]],
    scope_claims: Optional[Sequence[str]] = None,
) -> bool:
    """Check that every required scope is granted by the token.

    Raises:
        InvalidScopeFieldType: If the scope claim is neither a string nor a sequence.
    """
    required = set(_as_list(required_scopes))
    if not required:
        return True

    value = get_scope_claim(claims, scope_claims)
    if value is None:
        return False
    granted = normalize_scopes(value)
    return all(scope in granted for scope in required)


def validate_claims(
    claims: Mapping[str, Any],
    required_audiences: Optional[Union[str, Iterable[str]]] = None,
    required_issuer: Optional[str] = None,
    required_scopes: Optional[Union[str, Iterable[str]]] = None,
    scope_claims: Optional[Sequence[str]] = None,
) -> bool:
    """Check audience, issuer and scope requirements against a claim set.

    All three checks always run; a malformed scope claim counts as a failed
    check, whatever the other checks returned.

    Args:
        claims: Decoded claim set.
        required_audiences: Audiences the token must carry.
        required_issuer: Issuer the token must carry.
        required_scopes: Scopes the token must carry.
        scope_claims: Claim names checked for scopes (default: ["scp", "scope"]).

    Returns:
        bool: True only if every requirement holds.

    Example:
        Basic::

            claims = {"aud": ["A", "B"], "scp": "user openid"}
            validate_claims(claims, required_audiences=["A"])  # True
            validate_claims(claims, required_audiences=["A", "C"])  # False
            validate_claims(claims, required_scopes=["admin"])  # False
    """
    if not isinstance(claims, Mapping):
        logger.warning("Claim set is not a mapping")
        return False

    audience_ok = check_audience(claims, required_audiences)
    issuer_ok = check_issuer(claims, required_issuer)
    try:
        scopes_ok = check_scopes(claims, required_scopes, scope_claims)
    except InvalidScopeFieldType:
        logger.warning("Scope claim is neither a string nor a sequence")
        scopes_ok = False

    valid = audience_ok and issuer_ok and scopes_ok
    if not valid:
        logger.warning("Token claims do not satisfy the required claims")
    return valid


def has_lifetime_claims(claims: Mapping[str, Any]) -> bool:
    """Check that 'iat' and 'exp' are both present as integers."""
    return _is_epoch(claims.get("iat")) and _is_epoch(claims.get("exp"))


def check_token_lifetime(
    claims: Mapping[str, Any], now: Optional[float] = None, leeway: int = 0
) -> bool:
    """Check the validity window of a claim set.

    The token is expired once the current time reaches 'exp'. A present
    'nbf' must not lie in the future. ``leeway`` widens both bounds.

    Args:
        claims: Decoded claim set with integer 'exp'.
        now: Current epoch seconds (default: time.time()).
        leeway: Seconds of tolerated clock skew.
    """
    current = time.time() if now is None else now

    exp = claims.get("exp")
    if not _is_epoch(exp) or current >= exp + leeway:
        logger.info("Token has expired")
        return False

    nbf = claims.get("nbf")
    if nbf is not None and (not _is_epoch(nbf) or current + leeway < nbf):
        logger.info("Token is not valid yet")
        return False

    return True
