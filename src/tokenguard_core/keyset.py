"""Key set parsing and key resolution by key ID.

A key set is an ordered list of JWK records. Key IDs are expected to be
unique; when they are not, the first matching record wins.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from jwcrypto import jwk

from .errors import KeySetFetchError, MissingKeyId
from .fetch import (
    AsyncHttpxKeySetFetcher,
    AsyncKeySetFetcher,
    HttpxKeySetFetcher,
    KeySetFetcher,
)

logger = logging.getLogger(__name__)

KeySet = List[Dict[str, Any]]

# JWK members that only private keys carry
_PRIVATE_MEMBERS = frozenset(["d", "p", "q", "dp", "dq", "qi", "oth", "k"])


def parse_key_set(document: Union[bytes, str, Mapping[str, Any]]) -> KeySet:
    """Parse a ``{"keys": [...]}`` document into a key set.

    Args:
        document: Raw JSON bytes or text, or an already decoded mapping.

    Returns:
        list: Key records in document order.

    Raises:
        KeySetFetchError: If the document is not JSON or has no list of key objects.
    """
    if isinstance(document, (bytes, str)):
        try:
            document = json.loads(document)
        except ValueError as e:
            logger.warning(f"Key set document is not valid JSON: {e}")
            raise KeySetFetchError("Key set document is not valid JSON") from e

    keys = document.get("keys") if isinstance(document, Mapping) else None
    if not isinstance(keys, list) or not all(isinstance(record, Mapping) for record in keys):
        logger.warning("Key set document has no 'keys' list of objects")
        raise KeySetFetchError("Key set document has no keys")

    key_set = [dict(record) for record in keys]
    for record in key_set:
        if _PRIVATE_MEMBERS.intersection(record):
            logger.warning(f"Key set record {record.get('kid')!r} exposes private key members")
    return key_set


def coerce_key_set(key_set: Any) -> KeySet:
    """Accept an ad-hoc key set in any of the supported shapes.

    Supported shapes are a list of records, a ``{"keys": [...]}`` document
    (mapping, str or bytes) and a ``jwcrypto.jwk.JWKSet``.
    """
    if isinstance(key_set, jwk.JWKSet):
        return parse_key_set(key_set.export(private_keys=False))
    if isinstance(key_set, (bytes, str, Mapping)):
        return parse_key_set(key_set)
    if isinstance(key_set, Sequence):
        records = [
            record.export_public(as_dict=True) if isinstance(record, jwk.JWK) else record
            for record in key_set
        ]
        return parse_key_set({"keys": records})
    raise KeySetFetchError("Unsupported key set type")


def key_exists(kid: Optional[str], key_set: Sequence[Mapping[str, Any]]) -> bool:
    """Check whether any record of the key set has the given key ID."""
    if kid is None:
        return False
    return any(record.get("kid") == kid for record in key_set)


def get_key(kid: Optional[str], key_set: Sequence[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Return the first record whose key ID matches.

    Raises:
        MissingKeyId: If no record matches.
    """
    if kid is not None:
        for record in key_set:
            if record.get("kid") == kid:
                return record

    logger.warning(f"Key ID {kid!r} not found in key set of {len(key_set)} key(s)")
    raise MissingKeyId()


def resolve_remote_key_set(
    locator: str,
    insecure_tls_allowed: bool = False,
    fetcher: Optional[KeySetFetcher] = None,
) -> KeySet:
    """Fetch and parse the key set published at ``locator``.

    Args:
        locator: http(s) URL of the key set document.
        insecure_tls_allowed: Skip certificate validation. Only meant for
            local environments with self-signed certificates.
        fetcher: Fetch capability (default: HttpxKeySetFetcher).

    Raises:
        KeySetFetchError: If retrieval fails or the body is not a key set.
    """
    fetcher = fetcher or HttpxKeySetFetcher()
    document = fetcher.fetch(locator, verify_certificates=not insecure_tls_allowed)
    return parse_key_set(document)


async def aresolve_remote_key_set(
    locator: str,
    insecure_tls_allowed: bool = False,
    fetcher: Optional[AsyncKeySetFetcher] = None,
) -> KeySet:
    """Async version of ``resolve_remote_key_set``."""
    fetcher = fetcher or AsyncHttpxKeySetFetcher()
    document = await fetcher.fetch(locator, verify_certificates=not insecure_tls_allowed)
    return parse_key_set(document)
