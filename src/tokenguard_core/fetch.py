"""Key set document retrieval over HTTP.

This module provides both sync and async fetchers:
- HttpxKeySetFetcher / CachedKeySetFetcher: for WSGI and other threaded callers
- AsyncHttpxKeySetFetcher / AsyncCachedKeySetFetcher: for asyncio callers

Fetchers return the raw document bytes; parsing happens in ``keyset``.
Timeouts belong to the fetcher. Nothing here retries.
"""

import asyncio
import logging
import threading
import time
from typing import Any, Dict, Optional, Protocol, Tuple
from urllib.parse import urlparse

import httpx

from .config import get_config_value
from .errors import KeySetFetchError

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 10.0
DEFAULT_CACHE_TTL = 600


class KeySetFetcher(Protocol):
    def fetch(self, locator: str, *, verify_certificates: bool = True) -> bytes: ...


class AsyncKeySetFetcher(Protocol):
    async def fetch(self, locator: str, *, verify_certificates: bool = True) -> bytes: ...


def _validate_locator(locator: str) -> None:
    """Reject anything but http and https locators.

    Raises:
        KeySetFetchError: If the URL scheme is not allowed.
    """
    parsed_url = urlparse(locator) if isinstance(locator, str) else None
    if parsed_url is None or parsed_url.scheme not in ("http", "https"):
        scheme = parsed_url.scheme if parsed_url is not None else None
        logger.error(f"Invalid key set URL scheme: {scheme}. URL: {locator}")
        raise KeySetFetchError(
            "Invalid key set URL configuration. Only http and https schemes are allowed."
        )


def _warn_insecure(locator: str, verify_certificates: bool) -> None:
    if not verify_certificates:
        logger.warning(f"Fetching key set from {locator} without certificate validation")


class HttpxKeySetFetcher:
    """Fetch key set documents with ``httpx.Client``.

    Args:
        timeout: Request timeout in seconds.
        client: Optional shared client. Its own ``verify`` setting then applies
            and ``verify_certificates`` is ignored.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self._timeout = timeout
        self._client = client

    def fetch(self, locator: str, *, verify_certificates: bool = True) -> bytes:
        """Fetch the key set document at ``locator``.

        Returns:
            bytes: Raw key set document.

        Raises:
            KeySetFetchError: On invalid scheme, transport, TLS or HTTP status errors.
        """
        _validate_locator(locator)
        _warn_insecure(locator, verify_certificates)

        try:
            if self._client is not None:
                response = self._client.get(locator)
            else:
                with httpx.Client(
                    timeout=httpx.Timeout(self._timeout),
                    follow_redirects=True,
                    verify=verify_certificates,
                ) as client:
                    response = client.get(locator)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error fetching key set from {locator}: {e}")
            raise KeySetFetchError() from e

        return response.content


class AsyncHttpxKeySetFetcher:
    """Fetch key set documents with ``httpx.AsyncClient``.

    Args:
        timeout: Request timeout in seconds.
        client: Optional shared client. Its own ``verify`` setting then applies
            and ``verify_certificates`` is ignored.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._timeout = timeout
        self._client = client

    async def fetch(self, locator: str, *, verify_certificates: bool = True) -> bytes:
        """Fetch the key set document at ``locator``.

        Raises:
            KeySetFetchError: On invalid scheme, transport, TLS or HTTP status errors.
        """
        _validate_locator(locator)
        _warn_insecure(locator, verify_certificates)

        try:
            if self._client is not None:
                response = await self._client.get(locator)
            else:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self._timeout),
                    follow_redirects=True,
                    verify=verify_certificates,
                ) as client:
                    response = await client.get(locator)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Error fetching key set from {locator}: {e}")
            raise KeySetFetchError() from e

        return response.content


class CachedKeySetFetcher:
    """Thread-safe TTL cache in front of a sync fetcher.

    Entries are keyed by locator and certificate validation flag; a document
    fetched without validation is never served to a validating caller.
    Call ``invalidate`` after a MissingKeyId result, then verify again, to pick
    up a rotated key set.

    Args:
        fetcher: Fetcher used on cache miss (default: HttpxKeySetFetcher).
        cache_ttl: Seconds an entry stays fresh.
    """

    def __init__(
        self, fetcher: Optional[KeySetFetcher] = None, cache_ttl: int = DEFAULT_CACHE_TTL
    ):
        if cache_ttl <= 0:
            raise ValueError("cache_ttl must be positive")
        self._fetcher = fetcher or HttpxKeySetFetcher()
        self._cache_ttl = cache_ttl
        # (locator, verify_certificates) -> (data, timestamp)
        self._cache: Dict[Tuple[str, bool], Tuple[bytes, float]] = {}
        self._cache_lock = threading.RLock()

    def fetch(self, locator: str, *, verify_certificates: bool = True) -> bytes:
        cache_key = (locator, verify_certificates)
        with self._cache_lock:
            if cache_key in self._cache:
                data, timestamp = self._cache[cache_key]
                age = time.time() - timestamp
                if age < self._cache_ttl:
                    logger.debug(f"Key set cache hit for {locator} (age: {age:.1f}s)")
                    return data

        logger.debug(f"Key set cache miss for {locator}, fetching...")
        data = self._fetcher.fetch(locator, verify_certificates=verify_certificates)

        with self._cache_lock:
            self._cache[cache_key] = (data, time.time())
        return data

    def invalidate(self, locator: Optional[str] = None) -> None:
        """Drop one cached locator, or every entry when ``locator`` is None."""
        with self._cache_lock:
            if locator is None:
                self._cache.clear()
            else:
                self._cache.pop((locator, True), None)
                self._cache.pop((locator, False), None)
        logger.debug(f"Key set cache invalidated for {locator or 'all locators'}")


class AsyncCachedKeySetFetcher:
    """Asyncio-safe TTL cache in front of an async fetcher.

    Args:
        fetcher: Fetcher used on cache miss (default: AsyncHttpxKeySetFetcher).
        cache_ttl: Seconds an entry stays fresh.
    """

    def __init__(
        self, fetcher: Optional[AsyncKeySetFetcher] = None, cache_ttl: int = DEFAULT_CACHE_TTL
    ):
        if cache_ttl <= 0:
            raise ValueError("cache_ttl must be positive")
        self._fetcher = fetcher or AsyncHttpxKeySetFetcher()
        self._cache_ttl = cache_ttl
        self._cache: Dict[Tuple[str, bool], Tuple[bytes, float]] = {}
        self._cache_lock = asyncio.Lock()

    async def fetch(self, locator: str, *, verify_certificates: bool = True) -> bytes:
        cache_key = (locator, verify_certificates)
        async with self._cache_lock:
            if cache_key in self._cache:
                data, timestamp = self._cache[cache_key]
                age = time.time() - timestamp
                if age < self._cache_ttl:
                    logger.debug(f"Key set cache hit for {locator} (age: {age:.1f}s)")
                    return data

        logger.debug(f"Key set cache miss for {locator}, fetching...")
        data = await self._fetcher.fetch(locator, verify_certificates=verify_certificates)

        async with self._cache_lock:
            self._cache[cache_key] = (data, time.time())
        return data

    async def invalidate(self, locator: Optional[str] = None) -> None:
        """Drop one cached locator, or every entry when ``locator`` is None."""
        async with self._cache_lock:
            if locator is None:
                self._cache.clear()
            else:
                self._cache.pop((locator, True), None)
                self._cache.pop((locator, False), None)
        logger.debug(f"Key set cache invalidated for {locator or 'all locators'}")


def create_key_set_fetcher(config: Optional[Any] = None) -> CachedKeySetFetcher:
    """Build a cached httpx fetcher from TOKENGUARD_* settings.

    Uses TOKENGUARD_FETCH_TIMEOUT and TOKENGUARD_JWKS_CACHE_TTL.

    Keep the returned fetcher for the application lifetime and pass it to
    every ``check_token_validness`` call so the cache is shared.
    """
    timeout = get_config_value(config, "TOKENGUARD_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT)
    cache_ttl = get_config_value(config, "TOKENGUARD_JWKS_CACHE_TTL", DEFAULT_CACHE_TTL)
    return CachedKeySetFetcher(HttpxKeySetFetcher(timeout=timeout), cache_ttl=cache_ttl)


def create_async_key_set_fetcher(config: Optional[Any] = None) -> AsyncCachedKeySetFetcher:
    """Async version of ``create_key_set_fetcher``."""
    timeout = get_config_value(config, "TOKENGUARD_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT)
    cache_ttl = get_config_value(config, "TOKENGUARD_JWKS_CACHE_TTL", DEFAULT_CACHE_TTL)
    return AsyncCachedKeySetFetcher(AsyncHttpxKeySetFetcher(timeout=timeout), cache_ttl=cache_ttl)
