"""TokenGuard Core - compact token verification and issuance.

This package verifies and signs JWT-style tokens under two trust models:
shared-secret HMAC algorithms and key-pair algorithms whose public keys are
resolved by key ID from a published key set (JWKS).
"""

from importlib.metadata import PackageNotFoundError, version

from .algorithms import (
    ALGORITHM_REGISTRY,
    SUPPORTED_ALGORITHMS,
    Algorithm,
    AlgorithmFamily,
    lookup_algorithm,
    resolve_signing_algorithm,
    resolve_verification_algorithm,
)
from .capabilities import (
    DEFAULT_CAPABILITIES,
    HMACCapability,
    PublicKeyCapability,
    TokenCapability,
)
from .codec import (
    decode_claims,
    decode_header,
    encode_claims,
    encode_header,
    encode_segment,
    get_algorithm,
)
from .config import TokenGuardConfig
from .errors import (
    InvalidKeyMaterial,
    InvalidScopeFieldType,
    KeySetFetchError,
    MalformedHeader,
    MalformedToken,
    MissingCredential,
    MissingKeyId,
    MissingKeyIdFromHeaders,
    NotImplementedAlgorithm,
    SignatureInvalid,
    TokenGuardError,
    UnsupportedAlgorithm,
)
from .fetch import (
    AsyncCachedKeySetFetcher,
    AsyncHttpxKeySetFetcher,
    CachedKeySetFetcher,
    HttpxKeySetFetcher,
    create_async_key_set_fetcher,
    create_key_set_fetcher,
)
from .keyset import (
    aresolve_remote_key_set,
    coerce_key_set,
    get_key,
    key_exists,
    parse_key_set,
    resolve_remote_key_set,
)
from .signer import build_claims, create_signed_jwt
from .validator import (
    check_audience,
    check_issuer,
    check_scopes,
    check_token_lifetime,
    normalize_scopes,
    validate_claims,
)
from .verifier import acheck_token_validness, check_token_validness

__all__ = [
    "ALGORITHM_REGISTRY",
    "Algorithm",
    "AlgorithmFamily",
    "AsyncCachedKeySetFetcher",
    "AsyncHttpxKeySetFetcher",
    "CachedKeySetFetcher",
    "DEFAULT_CAPABILITIES",
    "HMACCapability",
    "HttpxKeySetFetcher",
    "InvalidKeyMaterial",
    "InvalidScopeFieldType",
    "KeySetFetchError",
    "MalformedHeader",
    "MalformedToken",
    "MissingCredential",
    "MissingKeyId",
    "MissingKeyIdFromHeaders",
    "NotImplementedAlgorithm",
    "PublicKeyCapability",
    "SUPPORTED_ALGORITHMS",
    "SignatureInvalid",
    "TokenCapability",
    "TokenGuardConfig",
    "TokenGuardError",
    "UnsupportedAlgorithm",
    "acheck_token_validness",
    "aresolve_remote_key_set",
    "build_claims",
    "check_audience",
    "check_issuer",
    "check_scopes",
    "check_token_lifetime",
    "check_token_validness",
    "coerce_key_set",
    "create_async_key_set_fetcher",
    "create_key_set_fetcher",
    "create_signed_jwt",
    "decode_claims",
    "decode_header",
    "encode_claims",
    "encode_header",
    "encode_segment",
    "get_algorithm",
    "get_key",
    "key_exists",
    "lookup_algorithm",
    "normalize_scopes",
    "parse_key_set",
    "resolve_remote_key_set",
    "resolve_signing_algorithm",
    "resolve_verification_algorithm",
    "validate_claims",
]

try:
    __version__ = version("tokenguard-core")
except PackageNotFoundError:
    __version__ = "unknown"
