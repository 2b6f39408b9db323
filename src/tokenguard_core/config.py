"""TokenGuard configuration management."""

# ruff: noqa: N803
# Allow uppercase argument names for config (they match environment variable names)

import logging
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_SCOPE_CLAIMS = ["scp", "scope"]


class TokenGuardConfig:
    """Unified configuration for token verification and issuance.

    All configuration variables follow the TOKENGUARD_* naming convention.
    Orchestrator keyword arguments take precedence over these values.

    Example:
        Basic::

            from tokenguard_core.config import TokenGuardConfig
            config = TokenGuardConfig(
                TOKENGUARD_JWKS_URL="https://id.example.com/.well-known/jwks.json",
                TOKENGUARD_AUDIENCES=["https://api.example.com"],
                TOKENGUARD_ISSUER="https://id.example.com",
            )
            # List all config values
            print(config.to_dict())
    """

    def __init__(
        self,
        # Credentials
        TOKENGUARD_SECRET: Optional[str] = None,
        TOKENGUARD_JWKS_URL: Optional[str] = None,
        TOKENGUARD_VERIFY_SSL: bool = True,
        # Claim requirements
        TOKENGUARD_AUDIENCES: Optional[List[str]] = None,
        TOKENGUARD_ISSUER: Optional[str] = None,
        TOKENGUARD_SCOPES: Optional[List[str]] = None,
        TOKENGUARD_SCOPE_CLAIMS: Optional[List[str]] = None,
        TOKENGUARD_LEEWAY: int = 0,
        # Issuance
        TOKENGUARD_SESSION_DURATION: int = 60,  # minutes
        # Key set retrieval
        TOKENGUARD_FETCH_TIMEOUT: float = 10.0,
        TOKENGUARD_JWKS_CACHE_TTL: int = 600,
    ):
        """Initialize TokenGuard configuration.

        Args:
            TOKENGUARD_SECRET: Shared secret for HMAC algorithms
            TOKENGUARD_JWKS_URL: Key set locator for asymmetric algorithms
            TOKENGUARD_VERIFY_SSL: Validate certificates when fetching the key set
                (default: True; disable only for self-signed local environments)
            TOKENGUARD_AUDIENCES: Audiences every verified token must carry
            TOKENGUARD_ISSUER: Issuer every verified token must carry
            TOKENGUARD_SCOPES: Scopes every verified token must carry
            TOKENGUARD_SCOPE_CLAIMS: Claim names checked for scopes
                (default: ["scp", "scope"])
            TOKENGUARD_LEEWAY: Seconds of clock skew tolerated on exp/nbf (default: 0)
            TOKENGUARD_SESSION_DURATION: Minutes between iat and exp of issued tokens
                (default: 60)
            TOKENGUARD_FETCH_TIMEOUT: Seconds before a key set request times out
                (default: 10.0)
            TOKENGUARD_JWKS_CACHE_TTL: Seconds a cached key set stays fresh (default: 600)
        """
        self.TOKENGUARD_SECRET = TOKENGUARD_SECRET
        self.TOKENGUARD_JWKS_URL = TOKENGUARD_JWKS_URL
        self.TOKENGUARD_VERIFY_SSL = TOKENGUARD_VERIFY_SSL

        self.TOKENGUARD_AUDIENCES = TOKENGUARD_AUDIENCES or []
        self.TOKENGUARD_ISSUER = TOKENGUARD_ISSUER
        self.TOKENGUARD_SCOPES = TOKENGUARD_SCOPES or []
        self.TOKENGUARD_SCOPE_CLAIMS = TOKENGUARD_SCOPE_CLAIMS or list(
            DEFAULT_SCOPE_CLAIMS
        )
        self.TOKENGUARD_LEEWAY = TOKENGUARD_LEEWAY

        self.TOKENGUARD_SESSION_DURATION = TOKENGUARD_SESSION_DURATION

        self.TOKENGUARD_FETCH_TIMEOUT = TOKENGUARD_FETCH_TIMEOUT
        self.TOKENGUARD_JWKS_CACHE_TTL = TOKENGUARD_JWKS_CACHE_TTL

        self._validate()

    def _validate(self):
        """Validate configuration values."""
        if self.TOKENGUARD_LEEWAY < 0:
            raise ValueError("TOKENGUARD_LEEWAY must not be negative")

        if self.TOKENGUARD_SESSION_DURATION <= 0:
            raise ValueError("TOKENGUARD_SESSION_DURATION must be positive")

        if self.TOKENGUARD_FETCH_TIMEOUT <= 0:
            raise ValueError("TOKENGUARD_FETCH_TIMEOUT must be positive")

        if self.TOKENGUARD_JWKS_CACHE_TTL <= 0:
            raise ValueError("TOKENGUARD_JWKS_CACHE_TTL must be positive")

        if not self.TOKENGUARD_VERIFY_SSL:
            logger.warning(
                "TOKENGUARD_VERIFY_SSL is disabled; key set certificates will not be validated"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary.

        Returns:
            Dictionary containing all configuration values.
        """
        return {
            "TOKENGUARD_SECRET": self.TOKENGUARD_SECRET,
            "TOKENGUARD_JWKS_URL": self.TOKENGUARD_JWKS_URL,
            "TOKENGUARD_VERIFY_SSL": self.TOKENGUARD_VERIFY_SSL,
            "TOKENGUARD_AUDIENCES": self.TOKENGUARD_AUDIENCES,
            "TOKENGUARD_ISSUER": self.TOKENGUARD_ISSUER,
            "TOKENGUARD_SCOPES": self.TOKENGUARD_SCOPES,
            "TOKENGUARD_SCOPE_CLAIMS": self.TOKENGUARD_SCOPE_CLAIMS,
            "TOKENGUARD_LEEWAY": self.TOKENGUARD_LEEWAY,
            "TOKENGUARD_SESSION_DURATION": self.TOKENGUARD_SESSION_DURATION,
            "TOKENGUARD_FETCH_TIMEOUT": self.TOKENGUARD_FETCH_TIMEOUT,
            "TOKENGUARD_JWKS_CACHE_TTL": self.TOKENGUARD_JWKS_CACHE_TTL,
        }

    def __repr__(self) -> str:
        """String representation of config with the secret masked."""
        values = self.to_dict()
        if values["TOKENGUARD_SECRET"] is not None:
            values["TOKENGUARD_SECRET"] = "***"
        items = ", ".join(f"{k}={v!r}" for k, v in values.items())
        return f"TokenGuardConfig({items})"


def get_config_value(config: Optional[Any], key: str, default: Any = None) -> Any:
    """Get configuration value from config object.

    Supports both dict-like and object attribute access patterns.

    Args:
        config: Configuration object or dict.
        key: Configuration key to retrieve.
        default: Default value if key not found.

    Returns:
        Configuration value or default.
    """
    if config is None:
        return default

    # Try dict-like access first
    if isinstance(config, dict):
        return config.get(key, default)

    # Try attribute access (for objects)
    return getattr(config, key, default)
