"""TokenGuard error classes following RFC 6750 OAuth 2.0 Bearer Token standard."""

from typing import Dict, Optional, Union


class TokenGuardError(Exception):
    """Base exception for TokenGuard errors following RFC 6750.

    Standard OAuth 2.0 Bearer Token error codes (RFC 6750):
    - invalid_token (HTTP 401): Expired, malformed, or otherwise untrusted token
    - server_error (HTTP 500): Missing credentials, key set retrieval or key errors

    Subclasses set a default code and description, so they can be raised
    without arguments. A plain string replaces the description only.

    Args:
        error: Error details dict with 'error' and 'error_description' keys per RFC 6750,
            or a description string.
        status_code: HTTP status code.
    """

    error_code = "invalid_token"
    default_description = "Authentication error"
    default_status_code = 401

    def __init__(
        self,
        error: Optional[Union[Dict[str, str], str]] = None,
        status_code: Optional[int] = None,
    ):
        if error is None:
            error = {
                "error": self.error_code,
                "error_description": self.default_description,
            }
        elif isinstance(error, str):
            error = {"error": self.error_code, "error_description": error}
        self.error = error
        self.status_code = (
            status_code if status_code is not None else self.default_status_code
        )
        super().__init__(error.get("error_description", "Authentication error"))


class MalformedToken(TokenGuardError):
    """Token does not have the header.payload.signature shape or a segment is not JSON."""

    default_description = "Malformed token"


class MalformedHeader(MalformedToken):
    """Token header decodes but lacks a usable algorithm."""

    default_description = "Token header missing algorithm"


class UnsupportedAlgorithm(TokenGuardError):
    default_description = "Invalid or unsupported algorithm"


class NotImplementedAlgorithm(TokenGuardError):
    """Algorithm is a known identifier with no capability wired to it."""

    default_description = "Algorithm not implemented"


class MissingKeyIdFromHeaders(TokenGuardError):
    default_description = "Token header missing key ID"


class MissingKeyId(TokenGuardError):
    default_description = "Key ID not found in key set"


class SignatureInvalid(TokenGuardError):
    default_description = "Invalid token signature"


class InvalidScopeFieldType(TokenGuardError):
    default_description = "Invalid scope claim type"


class MissingCredential(TokenGuardError):
    """Caller did not supply the secret, key material or locator the algorithm needs.

    Args:
        *credentials: Names of the missing credentials.
    """

    error_code = "server_error"
    default_status_code = 500

    def __init__(self, *credentials: str):
        self.credentials = list(credentials)
        names = ", ".join(self.credentials) or "unknown"
        super().__init__(f"Missing credential: {names}")


class KeySetFetchError(TokenGuardError):
    error_code = "server_error"
    default_description = "Unable to retrieve key set"
    default_status_code = 500


class InvalidKeyMaterial(TokenGuardError):
    error_code = "server_error"
    default_description = "Invalid signing key material"
    default_status_code = 500
