"""Unverified header and claims codecs for compact tokens.

Nothing in this module checks a signature. Decoded claims are untrusted until
a verification capability has accepted the token.
"""

import json
import logging
from typing import Any, Dict, List, Mapping

from jwt.utils import base64url_decode, base64url_encode

from .errors import MalformedHeader, MalformedToken

logger = logging.getLogger(__name__)

SEGMENT_DELIMITER = "."


def _split_token(token: str) -> List[str]:
    """Split a compact token into its three segments.

    Raises:
        MalformedToken: If the token is not a string with exactly three segments
            and non-empty header and payload segments.
    """
    if not isinstance(token, str):
        raise MalformedToken()

    segments = token.split(SEGMENT_DELIMITER)
    if len(segments) != 3 or not segments[0] or not segments[1]:
        logger.warning(f"Token has {len(segments)} segment(s), expected 3")
        raise MalformedToken()
    return segments


def encode_segment(value: Mapping[str, Any]) -> str:
    """Serialize a mapping as a base64url encoded JSON segment."""
    data = json.dumps(dict(value), separators=(",", ":")).encode("utf-8")
    return base64url_encode(data).decode("ascii")


def encode_header(header: Mapping[str, Any]) -> str:
    return encode_segment(header)


def encode_claims(claims: Mapping[str, Any]) -> bytes:
    """Serialize a claim set as compact JSON bytes.

    Key order is not significant to decoding.
    """
    return json.dumps(dict(claims), separators=(",", ":")).encode("utf-8")


def _decode_segment(segment: str, name: str) -> Dict[str, Any]:
    try:
        value = json.loads(base64url_decode(segment))
    except ValueError as e:
        logger.warning(f"Token {name} decode failed: {e}")
        raise MalformedToken(f"Malformed token {name}") from e

    if not isinstance(value, dict):
        logger.warning(f"Token {name} is not a JSON object")
        raise MalformedToken(f"Malformed token {name}")
    return value


def decode_header(token: str) -> Dict[str, Any]:
    """Decode the header segment without verifying the signature.

    The signature segment is never decoded.

    Args:
        token: Compact token string.

    Returns:
        dict: Header fields, typically 'alg', 'typ' and 'kid'.

    Raises:
        MalformedToken: If the token shape is wrong or the header is not a JSON object.
    """
    return _decode_segment(_split_token(token)[0], "header")


def get_algorithm(token: str) -> str:
    """Return the 'alg' identifier from the token header.

    Raises:
        MalformedToken: If the header cannot be decoded.
        MalformedHeader: If the header has no algorithm.
    """
    alg = decode_header(token).get("alg")
    if not alg or not isinstance(alg, str):
        logger.warning("Token header missing algorithm")
        raise MalformedHeader()
    return alg


def decode_claims(token: str) -> Dict[str, Any]:
    """Decode the payload segment without verifying the signature.

    This is a read, not a trust operation: never treat the result as
    authenticated before signature verification succeeded.

    Raises:
        MalformedToken: If the token shape is wrong or the payload is not a JSON object.
    """
    return _decode_segment(_split_token(token)[1], "payload")
