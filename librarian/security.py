"""
Bearer token handling.

Tokens are HMAC-signed JWTs carrying a ``user_id`` claim. Only the HS*
family is accepted; anything else (``none``, RSA, EC) fails verification.
"""

from datetime import timedelta
from typing import Any, Optional

from jose import JWTError, jwt

from .clock import utcnow
from .config import HMAC_ALGORITHMS
from .exceptions import AuthenticationError

USER_ID_CLAIM = "user_id"


def parse_authorization_header(header: Optional[str]) -> str:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthenticationError: header missing or not of that exact form.
    """
    if not header:
        raise AuthenticationError("Authorization header required")

    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        raise AuthenticationError("Invalid authorization header")

    return parts[1]


def create_access_token(
    user_id: int,
    secret: str,
    algorithm: str = "HS256",
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[dict[str, Any]] = None,
) -> str:
    """Sign a token for ``user_id``."""
    if algorithm not in HMAC_ALGORITHMS:
        raise ValueError(f"Unsupported signing algorithm: {algorithm}")

    claims = dict(extra_claims or {})
    claims[USER_ID_CLAIM] = user_id
    if expires_delta is not None:
        claims["exp"] = utcnow() + expires_delta

    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> int:
    """
    Verify a token and return its user id.

    Raises:
        AuthenticationError: bad signature, wrong algorithm, expired, or
            no usable user id claim.
    """
    if algorithm not in HMAC_ALGORITHMS:
        raise ValueError(f"Unsupported signing algorithm: {algorithm}")

    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        raise AuthenticationError("Invalid token")

    user_id = payload.get(USER_ID_CLAIM)
    if isinstance(user_id, float) and user_id.is_integer():
        user_id = int(user_id)
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise AuthenticationError("Invalid user ID in token")

    return user_id
