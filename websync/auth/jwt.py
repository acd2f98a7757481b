# auth/jwt.py
from datetime import datetime, timezone
from typing import Any, Dict, Mapping
from jwt import encode, decode, InvalidTokenError
from jwt.exceptions import PyJWTError
import logging

from websync.config import Settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenEncodingError(Exception):
    """The secret or one of the claims could not be serialized into a token."""


def issue_token(claims: Mapping[str, Any], secret: str, expiry_seconds: int) -> str:
    """Sign the configured claims plus fresh ``iat``/``exp`` into an HS256 JWT.

    ``iat`` and ``exp`` always override claims of the same name.
    """
    iat = int(datetime.now(timezone.utc).timestamp())
    to_encode: Dict[str, Any] = dict(claims)
    to_encode.update({"iat": iat, "exp": iat + expiry_seconds})
    try:
        return encode(to_encode, secret.encode("utf-8"), algorithm=ALGORITHM)
    except (TypeError, ValueError, AttributeError, PyJWTError) as e:
        raise TokenEncodingError(f"Token creation failed: {str(e)}") from e


def resolve_bearer(settings: Settings) -> str:
    """Return the bearer for one outbound call.

    A configured static token is used verbatim. Otherwise a new token is minted
    for every call; signing failures degrade to an empty bearer.
    """
    if settings.token:
        return settings.token
    try:
        return issue_token(settings.payload, settings.secret, settings.jwt_expiry)
    except TokenEncodingError as e:
        logger.error(f"Failed to create JWT for outbound request: {str(e)}")
        return ""


def decode_token(token: str, secret: str) -> dict:
    try:
        return decode(token, secret.encode("utf-8"), algorithms=[ALGORITHM])
    except InvalidTokenError:
        logger.warning("Attempt to decode invalid token")
        raise ValueError("Invalid token")
