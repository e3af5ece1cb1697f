import uuid
from datetime import datetime, timezone, timedelta
from functools import lru_cache
from typing import Dict

import jwt

from recipe_api.auth.constants import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
    JWT_ALGORITHM,
)
from recipe_api.settings import get_settings


class TokenConfigurationError(RuntimeError):
    """A signing secret is missing. Fatal misconfiguration, not a request error."""


class TokenTypeError(jwt.InvalidTokenError):
    """A validly signed token was presented where the other kind was expected."""


class TokenIssuer:
    """Signs and verifies access and refresh tokens.

    Access and refresh tokens use separate secrets, so a refresh token can
    never pass as an access token even before the `type` claim is checked.
    """

    def __init__(self, access_secret: str | None, refresh_secret: str | None):
        if not access_secret or not refresh_secret:
            raise TokenConfigurationError("JWT signing secrets not configured")

        self._access_secret = access_secret
        self._refresh_secret = refresh_secret

    def issue_access_token(self, username: str, roles: Dict[str, int]) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "username": username,
            "roles": roles,
            "type": "access",
            "iat": now,
            "exp": now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
        }
        return jwt.encode(payload, self._access_secret, algorithm=JWT_ALGORITHM)

    def issue_refresh_token(self, username: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "username": username,
            "type": "refresh",
            # two logins within the same second must still produce distinct tokens
            "jti": uuid.uuid4().hex,
            "iat": now,
            "exp": now + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS),
        }
        return jwt.encode(payload, self._refresh_secret, algorithm=JWT_ALGORITHM)

    def decode_access_token(self, token: str) -> Dict:
        """Verify an access token and return its claims.

        Raises jwt.InvalidTokenError (or a subclass such as
        jwt.ExpiredSignatureError) on any failure.
        """
        return self._decode(token, self._access_secret, "access")

    def decode_refresh_token(self, token: str) -> Dict:
        return self._decode(token, self._refresh_secret, "refresh")

    def _decode(self, token: str, secret: str, expected_type: str) -> Dict:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )

        if payload.get("type") != expected_type:
            raise TokenTypeError(f"Expected a {expected_type} token")

        if not payload.get("username"):
            raise jwt.InvalidTokenError("Token has no username claim")

        return payload


@lru_cache
def get_token_issuer() -> TokenIssuer:
    settings = get_settings()
    return TokenIssuer(settings.access_token_secret, settings.refresh_token_secret)


def describe_token(token: str) -> Dict:
    """Non-sensitive metadata about a token, for log lines."""
    try:
        header = jwt.get_unverified_header(token)
    except jwt.InvalidTokenError:
        header = {}

    return {"length": len(token), "alg": header.get("alg"), "typ": header.get("typ")}
