from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException

from recipe_api.auth.jwt import TokenIssuer, describe_token, get_token_issuer
from recipe_api.auth.models import AuthenticatedUser
from recipe_api.utils.logging import logger


def _extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Unauthorized")

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme != "Bearer" or not token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    return token


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization"),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> AuthenticatedUser:
    """Bearer-token authentication dependency.

    A missing or malformed header is a 401; a token that fails verification
    (expired, bad signature, wrong kind) is a 403.
    """
    token = _extract_bearer_token(authorization)

    try:
        payload = issuer.decode_access_token(token)
    except jwt.InvalidTokenError as e:
        logger.warning(
            f"JWT verification error: {type(e).__name__}: {e} "
            f"(token metadata: {describe_token(token)})"
        )
        raise HTTPException(status_code=403, detail="Forbidden - Invalid Token")

    return AuthenticatedUser(
        username=payload["username"], roles=payload.get("roles") or {}
    )
