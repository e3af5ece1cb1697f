from typing import Dict, Optional

import jwt
from fastapi import APIRouter, Cookie, Depends, HTTPException, Response

from recipe_api.auth.constants import DEFAULT_ROLES, REFRESH_COOKIE_NAME
from recipe_api.auth.cookies import clear_refresh_cookie, set_refresh_cookie
from recipe_api.auth.dependencies import get_current_user
from recipe_api.auth.jwt import TokenIssuer, describe_token, get_token_issuer
from recipe_api.auth.models import AuthenticatedUser
from recipe_api.auth.passwords import CorruptCredential, hash_password, verify_password
from recipe_api.db.user import (
    DuplicateUser,
    clear_refresh_token,
    create_user,
    get_user_by_refresh_token,
    get_user_by_username,
    set_refresh_token,
)
from recipe_api.models import CredentialsRequest, LoginResponse
from recipe_api.utils.logging import logger

router = APIRouter()

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials, please try again!"


async def _authenticate(username: str, password: str) -> Optional[Dict]:
    """Return the user if the credentials are good, otherwise None.

    Every failure collapses into None here so callers cannot tell an unknown
    username apart from a wrong password.
    """
    user = await get_user_by_username(username)
    if not user:
        logger.info(f"Login failed for {username}: unknown username")
        return None

    try:
        matches = await verify_password(password, user["password_hash"])
    except CorruptCredential:
        logger.error(f"Login failed for {username}: stored password digest is corrupt")
        return None

    if not matches:
        logger.info(f"Login failed for {username}: wrong password")
        return None

    return user


@router.post("/register", status_code=201)
async def register_user(request: CredentialsRequest) -> Dict:
    """Create a user with the default role set."""
    logger.info(f"Registration attempt for username: {request.username}")

    if not request.username or not request.password:
        raise HTTPException(
            status_code=400, detail="Username and password are required"
        )

    if await get_user_by_username(request.username):
        raise HTTPException(status_code=409, detail="Username already exists")

    password_hash = await hash_password(request.password)

    try:
        user = await create_user(request.username, password_hash, DEFAULT_ROLES)
    except DuplicateUser:
        # lost a race with a concurrent registration
        raise HTTPException(status_code=409, detail="Username already exists")

    logger.info(f"New user registered: id={user['id']} username={user['username']}")

    return {
        "success": True,
        "message": "User registered successfully!",
        "user": {"id": user["id"], "username": user["username"]},
    }


@router.post("/login", response_model=LoginResponse)
async def login_user(
    request: CredentialsRequest,
    response: Response,
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> LoginResponse:
    """Check credentials, start a new session and hand back an access token.

    The refresh token replaces whatever was stored for the user, which ends
    any earlier session.
    """
    if not request.username or not request.password:
        raise HTTPException(
            status_code=400, detail="Username and password are required!"
        )

    user = await _authenticate(request.username, request.password)
    if not user:
        raise HTTPException(status_code=401, detail=INVALID_CREDENTIALS_MESSAGE)

    access_token = issuer.issue_access_token(user["username"], user["roles"])
    refresh_token = issuer.issue_refresh_token(user["username"])

    await set_refresh_token(user["id"], refresh_token)
    set_refresh_cookie(response, refresh_token)

    return LoginResponse(
        accessToken=access_token, username=user["username"], roles=user["roles"]
    )


@router.post("/refresh", response_model=LoginResponse)
async def refresh_access_token(
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE_NAME),
    issuer: TokenIssuer = Depends(get_token_issuer),
) -> LoginResponse:
    """Exchange the refresh cookie for a new access token."""
    if not refresh_token:
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = await get_user_by_refresh_token(refresh_token)
    if not user:
        # not the live token for anyone: replaced by a newer login or logged out
        raise HTTPException(status_code=403, detail="Forbidden")

    try:
        payload = issuer.decode_refresh_token(refresh_token)
    except jwt.InvalidTokenError as e:
        logger.warning(
            f"Refresh token rejected for {user['username']}: {type(e).__name__}: {e} "
            f"(token metadata: {describe_token(refresh_token)})"
        )
        raise HTTPException(status_code=403, detail="Forbidden")

    if payload["username"] != user["username"]:
        logger.warning(f"Refresh token username mismatch for {user['username']}")
        raise HTTPException(status_code=403, detail="Forbidden")

    access_token = issuer.issue_access_token(user["username"], user["roles"])

    return LoginResponse(
        accessToken=access_token, username=user["username"], roles=user["roles"]
    )


@router.post("/logout")
async def logout_user(
    response: Response,
    refresh_token: Optional[str] = Cookie(None, alias=REFRESH_COOKIE_NAME),
) -> Dict:
    """End the session. Safe to call without one."""
    if refresh_token and await clear_refresh_token(refresh_token):
        logger.info("Cleared stored refresh token on logout")

    clear_refresh_cookie(response)

    return {"success": True, "message": "Logged out"}


@router.get("/me")
async def get_me(current_user: AuthenticatedUser = Depends(get_current_user)) -> Dict:
    return {
        "success": True,
        "message": "Authenticated",
        "data": current_user.model_dump(),
    }
