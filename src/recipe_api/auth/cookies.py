from fastapi import Response

from recipe_api.auth.constants import REFRESH_COOKIE_NAME, REFRESH_COOKIE_MAX_AGE
from recipe_api.settings import settings


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    # SameSite=None lets the separately hosted frontend send the cookie back
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=refresh_token,
        max_age=REFRESH_COOKIE_MAX_AGE,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="none",
    )


def clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="none",
    )
