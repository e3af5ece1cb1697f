from recipe_api.auth.dependencies import get_current_user
from recipe_api.auth.jwt import TokenIssuer, get_token_issuer
from recipe_api.auth.models import AuthenticatedUser

__all__ = [
    "get_current_user",
    "get_token_issuer",
    "TokenIssuer",
    "AuthenticatedUser",
]
