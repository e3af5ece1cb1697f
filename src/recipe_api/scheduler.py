import jwt
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from recipe_api.auth.jwt import get_token_issuer
from recipe_api.db.user import clear_refresh_token, get_active_refresh_tokens
from recipe_api.settings import settings
from recipe_api.utils.logging import logger
import bugsnag
from functools import wraps
from typing import Callable, Any

scheduler = AsyncIOScheduler(timezone="UTC")


def with_error_reporting(context: str):
    """Decorator to add Bugsnag error reporting to scheduled jobs"""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                if settings.bugsnag_api_key:
                    bugsnag.notify(e, context=context)
                raise

        return wrapper

    return decorator


async def purge_expired_sessions() -> int:
    """Clear stored refresh tokens that can no longer be redeemed.

    Returns the number of sessions cleared.
    """
    issuer = get_token_issuer()
    purged = 0

    for user_id, refresh_token in await get_active_refresh_tokens():
        try:
            issuer.decode_refresh_token(refresh_token)
        except jwt.InvalidTokenError:
            # only clears if the user has not logged in again meanwhile
            if await clear_refresh_token(refresh_token):
                purged += 1

    if purged:
        logger.info(f"Purged {purged} expired session(s)")

    return purged


@scheduler.scheduled_job("interval", hours=1)
@with_error_reporting("purge_expired_sessions")
async def purge_sessions_job():
    await purge_expired_sessions()
