"""
Token revocation using Redis.

Logged-out tokens are blacklisted until they would have expired anyway, and
deactivating a user flags every token issued to them.
"""

import logging

from redis.exceptions import RedisError

from rentaldesk.app.core import redis_client as redis_module
from rentaldesk.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefixes
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
USER_TOKENS_PREFIX = "user:tokens:"


def _ttl_seconds() -> int:
    return settings.access_token_expire_minutes * 60


async def revoke_token(token: str, user_id: int) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        await redis_module.redis_client.setex(key, _ttl_seconds(), str(user_id))
        return True
    except (RedisError, OSError) as e:
        logger.error("Error revoking token for user %s: %s", user_id, e)
        return False


async def is_token_revoked(token: str) -> bool:
    """
    Check if a token has been revoked.

    If Redis is unreachable the check passes: availability is preferred over
    enforcing logout, and the token still expires on its own.
    """
    try:
        key = f"{TOKEN_BLACKLIST_PREFIX}{token}"
        return await redis_module.redis_client.exists(key) > 0
    except (RedisError, OSError) as e:
        logger.warning("Error checking token revocation: %s", e)
        return False


async def revoke_all_user_tokens(user_id: int) -> bool:
    """Mark every token of a user as revoked (used when a user is deactivated)."""
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        await redis_module.redis_client.setex(key, _ttl_seconds(), "1")
        return True
    except (RedisError, OSError) as e:
        logger.error("Error revoking all tokens for user %s: %s", user_id, e)
        return False


async def are_user_tokens_revoked(user_id: int) -> bool:
    """Check if all tokens for a user have been revoked."""
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        return await redis_module.redis_client.exists(key) > 0
    except (RedisError, OSError) as e:
        logger.warning("Error checking user token revocation: %s", e)
        return False


async def clear_user_token_revocation(user_id: int) -> bool:
    """Clear the global revocation flag when a user is reactivated."""
    try:
        key = f"{USER_TOKENS_PREFIX}{user_id}:revoked"
        await redis_module.redis_client.delete(key)
        return True
    except (RedisError, OSError) as e:
        logger.error("Error clearing token revocation for user %s: %s", user_id, e)
        return False
