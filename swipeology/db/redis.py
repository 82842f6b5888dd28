from upstash_redis import Redis
from typing import Optional, Tuple
import logging

from swipeology.config import settings


logger = logging.getLogger(__name__)

# Global Redis client
redis_client: Optional[Redis] = None


async def init_redis():
    """Initialize Upstash Redis connection."""
    global redis_client
    if not settings.UPSTASH_REDIS_URL or not settings.UPSTASH_REDIS_TOKEN:
        logger.info("Upstash Redis not configured - swipe limits and phone codes disabled")
        return
    redis_client = Redis(
        url=settings.UPSTASH_REDIS_URL,
        token=settings.UPSTASH_REDIS_TOKEN,
    )
    logger.info("Redis (Upstash) initialized")


async def close_redis():
    """Close Redis connection."""
    global redis_client
    redis_client = None
    logger.info("Redis connection closed")


def get_redis() -> Optional[Redis]:
    """Get Redis client instance, or None when Redis is not configured."""
    return redis_client


class RedisService:
    """
    Redis service for daily swipe rate limiting and phone codes.
    With no client every call is a no-op that allows the request.
    """

    def __init__(self, client=None):
        self.client = client if client is not None else get_redis()

    # ==================== Rate Limiting ====================

    async def check_swipe_limit(self, user_id: str) -> Tuple[bool, Optional[int]]:
        """
        Count a swipe against the daily limit.
        Returns (is_allowed, remaining_swipes); remaining is None without Redis.
        """
        if self.client is None:
            return True, None

        key = f"ratelimit:swipe:{user_id}"
        count = self.client.get(key)

        if count is None:
            # First swipe of the day
            self.client.setex(key, 86400, "1")  # 24 hour expiry
            return True, settings.SWIPE_LIMIT_PER_DAY - 1

        current_count = int(count)
        if current_count >= settings.SWIPE_LIMIT_PER_DAY:
            return False, 0

        self.client.incr(key)
        return True, settings.SWIPE_LIMIT_PER_DAY - current_count - 1

    async def remaining_swipes(self, user_id: str) -> Optional[int]:
        """Remaining swipes today without counting one."""
        if self.client is None:
            return None
        count = self.client.get(f"ratelimit:swipe:{user_id}")
        used = int(count) if count is not None else 0
        return max(settings.SWIPE_LIMIT_PER_DAY - used, 0)


    async def check_rate_limit(
        self,
        identifier: str,
        action: str,
        max_attempts: int,
        window_seconds: int
    ) -> Tuple[bool, int, int]:
        """
        Generic rate limiter for any action.

        Returns:
            (is_allowed, remaining_attempts, seconds_until_reset)
        """
        if self.client is None:
            return True, max_attempts, 0

        key = f"ratelimit:{action}:{identifier}"
        count = self.client.get(key)
        ttl = self.client.ttl(key)

        if count is None:
            # First attempt
            self.client.setex(key, window_seconds, "1")
            return True, max_attempts - 1, window_seconds

        current_count = int(count)
        if current_count >= max_attempts:
            return False, 0, ttl if ttl > 0 else window_seconds

        self.client.incr(key)
        return True, max_attempts - current_count - 1, ttl if ttl > 0 else window_seconds

    async def check_otp_rate_limit(self, user_id: str) -> Tuple[bool, int, int]:
        """
        Check phone code verification rate limit.
        OTP_MAX_ATTEMPTS attempts per 10 minutes per user.
        """
        return await self.check_rate_limit(
            identifier=user_id,
            action="otp_verify",
            max_attempts=settings.OTP_MAX_ATTEMPTS,
            window_seconds=600  # 10 minutes
        )

    async def check_otp_resend_rate_limit(self, user_id: str) -> Tuple[bool, int, int]:
        """
        Check phone code send rate limit.
        3 sends per 30 minutes per user.
        """
        return await self.check_rate_limit(
            identifier=user_id,
            action="otp_resend",
            max_attempts=3,
            window_seconds=1800  # 30 minutes
        )

    # ==================== OTP Management ====================

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def store_otp(self, user_id: str, phone: str, otp: str) -> None:
        """Store a phone code for this user and number, expiring after OTP_EXPIRE_MINUTES."""
        key = f"otp:{user_id}:{phone}"
        self.client.setex(key, settings.OTP_EXPIRE_MINUTES * 60, otp)

    async def verify_otp(self, user_id: str, phone: str, otp: str) -> bool:
        """Verify a phone code and delete it if valid."""
        key = f"otp:{user_id}:{phone}"
        stored_otp = self.client.get(key)
        if stored_otp and stored_otp == otp:
            self.client.delete(key)
            return True
        return False
