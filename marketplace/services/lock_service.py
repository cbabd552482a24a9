# marketplace/services/lock_service.py
import redis

from marketplace.utils.retry import redis_retry
from marketplace.utils.settings import REDIS_URL
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

#compare-and-delete in one Lua call, nothing can run between GET and DEL
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Per-customer checkout lock.

    While a customer's checkout runs nobody else may read and order the same
    cart lines. The lock expires on its own (EX), so a crashed worker does not
    block the customer forever; release only deletes our own token.
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _key(customer_id: int) -> str:
        return f"checkout:{customer_id}:lock"

    @redis_retry()
    def acquire_checkout_lock(self, customer_id: int, token: str, ttl: int) -> bool:
        key = self._key(customer_id)
        logger.info(f"Acquire lock {key}")
        #SET checkout:7:lock "<token>" NX EX 60
        return bool(
            self.redis.set(
                name=key,
                value=token,
                nx=True,
                ex=ttl,
            )
        )

    @redis_retry()
    def release_checkout_lock(self, customer_id: int, token: str) -> bool:
        key = self._key(customer_id)
        logger.info(f"Release lock {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
