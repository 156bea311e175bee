# storefront/services/lock_service.py
import uuid
import redis
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, IDEMPOTENCY_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete, GET and DEL run as one step inside redis
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Claims idempotency keys for order submission.

    A key is claimed with SET NX EX; the claim expires on its own after the
    TTL. A failed submission releases its claim so the client can retry with
    the same key.
    """

    def __init__(self, url: str | None = None, ttl: int = IDEMPOTENCY_TTL_SECONDS):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )
        self.ttl = ttl

    @staticmethod
    def _key(user_id: int, idempotency_key: str) -> str:
        return f"order:create:{user_id}:{idempotency_key}"

    @redis_retry()
    def claim_request(self, user_id: int, idempotency_key: str) -> str | None:
        key = self._key(user_id, idempotency_key)
        token = uuid.uuid4().hex
        logger.info(f"Claim {key}")
        claimed = self.redis.set(name=key, value=token, nx=True, ex=self.ttl)
        return token if claimed else None

    @redis_retry()
    def release_request(self, user_id: int, idempotency_key: str, token: str) -> bool:
        key = self._key(user_id, idempotency_key)
        logger.info(f"Release {key}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, token)
        return bool(res)
