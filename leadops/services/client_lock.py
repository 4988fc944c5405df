"""
Per-client recompute lock backed by Redis (SET NX EX).

Two recomputes for the same client must not interleave their
read → upsert → read → write sequences. Different clients never contend.
If Redis itself is unreachable the lock fails open and logs a warning.
"""
import logging
import uuid
from contextlib import contextmanager

import redis

logger = logging.getLogger('services.client_lock')


class ClientLockedError(Exception):
    """Raised when another recompute already holds the client's lock."""
    def __init__(self, client_id):
        self.client_id = client_id
        super().__init__(f"Recompute already in progress for client {client_id}")


class ClientLock:

    PREFIX = 'scoring:lock'

    def __init__(self, redis_client, ttl=900):
        self.redis = redis_client
        self.ttl = ttl  # seconds; a crashed holder's lock expires on its own

    def _key(self, client_id):
        return f'{self.PREFIX}:{client_id}'

    def acquire(self, client_id):
        """Return a release token, None when Redis is down. Raises ClientLockedError."""
        token = uuid.uuid4().hex
        try:
            acquired = self.redis.set(self._key(client_id), token, nx=True, ex=self.ttl)
        except redis.RedisError as e:
            logger.warning("Redis unavailable, recomputing client %s without lock: %s", client_id, e)
            return None
        if not acquired:
            raise ClientLockedError(client_id)
        return token

    def release(self, client_id, token):
        if token is None:
            return
        key = self._key(client_id)
        try:
            # Only delete our own lock, not one re-acquired after TTL expiry
            if self.redis.get(key) == token:
                self.redis.delete(key)
        except redis.RedisError as e:
            logger.warning("Could not release lock for client %s: %s", client_id, e)

    def is_locked(self, client_id):
        try:
            return self.redis.get(self._key(client_id)) is not None
        except redis.RedisError:
            return False

    @contextmanager
    def hold(self, client_id):
        token = self.acquire(client_id)
        try:
            yield
        finally:
            self.release(client_id, token)
