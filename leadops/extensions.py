"""
Shared client instances.

The Redis client is lazy: redis.from_url() does not connect until the first
command, so importing this module is safe without a running server.
"""
import logging

import redis

from leadops.config import REDIS_URL

logger = logging.getLogger('leadops.extensions')

redis_client = redis.from_url(REDIS_URL, decode_responses=True)
