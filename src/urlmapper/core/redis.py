import redis


def get_redis_client(redis_url: str) -> redis.Redis:
    """
    Creates a Redis client for redis_url.
    decode_responses=True returns str instead of bytes.
    """
    return redis.Redis.from_url(redis_url, decode_responses=True)
