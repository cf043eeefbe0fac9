"""Redis connection pool."""

import redis.asyncio as redis


def create_redis(url: str) -> redis.Redis:
    """Build the shared Redis client used for price caching."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis(client: redis.Redis) -> None:
    await client.aclose()
