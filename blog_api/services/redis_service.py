# blog_api/services/redis_service.py
from typing import Optional
from redis.asyncio import Redis
from fastapi import Request

class RedisService:
    def __init__(self, url: str):
        self.redis: Redis = Redis.from_url(url, decode_responses=True)

    async def set(self, key: str, value: str, expire: Optional[int] = None):
        """Set a key with optional expiration in seconds"""
        await self.redis.set(name=key, value=value, ex=expire)

    async def get(self, key: str) -> Optional[str]:
        """Get the value of a key"""
        return await self.redis.get(key)

    async def close(self):
        """Close the Redis connection"""
        await self.redis.aclose()

def get_redis(request: Request) -> RedisService:
    """Dependency returning the process-wide Redis client"""
    return request.app.state.redis
