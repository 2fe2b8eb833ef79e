from dishka import Provider, Scope, provide, FromComponent
from typing import Annotated, AsyncIterable
from core.environment.config import Settings
from redis.asyncio import Redis
import json
import logging


class RedisProvider(Provider):
    """
    Provider for Redis client.
    """

    scope = Scope.APP
    component = "redis"

    @provide(scope=Scope.APP)
    async def provide_redis_client(
        self,
        settings: Annotated[Settings, FromComponent("environment")]
    ) -> AsyncIterable[Redis]:
        """
        Create Redis client for the application.

        Parameters
        ----------
        settings : Settings
            Application settings

        Yields
        ------
        Redis
            Redis client instance
        """
        redis_client = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            password=settings.redis_password if settings.redis_password else None,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )

        try:
            await redis_client.ping()
            yield redis_client
        except Exception as e:
            raise ConnectionError(f"Failed to connect to Redis: {e}")
        finally:
            await redis_client.aclose()


class CacheService:
    """
    JSON cache on top of Redis.

    A cache failure never fails the caller: reads degrade to a miss and
    writes report ``False``.

    Parameters
    ----------
    redis_client : Redis
        Redis client instance
    logger : logging.Logger | None
        Logger for cache errors
    """

    def __init__(self, redis_client: Redis, logger: logging.Logger | None = None):
        self.redis = redis_client
        self.logger = logger or logging.getLogger("holdings_api")

    @staticmethod
    def make_key(*parts: object) -> str:
        """
        Join key parts with ``:``, lowercased.

        Returns
        -------
        str
            Cache key
        """
        return ":".join(str(p).lower() for p in parts)

    async def get(self, key: str) -> dict | list | None:
        """
        Get cached value.

        Parameters
        ----------
        key : str
            Cache key

        Returns
        -------
        dict | list | None
            Cached value or None
        """
        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
        except Exception as e:
            self.logger.debug(f"Cache read error for {key}: {e}")
        return None

    async def set(self, key: str, value: dict | list, ttl: int = 3600) -> bool:
        """
        Set cached value.

        Parameters
        ----------
        key : str
            Cache key
        value : dict | list
            Value to cache
        ttl : int
            Time to live in seconds

        Returns
        -------
        bool
            Success status
        """
        if ttl <= 0:
            return False
        try:
            await self.redis.setex(
                key,
                ttl,
                json.dumps(value)
            )
            return True
        except Exception as e:
            self.logger.debug(f"Cache write error for {key}: {e}")
            return False


class CacheProvider(Provider):
    """
    Provider for cache service.
    """

    component = "cache"
    scope = Scope.APP

    @provide(scope=Scope.APP)
    def provide_cache_service(
        self,
        redis_client: Annotated[Redis, FromComponent("redis")],
        logger: Annotated[logging.Logger, FromComponent("logger")]
    ) -> CacheService:
        """
        Provide cache service.

        Parameters
        ----------
        redis_client : Redis
            Redis client instance
        logger : logging.Logger
            Logger instance

        Returns
        -------
        CacheService
            Cache service instance
        """
        return CacheService(redis_client, logger=logger)
