"""PostgreSQL pool lifecycle and resilience helpers.

Services receive the pool through FastAPI dependencies and open their own
``pool.acquire()`` / ``conn.transaction()`` blocks; this module only owns
creating, health-checking and draining the pool, plus retrying idempotent reads.
"""

from __future__ import annotations

import asyncio
import functools
import json
import random

from collections.abc import Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

import asyncpg

from core.constants import Settings
from utils.logger import logger

P = ParamSpec("P")
T = TypeVar("T")

#: Errors worth a second attempt: the connection went away, not the query.
TRANSIENT_ERRORS: tuple[type[Exception], ...] = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    ConnectionError,
)


class DatabasePoolError(Exception):
    """The pool could not be created."""


async def _init_connection(conn: asyncpg.Connection, command_timeout: float) -> None:
    timeout_ms = int(command_timeout * 1000)
    await conn.execute(f"SET statement_timeout = '{timeout_ms}'")
    await conn.execute(f"SET lock_timeout = '{timeout_ms}'")
    # contract_fields.position_in_document is jsonb
    await conn.set_type_codec("jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


async def create_database_pool(settings: Settings) -> asyncpg.Pool:
    """Open the pool described by the DB_* settings.

    Raises:
        DatabasePoolError: The server was unreachable or slower than
            ``db_connection_timeout`` to hand out the initial connections.
    """
    timeout = settings.db_command_timeout
    try:
        pool = await asyncio.wait_for(
            asyncpg.create_pool(
                dsn=settings.database_url,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                command_timeout=timeout,
                statement_cache_size=settings.db_statement_cache_size,
                max_inactive_connection_lifetime=settings.db_max_inactive_connection_lifetime,
                init=functools.partial(_init_connection, command_timeout=timeout),
            ),
            timeout=settings.db_connection_timeout,
        )
    except asyncio.TimeoutError as e:
        raise DatabasePoolError(f"Timed out after {settings.db_connection_timeout}s opening the pool") from e
    except (OSError, asyncpg.PostgresError) as e:
        raise DatabasePoolError(f"Could not open the pool: {e}") from e

    if pool is None:
        raise DatabasePoolError("Could not open the pool")

    logger.info(f"Database pool created (min={settings.db_pool_min_size}, max={settings.db_pool_max_size})")
    return pool


def with_retry(
    max_attempts: int = 3,
    base_delay: float = 0.2,
    max_delay: float = 2.0,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Retry a read on transient connection errors with jittered backoff.

    Only for statements that are safe to repeat; status transitions and
    submissions are never wrapped.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            attempt = 1
            while True:
                try:
                    return await func(*args, **kwargs)
                except TRANSIENT_ERRORS as e:
                    if attempt >= max_attempts:
                        logger.error(f"{func.__name__} failed after {attempt} attempts: {e}")
                        raise
                    delay = min(base_delay * 2 ** (attempt - 1) + random.uniform(0, base_delay), max_delay)
                    logger.warning(f"{func.__name__} attempt {attempt} failed, retrying in {delay:.2f}s: {e}")
                    await asyncio.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator


async def check_pool_health(pool: asyncpg.Pool) -> dict[str, Any]:
    """Round-trip ``SELECT 1`` and report pool occupancy."""
    try:
        async with pool.acquire(timeout=5.0) as conn:
            healthy = await conn.fetchval("SELECT 1") == 1
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        healthy = False

    size = pool.get_size()
    idle = pool.get_idle_size()
    return {
        "healthy": healthy,
        "pool_size": size,
        "pool_min_size": pool.get_min_size(),
        "pool_max_size": pool.get_max_size(),
        "free_connections": idle,
        "used_connections": size - idle,
    }


async def graceful_pool_close(pool: asyncpg.Pool, timeout: float = 10.0) -> None:
    """Let in-flight queries finish (up to ``timeout``), then close."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while pool.get_size() > pool.get_idle_size():
        if loop.time() >= deadline:
            busy = pool.get_size() - pool.get_idle_size()
            logger.warning(f"Closing database pool with {busy} connections still busy")
            break
        await asyncio.sleep(0.1)

    await pool.close()
    logger.info("Database pool closed")
