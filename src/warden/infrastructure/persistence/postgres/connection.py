"""PostgreSQL connections - pooled for the store, dedicated for LISTEN."""

from psycopg import AsyncConnection
from psycopg_pool import AsyncConnectionPool


def create_pool(conninfo: str, min_size: int = 2, max_size: int = 10) -> AsyncConnectionPool:
    """Create async connection pool.

    Pool is created with open=False. Caller must call await pool.open()
    before use (e.g. via LifespanMiddleware in ASGI lifespan).
    """
    return AsyncConnectionPool(
        conninfo=conninfo,
        min_size=min_size,
        max_size=max_size,
        open=False,
    )


async def connect_listener(conninfo: str) -> AsyncConnection:
    """Open a dedicated autocommit connection for LISTEN/NOTIFY.

    Notifications are only delivered outside a transaction, so this
    connection is never taken from the pool.
    """
    return await AsyncConnection.connect(conninfo, autocommit=True)
