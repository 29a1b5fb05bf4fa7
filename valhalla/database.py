"""asyncpg pool construction for the Valhalla analytics store.

Pool sizing and recycling are fixed policy. Transport security depends on the
deployment environment: outside "development" every connection must use TLS
with certificate and hostname verification.
"""

import ssl
from dataclasses import dataclass
from typing import Any, Optional

import asyncpg
import structlog

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PoolPolicy:
    max_size: int = 20
    idle_timeout: float = 5.0      # close idle connections after 5 seconds
    connect_timeout: float = 10.0  # establishing a new connection
    max_uses: int = 10_000         # retire a connection after this many queries


POOL_POLICY = PoolPolicy()


def build_ssl(environment: str) -> Optional[ssl.SSLContext]:
    """Return a verifying TLS context, or None when running in development."""
    if environment == "development":
        return None
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    context.check_hostname = True
    context.verify_mode = ssl.CERT_REQUIRED
    return context


def build_pool_options(
    *,
    host: str,
    port: int,
    database: str,
    user: str,
    password: str,
    environment: str,
    policy: PoolPolicy = POOL_POLICY,
) -> dict[str, Any]:
    """Keyword arguments for ``asyncpg.create_pool``."""
    return {
        "host": host,
        "port": port,
        "database": database,
        "user": user,
        "password": password,
        "min_size": 0,
        "max_size": policy.max_size,
        "max_inactive_connection_lifetime": policy.idle_timeout,
        "timeout": policy.connect_timeout,
        "max_queries": policy.max_uses,
        "ssl": build_ssl(environment),
        "init": init_connection,
        "setup": setup_connection,
    }


def _log_server_message(connection, message) -> None:
    log.info(
        "postgres_server_message",
        severity=getattr(message, "severity", None),
        message=str(message),
    )


async def init_connection(conn) -> None:
    """Register text-mode timestamp codecs once per physical connection.

    Timestamps are bound as ISO-8601 text produced by valhalla.values, so
    asyncpg passes the text through unchanged and PostgreSQL parses it.
    Results come back in PostgreSQL's text form.
    """
    for typename in ("timestamptz", "timestamp"):
        await conn.set_type_codec(
            typename, schema="pg_catalog",
            encoder=str, decoder=str, format="text",
        )


async def setup_connection(conn) -> None:
    """Attach the server-message listener on every acquire.

    Connection.reset() on release drops log listeners, so init= is too early.
    """
    conn.add_log_listener(_log_server_message)


async def create_pool(**options: Any) -> asyncpg.Pool:
    return await asyncpg.create_pool(**options)
