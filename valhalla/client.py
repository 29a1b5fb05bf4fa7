"""Pooled query client for the Valhalla analytics store.

ValhallaDB wraps an asyncpg pool and exposes typed writes for the request,
response and feedback tables. Every call goes through ``query()``, which
layers two deadlines:

    query()           30s end to end ("_query timed out")
      _with_connection  10s to lease a connection ("Pool failed to connect")
        _query          5s for the statement itself ("Query timed out")

Nothing after construction raises: callers branch on the Ok / Err result.
Construction raises ValhallaConfigError when a connection setting is missing.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence, TypeVar

import structlog

from valhalla.config import Settings, get_settings, parse_credentials
from valhalla.database import POOL_POLICY, build_pool_options, create_pool
from valhalla.errors import ValhallaClosedError, ValhallaConfigError
from valhalla.metrics import record_query
from valhalla.result import Err, Ok, Result
from valhalla.schemas.records import ValhallaFeedback, ValhallaRequest, ValhallaResponse
from valhalla.timeouts import race
from valhalla.values import ColumnValue, Integer, Json, Text, Timestamp, encode_params

log = structlog.get_logger(__name__)

T = TypeVar("T")

ACQUIRE_TIMEOUT = 10.0
STATEMENT_TIMEOUT = 5.0
QUERY_TIMEOUT = 30.0
POOL_CLOSE_TIMEOUT = 10.0

INSERT_REQUEST_SQL = """
    INSERT INTO request (
      id,
      created_at,
      url_href,
      user_id,
      properties,
      helicone_org_id,
      provider,
      body,
      request_received_at,
      model
    )
    VALUES (
      $1, $2, $3, $4, $5, $6, $7, $8, $9, $10
    )
"""

INSERT_RESPONSE_SQL = """
    INSERT INTO response (
      id,
      created_at,
      body,
      request,
      delay_ms,
      http_status,
      completion_tokens,
      model,
      prompt_tokens,
      response_received_at,
      helicone_org_id
    )
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
"""

UPDATE_RESPONSE_SQL = """
    UPDATE response
    SET
      body = $1,
      delay_ms = $2,
      http_status = $3,
      completion_tokens = $4,
      model = $5,
      prompt_tokens = $6,
      response_received_at = $7
    WHERE id = $8
"""

UPSERT_FEEDBACK_SQL = """
    INSERT INTO feedback (
      response_id,
      rating,
      created_at
    )
    VALUES (
      $1, $2, $3
    )
    ON CONFLICT (response_id) DO UPDATE SET
      rating = EXCLUDED.rating,
      created_at = EXCLUDED.created_at
"""

NOW_SQL = "SELECT NOW() as now"


@dataclass(frozen=True)
class QueryResult:
    """Outcome of one statement: the command tag and any returned rows."""

    command: str
    rows: list[dict[str, Any]] = field(default_factory=list)

    @property
    def rowcount(self) -> int:
        # "INSERT 0 1", "UPDATE 3", "SELECT 1"
        tail = self.command.rsplit(" ", 1)[-1] if self.command else ""
        return int(tail) if tail.isdigit() else 0


async def _execute(conn, statement: str, params: list) -> QueryResult:
    prepared = await conn.prepare(statement)
    rows = await prepared.fetch(*params)
    return QueryResult(
        command=prepared.get_statusmsg() or "",
        rows=[dict(row) for row in rows],
    )


def _summarize(statement: str) -> str:
    """First non-blank line of a statement, for log fields."""
    for line in statement.splitlines():
        if line.strip():
            return line.strip()
    return ""


def _parse_port(raw: str) -> int:
    try:
        port = int(raw.strip())
    except ValueError:
        raise ValhallaConfigError(f"Invalid port: {raw!r} is not an integer") from None
    if not 0 < port < 65536:
        raise ValhallaConfigError(f"Invalid port: {port} is out of range")
    return port


class ValhallaDB:
    """Client for the Valhalla analytics store.

    Construct with settings, then ``await open()`` before issuing queries.
    ``open()`` is idempotent; the owner calls ``close()`` once at shutdown.
    """

    def __init__(
        self,
        settings: Settings,
        pool_factory: Callable[..., Awaitable[Any]] = create_pool,
    ) -> None:
        if settings.aurora_creds is None or not settings.aurora_creds.get_secret_value():
            raise ValhallaConfigError("No creds")
        if not settings.aurora_host:
            raise ValhallaConfigError("No host")
        if not settings.aurora_port:
            raise ValhallaConfigError("No port")
        if not settings.aurora_database:
            raise ValhallaConfigError("No database")

        creds = parse_credentials(settings.aurora_creds.get_secret_value())
        port = _parse_port(settings.aurora_port)

        self._pool_options = build_pool_options(
            host=settings.aurora_host,
            port=port,
            database=settings.aurora_database,
            user=creds.username,
            password=creds.password.get_secret_value(),
            environment=settings.environment,
        )
        self._environment = settings.environment
        self._pool_factory = pool_factory
        self._pool = None
        self._closed = False
        self._open_lock = asyncio.Lock()

    @property
    def pool_options(self) -> dict[str, Any]:
        """Keyword arguments used to create the pool."""
        return dict(self._pool_options)

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    async def open(self) -> "ValhallaDB":
        """Create the pool on first call; later calls return the same client."""
        async with self._open_lock:
            if self._closed:
                raise ValhallaClosedError("Valhalla client has been closed")
            if self._pool is None:
                self._pool = await self._pool_factory(**self._pool_options)
                log.info(
                    "valhalla_pool_opened",
                    host=self._pool_options["host"],
                    port=self._pool_options["port"],
                    database=self._pool_options["database"],
                    max_size=POOL_POLICY.max_size,
                    tls=self._pool_options["ssl"] is not None,
                    environment=self._environment,
                )
        return self

    async def close(self) -> None:
        """Drain and terminate the pool. The client cannot be reopened."""
        pool, self._pool = self._pool, None
        self._closed = True
        if pool is None:
            return
        try:
            await asyncio.wait_for(pool.close(), timeout=POOL_CLOSE_TIMEOUT)
        except asyncio.TimeoutError:
            log.warning("pool_close_timed_out", timeout=POOL_CLOSE_TIMEOUT)
            pool.terminate()
        log.info("valhalla_pool_closed")

    async def _with_connection(
        self, fn: Callable[[Any], Awaitable[Result[T]]]
    ) -> Result[T]:
        """Lease one connection for ``fn`` and release it on every exit path."""
        pool = self._pool
        if pool is None:
            return Err("Pool is not open")

        leased = await race(ACQUIRE_TIMEOUT, pool.acquire(), "Pool failed to connect")
        if isinstance(leased, Err):
            return leased
        conn = leased.value
        try:
            return await fn(conn)
        except Exception as exc:
            return Err(f"Error in withConnection: {exc}")
        finally:
            await self._release(pool, conn)

    async def _release(self, pool, conn) -> None:
        try:
            await pool.release(conn)
        except Exception:
            # asyncpg terminates the connection itself when reset fails
            log.warning("connection_release_failed", exc_info=True)

    async def _query(self, statement: str, params: list) -> Result[QueryResult]:
        async def run(conn) -> Result[QueryResult]:
            return await race(
                STATEMENT_TIMEOUT,
                _execute(conn, statement, params),
                "Query timed out",
            )

        return await self._with_connection(run)

    async def query(
        self,
        statement: str,
        values: Sequence[ColumnValue] = (),
        *,
        operation: str = "query",
    ) -> Result[QueryResult]:
        """Run one parameterized statement under the end-to-end deadline.

        Args:
            statement: SQL using ``$1..$n`` placeholders.
            values: Column values bound in order.
            operation: Label for logs and metrics.

        Returns:
            Ok(QueryResult) or Err(label). Failures are logged here; the
            returned value is the same either way.
        """
        params = encode_params(values)
        started = time.perf_counter()

        outcome = await race(QUERY_TIMEOUT, self._query(statement, params), "_query timed out")
        if isinstance(outcome, Ok):
            # unwrap the inner Result produced by _query
            outcome = outcome.value

        record_query(operation, outcome.is_ok(), time.perf_counter() - started)
        if isinstance(outcome, Err):
            log.error(
                "query_failed",
                operation=operation,
                statement=_summarize(statement),
                error=outcome.error,
            )
        return outcome

    async def now(self) -> Result[QueryResult]:
        """Liveness probe: the store's current time."""
        return await self.query(NOW_SQL, operation="now")

    async def insert_request(self, request: ValhallaRequest) -> Result[QueryResult]:
        log.info("inserting_request", request_id=str(request.id))
        return await self.query(
            INSERT_REQUEST_SQL,
            [
                Text(request.id),
                Timestamp(request.created_at),
                Text(request.url_href),
                Text(request.user_id),
                Json(request.properties),
                Text(request.organization_id),
                Text(request.provider),
                Json(request.body),
                Timestamp(request.request_received_at),
                Text(request.model),
            ],
            operation="insert_request",
        )

    async def insert_response(self, response: ValhallaResponse) -> Result[QueryResult]:
        return await self.query(
            INSERT_RESPONSE_SQL,
            [
                Text(response.id),
                Timestamp(response.created_at),
                Json(response.body),
                Text(response.request),
                Integer(response.delay_ms),
                Integer(response.http_status),
                Integer(response.completion_tokens),
                Text(response.model),
                Integer(response.prompt_tokens),
                Timestamp(response.response_received_at),
                Text(response.organization_id),
            ],
            operation="insert_response",
        )

    async def update_response(self, response: ValhallaResponse) -> Result[QueryResult]:
        return await self.query(
            UPDATE_RESPONSE_SQL,
            [
                Json(response.body),
                Integer(response.delay_ms),
                Integer(response.http_status),
                Integer(response.completion_tokens),
                Text(response.model),
                Integer(response.prompt_tokens),
                Timestamp(response.response_received_at),
                Text(response.id),
            ],
            operation="update_response",
        )

    async def upsert_feedback(self, feedback: ValhallaFeedback) -> Result[QueryResult]:
        return await self.query(
            UPSERT_FEEDBACK_SQL,
            [
                Text(feedback.response_id),
                Integer(feedback.rating),
                Timestamp(feedback.created_at),
            ],
            operation="upsert_feedback",
        )


async def connect(
    settings: Optional[Settings] = None,
    pool_factory: Callable[..., Awaitable[Any]] = create_pool,
) -> ValhallaDB:
    """Construct a client from settings and open its pool."""
    client = ValhallaDB(settings or get_settings(), pool_factory=pool_factory)
    return await client.open()
