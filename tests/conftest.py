"""Shared fixtures: an in-memory stand-in for an asyncpg pool.

FakePool implements acquire/release/close the way the client uses them and
counts leases, so tests can assert that no connection leaks. FakeStore
interprets the client's INSERT / UPDATE / upsert / NOW statements against
plain dicts, including ON CONFLICT overwrite semantics.
"""

import asyncio
import json
import re

import pytest
import pytest_asyncio

from valhalla.client import ValhallaDB
from valhalla.config import Settings

CREDS = json.dumps({"username": "valhalla_writer", "password": "s3cret"})

_INSERT = re.compile(r"INSERT INTO (\w+) \((.*?)\) VALUES \((.*?)\)(?: ON CONFLICT \((\w+)\) DO UPDATE SET (.*))?$")
_UPDATE = re.compile(r"UPDATE (\w+) SET (.*) WHERE (\w+) = \$(\d+)$")
_ASSIGN = re.compile(r"(\w+) = \$(\d+)")


def _normalize(sql: str) -> str:
    return " ".join(sql.split()).rstrip(";").strip()


class FakeStore:
    def __init__(self):
        self.tables = {"request": {}, "response": {}, "feedback": {}}
        self.statement_delay = 0.0
        self.fail_with = None
        self.statements = []

    def run(self, sql: str, args: tuple):
        sql = _normalize(sql)
        if sql.upper().startswith("SELECT NOW()"):
            return "SELECT 1", [{"now": "2026-10-17 05:42:00.000+00"}]

        match = _INSERT.match(sql)
        if match:
            table, cols, placeholders, conflict, _ = match.groups()
            columns = [c.strip() for c in cols.split(",")]
            assert len(columns) == len(args) == len(placeholders.split(","))
            row = dict(zip(columns, args))
            key_column = conflict or "id"
            key = row[key_column]
            rows = self.tables[table]
            if key in rows and not conflict:
                raise RuntimeError(f"duplicate key value violates unique constraint on {table}")
            rows[key] = {**rows.get(key, {}), **row}
            return "INSERT 0 1", []

        match = _UPDATE.match(sql)
        if match:
            table, assignments, key_column, key_position = match.groups()
            key = args[int(key_position) - 1]
            rows = self.tables[table]
            if key not in rows:
                return "UPDATE 0", []
            for column, position in _ASSIGN.findall(assignments):
                rows[key][column] = args[int(position) - 1]
            assert rows[key][key_column] == key
            return "UPDATE 1", []

        raise RuntimeError(f"unsupported statement: {sql}")


class FakePreparedStatement:
    def __init__(self, store: FakeStore, sql: str):
        self._store = store
        self._sql = sql
        self._status = None

    async def fetch(self, *args):
        if self._store.statement_delay:
            await asyncio.sleep(self._store.statement_delay)
        if self._store.fail_with is not None:
            raise self._store.fail_with
        self._status, rows = self._store.run(self._sql, args)
        return rows

    def get_statusmsg(self):
        return self._status


class FakeConnection:
    def __init__(self, store: FakeStore):
        self._store = store

    async def prepare(self, sql: str):
        self._store.statements.append(sql)
        return FakePreparedStatement(self._store, sql)


class FakePool:
    def __init__(self, store: FakeStore):
        self.store = store
        self.acquire_delay = 0.0
        self.close_delay = 0.0
        self.acquired = 0
        self.released = 0
        self.leased = set()
        self.double_releases = 0
        self.closed = False
        self.terminated = False

    async def _acquire(self):
        if self.acquire_delay:
            await asyncio.sleep(self.acquire_delay)
        conn = FakeConnection(self.store)
        self.acquired += 1
        self.leased.add(conn)
        return conn

    def acquire(self):
        return self._acquire()

    async def release(self, conn):
        if conn not in self.leased:
            self.double_releases += 1
            return
        self.leased.discard(conn)
        self.released += 1

    async def close(self):
        if self.close_delay:
            await asyncio.sleep(self.close_delay)
        self.closed = True

    def terminate(self):
        self.terminated = True


class PoolFactory:
    """Records every pool creation request."""

    def __init__(self, pool: FakePool):
        self.pool = pool
        self.calls = []

    async def __call__(self, **options):
        self.calls.append(options)
        await asyncio.sleep(0)
        return self.pool


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        aurora_creds=CREDS,
        aurora_host="valhalla.cluster.internal",
        aurora_port="5432",
        aurora_database="valhalla",
        environment="production",
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def pool(store):
    return FakePool(store)


@pytest.fixture
def pool_factory(pool):
    return PoolFactory(pool)


@pytest_asyncio.fixture()
async def db(settings, pool_factory):
    client = ValhallaDB(settings, pool_factory=pool_factory)
    await client.open()
    try:
        yield client
    finally:
        await client.close()
