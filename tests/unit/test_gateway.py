import logging

import pytest

from adapters.base import ExecutionClient, UnknownDatabase
from query.filters import get_filter_query
from query.gateway import QueryGateway


class FakeClient(ExecutionClient):
    engine = "fake"

    def __init__(self, rows=None):
        super().__init__("fake://")
        self.rows = rows if rows is not None else [{"x": 1}]
        self.calls = []

    async def open(self):
        return None

    async def close(self):
        return None

    async def query_raw(self, sql, params):
        self.calls.append(("query_raw", sql, params))
        return self.rows

    async def transaction(self, queries):
        self.calls.append(("transaction", queries))
        return [self.rows for _ in queries]


@pytest.mark.asyncio
async def test_execute_rewrites_placeholders_for_mysql():
    client = FakeClient()
    gateway = QueryGateway(client, database_url="mysql://u:p@localhost/umami", log_queries=False)

    rows = await gateway.execute("select * from t where a=$1 and b=$2", ["x", "y"])

    assert rows is client.rows
    assert client.calls == [("query_raw", "select * from t where a=%s and b=%s", ["x", "y"])]


@pytest.mark.asyncio
async def test_execute_forwards_postgres_sql_unchanged():
    client = FakeClient()
    gateway = QueryGateway(client, database_url="postgresql://u:p@localhost/umami", log_queries=False)

    params = []
    sql = f"select count(*) from website_event where website_id=$1 {get_filter_query({'url': '/'}, params)}"
    await gateway.execute(sql, ["site"] + params)

    assert client.calls[0][1] == sql
    assert client.calls[0][2] == ["site", "/"]


@pytest.mark.asyncio
async def test_execute_rejects_unknown_database_without_calling_client():
    client = FakeClient()
    gateway = QueryGateway(client, database_url="oracle://localhost/umami", log_queries=False)

    with pytest.raises(UnknownDatabase, match="Unknown database."):
        await gateway.execute("select 1")
    assert client.calls == []


@pytest.mark.asyncio
async def test_execute_uses_database_url_from_environment(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    client = FakeClient()
    gateway = QueryGateway(client, log_queries=False)

    with pytest.raises(UnknownDatabase):
        await gateway.execute("select $1", [1])

    monkeypatch.setenv("DATABASE_URL", "mysql://u:p@db/umami")
    await gateway.execute("select $1", [1])
    assert client.calls == [("query_raw", "select %s", [1])]


@pytest.mark.asyncio
async def test_transaction_forwards_all_queries():
    client = FakeClient()
    gateway = QueryGateway(client, database_url="mysql://u:p@localhost/umami", log_queries=False)

    results = await gateway.transaction(
        [("delete from event where website_id=$1", ["a"]), ("delete from website where id=$1", ["a"])]
    )

    assert results == [client.rows, client.rows]
    assert client.calls == [
        (
            "transaction",
            [("delete from event where website_id=%s", ["a"]), ("delete from website where id=%s", ["a"])],
        )
    ]


@pytest.mark.asyncio
async def test_transaction_rejects_unknown_database():
    client = FakeClient()
    gateway = QueryGateway(client, database_url="", log_queries=False)

    with pytest.raises(UnknownDatabase):
        await gateway.transaction([("select 1", [])])
    assert client.calls == []


@pytest.mark.asyncio
async def test_query_logging_hook(caplog, monkeypatch):
    monkeypatch.setenv("LOG_QUERY", "true")
    gateway = QueryGateway(FakeClient(), database_url="postgresql://localhost/umami")
    assert gateway.log_queries is True

    with caplog.at_level(logging.DEBUG, logger="query.gateway"):
        await gateway.execute("select $1", ["a"])

    assert "['a'] -> select $1" in caplog.text


def test_uuid_cast_follows_dialect():
    assert QueryGateway(FakeClient(), database_url="postgres://localhost/db").uuid_cast() == "::uuid"
    assert QueryGateway(FakeClient(), database_url="mysql://localhost/db").uuid_cast() == ""
