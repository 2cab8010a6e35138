"""Tests for the SQLite connection, SQL safety checks and the database agent."""

import asyncio

import pytest

from chatgraph.core.config import DatabaseAgentConfig
from chatgraph.core.database import DatabaseAgent, DatabaseQuery, SQLiteDatabase, check_query_safety, strip_sql_fences
from chatgraph.core.database.agent import FORMAT_FALLBACK_EXPLANATION
from chatgraph.core.database.connection import DatabaseConnection
from chatgraph.core.database.prompts import DATABASE_SYSTEM_MESSAGE
from chatgraph.core.database.safety import is_write_statement
from chatgraph.core.errors import DatabaseError, ProviderError, QueryTimeoutError, UnsafeQueryError
from chatgraph.core.graph.state import HumanMessage, SystemMessage

from fakes import ScriptedProvider, reply


class SlowDatabase:
    """Database whose queries never finish in time."""

    async def query(self, sql, params=()):
        await asyncio.sleep(1)
        return []

    async def get_schema(self) -> str:
        return "Database Schema:\n"

    async def close(self) -> None:
        pass


class TestSQLiteDatabase:
    """Test the seeded SQLite connection."""

    def test_implements_protocol(self):
        assert isinstance(SQLiteDatabase(":memory:"), DatabaseConnection)

    @pytest.mark.asyncio
    async def test_seeds_sample_data(self, database: SQLiteDatabase):
        assert not database.is_connected
        rows = await database.query("SELECT name FROM products WHERE category = ? ORDER BY price", ["Furniture"])
        assert database.is_connected
        assert rows == [{"name": "Office Chair"}, {"name": "Standing Desk"}]

    @pytest.mark.asyncio
    async def test_schema_description(self, database: SQLiteDatabase):
        schema = await database.get_schema()
        assert schema.startswith("Database Schema:")
        assert "Table: users" in schema
        assert "  - id: INTEGER (PRIMARY KEY)" in schema
        assert "  - name: TEXT (NOT NULL)" in schema
        assert "  - status: TEXT (DEFAULT: 'pending')" in schema
        assert "  Rows: 6" in schema

    @pytest.mark.asyncio
    async def test_invalid_sql(self, database: SQLiteDatabase):
        with pytest.raises(DatabaseError, match="Query execution failed"):
            await database.query("SELECT * FROM missing_table")

    @pytest.mark.asyncio
    async def test_unseeded(self):
        db = SQLiteDatabase(":memory:", seed_sample_data=False)
        try:
            assert await db.get_schema() == "Database Schema:\n"
        finally:
            await db.close()
        assert not db.is_connected

    @pytest.mark.asyncio
    async def test_file_database_creates_directory(self, tmp_path):
        db = SQLiteDatabase(str(tmp_path / "nested" / "app.db"))
        try:
            rows = await db.query("SELECT COUNT(*) AS count FROM users")
        finally:
            await db.close()
        assert rows[0]["count"] == 5
        assert (tmp_path / "nested" / "app.db").exists()


class TestSafety:
    """Test SQL clean-up and the write filter."""

    @pytest.mark.parametrize("text", [
        "```sql\nSELECT 1\n```",
        "```\nSELECT 1\n```",
        "  SELECT 1  ",
    ])
    def test_strip_fences(self, text: str):
        assert strip_sql_fences(text) == "SELECT 1"

    @pytest.mark.parametrize("sql", [
        "INSERT INTO users VALUES (1)",
        "update users set age = 1",
        "  DELETE FROM orders",
        "DROP TABLE users",
        "create table t (id int)",
        "ALTER TABLE users ADD COLUMN x",
        "TRUNCATE users",
        "REPLACE INTO users (id, name) VALUES (1, 'Mallory')",
        "WITH doomed AS (SELECT id FROM users) DELETE FROM users WHERE id IN (SELECT id FROM doomed)",
        "/* monthly report */ DELETE FROM users",
        "-- cleanup\nDROP TABLE orders",
        "SELECT 1; DELETE FROM users",
        "PRAGMA writable_schema = ON",
        ";",
        "",
    ])
    def test_writes_rejected(self, sql: str):
        assert is_write_statement(sql)
        with pytest.raises(UnsafeQueryError) as info:
            check_query_safety(sql)
        assert info.value.sql == sql

    def test_writes_allowed_when_configured(self):
        assert check_query_safety("DELETE FROM orders", allow_write_operations=True) == "DELETE FROM orders"

    @pytest.mark.parametrize("sql", [
        "SELECT * FROM users",
        "select name from users where department = 'Engineering';",
        "WITH engineers AS (SELECT * FROM users WHERE department = 'Engineering') SELECT COUNT(*) FROM engineers",
        "SELECT name FROM users UNION SELECT name FROM products",
        "-- top customers\nSELECT user_id, SUM(total_amount) FROM orders GROUP BY user_id",
    ])
    def test_reads_allowed(self, sql: str):
        assert not is_write_statement(sql)
        assert check_query_safety(sql) == sql


class TestDatabaseAgent:
    """Test the four-step question-to-answer pipeline."""

    @pytest.mark.asyncio
    async def test_process_query(self, database: SQLiteDatabase):
        provider = ScriptedProvider([
            reply("orders.status holds the order state"),
            reply("```sql\nSELECT id, status FROM orders WHERE status = 'pending' ORDER BY id\n```"),
            reply("There are two pending orders."),
        ])
        agent = DatabaseAgent(database, provider)

        result = await agent.process_query(DatabaseQuery(query="Which orders are pending?", max_results=10))

        assert result.sql_query == "SELECT id, status FROM orders WHERE status = 'pending' ORDER BY id"
        assert result.results == [{"id": 3, "status": "pending"}, {"id": 6, "status": "pending"}]
        assert result.row_count == 2
        assert result.execution_time >= 0
        assert result.explanation == "There are two pending orders."

        assert len(provider.calls) == 3
        for recorded in provider.calls:
            system, prompt = recorded["messages"]
            assert system == SystemMessage(content=DATABASE_SYSTEM_MESSAGE)
            assert isinstance(prompt, HumanMessage)
            assert recorded["tools"] == []
        assert "Table: orders" in provider.calls[0]["messages"][1].content
        assert "orders.status holds the order state" in provider.calls[1]["messages"][1].content
        assert "Number of Results: 2" in provider.calls[2]["messages"][1].content

    @pytest.mark.asyncio
    async def test_max_results_caps_rows(self, database: SQLiteDatabase):
        provider = ScriptedProvider([reply("users"), reply("SELECT * FROM users"), reply("Some users.")])
        result = await DatabaseAgent(database, provider).process_query(
            DatabaseQuery(query="List users", max_results=2)
        )
        assert result.row_count == 2

    @pytest.mark.asyncio
    async def test_write_rejected(self, database: SQLiteDatabase):
        provider = ScriptedProvider([reply("users"), reply("UPDATE users SET salary = 0")])
        with pytest.raises(UnsafeQueryError):
            await DatabaseAgent(database, provider).process_query(DatabaseQuery(query="Zero all salaries"))
        assert len(provider.calls) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sql", [
        "WITH t AS (SELECT 1) DELETE FROM users",
        "/* report */ DELETE FROM users",
        "REPLACE INTO users (id, name, email) VALUES (1, 'Mallory', 'm@example.com')",
    ])
    async def test_disguised_write_rejected(self, database: SQLiteDatabase, sql: str):
        provider = ScriptedProvider([reply("users"), reply(sql)])
        with pytest.raises(UnsafeQueryError):
            await DatabaseAgent(database, provider).process_query(DatabaseQuery(query="Tidy up users"))

        rows = await database.query("SELECT COUNT(*) AS count FROM users")
        assert rows[0]["count"] == 5
        names = await database.query("SELECT name FROM users WHERE id = 1")
        assert names[0]["name"] != "Mallory"

    @pytest.mark.asyncio
    async def test_write_allowed(self, database: SQLiteDatabase):
        provider = ScriptedProvider([
            reply("products"),
            reply("UPDATE products SET stock_quantity = 0 WHERE name = 'Coffee Mug'"),
            reply("Stock cleared."),
        ])
        agent = DatabaseAgent(database, provider, DatabaseAgentConfig(allow_write_operations=True))

        result = await agent.process_query(DatabaseQuery(query="Mark mugs out of stock"))

        assert result.row_count == 0
        rows = await database.query("SELECT stock_quantity FROM products WHERE name = 'Coffee Mug'")
        assert rows == [{"stock_quantity": 0}]

    @pytest.mark.asyncio
    async def test_empty_sql(self, database: SQLiteDatabase):
        provider = ScriptedProvider([reply("users"), reply("```sql\n```")])
        with pytest.raises(DatabaseError, match="empty statement"):
            await DatabaseAgent(database, provider).process_query(DatabaseQuery(query="?"))

    @pytest.mark.asyncio
    async def test_timeout(self):
        provider = ScriptedProvider([reply("t"), reply("SELECT 1")])
        agent = DatabaseAgent(SlowDatabase(), provider, DatabaseAgentConfig(max_execution_time=0.05))

        with pytest.raises(QueryTimeoutError, match="timeout after 0.05s"):
            await agent.process_query(DatabaseQuery(query="anything"))

    @pytest.mark.asyncio
    async def test_format_failure_falls_back(self, database: SQLiteDatabase):
        """A failed explanation step does not fail the query."""
        provider = ScriptedProvider([
            reply("users"),
            reply("SELECT COUNT(*) AS count FROM users"),
            ProviderError("rate limited"),
        ])
        result = await DatabaseAgent(database, provider).process_query(DatabaseQuery(query="How many users?"))
        assert result.results == [{"count": 5}]
        assert result.explanation == FORMAT_FALLBACK_EXPLANATION

    @pytest.mark.asyncio
    async def test_analysis_failure_propagates(self, database: SQLiteDatabase):
        provider = ScriptedProvider([ProviderError("unreachable")])
        with pytest.raises(ProviderError):
            await DatabaseAgent(database, provider).process_query(DatabaseQuery(query="How many users?"))

    @pytest.mark.asyncio
    async def test_connection_check(self, database: SQLiteDatabase):
        agent = DatabaseAgent(database, ScriptedProvider())
        assert await agent.test_connection() is True

    def test_query_requires_text(self):
        with pytest.raises(ValueError):
            DatabaseQuery(query="")
