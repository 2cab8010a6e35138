"""SQLite connection for the database agent.

A single ``aiosqlite`` connection is opened lazily and reused. On first
connect an empty database is seeded with sample ``users``, ``products`` and
``orders`` tables so the agent has something to query.
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

import aiosqlite

from chatgraph.core.errors import DatabaseError
from chatgraph.core.logging import get_logger, LogComponent

logger = get_logger(LogComponent.DATABASE)

SAMPLE_SCHEMA = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT UNIQUE NOT NULL,
    age INTEGER,
    department TEXT,
    salary DECIMAL(10,2),
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE orders (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id INTEGER,
    product_name TEXT NOT NULL,
    quantity INTEGER NOT NULL,
    price DECIMAL(10,2) NOT NULL,
    order_date DATETIME DEFAULT CURRENT_TIMESTAMP,
    status TEXT DEFAULT 'pending',
    FOREIGN KEY (user_id) REFERENCES users (id)
);

CREATE TABLE products (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    category TEXT,
    price DECIMAL(10,2) NOT NULL,
    stock_quantity INTEGER DEFAULT 0,
    description TEXT
);
"""

SAMPLE_DATA = """
INSERT INTO users (name, email, age, department, salary) VALUES
('John Doe', 'john.doe@example.com', 30, 'Engineering', 75000.00),
('Jane Smith', 'jane.smith@example.com', 28, 'Marketing', 65000.00),
('Bob Johnson', 'bob.johnson@example.com', 35, 'Sales', 70000.00),
('Alice Brown', 'alice.brown@example.com', 32, 'Engineering', 80000.00),
('Charlie Wilson', 'charlie.wilson@example.com', 29, 'HR', 60000.00);

INSERT INTO products (name, category, price, stock_quantity, description) VALUES
('Laptop Pro', 'Electronics', 1299.99, 50, 'High-performance laptop'),
('Wireless Mouse', 'Electronics', 29.99, 200, 'Ergonomic wireless mouse'),
('Office Chair', 'Furniture', 299.99, 30, 'Comfortable office chair'),
('Standing Desk', 'Furniture', 599.99, 15, 'Adjustable standing desk'),
('Coffee Mug', 'Office Supplies', 12.99, 100, 'Ceramic coffee mug');

INSERT INTO orders (user_id, product_name, quantity, price, status) VALUES
(1, 'Laptop Pro', 1, 1299.99, 'completed'),
(1, 'Wireless Mouse', 2, 29.99, 'completed'),
(2, 'Office Chair', 1, 299.99, 'pending'),
(3, 'Standing Desk', 1, 599.99, 'shipped'),
(4, 'Coffee Mug', 3, 12.99, 'completed'),
(5, 'Laptop Pro', 1, 1299.99, 'pending');
"""


@runtime_checkable
class DatabaseConnection(Protocol):
    """What the database agent needs from a database."""

    async def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        ...

    async def get_schema(self) -> str:
        ...

    async def close(self) -> None:
        ...


class SQLiteDatabase:
    """Async SQLite database seeded with sample data.

    Attributes:
        path: Database file path, or ``:memory:``
        seed_sample_data: Create sample tables when the database is empty
    """

    def __init__(self, path: str = "./data/app.db", seed_sample_data: bool = True) -> None:
        self.path = path
        self.seed_sample_data = seed_sample_data
        self._conn: Optional[aiosqlite.Connection] = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    async def connect(self) -> None:
        if self._conn is not None:
            return
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        try:
            self._conn = await aiosqlite.connect(self.path)
        except sqlite3.Error as e:
            raise DatabaseError(f"Database connection failed: {e}") from e
        self._conn.row_factory = sqlite3.Row
        logger.info(f"SQLite database connected: {self.path}")

        if self.seed_sample_data:
            await self._initialize_sample_data()

    async def query(self, sql: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Execute a statement and return rows as dictionaries.

        Raises:
            DatabaseError: If SQLite rejects the statement
        """
        await self.connect()
        try:
            cursor = await self._conn.execute(sql, tuple(params))
            rows = await cursor.fetchall()
            await self._conn.commit()
        except sqlite3.Error as e:
            logger.error(f"SQL query execution failed: {sql}: {e}")
            raise DatabaseError(f"Query execution failed: {e}") from e

        preview = sql[:100] + ("..." if len(sql) > 100 else "")
        logger.debug(f"SQL query executed ({len(rows)} rows): {preview}")
        return [dict(row) for row in rows]

    async def get_schema(self) -> str:
        """Describe every user table: columns, constraints and row count."""
        tables = await self.query(
            "SELECT name FROM sqlite_master "
            "WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )

        lines = ["Database Schema:", ""]
        for table in tables:
            name = table["name"]
            lines.append(f"Table: {name}")
            for column in await self.query(f'PRAGMA table_info("{name}")'):
                line = f"  - {column['name']}: {column['type']}"
                if column["pk"]:
                    line += " (PRIMARY KEY)"
                if column["notnull"]:
                    line += " (NOT NULL)"
                if column["dflt_value"] is not None:
                    line += f" (DEFAULT: {column['dflt_value']})"
                lines.append(line)
            count = await self.query(f'SELECT COUNT(*) AS count FROM "{name}"')
            lines.append(f"  Rows: {count[0]['count']}")
            lines.append("")
        return "\n".join(lines)

    async def close(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite database connection closed")

    async def _initialize_sample_data(self) -> None:
        cursor = await self._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
        )
        if await cursor.fetchall():
            return

        logger.info("Initializing sample database schema and data")
        await self._conn.executescript(SAMPLE_SCHEMA)
        await self._conn.executescript(SAMPLE_DATA)
        await self._conn.commit()
