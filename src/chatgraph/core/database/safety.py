"""Clean-up and safety checks for model-generated SQL."""

import re

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from chatgraph.core.errors import UnsafeQueryError

SQL_DIALECT = "sqlite"

WRITE_OPERATIONS = {
    "INSERT",
    "UPDATE",
    "DELETE",
    "REPLACE",
    "DROP",
    "CREATE",
    "ALTER",
    "TRUNCATE",
    "ATTACH",
    "DETACH",
    "VACUUM",
    "REINDEX",
    "PRAGMA",
}

READ_STATEMENTS = (exp.Select, exp.Union, exp.Intersect, exp.Except)

WRITE_NODES = (
    exp.Insert,
    exp.Update,
    exp.Delete,
    exp.Drop,
    exp.Create,
    exp.Command,
    exp.Merge,
)

_FENCE_OPEN = re.compile(r"^```[a-zA-Z]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```$")
_SQL_COMMENT = re.compile(r"(--[^\n]*|/\*.*?\*/)", flags=re.DOTALL)


def strip_sql_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    sql = text.strip()
    if sql.startswith("```"):
        sql = _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", sql, count=1))
    return sql.strip()


def is_write_statement(sql: str) -> bool:
    """Detect statements that may change the database.

    The statement is parsed and must be a single query (a SELECT or a
    compound of SELECTs) with no data-changing node anywhere in its tree.
    Text sqlglot cannot parse is judged by its first keyword.
    """
    stripped = _SQL_COMMENT.sub(" ", sql).strip()
    if not stripped:
        return True

    try:
        statements = [
            statement for statement in sqlglot.parse(stripped, read=SQL_DIALECT)
            if statement is not None
        ]
    except SqlglotError:
        statements = None

    if statements is not None:
        if len(statements) != 1:
            return True
        statement = statements[0]
        if not isinstance(statement, READ_STATEMENTS):
            return True
        return any(isinstance(node, WRITE_NODES) for node in statement.walk())

    first_keyword = stripped.split(maxsplit=1)[0].upper()
    return first_keyword in WRITE_OPERATIONS or first_keyword == "WITH"


def check_query_safety(sql: str, allow_write_operations: bool = False) -> str:
    """Return ``sql`` unchanged if it may run under the current configuration.

    Raises:
        UnsafeQueryError: If the statement writes and writes are not allowed
    """
    if not allow_write_operations and is_write_statement(sql):
        raise UnsafeQueryError(sql)
    return sql
