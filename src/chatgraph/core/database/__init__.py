"""Database agent: natural language questions answered with SQL."""

from chatgraph.core.database.connection import DatabaseConnection, SQLiteDatabase
from chatgraph.core.database.agent import DatabaseAgent, DatabaseQuery, DatabaseResult
from chatgraph.core.database.safety import check_query_safety, strip_sql_fences

__all__ = [
    'DatabaseConnection',
    'SQLiteDatabase',
    'DatabaseAgent',
    'DatabaseQuery',
    'DatabaseResult',
    'check_query_safety',
    'strip_sql_fences',
]
