"""Database management for newsdesk."""

from .articles import ArticleWriter, generate_external_id
from .connection import get_connection, open_pool
from .init import ensure_admin_user, init_database, validate_connection
from .memory import MemoryStore
from .postgres import PostgresStore
from .store import Store

__all__ = [
    "ArticleWriter",
    "MemoryStore",
    "PostgresStore",
    "Store",
    "ensure_admin_user",
    "generate_external_id",
    "get_connection",
    "init_database",
    "open_pool",
    "validate_connection",
]
