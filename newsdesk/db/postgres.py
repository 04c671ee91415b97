"""Postgres implementation of the article store."""

from datetime import datetime
from typing import Any, Dict, List, Optional

import psycopg
from psycopg_pool import AsyncConnectionPool

from ..errors import PersistenceError
from ..models import Article, Category, User
from .connection import open_pool
from .store import Store

POST_COLUMNS = """
    id, title, slug, content, excerpt, status, featured, published_at,
    external_id, external_source, external_url, author_id, category_id,
    created_at, updated_at
"""


class PostgresStore(Store):
    """Article store backed by a psycopg async connection pool."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        """Initialize store around an open pool."""
        self.pool = pool

    @classmethod
    async def connect(cls, config: Dict[str, Any]) -> "PostgresStore":
        """Open a pool from a postgres config dict."""
        return cls(await open_pool(config))

    async def close(self) -> None:
        await self.pool.close()

    async def _fetchone(self, query: str, params: tuple = ()) -> Optional[Dict]:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchone()

    async def _fetchall(self, query: str, params: tuple = ()) -> List[Dict]:
        async with self.pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                return await cur.fetchall()

    async def count_by_external_id(self, external_id: str) -> int:
        row = await self._fetchone(
            "SELECT COUNT(*) AS n FROM posts WHERE external_id = %s",
            (external_id,),
        )
        return row["n"] if row else 0

    async def find_by_external_id_since(self, external_id: str, since: datetime) -> Optional[Article]:
        row = await self._fetchone(
            f"""
            SELECT {POST_COLUMNS}
            FROM posts
            WHERE external_id = %s AND created_at >= %s
            LIMIT 1
            """,
            (external_id, since),
        )
        return Article(**row) if row else None

    async def slug_exists(self, slug: str) -> bool:
        row = await self._fetchone("SELECT id FROM posts WHERE slug = %s LIMIT 1", (slug,))
        return row is not None

    async def recent_imported_articles(self, since: datetime) -> List[Article]:
        rows = await self._fetchall(
            f"""
            SELECT {POST_COLUMNS}
            FROM posts
            WHERE created_at >= %s AND external_source IS NOT NULL
            ORDER BY created_at DESC
            """,
            (since,),
        )
        return [Article(**row) for row in rows]

    async def upsert_article(self, article: Article) -> Article:
        try:
            async with self.pool.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor() as cur:
                        await cur.execute(
                            f"""
                            INSERT INTO posts (
                                title, slug, content, excerpt, status, featured,
                                published_at, external_id, external_source, external_url,
                                author_id, category_id
                            ) VALUES (
                                %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s
                            )
                            ON CONFLICT (external_id) DO UPDATE SET
                                title = EXCLUDED.title,
                                content = EXCLUDED.content,
                                excerpt = EXCLUDED.excerpt,
                                published_at = EXCLUDED.published_at,
                                external_url = EXCLUDED.external_url,
                                created_at = CURRENT_TIMESTAMP,
                                updated_at = CURRENT_TIMESTAMP
                            RETURNING {POST_COLUMNS}
                            """,
                            (
                                article.title,
                                article.slug,
                                article.content,
                                article.excerpt,
                                article.status.value,
                                article.featured,
                                article.published_at,
                                article.external_id,
                                article.external_source,
                                article.external_url,
                                article.author_id,
                                article.category_id,
                            ),
                        )
                        row = await cur.fetchone()
        except psycopg.Error as e:
            raise PersistenceError(f"Failed to save post {article.slug!r}: {e}") from e

        return Article(**row)

    async def find_admin_user(self, email: Optional[str] = None) -> Optional[User]:
        row = await self._fetchone(
            """
            SELECT id, email, name, role, created_at, updated_at
            FROM users
            WHERE email = %s OR role = 'ADMIN'
            ORDER BY (email = %s) DESC, id
            LIMIT 1
            """,
            (email, email),
        )
        return User(**row) if row else None

    async def find_news_category(self) -> Optional[Category]:
        row = await self._fetchone(
            """
            SELECT id, name, slug, description, created_at, updated_at
            FROM categories
            WHERE slug = 'news' OR name LIKE '%%News%%'
            ORDER BY (slug = 'news') DESC, id
            LIMIT 1
            """
        )
        return Category(**row) if row else None

    async def first_category(self) -> Optional[Category]:
        row = await self._fetchone(
            "SELECT id, name, slug, description, created_at, updated_at FROM categories ORDER BY id LIMIT 1"
        )
        return Category(**row) if row else None

    async def create_category(self, name: str, slug: str, description: Optional[str] = None) -> Category:
        try:
            async with self.pool.connection() as conn:
                async with conn.transaction():
                    async with conn.cursor() as cur:
                        await cur.execute(
                            """
                            INSERT INTO categories (name, slug, description)
                            VALUES (%s, %s, %s)
                            ON CONFLICT (slug) DO UPDATE SET updated_at = CURRENT_TIMESTAMP
                            RETURNING id, name, slug, description, created_at, updated_at
                            """,
                            (name, slug, description),
                        )
                        row = await cur.fetchone()
        except psycopg.Error as e:
            raise PersistenceError(f"Failed to create category {slug!r}: {e}") from e
        return Category(**row)

    async def delete_by_source(self, external_source: str) -> int:
        async with self.pool.connection() as conn:
            async with conn.transaction():
                async with conn.cursor() as cur:
                    await cur.execute("DELETE FROM posts WHERE external_source = %s", (external_source,))
                    return cur.rowcount

    async def count_by_source(self) -> Dict[str, int]:
        rows = await self._fetchall(
            """
            SELECT external_source, COUNT(id) AS n
            FROM posts
            WHERE external_source IS NOT NULL
            GROUP BY external_source
            """
        )
        return {row["external_source"]: row["n"] for row in rows}
