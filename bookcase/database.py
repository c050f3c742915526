"""Database layer for the bookcase and the catalog response cache."""
import psycopg2
from psycopg2 import pool
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime, timedelta
import json
import logging

from bookcase.models import Book
from bookcase.names import last_name

logger = logging.getLogger(__name__)

STATUSES = ("read", "want", "pass")

BOOK_COLUMNS = """
    id, title, author, authors, published_date, description, language,
    page_count, categories, thumbnail, isbn13, isbn10, publisher
"""


def _row_to_book(row) -> Book:
    return Book(
        id=row[0],
        title=row[1],
        author=row[2],
        authors=list(row[3] or []),
        published_date=row[4],
        description=row[5] or "",
        language=row[6] or "en",
        page_count=row[7] or 0,
        categories=list(row[8] or []),
        thumbnail=row[9],
        isbn13=row[10],
        isbn10=row[11],
        publisher=row[12],
    )


class Database:
    """PostgreSQL database with connection pooling."""

    def __init__(self, connection_string: str, min_conn: int = 1, max_conn: int = 10):
        """
        Initialize database connection pool.

        Args:
            connection_string: PostgreSQL connection string
            min_conn: Minimum connections in pool
            max_conn: Maximum connections in pool
        """
        self.connection_pool = psycopg2.pool.SimpleConnectionPool(
            min_conn,
            max_conn,
            connection_string
        )
        logger.info("Database connection pool created successfully")

    def init_schema(self):
        """Create database tables if they don't exist."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                # Books are keyed by the status key so a better edition replaces the stored one
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS books (
                        status_key TEXT PRIMARY KEY,
                        id VARCHAR(255) NOT NULL,
                        title TEXT NOT NULL,
                        author TEXT NOT NULL,
                        authors TEXT[],
                        published_date VARCHAR(50),
                        description TEXT,
                        language VARCHAR(10),
                        page_count INTEGER,
                        categories TEXT[],
                        thumbnail TEXT,
                        isbn13 VARCHAR(13),
                        isbn10 VARCHAR(10),
                        publisher TEXT,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS api_cache (
                        cache_key VARCHAR(512) PRIMARY KEY,
                        response_data JSONB NOT NULL,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        expires_at TIMESTAMP NOT NULL
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS authors (
                        name TEXT PRIMARY KEY,
                        added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cur.execute("""
                    CREATE TABLE IF NOT EXISTS book_status (
                        status_key TEXT PRIMARY KEY,
                        status VARCHAR(10) CHECK (status IN ('read', 'want', 'pass')),
                        rating SMALLINT CHECK (rating BETWEEN 1 AND 5),
                        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                    )
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_books_title
                    ON books USING gin(to_tsvector('english', title))
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_books_author
                    ON books (lower(author))
                """)

                cur.execute("""
                    CREATE INDEX IF NOT EXISTS idx_cache_expires
                    ON api_cache (expires_at)
                """)

                conn.commit()
                logger.info("Database schema initialized successfully")

        finally:
            self.connection_pool.putconn(conn)

    def insert_book(self, book: Book) -> bool:
        """
        Insert or update a book in the database.

        Args:
            book: Book object

        Returns:
            True if successful, False otherwise
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO books (
                        status_key, id, title, author, authors, published_date,
                        description, language, page_count, categories, thumbnail,
                        isbn13, isbn10, publisher, updated_at
                    ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (status_key) DO UPDATE SET
                        id = EXCLUDED.id,
                        authors = EXCLUDED.authors,
                        published_date = EXCLUDED.published_date,
                        description = EXCLUDED.description,
                        language = EXCLUDED.language,
                        page_count = EXCLUDED.page_count,
                        categories = EXCLUDED.categories,
                        thumbnail = EXCLUDED.thumbnail,
                        isbn13 = EXCLUDED.isbn13,
                        isbn10 = EXCLUDED.isbn10,
                        publisher = EXCLUDED.publisher,
                        updated_at = CURRENT_TIMESTAMP
                """, (
                    book.status_key, book.id, book.title, book.primary_author,
                    book.authors, book.published_date, book.description,
                    book.language, book.page_count, book.categories,
                    book.thumbnail, book.isbn13, book.isbn10, book.publisher
                ))
                conn.commit()
                return True
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to insert book: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def get_book(self, status_key: str) -> Optional[Book]:
        """Get a book by its status key."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {BOOK_COLUMNS} FROM books WHERE status_key = %s",
                    (status_key,)
                )
                row = cur.fetchone()
                return _row_to_book(row) if row else None
        finally:
            self.connection_pool.putconn(conn)

    def search_books(self, query: str = "", limit: Optional[int] = 1000, author: Optional[str] = None) -> List[Book]:
        """
        Search books by title (full-text search), optionally for one author.

        Args:
            query: Search query
            limit: Maximum results (None for all; LIMIT NULL is unbounded)
            author: Stored author name (case-insensitive)

        Returns:
            List of Book objects
        """
        conditions = []
        params: List[Any] = []

        if query:
            conditions.append("to_tsvector('english', title) @@ plainto_tsquery('english', %s)")
            params.append(query)
        if author:
            conditions.append("lower(author) = lower(%s)")
            params.append(author)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(limit)

        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {BOOK_COLUMNS} FROM books {where} ORDER BY created_at LIMIT %s",
                    tuple(params)
                )
                return [_row_to_book(row) for row in cur.fetchall()]
        finally:
            self.connection_pool.putconn(conn)

    def find_books_by_title(self, title: str) -> List[Book]:
        """Books whose title equals `title`, ignoring case and surrounding spaces."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT {BOOK_COLUMNS} FROM books WHERE lower(trim(title)) = lower(trim(%s)) ORDER BY created_at",
                    (title,)
                )
                return [_row_to_book(row) for row in cur.fetchall()]
        finally:
            self.connection_pool.putconn(conn)

    def delete_books(self, status_keys: List[str]) -> int:
        """Remove stored books by status key."""
        if not status_keys:
            return 0

        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM books WHERE status_key = ANY(%s)", (list(status_keys),))
                deleted = cur.rowcount
                conn.commit()
                return deleted
        finally:
            self.connection_pool.putconn(conn)

    def add_author(self, name: str) -> bool:
        """Add an author to the list; False if already present."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute(
                    "INSERT INTO authors (name) VALUES (%s) ON CONFLICT (name) DO NOTHING",
                    (name,)
                )
                added = cur.rowcount == 1
                conn.commit()
                if added:
                    logger.info(f"Added author: {name}")
                return added
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to add author: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def remove_author(self, name: str) -> bool:
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM authors WHERE name = %s", (name,))
                removed = cur.rowcount == 1
                conn.commit()
                return removed
        finally:
            self.connection_pool.putconn(conn)

    def list_authors(self) -> List[str]:
        """Authors on the list, sorted by last name."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT name FROM authors")
                return sorted((row[0] for row in cur.fetchall()), key=last_name)
        finally:
            self.connection_pool.putconn(conn)

    def set_status(self, status_key: str, status: str) -> bool:
        """
        Mark a book as read, want (to read) or pass.

        Args:
            status_key: Book status key ("{title}-{author}")
            status: One of STATUSES

        Returns:
            True if successful
        """
        if status not in STATUSES:
            raise ValueError(f"Invalid status '{status}', expected one of {', '.join(STATUSES)}")

        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO book_status (status_key, status)
                    VALUES (%s, %s)
                    ON CONFLICT (status_key) DO UPDATE SET
                        status = EXCLUDED.status,
                        updated_at = CURRENT_TIMESTAMP
                """, (status_key, status))
                conn.commit()
                return True
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to set status: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def set_rating(self, status_key: str, rating: int) -> bool:
        """Rate a book from 1 to 5."""
        if not 1 <= rating <= 5:
            raise ValueError(f"Rating must be between 1 and 5, got {rating}")

        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO book_status (status_key, rating)
                    VALUES (%s, %s)
                    ON CONFLICT (status_key) DO UPDATE SET
                        rating = EXCLUDED.rating,
                        updated_at = CURRENT_TIMESTAMP
                """, (status_key, rating))
                conn.commit()
                return True
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to set rating: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def clear_status(self, status_key: str) -> bool:
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM book_status WHERE status_key = %s", (status_key,))
                cleared = cur.rowcount == 1
                conn.commit()
                return cleared
        finally:
            self.connection_pool.putconn(conn)

    def get_statuses(self) -> Dict[str, Tuple[Optional[str], Optional[int]]]:
        """Map of status key to (status, rating)."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT status_key, status, rating FROM book_status")
                return {row[0]: (row[1], row[2]) for row in cur.fetchall()}
        finally:
            self.connection_pool.putconn(conn)

    def cache_get(self, cache_key: str) -> Optional[Dict[str, Any]]:
        """
        Get cached API response if not expired.

        Args:
            cache_key: Cache key

        Returns:
            Cached response or None
        """
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    SELECT response_data
                    FROM api_cache
                    WHERE cache_key = %s AND expires_at > CURRENT_TIMESTAMP
                """, (cache_key,))

                row = cur.fetchone()
                if row:
                    logger.info(f"Cache hit: {cache_key}")
                    return row[0]  # JSONB is automatically deserialized

                logger.info(f"Cache miss: {cache_key}")
                return None
        finally:
            self.connection_pool.putconn(conn)

    def cache_set(
        self,
        cache_key: str,
        response_data: Dict[str, Any],
        ttl_seconds: int = 3600
    ) -> bool:
        """
        Cache API response with TTL.

        Args:
            cache_key: Cache key
            response_data: Response to cache
            ttl_seconds: Time to live in seconds

        Returns:
            True if successful
        """
        conn = self.connection_pool.getconn()
        try:
            expires_at = datetime.now() + timedelta(seconds=ttl_seconds)

            with conn.cursor() as cur:
                cur.execute("""
                    INSERT INTO api_cache (cache_key, response_data, expires_at)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (cache_key) DO UPDATE SET
                        response_data = EXCLUDED.response_data,
                        expires_at = EXCLUDED.expires_at,
                        created_at = CURRENT_TIMESTAMP
                """, (cache_key, json.dumps(response_data), expires_at))

                conn.commit()
                logger.info(f"Cached response: {cache_key} (TTL: {ttl_seconds}s)")
                return True
        except psycopg2.Error as e:
            conn.rollback()
            logger.error(f"Failed to cache response: {e}")
            return False
        finally:
            self.connection_pool.putconn(conn)

    def get_stats(self) -> Dict[str, Any]:
        """Get database statistics."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM books")
                book_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(*) FROM authors")
                author_count = cur.fetchone()[0]

                cur.execute("SELECT status, COUNT(*) FROM book_status WHERE status IS NOT NULL GROUP BY status")
                by_status = dict(cur.fetchall())

                cur.execute("SELECT COUNT(*), AVG(rating) FROM book_status WHERE rating IS NOT NULL")
                rated_count, average_rating = cur.fetchone()

                cur.execute("SELECT COUNT(*) FROM api_cache WHERE expires_at > CURRENT_TIMESTAMP")
                cache_count = cur.fetchone()[0]

                cur.execute("SELECT COUNT(*) FROM api_cache WHERE expires_at <= CURRENT_TIMESTAMP")
                expired_count = cur.fetchone()[0]

                return {
                    "total_books": book_count,
                    "total_authors": author_count,
                    "read": by_status.get("read", 0),
                    "want": by_status.get("want", 0),
                    "pass": by_status.get("pass", 0),
                    "rated": rated_count,
                    "average_rating": float(average_rating) if average_rating is not None else None,
                    "cached_responses": cache_count,
                    "expired_cache_entries": expired_count
                }
        finally:
            self.connection_pool.putconn(conn)

    def cleanup_expired_cache(self) -> int:
        """Remove expired cache entries."""
        conn = self.connection_pool.getconn()
        try:
            with conn.cursor() as cur:
                cur.execute("""
                    DELETE FROM api_cache
                    WHERE expires_at <= CURRENT_TIMESTAMP
                """)
                deleted = cur.rowcount
                conn.commit()
                logger.info(f"Cleaned up {deleted} expired cache entries")
                return deleted
        finally:
            self.connection_pool.putconn(conn)

    def close(self):
        """Close all connections in the pool."""
        if self.connection_pool:
            self.connection_pool.closeall()
            logger.info("Database connection pool closed")

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
