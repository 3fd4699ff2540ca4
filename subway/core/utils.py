"""Core utility functions."""

from urllib.parse import urlparse, urlunparse


def convert_async_db_url_to_sync(database_url: str) -> str:
    """
    Convert an async database URL to a sync database URL.

    Alembic runs migrations synchronously, so async drivers are swapped for
    their sync counterparts: asyncpg becomes psycopg (psycopg3) and aiosqlite
    becomes the built-in pysqlite driver.

    Args:
        database_url: The async database URL (e.g., postgresql+asyncpg://...)

    Returns:
        The sync database URL (e.g., postgresql+psycopg://...)
    """
    parsed_url = urlparse(database_url)
    if "+asyncpg" in parsed_url.scheme:
        sync_scheme = parsed_url.scheme.replace("+asyncpg", "+psycopg")
        return urlunparse(parsed_url._replace(scheme=sync_scheme))
    if "+aiosqlite" in parsed_url.scheme:
        # urlunparse drops the empty authority of sqlite:///path URLs
        return database_url.replace("+aiosqlite", "", 1)
    return database_url
