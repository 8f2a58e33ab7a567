"""Database utilities for constructing connection URLs dynamically"""
from urllib.parse import quote_plus


def get_database_url(
    driver: str,
    host: str,
    port: int,
    user: str | None,
    password: str | None,
    name: str | None,
) -> str:
    """
    Construct database URL from components.

    User and password are percent-encoded so credentials containing
    '@', ':' or '/' survive the round trip through the URL parser.

    Example:
        >>> get_database_url("postgresql+asyncpg", "db", 5432, "custody", "p@ss", "assets")
        'postgresql+asyncpg://custody:p%40ss@db:5432/assets'
    """
    credentials = quote_plus(user or "")
    if password:
        credentials = f"{credentials}:{quote_plus(password)}"
    return f"{driver}://{credentials}@{host}:{port}/{name or ''}"
