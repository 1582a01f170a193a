"""Database connection module for Electrofun."""

from src.core.database.async_cassandra import (
    AsyncCassandraConnection,
    init_async_cassandra,
    init_async_schema,
)


__all__ = [
    "AsyncCassandraConnection",
    "init_async_cassandra",
    "init_async_schema",
]
