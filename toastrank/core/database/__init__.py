"""Database connection and persistence for toastrank."""

from toastrank.core.database.async_cassandra import (
    AsyncCassandraConnection,
    init_async_cassandra,
    shutdown_async_cassandra,
)
from toastrank.core.database.cassandra_store import CassandraToasterStore
from toastrank.core.database.store import ToasterStore


__all__ = [
    "AsyncCassandraConnection",
    "CassandraToasterStore",
    "ToasterStore",
    "init_async_cassandra",
    "shutdown_async_cassandra",
]
