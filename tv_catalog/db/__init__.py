"""
Database helpers for the TV catalog services.
"""

from tv_catalog.db.pool import ConnectionPool, PoolSettings, PoolTimeoutError
from tv_catalog.db.transaction import TransactionCoordinator

__all__ = [
    "ConnectionPool",
    "PoolSettings",
    "PoolTimeoutError",
    "TransactionCoordinator",
]
