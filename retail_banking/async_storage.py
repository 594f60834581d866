"""
Async Storage Backend Module

Async storage interface used by the repository layer, with wrappers that
run the synchronous in-memory and SQLite backends off the event loop.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, TYPE_CHECKING
from contextlib import asynccontextmanager
import asyncio

from .storage import StorageInterface, InMemoryStorage, SQLiteStorage

if TYPE_CHECKING:
    from .config import BankingConfig


class AsyncStorageInterface(ABC):
    """Abstract interface for async storage backends"""

    @abstractmethod
    async def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Save a record to storage"""
        pass

    @abstractmethod
    async def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record from storage"""
        pass

    @abstractmethod
    async def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table"""
        pass

    @abstractmethod
    async def delete(self, table: str, record_id: str) -> bool:
        """Delete a record from storage"""
        pass

    @abstractmethod
    async def count(self, table: str) -> int:
        """Count records in table"""
        pass

    @abstractmethod
    async def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        pass

    async def close(self) -> None:
        """Close storage connection (default no-op)"""
        pass

    async def begin_transaction(self) -> None:
        """Start a database transaction (default no-op)"""
        pass

    async def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    async def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @asynccontextmanager
    async def atomic(self):
        """Context manager for atomic operations"""
        await self.begin_transaction()
        try:
            yield
            await self.commit()
        except Exception:
            await self.rollback()
            raise


class AsyncStorageAdapter(AsyncStorageInterface):
    """
    Async wrapper around a synchronous StorageInterface.

    Each call runs in a worker thread. ``atomic()`` blocks are serialised so
    two commits never share the wrapped backend's transaction. Only commits
    are serialised: a load from another task while a batch is in flight is
    not isolated from it, and may see that batch's uncommitted writes.
    """

    def __init__(self, sync_storage: StorageInterface):
        self._sync_storage = sync_storage
        self._lock = asyncio.Lock()
        self._transaction_lock = asyncio.Lock()

    @property
    def sync_storage(self) -> StorageInterface:
        return self._sync_storage

    async def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        async with self._lock:
            await asyncio.to_thread(self._sync_storage.save, table, record_id, data)

    async def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            return await asyncio.to_thread(self._sync_storage.load, table, record_id)

    async def load_all(self, table: str) -> List[Dict[str, Any]]:
        async with self._lock:
            return await asyncio.to_thread(self._sync_storage.load_all, table)

    async def delete(self, table: str, record_id: str) -> bool:
        async with self._lock:
            return await asyncio.to_thread(self._sync_storage.delete, table, record_id)

    async def count(self, table: str) -> int:
        async with self._lock:
            return await asyncio.to_thread(self._sync_storage.count, table)

    async def clear_table(self, table: str) -> None:
        async with self._lock:
            await asyncio.to_thread(self._sync_storage.clear_table, table)

    async def close(self) -> None:
        await asyncio.to_thread(self._sync_storage.close)

    async def begin_transaction(self) -> None:
        await asyncio.to_thread(self._sync_storage.begin_transaction)

    async def commit(self) -> None:
        await asyncio.to_thread(self._sync_storage.commit)

    async def rollback(self) -> None:
        await asyncio.to_thread(self._sync_storage.rollback)

    @asynccontextmanager
    async def atomic(self):
        """Run a batch of writes as one transaction, one batch at a time"""
        async with self._transaction_lock:
            await self.begin_transaction()
            try:
                yield
                await self.commit()
            except Exception:
                await self.rollback()
                raise


class AsyncInMemoryStorage(AsyncStorageAdapter):
    """Async wrapper around InMemoryStorage"""

    def __init__(self, sync_storage: Optional[InMemoryStorage] = None):
        super().__init__(sync_storage or InMemoryStorage())


class AsyncSQLiteStorage(AsyncStorageAdapter):
    """Async wrapper around SQLiteStorage"""

    def __init__(self, db_path: str = ":memory:"):
        super().__init__(SQLiteStorage(db_path))


def create_async_storage(config: 'BankingConfig') -> AsyncStorageInterface:
    """Factory function to create the configured async storage"""
    storage_type = config.storage_type.lower()

    if storage_type == 'sqlite':
        return AsyncSQLiteStorage(config.database_path)
    if storage_type == 'memory':
        return AsyncInMemoryStorage()

    raise ValueError(f"Unsupported storage type: {config.storage_type}")
