"""
Repository Module

Generic predicate-based repositories over the async storage backends and
the unit of work that stages their changes into one atomic commit.

Entities loaded through a unit of work are tracked in an identity map:
loading the same record twice returns the same object, and any mutation
made to a tracked entity is written back by ``save_changes()``.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar, Union
import logging

from .async_storage import AsyncStorageInterface
from .models import BaseEntity

T = TypeVar('T', bound=BaseEntity)
Predicate = Callable[[T], bool]

logger = logging.getLogger("retail_banking.repository")


@dataclass
class Page(Generic[T]):
    """One page of a paginated query"""
    data: List[T]
    total_count: int
    page_index: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return (self.total_count + self.page_size - 1) // self.page_size


class Repository(Generic[T]):
    """Query and stage entities of one type"""

    def __init__(self, entity_type: Type[T], unit_of_work: 'UnitOfWork'):
        self.entity_type = entity_type
        self._unit_of_work = unit_of_work

    @property
    def _storage(self) -> AsyncStorageInterface:
        return self._unit_of_work.storage

    async def get_all(self, include: Sequence[str] = ()) -> List[T]:
        """Load every entity of this type in store order"""
        records = await self._storage.load_all(self.entity_type.table)
        entities = [self._unit_of_work.attach(self.entity_type, data) for data in records]
        await self._include(entities, include)
        return entities

    async def get_by_id(self, entity_id: int, include: Sequence[str] = ()) -> Optional[T]:
        """Load an entity by its internal id"""
        data = await self._storage.load(self.entity_type.table, str(entity_id))
        if data is None:
            return None
        entity = self._unit_of_work.attach(self.entity_type, data)
        await self._include([entity], include)
        return entity

    async def find(self, predicate: Predicate, include: Sequence[str] = ()) -> List[T]:
        """
        Load all entities matching ``predicate``.

        Related entities named in ``include`` are loaded first, so the
        predicate may navigate through them (e.g. ``a.customer.customer_number``).
        """
        entities = await self.get_all(include)
        return [entity for entity in entities if predicate(entity)]

    async def first(self, predicate: Predicate, include: Sequence[str] = ()) -> Optional[T]:
        """Load the first entity matching ``predicate``, or None"""
        for entity in await self.get_all(include):
            if predicate(entity):
                return entity
        return None

    async def count(self, predicate: Optional[Predicate] = None) -> int:
        if predicate is None:
            return await self._storage.count(self.entity_type.table)
        return len(await self.find(predicate))

    async def add(self, entity: T) -> None:
        """Stage a new entity; it is written on the next save_changes()"""
        if not isinstance(entity, self.entity_type):
            raise TypeError(f"Expected {self.entity_type.__name__}, got {type(entity).__name__}")
        self._unit_of_work.stage_add(entity)

    async def add_range(self, entities: Iterable[T]) -> None:
        for entity in entities:
            await self.add(entity)

    async def update(self, entity: T) -> None:
        """
        Mark an entity as modified.

        Tracked entities are written on save_changes() without this call; it
        is needed only for instances built outside this unit of work.
        """
        if not isinstance(entity, self.entity_type):
            raise TypeError(f"Expected {self.entity_type.__name__}, got {type(entity).__name__}")
        if entity.id is None:
            raise ValueError("Cannot update an entity that has not been saved")
        self._unit_of_work.stage_update(entity)

    async def delete(self, entity_or_id: Union[T, int]) -> None:
        """Stage a deletion by entity or internal id"""
        if isinstance(entity_or_id, self.entity_type):
            entity = entity_or_id
        else:
            entity = await self.get_by_id(entity_or_id)
            if entity is None:
                raise KeyError(f"{self.entity_type.__name__} {entity_or_id} not found")
        self._unit_of_work.stage_delete(entity)

    async def get_page(
        self,
        page_index: int,
        page_size: int,
        predicate: Optional[Predicate] = None,
        order_by: Optional[Callable[[T], Any]] = None,
        ascending: bool = True,
        include: Sequence[str] = ()
    ) -> Page[T]:
        """
        Load one page of entities.

        Args:
            page_index: 1-based page number
            page_size: Entities per page
            predicate: Optional filter applied before paging
            order_by: Optional sort key; store order otherwise
            ascending: Sort direction when order_by is given
            include: Navigation properties to eager-load

        Returns:
            Page with the entities and the total count across all pages
        """
        if page_index < 1:
            raise ValueError("page_index must be at least 1")
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        entities = await self.get_all(include)
        if predicate is not None:
            entities = [entity for entity in entities if predicate(entity)]
        if order_by is not None:
            entities = sorted(entities, key=order_by, reverse=not ascending)

        start = (page_index - 1) * page_size
        return Page(
            data=entities[start:start + page_size],
            total_count=len(entities),
            page_index=page_index,
            page_size=page_size
        )

    async def _include(self, entities: List[T], include: Sequence[str]) -> None:
        """Eager-load navigation properties"""
        for name in include:
            if name not in self.entity_type.relations:
                raise ValueError(f"{self.entity_type.__name__} has no relation '{name}'")

            related_type, foreign_key = self.entity_type.relations[name]
            related = await self._unit_of_work.get_repository(related_type).get_all()
            by_id = {item.id: item for item in related}

            for entity in entities:
                setattr(entity, name, by_id.get(getattr(entity, foreign_key)))


class UnitOfWork:
    """
    Registry of repositories sharing one identity map and one commit.

    One unit of work serves one logical request; it is not safe to share
    between concurrent requests.
    """

    def __init__(self, storage: AsyncStorageInterface, user: str = "System"):
        if storage is None:
            raise ValueError("storage is required")

        self.storage = storage
        self.user = user
        self._repositories: Dict[type, Repository] = {}
        self._tracked: Dict[Tuple[type, int], Tuple[BaseEntity, dict]] = {}
        self._added: List[BaseEntity] = []
        self._updated: List[BaseEntity] = []
        self._deleted: List[BaseEntity] = []

    def get_repository(self, entity_type: Type[T]) -> Repository[T]:
        """Get the (cached) repository for an entity type"""
        repository = self._repositories.get(entity_type)
        if repository is None:
            repository = Repository(entity_type, self)
            self._repositories[entity_type] = repository
        return repository

    def attach(self, entity_type: Type[T], data: dict) -> T:
        """Return the tracked instance for a stored record, tracking it if new"""
        key = (entity_type, data.get("id"))
        tracked = self._tracked.get(key)
        if tracked is not None:
            return tracked[0]

        entity = entity_type.from_dict(data)
        self._tracked[key] = (entity, entity.to_dict())
        return entity

    def stage_add(self, entity: BaseEntity) -> None:
        if not _contains(self._added, entity):
            self._added.append(entity)

    def stage_update(self, entity: BaseEntity) -> None:
        tracked = self._tracked.get((type(entity), entity.id))
        if tracked is not None and tracked[0] is entity:
            return
        if not _contains(self._updated, entity):
            self._updated.append(entity)

    def stage_delete(self, entity: BaseEntity) -> None:
        if _contains(self._added, entity):
            # Never written, so there is nothing to delete
            self._added = [staged for staged in self._added if staged is not entity]
            return
        if not _contains(self._deleted, entity):
            self._deleted.append(entity)

    @property
    def has_changes(self) -> bool:
        return bool(self._added or self._updated or self._deleted or self._changed_entities())

    def _changed_entities(self) -> List[BaseEntity]:
        return [
            entity for entity, snapshot in self._tracked.values()
            if entity.to_dict() != snapshot
            and not _contains(self._deleted, entity)
            and not _contains(self._updated, entity)
        ]

    async def _next_ids(self, tables: Iterable[str]) -> Dict[str, int]:
        next_ids = {}
        for table in set(tables):
            records = await self.storage.load_all(table)
            next_ids[table] = max((int(r["id"]) for r in records if r.get("id") is not None), default=0) + 1
        return next_ids

    async def save_changes(self) -> int:
        """
        Write all staged additions, modifications and deletions atomically.

        Returns the number of records written. If the store fails, nothing
        from this batch is visible, the staged changes are discarded, tracked
        entities are restored to their last loaded or saved state, and the
        exception propagates.
        """
        added = list(self._added)
        modified = self._changed_entities() + [
            entity for entity in self._updated if not _contains(self._deleted, entity)
        ]
        deleted = list(self._deleted)
        if not added and not modified and not deleted:
            return 0

        now = datetime.now()
        unassigned = [entity for entity in added if entity.id is None]

        try:
            async with self.storage.atomic():
                next_ids = await self._next_ids(type(entity).table for entity in unassigned)

                for entity in added:
                    if entity.id is None:
                        table = type(entity).table
                        entity.id = next_ids[table]
                        next_ids[table] += 1
                    if entity.created_date is None:
                        entity.created_date = now
                    if not entity.created_by:
                        entity.created_by = self.user
                    await self.storage.save(type(entity).table, entity.record_id, entity.to_dict())

                for entity in modified:
                    entity.modified_date = now
                    entity.modified_by = self.user
                    await self.storage.save(type(entity).table, entity.record_id, entity.to_dict())

                for entity in deleted:
                    await self.storage.delete(type(entity).table, entity.record_id)
        except Exception:
            for entity in unassigned:
                entity.id = None
            self.discard_changes()
            raise

        for entity in added + modified:
            self._tracked[(type(entity), entity.id)] = (entity, entity.to_dict())
        for entity in deleted:
            self._tracked.pop((type(entity), entity.id), None)
        self._added.clear()
        self._updated.clear()
        self._deleted.clear()

        logger.debug(
            "Saved %d added, %d modified and %d deleted records",
            len(added), len(modified), len(deleted)
        )
        return len(added) + len(modified) + len(deleted)

    def discard_changes(self) -> None:
        """Drop staged work and revert tracked entities to their snapshots"""
        for entity, snapshot in self._tracked.values():
            restored = type(entity).from_dict(snapshot)
            for f in fields(entity):
                if not f.metadata.get("navigation"):
                    setattr(entity, f.name, getattr(restored, f.name))
        self._added.clear()
        self._updated.clear()
        self._deleted.clear()

    def clear(self) -> None:
        """Forget all tracked and staged entities"""
        self._tracked.clear()
        self._added.clear()
        self._updated.clear()
        self._deleted.clear()


def _contains(entities: List[BaseEntity], entity: BaseEntity) -> bool:
    """Identity membership; dataclass equality would match distinct records"""
    return any(staged is entity for staged in entities)
