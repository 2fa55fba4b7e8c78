"""In-memory entity store."""

import copy
import logging
from contextlib import contextmanager
from typing import Any, Iterator

from chainagg.core.types import Entity
from chainagg.store.base import E, normalize_key

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    Dict-backed entity store.

    Entities are deep-copied on load and save so the store behaves like a
    real database: mutating a loaded entity has no effect until it is saved.
    A failing transaction restores the state from before it began.
    """

    def __init__(self) -> None:
        self._entities: dict[tuple[type, tuple], Entity] = {}
        self._depth = 0

    def load(self, entity_type: type[E], key: Any) -> E | None:
        entity = self._entities.get((entity_type, normalize_key(key)))
        return copy.deepcopy(entity) if entity is not None else None

    def save(self, entity: Entity) -> None:
        self._entities[(type(entity), entity.key)] = copy.deepcopy(entity)

    @contextmanager
    def transaction(self) -> Iterator["MemoryStore"]:
        """Snapshot state and roll back if the block raises."""
        if self._depth:
            # Nested blocks join the outer transaction
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        snapshot = dict(self._entities)
        self._depth = 1
        try:
            yield self
        except Exception:
            self._entities = snapshot
            logger.debug("Transaction rolled back")
            raise
        finally:
            self._depth = 0

    def all(self, entity_type: type[E]) -> list[E]:
        """Return copies of every stored entity of a type, ordered by key."""
        items = [
            entity
            for (kind, _), entity in self._entities.items()
            if kind is entity_type
        ]
        items.sort(key=lambda e: e.key)
        return [copy.deepcopy(e) for e in items]

    def count(self, entity_type: type[Entity]) -> int:
        """Number of stored entities of a type."""
        return sum(1 for kind, _ in self._entities if kind is entity_type)
