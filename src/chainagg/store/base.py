"""Entity store protocol."""

from contextlib import AbstractContextManager
from typing import Any, Protocol, TypeVar, runtime_checkable

from chainagg.core.errors import MissingEntityError
from chainagg.core.types import Entity

E = TypeVar("E", bound=Entity)


def normalize_key(key: Any) -> tuple:
    """Accept a scalar or a tuple key and return the tuple form."""
    if isinstance(key, tuple):
        return tuple(key)
    return (key,)


@runtime_checkable
class EntityStore(Protocol):
    """
    Persistent entity store - implement this to add a storage backend.

    Entities are addressed by their type and key. Loaded entities are
    detached copies: changes become visible to later loads only after
    ``save``. ``transaction`` groups the effects of one event so they are
    applied (or discarded) as a unit.
    """

    def load(self, entity_type: type[E], key: Any) -> E | None:
        """
        Load an entity by key.

        Args:
            entity_type: Entity class
            key: Key tuple in ``entity_type.key_fields`` order, or a scalar
                for single-field keys

        Returns:
            The entity, or None when it does not exist
        """
        ...

    def save(self, entity: Entity) -> None:
        """Insert or replace an entity."""
        ...

    def transaction(self) -> AbstractContextManager[Any]:
        """Apply everything inside the block atomically."""
        ...


def require(store: EntityStore, entity_type: type[E], key: Any) -> E:
    """
    Load an entity that must exist by invariant.

    Raises:
        MissingEntityError: If the entity is absent
    """
    entity = store.load(entity_type, key)
    if entity is None:
        raise MissingEntityError(entity_type, normalize_key(key))
    return entity
