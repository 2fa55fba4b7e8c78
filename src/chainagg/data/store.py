"""SQL-backed entity store."""

import copy
import logging
from contextlib import contextmanager
from dataclasses import asdict, fields
from typing import Any, Iterator

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from chainagg.core.types import Entity
from chainagg.data.models import ENTITY_MODELS, Base
from chainagg.store.base import E, normalize_key

logger = logging.getLogger(__name__)


def model_for(entity_type: type[Entity]) -> type[Base]:
    """Get the ORM model persisting an entity type."""
    try:
        return ENTITY_MODELS[entity_type]
    except KeyError:
        raise TypeError(f"No table for entity type {entity_type.__name__}") from None


def to_entity(entity_type: type[E], row: Base) -> E:
    """Build a detached entity from an ORM row."""
    values = {f.name: getattr(row, f.name) for f in fields(entity_type)}
    return entity_type(**copy.deepcopy(values))


def to_row(entity: Entity) -> Base:
    """Build an ORM row from an entity."""
    return model_for(type(entity))(**asdict(entity))


class SqlEntityStore:
    """
    Entity store over a SQLAlchemy session.

    Writes are merged into the session and committed when the outermost
    transaction block exits; a failing block rolls the session back.
    Every save is flushed immediately; saves outside a transaction block
    stay uncommitted until ``commit`` is called.
    """

    def __init__(self, session: Session):
        self.session = session
        self._depth = 0

    def load(self, entity_type: type[E], key: Any) -> E | None:
        row = self.session.get(model_for(entity_type), normalize_key(key))
        if row is None:
            return None
        return to_entity(entity_type, row)

    def save(self, entity: Entity) -> None:
        # Pending rows are invisible to session.get until flushed
        self.session.merge(to_row(entity))
        self.session.flush()

    @contextmanager
    def transaction(self) -> Iterator["SqlEntityStore"]:
        """Commit the block's writes, or roll them back if it raises."""
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        self._depth = 1
        try:
            yield self
            self.session.commit()
        except Exception:
            self.session.rollback()
            logger.debug("Transaction rolled back")
            raise
        finally:
            self._depth = 0

    def commit(self) -> None:
        self.session.commit()

    def all(self, entity_type: type[E]) -> list[E]:
        """Return every stored entity of a type, ordered by key."""
        model = model_for(entity_type)
        self.session.flush()
        stmt = select(model).order_by(
            *(getattr(model, name) for name in entity_type.key_fields)
        )
        return [to_entity(entity_type, row) for row in self.session.scalars(stmt)]

    def count(self, entity_type: type[Entity]) -> int:
        """Number of stored entities of a type."""
        self.session.flush()
        return self.session.scalar(
            select(func.count()).select_from(model_for(entity_type))
        )
