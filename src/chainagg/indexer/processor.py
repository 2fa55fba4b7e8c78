"""Sequential event processing."""

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator

from chainagg.context import IndexerContext
from chainagg.core.errors import UnknownEventError
from chainagg.core.registry import Registry
from chainagg.indexer.events import EVENT_KINDS, ChainEvent, parse_event
from chainagg.indexer.handlers import Handler, handler_registry

logger = logging.getLogger(__name__)


@dataclass
class ReplaySummary:
    """Outcome of a replay."""

    processed: int = 0
    by_kind: Counter = field(default_factory=Counter)
    first_timestamp: int | None = None
    last_timestamp: int | None = None

    def record(self, event: ChainEvent) -> None:
        self.processed += 1
        self.by_kind[event.kind] += 1
        if self.first_timestamp is None:
            self.first_timestamp = event.timestamp
        self.last_timestamp = event.timestamp


class EventProcessor:
    """
    Applies events one at a time, in order, each as an atomic unit.

    A failing event rolls back everything it wrote and the error propagates:
    the caller retries from that event. Because every handler is a pure
    function of stored state, the event and contract reads, re-applying an
    event after a rollback yields the same result.
    """

    def __init__(
        self,
        ctx: IndexerContext,
        registry: Registry[Handler] = handler_registry,
    ):
        self.ctx = ctx
        self.registry = registry

    def process(self, event: ChainEvent | dict[str, Any]) -> ChainEvent:
        """
        Apply a single event.

        Args:
            event: Typed event or raw event object

        Returns:
            The typed event

        Raises:
            UnknownEventError: If no handler is registered for the event kind
        """
        if not isinstance(event, ChainEvent):
            kind = event.get("kind")
            if kind not in EVENT_KINDS or kind not in self.registry:
                raise UnknownEventError(str(kind))
            event = parse_event(event)
        elif event.kind not in self.registry:
            raise UnknownEventError(event.kind)

        handler = self.registry.get(event.kind)
        with self.ctx.store.transaction():
            handler(self.ctx, event)

        logger.debug(
            f"Processed {event.kind} at {event.timestamp} "
            f"(block {event.block_number}, log {event.log_index})"
        )
        return event

    def replay(self, events: Iterable[ChainEvent | dict[str, Any]]) -> ReplaySummary:
        """Apply events in order and summarize what was processed."""
        summary = ReplaySummary()
        for event in events:
            summary.record(self.process(event))

        logger.info(
            f"Replayed {summary.processed} events "
            f"({len(summary.by_kind)} kinds)"
        )
        return summary


def read_events(path: Path | str) -> Iterator[dict[str, Any]]:
    """
    Read raw events from a JSON lines file.

    Blank lines are skipped.

    Raises:
        ValueError: If a line is not valid JSON
    """
    path = Path(path)
    with open(path, "r") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"{path}:{line_number}: invalid JSON: {e}") from e
