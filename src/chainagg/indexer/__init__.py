"""Event payloads, handlers and the sequential processor."""

from chainagg.indexer.events import ChainEvent, parse_event
from chainagg.indexer.handlers import handler_registry
from chainagg.indexer.processor import EventProcessor, ReplaySummary, read_events

__all__ = [
    "ChainEvent",
    "EventProcessor",
    "ReplaySummary",
    "handler_registry",
    "parse_event",
    "read_events",
]
