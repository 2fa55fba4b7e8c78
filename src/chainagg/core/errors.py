"""Exception hierarchy for the aggregation engine."""

from typing import Any


class AggregationError(Exception):
    """Base class for all aggregation failures."""


class MissingEntityError(AggregationError):
    """
    A series, singleton or snapshot that must exist was not found.

    Raised when an invariant says the entity was created by an earlier event.
    It usually means an event was skipped or delivered out of order, so the
    current event is aborted for upstream retry.
    """

    def __init__(self, entity_type: type | str, key: Any):
        name = entity_type if isinstance(entity_type, str) else entity_type.__name__
        self.entity_type = name
        self.key = key
        super().__init__(f"{name} {key!r} does not exist")


class TimeRegressionError(AggregationError):
    """An event is older than the current bucket or candle of its series."""

    def __init__(self, series: Any, last_time: int, event_time: int):
        self.series = series
        self.last_time = last_time
        self.event_time = event_time
        super().__init__(
            f"Event time {event_time} precedes {last_time} for series {series!r}"
        )


class UnknownEventError(AggregationError):
    """No handler is registered for an event kind."""

    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"No handler registered for event kind '{kind}'")


class RequiredReadError(AggregationError):
    """A contract read without a sensible default reverted."""

    def __init__(self, label: str):
        self.label = label
        super().__init__(f"Required read reverted: {label}")
