"""Generic name-keyed registry used to route events to handlers."""

import logging
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Registry(Generic[T]):
    """
    Generic registry of named items.

    Supports:
    - Decorator-based registration
    - Lookup with a helpful error listing what is available
    - Per-item metadata (description, module)

    Example:
        handlers = Registry[Handler]("handlers")

        @handlers.register("pair_swap", description="Swap on a pair")
        def handle_swap(ctx, event):
            ...
    """

    def __init__(self, name: str):
        """Initialize registry with a name for logging."""
        self.name = name
        self._items: dict[str, T] = {}
        self._metadata: dict[str, dict[str, Any]] = {}

    def register(
        self,
        name: str,
        *,
        description: str = "",
        **metadata: Any,
    ) -> Callable[[T], T]:
        """
        Decorator to register an item under a name.

        Args:
            name: Unique name to register the item under
            description: Human-readable description
            **metadata: Additional metadata to store

        Returns:
            Decorator function returning the item unchanged
        """

        def decorator(item: T) -> T:
            if name in self._items:
                logger.warning(
                    f"[{self.name}] Overwriting existing registration: {name}"
                )
            self._items[name] = item
            self._metadata[name] = {
                "description": description,
                "item": getattr(item, "__name__", repr(item)),
                "module": getattr(item, "__module__", None),
                **metadata,
            }
            logger.debug(f"[{self.name}] Registered: {name}")
            return item

        return decorator

    def get(self, name: str) -> T:
        """
        Get a registered item by name.

        Raises:
            KeyError: If name is not registered
        """
        if name not in self._items:
            available = ", ".join(self._items.keys())
            raise KeyError(
                f"[{self.name}] '{name}' not found. Available: {available}"
            )
        return self._items[name]

    def list(self) -> list[str]:
        """Get list of all registered names."""
        return list(self._items.keys())

    def list_with_metadata(self) -> dict[str, dict[str, Any]]:
        """Get all registered items with their metadata."""
        return {name: self._metadata.get(name, {}) for name in self._items}

    def __contains__(self, name: str) -> bool:
        return name in self._items

    def __len__(self) -> int:
        return len(self._items)
