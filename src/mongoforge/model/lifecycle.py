"""Model lifecycle events and observer registration.

Observers are notified at fixed points of the model lifecycle:
- validate: before any write (create or update)
- before_create / after_create: around the insert of a new record
- before_update / after_update: around the write of a persisted record
- before_save / after_save: inside both of the above, around the store call
- before_fetch / after_fetch: around a reload from the store
- before_remove / after_remove: around a delete

Usage:
    modeller = Modeller(base)

    @modeller.use
    async def audit(event: LifecycleEvent, model: BaseModel) -> None:
        ...
"""

import inspect
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class LifecycleEvent(Enum):
    """Points in the model lifecycle at which observers run."""

    VALIDATE = "validate"
    BEFORE_CREATE = "before_create"
    AFTER_CREATE = "after_create"
    BEFORE_UPDATE = "before_update"
    AFTER_UPDATE = "after_update"
    BEFORE_SAVE = "before_save"
    AFTER_SAVE = "after_save"
    BEFORE_FETCH = "before_fetch"
    AFTER_FETCH = "after_fetch"
    BEFORE_REMOVE = "before_remove"
    AFTER_REMOVE = "after_remove"


# Observer signature: (LifecycleEvent, model) -> None, sync or async
Observer = Callable[[LifecycleEvent, Any], Awaitable[None] | None]


class ObserverRegistry:
    """Ordered set of lifecycle observers belonging to one model type.

    Observers run sequentially in registration order. An exception raised
    by an observer propagates to the caller and aborts the operation that
    emitted the event.
    """

    def __init__(self, observers: list[Observer] | None = None):
        self._observers: list[Observer] = list(observers or [])

    def register(self, observer: Observer) -> Observer:
        """Register an observer.

        Idempotent: registering the same callable twice is a no-op.

        Returns:
            The observer, so this can be used as a decorator
        """
        if observer not in self._observers:
            self._observers.append(observer)
        return observer

    def list_registered(self) -> list[Observer]:
        return list(self._observers)

    def copy(self) -> "ObserverRegistry":
        return ObserverRegistry(self._observers)

    def clear(self) -> None:
        self._observers.clear()

    def __len__(self) -> int:
        return len(self._observers)

    async def notify(self, event: LifecycleEvent, model: Any) -> None:
        """Run every observer for ``event`` against ``model``."""
        for observer in self._observers:
            logger.debug(
                "Notifying %s of %s on %s",
                getattr(observer, "__name__", observer),
                event.value,
                type(model).__name__,
            )
            result = observer(event, model)
            if inspect.isawaitable(result):
                await result
