"""
In-process change notification.

Write paths publish a ChangeEvent naming the mutated entity and every
parent whose derived views are now stale (a question change names its
section and its test). Subscribers such as read-side caches register a
callback and invalidate on the entities they care about.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from loguru import logger


class ChangeAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    SUBMITTED = "submitted"
    GRADED = "graded"


@dataclass(frozen=True)
class EntityRef:
    entity: str
    entity_id: int

    def __str__(self) -> str:
        return f"{self.entity}:{self.entity_id}"


@dataclass(frozen=True)
class ChangeEvent:
    entity: str
    entity_id: int
    action: ChangeAction
    parents: tuple[EntityRef, ...] = field(default_factory=tuple)

    @property
    def ref(self) -> EntityRef:
        return EntityRef(self.entity, self.entity_id)

    def affects(self, entity: str, entity_id: int) -> bool:
        """True if the event touches the entity itself or names it as a parent."""
        target = EntityRef(entity, entity_id)
        return target == self.ref or target in self.parents


Subscriber = Callable[[ChangeEvent], None]


class ChangeNotifier:
    """Synchronous publish/subscribe for change events."""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback. Returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, event: ChangeEvent) -> None:
        parents = ", ".join(str(p) for p in event.parents)
        logger.debug(
            f"Change {event.action.value} {event.ref}" + (f" (parents: {parents})" if parents else "")
        )
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception as e:
                # A failing subscriber must not undo a committed write
                logger.error(f"Change subscriber {callback!r} failed for {event.ref}: {e}")

    def notify(
        self,
        entity: str,
        entity_id: int,
        action: ChangeAction,
        *parents: tuple[str, int],
    ) -> ChangeEvent:
        event = ChangeEvent(
            entity=entity,
            entity_id=entity_id,
            action=action,
            parents=tuple(EntityRef(name, pid) for name, pid in parents),
        )
        self.publish(event)
        return event


notifier = ChangeNotifier()
