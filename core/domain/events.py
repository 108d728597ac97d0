"""
Lifecycle event primitives.

Every state change of a license, activation or subscription is announced
as an event once storage has accepted it. Handlers subscribed on the bus
turn events into audit records.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID, uuid4


@dataclass(frozen=True)
class DomainEvent(ABC):
    """
    Something that happened to one aggregate.

    Subclasses pass the identifying fields to ``__init__`` and describe
    their own data through ``payload``.
    """

    event_id: UUID
    occurred_at: datetime
    aggregate_id: str
    event_type: str

    # Entity type recorded in the audit trail
    entity_type = "license"

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.event_type = cls.__name__

    def __post_init__(self):
        object.__setattr__(self, "event_id", getattr(self, "event_id", None) or uuid4())
        object.__setattr__(
            self,
            "occurred_at",
            getattr(self, "occurred_at", None) or datetime.now(timezone.utc),
        )

    @property
    def actor(self) -> str:
        """Who triggered the event; lifecycle events default to the system."""
        return self.__dict__.get("_actor", "system")

    def payload(self) -> Dict[str, Any]:
        """Event-specific data, overridden by subclasses."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        """Flat representation used for log context."""
        return {
            "event_id": str(self.event_id),
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "aggregate_id": self.aggregate_id,
            "actor": self.actor,
            "occurred_at": self.occurred_at.isoformat(),
            "data": self.payload(),
        }


class EventHandler(ABC):
    """Reacts to published lifecycle events."""

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        raise NotImplementedError


class EventBus(ABC):
    """
    Delivers lifecycle events to subscribed handlers.

    The lifecycle manager only publishes; wiring handlers is left to the
    application start-up.
    """

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        """
        Deliver an event to every handler subscribed to its type.

        Args:
            event: Event describing a committed change
        """
        raise NotImplementedError

    @abstractmethod
    def subscribe(self, event_type: type, handler: EventHandler) -> None:
        """
        Register a handler for one event type.

        Args:
            event_type: DomainEvent subclass
            handler: Handler to call on publish
        """
        raise NotImplementedError
