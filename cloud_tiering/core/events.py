"""Simulation events and event types."""

from enum import Enum
from typing import Any, Callable, Dict, List
from dataclasses import dataclass, field
from loguru import logger


class EventType(Enum):
    """Types of simulation events."""

    # Clock
    CLOCK_TICK = "clock_tick"
    SIMULATION_END = "simulation_end"

    # VM lifecycle
    VM_CREATED = "vm_created"
    VM_DESTROYED = "vm_destroyed"

    # Cloudlet lifecycle
    CLOUDLET_STARTED = "cloudlet_started"
    CLOUDLET_FINISHED = "cloudlet_finished"


@dataclass
class SimulationEvent:
    """A simulation event with timestamp and associated data."""

    timestamp: float
    event_type: EventType
    resource_id: int
    data: Dict[str, Any] = field(default_factory=dict)


Handler = Callable[[SimulationEvent], None]


class EventBus:
    """Synchronous publish/subscribe dispatch for engine notifications."""

    def __init__(self) -> None:
        self.event_handlers: Dict[EventType, List[Handler]] = {}

    def subscribe(self, event_type: EventType, handler: Handler) -> None:
        """Subscribe a handler to an event type."""
        self.event_handlers.setdefault(event_type, []).append(handler)
        logger.debug(f"Handler subscribed to {event_type.value}")

    def publish(self, event: SimulationEvent) -> None:
        """Publish an event to all subscribers, in subscription order."""
        for handler in self.event_handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error handling event {event.event_type.value} "
                             f"at {event.timestamp:.2f}s: {e}")
                raise
