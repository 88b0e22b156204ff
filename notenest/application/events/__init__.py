from .bus import EventBus, Subscriber
from .processor import EventProcessor
from .serializer import EventSerializer, StoredEvent, default_serializer
from .store import EventStore, InMemoryEventStore

__all__ = [
    "EventBus",
    "EventProcessor",
    "EventSerializer",
    "EventStore",
    "InMemoryEventStore",
    "StoredEvent",
    "Subscriber",
    "default_serializer",
]
