from .repository import AggregateFactory, AggregateRepository

__all__ = ["AggregateFactory", "AggregateRepository"]
