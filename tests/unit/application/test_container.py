"""Tests for the dependency container."""

from typing import Generic, TypeVar

import pytest

from notenest.application.container import (
    ContextualBinding,
    DependencyCircularReferenceError,
    DependencyContainer,
    DependencyNotFoundError,
)

T = TypeVar("T")

class Clock:
    pass

class Scheduler:
    def __init__(self, clock: Clock, interval: float = 1.0):
        self.clock = clock
        self.interval = interval

class Box(Generic[T]):
    def __init__(self, clock: Clock):
        self.clock = clock

class Chicken:
    def __init__(self, egg):
        self.egg = egg

class Egg:
    def __init__(self, chicken: Chicken):
        self.chicken = chicken

def hatch(egg: Egg) -> Chicken:
    return Chicken(egg)

def test_singletons_are_resolved_once():
    container = DependencyContainer()
    container.register_singleton(Clock)

    assert container.resolve(Clock) is container.resolve(Clock)

def test_annotated_parameters_are_injected_and_defaults_kept():
    container = DependencyContainer()
    container.register_singleton(Clock)
    container.register_singleton(Scheduler)

    scheduler = container.resolve(Scheduler)

    assert scheduler.clock is container.resolve(Clock)
    assert scheduler.interval == 1.0

def test_generic_annotation_resolves_through_origin():
    container = DependencyContainer()
    container.register_singleton(Clock)
    container.register_singleton(Box)

    assert container.resolve(Box[int]) is container.resolve(Box)

def test_missing_dependency():
    with pytest.raises(DependencyNotFoundError, match="Dependency Clock not found"):
        DependencyContainer().resolve(Clock)

def test_circular_dependency():
    container = DependencyContainer()
    container.register_singleton(Chicken, hatch)
    container.register_singleton(Egg)

    with pytest.raises(
        DependencyCircularReferenceError,
        match="Circular reference detected: Chicken -> Egg -> Chicken",
    ):
        container.resolve(Chicken)

    # The failed resolution leaves nothing behind on the path
    assert container.resolution_path == []

def test_child_container_falls_back_to_parent():
    root = DependencyContainer()
    root.register_singleton(Clock)
    child = root.child()
    child.register_singleton(Scheduler)

    assert child.resolve(Scheduler).clock is root.resolve(Clock)
    with pytest.raises(DependencyNotFoundError):
        root.resolve(Scheduler)

def test_contextual_binding_keeps_one_child_per_context():
    binding = ContextualBinding(DependencyContainer())

    assert binding.container_for(Clock) is binding.container_for(Clock)
    assert binding.container_for(Clock) is not binding.container_for(Scheduler)

def test_all_of_type_follows_registration_order():
    root = DependencyContainer()
    root.register_singleton(Clock)
    root.register_singleton(Scheduler)
    binding = ContextualBinding(root)

    assert binding.all_of_type(object) == [Clock, Scheduler]
    assert binding.all_of_type(Scheduler) == [Scheduler]
