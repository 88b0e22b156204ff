import inspect
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from itertools import chain
from typing import Any, Generic, Optional, TypeVar, cast, get_origin

from notenest.domain.exceptions import NoteNestError

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)


def _name_of(dependency_type: Any) -> str:
    return getattr(dependency_type, "__name__", str(dependency_type))


class DependencyNotFoundError(NoteNestError):
    @classmethod
    def from_type(cls, dependency_type: Any) -> "DependencyNotFoundError":
        return cls(f"Dependency {_name_of(dependency_type)} not found")


class DependencyCircularReferenceError(NoteNestError):
    @classmethod
    def from_path(cls, path: list[Any]) -> "DependencyCircularReferenceError":
        chain_text = " -> ".join(_name_of(t) for t in path)
        return cls(f"Circular reference detected: {chain_text}")


class Dependency(ABC, Generic[T]):
    @abstractmethod
    def resolve(self, container: "DependencyContainer") -> T:
        pass


class FactoryDependency(Dependency[T]):
    """Calls a factory, injecting every annotated parameter that has no default."""

    def __init__(self, factory: Callable[..., T]):
        self.factory = factory
        self.parameters = {
            name: parameter.annotation
            for name, parameter in inspect.signature(factory).parameters.items()
            if parameter.annotation is not inspect.Parameter.empty
            and parameter.default is inspect.Parameter.empty
        }

    def resolve(self, container: "DependencyContainer") -> T:
        arguments = {name: container.resolve(kind) for name, kind in self.parameters.items()}
        return self.factory(**arguments)


class SingletonDependency(Dependency[T]):
    def __init__(self, factory: FactoryDependency[T]):
        self.factory = factory
        self.instance: T | None = None

    def resolve(self, container: "DependencyContainer") -> T:
        if self.instance is None:
            self.instance = self.factory.resolve(container)
            LOGGER.debug(
                "Created dependency",
                extra={"dependency": _name_of(type(self.instance))},
            )
        return self.instance


class DependencyContainer:
    """Type-keyed registrations with fallback to a parent container.

    A type registered here wins over the parent's registration. Children
    share their root's resolution path, so a circular reference error names
    every type being resolved, including those that came from a child.
    """

    def __init__(self, parent: Optional["DependencyContainer"] = None):
        self.dependencies: dict[type, Dependency[Any]] = {}
        self.parent = parent
        self.resolution_path: list[Any] = parent.resolution_path if parent else []

    def child(self) -> "DependencyContainer":
        return DependencyContainer(self)

    @contextmanager
    def _resolving(self, dependency_type: Any) -> Iterator[None]:
        if dependency_type in self.resolution_path:
            start = self.resolution_path.index(dependency_type)
            cycle = self.resolution_path[start:] + [dependency_type]
            raise DependencyCircularReferenceError.from_path(cycle)
        self.resolution_path.append(dependency_type)
        try:
            yield
        finally:
            self.resolution_path.pop()

    def _lookup(self, dependency_type: Any) -> Dependency[Any] | None:
        if dependency_type in self.dependencies:
            return self.dependencies[dependency_type]
        # AggregateRepository[Todo] resolves through AggregateRepository
        origin = get_origin(dependency_type)
        if origin is not None:
            return self.dependencies.get(origin)
        return None

    def resolve(self, dependency_type: type[T]) -> T:
        dependency = self._lookup(dependency_type)
        if dependency is None:
            if self.parent is None:
                raise DependencyNotFoundError.from_type(dependency_type)
            return self.parent.resolve(dependency_type)

        with self._resolving(get_origin(dependency_type) or dependency_type):
            return cast("T", dependency.resolve(self))

    def register(self, dependency_type: type[T], dependency: Dependency[T]) -> None:
        self.dependencies[dependency_type] = dependency

    def register_singleton(
        self, dependency_type: type[T], factory: Callable[..., T] | None = None
    ) -> None:
        factory_dependency = FactoryDependency(factory or dependency_type)
        self.register(dependency_type, SingletonDependency(factory_dependency))


class ContextualBinding:
    """A root container plus one child container per context type.

    Each aggregate gets its own child so that its repository, and the
    handlers that depend on it, resolve against that aggregate only.
    """

    def __init__(self, container: "DependencyContainer"):
        self.container = container
        self.type_to_child_container: dict[type | None, DependencyContainer] = OrderedDict()

    def container_for(self, context: type | None = None) -> "DependencyContainer":
        if context not in self.type_to_child_container:
            self.type_to_child_container[context] = self.container.child()
        return self.type_to_child_container[context]

    def resolve(self, type_to_resolve: type[T], context: type | None = None) -> T:
        context = context or type_to_resolve
        return self.container_for(context).resolve(type_to_resolve)

    def resolve_all_of_type(self, base: type[T]) -> list[T]:
        return [self.resolve(t) for t in self.all_of_type(base)]

    def all_of_type(self, base: type[T]) -> list[type[T]]:
        # Root registrations come first and a type is listed once even
        # when it is also a context key.
        candidates = chain(self.container.dependencies, self.type_to_child_container)
        return [
            c
            for c in OrderedDict.fromkeys(candidates)
            if isinstance(c, type) and issubclass(c, base)
        ]
