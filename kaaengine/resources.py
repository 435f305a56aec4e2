"""Engine resources, references to them and a registry of live resources."""

from __future__ import annotations

import weakref
from abc import ABC, abstractmethod
from typing import Generic, Hashable, TypeVar


class EngineError(Exception):
    """Raised when the engine is used in a way it does not allow."""


class Resource(ABC):
    """Something that must be set up once the engine runs, and torn down after."""

    is_initialized: bool = False

    @abstractmethod
    def _initialize(self) -> None:
        """Acquire engine-side state."""

    @abstractmethod
    def _uninitialize(self) -> None:
        """Release engine-side state."""


R = TypeVar("R", bound=Resource)
K = TypeVar("K", bound=Hashable)


class ResourceReference(Generic[R]):
    """A shared handle to a resource, possibly empty."""

    __slots__ = ("res_ptr",)

    def __init__(self, resource: R | None = None) -> None:
        self.res_ptr = resource

    def __bool__(self) -> bool:
        return self.res_ptr is not None

    def get(self) -> R | None:
        return self.res_ptr

    def get_valid(self) -> R:
        """Return the resource, raising if it is missing or not initialized."""
        if self.res_ptr is None or not self.res_ptr.is_initialized:
            raise EngineError("Detected access to uninitialized resource.")
        return self.res_ptr

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceReference):
            return NotImplemented
        return self.res_ptr is other.res_ptr

    def __hash__(self) -> int:
        return id(self.res_ptr)

    def __repr__(self) -> str:
        return f"ResourceReference({self.res_ptr!r})"


class ResourcesRegistry(Generic[K, R]):
    """Maps keys to resources without keeping the resources alive."""

    def __init__(self) -> None:
        self._registry: dict[K, weakref.ref[R]] = {}

    def _alive(self):
        for ref in list(self._registry.values()):
            resource = ref()
            if resource is not None:
                yield resource

    def initialize(self) -> None:
        for resource in self._alive():
            if not resource.is_initialized:
                resource._initialize()

    def uninitialize(self) -> None:
        for resource in self._alive():
            resource._uninitialize()

    def register_resource(self, key: K, resource: R) -> None:
        existing = self._registry.get(key)
        if existing is not None and existing() is not None:
            raise EngineError(
                "An attempt to register resource with already existing key."
            )
        self._registry[key] = weakref.ref(resource)

    def get_resource(self, key: K) -> R | None:
        ref = self._registry.get(key)
        return None if ref is None else ref()