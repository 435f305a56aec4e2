import gc

import pytest

from kaaengine.resources import (
    EngineError,
    Resource,
    ResourceReference,
    ResourcesRegistry,
)


class Dummy(Resource):
    def __init__(self):
        self.init_calls = 0
        self.uninit_calls = 0

    def _initialize(self):
        self.init_calls += 1
        self.is_initialized = True

    def _uninitialize(self):
        self.uninit_calls += 1
        self.is_initialized = False


def test_empty_reference_is_falsy_and_invalid():
    ref = ResourceReference()
    assert not ref
    assert ref.get() is None
    with pytest.raises(EngineError, match="uninitialized resource"):
        ref.get_valid()


def test_reference_to_uninitialized_resource_is_invalid():
    resource = Dummy()
    ref = ResourceReference(resource)
    assert ref
    assert ref.get() is resource
    with pytest.raises(EngineError):
        ref.get_valid()
    resource._initialize()
    assert ref.get_valid() is resource


def test_reference_equality_and_hash_follow_identity():
    resource = Dummy()
    a = ResourceReference(resource)
    b = ResourceReference(resource)
    c = ResourceReference(Dummy())
    assert a == b
    assert a != c
    assert len({a, b, c}) == 2


def test_registry_returns_registered_resource():
    registry = ResourcesRegistry()
    resource = Dummy()
    registry.register_resource("key", resource)
    assert registry.get_resource("key") is resource
    assert registry.get_resource("missing") is None


def test_registry_does_not_keep_resources_alive():
    registry = ResourcesRegistry()
    resource = Dummy()
    registry.register_resource("key", resource)
    del resource
    gc.collect()
    assert registry.get_resource("key") is None


def test_registry_rejects_duplicate_live_key():
    registry = ResourcesRegistry()
    first = Dummy()
    registry.register_resource("key", first)
    with pytest.raises(EngineError, match="already existing key"):
        registry.register_resource("key", Dummy())
    del first
    gc.collect()
    second = Dummy()
    registry.register_resource("key", second)
    assert registry.get_resource("key") is second


def test_registry_initialize_and_uninitialize():
    registry = ResourcesRegistry()
    first, second = Dummy(), Dummy()
    second._initialize()
    registry.register_resource("a", first)
    registry.register_resource("b", second)
    registry.initialize()
    assert first.is_initialized
    assert (first.init_calls, second.init_calls) == (1, 1)
    registry.uninitialize()
    assert not first.is_initialized and not second.is_initialized
    assert (first.uninit_calls, second.uninit_calls) == (1, 1)