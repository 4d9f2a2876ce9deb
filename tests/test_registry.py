"""
Host Registry Tests
===================

CRUD behaviour against the in-memory backend.
"""

import uuid

import pytest

from streambench.registry import (
    HostRegistry,
    MemoryRegistryBackend,
    ServiceData,
    ServiceNotFound,
)
from streambench.transport.service_id import port_to_service_id


@pytest.fixture
def registry():
    return HostRegistry(MemoryRegistryBackend())


class TestHostRegistry:

    def test_register_and_get(self, registry):
        service_id = port_to_service_id(5000)
        registry.register(ServiceData(service_id, "streambench"))

        service = registry.get(service_id)
        assert service.service_id == service_id
        assert service.element_name == "streambench"

    def test_get_missing(self, registry):
        with pytest.raises(ServiceNotFound):
            registry.get(uuid.uuid4())

    def test_delete(self, registry):
        service_id = uuid.uuid4()
        registry.register(ServiceData(service_id, "x"))
        registry.delete(service_id)

        with pytest.raises(ServiceNotFound):
            registry.get(service_id)
        with pytest.raises(ServiceNotFound):
            registry.delete(service_id)

    def test_rename_moves_display_name(self, registry):
        old_id, new_id = uuid.uuid4(), uuid.uuid4()
        registry.register(ServiceData(old_id, "bench"))

        service = registry.rename(old_id, new_id)

        assert service.service_id == new_id
        assert registry.get(new_id).element_name == "bench"
        with pytest.raises(ServiceNotFound):
            registry.get(old_id)

    def test_set_element_name_returns_previous(self, registry):
        service_id = uuid.uuid4()
        service = registry.register(ServiceData(service_id, "before"))

        assert service.set_element_name("after") == "before"
        assert service.element_name == "after"
        assert registry.get(service_id).element_name == "after"

    def test_iteration(self, registry):
        ids = {uuid.uuid4() for _ in range(3)}
        for service_id in ids:
            registry.register(ServiceData(service_id, str(service_id)[:8]))

        assert {s.service_id for s in registry} == ids

    def test_lock_toggle(self, registry):
        assert registry.locked
        registry.set_locked(False)
        assert not registry.locked

        service_id = uuid.uuid4()
        registry.register(ServiceData(service_id, "unlocked"))
        assert registry.get(service_id).element_name == "unlocked"

        registry.set_locked(True)
        assert registry.locked
