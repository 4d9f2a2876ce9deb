"""
Host Service Registry
=====================

Directory of Hyper-V socket services registered on the host.

Before a Windows host accepts hypervisor socket connections for a service,
the service GUID must exist under the GuestCommunicationServices key with
an ``ElementName`` value holding a display name. This module wraps that
directory with plain create/read/rename/delete operations.

Design Rules:
    - Storage is pluggable (winreg on Windows, in-memory elsewhere)
    - An optional lock serializes access to the whole directory
    - Missing entries raise ServiceNotFound
"""

import logging
import threading
import uuid
from contextlib import nullcontext
from dataclasses import dataclass
from typing import ContextManager, Dict, Iterator, List, Optional, Protocol


logger = logging.getLogger(__name__)


SERVICES_KEY = (
    "SOFTWARE\\Microsoft\\Windows NT\\CurrentVersion\\"
    "Virtualization\\GuestCommunicationServices"
)
ELEMENT_NAME = "ElementName"


class ServiceNotFound(KeyError):
    """Raised when a service GUID is not registered."""
    pass


class RegistryBackend(Protocol):
    """Storage for service entries keyed by GUID string."""

    def create_entry(self, name: str, element_name: str) -> None:
        ...

    def get_element_name(self, name: str) -> str:
        ...

    def set_element_name(self, name: str, element_name: str) -> None:
        ...

    def delete_entry(self, name: str) -> None:
        ...

    def entry_names(self) -> List[str]:
        ...


class MemoryRegistryBackend:
    """Dict-backed registry storage."""

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}

    def create_entry(self, name: str, element_name: str) -> None:
        self._entries[name] = element_name

    def get_element_name(self, name: str) -> str:
        try:
            return self._entries[name]
        except KeyError:
            raise ServiceNotFound(name) from None

    def set_element_name(self, name: str, element_name: str) -> None:
        if name not in self._entries:
            raise ServiceNotFound(name)
        self._entries[name] = element_name

    def delete_entry(self, name: str) -> None:
        try:
            del self._entries[name]
        except KeyError:
            raise ServiceNotFound(name) from None

    def entry_names(self) -> List[str]:
        return list(self._entries)


class WinRegBackend:
    """
    Registry storage in HKEY_LOCAL_MACHINE (Windows only).

    Args:
        create: Create the services key if it does not exist
    """

    def __init__(self, create: bool = False) -> None:
        import winreg

        self._winreg = winreg
        if create:
            self._root = winreg.CreateKeyEx(
                winreg.HKEY_LOCAL_MACHINE, SERVICES_KEY, 0, winreg.KEY_ALL_ACCESS
            )
        else:
            self._root = winreg.OpenKeyEx(
                winreg.HKEY_LOCAL_MACHINE, SERVICES_KEY, 0, winreg.KEY_ALL_ACCESS
            )

    def create_entry(self, name: str, element_name: str) -> None:
        winreg = self._winreg
        with winreg.CreateKeyEx(self._root, name, 0, winreg.KEY_ALL_ACCESS) as key:
            winreg.SetValueEx(key, ELEMENT_NAME, 0, winreg.REG_SZ, element_name)

    def get_element_name(self, name: str) -> str:
        winreg = self._winreg
        try:
            with winreg.OpenKeyEx(self._root, name) as key:
                value, _ = winreg.QueryValueEx(key, ELEMENT_NAME)
        except FileNotFoundError:
            raise ServiceNotFound(name) from None
        return value

    def set_element_name(self, name: str, element_name: str) -> None:
        winreg = self._winreg
        try:
            with winreg.OpenKeyEx(self._root, name, 0, winreg.KEY_SET_VALUE) as key:
                winreg.SetValueEx(key, ELEMENT_NAME, 0, winreg.REG_SZ, element_name)
        except FileNotFoundError:
            raise ServiceNotFound(name) from None

    def delete_entry(self, name: str) -> None:
        try:
            self._winreg.DeleteKey(self._root, name)
        except FileNotFoundError:
            raise ServiceNotFound(name) from None

    def entry_names(self) -> List[str]:
        names = []
        index = 0
        while True:
            try:
                names.append(self._winreg.EnumKey(self._root, index))
            except OSError:
                return names
            index += 1


@dataclass(frozen=True, slots=True)
class ServiceData:
    """A service GUID and its display name."""

    service_id: uuid.UUID
    element_name: str


class Service:
    """Registered service entry bound to its registry."""

    def __init__(self, registry: "HostRegistry", data: ServiceData) -> None:
        self._registry = registry
        self._data = data

    @property
    def data(self) -> ServiceData:
        return self._data

    @property
    def service_id(self) -> uuid.UUID:
        return self._data.service_id

    @property
    def element_name(self) -> str:
        return self._data.element_name

    def set_element_name(self, element_name: str) -> str:
        """Rename the service. Returns the previous display name."""
        self._registry._set_element_name(self.service_id, element_name)
        previous = self._data.element_name
        self._data = ServiceData(self.service_id, element_name)
        return previous

    def __repr__(self) -> str:
        return f"Service({self.service_id}, {self.element_name!r})"


class HostRegistry:
    """
    Service directory with optional whole-directory locking.

    Example:
        registry = HostRegistry(WinRegBackend(create=True))
        registry.register(ServiceData(port_to_service_id(5000), "streambench"))
    """

    def __init__(self, backend: RegistryBackend, locked: bool = True) -> None:
        self._backend = backend
        self._lock: Optional[threading.RLock] = threading.RLock() if locked else None

    @property
    def locked(self) -> bool:
        return self._lock is not None

    def set_locked(self, locked: bool) -> None:
        """Enable or disable the directory lock."""
        if locked and self._lock is None:
            self._lock = threading.RLock()
        elif not locked:
            self._lock = None

    def _guard(self) -> ContextManager:
        return self._lock if self._lock is not None else nullcontext()

    def register(self, data: ServiceData) -> Service:
        """Create (or overwrite) the entry for ``data.service_id``."""
        with self._guard():
            self._backend.create_entry(str(data.service_id), data.element_name)
        logger.info(f"Registered service {data.service_id} as {data.element_name!r}")
        return Service(self, data)

    def get(self, service_id: uuid.UUID) -> Service:
        """
        Look up a registered service.

        Raises:
            ServiceNotFound: If the GUID is not registered.
        """
        with self._guard():
            element_name = self._backend.get_element_name(str(service_id))
        return Service(self, ServiceData(service_id, element_name))

    def delete(self, service_id: uuid.UUID) -> None:
        """
        Remove a registered service.

        Raises:
            ServiceNotFound: If the GUID is not registered.
        """
        with self._guard():
            self._backend.delete_entry(str(service_id))
        logger.info(f"Deleted service {service_id}")

    def rename(self, from_id: uuid.UUID, to_id: uuid.UUID) -> Service:
        """Move a service's display name to a new GUID."""
        with self._guard():
            element_name = self.get(from_id).element_name
            self.delete(from_id)
            return self.register(ServiceData(to_id, element_name))

    def _set_element_name(self, service_id: uuid.UUID, element_name: str) -> None:
        with self._guard():
            self._backend.set_element_name(str(service_id), element_name)

    def __iter__(self) -> Iterator[Service]:
        with self._guard():
            names = self._backend.entry_names()
        for name in names:
            yield self.get(uuid.UUID(name))
