"""
Transport Endpoints
===================

Typed endpoint models and parsing from configuration strings.

Accepted forms:
    unix:/run/streambench.sock   -> UnixEndpoint
    /run/streambench.sock        -> UnixEndpoint (bare path)
    hv:<vm>:<service>            -> HyperVEndpoint

For Hyper-V endpoints ``<vm>`` is a GUID or one of the well-known aliases
(wildcard, children, loopback, parent) and ``<service>`` is a GUID or a
plain port number, which is encoded with the vsock template.
"""

import uuid
from typing import Literal, Union

from pydantic import BaseModel, Field

from streambench.transport.service_id import port_to_service_id


HV_GUID_WILDCARD = uuid.UUID("00000000-0000-0000-0000-000000000000")
HV_GUID_CHILDREN = uuid.UUID("90db8b89-0d35-4f79-8ce9-49ea0ac8b7cd")
HV_GUID_LOOPBACK = uuid.UUID("e0e16197-dd56-4a10-9195-5ee7a155a838")
HV_GUID_PARENT = uuid.UUID("a42e7cda-d03f-480c-9cc2-a4de20abb878")

VM_ALIASES = {
    "wildcard": HV_GUID_WILDCARD,
    "children": HV_GUID_CHILDREN,
    "loopback": HV_GUID_LOOPBACK,
    "parent": HV_GUID_PARENT,
}


class UnixEndpoint(BaseModel):
    """Filesystem-path-addressed local socket."""

    kind: Literal["unix"] = "unix"
    path: str = Field(min_length=1, description="Socket path")

    def __str__(self) -> str:
        return f"unix:{self.path}"


class HyperVEndpoint(BaseModel):
    """Hypervisor-mediated socket addressed by (vm id, service id)."""

    kind: Literal["hv"] = "hv"
    vm_id: uuid.UUID = Field(description="Partition GUID or well-known alias")
    service_id: uuid.UUID = Field(description="Service GUID")

    def __str__(self) -> str:
        return f"hv:{self.vm_id}:{self.service_id}"


Endpoint = Union[UnixEndpoint, HyperVEndpoint]


def _parse_vm_id(value: str) -> uuid.UUID:
    alias = VM_ALIASES.get(value.lower())
    if alias is not None:
        return alias
    return uuid.UUID(value)


def _parse_service_id(value: str) -> uuid.UUID:
    if value.isdigit():
        return port_to_service_id(int(value))
    return uuid.UUID(value)


def parse_endpoint(value: str) -> Endpoint:
    """
    Parse an endpoint string.

    Raises:
        ValueError: If the string is empty or a Hyper-V part is malformed.
    """
    if not value:
        raise ValueError("endpoint must not be empty")

    if value.startswith("hv:"):
        parts = value[3:].split(":")
        if len(parts) != 2:
            raise ValueError(f"expected hv:<vm>:<service>, got {value!r}")
        return HyperVEndpoint(
            vm_id=_parse_vm_id(parts[0]),
            service_id=_parse_service_id(parts[1]),
        )

    if value.startswith("unix:"):
        value = value[5:]
    return UnixEndpoint(path=value)
