"""
Service Identifier Codec
========================

Maps plain vsock port numbers to and from 128-bit Hyper-V service
identifiers.

Hyper-V reserves a template GUID, ``00000000-facb-11e6-bd58-64006a7986d3``,
whose first field (``time_low``, the low 32-bit field) carries a port.
Identifiers that match the template everywhere else are really ports;
anything else is an opaque Windows-side service identifier.
"""

import uuid
from typing import Optional, Union


VSOCK_TEMPLATE = uuid.UUID("00000000-facb-11e6-bd58-64006a7986d3")

MAX_PORT = 0xFFFFFFFF

# Everything except the time_low field
_TEMPLATE_MASK = (1 << 128) - 1 - (MAX_PORT << 96)


def port_to_service_id(port: int) -> uuid.UUID:
    """
    Build the service identifier standing in for ``port``.

    Raises:
        ValueError: If ``port`` does not fit in 32 bits.
    """
    if not 0 <= port <= MAX_PORT:
        raise ValueError(f"port out of range: {port}")
    return uuid.UUID(int=(VSOCK_TEMPLATE.int & _TEMPLATE_MASK) | (port << 96))


def is_port_service_id(service_id: uuid.UUID) -> bool:
    """True if ``service_id`` matches the vsock template."""
    return service_id.int & _TEMPLATE_MASK == VSOCK_TEMPLATE.int & _TEMPLATE_MASK


def service_id_to_port(service_id: uuid.UUID) -> Optional[int]:
    """Port carried by ``service_id``, or None if it is not a template id."""
    if not is_port_service_id(service_id):
        return None
    return service_id.time_low


def decode_service_id(service_id: uuid.UUID) -> Union[int, uuid.UUID]:
    """Port for template identifiers, the identifier itself otherwise."""
    port = service_id_to_port(service_id)
    return service_id if port is None else port
