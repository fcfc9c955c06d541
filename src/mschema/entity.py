"""Broker entity interface.

Any object the broker can create or destroy (schemas, schema attachments)
implements :class:`Entity`; :meth:`mschema.connection.Connection.create`
is the one routine that moves an entity across the wire.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from . import errors


class Entity(ABC):
    """Minimal contract for a broker-managed entity."""

    @abstractmethod
    def creation_subject(self) -> str:
        """Subject the creation request is published on."""

    @abstractmethod
    def creation_request(self) -> Any:
        """Wire payload for the creation request."""

    def handle_creation_response(self, response: bytes) -> None:
        """Interpret the broker reply; raise on failure."""
        default_handle_creation_response(response)

    def destruction_subject(self) -> str:
        """Subject the destruction request is published on, if any."""
        return ""

    def destruction_request(self) -> Optional[Any]:
        """Wire payload for the destruction request, if any."""
        return None


def default_handle_creation_response(response: bytes) -> None:
    """Generic reply handling: an empty reply is success, anything else is
    the broker's error text.
    """

    if not response:
        return

    if isinstance(response, (bytes, bytearray, memoryview)):
        response = bytes(response).decode("utf-8", errors="replace")

    raise errors.BrokerRejected(response)
