"""Transport interface.

This is the (small) contract that transport implementations should follow:
publish a request on a subject, and block for the one correlated reply.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import Optional

from ..errors import ClientError


# Transport agnostic exceptions

class TransportError(ClientError):
    """Base class for all transport-layer errors."""


class TransportTimeout(TransportError):
    """A request did not receive a timely response."""


class TransportConnectionError(TransportError):
    """The transport could not establish or maintain a connection."""


class RequestCancelled(TransportError):
    """The caller abandoned the wait for a response."""


class Transport(ABC):
    """Minimal contract for a request/reply transport."""

    @abstractmethod
    def request(
        self,
        subject: str,
        payload: bytes,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> bytes:
        """Send *payload* on *subject* and return the reply payload."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the underlying connection/socket."""

    @property
    def is_open(self) -> bool:
        """Whether the transport is currently connected."""
        return False
