"""Transport layer implementations."""

import os

from .base import (
    Transport,
    TransportError,
    TransportTimeout,
    TransportConnectionError,
    RequestCancelled,
)

_BACKEND = os.environ.get("MSCHEMA_TRANSPORT", "zmq")

if _BACKEND == "zmq":
    from .zmq import request
else:
    raise ImportError(f"unknown MSCHEMA_TRANSPORT backend: {_BACKEND!r}")
