"""ZeroMQ transport backend."""

from . import request
