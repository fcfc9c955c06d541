"""ZeroMQ request/reply transport.

Requests go out on a DEALER socket owned by a single background thread;
callers never touch the socket directly. Each request carries a locally
unique id, and the reply with the matching id completes the caller's
:class:`PendingRequest`.

Public surface area:
    - Client class
    - client(endpoint) cache helper
    - send(endpoint, subject, payload, timeout)
"""

from __future__ import annotations

import atexit
import itertools
import logging
import queue
import threading
from typing import Dict, Optional, Tuple

import zmq

from ..base import (
    RequestCancelled,
    Transport,
    TransportConnectionError,
    TransportError,
    TransportTimeout,
)
from .framing import VersionMismatch, from_reply_frames, to_request_frames


logger = logging.getLogger(__name__)

zmq_context = zmq.Context()


_id_min = 0
_id_max = 0xFFFFFFFF
_id_lock = threading.Lock()
_id_ticker = itertools.count(_id_min)


def _id_next() -> bytes:
    """Return the next locally unique request identification number."""

    global _id_ticker
    with _id_lock:
        msg_id = next(_id_ticker)
        if msg_id >= _id_max:
            _id_ticker = itertools.count(_id_min)

    return ("%08x" % msg_id).encode()


class PendingRequest:
    """Client-side helper that blocks a caller until its reply arrives."""

    # How often a waiting caller checks its cancellation event.
    cancel_interval = 0.05

    def __init__(self, subject: str, payload: bytes):
        self.id = _id_next()
        self.subject = subject
        self.payload = payload
        self.response: Optional[bytes] = None
        self.error: Optional[TransportError] = None
        self.abandoned = False
        self.rep_event = threading.Event()

    def poll(self) -> bool:
        return self.rep_event.is_set()

    def wait(self, timeout: Optional[float], cancel: Optional[threading.Event] = None) -> bytes:
        """Block until the reply arrives, *timeout* expires, or *cancel* is
        set. Returns the reply payload.
        """

        if cancel is None:
            done = self.rep_event.wait(timeout)
        else:
            done = self._wait_cancellable(timeout, cancel)

        if not done:
            raise TransportTimeout(f"{self.subject}: no response in {timeout:.2f} sec")

        if self.error is not None:
            raise self.error

        return self.response

    def _wait_cancellable(self, timeout: Optional[float], cancel: threading.Event) -> bool:

        remaining = timeout
        while True:
            if cancel.is_set():
                raise RequestCancelled(f"{self.subject}: request cancelled")

            interval = self.cancel_interval
            if remaining is not None:
                interval = min(interval, remaining)

            if self.rep_event.wait(interval):
                return True

            if remaining is not None:
                remaining -= interval
                if remaining <= 0:
                    return False

    def _complete(self, response: bytes) -> None:
        self.response = response
        self.rep_event.set()

    def _fail(self, error: TransportError) -> None:
        self.error = error
        self.rep_event.set()


class Client(Transport):
    """Issue requests via a ZeroMQ DEALER socket and receive replies."""

    timeout = 5.0

    def __init__(self, endpoint: str, timeout: Optional[float] = None):
        self.endpoint = endpoint
        if timeout is not None:
            self.timeout = float(timeout)

        identity = f"mschema.Client.{id(self)}".encode()

        self.socket = zmq_context.socket(zmq.DEALER)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.identity = identity
        self.socket.connect(endpoint)

        self._outbox = queue.SimpleQueue()

        internal = f"inproc://mschema.Client:signal:{id(self)}"
        self._signal_rx = zmq_context.socket(zmq.PAIR)
        self._signal_rx.bind(internal)
        self._signal_tx = zmq_context.socket(zmq.PAIR)
        self._signal_tx.connect(internal)
        self._signal_lock = threading.Lock()

        self._pending: Dict[bytes, PendingRequest] = {}
        self.shutdown = False
        self._thread = threading.Thread(target=self.run, daemon=True)
        self._thread.start()

    @property
    def is_open(self) -> bool:
        return not self.shutdown

    def _handle_incoming(self, parts: Tuple[bytes, ...]) -> None:
        try:
            msg_id, payload = from_reply_frames(parts)
        except VersionMismatch as exc:
            pending = self._pending.pop(exc.msg_id, None)
            if pending is not None:
                pending._fail(exc)
            return
        except TransportError:
            logger.exception("discarding malformed reply from %s", self.endpoint)
            return

        pending = self._pending.pop(msg_id, None)
        if pending is None:
            # The original caller gave up; nothing more to do.
            return

        pending._complete(payload)

    def _handle_outgoing(self) -> None:
        # Clear one signal and send one request. Requests whose caller has
        # already given up are dropped without being sent.
        self._signal_rx.recv(flags=zmq.NOBLOCK)
        pending: PendingRequest = self._outbox.get(block=False)

        if pending is None or pending.abandoned:
            return

        if self.shutdown:
            pending._fail(TransportConnectionError(f"connection to {self.endpoint} closed"))
            return

        self.socket.send_multipart(to_request_frames(pending.id, pending.subject, pending.payload))

    def run(self) -> None:
        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)
        poller.register(self._signal_rx, zmq.POLLIN)

        while not self.shutdown:
            try:
                for active, _flag in poller.poll(1000):
                    if active == self._signal_rx:
                        self._handle_outgoing()
                    elif active == self.socket:
                        parts = tuple(self.socket.recv_multipart())
                        self._handle_incoming(parts)
            except Exception:
                if self.shutdown:
                    break
                logger.exception("request loop error on %s", self.endpoint)

        self._teardown()

    def _teardown(self) -> None:
        closed = TransportConnectionError(f"connection to {self.endpoint} closed")
        for pending in list(self._pending.values()):
            pending._fail(closed)
        self._pending.clear()

        # Requests queued but never sent get the same answer.
        while True:
            try:
                pending = self._outbox.get_nowait()
            except queue.Empty:
                break
            if pending is not None:
                pending._fail(closed)

        self.socket.close()
        self._signal_rx.close()

    def request(
        self,
        subject: str,
        payload: bytes,
        timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
    ) -> bytes:
        if timeout is None:
            timeout = self.timeout

        pending = PendingRequest(subject, payload)
        logger.debug("request %s on %s (%d bytes)", pending.id, subject, len(payload))

        # ZeroMQ sockets are not thread-safe; the signal socket is shared
        # by every caller, hence the lock. close() takes the same lock, so
        # nothing is queued once shutdown is set.

        with self._signal_lock:
            if self.shutdown:
                raise TransportConnectionError(f"connection to {self.endpoint} is closed")
            self._pending[pending.id] = pending
            self._outbox.put(pending)
            self._signal_tx.send(b"")

        try:
            return pending.wait(timeout, cancel)
        finally:
            pending.abandoned = True
            self._pending.pop(pending.id, None)

    def close(self) -> None:
        with self._signal_lock:
            if self.shutdown:
                return
            self.shutdown = True
            self._outbox.put(None)
            self._signal_tx.send(b"")
        self._thread.join(timeout=2)
        self._signal_tx.close()


# --- convenience helpers ---

_client_cache: Dict[str, Client] = {}
_client_lock = threading.Lock()


def client(endpoint: str) -> Client:
    """Factory for a :class:`Client`, re-using established connections."""

    with _client_lock:
        c = _client_cache.get(endpoint)
        if c is None or not c.is_open:
            c = Client(endpoint)
            _client_cache[endpoint] = c
        return c


def send(endpoint: str, subject: str, payload: bytes, timeout: Optional[float] = None) -> bytes:
    return client(endpoint).request(subject, payload, timeout)


def shutdown() -> None:
    with _client_lock:
        for c in _client_cache.values():
            c.close()
        _client_cache.clear()


atexit.register(shutdown)
