""" Exercise the ZeroMQ request client against an in-process ROUTER
    socket standing in for the broker.
"""

import itertools
import threading
import time

import pytest
import zmq

import mschema
from mschema.transport.zmq import framing
from mschema.transport.zmq import request


endpoints = itertools.count()


class Broker:
    """ Minimal ROUTER peer. The *handler* is called with the decoded
        request frames and returns the reply payload, a complete tuple of
        reply frames, or None to stay silent.
    """

    def __init__(self, handler):

        self.endpoint = 'inproc://mschema-test-broker-%d' % (next(endpoints))
        self.handler = handler
        self.received = list()

        self.socket = request.zmq_context.socket(zmq.ROUTER)
        self.socket.setsockopt(zmq.LINGER, 0)
        self.socket.bind(self.endpoint)

        self.shutdown = False
        self.thread = threading.Thread(target=self.run, daemon=True)
        self.thread.start()


    def run(self):

        poller = zmq.Poller()
        poller.register(self.socket, zmq.POLLIN)

        while not self.shutdown:
            for active, _flag in poller.poll(100):
                parts = self.socket.recv_multipart()
                frames = framing.from_request_frames(parts)
                self.received.append((frames.subject, frames.payload))

                reply = self.handler(frames)
                if reply is None:
                    continue
                if isinstance(reply, tuple):
                    self.socket.send_multipart(frames.prefix + reply)
                else:
                    self.socket.send_multipart(framing.to_reply_frames(frames.prefix, frames.msg_id, reply))

        self.socket.close()


    def close(self):
        self.shutdown = True
        self.thread.join(2)


@pytest.fixture
def broker_factory():

    brokers = list()

    def factory(handler):
        broker = Broker(handler)
        brokers.append(broker)
        return broker

    yield factory

    for broker in brokers:
        broker.close()


def test_request_reply(broker_factory):

    broker = broker_factory(lambda frames: b'{"error":""}')
    client = request.Client(broker.endpoint, timeout=2)

    try:
        reply = client.request('$memphis_schema_creations', b'{"name":"orders"}')
        assert reply == b'{"error":""}'
        assert broker.received == [('$memphis_schema_creations', b'{"name":"orders"}')]
    finally:
        client.close()


def test_concurrent_requests(broker_factory):

    broker = broker_factory(lambda frames: frames.subject.encode() + b':' + frames.payload)
    client = request.Client(broker.endpoint, timeout=2)
    replies = dict()

    def issue(number):
        replies[number] = client.request('subject.%d' % (number), str(number).encode())

    threads = [threading.Thread(target=issue, args=(number,)) for number in range(10)]

    try:
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(5)
    finally:
        client.close()

    for number in range(10):
        assert replies[number] == ('subject.%d:%d' % (number, number)).encode()


def test_timeout(broker_factory):

    broker = broker_factory(lambda frames: None)
    client = request.Client(broker.endpoint)

    try:
        with pytest.raises(mschema.transport.TransportTimeout):
            client.request('$memphis_schema_creations', b'{}', timeout=0.1)
    finally:
        client.close()


def test_cancel(broker_factory):

    broker = broker_factory(lambda frames: None)
    client = request.Client(broker.endpoint)
    cancel = threading.Event()

    timer = threading.Timer(0.1, cancel.set)
    timer.start()

    try:
        with pytest.raises(mschema.transport.RequestCancelled):
            client.request('$memphis_schema_creations', b'{}', timeout=5, cancel=cancel)
    finally:
        timer.cancel()
        client.close()


def test_version_mismatch(broker_factory):

    # Reply with the wrong framing version, echoing the request id back.

    broker = broker_factory(lambda frames: (b'z', frames.msg_id, b''))
    client = request.Client(broker.endpoint, timeout=2)

    try:
        with pytest.raises(mschema.transport.TransportError) as raised:
            client.request('$memphis_schema_creations', b'{}')

        assert 'framing version' in str(raised.value)
    finally:
        client.close()


def test_closed(broker_factory):

    broker = broker_factory(lambda frames: b'')
    client = request.Client(broker.endpoint)
    client.close()

    assert client.is_open == False

    with pytest.raises(mschema.transport.TransportConnectionError):
        client.request('$memphis_schema_creations', b'{}')


def test_abandoned_requests_are_forgotten(broker_factory):

    broker = broker_factory(lambda frames: None)
    client = request.Client(broker.endpoint)

    try:
        for number in range(50):
            with pytest.raises(mschema.transport.TransportTimeout):
                client.request('subject.%d' % (number), b'{}', timeout=0.0)

        # Give the I/O thread time to work through its queue.
        time.sleep(0.3)

        assert len(client._pending) == 0
    finally:
        client.close()


def test_close_fails_queued_requests(broker_factory):

    broker = broker_factory(lambda frames: None)
    client = request.Client(broker.endpoint)

    # Queued, but never signalled to the I/O thread.
    pending = request.PendingRequest('$memphis_schema_creations', b'{}')
    client._outbox.put(pending)

    client.close()

    with pytest.raises(mschema.transport.TransportConnectionError):
        pending.wait(1)


def test_connection_over_zmq(broker_factory):

    def handler(frames):
        if mschema.json.loads(frames.payload)['name'] == 'taken':
            return b'{"error":"name exists"}'
        return b'{"error":""}'

    broker = broker_factory(handler)
    connection = mschema.connect(broker.endpoint, 'tester', timeout=2)

    try:
        assert mschema.connect(broker.endpoint, 'tester', timeout=2) is connection

        connection.upload_schema('orders-v1', 'json', '{"type": "object"}')

        with pytest.raises(mschema.errors.BrokerRejected):
            connection.upload_schema('taken', 'json', '{"type": "object"}')
    finally:
        connection.close()

    subject, payload = broker.received[0]
    assert subject == '$memphis_schema_creations'
    assert mschema.json.loads(payload)['created_by_username'] == 'tester'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
