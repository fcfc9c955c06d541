import threading

import pytest

import mschema


class FakeTransport(mschema.transport.Transport):
    """ In-memory stand-in for the broker. Replies are looked up by subject;
        a reply may be bytes, an exception instance to raise, or a callable
        invoked with (subject, payload) that returns either.
    """

    def __init__(self):
        self.replies = dict()
        self.requests = list()
        self.lock = threading.Lock()
        self.closed = False

    def request(self, subject, payload, timeout=None, cancel=None):
        with self.lock:
            self.requests.append((subject, payload))

        reply = self.replies.get(subject, b'{"error":""}')

        if callable(reply):
            reply = reply(subject, payload)

        if isinstance(reply, Exception):
            raise reply

        return reply

    def close(self):
        self.closed = True

    @property
    def is_open(self):
        return not self.closed

    def sent(self, subject):
        return [mschema.json.loads(payload) for sent_subject,payload in self.requests if sent_subject == subject]


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def connection(fake_transport):
    return mschema.Connection(fake_transport, 'tester', timeout=1)


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / 'order.schema.json'
    path.write_text('{"type": "object", "properties": {"id": {"type": "integer"}}}')
    return path


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
