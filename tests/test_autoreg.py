import threading

import pytest
from google.protobuf import timestamp_pb2

import mschema
from mschema import errors
from mschema.autoreg import auto_schema_name
from mschema.station import State


def test_auto_schema_name():

    assert auto_schema_name('orders') == 'orders-auto'
    assert auto_schema_name('eu.orders_v2') == 'eu.orders_v2-auto'

    with pytest.raises(errors.InvalidCharacters):
        auto_schema_name('Orders')

    # Room for the suffix is required.

    with pytest.raises(errors.NameTooLong):
        auto_schema_name('x' * 125)


def test_auto_register(connection, fake_transport):

    connection.require_auto_registration('orders')

    registered = connection.auto_register_schema({'id': 1, 'item': 'widget'}, 'orders')
    assert registered == True

    subjects = [subject for subject,payload in fake_transport.requests]
    assert subjects == ['$memphis_schema_creations', '$memphis_schema_attachments']

    created = fake_transport.sent('$memphis_schema_creations')[0]
    assert created['name'] == 'orders-auto'
    assert created['type'] == 'json'
    assert created['created_by_username'] == 'tester'

    content = mschema.json.loads(created['schema_content'])
    assert content['properties'] == {'id': {'type': 'integer'}, 'item': {'type': 'string'}}

    attached = fake_transport.sent('$memphis_schema_attachments')[0]
    assert attached == {'name': 'orders-auto', 'station_name': 'orders', 'username': 'tester'}

    station = connection.station('orders')
    assert station.state == State.ENFORCED
    assert station.schema_name == 'orders-auto'
    assert station.auto_reg_required == False

    # Only the first message registers a schema.

    assert connection.auto_register_schema({'id': 2}, 'orders') == False
    assert len(fake_transport.requests) == 2


def test_auto_register_protobuf(connection, fake_transport):

    connection.require_auto_registration('ticks')
    assert connection.auto_register_schema(timestamp_pb2.Timestamp(seconds=5), 'ticks') == True

    created = fake_transport.sent('$memphis_schema_creations')[0]
    assert created['type'] == 'protobuf'
    assert 'message Timestamp {' in created['schema_content']


def test_not_required(connection, fake_transport):

    assert connection.auto_register_schema({'id': 1}, 'orders') == False
    assert fake_transport.requests == []
    assert connection.station('orders').state == State.UNENFORCED


def test_already_enforced(connection, fake_transport):

    connection.enforce_schema('orders-v1', 'orders')

    assert connection.require_auto_registration('orders') == False
    assert connection.auto_register_schema({'id': 1}, 'orders') == False
    assert connection.station('orders').schema_name == 'orders-v1'


def test_detection_failure(connection, fake_transport):

    connection.require_auto_registration('orders')

    with pytest.raises(errors.UnsupportedMessageType):
        connection.auto_register_schema(b'{"id": 1}', 'orders')

    assert fake_transport.requests == []

    station = connection.station('orders')
    assert station.state == State.UNENFORCED
    assert station.auto_reg_required == True

    # The failure left nothing behind; the next message gets its turn.

    assert connection.auto_register_schema(b'{"id": 1}', 'orders', schema_type='json') == True
    assert station.state == State.ENFORCED


def test_creation_rejected(connection, fake_transport):

    connection.require_auto_registration('orders')
    fake_transport.replies['$memphis_schema_creations'] = b'{"error":"name exists"}'

    with pytest.raises(errors.BrokerRejected):
        connection.auto_register_schema({'id': 1}, 'orders')

    # Enforcement is never attempted after a failed creation.

    assert fake_transport.sent('$memphis_schema_attachments') == []
    assert connection.station('orders').state == State.UNENFORCED


def test_enforcement_failure(connection, fake_transport):

    connection.require_auto_registration('orders')
    fake_transport.replies['$memphis_schema_attachments'] = mschema.transport.TransportTimeout('no response')

    with pytest.raises(mschema.transport.TransportTimeout):
        connection.auto_register_schema({'id': 1}, 'orders')

    station = connection.station('orders')
    assert station.state == State.UNENFORCED
    assert station.schema_name is None
    assert station.auto_reg_required == True


def test_unencodable_text(connection, fake_transport):

    connection.require_auto_registration('orders')

    with pytest.raises(errors.UnsupportedMessageType):
        connection.auto_register_schema('bad \ud800 text', 'orders')

    assert fake_transport.requests == []

    station = connection.station('orders')
    assert station.state == State.UNENFORCED
    assert station.auto_reg_required == True


def test_unexpected_failure_is_wrapped(connection, fake_transport, monkeypatch):

    connection.require_auto_registration('orders')

    def upload(*args):
        raise RuntimeError('disk on fire')

    monkeypatch.setattr(connection, 'upload_schema', upload)

    with pytest.raises(errors.ClientError) as caught:
        connection.auto_register_schema({'id': 1}, 'orders')

    assert isinstance(caught.value.__cause__, RuntimeError)
    assert connection.station('orders').state == State.UNENFORCED


def test_message_checked_before_name(connection, fake_transport):

    # A station name that leaves no room for the suffix still reports the
    # message problem first.

    station_name = 'x' * 125
    connection.require_auto_registration(station_name)

    with pytest.raises(errors.UnsupportedMessageType):
        connection.auto_register_schema(42, station_name)

    with pytest.raises(errors.NameTooLong):
        connection.auto_register_schema({'id': 1}, station_name)

    assert fake_transport.requests == []
    assert connection.station(station_name).state == State.UNENFORCED


def test_manual_enforcement_during_registration(connection, fake_transport):
    """ A manual enforcement that lands while an automatic registration is
        creating its schema wins; the automatic attempt backs off instead
        of attaching its own schema.
    """

    connection.require_auto_registration('orders')

    def create(subject, payload):
        connection.enforce_schema('orders-manual', 'orders')
        return b'{"error":""}'

    fake_transport.replies['$memphis_schema_creations'] = create

    assert connection.auto_register_schema({'id': 1}, 'orders') == False

    attached = fake_transport.sent('$memphis_schema_attachments')
    assert [request['name'] for request in attached] == ['orders-manual']

    station = connection.station('orders')
    assert station.state == State.ENFORCED
    assert station.schema_name == 'orders-manual'
    assert station.auto_reg_required == False


def race(connection, fake_transport, manual_first):

    connection.require_auto_registration('orders')

    # Hold the first attachment request until the second enforcement is
    # underway, to force the requested interleaving.

    first_attaching = threading.Event()
    release = threading.Event()
    first_name = 'orders-manual' if manual_first else 'orders-auto'

    def attach(subject, payload):
        request = mschema.json.loads(payload)
        if request['name'] == first_name:
            first_attaching.set()
            release.wait(5)
        return b'{"error":""}'

    fake_transport.replies['$memphis_schema_attachments'] = attach

    results = dict()

    def manual():
        connection.enforce_schema('orders-manual', 'orders')
        results['manual'] = True

    def automatic():
        results['auto'] = connection.auto_register_schema({'id': 1}, 'orders')

    if manual_first:
        first, second = manual, automatic
    else:
        first, second = automatic, manual

    first_thread = threading.Thread(target=first)
    second_thread = threading.Thread(target=second)

    first_thread.start()
    assert first_attaching.wait(5)

    second_thread.start()
    release.set()

    first_thread.join(5)
    second_thread.join(5)

    return results


def test_race_manual_first(connection, fake_transport):

    results = race(connection, fake_transport, manual_first=True)

    assert results == {'manual': True, 'auto': False}

    station = connection.station('orders')
    assert station.state == State.ENFORCED
    assert station.schema_name == 'orders-manual'
    assert station.auto_reg_required == False


def test_race_automatic_first(connection, fake_transport):

    results = race(connection, fake_transport, manual_first=False)

    assert results == {'manual': True, 'auto': True}

    station = connection.station('orders')
    assert station.state == State.ENFORCED
    assert station.schema_name == 'orders-manual'
    assert station.auto_reg_required == False


def test_independent_stations(connection, fake_transport):

    connection.require_auto_registration('orders')
    connection.require_auto_registration('payments')

    assert connection.auto_register_schema({'id': 1}, 'orders') == True
    assert connection.auto_register_schema({'amount': 2.5}, 'payments') == True

    assert connection.station('orders').schema_name == 'orders-auto'
    assert connection.station('payments').schema_name == 'payments-auto'


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
