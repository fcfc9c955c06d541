""" The :class:`Connection` is the public entry point for schema
    operations: creating schemas, attaching them to stations, and deriving
    a station's schema from the first message it sees.
"""

import logging
import threading

from . import autoreg
from . import config
from . import errors
from . import json
from . import station
from . import transport
from .schema import Schema, SchemaAttachment
from .validate import validate_schema_name, validate_schema_type, validate_station_name


logger = logging.getLogger(__name__)


class Connection:
    """ A :class:`Connection` binds a request/reply *transport* (any
        :class:`mschema.transport.Transport`) to the identity of the session
        using it. The *username* is recorded as the creator of every schema
        uploaded through this connection. The *timeout*, in seconds, bounds
        every request; None defers to the transport's own default.

        Apart from the per-station enforcement records in :attr:`stations`,
        every operation is stateless.
    """

    def __init__(self, transport, username, timeout=None):

        self.transport = transport
        self.username = username
        self.timeout = timeout
        self.stations = station.Stations()


    def __repr__(self):
        return 'Connection(%r, username=%r)' % (self.transport, self.username)


    def close(self):
        self.transport.close()


    def request(self, subject, payload, cancel=None):
        """ Send the already-encoded *payload* on *subject* and return the
            reply. Errors are always raised as
            :class:`mschema.errors.ClientError` instances.
        """

        logger.debug("%s: sending %d bytes", subject, len(payload))

        try:
            return self.transport.request(subject, payload, self.timeout, cancel)
        except errors.ClientError:
            raise
        except Exception as exc:
            raise errors.wrap(exc)


    def create(self, entity, cancel=None):
        """ Create the supplied :class:`mschema.entity.Entity` on the broker:
            encode its creation request, send it on its creation subject,
            and let the entity interpret the reply.
        """

        payload = json.dumps(entity.creation_request())
        response = self.request(entity.creation_subject(), payload, cancel)
        entity.handle_creation_response(response)


    def destroy(self, entity, cancel=None):
        """ Remove the supplied :class:`mschema.entity.Entity` from the
            broker. Entities without a destruction subject cannot be removed;
            the attempt fails before anything is sent.
        """

        subject = entity.destruction_subject()

        if not subject:
            raise errors.RemovalNotSupported('removing a %s is not supported' % (type(entity).__name__))

        payload = json.dumps(entity.destruction_request())
        response = self.request(subject, payload, cancel)
        entity.handle_creation_response(response)


    def create_schema(self, name, schema_type, path, cancel=None):
        """ Read the schema definition from the file at *path*, validate the
            *name* and *schema_type*, and upload the schema to the broker.
            The file is read before anything else happens; a missing or
            unreadable file raises :class:`mschema.errors.SchemaReadError`
            without any network traffic.
        """

        content = read_schema_file(path)
        self.upload_schema(name, schema_type, content, cancel)


    def upload_schema(self, name, schema_type, content, cancel=None):
        """ Validate and upload a schema whose definition is already in
            memory as *content*. A broker-side rejection raises
            :class:`mschema.errors.BrokerRejected` with the broker's message.
        """

        validate_schema_name(name)
        validate_schema_type(schema_type)

        schema = Schema(name, schema_type, self.username, content)
        self.create(schema, cancel)

        logger.debug("created %s schema %s", schema_type, name)


    def remove_schema(self, name):
        """ Schema removal is not wired up on the broker; this always raises
            :class:`mschema.errors.RemovalNotSupported`.
        """

        validate_schema_name(name)
        self.destroy(Schema(name, None, self.username))


    def station(self, station_name):
        """ Return the :class:`mschema.station.Station` record tracking the
            schema enforced on *station_name*.
        """

        validate_station_name(station_name)
        return self.stations[station_name]


    def require_auto_registration(self, station_name):
        """ Derive the schema for *station_name* from the next message handed
            to :func:`auto_register_schema`. Returns False if a schema is
            already enforced on the station.
        """

        return self.station(station_name).require_auto_registration()


    def attach(self, name, station_name, cancel=None):
        """ Send the enforcement request attaching schema *name* to
            *station_name*, without touching the local station record.
        """

        self.create(SchemaAttachment(name, station_name, self.username), cancel)


    def enforce_schema(self, name, station_name, cancel=None):
        """ Enforce the schema *name* on *station_name*. A successful manual
            enforcement always wins: it clears any pending automatic
            registration for the station, and replaces any schema previously
            enforced there.
        """

        validate_schema_name(name)
        record = self.station(station_name)

        def attach():
            self.attach(name, station_name, cancel)

        record.enforce(name, attach)
        logger.info("enforced schema %s on station %s", name, station_name)


    def auto_register_schema(self, message, station_name, schema_type=None, cancel=None):
        """ Derive a schema from *message*, create it, and enforce it on
            *station_name*. See :func:`mschema.autoreg.auto_register_schema`.
        """

        return autoreg.auto_register_schema(self, message, station_name, schema_type, cancel)


# end of class Connection



def read_schema_file(path):
    """ Return the full contents of the schema file at *path* as a string.
        Any failure to read the file, including an empty file, raises
        :class:`mschema.errors.SchemaReadError`.
    """

    try:
        with open(path, 'rb') as handle:
            data = handle.read()
    except OSError as exc:
        raise errors.SchemaReadError(exc.errno, 'cannot read schema file: %s' % (exc.strerror or exc), str(path)) from exc

    try:
        content = data.decode('utf-8')
    except UnicodeDecodeError as exc:
        raise errors.SchemaReadError('schema file is not valid UTF-8: %s' % (path)) from exc

    if content == '':
        raise errors.SchemaReadError('schema file is empty: %s' % (path))

    return content



_connections = dict()
_connections_lock = threading.Lock()


def connect(endpoint=None, username=None, timeout=None):
    """ Factory function for a :class:`Connection` instance over the ZeroMQ
        transport. Any argument left as None is taken from
        :func:`mschema.config.load`. Use of this method is encouraged to
        streamline re-use of established connections; the same instance is
        returned for the same *endpoint* and *username*.
    """

    if endpoint is None or username is None or timeout is None:
        settings = config.load()

        if endpoint is None:
            endpoint = settings.endpoint
        if username is None:
            username = settings.username
        if timeout is None:
            timeout = settings.timeout

    key = (endpoint, username)

    with _connections_lock:
        try:
            instance = _connections[key]
        except KeyError:
            pass
        else:
            if instance.transport.is_open:
                return instance

        client = transport.request.Client(endpoint, timeout)
        instance = Connection(client, username, timeout)
        _connections[key] = instance

    return instance


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
