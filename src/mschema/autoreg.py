""" Automatic schema registration: derive a schema from the first message
    observed on a station, create it on the broker, and enforce it on the
    station.

    A station only registers automatically once it has been asked to (see
    :meth:`mschema.connection.Connection.require_auto_registration`), and
    only until some schema is enforced on it. Any successful enforcement,
    manual or automatic, clears that request; an automatic attempt that
    finds it cleared by the time it is ready to enforce backs off without
    touching the station.
"""

import logging

from . import errors
from .detect import detect_format
from .generate import generate_schema
from .validate import validate_schema_name, validate_station_name


logger = logging.getLogger(__name__)

suffix = '-auto'


def auto_schema_name(station_name):
    """ Return the name used for the schema automatically registered for
        *station_name*: the station name with '-auto' appended. The result
        is validated like any other schema name.
    """

    validate_station_name(station_name)

    name = station_name + suffix
    validate_schema_name(name)
    return name


def auto_register_schema(connection, message, station_name, schema_type=None, cancel=None):
    """ Derive a schema from *message* and enforce it on *station_name*,
        using the supplied :class:`mschema.connection.Connection`. The
        *schema_type* is required when *message* is raw bytes, and otherwise
        must agree with the detected type if given.

        The message is classified and its schema generated before the
        schema name is derived from *station_name*.

        Returns True if this call created and enforced a schema. Returns
        False, without doing anything, if the station does not want
        automatic registration or another attempt is already under way; and
        False, after creating the schema but without enforcing it, if a
        manual enforcement won the race. Any failure restores the station to
        its unenforced state and raises; later stages are never attempted.
    """

    record = connection.station(station_name)

    if not record.begin_auto_registration():
        logger.debug("station %s: automatic schema registration not required", station_name)
        return False

    try:
        detected = detect_format(message, schema_type)
        content = generate_schema(detected.value, detected.schema_type)
        name = auto_schema_name(station_name)
        connection.upload_schema(name, detected.schema_type, content, cancel)

        def attach():
            connection.attach(name, station_name, cancel)

        enforced = record.enforce(name, attach, automatic=True)

    except errors.ClientError:
        record.abort_auto_registration()
        raise
    except Exception as exc:
        record.abort_auto_registration()
        raise errors.wrap(exc)

    if enforced:
        logger.info("station %s: registered and enforced %s schema %s", station_name, detected.schema_type, name)
    else:
        logger.info("station %s: schema %s created, but a manual enforcement took precedence", station_name, name)

    return enforced


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
