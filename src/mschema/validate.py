""" Syntactic validation of object names and schema types. These checks
    are pure functions and run before anything is sent to the broker.
"""

import re

from . import errors
from .schema import GRAPHQL, JSON, PROTOBUF, AVRO


maximum_length = 128
creatable_types = (PROTOBUF, JSON, GRAPHQL)

_valid_characters = re.compile('[a-z0-9_.-]*')
_boundary_characters = set('.-_')


def validate_name(name, object_kind):
    """ Confirm the provided *name* is acceptable for an object of the
        given *object_kind* (such as 'Schema' or 'Station'). The checks are
        applied in order, and the first failing check raises the matching
        :class:`mschema.errors.ValidationError` subclass:

        * empty names raise :class:`mschema.errors.EmptyName`
        * names longer than 128 characters raise
          :class:`mschema.errors.NameTooLong`
        * names with characters outside ``[a-z0-9_.-]`` raise
          :class:`mschema.errors.InvalidCharacters`
        * names starting or ending with '.', '-' or '_' raise
          :class:`mschema.errors.InvalidBoundary`
    """

    if len(name) == 0:
        raise errors.EmptyName("%s name can not be empty" % (object_kind))

    if len(name) > maximum_length:
        raise errors.NameTooLong("%s should be under %d characters" % (object_kind, maximum_length))

    if _valid_characters.fullmatch(name) is None:
        raise errors.InvalidCharacters("Only alphanumeric and the '_', '-', '.' characters are allowed in %s" % (object_kind))

    if name[0] in _boundary_characters or name[-1] in _boundary_characters:
        raise errors.InvalidBoundary("%s name can not start or end with non alphanumeric character" % (object_kind))


def validate_schema_name(name):
    validate_name(name, 'Schema')


def validate_station_name(name):
    validate_name(name, 'Station')


def validate_schema_type(schema_type):
    """ Confirm the broker will accept a schema of the given *schema_type*.
        Avro is recognized, but rejected with a distinct error.
    """

    if schema_type in creatable_types:
        return

    if schema_type == AVRO:
        raise errors.UnsupportedButRecognized('avro is not supported at this time')

    raise errors.UnsupportedType('unsupported schema type')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
