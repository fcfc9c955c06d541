""" Classify an in-memory message value into one of the supported schema
    types, and encode it the way it would be sent on a station.

    The set of accepted shapes is closed; see :class:`Kind`. Anything that
    does not match one of them raises
    :class:`mschema.errors.UnsupportedMessageType`.
"""

import collections.abc
import dataclasses
import enum
import typing

import msgspec
from google.protobuf import message as protobuf_message

from . import errors
from . import json
from .schema import GRAPHQL, JSON, PROTOBUF
from .validate import validate_schema_type


class Kind(enum.Enum):
    BYTES = 'bytes'
    TEXT = 'text'
    MAPPING = 'mapping'
    PROTO_MESSAGE = 'proto-message'
    RECORD = 'record'


class Detected(typing.NamedTuple):
    """ The outcome of :func:`detect_format`.

        :ivar kind: Which :class:`Kind` of value the message was.
        :ivar schema_type: The schema type the message was classified as.
        :ivar data: The message encoded as bytes.
        :ivar value: The sample handed to the schema generator: the decoded
            JSON value, or the protobuf message instance.
    """

    kind: Kind
    schema_type: str
    data: bytes
    value: typing.Any


def classify(message):
    """ Return the :class:`Kind` of *message*, or None if it is not one of
        the supported shapes.
    """

    if isinstance(message, (bytes, bytearray, memoryview)):
        return Kind.BYTES
    if isinstance(message, str):
        return Kind.TEXT
    if isinstance(message, protobuf_message.Message):
        return Kind.PROTO_MESSAGE
    if isinstance(message, collections.abc.Mapping):
        return Kind.MAPPING
    if _is_record(message):
        return Kind.RECORD
    return None


def _is_record(value):

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return True
    if isinstance(value, msgspec.Struct):
        return True
    if isinstance(value, tuple) and hasattr(value, '_asdict'):
        return True
    return False


def _record_to_builtins(value):

    if isinstance(value, tuple):
        value = value._asdict()
    elif dataclasses.is_dataclass(value):
        value = dataclasses.asdict(value)

    try:
        return msgspec.to_builtins(value)
    except TypeError as exc:
        raise errors.UnsupportedMessageType('record is not JSON serializable: %s' % (exc)) from exc


def detect_format(message, schema_type=None):
    """ Inspect *message* and return a :class:`Detected` describing it.

        Raw bytes carry no type information of their own, so a declared
        *schema_type* is required for them; for every other kind of value
        the type is derived from the value itself, and a conflicting
        declaration is an error.
    """

    if schema_type is not None:
        validate_schema_type(schema_type)

    kind = classify(message)

    if kind is None:
        raise errors.UnsupportedMessageType('unsupported message type: ' + type(message).__name__)

    if kind == Kind.BYTES:
        return _detect_bytes(bytes(message), schema_type)

    if kind == Kind.PROTO_MESSAGE:
        detected = Detected(kind, PROTOBUF, message.SerializeToString(), message)
    else:
        if kind == Kind.TEXT:
            data = _text_to_json(message)
        elif kind == Kind.MAPPING:
            data = _encode(dict(message))
        else:
            data = _encode(_record_to_builtins(message))

        declared = schema_type if schema_type == GRAPHQL else JSON
        detected = Detected(kind, declared, data, json.loads(data))

    if schema_type is not None and schema_type != detected.schema_type:
        raise errors.UnsupportedMessageType('%s message cannot be registered as %s' % (kind.value, schema_type))

    return detected


def _detect_bytes(data, schema_type):

    if schema_type is None:
        raise errors.UnsupportedMessageType('raw bytes require a declared schema type')

    if schema_type == PROTOBUF:
        return Detected(Kind.BYTES, PROTOBUF, data, data)

    try:
        value = json.loads(data)
    except json.DecodeError as exc:
        raise errors.UnsupportedMessageType('raw bytes are not a JSON document: %s' % (exc)) from exc

    return Detected(Kind.BYTES, schema_type, data, value)


def _text_to_json(text):
    """ A string holding a JSON document is used verbatim; any other string
        is encoded as a JSON string value.
    """

    try:
        data = text.encode()
    except UnicodeEncodeError as exc:
        raise errors.UnsupportedMessageType('message text is not valid UTF-8: %s' % (exc)) from exc

    try:
        json.loads(data)
    except json.DecodeError:
        data = json.dumps(text)

    return data


def _encode(value):

    try:
        return json.dumps(value)
    except (TypeError, ValueError) as exc:
        raise errors.UnsupportedMessageType('message is not JSON serializable: %s' % (exc)) from exc


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
