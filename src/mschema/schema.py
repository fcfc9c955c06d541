""" The :class:`Schema` entity and its wire payloads. A :class:`Schema` is
    built fresh for every create call, serialized into a
    :class:`CreateSchemaRequest`, and discarded once the broker responds;
    nothing is cached client-side.
"""

from typing import Optional

import msgspec

from . import errors
from . import json
from .entity import Entity, default_handle_creation_response


PROTOBUF = 'protobuf'
JSON = 'json'
GRAPHQL = 'graphql'
AVRO = 'avro'

creation_subject = '$memphis_schema_creations'
attachment_subject = '$memphis_schema_attachments'


class CreateSchemaRequest(msgspec.Struct):
    name: str
    type: str
    created_by_username: str
    schema_content: str
    message_struct_name: str = ''


class CreateSchemaResponse(msgspec.Struct):
    error: Optional[str] = ''


class RemoveSchemaRequest(msgspec.Struct):
    name: str


class AttachSchemaRequest(msgspec.Struct):
    name: str
    station_name: str
    username: str


def handle_error_response(response):
    """ Common handling for broker replies of the form ``{"error": ...}``.
        If the reply does not decode as that shape, fall back to
        :func:`mschema.entity.default_handle_creation_response`. A JSON
        ``null``, or a null or empty error, means success.
    """

    try:
        decoded = json.decode(response, Optional[CreateSchemaResponse])
    except json.DecodeError:
        default_handle_creation_response(response)
        return

    if decoded is None:
        return

    if decoded.error:
        raise errors.BrokerRejected(decoded.error)


class Schema(Entity):
    """ One named, typed schema version. The *content* is opaque to the
        client; the broker is responsible for parsing it.

        :ivar name: Schema name, unique within the broker's namespace.
        :ivar type: One of 'protobuf', 'json', or 'graphql'.
        :ivar created_by_username: Identity of the uploading session.
        :ivar content: Raw schema definition text.
        :ivar message_struct_name: Optional struct/message name hint.
    """

    def __init__(self, name, type, created_by_username='', content='', message_struct_name=''):

        self.name = name
        self.type = type
        self.created_by_username = created_by_username
        self.content = content
        self.message_struct_name = message_struct_name


    def __repr__(self):
        return 'Schema(%r, %r, created_by_username=%r)' % (self.name, self.type, self.created_by_username)


    @classmethod
    def from_creation_request(cls, request):
        """ Re-derive a :class:`Schema` from a :class:`CreateSchemaRequest`.
        """

        return cls(request.name, request.type, request.created_by_username,
                   request.schema_content, request.message_struct_name)


    def creation_subject(self):
        return creation_subject


    def creation_request(self):

        # The message struct name is deliberately left out of the upload;
        # the broker always receives it empty from this path.

        return CreateSchemaRequest(
            name=self.name,
            type=self.type,
            created_by_username=self.created_by_username,
            schema_content=self.content,
        )


    def handle_creation_response(self, response):
        handle_error_response(response)


    def destruction_subject(self):

        # No removal subject is wired up on the broker side yet.

        return ''


    def destruction_request(self):
        return RemoveSchemaRequest(name=self.name)


# end of class Schema



class SchemaAttachment(Entity):
    """ Attach (enforce) the schema *name* on the station *station_name*.
        The broker treats a successful attachment as the end of any pending
        automatic schema registration for that station.
    """

    def __init__(self, name, station_name, username=''):

        self.name = name
        self.station_name = station_name
        self.username = username


    def __repr__(self):
        return 'SchemaAttachment(%r, %r)' % (self.name, self.station_name)


    def creation_subject(self):
        return attachment_subject


    def creation_request(self):
        return AttachSchemaRequest(name=self.name, station_name=self.station_name, username=self.username)


    def handle_creation_response(self, response):
        handle_error_response(response)


# end of class SchemaAttachment


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
