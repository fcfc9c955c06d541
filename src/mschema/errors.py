""" Exceptions raised by the schema client. Every public operation raises
    a :class:`ClientError` subclass; anything else that escapes from lower
    layers is wrapped via :func:`wrap` so that callers only ever need to
    handle one exception hierarchy.
"""


class ClientError(Exception):
    """Base class for all schema client errors."""


# Validation errors are deterministic for a given input, and are never
# worth retrying.

class ValidationError(ClientError, ValueError):
    """A name or schema type failed validation."""


class EmptyName(ValidationError):
    pass


class NameTooLong(ValidationError):
    pass


class InvalidCharacters(ValidationError):
    pass


class InvalidBoundary(ValidationError):
    pass


class UnsupportedType(ValidationError):
    """The schema type is not one the broker knows about."""


class UnsupportedButRecognized(UnsupportedType):
    """The schema type is known, but disabled (avro)."""


class SchemaReadError(ClientError, OSError):
    """The schema file could not be read."""


class BrokerRejected(ClientError):
    """ The broker returned a non-empty error string. The message is
        surfaced verbatim, and is available as the *message* attribute.
    """

    def __init__(self, message):
        ClientError.__init__(self, message)
        self.message = message


class UnsupportedMessageType(ClientError, TypeError):
    """A message value cannot be classified into a schema type."""


class GenerationError(ClientError):
    """A schema could not be derived from a sample message."""


class RemovalNotSupported(ClientError, NotImplementedError):
    """Schema removal is not wired to a broker subject."""


def wrap(exception):
    """ Return *exception* as a :class:`ClientError`. Client errors are
        returned unchanged; anything else is wrapped, with the original
        exception retained as the ``__cause__``.
    """

    if isinstance(exception, ClientError):
        return exception

    wrapped = ClientError(str(exception) or type(exception).__name__)
    wrapped.__cause__ = exception
    return wrapped


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
