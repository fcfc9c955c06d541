''' Wrapper module around :mod:`msgspec` to provide the equivalent of
    :func:`json.loads` and :func:`json.dumps`. All *dumps* methods return
    bytes, since that is what goes on the wire.
'''

import msgspec


encoder = msgspec.json.Encoder()
decoder = msgspec.json.Decoder()

dumps = encoder.encode
loads = decoder.decode

DecodeError = msgspec.DecodeError
ValidationError = msgspec.ValidationError


def decode(data, type):
    """ Decode the JSON *data* as an instance of *type*, which is typically
        a :class:`msgspec.Struct` subclass describing a wire payload. Raises
        :class:`msgspec.DecodeError` (or its subclass
        :class:`msgspec.ValidationError`) if the data does not match.
    """

    return msgspec.json.decode(data, type=type)


def format(data, indent=2):
    """ Return a human-readable rendition of the JSON-encoded *data*.
    """

    return msgspec.json.format(data, indent=indent)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
