""" Minimal structural JSON Schema (draft-07) inference from a decoded JSON
    sample. Only the shape of the sample is described: keys, value types,
    and nesting. Every key seen in an object is considered required.
"""

from .. import json


dialect = 'http://json-schema.org/draft-07/schema#'


def generate(sample, name=None):

    document = dict()
    document['$schema'] = dialect
    document.update(describe(sample))

    return json.format(json.dumps(document)).decode()


def describe(value):
    """ Return the JSON Schema fragment, as a dictionary, for *value*.
    """

    # bool is a subclass of int; it must be checked first.

    if value is None:
        return {'type': 'null'}
    if isinstance(value, bool):
        return {'type': 'boolean'}
    if isinstance(value, int):
        return {'type': 'integer'}
    if isinstance(value, float):
        return {'type': 'number'}
    if isinstance(value, str):
        return {'type': 'string'}
    if isinstance(value, dict):
        return _describe_object(value)
    if isinstance(value, (list, tuple)):
        return _describe_array(value)

    raise TypeError('cannot describe value of type ' + type(value).__name__)


def _describe_object(value):

    properties = dict()
    for key in sorted(value):
        properties[str(key)] = describe(value[key])

    fragment = dict()
    fragment['type'] = 'object'
    fragment['properties'] = properties
    fragment['required'] = list(properties)

    return fragment


def _describe_array(value):

    items = list()
    for element in value:
        described = describe(element)
        if described not in items:
            items.append(described)

    fragment = dict()
    fragment['type'] = 'array'

    if len(items) == 1:
        fragment['items'] = items[0]
    elif len(items) > 1:
        fragment['items'] = {'anyOf': items}

    return fragment


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
