""" Minimal structural GraphQL SDL inference from a decoded JSON sample.
    The sample must be an object; each nested object becomes its own type,
    named after its parent type and field (``Message`` + ``shipping_address``
    becomes ``MessageShippingAddress``). Two different objects that map to
    the same name are told apart with a numeric suffix (``MessageAB2``).
"""

import re

from .. import errors


_valid_name = re.compile('[_A-Za-z][_0-9A-Za-z]*')

scalars = {
    bool: 'Boolean',
    int: 'Int',
    float: 'Float',
    str: 'String',
}


def generate(sample, name='Message'):

    if not isinstance(sample, dict):
        raise errors.GenerationError('a GraphQL schema can only be derived from an object, not ' + type(sample).__name__)

    _check_name(name)

    # Type name -> field lines. The root name is reserved first, so that it
    # is emitted first and no nested type can claim it.

    types = dict()
    types[name] = None
    _object_type(sample, name, types, root=True)

    declarations = list()
    for type_name,lines in types.items():
        declarations.append('type %s {\n%s\n}' % (type_name, '\n'.join(lines)))

    return '\n\n'.join(declarations) + '\n'


def _check_name(name):
    if _valid_name.fullmatch(name) is None:
        raise errors.GenerationError('invalid GraphQL name: ' + repr(name))


def _pascal(name):
    parts = re.split('[^0-9A-Za-z]+', name)
    return ''.join(part[:1].upper() + part[1:] for part in parts)


def _object_type(value, type_name, types, root=False):
    """ Record the fields of the object *value* in *types* and return the
        name the type was recorded under. A declaration with the same
        fields already recorded under *type_name* is reused; a different
        one pushes this type to the next free numbered name.
    """

    if len(value) == 0:
        raise errors.GenerationError('type %s has no fields; GraphQL object types cannot be empty' % (type_name))

    lines = list()
    for field in value:
        _check_name(field)
        field_type = _field_type(value[field], type_name + _pascal(field), types)
        lines.append('  %s: %s' % (field, field_type))

    if root:
        types[type_name] = lines
        return type_name

    candidate = type_name
    number = 1
    while candidate in types and types[candidate] != lines:
        number += 1
        candidate = '%s%d' % (type_name, number)

    types[candidate] = lines
    return candidate


def _field_type(value, nested_name, types):

    if value is None:
        # Nothing to go on; a nullable string is the least committal choice.
        return 'String'

    if isinstance(value, dict):
        return _object_type(value, nested_name, types) + '!'

    if isinstance(value, (list, tuple)):
        return '[%s]!' % (_element_type(value, nested_name, types))

    for python_type,graphql_type in scalars.items():
        if type(value) is python_type:
            return graphql_type + '!'

    raise errors.GenerationError('cannot describe value of type ' + type(value).__name__)


def _element_type(values, nested_name, types):

    present = [value for value in values if value is not None]

    if len(present) == 0:
        return 'String'

    first = present[0]

    if isinstance(first, dict):
        merged = dict()
        for value in present:
            if not isinstance(value, dict):
                raise errors.GenerationError('list %s mixes objects and non-objects' % (nested_name))
            merged.update(value)
        element = _field_type(merged, nested_name, types)
    else:
        kinds = set()
        element = None
        for value in present:
            element = _field_type(value, nested_name, types)
            kinds.add(element)

        if kinds == set(('Int!', 'Float!')):
            element = 'Float!'
        elif len(kinds) > 1:
            raise errors.GenerationError('list %s mixes element types: %s' % (nested_name, ', '.join(sorted(kinds))))

    if len(present) < len(values):
        element = element.rstrip('!')

    return element


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
