""" Derive schema text from a sample message. Each schema type has its own
    independent strategy; :func:`register` replaces the strategy for a type
    without affecting the others, or the callers of :func:`generate_schema`.
"""

import threading

from .. import errors
from ..schema import GRAPHQL, JSON, PROTOBUF
from ..validate import validate_schema_type

from . import graphql
from . import json_schema
from . import protobuf


_generators = dict()
_generators_lock = threading.Lock()


def register(schema_type, generator):
    """ Use *generator* to produce schemas of the given *schema_type*. The
        *generator* is invoked as ``generator(sample, name)`` and must return
        the schema text as a string. The previous generator, if any, is
        returned.
    """

    validate_schema_type(schema_type)

    with _generators_lock:
        previous = _generators.get(schema_type)
        _generators[schema_type] = generator

    return previous


def generate_schema(sample, schema_type, name='Message'):
    """ Return the schema text describing *sample* for the requested
        *schema_type*. The *name* is used where the schema language needs a
        top-level type name (GraphQL); it is ignored otherwise.

        Unsupported schema types raise the same errors as
        :func:`mschema.validate.validate_schema_type`; a sample that cannot
        be described raises :class:`mschema.errors.GenerationError`.
    """

    validate_schema_type(schema_type)
    generator = _generators[schema_type]

    try:
        generated = generator(sample, name)
    except errors.ClientError:
        raise
    except Exception as exc:
        raise errors.GenerationError('%s schema generation failed: %s' % (schema_type, exc)) from exc

    if not generated:
        raise errors.GenerationError('%s schema generation produced no output' % (schema_type))

    return generated


register(JSON, json_schema.generate)
register(GRAPHQL, graphql.generate)
register(PROTOBUF, protobuf.generate)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
