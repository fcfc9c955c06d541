""" Client configuration. Settings are read from ``client.json`` in the
    configuration directory (see :func:`directory`), and may be overridden
    by environment variables:

    * ``MSCHEMA_ENDPOINT``: ZeroMQ endpoint of the broker
    * ``MSCHEMA_USERNAME``: identity recorded as the schema creator
    * ``MSCHEMA_TIMEOUT``: request timeout, in seconds
"""

import getpass
import os

import msgspec

from . import errors
from . import json


default_endpoint = 'tcp://localhost:6666'
default_timeout = 5.0
filename = 'client.json'


class Settings(msgspec.Struct, forbid_unknown_fields=True):
    endpoint: str = default_endpoint
    username: str = ''
    timeout: float = default_timeout


def directory(default=None):
    """ Return the directory location where we should be loading
        configuration files. This defaults to ``$HOME/.mschema``, but can be
        overridden by calling this method with a valid path, or by setting
        the ``MSCHEMA_HOME`` environment variable. Note that changes to the
        environment variable will be ignored unless it is set prior to the
        first invocation of this method.
    """

    if default is not None:
        default = str(default)
        default = os.path.expandvars(default)

        if os.path.isabs(default):
            pass
        else:
            raise ValueError('the default directory must be an absolute path')

        os.environ['MSCHEMA_HOME'] = default
        directory.found = default


    found = directory.found

    if found is not None:
        return found

    try:
        found = os.environ['MSCHEMA_HOME']
    except KeyError:
        pass
    else:
        directory.found = found
        return found

    try:
        home = os.environ['HOME']
    except KeyError:
        raise RuntimeError('MSCHEMA_HOME and HOME environment variables not set, cannot determine mschema configuration directory')

    found = os.path.join(home, '.mschema')

    directory.found = found
    return found

directory.found = None



def load(base_dir=None):
    """ Return a :class:`Settings` instance built from the on-disk
        configuration, if any, with environment overrides applied. A
        malformed file or override raises :class:`mschema.errors.ClientError`.
    """

    if base_dir is None:
        base_dir = directory()

    path = os.path.join(base_dir, filename)
    raw = dict()

    try:
        with open(path, 'rb') as handle:
            contents = handle.read()
    except FileNotFoundError:
        pass
    except OSError as exc:
        raise errors.wrap(exc)
    else:
        try:
            raw = json.loads(contents)
        except json.DecodeError as exc:
            raise errors.ClientError('invalid configuration in %s: %s' % (path, exc)) from exc

        if not isinstance(raw, dict):
            raise errors.ClientError('invalid configuration in %s: expected an object' % (path))

    overrides = (('MSCHEMA_ENDPOINT', 'endpoint'),
                 ('MSCHEMA_USERNAME', 'username'),
                 ('MSCHEMA_TIMEOUT', 'timeout'))

    for variable,field in overrides:
        try:
            raw[field] = os.environ[variable]
        except KeyError:
            pass

    try:
        settings = msgspec.convert(raw, Settings, strict=False)
    except msgspec.ValidationError as exc:
        raise errors.ClientError('invalid configuration: %s' % (exc)) from exc

    if settings.timeout <= 0:
        raise errors.ClientError('invalid configuration: timeout must be positive')

    if settings.username == '':
        settings.username = getpass.getuser()

    return settings


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
