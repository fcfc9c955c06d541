""" Client-side schema management for a pub-sub broker: validating,
    uploading, and enforcing message schemas on stations, including
    deriving a station's schema from the first message it carries.
"""

# Utility components.

from . import json
from . import errors
from . import config

# Submodules used by multiple other components.

from . import validate
from . import schema
from . import transport
from . import station
from . import detect
from . import generate

# Primary public-facing interfaces.

from .connection import Connection, connect
from .schema import Schema
from .errors import ClientError

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
