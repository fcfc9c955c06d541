""" Derive a station's schema from the first message it carries, then
    show what was enforced. Requires a broker listening at the configured
    endpoint (see mschema.config).
"""

import sys

import mschema


def main():

    station = sys.argv[1] if len(sys.argv) > 1 else 'orders'
    connection = mschema.connect()

    connection.require_auto_registration(station)

    message = {'id': 1, 'item': 'widget', 'quantity': 2.5}
    connection.auto_register_schema(message, station)

    print(connection.station(station))
    connection.close()


if __name__ == '__main__':
    main()

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
