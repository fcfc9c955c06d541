""" Client-side view of the schema enforced on each station. This is the
    only shared mutable state in the package: every transition for a given
    station happens while holding that station's lock, and stations never
    share a lock with each other.
"""

import enum
import threading


class State(enum.Enum):
    UNENFORCED = 'unenforced'
    AUTO_REGISTERING = 'auto-registering'
    ENFORCED = 'enforced'


class Station:
    """ The :class:`Station` tracks which schema, if any, is enforced on a
        single station, and whether the station is still waiting for its
        schema to be derived from the first observed message.

        :ivar name: The station name.
        :ivar auto_reg_required: True while automatic registration is still
            wanted for this station.
        :ivar schema_name: The name of the enforced schema, or None.
        :ivar state: The current :class:`State`.
    """

    def __init__(self, name):

        self.name = name
        self.auto_reg_required = False
        self.schema_name = None
        self.state = State.UNENFORCED
        self.lock = threading.Lock()


    def __repr__(self):
        return 'Station(%r, state=%s, schema_name=%r, auto_reg_required=%r)' % (
            self.name, self.state.value, self.schema_name, self.auto_reg_required)


    def require_auto_registration(self):
        """ Request that the schema for this station be derived from the
            next observed message. This has no effect once a schema is
            enforced; the enforced schema always wins.
        """

        with self.lock:
            if self.state == State.ENFORCED:
                return False

            self.auto_reg_required = True
            return True


    def begin_auto_registration(self):
        """ Claim the station for an automatic registration attempt. Returns
            False if automatic registration is not wanted, or if another
            attempt is already in flight; only the first message triggers
            the registration.
        """

        with self.lock:
            if self.auto_reg_required and self.state == State.UNENFORCED:
                self.state = State.AUTO_REGISTERING
                return True

            return False


    def abort_auto_registration(self):
        """ Return a failed automatic registration to the unenforced state.
            Nothing from the failed attempt is retained. A manual enforcement
            that completed in the meantime is left alone.
        """

        with self.lock:
            if self.state == State.AUTO_REGISTERING:
                self.state = State.UNENFORCED


    def enforce(self, schema_name, attach, automatic=False):
        """ Invoke *attach*, which performs the actual enforcement request,
            and record *schema_name* as the enforced schema if it succeeds.

            The request is issued while holding the station lock, so that
            the check of the auto-registration flag, the enforcement, and the
            clearing of the flag are a single atomic step with respect to
            any other enforcement of the same station. An *automatic*
            enforcement that finds the flag already cleared does nothing and
            returns False; any exception raised by *attach* propagates with
            the station state unchanged.
        """

        with self.lock:
            if automatic and not self.auto_reg_required:
                return False

            attach()

            self.schema_name = schema_name
            self.auto_reg_required = False
            self.state = State.ENFORCED

        return True


# end of class Station



class Stations:
    """ Registry of :class:`Station` records, keyed by station name.
    """

    def __init__(self):

        self._stations = dict()
        self._stations_lock = threading.Lock()


    def __contains__(self, name):
        return name in self._stations


    def __getitem__(self, name):

        try:
            return self._stations[name]
        except KeyError:
            pass

        with self._stations_lock:

            # Try again in case some other thread created it before this
            # lock-protected attempt.

            station = self._stations.get(name)
            if station is None:
                station = Station(name)
                self._stations[name] = station

        return station


    def __len__(self):
        return len(self._stations)


# end of class Stations


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
