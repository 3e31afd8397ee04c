"""
The state shared between the host callbacks, the event loop and the supervisor.
"""
import enum
import threading
import weakref


class ConnectionPhase(enum.Enum):
    """ The phase of the connection to VTube Studio, as reported to the inspector. """
    DISCONNECTED = "DISCONNECTED"
    CONNECTED = "CONNECTED"
    UNAUTHORIZED = "NOT_AUTHORIZED"
    AUTHORIZED = "AUTHORIZED"


class ClientState:
    """
    Holds the connection phase, the connection epoch, the cached token, and weak references
    to the host session and the inspector.

    All access goes through the accessors, which hold `lock`. The lock is re-entrant so that
    a caller can read and update several fields as one unit:

        with state.lock:
            if state.phase is ConnectionPhase.CONNECTED:
                state.phase = ...
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._phase = ConnectionPhase.DISCONNECTED
        self._epoch = 0
        self._token = None
        self._had_token = False
        self._session = None
        self._inspector = None

    @property
    def phase(self) -> ConnectionPhase:
        with self.lock:
            return self._phase

    @phase.setter
    def phase(self, phase: ConnectionPhase):
        with self.lock:
            self._phase = phase

    @property
    def epoch(self):
        """ the number of times the connection has been established. """
        with self.lock:
            return self._epoch

    def next_epoch(self):
        with self.lock:
            self._epoch += 1
            return self._epoch

    @property
    def token(self):
        with self.lock:
            return self._token

    @token.setter
    def token(self, token):
        with self.lock:
            self._token = token
            if token:
                self._had_token = True

    @property
    def had_token(self):
        """ True once any token has been cached. """
        with self.lock:
            return self._had_token

    @property
    def session(self):
        """ the attached host session, or None if it was never attached or has gone away. """
        with self.lock:
            return self._session() if self._session is not None else None

    @session.setter
    def session(self, session):
        with self.lock:
            self._session = weakref.ref(session) if session is not None else None

    @property
    def inspector(self):
        """ the open inspector, or None. """
        with self.lock:
            return self._inspector() if self._inspector is not None else None

    @inspector.setter
    def inspector(self, inspector):
        with self.lock:
            self._inspector = weakref.ref(inspector) if inspector is not None else None
