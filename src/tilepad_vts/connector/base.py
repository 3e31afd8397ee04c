import logging
import threading
from abc import abstractmethod

from tilepad_vts.conduit.base import Conduit, ErrorReportingConduit
from tilepad_vts.errors import TransportError
from tilepad_vts.support.events import EventSource

logger = logging.getLogger(__name__)


class ConnectorError(TransportError):
    """ Indicates an error condition with a connection. """


class ConnectionNotConnectedError(ConnectorError):
    """ Indicates a connection is in the disconnected state when a connection is required. """


class ConnectorEvent:
    """ base class for connector events. """
    def __init__(self, connector):
        self.connector = connector


class ConnectorConnectedEvent(ConnectorEvent):
    """ The connector was connected. """


class ConnectorDisconnectedEvent(ConnectorEvent):
    """ The connector was disconnected. """


class Connector:
    """ A connector describes an endpoint to which a conduit can be established. """

    def __init__(self):
        self.events = EventSource()

    @property
    @abstractmethod
    def endpoint(self):
        """ the endpoint that this connector reaches out to """
        raise NotImplementedError

    @property
    @abstractmethod
    def connected(self) -> bool:
        raise NotImplementedError

    @property
    @abstractmethod
    def conduit(self) -> Conduit:
        """
        Retrieves the conduit for this connection.
        Raises ConnectionNotConnectedError if not connected.
        """
        raise ConnectionNotConnectedError

    @abstractmethod
    def connect(self):
        """
        Connects this connector to the underlying resource.
        If the connector is already connected, this method returns silently.
        Raises ConnectorError if the connection cannot be established.
        """
        raise NotImplementedError

    @abstractmethod
    def disconnect(self):
        raise NotImplementedError


class AbstractConnector(Connector):
    """
    Manages the connection cycle to an endpoint.

    Fires ConnectorConnectedEvent once the conduit is open and ConnectorDisconnectedEvent
    once it is closed, whether the close was requested or caused by a read/write error on the
    conduit. Each connected event is matched by exactly one disconnected event.
    """

    def __init__(self):
        super().__init__()
        self._conduit = None
        self._lock = threading.RLock()

    @property
    def connected(self):
        conduit = self._conduit
        return conduit is not None and conduit.open

    def connect(self):
        with self._lock:
            if self.connected:
                return
            if self._conduit is not None:     # closed underneath us
                self.disconnect()
            conduit = self._connect()
            self._conduit = ErrorReportingConduit(conduit, self.disconnect)
        self.events.fire(ConnectorConnectedEvent(self))

    def disconnect(self):
        with self._lock:
            conduit = self._conduit
            if conduit is None:
                return
            self._conduit = None
            try:
                self._disconnect()
            finally:
                conduit.decorate.close()
        self.events.fire(ConnectorDisconnectedEvent(self))

    @abstractmethod
    def _connect(self) -> Conduit:
        """ Template method for subclasses to perform the connection.
            If connection is not possible, a ConnectorError should be raised.
        """
        raise NotImplementedError

    def _disconnect(self):
        """ template method for any actions needed before the conduit is closed. """

    @property
    def conduit(self) -> Conduit:
        conduit = self._conduit
        if conduit is None or not conduit.open:
            raise ConnectionNotConnectedError("not connected to %s" % (self.endpoint,))
        return conduit
