"""
A VTube Studio client over a single connector.

The client connects lazily: any request sent while disconnected first tries to open the
connector, once. It does not reconnect by itself. Changes in the connection are published
as ClientEvents on the `events` queue, which is meant to have a single consumer.
"""
import logging
from concurrent.futures import TimeoutError as FutureTimeoutError

from tilepad_vts.connector.base import ConnectionNotConnectedError, Connector, ConnectorConnectedEvent, \
    ConnectorDisconnectedEvent
from tilepad_vts.errors import RequestTimeoutError, TransportError
from tilepad_vts.protocol.api import ApiProtocolHandler, Envelope, Request
from tilepad_vts.support.background import BackgroundLoop
from tilepad_vts.support.events import EventQueue

logger = logging.getLogger(__name__)


class ClientEvent:
    """ base class for the events published by the client. """

    def __eq__(self, other):
        return type(other) is type(self) and other.__dict__ == self.__dict__

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, ", ".join("%s=%r" % i for i in sorted(self.__dict__.items())))


class Connected(ClientEvent):
    """ The websocket to VTube Studio was opened. """


class Disconnected(ClientEvent):
    """ The websocket to VTube Studio was closed. """


class NewAuthToken(ClientEvent):
    """ VTube Studio issued a token other than the one the plugin asked for. """
    def __init__(self, token):
        self.token = token


class Other(ClientEvent):
    """ Any other message VTube Studio sent without a matching request. """
    def __init__(self, envelope: Envelope):
        self.envelope = envelope


class ResponseReader(BackgroundLoop):
    """ pumps responses from the protocol until its conduit closes. """

    def __init__(self, protocol: ApiProtocolHandler):
        super().__init__(name="vts-reader")
        self.protocol = protocol

    def loop(self):
        if not self.protocol.conduit.open:
            self.stop(wait=False)
            return
        try:
            self.protocol.read_response()
        except OSError as e:
            logger.debug("reader stopping: %s", e)
            self.stop(wait=False)


class VTubeStudioClient:
    """
    :param connector: the connector to VTube Studio
    :param request_timeout: default number of seconds to wait for a response
    """

    def __init__(self, connector: Connector, request_timeout=10):
        self.connector = connector
        self.request_timeout = request_timeout
        self.events = EventQueue()
        self._protocol = None
        self._reader = None
        connector.events += self._connector_events

    @property
    def connected(self):
        return self.connector.connected

    def _connector_events(self, event):
        if isinstance(event, ConnectorConnectedEvent):
            self._on_connected()
        elif isinstance(event, ConnectorDisconnectedEvent):
            self._on_disconnected()

    def _on_connected(self):
        protocol = ApiProtocolHandler(self.connector.conduit)
        protocol.unmatched_handlers += self._unmatched_message
        self._protocol = protocol
        self._reader = ResponseReader(protocol)
        self._reader.start()
        logger.info("connected to VTube Studio at %s", self.connector.endpoint)
        self.events.fire(Connected())

    def _on_disconnected(self):
        protocol, reader = self._protocol, self._reader
        self._protocol = self._reader = None
        if reader is not None:
            reader.stop(wait=False)
        if protocol is not None:
            protocol.fail_pending(TransportError("connection to VTube Studio closed"))
        logger.info("disconnected from VTube Studio at %s", self.connector.endpoint)
        self.events.fire(Disconnected())

    def _unmatched_message(self, envelope: Envelope):
        self.events.fire(Other(envelope))

    def send(self, request: Request, timeout=None):
        """
        Sends a request and waits for the response, connecting first if needed.
        :param timeout: seconds to wait for the response. Defaults to request_timeout.
        :return: the decoded response value
        :raises TransportError: the connection could not be opened, was closed, or timed out
        :raises ApiError: VTube Studio rejected the request
        """
        self.connector.connect()
        protocol = self._protocol
        if protocol is None:
            raise ConnectionNotConnectedError("not connected to VTube Studio")
        if timeout is None:
            timeout = self.request_timeout
        future = protocol.async_request(request)
        try:
            return future.result(timeout)
        except FutureTimeoutError:
            protocol.discard_future(future)
            raise RequestTimeoutError("no response to %s within %ss" % (request.message_type, timeout)) from None

    def close(self):
        self.connector.disconnect()
