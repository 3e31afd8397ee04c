import logging

import websocket

from tilepad_vts.conduit.base import Conduit
from tilepad_vts.conduit.websocket_conduit import WebSocketConduit
from tilepad_vts.connector.base import AbstractConnector, ConnectorError

logger = logging.getLogger(__name__)


def websocket_url(host, port):
    """
    >>> websocket_url('localhost', 8001)
    'ws://localhost:8001'
    """
    return "ws://%s:%s" % (host, port)


class WebSocketConnector(AbstractConnector):
    """
    A connector that opens a websocket to a server.

    :param url: the websocket url, e.g. ws://localhost:8001
    :param connect_timeout: seconds allowed for the socket connect and the websocket handshake
    :param report_errors: when False, failures to connect are logged at debug level only
    """

    def __init__(self, url, connect_timeout=5, report_errors=True, create_connection=websocket.create_connection):
        super().__init__()
        self.url = url
        self.connect_timeout = connect_timeout
        self.report_errors = report_errors
        self._create_connection = create_connection

    @property
    def endpoint(self):
        return self.url

    def _connect(self) -> Conduit:
        try:
            ws = self._create_connection(self.url, timeout=self.connect_timeout)
            ws.settimeout(None)
            logger.info("opened websocket to %s", self.url)
            return WebSocketConduit(ws, self.url)
        except (websocket.WebSocketException, OSError) as e:
            method = logger.warning if self.report_errors else logger.debug
            method("error opening websocket to %s: %s", self.url, e)
            raise ConnectorError("unable to connect to %s" % self.url) from e
