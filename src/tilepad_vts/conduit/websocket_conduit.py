import logging

import websocket

from tilepad_vts.conduit.base import Conduit

logger = logging.getLogger(__name__)


class WebSocketConduit(Conduit):
    """
    A conduit that exchanges text frames over a connected websocket-client WebSocket.
    Errors from the websocket library are raised as ConnectionError.

    :param ws: the open, connected WebSocket
    :param url: the url the socket is connected to, used for logging
    """

    def __init__(self, ws: websocket.WebSocket, url=None):
        self.ws = ws
        self.url = url
        self._closed = False

    @property
    def target(self):
        return self.url

    @property
    def open(self) -> bool:
        return not self._closed and self.ws.connected

    def read_message(self) -> str:
        try:
            message = self.ws.recv()
        except websocket.WebSocketException as e:
            raise ConnectionError("websocket read from %s failed: %s" % (self.url, e)) from e
        if not message and not self.ws.connected:
            raise ConnectionError("websocket to %s closed by peer" % self.url)
        if isinstance(message, bytes):
            message = message.decode('utf-8')
        return message

    def write_message(self, message: str):
        try:
            self.ws.send(message)
        except websocket.WebSocketException as e:
            raise ConnectionError("websocket write to %s failed: %s" % (self.url, e)) from e

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self.ws.close()
        except (websocket.WebSocketException, OSError) as e:
            # the peer may already have closed the socket
            logger.debug("error closing websocket to %s: %s", self.url, e)
