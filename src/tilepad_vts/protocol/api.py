"""
The VTube Studio public API envelope and the request/response correlation over a conduit.

Every message in either direction is a JSON object:

    {"apiName": "VTubeStudioPublicAPI", "apiVersion": "1.0", "requestID": "...",
     "messageType": "...", "data": {...}}

A response carries the requestID of the request it answers. Failed requests are answered
with messageType "APIError" and data {"errorID": n, "message": "..."}.
"""
import itertools
import json
import logging
import threading
from abc import abstractmethod
from concurrent.futures import Future

from tilepad_vts.conduit.base import Conduit
from tilepad_vts.errors import MalformedMessageError, MalformedResponseError, TransportError, api_error
from tilepad_vts.support.events import EventSource

logger = logging.getLogger(__name__)

API_NAME = "VTubeStudioPublicAPI"
API_VERSION = "1.0"
API_ERROR = "APIError"


class Envelope:
    """ A decoded API message. """

    def __init__(self, message_type, data=None, request_id=None):
        self.message_type = message_type
        self.data = data if data is not None else {}
        self.request_id = request_id

    def encode(self) -> str:
        message = {
            "apiName": API_NAME,
            "apiVersion": API_VERSION,
            "messageType": self.message_type,
            "data": self.data,
        }
        if self.request_id is not None:
            message["requestID"] = self.request_id
        return json.dumps(message)

    @classmethod
    def decode(cls, text) -> "Envelope":
        try:
            message = json.loads(text)
        except ValueError as e:
            raise MalformedMessageError("message is not JSON: %s" % e) from e
        if not isinstance(message, dict) or not isinstance(message.get("messageType"), str):
            raise MalformedMessageError("message has no messageType: %r" % (text,))
        data = message.get("data")
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise MalformedMessageError("message data is not an object: %r" % (text,))
        return cls(message["messageType"], data, message.get("requestID"))

    @property
    def is_error(self):
        return self.message_type == API_ERROR

    def __repr__(self):
        return "Envelope(%r, %r, request_id=%r)" % (self.message_type, self.data, self.request_id)


class Request:
    """ A typed request. Subclasses name the message type and map their fields to the request data. """

    message_type = None

    @abstractmethod
    def to_data(self) -> dict:
        raise NotImplementedError()

    @abstractmethod
    def decode_response(self, data: dict):
        """ converts the data of a successful response to this request into a typed value. """
        raise NotImplementedError()


class FutureResponse(Future):
    """ Relates a request and its future response. """

    def __init__(self, request: Request, request_id):
        super().__init__()
        self.request = request
        self.request_id = request_id


class ApiProtocolHandler:
    """
    Sends requests over a conduit and pairs incoming messages with the originating request by
    requestID. The returned FutureResponse completes with the decoded response, or with the
    error from an APIError message.

    Incoming messages with no matching request (such as subscribed events) are passed to the
    unmatched handlers. read_response() is expected to be pumped by a single reader thread.

    :param conduit: the conduit over which the protocol is conducted
    """

    def __init__(self, conduit: Conduit, id_prefix="tilepad-vts"):
        self._conduit = conduit
        self._requests = dict()
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._id_prefix = id_prefix
        self.unmatched_handlers = EventSource()

    @property
    def conduit(self):
        return self._conduit

    def async_request(self, request: Request) -> FutureResponse:
        """
        Sends the request.
        :return: a FutureResponse where the response can be retrieved when it arrives.
        :raises TransportError: if the request could not be written.
        """
        request_id = "%s-%d" % (self._id_prefix, next(self._ids))
        future = FutureResponse(request, request_id)
        with self._lock:
            self._requests[request_id] = future
        envelope = Envelope(request.message_type, request.to_data(), request_id)
        logger.debug("sending %s", envelope)
        try:
            self._conduit.write_message(envelope.encode())
        except OSError as e:
            self.discard_future(future)
            raise TransportError("unable to send %s: %s" % (request.message_type, e)) from e
        return future

    def discard_future(self, future: FutureResponse):
        with self._lock:
            self._requests.pop(future.request_id, None)

    @property
    def pending(self):
        with self._lock:
            return len(self._requests)

    def read_response(self):
        """ synchronously reads the next message from the conduit and processes it. """
        text = self._conduit.read_message()
        try:
            envelope = Envelope.decode(text)
        except MalformedMessageError as e:
            logger.error("discarding undecodable message: %s", e)
            return None
        return self.process_response(envelope)

    def process_response(self, envelope: Envelope):
        with self._lock:
            future = self._requests.pop(envelope.request_id, None) if envelope.request_id is not None else None
        logger.debug("received %s", envelope)
        if future is None:
            self.unmatched_handlers.fire(envelope)
        elif envelope.is_error:
            future.set_exception(api_error(envelope.data.get("errorID"), envelope.data.get("message")))
        else:
            try:
                future.set_result(future.request.decode_response(envelope.data))
            except (KeyError, TypeError, ValueError) as e:
                future.set_exception(MalformedResponseError(
                    "unexpected %s data %r: %s" % (envelope.message_type, envelope.data, e)))
        return envelope

    def fail_pending(self, error: Exception):
        """ completes all outstanding requests with the given error. """
        with self._lock:
            futures = list(self._requests.values())
            self._requests.clear()
        for future in futures:
            future.set_exception(error)
