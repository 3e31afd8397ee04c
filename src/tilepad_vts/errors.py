"""
Errors raised while talking to VTube Studio or decoding messages from the host.

Nothing here is fatal to the plugin. Callers log the error and drop the operation,
at most changing the connection phase.
"""

# the VTube Studio error ID for "request requires authentication"
REQUEST_REQUIRES_AUTHENTICATION = 8


class VtsError(Exception):
    """ base class for failed requests to VTube Studio. """


class TransportError(VtsError):
    """ The connection could not be opened, was severed, or the request could not be sent. """


class RequestTimeoutError(TransportError):
    """ No response arrived within the allowed time. """


class ApiError(VtsError):
    """
    VTube Studio answered the request with an APIError message.

    :param error_id: the numeric errorID reported by VTube Studio
    :param message: the human readable reason
    """

    def __init__(self, error_id, message=None):
        super().__init__("VTube Studio error %s: %s" % (error_id, message))
        self.error_id = error_id
        self.message = message

    @property
    def is_unauthenticated(self):
        return self.error_id == REQUEST_REQUIRES_AUTHENTICATION


class AuthRejectedError(ApiError):
    """ The request was rejected because the session is not authenticated. """


def api_error(error_id, message=None) -> ApiError:
    """
    Builds the error for an APIError response.
    >>> type(api_error(8, 'nope')).__name__
    'AuthRejectedError'
    >>> type(api_error(50)).__name__
    'ApiError'
    """
    cls = AuthRejectedError if error_id == REQUEST_REQUIRES_AUTHENTICATION else ApiError
    return cls(error_id, message)


class MalformedMessageError(ValueError):
    """ A message from the host, the inspector or VTube Studio did not have the expected shape. """


class MalformedResponseError(VtsError, MalformedMessageError):
    """ VTube Studio answered with data the plugin could not decode. """
