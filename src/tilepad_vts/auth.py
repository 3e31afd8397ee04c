"""
Authenticates the plugin with VTube Studio.

VTube Studio authenticates each websocket session separately. A token is obtained once
(the user confirms a popup in VTube Studio) and persisted in the host settings. After each
new connection the host delivers the settings again and the token is presented with an
AuthenticationRequest.

Outcomes are tagged with the connection epoch at the time the attempt started. An outcome
arriving after the connection was re-established, or after it was lost, does not change
the phase.
"""
import logging
import threading

from tilepad_vts.broadcaster import StateBroadcaster
from tilepad_vts.errors import TransportError, VtsError
from tilepad_vts.protocol.requests import AuthenticationRequest, AuthenticationTokenRequest
from tilepad_vts.state import ClientState, ConnectionPhase
from tilepad_vts.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_REQUEST_TIMEOUT = 120

_LIVE_PHASES = (ConnectionPhase.CONNECTED, ConnectionPhase.UNAUTHORIZED, ConnectionPhase.AUTHORIZED)


class AuthManager:
    """
    :param supervisor: sends the requests
    :param state: the shared client state
    :param broadcaster: applies phase and token changes
    :param plugin_name: the plugin name VTube Studio shows to the user
    :param plugin_developer: the developer name VTube Studio shows to the user
    :param plugin_icon: optional base64 encoded 128x128 PNG shown in the token popup
    :param token_request_timeout: seconds to wait for the user to answer the token popup
    """

    def __init__(self, supervisor: ConnectionSupervisor, state: ClientState, broadcaster: StateBroadcaster,
                 plugin_name, plugin_developer, plugin_icon=None,
                 token_request_timeout=DEFAULT_TOKEN_REQUEST_TIMEOUT):
        self.supervisor = supervisor
        self.state = state
        self.broadcaster = broadcaster
        self.plugin_name = plugin_name
        self.plugin_developer = plugin_developer
        self.plugin_icon = plugin_icon
        self.token_request_timeout = token_request_timeout
        self._lock = threading.Lock()
        self._in_flight = set()

    def authenticate(self, token):
        """
        Presents the token to VTube Studio and moves the phase to AUTHORIZED or UNAUTHORIZED
        by the outcome. A transport failure leaves the phase as it is.
        :return: True if the session was authenticated.
        """
        epoch = self.state.epoch
        attempt = (epoch, token)
        with self._lock:
            if attempt in self._in_flight:
                logger.debug("authentication with this token already in progress")
                return False
            self._in_flight.add(attempt)
        try:
            return self._authenticate(token, epoch)
        finally:
            with self._lock:
                self._in_flight.discard(attempt)

    def _authenticate(self, token, epoch):
        request = AuthenticationRequest(self.plugin_name, self.plugin_developer, token)
        try:
            result = self.supervisor.send(request)
        except TransportError as e:
            logger.error("unable to authenticate: %s", e)
            return False
        except VtsError as e:
            logger.error("authentication failed: %s", e)
            self.broadcaster.set_phase_if(ConnectionPhase.UNAUTHORIZED, _LIVE_PHASES, epoch)
            return False

        if result.authenticated:
            self.broadcaster.set_phase_if(ConnectionPhase.AUTHORIZED, _LIVE_PHASES, epoch)
            return True
        logger.warning("VTube Studio declined the token: %s", result.reason)
        self.broadcaster.set_phase_if(ConnectionPhase.UNAUTHORIZED, _LIVE_PHASES, epoch)
        return False

    def request_authenticate(self):
        """
        Asks VTube Studio for a new token, which the user has to allow, then authenticates
        with it. The caller is responsible for persisting the token.
        :return: the new token, or None if none was granted.
        """
        request = AuthenticationTokenRequest(self.plugin_name, self.plugin_developer, self.plugin_icon)
        try:
            token = self.supervisor.send(request, timeout=self.token_request_timeout)
        except VtsError as e:
            logger.error("unable to obtain an authentication token: %s", e)
            return None
        self.state.token = token
        self.authenticate(token)
        return token

    def update_token(self, token):
        """
        Takes the token from newly delivered settings. Without a token the session cannot be
        authorized; with one it is presented to VTube Studio unless there is no connection
        or the session is already authorized.
        """
        with self.state.lock:
            self.state.token = token
            phase = self.state.phase
        if token is None:
            self.broadcaster.set_phase_if(ConnectionPhase.UNAUTHORIZED,
                                          (ConnectionPhase.CONNECTED, ConnectionPhase.AUTHORIZED))
            return
        if phase in (ConnectionPhase.DISCONNECTED, ConnectionPhase.AUTHORIZED):
            logger.debug("not authenticating while %s", phase.name)
            return
        self.authenticate(token)
