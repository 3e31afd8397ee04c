"""
Owns the one connection to VTube Studio.

All requests are sent through ConnectionSupervisor.send(), which allows a single request in
flight at a time and classifies failures:

- AuthRejectedError: the session lost (or never had) authentication. The cached token is
  cleared and persisted as cleared, and the phase leaves AUTHORIZED. The caller gets the error
  and should not retry.
- TransportError: the connection is down. Nothing changes here; the Disconnected event from the
  client moves the phase and arms the keepalive probe.
- ApiError: any other rejection. Passed to the caller.

The keepalive probe is a background loop that sends an APIStateRequest once per period until
one succeeds. Since the client connects lazily, a probe is what re-opens the connection once
VTube Studio is reachable again.
"""
import logging
import threading
import time

from tilepad_vts.broadcaster import StateBroadcaster
from tilepad_vts.client import VTubeStudioClient
from tilepad_vts.errors import AuthRejectedError, TransportError, VtsError
from tilepad_vts.protocol.api import Request
from tilepad_vts.protocol.requests import ApiStateRequest
from tilepad_vts.state import ClientState, ConnectionPhase
from tilepad_vts.support.background import BackgroundLoop
from tilepad_vts.support.retry_strategy import PeriodRetryStrategy, RetryStrategy

logger = logging.getLogger(__name__)

DEFAULT_PROBE_PERIOD = 5


class KeepAliveProbe(BackgroundLoop):
    """
    Sends a probe request each time the retry strategy allows, until a probe succeeds or the
    loop is stopped. Failures are logged and otherwise ignored.

    :param send: callable that sends a request, raising VtsError on failure
    :param retry_strategy: paces the probes
    """

    def __init__(self, send, retry_strategy: RetryStrategy, clock=time.monotonic, probe_timeout=None):
        super().__init__(name="vts-keepalive")
        self.send = send
        self.retry_strategy = retry_strategy
        self.clock = clock
        self.probe_timeout = probe_timeout
        self.attempts = 0

    def loop(self):
        delay = self.retry_strategy(self.clock)
        if delay > 0:
            self.stop_event.wait(delay)
            return
        if not self.running():
            return
        self.attempts += 1
        try:
            state = self.send(ApiStateRequest(), timeout=self.probe_timeout)
        except VtsError as e:
            logger.debug("keepalive probe %d failed: %s", self.attempts, e)
            return
        logger.debug("keepalive probe %d answered: %s", self.attempts, state)
        self.stop(wait=False)


class ConnectionSupervisor:
    """
    :param client: the VTube Studio client
    :param state: the shared client state
    :param broadcaster: used to apply phase and token changes
    :param probe_period: seconds between keepalive probes
    """

    def __init__(self, client: VTubeStudioClient, state: ClientState, broadcaster: StateBroadcaster,
                 probe_period=DEFAULT_PROBE_PERIOD, probe_factory=None):
        self.client = client
        self.state = state
        self.broadcaster = broadcaster
        self.probe_period = probe_period
        self._probe_factory = probe_factory or self._new_probe
        self._send_lock = threading.Lock()
        self._probe_lock = threading.Lock()
        self._probe = None

    def send(self, request: Request, timeout=None):
        """
        Sends a request to VTube Studio and waits for the response. Only one request is in
        flight at a time; other callers wait their turn.
        :return: the decoded response
        :raises VtsError: the request failed
        """
        with self._send_lock:
            try:
                return self.client.send(request, timeout)
            except AuthRejectedError as e:
                logger.warning("%s rejected, not authenticated: %s", request.message_type, e.message)
                self._auth_rejected()
                raise
            except TransportError as e:
                logger.debug("%s not sent: %s", request.message_type, e)
                raise

    def _auth_rejected(self):
        """ forgets the token and moves the phase out of AUTHORIZED, unless disconnected. """
        with self.state.lock:
            had_token = self.state.had_token
            if self.state.token is not None:
                self.broadcaster.set_token(None)
            if had_token:
                self.broadcaster.set_phase_if(ConnectionPhase.UNAUTHORIZED, (
                    ConnectionPhase.CONNECTED, ConnectionPhase.AUTHORIZED, ConnectionPhase.UNAUTHORIZED))
            else:
                # no token was ever established, so there is nothing to revoke
                self.broadcaster.set_phase_if(ConnectionPhase.CONNECTED, (ConnectionPhase.AUTHORIZED,))

    def _new_probe(self):
        return KeepAliveProbe(self.send, PeriodRetryStrategy(self.probe_period))

    def arm_probe(self):
        """
        Starts the keepalive probe unless one is already running.
        :return: True if a new probe was started.
        """
        with self._probe_lock:
            probe = self._probe
            if probe is not None and probe.alive:
                return False
            self._probe = probe = self._probe_factory()
            probe.start()
            logger.debug("keepalive probe armed")
            return True

    def cancel_probe(self):
        """ stops a running probe without waiting for a probe in flight to finish. """
        with self._probe_lock:
            probe, self._probe = self._probe, None
        if probe is not None:
            probe.stop(wait=False)
            return True
        return False

    @property
    def probe(self):
        return self._probe

    def close(self):
        self.cancel_probe()
        self.client.close()
