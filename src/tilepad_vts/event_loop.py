"""
Consumes the client events, one at a time in the order they were published, and moves the
connection phase accordingly.
"""
import logging

from tilepad_vts.broadcaster import StateBroadcaster
from tilepad_vts.client import Connected, Disconnected, NewAuthToken, VTubeStudioClient
from tilepad_vts.state import ClientState, ConnectionPhase
from tilepad_vts.support.background import BackgroundLoop
from tilepad_vts.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)


class EventLoop(BackgroundLoop):
    """
    :param client: the client whose events are consumed
    :param poll: seconds to wait for an event before checking whether the loop was stopped
    """

    def __init__(self, client: VTubeStudioClient, state: ClientState, broadcaster: StateBroadcaster,
                 supervisor: ConnectionSupervisor, poll=0.5):
        super().__init__(name="vts-events")
        self.client = client
        self.state = state
        self.broadcaster = broadcaster
        self.supervisor = supervisor
        self.poll = poll

    def startup(self):
        # the plugin starts disconnected, so there is no Disconnected event to arm the first probe
        self.supervisor.arm_probe()

    def loop(self):
        event = self.client.events.take(self.poll)
        if event is not None:
            self.handle(event)

    def handle(self, event):
        if isinstance(event, Connected):
            self.on_connected()
        elif isinstance(event, Disconnected):
            self.on_disconnected()
        elif isinstance(event, NewAuthToken):
            logger.info("VTube Studio issued a new token")
            self.broadcaster.set_token(event.token)
        else:
            logger.debug("ignoring %s", event)

    def on_connected(self):
        self.supervisor.cancel_probe()
        with self.state.lock:
            self.state.next_epoch()
            self.broadcaster.set_phase(ConnectionPhase.CONNECTED)
        session = self.state.session
        if session is not None:
            # the token arrives with the properties and is used to authenticate the new session
            session.get_properties()
        else:
            logger.debug("no host session, authentication waits for properties")

    def on_disconnected(self):
        self.broadcaster.set_phase(ConnectionPhase.DISCONNECTED)
        self.supervisor.arm_probe()
