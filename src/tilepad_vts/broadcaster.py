import logging

from tilepad_vts.messages import Properties, vt_state_message
from tilepad_vts.state import ClientState, ConnectionPhase

logger = logging.getLogger(__name__)


class StateBroadcaster:
    """
    Applies phase and token changes to the ClientState and tells the outside world about them:
    the inspector learns the new phase, and the host persists the new token.

    A phase change and its inspector notification happen under the state lock, so a second
    thread never observes the new phase before the notification has been sent, and
    notifications go out in the order of the changes.
    """

    def __init__(self, state: ClientState):
        self.state = state

    def set_phase(self, phase: ConnectionPhase):
        """ sets the phase and notifies the inspector, if one is open. Setting the current phase does nothing. """
        with self.state.lock:
            previous = self.state.phase
            if previous is phase:
                return False
            self.state.phase = phase
            logger.info("VTube Studio connection %s -> %s", previous.name, phase.name)
            self.send_inspector(vt_state_message(phase))
            return True

    def set_phase_if(self, phase: ConnectionPhase, allowed_from, epoch=None):
        """
        Sets the phase only if the current phase is one of allowed_from, and, when epoch is given,
        the connection has not been re-established since that epoch.
        :return: True if the phase was changed.
        """
        with self.state.lock:
            if epoch is not None and epoch != self.state.epoch:
                logger.debug("ignoring %s from connection epoch %s, now %s", phase.name, epoch, self.state.epoch)
                return False
            if self.state.phase not in allowed_from:
                logger.debug("ignoring %s while %s", phase.name, self.state.phase.name)
                return False
            return self.set_phase(phase)

    def set_token(self, token):
        """ caches the token and asks the host to persist it. A token of None clears it. """
        with self.state.lock:
            self.state.token = token
            session = self.state.session
        if session is None:
            logger.debug("no host session, token not persisted")
            return
        session.set_properties(Properties(token).encode())

    def send_inspector(self, message, inspector=None):
        """ sends to the given inspector, or to the open one. Does nothing when there is none. """
        if inspector is None:
            inspector = self.state.inspector
        if inspector is None:
            return False
        try:
            inspector.send(message)
        except Exception as e:
            # the inspector may close while a reply is on its way
            logger.debug("unable to send %s to inspector: %s", message.get("type"), e)
            return False
        return True
