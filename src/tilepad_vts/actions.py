"""
Tile actions. A tile is configured with an action identifier and a property map edited in the
inspector:

    trigger_hotkey   {"hotkey_id": "..."}
    switch_model     {"model_id": "..."}

A missing identifier property means the tile has not been configured yet; pressing it does nothing.
"""
import logging

from tilepad_vts.errors import MalformedMessageError, VtsError
from tilepad_vts.messages import optional_string, require_object
from tilepad_vts.protocol.requests import HotkeyTriggerRequest, ModelLoadRequest

logger = logging.getLogger(__name__)


class Action:
    """ base class for parsed tile actions. """
    action_id = None

    def request(self):
        """ :return: the request that performs the action, or None if the tile is not configured. """
        raise NotImplementedError()

    def __eq__(self, other):
        return type(other) is type(self) and other.__dict__ == self.__dict__

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.__dict__)


class TriggerHotkey(Action):
    action_id = "trigger_hotkey"

    def __init__(self, hotkey_id=None):
        self.hotkey_id = hotkey_id

    @classmethod
    def parse(cls, properties):
        return cls(optional_string(properties, "hotkey_id"))

    def request(self):
        return HotkeyTriggerRequest(self.hotkey_id) if self.hotkey_id else None


class SwitchModel(Action):
    action_id = "switch_model"

    def __init__(self, model_id=None):
        self.model_id = model_id

    @classmethod
    def parse(cls, properties):
        return cls(optional_string(properties, "model_id"))

    def request(self):
        return ModelLoadRequest(self.model_id) if self.model_id else None


ACTIONS = {cls.action_id: cls for cls in (TriggerHotkey, SwitchModel)}


def parse_action(action_id, properties):
    """
    >>> parse_action('trigger_hotkey', {'hotkey_id': 'H1'})
    TriggerHotkey({'hotkey_id': 'H1'})
    >>> parse_action('spin', {}) is None
    True

    :return: the action, or None if the identifier is not one of ours.
    :raises MalformedMessageError: the properties do not have the expected shape.
    """
    cls = ACTIONS.get(action_id)
    if cls is None:
        return None
    return cls.parse(require_object(properties, "%s properties" % action_id))


class ActionDispatcher:
    """
    Turns tile presses into VTube Studio requests sent through the supervisor.
    Failures are logged. Nothing is reported back to the host.
    """

    def __init__(self, supervisor):
        self.supervisor = supervisor

    def dispatch(self, action_id, properties):
        """ :return: True if a request was issued, whether or not VTube Studio accepted it. """
        try:
            action = parse_action(action_id, properties)
        except MalformedMessageError as e:
            logger.error("ignoring %s with malformed properties: %s", action_id, e)
            return False
        if action is None:
            logger.debug("ignoring unknown action %s", action_id)
            return False
        request = action.request()
        if request is None:
            return False
        try:
            self.supervisor.send(request)
        except VtsError as e:
            logger.error("%s failed: %s", action_id, e)
        return True
