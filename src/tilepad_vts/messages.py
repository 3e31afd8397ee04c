"""
Decoding and encoding of the loosely typed JSON exchanged with the host and the inspector.

Messages in both directions are objects tagged by a "type" field:

    inspector -> plugin   GET_VT_STATE, AUTHORIZE, GET_HOTKEY_OPTIONS {model_id?}, GET_MODEL_OPTIONS
    plugin -> inspector   VT_STATE {state}, HOTKEY_OPTIONS {options}, MODEL_OPTIONS {options}

Decoders raise MalformedMessageError when the shape is wrong.
"""
from collections import namedtuple

from tilepad_vts.errors import MalformedMessageError
from tilepad_vts.state import ConnectionPhase

SelectOption = namedtuple('SelectOption', ['label', 'value'])


def optional_string(properties: dict, key):
    """
    >>> optional_string({'a': 'x'}, 'a')
    'x'
    >>> optional_string({}, 'a') is None
    True
    """
    value = properties.get(key)
    if value is not None and not isinstance(value, str):
        raise MalformedMessageError("%s should be a string, not %r" % (key, value))
    return value


def require_object(value, what):
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise MalformedMessageError("%s should be an object, not %r" % (what, value))
    return value


class Properties:
    """ The plugin settings persisted by the host. """

    def __init__(self, access_token=None):
        self.access_token = access_token

    @classmethod
    def decode(cls, value) -> "Properties":
        properties = require_object(value, "plugin properties")
        return cls(optional_string(properties, "access_token"))

    def encode(self) -> dict:
        return {"access_token": self.access_token}

    def __eq__(self, other):
        return isinstance(other, Properties) and other.access_token == self.access_token

    def __repr__(self):
        return "Properties(access_token=%s)" % ("<set>" if self.access_token else None)


class InspectorMessage:
    """ base class for messages from the inspector. """
    type = None

    def __eq__(self, other):
        return type(other) is type(self) and other.__dict__ == self.__dict__

    def __repr__(self):
        return "%s(%r)" % (type(self).__name__, self.__dict__)


class GetVtState(InspectorMessage):
    type = "GET_VT_STATE"


class Authorize(InspectorMessage):
    type = "AUTHORIZE"


class GetHotkeyOptions(InspectorMessage):
    """ asks for the hotkeys of a model. Without a model_id, the currently loaded model is used. """
    type = "GET_HOTKEY_OPTIONS"

    def __init__(self, model_id=None):
        self.model_id = model_id


class GetModelOptions(InspectorMessage):
    type = "GET_MODEL_OPTIONS"


def decode_inspector_message(value):
    """
    :return: the decoded message, or None when the type is not one the plugin handles.
    :raises MalformedMessageError: the message is not an object with a string type.
    """
    message = require_object(value, "inspector message")
    tag = message.get("type")
    if not isinstance(tag, str):
        raise MalformedMessageError("inspector message has no type: %r" % (value,))
    if tag == GetVtState.type:
        return GetVtState()
    if tag == Authorize.type:
        return Authorize()
    if tag == GetHotkeyOptions.type:
        return GetHotkeyOptions(optional_string(message, "model_id"))
    if tag == GetModelOptions.type:
        return GetModelOptions()
    return None


def vt_state_message(phase: ConnectionPhase) -> dict:
    return {"type": "VT_STATE", "state": phase.value}


def _options(options):
    return [{"label": o.label, "value": o.value} for o in options]


def hotkey_options_message(options) -> dict:
    return {"type": "HOTKEY_OPTIONS", "options": _options(options)}


def model_options_message(options) -> dict:
    return {"type": "MODEL_OPTIONS", "options": _options(options)}
