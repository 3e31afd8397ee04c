"""
The VTube Studio requests used by the plugin, and the values decoded from their responses.
"""
from collections import namedtuple

from tilepad_vts.protocol.api import Request

Hotkey = namedtuple('Hotkey', ['name', 'hotkey_id'])
Model = namedtuple('Model', ['model_name', 'model_id'])
ApiState = namedtuple('ApiState', ['active', 'authenticated'])
AuthenticationResult = namedtuple('AuthenticationResult', ['authenticated', 'reason'])


class RequestSupport(Request):
    """ equality and repr over the request fields, so requests can be compared in tests and logs. """

    def __eq__(self, other):
        return type(other) is type(self) and other.__dict__ == self.__dict__

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__,
                           ", ".join("%s=%r" % item for item in sorted(self.__dict__.items())))


class ApiStateRequest(RequestSupport):
    """ Asks for the API state. Requires no authentication, so it is used as a keepalive probe. """
    message_type = "APIStateRequest"

    def to_data(self):
        return {}

    def decode_response(self, data):
        return ApiState(bool(data.get("active")), bool(data.get("currentSessionAuthenticated")))


class AuthenticationTokenRequest(RequestSupport):
    """
    Asks VTube Studio for a new token. VTube Studio shows a popup and only answers once the
    user has allowed or denied the plugin.
    """
    message_type = "AuthenticationTokenRequest"

    def __init__(self, plugin_name, plugin_developer, plugin_icon=None):
        self.plugin_name = plugin_name
        self.plugin_developer = plugin_developer
        self.plugin_icon = plugin_icon

    def to_data(self):
        data = {"pluginName": self.plugin_name, "pluginDeveloper": self.plugin_developer}
        if self.plugin_icon:
            data["pluginIcon"] = self.plugin_icon
        return data

    def decode_response(self, data):
        token = data["authenticationToken"]
        if not isinstance(token, str):
            raise TypeError("authenticationToken is not a string")
        return token


class AuthenticationRequest(RequestSupport):
    """ Authenticates the current session with a token. """
    message_type = "AuthenticationRequest"

    def __init__(self, plugin_name, plugin_developer, token):
        self.plugin_name = plugin_name
        self.plugin_developer = plugin_developer
        self.token = token

    def to_data(self):
        return {
            "pluginName": self.plugin_name,
            "pluginDeveloper": self.plugin_developer,
            "authenticationToken": self.token,
        }

    def decode_response(self, data):
        return AuthenticationResult(bool(data["authenticated"]), data.get("reason"))


class HotkeysInCurrentModelRequest(RequestSupport):
    """ Lists the hotkeys of a model, or of the currently loaded model when model_id is None. """
    message_type = "HotkeysInCurrentModelRequest"

    def __init__(self, model_id=None):
        self.model_id = model_id

    def to_data(self):
        return {"modelID": self.model_id} if self.model_id else {}

    def decode_response(self, data):
        return [Hotkey(h["name"], h["hotkeyID"]) for h in data.get("availableHotkeys", [])]


class AvailableModelsRequest(RequestSupport):
    message_type = "AvailableModelsRequest"

    def to_data(self):
        return {}

    def decode_response(self, data):
        return [Model(m["modelName"], m["modelID"]) for m in data.get("availableModels", [])]


class HotkeyTriggerRequest(RequestSupport):
    message_type = "HotkeyTriggerRequest"

    def __init__(self, hotkey_id):
        self.hotkey_id = hotkey_id

    def to_data(self):
        return {"hotkeyID": self.hotkey_id}

    def decode_response(self, data):
        return data.get("hotkeyID")


class ModelLoadRequest(RequestSupport):
    message_type = "ModelLoadRequest"

    def __init__(self, model_id):
        self.model_id = model_id

    def to_data(self):
        return {"modelID": self.model_id}

    def decode_response(self, data):
        return data.get("modelID")
