"""
The plugin's view of the Tilepad host. The host runtime provides objects with these methods
and calls the Plugin callbacks. Sends are expected not to block: the host queues them.
"""
from abc import abstractmethod


class PluginSession:
    """ A connection to the host, used to read and persist the plugin properties. """

    @abstractmethod
    def set_properties(self, properties: dict):
        """ replaces the persisted plugin properties. """
        raise NotImplementedError

    @abstractmethod
    def get_properties(self):
        """ asks the host to deliver the current properties to Plugin.on_properties. """
        raise NotImplementedError


class Inspector:
    """ An open inspector (settings panel) for one of the plugin's tiles. """

    @abstractmethod
    def send(self, message: dict):
        raise NotImplementedError


class TileInteractionContext:
    """ Identifies the tile that was pressed and the action it is configured with. """

    def __init__(self, action_id, tile_id=None, device_id=None):
        self.action_id = action_id
        self.tile_id = tile_id
        self.device_id = device_id


class Plugin:
    """ The callbacks the host invokes on the plugin. They should return without waiting on I/O. """

    def on_properties(self, session: PluginSession, properties):
        pass

    def on_inspector_open(self, session: PluginSession, inspector: Inspector):
        pass

    def on_inspector_close(self, session: PluginSession, inspector: Inspector):
        pass

    def on_inspector_message(self, session: PluginSession, inspector: Inspector, message):
        pass

    def on_tile_clicked(self, session: PluginSession, ctx: TileInteractionContext, properties):
        pass
