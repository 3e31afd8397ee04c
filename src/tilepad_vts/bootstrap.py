"""
Assembles the plugin from its parts.

    runtime = build_runtime(load_plugin_config())
    runtime.start()
    ... the host calls runtime.plugin ...
    runtime.close()
"""
import logging
import sys

from tilepad_vts.actions import ActionDispatcher
from tilepad_vts.auth import AuthManager
from tilepad_vts.broadcaster import StateBroadcaster
from tilepad_vts.client import VTubeStudioClient
from tilepad_vts.config.config import PluginConfig
from tilepad_vts.connector.websocketconn import WebSocketConnector, websocket_url
from tilepad_vts.event_loop import EventLoop
from tilepad_vts.plugin import VtPlugin
from tilepad_vts.state import ClientState
from tilepad_vts.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(threadName)s %(name)s: %(message)s"


def configure_logging(level=logging.INFO):
    """
    Sends log records at or above level to stderr. The level may be given by name.
    Calling again only changes the level.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    root = logging.getLogger()
    root.setLevel(level)
    if not any(getattr(h, "tilepad_vts", False) for h in root.handlers):
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.tilepad_vts = True
        root.addHandler(handler)
    return root


class PluginRuntime:
    """ The running parts of the plugin. The host interacts with `plugin`. """

    def __init__(self, client: VTubeStudioClient, state: ClientState, supervisor: ConnectionSupervisor,
                 event_loop: EventLoop, plugin: VtPlugin):
        self.client = client
        self.state = state
        self.supervisor = supervisor
        self.event_loop = event_loop
        self.plugin = plugin

    def start(self):
        self.event_loop.start()

    def close(self):
        self.event_loop.stop()
        self.supervisor.close()
        self.plugin.close()


def build_runtime(config: PluginConfig=None, connector=None, executor=None) -> PluginRuntime:
    """
    Wires the plugin to a VTube Studio connection.
    :param config: the plugin settings. Defaults are used when not given.
    :param connector: the connector to VTube Studio. By default a websocket to the configured host and port.
    """
    config = config or PluginConfig()
    if connector is None:
        # failed connects are expected while VTube Studio is not running, the probe retries them
        connector = WebSocketConnector(websocket_url(config.host, config.port), config.connect_timeout,
                                       report_errors=False)
    client = VTubeStudioClient(connector, config.request_timeout)
    state = ClientState()
    broadcaster = StateBroadcaster(state)
    supervisor = ConnectionSupervisor(client, state, broadcaster, config.probe_period)
    auth = AuthManager(supervisor, state, broadcaster, config.plugin_name, config.plugin_developer,
                       config.plugin_icon, config.token_request_timeout)
    dispatcher = ActionDispatcher(supervisor)
    event_loop = EventLoop(client, state, broadcaster, supervisor)
    plugin = VtPlugin(state, broadcaster, supervisor, auth, dispatcher, executor)
    logger.debug("plugin built with %s", config)
    return PluginRuntime(client, state, supervisor, event_loop, plugin)
