"""
The host callbacks of the VTube Studio plugin.

Callbacks return immediately. Anything that talks to VTube Studio is handed to an executor.
"""
import logging
from concurrent.futures import Executor, ThreadPoolExecutor

from tilepad_vts.actions import ActionDispatcher
from tilepad_vts.auth import AuthManager
from tilepad_vts.broadcaster import StateBroadcaster
from tilepad_vts.errors import MalformedMessageError, VtsError
from tilepad_vts.host import Inspector, Plugin, PluginSession, TileInteractionContext
from tilepad_vts.messages import Authorize, GetHotkeyOptions, GetModelOptions, GetVtState, Properties, \
    SelectOption, decode_inspector_message, hotkey_options_message, model_options_message, vt_state_message
from tilepad_vts.protocol.requests import AvailableModelsRequest, HotkeysInCurrentModelRequest
from tilepad_vts.state import ClientState
from tilepad_vts.supervisor import ConnectionSupervisor

logger = logging.getLogger(__name__)


class VtPlugin(Plugin):

    def __init__(self, state: ClientState, broadcaster: StateBroadcaster, supervisor: ConnectionSupervisor,
                 auth: AuthManager, dispatcher: ActionDispatcher, executor: Executor=None):
        self.state = state
        self.broadcaster = broadcaster
        self.supervisor = supervisor
        self.auth = auth
        self.dispatcher = dispatcher
        self.executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="vts-plugin")

    def submit(self, fn, *args):
        return self.executor.submit(self._run, fn, *args)

    @staticmethod
    def _run(fn, *args):
        try:
            return fn(*args)
        except Exception as e:
            logger.exception(e)

    def on_properties(self, session: PluginSession, properties):
        self.state.session = session
        try:
            decoded = Properties.decode(properties)
        except MalformedMessageError as e:
            logger.error("ignoring malformed plugin properties: %s", e)
            return
        self.submit(self.auth.update_token, decoded.access_token)

    def on_inspector_open(self, session: PluginSession, inspector: Inspector):
        self.state.inspector = inspector

    def on_inspector_close(self, session: PluginSession, inspector: Inspector):
        with self.state.lock:
            # a newer inspector may already have been opened
            if self.state.inspector is inspector:
                self.state.inspector = None

    def on_inspector_message(self, session: PluginSession, inspector: Inspector, message):
        try:
            decoded = decode_inspector_message(message)
        except MalformedMessageError as e:
            logger.error("ignoring malformed inspector message: %s", e)
            return
        if decoded is None:
            logger.debug("ignoring inspector message %r", message)
        elif isinstance(decoded, GetVtState):
            self.broadcaster.send_inspector(vt_state_message(self.state.phase), inspector)
        elif isinstance(decoded, Authorize):
            self.submit(self.authorize)
        elif isinstance(decoded, GetHotkeyOptions):
            self.submit(self.send_hotkey_options, inspector, decoded.model_id)
        elif isinstance(decoded, GetModelOptions):
            self.submit(self.send_model_options, inspector)

    def on_tile_clicked(self, session: PluginSession, ctx: TileInteractionContext, properties):
        self.submit(self.dispatcher.dispatch, ctx.action_id, properties)

    def authorize(self):
        """ asks VTube Studio for a token and persists the one granted. """
        token = self.auth.request_authenticate()
        if token is not None:
            self.broadcaster.set_token(token)

    def send_hotkey_options(self, inspector: Inspector, model_id=None):
        try:
            hotkeys = self.supervisor.send(HotkeysInCurrentModelRequest(model_id))
        except VtsError as e:
            logger.error("unable to list hotkeys: %s", e)
            return
        options = [SelectOption(h.name, h.hotkey_id) for h in hotkeys]
        self.broadcaster.send_inspector(hotkey_options_message(options), inspector)

    def send_model_options(self, inspector: Inspector):
        try:
            models = self.supervisor.send(AvailableModelsRequest())
        except VtsError as e:
            logger.error("unable to list models: %s", e)
            return
        options = [SelectOption(m.model_name, m.model_id) for m in models]
        self.broadcaster.send_inspector(model_options_message(options), inspector)

    def close(self):
        self.executor.shutdown(wait=False)
