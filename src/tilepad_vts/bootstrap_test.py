import logging
import unittest
from unittest.mock import Mock

import timeout_decorator
from hamcrest import assert_that, is_

from tilepad_vts.bootstrap import build_runtime, configure_logging
from tilepad_vts.client_test import FakeConnector
from tilepad_vts.config.config import PluginConfig
from tilepad_vts.host import TileInteractionContext
from tilepad_vts.plugin_test import InlineExecutor
from tilepad_vts.state import ConnectionPhase
from tilepad_vts.support.background_test import debug_timeout, wait_until


class FakeVTubeStudio:
    """ answers requests the way VTube Studio does, for a single known token. """

    def __init__(self, token="T1"):
        self.token = token
        self.triggered = []

    def __call__(self, request):
        message_type, data = request["messageType"], request["data"]
        if message_type == "APIStateRequest":
            return "APIStateResponse", {"active": True, "currentSessionAuthenticated": False}
        if message_type == "AuthenticationRequest":
            return "AuthenticationResponse", {"authenticated": data["authenticationToken"] == self.token,
                                              "reason": "checked"}
        if message_type == "HotkeyTriggerRequest":
            self.triggered.append(data["hotkeyID"])
            return "HotkeyTriggerResponse", {"hotkeyID": data["hotkeyID"]}
        return "APIError", {"errorID": 1, "message": "unsupported"}


class PluginRuntimeTest(unittest.TestCase):

    def setUp(self):
        self.vts = FakeVTubeStudio()
        self.connector = FakeConnector(self.vts)
        config = PluginConfig()
        config.probe_period = 0.01
        config.request_timeout = 2
        self.runtime = build_runtime(config, self.connector, InlineExecutor())
        self.plugin = self.runtime.plugin
        self.inspector = Mock()
        self.session = Mock()
        self.properties = {"access_token": "T1"}
        # the host answers a request for the properties by delivering them
        self.session.get_properties.side_effect = lambda: self.plugin.on_properties(self.session, self.properties)

    def tearDown(self):
        self.runtime.close()

    def phase(self):
        return self.runtime.state.phase

    @timeout_decorator.timeout(debug_timeout(5))
    def test_connects_and_authorizes(self):
        self.plugin.on_properties(self.session, self.properties)
        self.plugin.on_inspector_open(self.session, self.inspector)
        assert_that(self.phase(), is_(ConnectionPhase.DISCONNECTED))
        self.runtime.start()
        wait_until(lambda: self.phase() is ConnectionPhase.AUTHORIZED)
        states = [c[0][0]["state"] for c in self.inspector.send.call_args_list]
        assert_that(states, is_(["CONNECTED", "AUTHORIZED"]))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_unknown_token_is_not_authorized(self):
        self.properties = {"access_token": "stale"}
        self.plugin.on_properties(self.session, self.properties)
        self.runtime.start()
        wait_until(lambda: self.phase() is ConnectionPhase.UNAUTHORIZED)

    @timeout_decorator.timeout(debug_timeout(5))
    def test_reconnects_after_connection_lost(self):
        self.plugin.on_properties(self.session, self.properties)
        self.runtime.start()
        wait_until(lambda: self.phase() is ConnectionPhase.AUTHORIZED)
        self.connector.conduits[0].drop()
        wait_until(lambda: len(self.connector.conduits) == 2 and self.phase() is ConnectionPhase.AUTHORIZED)
        assert_that(self.runtime.state.epoch, is_(2))

    @timeout_decorator.timeout(debug_timeout(5))
    def test_tile_triggers_hotkey(self):
        self.plugin.on_properties(self.session, self.properties)
        self.runtime.start()
        wait_until(lambda: self.phase() is ConnectionPhase.AUTHORIZED)
        self.plugin.on_tile_clicked(self.session, TileInteractionContext("trigger_hotkey"), {"hotkey_id": "H1"})
        assert_that(self.vts.triggered, is_(["H1"]))
        assert_that(self.phase(), is_(ConnectionPhase.AUTHORIZED))


class ConfigureLoggingTest(unittest.TestCase):

    def setUp(self):
        self.root = logging.getLogger()
        self.handlers = list(self.root.handlers)
        self.level = self.root.level

    def tearDown(self):
        self.root.handlers = self.handlers
        self.root.setLevel(self.level)

    def test_installs_one_handler(self):
        configure_logging("debug")
        configure_logging(logging.WARNING)
        ours = [h for h in self.root.handlers if getattr(h, "tilepad_vts", False)]
        assert_that(len(ours), is_(1))
        assert_that(self.root.level, is_(logging.WARNING))
