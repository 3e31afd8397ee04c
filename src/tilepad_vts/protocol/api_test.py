import json
import unittest
from unittest.mock import Mock

from hamcrest import assert_that, calling, contains_exactly, has_entries, is_, none, not_, raises

from tilepad_vts.errors import ApiError, AuthRejectedError, MalformedMessageError, TransportError
from tilepad_vts.protocol.api import ApiProtocolHandler, Envelope
from tilepad_vts.protocol.requests import ApiState, ApiStateRequest, AuthenticationRequest, \
    AuthenticationResult, AuthenticationTokenRequest, AvailableModelsRequest, Hotkey, HotkeysInCurrentModelRequest, \
    HotkeyTriggerRequest, Model, ModelLoadRequest


def response(request_id, message_type, data):
    return json.dumps({"apiName": "VTubeStudioPublicAPI", "apiVersion": "1.0", "requestID": request_id,
                       "messageType": message_type, "data": data})


class EnvelopeTest(unittest.TestCase):

    def test_encode(self):
        message = json.loads(Envelope("APIStateRequest", {}, "r1").encode())
        assert_that(message, has_entries(apiName="VTubeStudioPublicAPI", apiVersion="1.0", requestID="r1",
                                         messageType="APIStateRequest", data={}))

    def test_decode(self):
        envelope = Envelope.decode(response("r1", "APIStateResponse", {"active": True}))
        assert_that(envelope.message_type, is_("APIStateResponse"))
        assert_that(envelope.request_id, is_("r1"))
        assert_that(envelope.data, is_({"active": True}))
        assert_that(envelope.is_error, is_(False))

    def test_decode_missing_data_is_empty(self):
        envelope = Envelope.decode('{"messageType": "X"}')
        assert_that(envelope.data, is_({}))
        assert_that(envelope.request_id, is_(none()))

    def test_decode_rejects_non_json(self):
        assert_that(calling(Envelope.decode).with_args("not json"), raises(MalformedMessageError))

    def test_decode_rejects_missing_message_type(self):
        assert_that(calling(Envelope.decode).with_args('{"data": {}}'), raises(MalformedMessageError))
        assert_that(calling(Envelope.decode).with_args('[1, 2]'), raises(MalformedMessageError))

    def test_decode_rejects_non_object_data(self):
        assert_that(calling(Envelope.decode).with_args('{"messageType": "X", "data": 3}'),
                    raises(MalformedMessageError))


class ApiProtocolHandlerTest(unittest.TestCase):

    def setUp(self):
        self.conduit = Mock()
        self.sut = ApiProtocolHandler(self.conduit, id_prefix="t")

    def sent(self, index=-1):
        return json.loads(self.conduit.write_message.call_args_list[index][0][0])

    def test_request_is_written_with_unique_ids(self):
        self.sut.async_request(ApiStateRequest())
        self.sut.async_request(ApiStateRequest())
        assert_that(self.sent(0)["requestID"], is_("t-1"))
        assert_that(self.sent(1)["requestID"], is_("t-2"))
        assert_that(self.sut.pending, is_(2))

    def test_response_completes_matching_future(self):
        first = self.sut.async_request(ApiStateRequest())
        second = self.sut.async_request(HotkeyTriggerRequest("H1"))
        self.conduit.read_message.return_value = response("t-2", "HotkeyTriggerResponse", {"hotkeyID": "H1"})
        self.sut.read_response()
        assert_that(second.result(0), is_("H1"))
        assert_that(first.done(), is_(False))
        assert_that(self.sut.pending, is_(1))

    def test_api_error_completes_with_exception(self):
        future = self.sut.async_request(HotkeyTriggerRequest("H1"))
        self.sut.process_response(Envelope("APIError", {"errorID": 8, "message": "auth"}, "t-1"))
        assert_that(calling(future.result).with_args(0), raises(AuthRejectedError))

    def test_other_api_error(self):
        future = self.sut.async_request(ModelLoadRequest("M1"))
        self.sut.process_response(Envelope("APIError", {"errorID": 153, "message": "busy"}, "t-1"))
        assert_that(calling(future.result).with_args(0), raises(ApiError, "153"))

    def test_undecodable_response_data(self):
        future = self.sut.async_request(AuthenticationTokenRequest("p", "d"))
        self.sut.process_response(Envelope("AuthenticationTokenResponse", {}, "t-1"))
        assert_that(calling(future.result).with_args(0), raises(MalformedMessageError))

    def test_unmatched_messages_go_to_handlers(self):
        handler = Mock()
        self.sut.unmatched_handlers += handler
        envelope = Envelope("ModelLoadedEvent", {}, "someone-else")
        self.sut.process_response(envelope)
        handler.assert_called_once_with(envelope)

    def test_undecodable_message_is_discarded(self):
        handler = Mock()
        self.sut.unmatched_handlers += handler
        self.conduit.read_message.return_value = "garbage"
        assert_that(self.sut.read_response(), is_(none()))
        handler.assert_not_called()

    def test_write_failure_raises_transport_error(self):
        self.conduit.write_message.side_effect = ConnectionResetError()
        assert_that(calling(self.sut.async_request).with_args(ApiStateRequest()), raises(TransportError))
        assert_that(self.sut.pending, is_(0))

    def test_fail_pending(self):
        f1 = self.sut.async_request(ApiStateRequest())
        f2 = self.sut.async_request(ApiStateRequest())
        self.sut.fail_pending(TransportError("gone"))
        assert_that(calling(f1.result).with_args(0), raises(TransportError))
        assert_that(calling(f2.result).with_args(0), raises(TransportError))
        assert_that(self.sut.pending, is_(0))

    def test_discard_future(self):
        future = self.sut.async_request(ApiStateRequest())
        self.sut.discard_future(future)
        self.sut.process_response(Envelope("APIStateResponse", {}, "t-1"))
        assert_that(future.done(), is_(False))


class RequestsTest(unittest.TestCase):

    def test_authentication_request(self):
        request = AuthenticationRequest("Tilepad VT Studio", "Jacobtread", "T1")
        assert_that(request.message_type, is_("AuthenticationRequest"))
        assert_that(request.to_data(), is_({"pluginName": "Tilepad VT Studio", "pluginDeveloper": "Jacobtread",
                                            "authenticationToken": "T1"}))
        assert_that(request.decode_response({"authenticated": True, "reason": "ok"}),
                    is_(AuthenticationResult(True, "ok")))

    def test_token_request_icon_is_optional(self):
        assert_that(AuthenticationTokenRequest("p", "d").to_data(), not_(has_entries(pluginIcon=None)))
        assert_that(AuthenticationTokenRequest("p", "d", "aWNvbg==").to_data(), has_entries(pluginIcon="aWNvbg=="))
        assert_that(AuthenticationTokenRequest("p", "d").decode_response({"authenticationToken": "T"}), is_("T"))

    def test_hotkeys_request(self):
        assert_that(HotkeysInCurrentModelRequest().to_data(), is_({}))
        assert_that(HotkeysInCurrentModelRequest("M1").to_data(), is_({"modelID": "M1"}))
        hotkeys = HotkeysInCurrentModelRequest().decode_response({"availableHotkeys": [
            {"name": "Wave", "hotkeyID": "H1", "type": "TriggerAnimation"},
            {"name": "Smile", "hotkeyID": "H2"},
        ]})
        assert_that(hotkeys, contains_exactly(Hotkey("Wave", "H1"), Hotkey("Smile", "H2")))

    def test_models_request(self):
        models = AvailableModelsRequest().decode_response({"availableModels": [
            {"modelName": "Akari", "modelID": "M1", "modelLoaded": True},
            {"modelName": "Hiyori", "modelID": "M2"},
        ]})
        assert_that(models, contains_exactly(Model("Akari", "M1"), Model("Hiyori", "M2")))

    def test_api_state_request(self):
        state = ApiStateRequest().decode_response({"active": True, "currentSessionAuthenticated": False})
        assert_that(state, is_(ApiState(True, False)))

    def test_trigger_and_load(self):
        assert_that(HotkeyTriggerRequest("H1").to_data(), is_({"hotkeyID": "H1"}))
        assert_that(ModelLoadRequest("M1").to_data(), is_({"modelID": "M1"}))

    def test_requests_compare_by_value(self):
        assert_that(HotkeyTriggerRequest("H1"), is_(HotkeyTriggerRequest("H1")))
        assert_that(HotkeyTriggerRequest("H1"), not_(HotkeyTriggerRequest("H2")))
