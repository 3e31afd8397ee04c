"""


VTube Studio plugin for Tilepad

Lets Tilepad tiles trigger VTube Studio hotkeys and switch models, over the VTube Studio
public API websocket.

- Conduit: a message channel. WebSocketConduit carries the text frames of a websocket.
- Connector: opens a conduit to an endpoint and fires Connected/Disconnected events.
  WebSocketConnector opens ws://host:port.
- ApiProtocolHandler: wraps requests in the API envelope and pairs responses with the
  request by requestID.
- VTubeStudioClient: connects lazily on the first request, publishes ClientEvents
  (Connected, Disconnected, NewAuthToken, Other) on a queue.
- ConnectionSupervisor: the single send path. One request in flight at a time. Classifies
  failures, clears the token when VTube Studio says the session is not authenticated,
  and owns the keepalive probe that re-opens the connection while it is down.
- AuthManager: obtains tokens and authenticates each new connection.
- EventLoop: consumes the client events and moves the connection phase.
- StateBroadcaster: phase and token changes, pushed to the inspector and the host settings.
- VtPlugin: the host callbacks. Work that talks to VTube Studio runs on an executor.


Connection phases:

    DISCONNECTED -> CONNECTED -> AUTHORIZED
                        |    <-> NOT_AUTHORIZED
    any phase    -> DISCONNECTED when the websocket closes

Each Connected event starts a new connection epoch. An authentication outcome from an
earlier epoch is ignored, since VTube Studio authenticates each websocket separately.


## Threading

- one reader thread per open websocket, pumping responses
- the event loop thread
- at most one keepalive probe thread, while disconnected
- the plugin executor, for host callbacks
"""
