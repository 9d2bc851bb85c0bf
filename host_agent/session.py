"""
Connection Session
==================

Owns the websocket to the controller and is its only writer.

  Disconnected ──connect()──▶ Connecting ──handshake ok──▶ Connected
                                   │                          │
                           handshake fails              read failure /
                           (HandshakeError)               close()
                                                              ▼
                                                            Closed

Right after the handshake the Start message (token, telemetry, full image
and container inventories) is sent synchronously. The receive loop then
answers every inbound frame with at most one outbound frame:

  recognized command  → dispatcher acknowledgment
  anything else       → idle policy: one queued event if any,
                        otherwise a fresh SendMetric

Undecodable frames are logged and skipped. A failed send is logged and not
retried. A failed read closes the session; reconnecting is left to the
process supervisor.
"""

from __future__ import annotations
import logging
import threading
from enum import Enum
from typing import Callable, Optional

from websockets.exceptions import ConnectionClosed
from websockets.sync.client import connect as ws_connect

from .errors import HandshakeError, SessionStateError
from .messages import InboundMessage, MessageDecodeError, OutboundMessage, StartPayload
from .outbound_queue import OutboundQueue

log = logging.getLogger(__name__)

WS_SCHEME = "ws"
WS_PATH   = "/ws"


class SessionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING   = "connecting"
    CONNECTED    = "connected"
    CLOSED       = "closed"


def build_url(address: str, scheme: str = WS_SCHEME) -> str:
    """'10.0.0.5:8080' → 'ws://10.0.0.5:8080/ws'"""
    return f"{scheme}://{address.strip().rstrip('/')}{WS_PATH}"


class Session:
    def __init__(
        self,
        address:    str,
        token:      str,
        queue:      OutboundQueue,
        dispatcher,
        sampler,
        resources,
        dial:       Callable = ws_connect,
    ):
        self.url        = build_url(address)
        self.token      = token
        self.queue      = queue
        self.dispatcher = dispatcher
        self.sampler    = sampler
        self.resources  = resources

        self._dial  = dial
        self._conn  = None
        self._state = SessionState.DISCONNECTED
        self._lock  = threading.Lock()

        # Set when the receive loop ended because the transport failed
        self.transport_failed = False
        # Set when the receive loop died on an unexpected error
        self.error: Optional[Exception] = None

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    # ─── Lifecycle ────────────────────────────────────────────────────────────

    def connect(self) -> None:
        """
        Open the websocket and send the Start message.
        Raises HandshakeError if the controller cannot be reached.
        """
        with self._lock:
            if self._state is not SessionState.DISCONNECTED:
                raise SessionStateError(f"connect() in state {self._state.value}")
            self._state = SessionState.CONNECTING

        log.info(f"[session] Connecting to {self.url}")
        try:
            conn = self._dial(self.url)
        except Exception as e:
            with self._lock:
                self._state = SessionState.CLOSED
            raise HandshakeError(f"cannot connect to {self.url}: {e}") from e

        with self._lock:
            self._conn  = conn
            self._state = SessionState.CONNECTED
        log.info("[session] Connection established")

        self.send_start()

    def close(self) -> None:
        """Release the transport. Closing twice only logs."""
        with self._lock:
            if self._state is SessionState.CLOSED:
                log.debug("[session] Already closed")
                return
            conn, self._conn = self._conn, None
            self._state = SessionState.CLOSED

        if conn is None:
            return
        try:
            conn.close()
            log.info("[session] Connection closed")
        except Exception as e:
            log.error(f"[session] Error closing connection: {e}")

    # ─── Sending ──────────────────────────────────────────────────────────────

    def _require_connection(self):
        with self._lock:
            if self._state is not SessionState.CONNECTED or self._conn is None:
                raise SessionStateError(f"no open connection (state {self._state.value})")
            return self._conn

    def _send_text(self, text: str) -> bool:
        conn = self._require_connection()
        try:
            conn.send(text)
            return True
        except Exception as e:
            log.error(f"[session] Send failed: {e}")
            return False

    def send(self, message: OutboundMessage) -> bool:
        """
        Send one frame. Returns False if the transport rejected it.
        Raises SessionStateError outside the Connected state.
        """
        return self._send_text(message.encode())

    def send_start(self) -> bool:
        payload = StartPayload(
            token      = self.token,
            metric     = self.sampler.sample(),
            images     = self.resources.list_images(),
            containers = self.resources.list_containers(),
        )
        log.info(
            f"[session] Start: {len(payload.images)} image(s), "
            f"{len(payload.containers)} container(s)"
        )
        return self._send_text(payload.encode())

    # ─── Receive loop ─────────────────────────────────────────────────────────

    def handle_frame(self, raw: str | bytes) -> Optional[OutboundMessage]:
        """
        Decide the single response to one inbound frame.
        Returns None when the frame cannot be decoded.
        """
        try:
            message = InboundMessage.decode(raw)
        except MessageDecodeError as e:
            log.warning(f"[session] Dropping undecodable frame: {e}")
            return None

        if self.dispatcher.handles(message):
            return self.dispatcher.dispatch(message)
        return self.idle_response()

    def idle_response(self) -> OutboundMessage:
        if self.queue.size() > 0:
            queued = self.queue.pop()
            if queued is not None:
                return queued
        return OutboundMessage.metric(self.sampler.sample())

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Serve frames until the transport fails, the session is closed or
        stop_event is set. Sets stop_event on the way out.
        Raises SessionStateError if the session was never connected.
        """
        self._require_connection()
        try:
            while stop_event is None or not stop_event.is_set():
                conn = self._require_connection()
                try:
                    raw = conn.recv()
                except ConnectionClosed as e:
                    if self.state is SessionState.CONNECTED:
                        log.warning(f"[session] Controller closed the connection: {e}")
                        self.transport_failed = True
                    break
                except Exception as e:
                    if self.state is SessionState.CONNECTED:
                        log.error(f"[session] Read failed: {e}")
                        self.transport_failed = True
                    break

                response = self.handle_frame(raw)
                if response is not None:
                    self.send(response)
        except SessionStateError as e:
            log.info(f"[session] Receive loop stopping: {e}")
        except Exception as e:
            log.critical(f"[session] Receive loop crashed: {e!r}")
            self.error = e
        finally:
            self.close()
            if stop_event is not None:
                stop_event.set()
            log.info("[session] Receive loop ended")
