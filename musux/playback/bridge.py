"""Device Bridge: a locally registered Spotify output device.

A playback engine (Spotify Connect receiver, Web Playback SDK host, ...)
registers itself with Spotify under DEVICE_NAME and reports lifecycle
events. While the bridge is READY, transport intents go straight to the
engine instead of the generic /me/player endpoints.

    uninitialized -> connecting -> ready -> disconnected
                          |                     ^
                          +---------------------+   (connect failed / errors)

The bridge never polls; every transition comes from an engine notification
or an explicit start()/disconnect().

No engine ships with this package. Spotify's Web Playback SDK only runs
inside a browser, so a host application plugs in its own PlaybackEngine.
The terminal player has no engine and drives playback through the Web API.
"""

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from musux.config import DEVICE_NAME
from musux.core import log_success, log_warning

logger = logging.getLogger(__name__)

EngineCallback = Callable[[Dict[str, Any]], None]
StateListener = Callable[["BridgeState"], None]

READY = "ready"
NOT_READY = "not_ready"
INITIALIZATION_ERROR = "initialization_error"
AUTHENTICATION_ERROR = "authentication_error"
ACCOUNT_ERROR = "account_error"
PLAYBACK_ERROR = "playback_error"

FATAL_EVENTS = (INITIALIZATION_ERROR, AUTHENTICATION_ERROR, ACCOUNT_ERROR)


class PlaybackEngine(Protocol):
    """What the bridge needs from a vendor playback engine."""

    async def connect(self) -> bool: ...

    def disconnect(self) -> None: ...

    def add_listener(self, event: str, callback: EngineCallback) -> None: ...

    def remove_listener(self, event: str, callback: EngineCallback) -> None: ...

    async def resume(self) -> None: ...

    async def pause(self) -> None: ...

    async def seek(self, position_ms: int) -> None: ...

    async def next_track(self) -> None: ...

    async def previous_track(self) -> None: ...

    async def set_volume(self, volume: float) -> None: ...


class BridgeState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    DISCONNECTED = "disconnected"


class BridgeError(RuntimeError):
    pass


class BridgeNotReady(BridgeError):
    pass


class BridgeOperationError(BridgeError):
    """An engine call failed while ready; the bridge itself stays usable."""


class DeviceBridge:
    def __init__(self, engine: PlaybackEngine, name: str = DEVICE_NAME) -> None:
        self.engine = engine
        self.name = name
        self.state = BridgeState.UNINITIALIZED
        self.device_id: Optional[str] = None
        self.last_error: Optional[str] = None
        self._state_listeners: List[StateListener] = []
        self._listening = False
        self._handlers: Dict[str, EngineCallback] = {
            READY: self._on_ready,
            NOT_READY: self._on_not_ready,
            PLAYBACK_ERROR: self._on_playback_error,
        }
        for event in FATAL_EVENTS:
            self._handlers[event] = self._fatal_handler(event)

    @property
    def is_ready(self) -> bool:
        return self.state is BridgeState.READY and self.device_id is not None

    def add_state_listener(self, listener: StateListener) -> Callable[[], None]:
        self._state_listeners.append(listener)

        def _remove() -> None:
            if listener in self._state_listeners:
                self._state_listeners.remove(listener)

        return _remove

    def _set_state(self, state: BridgeState) -> None:
        if state is self.state:
            return
        logger.debug("Bridge %s -> %s", self.state.value, state.value)
        self.state = state
        for listener in list(self._state_listeners):
            listener(state)

    # ----- lifecycle -----

    async def start(self) -> bool:
        """Register listeners and connect the engine. Returns the engine's verdict."""
        if self.state in (BridgeState.CONNECTING, BridgeState.READY):
            return True

        self._attach()
        self._set_state(BridgeState.CONNECTING)

        try:
            connected = await self.engine.connect()
        except Exception as e:  # noqa: BLE001 - vendor engine, any failure means "no bridge"
            self.last_error = f"Connection error: {e}"
            log_warning(f"Playback engine failed to connect: {e}")
            self._detach()
            self._set_state(BridgeState.DISCONNECTED)
            return False

        if not connected:
            self.last_error = "Connection refused by playback engine"
            log_warning("Playback engine refused to connect; using the Web API.")
            self._detach()
            self._set_state(BridgeState.DISCONNECTED)
            return False

        logger.info("Playback engine connected as %r, waiting for device id", self.name)
        return True

    def disconnect(self) -> None:
        self._detach()
        self.engine.disconnect()
        self.device_id = None
        self._set_state(BridgeState.DISCONNECTED)

    def _attach(self) -> None:
        if self._listening:
            return
        for event, handler in self._handlers.items():
            self.engine.add_listener(event, handler)
        self._listening = True

    def _detach(self) -> None:
        if not self._listening:
            return
        for event, handler in self._handlers.items():
            self.engine.remove_listener(event, handler)
        self._listening = False

    # ----- engine notifications -----

    def _on_ready(self, payload: Dict[str, Any]) -> None:
        device_id = payload.get("device_id")
        if not device_id:
            logger.warning("Engine reported ready without a device id")
            return
        self.device_id = device_id
        self.last_error = None
        log_success(f"Device {self.name!r} ready ({device_id}).")
        self._set_state(BridgeState.READY)

    def _on_not_ready(self, payload: Dict[str, Any]) -> None:
        log_warning(f"Device {payload.get('device_id') or self.device_id} has gone offline.")
        self.device_id = None
        self._set_state(BridgeState.DISCONNECTED)

    def _fatal_handler(self, event: str) -> EngineCallback:
        label = event.replace("_", " ").capitalize()

        def _handler(payload: Dict[str, Any]) -> None:
            self.last_error = f"{label}: {payload.get('message', '')}".rstrip(": ")
            log_warning(self.last_error)
            self.device_id = None
            self._set_state(BridgeState.DISCONNECTED)

        return _handler

    def _on_playback_error(self, payload: Dict[str, Any]) -> None:
        self.last_error = f"Playback error: {payload.get('message', '')}".rstrip(": ")
        log_warning(self.last_error)

    # ----- transport primitives -----

    async def _invoke(self, label: str, call: Callable[[], Awaitable[None]]) -> None:
        if not self.is_ready:
            raise BridgeNotReady(f"Cannot {label}: device bridge is {self.state.value}")
        try:
            await call()
        except Exception as e:  # noqa: BLE001 - surfaced as a soft failure
            raise BridgeOperationError(f"{label} failed on {self.name!r}: {e}") from e

    async def resume(self) -> None:
        await self._invoke("resume", self.engine.resume)

    async def pause(self) -> None:
        await self._invoke("pause", self.engine.pause)

    async def seek(self, position_ms: int) -> None:
        await self._invoke("seek", lambda: self.engine.seek(max(0, int(position_ms))))

    async def next_track(self) -> None:
        await self._invoke("skip to next", self.engine.next_track)

    async def previous_track(self) -> None:
        await self._invoke("skip to previous", self.engine.previous_track)

    async def set_volume(self, volume: float) -> None:
        """volume is a fraction in [0, 1]."""
        fraction = max(0.0, min(1.0, float(volume)))
        await self._invoke("set volume", lambda: self.engine.set_volume(fraction))
