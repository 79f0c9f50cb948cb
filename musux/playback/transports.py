import logging
from abc import ABC, abstractmethod
from typing import Optional

from musux.core import log_warning
from musux.spotify import PlaybackTransportError, RemotePlaybackGateway, SpotifyServiceError

from .bridge import BridgeError, BridgeNotReady, BridgeOperationError, DeviceBridge

logger = logging.getLogger(__name__)


class PlaybackTransport(ABC):
    """
    One way of executing transport-control intents.

    - name : stable identifier ("gateway", "bridge", ...)

    Volumes are always given as integer percent (0-100); implementations
    convert to whatever their backend expects.
    """

    name: str

    @abstractmethod
    async def play(self, uri: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def resume(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def pause(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def seek(self, position_ms: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def set_volume(self, percent: int) -> None:
        raise NotImplementedError

    @abstractmethod
    async def skip_next(self) -> None:
        raise NotImplementedError

    @abstractmethod
    async def skip_previous(self) -> None:
        raise NotImplementedError


class GatewayTransport(PlaybackTransport):
    """Generic Web API endpoints, acting on whatever device Spotify considers active."""

    name = "gateway"

    def __init__(self, gateway: RemotePlaybackGateway) -> None:
        self.gateway = gateway

    async def play(self, uri: str) -> None:
        await self.gateway.play(uri)

    async def resume(self) -> None:
        await self.gateway.play()

    async def pause(self) -> None:
        await self.gateway.pause()

    async def seek(self, position_ms: int) -> None:
        await self.gateway.seek(position_ms)

    async def set_volume(self, percent: int) -> None:
        await self.gateway.set_volume(percent)

    async def skip_next(self) -> None:
        await self.gateway.skip_next()

    async def skip_previous(self) -> None:
        await self.gateway.skip_previous()


class BridgeTransport(PlaybackTransport):
    """
    The locally registered device.

    The engine cannot start an arbitrary URI by itself, so play() asks the
    Web API to start it on the bridge's own device id.
    """

    name = "bridge"

    def __init__(self, bridge: DeviceBridge, gateway: RemotePlaybackGateway) -> None:
        self.bridge = bridge
        self.gateway = gateway

    async def play(self, uri: str) -> None:
        device_id = self.bridge.device_id
        if not self.bridge.is_ready or device_id is None:
            raise BridgeNotReady("Cannot play: device bridge is not ready")
        try:
            await self.gateway.play(uri, device_id=device_id)
        except (SpotifyServiceError, PlaybackTransportError) as e:
            raise BridgeOperationError(f"play on device {device_id} failed: {e}") from e

    async def resume(self) -> None:
        await self.bridge.resume()

    async def pause(self) -> None:
        await self.bridge.pause()

    async def seek(self, position_ms: int) -> None:
        await self.bridge.seek(position_ms)

    async def set_volume(self, percent: int) -> None:
        await self.bridge.set_volume(percent / 100)

    async def skip_next(self) -> None:
        await self.bridge.next_track()

    async def skip_previous(self) -> None:
        await self.bridge.previous_track()


class ActivePathTransport(PlaybackTransport):
    """
    The only transport the coordinator holds.

    Routes each call to the bridge while it is ready, else to the gateway.
    A bridge failure is soft: that single call is retried on the gateway and
    the bridge state is left alone.
    """

    name = "active"

    def __init__(
        self,
        gateway: RemotePlaybackGateway,
        bridge: Optional[DeviceBridge] = None,
    ) -> None:
        self.bridge = bridge
        self.gateway_transport = GatewayTransport(gateway)
        self.bridge_transport = BridgeTransport(bridge, gateway) if bridge else None

    @property
    def active(self) -> PlaybackTransport:
        if self.bridge_transport is not None and self.bridge is not None and self.bridge.is_ready:
            return self.bridge_transport
        return self.gateway_transport

    async def _dispatch(self, op: str, *args) -> None:
        primary = self.active
        try:
            await getattr(primary, op)(*args)
            return
        except BridgeError as e:
            if primary is self.gateway_transport:
                raise
            log_warning(f"{e}; falling back to the Web API.")

        logger.debug("Retrying %s on the gateway", op)
        await getattr(self.gateway_transport, op)(*args)

    async def play(self, uri: str) -> None:
        await self._dispatch("play", uri)

    async def resume(self) -> None:
        await self._dispatch("resume")

    async def pause(self) -> None:
        await self._dispatch("pause")

    async def seek(self, position_ms: int) -> None:
        await self._dispatch("seek", position_ms)

    async def set_volume(self, percent: int) -> None:
        await self._dispatch("set_volume", percent)

    async def skip_next(self) -> None:
        await self._dispatch("skip_next")

    async def skip_previous(self) -> None:
        await self._dispatch("skip_previous")
