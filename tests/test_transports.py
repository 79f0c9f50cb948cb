import pytest

from musux.playback import (
    ActivePathTransport,
    BridgeOperationError,
    BridgeTransport,
)
from musux.spotify import SpotifyServiceError

from fakes import FakeEngine, FakeGateway, ready_bridge


async def test_without_bridge_everything_goes_to_gateway() -> None:
    gateway = FakeGateway()
    transport = ActivePathTransport(gateway)

    await transport.play("spotify:track:t1")
    await transport.resume()
    await transport.set_volume(40)

    assert transport.active.name == "gateway"
    assert gateway.calls == [
        ("play", "spotify:track:t1", None),
        ("play", None, None),
        ("set_volume", 40),
    ]


async def test_ready_bridge_is_the_active_path() -> None:
    gateway = FakeGateway()
    engine = FakeEngine()
    bridge = await ready_bridge(engine)
    transport = ActivePathTransport(gateway, bridge)

    await transport.pause()
    await transport.set_volume(40)
    await transport.skip_next()

    assert transport.active.name == "bridge"
    assert engine.calls == [("pause",), ("set_volume", 0.4), ("next_track",)]
    assert gateway.calls == []


async def test_bridge_play_starts_uri_on_its_own_device() -> None:
    gateway = FakeGateway()
    bridge = await ready_bridge(FakeEngine())
    transport = ActivePathTransport(gateway, bridge)

    await transport.play("spotify:track:t1")

    assert gateway.calls == [("play", "spotify:track:t1", "dev-1")]


async def test_bridge_failure_falls_back_to_gateway_for_that_call() -> None:
    gateway = FakeGateway()
    engine = FakeEngine()
    bridge = await ready_bridge(engine)
    transport = ActivePathTransport(gateway, bridge)
    engine.fail_with = RuntimeError("engine hiccup")

    await transport.pause()

    assert gateway.calls == [("pause",)]
    assert bridge.is_ready is True
    assert transport.active.name == "bridge"


async def test_bridge_play_failure_falls_back_to_active_device() -> None:
    gateway = FakeGateway()
    gateway.play_error = SpotifyServiceError(404, "NO_ACTIVE_DEVICE")
    bridge = await ready_bridge(FakeEngine())
    transport = ActivePathTransport(gateway, bridge)

    await transport.play("spotify:track:t1")

    assert gateway.calls == [("play", "spotify:track:t1", None)]


async def test_switching_to_gateway_when_bridge_drops() -> None:
    gateway = FakeGateway()
    engine = FakeEngine()
    bridge = await ready_bridge(engine)
    transport = ActivePathTransport(gateway, bridge)

    engine.emit("not_ready", {"device_id": "dev-1"})
    await transport.seek(1000)

    assert transport.active.name == "gateway"
    assert gateway.calls == [("seek", 1000)]


async def test_gateway_errors_are_not_swallowed() -> None:
    gateway = FakeGateway()
    gateway.play_error = SpotifyServiceError(500, "server error")
    transport = ActivePathTransport(gateway)

    with pytest.raises(SpotifyServiceError):
        await transport.play("spotify:track:t1")


async def test_bridge_transport_wraps_service_errors() -> None:
    gateway = FakeGateway()
    gateway.play_error = SpotifyServiceError(502, "bad gateway")
    bridge = await ready_bridge(FakeEngine())

    with pytest.raises(BridgeOperationError):
        await BridgeTransport(bridge, gateway).play("spotify:track:t1")
