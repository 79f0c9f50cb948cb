"""Terminal client for the MusuX player.

    musux serve [--host H] [--port P]   run the OAuth relay backend
    musux login                         authorize through the relay
    musux logout                        forget the stored Spotify tokens
    musux status                        print what Spotify is playing
    musux player                        interactive player
"""

import asyncio
import sys
import webbrowser
from typing import List, Optional, Tuple

import uvicorn

from musux import config
from musux.core import (
    configure_logging,
    log_error,
    log_info,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from musux.data import TokenStore
from musux.playback import (
    ActivePathTransport,
    PlaybackCoordinator,
    PlaybackState,
    render_status_line,
)
from musux.spotify import (
    RelayClient,
    RemotePlaybackGateway,
    SessionContext,
    SpotifyError,
    parse_callback_redirect,
)

PLAYER_HELP = (
    "Commands: play [uri], pause, toggle, next, prev, seek <seconds>, "
    "vol <0-100>, status, help, quit"
)


def _option(argv: List[str], name: str, default: str) -> str:
    if name in argv:
        index = argv.index(name)
        if index + 1 < len(argv):
            return argv[index + 1]
    return default


def build_session(relay: RelayClient, token_store: Optional[TokenStore] = None) -> SessionContext:
    return SessionContext(token_store or TokenStore(), refresher=relay.refresh)


def parse_command(line: str) -> Tuple[str, List[str]]:
    parts = line.strip().split()
    if not parts:
        return "", []
    return parts[0].lower(), parts[1:]


async def run_command(
    coordinator: PlaybackCoordinator,
    gateway: RemotePlaybackGateway,
    line: str,
) -> bool:
    """
    Execute one player command. Returns False when the player should exit.
    """
    command, args = parse_command(line)

    if command in ("", "help", "?"):
        print(PLAYER_HELP)
    elif command in ("quit", "exit", "q"):
        return False
    elif command == "play":
        if args:
            try:
                track = await gateway.get_track(args[0])
            except SpotifyError as e:
                log_warning(f"Cannot find track {args[0]}: {e}")
                return True
            await coordinator.play(track)
        else:
            await coordinator.play()
    elif command == "pause":
        await coordinator.pause()
    elif command == "toggle":
        await coordinator.toggle_playback()
    elif command == "next":
        await coordinator.next()
    elif command in ("prev", "previous"):
        await coordinator.previous()
    elif command == "seek":
        try:
            seconds = float(args[0])
        except (IndexError, ValueError):
            log_warning("Usage: seek <seconds>")
            return True
        await coordinator.set_progress(int(seconds * 1000))
    elif command in ("vol", "volume"):
        try:
            percent = int(args[0])
        except (IndexError, ValueError):
            log_warning("Usage: vol <0-100>")
            return True
        await coordinator.set_player_volume(percent)
    elif command == "status":
        await coordinator.poll_once()
        print(render_status_line(coordinator.snapshot()))
    else:
        log_warning(f"Unknown command: {command}")
        print(PLAYER_HELP)
    return True


class StatusPrinter:
    """Subscriber that prints the status line when something besides progress changes."""

    def __init__(self) -> None:
        self._last_key = None

    def __call__(self, state: PlaybackState) -> None:
        key = (
            state.track.id if state.track else None,
            state.is_playing,
            state.status,
            state.volume,
        )
        if key == self._last_key:
            return
        self._last_key = key
        print(render_status_line(state))


async def login(relay: RelayClient, session: SessionContext) -> bool:
    log_section("Spotify login")
    try:
        auth_url = await relay.get_auth_url()
    except SpotifyError as e:
        log_error(f"Cannot get authorization URL from {relay.base_url}: {e}")
        return False

    log_step("Open this URL in your browser and accept the permissions:")
    print(auth_url)
    try:
        webbrowser.open(auth_url)
    except webbrowser.Error:
        log_info("Could not open a browser; copy the URL manually.")

    redirected = await asyncio.get_running_loop().run_in_executor(
        None, input, "→ Paste the URL your browser landed on: "
    )
    try:
        payload = parse_callback_redirect(redirected)
        if "code" in payload:
            payload = await relay.exchange_code(payload["code"], config.SPOTIFY_REDIRECT_URI)
        session.complete_login(payload)
    except SpotifyError as e:
        log_error(f"Login failed: {e}")
        return False

    log_success("Logged in to Spotify.")
    return True


async def show_status(session: SessionContext, gateway: RemotePlaybackGateway) -> None:
    if not session.access_token:
        log_warning("Not logged in. Run `musux login` first.")
        return
    coordinator = PlaybackCoordinator(session, gateway, ActivePathTransport(gateway))
    try:
        await coordinator.poll_once()
        print(render_status_line(coordinator.snapshot()))
    finally:
        await coordinator.aclose()


async def run_player(session: SessionContext, gateway: RemotePlaybackGateway) -> None:
    if not session.access_token:
        log_warning("Not logged in. Run `musux login` first.")
        return

    coordinator = PlaybackCoordinator(session, gateway, ActivePathTransport(gateway))
    coordinator.subscribe(StatusPrinter())
    remove_logout_listener = session.add_logout_listener(
        lambda reason: log_warning("Spotify session ended; run `musux login` again.")
    )

    log_section("MusuX player")
    print(PLAYER_HELP)
    coordinator.start()
    loop = asyncio.get_running_loop()
    try:
        while True:
            line = await loop.run_in_executor(None, input, "> ")
            if not await run_command(coordinator, gateway, line):
                break
            if not session.access_token:
                break
    except (EOFError, KeyboardInterrupt):
        pass
    finally:
        await coordinator.aclose()
        remove_logout_listener()


async def _run(command: str) -> int:
    relay = RelayClient()
    session = build_session(relay)
    gateway = RemotePlaybackGateway(session)
    try:
        if command == "login":
            return 0 if await login(relay, session) else 1
        if command == "status":
            await show_status(session, gateway)
        elif command in ("player", "play"):
            await run_player(session, gateway)
        return 0
    finally:
        await gateway.aclose()
        await relay.aclose()


def serve(argv: List[str]) -> None:
    host = _option(argv, "--host", "127.0.0.1")
    port = int(_option(argv, "--port", "5000"))
    log_info(f"Serving relay backend on http://{host}:{port}")
    uvicorn.run("musux.api.fastapi_app:app", host=host, port=port)


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    command = argv[0] if argv else "player"
    if command == "serve":
        serve(argv[1:])
        return 0
    if command == "logout":
        SessionContext(TokenStore()).logout()
        log_success("Spotify tokens removed.")
        return 0
    if command in ("login", "status", "player", "play"):
        return asyncio.run(_run(command))

    print(__doc__)
    return 2


if __name__ == "__main__":
    sys.exit(main())
