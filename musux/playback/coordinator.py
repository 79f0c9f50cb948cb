"""Playback Coordinator: the canonical "what is playing now" for this client.

Intents (play, pause, seek, volume, skip) are applied optimistically and
dispatched through a single PlaybackTransport. Two background loops run
next to them: a remote-state poll that overwrites the whole state, and a
local ticker that advances progress between polls.

Ordering is handled with version counters:

- the state fields fall into groups (playback: track, duration, status and
  is_playing; progress; volume). Every intent bumps the version of each
  group it writes. When it settles, it only touches a group whose version
  is still its own, so the last *issued* intent on those fields wins
  whatever order the network answers in, and an unrelated intent (a volume
  change during a pending play) does not cancel it;
- every intent also bumps a global generation. A poll result is dropped
  when an intent was issued after the poll started or is still in flight,
  so a stale snapshot never overwrites an intent that Spotify has not
  confirmed yet.
"""

import asyncio
import logging
from contextlib import suppress
from typing import Any, Awaitable, Callable, Dict, List, Optional

from musux import config
from musux.core import NoActiveSession, Track, log_info, log_warning
from musux.spotify import (
    ReauthenticationRequired,
    RemotePlaybackGateway,
    SessionContext,
    SpotifyError,
)

from .bridge import BridgeError
from .state import PlaybackState, PlayerStatus
from .transports import PlaybackTransport

logger = logging.getLogger(__name__)

Subscriber = Callable[[PlaybackState], None]

PLAYBACK = "playback"
PROGRESS = "progress"
VOLUME = "volume"

FIELD_GROUPS = {
    "track": PLAYBACK,
    "duration_ms": PLAYBACK,
    "status": PLAYBACK,
    "is_playing": PLAYBACK,
    "progress_ms": PROGRESS,
    "volume": VOLUME,
}


class PlaybackCoordinator:
    def __init__(
        self,
        session: SessionContext,
        gateway: RemotePlaybackGateway,
        transport: PlaybackTransport,
        *,
        poll_interval_ms: Optional[int] = None,
        tick_interval_ms: Optional[int] = None,
        rollback_on_failure: Optional[bool] = None,
    ) -> None:
        self.session = session
        self.gateway = gateway
        self.transport = transport
        self.poll_interval_ms = (
            config.POLL_INTERVAL_MS if poll_interval_ms is None else poll_interval_ms
        )
        self.tick_interval_ms = (
            config.TICK_INTERVAL_MS if tick_interval_ms is None else tick_interval_ms
        )
        self.rollback_on_failure = (
            config.ROLLBACK_ON_FAILURE if rollback_on_failure is None else rollback_on_failure
        )

        self.state = PlaybackState()
        self._generation = 0
        self._versions: Dict[str, int] = {PLAYBACK: 0, PROGRESS: 0, VOLUME: 0}
        self._in_flight = 0
        self._running = False
        self._poll_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None
        self._subscribers: List[Subscriber] = []
        self._remove_logout_listener: Optional[Callable[[], None]] = (
            session.add_logout_listener(self._on_logout)
        )

    # ----- read side -----

    @property
    def current_track(self) -> Optional[Track]:
        return self.state.track

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def progress(self) -> int:
        return self.state.progress_ms

    @property
    def duration(self) -> int:
        return self.state.duration_ms

    @property
    def volume(self) -> int:
        return self.state.volume

    @property
    def status(self) -> PlayerStatus:
        return self.state.status

    def snapshot(self) -> PlaybackState:
        return self.state.copy()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call `callback` with a copy of the state after every change."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    # ----- state plumbing -----

    def _apply(self, **changes: Any) -> None:
        changed = False
        for field, value in changes.items():
            if getattr(self.state, field) != value:
                setattr(self.state, field, value)
                changed = True
        if not changed:
            return
        if "is_playing" in changes:
            self._sync_ticker()
        snapshot = self.state.copy()
        for subscriber in list(self._subscribers):
            subscriber(snapshot)

    def _capture(self, *fields: str) -> Dict[str, Any]:
        return {field: getattr(self.state, field) for field in fields}

    def _begin(self, *groups: str) -> Dict[str, int]:
        """Register a new intent that writes the given field groups."""
        self._generation += 1
        self._in_flight += 1
        for group in groups:
            self._versions[group] += 1
        return {group: self._versions[group] for group in groups}

    def _is_current(self, token: Dict[str, int], group: str = PLAYBACK) -> bool:
        return group in token and token[group] == self._versions[group]

    async def _dispatch(
        self,
        token: Dict[str, int],
        label: str,
        call: Awaitable[None],
        rollback: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Await one transport call. Returns True when it succeeded.

        On failure each optimistic field in `rollback` is restored, but only
        if no newer intent has written that field's group since.
        """
        try:
            await call
        except ReauthenticationRequired:
            # The session listener has already reset the player.
            return False
        except (SpotifyError, BridgeError) as e:
            log_warning(f"Failed to {label}: {e}")
            if self.rollback_on_failure and rollback:
                restore = {
                    field: value
                    for field, value in rollback.items()
                    if self._is_current(token, FIELD_GROUPS[field])
                }
                if restore:
                    self._apply(**restore)
            if self._is_current(token, PLAYBACK):
                self._apply(status=self.state.settled_status())
            return False
        finally:
            self._in_flight -= 1
        return True

    # ----- intents -----

    async def play(self, track: Optional[Track] = None) -> bool:
        """
        Play `track`, or resume the current track when none is given.

        With neither a track nor a current track this is a no-op.
        """
        if track is not None:
            token = self._begin(PLAYBACK, PROGRESS)
            previous = self._capture("track", "duration_ms", "progress_ms", "status")
            self._apply(
                track=track,
                duration_ms=track.duration_ms,
                progress_ms=0,
                status=PlayerStatus.LOADING,
            )
            logger.info("Playing %s (%s)", track.name, track.uri)
            ok = await self._dispatch(
                token, f"play {track.name}", self.transport.play(track.uri), previous
            )
        elif self.state.track is not None:
            token = self._begin(PLAYBACK)
            ok = await self._dispatch(token, "resume playback", self.transport.resume())
        else:
            logger.debug("play() without a track and nothing current; ignoring")
            return False

        if ok and self._is_current(token, PLAYBACK):
            self._apply(is_playing=True, status=PlayerStatus.PLAYING)
        return ok

    async def pause(self) -> bool:
        """Pause; is_playing flips only once the transport confirms."""
        token = self._begin(PLAYBACK)
        ok = await self._dispatch(token, "pause playback", self.transport.pause())
        if ok and self._is_current(token, PLAYBACK):
            status = PlayerStatus.PAUSED if self.state.track is not None else PlayerStatus.IDLE
            self._apply(is_playing=False, status=status)
        return ok

    async def next(self) -> bool:
        # The new track is unknown here; the next poll will show it.
        token = self._begin()
        return await self._dispatch(token, "skip to next track", self.transport.skip_next())

    async def previous(self) -> bool:
        token = self._begin()
        return await self._dispatch(
            token, "skip to previous track", self.transport.skip_previous()
        )

    async def set_progress(self, position_ms: int) -> bool:
        position = max(0, int(position_ms))
        if self.state.duration_ms > 0:
            position = min(position, self.state.duration_ms)

        token = self._begin(PROGRESS)
        previous = self._capture("progress_ms")
        self._apply(progress_ms=position)
        return await self._dispatch(token, "seek", self.transport.seek(position), previous)

    async def set_player_volume(self, percent: int) -> bool:
        volume = max(0, min(100, int(percent)))

        token = self._begin(VOLUME)
        previous = self._capture("volume")
        self._apply(volume=volume)
        return await self._dispatch(
            token, "set volume", self.transport.set_volume(volume), previous
        )

    async def toggle_playback(self) -> bool:
        if self.state.is_playing:
            return await self.pause()
        return await self.play()

    # ----- background work -----

    async def poll_once(self) -> bool:
        """Fetch the remote state and merge it. Returns True when it was applied."""
        if not self.session.access_token:
            return False

        generation = self._generation
        try:
            remote = await self.gateway.get_state()
        except ReauthenticationRequired:
            return False
        except SpotifyError as e:
            log_warning(f"Failed to get player state: {e}")
            return False
        except ValueError as e:
            log_warning(f"Unreadable player state from Spotify: {e}")
            return False

        if generation != self._generation or self._in_flight:
            logger.debug("Discarding player state fetched while an intent was pending")
            return False

        if isinstance(remote, NoActiveSession):
            logger.info("No active player state")
            self._apply(
                track=None,
                is_playing=False,
                progress_ms=0,
                duration_ms=0,
                status=PlayerStatus.IDLE,
            )
            return True

        duration = remote.track.duration_ms if remote.track is not None else 0
        volume = self.state.volume if remote.volume_percent is None else remote.volume_percent
        merged = PlaybackState(
            track=remote.track,
            is_playing=remote.is_playing,
            progress_ms=max(0, min(remote.progress_ms, duration)),
            duration_ms=duration,
            volume=volume,
        )
        self._apply(
            track=merged.track,
            is_playing=merged.is_playing,
            progress_ms=merged.progress_ms,
            duration_ms=merged.duration_ms,
            volume=merged.volume,
            status=merged.settled_status(),
        )
        return True

    def tick(self) -> None:
        """
        Advance progress by one tick while playing.

        Overflowing the duration resets progress to 0 (treated as the track
        looping); the next poll corrects it if the track actually ended.
        """
        if not self.state.is_playing:
            return
        progress = self.state.progress_ms + self.tick_interval_ms
        if progress > self.state.duration_ms:
            progress = 0
        self._apply(progress_ms=progress)

    async def _poll_loop(self) -> None:
        interval = self.poll_interval_ms / 1000
        while True:
            await self.poll_once()
            await asyncio.sleep(interval)

    async def _tick_loop(self) -> None:
        interval = self.tick_interval_ms / 1000
        while True:
            await asyncio.sleep(interval)
            self.tick()

    def _sync_ticker(self) -> None:
        if not self._running:
            return
        if self.state.is_playing and self._tick_task is None:
            self._tick_task = asyncio.get_running_loop().create_task(self._tick_loop())
        elif not self.state.is_playing and self._tick_task is not None:
            self._tick_task.cancel()
            self._tick_task = None

    def start(self) -> None:
        """
        Start background work. Must be called from a running event loop.

        Polling only starts when a token exists; call start() again after
        logging in. The ticker runs exactly while is_playing is true.
        """
        self._running = True
        if self._remove_logout_listener is None:
            self._remove_logout_listener = self.session.add_logout_listener(self._on_logout)

        if self._poll_task is None:
            if self.session.access_token:
                log_info("Starting player state polling")
                self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())
            else:
                log_info("No Spotify token found, skipping player state polling")
        self._sync_ticker()

    async def aclose(self) -> None:
        """Cancel the poll and the ticker and wait for them to finish."""
        self._running = False
        tasks = [t for t in (self._poll_task, self._tick_task) if t is not None]
        self._poll_task = None
        self._tick_task = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        if self._remove_logout_listener is not None:
            self._remove_logout_listener()
            self._remove_logout_listener = None

    def _on_logout(self, reason: str) -> None:
        logger.info("Session ended (%s); resetting player", reason)
        self._generation += 1
        for group in self._versions:
            self._versions[group] += 1
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
        self._apply(
            track=None,
            is_playing=False,
            progress_ms=0,
            duration_ms=0,
            status=PlayerStatus.IDLE,
        )
