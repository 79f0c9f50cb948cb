from typing import Dict, Optional

from .state import PlaybackState


def format_time(ms: int) -> str:
    """Format milliseconds as m:ss (e.g. 185000 -> "3:05")."""
    total_seconds = max(0, int(ms)) // 1000
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


def progress_fraction(state: PlaybackState) -> float:
    if state.duration_ms <= 0:
        return 0.0
    return max(0.0, min(1.0, state.progress_ms / state.duration_ms))


def album_image_url(state: PlaybackState, max_width: Optional[int] = None) -> Optional[str]:
    """
    Pick an album image for the current track.

    Spotify orders images largest first; with max_width the largest image
    not wider than it wins, falling back to the smallest one.
    """
    if state.track is None or not state.track.album.images:
        return None
    images = state.track.album.images
    if max_width is None:
        return images[0].url
    for image in images:
        if image.width is not None and image.width <= max_width:
            return image.url
    return images[-1].url


def now_playing(state: PlaybackState) -> Dict[str, object]:
    """Flat, render-ready description of the player bar."""
    track = state.track
    return {
        "status": state.status.value,
        "title": track.name if track else None,
        "artists": track.artist_names if track else None,
        "album": track.album.name if track else None,
        "is_playing": state.is_playing,
        "elapsed": format_time(state.progress_ms),
        "total": format_time(state.duration_ms),
        "progress": progress_fraction(state),
        "volume": state.volume,
    }


def render_status_line(state: PlaybackState, width: int = 30) -> str:
    """One-line text rendering used by the terminal player."""
    if state.track is None:
        return f"[{state.status.value}] Nothing playing  (vol {state.volume}%)"

    filled = int(progress_fraction(state) * width)
    bar = "#" * filled + "-" * (width - filled)
    icon = "▶" if state.is_playing else "❚❚"
    return (
        f"{icon} {state.track.name} - {state.track.artist_names}  "
        f"{format_time(state.progress_ms)} [{bar}] {format_time(state.duration_ms)}  "
        f"(vol {state.volume}%)"
    )
