from dotenv import load_dotenv
import os

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Data directory
DATA_DIR = os.getenv("MUSUX_DATA_DIR", os.path.join(os.path.expanduser("~"), ".musux"))

# Client-side durable key/value area (access token, refresh token, expiry)
TOKEN_STORE_FILE = os.path.join(DATA_DIR, "tokens.json")

# Spotify credentials (REQUIRED for the relay backend)
SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")
SPOTIFY_REDIRECT_URI = os.getenv(
    "SPOTIFY_REDIRECT_URI", "http://localhost:5000/api/spotify/callback"
)

# Spotify API constants
SPOTIFY_AUTH_URL = "https://accounts.spotify.com/authorize"
SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"
SPOTIFY_API_BASE = "https://api.spotify.com/v1"

SCOPES = [
    "user-read-private",
    "user-read-email",
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
    "user-read-recently-played",
    "playlist-read-private",
    "playlist-read-collaborative",
    "user-library-read",
    "streaming",
]

# Relay backend
BACKEND_URL = os.getenv("MUSUX_BACKEND_URL", "http://localhost:5000")
SESSION_SECRET = os.getenv("MUSUX_SESSION_SECRET", "musux-dev-session-secret")

# Playback coordination
POLL_INTERVAL_MS = _env_int("MUSUX_POLL_INTERVAL_MS", 5000)
TICK_INTERVAL_MS = _env_int("MUSUX_TICK_INTERVAL_MS", 1000)
ROLLBACK_ON_FAILURE = _env_bool("MUSUX_ROLLBACK_ON_FAILURE", True)
DEFAULT_VOLUME = 70

# Local device registered through the playback engine
DEVICE_NAME = "MusuX Web Player"
