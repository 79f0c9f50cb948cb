"""Public façade for the musux.core package.

This module exposes logging helpers, filesystem utilities, and the base
models (tracks, auth session, remote playback snapshot) that are safe to
import from other packages. Callers should import these cross-cutting
concerns from this façade instead of the internal submodules.
"""

from .fs_utils import ensure_parent_dir, read_json, remove_file, write_json
from .logging_config import LOGGER_NAME, configure_logging
from .logging_utils import (
    log_error,
    log_info,
    log_section,
    log_step,
    log_success,
    log_warning,
)
from .models import (
    NO_ACTIVE_SESSION,
    AlbumRef,
    ArtistRef,
    AuthSession,
    Image,
    NoActiveSession,
    PlaybackSnapshot,
    Track,
)

__all__ = [
    "LOGGER_NAME",
    "configure_logging",
    "log_section",
    "log_info",
    "log_step",
    "log_success",
    "log_warning",
    "log_error",
    "ensure_parent_dir",
    "write_json",
    "read_json",
    "remove_file",
    "Image",
    "ArtistRef",
    "AlbumRef",
    "Track",
    "AuthSession",
    "PlaybackSnapshot",
    "NoActiveSession",
    "NO_ACTIVE_SESSION",
]
