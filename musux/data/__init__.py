"""Public façade for the musux.data package.

This module exposes the client-side token persistence that is safe to import
from other packages. Callers should use this façade instead of importing
from the internal token_store module directly.
"""

from .token_store import (
    ACCESS_TOKEN_KEY,
    EXPIRY_KEY,
    REFRESH_TOKEN_KEY,
    TokenStore,
)

__all__ = [
    "TokenStore",
    "ACCESS_TOKEN_KEY",
    "REFRESH_TOKEN_KEY",
    "EXPIRY_KEY",
]
