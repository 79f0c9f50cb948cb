from fastapi import FastAPI
from starlette.middleware.sessions import SessionMiddleware

from musux import config
from musux.api.auth.routes import router as spotify_auth_router
from musux.api.health import router as health_router
from musux.api.pages import router as pages_router
from musux.core import configure_logging

configure_logging()

app = FastAPI(
    title="MusuX Player API",
    version="0.1.0",
    description="Spotify OAuth relay backend for the MusuX player.",
)

# Signed cookie session; holds the refresh token between /token and /refresh
app.add_middleware(SessionMiddleware, secret_key=config.SESSION_SECRET)

# Spotify auth relay
app.include_router(spotify_auth_router, prefix="/api/spotify", tags=["spotify-auth"])

# Health
app.include_router(health_router, prefix="/api", tags=["health"])

# Landing and error pages
app.include_router(pages_router, tags=["pages"])
