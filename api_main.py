"""Entry point for the relay backend: `uvicorn api_main:app --port 5000`."""

from musux.api.fastapi_app import app

__all__ = ["app"]
