from html import escape
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import HTMLResponse

router = APIRouter()

_PAGE = """
<html>
  <head><title>MusuX</title></head>
  <body>
    {body}
  </body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
def index(
    access_token: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
) -> str:
    """
    Landing page. After the callback it tells the user to hand the URL
    back to the terminal client.
    """
    if error:
        body = (
            f"<h1>Spotify authorization failed</h1><p>{escape(error)}</p>"
            '<p><a href="/api/spotify/auth/url">Try again</a></p>'
        )
    elif access_token:
        body = (
            "<h1>Spotify authorization complete ✅</h1>"
            "<p>Copy the full URL of this page and paste it into "
            "<code>musux login</code>.</p>"
        )
    else:
        body = (
            "<h1>MusuX</h1>"
            "<p>Run <code>musux login</code> to connect your Spotify account.</p>"
        )
    return _PAGE.format(body=body)


@router.get("/error", response_class=HTMLResponse)
def error_page(message: Optional[str] = Query(default=None)) -> str:
    text = message or "Something went wrong during Spotify authorization."
    body = (
        "<h1>Spotify authorization failed ❌</h1>"
        f"<p>{escape(text)}</p>"
        '<p><a href="/">Try again</a></p>'
    )
    return _PAGE.format(body=body)
