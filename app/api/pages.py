"""
app/api/pages.py

Purpose: Serves the single-page app shell under /app/*

Each request renders through its own ErrorBoundary, so a failure answers
500 with the fallback page and the next request starts clean.
"""

import html

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

from app.core.config import settings
from app.web.error_boundary import ErrorBoundary

router = APIRouter()


def render_shell(page_path: str) -> str:
    """
    HTML shell the frontend bundle mounts into.
    """
    route = html.escape(f"/app/{page_path}", quote=True)
    bundle = html.escape(settings.FRONTEND_BUNDLE_URL, quote=True)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>GST Compliance</title>
</head>
<body>
    <div id="root" data-route="{route}" data-api-prefix="{html.escape(settings.API_PREFIX, quote=True)}"></div>
    <script src="{bundle}"></script>
</body>
</html>"""


@router.get("/app", response_class=HTMLResponse, include_in_schema=False)
@router.get("/app/{page_path:path}", response_class=HTMLResponse, include_in_schema=False)
async def app_shell(page_path: str = ""):
    boundary = ErrorBoundary()
    content = boundary.render(lambda: render_shell(page_path))
    return HTMLResponse(content=content, status_code=500 if boundary.has_error else 200)
