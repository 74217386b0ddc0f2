"""
app/web/error_boundary.py

Purpose: Contain rendering failures of server-rendered pages

- Renders the wrapped page unchanged while nothing has failed
- On the first exception: logs it with the stack, switches to ERROR and
  serves a fallback page from then on
- Fallback offers "Go to Dashboard" and "Reload Page"
- Raw error text only shown outside production
"""

import html
from enum import Enum
from typing import Callable, Optional

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class BoundaryState(str, Enum):
    OK = "ok"
    ERROR = "error"


class ErrorBoundary:
    """
    One boundary per mount (per request for server-rendered pages).

    OK -> ERROR happens on the first render failure. The only ways back are
    reset() or a fresh instance; the fallback's dashboard link is a new
    request, so it always gets the latter.
    """

    def __init__(self, default_route: Optional[str] = None, show_details: Optional[bool] = None):
        self.default_route = default_route or settings.DEFAULT_ROUTE
        self.show_details = (not settings.is_production) if show_details is None else show_details
        self.state = BoundaryState.OK
        self.error: Optional[BaseException] = None

    @property
    def has_error(self) -> bool:
        return self.state is BoundaryState.ERROR

    def render(self, render_fn: Callable[[], str]) -> str:
        if self.has_error:
            return self.render_fallback()

        try:
            return render_fn()
        except Exception as e:
            self.state = BoundaryState.ERROR
            self.error = e
            logger.error(f"❌ Page render failed: {type(e).__name__}: {e}", exc_info=True)
            return self.render_fallback()

    def reset(self) -> None:
        self.state = BoundaryState.OK
        self.error = None

    def render_fallback(self) -> str:
        details = ""
        if self.show_details and self.error is not None:
            details = f'<pre class="error-details">{html.escape(str(self.error))}</pre>'

        route = html.escape(self.default_route, quote=True)
        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Something went wrong</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            background: #f7fafc;
            display: flex;
            justify-content: center;
            align-items: center;
            min-height: 100vh;
            margin: 0;
        }}
        .container {{
            background: white;
            border-radius: 20px;
            box-shadow: 0 20px 60px rgba(0, 0, 0, 0.15);
            padding: 40px 30px;
            max-width: 500px;
            text-align: center;
        }}
        h1 {{ color: #2d3748; font-size: 24px; }}
        p {{ color: #718096; font-size: 14px; }}
        .error-details {{
            background: #fff5f5;
            border-left: 4px solid #f56565;
            color: #c53030;
            padding: 15px;
            text-align: left;
            white-space: pre-wrap;
        }}
        .btn {{
            border: none;
            border-radius: 25px;
            padding: 12px 30px;
            margin: 10px 5px 0;
            font-size: 16px;
            font-weight: 600;
            cursor: pointer;
            text-decoration: none;
            display: inline-block;
        }}
        .btn-primary {{ background: #667eea; color: white; }}
        .btn-secondary {{ background: #edf2f7; color: #2d3748; }}
    </style>
</head>
<body>
    <div class="container" role="alert">
        <h1>Oops! Something went wrong</h1>
        <p>We're sorry for the inconvenience. Please try again or head back to the dashboard.</p>
        {details}
        <a class="btn btn-primary" href="{route}">Go to Dashboard</a>
        <button class="btn btn-secondary" onclick="window.location.reload()">Reload Page</button>
    </div>
</body>
</html>"""
