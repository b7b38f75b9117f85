"""
Response Helpers
================

Plain HTML responses for rendered pages and error conditions. Every response
asks for the connection to be closed once it has been written.
"""

from fastapi.responses import Response

from prerender.models.schemas import Page

CONTENT_TYPE = "text/html;charset=UTF-8"

METHOD_NOT_ALLOWED = "405 Method Not Allowed"
SERVICE_UNAVAILABLE = "503 Service Unavailable"
INTERNAL_SERVER_ERROR = "500 Internal Server Error"


def html_response(status_code: int, html: str) -> Response:
    body = html.encode("utf-8")
    return Response(
        content=body,
        status_code=status_code,
        headers={
            "Content-Type": CONTENT_TYPE,
            "Content-Length": str(len(body)),
            "Connection": "close",
        },
    )


def page_response(page: Page) -> Response:
    """Response carrying a rendered page."""
    return html_response(page.status_code, page.html)


def method_not_allowed() -> Response:
    return html_response(405, METHOD_NOT_ALLOWED)


def service_unavailable() -> Response:
    return html_response(503, SERVICE_UNAVAILABLE)


def internal_server_error() -> Response:
    return html_response(500, INTERNAL_SERVER_ERROR)
