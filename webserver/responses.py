"""
HTTP response construction and wire framing.
"""

import html
from typing import Dict, NamedTuple

STATUS_MESSAGES = {
    200: "OK",
    400: "Bad Request",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    500: "Internal Server Error",
}

ERROR_PAGE = (
    "<html><head><title>{title}</title></head>"
    "<body><h1>{title}</h1><p>{message}</p></body></html>"
)


class HttpResponse(NamedTuple):
    status_code: int
    status_text: str
    headers: Dict[str, str]
    body: bytes

    def to_bytes(self) -> bytes:
        """Render the status line, headers, blank line and body."""
        status_line = f"HTTP/1.1 {self.status_code} {self.status_text}\r\n"
        headers = ""
        for key, value in self.headers.items():
            headers += f"{key}: {value}\r\n"
        return (status_line + headers + "\r\n").encode('iso-8859-1') + self.body


def _build(status_code: int, content_type: str, body: bytes) -> HttpResponse:
    headers = {
        'Content-Type': content_type,
        'Content-Length': str(len(body)),
        'Connection': 'close',
    }
    return HttpResponse(status_code, STATUS_MESSAGES[status_code], headers, body)


def build_file_response(body: bytes, content_type: str) -> HttpResponse:
    """
    Create a 200 response carrying a file payload.

    Args:
        body: Raw file bytes
        content_type: Content-Type header value

    Returns:
        Response whose Content-Length equals len(body)
    """
    return _build(200, content_type, body)


def build_error_response(status_code: int, message: str) -> HttpResponse:
    """
    Create an error response with a small HTML page.

    Args:
        status_code: One of the codes in STATUS_MESSAGES
        message: Human-readable reason shown on the page

    Returns:
        Response with an escaped HTML body
    """
    title = f"{status_code} {STATUS_MESSAGES[status_code]}"
    page = ERROR_PAGE.format(title=html.escape(title), message=html.escape(message))
    return _build(status_code, 'text/html; charset=utf-8', page.encode('utf-8'))
