"""
Request-line and header-block parsing.
"""

from typing import BinaryIO, NamedTuple, Tuple

from .errors import EmptyRequest, MalformedRequest


class Request(NamedTuple):
    """A parsed HTTP request. Only method and target drive behaviour."""

    method: str
    target: str
    version: str
    headers: Tuple[str, ...] = ()


def _strip_line_ending(line: bytes) -> bytes:
    if line.endswith(b'\r\n'):
        return line[:-2]
    if line.endswith(b'\n'):
        return line[:-1]
    return line


def _drain_headers(stream: BinaryIO) -> Tuple[str, ...]:
    """
    Consume header lines up to and including the blank line.

    A stream that ends or fails before the blank line is accepted as-is.
    """
    headers = []
    while True:
        try:
            line = stream.readline()
        except OSError:
            break
        if not line:
            break
        line = _strip_line_ending(line)
        if line == b'':
            break
        headers.append(line.decode('iso-8859-1'))
    return tuple(headers)


def parse_request(stream: BinaryIO) -> Request:
    """
    Read one request from a binary stream.

    The request line is validated before the header block is read, so a
    malformed line is rejected without waiting for headers.

    Args:
        stream: Readable binary stream positioned at the start of a request

    Returns:
        The parsed Request

    Raises:
        EmptyRequest: The stream produced no data at all
        MalformedRequest: The request line is undecodable or has fewer than
            three space-separated tokens
    """
    raw_line = stream.readline()
    if not raw_line:
        raise EmptyRequest()

    try:
        request_line = _strip_line_ending(raw_line).decode('utf-8')
    except UnicodeDecodeError:
        raise MalformedRequest()

    tokens = request_line.split(' ')
    if len(tokens) < 3:
        raise MalformedRequest()

    headers = _drain_headers(stream)

    method, target, version = tokens[0], tokens[1], tokens[2]
    return Request(method, target, version, headers)
