"""
Per-connection request handling.

ConnectionHandler runs one request through the pipeline
parse -> validate method -> resolve path -> negotiate type -> read file,
writes exactly one response and closes the connection. It is the single
recovery point: every failure raised by the pipeline is converted to an
error response here and nothing escapes to the caller.
"""

import logging
import socket
import threading
from typing import BinaryIO, Optional, Tuple

from .config import ServerConfig
from .content_types import content_type_for
from .errors import (
    EmptyRequest,
    HttpError,
    IoFailure,
    MethodNotAllowed,
    NotFound,
    UnexpectedFailure,
)
from .path_resolver import resolve_path
from .request_parser import parse_request
from .responses import HttpResponse, build_error_response, build_file_response

logger = logging.getLogger(__name__)


def read_file(path: str) -> bytes:
    """
    Read a whole file into memory.

    Raises:
        NotFound: Nothing readable as a file exists at path
        IoFailure: The file exists but could not be read
    """
    try:
        with open(path, 'rb') as f:
            return f.read()
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        raise NotFound()
    except OSError as e:
        raise IoFailure() from e


class ConnectionHandler:
    """
    Handles a single client connection from request to close.

    Instances keep only the immutable configuration, so one handler can be
    shared by every worker thread.
    """

    def __init__(self, config: ServerConfig):
        self.config = config

    def handle(self, client_socket: socket.socket, client_address: Tuple[str, int]) -> Optional[int]:
        """
        Serve one request on client_socket and close it.

        Args:
            client_socket: Connected client socket; closed on return
            client_address: Client address tuple (host, port)

        Returns:
            Status code of the response written, or None when the peer sent
            nothing and the connection was closed silently
        """
        thread_name = threading.current_thread().name
        connection_id = f"{client_address[0]}:{client_address[1]}" if client_address else "unknown"
        stream = None

        try:
            client_socket.settimeout(self.config.socket_timeout)
            stream = client_socket.makefile('rb')
            try:
                response = self._process(stream, thread_name, connection_id)
            except EmptyRequest:
                logger.info(f"[{thread_name}] Connection closed by client without a request: {connection_id}")
                return None
            except HttpError as e:
                self._log_rejection(e, thread_name, connection_id)
                response = build_error_response(e.status_code, e.message)
            except Exception:
                logger.exception(f"[{thread_name}] Unexpected error handling {connection_id}")
                error = UnexpectedFailure()
                response = build_error_response(error.status_code, error.message)

            self._send_response(client_socket, response, thread_name, connection_id)
            return response.status_code

        except Exception:
            # Failure outside the pipeline itself; teardown must still happen
            logger.exception(f"[{thread_name}] Error handling connection {connection_id}")
            return None
        finally:
            self._close(client_socket, stream, thread_name, connection_id)

    def _process(self, stream: BinaryIO, thread_name: str, connection_id: str) -> HttpResponse:
        try:
            request = parse_request(stream)
        except OSError as e:
            raise IoFailure() from e

        logger.info(f"[{thread_name}] {connection_id} \"{request.method} {request.target} {request.version}\"")

        if request.method.upper() != 'GET':
            raise MethodNotAllowed()

        path = resolve_path(request.target, self.config.root)
        content_type = content_type_for(path)
        body = read_file(path)

        logger.info(f"[{thread_name}] Serving {path} ({len(body)} bytes) to {connection_id}")
        return build_file_response(body, content_type)

    def _log_rejection(self, error: HttpError, thread_name: str, connection_id: str):
        name = type(error).__name__
        if error.status_code >= 500:
            cause = error.__cause__
            logger.error(f"[{thread_name}] {name} for {connection_id}: {cause!r}")
        else:
            logger.warning(f"[{thread_name}] {name} for {connection_id}: {error.status_code}")

    def _send_response(self, client_socket: socket.socket, response: HttpResponse,
                       thread_name: str, connection_id: str):
        """Write the full response; a broken connection is logged, not raised."""
        try:
            client_socket.sendall(response.to_bytes())
        except OSError as e:
            logger.error(f"[{thread_name}] Error sending {response.status_code} response to {connection_id}: {e}")

    def _close(self, client_socket: socket.socket, stream: Optional[BinaryIO],
               thread_name: str, connection_id: str):
        if stream is not None:
            try:
                stream.close()
            except OSError:
                pass
        try:
            client_socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass
        try:
            client_socket.close()
        except OSError as e:
            logger.error(f"[{thread_name}] Error closing connection {connection_id}: {e}")
        logger.info(f"[{thread_name}] Connection closed: {connection_id}")
