"""
Multi-threaded static file server.

The acceptor thread queues every accepted connection; a fixed pool of
worker threads takes connections off the queue and hands each one to a
ConnectionHandler. The only state shared between workers is the
read-only configuration and the statistics counters.
"""

import errno
import logging
import os
import queue
import signal
import socket
import sys
import threading
from typing import List, Optional, Tuple

from .config import ServerConfig
from .connection import ConnectionHandler
from .errors import ConfigError

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(threadName)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LISTEN_BACKLOG = 50
POLL_INTERVAL = 1.0

logger = logging.getLogger(__name__)


def setup_logging(config: ServerConfig) -> logging.Logger:
    """
    Configure the package logger with console and optional file output.

    Args:
        config: Server configuration (log_file may be None to skip the file)

    Returns:
        The configured package logger
    """
    level = logging.getLevelName(config.log_level.upper())
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    package_logger = logging.getLogger("webserver")
    package_logger.setLevel(level)

    if config.log_file:
        log_dir = os.path.dirname(config.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file, mode='a')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)

    # Prevent duplicate logs
    package_logger.propagate = False
    return package_logger


class HTTPServer:
    """
    Static file server backed by a fixed-size worker thread pool.
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self.handler = ConnectionHandler(config)
        self.server_socket = None
        self.running = False
        self.thread_pool: List[threading.Thread] = []
        self.connection_queue = queue.Queue()
        self.stats_lock = threading.Lock()
        self._stopped = False

        # Statistics tracking
        self.total_connections = 0
        self.total_requests = 0

        logger.info(f"HTTP Server initialized: {config.host}:{config.port}, "
                    f"root={config.root}, max_threads={config.max_threads}")

    @property
    def server_address(self) -> Tuple[str, int]:
        """Address the listening socket is bound to."""
        return self.server_socket.getsockname()[:2]

    def install_signal_handlers(self):
        """Stop gracefully on SIGINT and SIGTERM. Main thread only."""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        self.running = False

    def bind(self):
        """Create, bind and listen on the server socket."""
        self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self.server_socket.bind((self.config.host, self.config.port))
            self.server_socket.listen(LISTEN_BACKLOG)
            # Lets the accept loop notice stop() without a pending connection
            self.server_socket.settimeout(POLL_INTERVAL)
        except OSError:
            self.server_socket.close()
            raise
        host, port = self.server_address
        logger.info(f"Listening on port {port} ({host}), serving files from {self.config.root}")

    def serve_forever(self):
        """Start the worker pool and accept connections until stopped."""
        if self._stopped:
            return
        self.running = True
        for i in range(self.config.max_threads):
            thread = threading.Thread(target=self._worker_thread, name=f"Worker-{i+1}")
            thread.daemon = True
            thread.start()
            self.thread_pool.append(thread)

        logger.info("Server ready to accept connections...")
        try:
            while self.running:
                try:
                    client_socket, client_address = self.server_socket.accept()
                except socket.timeout:
                    continue
                except OSError as e:
                    if self.running:
                        logger.error(f"Error accepting connection: {e}")
                    break

                logger.info(f"New connection from {client_address[0]}:{client_address[1]}")
                with self.stats_lock:
                    self.total_connections += 1
                self.connection_queue.put((client_socket, client_address))
        finally:
            self.stop()

    def start(self):
        """Bind and serve until stopped."""
        self.bind()
        self.serve_forever()

    def _worker_thread(self):
        """Take connections off the queue and handle them one at a time."""
        while self.running or not self.connection_queue.empty():
            try:
                client_socket, client_address = self.connection_queue.get(timeout=POLL_INTERVAL)
            except queue.Empty:
                continue

            try:
                status = self.handler.handle(client_socket, client_address)
                if status is not None:
                    with self.stats_lock:
                        self.total_requests += 1
            finally:
                self.connection_queue.task_done()

    def stop(self, timeout: float = 5.0):
        """
        Stop accepting connections and wait for the workers to finish.

        Args:
            timeout: Seconds to wait for each worker thread
        """
        self.running = False
        with self.stats_lock:
            if self._stopped or self.server_socket is None:
                return
            self._stopped = True

        logger.info("Stopping HTTP server...")

        try:
            self.server_socket.close()
        except OSError:
            pass

        current = threading.current_thread()
        for thread in self.thread_pool:
            if thread is not current:
                thread.join(timeout)

        with self.stats_lock:
            logger.info(f"Server stopped. Total requests: {self.total_requests}, "
                        f"Total connections: {self.total_connections}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command line entry point.

    Args:
        argv: Arguments after the program name; defaults to sys.argv[1:]

    Returns:
        Process exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    try:
        config = ServerConfig.from_args(argv)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(config)
    server = HTTPServer(config)
    try:
        server.bind()
    except OSError as e:
        if e.errno == errno.EADDRINUSE:
            print(f"Error: port {config.port} is already in use by another application", file=sys.stderr)
        else:
            print(f"Error starting server: {e}", file=sys.stderr)
        return 1

    server.install_signal_handlers()
    print(f"Serving {config.root} on {config.host}:{config.port}")
    print("Press Ctrl+C to stop the server")
    server.serve_forever()
    return 0
