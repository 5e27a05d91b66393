"""
Server configuration.

The configuration is built once at startup and never changes afterwards;
the document root it carries is already canonical.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from .errors import ConfigError

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_ROOT = "webroot"
DEFAULT_MAX_THREADS = 10
DEFAULT_SOCKET_TIMEOUT = 30.0
DEFAULT_LOG_FILE = os.path.join("logs", "server.log")
DEFAULT_LOG_LEVEL = "INFO"

USAGE = "Usage: python -m webserver [port] [root] [host] [max_threads]"


def resolve_root(root: str) -> str:
    """
    Canonicalize the document root.

    Raises:
        ConfigError: The root does not exist or is not a directory
    """
    canonical = os.path.realpath(root)
    if not os.path.isdir(canonical):
        raise ConfigError(f"Root directory does not exist: {root}")
    return canonical


@dataclass(frozen=True)
class ServerConfig:
    """Immutable server settings shared read-only by every worker."""

    root: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_threads: int = DEFAULT_MAX_THREADS
    socket_timeout: Optional[float] = DEFAULT_SOCKET_TIMEOUT
    log_file: Optional[str] = DEFAULT_LOG_FILE
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def create(cls, root: str = DEFAULT_ROOT, **kwargs) -> "ServerConfig":
        """
        Validate settings and build a config with a canonical root.

        Raises:
            ConfigError: Any setting is out of range or the root is missing
        """
        port = kwargs.get('port', DEFAULT_PORT)
        if not (0 <= port <= 65535):
            raise ConfigError(f"Port out of range: {port}")

        max_threads = kwargs.get('max_threads', DEFAULT_MAX_THREADS)
        if max_threads < 1:
            raise ConfigError("Max threads must be at least 1")

        log_level = kwargs.get('log_level', DEFAULT_LOG_LEVEL)
        if not isinstance(logging.getLevelName(log_level.upper()), int):
            raise ConfigError(f"Unknown log level: {log_level}")

        return cls(root=resolve_root(root), **kwargs)

    @classmethod
    def from_args(cls, argv: List[str]) -> "ServerConfig":
        """
        Build a config from positional command line arguments.

        Args:
            argv: Arguments after the program name: [port] [root] [host] [max_threads]

        Returns:
            Validated configuration
        """
        if len(argv) > 4:
            raise ConfigError(USAGE)

        kwargs = {}
        root = DEFAULT_ROOT

        if len(argv) >= 1:
            try:
                kwargs['port'] = int(argv[0])
            except ValueError:
                raise ConfigError("Port must be an integer")
            # Port 0 is only meaningful programmatically
            if kwargs['port'] == 0:
                raise ConfigError("Port must be between 1 and 65535")

        if len(argv) >= 2:
            root = argv[1]

        if len(argv) >= 3:
            kwargs['host'] = argv[2]

        if len(argv) >= 4:
            try:
                kwargs['max_threads'] = int(argv[3])
            except ValueError:
                raise ConfigError("Max threads must be an integer")

        return cls.create(root, **kwargs)
