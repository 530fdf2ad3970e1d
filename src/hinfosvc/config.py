"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the service in one dataclass.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── hinfosvc 8080 --workers 8                                  │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── HINFOSVC_WORKERS=8 hinfosvc 8080                           │
    │                                                                     │
    │   3. Default values (in this dataclass)                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

There is no configuration file. The port has no default source other than
the command line; the dataclass default of 8080 only serves code that
builds a config by hand.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .http.request import DEFAULT_MAX_REQUEST_SIZE
from .metrics.sources import (
    DEFAULT_CPUINFO_PATH,
    DEFAULT_SAMPLE_INTERVAL,
    DEFAULT_STAT_PATH,
    SystemSources,
)


ENV_PREFIX = "HINFOSVC_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass
class ServerConfig:
    """
    Configuration for the host information service.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    HTTP SETTINGS
    - max_request_size, error_responses

    THREADING SETTINGS
    - min_workers, max_workers, queue_size

    METRIC SOURCES
    - cpuinfo_path, stat_path, sample_interval

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """All interfaces by default. Use "127.0.0.1" to stay local."""

    port: int = 8080
    """TCP port. 0 asks the OS for a free one."""

    backlog: int = 256
    """Pending connections the kernel queues before refusing."""

    buffer_size: int = 4096
    """Bytes per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Read deadline per client, in seconds.
    None = wait forever for a client to finish its request.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_request_size: int = DEFAULT_MAX_REQUEST_SIZE
    """Bytes accepted before a request is rejected as too large."""

    error_responses: bool = False
    """
    False: failed requests get no reply, the connection is just closed.
    True: failed requests are answered with an empty-bodied error status.
    """

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    min_workers: int = 4
    max_workers: int = 16

    queue_size: int = 256
    """Connections waiting for a worker before new ones are turned away."""

    # ─────────────────────────────────────────────────────────────────────
    # METRIC SOURCES
    # ─────────────────────────────────────────────────────────────────────

    cpuinfo_path: str = DEFAULT_CPUINFO_PATH
    stat_path: str = DEFAULT_STAT_PATH

    sample_interval: float = DEFAULT_SAMPLE_INTERVAL
    """Seconds between the two CPU samples of /load."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    @classmethod
    def from_env(cls, environ=None, **overrides) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HINFOSVC_HOST              Bind address (default: 0.0.0.0)
        HINFOSVC_WORKERS           Max worker threads (default: 16)
        HINFOSVC_TIMEOUT           Read deadline in seconds (default: 30)
        HINFOSVC_MAX_REQUEST_SIZE  Request size cap in bytes (default: 8096)
        HINFOSVC_LOG_LEVEL         Logging level (default: INFO)
        HINFOSVC_LOG_FORMAT        text or json (default: text)
        HINFOSVC_ERROR_RESPONSES   1/true/yes/on to answer failures
        HINFOSVC_CPUINFO_PATH      CPU description source
        HINFOSVC_STAT_PATH         Kernel statistics source

        Keyword overrides win over the environment:

            config = ServerConfig.from_env(port=8080)

        =====================================================================
        """
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            return env.get(ENV_PREFIX + name, default)

        defaults = cls()
        max_workers = int(get("WORKERS", str(defaults.max_workers)))

        values = dict(
            host=get("HOST", defaults.host),
            max_workers=max_workers,
            min_workers=min(defaults.min_workers, max_workers),
            timeout=float(get("TIMEOUT", str(defaults.timeout))),
            max_request_size=int(get("MAX_REQUEST_SIZE", str(defaults.max_request_size))),
            log_level=get("LOG_LEVEL", defaults.log_level).upper(),
            log_format=get("LOG_FORMAT", defaults.log_format).lower(),
            error_responses=_parse_bool(get("ERROR_RESPONSES", "")),
            cpuinfo_path=get("CPUINFO_PATH", defaults.cpuinfo_path),
            stat_path=get("STAT_PATH", defaults.stat_path),
        )
        values.update(overrides)
        return cls(**values)

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so a bad value stops the process before any
        socket is opened.

        Raises:
            ValueError: Describing the first invalid setting.
        """
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.max_request_size < 1:
            raise ValueError("max_request_size must be >= 1")

        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")

        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")

        if self.queue_size < 1:
            raise ValueError("queue_size must be >= 1")

        if self.sample_interval <= 0:
            raise ValueError("sample_interval must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {self.log_format}. Use 'text' or 'json'.")

    def sources(self) -> SystemSources:
        """The metric sources this configuration points at."""
        return SystemSources(
            cpuinfo_path=self.cpuinfo_path,
            stat_path=self.stat_path,
            sample_interval=self.sample_interval,
        )


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"Expected a boolean, got {value!r}")
