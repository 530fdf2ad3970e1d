"""
=============================================================================
ACCESS LOG
=============================================================================

One line per connection, written to the "hinfosvc.access" logger so it can
be routed separately from the diagnostic logs:

    logging.getLogger("hinfosvc.access").addHandler(file_handler)

Text format:

    127.0.0.1 - - [19/Oct/2026:10:04:11 +0000] "GET /load" 200 3 1002.41ms [3f2a9c10]

JSON format:

    {"connection_id": "3f2a9c10", "client_ip": "127.0.0.1", "target": "load",
     "status_code": 200, "bytes_sent": 41, "duration_ms": 1002.41, ...}

A connection that was closed without a reply logs "-" as its status.

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional


logger = logging.getLogger("hinfosvc.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one connection.

    Attributes:
        connection_id: Short id shared with the diagnostic log lines.
        client_ip: Peer address.
        target: Requested target, None if the request never parsed.
        status_code: Status sent, None if nothing was sent.
        bytes_sent: Bytes written to the socket.
        duration_ms: Accept to close.
        timestamp: Wall-clock time in Common Log Format.
        error: Name of the failure, if any.
    """

    connection_id: str
    client_ip: str
    target: Optional[str]
    status_code: Optional[int]
    bytes_sent: int
    duration_ms: float
    timestamp: str
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "connection_id": self.connection_id,
            "client_ip": self.client_ip,
            "target": self.target,
            "status_code": self.status_code,
            "bytes_sent": self.bytes_sent,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
            "error": self.error,
        }

    def to_text(self) -> str:
        target = "-" if self.target is None else f"GET /{self.target}"
        status = "-" if self.status_code is None else str(self.status_code)
        line = (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{target}" {status} {self.bytes_sent} '
            f'{self.duration_ms:.2f}ms [{self.connection_id}]'
        )
        if self.error:
            line += f" {self.error}"
        return line


class AccessLogger:
    """
    Emits RequestLog entries as text or JSON.

    Args:
        log_format: "text" or "json".
        log_level: Level the entries are logged at.
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        self.log_format = log_format
        self.log_level = log_level

    def record(
        self,
        connection_id: str,
        client_ip: str,
        target: Optional[str],
        status_code: Optional[int],
        bytes_sent: int,
        duration: float,
        error: Optional[Exception] = None,
    ) -> RequestLog:
        """Build the entry for one finished connection and log it."""
        entry = RequestLog(
            connection_id=connection_id,
            client_ip=client_ip,
            target=target,
            status_code=status_code,
            bytes_sent=bytes_sent,
            duration_ms=duration * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
            error=type(error).__name__ if error is not None else None,
        )
        self.emit(entry)
        return entry

    def emit(self, entry: RequestLog):
        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
