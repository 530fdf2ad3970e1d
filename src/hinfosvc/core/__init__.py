"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the HTTP layer:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SOCKET SERVER                                                      │
    │  listening socket, accept loop on the calling thread, signals       │
    └─────────────────────────────────────────────────────────────────────┘
                                    │  one Connection per accept()
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  THREAD POOL                                                        │
    │  bounded queue, min..max worker threads                             │
    └─────────────────────────────────────────────────────────────────────┘
                                    │  worker runs the handler
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │  CONNECTION                                                         │
    │  read one request (size cap, deadline), write, close                │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import SocketServer
from .thread_pool import Task, ThreadPool, Worker, WorkerState

__all__ = [
    "Connection",
    "ConnectionState",
    "SocketServer",
    "Task",
    "ThreadPool",
    "Worker",
    "WorkerState",
]
