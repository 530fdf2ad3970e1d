"""
=============================================================================
HINFOSVC - HOST INFORMATION SERVICE
=============================================================================

A small HTTP/1.1 server on raw sockets that reports facts about the machine
it runs on:

    GET /hostname   →  200  build-01
    GET /cpu-name   →  200  Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz
    GET /load       →  200  37%
    GET /anything   →  400  (empty body)

One request per connection; the connection is closed after the response.

=============================================================================
PACKAGE LAYOUT
=============================================================================

    hinfosvc/
    ├── __main__.py      CLI:  hinfosvc 8080
    ├── server.py        InfoServer, route table
    ├── config.py        ServerConfig (defaults, env, validation)
    ├── access_log.py    one log line per connection
    ├── errors.py        exception per failure kind
    ├── core/            socket server, thread pool, connection
    ├── http/            request parser, router, response builder
    └── metrics/         host name, CPU model, CPU load

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import InfoServer, create_router

__all__ = ["InfoServer", "ServerConfig", "create_router", "__version__"]
