"""
=============================================================================
HOST INFORMATION SERVER
=============================================================================

Wires the pieces together:

    SocketServer ──accept──► InfoServer._handle_connection
                                    │
                                    ▼ submit
                              ThreadPool worker
                                    │
                                    ▼
                          InfoServer._process_connection
                                    │
                 read ─► Router.process ─► send ─► close ─► access log

Every connection carries exactly one request. Nothing survives between
connections: each metric is read from the operating system again.

=============================================================================
USAGE
=============================================================================

    config = ServerConfig(port=8080)
    server = InfoServer(config)
    server.run()            # blocks until SIGINT / SIGTERM

From another thread (tests):

    thread = threading.Thread(target=server.run)
    thread.start()
    server.wait_until_ready()
    host, port = server.address
    ...
    server.shutdown()
    thread.join()

=============================================================================
"""

import logging
import time
from typing import Optional, Tuple

from .access_log import AccessLogger
from .config import ServerConfig
from .core import Connection, SocketServer, ThreadPool
from .errors import AllocationFailure, ServiceError
from .http import HTTPResponse, HTTPStatus, RequestParser, Router, error
from .metrics import MetricReader


logger = logging.getLogger(__name__)


def create_router(config: ServerConfig, reader: MetricReader) -> Router:
    """
    The service's route table.

        /hostname   →  reader.hostname()
        /cpu-name   →  reader.cpu_name()
        /load       →  reader.cpu_load()
    """
    router = Router(
        parser=RequestParser(max_request_size=config.max_request_size),
        error_responses=config.error_responses,
    )
    router.add_route("hostname", reader.hostname)
    router.add_route("cpu-name", reader.cpu_name)
    router.add_route("load", reader.cpu_load)
    return router


class InfoServer:
    """
    HTTP server answering host name, CPU model and CPU load queries.

    Args:
        config: Server configuration. Validated here, before any socket
                is opened.
        reader: Metric reader. Defaults to one reading the sources named
                in the config.
    """

    def __init__(self, config: Optional[ServerConfig] = None, reader: Optional[MetricReader] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self.reader = reader or MetricReader(self.config.sources())

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
            queue_size=self.config.queue_size,
        )
        self._router = create_router(self.config, self.reader)
        self._access_log = AccessLogger(log_format=self.config.log_format)

    @property
    def router(self) -> Router:
        return self._router

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def run(self):
        """Serve until shutdown() or a termination signal."""
        self._setup_logging()
        logger.info(f"Starting HTTP server on port {self.config.port}")

        self._thread_pool.start()
        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask the accept loop to stop. run() returns once workers drain."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("hinfosvc").setLevel(level)

    def _shutdown(self):
        logger.info("Shutting down server...")
        self._thread_pool.shutdown(wait=True, timeout=self.config.timeout)
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand a new connection to the pool (accept thread)."""
        submitted = self._thread_pool.submit(self._process_connection, args=(conn,))
        if submitted:
            return

        logger.warning(f"[{conn.id}] Thread pool full, rejecting connection")
        status = None
        with conn:
            if self.config.error_responses:
                response = error(HTTPStatus.SERVICE_UNAVAILABLE)
                if conn.send_response(response.to_bytes()):
                    status = response.status_code

        self._access_log.record(
            connection_id=conn.id,
            client_ip=conn.client_ip,
            target=None,
            status_code=status,
            bytes_sent=conn.bytes_sent,
            duration=conn.age,
        )

    def _process_connection(self, conn: Connection):
        """Read one request, answer it (or not), close (worker thread)."""
        target = None
        failure: Optional[ServiceError] = None
        status = None

        with conn:
            try:
                raw = conn.read_request()
            except ServiceError as e:
                failure = e
                response = self._router.reject(e)
            else:
                if raw is None:
                    logger.debug(f"[{conn.id}] Client closed without sending a request")
                    response = None
                else:
                    outcome = self._router.process(raw)
                    target, failure, response = outcome.target, outcome.error, outcome.response

            if response is not None:
                try:
                    status = self._send(conn, response)
                except AllocationFailure as e:
                    logger.error(f"[{conn.id}] {e}")
                    failure = e

        self._access_log.record(
            connection_id=conn.id,
            client_ip=conn.client_ip,
            target=target,
            status_code=status,
            bytes_sent=conn.bytes_sent,
            duration=conn.age,
            error=failure,
        )

    def _send(self, conn: Connection, response: HTTPResponse) -> Optional[int]:
        """Serialise and write; the status sent, or None if the client left."""
        started = time.monotonic()
        if not conn.send_response(response.to_bytes()):
            return None

        logger.debug(
            f"[{conn.id}] Sent {response.status_line} "
            f"in {(time.monotonic() - started) * 1000:.2f}ms"
        )
        return response.status_code
