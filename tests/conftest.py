"""
pytest configuration and fixtures.
"""

import logging
import socket
import threading
import time
from pathlib import Path
from typing import Callable, Generator, List, Optional

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hinfosvc import InfoServer, ServerConfig
from hinfosvc.metrics import MetricReader, SystemSources


CPUINFO = (
    "processor\t: 0\n"
    "vendor_id\t: GenuineIntel\n"
    "cpu family\t: 6\n"
    "model\t\t: 142\n"
    "model name\t: Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz\n"
    "stepping\t: 10\n"
    "\n"
    "processor\t: 1\n"
    "vendor_id\t: GenuineIntel\n"
    "model name\t: Some Other CPU\n"
)

CPU_NAME = "Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz"

# idle=700 total=900, then idle=730 total=950: 100 - 100*30/50 = 40
FIRST_STAT = (
    "cpu  100 0 100 700 0 0 0 0 0 0\n"
    "cpu0 50 0 50 350 0 0 0 0 0 0\n"
    "intr 12345\n"
)
SECOND_STAT = (
    "cpu  110 0 110 730 0 0 0 0 0 0\n"
    "cpu0 55 0 55 365 0 0 0 0 0 0\n"
    "intr 12399\n"
)

HOSTNAME = "test-host"


class AdvancingStat:
    """
    Fake sleep for the load sampler.

    Every call rewrites the statistics file with the next snapshot, so the
    sample taken after the wait sees new counters. Once the snapshots run
    out the file is left as it is.
    """

    def __init__(self, path: Path, snapshots: List[str], delay: float = 0.0):
        self.path = path
        self.snapshots = list(snapshots)
        self.delay = delay
        self.calls: List[float] = []

    def __call__(self, seconds: float):
        self.calls.append(seconds)
        if self.delay:
            time.sleep(self.delay)
        if self.snapshots:
            self.path.write_text(self.snapshots.pop(0))


@pytest.fixture
def cpuinfo_file(tmp_path: Path) -> Path:
    path = tmp_path / "cpuinfo"
    path.write_text(CPUINFO)
    return path


@pytest.fixture
def stat_file(tmp_path: Path) -> Path:
    path = tmp_path / "stat"
    path.write_text(FIRST_STAT)
    return path


@pytest.fixture
def fake_sleep(stat_file: Path) -> AdvancingStat:
    return AdvancingStat(stat_file, [SECOND_STAT])


@pytest.fixture
def sources(cpuinfo_file: Path, stat_file: Path, fake_sleep: AdvancingStat) -> SystemSources:
    """Metric sources backed by temporary files and a fake clock."""
    return SystemSources(
        cpuinfo_path=str(cpuinfo_file),
        stat_path=str(stat_file),
        hostname=lambda: HOSTNAME,
        sleep=fake_sleep,
    )


@pytest.fixture
def reader(sources: SystemSources) -> MetricReader:
    return MetricReader(sources)


class RunningServer:
    """An InfoServer running on a background thread."""

    def __init__(self, server: InfoServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def connect(self) -> socket.socket:
        sock = socket.create_connection(("127.0.0.1", self.port), timeout=5.0)
        return sock

    def request(self, raw: bytes) -> bytes:
        """Send raw bytes and read until the server closes."""
        with self.connect() as sock:
            sock.sendall(raw)
            return read_all(sock)

    def get(self, target: str) -> bytes:
        return self.request(f"GET {target} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode())

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


def read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def start_server(reader: MetricReader) -> Generator[Callable[..., RunningServer], None, None]:
    """
    Factory for live servers on an ephemeral port.

        running = start_server(error_responses=True)
        running.get("/hostname")
    """
    started: List[RunningServer] = []

    def factory(reader_: Optional[MetricReader] = None, **overrides) -> RunningServer:
        settings = dict(
            host="127.0.0.1",
            port=0,
            min_workers=2,
            max_workers=4,
            timeout=2.0,
            log_level="WARNING",
        )
        settings.update(overrides)

        running = RunningServer(InfoServer(ServerConfig(**settings), reader=reader_ or reader))
        running.start()
        started.append(running)
        return running

    yield factory

    for running in started:
        running.stop()
    logging.getLogger("hinfosvc").setLevel(logging.NOTSET)


@pytest.fixture
def running_server(start_server) -> RunningServer:
    """A live server with default settings."""
    return start_server()
