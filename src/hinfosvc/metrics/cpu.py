"""
=============================================================================
CPU METRICS: MODEL NAME AND LOAD
=============================================================================

Both metrics scrape line-oriented text that the kernel exposes.

CPU DESCRIPTION (/proc/cpuinfo)
───────────────────────────────

    processor       : 0
    vendor_id       : GenuineIntel
    model name      : Intel(R) Core(TM) i7-8650U CPU @ 1.90GHz
    ...

The first line starting with "model name" wins. Its value is whatever
follows the colon and the single space after it.

KERNEL STATISTICS (/proc/stat)
──────────────────────────────

    cpu  4705 356 584 3699176 23060 0 277 0 0 0
    cpu0 1393 280 320 924800 5880 0 137 0 0 0
    ...

The aggregate line counts time spent in each state since boot, in clock
ticks, summed over all cores:

    user nice system idle iowait irq softirq steal guest guest_nice
     [0]  [1]   [2]   [3]   [4]  [5]   [6]    [7]   [8]     [9]

=============================================================================
THE IDLE/TOTAL TECHNIQUE
=============================================================================

Counters only ever grow, so one sample tells us nothing about *now*. Take
two samples a second apart and compare:

    idle  = s[3] + s[4]                (idle + iowait)
    total = s[0] + s[1] + ... + s[9]

    load = 100 - 100 * (idle_1 - idle_0) / (total_1 - total_0)

    Example:
        t0: cpu 100 0 100 700 0 0 0 0 0 0   idle=700  total=900
        t1: cpu 110 0 110 730 0 0 0 0 0 0   idle=730  total=950

        load = 100 - 100 * 30 / 50 = 100 - 60 = 40%

The division truncates toward zero (integer semantics) and is applied to
the final ratio only, never to the intermediate terms.

=============================================================================
SAMPLE, WAIT, SAMPLE
=============================================================================

CpuLoadSampler makes the three steps explicit. The wait is intrinsic to
the measurement: it blocks the worker thread serving /load, nothing else.

=============================================================================
"""

import logging
import time
from dataclasses import astuple, dataclass
from typing import Callable, Tuple

from ..errors import CorruptSource, MetricUnavailable
from .sources import DEFAULT_SAMPLE_INTERVAL


logger = logging.getLogger(__name__)


MODEL_NAME_KEY = "model name"
AGGREGATE_CPU_PREFIX = "cpu "
CPU_FIELD_COUNT = 10


# =============================================================================
# CPU MODEL NAME
# =============================================================================

def read_cpu_name(path: str) -> str:
    """
    Return the CPU model name from the CPU description source.

    Raises:
        MetricUnavailable: Source unreadable, or no usable "model name" line.
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            for line in f:
                if line.startswith(MODEL_NAME_KEY):
                    return _value_after_colon(line, path)
    except OSError as e:
        raise MetricUnavailable(f"Could not open file {path}: {e}", source=path)

    raise MetricUnavailable(f"Could not retrieve CPU information from {path}", source=path)


def _value_after_colon(line: str, source: str) -> str:
    """Split "key<ws>: value\\n" and return "value"."""
    _, colon, value = line.partition(":")
    if not colon:
        raise MetricUnavailable(f"Malformed {MODEL_NAME_KEY!r} line in {source}", source=source)

    value = value.rstrip("\r\n")
    if value.startswith(" "):
        value = value[1:]
    return value


# =============================================================================
# CPU SAMPLES
# =============================================================================

@dataclass(frozen=True)
class CpuSample:
    """
    The ten counters of the aggregate CPU line at one instant.

    Field order matches the column order in the statistics source.
    """

    user: int
    nice: int
    system: int
    idle: int
    iowait: int
    irq: int
    softirq: int
    steal: int
    guest: int
    guest_nice: int

    @property
    def idle_ticks(self) -> int:
        """Time spent doing nothing: idle + iowait."""
        return self.idle + self.iowait

    @property
    def total_ticks(self) -> int:
        return sum(astuple(self))

    def as_tuple(self) -> Tuple[int, ...]:
        return astuple(self)


def parse_stat_line(line: str, source: str = "<stat>") -> CpuSample:
    """
    Parse an aggregate CPU line into a CpuSample.

    Exactly the first ten fields after the "cpu" label are used; any extra
    columns a newer kernel adds are ignored.

    Raises:
        CorruptSource: Wrong label, fewer than ten fields, or a field that
                       is not an unsigned decimal integer.
    """
    parts = line.split()
    if not parts or parts[0] != "cpu":
        raise CorruptSource(f"File {source} is corrupt: expected 'cpu' line, got {line!r}", source=source)

    fields = parts[1:]

    if len(fields) < CPU_FIELD_COUNT:
        raise CorruptSource(
            f"File {source} is corrupt: {len(fields)} of {CPU_FIELD_COUNT} CPU fields present",
            source=source,
        )

    values = []
    for column, text in enumerate(fields[:CPU_FIELD_COUNT]):
        if not (text.isascii() and text.isdigit()):
            raise CorruptSource(
                f"File {source} is corrupt: field {column} is {text!r}",
                source=source,
            )
        values.append(int(text))

    return CpuSample(*values)


def read_cpu_sample(path: str) -> CpuSample:
    """
    Read the aggregate CPU line from the statistics source.

    Raises:
        MetricUnavailable: Source unreadable.
        CorruptSource: No aggregate line, or the line does not parse.
    """
    try:
        with open(path, "r", encoding="ascii", errors="replace") as f:
            for line in f:
                if line.startswith(AGGREGATE_CPU_PREFIX):
                    return parse_stat_line(line, source=path)
    except OSError as e:
        raise MetricUnavailable(f"Could not open file {path}: {e}", source=path)

    raise CorruptSource(f"File {path} is corrupt: no aggregate CPU line", source=path)


# =============================================================================
# LOAD COMPUTATION
# =============================================================================

def _div_toward_zero(numerator: int, denominator: int) -> int:
    # Python's // floors; C integer division truncates
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


def compute_load(first: CpuSample, second: CpuSample, source: str = "<stat>") -> int:
    """
    Utilisation percentage between two samples.

    Raises:
        CorruptSource: The total counter did not move between samples.
    """
    idle_delta = second.idle_ticks - first.idle_ticks
    total_delta = second.total_ticks - first.total_ticks

    if total_delta == 0:
        raise CorruptSource(
            f"File {source} is corrupt: CPU counters did not change between samples",
            source=source,
        )

    return 100 - _div_toward_zero(100 * idle_delta, total_delta)


def format_load(load: int) -> str:
    return f"{load}%"


class CpuLoadSampler:
    """
    Two-sample CPU load measurement.

        sampler = CpuLoadSampler("/proc/stat")
        first = sampler.take_sample()
        sampler.wait()
        second = sampler.take_sample()
        load = compute_load(first, second)

    measure() runs the whole protocol. The source is re-opened for every
    sample and nothing is kept between measurements.

    Args:
        stat_path: Kernel statistics source.
        interval: Seconds between samples.
        sleep: Blocking wait, replaceable in tests.
    """

    def __init__(
        self,
        stat_path: str,
        interval: float = DEFAULT_SAMPLE_INTERVAL,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.stat_path = stat_path
        self.interval = interval
        self._sleep = sleep

    def take_sample(self) -> CpuSample:
        return read_cpu_sample(self.stat_path)

    def wait(self):
        self._sleep(self.interval)

    def measure(self) -> int:
        first = self.take_sample()
        self.wait()
        second = self.take_sample()

        load = compute_load(first, second, source=self.stat_path)
        logger.debug(f"CPU load {load}% (t0={first.as_tuple()}, t1={second.as_tuple()})")
        return load


def read_cpu_load(
    stat_path: str,
    interval: float = DEFAULT_SAMPLE_INTERVAL,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Measure CPU load and format it as "<int>%"."""
    return format_load(CpuLoadSampler(stat_path, interval, sleep).measure())
