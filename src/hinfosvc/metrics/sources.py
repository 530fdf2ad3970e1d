"""
Operating-system inputs the metric readers depend on.

The readers never hard-code where their data comes from. Everything is
described by a SystemSources value so tests can point them at temporary
files and a fake clock, and other platforms can point them at their own
equivalents of the Linux procfs files.
"""

import socket
import time
from dataclasses import dataclass, field
from typing import Callable


DEFAULT_CPUINFO_PATH = "/proc/cpuinfo"
DEFAULT_STAT_PATH = "/proc/stat"
DEFAULT_SAMPLE_INTERVAL = 1.0


@dataclass(frozen=True)
class SystemSources:
    """
    Where the metric readers read from.

    Attributes:
        cpuinfo_path: Line-oriented "key : value" CPU description.
        stat_path: Kernel statistics text with a "cpu " aggregate line.
        hostname: Returns the configured host name.
        sleep: Blocks for the given number of seconds.
        sample_interval: Seconds between the two load samples.
    """

    cpuinfo_path: str = DEFAULT_CPUINFO_PATH
    stat_path: str = DEFAULT_STAT_PATH
    hostname: Callable[[], str] = field(default=socket.gethostname, repr=False)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    sample_interval: float = DEFAULT_SAMPLE_INTERVAL
