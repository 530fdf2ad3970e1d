"""
The three metrics behind one object.

MetricReader binds the stateless read functions to a SystemSources value.
Each call goes back to the operating system; nothing is cached.
"""

from typing import Optional

from .cpu import read_cpu_load, read_cpu_name
from .hostname import read_hostname
from .sources import SystemSources


class MetricReader:
    """
    Reads host name, CPU model and CPU load.

    Args:
        sources: Where to read from. Defaults to the local Linux procfs.

    Example:
        reader = MetricReader()
        reader.hostname()   # "build-01"
        reader.cpu_name()   # "AMD Ryzen 7 5800X 8-Core Processor"
        reader.cpu_load()   # "12%"  (takes one second)
    """

    def __init__(self, sources: Optional[SystemSources] = None):
        self.sources = sources or SystemSources()

    def hostname(self) -> str:
        return read_hostname(self.sources.hostname)

    def cpu_name(self) -> str:
        return read_cpu_name(self.sources.cpuinfo_path)

    def cpu_load(self) -> str:
        return read_cpu_load(
            self.sources.stat_path,
            interval=self.sources.sample_interval,
            sleep=self.sources.sleep,
        )
