"""
=============================================================================
SYSTEM METRICS
=============================================================================

Three independent reads of operating-system data:

    hostname()   →  "build-01"                       host name facility
    cpu_name()   →  "Intel(R) Core(TM) i7-8650U ..."  CPU description source
    cpu_load()   →  "37%"                            kernel statistics, 2 samples

Each returns the response body text or raises a MetricError subclass.
There are no partial results and no cached values.

=============================================================================
"""

from .cpu import (
    CpuSample,
    CpuLoadSampler,
    compute_load,
    format_load,
    parse_stat_line,
    read_cpu_load,
    read_cpu_name,
    read_cpu_sample,
)
from .hostname import HOSTNAME_LIMIT, read_hostname
from .reader import MetricReader
from .sources import SystemSources

__all__ = [
    "MetricReader",
    "SystemSources",

    # Host name
    "HOSTNAME_LIMIT",
    "read_hostname",

    # CPU
    "CpuSample",
    "CpuLoadSampler",
    "compute_load",
    "format_load",
    "parse_stat_line",
    "read_cpu_load",
    "read_cpu_name",
    "read_cpu_sample",
]
