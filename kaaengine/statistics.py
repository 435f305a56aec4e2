"""Frame statistics: per-metric ring buffers, analysis, packing and UDP export."""

from __future__ import annotations

import logging
import math
import os
import socket
import struct
import threading
import time
from collections import deque
from dataclasses import dataclass
from functools import cache
from typing import Iterable

logger = logging.getLogger(__name__)

DEFAULT_TRACKER_CAPACITY = 256
UDP_STATS_EXPORTER_ENV_NAME = "KAAENGINE_STATS_EXPORTER_UDP"
UDP_STATS_EXPORTER_DEFAULT_PORT = 9771

PACK_MAGIC = b"KAACOREstats"
PACK_VERSION = 0x01
HEADER_SIZE = 32
STAT_SEGMENT_SIZE = 48
STAT_NAME_SIZE = 40

# magic, version, segments count, 16 reserved bytes
_HEADER = struct.Struct("<12sHH16x")
# name padded with NUL, value
_SEGMENT = struct.Struct("<40sd")
_MAX_SEGMENTS = 0xFFFF


@dataclass
class StatisticAnalysis:
    """Summary of the samples currently held by a tracker."""

    samples_count: int
    last_value: float
    max_value: float
    min_value: float
    mean_value: float
    standard_deviation: float


class FrameStatisticTracker:
    """Keeps the most recent values of one statistic in a ring buffer."""

    def __init__(self, capacity: int = DEFAULT_TRACKER_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("Tracker capacity must be greater than zero.")
        self._values: deque[float] = deque(maxlen=capacity)
        self._last_value = math.nan

    @property
    def capacity(self) -> int:
        return self._values.maxlen or 0

    def push_value(self, value: float) -> None:
        value = float(value)
        self._values.append(value)
        self._last_value = value

    def last_value(self) -> float:
        return self._last_value

    def analyse(self) -> StatisticAnalysis:
        samples_count = len(self._values)
        last = self._last_value
        max_value = last
        min_value = last

        if not samples_count:
            return StatisticAnalysis(0, last, max_value, min_value, math.nan, math.nan)

        total = 0.0
        for value in self._values:
            if value > max_value:
                max_value = value
            if value < min_value:
                min_value = value
            total += value
        mean = total / samples_count

        variance_sum = sum(
            (value - mean) ** 2 for value in self._values if not math.isnan(value)
        )
        deviation = math.sqrt(variance_sum / samples_count)
        return StatisticAnalysis(
            samples_count, last, max_value, min_value, mean, deviation
        )


class StatisticsManager:
    """Thread-safe collection of named statistic trackers."""

    def __init__(self, capacity: int = DEFAULT_TRACKER_CAPACITY) -> None:
        self._capacity = capacity
        self._trackers: dict[str, FrameStatisticTracker] = {}
        self._lock = threading.Lock()

    def push_value(self, stat_name: str, value: float) -> None:
        with self._lock:
            tracker = self._trackers.get(stat_name)
            if tracker is None:
                tracker = self._trackers[stat_name] = FrameStatisticTracker(
                    self._capacity
                )
            tracker.push_value(value)

    def get_analysis_all(self) -> list[tuple[str, StatisticAnalysis]]:
        with self._lock:
            return [(name, tracker.analyse()) for name, tracker in self._trackers.items()]

    def get_last_all(self) -> list[tuple[str, float]]:
        with self._lock:
            return [
                (name, tracker.last_value()) for name, tracker in self._trackers.items()
            ]


@cache
def get_global_statistics_manager() -> StatisticsManager:
    """Return the process-wide statistics manager."""
    return StatisticsManager()


class _StatAutoPusher:
    def __init__(self, stat_name: str, manager: StatisticsManager | None = None) -> None:
        self.stat_name = stat_name
        self._manager = manager

    def _push(self, value: float) -> None:
        manager = self._manager or get_global_statistics_manager()
        manager.push_value(self.stat_name, value)


class CounterStatAutoPusher(_StatAutoPusher):
    """Counts within a ``with`` block and pushes the total when it ends."""

    def __init__(self, stat_name: str, manager: StatisticsManager | None = None) -> None:
        super().__init__(stat_name, manager)
        self.value = 0

    def add(self, value: int) -> CounterStatAutoPusher:
        self.value += value
        return self

    def __iadd__(self, value: int) -> CounterStatAutoPusher:
        return self.add(value)

    def __enter__(self) -> CounterStatAutoPusher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._push(self.value)


class StopwatchStatAutoPusher(_StatAutoPusher):
    """Measures the time spent in a ``with`` block and pushes it in seconds."""

    def __enter__(self) -> StopwatchStatAutoPusher:
        self._start_time = time.perf_counter()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._push(time.perf_counter() - self._start_time)


def pack_stats_data(stats: Iterable[tuple[str, float]]) -> bytes:
    """Pack named values into the binary stats message format."""
    stats = list(stats)
    if len(stats) > _MAX_SEGMENTS:
        raise ValueError(f"Too many stat segments: {len(stats)}.")
    parts = [_HEADER.pack(PACK_MAGIC, PACK_VERSION, len(stats))]
    parts.extend(
        _SEGMENT.pack(name.encode("utf-8"), float(value)) for name, value in stats
    )
    return b"".join(parts)


def parse_endpoint(endpoint_string: str) -> tuple[str, int]:
    """Split ``host[:port]`` into a host and a port, using the default port."""
    host, separator, port = endpoint_string.rpartition(":")
    if not separator:
        return endpoint_string, UDP_STATS_EXPORTER_DEFAULT_PORT
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in endpoint: {endpoint_string!r}.") from None
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, port_number


class UDPStatsExporter:
    """Sends packed statistics as UDP datagrams to one endpoint."""

    def __init__(self, endpoint_string: str) -> None:
        self.endpoint = parse_endpoint(endpoint_string)
        family, sock_type, proto, _, address = socket.getaddrinfo(
            *self.endpoint, type=socket.SOCK_DGRAM
        )[0]
        self._socket = socket.socket(family, sock_type, proto)
        self._socket.connect(address)
        logger.info("Started UDP stats exporter (exporting to: %s)", endpoint_string)

    def send_sync(self, stats: Iterable[tuple[str, float]]) -> int:
        packed = pack_stats_data(stats)
        sent = self._socket.send(packed)
        logger.debug("Sent bytes: %d of %d", sent, len(packed))
        return sent

    def close(self) -> None:
        self._socket.close()

    def __enter__(self) -> UDPStatsExporter:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def try_make_udp_stats_exporter() -> UDPStatsExporter | None:
    """Create an exporter if the environment names an address, else None."""
    address = os.environ.get(UDP_STATS_EXPORTER_ENV_NAME, "")
    if not address:
        return None
    return UDPStatsExporter(address)