# accumulator.py

"""Metric sinks that receive the records produced by the aggregators."""

import logging
import math
import sys
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, TextIO

import requests

from .config import DEFAULT_MEASUREMENT_PREFIX, INFLUXDB_DEFAULT_DATABASE, INFLUXDB_TIMEOUT
from .exceptions import SinkError
from .models import Metric, Number

logger = logging.getLogger(__name__)

class Accumulator(ABC):
    """Receives (name, fields, tags) metric records."""

    @abstractmethod
    def emit(self, name: str, fields: Dict[str, Number], tags: Dict[str, str]) -> None:
        """Accept one fully formed metric record."""

    def flush(self) -> None:
        """Deliver anything buffered. Called once at the end of each cycle."""

class MetricBuffer(Accumulator):
    """Keeps every record in emission order."""

    def __init__(self):
        self.metrics: List[Metric] = []

    def emit(self, name: str, fields: Dict[str, Number], tags: Dict[str, str]) -> None:
        self.metrics.append(Metric(name, dict(fields), dict(tags)))

    def find(self, name: str, /, **tags: str) -> List[Metric]:
        """Return the records with this name whose tags include the given ones."""
        return [
            m for m in self.metrics
            if m.name == name and all(m.tags.get(k) == v for k, v in tags.items())
        ]

    def clear(self) -> None:
        self.metrics.clear()

def _escape(value: str, special: str) -> str:
    for char in "\\" + special:
        value = value.replace(char, "\\" + char)
    return value

def _format_field(value: Number) -> Optional[str]:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if not math.isfinite(value):
        return None
    return repr(float(value))

def format_line(name: str, fields: Dict[str, Number], tags: Dict[str, str],
                timestamp_ns: Optional[int] = None) -> Optional[str]:
    """
    Render a record as InfluxDB line protocol.

    Tags with empty values and non-finite float fields cannot be
    represented and are left out. Returns None when no field remains.
    """
    measurement = _escape(name, ", ")
    for key in sorted(tags):
        if tags[key]:
            measurement += f",{_escape(key, ',= ')}={_escape(tags[key], ',= ')}"

    rendered = []
    for key, value in fields.items():
        formatted = _format_field(value)
        if formatted is None:
            logger.debug(f"Dropping non-finite field {key}={value} from {name}")
            continue
        rendered.append(f"{_escape(key, ',= ')}={formatted}")

    if not rendered:
        return None

    line = f"{measurement} {','.join(rendered)}"
    if timestamp_ns is not None:
        line += f" {timestamp_ns}"
    return line

class LineProtocolWriter(Accumulator):
    """Writes records to a text stream as InfluxDB line protocol."""

    def __init__(self, stream: Optional[TextIO] = None,
                 prefix: str = DEFAULT_MEASUREMENT_PREFIX,
                 timestamps: bool = True):
        self.stream = stream or sys.stdout
        self.prefix = prefix
        self.timestamps = timestamps

    def emit(self, name: str, fields: Dict[str, Number], tags: Dict[str, str]) -> None:
        timestamp = time.time_ns() if self.timestamps else None
        line = format_line(self.prefix + name, fields, tags, timestamp)
        if line is not None:
            self.stream.write(line + "\n")

    def flush(self) -> None:
        self.stream.flush()

class InfluxDBWriter(Accumulator):
    """Buffers line protocol for a cycle and posts it to an InfluxDB /write endpoint."""

    def __init__(self, url: str, database: str = INFLUXDB_DEFAULT_DATABASE,
                 prefix: str = DEFAULT_MEASUREMENT_PREFIX,
                 timeout: float = INFLUXDB_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.url = url.rstrip("/")
        self.database = database
        self.prefix = prefix
        self.timeout = timeout
        self.session = session or requests.Session()
        self.lines: List[str] = []

    def emit(self, name: str, fields: Dict[str, Number], tags: Dict[str, str]) -> None:
        line = format_line(self.prefix + name, fields, tags, time.time_ns())
        if line is not None:
            self.lines.append(line)

    def flush(self) -> None:
        if not self.lines:
            return

        body = "\n".join(self.lines)
        count = len(self.lines)
        self.lines = []
        try:
            response = self.session.post(
                f"{self.url}/write",
                params={"db": self.database, "precision": "ns"},
                data=body.encode("utf-8"),
                timeout=self.timeout
            )
            response.raise_for_status()
        except requests.RequestException as e:
            raise SinkError(f"Failed to write {count} points to InfluxDB: {e}") from e

        logger.debug(f"Wrote {count} points to {self.url}")
