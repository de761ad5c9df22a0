"""Context object shared across worker threads."""

from dataclasses import dataclass, field
from typing import Optional

from poolserver.bootstrap.config import ServerConfig
from poolserver.state.statistics import StatisticsCounters
from poolserver.state.stored_buffer import StoredBuffer


@dataclass
class WorkerContext:
    """Shared state and settings injected into every handler."""

    directory: str = "."
    stored_buffer: StoredBuffer = field(default_factory=StoredBuffer)
    statistics: StatisticsCounters = field(default_factory=StatisticsCounters)
    config: Optional[ServerConfig] = None
