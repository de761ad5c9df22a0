"""Per-connection identifiers carried into every log record."""

import contextvars
import itertools
import logging
from typing import Any, MutableMapping, Optional

LOGGER_PREFIX = "poolserver."

_connection_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "connection_id", default=None
)
_sequence = itertools.count(1)


def next_connection_id() -> str:
    """Return a new process-unique connection identifier."""
    # itertools.count.__next__ is atomic under the GIL.
    return f"conn-{next(_sequence)}"


def get_connection_id() -> Optional[str]:
    """Retrieve the connection id bound to the current thread context."""
    return _connection_id_var.get()


def bind_connection_id(connection_id: str) -> None:
    _connection_id_var.set(connection_id)


def clear_connection_id() -> None:
    _connection_id_var.set(None)


class ConnectionLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that injects the connection id and component name."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        if "extra" not in kwargs:
            kwargs["extra"] = {}
        else:
            kwargs["extra"] = dict(kwargs["extra"])

        connection_id = get_connection_id()
        kwargs["extra"]["connection_id"] = (
            connection_id if connection_id is not None else "-"
        )

        logger_name = self.logger.name
        if logger_name.startswith(LOGGER_PREFIX):
            component = logger_name[len(LOGGER_PREFIX) :]
        else:
            component = logger_name
        kwargs["extra"]["component"] = component

        return msg, kwargs


def get_logger(name: str) -> ConnectionLoggerAdapter:
    """Return an adapter around the ``poolserver.<name>`` logger."""
    return ConnectionLoggerAdapter(logging.getLogger(f"{LOGGER_PREFIX}{name}"), {})
