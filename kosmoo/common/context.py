"""
Per-cycle logging context.

Log lines emitted while a scrape cycle runs carry the cycle's ID, so one
cycle can be followed across collectors. Lines emitted outside a cycle
carry only the component name.
"""
import uuid
import logging
from contextvars import ContextVar, Token
from typing import Optional

_cycle_id: ContextVar[str] = ContextVar('cycle_id', default="")
_component: ContextVar[str] = ContextVar('component', default="")


def set_component(component: str) -> None:
    """Name the component ("exporter", "http", ...) logging from this context."""
    _component.set(component)


def current_cycle_id() -> Optional[str]:
    return _cycle_id.get() or None


class CycleLogFilter(logging.Filter):
    """Adds ``cycle_id`` and ``component`` attributes to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.cycle_id = _cycle_id.get()
        record.component = _component.get()
        return True


class CycleLogContext:
    """
    Binds a fresh cycle ID for the duration of a ``with`` block.

        with CycleLogContext() as ctx:
            logger.info("cycle started")   # logged with ctx.cycle_id
    """

    def __init__(self, cycle_id: Optional[str] = None):
        self.cycle_id = cycle_id or str(uuid.uuid4())
        self._token: Optional[Token] = None

    def __enter__(self) -> 'CycleLogContext':
        self._token = _cycle_id.set(self.cycle_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _cycle_id.reset(self._token)
