"""
Event publisher - hands events to subscribed handlers off the request path.

Handlers run on a small thread pool. Publishing never raises because of a
handler: failures are logged and dropped, so a committed booking change is
never reported as failed because a notification could not be sent.
"""
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
import logging
import threading
from typing import Any, Callable, DefaultDict, Dict, List, Optional, Protocol, Type

logger = logging.getLogger(__name__)


class Event(Protocol):
    """Protocol for event types."""

    def to_dict(self) -> Dict[str, Any]:
        ...


Handler = Callable[[Any], None]


class EventPublisher:
    """Fire-and-forget dispatcher of domain events to in-process handlers."""

    def __init__(self, max_workers: int = 4, inline: bool = False):
        """
        Args:
            max_workers: Size of the dispatch thread pool
            inline: Run handlers synchronously in the publishing thread (tests)
        """
        self.inline = inline
        self._handlers: DefaultDict[Type[Any], List[Handler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        if not inline:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="events_"
            )

    def subscribe(self, event_type: Type[Any], handler: Handler) -> None:
        with self._lock:
            self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: Type[Any]) -> List[Handler]:
        with self._lock:
            return list(self._handlers.get(event_type, ()))

    def publish(self, event: Event) -> None:
        """Dispatch ``event`` to every handler subscribed to its type."""
        event_type = type(event)
        handlers = self.handlers_for(event_type)
        if not handlers:
            logger.debug(f"No handlers subscribed to {event_type.__name__}")
            return

        for handler in handlers:
            if self._executor is None:
                self._run(handler, event)
                continue
            try:
                self._executor.submit(self._run, handler, event)
            except RuntimeError:
                # Executor already shut down (application stopping)
                logger.warning(f"Dropped {event_type.__name__}: publisher is shut down")

    @staticmethod
    def _run(handler: Handler, event: Event) -> None:
        name = getattr(handler, "__name__", repr(handler))
        try:
            handler(event)
        except Exception:
            logger.exception(f"Event handler {name} failed for {type(event).__name__}")

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
