import logging
from typing import Any, Callable, Dict, Iterable, Optional

logger = logging.getLogger("fitplan.pipeline")

Listener = Callable[[str, Dict[str, Any]], None]


class PipelineEvents:
    """Stage hooks for the plan pipeline.

    Each event is logged and handed to every listener as ``(stage, payload)``.
    """

    def __init__(self, listeners: Optional[Iterable[Listener]] = None):
        self._listeners = list(listeners or [])

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def emit(self, stage: str, **payload: Any) -> None:
        logger.info("%s %s", stage, payload)
        for listener in self._listeners:
            try:
                listener(stage, payload)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, stage)
