from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

EVENTS = ("layout_changed", "data_requested", "data_rendered", "element_clicked")

Hook = Callable[[Any], Any]


class EventHooks:
    """
    Named event hooks for a plot or panel.

    Hooks receive a single context argument (the emitter, unless an explicit
    context is passed). A failing hook is logged and the remaining hooks
    still run.
    """

    def __init__(self, owner: Any = None):
        self._owner = owner
        self._hooks: Dict[str, List[Hook]] = {name: [] for name in EVENTS}

    def on(self, event: str, hook: Hook) -> None:
        if event not in self._hooks:
            raise ConfigurationError(f"Unable to register event hook, invalid event: {event}")
        if not callable(hook):
            raise ConfigurationError("Unable to register event hook, invalid hook function passed")
        self._hooks[event].append(hook)

    def off(self, event: str, hook: Hook) -> None:
        if event in self._hooks and hook in self._hooks[event]:
            self._hooks[event].remove(hook)

    def emit(self, event: str, context: Optional[Any] = None) -> None:
        if event not in self._hooks:
            raise ConfigurationError(f"Attempted to emit an invalid event: {event}")
        context = context if context is not None else self._owner
        for hook in list(self._hooks[event]):
            try:
                hook(context)
            except Exception:
                logger.exception("Event hook failed", extra={"event": event})
