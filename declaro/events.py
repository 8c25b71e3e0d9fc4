"""Change notification for resource instances.

Resources announce attribute changes through an injected observable. Any
object satisfying the :class:`Observable` protocol may be supplied; the
:class:`EventEmitter` here is the default.
"""

__all__ = ['EventEmitter', 'Observable']

import logging
import typing

logger = logging.getLogger(__name__)
logger.debug('Importing {}'.format(__name__))

Handler = typing.Callable[..., typing.Any]


@typing.runtime_checkable
class Observable(typing.Protocol):
    """Capability to publish named events."""
    def trigger(self, event: str, *args) -> None:
        ...


class EventEmitter:
    """Synchronous named-event publisher.

    Handlers are called in registration order. Exceptions raised by a
    handler propagate to the code that triggered the event.
    """

    def __init__(self):
        self._handlers: typing.Dict[str, typing.List[Handler]] = {}

    def on(self, event: str, handler: Handler):
        """Register *handler* for *event*."""
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Handler = None):
        """Remove *handler* for *event*, or all handlers for *event* if *handler* is None."""
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event, [])
        self._handlers[event] = [h for h in handlers if h is not handler]

    def trigger(self, event: str, *args):
        for handler in list(self._handlers.get(event, ())):
            handler(*args)
