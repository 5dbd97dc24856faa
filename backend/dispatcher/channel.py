"""Command channel — explicit publish/subscribe for artifact builder commands.

Any collaborator (HTTP builder client, a WebSocket forwarding commands to
the browser, a test recorder) subscribes with an async handler. Each publish
delivers one discrete message to every subscriber.
"""
import logging
from typing import Awaitable, Callable, List

from core.exceptions import DispatchError
from schemas.commands import Command

logger = logging.getLogger(__name__)

CommandHandler = Callable[[Command], Awaitable[None]]


class CommandChannel:

    def __init__(self):
        self._subscribers: List[CommandHandler] = []

    def subscribe(self, handler: CommandHandler) -> Callable[[], None]:
        """Register ``handler``. Returns a callable that unsubscribes it."""
        self._subscribers.append(handler)

        def _unsubscribe() -> None:
            if handler in self._subscribers:
                self._subscribers.remove(handler)

        return _unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, command: Command) -> int:
        """Deliver to every subscriber. Returns the number of deliveries.

        Raises DispatchError when nobody is listening or any subscriber fails.
        Remaining subscribers still receive the command after a failure, and
        the error carries how many of them did.
        """
        if not self._subscribers:
            raise DispatchError("No artifact builder subscribed to the command channel")

        failures = []
        delivered = 0
        for handler in list(self._subscribers):
            try:
                await handler(command)
                delivered += 1
            except Exception as e:
                logger.error("[CommandChannel] Subscriber %s failed: %s",
                             getattr(handler, "__qualname__", handler), str(e))
                failures.append(e)

        if failures:
            raise DispatchError(
                f"{len(failures)} subscriber(s) failed: {failures[0]}",
                delivered=delivered,
            )
        return delivered
