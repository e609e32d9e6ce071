from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Awaitable, Callable, Union


@dataclass(frozen=True)
class SignedIn:
    user_id: str
    method: str


@dataclass(frozen=True)
class SignedOut:
    """Published on explicit logout only; sessions that lapse by TTL go silently."""

    user_id: str


IdentityEvent = Union[SignedIn, SignedOut]
Handler = Callable[[IdentityEvent], Awaitable[None]]


class IdentityEvents:
    """
    Explicit notification channel for identity changes.

    Subscribers register per event type and are awaited in registration order
    when an event is published. A failing handler propagates to the publisher.
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    async def publish(self, event: IdentityEvent) -> None:
        for handler in list(self._handlers.get(type(event), ())):
            await handler(event)
