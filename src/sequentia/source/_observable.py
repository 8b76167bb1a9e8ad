# -----------------------------------------------------------------------------
# © 2024 Boston Consulting Group. All rights reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# -----------------------------------------------------------------------------

"""
Implementation of sequences over push-based observables.

The observable protocols defined here are structurally compatible with
`ReactiveX for Python <https://github.com/ReactiveX/RxPY>`_, so its observables can
be used as sources directly.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import warnings
from collections import deque
from collections.abc import Mapping
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pytools.api import inheritdoc

from .._iterator import AsyncSequenceIterator
from .._sequence import AsyncSequence
from .._warning import SequenceWarning

log = logging.getLogger(__name__)

__all__ = [
    "Observable",
    "ObservableSequence",
    "Observer",
    "Subscription",
]

#
# Type variables
#
# Naming convention used here:
# _ret for covariant type variables used in return positions
# _arg for contravariant type variables used in argument positions
#

T_Element_ret = TypeVar("T_Element_ret", covariant=True)
T_Element_arg = TypeVar("T_Element_arg", contravariant=True)
T_Element = TypeVar("T_Element")


#
# Protocols
#


@runtime_checkable
class Subscription(Protocol):
    """
    A handle for a subscription to an :class:`.Observable`.
    """

    def dispose(self) -> None:
        """
        End the subscription; the observer will receive no further notifications.
        """


@runtime_checkable
class Observer(Protocol[T_Element_arg]):
    """
    Receives the notifications of an :class:`.Observable`.

    An observable sends any number of :meth:`on_next` notifications, optionally
    followed by exactly one :meth:`on_error` or :meth:`on_completed` notification.
    """

    def on_next(self, value: T_Element_arg) -> None:
        """
        Receive the next element.

        :param value: the element
        """

    def on_error(self, error: Exception) -> None:
        """
        Receive the error that terminated the observable.

        :param error: the error
        """

    def on_completed(self) -> None:
        """
        Receive notice that the observable has completed.
        """


@runtime_checkable
class Observable(Protocol[T_Element_ret]):
    """
    A push-based source of elements.
    """

    def subscribe(self, observer: Observer[T_Element_ret]) -> Subscription:
        """
        Start sending notifications to the given observer.

        Notifications may be sent before this method returns.

        :param observer: the observer to notify
        :return: the subscription, to be disposed when the observer is no longer
            interested in notifications
        """


#
# Classes
#


@inheritdoc(match="[see superclass]")
class ObservableSequence(AsyncSequence[T_Element_ret], Generic[T_Element_ret]):
    """
    An asynchronous sequence over the elements pushed by an :class:`.Observable`.

    Unlike other sequences, creating an iterator is not free of side effects: each
    call to :meth:`get_iterator` subscribes to the observable, so that no elements
    pushed after that point are missed. Constructing the sequence itself does not
    subscribe.

    Each iterator holds its own subscription, so iterating the sequence more than
    once subscribes more than once; whether the observable then replays its
    elements depends on the observable.

    Elements pushed by the observable are queued until the consumer advances the
    iterator, and notifications may be sent from any thread. An error notification
    is raised from the pending or next advance, once all elements pushed before it
    have been consumed; a completion notification ends the iteration likewise.

    The subscription is disposed exactly once: when the observable terminates, or
    when the iterator is disposed, whichever comes first.
    """

    #: The observable providing the elements of this sequence.
    source: Observable[T_Element_ret]

    def __init__(self, source: Observable[T_Element_ret]) -> None:
        """
        :param source: the observable providing the elements of this sequence
        :raises TypeError: if the source is not an observable
        """
        if not isinstance(source, Observable):
            raise TypeError(f"arg source must be an Observable, but got: {source!r}")
        self.source = source

    def get_iterator(self) -> AsyncSequenceIterator[T_Element_ret]:
        """
        Subscribe to the observable, and create a new iterator over the elements it
        pushes from now on.

        :return: a new iterator, positioned before the first element
        """
        return _ObservableIterator(self.source)

    def get_repr_attributes(self) -> Mapping[str, Any]:
        """[see superclass]"""
        return dict(source=self.source)


class _HandoffState(Enum):
    """
    The state of the hand-off between an observable and its consuming iterator.
    """

    #: No notifications are queued and the consumer is not waiting.
    IDLE = "idle"

    #: Elements are queued for the consumer.
    VALUE_PENDING = "value pending"

    #: The consumer is suspended until the next notification arrives.
    AWAITING_VALUE = "awaiting value"

    #: The observable has completed; queued elements may remain.
    COMPLETED = "completed"

    #: The observable has sent an error; queued elements may remain.
    FAULTED = "faulted"


class _NotificationKind(Enum):
    NEXT = "next"
    ERROR = "error"
    COMPLETED = "completed"


class _HandoffObserver(Generic[T_Element]):
    """
    The observer subscribed on behalf of an iterator.

    Kept separate from the iterator so the notification methods are not part of the
    iterator's interface.
    """

    def __init__(self, iterator: _ObservableIterator[T_Element]) -> None:
        self._iterator = iterator

    def on_next(self, value: T_Element) -> None:
        self._iterator._push(_NotificationKind.NEXT, value)

    def on_error(self, error: Exception) -> None:
        self._iterator._push(_NotificationKind.ERROR, error)

    def on_completed(self) -> None:
        self._iterator._push(_NotificationKind.COMPLETED, None)


class _ObservableIterator(AsyncSequenceIterator[T_Element], Generic[T_Element]):
    def __init__(self, source: Observable[T_Element]) -> None:
        super().__init__()

        self._lock = threading.Lock()
        self._handoff_state = _HandoffState.IDLE
        self._notifications: deque[tuple[_NotificationKind, Any]] = deque()
        self._waiter: asyncio.Future[None] | None = None
        self._subscription: Subscription | None = None
        self._unsubscribed = False
        self._closed = False

        try:
            subscription = source.subscribe(_HandoffObserver(self))
        except Exception as error:
            # failures surface from the first advance, not from get_iterator()
            self._push(_NotificationKind.ERROR, error)
            return

        log.debug("subscribed to %r", source)

        with self._lock:
            if not self._unsubscribed:
                self._subscription = subscription
                return

        # the observable terminated, or the iterator was disposed, before
        # subscribe() returned
        self._dispose_subscription(subscription)

    async def _advance(self) -> bool:
        kind, payload = await self._receive()
        if kind is _NotificationKind.NEXT:
            self._current = payload
            return True
        elif kind is _NotificationKind.ERROR:
            raise payload
        else:
            return False

    async def _release(self) -> None:
        with self._lock:
            self._closed = True
            self._notifications.clear()
            waiter, self._waiter = self._waiter, None
        if waiter is not None:
            # a pending advance ends without an element
            waiter.get_loop().call_soon_threadsafe(_wake, waiter)
        self._unsubscribe()

    async def _receive(self) -> tuple[_NotificationKind, Any]:
        while True:
            with self._lock:
                if self._closed:
                    return _NotificationKind.COMPLETED, None
                elif self._notifications:
                    notification = self._notifications.popleft()
                    if (
                        not self._notifications
                        and self._handoff_state is _HandoffState.VALUE_PENDING
                    ):
                        self._handoff_state = _HandoffState.IDLE
                    return notification

                waiter = self._waiter = asyncio.get_running_loop().create_future()
                self._handoff_state = _HandoffState.AWAITING_VALUE

            try:
                await waiter
            finally:
                with self._lock:
                    if self._waiter is waiter:
                        self._waiter = None
                    if self._handoff_state is _HandoffState.AWAITING_VALUE:
                        self._handoff_state = _HandoffState.IDLE

    def _push(self, kind: _NotificationKind, payload: Any) -> None:
        waiter: asyncio.Future[None] | None = None
        with self._lock:
            if self._closed:
                # the iterator was disposed while the notification was in flight
                log.debug("dropping %s notification after disposal", kind.value)
                return
            elif self._handoff_state in (
                _HandoffState.COMPLETED,
                _HandoffState.FAULTED,
            ):
                terminated = True
            else:
                terminated = False
                self._notifications.append((kind, payload))
                if kind is _NotificationKind.NEXT:
                    self._handoff_state = _HandoffState.VALUE_PENDING
                elif kind is _NotificationKind.ERROR:
                    self._handoff_state = _HandoffState.FAULTED
                else:
                    self._handoff_state = _HandoffState.COMPLETED
                waiter, self._waiter = self._waiter, None

        if terminated:
            warnings.warn(
                f"observable sent a {kind.value} notification after it had "
                "terminated; the notification is ignored",
                SequenceWarning,
                stacklevel=3,
            )
            return

        if waiter is not None:
            waiter.get_loop().call_soon_threadsafe(_wake, waiter)

        if kind is not _NotificationKind.NEXT:
            self._unsubscribe()

    def _unsubscribe(self) -> None:
        with self._lock:
            subscription, self._subscription = self._subscription, None
            self._unsubscribed = True
        if subscription is not None:
            self._dispose_subscription(subscription)

    @staticmethod
    def _dispose_subscription(subscription: Subscription) -> None:
        log.debug("disposing subscription %r", subscription)
        subscription.dispose()


#
# Auxiliary functions
#


def _wake(waiter: asyncio.Future[None]) -> None:
    # the waiter may have been cancelled while the wake-up was scheduled
    if not waiter.done():
        waiter.set_result(None)
