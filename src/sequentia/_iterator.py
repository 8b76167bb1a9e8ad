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
Implementation of the asynchronous iterator protocol shared by all sequences.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABCMeta, abstractmethod
from enum import Enum
from types import TracebackType
from typing import Any, Generic, TypeVar, final

from typing_extensions import Self

log = logging.getLogger(__name__)

__all__ = [
    "AsyncSequenceIterator",
    "IteratorState",
]

#
# Type variables
#
# Naming convention used here:
# _ret for covariant type variables used in return positions
# _arg for contravariant type variables used in argument positions
#

T_Element_ret = TypeVar("T_Element_ret", covariant=True)

#
# Constants
#

# A sentinel value that indicates that an iterator holds no current element.
_NO_ELEMENT = object()


#
# Classes
#


class IteratorState(Enum):
    """
    The lifecycle states of an :class:`.AsyncSequenceIterator`.
    """

    #: The iterator has been created, but not yet advanced.
    NOT_STARTED = "not started"

    #: A call to :meth:`.AsyncSequenceIterator.advance` is in progress.
    ADVANCING = "advancing"

    #: The last advance produced an element, available as
    #: :attr:`.AsyncSequenceIterator.current`.
    HAS_CURRENT = "has current"

    #: The sequence has no more elements.
    EXHAUSTED = "exhausted"

    #: An advance failed or was cancelled.
    FAULTED = "faulted"

    #: The iterator was disposed before it was exhausted or faulted.
    DISPOSED = "disposed"

    @property
    def is_terminal(self) -> bool:
        """
        ``True`` if no further elements can be produced in this state, ``False``
        otherwise.
        """
        return self in (
            IteratorState.EXHAUSTED,
            IteratorState.FAULTED,
            IteratorState.DISPOSED,
        )


class AsyncSequenceIterator(Generic[T_Element_ret], metaclass=ABCMeta):
    """
    A cursor over the elements of an :class:`.AsyncSequence`.

    The iterator is driven by calling :meth:`advance`, which suspends until the next
    element is available and then exposes it as :attr:`current`. Only one call to
    :meth:`advance` may be in flight at any time.

    Once the iterator is exhausted, faulted, or disposed, it stays in that terminal
    state and further calls to :meth:`advance` return ``False`` without doing any
    work. A failure is raised exactly once, from the call to :meth:`advance` that
    encountered it.

    Iterators own the resources they acquire while advancing; these are released as
    soon as the iterator is exhausted or faults, or otherwise by :meth:`dispose`,
    which is idempotent and safe to call in any state. Iterators are also
    asynchronous context managers, disposing of themselves on exit:

    .. code-block:: python

        async with sequence.get_iterator() as iterator:
            while await iterator.advance():
                print(iterator.current)

    Subclasses implement :meth:`_advance` and, if they hold resources,
    :meth:`_release`.
    """

    def __init__(self) -> None:
        self._state = IteratorState.NOT_STARTED
        self._current: Any = _NO_ELEMENT
        self._released = False

    @property
    def state(self) -> IteratorState:
        """
        The current lifecycle state of this iterator.
        """
        return self._state

    @property
    def current(self) -> T_Element_ret:
        """
        The element produced by the last successful call to :meth:`advance`.

        :raises RuntimeError: if the last call to :meth:`advance` did not produce an
            element
        """
        if self._state is not IteratorState.HAS_CURRENT:
            raise RuntimeError(
                f"{type(self).__name__} has no current element "
                f"in state {self._state.value!r}"
            )
        return self._current  # type: ignore[no-any-return]

    @final
    async def advance(self) -> bool:
        """
        Advance to the next element.

        :return: ``True`` if an element was produced and is available as
            :attr:`current`; ``False`` if the iterator is exhausted, faulted, or
            disposed
        :raises RuntimeError: if another call to this method is still pending
        """
        state = self._state
        if state is IteratorState.ADVANCING:
            raise RuntimeError(
                f"{type(self).__name__}.advance() called while a previous call is "
                "still pending"
            )
        elif state.is_terminal:
            return False

        self._state = IteratorState.ADVANCING
        self._current = _NO_ELEMENT

        try:
            has_element = await self._advance()
        except (Exception, asyncio.CancelledError) as error:
            self._current = _NO_ELEMENT
            if self._state is IteratorState.ADVANCING:
                self._state = IteratorState.FAULTED
            log.debug("%s faulted: %r", type(self).__name__, error)
            await self._release_once()
            raise

        if self._state is not IteratorState.ADVANCING:
            # the iterator was disposed while the advance was pending
            self._current = _NO_ELEMENT
            return False
        elif has_element:
            self._state = IteratorState.HAS_CURRENT
            return True
        else:
            self._state = IteratorState.EXHAUSTED
            self._current = _NO_ELEMENT
            await self._release_once()
            return False

    @final
    async def dispose(self) -> None:
        """
        Release all resources held by this iterator.

        Safe to call more than once, before the first call to :meth:`advance`, and
        after the iterator has faulted. An iterator that is not yet exhausted or
        faulted moves to state :attr:`.IteratorState.DISPOSED`.
        """
        if not self._state.is_terminal:
            self._state = IteratorState.DISPOSED
        self._current = _NO_ELEMENT
        await self._release_once()

    async def aclose(self) -> None:
        """
        Alias of :meth:`dispose`, for compatibility with
        :func:`contextlib.aclosing`.
        """
        await self.dispose()

    @abstractmethod
    async def _advance(self) -> bool:
        """
        Produce the next element.

        Implementations store the new element in attribute ``_current`` before
        returning ``True``.

        :return: ``True`` if an element was produced, ``False`` if there are no more
            elements
        """

    async def _release(self) -> None:
        """
        Release the resources held by this iterator.

        Called at most once, when the iterator is exhausted, faults, or is disposed.
        Does nothing by default.
        """

    async def _release_once(self) -> None:
        if self._released:
            return
        self._released = True
        await self._release()

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> T_Element_ret:
        if await self.advance():
            return self.current
        raise StopAsyncIteration

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.dispose()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} state={self._state.value!r}>"
