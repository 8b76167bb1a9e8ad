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
Implementation of ``DeferredSequence``.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Generic, TypeVar

from pytools.api import inheritdoc

from .._iterator import AsyncSequenceIterator
from .._sequence import AsyncSequence

log = logging.getLogger(__name__)

__all__ = [
    "DeferredSequence",
]

#
# Type variables
#
# Naming convention used here:
# _ret for covariant type variables used in return positions
# _arg for contravariant type variables used in argument positions
#

T_Element_ret = TypeVar("T_Element_ret", covariant=True)
T_Element = TypeVar("T_Element")


#
# Classes
#


@inheritdoc(match="[see superclass]")
class DeferredSequence(AsyncSequence[T_Element_ret], Generic[T_Element_ret]):
    """
    A sequence of a single element, the result of a deferred computation.

    The first advance of an iterator awaits the computation. If it succeeds, its
    result is produced as the only element of the sequence; if it fails, the
    failure is raised. If the computation was cancelled,
    :class:`asyncio.CancelledError` is raised, so that callers can tell cancellation
    apart from other failures. Further advances do not await the computation again.

    The source of the computation determines how the sequence behaves when iterated
    more than once:

    - an :mod:`asyncio` future or task is awaited by every iterator, replaying its
      outcome; cancelling an iterator's pending advance does not cancel the
      future or task itself
    - a function returning an awaitable is called once for every iterator, so each
      iteration runs a new computation
    - any other awaitable, such as a coroutine, can only be awaited once; iterators
      created after it has been claimed by another iterator raise a
      :class:`RuntimeError` on their first advance
    """

    #: The awaitable, or the function creating the awaitable, that computes the
    #: element of this sequence.
    source: Awaitable[T_Element_ret] | Callable[[], Awaitable[T_Element_ret]]

    def __init__(
        self,
        source: Awaitable[T_Element_ret] | Callable[[], Awaitable[T_Element_ret]],
    ) -> None:
        """
        :param source: the awaitable, or a function creating the awaitable, that
            computes the element of this sequence
        :raises TypeError: if the source is neither an awaitable nor callable
        """
        if not (isinstance(source, Awaitable) or callable(source)):
            raise TypeError(
                "arg source must be an awaitable or a function returning an "
                f"awaitable, but got: {source!r}"
            )
        self.source = source
        self._lock = threading.Lock()
        self._claimed = False

    def get_iterator(self) -> AsyncSequenceIterator[T_Element_ret]:
        """[see superclass]"""
        return _DeferredIterator(self)

    def get_repr_attributes(self) -> Mapping[str, Any]:
        """[see superclass]"""
        return dict(source=self.source)

    def _claim_awaitable(self) -> Awaitable[T_Element_ret]:
        """
        Get the awaitable for a new iteration.

        :return: the awaitable to await
        :raises RuntimeError: if the source can only be awaited once and has already
            been claimed
        :raises TypeError: if the source is a function that does not return an
            awaitable
        """
        source = self.source

        if asyncio.isfuture(source):
            # cancelling one iterator must not cancel the future shared by all
            return asyncio.shield(source)
        elif isinstance(source, Awaitable):
            with self._lock:
                claimed, self._claimed = self._claimed, True
            if claimed:
                raise RuntimeError(
                    f"{type(self).__name__} over {source!r} can only be iterated "
                    "once; pass a task or a function creating the awaitable to "
                    "iterate it more than once"
                )
            return source

        awaitable = source()
        if not isinstance(awaitable, Awaitable):
            raise TypeError(
                "expected source function to return an awaitable, but got: "
                f"{awaitable!r}"
            )
        return awaitable


class _DeferredIterator(AsyncSequenceIterator[T_Element], Generic[T_Element]):
    def __init__(self, sequence: DeferredSequence[T_Element]) -> None:
        super().__init__()
        self._sequence = sequence
        self._awaited = False

    async def _advance(self) -> bool:
        if self._awaited:
            return False
        self._awaited = True
        self._current = await self._sequence._claim_awaitable()
        return True
