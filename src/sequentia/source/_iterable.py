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
Implementation of sequences over synchronous and asynchronous iterables.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator, Mapping
from typing import Any, Generic, TypeVar

from pytools.api import inheritdoc

from .._iterator import AsyncSequenceIterator
from .._sequence import AsyncSequence

log = logging.getLogger(__name__)

__all__ = [
    "AsyncIterableSequence",
    "IterableSequence",
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
class IterableSequence(AsyncSequence[T_Element_ret], Generic[T_Element_ret]):
    """
    An asynchronous sequence over the elements of a synchronous iterable.

    Each advance pulls the next element from the iterable, without suspending.
    Exceptions raised by the iterable, including exceptions raised lazily by a
    generator, are propagated unchanged.

    Each iterator calls :func:`iter` on the iterable when it is first advanced, so
    iterables that can be iterated repeatedly, such as lists, sets, or ranges,
    produce the same elements for every iterator. If the iterable is itself an
    iterator, such as a generator object, its elements are produced only once.
    """

    #: The iterable providing the elements of this sequence.
    source: Iterable[T_Element_ret]

    def __init__(self, source: Iterable[T_Element_ret]) -> None:
        """
        :param source: the iterable providing the elements of this sequence
        :raises TypeError: if the source is not an iterable
        """
        if not isinstance(source, Iterable):
            raise TypeError(f"arg source must be an iterable, but got: {source!r}")
        self.source = source

    def get_iterator(self) -> AsyncSequenceIterator[T_Element_ret]:
        """[see superclass]"""
        return _IterableIterator(self.source)

    def get_repr_attributes(self) -> Mapping[str, Any]:
        """[see superclass]"""
        return dict(source=self.source)


@inheritdoc(match="[see superclass]")
class AsyncIterableSequence(AsyncSequence[T_Element_ret], Generic[T_Element_ret]):
    """
    An asynchronous sequence over the elements of an asynchronous iterable.

    Each iterator calls :func:`aiter` on the iterable when it is first advanced, so
    the sequence can be iterated repeatedly if the iterable supports this. If the
    iterable is itself an asynchronous iterator, such as an asynchronous generator
    object, its elements are produced only once.

    Asynchronous generators created by an iterator are closed when the iterator is
    disposed. If the iterator is disposed while an advance is pending, the
    generator is closed as soon as it yields, and the pending advance returns
    ``False``.
    """

    #: The asynchronous iterable providing the elements of this sequence.
    source: AsyncIterable[T_Element_ret]

    def __init__(self, source: AsyncIterable[T_Element_ret]) -> None:
        """
        :param source: the asynchronous iterable providing the elements of this
            sequence
        :raises TypeError: if the source is not an asynchronous iterable
        """
        if not isinstance(source, AsyncIterable):
            raise TypeError(
                f"arg source must be an asynchronous iterable, but got: {source!r}"
            )
        self.source = source

    def get_iterator(self) -> AsyncSequenceIterator[T_Element_ret]:
        """[see superclass]"""
        return _AsyncIterableIterator(self.source)

    def get_repr_attributes(self) -> Mapping[str, Any]:
        """[see superclass]"""
        return dict(source=self.source)


class _IterableIterator(AsyncSequenceIterator[T_Element], Generic[T_Element]):
    def __init__(self, source: Iterable[T_Element]) -> None:
        super().__init__()
        self._source = source
        self._iterator: Iterator[T_Element] | None = None

    async def _advance(self) -> bool:
        iterator = self._iterator
        if iterator is None:
            iterator = self._iterator = iter(self._source)
        try:
            self._current = next(iterator)
        except StopIteration:
            return False
        return True

    async def _release(self) -> None:
        iterator, self._iterator = self._iterator, None
        # only close generators created by this iterator, never the caller's own
        if iterator is not None and iterator is not self._source:
            close = getattr(iterator, "close", None)
            if close is not None:
                close()


class _AsyncIterableIterator(AsyncSequenceIterator[T_Element], Generic[T_Element]):
    def __init__(self, source: AsyncIterable[T_Element]) -> None:
        super().__init__()
        self._source = source
        self._iterator: AsyncIterator[T_Element] | None = None
        self._pulling = False
        self._close_pending = False

    async def _advance(self) -> bool:
        iterator = self._iterator
        if iterator is None:
            iterator = self._iterator = aiter(self._source)
        self._pulling = True
        try:
            self._current = await anext(iterator)
        except StopAsyncIteration:
            return False
        finally:
            self._pulling = False
            if self._close_pending:
                # disposed while pulling; the generator can be closed only now
                await self._close_iterator()
        return True

    async def _release(self) -> None:
        if self._pulling:
            # a running asynchronous generator cannot be closed
            self._close_pending = True
        else:
            await self._close_iterator()

    async def _close_iterator(self) -> None:
        iterator, self._iterator = self._iterator, None
        self._close_pending = False
        # only close generators created by this iterator, never the caller's own
        if iterator is not None and iterator is not self._source:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()
