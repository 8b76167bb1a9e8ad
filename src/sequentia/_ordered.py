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
Implementation of ``OrderedSequence``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, Generic, TypeVar

from pytools.api import inheritdoc

from ._iterator import AsyncSequenceIterator, IteratorState
from ._sequence import AsyncSequence
from .core import SortKey, compare_natural, compute_keys, sort_indices

log = logging.getLogger(__name__)

__all__ = [
    "OrderedSequence",
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
T_Key = TypeVar("T_Key")


#
# Classes
#


@inheritdoc(match="[see superclass]")
class OrderedSequence(AsyncSequence[T_Element_ret], Generic[T_Element_ret]):
    """
    A sequence whose elements are sorted by one or more keys.

    Ordered sequences are created using :meth:`.AsyncSequence.order_by` or
    :meth:`.AsyncSequence.order_by_descending`, and refined with additional
    tie-breaking keys using :meth:`then_by` or :meth:`then_by_descending`:

    .. code-block:: python

        people_by_age_then_name = (
            from_iterable(people)
            .order_by_descending(lambda person: person.age)
            .then_by(lambda person: person.name)
        )

    Composing an ordered sequence does no work. Each iterator drains the source
    sequence completely on its first advance, computes all keys of all elements,
    sorts them stably, and then yields the elements in sorted order. No element is
    produced before the whole source has been sorted.
    """

    #: The sequence whose elements are sorted.
    source: AsyncSequence[T_Element_ret]

    #: The key at the lowest level of the sort order; its parent keys take
    #: precedence.
    sort_key: SortKey[T_Element_ret, Any]

    def __init__(
        self,
        source: AsyncSequence[T_Element_ret],
        sort_key: SortKey[T_Element_ret, Any],
    ) -> None:
        """
        :param source: the sequence whose elements are sorted
        :param sort_key: the key at the lowest level of the sort order
        :raises TypeError: if the source is not an asynchronous sequence, or the sort
            key is not a :class:`.SortKey`
        """
        if not isinstance(source, AsyncSequence):
            raise TypeError(
                f"arg source must be an AsyncSequence, but got: {source!r}"
            )
        if not isinstance(sort_key, SortKey):
            raise TypeError(f"arg sort_key must be a SortKey, but got: {sort_key!r}")

        self.source = source
        self.sort_key = sort_key

    def then_by(
        self,
        key_selector: Callable[[T_Element_ret], T_Key | Awaitable[T_Key]],
        comparer: Callable[[T_Key, T_Key], int] = compare_natural,
    ) -> OrderedSequence[T_Element_ret]:
        """
        Sort elements that are equivalent under the current sort order in ascending
        order of an additional key.

        :param key_selector: a function that returns the key of an element, or an
            awaitable resolving to the key
        :param comparer: a function comparing two keys (defaults to
            :func:`.compare_natural`)
        :return: the refined ordered sequence
        :raises TypeError: if the key selector or comparer is not callable
        """
        return self.create_ordered_sequence(key_selector, comparer, descending=False)

    def then_by_descending(
        self,
        key_selector: Callable[[T_Element_ret], T_Key | Awaitable[T_Key]],
        comparer: Callable[[T_Key, T_Key], int] = compare_natural,
    ) -> OrderedSequence[T_Element_ret]:
        """
        Sort elements that are equivalent under the current sort order in descending
        order of an additional key.

        Only the new level is sorted in descending order; the direction of the
        preceding levels is unchanged.

        :param key_selector: a function that returns the key of an element, or an
            awaitable resolving to the key
        :param comparer: a function comparing two keys (defaults to
            :func:`.compare_natural`)
        :return: the refined ordered sequence
        :raises TypeError: if the key selector or comparer is not callable
        """
        return self.create_ordered_sequence(key_selector, comparer, descending=True)

    def create_ordered_sequence(
        self,
        key_selector: Callable[[T_Element_ret], T_Key | Awaitable[T_Key]],
        comparer: Callable[[T_Key, T_Key], int],
        *,
        descending: bool,
    ) -> OrderedSequence[T_Element_ret]:
        """
        Create a new ordered sequence that breaks ties in the sort order of this
        sequence using an additional key.

        This sequence is left unchanged.

        :param key_selector: a function that returns the key of an element, or an
            awaitable resolving to the key
        :param comparer: a function comparing two keys
        :param descending: if ``True``, sort the new level in descending order
        :return: the refined ordered sequence
        :raises TypeError: if the key selector or comparer is not callable
        """
        return OrderedSequence(
            self.source,
            SortKey(
                key_selector, comparer, descending=descending, parent=self.sort_key
            ),
        )

    def get_iterator(self) -> AsyncSequenceIterator[T_Element_ret]:
        """[see superclass]"""
        return _OrderedIterator(self.source, tuple(self.sort_key.iter_chain()))

    def get_repr_attributes(self) -> Mapping[str, Any]:
        """[see superclass]"""
        return dict(source=self.source, sort_key=self.sort_key)


class _OrderedIterator(AsyncSequenceIterator[T_Element], Generic[T_Element]):
    """
    Iterates over a sorted copy of a source sequence.

    The sort buffer is built on the first advance and owned by this iterator alone.
    """

    def __init__(
        self,
        source: AsyncSequence[T_Element],
        sort_keys: Sequence[SortKey[T_Element, Any]],
    ) -> None:
        super().__init__()
        self._source = source
        self._sort_keys = sort_keys
        self._source_iterator: AsyncSequenceIterator[T_Element] | None = None
        self._buffer: list[T_Element] | None = None
        self._order: list[int] | None = None
        self._position = 0

    async def _advance(self) -> bool:
        if self._order is None:
            await self._sort()
            if self._order is None:
                # disposed while sorting
                return False

        buffer = self._buffer
        order = self._order
        assert buffer is not None and order is not None, "sort buffer is ready"

        position = self._position
        if position >= len(order):
            return False

        self._current = buffer[order[position]]
        self._position = position + 1
        return True

    async def _sort(self) -> None:
        source_iterator = self._source_iterator = self._source.get_iterator()

        buffer: list[T_Element] = []
        while await source_iterator.advance():
            buffer.append(source_iterator.current)

        # the source is no longer needed once it has been drained
        self._source_iterator = None
        await source_iterator.dispose()
        if self._is_disposed():
            return

        sort_keys = self._sort_keys
        keys = await compute_keys(buffer, sort_keys, stopped=self._is_disposed)
        if self._is_disposed():
            log.debug("sort abandoned after disposal")
            return
        order = sort_indices(keys, sort_keys)

        log.debug(
            "sorted %d elements by %d key level(s)", len(buffer), len(sort_keys)
        )

        self._buffer = buffer
        self._order = order

    def _is_disposed(self) -> bool:
        return self.state is IteratorState.DISPOSED

    async def _release(self) -> None:
        self._buffer = None
        self._order = None
        source_iterator, self._source_iterator = self._source_iterator, None
        if source_iterator is not None:
            await source_iterator.dispose()
