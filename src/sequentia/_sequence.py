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
Implementation of ``AsyncSequence``.
"""

from __future__ import annotations

import logging
from abc import ABCMeta, abstractmethod
from collections.abc import Awaitable, Callable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any, Generic, TypeVar, final

import pandas as pd

from pytools.asyncio import arun
from pytools.expression import Expression, HasExpressionRepr
from pytools.expression.atomic import Id

from ._iterator import AsyncSequenceIterator
from .core import compare_natural
from .util import simplify_repr_attributes

if TYPE_CHECKING:  # pragma: no cover
    from ._ordered import OrderedSequence

log = logging.getLogger(__name__)

__all__ = [
    "AsyncSequence",
]

#
# Type variables
#
# Naming convention used here:
# _ret for covariant type variables used in return positions
# _arg for contravariant type variables used in argument positions
#

T_Element_ret = TypeVar("T_Element_ret", covariant=True)
T_Key = TypeVar("T_Key")


#
# Classes
#


class AsyncSequence(HasExpressionRepr, Generic[T_Element_ret], metaclass=ABCMeta):
    """
    A lazily evaluated sequence of elements, iterated asynchronously.

    A sequence does no work until it is iterated: each call to :meth:`get_iterator`
    starts a new, independent iteration, and all computation is deferred until the
    iterator is first advanced. Sequences are also asynchronous iterables, so they
    can be used in ``async for`` loops.

    Sequences over a non-repeatable source document how they behave when iterated
    more than once.

    Synchronous iteration is supported but discouraged, as it creates a new event
    loop and blocks the current thread until the sequence is materialized. It is
    preferable to use asynchronous iteration instead.
    """

    @abstractmethod
    def get_iterator(self) -> AsyncSequenceIterator[T_Element_ret]:
        """
        Create a new iterator over the elements of this sequence.

        Creating an iterator must not perform any I/O or computation; all work is
        deferred until the iterator is advanced for the first time.

        :return: a new iterator, positioned before the first element
        """

    def get_repr_attributes(self) -> Mapping[str, Any]:
        """
        Get attributes of this sequence to be used in representations.

        :return: a dictionary mapping attribute names to their values
        """
        return {}

    async def ato_list(self) -> list[T_Element_ret]:
        """
        Materialize all elements of this sequence, in order.

        :return: a list of all elements
        """
        async with self.get_iterator() as iterator:
            return [element async for element in iterator]

    def to_list(self) -> list[T_Element_ret]:
        """
        Materialize all elements of this sequence, in order.

        This method is implemented for compatibility with synchronous code, but
        preferably, :meth:`.ato_list` should be used instead and called from within
        an event loop.

        :return: a list of all elements
        """
        return arun(self.ato_list())

    async def acount(self) -> int:
        """
        Count the elements of this sequence, without retaining them.

        :return: the number of elements
        """
        n = 0
        async with self.get_iterator() as iterator:
            while await iterator.advance():
                n += 1
        return n

    def count(self) -> int:
        """
        Count the elements of this sequence, without retaining them.

        This method is implemented for compatibility with synchronous code, but
        preferably, :meth:`.acount` should be used instead.

        :return: the number of elements
        """
        return arun(self.acount())

    async def ato_frame(self, *, columns: Sequence[str] | None = None) -> pd.DataFrame:
        """
        Materialize all elements of this sequence as the rows of a data frame.

        Elements may be mappings, sequences, or scalar values, as supported by the
        :class:`~pandas.DataFrame` constructor.

        :param columns: the column names to use for the data frame (optional)
        :return: a data frame with one row per element, in order
        """
        return pd.DataFrame(await self.ato_list(), columns=columns)

    def to_frame(self, *, columns: Sequence[str] | None = None) -> pd.DataFrame:
        """
        Materialize all elements of this sequence as the rows of a data frame.

        This method is implemented for compatibility with synchronous code, but
        preferably, :meth:`.ato_frame` should be used instead.

        :param columns: the column names to use for the data frame (optional)
        :return: a data frame with one row per element, in order
        """
        return arun(self.ato_frame(columns=columns))

    def order_by(
        self,
        key_selector: Callable[[T_Element_ret], T_Key | Awaitable[T_Key]],
        comparer: Callable[[T_Key, T_Key], int] = compare_natural,
    ) -> OrderedSequence[T_Element_ret]:
        """
        Sort the elements of this sequence in ascending order of a key.

        The sort is stable and lazy: it is performed when the resulting sequence is
        iterated, and elements with equivalent keys keep their relative order.

        :param key_selector: a function that returns the key of an element, or an
            awaitable resolving to the key
        :param comparer: a function comparing two keys (defaults to
            :func:`.compare_natural`)
        :return: the ordered sequence
        :raises TypeError: if the key selector or comparer is not callable
        """
        return self._order_by(key_selector, comparer, descending=False)

    def order_by_descending(
        self,
        key_selector: Callable[[T_Element_ret], T_Key | Awaitable[T_Key]],
        comparer: Callable[[T_Key, T_Key], int] = compare_natural,
    ) -> OrderedSequence[T_Element_ret]:
        """
        Sort the elements of this sequence in descending order of a key.

        See :meth:`.order_by` for details.

        :param key_selector: a function that returns the key of an element, or an
            awaitable resolving to the key
        :param comparer: a function comparing two keys (defaults to
            :func:`.compare_natural`)
        :return: the ordered sequence
        :raises TypeError: if the key selector or comparer is not callable
        """
        return self._order_by(key_selector, comparer, descending=True)

    @final
    def to_expression(self) -> Expression:
        """[see superclass]"""
        return Id(type(self))(**simplify_repr_attributes(self.get_repr_attributes()))

    def _order_by(
        self,
        key_selector: Callable[[T_Element_ret], T_Key | Awaitable[T_Key]],
        comparer: Callable[[T_Key, T_Key], int],
        *,
        descending: bool,
    ) -> OrderedSequence[T_Element_ret]:
        # We import locally to avoid circular imports
        from ._ordered import OrderedSequence
        from .core import SortKey

        return OrderedSequence(
            self, SortKey(key_selector, comparer, descending=descending)
        )

    @final
    def __aiter__(self) -> AsyncSequenceIterator[T_Element_ret]:
        return self.get_iterator()

    def __iter__(self) -> Iterator[T_Element_ret]:
        return iter(self.to_list())
