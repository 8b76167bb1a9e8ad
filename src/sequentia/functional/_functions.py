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
Implementation of public functions of the functional API.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Awaitable, Callable, Iterable
from typing import Any, TypeVar, overload

from .._ordered import OrderedSequence
from .._sequence import AsyncSequence
from ..core import compare_natural
from ..source import (
    AsyncIterableSequence,
    DeferredSequence,
    IterableSequence,
    Observable,
    ObservableSequence,
)

log = logging.getLogger(__name__)

__all__ = [
    "from_async_iterable",
    "from_awaitable",
    "from_iterable",
    "from_observable",
    "order_by",
    "order_by_descending",
    "then_by",
    "then_by_descending",
    "to_async_sequence",
]

#
# Type variables
#

T_Element = TypeVar("T_Element")
T_Key = TypeVar("T_Key")


#
# Conversion of sources to sequences
#


def from_iterable(source: Iterable[T_Element]) -> AsyncSequence[T_Element]:
    """
    Create an asynchronous sequence over the elements of a synchronous iterable.

    :param source: the iterable
    :return: the sequence
    :raises TypeError: if the source is not an iterable
    """
    return IterableSequence(source)


def from_async_iterable(source: AsyncIterable[T_Element]) -> AsyncSequence[T_Element]:
    """
    Create an asynchronous sequence over the elements of an asynchronous iterable.

    :param source: the asynchronous iterable
    :return: the sequence
    :raises TypeError: if the source is not an asynchronous iterable
    """
    return AsyncIterableSequence(source)


def from_observable(source: Observable[T_Element]) -> AsyncSequence[T_Element]:
    """
    Create an asynchronous sequence over the elements pushed by an observable.

    The observable is subscribed to once for every iterator of the sequence; see
    :class:`.ObservableSequence` for details.

    :param source: the observable
    :return: the sequence
    :raises TypeError: if the source is not an observable
    """
    return ObservableSequence(source)


def from_awaitable(
    source: Awaitable[T_Element] | Callable[[], Awaitable[T_Element]]
) -> AsyncSequence[T_Element]:
    """
    Create an asynchronous sequence of the single result of a deferred computation.

    Pass a function creating the awaitable to make the sequence iterable more than
    once; see :class:`.DeferredSequence` for details.

    :param source: the awaitable, or a function creating the awaitable
    :return: the sequence
    :raises TypeError: if the source is neither an awaitable nor callable
    """
    return DeferredSequence(source)


@overload
def to_async_sequence(source: AsyncSequence[T_Element]) -> AsyncSequence[T_Element]:
    """[see below]"""


@overload
def to_async_sequence(source: Observable[T_Element]) -> AsyncSequence[T_Element]:
    """[see below]"""


@overload
def to_async_sequence(source: AsyncIterable[T_Element]) -> AsyncSequence[T_Element]:
    """[see below]"""


@overload
def to_async_sequence(source: Awaitable[T_Element]) -> AsyncSequence[T_Element]:
    """[see below]"""


@overload
def to_async_sequence(source: Iterable[T_Element]) -> AsyncSequence[T_Element]:
    """[see below]"""


def to_async_sequence(source: Any) -> AsyncSequence[Any]:
    """
    Convert any supported source of elements to an asynchronous sequence.

    Sources are matched in the following order:

    - an :class:`.AsyncSequence` is returned unchanged
    - an :class:`.Observable` becomes an :class:`.ObservableSequence`
    - an asynchronous iterable becomes an :class:`.AsyncIterableSequence`
    - an awaitable becomes a :class:`.DeferredSequence` of its result
    - a synchronous iterable becomes an :class:`.IterableSequence`

    Awaitables are matched before iterables, since :mod:`asyncio` futures are
    iterable, too.

    To create a sequence from a function returning an awaitable, use
    :func:`.from_awaitable`.

    :param source: the source to convert
    :return: the sequence over the elements of the source
    :raises TypeError: if the source is ``None`` or not a supported source
    """
    if isinstance(source, AsyncSequence):
        return source
    elif source is None:
        raise TypeError("arg source must not be None")
    elif isinstance(source, Observable):
        return ObservableSequence(source)
    elif isinstance(source, AsyncIterable):
        return AsyncIterableSequence(source)
    elif isinstance(source, Awaitable):
        return DeferredSequence(source)
    elif isinstance(source, Iterable):
        return IterableSequence(source)
    else:
        raise TypeError(
            "arg source must be an AsyncSequence, Observable, asynchronous "
            f"iterable, awaitable, or iterable, but got: {source!r}"
        )


#
# Ordering
#


def order_by(
    source: AsyncSequence[T_Element],
    key_selector: Callable[[T_Element], T_Key | Awaitable[T_Key]],
    comparer: Callable[[T_Key, T_Key], int] = compare_natural,
    descending: bool = False,
) -> OrderedSequence[T_Element]:
    """
    Sort the elements of a sequence by a key.

    Arguments are validated immediately, but the sort is only performed when the
    resulting sequence is iterated.

    :param source: the sequence to sort
    :param key_selector: a function that returns the key of an element, or an
        awaitable resolving to the key
    :param comparer: a function comparing two keys (defaults to
        :func:`.compare_natural`)
    :param descending: if ``True``, sort in descending order
    :return: the ordered sequence
    :raises TypeError: if the source is not an asynchronous sequence, or the key
        selector or comparer is not callable
    """
    _validate_source(source, AsyncSequence)
    if descending:
        return source.order_by_descending(key_selector, comparer)
    else:
        return source.order_by(key_selector, comparer)


def order_by_descending(
    source: AsyncSequence[T_Element],
    key_selector: Callable[[T_Element], T_Key | Awaitable[T_Key]],
    comparer: Callable[[T_Key, T_Key], int] = compare_natural,
) -> OrderedSequence[T_Element]:
    """
    Sort the elements of a sequence in descending order of a key.

    See :func:`.order_by` for details.

    :param source: the sequence to sort
    :param key_selector: a function that returns the key of an element, or an
        awaitable resolving to the key
    :param comparer: a function comparing two keys (defaults to
        :func:`.compare_natural`)
    :return: the ordered sequence
    :raises TypeError: if the source is not an asynchronous sequence, or the key
        selector or comparer is not callable
    """
    return order_by(source, key_selector, comparer, descending=True)


def then_by(
    ordered_source: OrderedSequence[T_Element],
    key_selector: Callable[[T_Element], T_Key | Awaitable[T_Key]],
    comparer: Callable[[T_Key, T_Key], int] = compare_natural,
    descending: bool = False,
) -> OrderedSequence[T_Element]:
    """
    Break ties in the sort order of an ordered sequence using an additional key.

    :param ordered_source: the ordered sequence to refine
    :param key_selector: a function that returns the key of an element, or an
        awaitable resolving to the key
    :param comparer: a function comparing two keys (defaults to
        :func:`.compare_natural`)
    :param descending: if ``True``, sort the new level in descending order
    :return: the refined ordered sequence
    :raises TypeError: if the source is not an ordered sequence, or the key
        selector or comparer is not callable
    """
    _validate_source(ordered_source, OrderedSequence, arg_name="ordered_source")
    return ordered_source.create_ordered_sequence(
        key_selector, comparer, descending=descending
    )


def then_by_descending(
    ordered_source: OrderedSequence[T_Element],
    key_selector: Callable[[T_Element], T_Key | Awaitable[T_Key]],
    comparer: Callable[[T_Key, T_Key], int] = compare_natural,
) -> OrderedSequence[T_Element]:
    """
    Break ties in the sort order of an ordered sequence using an additional key,
    in descending order.

    See :func:`.then_by` for details.

    :param ordered_source: the ordered sequence to refine
    :param key_selector: a function that returns the key of an element, or an
        awaitable resolving to the key
    :param comparer: a function comparing two keys (defaults to
        :func:`.compare_natural`)
    :return: the refined ordered sequence
    :raises TypeError: if the source is not an ordered sequence, or the key
        selector or comparer is not callable
    """
    return then_by(ordered_source, key_selector, comparer, descending=True)


#
# Auxiliary functions
#


def _validate_source(
    source: Any, expected_type: type[Any], *, arg_name: str = "source"
) -> None:
    if not isinstance(source, expected_type):
        raise TypeError(
            f"arg {arg_name} must be an instance of {expected_type.__name__}, "
            f"but got: {source!r}"
        )
