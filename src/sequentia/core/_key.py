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
Implementation of ``SortKey``.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterator
from typing import Any, Generic, TypeVar, cast

from pytools.expression import Expression, HasExpressionRepr
from pytools.expression.atomic import Id

from ..util import simplify_repr_attributes
from ._comparer import compare_natural

log = logging.getLogger(__name__)

__all__ = [
    "SortKey",
]

#
# Type variables
#
# Naming convention used here:
# _ret for covariant type variables used in return positions
# _arg for contravariant type variables used in argument positions
#

T_Element_arg = TypeVar("T_Element_arg", contravariant=True)
T_Key = TypeVar("T_Key")


#
# Classes
#


class SortKey(HasExpressionRepr, Generic[T_Element_arg, T_Key]):
    """
    One level of a multi-level sort order.

    Sort keys form an immutable linked chain: each key refers to its parent, the key
    at the preceding level. The root of the chain is the primary sort key; keys
    further down the chain only break ties between elements that compare equal at
    all preceding levels.

    The key selector either returns the key of an element directly, or returns an
    awaitable that resolves to the key.
    """

    def __init__(
        self,
        key_selector: Callable[[T_Element_arg], T_Key | Awaitable[T_Key]],
        comparer: Callable[[T_Key, T_Key], int] = compare_natural,
        *,
        descending: bool = False,
        parent: SortKey[T_Element_arg, Any] | None = None,
    ) -> None:
        """
        :param key_selector: a function that returns the key of an element, or an
            awaitable resolving to the key
        :param comparer: a function comparing two keys, returning a negative
            number, zero, or a positive number (defaults to
            :func:`.compare_natural`)
        :param descending: if ``True``, sort this level in descending order;
            if ``False``, sort in ascending order (default: ``False``)
        :param parent: the key at the preceding level, or ``None`` if this is the
            primary key
        :raises TypeError: if the key selector or comparer is not callable, or the
            parent is not a sort key
        """
        if not callable(key_selector):
            raise TypeError(
                f"arg key_selector must be callable, but got: {key_selector!r}"
            )
        if not callable(comparer):
            raise TypeError(f"arg comparer must be callable, but got: {comparer!r}")
        if not (parent is None or isinstance(parent, SortKey)):
            raise TypeError(
                f"arg parent must be a SortKey or None, but got: {parent!r}"
            )

        self._key_selector = key_selector
        self._comparer = comparer
        self._descending = bool(descending)
        self._parent = parent

    @property
    def key_selector(self) -> Callable[[T_Element_arg], T_Key | Awaitable[T_Key]]:
        """
        The function that determines the key of an element.
        """
        return self._key_selector

    @property
    def comparer(self) -> Callable[[T_Key, T_Key], int]:
        """
        The function comparing two keys.
        """
        return self._comparer

    @property
    def descending(self) -> bool:
        """
        ``True`` if this level is sorted in descending order, ``False`` otherwise.
        """
        return self._descending

    @property
    def parent(self) -> SortKey[T_Element_arg, Any] | None:
        """
        The key at the preceding level, or ``None`` if this is the primary key.
        """
        return self._parent

    @property
    def depth(self) -> int:
        """
        The number of keys in the chain ending with this key.
        """
        depth = 1
        key = self._parent
        while key is not None:
            depth += 1
            key = key._parent
        return depth

    def iter_chain(self) -> Iterator[SortKey[T_Element_arg, Any]]:
        """
        Iterate over the keys in the chain ending with this key, starting with the
        primary key.

        :return: an iterator over the keys, in order of precedence
        """
        chain: list[SortKey[T_Element_arg, Any]] = []
        key: SortKey[T_Element_arg, Any] | None = self
        while key is not None:
            chain.append(key)
            key = key._parent
        return reversed(chain)

    async def aget_key(self, element: T_Element_arg) -> T_Key:
        """
        Get the key of the given element, awaiting it if the key selector returned
        an awaitable.

        :param element: the element to get the key for
        :return: the key
        """
        key = self._key_selector(element)
        if inspect.isawaitable(key):
            return await key
        return cast(T_Key, key)

    def to_expression(self) -> Expression:
        """[see superclass]"""
        return Id(type(self))(
            **simplify_repr_attributes(
                dict(
                    key_selector=self._key_selector,
                    comparer=(
                        None
                        if self._comparer is compare_natural
                        else self._comparer
                    ),
                    descending=self._descending or None,
                    parent=self._parent,
                )
            )
        )
