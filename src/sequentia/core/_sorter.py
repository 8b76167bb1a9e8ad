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
Key computation and stable multi-level sorting of buffered elements.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from ._key import SortKey

log = logging.getLogger(__name__)

__all__ = [
    "compute_keys",
    "sort_indices",
]

#
# Type variables
#

T_Element = TypeVar("T_Element")


#
# Functions
#


async def compute_keys(
    elements: Sequence[T_Element],
    sort_keys: Sequence[SortKey[T_Element, Any]],
    *,
    stopped: Callable[[], bool] | None = None,
) -> list[tuple[Any, ...]]:
    """
    Compute the keys of all elements at all sort levels.

    Keys are computed element by element in the given order and, for each element,
    level by level starting with the primary key. Asynchronous keys are awaited one
    at a time, before the next key is computed.

    :param elements: the elements to compute keys for
    :param sort_keys: the sort keys, in order of precedence
    :param stopped: a function checked before each key is computed; once it
        returns ``True``, no further keys are computed and the keys of the
        elements completed so far are returned (optional)
    :return: a tuple of keys for each element, in order of precedence
    """
    keys: list[tuple[Any, ...]] = []
    for element in elements:
        element_keys: list[Any] = []
        for sort_key in sort_keys:
            if stopped is not None and stopped():
                return keys
            element_keys.append(await sort_key.aget_key(element))
        keys.append(tuple(element_keys))
    return keys


def sort_indices(
    keys: Sequence[tuple[Any, ...]], sort_keys: Sequence[SortKey[Any, Any]]
) -> list[int]:
    """
    Get the permutation of element indices that stably sorts the elements by their
    keys.

    Elements are compared at the primary level first, and at each following level
    only if they are equivalent at all preceding levels. The direction of each level
    applies to that level alone. Elements that are equivalent at all levels keep
    their original relative order.

    :param keys: the keys of each element, as returned by :func:`compute_keys`
    :param sort_keys: the sort keys the keys were computed for
    :return: the element indices in sorted order
    """
    levels = [(sort_key.comparer, sort_key.descending) for sort_key in sort_keys]

    def _compare(i: int, j: int) -> int:
        for (comparer, descending), key_i, key_j in zip(levels, keys[i], keys[j]):
            result = comparer(key_i, key_j)
            if result:
                return -result if descending else result
        return i - j

    return sorted(range(len(keys)), key=functools.cmp_to_key(_compare))
