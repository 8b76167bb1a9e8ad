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
Implementation of the default key comparer.
"""

from __future__ import annotations

import logging
from typing import Any

log = logging.getLogger(__name__)

__all__ = [
    "compare_natural",
]


#
# Functions
#


def compare_natural(x: Any, y: Any) -> int:
    """
    Compare two keys by their natural ordering.

    ``None`` is ordered before any other key. All other keys are compared using
    their ``<`` and ``>`` operators.

    :param x: the first key
    :param y: the second key
    :return: a negative number if ``x`` is ordered before ``y``, a positive number if
        ``x`` is ordered after ``y``, and ``0`` if they are equivalent
    :raises TypeError: if the keys do not support ordering comparisons
    """
    if x is None:
        return 0 if y is None else -1
    elif y is None:
        return 1
    return (x > y) - (x < y)
