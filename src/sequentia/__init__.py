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
This module provides lazily evaluated, asynchronously iterated sequences that can be
built from synchronous and asynchronous iterables, push-based observables, and
deferred computations, and sorted by one or more keys.

Here's a brief overview of the main classes and their roles:

- :class:`.AsyncSequence`
    This is an abstract base class that represents a sequence of elements. A
    sequence does no work until it is iterated, and every call to
    :meth:`~.AsyncSequence.get_iterator` starts a new, independent iteration.
- :class:`.AsyncSequenceIterator`
    This class iterates the elements of a sequence. It is advanced asynchronously,
    exposes the element it is positioned on as its
    :attr:`~.AsyncSequenceIterator.current` element, and must be disposed when no
    longer needed, to release the resources it holds.
- :class:`.OrderedSequence`
    This class sorts the elements of another sequence by a chain of keys. It is
    created with :meth:`~.AsyncSequence.order_by` or
    :meth:`~.AsyncSequence.order_by_descending`, and refined with
    :meth:`~.OrderedSequence.then_by` or
    :meth:`~.OrderedSequence.then_by_descending`.

Sequences over external sources are provided by the :mod:`.source` package, and
function :func:`.to_async_sequence` of the :mod:`.functional` package converts any
supported source to a sequence:

.. code-block:: python

    from sequentia.functional import to_async_sequence

    async def top_scores(scores: list[int]) -> list[int]:
        return await (
            to_async_sequence(scores)
            .order_by_descending(lambda score: score)
            .ato_list()
        )

Sequences are asynchronous iterables, so they can also be consumed in
``async for`` loops.
"""

from ._iterator import *
from ._ordered import *
from ._sequence import *
from ._warning import *

__version__ = "1.0rc1"
