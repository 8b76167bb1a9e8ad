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
Functional API for asynchronous sequences.

Function :func:`to_async_sequence` converts any supported source of elements to an
:class:`.AsyncSequence`; functions :func:`from_iterable`,
:func:`from_async_iterable`, :func:`from_observable`, and :func:`from_awaitable`
do the same for one specific kind of source.

Functions :func:`order_by`, :func:`order_by_descending`, :func:`then_by`, and
:func:`then_by_descending` are the function forms of the ordering methods of
:class:`.AsyncSequence` and :class:`.OrderedSequence`.

Example:

.. code-block:: python

    from sequentia.functional import order_by, then_by_descending, to_async_sequence

    words = to_async_sequence(["pear", "fig", "apple", "kiwi"])
    ordered = then_by_descending(order_by(words, len), lambda word: word)

    print(ordered.to_list())

This will output:

.. code-block:: python

    ['fig', 'pear', 'kiwi', 'apple']
"""

from ._functions import *
