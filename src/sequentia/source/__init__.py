"""
Asynchronous sequences over external sources of elements.

- :class:`.IterableSequence` iterates a synchronous iterable
- :class:`.AsyncIterableSequence` iterates an asynchronous iterable
- :class:`.ObservableSequence` bridges a push-based :class:`.Observable` into the
  pull-based sequence protocol
- :class:`.DeferredSequence` produces the single result of a deferred computation

Function :func:`.to_async_sequence` selects the matching sequence for any of these
sources.
"""

from ._deferred import *
from ._iterable import *
from ._observable import *
