"""
A warning class specific to the `sequentia` package.
"""

__all__ = [
    "SequenceWarning",
]


class SequenceWarning(Warning):
    """
    A warning specific to asynchronous sequences, issued when a source does not
    behave as its protocol requires.
    """
