"""
Utilities for the *sequentia* package.
"""

from ._repr import *
