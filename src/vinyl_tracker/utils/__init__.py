"""Utility functions for vinyl-tracker.

Available via `from vinyl_tracker.utils import ...` for power users.
Not re-exported at the top-level `vinyl_tracker` package.
"""

from vinyl_tracker.utils.cover import encode_jpeg, open_cover
from vinyl_tracker.utils.text import clean, fold, sort_key

__all__ = [
    "clean",
    "encode_jpeg",
    "fold",
    "open_cover",
    "sort_key",
]
