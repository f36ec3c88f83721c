"""Text normalization used for validation, duplicate keys and search.

Comparison never uses the raw strings: titles and artists are trimmed on
construction, and every comparison goes through :func:`fold`, which removes
diacritics and case so that "Björk" and "BJORK" compare equal.
"""

import unicodedata


def clean(value: str | None) -> str:
    """Trim surrounding whitespace (including newlines).

    Idempotent: ``clean(clean(s)) == clean(s)``.

    Args:
        value: Raw user input. None is treated as empty.

    Returns:
        The trimmed string.
    """
    return (value or "").strip()


def fold(value: str) -> str:
    """Fold a string for case- and diacritic-insensitive comparison.

    Args:
        value: String to fold.

    Returns:
        Trimmed, lowercased string with combining marks removed.

    Example:
        >>> fold("  Björk ")
        'bjork'
        >>> fold("CAFÉ") == fold("cafe")
        True
    """
    decomposed = unicodedata.normalize("NFKD", value.strip())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def sort_key(value: str) -> str:
    """Case-insensitive key for ordering display names."""
    return value.casefold()
