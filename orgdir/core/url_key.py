"""URL key generation.

Keys are lowercase ASCII made of alphanumerics, dots and single dashes, with
no leading or trailing dash. ``generate`` is idempotent, so a key is valid
exactly when ``generate(key) == key``.
"""

import re
import unicodedata

_SEPARATOR_RUN = re.compile(r"[^a-z0-9.]+")


def generate(value: str) -> str:
    """Normalize free text into a URL-safe key.

    Example:
        >>> generate("Gilt Group")
        'gilt-group'
    """
    ascii_value = (
        unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    )
    return _SEPARATOR_RUN.sub("-", ascii_value.lower().strip()).strip("-")


def is_normalized(value: str) -> bool:
    return generate(value) == value
