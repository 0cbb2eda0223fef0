"""General text utility functions."""

import re
from typing import Final

__all__ = ("strip_control_characters",)

# POSIX [[:cntrl:]]
_CONTROL_CHARS_RE: Final = re.compile(r"[\x00-\x1f\x7f]")


def strip_control_characters(value: object) -> str:
    """Remove control characters from text.

    Driver messages routinely carry embedded newlines and NUL bytes; they are
    removed before the text reaches logs or exception details.

    Args:
        value: The text to sanitize. Non-string values are converted with ``str()``.

    Returns:
        str: The text without control characters.
    """
    if value is None:
        return ""
    return _CONTROL_CHARS_RE.sub("", str(value))
