"""Name validation and placeholder token replacement."""

from __future__ import annotations

import re
from enum import Enum

from templateforge.errors import NameValidationError


__all__ = [
    "IDENTIFIER_PATTERN",
    "MatchMode",
    "require_valid_name",
    "replace_token",
    "validate_name",
]


# Letter or underscore first, then letters, digits, '.' or '_'
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9._]*")

_IDENTIFIER_CHARS = "A-Za-z0-9_"


class MatchMode(str, Enum):
    """
    How occurrences of the placeholder token are found.

    Attributes
    ----------
    LITERAL : str
        Raw substring match. ``YourLibraryExtensions`` becomes
        ``My.LibraryExtensions``.

    IDENTIFIER : str
        Only occurrences that are not glued to other identifier characters.
        ``YourLibrary.Tests`` still matches, ``YourLibraryExtensions`` does not.
    """

    LITERAL = "literal"
    IDENTIFIER = "identifier"


def validate_name(candidate: str) -> bool:
    """
    Check a proposed name against the identifier rule.

    The name must start with an ASCII letter or underscore; the remaining
    characters may be ASCII letters, digits, ``.`` or ``_``. No length
    limit is enforced. Never raises.

    Examples
    --------
    >>> validate_name("My.Library")
    True
    >>> validate_name("123Bad")
    False
    """
    if not isinstance(candidate, str):
        return False
    return IDENTIFIER_PATTERN.fullmatch(candidate) is not None


def _token_regex(token: str) -> re.Pattern[str]:
    return re.compile(
        rf"(?<![{_IDENTIFIER_CHARS}]){re.escape(token)}(?![{_IDENTIFIER_CHARS}])"
    )


def replace_token(
    text: str,
    old: str,
    new: str,
    mode: MatchMode = MatchMode.LITERAL,
) -> tuple[str, int]:
    """
    Replace every occurrence of ``old`` in ``text`` with ``new``.

    Parameters
    ----------
    text : str
        Text to search.
    old, new : str
        Placeholder token and its replacement.
    mode : MatchMode, default=MatchMode.LITERAL
        Matching strategy, see :class:`MatchMode`.

    Returns
    -------
    tuple[str, int]
        The new text and the number of replacements made.
    """
    if not old:
        return text, 0

    if mode is MatchMode.IDENTIFIER:
        return _token_regex(old).subn(lambda _: new, text)

    count = text.count(old)
    if count == 0:
        return text, 0
    return text.replace(old, new), count


def require_valid_name(candidate: str) -> str:
    """
    Return ``candidate`` unchanged if it is a valid name.

    Raises
    ------
    NameValidationError
        If :func:`validate_name` rejects it.
    """
    if not validate_name(candidate):
        raise NameValidationError(candidate)
    return candidate
