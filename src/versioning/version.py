"""Lenient, totally ordered version strings.

External metadata is uncontrolled, so any non-empty string is accepted.
Strings are split into numeric runs and alphabetic qualifier runs; separators
only delimit tokens. Ordering rules, left to right:

* numbers compare numerically, so ``1.9.9 < 1.10.0``;
* known qualifiers follow ``alpha < beta < milestone < rc < snapshot``;
  unknown qualifiers sort below every known one and compare lexically;
* a number outranks a qualifier in the same position;
* a release outranks the same version with a trailing qualifier
  (``1.0.0-SNAPSHOT < 1.0.0``), and trailing zeros are insignificant
  (``1.0 == 1.0.0``).
"""

from __future__ import annotations

import functools
import re
from typing import Tuple, Union

_TOKEN_RE = re.compile(r"(\d+)|([A-Za-z]+)")

QUALIFIER_PRECEDENCE = {
    "alpha": 1,
    "beta": 2,
    "milestone": 3,
    "rc": 4,
    "snapshot": 5,
}

# Short and alternate spellings, folded before comparison so they compare equal.
_QUALIFIER_ALIASES = {
    "a": "alpha",
    "b": "beta",
    "m": "milestone",
    "cr": "rc",
    "pre": "rc",
}

# Qualifiers that denote the release itself and carry no ordering weight.
_RELEASE_ALIASES = {"final", "ga", "release"}

_QUALIFIER = 0
_END = 1
_NUMBER = 2

_END_ITEM = (_END, 0, "")

Token = Union[int, str]
SortItem = Tuple[int, int, str]


class InvalidVersionFormat(ValueError):
    """Raised for a missing or blank version string."""


def _tokenize(raw: str) -> Tuple[Token, ...]:
    tokens = []
    for number, word in _TOKEN_RE.findall(raw):
        if number:
            tokens.append(int(number))
        else:
            word = word.lower()
            if word not in _RELEASE_ALIASES:
                tokens.append(_QUALIFIER_ALIASES.get(word, word))
    return tuple(tokens)


def _normalize(tokens: Tuple[Token, ...]) -> Tuple[Token, ...]:
    """Drop zero runs that sit at the end or directly before a qualifier."""
    out = []
    for token in tokens:
        if isinstance(token, str):
            while out and out[-1] == 0:
                out.pop()
        out.append(token)
    while out and out[-1] == 0:
        out.pop()
    return tuple(out)


def _sort_item(token: Token) -> SortItem:
    if isinstance(token, int):
        return (_NUMBER, token, "")
    return (_QUALIFIER, QUALIFIER_PRECEDENCE.get(token, 0), token)


@functools.total_ordering
class Version:
    """An immutable version value; see module docstring for ordering."""

    __slots__ = ("_raw", "_tokens", "_key")

    def __init__(self, raw: str):
        if raw is None or not str(raw).strip():
            raise InvalidVersionFormat(f"Invalid version: {raw!r}")
        raw = str(raw).strip()
        tokens = _normalize(_tokenize(raw))
        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_tokens", tokens)
        object.__setattr__(self, "_key", tuple(_sort_item(t) for t in tokens) + (_END_ITEM,))

    def __setattr__(self, name, value):
        raise AttributeError("Version is immutable")

    @property
    def raw(self) -> str:
        return self._raw

    @property
    def normalized(self) -> str:
        """Canonical form; equal versions share it."""
        return ".".join(str(t) for t in self._tokens) or "0"

    @property
    def is_prerelease(self) -> bool:
        return any(isinstance(t, str) for t in self._tokens)

    def compare(self, other: "Version") -> int:
        """Return -1, 0 or 1 as this version sorts before, equal to or after ``other``."""
        if self._key < other._key:
            return -1
        if self._key > other._key:
            return 1
        return 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key == other._key

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key < other._key

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return self._raw

    def __repr__(self) -> str:
        return f"Version({self._raw!r})"
