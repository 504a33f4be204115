# ontogen/core/domain/tokens.py
"""
core/domain/tokens.py

Tokenisation of restricted-English input.

Rules:
- Whitespace separates tokens and is discarded.
- A run of letters is one token; a run of digits is one token.
- Each punctuation character is a token of its own.
- Anything else is a grammatical error.

Tokens keep their case. Comparisons of names are case-insensitive and go
through `TokenString`.
"""

from __future__ import annotations

import unicodedata
from typing import Iterable, Iterator, List, Sequence, Tuple

from .exceptions import GrammaticalError


def is_punctuation(token: str) -> bool:
    return len(token) == 1 and unicodedata.category(token).startswith("P")


def is_invisible(token: str) -> bool:
    """Meta-markers such as `<b>` render without surrounding spaces."""
    return token.startswith("<")


def _char_class(ch: str) -> str:
    if ch.isspace():
        return "space"
    if ch.isalpha():
        return "letter"
    if ch.isdigit():
        return "digit"
    if is_punctuation(ch):
        return "punctuation"
    return "unknown"


def tokenize(text: str) -> List[str]:
    tokens: List[str] = []
    start = 0
    length = len(text)
    while start < length:
        kind = _char_class(text[start])
        if kind == "space":
            start += 1
            continue
        if kind == "punctuation":
            tokens.append(text[start])
            start += 1
            continue
        if kind == "unknown":
            raise GrammaticalError("Unknown character", offending_input=text[start])
        end = start + 1
        while end < length and _char_class(text[end]) == kind:
            end += 1
        tokens.append(text[start:end])
        start = end
    return tokens


def untokenize(tokens: Iterable[str]) -> str:
    """Join tokens back into prose."""
    out: List[str] = []
    previous = None
    for token in tokens:
        if (
            previous is not None
            and not is_punctuation(token)
            and not is_invisible(token)
            and previous != "-"
            and not is_invisible(previous)
        ):
            out.append(" ")
        out.append(token)
        previous = token
    return "".join(out)


class TokenString(Sequence[str]):
    """
    Immutable, case-preserving token sequence whose equality and hash ignore
    case. Used as the key of every name-indexed registry.
    """

    __slots__ = ("tokens", "_key")

    def __init__(self, tokens: Iterable[str]):
        self.tokens: Tuple[str, ...] = tuple(tokens)
        self._key = tuple(t.lower() for t in self.tokens)

    @classmethod
    def from_text(cls, text: str) -> "TokenString":
        return cls(tokenize(text))

    def __getitem__(self, index):
        return self.tokens[index]

    def __len__(self) -> int:
        return len(self.tokens)

    def __iter__(self) -> Iterator[str]:
        return iter(self.tokens)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TokenString):
            return self._key == other._key
        if isinstance(other, (list, tuple)):
            return self._key == tuple(str(t).lower() for t in other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._key)

    def __str__(self) -> str:
        return untokenize(self.tokens)

    def __repr__(self) -> str:
        return f"TokenString({untokenize(self.tokens)!r})"
