# ontogen/core/parsing/segments.py
"""
core/parsing/segments.py

Segments are the variable-length constituents of a sentence pattern.

Every segment implements the same three scan modes:

- `scan_to(terminator)`: consume tokens until the next token satisfies the
  terminator (a word or a predicate over one token), leaving it unconsumed;
- `scan_to_end()`: consume the rest of the input.

Both return True and record the consumed span on success; on failure they
restore the parser's cursor to where the scan began.

Closed-class segments (`can/must`, `itself`, `rare/common`, ...) only accept
one of a fixed list of phrases and reject quickly when the first token is
not a possible beginning.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Callable, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

from ontogen.core.domain.tokens import TokenString

if TYPE_CHECKING:
    from .parser import Parser

TokenPredicate = Callable[[str], bool]
Terminator = Union[str, TokenPredicate]
Phrase = Union[str, Sequence[str]]

T = TypeVar("T")

NUMBER_WORDS = ("zero", "one", "two", "three", "four", "five", "six", "seven", "eight", "nine", "ten")


class Number(enum.Enum):
    SINGULAR = "singular"
    PLURAL = "plural"


def is_conjunction(token: str) -> bool:
    return token.lower() in ("and", "or")


def parse_number(token: str) -> Optional[int]:
    """Value of a digit run or a number word from zero to ten."""
    if token.isdigit():
        return int(token)
    lowered = token.lower()
    if lowered in NUMBER_WORDS:
        return NUMBER_WORDS.index(lowered)
    return None


def is_number(token: str) -> bool:
    return parse_number(token) is not None


def as_predicate(terminator: Terminator) -> TokenPredicate:
    if isinstance(terminator, str):
        word = terminator.lower()
        return lambda token: token.lower() == word
    return terminator


def _phrase(p: Phrase) -> Tuple[str, ...]:
    return (p,) if isinstance(p, str) else tuple(p)


class Segment:
    """A run of arbitrary tokens, e.g. the name of a list file."""

    def __init__(self, parser: "Parser", name: str, allow_conjunctions: bool = False) -> None:
        self.parser = parser
        self.name = name
        self.allow_conjunctions = allow_conjunctions
        self.start = 0
        self.end = 0

    def reset(self) -> None:
        self.start = self.end = 0

    @property
    def text(self) -> TokenString:
        return TokenString(self.parser.tokens[self.start:self.end])

    def __len__(self) -> int:
        return self.end - self.start

    @property
    def keywords(self) -> Iterable[str]:
        return ()

    def valid_beginning(self, token: str) -> bool:
        return True

    def parse_modifiers(self) -> None:
        """Hook for consuming leading words such as negation."""

    def _stops(self, token: str) -> bool:
        return not self.allow_conjunctions and is_conjunction(token)

    def scan_to(self, terminator: Terminator) -> bool:
        p = self.parser
        stop = as_predicate(terminator)
        origin = p.position
        if p.at_end:
            return False
        self.parse_modifiers()
        if p.at_end or not self.valid_beginning(p.current):
            p.reset_to(origin)
            return False
        beginning = p.position
        while not p.at_end:
            token = p.current
            if stop(token):
                if p.position > beginning:
                    self.start, self.end = beginning, p.position
                    return True
                break
            if self._stops(token):
                break
            p.skip()
        p.reset_to(origin)
        return False

    def scan_to_end(self, fail_on_conjunction: bool = True) -> bool:
        p = self.parser
        origin = p.position
        if p.at_end:
            return False
        self.parse_modifiers()
        if p.at_end or not self.valid_beginning(p.current):
            p.reset_to(origin)
            return False
        beginning = p.position
        while not p.at_end:
            if fail_on_conjunction and self._stops(p.current):
                p.reset_to(origin)
                return False
            p.skip()
        self.start, self.end = beginning, p.position
        return True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class ClosedClassSegment(Segment):
    """
    One of a fixed list of phrases, tried in order. An optional segment
    matches the empty span when none of its phrases is present.
    """

    def __init__(self, parser: "Parser", name: str, *phrases: Phrase, optional: bool = False) -> None:
        super().__init__(parser, name)
        self.phrases: List[Tuple[str, ...]] = [_phrase(p) for p in phrases]
        self.beginnings = {p[0].lower() for p in self.phrases}
        self.optional = optional
        self.matched: Optional[Tuple[str, ...]] = None

    def reset(self) -> None:
        super().reset()
        self.matched = None

    @property
    def keywords(self) -> Iterable[str]:
        for phrase in self.phrases:
            yield from phrase

    def is_possible_start(self, token: str) -> bool:
        return token.lower() in self.beginnings

    @property
    def first_word(self) -> Optional[str]:
        return self.matched[0].lower() if self.matched else None

    def _on_match(self, index: int) -> None:
        self.matched = self.phrases[index]

    def _match_any(self) -> bool:
        p = self.parser
        self.matched = None
        beginning = p.position
        for index, phrase in enumerate(self.phrases):
            if p.match_phrase(phrase):
                self._on_match(index)
                self.start, self.end = beginning, p.position
                return True
        return False

    def scan_to(self, terminator: Terminator) -> bool:
        p = self.parser
        stop = as_predicate(terminator)
        origin = p.position
        if not self.optional and (p.at_end or not self.is_possible_start(p.current)):
            return False
        matched = self._match_any()
        if self.optional:
            return True
        # An apostrophe next means only the start of a contraction was matched.
        if matched and not p.at_end and p.current != "'" and stop(p.current):
            return True
        p.reset_to(origin)
        return False

    def scan_to_end(self, fail_on_conjunction: bool = True) -> bool:
        p = self.parser
        origin = p.position
        if not self.optional and (p.at_end or not self.is_possible_start(p.current)):
            return False
        matched = self._match_any()
        if (matched or self.optional) and p.at_end:
            return True
        p.reset_to(origin)
        return False


class ClosedClassSegmentWithValue(ClosedClassSegment, Generic[T]):
    """A closed-class segment whose phrases each carry a value."""

    def __init__(self, parser: "Parser", name: str, options: Sequence[Tuple[Phrase, T]]) -> None:
        super().__init__(parser, name, *(phrase for phrase, _ in options))
        self.values: List[T] = [value for _, value in options]
        self.value: Optional[T] = None

    def reset(self) -> None:
        super().reset()
        self.value = None

    def _on_match(self, index: int) -> None:
        super()._on_match(index)
        self.value = self.values[index]


class QuantifyingDeterminer(ClosedClassSegment):
    """
    The quantifier before a relation's object: "one" (functional), "many",
    "some" or "other" (anything goes; "other" excludes the subject itself).
    "a" is recognised only so it can be rejected with a helpful error.
    """

    SINGULAR = ("one",)
    PLURAL = ("many", "some", "other")
    INVALID = ("a", "an")

    def __init__(self, parser: "Parser", name: str) -> None:
        super().__init__(parser, name, *(self.SINGULAR + self.PLURAL))
        self.quantifier: Optional[str] = None
        self.is_other = False

    def reset(self) -> None:
        super().reset()
        self.quantifier = None
        self.is_other = False

    def is_possible_start(self, token: str) -> bool:
        return token.lower() in self.SINGULAR + self.PLURAL + self.INVALID

    @property
    def is_plural(self) -> bool:
        return self.quantifier in self.PLURAL

    @property
    def is_invalid(self) -> bool:
        return self.quantifier in self.INVALID

    def _scan_quantifier(self) -> bool:
        p = self.parser
        if p.at_end or not self.is_possible_start(p.current):
            return False
        self.start = p.position
        self.quantifier = p.current.lower()
        p.skip()
        self.is_other = self.quantifier == "other"
        if not self.is_other and not p.at_end and p.current.lower() == "other":
            self.is_other = True
            p.skip()
        self.end = p.position
        return True

    def scan_to(self, terminator: Terminator) -> bool:
        p = self.parser
        stop = as_predicate(terminator)
        origin = p.position
        if self._scan_quantifier() and not p.at_end and stop(p.current):
            return True
        p.reset_to(origin)
        return False

    def scan_to_end(self, fail_on_conjunction: bool = True) -> bool:
        p = self.parser
        origin = p.position
        if self._scan_quantifier() and p.at_end:
            return True
        p.reset_to(origin)
        return False
