# ontogen/core/parsing/patterns.py
"""
core/parsing/patterns.py

Sentence patterns.

A pattern is a sequence of template elements, one of
- `Word`: a literal token, matched case-insensitively;
- a `Segment`: a sub-scanner consuming a variable-length span;
- `Check`: a predicate run in place (e.g. "is/are", a number).

A segment needs to know where it stops, so it scans toward whatever follows
it: the next word, the possible first tokens of a following closed-class
segment, or the `starts_with` predicate of a following check. A segment in
last position scans to the end of the input. Patterns whose layout leaves a
segment without a stopping rule are rejected when constructed.

Matching restores both the cursor and the ontology's mutation journal when
the pattern fails, so anything coined during a failed attempt disappears.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence, Set, Union

import structlog

from .segments import ClosedClassSegment, Segment, TokenPredicate

if TYPE_CHECKING:
    from .parser import Parser

logger = structlog.get_logger()


@dataclass(frozen=True)
class Word:
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Check:
    """
    A predicate over parser state. `starts_with`, when given, tells a
    preceding segment which token the check begins with.
    """

    name: str
    test: Callable[[], bool]
    starts_with: Optional[TokenPredicate] = None

    def __call__(self) -> bool:
        return self.test()

    def __str__(self) -> str:
        return self.name


Element = Union[Word, Segment, Check]

# Words too common to suggest a pattern when an input fails to parse.
STOPWORDS = frozenset({"a", "an", "the", "is", "are", "of", "be", "can", "and", "or", '"', ",", "'", "to"})


def _always(token: str) -> bool:
    return True


class SentencePattern:
    def __init__(
        self,
        parser: "Parser",
        elements: Sequence[Union[str, Segment, Check]],
        action: Callable[[], None],
        checks: Sequence[Callable[[], bool]] = (),
        doc: str = "",
        is_command: bool = False,
    ) -> None:
        self.parser = parser
        self.elements: List[Element] = [Word(e) if isinstance(e, str) else e for e in elements]
        self.action = action
        self.checks = list(checks)
        self.doc = doc
        self.is_command = is_command
        self._terminators = [self._terminator_for(i) for i in range(len(self.elements))]

    def _terminator_for(self, index: int) -> Optional[TokenPredicate]:
        element = self.elements[index]
        if not isinstance(element, Segment) or index == len(self.elements) - 1:
            return None
        following = self.elements[index + 1]
        if isinstance(following, Word):
            word = following.text.lower()
            return lambda token: token.lower() == word
        if isinstance(following, Check) and following.starts_with is not None:
            return following.starts_with
        if isinstance(following, ClosedClassSegment) and not following.optional:
            return following.is_possible_start
        if isinstance(element, ClosedClassSegment):
            return _always
        raise ValueError(f"Pattern '{self.usage}': cannot tell where {element.name} ends")

    # ------------------------------------------------------------------
    # Documentation
    # ------------------------------------------------------------------

    @property
    def usage(self) -> str:
        return " ".join(e.text if isinstance(e, Word) else str(e.name) for e in self.elements)

    @property
    def help_text(self) -> str:
        return f"{self.usage}\n    {self.doc}" if self.doc else self.usage

    @property
    def keywords(self) -> Set[str]:
        words: Set[str] = set()
        for e in self.elements:
            if isinstance(e, Word):
                words.add(e.text.lower())
            elif isinstance(e, Segment):
                words.update(k.lower() for k in e.keywords)
        return words - STOPWORDS

    def shares_keywords(self, tokens: Iterable[str]) -> bool:
        return bool(self.keywords.intersection(t.lower() for t in tokens))

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def try_match(self) -> bool:
        """
        Match the whole input, run the checks, then the action.

        Returns False (with cursor and journal restored) if the pattern does
        not apply. Exceptions from checks or the action also restore both
        before propagating.
        """
        p = self.parser
        p.reset_constituents()
        origin = p.position
        mark = p.ontology.journal.mark()
        try:
            if self._match_elements() and p.at_end and all(check() for check in self.checks):
                if p.log_parsing:
                    logger.debug("pattern_matched", pattern=self.usage)
                if not self.is_command:
                    p.action_started = True
                self.action()
                return True
        except Exception:
            p.ontology.journal.rollback(mark)
            p.reset_to(origin)
            raise
        p.ontology.journal.rollback(mark)
        p.reset_to(origin)
        return False

    def _match_elements(self) -> bool:
        p = self.parser
        last = len(self.elements) - 1
        for index, element in enumerate(self.elements):
            if isinstance(element, Word):
                if not p.match(element.text):
                    return self._fail(index)
            elif isinstance(element, Check):
                if not element():
                    return self._fail(index)
            elif index == last:
                if not element.scan_to_end():
                    return self._fail(index)
            elif not element.scan_to(self._terminators[index]):
                return self._fail(index)
        return True

    def _fail(self, index: int) -> bool:
        if self.parser.log_parsing:
            logger.debug("pattern_failed", pattern=self.usage, element=str(self.elements[index]), position=self.parser.position)
        return False

    def __repr__(self) -> str:
        return f"<SentencePattern {self.usage!r}>"
