# ontogen/core/parsing/phrases.py
"""
core/parsing/phrases.py

Referring expressions: segments whose text names a concept.

- `NounPhrase`: optional determiner or count, then either a run of known
  adjectives/nouns ending in a noun head, or unknown text that becomes a
  new proper or common noun.
- `AdjectivePhrase`: optional negation then an adjective name.
- `VerbSegment`: a known verb form, or unknown text that becomes a new verb
  in whatever conjugation the pattern's checks settle on.
- `ReferringExpressionList`: items joined by commas and a final "and"/"or".

Concepts are resolved lazily, on first access to `.concept`, after the
pattern has matched and its checks have set the grammatical features.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Callable, Generic, List, Optional, TypeVar

from ontogen.core.domain.concepts import (
    Adjective,
    Concept,
    Kind,
    Literal,
    MonadicConcept,
    Noun,
    ProperNoun,
    Verb,
)
from ontogen.core.domain.exceptions import GrammaticalError
from ontogen.core.domain.tokens import TokenString

from .segments import NUMBER_WORDS, Number, Segment, Terminator, as_predicate, is_conjunction

if TYPE_CHECKING:
    from .parser import Parser

C = TypeVar("C", bound=Concept)
E = TypeVar("E", bound="ReferringExpression")


class Conjugation(enum.Enum):
    BASE = "base"
    THIRD_PERSON = "third person"
    GERUND = "gerund"
    PARTICIPLE = "participle"


class ReferringExpression(Segment, Generic[C]):
    def __init__(self, parser: "Parser", name: str) -> None:
        super().__init__(parser, name)
        self._concept: Optional[C] = None

    def reset(self) -> None:
        super().reset()
        self._concept = None

    @property
    def concept(self) -> C:
        if self._concept is None:
            self._concept = self.resolve()
        return self._concept

    def resolve(self) -> C:
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Noun phrases
# ---------------------------------------------------------------------------


class NounPhrase(ReferringExpression[Noun]):
    def __init__(self, parser: "Parser", name: str) -> None:
        super().__init__(parser, name)
        self.modifiers: List[Literal] = []
        self.begins_with_determiner = False
        self.force_common_noun = False
        self.number: Optional[Number] = None
        self._explicit_count: Optional[int] = None

    def reset(self) -> None:
        super().reset()
        self.modifiers = []
        self.begins_with_determiner = False
        self.force_common_noun = False
        self.number = None
        self._explicit_count = None

    @property
    def explicit_count(self) -> Optional[int]:
        return self._explicit_count

    @explicit_count.setter
    def explicit_count(self, value: Optional[int]) -> None:
        self._explicit_count = value
        if value is not None:
            self.number = Number.SINGULAR if value == 1 else Number.PLURAL

    @property
    def noun(self) -> Noun:
        return self.concept

    @property
    def common_noun(self) -> Kind:
        noun = self.concept
        if not isinstance(noun, Kind):
            raise GrammaticalError(
                f"I was expecting '{self.text}' to be a common noun (a kind of thing), but it isn't"
            )
        return noun

    # -- scanning ------------------------------------------------------------

    def scan_to(self, terminator: Terminator) -> bool:
        p = self.parser
        stop = as_predicate(terminator)
        origin = p.position
        self._scan_determiner()
        if self._scan_known_concepts():
            if not p.at_end and stop(p.current):
                return True
        elif super().scan_to(stop):
            return True
        self._abandon(origin)
        return False

    def scan_to_end(self, fail_on_conjunction: bool = True) -> bool:
        p = self.parser
        origin = p.position
        self._scan_determiner()
        if self._scan_known_concepts():
            if p.at_end:
                return True
        elif super().scan_to_end(fail_on_conjunction):
            return True
        self._abandon(origin)
        return False

    def _abandon(self, origin: int) -> None:
        self.parser.reset_to(origin)
        self.modifiers = []
        self.number = None
        self._explicit_count = None
        self.begins_with_determiner = False

    def _scan_determiner(self) -> None:
        p = self.parser
        if p.at_end:
            return
        token = p.current.lower()
        self.begins_with_determiner = True
        if token in ("a", "an"):
            self.number = Number.SINGULAR
        elif token == "all":
            self.number = Number.PLURAL
        elif token in NUMBER_WORDS[1:]:
            self.explicit_count = NUMBER_WORDS.index(token)
        elif token.isdigit():
            self.explicit_count = int(token)
        else:
            self.begins_with_determiner = False
            return
        p.skip()

    def _scan_known_concepts(self) -> bool:
        """
        Consume a run of registered monadic concepts, optionally negated and
        separated by commas after adjectives. Only the last may be the noun
        head; the others become modifiers.
        """
        p = self.parser
        beginning = p.position
        last: Optional[Literal] = None
        last_plural: Optional[bool] = None
        self.modifiers = []
        while not p.at_end:
            before = p.position
            is_positive = True
            if p.current.lower() in ("not", "non"):
                is_positive = False
                p.skip()
                if not p.at_end and p.current == "-":
                    p.skip()
            match = p.match_trie(p.ontology.monadic_trie)
            if match is None:
                p.reset_to(before)
                break
            if last is not None:
                self.modifiers.append(last)
            last = Literal(match.concept, is_positive)
            last_plural = match.is_plural
            if isinstance(match.concept, Adjective) and not p.at_end and p.current == ",":
                p.skip()
        if last is not None and last.is_positive and isinstance(last.concept, Noun):
            self._concept = last.concept
            self.start, self.end = beginning, p.position
            if self.number is None and last_plural is not None:
                self.number = Number.PLURAL if last_plural else Number.SINGULAR
            return True
        p.reset_to(beginning)
        self.modifiers = []
        return False

    # -- resolution ----------------------------------------------------------

    def resolve(self) -> Noun:
        if self.number is Number.PLURAL or self.begins_with_determiner or self.force_common_noun:
            return self._common_noun(self.text)
        return self._proper_noun(self.text)

    def _proper_noun(self, text: TokenString) -> Noun:
        return self.parser.ontology.find_noun(text) or ProperNoun(self.parser.ontology, text)

    def _common_noun(self, text: TokenString) -> Kind:
        ontology = self.parser.ontology
        existing = ontology.find_noun(text)
        if isinstance(existing, ProperNoun):
            raise GrammaticalError(
                f"'{text}' is the name of a specific thing, but I need a kind of thing here"
            )
        if isinstance(existing, Kind):
            is_singular = existing.singular == text
            if is_singular and self.number is Number.PLURAL and existing.singular != existing.plural:
                raise GrammaticalError(f"The singular noun '{text}' was used without 'a' or 'an' before it")
            if not is_singular and self.number is Number.SINGULAR:
                raise GrammaticalError(f"The plural noun '{text}' was used with 'a' or 'an'")
            return existing

        kind = Kind(ontology)
        if self.number is None:
            self.number = Number.PLURAL if ontology.inflector.noun_appears_plural(text) else Number.SINGULAR
        if self.number is Number.SINGULAR:
            kind.set_singular(text)
        else:
            kind.set_plural(text)
        ontology.notice(f"Learned the new common noun {kind.text}.")
        self.parser.maybe_load_definitions(kind)
        return kind


# ---------------------------------------------------------------------------
# Adjective phrases
# ---------------------------------------------------------------------------


class AdjectivePhrase(ReferringExpression[Adjective]):
    def __init__(self, parser: "Parser", name: str) -> None:
        super().__init__(parser, name)
        self.is_negated = False

    def reset(self) -> None:
        super().reset()
        self.is_negated = False

    @property
    def adjective(self) -> Adjective:
        return self.concept

    @property
    def literal(self) -> Literal:
        return Literal(self.adjective, not self.is_negated)

    def valid_beginning(self, token: str) -> bool:
        return token.lower() not in ("a", "an")

    def parse_modifiers(self) -> None:
        p = self.parser
        self.is_negated = False
        if p.current.lower() in ("not", "non", "never"):
            self.is_negated = True
            p.skip()
            if not p.at_end and p.current == "-":
                p.skip()

    def resolve(self) -> Adjective:
        ontology = self.parser.ontology
        return ontology.find_adjective(self.text) or Adjective(ontology, self.text)


# ---------------------------------------------------------------------------
# Verbs
# ---------------------------------------------------------------------------


class VerbSegment(ReferringExpression[Verb]):
    def __init__(self, parser: "Parser", name: str) -> None:
        super().__init__(parser, name)
        self.conjugation = Conjugation.BASE

    def reset(self) -> None:
        super().reset()
        self.conjugation = Conjugation.BASE

    @property
    def verb(self) -> Verb:
        return self.concept

    def scan_to(self, terminator: Terminator) -> bool:
        p = self.parser
        stop = as_predicate(terminator)
        origin = p.position
        if self._scan_existing_verb():
            if not p.at_end and stop(p.current):
                return True
        elif super().scan_to(stop):
            return True
        p.reset_to(origin)
        self._concept = None
        return False

    def scan_to_end(self, fail_on_conjunction: bool = True) -> bool:
        p = self.parser
        origin = p.position
        if self._scan_existing_verb():
            if p.at_end:
                return True
        elif super().scan_to_end(fail_on_conjunction):
            return True
        p.reset_to(origin)
        self._concept = None
        return False

    def _scan_existing_verb(self) -> bool:
        p = self.parser
        beginning = p.position
        match = p.match_trie(p.ontology.verb_trie)
        if match is None:
            return False
        self._concept = match.concept
        self.start, self.end = beginning, match.end
        if match.is_plural is not None:
            p.verb_number = Number.PLURAL if match.is_plural else Number.SINGULAR
        return True

    def resolve(self) -> Verb:
        ontology = self.parser.ontology
        inflector = ontology.inflector
        text = self.text
        if self.conjugation is Conjugation.GERUND:
            base = inflector.base_of_gerund(text)
        elif self.conjugation is Conjugation.PARTICIPLE:
            base = inflector.base_of_participle(text)
        elif self.conjugation is Conjugation.THIRD_PERSON and self.parser.verb_number is Number.SINGULAR:
            base = inflector.base_of_singular_verb(text)
        else:
            base = list(text)
        verb = ontology.find_verb(base)
        if verb is not None:
            return verb
        verb = Verb(ontology)
        verb.set_base_form(base)
        ontology.notice(f"Learned the new verb {verb.text}.")
        self.parser.maybe_load_definitions(verb)
        return verb


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


class ReferringExpressionList(Segment, Generic[E]):
    """`X, Y and Z` or `X, Y or Z`; at least two items and a conjunction."""

    def __init__(
        self,
        parser: "Parser",
        name: str,
        factory: Callable[[], E],
        sanity_check: Optional[Callable[[E], bool]] = None,
    ) -> None:
        super().__init__(parser, name)
        self.factory = factory
        self.sanity_check = sanity_check or (lambda item: True)
        self.expressions: List[E] = []
        self.is_and = False

    def reset(self) -> None:
        super().reset()
        self.expressions = []
        self.is_and = False

    @property
    def concepts(self) -> list:
        return [e.concept for e in self.expressions]

    def _match_conjunction(self) -> bool:
        p = self.parser
        if p.at_end or not is_conjunction(p.current):
            return False
        self.is_and = p.current.lower() == "and"
        p.skip()
        return True

    def scan_to(self, terminator: Terminator) -> bool:
        p = self.parser
        stop = as_predicate(terminator)
        origin = p.position
        self.expressions = []

        def item_end(token: str) -> bool:
            return stop(token) or token == "," or is_conjunction(token)

        last_one = done = False
        while not p.at_end and not stop(p.current):
            if done:
                break
            item = self.factory()
            if not item.scan_to(item_end) or not self.sanity_check(item):
                p.reset_to(origin)
                return False
            self.expressions.append(item)
            if last_one:
                done = True
                continue
            if self._match_conjunction():
                last_one = True
                continue
            if p.current == ",":
                p.skip()
            if self._match_conjunction():
                last_one = True
        if not done or p.at_end or not stop(p.current):
            p.reset_to(origin)
            return False
        self.start, self.end = origin, p.position
        return True

    def scan_to_end(self, fail_on_conjunction: bool = True) -> bool:
        p = self.parser
        origin = p.position
        self.expressions = []

        def item_end(token: str) -> bool:
            return token == "," or is_conjunction(token)

        last_one = done = False
        while not p.at_end:
            if done:
                break
            item = self.factory()
            scanned = item.scan_to_end(False) if last_one else item.scan_to(item_end)
            if not scanned or not self.sanity_check(item):
                p.reset_to(origin)
                return False
            self.expressions.append(item)
            if last_one:
                done = True
                continue
            if p.current == ",":
                p.skip()
            if self._match_conjunction():
                last_one = True
        if not done or not p.at_end:
            p.reset_to(origin)
            return False
        self.start, self.end = origin, p.position
        return True
