# ontogen/core/parsing/parser.py
"""
core/parsing/parser.py

The `Parser` owns the scanning state for one statement at a time:

- the token buffer and the integer cursor;
- the grammatical constituents patterns fill in (subject, object, verbs,
  adjective phrases, lists, quantifier, numeric bounds);
- the ordered list of sentence patterns: command sets first, then the
  standard declaration library.

`parse_and_execute` tries every pattern against the same starting state and
runs the first that matches. Definition files named after newly coined
concepts are loaded through a nested parser sharing the same ontology.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable, List, Optional, Sequence

import structlog

from ontogen.core.domain.concepts import Concept
from ontogen.core.domain.exceptions import DefinitionFileNotFoundError, DomainError, GrammaticalError
from ontogen.core.domain.ontology import OntologyContext
from ontogen.core.domain.tokens import tokenize, untokenize
from ontogen.core.domain.trie import TokenTrie, TrieMatch

from .patterns import Check, SentencePattern
from .phrases import AdjectivePhrase, Conjugation, NounPhrase, ReferringExpressionList, VerbSegment
from .segments import (
    ClosedClassSegment,
    ClosedClassSegmentWithValue,
    Number,
    QuantifyingDeterminer,
    Segment,
    is_number,
    parse_number,
)

logger = structlog.get_logger()

CommandSet = Callable[["Parser"], Iterable[SentencePattern]]

_INVALID_FILENAME = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def is_valid_filename(name: str) -> bool:
    return bool(name) and not _INVALID_FILENAME.search(name) and name not in (".", "..")


class Parser:
    def __init__(self, ontology: OntologyContext, command_sets: Sequence[CommandSet] = ()) -> None:
        self.ontology = ontology
        self.tokens: List[str] = []
        self.position = 0
        self.verb_number: Optional[Number] = None
        self.lower_bound: Optional[int] = None
        self.upper_bound: Optional[int] = None
        self.log_parsing = False
        self.action_started = False
        self.current_input = ""

        self._init_constituents()

        # Imported here: the library refers back to this module's checks.
        from .rules import standard_patterns

        self.patterns: List[SentencePattern] = []
        for command_set in command_sets:
            self.patterns.extend(command_set(self))
        self.patterns.extend(standard_patterns(self))

    # ------------------------------------------------------------------
    # Constituents
    # ------------------------------------------------------------------

    def _init_constituents(self) -> None:
        self.subject = NounPhrase(self, "Subject")
        self.object = NounPhrase(self, "Object")
        self.verb = VerbSegment(self, "Verb")
        self.verb2 = VerbSegment(self, "Verb2")
        self.subject_list = ReferringExpressionList(
            self, "Subjects", lambda: NounPhrase(self, "Subject"), sanity_check=self._force_common_noun
        )
        self.predicate_ap = AdjectivePhrase(self, "Adjective")
        self.predicate_ap_list = ReferringExpressionList(self, "Adjectives", lambda: AdjectivePhrase(self, "Adjective"))
        self.list_name = Segment(self, "ListName")
        self.text = Segment(self, "AnyText", allow_conjunctions=True)
        self.quantifier = QuantifyingDeterminer(self, "one/many/other")

        self.optional_all = ClosedClassSegment(self, "[all]", "all", "any", "every", optional=True)
        self.optional_always = ClosedClassSegment(self, "[always]", "always", optional=True)
        self.exist_not_exist = ClosedClassSegment(
            self, "exist/not exist", "exist", ("not", "exist"), ("never", "exist")
        )
        self.rare_common = ClosedClassSegmentWithValue(
            self,
            "rare/common",
            [(("very", "rare"), 0.05), ("rare", 0.15), ("common", 0.85), (("very", "common"), 0.95)],
        )
        self.can_must = ClosedClassSegment(self, "can/must", "can", "must")
        self.can_not = ClosedClassSegment(
            self,
            "cannot",
            "cannot",
            "never",
            ("can", "not"),
            ("can", "'", "t"),
            ("do", "not"),
            ("don", "'", "t"),
        )
        self.reflexive = ClosedClassSegment(self, "itself", "itself", "himself", "herself", "themselves")
        self.must_always = ClosedClassSegment(self, "always", "must", "always")
        self.each_other = ClosedClassSegment(self, "each other", ("each", "other"), ("one", "another"))
        self.count_bound = ClosedClassSegment(
            self, "up to/at least/exactly", ("up", "to"), ("at", "least"), "exactly"
        )

        self.is_ = Check("is/are", self._match_copula, starts_with=self.is_copula)
        self.has = Check("has/have", self._match_have, starts_with=self.is_have)
        self.lower = Check("LowerBound", lambda: self._match_bound("lower_bound"), starts_with=is_number)
        self.upper = Check("UpperBound", lambda: self._match_bound("upper_bound"), starts_with=is_number)

        self._constituents: List[Segment] = [
            self.subject,
            self.object,
            self.verb,
            self.verb2,
            self.subject_list,
            self.predicate_ap,
            self.predicate_ap_list,
            self.list_name,
            self.text,
            self.quantifier,
            self.optional_all,
            self.optional_always,
            self.exist_not_exist,
            self.rare_common,
            self.can_must,
            self.can_not,
            self.reflexive,
            self.must_always,
            self.each_other,
            self.count_bound,
        ]

    def reset_constituents(self) -> None:
        for c in self._constituents:
            c.reset()
        self.verb_number = None
        self.lower_bound = None
        self.upper_bound = None
        self.position = 0

    @staticmethod
    def _force_common_noun(np: NounPhrase) -> bool:
        np.force_common_noun = True
        return True

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------

    @property
    def at_end(self) -> bool:
        return self.position >= len(self.tokens)

    @property
    def current(self) -> str:
        return self.tokens[self.position]

    def skip(self) -> None:
        if self.at_end:
            raise IndexError("Attempt to skip past end of input")
        self.position += 1

    def reset_to(self, position: int) -> None:
        self.position = position

    def match(self, word: str) -> bool:
        if not self.at_end and self.current.lower() == word.lower():
            self.position += 1
            return True
        return False

    def match_phrase(self, words: Sequence[str]) -> bool:
        origin = self.position
        for word in words:
            if not self.match(word):
                self.position = origin
                return False
        return True

    def match_trie(self, trie: TokenTrie) -> Optional[TrieMatch]:
        found = trie.lookup(self.tokens, self.position)
        if found is not None:
            self.position = found.end
        return found

    @property
    def remaining_input(self) -> str:
        return untokenize(self.tokens[self.position:])

    # ------------------------------------------------------------------
    # Token-level checks
    # ------------------------------------------------------------------

    @staticmethod
    def is_copula(token: str) -> bool:
        return token.lower() in ("is", "are")

    @staticmethod
    def is_have(token: str) -> bool:
        return token.lower() in ("has", "have")

    def _match_copula(self) -> bool:
        if self.match("is"):
            self.verb_number = Number.SINGULAR
            return True
        if self.match("are"):
            self.verb_number = Number.PLURAL
            return True
        return False

    def _match_have(self) -> bool:
        if self.match("has"):
            self.verb_number = Number.SINGULAR
            return True
        if self.match("have"):
            self.verb_number = Number.PLURAL
            return True
        return False

    def _match_bound(self, attribute: str) -> bool:
        if self.at_end:
            return False
        value = parse_number(self.current)
        if value is None:
            return False
        setattr(self, attribute, value)
        self.skip()
        return True

    # ------------------------------------------------------------------
    # Feature checks
    # ------------------------------------------------------------------

    def subject_verb_agree(self) -> bool:
        if self.subject.number is None:
            self.subject.number = self.verb_number
            return True
        if self.verb_number is None:
            self.verb_number = self.subject.number
        return self.verb_number is self.subject.number

    def verb_base_form(self) -> bool:
        if self.verb.text[0].lower() != "be" and self.verb_number is Number.SINGULAR:
            return False
        self.verb_number = Number.PLURAL
        self.verb.conjugation = Conjugation.BASE
        return True

    def _gerund_form(self, segment: VerbSegment) -> bool:
        segment.conjugation = Conjugation.GERUND
        return self.ontology.inflector.is_gerund(segment.text)

    def verb_gerund_form(self) -> bool:
        return self._gerund_form(self.verb)

    def verb2_gerund_form(self) -> bool:
        return self._gerund_form(self.verb2)

    def verb_participle_form(self) -> bool:
        self.verb.conjugation = Conjugation.PARTICIPLE
        inflector = self.ontology.inflector
        text = [t.lower() for t in self.verb.text]
        try:
            regular = inflector.passive_participle(inflector.base_of_participle(text))
        except GrammaticalError:
            return False
        return [t.lower() for t in regular] == text

    def subject_default_plural(self) -> bool:
        if self.subject.number is None:
            self.subject.number = Number.PLURAL
        return True

    def subject_plural(self) -> bool:
        if self.subject.number is None:
            self.subject.number = Number.PLURAL
        return self.subject.number is Number.PLURAL

    def object_singular(self) -> bool:
        if self.object.number is Number.PLURAL:
            raise GrammaticalError(f"The noun '{self.object.text}' should be in singular form in this context")
        self.object.number = Number.SINGULAR
        return True

    def object_explicitly_singular(self) -> bool:
        return self.object.number is Number.SINGULAR and self.object.begins_with_determiner

    def object_quantifier_agree(self) -> bool:
        if self.quantifier.is_invalid:
            raise GrammaticalError(
                f"Use 'one' rather than '{self.quantifier.quantifier}' to say how many {self.object.text} there can be"
            )
        self.object.number = Number.PLURAL if self.quantifier.is_plural else Number.SINGULAR
        return True

    def object_count_agree(self, attribute: str) -> Callable[[], bool]:
        def check() -> bool:
            self.object.number = Number.SINGULAR if getattr(self, attribute) == 1 else Number.PLURAL
            return True

        return check

    def subject_unmodified(self) -> bool:
        if self.subject.modifiers:
            raise GrammaticalError(f"The noun '{self.subject.text}' cannot take adjectives in this context")
        return True

    def object_unmodified(self) -> bool:
        if self.object.modifiers:
            raise GrammaticalError(f"The noun '{self.object.text}' cannot take adjectives in this context")
        return True

    def subject_common_noun(self) -> bool:
        self.subject.force_common_noun = True
        return True

    def object_common_noun(self) -> bool:
        self.object.force_common_noun = True
        return True

    def subject_proper_noun(self) -> bool:
        from ontogen.core.domain.concepts import ProperNoun

        return isinstance(self.subject.noun, ProperNoun)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def parse_and_execute(self, sentence: str) -> bool:
        """
        Run one statement. Returns True for a declaration (to be logged in
        the transcript), False for a command.

        Raises:
            GrammaticalError: If no pattern matches, or a check rejects the input.
            DomainError: Whatever the matched pattern's action raises.
        """
        sentence = sentence.rstrip(" .")
        self.current_input = sentence
        self.tokens = tokenize(sentence)
        self.position = 0
        self.action_started = False
        for pattern in self.patterns:
            if pattern.try_match():
                return not pattern.is_command
        suggestions = [p.usage for p in self.patterns if p.shares_keywords(self.tokens)]
        raise GrammaticalError("Unknown sentence pattern", offending_input=sentence, suggestions=suggestions)

    def patterns_matching_keywords(self, tokens: Iterable[str]) -> List[SentencePattern]:
        tokens = list(tokens)
        return [p for p in self.patterns if p.shares_keywords(tokens)]

    # ------------------------------------------------------------------
    # Definition files
    # ------------------------------------------------------------------

    def maybe_load_definitions(self, concept: Concept) -> None:
        """Load the definition file named after a newly coined concept, if there is one."""
        repository = self.ontology.definitions
        name = concept.text
        if repository is None or not is_valid_filename(name) or self.ontology.is_loaded(name):
            return
        statements = repository.load_definitions(name)
        if statements is None:
            return
        # Loading runs other statements' actions, which the journal does not fully cover.
        self.action_started = True
        Parser(self.ontology).load_statements(name, statements)

    def load_definitions(self, name: str, throw_on_errors: bool = True) -> List[DomainError]:
        repository = self.ontology.definitions
        if repository is None:
            raise DefinitionFileNotFoundError(name, "<no project>")
        statements = repository.load_definitions(name)
        if statements is None:
            raise DefinitionFileNotFoundError(name, name)
        return self.load_statements(name, statements, throw_on_errors)

    def load_statements(self, name: str, statements: Sequence[str], throw_on_errors: bool = True) -> List[DomainError]:
        """
        Execute the statements of a definition file once per ontology.
        With `throw_on_errors` False, failures are collected and returned.
        """
        errors: List[DomainError] = []
        if self.ontology.is_loaded(name):
            return errors
        self.ontology.mark_loaded(name)
        logger.info("definitions_loading", name=name, statements=len(statements))
        for line_number, statement in enumerate(statements, start=1):
            try:
                self.parse_and_execute(statement)
            except DomainError as e:
                logger.warning("definition_failed", name=name, line=line_number, statement=statement, error=str(e))
                if throw_on_errors:
                    raise
                errors.append(e)
        return errors
