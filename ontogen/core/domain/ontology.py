# ontogen/core/domain/ontology.py
"""
core/domain/ontology.py

`OntologyContext`: the explicit, resettable owner of every registry.

It holds
- the concept arena (id -> concept),
- the name tables for nouns and adjectives and the two tries used by the
  parser (monadic concepts, verbs),
- the permanent individuals of proper nouns,
- the existence tests declared in source text,
- the set of definition files already loaded,
- a `MutationJournal` recording how to undo every registry change.

The parser marks the journal before trying a sentence pattern and rolls it
back when the pattern fails, so concepts coined during a failed attempt
disappear again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Sequence, Set, Tuple, Type, TypeVar

import structlog

from .concepts import Adjective, Concept, Kind, Literal, Noun, ProperNoun, Verb
from .exceptions import NameCollisionError
from .individual import Individual
from .inflection import EnglishInflector, load_inflector
from .tokens import TokenString
from .trie import TokenTrie

if TYPE_CHECKING:
    from ontogen.core.ports.definitions import IDefinitionRepository

logger = structlog.get_logger()

C = TypeVar("C", bound=Concept)

_MISSING = object()


class MutationJournal:
    """A stack of undo actions for registry mutations."""

    def __init__(self) -> None:
        self._undo: List[Callable[[], None]] = []

    def record(self, undo: Callable[[], None]) -> None:
        self._undo.append(undo)

    def mark(self) -> int:
        return len(self._undo)

    def rollback(self, mark: int) -> None:
        while len(self._undo) > mark:
            self._undo.pop()()

    def commit(self) -> None:
        self._undo.clear()

    def __len__(self) -> int:
        return len(self._undo)


@dataclass(frozen=True)
class ExistenceTest:
    """A declaration that some kind of object should (or should not) be generable."""

    noun: Kind
    modifiers: Tuple[Literal, ...]
    should_exist: bool
    succeed_message: Optional[str] = None
    fail_message: Optional[str] = None

    @property
    def description(self) -> str:
        what = " ".join([str(m) for m in self.modifiers] + [self.noun.text])
        return f"{what} should {'exist' if self.should_exist else 'not exist'}"


class OntologyContext:
    def __init__(
        self,
        definitions: Optional["IDefinitionRepository"] = None,
        inflector: Optional[EnglishInflector] = None,
    ) -> None:
        self.definitions = definitions
        self.inflector = inflector or load_inflector()
        self.journal = MutationJournal()

        self._concepts: List[Optional[Concept]] = []
        self.nouns: Dict[TokenString, Noun] = {}
        self.adjectives: Dict[TokenString, Adjective] = {}
        self.monadic_trie: TokenTrie = TokenTrie()
        self.verb_trie: TokenTrie = TokenTrie()
        self.permanent_individuals: Dict[ProperNoun, Individual] = {}
        self.tests: List[ExistenceTest] = []
        self.loaded_files: Set[str] = set()
        self.notices: List[str] = []
        self._next_uid = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def erase(self) -> None:
        """Forget every concept, individual, test and loaded file."""
        self._concepts = []
        self.nouns = {}
        self.adjectives = {}
        self.monadic_trie.clear()
        self.verb_trie.clear()
        self.permanent_individuals = {}
        self.tests = []
        self.loaded_files = set()
        self.notices = []
        self._next_uid = 0
        self.journal.commit()
        logger.debug("ontology_erased")

    # ------------------------------------------------------------------
    # Arena
    # ------------------------------------------------------------------

    def register(self, concept: Concept) -> int:
        concept_id = len(self._concepts)
        self._concepts.append(concept)

        def undo() -> None:
            self._concepts[concept_id] = None

        self.journal.record(undo)
        return concept_id

    def concept(self, concept_id: int) -> Concept:
        found = self._concepts[concept_id]
        if found is None:
            raise KeyError(f"Concept #{concept_id} was discarded")
        return found

    def concepts_of_type(self, cls: Type[C]) -> List[C]:
        return [c for c in self._concepts if isinstance(c, cls)]

    @property
    def kinds(self) -> List[Kind]:
        return self.concepts_of_type(Kind)

    @property
    def verbs(self) -> List[Verb]:
        return self.concepts_of_type(Verb)

    @property
    def proper_nouns(self) -> List[ProperNoun]:
        return self.concepts_of_type(ProperNoun)

    @property
    def concept_count(self) -> int:
        return sum(1 for c in self._concepts if c is not None)

    def next_uid(self) -> int:
        uid = self._next_uid
        self._next_uid += 1
        return uid

    # ------------------------------------------------------------------
    # Name tables (journaled)
    # ------------------------------------------------------------------

    def _set_entry(self, table: dict, key, value) -> None:
        previous = table.get(key, _MISSING)
        if value is None:
            table.pop(key, None)
        else:
            table[key] = value

        def undo() -> None:
            if previous is _MISSING:
                table.pop(key, None)
            else:
                table[key] = previous

        self.journal.record(undo)

    def _store(self, trie: TokenTrie, tokens: Sequence[str], concept: Optional[Concept], is_plural: Optional[bool]) -> None:
        previous_concept, previous_plural = trie.store(tokens, concept, is_plural)
        self.journal.record(lambda: trie.store(tokens, previous_concept, previous_plural))

    def bind_noun(self, tokens: Sequence[str], noun: Noun, is_plural: Optional[bool], store_in_trie: bool = True) -> None:
        key = TokenString(tokens)
        self._set_entry(self.nouns, key, noun)
        if store_in_trie:
            self._store(self.monadic_trie, key, noun, is_plural)

    def unbind_noun(self, tokens: Sequence[str], noun: Noun) -> None:
        key = TokenString(tokens)
        if self.nouns.get(key) is noun:
            self._set_entry(self.nouns, key, None)
            self._store(self.monadic_trie, key, None, None)

    def bind_adjective(self, tokens: Sequence[str], adjective: Adjective) -> None:
        key = TokenString(tokens)
        self._set_entry(self.adjectives, key, adjective)
        self._store(self.monadic_trie, key, adjective, False)

    def bind_verb(self, tokens: Sequence[str], verb: Verb, is_plural: Optional[bool]) -> None:
        self._store(self.verb_trie, tokens, verb, is_plural)

    def permanent_individual(self, proper_noun: ProperNoun) -> Individual:
        individual = Individual(self.next_uid(), name=proper_noun.standard_name, is_permanent=True)
        self._set_entry(self.permanent_individuals, proper_noun, individual)
        return individual

    def notice(self, message: str) -> None:
        """Queue a message for the user about something learned implicitly."""
        self.notices.append(message)
        self.journal.record(self.notices.pop)

    def drain_notices(self) -> List[str]:
        notices, self.notices = self.notices, []
        return notices

    def mark_loaded(self, name: str) -> None:
        key = name.lower()
        if key in self.loaded_files:
            return
        self.loaded_files.add(key)
        self.journal.record(lambda: self.loaded_files.discard(key))

    def is_loaded(self, name: str) -> bool:
        return name.lower() in self.loaded_files

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_noun(self, tokens: Sequence[str]) -> Optional[Noun]:
        return self.nouns.get(TokenString(tokens))

    def find_kind(self, tokens: Sequence[str]) -> Optional[Kind]:
        noun = self.find_noun(tokens)
        return noun if isinstance(noun, Kind) else None

    def find_adjective(self, tokens: Sequence[str]) -> Optional[Adjective]:
        return self.adjectives.get(TokenString(tokens))

    def find_verb(self, tokens: Sequence[str]) -> Optional[Verb]:
        return self.verb_trie.find(tokens)

    def find(self, tokens: Sequence[str]) -> Optional[Concept]:
        """Any concept bound to exactly these tokens."""
        return self.find_noun(tokens) or self.find_adjective(tokens) or self.find_verb(tokens)

    def ensure_undefined_or_defined_as(self, tokens: Sequence[str], cls: Type[Concept], allow: Optional[Concept] = None) -> None:
        existing = self.find(tokens)
        if existing is None or existing is allow or isinstance(existing, cls):
            return
        raise NameCollisionError(str(TokenString(tokens)), existing.type_name, cls.type_name)

    # ------------------------------------------------------------------
    # Tests
    # ------------------------------------------------------------------

    def add_test(
        self,
        noun: Kind,
        modifiers: Sequence[Literal],
        should_exist: bool,
        succeed_message: Optional[str] = None,
        fail_message: Optional[str] = None,
    ) -> ExistenceTest:
        test = ExistenceTest(noun, tuple(modifiers), should_exist, succeed_message, fail_message)
        self.tests.append(test)
        return test

    def describe(self) -> Iterator[str]:
        """Summary lines of the ontology, used by the `stats` command."""
        yield f"{len(self.kinds)} kinds, {len(self.adjectives)} adjectives, {len(self.verbs)} verbs"
        yield f"{len(self.permanent_individuals)} named individuals, {len(self.tests)} tests"
