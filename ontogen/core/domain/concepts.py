# ontogen/core/domain/concepts.py
"""
core/domain/concepts.py

The concepts of the ontology graph.

Every concept is registered in the arena of the `OntologyContext` that
created it and receives a stable integer id. Links between kinds
(superkind/subkind) and between verbs (superspecies/subspecies) are kept as
adjacency lists of ids in both directions; the `superkinds`/`subkinds`
properties resolve them through the arena.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, List, Optional, Sequence, Tuple

from .exceptions import GrammaticalError, OntologyContradictionError
from .tokens import TokenString, untokenize

if TYPE_CHECKING:
    from .individual import Individual
    from .ontology import OntologyContext

UNBOUNDED = 10000


# ---------------------------------------------------------------------------
# Base classes
# ---------------------------------------------------------------------------


class Concept:
    """Anything with a name that the parser can refer to."""

    #: Human readable type name used in error messages.
    type_name = "concept"

    def __init__(self, ontology: "OntologyContext", name: Sequence[str] = ()) -> None:
        self.ontology = ontology
        self.name = TokenString(name)
        self.id = ontology.register(self)

    @property
    def standard_name(self) -> List[str]:
        return list(self.name)

    @property
    def text(self) -> str:
        return untokenize(self.name)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.text!r}>"


class MonadicConcept(Concept):
    """A concept that is true or false of a single individual."""

    def __init__(self, ontology: "OntologyContext", name: Sequence[str] = ()) -> None:
        super().__init__(ontology, name)
        self.initial_probability = 0.5


class Noun(MonadicConcept):
    type_name = "noun"


@dataclass(frozen=True)
class Literal:
    """A monadic concept or its negation."""

    concept: MonadicConcept
    is_positive: bool = True

    def inverse(self) -> "Literal":
        return Literal(self.concept, not self.is_positive)

    def __str__(self) -> str:
        return self.concept.text if self.is_positive else f"not {self.concept.text}"


@dataclass(frozen=True)
class ConditionalModifier:
    """`modifier` must hold of an instance of the kind whenever all `conditions` do."""

    conditions: Tuple[Literal, ...]
    modifier: Literal


@dataclass(frozen=True)
class AlternativeSet:
    """Between `min_count` and `max_count` of the alternatives hold."""

    alternatives: Tuple[Literal, ...]
    min_count: int
    max_count: int

    @classmethod
    def choice(cls, alternatives: Sequence[Literal], is_required: bool) -> "AlternativeSet":
        return cls(tuple(alternatives), 1 if is_required else 0, 1)


@dataclass(frozen=True)
class FloatDomain:
    name: str
    lower: float
    upper: float


@dataclass(frozen=True)
class Menu:
    name: str
    values: Tuple[str, ...]


@dataclass(frozen=True)
class MenuRule:
    conditions: Tuple[Literal, ...]
    menu: Menu


# ---------------------------------------------------------------------------
# Kinds and proper nouns
# ---------------------------------------------------------------------------


class Kind(Noun):
    """
    A common noun: a class of individuals.

    Singular and plural forms are both always known; setting one derives the
    other through the ontology's inflector unless it was set explicitly.
    """

    type_name = "common noun"

    def __init__(self, ontology: "OntologyContext") -> None:
        super().__init__(ontology)
        self.singular: Optional[TokenString] = None
        self.plural: Optional[TokenString] = None
        self.superkind_ids: List[int] = []
        self.subkind_ids: List[int] = []
        self.relevant_adjectives: List["Adjective"] = []
        self.alternative_sets: List[AlternativeSet] = []
        self.implied_adjectives: List[ConditionalModifier] = []
        self.properties: List["Property"] = []
        self.parts: List["Part"] = []
        self.name_template: Optional[List[str]] = None
        self.description_template: Optional[List[str]] = None

    # -- forms ---------------------------------------------------------------

    def set_singular(self, tokens: Sequence[str]) -> None:
        tokens = TokenString(tokens)
        self.ontology.ensure_undefined_or_defined_as(tokens, Kind, allow=self)
        if self.singular is not None and self.singular != self.plural:
            self.ontology.unbind_noun(self.singular, self)
        self.singular = tokens
        self.name = tokens
        self.ontology.bind_noun(tokens, self, is_plural=None if tokens == self.plural else False)
        if self.plural is None:
            self.set_plural(self.ontology.inflector.plural_of_noun(tokens))

    def set_plural(self, tokens: Sequence[str]) -> None:
        tokens = TokenString(tokens)
        self.ontology.ensure_undefined_or_defined_as(tokens, Kind, allow=self)
        if self.plural is not None and self.plural != self.singular:
            self.ontology.unbind_noun(self.plural, self)
        self.plural = tokens
        self.ontology.bind_noun(tokens, self, is_plural=None if tokens == self.singular else True)
        if self.singular is None:
            self.set_singular(self.ontology.inflector.singular_of_noun(tokens))

    @property
    def standard_name(self) -> List[str]:
        return list(self.singular or self.plural or ())

    # -- taxonomy ------------------------------------------------------------

    @property
    def superkinds(self) -> List["Kind"]:
        return [self.ontology.concept(i) for i in self.superkind_ids]

    @property
    def subkinds(self) -> List["Kind"]:
        return [self.ontology.concept(i) for i in self.subkind_ids]

    def declare_superclass(self, parent: "Kind") -> None:
        if parent is self or parent.id in self.superkind_ids:
            return
        if parent.is_sub_kind_of(self):
            raise OntologyContradictionError(
                f"{parent.text} is already a kind of {self.text}, so {self.text} cannot be a kind of {parent.text}"
            )
        self.superkind_ids.append(parent.id)
        parent.subkind_ids.append(self.id)

    def is_super_kind_of(self, other: "Kind") -> bool:
        """Reflexive, transitive superkind test."""
        if other is self:
            return True
        return any(self.is_super_kind_of(s) for s in other.superkinds)

    def is_sub_kind_of(self, other: "Kind") -> bool:
        return other.is_super_kind_of(self)

    def ancestors(self) -> Iterator["Kind"]:
        """This kind and every transitive superkind, each once."""
        seen = set()
        stack = [self]
        while stack:
            k = stack.pop()
            if k.id in seen:
                continue
            seen.add(k.id)
            yield k
            stack.extend(k.superkinds)

    def descendants(self) -> Iterator["Kind"]:
        """This kind and every transitive subkind, each once."""
        seen = set()
        stack = [self]
        while stack:
            k = stack.pop()
            if k.id in seen:
                continue
            seen.add(k.id)
            yield k
            stack.extend(k.subkinds)

    @staticmethod
    def least_upper_bound(a: Optional["Kind"], b: Optional["Kind"]) -> Optional["Kind"]:
        """Most specific kind that is a superkind of both, or None."""
        if a is None:
            return b
        if b is None:
            return a
        if a.is_super_kind_of(b):
            return a
        for parent in a.superkinds:
            lub = Kind.least_upper_bound(parent, b)
            if lub is not None:
                return lub
        return None

    # -- attributes ----------------------------------------------------------

    def add_relevant_adjective(self, adjective: "Adjective") -> None:
        if adjective not in self.relevant_adjectives:
            self.relevant_adjectives.append(adjective)

    def add_implied(self, modifier: Literal, conditions: Sequence[Literal] = ()) -> None:
        self.implied_adjectives.append(ConditionalModifier(tuple(conditions), modifier))

    def add_alternative_set(self, alternatives: Sequence[Literal], min_count: int, max_count: int) -> None:
        if min_count > max_count:
            raise OntologyContradictionError(
                f"a {self.text} cannot have at least {min_count} and at most {max_count} of those"
            )
        self.alternative_sets.append(AlternativeSet(tuple(alternatives), min_count, max_count))

    def property_named(self, tokens: Sequence[str]) -> Optional["Property"]:
        """Search this kind then its ancestors for a property."""
        key = TokenString(tokens)
        for kind in self.ancestors():
            for p in kind.properties:
                if p.name == key:
                    return p
        return None

    def part_named(self, tokens: Sequence[str]) -> Optional["Part"]:
        key = TokenString(tokens)
        for kind in self.ancestors():
            for p in kind.parts:
                if p.name == key:
                    return p
        return None

    def ensure_property(self, tokens: Sequence[str]) -> "Property":
        existing = next((p for p in self.properties if p.name == TokenString(tokens)), None)
        if existing is not None:
            return existing
        prop = Property(self.ontology, tokens, self)
        self.properties.append(prop)
        return prop

    def find_template_kind(self, attribute: str) -> Optional["Kind"]:
        """Nearest kind (self first, then superkinds) with the given template set."""
        if getattr(self, attribute) is not None:
            return self
        for parent in self.superkinds:
            found = parent.find_template_kind(attribute)
            if found is not None:
                return found
        return None


class ProperNoun(Noun):
    """The name of exactly one permanent individual."""

    type_name = "proper noun"

    def __init__(self, ontology: "OntologyContext", name: Sequence[str]) -> None:
        ontology.ensure_undefined_or_defined_as(name, ProperNoun)
        super().__init__(ontology, name)
        ontology.bind_noun(self.name, self, is_plural=False, store_in_trie=False)
        self.individual: "Individual" = ontology.permanent_individual(self)

    @property
    def kinds(self) -> List[Kind]:
        return self.individual.kinds


# ---------------------------------------------------------------------------
# Adjectives
# ---------------------------------------------------------------------------


class Adjective(MonadicConcept):
    type_name = "adjective"

    def __init__(self, ontology: "OntologyContext", name: Sequence[str]) -> None:
        ontology.ensure_undefined_or_defined_as(name, Adjective)
        super().__init__(ontology, name)
        self.is_silent = False
        ontology.bind_adjective(self.name, self)

    def relevant_to(self, kind: Kind) -> bool:
        """True if this adjective was declared relevant to the kind or an ancestor."""
        return any(self in k.relevant_adjectives for k in kind.ancestors())


# ---------------------------------------------------------------------------
# Verbs
# ---------------------------------------------------------------------------


class Verb(Concept):
    """
    A binary relation between an individual of `subject_kind` and one of
    `object_kind`.
    """

    type_name = "verb"

    def __init__(self, ontology: "OntologyContext") -> None:
        super().__init__(ontology)
        self.base_form: Optional[TokenString] = None
        self.singular_form: Optional[TokenString] = None
        self.gerund_forms: List[TokenString] = []
        self.passive_participle: Optional[TokenString] = None

        self.subject_kind: Optional[Kind] = None
        self.object_kind: Optional[Kind] = None
        self.subject_modifiers: List[Literal] = []
        self.object_modifiers: List[Literal] = []

        self.object_lower_bound = 0
        self.object_upper_bound = UNBOUNDED
        self.subject_lower_bound = 0
        self.subject_upper_bound = UNBOUNDED

        self.is_reflexive = False
        self.is_anti_reflexive = False
        self.is_symmetric = False
        self.is_anti_symmetric = False
        self.density = 0.5

        self.generalizations: List["Verb"] = []
        self.mutual_exclusions: List["Verb"] = []
        self.superspecies_ids: List[int] = []
        self.subspecies_ids: List[int] = []

    # -- forms ---------------------------------------------------------------

    def set_base_form(self, tokens: Sequence[str]) -> None:
        """Set the base form and derive every other conjugation from it."""
        inflector = self.ontology.inflector
        base = TokenString(tokens)
        self.ontology.ensure_undefined_or_defined_as(base, Verb, allow=self)
        self.base_form = base
        self.name = base
        self.ontology.bind_verb(base, self, is_plural=True)

        self.singular_form = TokenString(inflector.singular_of_verb(base))
        self.ontology.bind_verb(self.singular_form, self, is_plural=False)

        self.gerund_forms = [TokenString(g) for g in inflector.gerunds_of_verb(base)]
        for gerund in self.gerund_forms:
            self.ontology.bind_verb(gerund, self, is_plural=None)

        self.passive_participle = TokenString(inflector.passive_participle(base))
        self.ontology.bind_verb(self.passive_participle, self, is_plural=None)

    @property
    def gerund_form(self) -> Optional[TokenString]:
        return self.gerund_forms[0] if self.gerund_forms else None

    # -- cardinality ---------------------------------------------------------

    @property
    def is_function(self) -> bool:
        return self.object_upper_bound == 1

    @is_function.setter
    def is_function(self, value: bool) -> None:
        self.object_upper_bound = 1 if value else UNBOUNDED

    @property
    def is_total(self) -> bool:
        return self.object_lower_bound >= 1

    @is_total.setter
    def is_total(self, value: bool) -> None:
        if value:
            self.object_lower_bound = max(1, self.object_lower_bound)
        else:
            self.object_lower_bound = 0

    # -- specialisation ------------------------------------------------------

    @property
    def superspecies(self) -> List["Verb"]:
        return [self.ontology.concept(i) for i in self.superspecies_ids]

    @property
    def subspecies(self) -> List["Verb"]:
        return [self.ontology.concept(i) for i in self.subspecies_ids]

    def declare_superspecies(self, general: "Verb") -> None:
        if general is self or general.id in self.superspecies_ids:
            return
        self.superspecies_ids.append(general.id)
        general.subspecies_ids.append(self.id)
        if self.subject_kind is None:
            self.subject_kind = general.subject_kind
        if self.object_kind is None:
            self.object_kind = general.object_kind

    def _ancestors(self) -> Iterator["Verb"]:
        seen = set()
        stack = [self]
        while stack:
            v = stack.pop()
            if v.id in seen:
                continue
            seen.add(v.id)
            yield v
            stack.extend(v.superspecies)

    @property
    def ancestor_is_reflexive(self) -> bool:
        return any(v.is_reflexive for v in self._ancestors())

    @property
    def ancestor_is_anti_reflexive(self) -> bool:
        return any(v.is_anti_reflexive for v in self._ancestors())

    @property
    def ancestor_is_symmetric(self) -> bool:
        return any(v.is_symmetric for v in self._ancestors())

    @property
    def ancestor_is_anti_symmetric(self) -> bool:
        return any(v.is_anti_symmetric for v in self._ancestors())

    def set_kinds(self, subject_kind: Optional[Kind], object_kind: Optional[Kind]) -> None:
        """Widen the subject/object kinds to cover a new declaration."""
        self.subject_kind = self._widen(self.subject_kind, subject_kind, "subject")
        self.object_kind = self._widen(self.object_kind, object_kind, "object")

    def _widen(self, current: Optional[Kind], new: Optional[Kind], role: str) -> Optional[Kind]:
        lub = Kind.least_upper_bound(current, new)
        if lub is None:
            raise OntologyContradictionError(
                f"the {role} of '{self.text}' cannot be both a {current.text} and a {new.text}"
            )
        return lub

    def describe(self) -> str:
        """One line summary of the relation for listings."""
        subject = self.subject_kind.text if self.subject_kind else "?"
        obj = self.object_kind.text if self.object_kind else "?"
        flags = [
            name for name, on in (
                ("reflexive", self.is_reflexive),
                ("anti-reflexive", self.is_anti_reflexive),
                ("symmetric", self.is_symmetric),
                ("anti-symmetric", self.is_anti_symmetric),
            ) if on
        ]
        bounds = f"[{self.object_lower_bound}..{'*' if self.object_upper_bound >= UNBOUNDED else self.object_upper_bound}]"
        suffix = f" ({', '.join(flags)})" if flags else ""
        return f"{subject} {self.text} {obj} {bounds}{suffix}"


# ---------------------------------------------------------------------------
# Properties and parts
# ---------------------------------------------------------------------------


class Property(Concept):
    """
    A named attribute of the instances of a kind. Numeric properties carry a
    `FloatDomain`; menu properties carry `MenuRule`s instead.
    """

    type_name = "property"

    def __init__(self, ontology: "OntologyContext", name: Sequence[str], owner: Kind) -> None:
        super().__init__(ontology, name)
        self.owner = owner
        self.domain: Optional[FloatDomain] = None
        self.menu_rules: List[MenuRule] = []

    @property
    def is_name_property(self) -> bool:
        return self.name == ("name",)


class Part(Concept):
    """A named component whose value is itself an individual of `kind`."""

    type_name = "part"

    def __init__(self, ontology: "OntologyContext", name: Sequence[str], kind: Kind, modifiers: Sequence[Literal] = ()) -> None:
        if not name:
            raise GrammaticalError("A part needs a name")
        super().__init__(ontology, name)
        self.kind = kind
        self.modifiers: List[Literal] = list(modifiers)
