# ontogen/core/generation/invention.py
"""
core/generation/invention.py

Reads a solved assignment back into English.

An `Invention` pairs the `Generator` that compiled a problem with one
solution of it. Truth queries go through the generator's propositions;
descriptions are rendered from each kind's description template, or from
`DEFAULT_DESCRIPTION_TEMPLATE` when no kind in the individual's ancestry
defines one.

Template placeholders (between `[` and `]`):
- `NameString`: the individual's name.
- `Modifiers`: the non-silent adjectives true of it, comma separated.
- `Noun`: its most specific true kinds.
- `AllProperties`: ", name: value" for each property not already shown.
- any other text: the value of that property, or the description of that part.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Iterable, List, Optional, Sequence, Set, Tuple

from ontogen.core.domain.concepts import Adjective, Kind, MonadicConcept, Property, Verb
from ontogen.core.domain.individual import Individual
from ontogen.core.domain.tokens import is_punctuation, tokenize, untokenize
from ontogen.core.ports.solver import ISolution

if TYPE_CHECKING:
    from .generator import Generator

DEFAULT_DESCRIPTION_TEMPLATE = tokenize("[NameString] is a [Modifiers] [Noun] [AllProperties]")

_ARTICLE = re.compile(r"\b([Aa]) (?=(\w+))")


class Invention:
    def __init__(self, generator: "Generator", model: ISolution) -> None:
        self.generator = generator
        self.model = model

    @property
    def individuals(self) -> List[Individual]:
        return self.generator.individuals

    @property
    def ephemeral_individuals(self) -> List[Individual]:
        return self.generator.ephemeral_individuals

    # ------------------------------------------------------------------
    # Model queries
    # ------------------------------------------------------------------

    def is_a(self, individual: Individual, concept: MonadicConcept) -> bool:
        """True if `concept` applies to `individual` in this model."""
        if isinstance(concept, Kind) and not self.generator.can_be_a(individual, concept):
            return False
        return bool(self.model[self.generator.is_a(individual, concept)])

    def holds(self, verb: Verb, subject: Individual, obj: Individual) -> bool:
        return bool(self.model[self.generator.holds(verb, subject, obj)])

    def property_value(self, individual: Individual, prop: Property) -> Any:
        variable = individual.properties.get(prop)
        if variable is None or not self.model.defines_variable(variable):
            return None
        return self.model[variable]

    def true_kinds(self, individual: Individual) -> List[Kind]:
        """Every kind true of the individual: declared kinds, their true subkinds, and all ancestors."""
        result: List[Kind] = []

        def downward(kind: Kind) -> None:
            if kind in result or not self.is_a(individual, kind):
                return
            result.append(kind)
            for sub in kind.subkinds:
                downward(sub)
            upward(kind)

        def upward(kind: Kind) -> None:
            for parent in kind.superkinds:
                if parent not in result and self.is_a(individual, parent):
                    result.append(parent)
                    upward(parent)

        for kind in individual.kinds:
            downward(kind)
        return result

    def most_specific_nouns(self, individual: Individual) -> List[Kind]:
        """The true kinds that no other true kind is more specific than."""
        nouns: List[Kind] = []

        def maybe_add(kind: Kind) -> None:
            if kind in nouns or not self.is_a(individual, kind):
                return
            nouns.append(kind)
            for sub in kind.subkinds:
                maybe_add(sub)

        for kind in individual.kinds:
            maybe_add(kind)

        redundant: Set[int] = set()
        for kind in nouns:
            for parent in kind.superkinds:
                redundant.update(k.id for k in parent.ancestors())
        return [k for k in nouns if k.id not in redundant]

    def adjectives_describing(self, individual: Individual) -> List[Adjective]:
        """Adjectives relevant to, implied by, or alternatives of a true kind, that hold."""
        candidates: List[Adjective] = []
        for kind in self.true_kinds(individual):
            concepts: List[MonadicConcept] = list(kind.relevant_adjectives)
            concepts.extend(a.concept for s in kind.alternative_sets for a in s.alternatives)
            concepts.extend(i.modifier.concept for i in kind.implied_adjectives)
            for concept in concepts:
                if isinstance(concept, Adjective) and concept not in candidates:
                    candidates.append(concept)
        return [a for a in candidates if self.is_a(individual, a)]

    def relationships(self) -> List[Tuple[Verb, Individual, Individual]]:
        """Every (verb, subject, object) triple true in the model."""
        found: List[Tuple[Verb, Individual, Individual]] = []
        for verb in self.generator.ontology.verbs:
            if verb.subject_kind is None or verb.object_kind is None:
                continue
            for subject, obj in self.generator.domain(verb):
                if not self.holds(verb, subject, obj):
                    continue
                # A symmetric pair is reported once.
                if verb.ancestor_is_symmetric and subject.uid > obj.uid and self.holds(verb, obj, subject):
                    continue
                found.append((verb, subject, obj))
        return found

    def describe_relationship(self, verb: Verb, subject: Individual, obj: Individual) -> str:
        return f"{self.name_string(subject)} {untokenize(verb.singular_form or verb.name)} {self.name_string(obj)}"

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def description(self, individual: Individual) -> str:
        """
        Render `individual` with the nearest description template.
        The result is also stored on the individual as `most_recent_description`.
        """
        if not individual.kinds:
            text = f"{individual.text} has no nouns that apply to it"
            individual.most_recent_description = text
            return text

        suppressed: List[Property] = []
        template_kind = self._find_template_kind(individual, "description_template")
        if template_kind is not None:
            template: Sequence[str] = template_kind.description_template
        else:
            template = DEFAULT_DESCRIPTION_TEMPLATE
            template_kind = individual.kinds[0]

        fragments: List[Tuple[str, bool]] = []
        for literal, placeholder in _split_template(template):
            if placeholder is None:
                fragments.append((literal, True))
            else:
                fragments.append((self._expand(individual, placeholder, template_kind, suppressed), False))

        text = self._tidy(_join(fragments))
        individual.most_recent_description = text
        return text

    def descriptions(self) -> List[str]:
        """Each requested object followed by its parts, depth first."""
        lines: List[str] = []
        walked: Set[int] = set()

        def walk(individual: Individual) -> None:
            if individual.uid in walked:
                return
            walked.add(individual.uid)
            lines.append(self.description(individual))
            for child in self.ephemeral_individuals:
                if child.container is individual:
                    walk(child)

        for individual in self.ephemeral_individuals:
            if individual.container is None:
                walk(individual)
        return lines

    def name_string(self, individual: Individual, suppressed: Optional[List[Property]] = None) -> str:
        if individual.container is not None:
            prefix = f"{self.name_string(individual.container)}'s "
            own_name = list(individual.name)[1:]
        else:
            prefix = ""
            own_name = list(individual.name)

        name_property = individual.name_property()
        if name_property is not None:
            if suppressed is not None:
                suppressed.append(name_property)
            value = self.property_value(individual, name_property)
            return prefix + (str(value) if value is not None else "<undefined name>")

        template_kind = self._find_template_kind(individual, "name_template")
        if template_kind is not None:
            return prefix + self._format_name(individual, template_kind, suppressed)
        return prefix + untokenize(own_name)

    def _format_name(self, individual: Individual, kind: Kind, suppressed: Optional[List[Property]]) -> str:
        fragments: List[Tuple[str, bool]] = []
        for literal, placeholder in _split_template(kind.name_template):
            if placeholder is None:
                fragments.append((literal, True))
                continue
            prop = kind.property_named(placeholder)
            if prop is None:
                fragments.append((f"<unknown property {untokenize(placeholder)}>", False))
                continue
            fragments.append((self._format_value(self.property_value(individual, prop)), False))
            if suppressed is not None:
                suppressed.append(prop)
        return self._tidy(_join(fragments))

    def _expand(self, individual: Individual, placeholder: List[str], kind: Kind, suppressed: List[Property]) -> str:
        if len(placeholder) == 1:
            key = placeholder[0]
            if key == "NameString":
                return self.name_string(individual, suppressed)
            if key == "Modifiers":
                return ", ".join(a.text for a in self.adjectives_describing(individual) if not a.is_silent)
            if key == "Noun":
                return " ".join(k.text for k in self.most_specific_nouns(individual))
            if key == "AllProperties":
                return "".join(
                    f", {prop.text}: {self._format_value(self.property_value(individual, prop))}"
                    for prop in individual.properties
                    if prop not in suppressed
                )

        prop = kind.property_named(placeholder)
        if prop is not None:
            suppressed.append(prop)
            return self._format_value(self.property_value(individual, prop))
        part = kind.part_named(placeholder)
        if part is not None and part in individual.parts:
            return self.description(individual.parts[part])
        return f"<unknown property {untokenize(placeholder)}>"

    def _find_template_kind(self, individual: Individual, attribute: str) -> Optional[Kind]:
        """Nearest templated kind, searching the most specific true kinds first."""
        kinds: Iterable[Kind] = self.most_specific_nouns(individual) or individual.kinds
        for kind in kinds:
            found = kind.find_template_kind(attribute)
            if found is not None:
                return found
        return None

    @staticmethod
    def _format_value(value: Any) -> str:
        if value is None:
            return "<undefined>"
        if isinstance(value, float):
            return str(int(round(value)))
        return str(value)

    def _tidy(self, text: str) -> str:
        text = re.sub(r"\s+", " ", text).strip()
        text = re.sub(r" ([,.;:!?])", r"\1", text)
        inflector = self.generator.ontology.inflector
        return _ARTICLE.sub(lambda m: m.group(1) + inflector.indefinite_article(m.group(2))[1:] + " ", text)


def _split_template(template: Sequence[str]) -> List[Tuple[str, Optional[List[str]]]]:
    """Pair each literal token with None, and each [placeholder] with its tokens."""
    result: List[Tuple[str, Optional[List[str]]]] = []
    tokens = list(template)
    n = 0
    while n < len(tokens):
        token = tokens[n]
        if token == "[":
            try:
                end = tokens.index("]", n)
            except ValueError:
                end = len(tokens)
            result.append(("", tokens[n + 1:end]))
            n = end + 1
        else:
            result.append((token, None))
            n += 1
    return result


def _join(fragments: Sequence[Tuple[str, bool]]) -> str:
    """
    Join template text with expanded values.
    Literal punctuation attaches to the previous word and a literal hyphen
    takes no spaces, as in `untokenize`. Expanded values are opaque words.
    """
    out: List[str] = []
    after_hyphen = False
    for text, literal in fragments:
        if not text:
            continue
        attaches = literal and is_punctuation(text)
        if out and not attaches and not after_hyphen:
            out.append(" ")
        out.append(text)
        after_hyphen = literal and text == "-"
    return "".join(out)
