# ontogen/core/parsing/rules.py
"""
core/parsing/rules.py

The standard library of declaration patterns.

Patterns are tried in list order and the first full match wins, so more
specific forms must precede the general ones that would also swallow them:

1. "can be up to N of" and the passive "be V-ed by" forms, which the
   adjective and relation forms would otherwise read as an adjective phrase
   or a verb starting with "be";
2. relations with explicit counts, before the one/many/other form whose
   verb segment would otherwise absorb "up to" or "exactly";
3. reflexive, symmetric and anti-symmetric relations;
4. the remaining forms, with verb-naming forms ahead of the noun-naming
   ones.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

from ontogen.core.domain.concepts import (
    UNBOUNDED,
    FloatDomain,
    Kind,
    Literal,
    Menu,
    MenuRule,
    Part,
    ProperNoun,
    Verb,
)
from ontogen.core.domain.exceptions import DefinitionFileNotFoundError, GrammaticalError, OntologyContradictionError
from ontogen.core.domain.tokens import TokenString

from .patterns import SentencePattern
from .segments import Number

if TYPE_CHECKING:
    from .parser import Parser


def _merge_modifiers(target: List[Literal], modifiers: Iterable[Literal]) -> None:
    for m in modifiers:
        if m not in target:
            target.append(m)


def _unify_kinds(verb: Verb, kind: Kind) -> None:
    """Make the verb relate `kind` to `kind`, widening what it already relates."""
    lub = Kind.least_upper_bound(Kind.least_upper_bound(verb.subject_kind, verb.object_kind), kind)
    if lub is None:
        raise OntologyContradictionError(
            f"'{verb.text}' already relates things that are not {kind.plural or kind.text}"
        )
    verb.subject_kind = verb.object_kind = lub


def _set_object_bounds(verb: Verb, lower: int, upper: int) -> None:
    if lower > upper:
        raise OntologyContradictionError(f"cannot {verb.text} at least {lower} but at most {upper} things")
    verb.object_lower_bound = lower
    verb.object_upper_bound = upper


def _bounds_for(phrase: Optional[Sequence[str]], count: int) -> tuple:
    """(lower, upper) for 'up to N', 'at least N' or 'exactly N'."""
    first = phrase[0].lower() if phrase else ""
    if first == "up":
        return 0, count
    if first == "at":
        return count, UNBOUNDED
    return count, count


def standard_patterns(p: "Parser") -> List[SentencePattern]:
    ontology = p.ontology

    bound = p.count_bound

    def must() -> bool:
        return p.can_must.first_word == "must"

    # -- relations -----------------------------------------------------------

    def declare_relation_kinds(verb: Verb) -> None:
        verb.set_kinds(p.subject.common_noun, p.object.common_noun)
        _merge_modifiers(verb.subject_modifiers, p.subject.modifiers)
        _merge_modifiers(verb.object_modifiers, p.object.modifiers)

    def passive_bounds() -> None:
        verb = p.verb.verb
        # The grammatical subject is the relation's object here.
        verb.set_kinds(p.object.common_noun, p.subject.common_noun)
        _merge_modifiers(verb.subject_modifiers, p.object.modifiers)
        _merge_modifiers(verb.object_modifiers, p.subject.modifiers)
        lower, upper = _bounds_for(bound.matched, p.lower_bound)
        if must():
            lower = max(1, lower)
        if lower > upper:
            raise OntologyContradictionError(f"cannot be {verb.text} by at least {lower} but at most {upper} things")
        verb.subject_lower_bound = lower
        verb.subject_upper_bound = upper

    def bounded_relation() -> None:
        verb = p.verb.verb
        declare_relation_kinds(verb)
        lower, upper = _bounds_for(bound.matched, p.lower_bound)
        if must():
            lower = max(1, lower)
        _set_object_bounds(verb, lower, upper)

    def ranged_relation() -> None:
        verb = p.verb.verb
        declare_relation_kinds(verb)
        _set_object_bounds(verb, p.lower_bound, p.upper_bound)

    def quantified_relation() -> None:
        verb = p.verb.verb
        declare_relation_kinds(verb)
        if not p.quantifier.is_plural:
            verb.is_function = True
        # "Cats can love other cats" rules out loving oneself; "many cats" does not.
        if p.quantifier.is_other:
            verb.is_anti_reflexive = True
        if must():
            verb.is_total = True

    def anti_reflexive() -> None:
        _unify_kinds(p.verb.verb, p.subject.common_noun)
        p.verb.verb.is_anti_reflexive = True

    def reflexive() -> None:
        _unify_kinds(p.verb.verb, p.subject.common_noun)
        p.verb.verb.is_reflexive = True

    def symmetric() -> None:
        _unify_kinds(p.verb.verb, p.subject.common_noun)
        p.verb.verb.is_symmetric = True

    def anti_symmetric() -> None:
        _unify_kinds(p.verb.verb, p.subject.common_noun)
        p.verb.verb.is_anti_symmetric = True

    def density() -> None:
        p.verb.verb.density = p.rare_common.value

    def mutually_exclusive() -> None:
        verb, other = p.verb.verb, p.verb2.verb
        if other not in verb.mutual_exclusions:
            verb.mutual_exclusions.append(other)

    def generalization() -> None:
        verb, general = p.verb.verb, p.verb2.verb
        if general not in verb.generalizations:
            verb.generalizations.append(general)

    def way_of() -> None:
        specific, general = p.verb.verb, p.verb2.verb
        if general.subject_kind is None:
            general.subject_kind = specific.subject_kind
        if general.object_kind is None:
            general.object_kind = specific.object_kind
        specific.declare_superspecies(general)

    # -- kinds ---------------------------------------------------------------

    def kind_probability() -> None:
        p.subject.common_noun.initial_probability = p.rare_common.value

    def declare_supertype(kind: Kind) -> None:
        kind.declare_superclass(p.object.common_noun)
        for modifier in p.object.modifiers:
            kind.add_implied(modifier)

    def kind_of() -> None:
        declare_supertype(p.subject.common_noun)

    def kinds_of() -> None:
        for noun in p.subject_list.concepts:
            if not isinstance(noun, Kind):
                raise GrammaticalError(
                    f"The noun '{noun.text}' is a proper noun (a name of a specific thing), "
                    "but I need a common noun (a kind of thing) here"
                )
            declare_supertype(noun)

    def plural_form() -> None:
        p.subject.number = Number.SINGULAR
        p.subject.common_noun.set_plural(p.object.text)

    def singular_form() -> None:
        p.subject.number = Number.PLURAL
        p.subject.common_noun.set_singular(p.object.text)

    def name_template() -> None:
        p.subject.common_noun.name_template = list(p.text.text)

    def description_template() -> None:
        p.subject.common_noun.description_template = list(p.text.text)

    def proper_noun_kind() -> None:
        proper = p.subject.noun
        proper.individual.add_kind(p.object.common_noun)
        for modifier in p.object.modifiers:
            proper.individual.add_modifier(modifier)

    def implied_kind() -> None:
        kind = p.subject.common_noun
        conditions = p.subject.modifiers
        kind.add_implied(Literal(p.object.common_noun), conditions)
        for modifier in p.object.modifiers:
            kind.add_implied(modifier, conditions)

    # -- adjectives ----------------------------------------------------------

    def relevant_adjective() -> None:
        kind = p.subject.common_noun
        adjective = p.predicate_ap.adjective
        if not adjective.relevant_to(kind):
            kind.add_relevant_adjective(adjective)

    def silent_adjective() -> None:
        p.predicate_ap.adjective.is_silent = True

    def predicate_adjective() -> None:
        noun = p.subject.noun
        if isinstance(noun, Kind):
            noun.add_implied(p.predicate_ap.literal, p.subject.modifiers)
        elif isinstance(noun, ProperNoun):
            noun.individual.add_modifier(p.predicate_ap.literal)
        else:
            raise GrammaticalError(f"I don't know what kind of noun '{p.subject.text}' is")

    def alternatives() -> List[Literal]:
        return [ap.literal for ap in p.predicate_ap_list.expressions]

    def any_n_of() -> None:
        p.subject.common_noun.add_alternative_set(alternatives(), p.lower_bound, p.lower_bound)

    def between_n_of() -> None:
        p.subject.common_noun.add_alternative_set(alternatives(), p.lower_bound, p.upper_bound)

    def up_to_n_of() -> None:
        p.subject.common_noun.add_alternative_set(alternatives(), 0, p.lower_bound)

    def required_choice() -> None:
        p.subject.common_noun.add_alternative_set(alternatives(), 1, 1)

    def optional_choice() -> None:
        p.subject.common_noun.add_alternative_set(alternatives(), 0, 1)

    # -- properties and parts ------------------------------------------------

    def numeric_property() -> None:
        if p.lower_bound > p.upper_bound:
            raise OntologyContradictionError(
                f"{p.object.text} cannot be between {p.lower_bound} and {p.upper_bound}"
            )
        prop = p.subject.common_noun.ensure_property(p.object.text)
        prop.domain = FloatDomain(str(p.object.text), float(p.lower_bound), float(p.upper_bound))

    def menu_property() -> None:
        from .parser import is_valid_filename

        menu_name = str(p.list_name.text)
        if not is_valid_filename(menu_name):
            raise GrammaticalError(f'The list name "{menu_name}" is not a valid file name')
        if ontology.definitions is None:
            raise DefinitionFileNotFoundError(menu_name, "<no project>")
        menu = Menu(menu_name, tuple(ontology.definitions.load_menu(menu_name)))
        prop = p.subject.common_noun.ensure_property(p.object.text)
        prop.menu_rules.append(MenuRule(tuple(p.subject.modifiers), menu))

    def part() -> None:
        kind = p.subject.common_noun
        name = TokenString(p.text.text)
        if any(existing.name == name for existing in kind.parts):
            return
        kind.parts.append(Part(ontology, name, p.object.common_noun, p.object.modifiers))

    # -- tests ---------------------------------------------------------------

    def existence_test() -> None:
        should_exist = p.exist_not_exist.first_word == "exist"
        ontology.add_test(
            p.subject.common_noun,
            p.subject.modifiers,
            should_exist,
            f"Test succeeded: {p.current_input}",
            f"Test failed: {p.current_input}",
        )

    return [
        SentencePattern(
            p,
            [p.optional_all, p.subject, "can", "be", "up", "to", p.lower, "of", p.predicate_ap_list],
            up_to_n_of,
            checks=[p.subject_default_plural, p.subject_unmodified, p.subject_common_noun],
            doc="Declares the number of Adjectives true of Subjects can never be more than the specified number.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.can_must, "be", p.verb, "by", bound, p.lower, p.object],
            passive_bounds,
            checks=[
                p.verb_participle_form,
                p.subject_common_noun,
                p.object_common_noun,
                p.object_count_agree("lower_bound"),
            ],
            doc="Specifies how many Objects can (or must) Verb each Subject.  "
            "For example, 'cats can be owned by up to 2 people'.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.can_must, p.verb, bound, p.lower, p.object],
            bounded_relation,
            checks=[
                p.verb_base_form,
                p.subject_common_noun,
                p.object_common_noun,
                p.object_count_agree("lower_bound"),
            ],
            doc="Specifies how many Objects a Subject can Verb: up to, at least or exactly the given number.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.can_must, p.verb, "between", p.lower, "and", p.upper, p.object],
            ranged_relation,
            checks=[p.verb_base_form, p.subject_common_noun, p.object_common_noun, p.object_count_agree("upper_bound")],
            doc="Specifies a range for the number of Objects a Subject can Verb.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.can_not, p.verb, p.reflexive],
            anti_reflexive,
            checks=[p.verb_base_form, p.subject_common_noun],
            doc="States that the verb can't hold between an object and itself.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.must_always, p.verb, p.reflexive],
            reflexive,
            checks=[p.verb_base_form, p.subject_common_noun],
            doc="States that the verb always holds between objects and themselves.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, "can", p.verb, p.each_other],
            symmetric,
            checks=[p.verb_base_form, p.subject_common_noun],
            doc="States that the verb is symmetric: if a verbs b, then b verbs a.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.can_not, p.verb, p.each_other],
            anti_symmetric,
            checks=[p.verb_base_form, p.subject_common_noun],
            doc="States that the verb is anti-symmetric: a and b can never both verb each other.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.can_must, p.verb, p.quantifier, p.object],
            quantified_relation,
            checks=[p.verb_base_form, p.object_quantifier_agree, p.subject_common_noun, p.object_common_noun],
            doc="Specifies how many Objects a given Subject can Verb.  "
            "For example, 'cats can love many people' or 'a person must have one other person'.",
        ),
        SentencePattern(
            p,
            [p.verb, "is", p.rare_common],
            density,
            checks=[p.verb_gerund_form],
            doc="States that Verb'ing is rare or common.",
        ),
        SentencePattern(
            p,
            [p.verb, "and", p.verb2, "are", "mutually", "exclusive"],
            mutually_exclusive,
            checks=[p.verb_gerund_form, p.verb2_gerund_form],
            doc="States that two objects cannot be related by both verbs at once.",
        ),
        SentencePattern(
            p,
            [p.verb, "is", "mutually", "exclusive", "with", p.verb2],
            mutually_exclusive,
            checks=[p.verb_gerund_form, p.verb2_gerund_form],
            doc="States that two objects cannot be related by both verbs at once.",
        ),
        SentencePattern(
            p,
            [p.verb, "implies", p.verb2],
            generalization,
            checks=[p.verb_gerund_form, p.verb2_gerund_form],
            doc="States that two objects being related by the first verb means they are also related by the second.",
        ),
        SentencePattern(
            p,
            [p.verb, "is", "a", "way", "of", p.verb2],
            way_of,
            checks=[p.verb_gerund_form, p.verb2_gerund_form],
            doc="Like 'is a kind of' but for verbs: Verb implies Verb2, and Verb2 implies exactly one of its ways.",
        ),
        SentencePattern(
            p,
            [p.subject, "are", p.rare_common],
            kind_probability,
            checks=[p.subject_plural, p.subject_unmodified, p.subject_common_noun],
            doc="States that the specified kind of object is rare/common.",
        ),
        SentencePattern(
            p,
            [p.subject, p.is_, "a", "kind", "of", p.object],
            kind_of,
            checks=[
                p.subject_verb_agree,
                p.object_singular,
                p.subject_unmodified,
                p.subject_common_noun,
                p.object_common_noun,
            ],
            doc="Declares that all Subjects are also Objects.  "
            "For example, 'cat is a kind of animal' says anything that is a cat is also an animal.",
        ),
        SentencePattern(
            p,
            [p.subject_list, p.is_, "kinds", "of", p.object],
            kinds_of,
            checks=[p.object_singular, p.object_common_noun],
            doc="Declares that every noun in the list is a kind of Object.  "
            "So 'dogs and cats are kinds of animal' states that all dogs and all cats are also animals.",
        ),
        SentencePattern(
            p,
            ["the", "plural", "of", p.subject, "is", p.object],
            plural_form,
            checks=[p.subject_unmodified, p.object_unmodified, p.subject_common_noun],
            doc="Lets you correct the system's guess as to the plural of a noun.",
        ),
        SentencePattern(
            p,
            ["the", "singular", "of", p.subject, "is", p.object],
            singular_form,
            checks=[p.subject_unmodified, p.object_unmodified, p.subject_common_noun],
            doc="Lets you correct the system's guess as to the singular form of a noun.",
        ),
        SentencePattern(
            p,
            [p.subject, p.is_, "identified", "as", '"', p.text, '"'],
            name_template,
            checks=[p.subject_unmodified, p.subject_common_noun],
            doc="Tells the system how to print the name of an object.",
        ),
        SentencePattern(
            p,
            [p.subject, p.is_, "described", "as", '"', p.text, '"'],
            description_template,
            checks=[p.subject_unmodified, p.subject_common_noun],
            doc="Tells the system how to generate the description of an object.",
        ),
        SentencePattern(
            p,
            [p.subject, "is", p.object],
            proper_noun_kind,
            checks=[p.subject_proper_noun, p.object_common_noun, p.object_explicitly_singular],
            doc="States that proper noun Subject is of the type Object.  For example, 'Ben is a person'.",
        ),
        SentencePattern(
            p,
            [p.subject, "is", p.optional_always, p.object],
            implied_kind,
            checks=[p.subject_common_noun, p.object_common_noun, p.object_explicitly_singular],
            doc="States that a Subject is always also an Object.  The Object must be singular, as in 'a noun'.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, "can", "be", p.predicate_ap],
            relevant_adjective,
            checks=[p.subject_default_plural, p.subject_unmodified, p.subject_common_noun],
            doc="Declares that Subjects can be Adjective, but don't have to be.",
        ),
        SentencePattern(
            p,
            ["do", "not", "mention", "being", p.predicate_ap],
            silent_adjective,
            doc="Declares that the specified adjective shouldn't be mentioned in descriptions.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.is_, "any", p.lower, "of", p.predicate_ap_list],
            any_n_of,
            checks=[p.subject_verb_agree, p.subject_unmodified, p.subject_common_noun],
            doc="Declares the specified number of Adjectives must be true of Subjects.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.is_, "between", p.lower, "and", p.upper, "of", p.predicate_ap_list],
            between_n_of,
            checks=[p.subject_verb_agree, p.subject_unmodified, p.subject_common_noun],
            doc="Declares the number of Adjectives true of Subjects must be in the specified range.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.is_, p.predicate_ap],
            predicate_adjective,
            checks=[p.subject_verb_agree],
            doc="Declares that Subjects are always Adjective.  "
            "For example, 'cats are fuzzy' declares that all cats are also fuzzy.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.is_, p.predicate_ap_list],
            required_choice,
            checks=[p.subject_verb_agree, p.subject_unmodified, p.subject_common_noun],
            doc="Declares that Subjects must be one of the Adjectives.  "
            "So 'cats are big or small' says cats are always either big or small, but not both or neither.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, "can", "be", p.predicate_ap_list],
            optional_choice,
            checks=[p.subject_default_plural, p.subject_unmodified, p.subject_common_noun],
            doc="Declares that Subjects can be any one of the Adjectives, but don't have to be.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.has, p.object, "between", p.lower, "and", p.upper],
            numeric_property,
            checks=[p.subject_verb_agree, p.subject_unmodified, p.object_unmodified, p.subject_common_noun],
            doc="Says Subjects have a property, Object, that is a number in the specified range.  "
            "For example, 'cats have an age between 1 and 20'.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.has, p.object, "from", p.list_name],
            menu_property,
            checks=[p.subject_verb_agree, p.object_unmodified, p.subject_common_noun],
            doc="States that Subjects have a property whose possible values are given in the specified list file.  "
            "For example 'cats have a name from cat names'.",
        ),
        SentencePattern(
            p,
            [p.optional_all, p.subject, p.has, p.object, "called", "its", p.text],
            part,
            checks=[p.subject_verb_agree, p.subject_common_noun, p.object_common_noun],
            doc="States that Subjects have a part called Text that is an Object.",
        ),
        SentencePattern(
            p,
            [p.subject, "should", p.exist_not_exist],
            existence_test,
            checks=[p.subject_common_noun],
            doc="Adds a new test to the list of tests to perform when the test command is used.",
        ),
    ]
