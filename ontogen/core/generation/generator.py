# ontogen/core/generation/generator.py
"""
core/generation/generator.py

Compiles the ontology, for one "imagine" request, into a constraint problem.

The individuals of the problem are the requested objects, their parts
(recursively), and the permanent individual of every proper noun. For each
of them the generator emits:

- its declared kinds and, walking upward once per (individual, kind), every
  superkind;
- an exactly-one choice among the subkinds of each declared kind, recursing
  downward;
- implied adjectives, alternative sets and property variables of every kind
  it is or might be;
- its declared modifiers.

Then, for every verb with known subject and object kinds, a holds
proposition per eligible (subject, object) pair and the verb's cardinality,
reflexivity, symmetry, generalization, exclusion and specialisation
constraints.

Kind membership that is structurally impossible (the kind is neither an
ancestor nor a descendant of any declared kind) compiles to the constant
`FALSE` instead of a proposition.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

import structlog
from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt

from ontogen.core.domain.concepts import UNBOUNDED, Kind, Literal, MonadicConcept, Property, Verb
from ontogen.core.domain.constraints import FALSE, Proposition, SolverLiteral
from ontogen.core.domain.exceptions import OntologyContradictionError, SolverTimeoutError, UnsatisfiableError
from ontogen.core.domain.individual import Individual
from ontogen.core.domain.ontology import OntologyContext
from ontogen.core.domain.tokens import untokenize
from ontogen.core.ports.solver import IConstraintProblem, ISolver
from ontogen.shared.observability import get_tracer

from .invention import Invention

logger = structlog.get_logger()
tracer = get_tracer(__name__)

# Alternative sets smaller than this start with every alternative off, so the
# solver only has to switch one or two on.
SMALL_ALTERNATIVE_SET = 3


class Generator:
    def __init__(
        self,
        ontology: OntologyContext,
        solver: ISolver,
        noun: Kind,
        modifiers: Sequence[Literal] = (),
        count: int = 1,
    ) -> None:
        self.ontology = ontology
        self.solver = solver
        self.noun = noun
        self.modifiers: Tuple[Literal, ...] = tuple(modifiers)
        self.count = count

        self.ephemeral_individuals: List[Individual] = []
        self.individuals: List[Individual] = []
        self.problem: IConstraintProblem = solver.new_problem("invention")

        self._asserted: Set[SolverLiteral] = set()
        self._kinds_formalized: Set[Tuple[int, int]] = set()
        self._subclasses_expanded: Set[Tuple[int, int]] = set()
        self._propositions: Dict[Tuple[int, int], Proposition] = {}
        self.rebuild()

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def rebuild(self) -> None:
        """
        Recompile the problem from the current ontology.

        Raises:
            OntologyContradictionError: If a cardinality bound cannot be met
                by the individuals of this problem.
        """
        self.problem = self.solver.new_problem("invention")
        self._asserted.clear()
        self._kinds_formalized.clear()
        self._subclasses_expanded.clear()
        self._propositions.clear()

        self._determine_individuals()
        for individual in self.individuals:
            self._add_formalization(individual)
        self._build_verb_clauses()
        logger.debug(
            "problem_compiled",
            noun=self.noun.text,
            count=self.count,
            individuals=len(self.individuals),
        )

    def _determine_individuals(self) -> None:
        self.ephemeral_individuals = []
        concepts = list(self.modifiers) + [Literal(self.noun)]
        singular = list(self.noun.singular or self.noun.name)
        if self.count == 1:
            self._ephemeral(concepts, ["the"] + singular)
        else:
            for index in range(self.count):
                self._ephemeral(concepts, singular + [str(index)])

        for individual in list(self.ephemeral_individuals):
            self._add_parts(individual)

        self.individuals = self.ephemeral_individuals + list(self.ontology.permanent_individuals.values())

    def _ephemeral(self, concepts, name, container: Optional[Individual] = None) -> Individual:
        individual = Individual(self.ontology.next_uid(), concepts, name=name, container=container)
        self.ephemeral_individuals.append(individual)
        return individual

    def _add_parts(self, individual: Individual) -> None:
        seen: Set[int] = set()
        for kind in individual.kinds:
            for k in kind.ancestors():
                if k.id in seen:
                    continue
                seen.add(k.id)
                for part in k.parts:
                    child = self._ephemeral(
                        list(part.modifiers) + [Literal(part.kind)],
                        ["'s"] + list(part.name),
                        container=individual,
                    )
                    individual.parts[part] = child
                    self._add_parts(child)

    def _add_formalization(self, individual: Individual) -> None:
        individual.properties.clear()
        for kind in list(individual.kinds):
            if self._assert_kind(individual, kind):
                self._solve_for_subclass(individual, kind)
        for modifier in individual.modifiers:
            self._maybe_assert(self.satisfies(individual, modifier))

    def _assert_kind(self, individual: Individual, kind: Kind) -> bool:
        """Assert `individual` is a `kind`, then each superkind. False if already done."""
        is_k = self.is_a(individual, kind)
        if not self._maybe_assert(is_k):
            return False
        for parent in kind.superkinds:
            self._assert_kind(individual, parent)
        self._formalize_kind_instance(individual, kind)
        for prop in kind.properties:
            if prop not in individual.properties:
                variable = self._instantiate(individual, prop, is_k)
                if variable is not None:
                    individual.properties[prop] = variable
        return True

    def _instantiate(self, individual: Individual, prop: Property, guard: SolverLiteral):
        name = f"{prop.text}#{individual.uid}"
        if prop.domain is not None:
            return self.problem.float_variable(name, prop.domain.lower, prop.domain.upper, guard)
        if not prop.menu_rules:
            return None
        variable = self.problem.menu_variable(name, guard)
        for rule in prop.menu_rules:
            membership = self.problem.in_menu(variable, rule.menu.name, rule.menu.values)
            self.problem.add_clause(
                [~self.satisfies(individual, c) for c in rule.conditions] + [~guard, membership]
            )
        return variable

    def _solve_for_subclass(self, individual: Individual, kind: Kind) -> None:
        """`individual` might be a `kind`: if it is, it is exactly one of its subkinds."""
        key = (individual.uid, kind.id)
        if key in self._subclasses_expanded:
            return
        self._subclasses_expanded.add(key)

        is_k = self.is_a(individual, kind)
        # Starting subkinds at 0 lets the solver satisfy the uniqueness
        # constraint by switching a single one on.
        if isinstance(is_k, Proposition) and kind.initial_probability == 0.5:
            is_k.initial_probability = 0
        self._formalize_kind_instance(individual, kind)
        subkinds = kind.subkinds
        if not subkinds:
            return
        self.problem.unique([self.is_a(individual, sub) for sub in subkinds] + [~is_k])
        for sub in subkinds:
            self._solve_for_subclass(individual, sub)

    def _formalize_kind_instance(self, individual: Individual, kind: Kind) -> None:
        key = (individual.uid, kind.id)
        if key in self._kinds_formalized:
            return
        self._kinds_formalized.add(key)
        is_k = self.is_a(individual, kind)

        for implied in kind.implied_adjectives:
            self.problem.add_clause(
                [~self.satisfies(individual, c) for c in implied.conditions]
                + [~is_k, self.satisfies(individual, implied.modifier)]
            )

        for adjective in kind.relevant_adjectives:
            self.is_a(individual, adjective)

        for alternative_set in kind.alternative_sets:
            if alternative_set.max_count < SMALL_ALTERNATIVE_SET:
                for literal in alternative_set.alternatives:
                    prop = self.is_a(individual, literal.concept)
                    if isinstance(prop, Proposition):
                        prop.initial_probability = 0 if literal.is_positive else 1
            literals = [self.satisfies(individual, a) for a in alternative_set.alternatives]
            # ~is_k repeated min_count times releases the lower bound for non-members.
            self.problem.at_least(alternative_set.min_count, literals + [~is_k] * alternative_set.min_count)
            if alternative_set.max_count < len(literals):
                self.problem.at_most(alternative_set.max_count, literals)

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def _compilable_verbs(self) -> List[Verb]:
        verbs = []
        for verb in self.ontology.verbs:
            if verb.subject_kind is None or verb.object_kind is None:
                logger.debug("verb_skipped", verb=verb.text, reason="missing subject or object kind")
                continue
            verbs.append(verb)
        return verbs

    def _build_verb_clauses(self) -> None:
        verbs = self._compilable_verbs()
        for verb in verbs:
            for subject, obj in self.domain(verb):
                holds = self.holds(verb, subject, obj)
                holds.initial_probability = verb.density
                self.problem.add_implication([holds], self.is_a(subject, verb.subject_kind))
                for m in verb.subject_modifiers:
                    self.problem.add_implication([holds], self.satisfies(subject, m))
                self.problem.add_implication([holds], self.is_a(obj, verb.object_kind))
                for m in verb.object_modifiers:
                    self.problem.add_implication([holds], self.satisfies(obj, m))
        for verb in verbs:
            self._build_cardinality(verb)
            self._build_reflexivity(verb)
            self._build_implications(verb)

    def domain(self, verb: Verb) -> Iterator[Tuple[Individual, Individual]]:
        """Every (subject, object) pair the verb could hold between."""
        anti_reflexive = verb.ancestor_is_anti_reflexive
        for subject in self.individuals:
            if not self.can_be_a(subject, verb.subject_kind):
                continue
            for obj in self.individuals:
                if (subject is not obj or not anti_reflexive) and self.can_be_a(obj, verb.object_kind):
                    yield subject, obj

    def _in_domain(self, verb: Verb, subject: Individual, obj: Individual) -> bool:
        if verb.subject_kind is None or verb.object_kind is None:
            return False
        if subject is obj and verb.ancestor_is_anti_reflexive:
            return False
        return self.can_be_a(subject, verb.subject_kind) and self.can_be_a(obj, verb.object_kind)

    def _build_cardinality(self, verb: Verb) -> None:
        subject_domain = [i for i in self.individuals if self.can_be_a(i, verb.subject_kind)]
        object_domain = [i for i in self.individuals if self.can_be_a(i, verb.object_kind)]

        if verb.object_upper_bound < UNBOUNDED or verb.object_lower_bound > 0:
            lower = verb.object_lower_bound
            for subject in subject_domain:
                if len(object_domain) < lower:
                    raise OntologyContradictionError(
                        f"Each {verb.subject_kind.text} must {untokenize(verb.singular_form or verb.name)} "
                        f"at least {lower} {untokenize(verb.object_kind.plural or ())}, "
                        f"but there are only {len(object_domain)} total {untokenize(verb.object_kind.plural or ())}"
                    )
                # Repeating ~is_a releases the lower bound when the subject is not of the kind.
                self.problem.quantify(
                    lower,
                    verb.object_upper_bound,
                    [self.holds(verb, subject, o) for o in object_domain]
                    + [~self.is_a(subject, verb.subject_kind)] * lower,
                )

        if verb.subject_upper_bound < UNBOUNDED or verb.subject_lower_bound > 0:
            lower = verb.subject_lower_bound
            for obj in object_domain:
                if len(subject_domain) < lower:
                    raise OntologyContradictionError(
                        f"Each {verb.object_kind.text} must be {untokenize(verb.passive_participle or verb.name)} "
                        f"by at least {lower} {untokenize(verb.subject_kind.plural or ())}, "
                        f"but there are only {len(subject_domain)} total {untokenize(verb.subject_kind.plural or ())}"
                    )
                self.problem.quantify(
                    lower,
                    verb.subject_upper_bound,
                    [self.holds(verb, s, obj) for s in subject_domain]
                    + [~self.is_a(obj, verb.object_kind)] * lower,
                )

    def _build_reflexivity(self, verb: Verb) -> None:
        both = [
            i for i in self.individuals
            if self.can_be_a(i, verb.subject_kind) and self.can_be_a(i, verb.object_kind)
        ]
        if verb.ancestor_is_anti_reflexive:
            for i in both:
                self._maybe_assert(~self.holds(verb, i, i))
        if verb.ancestor_is_reflexive:
            for i in both:
                self.problem.add_implication(
                    [self.is_a(i, verb.subject_kind), self.is_a(i, verb.object_kind)],
                    self.holds(verb, i, i),
                )
        if verb.ancestor_is_anti_symmetric:
            for index, first in enumerate(both):
                for second in both[index + 1:]:
                    self.problem.at_most(1, [self.holds(verb, first, second), self.holds(verb, second, first)])

    def _build_implications(self, verb: Verb) -> None:
        if not (verb.generalizations or verb.mutual_exclusions or verb.superspecies_ids or verb.subspecies_ids):
            return
        symmetric = verb.ancestor_is_symmetric
        for subject, obj in self.domain(verb):
            holds = self.holds(verb, subject, obj)
            for general in list(verb.generalizations) + verb.superspecies:
                if self._in_domain(general, subject, obj):
                    self.problem.add_implication([holds], self.holds(general, subject, obj))
                else:
                    self._maybe_assert(~holds)
            for excluded in verb.mutual_exclusions:
                if self._in_domain(excluded, subject, obj):
                    self.problem.at_most(1, [holds, self.holds(excluded, subject, obj)])
            subspecies = [s for s in verb.subspecies if self._in_domain(s, subject, obj)]
            if verb.subspecies_ids:
                literals: List[SolverLiteral] = []
                for sub in subspecies:
                    literals.append(self.holds(sub, subject, obj))
                    if symmetric and self._in_domain(sub, obj, subject):
                        literals.append(self.holds(sub, obj, subject))
                literals = _distinct(literals)
                self.problem.exactly(1, literals + [~holds])

    # ------------------------------------------------------------------
    # Propositions
    # ------------------------------------------------------------------

    def _maybe_assert(self, literal: SolverLiteral) -> bool:
        """Assert `literal` unless it already was. True if newly asserted."""
        if literal in self._asserted:
            return False
        self.problem.assert_literal(literal)
        self._asserted.add(literal)
        return True

    def can_be_a(self, individual: Individual, kind: Optional[Kind]) -> bool:
        """True if `kind` is an ancestor or descendant of one of the individual's kinds."""
        if kind is None:
            return False
        return any(kind.is_super_kind_of(k) or k.is_super_kind_of(kind) for k in individual.kinds)

    def is_a(self, individual: Individual, concept: MonadicConcept) -> SolverLiteral:
        """The literal for `concept` holding of `individual`."""
        if isinstance(concept, Kind) and not self.can_be_a(individual, concept):
            return FALSE
        key = (individual.uid, concept.id)
        prop = self._propositions.get(key)
        if prop is None:
            prop = self.problem.proposition(concept.text, individual)
            prop.initial_probability = concept.initial_probability
            self._propositions[key] = prop
        return prop

    def satisfies(self, individual: Individual, literal: Literal) -> SolverLiteral:
        prop = self.is_a(individual, literal.concept)
        return prop if literal.is_positive else ~prop

    def holds(self, verb: Verb, subject: Individual, obj: Individual) -> Proposition:
        return self.problem.proposition(verb.text, subject, obj, symmetric=verb.ancestor_is_symmetric)

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def solve(self, retries: int = 100) -> Optional[Invention]:
        """
        Solve the problem, retrying when the solver gives up.
        Returns None when the problem is unsatisfiable or every retry timed out.
        """
        with tracer.start_as_current_span("generator.solve") as span:
            span.set_attribute("ontogen.noun", self.noun.text)
            span.set_attribute("ontogen.count", self.count)
            retrying = Retrying(
                stop=stop_after_attempt(max(1, retries)),
                retry=retry_if_exception_type(SolverTimeoutError),
                before_sleep=_log_timeout,
                reraise=True,
            )
            try:
                solution = retrying(self.problem.solve)
            except SolverTimeoutError as e:
                logger.info("solve_gave_up", attempts=retrying.statistics.get("attempt_number"), budget=e.budget)
                span.set_attribute("ontogen.solved", False)
                return None
            except UnsatisfiableError as e:
                logger.info("solve_unsatisfiable", reason=e.message)
                span.set_attribute("ontogen.solved", False)
                return None
            span.set_attribute("ontogen.solved", True)
            span.set_attribute("ontogen.attempts", retrying.statistics.get("attempt_number", 1))
            return Invention(self, solution)


def _log_timeout(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception()
    logger.info("solve_timeout", attempt=retry_state.attempt_number, budget=getattr(error, "budget", None))


def _distinct(literals: Iterable[SolverLiteral]) -> List[SolverLiteral]:
    result: List[SolverLiteral] = []
    for literal in literals:
        if not any(literal is r for r in result):
            result.append(literal)
    return result
