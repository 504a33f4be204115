# ontogen/adapters/solvers/backtracking.py
"""
adapters/solvers/backtracking.py

A small randomised constraint solver implementing the `ISolver` port.

Every constraint is stored as a bounded count over literals: "between
`lower` and `upper` of these literals are true". A clause is the special
case (1, n). Search is chronological DPLL:

- variables are decided in a random order, each first tried with
  probability `initial_probability` of being true, so repeated solves of
  the same problem produce varied models;
- after every assignment, each constraint touching the variable is
  re-counted; a constraint at its upper bound forces its remaining
  literals false, one at its lower bound forces them true;
- on conflict the most recent untried decision is flipped.

Running past `max_conflicts` raises `SolverTimeoutError`; exhausting the
search raises `UnsatisfiableError`. Float variables are sampled uniformly
after the Boolean search; menu variables are encoded as one proposition
per candidate value.
"""

from __future__ import annotations

import random
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import structlog

from ontogen.core.domain.constraints import (
    Constant,
    FloatVariable,
    MenuVariable,
    Negation,
    ProblemStats,
    Proposition,
    SolverLiteral,
)
from ontogen.core.domain.exceptions import SolverTimeoutError, UnsatisfiableError
from ontogen.core.ports.solver import IConstraintProblem, ISolution, ISolver

logger = structlog.get_logger()


def _sort_key(arg: Any) -> Tuple[int, str]:
    uid = getattr(arg, "uid", None)
    return (uid if uid is not None else -1, str(arg))


class _Constraint:
    __slots__ = ("literals", "lower", "upper", "source")

    def __init__(self, literals: List[Tuple[int, bool]], lower: int, upper: int, source: str) -> None:
        self.literals = literals
        self.lower = lower
        self.upper = upper
        self.source = source


class BacktrackingSolution(ISolution):
    def __init__(self, assignment: List[Optional[bool]], values: Dict[Any, Any]) -> None:
        self._assignment = assignment
        self._values = values

    def __getitem__(self, key: Any) -> Any:
        if isinstance(key, Constant):
            return key.value
        if isinstance(key, Negation):
            return not self[key.proposition]
        if isinstance(key, Proposition):
            if key.index < len(self._assignment):
                return bool(self._assignment[key.index])
            return False
        if isinstance(key, (FloatVariable, MenuVariable)):
            return self._values[key]
        raise TypeError(f"Cannot look up {key!r} in a solution")

    def defines_variable(self, variable: Any) -> bool:
        return variable in self._values


class BacktrackingProblem(IConstraintProblem):
    def __init__(self, name: str, max_conflicts: int, rng: random.Random) -> None:
        self.name = name
        self.max_conflicts = max_conflicts
        self.random = rng
        self._propositions: List[Proposition] = []
        self._by_key: Dict[Tuple[Any, ...], Proposition] = {}
        self._constraints: List[_Constraint] = []
        self._floats: List[FloatVariable] = []
        self._menus: List[MenuVariable] = []
        self._encoded_menus: set = set()
        self._contradiction: Optional[str] = None
        self._solve_count = 0
        self._failures = 0
        self._solve_seconds = 0.0

    # ------------------------------------------------------------------
    # Propositions
    # ------------------------------------------------------------------

    def proposition(self, name: str, *args: Any, symmetric: bool = False) -> Proposition:
        if symmetric and len(args) == 2 and _sort_key(args[1]) < _sort_key(args[0]):
            args = (args[1], args[0])
        key = (name,) + tuple(args)
        existing = self._by_key.get(key)
        if existing is not None:
            return existing
        prop = Proposition(name, tuple(args), len(self._propositions))
        self._propositions.append(prop)
        self._by_key[key] = prop
        return prop

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def _add(self, literals: Iterable[SolverLiteral], lower: int, upper: int, source: str) -> None:
        entries: List[Tuple[int, bool]] = []
        already_true = 0
        for literal in literals:
            if isinstance(literal, Constant):
                if literal.value:
                    already_true += 1
                continue
            entries.append((literal.proposition.index, literal.is_positive))
        lower -= already_true
        upper -= already_true
        if lower <= 0 and upper >= len(entries):
            return
        if lower > len(entries) or upper < 0:
            if self._contradiction is None:
                self._contradiction = source
            return
        self._constraints.append(_Constraint(entries, max(lower, 0), upper, source))

    def assert_literal(self, literal: SolverLiteral) -> None:
        self._add([literal], 1, 1, "assert")

    def add_clause(self, literals: Iterable[SolverLiteral]) -> None:
        literals = list(literals)
        self._add(literals, 1, len(literals), "clause")

    def add_implication(self, antecedents: Iterable[SolverLiteral], consequent: SolverLiteral) -> None:
        self.add_clause([~a for a in antecedents] + [consequent])

    def at_most(self, k: int, literals: Sequence[SolverLiteral]) -> None:
        self._add(literals, 0, k, f"at most {k}")

    def at_least(self, k: int, literals: Sequence[SolverLiteral]) -> None:
        literals = list(literals)
        self._add(literals, k, len(literals), f"at least {k}")

    def exactly(self, k: int, literals: Sequence[SolverLiteral]) -> None:
        self._add(literals, k, k, f"exactly {k}")

    def unique(self, literals: Sequence[SolverLiteral]) -> None:
        self._add(literals, 1, 1, "unique")

    def quantify(self, lower: int, upper: int, literals: Sequence[SolverLiteral]) -> None:
        self._add(literals, lower, upper, f"{lower}-{upper}")

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def float_variable(self, name: str, lower: float, upper: float, condition: SolverLiteral) -> FloatVariable:
        variable = FloatVariable(name, lower, upper, condition)
        self._floats.append(variable)
        return variable

    def menu_variable(self, name: str, condition: SolverLiteral) -> MenuVariable:
        variable = MenuVariable(name, condition)
        self._menus.append(variable)
        return variable

    def in_menu(self, variable: MenuVariable, menu_name: str, values: Sequence[str]) -> Proposition:
        membership = self.proposition(f"{variable.name} in {menu_name}")
        variable.memberships.append((membership, tuple(values)))
        return membership

    def _value_proposition(self, variable: MenuVariable, value: str) -> Proposition:
        return self.proposition(f"{variable.name}={value}", variable)

    def _encode_menus(self) -> None:
        for variable in self._menus:
            if id(variable) in self._encoded_menus:
                continue
            self._encoded_menus.add(id(variable))
            candidates: List[str] = []
            for _, values in variable.memberships:
                candidates.extend(v for v in values if v not in candidates)
            if not candidates:
                continue
            value_props = [self._value_proposition(variable, v) for v in candidates]
            self.quantify(1, 1, value_props + [~variable.condition])
            for membership, values in variable.memberships:
                self.add_clause([~membership] + [self._value_proposition(variable, v) for v in values])

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def solve(self) -> BacktrackingSolution:
        self._encode_menus()
        started = time.perf_counter()
        self._solve_count += 1
        try:
            if self._contradiction is not None:
                raise UnsatisfiableError(f"{self._contradiction} constraint can never hold")
            assignment = self._search()
        except (UnsatisfiableError, SolverTimeoutError):
            self._failures += 1
            raise
        finally:
            self._solve_seconds += time.perf_counter() - started

        truth = BacktrackingSolution(assignment, {})
        values: Dict[Any, Any] = {}
        for variable in self._floats:
            if truth[variable.condition]:
                values[variable] = self.random.uniform(variable.lower, variable.upper)
        for variable in self._menus:
            if not truth[variable.condition]:
                continue
            for prop in self._propositions:
                if prop.args and prop.args[-1] is variable and truth[prop]:
                    values[variable] = prop.name[len(variable.name) + 1:]
                    break
        return BacktrackingSolution(assignment, values)

    def _search(self) -> List[Optional[bool]]:
        count = len(self._propositions)
        assign: List[Optional[bool]] = [None] * count
        occurs: List[List[int]] = [[] for _ in range(count)]
        for ci, c in enumerate(self._constraints):
            for index in {v for v, _ in c.literals}:
                occurs[index].append(ci)
        trail: List[int] = []

        def check(ci: int, queue: List[int]) -> bool:
            c = self._constraints[ci]
            true_count = 0
            free = []
            for v, positive in c.literals:
                value = assign[v]
                if value is None:
                    free.append((v, positive))
                elif value == positive:
                    true_count += 1
            if true_count > c.upper or true_count + len(free) < c.lower:
                return False
            if not free:
                return True
            if true_count == c.upper:
                force_true = False
            elif true_count + len(free) == c.lower:
                force_true = True
            else:
                return True
            for v, positive in free:
                wanted = positive if force_true else not positive
                if assign[v] is None:
                    assign[v] = wanted
                    trail.append(v)
                    queue.append(v)
                elif assign[v] != wanted:
                    return False
            return True

        def propagate(queue: List[int]) -> bool:
            while queue:
                v = queue.pop()
                for ci in occurs[v]:
                    if not check(ci, queue):
                        return False
            return True

        def undo_to(mark: int) -> None:
            while len(trail) > mark:
                assign[trail.pop()] = None

        queue: List[int] = []
        for ci in range(len(self._constraints)):
            if not check(ci, queue) or not propagate(queue):
                raise UnsatisfiableError()

        order = list(range(count))
        self.random.shuffle(order)
        decisions: List[Tuple[int, int, bool, bool]] = []
        conflicts = 0

        while True:
            v = next((x for x in order if assign[x] is None), None)
            if v is None:
                return assign
            value = self.random.random() < self._propositions[v].initial_probability
            decisions.append((len(trail), v, value, False))
            assign[v] = value
            trail.append(v)
            if propagate([v]):
                continue
            while True:
                conflicts += 1
                if conflicts > self.max_conflicts:
                    logger.warning("solver_timeout", problem=self.name, conflicts=conflicts)
                    raise SolverTimeoutError(self.max_conflicts)
                if not decisions:
                    raise UnsatisfiableError()
                mark, dv, dvalue, flipped = decisions.pop()
                undo_to(mark)
                if flipped:
                    continue
                decisions.append((mark, dv, not dvalue, True))
                assign[dv] = not dvalue
                trail.append(dv)
                if propagate([dv]):
                    break

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def stats(self) -> ProblemStats:
        mean = (self._solve_seconds * 1000.0 / self._solve_count) if self._solve_count else None
        return ProblemStats(
            propositions=len(self._propositions),
            constraints=len(self._constraints),
            variables=len(self._floats) + len(self._menus),
            solve_count=self._solve_count,
            failures=self._failures,
            mean_solve_ms=mean,
        )

    def _literal_text(self, entry: Tuple[int, bool]) -> str:
        prop = self._propositions[entry[0]]
        return str(prop) if entry[1] else f"!{prop}"

    def decompile(self) -> List[str]:
        lines = []
        for c in self._constraints:
            literals = [self._literal_text(e) for e in c.literals]
            if c.lower == 1 and c.upper >= len(literals):
                lines.append(" | ".join(literals))
            elif c.lower == 0:
                lines.append(f"at most {c.upper} of [{', '.join(literals)}]")
            elif c.lower == c.upper:
                lines.append(f"exactly {c.lower} of [{', '.join(literals)}]")
            else:
                lines.append(f"{c.lower}-{c.upper} of [{', '.join(literals)}]")
        for variable in self._floats:
            lines.append(f"{variable.name} in [{variable.lower}, {variable.upper}] when {variable.condition}")
        for variable in self._menus:
            lines.append(f"{variable.name} chosen from a menu when {variable.condition}")
        return lines


class BacktrackingSolver(ISolver):
    """Creates `BacktrackingProblem`s sharing one random stream."""

    def __init__(self, max_conflicts: int = 20000, seed: Optional[int] = None) -> None:
        self.max_conflicts = max_conflicts
        self.random = random.Random(seed)

    def new_problem(self, name: str) -> BacktrackingProblem:
        return BacktrackingProblem(name, self.max_conflicts, self.random)
