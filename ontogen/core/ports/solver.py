# ontogen/core/ports/solver.py
from typing import Any, Iterable, List, Protocol, Sequence

from ontogen.core.domain.constraints import (
    FloatVariable,
    MenuVariable,
    ProblemStats,
    Proposition,
    SolverLiteral,
)


class ISolution(Protocol):
    """A satisfying assignment returned by a problem's `solve`."""

    def __getitem__(self, key: Any) -> Any:
        """Truth value of a literal, or the value of a variable."""
        ...

    def defines_variable(self, variable: Any) -> bool:
        """False when the variable's guard was false, so it has no value."""
        ...


class IConstraintProblem(Protocol):
    """
    Port for one constraint problem.
    Implementations:
    - BacktrackingSolver problems (pure Python, randomised DPLL)
    """

    def proposition(self, name: str, *args: Any, symmetric: bool = False) -> Proposition:
        """
        Returns the unique proposition for (name, args), creating it on first use.
        A symmetric binary proposition is the same object for (a, b) and (b, a).
        """
        ...

    def assert_literal(self, literal: SolverLiteral) -> None:
        ...

    def add_clause(self, literals: Iterable[SolverLiteral]) -> None:
        """At least one literal must hold."""
        ...

    def add_implication(self, antecedents: Iterable[SolverLiteral], consequent: SolverLiteral) -> None:
        ...

    def at_most(self, k: int, literals: Sequence[SolverLiteral]) -> None:
        ...

    def at_least(self, k: int, literals: Sequence[SolverLiteral]) -> None:
        ...

    def exactly(self, k: int, literals: Sequence[SolverLiteral]) -> None:
        ...

    def unique(self, literals: Sequence[SolverLiteral]) -> None:
        """Exactly one literal holds."""
        ...

    def quantify(self, lower: int, upper: int, literals: Sequence[SolverLiteral]) -> None:
        """Between `lower` and `upper` literals hold. Repeated literals count repeatedly."""
        ...

    def float_variable(self, name: str, lower: float, upper: float, condition: SolverLiteral) -> FloatVariable:
        ...

    def menu_variable(self, name: str, condition: SolverLiteral) -> MenuVariable:
        ...

    def in_menu(self, variable: MenuVariable, menu_name: str, values: Sequence[str]) -> Proposition:
        """A proposition that, when true, forces the variable's value into the menu."""
        ...

    def solve(self) -> ISolution:
        """
        Raises:
            UnsatisfiableError: If no assignment satisfies the constraints.
            SolverTimeoutError: If the search budget runs out first.
        """
        ...

    def stats(self) -> ProblemStats:
        ...

    def decompile(self) -> List[str]:
        """Human readable listing of every constraint."""
        ...


class ISolver(Protocol):
    """Port for the constraint solving engine."""

    def new_problem(self, name: str) -> IConstraintProblem:
        ...
