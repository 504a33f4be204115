# ontogen/core/domain/constraints.py
"""
core/domain/constraints.py

Value objects of the constraint language exchanged with a solving engine.

- `Proposition`: a named Boolean unknown, optionally over individuals.
- `Negation`: the negative literal of a proposition (`~p`).
- `Constant`: `TRUE` / `FALSE`, used when the compiler already knows the
  answer (e.g. an individual that can never be of some kind).
- `FloatVariable` / `MenuVariable`: typed values that only exist when
  their guard proposition is true.

Propositions are created by a problem instance, which guarantees one object
per (name, arguments) key. Symmetric propositions share one object for both
argument orders.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple, Union


class Proposition:
    __slots__ = ("name", "args", "index", "initial_probability")

    def __init__(self, name: str, args: Tuple[Any, ...], index: int, initial_probability: float = 0.5) -> None:
        self.name = name
        self.args = args
        self.index = index
        self.initial_probability = initial_probability

    is_positive = True

    @property
    def proposition(self) -> "Proposition":
        return self

    def __invert__(self) -> "Negation":
        return Negation(self)

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}({', '.join(str(a) for a in self.args)})"

    def __repr__(self) -> str:
        return f"<Proposition {self}>"


@dataclass(frozen=True)
class Negation:
    proposition: Proposition

    is_positive = False

    def __invert__(self) -> Proposition:
        return self.proposition

    def __str__(self) -> str:
        return f"!{self.proposition}"


@dataclass(frozen=True)
class Constant:
    value: bool

    def __invert__(self) -> "Constant":
        return FALSE if self.value else TRUE

    def __str__(self) -> str:
        return "true" if self.value else "false"


TRUE = Constant(True)
FALSE = Constant(False)

SolverLiteral = Union[Proposition, Negation, Constant]


@dataclass(eq=False)
class FloatVariable:
    """Uniformly distributed number in [lower, upper] whenever `condition` holds."""

    name: str
    lower: float
    upper: float
    condition: SolverLiteral

    def __str__(self) -> str:
        return self.name


@dataclass(eq=False)
class MenuVariable:
    """A string chosen from the menus it is constrained to, whenever `condition` holds."""

    name: str
    condition: SolverLiteral
    memberships: list = field(default_factory=list)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ProblemStats:
    propositions: int
    constraints: int
    variables: int
    solve_count: int = 0
    failures: int = 0
    mean_solve_ms: Optional[float] = None
