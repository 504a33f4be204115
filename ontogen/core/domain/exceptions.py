# ontogen/core/domain/exceptions.py
from typing import Iterable, Optional, Sequence


class DomainError(Exception):
    """Base class for all domain-level exceptions."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

# --- Grammar Errors ---

class GrammaticalError(DomainError):
    """
    Raised when input cannot be understood: no sentence pattern matches it,
    or a feature check rejects an otherwise matching pattern.

    `suggestions` holds the usage strings of patterns that share a keyword
    with the offending input.
    """
    def __init__(
        self,
        message: str,
        offending_input: Optional[str] = None,
        suggestions: Iterable[str] = (),
    ):
        self.offending_input = offending_input
        self.suggestions: Sequence[str] = tuple(suggestions)
        super().__init__(message)

    def __str__(self) -> str:
        if self.offending_input:
            return f"{self.message}: {self.offending_input}"
        return self.message

# --- Ontology Errors ---

class OntologyContradictionError(DomainError):
    """Raised when a declaration is inconsistent with the existing ontology."""
    def __init__(self, reason: str):
        super().__init__(f"Contradiction: {reason}")


class NameCollisionError(OntologyContradictionError):
    """Raised when a name is already bound to a concept of a different type."""
    def __init__(self, name: str, existing_type: str, requested_type: str):
        self.name = name
        super().__init__(
            f"'{name}' is already defined as a {existing_type}, not a {requested_type}"
        )

# --- Solver Outcomes ---

class UnsatisfiableError(DomainError):
    """Raised when the constraint problem has no solution."""
    def __init__(self, reason: str = "the constraints cannot all be satisfied"):
        super().__init__(f"No example found: {reason}")


class SolverTimeoutError(DomainError):
    """Raised when the solving engine gives up before finding a solution."""
    def __init__(self, budget: int):
        self.budget = budget
        super().__init__(f"No example found: solver gave up after {budget} conflicts")

# --- Resource Errors ---

class DefinitionFileNotFoundError(DomainError):
    """Raised when a definition or list file is missing from the project."""
    def __init__(self, name: str, path: str):
        self.path = path
        super().__init__(f"The file '{name}' could not be found at {path}")
