# ontogen/core/ports/__init__.py
"""
Core Ports (Interfaces).

Protocols that the Infrastructure Adapters must implement, so the core can
use a solving engine and the project's files without knowing how they work.
"""

from .definitions import IDefinitionRepository
from .solver import IConstraintProblem, ISolution, ISolver

__all__ = [
    "IConstraintProblem",
    "IDefinitionRepository",
    "ISolution",
    "ISolver",
]
