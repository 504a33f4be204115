from .backtracking import BacktrackingSolver

__all__ = ["BacktrackingSolver"]
