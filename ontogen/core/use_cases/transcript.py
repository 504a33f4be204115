# ontogen/core/use_cases/transcript.py
from typing import List, Optional


class Transcript:
    """
    The declarations the user has entered, in order.
    Replaying them into an erased ontology reproduces its current state.
    """

    def __init__(self) -> None:
        self._declarations: List[str] = []

    def log(self, declaration: str) -> None:
        self._declarations.append(declaration)

    def undo(self) -> Optional[str]:
        """Remove and return the last declaration, or None if there is none."""
        if not self._declarations:
            return None
        return self._declarations.pop()

    def clear(self) -> None:
        self._declarations.clear()

    @property
    def statements(self) -> List[str]:
        return list(self._declarations)

    def __len__(self) -> int:
        return len(self._declarations)
