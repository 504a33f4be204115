# ontogen/core/ports/definitions.py
from typing import List, Optional, Protocol, Sequence


class IDefinitionRepository(Protocol):
    """
    Port for the project's definition and list files.
    Implementations:
    - FileSystemDefinitionRepository (a directory of .gen and .txt files)
    """

    def load_definitions(self, name: str) -> Optional[List[str]]:
        """
        Statements of the definition file for `name`, comments and blank
        lines removed. Returns None if there is no such file.
        """
        ...

    def definition_names(self) -> List[str]:
        """Names of every definition file in the project."""
        ...

    def load_menu(self, name: str) -> List[str]:
        """
        Values of the list file `name`.

        Raises:
            DefinitionFileNotFoundError: If the list file does not exist.
        """
        ...

    def save_definitions(self, name: str, statements: Sequence[str]) -> str:
        """Writes statements as a definition file and returns its path."""
        ...
