# ontogen/adapters/persistence/filesystem_repo.py
import re
from pathlib import Path
from typing import List, Optional, Sequence

import structlog

from ontogen.core.domain.exceptions import DefinitionFileNotFoundError
from ontogen.core.ports.definitions import IDefinitionRepository

logger = structlog.get_logger()

_COMMENT = re.compile(r"(#|//).*$")


def strip_comment(line: str) -> str:
    return _COMMENT.sub("", line).strip()


class FileSystemDefinitionRepository(IDefinitionRepository):
    """
    Definition and list files stored side by side in one project directory:
    `<name><definition_extension>` holds statements, `<name><list_extension>`
    holds menu values.
    """

    def __init__(self, base_path: str, definition_extension: str = ".gen", list_extension: str = ".txt"):
        self.base_path = Path(base_path).expanduser()
        self.definition_extension = definition_extension
        self.list_extension = list_extension

    def _definition_path(self, name: str) -> Path:
        return self.base_path / f"{name}{self.definition_extension}"

    def _list_path(self, name: str) -> Path:
        return self.base_path / f"{name}{self.list_extension}"

    @staticmethod
    def _read_lines(path: Path) -> List[str]:
        with path.open(encoding="utf-8") as f:
            return f.read().splitlines()

    # --- Interface Implementation ---

    def load_definitions(self, name: str) -> Optional[List[str]]:
        path = self._definition_path(name)
        if not path.is_file():
            return None
        statements = [s for s in (strip_comment(line) for line in self._read_lines(path)) if s]
        logger.info("definitions_read", name=name, path=str(path), statements=len(statements))
        return statements

    def definition_names(self) -> List[str]:
        if not self.base_path.is_dir():
            return []
        return sorted(p.stem for p in self.base_path.glob(f"*{self.definition_extension}"))

    def load_menu(self, name: str) -> List[str]:
        path = self._list_path(name)
        if not path.is_file():
            raise DefinitionFileNotFoundError(name, str(path))
        return [line.strip() for line in self._read_lines(path) if line.strip()]

    def save_definitions(self, name: str, statements: Sequence[str]) -> str:
        path = self._definition_path(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with path.open("w", encoding="utf-8") as f:
                for statement in statements:
                    f.write(statement + "\n")
        except OSError as e:
            logger.error("definitions_write_failed", name=name, error=str(e))
            raise
        logger.info("definitions_saved", name=name, path=str(path), statements=len(statements))
        return str(path)
