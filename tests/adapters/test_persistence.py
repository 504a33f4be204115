# tests/adapters/test_persistence.py
import pytest

from ontogen.adapters.persistence.filesystem_repo import strip_comment
from ontogen.core.domain.exceptions import DefinitionFileNotFoundError


class TestFileSystemDefinitionRepository:
    def test_load_definitions_skips_comments_and_blank_lines(self, repository, project_dir):
        # Arrange
        (project_dir / "cat.gen").write_text(
            "# Cats\ncats are fuzzy  // always\n\n   \ncats can be big\n", encoding="utf-8"
        )

        # Act
        statements = repository.load_definitions("cat")

        # Assert
        assert statements == ["cats are fuzzy", "cats can be big"]

    def test_missing_definition_file_is_none(self, repository):
        assert repository.load_definitions("dog") is None

    def test_definition_names(self, repository, project_dir):
        (project_dir / "cat.gen").write_text("", encoding="utf-8")
        (project_dir / "dog.gen").write_text("", encoding="utf-8")
        (project_dir / "names.txt").write_text("", encoding="utf-8")

        assert repository.definition_names() == ["cat", "dog"]

    def test_load_menu(self, repository, project_dir):
        (project_dir / "names.txt").write_text("Tom\n\n  Felix  \n", encoding="utf-8")

        assert repository.load_menu("names") == ["Tom", "Felix"]

    def test_missing_menu_raises(self, repository):
        with pytest.raises(DefinitionFileNotFoundError) as excinfo:
            repository.load_menu("names")

        assert "names" in str(excinfo.value)

    def test_save_then_load(self, repository, project_dir):
        path = repository.save_definitions("zoo", ["cats are fuzzy", "dogs are loud"])

        assert path == str(project_dir / "zoo.gen")
        assert repository.load_definitions("zoo") == ["cats are fuzzy", "dogs are loud"]


@pytest.mark.parametrize(
    "line, expected",
    [
        ("cats are fuzzy", "cats are fuzzy"),
        ("cats are fuzzy # note", "cats are fuzzy"),
        ("// only a comment", ""),
        ("   ", ""),
    ],
)
def test_strip_comment(line, expected):
    assert strip_comment(line) == expected
