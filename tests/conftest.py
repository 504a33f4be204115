# tests/conftest.py
import pytest

from ontogen.adapters.persistence.filesystem_repo import FileSystemDefinitionRepository
from ontogen.adapters.solvers.backtracking import BacktrackingSolver
from ontogen.core.domain.ontology import OntologyContext
from ontogen.core.parsing import Parser
from ontogen.core.use_cases.session import Session
from ontogen.shared.container import container as app_container


@pytest.fixture(scope="function")
def solver():
    """A seeded solver, so inventions are reproducible within a test."""
    return BacktrackingSolver(max_conflicts=20000, seed=1234)


@pytest.fixture(scope="function")
def project_dir(tmp_path):
    """An empty project directory for definition and list files."""
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture(scope="function")
def repository(project_dir):
    return FileSystemDefinitionRepository(str(project_dir))


@pytest.fixture(scope="function")
def ontology(repository):
    return OntologyContext(repository)


@pytest.fixture(scope="function")
def parser(ontology):
    return Parser(ontology)


@pytest.fixture(scope="function")
def session(solver, repository):
    return Session(solver, repository, retries=20, default_plural_count=3)


@pytest.fixture(scope="function")
def container(solver, repository):
    """
    Sets up the Dependency Injection Container for testing.
    The solver and repository providers of the application container are
    overridden with the fixtures above.
    """
    app_container.solver.override(solver)
    app_container.definition_repository.override(repository)

    yield app_container

    # Clean up overrides after test
    # (only the providers overridden above: the config's settings are
    # themselves held as an override and must survive)
    app_container.solver.reset_override()
    app_container.definition_repository.reset_override()


@pytest.fixture
def declare(parser):
    """Runs declarations through the parser, committing each one."""

    def run(*statements):
        for statement in statements:
            parser.parse_and_execute(statement)
            parser.ontology.journal.commit()
        return parser.ontology

    return run
