# ontogen/shared/container.py
from dependency_injector import containers, providers

from ontogen.adapters.persistence.filesystem_repo import FileSystemDefinitionRepository
from ontogen.adapters.solvers.backtracking import BacktrackingSolver
from ontogen.core.use_cases.session import Session
from ontogen.shared.config import settings


class Container(containers.DeclarativeContainer):
    """
    Wires the solver and the project directory into sessions.

    The CLI builds one session from it; the HTTP app builds one per
    `POST /sessions`. Tests override `solver` and `definition_repository`.
    """

    # 1. Configuration
    # Wrapping the settings allows overriding them in tests.
    config = providers.Configuration(pydantic_settings=[settings])

    # 2. Adapters

    # Persistence (Singleton: One access point to the project directory)
    definition_repository = providers.Singleton(
        FileSystemDefinitionRepository,
        base_path=config.DEFINITIONS_PATH,
        definition_extension=config.DEFINITION_EXTENSION,
        list_extension=config.LIST_EXTENSION,
    )

    # Solving engine (Singleton: one random stream for the whole process)
    solver = providers.Singleton(
        BacktrackingSolver,
        max_conflicts=config.SOLVER_MAX_CONFLICTS,
        seed=config.SOLVER_SEED,
    )

    # 3. Use Cases

    # Factory: every session owns its ontology and transcript,
    # with the Singleton adapters injected.
    session = providers.Factory(
        Session,
        solver=solver,
        definitions=definition_repository,
        retries=config.SOLVER_RETRIES,
        default_plural_count=config.DEFAULT_PLURAL_COUNT,
    )


# Shared by the CLI and the HTTP app
container = Container()
