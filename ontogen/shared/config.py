# ontogen/shared/config.py
import os
from enum import Enum
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnv(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """
    Runtime settings for the REPL, the batch runner and the HTTP app.
    Every field can be overridden from the environment or a `.env` file,
    e.g. `DEFINITIONS_PATH=~/zoo ontogen repl`.
    """

    # --- Application ---
    APP_NAME: str = "ontogen"
    APP_ENV: AppEnv = AppEnv.DEVELOPMENT
    DEBUG: bool = False

    # --- Logging & Observability ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"
    OTEL_SERVICE_NAME: str = "ontogen"

    # --- Project Files ---
    # Directory holding definition files (<noun>.gen) and list files (<list>.txt)
    DEFINITIONS_PATH: str = "."
    DEFINITION_EXTENSION: str = ".gen"
    LIST_EXTENSION: str = ".txt"

    # --- Solver ---
    SOLVER_MAX_CONFLICTS: int = 20000
    SOLVER_RETRIES: int = 100
    SOLVER_SEED: Optional[int] = None

    # --- Generation ---
    # Objects imagined for a plural request without an explicit count ("imagine cats")
    DEFAULT_PLURAL_COUNT: int = 9

    # --- Resolved Paths ---

    @property
    def DEFINITIONS_DIR(self) -> str:
        return os.path.abspath(os.path.expanduser(self.DEFINITIONS_PATH))

    @property
    def SAVE_DIR(self) -> str:
        """Where `save NAME` writes transcripts: the project directory itself."""
        return self.DEFINITIONS_DIR

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
