"""
Settings for the import tools.

Values come from the process environment, with a project-level `.env` loaded
first. Only the command layer calls into this module; the pipeline receives a
`StoreSettings` object and never reads the environment itself.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import environ
from dotenv import load_dotenv

from homecare.core.store.base import MAX_BATCH_SIZE
from homecare.ingest.errors import ConfigurationError

BASE_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = BASE_DIR.parent

# Load .env using python-dotenv (handles spaces around = better)
load_dotenv(PROJECT_ROOT / ".env")

DEFAULT_DATA_DIR = PROJECT_ROOT / "data"

PROJECT_ID_VARS = ("FIREBASE_PROJECT_ID", "VITE_FIREBASE_PROJECT_ID")
CREDENTIAL_PATH_VARS = ("FIREBASE_CREDENTIALS_JSON_PATH", "GOOGLE_APPLICATION_CREDENTIALS")
CREDENTIAL_B64_VAR = "FIREBASE_CREDENTIALS_JSON_B64"


@dataclass(frozen=True)
class StoreSettings:
    """Connection and batching parameters for one import run."""

    project_id: str
    credentials_path: str = ""
    credentials_b64: str = ""
    api_key: str = ""
    batch_size: int = MAX_BATCH_SIZE
    data_dir: Path = DEFAULT_DATA_DIR

    @property
    def has_credentials(self) -> bool:
        return bool(self.credentials_path or self.credentials_b64)


def _first(env: environ.Env, names: tuple[str, ...]) -> str:
    for name in names:
        value = env.str(name, default="").strip()
        if value:
            return value
    return ""


def load_store_settings(environment: Mapping[str, str] | None = None) -> StoreSettings:
    """
    Build StoreSettings from the environment.

    Args:
        environment: Mapping to read instead of os.environ (used by tests)

    Returns:
        Validated StoreSettings

    Raises:
        ConfigurationError: If the project id or every credential source is
            missing, or the batch size is outside 1..500
    """
    env = environ.Env()
    if environment is not None:
        env.ENVIRON = dict(environment)
    else:
        env.ENVIRON = os.environ

    project_id = _first(env, PROJECT_ID_VARS)
    credentials_path = _first(env, CREDENTIAL_PATH_VARS)
    credentials_b64 = env.str(CREDENTIAL_B64_VAR, default="").strip()

    missing = []
    if not project_id:
        missing.append(" or ".join(PROJECT_ID_VARS))
    if not credentials_path and not credentials_b64:
        missing.append(" or ".join((*CREDENTIAL_PATH_VARS, CREDENTIAL_B64_VAR)))
    if missing:
        raise ConfigurationError(
            "Missing required store configuration: " + "; ".join(missing)
        )

    try:
        batch_size = env.int("IMPORT_BATCH_SIZE", default=MAX_BATCH_SIZE)
    except ValueError as e:
        raise ConfigurationError(f"IMPORT_BATCH_SIZE must be an integer: {e}") from e
    if not 1 <= batch_size <= MAX_BATCH_SIZE:
        raise ConfigurationError(
            f"IMPORT_BATCH_SIZE must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}"
        )

    data_dir = env.str("IMPORT_DATA_DIR", default="").strip()

    return StoreSettings(
        project_id=project_id,
        credentials_path=credentials_path,
        credentials_b64=credentials_b64,
        api_key=_first(env, ("FIREBASE_API_KEY", "VITE_FIREBASE_API_KEY")),
        batch_size=batch_size,
        data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
    )
