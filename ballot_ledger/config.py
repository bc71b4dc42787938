# ballot_ledger/config.py
# Central place for backend selection and ledger policies
import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

load_dotenv()

BACKENDS = ("memory", "json", "mongo")
NAME_POLICIES = ("plain", "hashed")

# Defaults, overridable from the environment / .env file
DEFAULT_BACKEND = "memory"
DEFAULT_JSON_PATH = "data/world_state.json"
DEFAULT_MONGO_URI = "mongodb://localhost:27017"
DEFAULT_MONGO_DB = "ballot_ledger"
DEFAULT_MONGO_COLLECTION = "world_state"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _parse_choice(name: str, raw: str, choices) -> str:
    value = raw.strip().lower()
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)}, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    backend: str = DEFAULT_BACKEND
    json_path: str = DEFAULT_JSON_PATH
    mongo_uri: str = DEFAULT_MONGO_URI
    mongo_db: str = DEFAULT_MONGO_DB
    mongo_collection: str = DEFAULT_MONGO_COLLECTION
    mongo_use_transactions: bool = False
    voter_name_policy: str = "plain"
    require_registered: bool = True
    log_level: str = "INFO"


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Args:
        env: Mapping to read from, defaults to os.environ

    Returns:
        A validated Settings instance

    Raises:
        ValueError: if any variable holds an unsupported value
    """
    env = os.environ if env is None else env

    log_level = env.get("LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"LOG_LEVEL is not a logging level: {log_level!r}")

    return Settings(
        backend=_parse_choice("LEDGER_BACKEND", env.get("LEDGER_BACKEND", DEFAULT_BACKEND), BACKENDS),
        json_path=env.get("LEDGER_JSON_PATH", DEFAULT_JSON_PATH),
        mongo_uri=env.get("MONGO_URI", DEFAULT_MONGO_URI),
        mongo_db=env.get("MONGO_DB", DEFAULT_MONGO_DB),
        mongo_collection=env.get("MONGO_COLLECTION", DEFAULT_MONGO_COLLECTION),
        mongo_use_transactions=_parse_bool(
            "MONGO_USE_TRANSACTIONS", env.get("MONGO_USE_TRANSACTIONS", "false")
        ),
        voter_name_policy=_parse_choice(
            "VOTER_NAME_POLICY", env.get("VOTER_NAME_POLICY", "plain"), NAME_POLICIES
        ),
        require_registered=_parse_bool("REQUIRE_REGISTERED", env.get("REQUIRE_REGISTERED", "true")),
        log_level=log_level,
    )
