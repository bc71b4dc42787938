"""Tests for settings loaded from the environment."""

import pytest

from ballot_ledger.config import DEFAULT_MONGO_URI, Settings, load_settings
from ballot_ledger.contract import VotingContract


def test_defaults_from_empty_environment() -> None:
    settings = load_settings({})

    assert settings == Settings()
    assert settings.backend == "memory"
    assert settings.mongo_uri == DEFAULT_MONGO_URI
    assert settings.require_registered is True


def test_values_are_read_and_normalised() -> None:
    settings = load_settings(
        {
            "LEDGER_BACKEND": "Mongo",
            "MONGO_USE_TRANSACTIONS": "yes",
            "VOTER_NAME_POLICY": "HASHED",
            "REQUIRE_REGISTERED": "0",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.backend == "mongo"
    assert settings.mongo_use_transactions is True
    assert settings.voter_name_policy == "hashed"
    assert settings.require_registered is False
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "env",
    [
        {"LEDGER_BACKEND": "postgres"},
        {"REQUIRE_REGISTERED": "maybe"},
        {"VOTER_NAME_POLICY": "encrypted"},
        {"LOG_LEVEL": "LOUD"},
    ],
)
def test_invalid_values_raise(env) -> None:
    with pytest.raises(ValueError):
        load_settings(env)


def test_contract_follows_settings() -> None:
    contract = VotingContract.from_settings(
        Settings(voter_name_policy="hashed", require_registered=False)
    )

    assert contract.name_policy.mode == "hashed"
    assert contract.require_registered is False


def test_bootstrap_seeds_configured_store(tmp_path, monkeypatch) -> None:
    from ballot_ledger import bootstrap
    from ballot_ledger.storage import JsonFileWorldState

    path = tmp_path / "world.json"
    monkeypatch.setenv("LEDGER_BACKEND", "json")
    monkeypatch.setenv("LEDGER_JSON_PATH", str(path))

    bootstrap.main()

    assert JsonFileWorldState(str(path)).get("candidate1") is not None


def test_importing_main_does_not_build_store(monkeypatch) -> None:
    import importlib

    from ballot_ledger import main

    monkeypatch.setenv("LEDGER_BACKEND", "postgres")

    reloaded = importlib.reload(main)

    assert callable(reloaded.create_app)
    with pytest.raises(ValueError):
        _ = reloaded.app
