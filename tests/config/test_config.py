from __future__ import annotations

from pathlib import Path

import pytest

from crmsync.config import (
    ConfigurationError,
    MissingConfigurationError,
    SyncConfig,
    get_database_config,
    get_salesforce_config,
    get_storage_config,
    get_sync_config,
    require_env_var,
    require_env_vars,
)

SALESFORCE_ENV = {
    "SALESFORCE_USERNAME": "sync@example.com",
    "SALESFORCE_PASSWORD": "hunter2",
    "SALESFORCE_SECURITY_TOKEN": "token",
    "SALESFORCE_CLIENT_ID": "client",
    "SALESFORCE_CLIENT_SECRET": "secret",
}


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.delenv("MISSING_A", raising=False)

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_require_env_var_handles_blank_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")

    with pytest.raises(MissingConfigurationError):
        require_env_var("EXAMPLE_VAR")


def test_salesforce_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name, value in SALESFORCE_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("SALESFORCE_HOST", "test.salesforce.com")
    monkeypatch.delenv("SALESFORCE_API_VERSION", raising=False)

    config = get_salesforce_config()

    assert config.username == "sync@example.com"
    assert config.token_url == "https://test.salesforce.com/services/oauth2/token"
    assert config.api_version == "v60.0"
    assert config.resilience is not None
    assert config.resilience.name == "salesforce"
    assert "POST" not in config.resilience.retry.allowed_methods


def test_salesforce_config_requires_credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in SALESFORCE_ENV:
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(MissingConfigurationError, match="SALESFORCE_CLIENT_ID"):
        get_salesforce_config()


def test_sync_config_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CRMSYNC_MAX_WORKERS", "3")
    monkeypatch.setenv("CRMSYNC_INITIAL_LOOKBACK_HOURS", "1.5")

    assert get_sync_config() == SyncConfig(max_workers=3, initial_lookback_hours=1.5)


def test_sync_config_defaults_when_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CRMSYNC_MAX_WORKERS", raising=False)
    monkeypatch.setenv("CRMSYNC_INITIAL_LOOKBACK_HOURS", "")

    assert get_sync_config() == SyncConfig()


def test_sync_config_rejects_bad_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CRMSYNC_MAX_WORKERS", "many")

    with pytest.raises(ConfigurationError, match="integer"):
        get_sync_config()

    with pytest.raises(ConfigurationError, match="at least 1"):
        SyncConfig(max_workers=0)


def test_database_config_prefers_explicit_uri(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "postgresql+psycopg://db/crm")

    assert get_database_config().uri == "postgresql+psycopg://db/crm"


def test_database_config_falls_back_to_data_dir(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("CRMSYNC_DATA_DIR", str(tmp_path / "data"))

    storage = get_storage_config()
    config = get_database_config(storage=storage)

    assert config.uri == f"sqlite+pysqlite:///{tmp_path / 'data' / 'crmsync.db'}"
    assert (tmp_path / "data").is_dir()
