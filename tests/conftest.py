import pytest

import config


@pytest.fixture(autouse=True)
def set_boto_test_credentials_and_region(monkeypatch):
    """
    Automatically sets fake credentials and a default region for all tests.
    """
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
    monkeypatch.delenv(config.CONFIG_ENV_VAR, raising=False)


@pytest.fixture(autouse=True)
def reset_config_manager(monkeypatch):
    """Drop the cached config manager between tests."""
    monkeypatch.setattr(config, "_config_manager", None)
