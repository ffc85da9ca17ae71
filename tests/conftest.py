# tests/conftest.py
"""
Pytest configuration and shared fixtures.
"""

import os

import pytest

from binance_api.config.models import ClientSettings

# Example credentials published in the Binance REST API documentation
DOC_API_KEY = "vmPUZE6mv9SD5VNHk4HlWFsOr6aKE2zvsw0MuIgwCIPy6utIco14y7Ju91duEh8A"
DOC_API_SECRET = "NhqPtmdSJYdKjVHjA7PZj4Mge3R5YNiP1e3UZjInClVN65XAbvqqM6A7H5fATj0j"
DOC_TIMESTAMP = 1499827319559


@pytest.fixture(autouse=True)
def reset_environment():
    """Hide BINANCE_* variables from the developer's shell and restore the environment afterwards."""
    original_env = os.environ.copy()
    for key in [k for k in os.environ if k.startswith("BINANCE_")]:
        del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def doc_settings() -> ClientSettings:
    """Settings carrying the documented example key pair."""
    return ClientSettings(api_key=DOC_API_KEY, api_secret=DOC_API_SECRET)


@pytest.fixture
def fixed_clock():
    return lambda: DOC_TIMESTAMP


@pytest.fixture
def doc_secret(doc_settings) -> str:
    return doc_settings.api_secret.get_secret_value()
