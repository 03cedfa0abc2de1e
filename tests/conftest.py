"""Shared test fixtures and configuration."""

import os

import pytest


# Test environment overriding every setting that could leak in from the host
TEST_ENV = {
    "REDIPRESS_INDEX_NAME": "posts",
    "REDIPRESS_PERSIST_INDEX": "false",
    "REDIPRESS_LANGUAGE": "finnish",
    "REDIPRESS_INDEX_ALL_WORKERS": "1",
    "REDIPRESS_REDIS_HOST": "127.0.0.1",
    "REDIPRESS_REDIS_PORT": "6379",
    "REDIPRESS_REDIS_PASSWORD": "",
    "REDIPRESS_REDIS_DB": "0",
    "REDIPRESS_LOG_LEVEL": "info",
    "REDIPRESS_LOG_JSON": "true",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset redipress environment variables before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
