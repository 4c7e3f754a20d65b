"""Pytest configuration shared by the RegistryHub suites.

.reg_env is loaded before any registry_hub import so that integration tests
see the same REG_* values as the CLI. Unit tests never need it.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

_REG_ENV_FILE = Path(__file__).parent.parent / ".reg_env"
if _REG_ENV_FILE.exists():
    load_dotenv(_REG_ENV_FILE, override=True)

import os

import pytest

from registry_hub.config import get_settings


def _resolve_postgres_dsn() -> str:
    database_url = os.environ.get("REG_TEST_DATABASE_URI")
    if not database_url or not database_url.startswith("postgres"):
        pytest.skip("REG_TEST_DATABASE_URI must be set for postgres-backed tests")
    return database_url


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def postgres_dsn() -> str:
    return _resolve_postgres_dsn()


@pytest.fixture
def in_memory_store():
    from tests.fixtures.in_memory_store import InMemoryCompanyStore

    return InMemoryCompanyStore()
