"""
Global pytest configuration and fixtures for the validation test suite.

Provides a testing configuration with metrics disabled, fresh validators per
test and temporary files for the file-existence rule.
"""

import os

import pytest

from structvalidator import MarshmallowRuleEngine, Validator
from structvalidator.config import EnvironmentManager, TestingConfig


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep package environment variables from leaking into tests."""
    for key in list(os.environ):
        if key.startswith('STRUCTVALIDATOR_'):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def env_manager():
    """Environment manager that skips .env discovery."""
    return EnvironmentManager(env_file='')


@pytest.fixture
def testing_config(env_manager):
    return TestingConfig(env_manager=env_manager)


@pytest.fixture
def engine(testing_config):
    return MarshmallowRuleEngine(tag_key=testing_config.TAG_KEY)


@pytest.fixture
def validator(testing_config):
    """Fresh validator with the built-in messages and custom rules."""
    return Validator(config=testing_config)


@pytest.fixture
def existing_file(tmp_path):
    path = tmp_path / "server.crt"
    path.write_text("certificate")
    return str(path)
