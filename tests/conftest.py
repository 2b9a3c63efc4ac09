"""Pytest fixtures for folder-access-provisioner tests."""

import os
from unittest.mock import patch

import pytest
import yaml

from folder_access_provisioner.config import Settings
from folder_access_provisioner.directory.mock_directory import MockDirectory
from folder_access_provisioner.directory.models import MockDirectoryConfig
from folder_access_provisioner.filesystem.mock_acl_client import InMemoryAclClient
from folder_access_provisioner.provisioning.log_sink import OutcomeLogSink
from folder_access_provisioner.provisioning.service import Provisioner

GROUPS_OU = "OU=Groups,DC=corp,DC=local"
FINANCE_FOLDER = "D:\\Finance"


@pytest.fixture
def mock_env_vars():
    """Mock environment variables for testing."""
    env_vars = {
        "LDAP_SERVER": "dc01.corp.local",
        "LDAP_BIND_DN": "CORP\\svc-provision",
        "LDAP_PASSWORD": "test-password",
        "LDAP_BASE_DN": "DC=corp,DC=local",
        "HOST": "127.0.0.1",
        "PORT": "8080",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture
def settings(mock_env_vars) -> Settings:
    """Create Settings instance with mocked environment."""
    return Settings(_env_file=None)


@pytest.fixture
def directory_yaml_content():
    """Seed data for the in-memory directory."""
    return {
        "organizational_units": [
            GROUPS_OU,
            "OU=Finance,OU=Groups,DC=corp,DC=local",
            "OU=Legal,OU=Groups,DC=corp,DC=local",
        ],
        "groups": [
            {
                "name": "PG-RO-Legal",
                "path": "OU=Legal,OU=Groups,DC=corp,DC=local",
                "description": "D:\\Legal",
            },
        ],
    }


@pytest.fixture
def directory_yaml_path(directory_yaml_content, tmp_path):
    """Write the mock directory seed to a temp file and return the path."""
    config_file = tmp_path / "mock_directory.yaml"
    config_file.write_text(yaml.dump(directory_yaml_content))
    return str(config_file)


@pytest.fixture
def directory(directory_yaml_content) -> MockDirectory:
    return MockDirectory(MockDirectoryConfig(**directory_yaml_content))


@pytest.fixture
def filesystem(directory) -> InMemoryAclClient:
    """ACL client that knows D:\\Finance and resolves groups the directory holds."""
    return InMemoryAclClient(
        existing_folders={FINANCE_FOLDER},
        known_principals=directory.group_names,
    )


@pytest.fixture
def sink_path(tmp_path):
    return tmp_path / "logs" / "provisioning.log"


@pytest.fixture
def sink(sink_path) -> OutcomeLogSink:
    return OutcomeLogSink(sink_path)


@pytest.fixture
def provisioner(directory, filesystem, sink) -> Provisioner:
    return Provisioner(directory=directory, filesystem=filesystem, sink=sink)
