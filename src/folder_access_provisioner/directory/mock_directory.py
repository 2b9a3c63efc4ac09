"""In-memory directory used in TEST_MODE."""

from __future__ import annotations

import yaml
import structlog

from folder_access_provisioner.directory.models import MockDirectoryConfig
from folder_access_provisioner.errors import DirectoryError

logger = structlog.get_logger()


def _normalize_dn(dn: str) -> str:
    return ",".join(part.strip() for part in dn.split(",")).lower()


class MockDirectory:
    """Directory adapter that keeps OUs and groups in memory.

    Mirrors the Active Directory behaviour the provisioner depends on:
    DN lookups are case-insensitive, group names are unique across the
    whole directory, and groups can only be created inside a known OU.
    """

    def __init__(self, config: MockDirectoryConfig):
        self._organizational_units = list(config.organizational_units)
        self._ou_keys = {_normalize_dn(dn) for dn in self._organizational_units}
        self._groups: dict[str, dict[str, str]] = {}
        self.group_names: set[str] = set()
        for group in config.groups:
            self._add(group.name, group.name, group.path, group.description)
        logger.info(
            "mock_directory_initialized",
            ou_count=len(self._organizational_units),
            group_count=len(self._groups),
        )

    @classmethod
    def from_yaml(cls, path: str) -> MockDirectory:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return cls(MockDirectoryConfig(**raw))

    def _add(self, name: str, display_name: str, path: str, description: str) -> str:
        dn = f"CN={name},{path}"
        self._groups[_normalize_dn(dn)] = {
            "name": name,
            "displayName": display_name,
            "path": path,
            "description": description,
        }
        self.group_names.add(name)
        return dn

    def exists(self, dn: str) -> bool:
        """Only organizational units count; group DNs do not."""
        return _normalize_dn(dn) in self._ou_keys

    def create_security_group(
        self, name: str, display_name: str, path: str, description: str
    ) -> str:
        if any(existing.lower() == name.lower() for existing in self.group_names):
            raise DirectoryError(f"entryAlreadyExists: a group named '{name}' already exists")
        if _normalize_dn(path) not in self._ou_keys:
            raise DirectoryError(f"noSuchObject: '{path}' does not exist")
        dn = self._add(name, display_name, path, description)
        logger.info("mock_group_created", dn=dn)
        return dn

    def list_organizational_units(self) -> list[str]:
        return sorted(self._organizational_units, key=str.lower)

    def get_group(self, name: str) -> dict[str, str] | None:
        for group in self._groups.values():
            if group["name"].lower() == name.lower():
                return dict(group)
        return None

    def close(self) -> None:
        """No-op close for compatibility with LdapDirectory."""
        pass
