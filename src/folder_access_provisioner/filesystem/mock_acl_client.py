"""In-memory ACL adapter for test mode."""

from __future__ import annotations

import os

import structlog

from folder_access_provisioner.errors import AclError
from folder_access_provisioner.filesystem.models import FOLDER_AND_CONTENTS, AccessRule, InheritanceFlags
from folder_access_provisioner.provisioning.models import AccessLevel

logger = structlog.get_logger()


class InMemoryAcl:
    """Copy of a folder's rules, detached from the store until written back."""

    def __init__(self, rules: list[AccessRule], known_principals: set[str] | None) -> None:
        self.rules = list(rules)
        self._known_principals = known_principals

    def add_allow_rule(
        self,
        principal_name: str,
        access_level: AccessLevel,
        inheritance: InheritanceFlags = FOLDER_AND_CONTENTS,
    ) -> InMemoryAcl:
        if self._known_principals is not None and principal_name not in self._known_principals:
            raise AclError(
                f"cannot resolve principal '{principal_name}': "
                "No mapping between account names and security IDs was done"
            )
        self.rules.append(AccessRule(principal_name, access_level, inheritance))
        return self


class InMemoryAclClient:
    """ACL adapter that checks real folders but keeps rules in memory.

    Used in TEST_MODE so the form can be exercised on any machine. When
    ``known_principals`` is given (a live set, usually shared with the mock
    directory), granting to a name outside it fails like an unresolvable SID.
    """

    def __init__(
        self,
        existing_folders: set[str] | None = None,
        known_principals: set[str] | None = None,
    ) -> None:
        self._existing_folders = existing_folders
        self._known_principals = known_principals
        self._acls: dict[str, list[AccessRule]] = {}
        logger.info("in_memory_acl_client_initialized")

    def principal_for(self, group_name: str) -> str:
        return group_name

    def exists(self, path: str) -> bool:
        if self._existing_folders is not None:
            return path in self._existing_folders
        return os.path.isdir(path)

    def read_acl(self, path: str) -> InMemoryAcl:
        return InMemoryAcl(self._acls.get(path, []), self._known_principals)

    def write_acl(self, path: str, acl: InMemoryAcl) -> None:
        if not self.exists(path):
            raise AclError(f"The system cannot find the path specified: '{path}'")
        self._acls[path] = list(acl.rules)
        logger.info("acl_written", path=path, rule_count=len(acl.rules))

    def rules_for(self, path: str) -> list[AccessRule]:
        return list(self._acls.get(path, []))
