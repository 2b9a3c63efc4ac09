"""NTFS ACL adapter built on pywin32's win32security."""

from __future__ import annotations

import os
from types import ModuleType

import structlog

from folder_access_provisioner.errors import AclError
from folder_access_provisioner.filesystem.models import FOLDER_AND_CONTENTS, InheritanceFlags
from folder_access_provisioner.provisioning.models import AccessLevel

logger = structlog.get_logger()


class WindowsAcl:
    """A folder's DACL as read, plus the allow entries to add on write."""

    def __init__(self, security_api: ModuleType, dacl, system_name: str = "") -> None:
        self._api = security_api
        self.dacl = dacl
        self.pending: list[tuple[int, int, object]] = []
        self._system_name = system_name

    def add_allow_rule(
        self,
        principal_name: str,
        access_level: AccessLevel,
        inheritance: InheritanceFlags = FOLDER_AND_CONTENTS,
    ) -> WindowsAcl:
        """Queue an allow entry for ``principal_name`` and return this ACL."""
        try:
            sid, domain, _account_type = self._api.LookupAccountName(
                self._system_name, principal_name
            )
        except self._api.error as e:
            raise AclError(f"cannot resolve principal '{principal_name}': {_describe(e)}") from e

        self.pending.append((int(inheritance), access_level.access_mask, sid))
        logger.debug(
            "acl_rule_added",
            principal=principal_name,
            domain=domain,
            right=access_level.right_name,
            inheritance=int(inheritance),
        )
        return self

    def explicit_dacl(self):
        """Build the explicit part of the DACL in canonical order.

        Explicit deny entries come first, then explicit allow entries, then
        the queued ones. Inherited entries are left out; Windows recomputes
        them from the parent when the DACL is written.
        """
        api = self._api
        denied, allowed = [], []
        if self.dacl is not None:
            for index in range(self.dacl.GetAceCount()):
                (ace_type, ace_flags), mask, sid = self.dacl.GetAce(index)
                if ace_flags & api.INHERITED_ACE:
                    continue
                if ace_type == api.ACCESS_DENIED_ACE_TYPE:
                    denied.append((ace_flags, mask, sid))
                elif ace_type == api.ACCESS_ALLOWED_ACE_TYPE:
                    allowed.append((ace_flags, mask, sid))
                else:
                    raise AclError(f"unsupported explicit ACE type {ace_type} in existing DACL")

        new_dacl = api.ACL()
        try:
            for flags, mask, sid in denied:
                new_dacl.AddAccessDeniedAceEx(api.ACL_REVISION, flags, mask, sid)
            for flags, mask, sid in allowed + self.pending:
                new_dacl.AddAccessAllowedAceEx(api.ACL_REVISION, flags, mask, sid)
        except api.error as e:
            raise AclError(_describe(e)) from e
        return new_dacl


class WindowsAclClient:
    """Reads and writes folder DACLs through win32security.

    Principals are looked up by account name, optionally qualified with a
    NetBIOS domain (``CORP\\PG-RO-Finance``). Writes go through
    SetNamedSecurityInfo, so inheritable entries reach existing subfolders
    and files.
    """

    def __init__(self, netbios_domain: str = "", security_api: ModuleType | None = None) -> None:
        if security_api is None:
            import win32security as security_api
        self._api = security_api
        self._netbios_domain = netbios_domain

    def principal_for(self, group_name: str) -> str:
        if self._netbios_domain:
            return f"{self._netbios_domain}\\{group_name}"
        return group_name

    def exists(self, path: str) -> bool:
        return os.path.isdir(path)

    def read_acl(self, path: str) -> WindowsAcl:
        try:
            descriptor = self._api.GetNamedSecurityInfo(
                path, self._api.SE_FILE_OBJECT, self._api.DACL_SECURITY_INFORMATION
            )
        except self._api.error as e:
            raise AclError(_describe(e)) from e
        return WindowsAcl(self._api, descriptor.GetSecurityDescriptorDacl())

    def write_acl(self, path: str, acl: WindowsAcl) -> None:
        dacl = acl.explicit_dacl()
        try:
            self._api.SetNamedSecurityInfo(
                path,
                self._api.SE_FILE_OBJECT,
                self._api.DACL_SECURITY_INFORMATION,
                None,
                None,
                dacl,
                None,
            )
        except self._api.error as e:
            raise AclError(_describe(e)) from e
        logger.info("acl_written", path=path, added=len(acl.pending))


def _describe(error: Exception) -> str:
    """Turn a pywintypes.error (winerror, funcname, strerror) into one line."""
    args = getattr(error, "args", ())
    if len(args) == 3:
        winerror, funcname, strerror = args
        return f"{strerror} ({funcname}, {winerror})"
    return str(error)
