"""Active Directory client over LDAP (ldap3)."""

from __future__ import annotations

import ldap3
import structlog
from ldap3.core.exceptions import LDAPException
from ldap3.utils.dn import escape_rdn

from folder_access_provisioner.errors import DirectoryError

logger = structlog.get_logger()


class LdapDirectory:
    """Directory adapter for Active Directory.

    The bound connection is opened lazily and reused for the lifetime of
    the client. Requires an account allowed to create group objects in the
    target organizational units.
    """

    # ADS_GROUP_TYPE_GLOBAL_GROUP | ADS_GROUP_TYPE_SECURITY_ENABLED
    GLOBAL_SECURITY_GROUP = -2147483646
    PAGE_SIZE = 500
    # Entries that can hold a new group object
    CONTAINER_FILTER = (
        "(|(objectClass=organizationalUnit)(objectClass=container)(objectClass=domainDNS))"
    )

    def __init__(
        self,
        server: str,
        bind_dn: str,
        password: str,
        base_dn: str,
        port: int = 389,
        use_ssl: bool = False,
        connect_timeout: int = 10,
    ):
        if not server:
            raise ValueError("LDAP server is not configured")
        self._server = ldap3.Server(
            server,
            port=port,
            use_ssl=use_ssl,
            get_info=ldap3.NONE,
            connect_timeout=connect_timeout,
        )
        self._bind_dn = bind_dn
        self._password = password
        self._base_dn = base_dn
        self._connection: ldap3.Connection | None = None

    def _get_connection(self) -> ldap3.Connection:
        if self._connection is None or self._connection.closed:
            try:
                self._connection = ldap3.Connection(
                    self._server,
                    user=self._bind_dn,
                    password=self._password,
                    auto_bind=True,
                )
            except LDAPException as e:
                raise DirectoryError(f"cannot bind to directory: {e}") from e
            logger.debug("ldap_connection_bound", server=str(self._server))
        return self._connection

    def exists(self, dn: str) -> bool:
        """Whether an OU or other container that can hold groups exists at ``dn``.

        A group or user DN does not count.
        """
        conn = self._get_connection()
        try:
            found = conn.search(
                search_base=dn,
                search_filter=self.CONTAINER_FILTER,
                search_scope=ldap3.BASE,
                attributes=[],
            )
        except LDAPException as e:
            raise DirectoryError(str(e)) from e
        return bool(found)

    def create_security_group(
        self, name: str, display_name: str, path: str, description: str
    ) -> str:
        """Create a global security group under ``path`` and return its DN."""
        dn = f"CN={escape_rdn(name)},{path}"
        attributes = {
            "sAMAccountName": name,
            "displayName": display_name,
            "description": description,
            "groupType": self.GLOBAL_SECURITY_GROUP,
        }
        conn = self._get_connection()
        try:
            created = conn.add(dn, object_class=["top", "group"], attributes=attributes)
        except LDAPException as e:
            raise DirectoryError(str(e)) from e

        if not created:
            result = conn.result or {}
            description_ = result.get("description", "unknown error")
            message = result.get("message", "")
            raise DirectoryError(f"{description_}: {message}" if message else description_)

        logger.info("ldap_group_created", dn=dn)
        return dn

    def list_organizational_units(self) -> list[str]:
        """Return the DNs of every OU under the base DN, sorted."""
        conn = self._get_connection()
        try:
            entries = conn.extend.standard.paged_search(
                search_base=self._base_dn,
                search_filter="(objectClass=organizationalUnit)",
                search_scope=ldap3.SUBTREE,
                attributes=[],
                paged_size=self.PAGE_SIZE,
                generator=True,
            )
            dns = [entry["dn"] for entry in entries if entry.get("type") == "searchResEntry"]
        except LDAPException as e:
            raise DirectoryError(str(e)) from e

        logger.info("ldap_organizational_units_listed", count=len(dns))
        return sorted(dns, key=str.lower)

    def close(self) -> None:
        if self._connection is not None and not self._connection.closed:
            self._connection.unbind()
        self._connection = None
